"""
Stake account lifecycle: create + initialize + delegate, list, deactivate, withdraw.
"""

from solwallet.staking.manager import StakingLifecycleManager

__all__ = ["StakingLifecycleManager"]
