"""
solwallet: client-side Solana wallet orchestrator.

Builds, validates and submits native SOL transfers, SPL token transfers and
stake-account lifecycle operations on behalf of a single held keypair.
Modular layout: account manager, transfer engines, staking manager, and a
network client adapter that isolates all RPC access. Entry point: solwallet.wallet.Wallet.
"""

__version__ = "0.1.0"
