"""
Application settings.

- Load configuration from environment variables and .env files.
- Validate settings and provide defaults for optional ones.
- Expose typed settings (RPC URL, network, commitment, fee estimate, timeout)
  used to build the network client and the transfer engines.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from solwallet.config.env import (
    KNOWN_NETWORKS,
    NETWORK_MAINNET,
    env_float,
    env_int,
    get_configured_network,
    get_solana_rpc_url,
    load_wallet_env,
    network_from_url,
    normalize_network,
)

DEFAULT_COMMITMENT = "confirmed"
DEFAULT_ESTIMATED_FEE_LAMPORTS = 5000
DEFAULT_RPC_TIMEOUT_SEC = 30.0
_COMMITMENTS = ("processed", "confirmed", "finalized")


def _commitment_from_env() -> str:
    load_wallet_env()
    return (os.getenv("SOLANA_COMMITMENT") or DEFAULT_COMMITMENT).strip().lower()


@dataclass
class WalletSettings:
    """Settings for the wallet and its RPC client (env or explicit)."""

    rpc_url: str = field(default_factory=get_solana_rpc_url)
    network: str = field(default_factory=get_configured_network)
    """Empty means: infer from rpc_url."""
    commitment: str = field(default_factory=_commitment_from_env)
    estimated_fee_lamports: int = field(
        default_factory=lambda: env_int("ESTIMATED_FEE_LAMPORTS", DEFAULT_ESTIMATED_FEE_LAMPORTS)
    )
    """Flat per-signature fee used in pre-submission balance checks."""
    rpc_timeout_sec: float = field(
        default_factory=lambda: env_float("RPC_TIMEOUT_SEC", DEFAULT_RPC_TIMEOUT_SEC)
    )

    def __post_init__(self) -> None:
        network = normalize_network(self.network)
        if not network:
            network = network_from_url(self.rpc_url)
        if network not in KNOWN_NETWORKS:
            raise ValueError(f"Unknown SOLANA_NETWORK: {self.network!r}")
        self.network = network
        if self.commitment not in _COMMITMENTS:
            self.commitment = DEFAULT_COMMITMENT
        if self.estimated_fee_lamports < 0:
            self.estimated_fee_lamports = DEFAULT_ESTIMATED_FEE_LAMPORTS
        if self.rpc_timeout_sec <= 0:
            self.rpc_timeout_sec = DEFAULT_RPC_TIMEOUT_SEC

    @property
    def is_mainnet(self) -> bool:
        return self.network == NETWORK_MAINNET


def get_settings() -> WalletSettings:
    """Return settings resolved from the current environment."""
    return WalletSettings()
