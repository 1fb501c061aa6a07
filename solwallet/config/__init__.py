"""
Configuration management for solwallet.

Loads settings from environment variables and an optional .env file.
Exposes a single source of truth for RPC endpoint, network and fee settings.
"""

from solwallet.config.settings import WalletSettings, get_settings  # noqa: F401

__all__ = ["WalletSettings", "get_settings"]
