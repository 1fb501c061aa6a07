"""
Environment variable loading and validation for solwallet.

- SOLANA_NETWORK: devnet | testnet | mainnet (default: inferred from RPC URL, else devnet)
- SOLANA_RPC_URL: RPC endpoint (read from .env)
- HELIUS_API_KEY: Helius API key (fallback for RPC URL)
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is solwallet/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

NETWORK_DEVNET = "devnet"
NETWORK_TESTNET = "testnet"
NETWORK_MAINNET = "mainnet"
KNOWN_NETWORKS = (NETWORK_DEVNET, NETWORK_TESTNET, NETWORK_MAINNET)

DEVNET_RPC_URL = "https://api.devnet.solana.com"
TESTNET_RPC_URL = "https://api.testnet.solana.com"
MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"
HELIUS_MAINNET_URL_TEMPLATE = "https://mainnet.helius-rpc.com/?api-key={key}"
HELIUS_DEVNET_URL_TEMPLATE = "https://devnet.helius-rpc.com/?api-key={key}"

_DEFAULT_RPC_BY_NETWORK = {
    NETWORK_DEVNET: DEVNET_RPC_URL,
    NETWORK_TESTNET: TESTNET_RPC_URL,
    NETWORK_MAINNET: MAINNET_RPC_URL,
}


def load_wallet_env() -> None:
    """Load .env from project root. Safe to call multiple times; existing env wins."""
    load_dotenv(_ENV_PATH, override=False)


def network_from_url(rpc_url: str) -> str:
    """Infer the cluster name from an RPC endpoint URL."""
    url = (rpc_url or "").lower()
    if "mainnet" in url:
        return NETWORK_MAINNET
    if "testnet" in url:
        return NETWORK_TESTNET
    return NETWORK_DEVNET


def normalize_network(raw: str) -> str:
    """Lowercase a cluster name and map the mainnet-beta alias to mainnet."""
    name = (raw or "").strip().lower()
    return NETWORK_MAINNET if name == "mainnet-beta" else name


def get_configured_network() -> str:
    """SOLANA_NETWORK (or SOLANA_CLUSTER) from env, normalized. Empty when unset."""
    load_wallet_env()
    return normalize_network(os.getenv("SOLANA_NETWORK") or os.getenv("SOLANA_CLUSTER") or "")


def get_solana_network() -> str:
    """
    Return SOLANA_NETWORK from env: devnet | testnet | mainnet.
    Unset or unknown: inferred from SOLANA_RPC_URL, default devnet.
    """
    raw = get_configured_network()
    if raw in KNOWN_NETWORKS:
        return raw
    return network_from_url(os.getenv("SOLANA_RPC_URL") or "")


def get_solana_rpc_url() -> str:
    """
    Resolve Solana RPC URL from env.
    Order: SOLANA_RPC_URL > HELIUS_API_KEY (network-specific) > public cluster default.
    """
    load_wallet_env()
    url = (os.getenv("SOLANA_RPC_URL") or "").strip()
    if url:
        return url
    network = get_solana_network()
    key = (os.getenv("HELIUS_API_KEY") or "").strip()
    if key and network != NETWORK_TESTNET:
        if network == NETWORK_DEVNET:
            return HELIUS_DEVNET_URL_TEMPLATE.format(key=key)
        return HELIUS_MAINNET_URL_TEMPLATE.format(key=key)
    return _DEFAULT_RPC_BY_NETWORK[network]


def mask_rpc_url(rpc_url: str) -> str:
    """Mask an API key embedded in an RPC URL before it is logged."""
    if "api-key=" in rpc_url:
        return rpc_url.split("api-key=")[0] + "api-key=***"
    return rpc_url


def env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default
