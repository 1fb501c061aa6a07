"""Wallet address validation utilities."""

from __future__ import annotations

from solders.pubkey import Pubkey

from solwallet.core.exceptions import InvalidAddress


def parse_address(raw: str | Pubkey) -> Pubkey:
    """Return raw as a Pubkey, or raise InvalidAddress."""
    if isinstance(raw, Pubkey):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidAddress(str(raw))
    try:
        return Pubkey.from_string(raw.strip())
    except ValueError as e:
        raise InvalidAddress(raw) from e

