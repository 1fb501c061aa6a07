"""
Account manager: owns the active keypair and its derived address.

- generate() creates a fresh random keypair and returns address + exported secret.
- import_secret() replaces the held identity from an encoded secret blob
  (base58 of the 64-byte secret, or a JSON array of 64 integers).
- export_secret() returns the held secret as base58.

No network calls and no persistence. The secret never reaches a logger.
"""

from __future__ import annotations

import json

import base58
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from solwallet.core.exceptions import InvalidKeyMaterial, NoActiveIdentity
from solwallet.core.models import GeneratedIdentity
from solwallet.wallet_logging import get_logger

logger = get_logger(__name__)

SECRET_KEY_LENGTH = 64


def _decode_secret(blob: str) -> bytes:
    raw = blob.strip()
    if raw.startswith("["):
        try:
            arr = json.loads(raw)
            return bytes(arr)
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            raise InvalidKeyMaterial("malformed JSON byte array") from e
    try:
        return base58.b58decode(raw)
    except ValueError as e:
        raise InvalidKeyMaterial("not valid base58") from e


def load_keypair(blob: str) -> Keypair:
    """Decode a secret blob into a Keypair or raise InvalidKeyMaterial."""
    if not isinstance(blob, str) or not blob.strip():
        raise InvalidKeyMaterial("empty secret")
    secret = _decode_secret(blob)
    if len(secret) != SECRET_KEY_LENGTH:
        raise InvalidKeyMaterial(f"expected {SECRET_KEY_LENGTH} bytes, got {len(secret)}")
    try:
        return Keypair.from_bytes(secret)
    except Exception as e:
        raise InvalidKeyMaterial("bytes are not a valid ed25519 keypair") from e


class AccountManager:
    """Holds at most one identity; engines read it at call time."""

    def __init__(self, keypair: Keypair | None = None) -> None:
        self._keypair = keypair

    def __repr__(self) -> str:
        return f"AccountManager(address={self.address_str!r})"

    @property
    def has_identity(self) -> bool:
        return self._keypair is not None

    @property
    def address(self) -> Pubkey | None:
        return self._keypair.pubkey() if self._keypair is not None else None

    @property
    def address_str(self) -> str | None:
        addr = self.address
        return str(addr) if addr is not None else None

    def require_keypair(self) -> Keypair:
        if self._keypair is None:
            raise NoActiveIdentity()
        return self._keypair

    def generate(self) -> GeneratedIdentity:
        self._keypair = Keypair()
        address = str(self._keypair.pubkey())
        logger.info("identity_generated", address=address)
        return GeneratedIdentity(address=address, secret=self.export_secret())

    def import_secret(self, blob: str) -> str:
        """Replace the held identity; on failure the previous identity is kept."""
        keypair = load_keypair(blob)
        self._keypair = keypair
        address = str(keypair.pubkey())
        logger.info("identity_imported", address=address)
        return address

    def export_secret(self) -> str:
        keypair = self.require_keypair()
        return base58.b58encode(bytes(keypair)).decode("ascii")
