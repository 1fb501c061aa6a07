"""
Data models for network client output.

- Normalized transaction signature info for history views.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


def _confirmation_name(status: Any) -> str | None:
    """'TransactionConfirmationStatus.Finalized' / 'finalized' -> 'finalized'."""
    if status is None:
        return None
    return str(status).rsplit(".", 1)[-1].lower()


@dataclass(frozen=True)
class SignatureInfo:
    """
    Normalized transaction signature info from getSignaturesForAddress.

    Mirrors Solana RPC response fields.
    """

    signature: str
    slot: int
    err: Any  # None if success
    block_time: int | None  # Unix timestamp; None if not available
    memo: str | None
    confirmation_status: str | None  # processed | confirmed | finalized

    @classmethod
    def from_rpc_status(cls, status: Any) -> "SignatureInfo":
        """Build from a solders RpcConfirmedTransactionStatusWithSignature."""
        return cls(
            signature=str(status.signature),
            slot=int(status.slot),
            err=status.err,
            block_time=status.block_time,
            memo=status.memo,
            confirmation_status=_confirmation_name(status.confirmation_status),
        )

    @property
    def date_iso(self) -> str | None:
        if self.block_time is None:
            return None
        return datetime.fromtimestamp(self.block_time, tz=timezone.utc).isoformat()
