"""Discriminated success/failure result returned by every public wallet operation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from solwallet.core.exceptions import WalletError

T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Either ok with a value, or failed with a WalletError. Never both."""

    ok: bool
    value: T | None = None
    error: WalletError | None = None

    @classmethod
    def success(cls, value: T) -> "OperationResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: WalletError) -> "OperationResult[T]":
        return cls(ok=False, error=error)

    @property
    def error_code(self) -> str | None:
        return self.error.code if self.error is not None else None

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def to_dict(self) -> dict[str, Any]:
        if self.error is None:
            return {"success": True, "value": self.value}
        return {"success": False, "error": self.error.to_dict()}
