"""
Wallet-level exceptions.

- Define the domain error taxonomy (identity, key material, address, funds,
  token, stake state, network).
- Provide stable error codes and a dict form for structured logs and results.

Validation errors are raised locally before any network call. Network and
submission failures are always a NetworkError wrapping the underlying cause.
"""

from __future__ import annotations

from typing import Any


class WalletError(Exception):
    """Base class for every error the wallet reports."""

    code = "WALLET_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def details(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.details()}


class NoActiveIdentity(WalletError):
    code = "NO_ACTIVE_IDENTITY"

    def __init__(self) -> None:
        super().__init__("No keypair loaded: generate or import one first")


class InvalidKeyMaterial(WalletError):
    """Secret blob does not decode to a valid 64-byte ed25519 keypair."""

    code = "INVALID_KEY_MATERIAL"

    def __init__(self, reason: str = "") -> None:
        # Never echo the blob itself.
        msg = "Invalid secret key material"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class InvalidAddress(WalletError):
    code = "INVALID_ADDRESS"

    def __init__(self, address: str) -> None:
        super().__init__(f"Invalid Solana address: {address!r}")
        self.address = address

    def details(self) -> dict[str, Any]:
        return {"address": self.address}


class InvalidAmount(WalletError):
    code = "INVALID_AMOUNT"

    def __init__(self, amount: Any) -> None:
        super().__init__(f"Amount must be a positive finite number, got {amount!r}")
        self.amount = amount

    def details(self) -> dict[str, Any]:
        return {"amount": str(self.amount)}


class InsufficientFunds(WalletError):
    """Balance check failed. Both values are in minor units (lamports or token base units)."""

    code = "INSUFFICIENT_FUNDS"

    def __init__(self, required: int, available: int) -> None:
        super().__init__(f"Insufficient funds: required {required}, available {available}")
        self.required = required
        self.available = available

    def details(self) -> dict[str, Any]:
        return {"required": self.required, "available": self.available}


class UnknownToken(WalletError):
    code = "UNKNOWN_TOKEN"

    def __init__(self, token_address: str) -> None:
        super().__init__(f"Token mint not found: {token_address}")
        self.token_address = token_address

    def details(self) -> dict[str, Any]:
        return {"token_address": self.token_address}


class StakeNotInactive(WalletError):
    """Withdraw attempted before deactivation took effect at an epoch boundary."""

    code = "STAKE_NOT_INACTIVE"

    def __init__(self, observed_state: str) -> None:
        super().__init__(f"Stake is not fully deactivated yet; current state: {observed_state}")
        self.observed_state = observed_state

    def details(self) -> dict[str, Any]:
        return {"observed_state": self.observed_state}


class NotSupportedOnMainnet(WalletError):
    code = "NOT_SUPPORTED_ON_MAINNET"

    def __init__(self, operation: str = "faucet") -> None:
        super().__init__(f"{operation} is only available on test networks")
        self.operation = operation

    def details(self) -> dict[str, Any]:
        return {"operation": self.operation}


class MissingSigner(WalletError):
    """An instruction references an authority that is not among the signers."""

    code = "MISSING_SIGNER"

    def __init__(self, missing: list[str]) -> None:
        super().__init__(f"Transaction is missing signers: {missing}")
        self.missing = missing

    def details(self) -> dict[str, Any]:
        return {"missing": self.missing}


class NetworkError(WalletError):
    """RPC, transport or submission failure. Never retried by the wallet."""

    code = "NETWORK_ERROR"

    def __init__(self, cause: BaseException | str) -> None:
        super().__init__(str(cause))
        self.cause = cause

    def details(self) -> dict[str, Any]:
        cause_type = type(self.cause).__name__ if isinstance(self.cause, BaseException) else "str"
        return {"cause_type": cause_type}


class AccountNotFound(NetworkError):
    """Queried account does not exist on-ledger."""

    code = "ACCOUNT_NOT_FOUND"

    def __init__(self, address: str) -> None:
        super().__init__(f"Account not found: {address}")
        self.address = address

    def details(self) -> dict[str, Any]:
        return {"address": self.address}
