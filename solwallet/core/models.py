"""
Shared data models: transaction intents, stake state machine, token and
stake snapshots, and the receipts returned by successful operations.

All amounts named *_lamports / raw_* / *_minor are integers in minor units.
Decimal fields are presentation values derived from them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Iterable

from solders.hash import Hash
from solders.instruction import Instruction
from solders.pubkey import Pubkey

from solwallet.core.amounts import lamports_to_sol


@dataclass(frozen=True)
class AntiReplayToken:
    """Recent blockhash; valid for a short window only. Fetch right before each submission."""

    blockhash: Hash
    last_valid_block_height: int | None = None


@dataclass(frozen=True)
class TransactionIntent:
    """Ordered instructions, fee payer and anti-replay token, prior to signing."""

    instructions: tuple[Instruction, ...]
    fee_payer: Pubkey
    anti_replay: AntiReplayToken

    def required_signers(self) -> set[Pubkey]:
        """Fee payer plus every account any instruction marks as signer."""
        signers = {self.fee_payer}
        for ix in self.instructions:
            for meta in ix.accounts:
                if meta.is_signer:
                    signers.add(meta.pubkey)
        return signers

    def missing_signers(self, signer_pubkeys: Iterable[Pubkey]) -> set[Pubkey]:
        return self.required_signers() - set(signer_pubkeys)


class StakeState(str, Enum):
    """Stake account lifecycle. Only the four middle states are ever observed on-ledger."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    ACTIVATING = "activating"
    ACTIVE = "active"
    DEACTIVATING = "deactivating"
    INACTIVE = "inactive"
    WITHDRAWN = "withdrawn"

    def can_transition_to(self, target: "StakeState") -> bool:
        return target in _TRANSITIONS.get(self, frozenset())


_TRANSITIONS: dict[StakeState, frozenset[StakeState]] = {
    StakeState.UNINITIALIZED: frozenset({StakeState.INITIALIZING, StakeState.ACTIVATING}),
    StakeState.INITIALIZING: frozenset({StakeState.ACTIVATING}),
    StakeState.ACTIVATING: frozenset({StakeState.ACTIVE, StakeState.DEACTIVATING}),
    StakeState.ACTIVE: frozenset({StakeState.DEACTIVATING}),
    StakeState.DEACTIVATING: frozenset({StakeState.INACTIVE}),
    StakeState.INACTIVE: frozenset({StakeState.WITHDRAWN}),
    StakeState.WITHDRAWN: frozenset(),
}


@dataclass(frozen=True)
class StakeActivation:
    state: StakeState
    active: int
    inactive: int


@dataclass(frozen=True)
class TokenAmount:
    """On-ledger token account balance."""

    amount: int
    decimals: int

    @property
    def ui_amount(self) -> Decimal:
        return Decimal(self.amount).scaleb(-self.decimals)


@dataclass(frozen=True)
class MintInfo:
    address: str
    decimals: int
    supply: int
    mint_authority: str | None
    freeze_authority: str | None

    @property
    def freezable(self) -> bool:
        return self.freeze_authority is not None


@dataclass(frozen=True)
class ProgramAccount:
    """One match of a program account scan."""

    address: Pubkey
    lamports: int
    data: bytes = b""


@dataclass(frozen=True)
class GeneratedIdentity:
    address: str
    secret: str
    message: str = (
        "IMPORTANT: store the secret key somewhere safe. "
        "Anyone holding it has full control over the funds."
    )

    def __repr__(self) -> str:
        return f"GeneratedIdentity(address={self.address!r}, secret=<redacted>)"


@dataclass(frozen=True)
class BalanceInfo:
    address: str
    balance: Decimal
    lamports: int
    network: str
    unit: str = "SOL"


@dataclass(frozen=True)
class FaucetReceipt:
    signature: str
    amount: Decimal
    lamports: int
    explorer_url: str


@dataclass(frozen=True)
class TransferReceipt:
    signature: str
    destination: str
    amount: Decimal
    lamports: int
    fee_lamports: int
    explorer_url: str


@dataclass(frozen=True)
class TokenBalance:
    address: str
    balance: Decimal
    raw_balance: str
    decimals: int
    symbol: str


@dataclass(frozen=True)
class TokenTransferReceipt:
    signature: str
    token: str
    destination: str
    amount: Decimal
    raw_amount: int
    decimals: int
    source_account: str
    destination_account: str
    created_destination_account: bool
    explorer_url: str


@dataclass(frozen=True)
class StakeReceipt:
    signature: str
    stake_account: str
    validator: str
    amount: Decimal
    lamports: int
    rent_exempt_lamports: int
    state: StakeState
    explorer_url: str
    message: str = "Stake delegated. Rewards start accruing once activation completes at an epoch boundary."


@dataclass(frozen=True)
class StakeAccountInfo:
    address: str
    state: StakeState
    active_amount: int
    inactive_amount: int
    total_amount: int

    @property
    def total_sol(self) -> Decimal:
        return lamports_to_sol(self.total_amount)


@dataclass(frozen=True)
class DeactivationReceipt:
    signature: str
    stake_account: str
    state: StakeState
    explorer_url: str
    message: str = "Deactivation submitted. Funds become withdrawable after the current epoch ends."


@dataclass(frozen=True)
class WithdrawalReceipt:
    signature: str
    stake_account: str
    amount: Decimal
    lamports: int
    state: StakeState
    explorer_url: str


@dataclass(frozen=True)
class TransactionSummary:
    signature: str
    date: str
    status: str
    explorer_url: str
    failed: bool = False
    memo: str | None = field(default=None)
