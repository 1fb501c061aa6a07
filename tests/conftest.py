"""
Pytest fixtures for solwallet tests.

FakeLedgerClient is an in-memory LedgerClient: it signs real solders
transactions, charges a flat fee per signature, and applies system,
associated-token, token and stake instructions atomically. No network calls.
"""

from __future__ import annotations

import struct
import time
from dataclasses import dataclass, replace
from typing import Any, Sequence

import pytest
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.transaction import Transaction
from spl.token.constants import ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_PROGRAM_ID
from spl.token.instructions import get_associated_token_address

from solwallet.accounts.manager import AccountManager
from solwallet.core.amounts import LAMPORTS_PER_SOL
from solwallet.core.exceptions import AccountNotFound, NetworkError, NotSupportedOnMainnet
from solwallet.core.models import (
    AntiReplayToken,
    MintInfo,
    ProgramAccount,
    StakeActivation,
    TokenAmount,
    TransactionIntent,
)
from solwallet.network.client import LedgerClient
from solwallet.network.models import SignatureInfo
from solwallet.network.solana_client import U64_MAX, stake_activation_from_parsed
from solwallet.staking import instructions as stake_ix
from solwallet.wallet import Wallet

FEE_PER_SIGNATURE = 5000
TOKEN_ACCOUNT_RENT = 2_039_280
TOKEN_TRANSFER_CHECKED = 12


def rent_exempt_minimum(size: int) -> int:
    """Solana's default rent: (size + 128 bytes overhead) * 3480 lamports/byte-year * 2 years."""
    return (size + 128) * 3480 * 2


class LedgerRejected(RuntimeError):
    """Instruction failed on the fake ledger."""


@dataclass
class FakeTokenAccount:
    mint: Pubkey
    owner: Pubkey
    amount: int = 0


@dataclass
class FakeStake:
    rent_reserve: int
    staker: Pubkey | None = None
    withdrawer: Pubkey | None = None
    voter: Pubkey | None = None
    delegated: int = 0
    activation_epoch: int | None = None
    deactivation_epoch: int | None = None

    def parsed(self) -> dict[str, Any]:
        meta = {"rentExemptReserve": str(self.rent_reserve)}
        if self.voter is None:
            return {"type": "initialized", "info": {"meta": meta, "stake": None}}
        delegation = {
            "voter": str(self.voter),
            "stake": str(self.delegated),
            "activationEpoch": str(self.activation_epoch),
            "deactivationEpoch": str(
                U64_MAX if self.deactivation_epoch is None else self.deactivation_epoch
            ),
        }
        return {"type": "delegated", "info": {"meta": meta, "stake": {"delegation": delegation}}}


class FakeLedgerClient(LedgerClient):
    def __init__(self, network: str = "devnet", epoch: int = 100) -> None:
        self.network = network
        self.epoch = epoch
        self.fee_per_signature = FEE_PER_SIGNATURE
        self.balances: dict[Pubkey, int] = {}
        self.token_accounts: dict[Pubkey, FakeTokenAccount] = {}
        self.mints: dict[Pubkey, MintInfo] = {}
        self.stakes: dict[Pubkey, FakeStake] = {}
        self.submitted: list[Transaction] = []
        self.history: list[tuple[Pubkey, SignatureInfo]] = []
        self.blockhash_requests = 0
        self.fail_next_submission: Exception | None = None
        self.closed = False

    # seeding helpers

    def fund(self, address: Pubkey, lamports: int) -> None:
        self.balances[address] = self.balances.get(address, 0) + lamports

    def add_mint(self, decimals: int, supply: int = 10**15, freeze_authority: str | None = None) -> Pubkey:
        mint = Keypair().pubkey()
        self.mints[mint] = MintInfo(
            address=str(mint),
            decimals=decimals,
            supply=supply,
            mint_authority=str(Keypair().pubkey()),
            freeze_authority=freeze_authority,
        )
        return mint

    def add_token_balance(self, owner: Pubkey, mint: Pubkey, amount: int) -> Pubkey:
        ata = get_associated_token_address(owner, mint)
        self.token_accounts[ata] = FakeTokenAccount(mint=mint, owner=owner, amount=amount)
        return ata

    def token_balance_of(self, owner: Pubkey, mint: Pubkey) -> int | None:
        acc = self.token_accounts.get(get_associated_token_address(owner, mint))
        return acc.amount if acc is not None else None

    def advance_epoch(self, count: int = 1) -> None:
        self.epoch += count

    # LedgerClient

    async def get_balance(self, address: Pubkey) -> int:
        return self.balances.get(address, 0)

    async def get_latest_anti_replay_token(self) -> AntiReplayToken:
        self.blockhash_requests += 1
        return AntiReplayToken(blockhash=Hash.new_unique(), last_valid_block_height=1_000 + self.blockhash_requests)

    async def submit_and_confirm(self, intent: TransactionIntent, signers: Sequence[Keypair]) -> str:
        if self.fail_next_submission is not None:
            cause, self.fail_next_submission = self.fail_next_submission, None
            raise NetworkError(cause)
        blockhash = intent.anti_replay.blockhash
        message = Message.new_with_blockhash(list(intent.instructions), intent.fee_payer, blockhash)
        try:
            tx = Transaction(list(signers), message, blockhash)
        except Exception as e:
            raise NetworkError(e) from e

        snapshot = (
            dict(self.balances),
            {k: replace(v) for k, v in self.token_accounts.items()},
            {k: replace(v) for k, v in self.stakes.items()},
        )
        try:
            self._debit(intent.fee_payer, self.fee_per_signature * len(tx.signatures))
            for ix in intent.instructions:
                self._apply(ix)
        except LedgerRejected as e:
            self.balances, self.token_accounts, self.stakes = snapshot
            raise NetworkError(e) from e

        signature = str(tx.signatures[0])
        self.submitted.append(tx)
        self.history.append(
            (
                intent.fee_payer,
                SignatureInfo(
                    signature=signature,
                    slot=len(self.submitted),
                    err=None,
                    block_time=int(time.time()),
                    memo=None,
                    confirmation_status="finalized",
                ),
            )
        )
        return signature

    async def get_token_account_balance(self, token_account: Pubkey) -> TokenAmount:
        acc = self.token_accounts.get(token_account)
        if acc is None:
            raise AccountNotFound(str(token_account))
        return TokenAmount(amount=acc.amount, decimals=self.mints[acc.mint].decimals)

    async def get_mint_metadata(self, mint: Pubkey) -> MintInfo:
        if mint not in self.mints:
            raise AccountNotFound(str(mint))
        return self.mints[mint]

    def resolve_associated_account(self, owner: Pubkey, mint: Pubkey) -> Pubkey:
        return get_associated_token_address(owner, mint)

    async def get_minimum_rent_exempt_balance(self, account_size: int) -> int:
        return rent_exempt_minimum(account_size)

    async def get_stake_activation_state(self, stake_account: Pubkey) -> StakeActivation:
        stake = self.stakes.get(stake_account)
        if stake is None:
            raise AccountNotFound(str(stake_account))
        return stake_activation_from_parsed(stake.parsed(), self.balances.get(stake_account, 0), self.epoch)

    def filter_by_withdrawal_authority(self, authority: Pubkey) -> Any:
        return ("withdrawer", authority)

    async def query_program_accounts(self, program_id: Pubkey, filters: Any) -> list[ProgramAccount]:
        assert program_id == stake_ix.STAKE_PROGRAM_ID
        field_name, authority = filters
        assert field_name == "withdrawer"
        return [
            ProgramAccount(address=address, lamports=self.balances.get(address, 0))
            for address, stake in self.stakes.items()
            if stake.withdrawer == authority
        ]

    async def request_faucet_funds(self, address: Pubkey, lamports: int) -> str:
        if self.network == "mainnet":
            raise NotSupportedOnMainnet("faucet")
        self.fund(address, lamports)
        return str(Keypair().sign_message(b"airdrop"))

    async def get_signatures_for_address(self, address: Pubkey, limit: int) -> list[SignatureInfo]:
        mine = [info for payer, info in reversed(self.history) if payer == address]
        return mine[:limit]

    async def close(self) -> None:
        self.closed = True

    # instruction execution

    def _debit(self, address: Pubkey, lamports: int) -> None:
        balance = self.balances.get(address, 0)
        if balance < lamports:
            raise LedgerRejected(f"insufficient lamports in {address}: {balance} < {lamports}")
        self.balances[address] = balance - lamports

    def _move(self, source: Pubkey, dest: Pubkey, lamports: int) -> None:
        self._debit(source, lamports)
        self.fund(dest, lamports)

    def _apply(self, ix: Instruction) -> None:
        keys = [meta.pubkey for meta in ix.accounts]
        data = bytes(ix.data)
        if ix.program_id == SYSTEM_PROGRAM_ID:
            self._apply_system(keys, data)
        elif ix.program_id == ASSOCIATED_TOKEN_PROGRAM_ID:
            self._apply_create_ata(keys)
        elif ix.program_id == TOKEN_PROGRAM_ID:
            self._apply_token(keys, data)
        elif ix.program_id == stake_ix.STAKE_PROGRAM_ID:
            self._apply_stake(keys, data)
        else:
            raise LedgerRejected(f"unknown program {ix.program_id}")

    def _apply_system(self, keys: list[Pubkey], data: bytes) -> None:
        (kind,) = struct.unpack_from("<I", data)
        if kind == 2:  # Transfer
            (lamports,) = struct.unpack_from("<Q", data, 4)
            self._move(keys[0], keys[1], lamports)
        elif kind == 0:  # CreateAccount
            lamports, space = struct.unpack_from("<QQ", data, 4)
            owner = Pubkey.from_bytes(data[20:52])
            if keys[1] in self.balances or keys[1] in self.stakes:
                raise LedgerRejected(f"account {keys[1]} already in use")
            if lamports < rent_exempt_minimum(space):
                raise LedgerRejected("new account would not be rent exempt")
            self._move(keys[0], keys[1], lamports)
            if owner == stake_ix.STAKE_PROGRAM_ID:
                self.stakes[keys[1]] = FakeStake(rent_reserve=rent_exempt_minimum(space))
        else:
            raise LedgerRejected(f"unsupported system instruction {kind}")

    def _apply_create_ata(self, keys: list[Pubkey]) -> None:
        payer, ata, owner, mint = keys[:4]
        if ata in self.token_accounts:
            raise LedgerRejected("associated token account already exists")
        if mint not in self.mints:
            raise LedgerRejected("mint does not exist")
        self._debit(payer, TOKEN_ACCOUNT_RENT)
        self.token_accounts[ata] = FakeTokenAccount(mint=mint, owner=owner)

    def _apply_token(self, keys: list[Pubkey], data: bytes) -> None:
        if data[0] != TOKEN_TRANSFER_CHECKED:
            raise LedgerRejected(f"unsupported token instruction {data[0]}")
        (amount,) = struct.unpack_from("<Q", data, 1)
        decimals = data[9]
        source, mint, dest, owner = keys[:4]
        src = self.token_accounts.get(source)
        dst = self.token_accounts.get(dest)
        if src is None or dst is None:
            raise LedgerRejected("token account missing")
        if src.owner != owner or src.mint != mint or dst.mint != mint:
            raise LedgerRejected("token account owner/mint mismatch")
        if self.mints[mint].decimals != decimals:
            raise LedgerRejected("decimals mismatch")
        if src.amount < amount:
            raise LedgerRejected("insufficient token funds")
        src.amount -= amount
        dst.amount += amount

    def _apply_stake(self, keys: list[Pubkey], data: bytes) -> None:
        kind = stake_ix.instruction_kind(data)
        stake = self.stakes.get(keys[0])
        if stake is None:
            raise LedgerRejected(f"{keys[0]} is not a stake account")
        if kind == stake_ix.IX_INITIALIZE:
            if stake.withdrawer is not None:
                raise LedgerRejected("stake already initialized")
            stake.staker = Pubkey.from_bytes(data[4:36])
            stake.withdrawer = Pubkey.from_bytes(data[36:68])
        elif kind == stake_ix.IX_DELEGATE_STAKE:
            if keys[5] != stake.staker:
                raise LedgerRejected("delegate not signed by staker")
            stake.voter = keys[1]
            stake.delegated = self.balances[keys[0]] - stake.rent_reserve
            stake.activation_epoch = self.epoch
            stake.deactivation_epoch = None
        elif kind == stake_ix.IX_DEACTIVATE:
            if keys[2] != stake.staker:
                raise LedgerRejected("deactivate not signed by staker")
            if stake.voter is None or stake.deactivation_epoch is not None:
                raise LedgerRejected("stake already deactivated")
            stake.deactivation_epoch = self.epoch
        elif kind == stake_ix.IX_WITHDRAW:
            (lamports,) = struct.unpack_from("<Q", data, 4)
            if keys[4] != stake.withdrawer:
                raise LedgerRejected("withdraw not signed by withdrawer")
            activation = stake_activation_from_parsed(stake.parsed(), self.balances[keys[0]], self.epoch)
            if activation.active:
                raise LedgerRejected("stake still active")
            self._move(keys[0], keys[1], lamports)
            if self.balances[keys[0]] == 0:
                del self.balances[keys[0]]
                del self.stakes[keys[0]]
        else:
            raise LedgerRejected(f"unsupported stake instruction {kind}")


@pytest.fixture
def ledger() -> FakeLedgerClient:
    return FakeLedgerClient()


@pytest.fixture
def accounts() -> AccountManager:
    manager = AccountManager()
    manager.generate()
    return manager


@pytest.fixture
def funded_accounts(ledger, accounts) -> AccountManager:
    """Identity holding 2 SOL on the fake ledger."""
    ledger.fund(accounts.address, 2 * LAMPORTS_PER_SOL)
    return accounts


@pytest.fixture
def wallet(ledger) -> Wallet:
    return Wallet(ledger)


@pytest.fixture
def destination() -> str:
    return str(Keypair().pubkey())
