"""
Tests for SPL token balance / info / transfer against the in-memory ledger.

Verifies: absent token account reads as zero, amounts normalized with mint
decimals, insufficient funds reported in base units, receiver account created
when missing (and not otherwise), unknown mint rejected.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from solwallet.accounts.manager import AccountManager
from solwallet.core.exceptions import InsufficientFunds, UnknownToken
from solwallet.tokens.engine import UNKNOWN_SYMBOL, TokenTransferEngine

DECIMALS = 6


@pytest.fixture
def mint(ledger):
    return ledger.add_mint(DECIMALS)


@pytest.fixture
def engine(ledger, funded_accounts):
    return TokenTransferEngine(funded_accounts, ledger)


@pytest.mark.asyncio
async def test_token_balance_absent_account_is_zero(engine, mint):
    result = await engine.token_balance(str(mint))

    assert result.ok
    assert result.value.balance == Decimal(0)
    assert result.value.raw_balance == "0"
    assert result.value.symbol == UNKNOWN_SYMBOL


@pytest.mark.asyncio
async def test_token_balance_existing_account(engine, ledger, funded_accounts, mint):
    ledger.add_token_balance(funded_accounts.address, mint, 12_500_000)

    result = await engine.token_balance(str(mint))

    assert result.value.raw_balance == "12500000"
    assert result.value.balance == Decimal("12.5")
    assert result.value.decimals == DECIMALS


@pytest.mark.asyncio
async def test_token_info_reports_mint_metadata(engine, ledger):
    freezable_mint = ledger.add_mint(2, supply=1_000, freeze_authority=str(Keypair().pubkey()))

    result = await engine.token_info(str(freezable_mint))

    assert result.ok
    assert result.value.decimals == 2
    assert result.value.supply == 1_000
    assert result.value.freezable


@pytest.mark.asyncio
async def test_token_info_unknown_mint(engine):
    result = await engine.token_info(str(Keypair().pubkey()))

    assert isinstance(result.error, UnknownToken)


@pytest.mark.asyncio
async def test_token_transfer_creates_missing_destination_account(engine, ledger, funded_accounts, mint):
    ledger.add_token_balance(funded_accounts.address, mint, 10_000_000)
    dest_owner = Keypair().pubkey()

    result = await engine.token_transfer(str(mint), str(dest_owner), "2.5")

    assert result.ok, result.error
    receipt = result.value
    assert receipt.raw_amount == 2_500_000
    assert receipt.amount == Decimal("2.5")
    assert receipt.created_destination_account
    assert ledger.token_balance_of(funded_accounts.address, mint) == 7_500_000
    assert ledger.token_balance_of(dest_owner, mint) == 2_500_000
    assert len(ledger.submitted) == 1


@pytest.mark.asyncio
async def test_token_transfer_existing_destination_not_recreated(engine, ledger, funded_accounts, mint):
    dest_owner = Keypair().pubkey()
    ledger.add_token_balance(funded_accounts.address, mint, 5_000_000)
    ledger.add_token_balance(dest_owner, mint, 1)

    result = await engine.token_transfer(str(mint), str(dest_owner), 1)

    assert result.ok, result.error
    assert not result.value.created_destination_account
    assert ledger.token_balance_of(dest_owner, mint) == 1_000_001
    tx = ledger.submitted[0]
    assert len(tx.message.instructions) == 1


@pytest.mark.asyncio
async def test_token_transfer_insufficient_in_base_units(engine, ledger, funded_accounts, mint, destination):
    ledger.add_token_balance(funded_accounts.address, mint, 1_000_000)

    result = await engine.token_transfer(str(mint), destination, "1.000001")

    assert isinstance(result.error, InsufficientFunds)
    assert result.error.required == 1_000_001
    assert result.error.available == 1_000_000
    assert ledger.submitted == []


@pytest.mark.asyncio
async def test_token_transfer_missing_sender_account(engine, mint, destination, ledger):
    result = await engine.token_transfer(str(mint), destination, 1)

    assert isinstance(result.error, InsufficientFunds)
    assert result.error.available == 0
    assert ledger.submitted == []


@pytest.mark.asyncio
async def test_token_transfer_unknown_mint(engine, destination, ledger):
    result = await engine.token_transfer(str(Keypair().pubkey()), destination, 1)

    assert result.error_code == "UNKNOWN_TOKEN"
    assert ledger.submitted == []


@pytest.mark.asyncio
async def test_token_transfer_invalid_destination(engine, mint):
    result = await engine.token_transfer(str(mint), "bogus", 1)

    assert result.error_code == "INVALID_ADDRESS"


@pytest.mark.asyncio
async def test_token_transfer_succeeds_with_exact_balance(engine, ledger, funded_accounts, mint, destination):
    ledger.add_token_balance(funded_accounts.address, mint, 1_000_000)

    result = await engine.token_transfer(str(mint), destination, "1")

    assert result.ok, result.error
    assert result.value.raw_amount == 1_000_000
    assert ledger.token_balance_of(funded_accounts.address, mint) == 0


@pytest.mark.asyncio
async def test_token_transfer_rejected_by_ledger_rolls_back(ledger, mint, destination):
    # Enough SOL for the fee but not for the receiver's account rent
    accounts = AccountManager()
    accounts.generate()
    ledger.fund(accounts.address, 10_000)
    ledger.add_token_balance(accounts.address, mint, 3_000_000)
    engine = TokenTransferEngine(accounts, ledger)

    result = await engine.token_transfer(str(mint), destination, 1)

    assert result.error_code == "NETWORK_ERROR"
    assert ledger.token_balance_of(accounts.address, mint) == 3_000_000
    assert ledger.token_balance_of(Pubkey.from_string(destination), mint) is None
    assert await ledger.get_balance(accounts.address) == 10_000
    assert ledger.submitted == []
