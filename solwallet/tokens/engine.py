"""
SPL token transfer engine.

- Resolves the associated token accounts of sender and receiver for a mint.
- Normalizes human amounts to base units with the mint's decimals.
- Enforces sender balance before building anything.
- Prepends creation of the receiver's associated account when it is absent;
  the sending identity pays for it.

A missing sender account is reported as InsufficientFunds with available=0.
"""

from __future__ import annotations

from decimal import Decimal

from solders.instruction import Instruction
from solders.pubkey import Pubkey
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import (
    TransferCheckedParams,
    create_associated_token_account,
    transfer_checked,
)

from solwallet.accounts.manager import AccountManager
from solwallet.core.amounts import HumanAmount, to_major_units, to_minor_units
from solwallet.core.exceptions import (
    AccountNotFound,
    InsufficientFunds,
    UnknownToken,
    WalletError,
)
from solwallet.core.models import MintInfo, TokenAmount, TokenBalance, TokenTransferReceipt
from solwallet.core.results import OperationResult
from solwallet.core.submission import submit_instructions
from solwallet.network.client import LedgerClient
from solwallet.utils.wallet_utils import parse_address
from solwallet.wallet_logging import get_logger

logger = get_logger(__name__)

# Mints carry no symbol on-ledger; metadata programs are out of scope.
UNKNOWN_SYMBOL = "UNKNOWN"


class TokenTransferEngine:
    def __init__(self, accounts: AccountManager, client: LedgerClient) -> None:
        self._accounts = accounts
        self._client = client

    async def _mint_info(self, mint: Pubkey) -> MintInfo:
        try:
            return await self._client.get_mint_metadata(mint)
        except AccountNotFound as e:
            raise UnknownToken(str(mint)) from e

    async def _token_amount(self, token_account: Pubkey) -> TokenAmount | None:
        """None when the account does not exist on-ledger."""
        try:
            return await self._client.get_token_account_balance(token_account)
        except AccountNotFound:
            return None

    async def token_info(self, token_address: str) -> OperationResult[MintInfo]:
        try:
            mint = parse_address(token_address)
            info = await self._mint_info(mint)
        except WalletError as e:
            logger.warning("token_info_failed", token=str(token_address), error_code=e.code, error=e.message)
            return OperationResult.failure(e)
        return OperationResult.success(info)

    async def token_balance(self, token_address: str) -> OperationResult[TokenBalance]:
        """Balance of the held identity's associated account; absent account reads as zero."""
        try:
            owner = self._accounts.require_keypair().pubkey()
            mint = parse_address(token_address)
            token_account = self._client.resolve_associated_account(owner, mint)
            amount = await self._token_amount(token_account)
        except WalletError as e:
            logger.warning("token_balance_failed", token=str(token_address), error_code=e.code, error=e.message)
            return OperationResult.failure(e)

        if amount is None:
            logger.debug("token_account_absent", address=str(owner), token=str(mint))
            return OperationResult.success(
                TokenBalance(
                    address=str(mint),
                    balance=Decimal(0),
                    raw_balance="0",
                    decimals=0,
                    symbol=UNKNOWN_SYMBOL,
                )
            )
        return OperationResult.success(
            TokenBalance(
                address=str(mint),
                balance=amount.ui_amount,
                raw_balance=str(amount.amount),
                decimals=amount.decimals,
                symbol=UNKNOWN_SYMBOL,
            )
        )

    async def token_transfer(
        self, token_address: str, destination: str, amount: HumanAmount
    ) -> OperationResult[TokenTransferReceipt]:
        """Send `amount` tokens (human units) of mint `token_address` to owner `destination`."""
        try:
            keypair = self._accounts.require_keypair()
            owner = keypair.pubkey()
            mint = parse_address(token_address)
            dest_owner = parse_address(destination)

            mint_info = await self._mint_info(mint)
            raw_amount = to_minor_units(amount, mint_info.decimals)

            source_account = self._client.resolve_associated_account(owner, mint)
            source_balance = await self._token_amount(source_account)
            available = source_balance.amount if source_balance is not None else 0
            if available < raw_amount:
                raise InsufficientFunds(required=raw_amount, available=available)

            dest_account = self._client.resolve_associated_account(dest_owner, mint)
            instructions: list[Instruction] = []
            create_dest = await self._token_amount(dest_account) is None
            if create_dest:
                instructions.append(create_associated_token_account(owner, dest_owner, mint))
            instructions.append(
                transfer_checked(
                    TransferCheckedParams(
                        program_id=TOKEN_PROGRAM_ID,
                        source=source_account,
                        mint=mint,
                        dest=dest_account,
                        owner=owner,
                        amount=raw_amount,
                        decimals=mint_info.decimals,
                    )
                )
            )
            signature = await submit_instructions(self._client, instructions, owner, [keypair])
        except WalletError as e:
            logger.warning(
                "token_transfer_rejected",
                token=str(token_address),
                destination=str(destination),
                error_code=e.code,
                error=e.message,
            )
            return OperationResult.failure(e)

        if create_dest:
            logger.info("token_account_created", owner=str(dest_owner), token_account=str(dest_account))
        logger.info(
            "token_transfer_submitted",
            address=str(owner),
            token=str(mint),
            destination=str(dest_owner),
            raw_amount=raw_amount,
            signature=signature,
        )
        return OperationResult.success(
            TokenTransferReceipt(
                signature=signature,
                token=str(mint),
                destination=str(dest_owner),
                amount=to_major_units(raw_amount, mint_info.decimals),
                raw_amount=raw_amount,
                decimals=mint_info.decimals,
                source_account=str(source_account),
                destination_account=str(dest_account),
                created_destination_account=create_dest,
                explorer_url=self._client.explorer_url(signature),
            )
        )
