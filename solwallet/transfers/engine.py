"""
Native SOL transfer engine.

Checks identity, destination and amount locally, then reads the balance and
refuses (without submitting) when balance < amount + estimated fee. Passing
checks build a single system transfer, fetch a fresh blockhash, sign, submit
and await confirmation. Submission failures are reported, never retried.
"""

from __future__ import annotations

from solders.system_program import TransferParams, transfer

from solwallet.accounts.manager import AccountManager
from solwallet.config.settings import DEFAULT_ESTIMATED_FEE_LAMPORTS
from solwallet.core.amounts import HumanAmount, lamports_to_sol, sol_to_lamports
from solwallet.core.exceptions import InsufficientFunds, WalletError
from solwallet.core.models import TransferReceipt
from solwallet.core.results import OperationResult
from solwallet.core.submission import submit_instructions
from solwallet.network.client import LedgerClient
from solwallet.utils.wallet_utils import parse_address
from solwallet.wallet_logging import get_logger

logger = get_logger(__name__)


class TransferEngine:
    def __init__(
        self,
        accounts: AccountManager,
        client: LedgerClient,
        *,
        estimated_fee_lamports: int = DEFAULT_ESTIMATED_FEE_LAMPORTS,
    ) -> None:
        self._accounts = accounts
        self._client = client
        self._fee = estimated_fee_lamports

    async def transfer(self, destination: str, amount: HumanAmount) -> OperationResult[TransferReceipt]:
        """Send `amount` SOL to `destination`."""
        try:
            keypair = self._accounts.require_keypair()
            to_pubkey = parse_address(destination)
            lamports = sol_to_lamports(amount)
            owner = keypair.pubkey()

            balance = await self._client.get_balance(owner)
            required = lamports + self._fee
            if balance < required:
                raise InsufficientFunds(required=required, available=balance)

            ix = transfer(TransferParams(from_pubkey=owner, to_pubkey=to_pubkey, lamports=lamports))
            signature = await submit_instructions(self._client, [ix], owner, [keypair])
        except WalletError as e:
            logger.warning("transfer_rejected", destination=str(destination), error_code=e.code, error=e.message)
            return OperationResult.failure(e)

        logger.info(
            "transfer_submitted",
            address=str(owner),
            destination=str(to_pubkey),
            lamports=lamports,
            signature=signature,
        )
        return OperationResult.success(
            TransferReceipt(
                signature=signature,
                destination=str(to_pubkey),
                amount=lamports_to_sol(lamports),
                lamports=lamports,
                fee_lamports=self._fee,
                explorer_url=self._client.explorer_url(signature),
            )
        )
