"""
Staking lifecycle manager.

Drives stake accounts through
Uninitialized -> Activating -> Active -> Deactivating -> Inactive -> Withdrawn.

- stake(): one transaction creating, initializing (staker = withdrawer = held
  identity, no lockup) and delegating a fresh stake account. Signed by the
  identity and the new stake keypair.
- list_stake_accounts(): scan for accounts whose withdrawer is the identity,
  then read activation and balance of each. Read-only.
- deactivate(): single deactivate instruction. A duplicate deactivation is
  rejected by the ledger and surfaces as NetworkError.
- withdraw(): re-reads activation; anything but inactive fails with
  StakeNotInactive. Otherwise withdraws the full balance to the identity.

Epoch-boundary latency is never waited on here: the caller retries withdraw.
"""

from __future__ import annotations

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from solwallet.accounts.manager import AccountManager
from solwallet.config.settings import DEFAULT_ESTIMATED_FEE_LAMPORTS
from solwallet.core.amounts import HumanAmount, lamports_to_sol, sol_to_lamports
from solwallet.core.exceptions import InsufficientFunds, StakeNotInactive, WalletError
from solwallet.core.models import (
    DeactivationReceipt,
    StakeAccountInfo,
    StakeReceipt,
    StakeState,
    WithdrawalReceipt,
)
from solwallet.core.results import OperationResult
from solwallet.core.submission import submit_instructions
from solwallet.network.client import LedgerClient
from solwallet.staking.instructions import (
    STAKE_ACCOUNT_SPACE,
    STAKE_PROGRAM_ID,
    create_stake_account_instruction,
    deactivate_instruction,
    delegate_instruction,
    initialize_instruction,
    withdraw_instruction,
)
from solwallet.utils.wallet_utils import parse_address
from solwallet.wallet_logging import get_logger

logger = get_logger(__name__)

# Identity + new stake account
STAKE_CREATION_SIGNERS = 2


class StakingLifecycleManager:
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

    async def stake(self, amount: HumanAmount, validator_address: str) -> OperationResult[StakeReceipt]:
        """Create a stake account holding `amount` SOL and delegate it to a vote account."""
        try:
            keypair = self._accounts.require_keypair()
            owner = keypair.pubkey()
            vote_pubkey = parse_address(validator_address)
            lamports = sol_to_lamports(amount)

            rent = await self._client.get_minimum_rent_exempt_balance(STAKE_ACCOUNT_SPACE)
            balance = await self._client.get_balance(owner)
            required = rent + lamports + self._fee * STAKE_CREATION_SIGNERS
            if balance < required:
                raise InsufficientFunds(required=required, available=balance)

            stake_keypair = Keypair()
            stake_pubkey = stake_keypair.pubkey()
            instructions = [
                create_stake_account_instruction(owner, stake_pubkey, rent + lamports),
                initialize_instruction(stake_pubkey, staker=owner, withdrawer=owner),
                delegate_instruction(stake_pubkey, authority=owner, vote_pubkey=vote_pubkey),
            ]
            signature = await submit_instructions(
                self._client, instructions, owner, [keypair, stake_keypair]
            )
        except WalletError as e:
            logger.warning("stake_rejected", validator=str(validator_address), error_code=e.code, error=e.message)
            return OperationResult.failure(e)

        logger.info(
            "stake_created",
            address=str(owner),
            stake_account=str(stake_pubkey),
            validator=str(vote_pubkey),
            lamports=lamports,
            rent_exempt_lamports=rent,
            signature=signature,
        )
        return OperationResult.success(
            StakeReceipt(
                signature=signature,
                stake_account=str(stake_pubkey),
                validator=str(vote_pubkey),
                amount=lamports_to_sol(lamports),
                lamports=lamports,
                rent_exempt_lamports=rent,
                state=StakeState.ACTIVATING,
                explorer_url=self._client.explorer_url(signature),
            )
        )

    async def list_stake_accounts(self) -> OperationResult[list[StakeAccountInfo]]:
        """Stake accounts withdrawable by the held identity, with current activation."""
        try:
            owner = self._accounts.require_keypair().pubkey()
            matches = await self._client.query_program_accounts(
                STAKE_PROGRAM_ID, self._client.filter_by_withdrawal_authority(owner)
            )
            out: list[StakeAccountInfo] = []
            for account in matches:
                activation = await self._client.get_stake_activation_state(account.address)
                total = await self._client.get_balance(account.address)
                out.append(
                    StakeAccountInfo(
                        address=str(account.address),
                        state=activation.state,
                        active_amount=activation.active,
                        inactive_amount=activation.inactive,
                        total_amount=total,
                    )
                )
        except WalletError as e:
            logger.warning("stake_list_failed", error_code=e.code, error=e.message)
            return OperationResult.failure(e)
        logger.debug("stake_accounts_listed", address=str(owner), count=len(out))
        return OperationResult.success(out)

    async def deactivate(self, stake_address: str) -> OperationResult[DeactivationReceipt]:
        try:
            keypair = self._accounts.require_keypair()
            owner = keypair.pubkey()
            stake_pubkey = parse_address(stake_address)
            ix = deactivate_instruction(stake_pubkey, authority=owner)
            signature = await submit_instructions(self._client, [ix], owner, [keypair])
        except WalletError as e:
            logger.warning("stake_deactivate_rejected", stake_account=str(stake_address), error_code=e.code, error=e.message)
            return OperationResult.failure(e)

        logger.info("stake_deactivated", address=str(owner), stake_account=str(stake_pubkey), signature=signature)
        return OperationResult.success(
            DeactivationReceipt(
                signature=signature,
                stake_account=str(stake_pubkey),
                state=StakeState.DEACTIVATING,
                explorer_url=self._client.explorer_url(signature),
            )
        )

    async def withdraw(self, stake_address: str) -> OperationResult[WithdrawalReceipt]:
        """Withdraw the whole stake balance back to the identity once inactive."""
        try:
            keypair = self._accounts.require_keypair()
            owner = keypair.pubkey()
            stake_pubkey: Pubkey = parse_address(stake_address)

            activation = await self._client.get_stake_activation_state(stake_pubkey)
            if not activation.state.can_transition_to(StakeState.WITHDRAWN):
                logger.info(
                    "stake_withdraw_blocked",
                    stake_account=str(stake_pubkey),
                    observed_state=activation.state.value,
                )
                raise StakeNotInactive(activation.state.value)

            lamports = await self._client.get_balance(stake_pubkey)
            ix = withdraw_instruction(stake_pubkey, authority=owner, to_pubkey=owner, lamports=lamports)
            signature = await submit_instructions(self._client, [ix], owner, [keypair])
        except WalletError as e:
            logger.warning("stake_withdraw_rejected", stake_account=str(stake_address), error_code=e.code, error=e.message)
            return OperationResult.failure(e)

        logger.info(
            "stake_withdrawn",
            address=str(owner),
            stake_account=str(stake_pubkey),
            lamports=lamports,
            signature=signature,
        )
        return OperationResult.success(
            WithdrawalReceipt(
                signature=signature,
                stake_account=str(stake_pubkey),
                amount=lamports_to_sol(lamports),
                lamports=lamports,
                state=StakeState.WITHDRAWN,
                explorer_url=self._client.explorer_url(signature),
            )
        )
