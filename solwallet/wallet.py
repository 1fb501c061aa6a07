"""
Wallet facade: one held identity, one ledger client, three engines.

Every public method returns an OperationResult. The facade owns no global
state; build as many independent wallets as needed. Operations are not
serialized against each other: callers issuing concurrent transactions from
the same identity must order them themselves.

    async with Wallet.from_settings() as wallet:
        wallet.generate()
        await wallet.request_faucet_funds(2)
        result = await wallet.transfer(destination, "0.5")
"""

from __future__ import annotations

from solwallet.accounts.manager import AccountManager
from solwallet.config.settings import WalletSettings, get_settings
from solwallet.core.amounts import HumanAmount, lamports_to_sol, sol_to_lamports
from solwallet.core.exceptions import WalletError
from solwallet.core.models import (
    BalanceInfo,
    DeactivationReceipt,
    FaucetReceipt,
    GeneratedIdentity,
    MintInfo,
    StakeAccountInfo,
    StakeReceipt,
    TokenBalance,
    TokenTransferReceipt,
    TransactionSummary,
    TransferReceipt,
    WithdrawalReceipt,
)
from solwallet.core.results import OperationResult
from solwallet.network.client import LedgerClient
from solwallet.network.solana_client import SolanaRpcClient
from solwallet.staking.manager import StakingLifecycleManager
from solwallet.tokens.engine import TokenTransferEngine
from solwallet.transfers.engine import TransferEngine
from solwallet.wallet_logging import bind_address, get_logger

logger = get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 10
UNKNOWN_DATE = "unknown"
UNKNOWN_STATUS = "unknown"


class Wallet:
    def __init__(
        self,
        client: LedgerClient,
        accounts: AccountManager | None = None,
        *,
        estimated_fee_lamports: int | None = None,
    ) -> None:
        fee_kwargs = {} if estimated_fee_lamports is None else {"estimated_fee_lamports": estimated_fee_lamports}
        self.client = client
        self.accounts = accounts or AccountManager()
        self.transfers = TransferEngine(self.accounts, client, **fee_kwargs)
        self.tokens = TokenTransferEngine(self.accounts, client)
        self.staking = StakingLifecycleManager(self.accounts, client, **fee_kwargs)

    @classmethod
    def from_settings(cls, settings: WalletSettings | None = None) -> "Wallet":
        settings = settings or get_settings()
        return cls(
            SolanaRpcClient.from_settings(settings),
            estimated_fee_lamports=settings.estimated_fee_lamports,
        )

    async def __aenter__(self) -> "Wallet":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.close()

    @property
    def network(self) -> str:
        return self.client.network

    @property
    def address(self) -> str | None:
        return self.accounts.address_str

    # identity

    def generate(self) -> OperationResult[GeneratedIdentity]:
        return OperationResult.success(self.accounts.generate())

    def import_secret(self, blob: str) -> OperationResult[str]:
        try:
            return OperationResult.success(self.accounts.import_secret(blob))
        except WalletError as e:
            logger.warning("identity_import_failed", error_code=e.code)
            return OperationResult.failure(e)

    def export_secret(self) -> OperationResult[str]:
        try:
            return OperationResult.success(self.accounts.export_secret())
        except WalletError as e:
            return OperationResult.failure(e)

    # native balance

    async def get_balance(self) -> OperationResult[BalanceInfo]:
        try:
            owner = self.accounts.require_keypair().pubkey()
            lamports = await self.client.get_balance(owner)
        except WalletError as e:
            return OperationResult.failure(e)
        return OperationResult.success(
            BalanceInfo(
                address=str(owner),
                balance=lamports_to_sol(lamports),
                lamports=lamports,
                network=self.network,
            )
        )

    async def request_faucet_funds(self, amount: HumanAmount = 1) -> OperationResult[FaucetReceipt]:
        """Airdrop test SOL to the held identity. Refused on mainnet."""
        try:
            owner = self.accounts.require_keypair().pubkey()
            lamports = sol_to_lamports(amount)
            signature = await self.client.request_faucet_funds(owner, lamports)
        except WalletError as e:
            logger.warning("faucet_failed", network=self.network, error_code=e.code, error=e.message)
            return OperationResult.failure(e)
        bind_address(str(owner)).info("faucet_funded", lamports=lamports, signature=signature)
        return OperationResult.success(
            FaucetReceipt(
                signature=signature,
                amount=lamports_to_sol(lamports),
                lamports=lamports,
                explorer_url=self.client.explorer_url(signature),
            )
        )

    async def transaction_history(self, limit: int = DEFAULT_HISTORY_LIMIT) -> OperationResult[list[TransactionSummary]]:
        try:
            owner = self.accounts.require_keypair().pubkey()
            infos = await self.client.get_signatures_for_address(owner, max(1, int(limit)))
        except WalletError as e:
            logger.warning("history_failed", error_code=e.code, error=e.message)
            return OperationResult.failure(e)
        return OperationResult.success(
            [
                TransactionSummary(
                    signature=info.signature,
                    date=info.date_iso or UNKNOWN_DATE,
                    status=info.confirmation_status or UNKNOWN_STATUS,
                    explorer_url=self.client.explorer_url(info.signature),
                    failed=info.err is not None,
                    memo=info.memo,
                )
                for info in infos
            ]
        )

    # engines

    async def transfer(self, destination: str, amount: HumanAmount) -> OperationResult[TransferReceipt]:
        return await self.transfers.transfer(destination, amount)

    async def token_info(self, token_address: str) -> OperationResult[MintInfo]:
        return await self.tokens.token_info(token_address)

    async def token_balance(self, token_address: str) -> OperationResult[TokenBalance]:
        return await self.tokens.token_balance(token_address)

    async def token_transfer(
        self, token_address: str, destination: str, amount: HumanAmount
    ) -> OperationResult[TokenTransferReceipt]:
        return await self.tokens.token_transfer(token_address, destination, amount)

    async def stake(self, amount: HumanAmount, validator_address: str) -> OperationResult[StakeReceipt]:
        return await self.staking.stake(amount, validator_address)

    async def list_stake_accounts(self) -> OperationResult[list[StakeAccountInfo]]:
        return await self.staking.list_stake_accounts()

    async def deactivate(self, stake_address: str) -> OperationResult[DeactivationReceipt]:
        return await self.staking.deactivate(stake_address)

    async def withdraw(self, stake_address: str) -> OperationResult[WithdrawalReceipt]:
        return await self.staking.withdraw(stake_address)
