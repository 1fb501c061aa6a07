"""
Abstract ledger client used by the wallet core.

Every method is a suspend point. Implementations raise NetworkError (or its
subclass AccountNotFound) for any RPC or transport failure, and never retry
submissions. resolve_associated_account and filter_by_withdrawal_authority
are pure, local computations.
"""

from __future__ import annotations

import abc
from typing import Any, Sequence

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from solwallet.core.models import (
    AntiReplayToken,
    MintInfo,
    ProgramAccount,
    StakeActivation,
    TokenAmount,
    TransactionIntent,
)
from solwallet.network.models import SignatureInfo

EXPLORER_TX_URL = "https://explorer.solana.com/tx/{signature}"


class LedgerClient(abc.ABC):
    """Network client adapter boundary."""

    network: str = "devnet"

    def explorer_url(self, signature: str) -> str:
        url = EXPLORER_TX_URL.format(signature=signature)
        if self.network != "mainnet":
            url += f"?cluster={self.network}"
        return url

    @abc.abstractmethod
    async def get_balance(self, address: Pubkey) -> int:
        """Native balance in lamports."""

    @abc.abstractmethod
    async def get_latest_anti_replay_token(self) -> AntiReplayToken:
        """Fresh blockhash for a transaction about to be submitted."""

    @abc.abstractmethod
    async def submit_and_confirm(
        self, intent: TransactionIntent, signers: Sequence[Keypair]
    ) -> str:
        """Sign client-side, submit, wait for confirmation. Returns the signature."""

    @abc.abstractmethod
    async def get_token_account_balance(self, token_account: Pubkey) -> TokenAmount:
        """Raises AccountNotFound if the token account does not exist."""

    @abc.abstractmethod
    async def get_mint_metadata(self, mint: Pubkey) -> MintInfo:
        """Raises AccountNotFound if the mint does not resolve."""

    @abc.abstractmethod
    def resolve_associated_account(self, owner: Pubkey, mint: Pubkey) -> Pubkey:
        """Deterministic associated token account address; no network round-trip."""

    @abc.abstractmethod
    async def get_minimum_rent_exempt_balance(self, account_size: int) -> int: ...

    @abc.abstractmethod
    async def get_stake_activation_state(self, stake_account: Pubkey) -> StakeActivation: ...

    @abc.abstractmethod
    def filter_by_withdrawal_authority(self, authority: Pubkey) -> Any:
        """Opaque filter selecting stake accounts whose withdrawer is `authority`."""

    @abc.abstractmethod
    async def query_program_accounts(self, program_id: Pubkey, filters: Any) -> list[ProgramAccount]: ...

    @abc.abstractmethod
    async def request_faucet_funds(self, address: Pubkey, lamports: int) -> str:
        """Test networks only; raises NotSupportedOnMainnet otherwise."""

    @abc.abstractmethod
    async def get_signatures_for_address(self, address: Pubkey, limit: int) -> list[SignatureInfo]: ...

    async def close(self) -> None:
        return None
