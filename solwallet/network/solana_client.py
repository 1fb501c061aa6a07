"""
Solana RPC implementation of the ledger client, over solana-py's AsyncClient.

- Builds and signs solders transactions from a TransactionIntent, sends with
  preflight, then awaits confirmation at the configured commitment.
- Reads token, mint and stake state through jsonParsed account info.
- Derives stake activation from the parsed delegation and the current epoch.
- Wraps every RPC / transport failure in NetworkError; never retries.

The stake account byte layout (withdrawer offset) is only known here.
"""

from __future__ import annotations

from typing import Any, Awaitable, Sequence, TypeVar

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.types import MemcmpOpts, TxOpts
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction
from spl.token.instructions import get_associated_token_address

from solwallet.config.env import mask_rpc_url
from solwallet.config.settings import WalletSettings
from solwallet.core.exceptions import (
    AccountNotFound,
    NetworkError,
    NotSupportedOnMainnet,
    WalletError,
)
from solwallet.core.models import (
    AntiReplayToken,
    MintInfo,
    ProgramAccount,
    StakeActivation,
    StakeState,
    TokenAmount,
    TransactionIntent,
)
from solwallet.network.client import LedgerClient
from solwallet.network.models import SignatureInfo
from solwallet.staking.instructions import STAKE_ACCOUNT_SPACE
from solwallet.wallet_logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# StakeStateV2 layout: 4 enum tag + 8 rent_exempt_reserve + 32 staker + 32 withdrawer
WITHDRAWER_AUTHORITY_OFFSET = 44
U64_MAX = 2**64 - 1


def _parsed_data(account: Any) -> dict[str, Any] | None:
    parsed = getattr(account.data, "parsed", None)
    return parsed if isinstance(parsed, dict) else None


def stake_activation_from_parsed(
    parsed: dict[str, Any], lamports: int, current_epoch: int
) -> StakeActivation:
    """
    Activation state of a jsonParsed stake account at current_epoch.

    Transitions are treated as completing at the first epoch boundary after the
    activation / deactivation epoch. The cluster-wide warmup / cooldown rate
    limits recorded in the StakeHistory sysvar are not applied: a large stake
    still partly cooling down reads as inactive here, and a full-balance
    withdraw of it is then rejected by the ledger and surfaces as NetworkError
    rather than StakeNotInactive.
    """
    info = parsed.get("info") or {}
    meta = info.get("meta") or {}
    rent_reserve = int(meta.get("rentExemptReserve") or 0)
    delegation = (info.get("stake") or {}).get("delegation") or {}

    if parsed.get("type") != "delegated" or not delegation:
        return StakeActivation(StakeState.INACTIVE, active=0, inactive=max(0, lamports - rent_reserve))

    delegated = int(delegation.get("stake") or 0)
    activation_epoch = int(delegation.get("activationEpoch") or 0)
    deactivation_epoch = int(delegation.get("deactivationEpoch") or U64_MAX)

    if activation_epoch == deactivation_epoch:
        state = StakeState.INACTIVE
    elif deactivation_epoch == U64_MAX:
        state = StakeState.ACTIVATING if current_epoch <= activation_epoch else StakeState.ACTIVE
    elif current_epoch <= deactivation_epoch:
        state = StakeState.DEACTIVATING
    else:
        state = StakeState.INACTIVE

    active = delegated if state in (StakeState.ACTIVE, StakeState.DEACTIVATING) else 0
    inactive = max(0, lamports - rent_reserve - active)
    return StakeActivation(state, active=active, inactive=inactive)


class SolanaRpcClient(LedgerClient):
    """LedgerClient over a Solana JSON-RPC endpoint."""

    def __init__(
        self,
        rpc_url: str,
        *,
        network: str = "devnet",
        commitment: str = "confirmed",
        timeout: float = 30.0,
        client: AsyncClient | None = None,
    ) -> None:
        self.network = network
        self._commitment = Commitment(commitment)
        self._client = client or AsyncClient(rpc_url, commitment=self._commitment, timeout=timeout)
        logger.info("rpc_client_created", network=network, rpc_url=mask_rpc_url(rpc_url))

    @classmethod
    def from_settings(cls, settings: WalletSettings) -> "SolanaRpcClient":
        return cls(
            settings.rpc_url,
            network=settings.network,
            commitment=settings.commitment,
            timeout=settings.rpc_timeout_sec,
        )

    async def _call(self, op: str, pending: Awaitable[T]) -> T:
        try:
            return await pending
        except WalletError:
            raise
        except Exception as e:
            # solana-py raises SolanaRpcException / RPCException; httpx errors may surface raw
            logger.warning("rpc_call_failed", op=op, error=str(e), error_type=type(e).__name__)
            raise NetworkError(e) from e

    async def get_balance(self, address: Pubkey) -> int:
        resp = await self._call("get_balance", self._client.get_balance(address, commitment=self._commitment))
        return int(resp.value)

    async def get_latest_anti_replay_token(self) -> AntiReplayToken:
        resp = await self._call(
            "get_latest_blockhash", self._client.get_latest_blockhash(commitment=self._commitment)
        )
        return AntiReplayToken(
            blockhash=resp.value.blockhash,
            last_valid_block_height=resp.value.last_valid_block_height,
        )

    async def submit_and_confirm(self, intent: TransactionIntent, signers: Sequence[Keypair]) -> str:
        blockhash = intent.anti_replay.blockhash
        message = Message.new_with_blockhash(list(intent.instructions), intent.fee_payer, blockhash)
        try:
            tx = Transaction(list(signers), message, blockhash)
        except Exception as e:
            raise NetworkError(e) from e

        resp = await self._call(
            "send_transaction",
            self._client.send_transaction(
                tx, opts=TxOpts(skip_confirmation=True, preflight_commitment=self._commitment)
            ),
        )
        signature = resp.value
        logger.debug("rpc_tx_sent", signature=str(signature), instruction_count=len(intent.instructions))

        confirmation = await self._call(
            "confirm_transaction",
            self._client.confirm_transaction(
                signature,
                commitment=self._commitment,
                last_valid_block_height=intent.anti_replay.last_valid_block_height,
            ),
        )
        statuses = confirmation.value or []
        status = statuses[0] if statuses else None
        if status is not None and status.err is not None:
            logger.warning("rpc_tx_failed_on_chain", signature=str(signature), err=str(status.err))
            raise NetworkError(RuntimeError(f"Transaction {signature} failed: {status.err}"))
        return str(signature)

    async def get_token_account_balance(self, token_account: Pubkey) -> TokenAmount:
        resp = await self._call(
            "get_account_info_json_parsed",
            self._client.get_account_info_json_parsed(token_account, commitment=self._commitment),
        )
        if resp.value is None:
            raise AccountNotFound(str(token_account))
        parsed = _parsed_data(resp.value)
        if parsed is None or parsed.get("type") != "account":
            raise NetworkError(ValueError(f"{token_account} is not a token account"))
        token_amount = (parsed.get("info") or {}).get("tokenAmount") or {}
        return TokenAmount(
            amount=int(token_amount.get("amount") or 0),
            decimals=int(token_amount.get("decimals") or 0),
        )

    async def get_mint_metadata(self, mint: Pubkey) -> MintInfo:
        resp = await self._call(
            "get_account_info_json_parsed",
            self._client.get_account_info_json_parsed(mint, commitment=self._commitment),
        )
        parsed = _parsed_data(resp.value) if resp.value is not None else None
        if parsed is None or parsed.get("type") != "mint":
            raise AccountNotFound(str(mint))
        info = parsed.get("info") or {}
        return MintInfo(
            address=str(mint),
            decimals=int(info.get("decimals") or 0),
            supply=int(info.get("supply") or 0),
            mint_authority=info.get("mintAuthority"),
            freeze_authority=info.get("freezeAuthority"),
        )

    def resolve_associated_account(self, owner: Pubkey, mint: Pubkey) -> Pubkey:
        return get_associated_token_address(owner, mint)

    async def get_minimum_rent_exempt_balance(self, account_size: int) -> int:
        resp = await self._call(
            "get_minimum_balance_for_rent_exemption",
            self._client.get_minimum_balance_for_rent_exemption(account_size, commitment=self._commitment),
        )
        return int(resp.value)

    async def get_stake_activation_state(self, stake_account: Pubkey) -> StakeActivation:
        resp = await self._call(
            "get_account_info_json_parsed",
            self._client.get_account_info_json_parsed(stake_account, commitment=self._commitment),
        )
        if resp.value is None:
            raise AccountNotFound(str(stake_account))
        parsed = _parsed_data(resp.value)
        if parsed is None or parsed.get("type") not in ("initialized", "delegated"):
            raise NetworkError(ValueError(f"{stake_account} is not an initialized stake account"))
        epoch_resp = await self._call("get_epoch_info", self._client.get_epoch_info(commitment=self._commitment))
        return stake_activation_from_parsed(parsed, int(resp.value.lamports), int(epoch_resp.value.epoch))

    def filter_by_withdrawal_authority(self, authority: Pubkey) -> list[int | MemcmpOpts]:
        return [
            STAKE_ACCOUNT_SPACE,
            MemcmpOpts(offset=WITHDRAWER_AUTHORITY_OFFSET, bytes=str(authority)),
        ]

    async def query_program_accounts(self, program_id: Pubkey, filters: Any) -> list[ProgramAccount]:
        resp = await self._call(
            "get_program_accounts",
            self._client.get_program_accounts(
                program_id, commitment=self._commitment, encoding="base64", filters=filters
            ),
        )
        return [
            ProgramAccount(
                address=item.pubkey,
                lamports=int(item.account.lamports),
                data=bytes(item.account.data),
            )
            for item in resp.value or []
        ]

    async def request_faucet_funds(self, address: Pubkey, lamports: int) -> str:
        if self.network == "mainnet":
            raise NotSupportedOnMainnet("faucet")
        resp = await self._call(
            "request_airdrop",
            self._client.request_airdrop(address, lamports, commitment=self._commitment),
        )
        signature = resp.value
        await self._call(
            "confirm_transaction",
            self._client.confirm_transaction(signature, commitment=self._commitment),
        )
        return str(signature)

    async def get_signatures_for_address(self, address: Pubkey, limit: int) -> list[SignatureInfo]:
        resp = await self._call(
            "get_signatures_for_address",
            self._client.get_signatures_for_address(address, limit=limit, commitment=self._commitment),
        )
        return [SignatureInfo.from_rpc_status(item) for item in resp.value or []]

    async def close(self) -> None:
        await self._client.close()
