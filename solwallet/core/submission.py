"""
Transaction submission shared by every engine.

Fetches a fresh anti-replay token immediately before submitting, assembles the
TransactionIntent, checks every required authority is among the signers, then
submits and awaits confirmation. Failures propagate as NetworkError; there is
no retry here. A missing signer raises MissingSigner before anything is sent.
"""

from __future__ import annotations

from typing import Sequence

from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from solwallet.core.exceptions import MissingSigner
from solwallet.core.models import TransactionIntent
from solwallet.network.client import LedgerClient


async def submit_instructions(
    client: LedgerClient,
    instructions: Sequence[Instruction],
    fee_payer: Pubkey,
    signers: Sequence[Keypair],
) -> str:
    """Build, sign, submit and confirm. Returns the transaction signature."""
    anti_replay = await client.get_latest_anti_replay_token()
    intent = TransactionIntent(
        instructions=tuple(instructions),
        fee_payer=fee_payer,
        anti_replay=anti_replay,
    )
    missing = intent.missing_signers(kp.pubkey() for kp in signers)
    if missing:
        raise MissingSigner(sorted(str(p) for p in missing))
    return await client.submit_and_confirm(intent, signers)
