"""
Native stake program instructions.

Builds the instruction set needed by the stake lifecycle (create account,
initialize, delegate, deactivate, withdraw). Stake instruction data is the
bincode encoding of the StakeInstruction enum: u32 little-endian variant
index followed by the variant's fields.
"""

from __future__ import annotations

import struct

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import CreateAccountParams, create_account

STAKE_PROGRAM_ID = Pubkey.from_string("Stake11111111111111111111111111111111111111")
STAKE_CONFIG_ID = Pubkey.from_string("StakeConfig11111111111111111111111111111111")
SYSVAR_RENT_ID = Pubkey.from_string("SysvarRent111111111111111111111111111111111")
SYSVAR_CLOCK_ID = Pubkey.from_string("SysvarC1ock11111111111111111111111111111111")
SYSVAR_STAKE_HISTORY_ID = Pubkey.from_string("SysvarStakeHistory1111111111111111111111111")

# StakeStateV2 serialized size
STAKE_ACCOUNT_SPACE = 200

# StakeInstruction variant indices
IX_INITIALIZE = 0
IX_DELEGATE_STAKE = 2
IX_WITHDRAW = 4
IX_DEACTIVATE = 5


def create_stake_account_instruction(
    from_pubkey: Pubkey, stake_pubkey: Pubkey, lamports: int
) -> Instruction:
    """System create_account owned by the stake program, sized for stake state."""
    return create_account(
        CreateAccountParams(
            from_pubkey=from_pubkey,
            to_pubkey=stake_pubkey,
            lamports=lamports,
            space=STAKE_ACCOUNT_SPACE,
            owner=STAKE_PROGRAM_ID,
        )
    )


def initialize_instruction(
    stake_pubkey: Pubkey,
    staker: Pubkey,
    withdrawer: Pubkey,
    *,
    lockup_unix_timestamp: int = 0,
    lockup_epoch: int = 0,
    custodian: Pubkey | None = None,
) -> Instruction:
    """Initialize(Authorized { staker, withdrawer }, Lockup). Zero lockup means none."""
    custodian = custodian or Pubkey.default()
    data = (
        struct.pack("<I", IX_INITIALIZE)
        + bytes(staker)
        + bytes(withdrawer)
        + struct.pack("<qQ", lockup_unix_timestamp, lockup_epoch)
        + bytes(custodian)
    )
    accounts = [
        AccountMeta(pubkey=stake_pubkey, is_signer=False, is_writable=True),
        AccountMeta(pubkey=SYSVAR_RENT_ID, is_signer=False, is_writable=False),
    ]
    return Instruction(program_id=STAKE_PROGRAM_ID, data=data, accounts=accounts)


def delegate_instruction(stake_pubkey: Pubkey, authority: Pubkey, vote_pubkey: Pubkey) -> Instruction:
    accounts = [
        AccountMeta(pubkey=stake_pubkey, is_signer=False, is_writable=True),
        AccountMeta(pubkey=vote_pubkey, is_signer=False, is_writable=False),
        AccountMeta(pubkey=SYSVAR_CLOCK_ID, is_signer=False, is_writable=False),
        AccountMeta(pubkey=SYSVAR_STAKE_HISTORY_ID, is_signer=False, is_writable=False),
        AccountMeta(pubkey=STAKE_CONFIG_ID, is_signer=False, is_writable=False),
        AccountMeta(pubkey=authority, is_signer=True, is_writable=False),
    ]
    return Instruction(
        program_id=STAKE_PROGRAM_ID, data=struct.pack("<I", IX_DELEGATE_STAKE), accounts=accounts
    )


def deactivate_instruction(stake_pubkey: Pubkey, authority: Pubkey) -> Instruction:
    accounts = [
        AccountMeta(pubkey=stake_pubkey, is_signer=False, is_writable=True),
        AccountMeta(pubkey=SYSVAR_CLOCK_ID, is_signer=False, is_writable=False),
        AccountMeta(pubkey=authority, is_signer=True, is_writable=False),
    ]
    return Instruction(
        program_id=STAKE_PROGRAM_ID, data=struct.pack("<I", IX_DEACTIVATE), accounts=accounts
    )


def withdraw_instruction(
    stake_pubkey: Pubkey, authority: Pubkey, to_pubkey: Pubkey, lamports: int
) -> Instruction:
    accounts = [
        AccountMeta(pubkey=stake_pubkey, is_signer=False, is_writable=True),
        AccountMeta(pubkey=to_pubkey, is_signer=False, is_writable=True),
        AccountMeta(pubkey=SYSVAR_CLOCK_ID, is_signer=False, is_writable=False),
        AccountMeta(pubkey=SYSVAR_STAKE_HISTORY_ID, is_signer=False, is_writable=False),
        AccountMeta(pubkey=authority, is_signer=True, is_writable=False),
    ]
    return Instruction(
        program_id=STAKE_PROGRAM_ID,
        data=struct.pack("<IQ", IX_WITHDRAW, lamports),
        accounts=accounts,
    )


def instruction_kind(data: bytes) -> int | None:
    """Variant index of encoded stake instruction data, or None if too short."""
    if len(data) < 4:
        return None
    return struct.unpack_from("<I", data)[0]
