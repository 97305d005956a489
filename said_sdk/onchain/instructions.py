"""
Instruction builders for the SAID program.

Instruction data = 8-byte Anchor discriminator followed by Borsh-encoded args.
The discriminators are those of the deployed program's IDL and are kept as
literal constants.
"""

from __future__ import annotations

import struct

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import ID as SYS_PROGRAM_ID

from said_sdk.config.env import DEFAULT_TREASURY
from said_sdk.onchain.pda import SAID_PROGRAM_ID
from said_sdk.utils.wallet_utils import to_pubkey

REGISTER_AGENT_DISCRIMINATOR = bytes([51, 10, 104, 110, 50, 83, 175, 37])
VERIFY_AGENT_DISCRIMINATOR = bytes([26, 117, 145, 70, 163, 102, 21, 103])

TREASURY_PDA = Pubkey.from_string(DEFAULT_TREASURY)


def encode_string_arg(value: str) -> bytes:
    """Borsh string: u32 le byte length + utf-8 bytes."""
    raw = value.encode("utf-8")
    return struct.pack("<I", len(raw)) + raw


def build_register_instruction(
    identity_address: Pubkey | str,
    owner: Pubkey | str,
    metadata_uri: str,
    program_id: Pubkey | str | None = None,
) -> Instruction:
    """register_agent(metadata_uri): creates the agent account, owner pays rent."""
    data = REGISTER_AGENT_DISCRIMINATOR + encode_string_arg(metadata_uri)
    accounts = [
        AccountMeta(pubkey=to_pubkey(identity_address), is_signer=False, is_writable=True),
        AccountMeta(pubkey=to_pubkey(owner), is_signer=True, is_writable=True),
        AccountMeta(pubkey=SYS_PROGRAM_ID, is_signer=False, is_writable=False),
    ]
    program = SAID_PROGRAM_ID if program_id is None else to_pubkey(program_id)
    return Instruction(program_id=program, data=data, accounts=accounts)


def build_verify_instruction(
    identity_address: Pubkey | str,
    owner: Pubkey | str,
    treasury: Pubkey | str | None = None,
    program_id: Pubkey | str | None = None,
) -> Instruction:
    """verify_agent(): marks the agent verified, transferring the fee from owner to treasury."""
    accounts = [
        AccountMeta(pubkey=to_pubkey(identity_address), is_signer=False, is_writable=True),
        AccountMeta(pubkey=to_pubkey(owner), is_signer=True, is_writable=True),
        AccountMeta(pubkey=TREASURY_PDA if treasury is None else to_pubkey(treasury), is_signer=False, is_writable=True),
        AccountMeta(pubkey=SYS_PROGRAM_ID, is_signer=False, is_writable=False),
    ]
    program = SAID_PROGRAM_ID if program_id is None else to_pubkey(program_id)
    return Instruction(program_id=program, data=VERIFY_AGENT_DISCRIMINATOR, accounts=accounts)
