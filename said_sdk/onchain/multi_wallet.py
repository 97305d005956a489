"""
Multi-wallet support: link extra wallets to one agent identity.

Instruction discriminator = first 8 bytes of sha256("global:<instruction_name>").
WalletLink account layout: 8 discriminator + 32 agent_id + 32 wallet + ...
"""

from __future__ import annotations

import hashlib

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import ID as SYS_PROGRAM_ID

from said_sdk.onchain.pda import SAID_PROGRAM_ID, derive_identity_address, derive_wallet_link_address
from said_sdk.utils.wallet_utils import to_pubkey

LINK_WALLET_DISCRIMINATOR = hashlib.sha256(b"global:link_wallet").digest()[:8]
UNLINK_WALLET_DISCRIMINATOR = hashlib.sha256(b"global:unlink_wallet").digest()[:8]
TRANSFER_AUTHORITY_DISCRIMINATOR = hashlib.sha256(b"global:transfer_authority").digest()[:8]

WALLET_LINK_AGENT_OFFSET = 8
WALLET_LINK_WALLET_OFFSET = WALLET_LINK_AGENT_OFFSET + 32  # 40
WALLET_LINK_MIN_LEN = WALLET_LINK_WALLET_OFFSET + 32  # 72


def _program(program_id: Pubkey | str | None) -> Pubkey:
    return SAID_PROGRAM_ID if program_id is None else to_pubkey(program_id)


def build_link_wallet_instruction(
    authority: Pubkey | str,
    new_wallet: Pubkey | str,
    program_id: Pubkey | str | None = None,
) -> tuple[Instruction, Pubkey]:
    """Both authority and new_wallet must sign. Returns (Instruction, wallet_link_pda)."""
    program = _program(program_id)
    authority_key = to_pubkey(authority)
    new_wallet_key = to_pubkey(new_wallet)
    agent_pda, _ = derive_identity_address(authority_key, program)
    wallet_link_pda, _ = derive_wallet_link_address(new_wallet_key, program)
    accounts = [
        AccountMeta(pubkey=agent_pda, is_signer=False, is_writable=False),
        AccountMeta(pubkey=wallet_link_pda, is_signer=False, is_writable=True),
        AccountMeta(pubkey=authority_key, is_signer=True, is_writable=True),
        AccountMeta(pubkey=new_wallet_key, is_signer=True, is_writable=False),
        AccountMeta(pubkey=SYS_PROGRAM_ID, is_signer=False, is_writable=False),
    ]
    ix = Instruction(program_id=program, data=LINK_WALLET_DISCRIMINATOR, accounts=accounts)
    return ix, wallet_link_pda


def build_unlink_wallet_instruction(
    caller: Pubkey | str,
    wallet_to_unlink: Pubkey | str,
    program_id: Pubkey | str | None = None,
) -> Instruction:
    """Caller is either the identity authority or the linked wallet itself."""
    program = _program(program_id)
    wallet_link_pda, _ = derive_wallet_link_address(wallet_to_unlink, program)
    accounts = [
        AccountMeta(pubkey=wallet_link_pda, is_signer=False, is_writable=True),
        AccountMeta(pubkey=to_pubkey(caller), is_signer=True, is_writable=True),
    ]
    return Instruction(program_id=program, data=UNLINK_WALLET_DISCRIMINATOR, accounts=accounts)


def build_transfer_authority_instruction(
    current_authority: Pubkey | str,
    new_authority: Pubkey | str,
    program_id: Pubkey | str | None = None,
) -> Instruction:
    """Hand the identity to a linked wallet (recovery)."""
    program = _program(program_id)
    current_key = to_pubkey(current_authority)
    agent_pda, _ = derive_identity_address(current_key, program)
    accounts = [
        AccountMeta(pubkey=agent_pda, is_signer=False, is_writable=True),
        AccountMeta(pubkey=current_key, is_signer=True, is_writable=False),
        AccountMeta(pubkey=to_pubkey(new_authority), is_signer=False, is_writable=False),
    ]
    return Instruction(program_id=program, data=TRANSFER_AUTHORITY_DISCRIMINATOR, accounts=accounts)


def parse_linked_wallet(data: bytes) -> Pubkey | None:
    """Wallet pubkey stored in a WalletLink account, or None if too short."""
    if data is None or len(data) < WALLET_LINK_MIN_LEN:
        return None
    return Pubkey(bytes(data[WALLET_LINK_WALLET_OFFSET:WALLET_LINK_MIN_LEN]))
