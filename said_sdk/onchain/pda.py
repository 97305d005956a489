"""
Program-derived addresses for SAID accounts.

Seeds must match the program exactly (lib.rs):
    agent account:  [b"agent", owner.key()]
    wallet link:    [b"wallet", wallet.key()]
"""

from __future__ import annotations

from typing import NamedTuple

from solders.pubkey import Pubkey

from said_sdk.config.env import DEFAULT_PROGRAM_ID
from said_sdk.utils.wallet_utils import to_pubkey

AGENT_SEED = b"agent"
WALLET_LINK_SEED = b"wallet"

SAID_PROGRAM_ID = Pubkey.from_string(DEFAULT_PROGRAM_ID)


class DerivedAddress(NamedTuple):
    address: Pubkey
    bump: int


def _program(program_id: Pubkey | str | None) -> Pubkey:
    return SAID_PROGRAM_ID if program_id is None else to_pubkey(program_id)


def derive_identity_address(owner: Pubkey | str, program_id: Pubkey | str | None = None) -> DerivedAddress:
    """Derive the agent PDA for an owner wallet (canonical bump, searched from 255 down)."""
    owner_key = to_pubkey(owner)
    address, bump = Pubkey.find_program_address([AGENT_SEED, bytes(owner_key)], _program(program_id))
    return DerivedAddress(address, bump)


def derive_wallet_link_address(wallet: Pubkey | str, program_id: Pubkey | str | None = None) -> DerivedAddress:
    """Derive the wallet-link PDA recording that `wallet` belongs to an identity."""
    wallet_key = to_pubkey(wallet)
    address, bump = Pubkey.find_program_address([WALLET_LINK_SEED, bytes(wallet_key)], _program(program_id))
    return DerivedAddress(address, bump)
