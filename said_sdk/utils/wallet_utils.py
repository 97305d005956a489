"""Wallet and address utilities: pubkey parsing, keypair files, secret encoding."""

from __future__ import annotations

import json
import os
from pathlib import Path

import base58
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from said_sdk.core.exceptions import AddressError

SECRET_KEY_LEN = 64


def is_valid_wallet(w: str) -> bool:
    """Return True if w is a valid Solana wallet (Pubkey) address."""
    try:
        Pubkey.from_string(w.strip())
        return True
    except ValueError:
        return False


def to_pubkey(value: Pubkey | str) -> Pubkey:
    """Coerce a Pubkey or base58 string to Pubkey; AddressError on bad input."""
    if isinstance(value, Pubkey):
        return value
    if not isinstance(value, str) or not value.strip():
        raise AddressError(value)
    try:
        return Pubkey.from_string(value.strip())
    except ValueError as e:
        raise AddressError(value) from e


def load_keypair(private_key: str) -> Keypair:
    """Load Keypair from a base58 string or a JSON array of 64 bytes."""
    raw = private_key.strip()
    try:
        if raw.startswith("["):
            arr = json.loads(raw)
            return Keypair.from_bytes(bytes(arr[:SECRET_KEY_LEN]))
        return Keypair.from_bytes(base58.b58decode(raw))
    except (json.JSONDecodeError, TypeError, ValueError) as e:
        raise ValueError("Invalid private key: expected base58 or JSON byte array") from e


def load_keypair_file(path: str | Path) -> Keypair:
    """Read a wallet file (JSON array of secret-key bytes)."""
    path = Path(path).expanduser()
    if not path.exists():
        raise FileNotFoundError(f"Keypair file not found: {path}")
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list) or len(data) != SECRET_KEY_LEN:
        raise ValueError(f"Keypair file must contain a JSON array of {SECRET_KEY_LEN} bytes: {path}")
    return Keypair.from_bytes(bytes(data))


def write_keypair_file(path: str | Path, keypair: Keypair, *, overwrite: bool = False) -> Path:
    """Write keypair as a JSON byte array, readable by solana-keygen. No encryption."""
    path = Path(path).expanduser()
    if path.exists() and not overwrite:
        raise FileExistsError(f"Refusing to overwrite existing keypair file: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(list(bytes(keypair))), encoding="utf-8")
    os.chmod(path, 0o600)
    return path


def encode_secret_key(keypair: Keypair) -> str:
    """Base58 of the full 64-byte secret key (the format wallets import)."""
    return base58.b58encode(bytes(keypair)).decode("ascii")


def short_address(address: str, keep: int = 16) -> str:
    return address[:keep] + "..." if len(address) > keep else address
