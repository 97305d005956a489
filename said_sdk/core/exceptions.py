"""
SDK exceptions.

Structural problems (corrupt account data, bad addresses) and transport or
transaction failures are distinct types so callers can tell "absent" (None)
from "broken". MetadataUnavailableError never escapes the public client API.
"""

from __future__ import annotations

from typing import Any


class SaidError(Exception):
    """Base class for all SDK errors."""

    # Set by create_and_verify when a write fails after the identity already exists
    creation: Any = None


class MalformedRecordError(SaidError):
    """Account data does not match the identity record layout."""


class InvalidLengthError(MalformedRecordError):
    def __init__(self, length: int, expected: int) -> None:
        super().__init__(f"identity account must be {expected} bytes, got {length}")
        self.length = length
        self.expected = expected


class MalformedUriError(MalformedRecordError):
    """uri_length points past the buffer, or the URI is not valid UTF-8."""


class TruncatedRecordError(MalformedRecordError):
    """Fixed suffix (registered_at, is_verified, verified_at) does not fit."""


class AddressError(SaidError, ValueError):
    """Input is not a valid base58 public key."""

    def __init__(self, value: object, message: str | None = None) -> None:
        super().__init__(message or f"Invalid Solana address: {value!r}")
        self.value = value


class NetworkError(SaidError):
    """RPC transport or server failure."""


class TransactionRejectedError(SaidError):
    """The chain rejected a transaction or it did not reach the requested commitment."""

    def __init__(self, message: str, signature: str | None = None, reason: str | None = None) -> None:
        super().__init__(message)
        self.signature = signature
        self.reason = reason


class MetadataUnavailableError(SaidError):
    """Agent card could not be fetched or parsed."""
