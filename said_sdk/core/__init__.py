"""
Core cross-cutting pieces: the exception hierarchy shared by every module.
"""

from said_sdk.core.exceptions import (
    AddressError,
    InvalidLengthError,
    MalformedRecordError,
    MalformedUriError,
    MetadataUnavailableError,
    NetworkError,
    SaidError,
    TransactionRejectedError,
    TruncatedRecordError,
)

__all__ = [
    "AddressError",
    "InvalidLengthError",
    "MalformedRecordError",
    "MalformedUriError",
    "MetadataUnavailableError",
    "NetworkError",
    "SaidError",
    "TransactionRejectedError",
    "TruncatedRecordError",
]
