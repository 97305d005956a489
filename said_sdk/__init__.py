"""
SAID SDK: query, register and verify AI agent identities on Solana.

    from said_sdk import create_default_client
    client = create_default_client()
    record = client.lookup("42xhLbEm5ttwzxW6YMJ2UZStX7M8ytTz7s7bsyrdPxMD")
"""

from said_sdk.client import IdentityClient, create_default_client
from said_sdk.config.env import ClientConfig
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
from said_sdk.models import (
    AgentCard,
    CreateIdentityOptions,
    CreationResult,
    IdentityRecord,
    IdentityStats,
    RegistrationResult,
    TransactionResult,
    WalletLinkResult,
)
from said_sdk.onchain.account_codec import AGENT_ACCOUNT_SIZE, decode_identity_record, encode_identity_record
from said_sdk.onchain.pda import SAID_PROGRAM_ID, DerivedAddress, derive_identity_address
from said_sdk.onchain.instructions import TREASURY_PDA

__version__ = "0.3.0"

__all__ = [
    "AGENT_ACCOUNT_SIZE",
    "AddressError",
    "AgentCard",
    "ClientConfig",
    "CreateIdentityOptions",
    "CreationResult",
    "DerivedAddress",
    "IdentityClient",
    "IdentityRecord",
    "IdentityStats",
    "InvalidLengthError",
    "MalformedRecordError",
    "MalformedUriError",
    "MetadataUnavailableError",
    "NetworkError",
    "RegistrationResult",
    "SAID_PROGRAM_ID",
    "SaidError",
    "TREASURY_PDA",
    "TransactionRejectedError",
    "TransactionResult",
    "TruncatedRecordError",
    "WalletLinkResult",
    "create_default_client",
    "decode_identity_record",
    "derive_identity_address",
    "encode_identity_record",
]
