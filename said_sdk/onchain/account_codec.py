"""
Agent identity account codec.

AgentAccount layout (263 bytes, zero padded after verified_at):
    8 discriminator + 32 owner + 4 uri_length (u32 le) + uri_length metadata_uri (utf-8)
    + 8 registered_at (i64 le) + 1 is_verified + 8 verified_at (i64 le)
"""

from __future__ import annotations

import struct

from solders.pubkey import Pubkey

from said_sdk.core.exceptions import InvalidLengthError, MalformedUriError, TruncatedRecordError
from said_sdk.models import IdentityRecord

AGENT_ACCOUNT_SIZE = 263

DISCRIMINATOR_LEN = 8
OWNER_OFFSET = DISCRIMINATOR_LEN  # 8
OWNER_LEN = 32
URI_LENGTH_OFFSET = OWNER_OFFSET + OWNER_LEN  # 40
URI_OFFSET = URI_LENGTH_OFFSET + 4  # 44
SUFFIX_LEN = 8 + 1 + 8  # registered_at + is_verified + verified_at
MAX_URI_LEN = AGENT_ACCOUNT_SIZE - URI_OFFSET - SUFFIX_LEN  # 202

_U32 = struct.Struct("<I")
_I64 = struct.Struct("<q")


def decode_identity_record(data: bytes, address: str | None = None) -> IdentityRecord:
    """
    Parse raw AgentAccount data.

    Raises InvalidLengthError when len(data) != 263, MalformedUriError when
    uri_length runs past the buffer (or the URI is not UTF-8), and
    TruncatedRecordError when the fixed suffix does not fit after the URI.
    is_verified is True only for the byte value 1.
    """
    data = bytes(data)
    if len(data) != AGENT_ACCOUNT_SIZE:
        raise InvalidLengthError(len(data), AGENT_ACCOUNT_SIZE)

    discriminator = data[:DISCRIMINATOR_LEN]
    owner = str(Pubkey(data[OWNER_OFFSET : OWNER_OFFSET + OWNER_LEN]))

    (uri_length,) = _U32.unpack_from(data, URI_LENGTH_OFFSET)
    uri_end = URI_OFFSET + uri_length
    if uri_end > len(data):
        raise MalformedUriError(f"uri_length {uri_length} exceeds account size {len(data)}")
    try:
        metadata_uri = data[URI_OFFSET:uri_end].decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedUriError(f"metadata_uri is not valid UTF-8: {e}") from e

    if uri_end + SUFFIX_LEN > len(data):
        raise TruncatedRecordError(
            f"record suffix needs {SUFFIX_LEN} bytes at offset {uri_end}, account has {len(data)}"
        )
    (registered_at,) = _I64.unpack_from(data, uri_end)
    is_verified = data[uri_end + 8] == 1
    (verified_at,) = _I64.unpack_from(data, uri_end + 9)

    return IdentityRecord(
        owner=owner,
        metadata_uri=metadata_uri,
        registered_at=registered_at,
        is_verified=is_verified,
        verified_at=verified_at,
        address=address,
        discriminator=discriminator,
    )


def encode_identity_record(
    record: IdentityRecord,
    discriminator: bytes | None = None,
) -> bytes:
    """Serialize a record to the 263-byte account layout (fixtures and tests)."""
    tag = discriminator if discriminator is not None else record.discriminator
    if len(tag) != DISCRIMINATOR_LEN:
        raise ValueError(f"discriminator must be {DISCRIMINATOR_LEN} bytes")
    uri = record.metadata_uri.encode("utf-8")
    if len(uri) > MAX_URI_LEN:
        raise ValueError(f"metadata_uri is {len(uri)} bytes; max is {MAX_URI_LEN}")

    buf = bytearray(tag)
    buf += bytes(Pubkey.from_string(record.owner))
    buf += _U32.pack(len(uri))
    buf += uri
    buf += _I64.pack(record.registered_at)
    buf.append(1 if record.is_verified else 0)
    buf += _I64.pack(record.verified_at)
    buf += b"\x00" * (AGENT_ACCOUNT_SIZE - len(buf))
    return bytes(buf)
