"""
Tests for the agent account codec (account_codec.decode_identity_record).

Buffers are built by hand with struct so the layout is checked independently
of encode_identity_record.
"""

from __future__ import annotations

import struct

import pytest

from said_sdk.core.exceptions import (
    InvalidLengthError,
    MalformedRecordError,
    MalformedUriError,
    TruncatedRecordError,
)
from said_sdk.models import IdentityRecord
from said_sdk.onchain.account_codec import (
    AGENT_ACCOUNT_SIZE,
    MAX_URI_LEN,
    URI_LENGTH_OFFSET,
    decode_identity_record,
    encode_identity_record,
)

SYSTEM_PROGRAM = "11111111111111111111111111111111"
VALID_PUBKEY = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
DISCRIMINATOR = bytes([1, 2, 3, 4, 5, 6, 7, 8])


def _raw_account(
    uri: bytes = b"hello",
    owner: bytes = b"\x00" * 32,
    registered_at: int = 1700000000,
    verified_byte: int = 1,
    verified_at: int = 1700000500,
    uri_length: int | None = None,
    size: int = AGENT_ACCOUNT_SIZE,
) -> bytes:
    """Account bytes: discriminator, owner, uri_length, uri, suffix, zero padding."""
    buf = bytearray(DISCRIMINATOR)
    buf += owner
    buf += struct.pack("<I", len(uri) if uri_length is None else uri_length)
    buf += uri
    buf += struct.pack("<q", registered_at)
    buf.append(verified_byte)
    buf += struct.pack("<q", verified_at)
    if len(buf) < size:
        buf += b"\x00" * (size - len(buf))
    return bytes(buf[:size])


def test_decode_hello_record():
    """Zero owner, 'hello' URI, verified record decodes field by field."""
    record = decode_identity_record(_raw_account())
    assert record.owner == SYSTEM_PROGRAM
    assert record.metadata_uri == "hello"
    assert record.registered_at == 1700000000
    assert record.is_verified is True
    assert record.verified_at == 1700000500
    assert record.discriminator == DISCRIMINATOR
    assert record.address is None


def test_decode_sets_address():
    """Address passed by the caller is carried on the record."""
    record = decode_identity_record(_raw_account(), address=VALID_PUBKEY)
    assert record.address == VALID_PUBKEY


def test_decode_unverified_record():
    """Verified byte 0 means unverified."""
    record = decode_identity_record(_raw_account(verified_byte=0, verified_at=0))
    assert record.is_verified is False
    assert record.verified_at == 0
    assert record.verified_datetime is None


def test_decode_verified_only_for_byte_one():
    """Any verified byte other than 1 is treated as unverified."""
    record = decode_identity_record(_raw_account(verified_byte=2))
    assert record.is_verified is False


def test_decode_empty_uri():
    """uri_length 0 decodes to an empty URI."""
    record = decode_identity_record(_raw_account(uri=b""))
    assert record.metadata_uri == ""
    assert record.registered_at == 1700000000


def test_decode_max_length_uri():
    """A URI that exactly fills the account decodes."""
    uri = b"u" * MAX_URI_LEN
    record = decode_identity_record(_raw_account(uri=uri))
    assert record.metadata_uri == "u" * MAX_URI_LEN
    assert record.verified_at == 1700000500


def test_decode_unicode_uri():
    """URI bytes are UTF-8."""
    uri = "https://example.com/ägent.json".encode("utf-8")
    record = decode_identity_record(_raw_account(uri=uri))
    assert record.metadata_uri == "https://example.com/ägent.json"


@pytest.mark.parametrize("size", [0, 100, 262, 264, 300])
def test_decode_rejects_wrong_length(size):
    """Anything other than 263 bytes raises InvalidLengthError."""
    with pytest.raises(InvalidLengthError) as exc_info:
        decode_identity_record(b"\x00" * size)
    assert exc_info.value.length == size
    assert exc_info.value.expected == AGENT_ACCOUNT_SIZE


def test_decode_uri_overflow():
    """uri_length pointing past the buffer raises MalformedUriError."""
    data = bytearray(_raw_account())
    struct.pack_into("<I", data, URI_LENGTH_OFFSET, 500)
    with pytest.raises(MalformedUriError):
        decode_identity_record(bytes(data))


def test_decode_truncated_suffix():
    """URI fits but the 17-byte suffix does not: TruncatedRecordError."""
    data = bytearray(_raw_account(registered_at=0, verified_byte=0, verified_at=0))
    struct.pack_into("<I", data, URI_LENGTH_OFFSET, MAX_URI_LEN + 1)
    with pytest.raises(TruncatedRecordError):
        decode_identity_record(bytes(data))


def test_decode_invalid_utf8_uri():
    """Non-UTF-8 URI bytes raise MalformedUriError."""
    with pytest.raises(MalformedUriError):
        decode_identity_record(_raw_account(uri=b"\xff\xfe\xfd"))


def test_malformed_errors_share_base():
    """Every structural error is a MalformedRecordError."""
    for exc in (InvalidLengthError(1, 263), MalformedUriError("x"), TruncatedRecordError("x")):
        assert isinstance(exc, MalformedRecordError)


def test_encode_matches_hand_built_layout():
    """encode_identity_record produces the same bytes as the hand-built buffer."""
    record = IdentityRecord(
        owner=SYSTEM_PROGRAM,
        metadata_uri="hello",
        registered_at=1700000000,
        is_verified=True,
        verified_at=1700000500,
        discriminator=DISCRIMINATOR,
    )
    assert encode_identity_record(record) == _raw_account()


def test_encode_decode_real_owner():
    """A real owner key survives encode then decode."""
    record = IdentityRecord(
        owner=VALID_PUBKEY,
        metadata_uri="https://www.saidprotocol.com/agents/x.json",
        registered_at=1710000000,
        is_verified=False,
        verified_at=0,
    )
    data = encode_identity_record(record)
    assert len(data) == AGENT_ACCOUNT_SIZE
    decoded = decode_identity_record(data)
    assert decoded.owner == VALID_PUBKEY
    assert decoded.metadata_uri == record.metadata_uri
    assert decoded.registered_at == 1710000000
    assert decoded.is_verified is False


def test_encode_rejects_long_uri():
    """URIs longer than the account can hold are refused."""
    record = IdentityRecord(
        owner=VALID_PUBKEY,
        metadata_uri="u" * (MAX_URI_LEN + 1),
        registered_at=0,
        is_verified=False,
        verified_at=0,
    )
    with pytest.raises(ValueError):
        encode_identity_record(record)


def test_record_datetimes():
    """registered_datetime and verified_datetime are UTC."""
    record = decode_identity_record(_raw_account())
    assert record.registered_datetime.year == 2023
    assert record.registered_datetime.tzinfo is not None
    assert record.verified_datetime is not None
    assert record.verified_datetime.timestamp() == 1700000500
