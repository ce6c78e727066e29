import hashlib
import struct

import pytest

from nftlife.core.codec import (
    DISCRIMINATOR,
    FIXED_SIZE,
    decode,
    discriminator_for,
    encode,
    encoded_size,
)
from nftlife.core.errors import SchemaError, VersionMismatch
from nftlife.core.schema import NftState


def _state(uri: str = "ipfs://meta") -> NftState:
    return NftState(
        level=12,
        rarity="legendary",
        mint_timestamp=1_700_000_000,
        last_updated_timestamp=1_700_086_400,
        evolution_count=3,
        fusion_potential=9,
        achievement_points=90,
        entity_ref=bytes(range(32)),
        uri=uri,
    )


def test_discriminator_is_namespaced_hash_prefix():
    assert DISCRIMINATOR == hashlib.sha256(b"account:NftState:v1").digest()[:8]
    assert discriminator_for(2) != DISCRIMINATOR


def test_field_offsets():
    s = _state()
    buf = encode(s)
    assert buf[:8] == DISCRIMINATOR
    assert struct.unpack_from("<Q", buf, 8)[0] == 12
    assert buf[16] == 4  # legendary rank
    assert struct.unpack_from("<q", buf, 17)[0] == 1_700_000_000
    assert struct.unpack_from("<q", buf, 25)[0] == 1_700_086_400
    assert struct.unpack_from("<Q", buf, 33)[0] == 3
    assert struct.unpack_from("<Q", buf, 41)[0] == 9
    assert struct.unpack_from("<Q", buf, 49)[0] == 90
    assert buf[57:89] == bytes(range(32))
    assert struct.unpack_from("<I", buf, 89)[0] == len(b"ipfs://meta")
    assert buf[93:] == b"ipfs://meta"
    assert len(buf) == encoded_size(s) == FIXED_SIZE + 4 + 11


@pytest.mark.parametrize("uri", ["", "ipfs://meta", "ar://été/☃"])
def test_round_trip_is_bit_exact(uri: str):
    s = _state(uri)
    buf = encode(s)
    assert decode(buf) == s
    assert encode(decode(buf)) == buf


def test_foreign_discriminator_raises_version_mismatch():
    buf = bytearray(encode(_state()))
    buf[:8] = discriminator_for(2)
    with pytest.raises(VersionMismatch):
        decode(bytes(buf))


def test_truncated_and_trailing_bytes_are_schema_errors():
    buf = encode(_state())
    with pytest.raises(SchemaError):
        decode(buf[:40])
    with pytest.raises(SchemaError):
        decode(buf[:-1])
    with pytest.raises(SchemaError):
        decode(buf + b"\x00")


def test_unknown_rarity_tag_is_schema_error():
    buf = bytearray(encode(_state()))
    buf[16] = 9
    with pytest.raises(SchemaError):
        decode(bytes(buf))


def test_invalid_timestamps_are_schema_errors():
    buf = bytearray(encode(_state()))
    struct.pack_into("<q", buf, 25, 0)  # last_updated < mint
    with pytest.raises(SchemaError):
        decode(bytes(buf))
