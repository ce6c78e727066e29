"""
Binary record layout for ``NftState``.

Layout (little-endian, fixed header then fields in order):

| Offset | Size | Field                   | Encoding                          |
|--------|------|-------------------------|-----------------------------------|
| 0      | 8    | discriminator           | sha256("account:NftState:v<major>")[:8] |
| 8      | 8    | level                   | u64                               |
| 16     | 1    | rarity                  | u8 tag (rank in Rarity order)     |
| 17     | 8    | mint_timestamp          | i64                               |
| 25     | 8    | last_updated_timestamp  | i64                               |
| 33     | 8    | evolution_count         | u64                               |
| 41     | 8    | fusion_potential        | u64                               |
| 49     | 8    | achievement_points      | u64                               |
| 57     | 32   | entity_ref              | raw bytes                         |
| 89     | 4+n  | uri                     | u32 length + UTF-8 bytes          |

Notes:
    - ``decode(encode(state)) == state`` for every valid record; encoding is bit-exact
      and deterministic, so byte equality is record equality (stores rely on this for
      compare-and-swap).
    - The discriminator changes with the major layout version; decoding a record from
      another major raises VersionMismatch.
    - stdlib ``struct`` only; zero-IO.
"""

from __future__ import annotations

import hashlib
import struct
from typing import Final

from .constants import ENTITY_REF_SIZE
from .errors import SchemaError, VersionMismatch
from .grammar import RARITY_ORDER, rarity_rank
from .schema import NftState
from .versioning import SCHEMA_V

__all__ = [
    "DISCRIMINATOR",
    "HEADER_SIZE",
    "FIXED_SIZE",
    "discriminator_for",
    "encode",
    "decode",
    "encoded_size",
]

_FIXED: Final[struct.Struct] = struct.Struct(f"<QBqqQQQ{ENTITY_REF_SIZE}s")
_LEN: Final[struct.Struct] = struct.Struct("<I")
_U64_MAX: Final[int] = (1 << 64) - 1


def discriminator_for(major: int) -> bytes:
    """8-byte record discriminator for a layout major version."""
    return hashlib.sha256(f"account:NftState:v{major}".encode()).digest()[:8]


DISCRIMINATOR: Final[bytes] = discriminator_for(SCHEMA_V.major)
HEADER_SIZE: Final[int] = len(DISCRIMINATOR)
FIXED_SIZE: Final[int] = HEADER_SIZE + _FIXED.size


def encoded_size(state: NftState) -> int:
    """Size in bytes of ``encode(state)``."""
    return FIXED_SIZE + _LEN.size + len(state.uri.encode("utf-8"))


def _check_u64(name: str, value: int) -> None:
    if not 0 <= value <= _U64_MAX:
        raise SchemaError(f"{name} does not fit in u64: {value}")


def encode(state: NftState) -> bytes:
    """
    Encode a record into its persisted byte layout.

    Raises:
        SchemaError: If a counter exceeds u64 or a timestamp exceeds i64.
    """
    for name in ("level", "evolution_count", "fusion_potential", "achievement_points"):
        _check_u64(name, getattr(state, name))
    uri = state.uri.encode("utf-8")
    try:
        fixed = _FIXED.pack(
            state.level,
            rarity_rank(state.rarity),
            state.mint_timestamp,
            state.last_updated_timestamp,
            state.evolution_count,
            state.fusion_potential,
            state.achievement_points,
            state.entity_ref,
        )
    except struct.error as exc:
        raise SchemaError(f"record does not fit the layout: {exc}") from exc
    return DISCRIMINATOR + fixed + _LEN.pack(len(uri)) + uri


def decode(data: bytes) -> NftState:
    """
    Decode a persisted record.

    Raises:
        VersionMismatch: If the discriminator is not the current layout's.
        SchemaError: On truncation, trailing bytes, an unknown rarity tag, invalid
            UTF-8, or a record that violates NftState validation.
    """
    buf = bytes(data)
    if len(buf) < FIXED_SIZE + _LEN.size:
        raise SchemaError(f"record truncated: {len(buf)} bytes")
    if buf[:HEADER_SIZE] != DISCRIMINATOR:
        raise VersionMismatch(
            f"unexpected record discriminator {buf[:HEADER_SIZE].hex()} "
            f"(expected {DISCRIMINATOR.hex()} for layout {SCHEMA_V.tag()})"
        )
    (
        level,
        tag,
        mint_ts,
        last_ts,
        evolution_count,
        fusion_potential,
        points,
        entity_ref,
    ) = _FIXED.unpack_from(buf, HEADER_SIZE)
    if tag >= len(RARITY_ORDER):
        raise SchemaError(f"unknown rarity tag {tag}")
    (uri_len,) = _LEN.unpack_from(buf, FIXED_SIZE)
    start = FIXED_SIZE + _LEN.size
    end = start + uri_len
    if end != len(buf):
        raise SchemaError(f"uri length {uri_len} does not match record size {len(buf)}")
    try:
        uri = buf[start:end].decode("utf-8")
    except UnicodeDecodeError as exc:
        raise SchemaError(f"uri is not valid UTF-8: {exc}") from exc
    try:
        return NftState(
            level=level,
            rarity=RARITY_ORDER[tag],
            mint_timestamp=mint_ts,
            last_updated_timestamp=last_ts,
            evolution_count=evolution_count,
            fusion_potential=fusion_potential,
            achievement_points=points,
            entity_ref=entity_ref,
            uri=uri,
        )
    except ValueError as exc:
        raise SchemaError(f"decoded record is invalid: {exc}") from exc
