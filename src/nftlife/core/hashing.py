"""
Canonical JSON serialization, record addressing, and hashing helpers.

Provides a single canonical JSON policy, SHA-256 helpers for stable state
hashes, and the content-addressed record key derivation. This module is zero-IO
and uses only the Python standard library.

Notes:
    - Canonical JSON:
        - sort_keys=True
        - separators=(",", ":")
        - ensure_ascii=False
    - Record addresses are ``sha256(RECORD_NAMESPACE + entity_ref)`` as lowercase hex;
      they are lookup keys, not sequential ids.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import Any

from .constants import ENTITY_REF_SIZE, RECORD_NAMESPACE
from .errors import SchemaError
from .typing import RecordAddress

__all__ = [
    "json_dumps_canonical",
    "hash_state",
    "derive_record_address",
    "entity_ref_from_hex",
]


def json_dumps_canonical(obj: Any) -> str:
    """
    Serialize an object to a canonical JSON string.

    Args:
        obj (Any): JSON-serializable object.

    Returns:
        str: Canonical JSON string with sort_keys=True, compact separators,
        and ensure_ascii=False.
    """
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _sha256_hexdigest(s: str) -> str:
    """Compute SHA-256 hex digest of a UTF-8 string."""
    h = hashlib.sha256()
    h.update(s.encode("utf-8"))
    return h.hexdigest()


def hash_state(state: Mapping[str, Any]) -> str:
    """
    Hash a record mapping (e.g. ``NftState.to_json_obj()``) using canonical JSON.

    Examples:
        >>> hash_state({"a": 1, "b": 2}) == hash_state({"b": 2, "a": 1})
        True
    """
    return _sha256_hexdigest(json_dumps_canonical(dict(state)))


def derive_record_address(entity_ref: bytes, namespace: bytes = RECORD_NAMESPACE) -> RecordAddress:
    """
    Derive the content-addressed store key for an entity.

    Args:
        entity_ref (bytes): 32-byte entity reference.
        namespace (bytes): Fixed namespace tag (default ``b"nft_state"``).

    Returns:
        RecordAddress: Lowercase hex SHA-256 digest of ``namespace + entity_ref``.

    Raises:
        SchemaError: If entity_ref is not exactly 32 bytes.
    """
    if len(entity_ref) != ENTITY_REF_SIZE:
        raise SchemaError(
            f"entity_ref must be {ENTITY_REF_SIZE} bytes, got {len(entity_ref)}"
        )
    return RecordAddress(hashlib.sha256(namespace + bytes(entity_ref)).hexdigest())


def entity_ref_from_hex(value: str) -> bytes:
    """
    Parse a hex entity reference (CLI/JSON form).

    Raises:
        SchemaError: If the value is not 64 hex characters.
    """
    try:
        raw = bytes.fromhex((value or "").strip())
    except ValueError as exc:
        raise SchemaError(f"entity_ref is not valid hex: {value!r}") from exc
    if len(raw) != ENTITY_REF_SIZE:
        raise SchemaError(f"entity_ref must be {ENTITY_REF_SIZE} bytes, got {len(raw)}")
    return raw
