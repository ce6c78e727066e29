"""
Path and layout helpers for nftlife.io.

Overview (file protocol baseline)
- <root>/records/<aa>/<address>.bin
- <root>/journal/tables/<table_name>/bucket=000123/part-<UUID>.parquet
- <root>/journal/tables/<table_name>/manifest.json

Records are fanned out by the first two hex characters of their address so no
directory grows unbounded.

Source of truth
- Canonical table names: nftlife.core.grammar.TableName (lower_snake).
- Partitioning discipline: ["bucket"], with bucket computed in IO as
  ts // IoSettings.journal_bucket_seconds (defaults sourced from nftlife.core.constants).
- Record addresses: nftlife.core.hashing.derive_record_address.

Import DAG discipline
- stdlib + nftlife.io.config only.
"""

from __future__ import annotations

import os
import re
import uuid
from typing import Final

from .config import IoSettings

_BUCKET_PREFIX: Final[str] = "bucket="
_MANIFEST_NAME: Final[str] = "manifest.json"
_RECORD_SUFFIX: Final[str] = ".bin"
_ADDRESS_RE: Final[re.Pattern[str]] = re.compile(r"^[0-9a-f]{64}$")


def bucket_id_for_ts(ts: int, bucket_seconds: int) -> int:
    """
    Compute the bucket id from a unix timestamp using floor division.

    Args:
        ts (int): Unix seconds (>= 0).
        bucket_seconds (int): Seconds per bucket (>= 1).

    Returns:
        int: Non-negative bucket id.

    Raises:
        ValueError: If bucket_seconds < 1 or ts < 0.
    """
    if bucket_seconds <= 0:
        raise ValueError("bucket_seconds must be >= 1")
    if ts < 0:
        raise ValueError("ts must be >= 0")
    return ts // bucket_seconds


def format_bucket_dir(bucket_id: int) -> str:
    """
    Format a bucket directory name as 'bucket=000123'.

    Raises:
        ValueError: If bucket_id < 0.
    """
    if bucket_id < 0:
        raise ValueError("bucket_id must be >= 0")
    return f"{_BUCKET_PREFIX}{bucket_id:06d}"


def parse_bucket_dir(name: str) -> int | None:
    """Inverse of format_bucket_dir; None for names that are not bucket dirs."""
    if not name.startswith(_BUCKET_PREFIX):
        return None
    try:
        return int(name[len(_BUCKET_PREFIX) :])
    except ValueError:
        return None


# -----------------------------------------------------------------------------
# Records
# -----------------------------------------------------------------------------


def validate_address(address: str) -> str:
    """
    Validate that an address is a lowercase 64-character hex digest.

    Raises:
        ValueError: If the address could escape the records directory.
    """
    if not _ADDRESS_RE.match(address or ""):
        raise ValueError(f"record address must be 64 lowercase hex characters, got {address!r}")
    return address


def records_root(settings: IoSettings) -> str:
    """Path "<root>/records"."""
    return os.path.join(settings.root_dir, "records")


def record_path(settings: IoSettings, address: str) -> str:
    """Path "<root>/records/<aa>/<address>.bin"."""
    validate_address(address)
    return os.path.join(records_root(settings), address[:2], address + _RECORD_SUFFIX)


def address_from_record_path(path: str) -> str | None:
    name = os.path.basename(path)
    if not name.endswith(_RECORD_SUFFIX):
        return None
    address = name[: -len(_RECORD_SUFFIX)]
    return address if _ADDRESS_RE.match(address) else None


def record_suffix() -> str:
    return _RECORD_SUFFIX


# -----------------------------------------------------------------------------
# Journal
# -----------------------------------------------------------------------------


def table_dir(settings: IoSettings, table_name: str) -> str:
    """Path "<root>/journal/tables/<table_name>"."""
    return os.path.join(settings.root_dir, "journal", "tables", table_name)


def manifest_path(settings: IoSettings, table_name: str) -> str:
    return os.path.join(table_dir(settings, table_name), _MANIFEST_NAME)


def bucket_dir(settings: IoSettings, table_name: str, bucket_id: int) -> str:
    """Path "<root>/journal/tables/<table_name>/bucket=000123"."""
    return os.path.join(table_dir(settings, table_name), format_bucket_dir(bucket_id))


def new_part_path(settings: IoSettings, table_name: str, bucket_id: int) -> str:
    """
    Fresh, collision-free part path inside a bucket directory.

    The writer stages it at ``<path>.tmp`` and renames it into place.
    """
    return os.path.join(bucket_dir(settings, table_name, bucket_id), f"part-{uuid.uuid4().hex}.parquet")
