"""
Journal table manifests: which Parquet parts exist and what each one covers.

Each table keeps ``<table_dir>/manifest.json``. Besides the ts range and row count
of every part, the manifest lists the record addresses a part mentions, so
``Journal.history(address)`` opens only the parts that can hold rows for it. Ledger
operations write one small part per attempt, which keeps those lists short.

The bucket width is pinned in the manifest. Appending with a different
``journal_bucket_seconds`` would mix widths under one table and is refused.

Examples:
    >>> m = TableManifest.empty("lifecycle_events", bucket_seconds=100)
    >>> m.add_part(0, JournalPart(file="part-a.parquet", rows=2, size=10,
    ...                           ts_min=5, ts_max=9, addresses=["aa" * 32]))
    >>> [b for b, _ in m.select(address="aa" * 32)], [b for b, _ in m.select(ts_min=100)]
    ([0], [])
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from datetime import UTC, datetime

import polars as pl
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from nftlife.core.versioning import SCHEMA_V

from .config import IoSettings
from .errors import IoManifestError
from .fs import read_bytes, write_bytes_atomic
from .paths import bucket_dir, bucket_id_for_ts, manifest_path, parse_bucket_dir, table_dir

__all__ = ["JournalPart", "TableManifest", "load_manifest", "save_manifest", "open_manifest", "rebuild_manifest"]


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat()


class JournalPart(BaseModel):
    """One Parquet file under a bucket directory."""

    model_config = ConfigDict(extra="forbid")

    file: str
    rows: int = Field(ge=0)
    size: int = Field(ge=0)
    ts_min: int
    ts_max: int
    addresses: list[str] = Field(default_factory=list)
    written_at: str = Field(default_factory=_utc_now_iso)

    @classmethod
    def describe(cls, path: str, frame: pl.DataFrame) -> JournalPart:
        """Summarize a written part from the frame that produced it."""
        return cls(
            file=os.path.basename(path),
            rows=frame.height,
            size=os.path.getsize(path),
            ts_min=int(frame.get_column("ts").min()),  # type: ignore[arg-type]
            ts_max=int(frame.get_column("ts").max()),  # type: ignore[arg-type]
            addresses=frame.get_column("entity_address").unique().sort().to_list(),
        )

    def covers(self, ts_min: int | None, ts_max: int | None, address: str | None) -> bool:
        if ts_min is not None and self.ts_max < ts_min:
            return False
        if ts_max is not None and self.ts_min > ts_max:
            return False
        return address is None or address in self.addresses


class TableManifest(BaseModel):
    """
    Manifest persisted at ``<table_dir>/manifest.json``.

    Attributes:
        table (str): Canonical table name.
        schema_version (str): ``SCHEMA_V.tag()`` of the parts it lists.
        bucket_seconds (int): Bucket width every part was written with.
        updated_at (str): ISO-8601 time of the last change.
        buckets (dict[int, list[JournalPart]]): Bucket id -> parts in write order.
    """

    model_config = ConfigDict(extra="forbid")

    table: str
    schema_version: str = SCHEMA_V.tag()
    bucket_seconds: int = Field(ge=1)
    updated_at: str = Field(default_factory=_utc_now_iso)
    buckets: dict[int, list[JournalPart]] = Field(default_factory=dict)

    @classmethod
    def empty(cls, table: str, bucket_seconds: int) -> TableManifest:
        return cls(table=table, bucket_seconds=bucket_seconds)

    @property
    def row_count(self) -> int:
        return sum(p.rows for parts in self.buckets.values() for p in parts)

    def bucket_rows(self, bucket: int) -> int:
        return sum(p.rows for p in self.buckets.get(bucket, []))

    def bucket_span(self, bucket: int) -> tuple[int, int]:
        """(ts_min, ts_max) over a bucket's parts."""
        parts = self.buckets[bucket]
        return min(p.ts_min for p in parts), max(p.ts_max for p in parts)

    def add_part(self, bucket: int, part: JournalPart) -> None:
        self.buckets.setdefault(bucket, []).append(part)
        self.updated_at = _utc_now_iso()

    def select(
        self,
        ts_min: int | None = None,
        ts_max: int | None = None,
        address: str | None = None,
    ) -> Iterator[tuple[int, JournalPart]]:
        """
        Yield (bucket, part) for every part that may hold matching rows.

        Whole buckets outside ``[ts_min, ts_max]`` are skipped by bucket id alone.
        """
        lo = None if ts_min is None else bucket_id_for_ts(max(ts_min, 0), self.bucket_seconds)
        hi = None if ts_max is None else bucket_id_for_ts(max(ts_max, 0), self.bucket_seconds)
        for bucket in sorted(self.buckets):
            if (lo is not None and bucket < lo) or (hi is not None and bucket > hi):
                continue
            for part in self.buckets[bucket]:
                if part.covers(ts_min, ts_max, address):
                    yield bucket, part


def load_manifest(settings: IoSettings, table_name: str) -> TableManifest | None:
    """
    Returns:
        TableManifest | None: None when the table has no manifest file.

    Raises:
        IoManifestError: If the file exists but does not parse as a manifest.
    """
    path = manifest_path(settings, table_name)
    try:
        raw = read_bytes(path)
    except OSError as exc:
        raise IoManifestError(f"cannot read manifest at {path}: {exc}") from exc
    if raw is None:
        return None
    try:
        return TableManifest.model_validate_json(raw)
    except ValidationError as exc:
        raise IoManifestError(f"corrupt manifest at {path}: {exc}") from exc


def save_manifest(settings: IoSettings, manifest: TableManifest) -> None:
    """
    Raises:
        IoManifestError: If the atomic write fails.
    """
    path = manifest_path(settings, manifest.table)
    try:
        write_bytes_atomic(path, manifest.model_dump_json(indent=2).encode("utf-8"))
    except OSError as exc:
        raise IoManifestError(f"failed to write manifest for table {manifest.table!r}: {exc}") from exc


def open_manifest(settings: IoSettings, table_name: str) -> TableManifest:
    """
    Load the manifest an append extends, or start an empty one.

    Raises:
        IoManifestError: If the stored bucket width differs from the settings.
    """
    manifest = load_manifest(settings, table_name)
    if manifest is None:
        return TableManifest.empty(table_name, settings.journal_bucket_seconds)
    if manifest.bucket_seconds != settings.journal_bucket_seconds:
        raise IoManifestError(
            f"table {table_name!r} was written with {manifest.bucket_seconds}s buckets, "
            f"settings ask for {settings.journal_bucket_seconds}s"
        )
    return manifest


def rebuild_manifest(settings: IoSettings, table_name: str) -> TableManifest:
    """
    Recreate a manifest from the Parquet parts on disk (recovery path).

    The bucket width is taken from the settings; parts are re-read to recover their
    ts ranges and addresses.
    """
    manifest = TableManifest.empty(table_name, settings.journal_bucket_seconds)
    tdir = table_dir(settings, table_name)
    names = sorted(os.listdir(tdir)) if os.path.isdir(tdir) else []
    for name in names:
        bucket = parse_bucket_dir(name)
        if bucket is None:
            continue
        bdir = bucket_dir(settings, table_name, bucket)
        for fn in sorted(f for f in os.listdir(bdir) if f.endswith(".parquet")):
            path = os.path.join(bdir, fn)
            frame = pl.read_parquet(path, columns=["ts", "entity_address"])
            if frame.height:
                manifest.add_part(bucket, JournalPart.describe(path, frame))
    return manifest
