"""
Journal facade for nftlife.io.

Provides an object bound to IoSettings that records lifecycle events and state
snapshots as append-only Parquet tables and reads them back with
scan/read/history/manifest/rebuild_manifest helpers. Rows are validated by the
nftlife.core.schema row models before they become frames.

Source of truth
- Table names: nftlife.core.grammar.TableName
- Descriptors: nftlife.core.tables (partitioning=["bucket"], version=SCHEMA_V)
- Row models: nftlife.core.schema.LifecycleEventRow / StateSnapshotRow

Import DAG discipline
- Depends only on stdlib, polars/pyarrow, and nftlife.core.* (via read/write/manifest).
- Must not import nftlife.ledger.

Notes
- One Parquet part per recorded row keeps each ledger operation durable on its own;
  callers that batch (simulations, imports) use ``append_events``/``append_snapshots``.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Any

import polars as pl

from nftlife.core.grammar import TableName
from nftlife.core.schema import LifecycleEventRow, StateSnapshotRow

from .config import IoSettings
from .manifest import TableManifest, load_manifest, rebuild_manifest, save_manifest
from .read import scan as _scan
from .write import append as _append


def _table_name(table: TableName | str) -> str:
    return table.value if isinstance(table, TableName) else str(table)


class Journal:
    """
    Facade bound to a specific IoSettings.

    Notes:
        - All schema/dtype decisions are delegated to nftlife.core.tables.
        - Appends are serialized with a process-local lock (single writer per
          table manifest).
    """

    def __init__(self, settings: IoSettings) -> None:
        """
        Args:
            settings (IoSettings): IO configuration (root_dir, compression, etc.).

        Notes:
            This does not perform any I/O at construction time.
        """
        self.settings = settings
        self._lock = threading.Lock()

    # ---------------------------------------------------------------------
    # Write
    # ---------------------------------------------------------------------
    def append(self, table: TableName | str, df: pl.DataFrame) -> dict[str, Any]:
        """
        Append a Polars DataFrame to a journal table with atomic semantics.

        Raises:
            nftlife.io.errors.IoSchemaError: Schema validation failed vs core descriptor.
            nftlife.io.errors.IoWriteError: Parquet write/rename failed.
            nftlife.io.errors.IoManifestError: Manifest write failed.
        """
        with self._lock:
            return _append(self.settings, table, df)

    def append_events(self, rows: Iterable[LifecycleEventRow]) -> dict[str, Any]:
        df = pl.DataFrame([r.model_dump() for r in rows])
        return self.append(TableName.LIFECYCLE_EVENTS, df)

    def append_snapshots(self, rows: Iterable[StateSnapshotRow]) -> dict[str, Any]:
        df = pl.DataFrame([r.model_dump() for r in rows])
        return self.append(TableName.STATE_SNAPSHOTS, df)

    def record_event(self, row: LifecycleEventRow) -> dict[str, Any]:
        """Record one attempted operation (applied or rejected)."""
        return self.append_events([row])

    def record_snapshot(self, row: StateSnapshotRow) -> dict[str, Any]:
        """Record the post-state of an applied operation."""
        return self.append_snapshots([row])

    # ---------------------------------------------------------------------
    # Read
    # ---------------------------------------------------------------------
    def scan(
        self,
        table: TableName | str,
        *,
        ts_min: int | None = None,
        ts_max: int | None = None,
        address: str | None = None,
    ) -> pl.LazyFrame:
        """LazyFrame over the parts the manifest selects for the filters."""
        return _scan(self.settings, table, ts_min=ts_min, ts_max=ts_max, address=address)

    def read(
        self,
        table: TableName | str,
        *,
        ts_min: int | None = None,
        ts_max: int | None = None,
        address: str | None = None,
        limit: int | None = None,
    ) -> pl.DataFrame:
        """Collect :meth:`scan`, capped at ``limit`` rows when given."""
        lf = self.scan(table, ts_min=ts_min, ts_max=ts_max, address=address)
        return (lf if limit is None else lf.limit(limit)).collect()

    def history(
        self, address: str, table: TableName | str = TableName.LIFECYCLE_EVENTS
    ) -> pl.DataFrame:
        """
        Every journal row of one record address, ordered by ts.

        Only parts whose manifest entry lists the address are opened.

        Examples:
            >>> journal.history(state.address).select("operation", "outcome")  # doctest: +SKIP
        """
        return self.scan(table, address=address).sort("ts", maintain_order=True).collect()

    # ---------------------------------------------------------------------
    # Manifest
    # ---------------------------------------------------------------------
    def manifest(self, table: TableName | str) -> TableManifest | None:
        """Load the per-table manifest if present."""
        return load_manifest(self.settings, _table_name(table))

    def rebuild_manifest(self, table: TableName | str) -> TableManifest:
        """
        Rebuild the manifest from the parts on disk and save it atomically.
        """
        with self._lock:
            manifest = rebuild_manifest(self.settings, _table_name(table))
            save_manifest(self.settings, manifest)
        return manifest
