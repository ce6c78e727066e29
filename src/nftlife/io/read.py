"""
Read side of the journal: manifest-selected parts -> polars LazyFrame.

The manifest narrows the parts to open (bucket ids, part ts ranges, part address
lists); the row filters are then applied as well, so results are exact whatever
a part over-covers.

A table that was never written scans as an empty typed frame. A table directory
without a manifest raises IoManifestError; ``Journal.rebuild_manifest()`` recovers it.
"""

from __future__ import annotations

import os

import polars as pl

from nftlife.core.grammar import TableName
from nftlife.core.tables import get_table

from .config import IoSettings
from .errors import IoManifestError
from .manifest import load_manifest
from .paths import bucket_dir, table_dir
from .validate import DTYPE_MAP


def empty_frame(table: str) -> pl.DataFrame:
    """Zero-row frame carrying the descriptor's columns and dtypes."""
    desc = get_table(TableName(table))
    return pl.DataFrame(schema={c: DTYPE_MAP[d] for c, d in desc.columns.items()})  # type: ignore[misc]


def scan(
    settings: IoSettings,
    table: TableName | str,
    *,
    ts_min: int | None = None,
    ts_max: int | None = None,
    address: str | None = None,
) -> pl.LazyFrame:
    """
    Lazy scan of the parts that may hold rows in ``[ts_min, ts_max]`` for ``address``.

    Raises:
        IoManifestError: The table directory exists but its manifest is missing.
    """
    tname = table.value if isinstance(table, TableName) else str(table)
    manifest = load_manifest(settings, tname)
    if manifest is None:
        if os.path.isdir(table_dir(settings, tname)):
            raise IoManifestError(f"manifest missing for table {tname!r}; call Journal.rebuild_manifest()")
        return empty_frame(tname).lazy()

    paths = [
        os.path.join(bucket_dir(settings, tname, bucket), part.file)
        for bucket, part in manifest.select(ts_min, ts_max, address)
    ]
    if not paths:
        return empty_frame(tname).lazy()

    lf = pl.scan_parquet(paths)
    if ts_min is not None:
        lf = lf.filter(pl.col("ts") >= ts_min)
    if ts_max is not None:
        lf = lf.filter(pl.col("ts") <= ts_max)
    if address is not None:
        lf = lf.filter(pl.col("entity_address") == address)
    return lf
