"""
Append path of the journal: validated frame -> one Parquet part per bucket -> manifest.

Every part is written by pyarrow to ``<part>.parquet.tmp``, fsynced, and renamed into
place before the manifest learns about it, so readers that go through the manifest
never see a partial part. Parts carry the schema version and table name in their
key-value metadata.
"""

from __future__ import annotations

from typing import Any

import polars as pl
import pyarrow as pa
import pyarrow.parquet as pq

from nftlife.core.grammar import TableName
from nftlife.core.versioning import SCHEMA_V

from .config import IoSettings
from .errors import IoSchemaError, IoWriteError
from .fs import staged_path
from .manifest import JournalPart, open_manifest, save_manifest
from .paths import new_part_path
from .validate import validate_frame_for_table

SCHEMA_VERSION_KEY = b"nftlife_schema_version"
TABLE_NAME_KEY = b"nftlife_table_name"


def _with_buckets(df: pl.DataFrame, bucket_seconds: int) -> pl.DataFrame:
    """
    Raises:
        IoSchemaError: If ts is missing, not integral, or negative.
    """
    if "ts" not in df.columns:
        raise IoSchemaError("column 'ts' is required to compute bucket partitioning")
    try:
        df = df.with_columns(
            (pl.col("ts").cast(pl.Int64, strict=True) // bucket_seconds).alias("bucket")
        )
    except pl.exceptions.PolarsError as exc:
        raise IoSchemaError(f"column 'ts' is not an integer: {exc}") from exc
    lowest = df.get_column("bucket").min()
    if lowest is not None and lowest < 0:  # type: ignore[operator]
        raise IoSchemaError("column 'ts' must be >= 0 for bucket partitioning")
    return df


def _write_part(settings: IoSettings, table: str, bucket: int, frame: pl.DataFrame) -> str:
    path = new_part_path(settings, table, bucket)
    arrow = frame.to_arrow()
    arrow = arrow.replace_schema_metadata(
        {
            **(arrow.schema.metadata or {}),
            SCHEMA_VERSION_KEY: SCHEMA_V.tag().encode("utf-8"),
            TABLE_NAME_KEY: table.encode("utf-8"),
        }
    )
    try:
        with staged_path(path) as tmp_path:
            pq.write_table(
                arrow,
                tmp_path,
                compression=settings.compression,
                row_group_size=settings.row_group_size,
            )
    except (OSError, pa.ArrowException) as exc:
        raise IoWriteError(f"failed to write {table} part for bucket {bucket}: {exc}") from exc
    return path


def append(settings: IoSettings, table: TableName | str, df: pl.DataFrame) -> dict[str, Any]:
    """
    Append rows to a journal table.

    Returns:
        dict[str, Any]: ``{"table", "rows", "buckets", "parts"}`` where each part is
        ``{"bucket", "path", "rows"}``.

    Raises:
        IoSchemaError: The frame does not fit the table descriptor.
        IoWriteError: A part could not be written.
        IoManifestError: The manifest is unreadable, pinned to another bucket
            width, or could not be saved.
    """
    tname = table.value if isinstance(table, TableName) else str(table)
    if df.is_empty():
        return {"table": tname, "rows": 0, "buckets": [], "parts": []}

    frame = validate_frame_for_table(
        _with_buckets(df, settings.journal_bucket_seconds), tname, strict=settings.strict_schema
    )
    manifest = open_manifest(settings, tname)
    parts: list[dict[str, Any]] = []
    for (bucket,), part_frame in sorted(frame.partition_by("bucket", as_dict=True).items()):
        path = _write_part(settings, tname, int(bucket), part_frame)
        manifest.add_part(int(bucket), JournalPart.describe(path, part_frame))
        parts.append({"bucket": int(bucket), "path": path, "rows": part_frame.height})
    save_manifest(settings, manifest)
    return {
        "table": tname,
        "rows": frame.height,
        "buckets": [p["bucket"] for p in parts],
        "parts": parts,
    }


def read_schema_version(path: str) -> str | None:
    """Schema version tag embedded in a written part, if any."""
    raw = (pq.read_schema(path).metadata or {}).get(SCHEMA_VERSION_KEY)
    return None if raw is None else raw.decode("utf-8")
