"""
Frozen table descriptors for the nftlife journal (Parquet/Arrow-like).

Notes:
    - Descriptors declare column names/dtypes, partitioning, required/nullable
      columns, and the pinned schema version.
    - Column names are lower_snake.
    - Partitioning is always ["bucket"]; the IO layer computes bucket as
      ts // IoSettings.journal_bucket_seconds.
    - Core is zero-IO; nftlife.io materializes and validates frames against these.
"""

from __future__ import annotations

from dataclasses import dataclass

from .grammar import TableName
from .versioning import SCHEMA_V, SchemaVersion

__all__ = [
    "TableDescriptor",
    "LIFECYCLE_EVENTS_DESC",
    "STATE_SNAPSHOTS_DESC",
    "get_table",
    "list_tables",
]


@dataclass(frozen=True)
class TableDescriptor:
    """
    Frozen descriptor for a canonical journal table.

    Attributes:
        name (TableName): Canonical table identifier (lower_snake serialized).
        columns (dict[str, str]): Mapping of column_name -> dtype where
            dtype in {"i64","str"}.
        partitioning (list[str]): Partition columns (always ["bucket"]).
        required (list[str]): Columns that must exist and be populated.
        nullable (list[str]): Columns permitted to contain nulls.
        version (SchemaVersion): Pinned to nftlife.core.versioning.SCHEMA_V.

    Notes:
        - required is a subset of columns; required and nullable are disjoint.
    """

    name: TableName
    columns: dict[str, str]
    partitioning: list[str]
    required: list[str]
    nullable: list[str]
    version: SchemaVersion


# Every attempted operation, applied or rejected.
LIFECYCLE_EVENTS_DESC = TableDescriptor(
    name=TableName.LIFECYCLE_EVENTS,
    columns={
        "bucket": "i64",
        "ts": "i64",
        "operation": "str",
        "outcome": "str",
        "entity_address": "str",
        "error_code": "str",
        "level": "i64",
        "rarity": "str",
        "evolution_count": "i64",
        "fusion_potential": "i64",
        "achievement_points": "i64",
        "detail": "str",
    },
    partitioning=["bucket"],
    required=["bucket", "ts", "operation", "outcome", "entity_address", "detail"],
    nullable=[
        "error_code",
        "level",
        "rarity",
        "evolution_count",
        "fusion_potential",
        "achievement_points",
    ],
    version=SCHEMA_V,
)

# Post-state after each applied operation.
STATE_SNAPSHOTS_DESC = TableDescriptor(
    name=TableName.STATE_SNAPSHOTS,
    columns={
        "bucket": "i64",
        "ts": "i64",
        "operation": "str",
        "entity_address": "str",
        "entity_ref": "str",
        "level": "i64",
        "rarity": "str",
        "mint_timestamp": "i64",
        "last_updated_timestamp": "i64",
        "evolution_count": "i64",
        "fusion_potential": "i64",
        "achievement_points": "i64",
        "uri": "str",
    },
    partitioning=["bucket"],
    required=[
        "bucket",
        "ts",
        "operation",
        "entity_address",
        "entity_ref",
        "level",
        "rarity",
        "mint_timestamp",
        "last_updated_timestamp",
        "evolution_count",
        "fusion_potential",
        "achievement_points",
        "uri",
    ],
    nullable=[],
    version=SCHEMA_V,
)


_TABLES: dict[TableName, TableDescriptor] = {
    LIFECYCLE_EVENTS_DESC.name: LIFECYCLE_EVENTS_DESC,
    STATE_SNAPSHOTS_DESC.name: STATE_SNAPSHOTS_DESC,
}


def get_table(name: TableName) -> TableDescriptor:
    """Look up a table descriptor by canonical name."""
    return _TABLES[name]


def list_tables() -> list[TableDescriptor]:
    """Return all registered table descriptors in registry order."""
    return list(_TABLES.values())
