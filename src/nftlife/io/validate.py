"""
Frame validation against the journal table descriptors in nftlife.core.tables.

Row models (nftlife.core.schema) already validate what the ledger records; this is
the last check before bytes hit disk, and the only one for frames handed to
``Journal.append`` directly.

Checks
- Required columns present, and free of nulls after casting.
- With ``strict``: no columns outside the descriptor. Without it, extras are kept
  after the descriptor columns.
- Descriptor columns are cast to their dtype (``i64`` -> Int64, ``str`` -> Utf8);
  absent nullable columns are added as typed nulls.
"""

from __future__ import annotations

import polars as pl

from nftlife.core.grammar import TableName
from nftlife.core.tables import get_table

from .errors import IoSchemaError

DTYPE_MAP: dict[str, type[pl.DataType]] = {
    "i64": pl.Int64,
    "str": pl.Utf8,
}


def validate_frame_for_table(
    df: pl.DataFrame,
    table: TableName | str,
    *,
    strict: bool = True,
) -> pl.DataFrame:
    """
    Return ``df`` cast to the table's descriptor, columns in descriptor order.

    Raises:
        IoSchemaError: Missing or null required columns, extras under ``strict``,
            or a value that does not cast.
    """
    desc = get_table(TableName(table.value if isinstance(table, TableName) else table))

    missing = [c for c in desc.required if c not in df.columns]
    if missing:
        raise IoSchemaError(f"{desc.name.value}: missing required columns {missing!r}")
    extras = [c for c in df.columns if c not in desc.columns]
    if strict and extras:
        raise IoSchemaError(f"{desc.name.value}: unexpected columns {extras!r}")

    exprs = [
        pl.col(col).cast(DTYPE_MAP[dtype], strict=True)
        if col in df.columns
        else pl.lit(None, dtype=DTYPE_MAP[dtype]).alias(col)
        for col, dtype in desc.columns.items()
    ]
    try:
        df = df.with_columns(exprs)
    except pl.exceptions.PolarsError as exc:
        raise IoSchemaError(f"{desc.name.value}: cannot cast to descriptor dtypes: {exc}") from exc

    nulls = [c for c in desc.required if df.get_column(c).null_count()]
    if nulls:
        raise IoSchemaError(f"{desc.name.value}: required columns contain nulls {nulls!r}")
    return df.select([*desc.columns, *extras])
