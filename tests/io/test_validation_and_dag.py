import os
import subprocess
import sys
from pathlib import Path

import polars as pl
import pytest

from nftlife.core.grammar import TableName
from nftlife.io.config import IoSettings
from nftlife.io.errors import IoSchemaError
from nftlife.io.journal import Journal
from nftlife.io.validate import validate_frame_for_table

SRC = str(Path(__file__).resolve().parents[2] / "src")


def _event_frame(**over) -> pl.DataFrame:
    data = {
        "ts": [0, 1, 2],
        "operation": ["mint", "mint", "mint"],
        "outcome": ["applied", "applied", "applied"],
        "entity_address": ["aa" * 32] * 3,
        "detail": ["{}"] * 3,
    }
    data.update(over)
    return pl.DataFrame(data)


def test_validation_extra_columns_strict(tmp_path: Path):
    settings = IoSettings(root_dir=str(tmp_path), strict_schema=True)
    journal = Journal(settings)
    with pytest.raises(IoSchemaError):
        journal.append(TableName.LIFECYCLE_EVENTS, _event_frame(foo=[1, 2, 3]))


def test_validation_extra_columns_lenient(tmp_path: Path):
    settings = IoSettings(root_dir=str(tmp_path), strict_schema=False)
    summary = Journal(settings).append(TableName.LIFECYCLE_EVENTS, _event_frame(foo=[1, 2, 3]))
    assert summary["rows"] == 3


def test_validation_missing_required_and_nulls():
    with pytest.raises(IoSchemaError):
        validate_frame_for_table(_event_frame().drop("detail"), TableName.LIFECYCLE_EVENTS)
    frame = _event_frame(detail=["{}", None, "{}"]).with_columns(pl.lit(0).alias("bucket"))
    with pytest.raises(IoSchemaError):
        validate_frame_for_table(frame, TableName.LIFECYCLE_EVENTS)


def test_validation_fills_nullable_and_casts():
    frame = _event_frame(ts=["0", "1", "2"]).with_columns(pl.lit(0).alias("bucket"))
    out = validate_frame_for_table(frame, TableName.LIFECYCLE_EVENTS)
    assert out.schema["ts"] == pl.Int64
    assert out.schema["level"] == pl.Int64
    assert out.get_column("error_code").null_count() == 3
    with pytest.raises(IoSchemaError):
        validate_frame_for_table(
            _event_frame(ts=["zero", "1", "2"]).with_columns(pl.lit(0).alias("bucket")),
            TableName.LIFECYCLE_EVENTS,
        )


def test_negative_ts_rejected(tmp_path: Path):
    journal = Journal(IoSettings(root_dir=str(tmp_path)))
    with pytest.raises(IoSchemaError):
        journal.append(TableName.LIFECYCLE_EVENTS, _event_frame(ts=[-1, 0, 1]))


def _modules_after_import(module: str, forbidden: list[str]) -> str:
    # Run in a clean Python process to avoid pollution from other tests
    code = f"""
import sys
import {module}  # noqa: F401

forbidden = {forbidden!r}
present = [m for m in forbidden if m in sys.modules]
print(",".join(present))
"""
    env = dict(os.environ)
    env["PYTHONPATH"] = SRC + os.pathsep + env.get("PYTHONPATH", "")
    proc = subprocess.run([sys.executable, "-c", code], capture_output=True, text=True, check=True, env=env)
    return proc.stdout.strip()


def test_import_dag_io_does_not_import_ledger():
    assert _modules_after_import("nftlife.io", ["nftlife.ledger", "nftlife.lifecycle"]) == ""


def test_import_dag_lifecycle_is_pure():
    assert _modules_after_import("nftlife.lifecycle.config", ["nftlife.io", "nftlife.ledger", "polars"]) == ""


def test_import_dag_core_is_zero_io():
    assert _modules_after_import("nftlife.core.codec", ["nftlife.io", "nftlife.lifecycle", "polars", "loguru"]) == ""
