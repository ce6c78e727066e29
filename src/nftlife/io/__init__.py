"""
nftlife.io: persistence for records and the lifecycle journal.

## Responsibilities
- FileStore: one codec-encoded file per record with atomic replace writes,
  per-record locks, and compare-and-swap by byte comparison.
- Journal: Polars/Arrow-first append-only Parquet tables (lifecycle_events,
  state_snapshots) with atomic tmp -> final renames, per-table manifests that
  list each part's ts range and entity addresses, time-bucket partitioning, and schema validation against nftlife.core descriptors.
- IoSettings: configuration (defaults sourced from nftlife.core.constants).
- configure_logging: loguru sinks for entry points.

## Import DAG discipline
- Depends only on stdlib, polars/pyarrow, loguru, and nftlife.core.*.
- MUST NOT import nftlife.ledger.

## Examples
```python
from nftlife.io import IoSettings, Journal
from nftlife.core.grammar import TableName

settings = IoSettings(root_dir="ledger")  # doctest: +SKIP
journal = Journal(settings)  # doctest: +SKIP
journal.read(TableName.LIFECYCLE_EVENTS, ts_min=1_700_000_000)  # doctest: +SKIP
journal.history(address)  # doctest: +SKIP
```

## Notes
- IO write path: tmp file -> fsync -> os.replace(tmp, final) on the same filesystem.
- Partitioning: bucket = ts // IoSettings.journal_bucket_seconds; bucket dirs are
  zero-padded (e.g., bucket=019650).
"""

from __future__ import annotations

from .config import IoSettings
from .journal import Journal
from .logs import configure_logging
from .records import FileStore

__all__ = [
    "IoSettings",
    "Journal",
    "FileStore",
    "configure_logging",
]
