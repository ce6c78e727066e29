"""
Filesystem helpers for nftlife.io.

Every durable write (record files, Parquet parts, manifests) goes through
``staged_path``: the caller writes ``<path>.tmp``, which is fsynced and moved onto
``path`` with ``os.replace`` only when the block exits cleanly. A failed block
removes the tmp file and leaves ``path`` as it was.

Import DAG discipline
- stdlib-only.

Notes
- os.replace is atomic only when tmp and final live on the same filesystem, which
  holds because the tmp file sits next to its target.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager


def fsync_path(path: str) -> None:
    """fsync a file that another library (pyarrow) wrote and closed."""
    fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


@contextmanager
def staged_path(path: str) -> Iterator[str]:
    """
    Yield the tmp path to write; publish it onto ``path`` on a clean exit.

    Raises:
        OSError: From fsync or replace; anything raised inside the block propagates
            unchanged after the tmp file is removed.

    Examples:
        >>> with staged_path("out/part.parquet") as tmp:  # doctest: +SKIP
        ...     pq.write_table(table, tmp)
    """
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    tmp_path = path + ".tmp"
    try:
        yield tmp_path
        fsync_path(tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        remove_quietly(tmp_path)
        raise


def write_bytes_atomic(path: str, payload: bytes) -> None:
    with staged_path(path) as tmp_path:
        with open(tmp_path, "wb") as fh:
            fh.write(payload)


def read_bytes(path: str) -> bytes | None:
    """Return file contents, or None if the file does not exist."""
    try:
        with open(path, "rb") as fh:
            return fh.read()
    except FileNotFoundError:
        return None


def walk_files(root: str, suffix: str) -> list[str]:
    """Sorted full paths of files ending in ``suffix`` under ``root`` ([] if absent)."""
    return sorted(
        os.path.join(dirpath, name)
        for dirpath, _dirnames, filenames in os.walk(root)
        for name in filenames
        if name.endswith(suffix)
    )
