"""
File-backed record store and the per-record lock table shared by every store.

Layout: one binary record (nftlife.core.codec) per address at
``<root>/records/<aa>/<address>.bin``. Writes go through the atomic
tmp -> fsync -> rename path, so a reader never sees a half-written record.

Concurrency
- ``RecordLocks`` hands out one lock per address in use. ``locked(*addresses)`` acquires
  them in sorted order, so two operations touching the same pair of records
  cannot deadlock.
- ``compare_and_swap`` compares the encoded bytes on disk with ``encode(expected)``
  under a store-wide mutex. Codec encoding is deterministic, so byte equality is
  record equality.

Notes
- Locks are process-local. Several processes sharing one root_dir are out of scope.
- Retiring a record unlinks its file; the journal keeps its history.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger

from nftlife.core.codec import decode, encode
from nftlife.core.schema import NftState

from .config import IoSettings
from .errors import IoWriteError, RecordNotFound
from .fs import read_bytes, walk_files, write_bytes_atomic
from .paths import address_from_record_path, record_path, record_suffix, records_root

__all__ = ["RecordLocks", "FileStore"]


class RecordLocks:
    """
    Per-address locks, created on first use and dropped when the last holder or
    waiter releases, so the table only holds addresses that are in use.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._users: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def _acquire(self, address: str) -> None:
        with self._guard:
            lock = self._locks.get(address)
            if lock is None:
                lock = self._locks[address] = threading.Lock()
            self._users[address] = self._users.get(address, 0) + 1
        lock.acquire()

    def _release(self, address: str) -> None:
        with self._guard:
            self._locks[address].release()
            self._users[address] -= 1
            if not self._users[address]:
                del self._users[address]
                del self._locks[address]

    @contextmanager
    def locked(self, *addresses: str) -> Iterator[None]:
        """Hold the locks of ``addresses`` (deduplicated, sorted) for the block."""
        held: list[str] = []
        try:
            for address in sorted(set(addresses)):
                self._acquire(address)
                held.append(address)
            yield
        finally:
            for address in reversed(held):
                self._release(address)


class FileStore:
    """
    Record store persisting one codec-encoded file per record.

    Args:
        settings (IoSettings): Provides root_dir.

    Examples:
        >>> store = FileStore(IoSettings(root_dir="ledger"))  # doctest: +SKIP
        >>> store.compare_and_swap(state.address, None, state)  # doctest: +SKIP
        True
    """

    def __init__(self, settings: IoSettings) -> None:
        self.settings = settings
        self._locks = RecordLocks()
        self._mutex = threading.Lock()

    def _read(self, address: str) -> bytes | None:
        return read_bytes(record_path(self.settings, address))

    def get(self, address: str) -> NftState | None:
        """
        Raises:
            nftlife.core.errors.SchemaError / VersionMismatch: On a corrupt record file.
        """
        raw = self._read(address)
        return None if raw is None else decode(raw)

    def load(self, address: str) -> NftState:
        """
        Raises:
            RecordNotFound: If no record exists at the address.
        """
        state = self.get(address)
        if state is None:
            raise RecordNotFound(f"no record at {address}")
        return state

    def compare_and_swap(
        self, address: str, expected: NftState | None, new: NftState | None
    ) -> bool:
        """
        Replace the record at ``address`` iff it currently equals ``expected``.

        ``expected=None`` means "must not exist" (insert); ``new=None`` deletes.

        Returns:
            bool: False when the current record differs from ``expected``.

        Raises:
            IoWriteError: If the atomic write or unlink fails.
        """
        path = record_path(self.settings, address)
        with self._mutex:
            current = read_bytes(path)
            wanted = None if expected is None else encode(expected)
            if current != wanted:
                return False
            try:
                if new is None:
                    os.remove(path)
                else:
                    write_bytes_atomic(path, encode(new))
            except OSError as exc:
                raise IoWriteError(f"failed to write record {address}: {exc}") from exc
        logger.trace("record {} {}", address, "retired" if new is None else "written")
        return True

    def retire(self, address: str, expected: NftState) -> bool:
        return self.compare_and_swap(address, expected, None)

    @contextmanager
    def locked(self, *addresses: str) -> Iterator[None]:
        with self._locks.locked(*addresses):
            yield

    def list_addresses(self) -> list[str]:
        """Addresses of every stored record, sorted."""
        out: list[str] = []
        for path in walk_files(records_root(self.settings), record_suffix()):
            address = address_from_record_path(path)
            if address is not None:
                out.append(address)
        return sorted(out)

    def __contains__(self, address: str) -> bool:
        return os.path.exists(record_path(self.settings, address))

    def __len__(self) -> int:
        return len(self.list_addresses())
