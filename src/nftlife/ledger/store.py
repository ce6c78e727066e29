"""
Record-store contract and the in-memory implementation.

The ledger talks to storage only through ``RecordStore``:

- ``get(address)`` / ``load(address)``: read a record (``load`` raises RecordNotFound).
- ``compare_and_swap(address, expected, new) -> bool``: replace iff the current
  record equals ``expected`` (``None`` = absent); ``new=None`` removes the record.
- ``retire(address, expected)``: remove a record (fusion parent policy).
- ``locked(*addresses)``: hold per-record locks for the duration of an operation,
  acquired in sorted order.
- ``list_addresses()``: every stored address.

Implementations: InMemoryStore (here; keeps codec bytes so it exercises the
persisted layout) and nftlife.io.records.FileStore.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from typing import Protocol, runtime_checkable

from nftlife.core.codec import decode, encode
from nftlife.core.schema import NftState
from nftlife.io.errors import ConcurrentModification, RecordExists, RecordNotFound, StoreError
from nftlife.io.records import RecordLocks

__all__ = [
    "RecordStore",
    "InMemoryStore",
    "StoreError",
    "RecordNotFound",
    "RecordExists",
    "ConcurrentModification",
]


@runtime_checkable
class RecordStore(Protocol):
    def get(self, address: str) -> NftState | None: ...

    def load(self, address: str) -> NftState: ...

    def compare_and_swap(
        self, address: str, expected: NftState | None, new: NftState | None
    ) -> bool: ...

    def retire(self, address: str, expected: NftState) -> bool: ...

    def locked(self, *addresses: str) -> AbstractContextManager[None]: ...

    def list_addresses(self) -> list[str]: ...


class InMemoryStore:
    """
    Dict-backed store holding encoded records.

    Examples:
        >>> from nftlife.core.schema import NftState
        >>> s = NftState(level=1, rarity="common", mint_timestamp=0,
        ...              last_updated_timestamp=0, entity_ref=bytes(32))
        >>> store = InMemoryStore()
        >>> store.compare_and_swap(s.address, None, s)
        True
        >>> store.compare_and_swap(s.address, None, s)
        False
        >>> store.load(s.address) == s
        True
    """

    def __init__(self) -> None:
        self._records: dict[str, bytes] = {}
        self._mutex = threading.Lock()
        self._locks = RecordLocks()

    def get(self, address: str) -> NftState | None:
        raw = self._records.get(address)
        return None if raw is None else decode(raw)

    def load(self, address: str) -> NftState:
        state = self.get(address)
        if state is None:
            raise RecordNotFound(f"no record at {address}")
        return state

    def compare_and_swap(
        self, address: str, expected: NftState | None, new: NftState | None
    ) -> bool:
        with self._mutex:
            wanted = None if expected is None else encode(expected)
            if self._records.get(address) != wanted:
                return False
            if new is None:
                del self._records[address]
            else:
                self._records[address] = encode(new)
            return True

    def retire(self, address: str, expected: NftState) -> bool:
        return self.compare_and_swap(address, expected, None)

    @contextmanager
    def locked(self, *addresses: str) -> Iterator[None]:
        with self._locks.locked(*addresses):
            yield

    def list_addresses(self) -> list[str]:
        return sorted(self._records)

    def raw(self, address: str) -> bytes:
        """Encoded bytes of a record (inspection and tests)."""
        try:
            return self._records[address]
        except KeyError as exc:
            raise RecordNotFound(f"no record at {address}") from exc

    def __contains__(self, address: str) -> bool:
        return address in self._records

    def __len__(self) -> int:
        return len(self._records)
