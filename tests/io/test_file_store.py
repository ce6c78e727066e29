import glob
import os
import threading
from pathlib import Path

import pytest

from nftlife.core.codec import encode
from nftlife.core.errors import SchemaError
from nftlife.io.config import IoSettings
from nftlife.io.errors import RecordNotFound, StoreError
from nftlife.io.paths import record_path, records_root
from nftlife.io.records import FileStore, RecordLocks
from nftlife.ledger.store import RecordStore


def _store(tmp_path: Path) -> FileStore:
    return FileStore(IoSettings(root_dir=str(tmp_path)))


def test_file_store_satisfies_store_protocol(tmp_path: Path):
    assert isinstance(_store(tmp_path), RecordStore)


def test_insert_read_and_layout(tmp_path: Path, make_state):
    store = _store(tmp_path)
    s = make_state(level=2, entity=1)
    assert store.get(s.address) is None
    assert store.compare_and_swap(s.address, None, s) is True
    assert store.load(s.address) == s
    path = record_path(store.settings, s.address)
    with open(path, "rb") as fh:
        assert fh.read() == encode(s)
    assert glob.glob(os.path.join(records_root(store.settings), "**", "*.tmp"), recursive=True) == []
    assert s.address in store
    assert len(store) == 1


def test_compare_and_swap_semantics(tmp_path: Path, make_state):
    store = _store(tmp_path)
    s = make_state(level=2, entity=1)
    newer = s.with_changes(level=3)
    store.compare_and_swap(s.address, None, s)

    assert store.compare_and_swap(s.address, None, newer) is False  # occupied
    assert store.compare_and_swap(s.address, newer, newer) is False  # stale expectation
    assert store.compare_and_swap(s.address, s, newer) is True
    assert store.load(s.address) == newer


def test_retire_and_listing(tmp_path: Path, make_state):
    store = _store(tmp_path)
    states = [make_state(entity=i) for i in (1, 2, 3)]
    for s in states:
        store.compare_and_swap(s.address, None, s)
    assert store.list_addresses() == sorted(s.address for s in states)

    assert store.retire(states[0].address, states[1]) is False
    assert store.retire(states[0].address, states[0]) is True
    assert states[0].address not in store
    with pytest.raises(RecordNotFound):
        store.load(states[0].address)
    assert len(store) == 2


def test_record_not_found_is_store_and_key_error(tmp_path: Path):
    store = _store(tmp_path)
    with pytest.raises(StoreError) as ei:
        store.load("ab" * 32)
    assert isinstance(ei.value, KeyError)
    assert str(ei.value) == "no record at " + "ab" * 32


def test_corrupt_record_surfaces_schema_error(tmp_path: Path):
    store = _store(tmp_path)
    path = record_path(store.settings, "cd" * 32)
    os.makedirs(os.path.dirname(path))
    with open(path, "wb") as fh:
        fh.write(b"\x00" * 10)
    with pytest.raises(SchemaError):
        store.get("cd" * 32)


def test_record_locks_opposite_order_does_not_deadlock():
    locks = RecordLocks()
    done = []

    def worker(pair):
        for _ in range(200):
            with locks.locked(*pair):
                done.append(pair)

    a, b = "aa" * 32, "bb" * 32
    threads = [threading.Thread(target=worker, args=((a, b),)), threading.Thread(target=worker, args=((b, a),))]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    assert not any(t.is_alive() for t in threads)
    assert len(done) == 400

    # Duplicate addresses collapse to one lock.
    with locks.locked(a, a):
        pass
    assert len(locks) == 0


def test_record_locks_are_dropped_after_release():
    locks = RecordLocks()
    for n in range(500):
        with locks.locked(f"{n:064x}"):
            assert len(locks) == 1
    assert len(locks) == 0


def test_record_lock_survives_while_a_waiter_holds_it():
    locks = RecordLocks()
    address = "ee" * 32
    entered = threading.Event()
    order: list[str] = []

    def waiter():
        entered.set()
        with locks.locked(address):
            order.append("waiter")

    with locks.locked(address):
        t = threading.Thread(target=waiter)
        t.start()
        entered.wait(timeout=5)
        order.append("holder")
    t.join(timeout=5)

    assert order == ["holder", "waiter"]
    assert len(locks) == 0


def test_file_store_lookups_of_unknown_addresses_keep_no_locks(tmp_path: Path):
    store = _store(tmp_path)
    for n in range(100):
        address = f"{n:064x}"
        with store.locked(address):
            assert store.get(address) is None
    assert len(store._locks) == 0
