from __future__ import annotations

import threading

import pytest

from nftlife.core.hashing import derive_record_address
from nftlife.io import FileStore, IoSettings
from nftlife.io.errors import IoWriteError
from nftlife.ledger import FixedClock, InMemoryStore, NftLedger
from nftlife.ledger.store import ConcurrentModification
from nftlife.lifecycle.config import LifecycleSettings
from nftlife.lifecycle.randomness import SeededRandom

T0 = 13 * 3600


class _RetireFailsStore(InMemoryStore):
    """Rejects the removal of one address, as if another writer replaced it."""

    def __init__(self, fail_on: str) -> None:
        super().__init__()
        self.fail_on = fail_on

    def compare_and_swap(self, address, expected, new):
        if address == self.fail_on and new is None:
            return False
        return super().compare_and_swap(address, expected, new)


class _InsertRaisesStore(InMemoryStore):
    """Raises on the insert of one address, as a full disk would."""

    def __init__(self, fail_on: str) -> None:
        super().__init__()
        self.fail_on = fail_on

    def compare_and_swap(self, address, expected, new):
        if address == self.fail_on and expected is None:
            raise IoWriteError(f"failed to write record {address}: disk full")
        return super().compare_and_swap(address, expected, new)


class _StaleStore(InMemoryStore):
    """Accepts inserts but sees every update as a foreign write."""

    def compare_and_swap(self, address, expected, new):
        if expected is not None:
            return False
        return super().compare_and_swap(address, expected, new)


def test_fusion_rolls_back_applied_swaps(entity_ref):
    a_ref, b_ref, child_ref = entity_ref(1), entity_ref(2), entity_ref(3)
    store = _RetireFailsStore(fail_on=derive_record_address(b_ref))
    ledger = NftLedger(
        store,
        FixedClock(T0),
        SeededRandom(0),
        settings=LifecycleSettings(retire_fused_parents=True),
    )
    a = ledger.mint("A", "", initial_level=5, entity_ref=a_ref)
    b = ledger.mint("B", "", initial_level=5, entity_ref=b_ref)

    with pytest.raises(ConcurrentModification):
        ledger.fuse(a_ref, b_ref, "power", result_ref=child_ref)

    assert ledger.get(a_ref) == a
    assert ledger.get(b_ref) == b
    assert ledger.address_of(child_ref) not in store
    assert len(store) == 2


def test_fusion_rolls_back_when_a_write_raises(entity_ref):
    a_ref, b_ref, child_ref = entity_ref(1), entity_ref(2), entity_ref(3)
    store = _InsertRaisesStore(fail_on=derive_record_address(child_ref))
    ledger = NftLedger(
        store,
        FixedClock(T0),
        SeededRandom(0),
        settings=LifecycleSettings(retire_fused_parents=True),
    )
    a = ledger.mint("A", "", initial_level=5, entity_ref=a_ref)
    b = ledger.mint("B", "", initial_level=5, entity_ref=b_ref)

    with pytest.raises(IoWriteError, match="disk full"):
        ledger.fuse(a_ref, b_ref, "power", result_ref=child_ref)

    assert ledger.get(a_ref) == a
    assert ledger.get(b_ref) == b
    assert ledger.address_of(child_ref) not in store
    assert len(store) == 2


def test_file_store_fusion_keeps_parents_when_unlink_fails(tmp_path, entity_ref, monkeypatch):
    a_ref, b_ref, child_ref = entity_ref(1), entity_ref(2), entity_ref(3)
    store = FileStore(IoSettings(root_dir=str(tmp_path)))
    ledger = NftLedger(
        store,
        FixedClock(T0),
        SeededRandom(0),
        settings=LifecycleSettings(retire_fused_parents=True),
    )
    a = ledger.mint("A", "", initial_level=5, entity_ref=a_ref)
    b = ledger.mint("B", "", initial_level=5, entity_ref=b_ref)

    def _unlink_fails(path):
        raise OSError("read-only filesystem")

    monkeypatch.setattr("os.remove", _unlink_fails)
    with pytest.raises(IoWriteError):
        ledger.fuse(a_ref, b_ref, "power", result_ref=child_ref)
    monkeypatch.undo()

    assert store.get(ledger.address_of(child_ref)) is None
    assert ledger.get(a_ref) == a
    assert ledger.get(b_ref) == b
    assert store.list_addresses() == sorted([a.address, b.address])


def test_stale_update_raises_concurrent_modification(entity_ref):
    ledger = NftLedger(_StaleStore(), FixedClock(T0), SeededRandom(0))
    minted = ledger.mint("A", "", entity_ref=entity_ref(1))
    with pytest.raises(ConcurrentModification):
        ledger.update_uri(entity_ref(1), "ar://x")
    assert ledger.get(entity_ref(1)) == minted


def test_parallel_updates_on_one_record_all_apply(entity_ref):
    ledger = NftLedger(InMemoryStore(), FixedClock(T0), SeededRandom(0))
    ledger.mint("A", "", entity_ref=entity_ref(1))
    errors: list[BaseException] = []
    uris = [f"ipfs://v{i}" for i in range(32)]

    def worker(uri: str) -> None:
        try:
            ledger.update_uri(entity_ref(1), uri)
        except BaseException as exc:  # noqa: BLE001 - surfaced through the assertion
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(u,)) for u in uris]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert errors == []
    assert ledger.get(entity_ref(1)).uri in uris


def test_opposite_order_fusions_do_not_deadlock(entity_ref):
    ledger = NftLedger(InMemoryStore(), FixedClock(T0), SeededRandom(0))
    ledger.mint("A", "", initial_level=5, entity_ref=entity_ref(1))
    ledger.mint("B", "", initial_level=5, entity_ref=entity_ref(2))
    errors: list[BaseException] = []

    def worker(first: bytes, second: bytes) -> None:
        try:
            for _ in range(20):
                ledger.fuse(first, second, "speed")
        except BaseException as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [
        threading.Thread(target=worker, args=(entity_ref(1), entity_ref(2))),
        threading.Thread(target=worker, args=(entity_ref(2), entity_ref(1))),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert not any(t.is_alive() for t in threads)
    assert errors == []
    assert len(ledger.store) == 2 + 40
