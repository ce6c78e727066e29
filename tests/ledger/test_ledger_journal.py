from __future__ import annotations

import json
from pathlib import Path

import pytest

from nftlife.core.errors import EvolutionFailed, FusionRequirementsNotMet, UpdateTooSoon
from nftlife.core.grammar import TableName
from nftlife.io import FileStore, IoSettings, Journal
from nftlife.io.errors import IoWriteError, RecordExists
from nftlife.ledger import FixedClock, NftLedger

DAY = 86400
T0 = 13 * 3600


def _ledger(tmp_path: Path, rng) -> NftLedger:
    settings = IoSettings(root_dir=str(tmp_path))
    return NftLedger(FileStore(settings), FixedClock(T0), rng, journal=Journal(settings))


def test_every_attempt_is_journaled(tmp_path: Path, entity_ref, scripted):
    ledger = _ledger(tmp_path, scripted([99]))
    s = ledger.mint("A", "ipfs://a", rarity_override="uncommon", entity_ref=entity_ref(1))
    with pytest.raises(UpdateTooSoon):
        ledger.level_up(entity_ref(1))
    ledger.clock.advance(DAY)
    with pytest.raises(EvolutionFailed):
        ledger.evolve(entity_ref(1))

    events = ledger.journal.history(s.address)
    assert events.get_column("operation").to_list() == ["mint", "level_up", "evolve"]
    assert events.get_column("outcome").to_list() == ["applied", "rejected", "rejected"]
    assert events.get_column("error_code").to_list() == [None, "UpdateTooSoon", "EvolutionFailed"]
    assert events.get_column("ts").to_list() == [T0, T0, T0 + DAY]
    assert events.get_column("rarity").to_list() == ["uncommon"] * 3
    detail = json.loads(events.get_column("detail")[0])
    assert detail["rarity_override"] == "uncommon"
    assert detail["uri"] == "ipfs://a"

    snapshots = ledger.journal.history(s.address, table=TableName.STATE_SNAPSHOTS)
    assert snapshots.height == 1
    assert snapshots.get_column("entity_ref").to_list() == [entity_ref(1).hex()]

    # The missed draw still moved last_updated on disk.
    assert ledger.get(entity_ref(1)).last_updated_timestamp == T0 + DAY


def test_fusion_is_journaled_against_first_parent(tmp_path: Path, entity_ref, scripted):
    ledger = _ledger(tmp_path, scripted([]))
    a = ledger.mint("A", "", initial_level=5, entity_ref=entity_ref(1))
    ledger.mint("B", "", initial_level=1, entity_ref=entity_ref(2))
    with pytest.raises(FusionRequirementsNotMet):
        ledger.fuse(entity_ref(1), entity_ref(2), "power", result_ref=entity_ref(3))

    rows = ledger.journal.history(a.address)
    assert rows.get_column("operation").to_list() == ["mint", "fuse"]
    assert rows.get_column("error_code").to_list()[-1] == "FusionRequirementsNotMet"
    detail = json.loads(rows.get_column("detail")[-1])
    assert detail["parent_b"] == ledger.address_of(entity_ref(2))
    assert detail["result_ref"] == entity_ref(3).hex()


def test_applied_fusion_snapshots_child(tmp_path: Path, entity_ref, scripted):
    ledger = _ledger(tmp_path, scripted([]))
    ledger.mint("A", "", initial_level=5, entity_ref=entity_ref(1))
    ledger.mint("B", "", initial_level=5, entity_ref=entity_ref(2))
    child = ledger.fuse(entity_ref(1), entity_ref(2), "legendary", result_ref=entity_ref(3))

    snaps = ledger.journal.read(TableName.STATE_SNAPSHOTS)
    assert snaps.height == 3
    row = snaps.filter(snaps["entity_address"] == child.address)
    assert row.get_column("level").to_list() == [12]
    assert row.get_column("operation").to_list() == ["fuse"]


def test_duplicate_records_are_rejected_and_journaled(tmp_path: Path, entity_ref, scripted, log_messages):
    ledger = _ledger(tmp_path, scripted([]))
    a = ledger.mint("A", "", initial_level=5, entity_ref=entity_ref(1))
    ledger.mint("B", "", initial_level=5, entity_ref=entity_ref(2))
    ledger.mint("C", "", entity_ref=entity_ref(3))
    with pytest.raises(RecordExists):
        ledger.mint("A again", "", entity_ref=entity_ref(1))
    with pytest.raises(RecordExists):
        ledger.fuse(entity_ref(1), entity_ref(2), "power", result_ref=entity_ref(3))

    rows = ledger.journal.history(a.address)
    assert rows.get_column("operation").to_list() == ["mint", "mint", "fuse"]
    assert rows.get_column("outcome").to_list() == ["applied", "rejected", "rejected"]
    assert rows.get_column("error_code").to_list() == [None, "RecordExists", "RecordExists"]
    assert any(m.startswith(f"WARNING mint rejected for {a.address}") for m in log_messages)
    assert any(m.startswith(f"WARNING fuse rejected for {a.address}") for m in log_messages)


def test_journal_failure_after_commit_keeps_new_state(tmp_path: Path, entity_ref, scripted, log_messages, monkeypatch):
    ledger = _ledger(tmp_path, scripted([]))
    ledger.mint("A", "", entity_ref=entity_ref(1))
    ledger.clock.advance(DAY)

    def _disk_full(row):
        raise IoWriteError("failed to write state_snapshots part: disk full")

    monkeypatch.setattr(ledger.journal, "record_snapshot", _disk_full)
    leveled = ledger.level_up(entity_ref(1))

    assert leveled.level == 2
    assert ledger.get(entity_ref(1)) == leveled
    assert any(m.startswith("ERROR journal write for level_up") and "disk full" in m for m in log_messages)
    events = ledger.journal.history(leveled.address)
    assert events.get_column("operation").to_list() == ["mint", "level_up"]
