import pytest
from pydantic import ValidationError

from nftlife.core.grammar import Rarity
from nftlife.core.hashing import derive_record_address
from nftlife.core.schema import LifecycleEventRow, NftState, StateSnapshotRow


def _state(**over) -> NftState:
    data = dict(
        level=3,
        rarity="Rare",
        mint_timestamp=100,
        last_updated_timestamp=150,
        entity_ref=bytes(range(32)),
        uri="ipfs://x",
    )
    data.update(over)
    return NftState(**data)


def test_nft_state_normalizes_rarity_and_defaults_counters():
    s = _state()
    assert s.rarity is Rarity.RARE
    assert (s.evolution_count, s.fusion_potential, s.achievement_points) == (0, 0, 0)
    assert s.address == derive_record_address(bytes(range(32)))


def test_nft_state_accepts_hex_entity_ref():
    s = _state(entity_ref=bytes(range(32)).hex())
    assert s.entity_ref == bytes(range(32))


@pytest.mark.parametrize(
    "over",
    [
        {"level": 0},
        {"evolution_count": -1},
        {"fusion_potential": -1},
        {"rarity": "shiny"},
        {"entity_ref": b"\x00" * 31},
        {"entity_ref": "zz" * 32},
        {"last_updated_timestamp": 99},
        {"owner": "alice"},
    ],
)
def test_nft_state_rejects_invalid_records(over):
    with pytest.raises(ValueError):
        _state(**over)


def test_nft_state_is_frozen_and_with_changes_revalidates():
    s = _state()
    with pytest.raises(ValidationError):
        s.level = 9  # type: ignore[misc]
    assert s.with_changes(level=4).level == 4
    assert s.level == 3
    with pytest.raises(ValueError):
        s.with_changes(last_updated_timestamp=0)


def test_nft_state_json_mapping_round_trips():
    s = _state(evolution_count=2, fusion_potential=3, achievement_points=40)
    obj = s.to_json_obj()
    assert obj["entity_ref"] == bytes(range(32)).hex()
    assert obj["rarity"] == "rare"
    assert NftState.from_json_obj(obj) == s


def test_event_row_requires_error_code_only_on_rejection():
    base = dict(ts=10, operation="evolve", entity_address="ab" * 32)
    ok = LifecycleEventRow(outcome="applied", **base)
    assert ok.error_code is None
    rejected = LifecycleEventRow(outcome="rejected", error_code="EvolutionNotReady", **base)
    assert rejected.outcome == "rejected"
    with pytest.raises(ValueError):
        LifecycleEventRow(outcome="rejected", **base)
    with pytest.raises(ValueError):
        LifecycleEventRow(outcome="applied", error_code="UpdateTooSoon", **base)
    with pytest.raises(ValueError):
        LifecycleEventRow(outcome="maybe", **base)


def test_snapshot_row_mirrors_state():
    s = _state()
    row = StateSnapshotRow.from_state(200, "level_up", s)
    assert row.entity_address == s.address
    assert row.entity_ref == s.entity_ref.hex()
    assert row.rarity == "rare"
    assert row.operation == "level_up"
