import pytest

from nftlife.core.errors import (
    CannotFuseSameNFT,
    FusionPotentialExhausted,
    FusionRequirementsNotMet,
    InvalidRarity,
)
from nftlife.core.grammar import FusionType, Rarity
from nftlife.lifecycle.fusion import FusionEngine, fused_level, fused_potential

CHILD = bytes([0xCC]) * 32


@pytest.mark.parametrize("pa,pb,expected", [(5, 3, 9), (10, 10, 21), (0, 0, 1)])
def test_fused_potential(pa: int, pb: int, expected: int):
    assert fused_potential(pa, pb) == expected


@pytest.mark.parametrize("fusion_type,level", [("power", 6), ("speed", 9), ("magic", 12), ("legendary", 15)])
def test_fused_level_by_type(make_state, fusion_type: str, level: int):
    a = make_state(level=6, entity=1)
    b = make_state(level=5, entity=2)
    out = FusionEngine().fuse(a, b, fusion_type, 100, CHILD)
    assert out.level == level


def test_fused_level_never_below_strongest_parent():
    assert fused_level(5, 3, 2, baseline=2) == 5
    assert fused_level(5, 3, 2, baseline=4) == 5


def test_fuse_builds_fresh_record(make_state):
    a = make_state(level=5, rarity="rare", fusion_potential=5, entity=1, uri="ipfs://a")
    b = make_state(level=3, rarity="epic", fusion_potential=3, entity=2, uri="ipfs://b")
    out = FusionEngine().fuse(a, b, FusionType.POWER, 1000, CHILD)
    assert out.entity_ref == CHILD
    assert out.fusion_potential == 9
    assert out.rarity is Rarity.EPIC
    assert out.evolution_count == 0
    assert out.mint_timestamp == out.last_updated_timestamp == 1000
    assert out.uri == "ipfs://a"
    assert out.achievement_points == 5 * 4
    assert FusionEngine().fuse(a, b, "power", 1000, CHILD, uri="ar://c").uri == "ar://c"


def test_same_entity_rejected_first(make_state):
    a = make_state(level=1, fusion_potential=50, entity=1)
    with pytest.raises(CannotFuseSameNFT):
        FusionEngine().check(a, a, "fire")


def test_exhausted_before_requirements(make_state):
    a = make_state(level=1, fusion_potential=50, entity=1)
    b = make_state(level=1, entity=2)
    with pytest.raises(FusionPotentialExhausted):
        FusionEngine().check(a, b, "power")
    with pytest.raises(FusionPotentialExhausted):
        FusionEngine().check(b, a, "power")


def test_requirements_before_type(make_state):
    a = make_state(level=5, entity=1)
    weak = make_state(level=4, entity=2)
    with pytest.raises(FusionRequirementsNotMet):
        FusionEngine().check(a, weak, "fire")
    assert FusionEngine().qualifies(make_state(level=1, fusion_potential=1, entity=3))


def test_unknown_type_rejected(make_state):
    a = make_state(level=5, entity=1)
    b = make_state(level=5, entity=2)
    with pytest.raises(InvalidRarity):
        FusionEngine().fuse(a, b, "fire", 0, CHILD)


def test_result_ref_must_be_new(make_state):
    a = make_state(level=5, entity=1)
    b = make_state(level=5, entity=2)
    with pytest.raises(CannotFuseSameNFT):
        FusionEngine().fuse(a, b, "power", 0, b.entity_ref)


def test_custom_gates(make_state):
    engine = FusionEngine(min_level=10, min_potential=3, max_fusion_potential=5)
    a = make_state(level=9, fusion_potential=2, entity=1)
    b = make_state(level=10, entity=2)
    with pytest.raises(FusionRequirementsNotMet):
        engine.check(a, b, "power")
    with pytest.raises(FusionPotentialExhausted):
        engine.check(make_state(level=10, fusion_potential=5, entity=3), b, "power")
