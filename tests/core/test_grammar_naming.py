import pytest

from nftlife.core.errors import InvalidRarity
from nftlife.core.grammar import (
    RARITY_ORDER,
    AchievementTier,
    FusionType,
    Operation,
    Outcome,
    Rarity,
    TableName,
    ensure_all_enum_values_lower_snake,
    evolution_chance,
    fusion_multiplier,
    fusion_type_from_value,
    max_rarity,
    next_rarity,
    operation_from_value,
    rarity_from_value,
    rarity_multiplier,
)


def test_all_enum_values_are_lower_snake():
    ensure_all_enum_values_lower_snake([Rarity, FusionType, AchievementTier, Operation, Outcome, TableName])


def test_rarity_order_is_declaration_order():
    assert [r.value for r in RARITY_ORDER] == [
        "common",
        "uncommon",
        "rare",
        "epic",
        "legendary",
        "mythic",
        "divine",
    ]
    assert Rarity.COMMON < Rarity.RARE < Rarity.DIVINE
    assert max(RARITY_ORDER) is Rarity.DIVINE
    assert max_rarity(Rarity.EPIC, Rarity.UNCOMMON) is Rarity.EPIC


@pytest.mark.parametrize(
    "rarity,multiplier,chance",
    [
        ("common", 1, 100),
        ("uncommon", 2, 85),
        ("rare", 3, 70),
        ("epic", 4, 50),
        ("legendary", 5, 25),
        ("mythic", 6, 10),
        ("divine", 7, 5),
    ],
)
def test_tier_tables(rarity: str, multiplier: int, chance: int):
    r = rarity_from_value(rarity)
    assert rarity_multiplier(r) == multiplier
    assert evolution_chance(r) == chance


def test_rarity_parsing_is_case_insensitive():
    assert rarity_from_value("Legendary") is Rarity.LEGENDARY
    assert rarity_from_value("  MYTHIC ") is Rarity.MYTHIC
    assert Rarity.LEGENDARY.label == "Legendary"
    with pytest.raises(InvalidRarity):
        rarity_from_value("shiny")


def test_next_rarity_caps_at_divine():
    assert next_rarity(Rarity.COMMON) is Rarity.UNCOMMON
    assert next_rarity(Rarity.MYTHIC) is Rarity.DIVINE
    assert next_rarity(Rarity.DIVINE) is Rarity.DIVINE


def test_fusion_types_and_multipliers():
    assert [fusion_multiplier(f) for f in FusionType] == [2, 3, 4, 5]
    assert fusion_type_from_value("Magic") is FusionType.MAGIC
    with pytest.raises(InvalidRarity):
        fusion_type_from_value("fire")


def test_operation_parsing_requires_lower_snake():
    assert operation_from_value("evolve_rarity") is Operation.EVOLVE_RARITY
    with pytest.raises(ValueError):
        operation_from_value("EvolveRarity")
    with pytest.raises(ValueError):
        operation_from_value("burn")
