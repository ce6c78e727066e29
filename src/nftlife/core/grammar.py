"""
Canonical nftlife grammar and helpers.

Defines rarity tiers, fusion types, achievement tiers, lifecycle operations and
outcomes, and journal table names. Includes zero-IO normalization helpers used by
the record model, the lifecycle components, the CLI, and the journal.

Responsibilities
- Define enums with lower_snake serialized values.
- Own the rarity order and the per-tier tables (multiplier, evolution chance).
- Provide normalization helpers that accept free-form casing ("Legendary").

Design principles
-----------------
1) One naming standard:
   - Enum classes: PascalCase
   - Enum member names: UPPER_SNAKE (Python constants)
   - Enum serialized values (JSON/Parquet/CLI): lower_snake
   - Fields & columns elsewhere: lower_snake

2) Rarity is totally ordered by declaration order:
   common < uncommon < rare < epic < legendary < mythic < divine.
   The rank is the 0-based position; the multiplier is rank + 1.

Tier tables
-----------

| Rarity     | Multiplier (cooldown/points) | Evolution chance (%) |
|------------|------------------------------|----------------------|
| common     | 1                            | 100                  |
| uncommon   | 2                            | 85                   |
| rare       | 3                            | 70                   |
| epic       | 4                            | 50                   |
| legendary  | 5                            | 25                   |
| mythic     | 6                            | 10                   |
| divine     | 7                            | 5                    |

Examples
--------
>>> from nftlife.core.grammar import Rarity, rarity_from_value, next_rarity
>>> rarity_from_value("Legendary") is Rarity.LEGENDARY
True
>>> next_rarity(Rarity.MYTHIC).value
'divine'
>>> next_rarity(Rarity.DIVINE).value
'divine'

Tags
----
grammar, enums, normalization, lower_snake, rarity
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from enum import Enum
from typing import Final

from .errors import InvalidRarity

__all__ = [
    "Rarity",
    "FusionType",
    "AchievementTier",
    "Operation",
    "Outcome",
    "TableName",
    "RARITY_ORDER",
    # helpers/validators
    "is_lower_snake",
    "assert_lower_snake",
    "rarity_from_value",
    "rarity_rank",
    "rarity_multiplier",
    "evolution_chance",
    "next_rarity",
    "max_rarity",
    "fusion_type_from_value",
    "fusion_multiplier",
    "operation_from_value",
    "ensure_all_enum_values_lower_snake",
]


# ============================================================================
# RARITY
# ============================================================================


class Rarity(Enum):
    """
    Ordered rarity classification of an entity.

    Serialized values appear in:
      - NftState.rarity (JSON form)
      - lifecycle_events.rarity / state_snapshots.rarity
      - CLI arguments (case-insensitive on input)

    Notes:
      The binary codec stores the rank as a one-byte tag instead of the string.
    """

    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"
    MYTHIC = "mythic"
    DIVINE = "divine"

    @property
    def rank(self) -> int:
        return _RARITY_RANK[self]

    @property
    def label(self) -> str:
        """Display form ("Legendary")."""
        return self.value.capitalize()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank >= other.rank


RARITY_ORDER: Final[tuple[Rarity, ...]] = tuple(Rarity)
_RARITY_RANK: Final[dict[Rarity, int]] = {r: i for i, r in enumerate(RARITY_ORDER)}

_EVOLUTION_CHANCE: Final[dict[Rarity, int]] = {
    Rarity.COMMON: 100,
    Rarity.UNCOMMON: 85,
    Rarity.RARE: 70,
    Rarity.EPIC: 50,
    Rarity.LEGENDARY: 25,
    Rarity.MYTHIC: 10,
    Rarity.DIVINE: 5,
}


# ============================================================================
# FUSION
# ============================================================================


class FusionType(Enum):
    """
    Flavour of a fusion; selects the level multiplier applied to the stronger parent.

    Serialized values appear in:
      - lifecycle_events.detail for fuse operations
      - CLI ``fuse --type``
    """

    POWER = "power"
    SPEED = "speed"
    MAGIC = "magic"
    LEGENDARY = "legendary"


_FUSION_MULTIPLIER: Final[dict[FusionType, int]] = {
    FusionType.POWER: 2,
    FusionType.SPEED: 3,
    FusionType.MAGIC: 4,
    FusionType.LEGENDARY: 5,
}


# ============================================================================
# ACHIEVEMENTS, OPERATIONS, OUTCOMES
# ============================================================================


class AchievementTier(Enum):
    """Level-derived achievement tier (novice 1-10 ... grandmaster 76+)."""

    NOVICE = "novice"
    APPRENTICE = "apprentice"
    EXPERT = "expert"
    MASTER = "master"
    GRANDMASTER = "grandmaster"


class Operation(Enum):
    """
    Public lifecycle operations.

    Serialized values appear in:
      - lifecycle_events.operation
      - state_snapshots.operation
      - log lines emitted by the ledger
    """

    MINT = "mint"
    UPDATE_METADATA = "update_metadata"
    UPDATE_LEVEL = "update_level"
    UPDATE_RARITY = "update_rarity"
    UPDATE_URI = "update_uri"
    EVOLVE = "evolve"
    LEVEL_UP = "level_up"
    EVOLVE_RARITY = "evolve_rarity"
    FUSE = "fuse"


class Outcome(Enum):
    """Result class of an attempted operation as recorded in lifecycle_events."""

    APPLIED = "applied"
    REJECTED = "rejected"


class TableName(Enum):
    """
    Canonical journal table names. Enforced by nftlife.core.tables.
    """

    LIFECYCLE_EVENTS = "lifecycle_events"
    STATE_SNAPSHOTS = "state_snapshots"


# ============================================================================
# Helpers & Validators (zero I/O)
# ============================================================================

_LOWER_SNAKE_RE: Final[re.Pattern[str]] = re.compile(r"^[a-z0-9]+(?:_[a-z0-9]+)*$")


def is_lower_snake(value: str) -> bool:
    """
    Check whether a string is lower_snake.

    Examples:
      >>> is_lower_snake("update_metadata")
      True
      >>> is_lower_snake("UpdateMetadata")
      False
    """
    return bool(_LOWER_SNAKE_RE.match(value or ""))


def assert_lower_snake(value: str, what: str = "value") -> None:
    """
    Validate that a string is lower_snake.

    Raises:
      ValueError: If value is not lower_snake.
    """
    if not is_lower_snake(value):
        raise ValueError(f"{what} must be lower_snake (got: {value!r})")


def _normalize_token(value: object) -> str:
    return str(value or "").strip().lower().replace("-", "_").replace(" ", "_")


def rarity_from_value(value: Rarity | str) -> Rarity:
    """
    Parse a rarity from an enum or a free-form string ("Legendary", "legendary").

    Raises:
      InvalidRarity: If the value names no rarity tier.
    """
    if isinstance(value, Rarity):
        return value
    token = _normalize_token(value)
    try:
        return Rarity(token)
    except ValueError as exc:
        allowed = [r.value for r in Rarity]
        raise InvalidRarity(f"unknown rarity {value!r}; expected one of {allowed}") from exc


def rarity_rank(rarity: Rarity) -> int:
    """0-based position of a rarity in the progression."""
    return _RARITY_RANK[rarity]


def rarity_multiplier(rarity: Rarity) -> int:
    """
    Tier multiplier shared by the cooldown policy and the achievement tracker.

    Examples:
      >>> rarity_multiplier(Rarity.COMMON), rarity_multiplier(Rarity.MYTHIC)
      (1, 6)
    """
    return _RARITY_RANK[rarity] + 1


def evolution_chance(rarity: Rarity) -> int:
    """Evolution success chance in percent for a rarity."""
    return _EVOLUTION_CHANCE[rarity]


def next_rarity(rarity: Rarity) -> Rarity:
    """Next tier along the progression; ``divine`` maps to itself."""
    rank = _RARITY_RANK[rarity]
    return RARITY_ORDER[min(rank + 1, len(RARITY_ORDER) - 1)]


def max_rarity(a: Rarity, b: Rarity) -> Rarity:
    """Higher of two rarities."""
    return a if a >= b else b


def fusion_type_from_value(value: FusionType | str) -> FusionType:
    """
    Parse a fusion type from an enum or a free-form string ("Power").

    Raises:
      InvalidRarity: If the value names no fusion type.
    """
    if isinstance(value, FusionType):
        return value
    token = _normalize_token(value)
    try:
        return FusionType(token)
    except ValueError as exc:
        allowed = [f.value for f in FusionType]
        raise InvalidRarity(f"unknown fusion type {value!r}; expected one of {allowed}") from exc


def fusion_multiplier(fusion_type: FusionType) -> int:
    """Level multiplier for a fusion type (power 2, speed 3, magic 4, legendary 5)."""
    return _FUSION_MULTIPLIER[fusion_type]


def operation_from_value(s: str) -> Operation:
    """
    Parse a lower_snake operation string into an Operation.

    Raises:
      ValueError: If s is not lower_snake or is not a known operation.
    """
    assert_lower_snake(s, "operation")
    return Operation(s)


def ensure_all_enum_values_lower_snake(enums: Iterable[type[Enum]]) -> None:
    """
    Assert that every enum member's value is lower_snake.

    Raises:
      AssertionError: If any enum member has a non-lower_snake value.
    """
    for E in enums:
        for m in E:
            if not is_lower_snake(m.value):
                raise AssertionError(
                    f"{E.__name__}.{m.name} has non-lower_snake value: {m.value!r}"
                )
