"""
AchievementTracker: the derived score and the gates built on it.

``points = level * rarity_multiplier + evolution_count * 10``, recomputed after
every state-affecting operation through ``with_points``. The multiplier table is
the cooldown table (common 1 ... divine 7).

Examples:
    >>> from nftlife.lifecycle.achievements import compute_points
    >>> compute_points(10, "rare", 2)
    50
    >>> compute_points(20, "legendary", 5)
    150
"""

from __future__ import annotations

from nftlife.core.constants import EVOLUTION_POINTS_PER_EVOLUTION
from nftlife.core.errors import InsufficientAchievementPoints
from nftlife.core.grammar import AchievementTier, Rarity, rarity_from_value, rarity_multiplier
from nftlife.core.schema import NftState

__all__ = [
    "compute_points",
    "with_points",
    "require_points",
    "achievement_tier",
    "rarity_reward",
]

# Inclusive upper level bound per tier; grandmaster is open-ended.
_TIER_BOUNDS: tuple[tuple[int, AchievementTier], ...] = (
    (10, AchievementTier.NOVICE),
    (25, AchievementTier.APPRENTICE),
    (50, AchievementTier.EXPERT),
    (75, AchievementTier.MASTER),
)


def compute_points(level: int, rarity: Rarity | str, evolution_count: int) -> int:
    return (
        level * rarity_multiplier(rarity_from_value(rarity))
        + evolution_count * EVOLUTION_POINTS_PER_EVOLUTION
    )


def with_points(state: NftState) -> NftState:
    """Return ``state`` with ``achievement_points`` recomputed from its attributes."""
    points = compute_points(state.level, state.rarity, state.evolution_count)
    if points == state.achievement_points:
        return state
    return state.with_changes(achievement_points=points)


def require_points(state: NftState, minimum: int, feature: str = "feature") -> None:
    """
    Gate a feature on a minimum achievement score.

    Raises:
        InsufficientAchievementPoints: If ``state.achievement_points < minimum``.
    """
    if state.achievement_points < minimum:
        raise InsufficientAchievementPoints(
            f"{feature} requires {minimum} points, record has {state.achievement_points}",
            required=minimum,
            actual=state.achievement_points,
        )


def achievement_tier(level: int) -> AchievementTier:
    """Tier name for a level: novice 1-10, apprentice 11-25, expert 26-50, master 51-75."""
    for bound, tier in _TIER_BOUNDS:
        if level <= bound:
            return tier
    return AchievementTier.GRANDMASTER


def rarity_reward(level: int, rarity: Rarity | str) -> int:
    return level * rarity_multiplier(rarity_from_value(rarity))
