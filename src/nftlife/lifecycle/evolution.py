"""
EvolutionEngine: time- and probability-gated advancement.

An entity may evolve once ``now - mint_timestamp`` reaches its threshold:

    threshold = max(0, level * 86400 - fusion_potential * 3600)

Each point of fusion potential takes one hour off the wait. Past the threshold the
engine draws ``roll = rng.next(100)`` and succeeds iff ``roll < chance(rarity)``
(common 100, uncommon 85, rare 70, epic 50, legendary 25, mythic 10, divine 5).

Success: ``level + 1``, ``evolution_count + 1``, and one rarity step when the new
level lands on a tier boundary (``new_level % tier_span == 0``), capped at divine.
Failure: ``EvolutionFailed`` carrying the record with only
``last_updated_timestamp`` advanced; persisting it is the caller's job.

``evolve_rarity`` is the time-locked, score-gated tier advance: locked for seven
days after mint, then requires ``multiplier(next) * 50`` achievement points.

Examples:
    >>> from nftlife.core.schema import NftState
    >>> from nftlife.lifecycle.evolution import EvolutionEngine
    >>> from nftlife.lifecycle.randomness import SeededRandom
    >>> s = NftState(level=1, rarity="common", mint_timestamp=0,
    ...              last_updated_timestamp=0, entity_ref=bytes(32))
    >>> EvolutionEngine().threshold(s)
    86400
    >>> EvolutionEngine().evolve(s, now=86400, rng=SeededRandom(1)).level
    2
"""

from __future__ import annotations

from dataclasses import dataclass

from nftlife.core.constants import (
    EVOLUTION_TIER_SPAN,
    FUSION_BONUS_PER_POINT_SECONDS,
    ONE_DAY_SECONDS,
    RARITY_POINTS_UNIT,
    RARITY_TIME_LOCK_SECONDS,
)
from nftlife.core.errors import (
    EvolutionFailed,
    EvolutionNotReady,
    InvalidRarity,
    TimeLockedFeature,
)
from nftlife.core.grammar import Rarity, evolution_chance, next_rarity, rarity_multiplier
from nftlife.core.schema import NftState

from .achievements import require_points, with_points
from .randomness import RandomSource

__all__ = ["EvolutionEngine", "evolution_threshold", "DRAW_BOUND"]

# Draws are percentages.
DRAW_BOUND = 100


def evolution_threshold(level: int, fusion_potential: int) -> int:
    """Seconds since mint required before the next evolution."""
    return max(0, level * ONE_DAY_SECONDS - fusion_potential * FUSION_BONUS_PER_POINT_SECONDS)


@dataclass(frozen=True)
class EvolutionEngine:
    """
    Attributes:
        tier_span (int): Rarity advances when the new level is a multiple of this.
        rarity_time_lock_seconds (int): evolve_rarity lock after mint.
        rarity_points_unit (int): evolve_rarity point requirement per multiplier step.
    """

    tier_span: int = EVOLUTION_TIER_SPAN
    rarity_time_lock_seconds: int = RARITY_TIME_LOCK_SECONDS
    rarity_points_unit: int = RARITY_POINTS_UNIT

    def threshold(self, state: NftState) -> int:
        return evolution_threshold(state.level, state.fusion_potential)

    def check_ready(self, state: NftState, now: int) -> None:
        """
        Raises:
            EvolutionNotReady: If the threshold has not elapsed since mint.
        """
        age = now - state.mint_timestamp
        threshold = self.threshold(state)
        if age < threshold:
            raise EvolutionNotReady(
                f"{age}s since mint, {threshold}s required",
                age=age,
                threshold=threshold,
            )

    def crosses_tier(self, new_level: int) -> bool:
        return new_level % self.tier_span == 0

    def evolve(self, state: NftState, now: int, rng: RandomSource) -> NftState:
        """
        Attempt one evolution.

        Raises:
            EvolutionNotReady: Before the threshold; nothing is drawn.
            EvolutionFailed: When the draw misses; ``exc.state`` is the touched record.
        """
        self.check_ready(state, now)
        chance = evolution_chance(state.rarity)
        roll = rng.next(DRAW_BOUND)
        if roll >= chance:
            raise EvolutionFailed(
                f"rolled {roll} against {chance}% for {state.rarity.value}",
                state=state.with_changes(last_updated_timestamp=now),
                roll=roll,
                chance=chance,
            )
        new_level = state.level + 1
        rarity = next_rarity(state.rarity) if self.crosses_tier(new_level) else state.rarity
        return with_points(
            state.with_changes(
                level=new_level,
                evolution_count=state.evolution_count + 1,
                rarity=rarity,
                last_updated_timestamp=now,
            )
        )

    def required_points(self, target: Rarity) -> int:
        return rarity_multiplier(target) * self.rarity_points_unit

    def evolve_rarity(self, state: NftState, now: int) -> NftState:
        """
        Advance one rarity tier when the record is old and accomplished enough.

        Raises:
            TimeLockedFeature: Within ``rarity_time_lock_seconds`` of mint.
            InvalidRarity: The record is already divine.
            InsufficientAchievementPoints: Below ``multiplier(next) * unit`` points.
        """
        age = now - state.mint_timestamp
        if age < self.rarity_time_lock_seconds:
            raise TimeLockedFeature(
                f"rarity evolution unlocks {self.rarity_time_lock_seconds}s after mint, "
                f"{age}s elapsed",
                age=age,
                lock=self.rarity_time_lock_seconds,
            )
        if state.rarity is Rarity.DIVINE:
            raise InvalidRarity("divine is the final rarity tier")
        target = next_rarity(state.rarity)
        require_points(state, self.required_points(target), feature=f"evolving to {target.value}")
        return with_points(state.with_changes(rarity=target, last_updated_timestamp=now))
