"""
AttributeUpdater: validated level/rarity/URI changes.

Every operation takes the current record and the trusted ``now`` and returns the
replacement record; a rejection raises and leaves the input untouched (records
are frozen values). Checks run timing first, then monotonicity.

Operations
- update_metadata: caller-supplied minimum interval, forward-only level, optional
  administrative rarity set (backward moves allowed).
- update_level / update_rarity: the policy cooldown of the current rarity.
- update_uri: no time gate of its own.
- level_up: policy cooldown, then ``level + 1``.

Examples:
    >>> from nftlife.core.schema import NftState
    >>> from nftlife.lifecycle.updater import AttributeUpdater
    >>> s = NftState(level=1, rarity="common", mint_timestamp=0,
    ...              last_updated_timestamp=0, entity_ref=bytes(32))
    >>> AttributeUpdater().update_metadata(s, now=10, new_level=3, min_time_elapsed=5).level
    3
"""

from __future__ import annotations

from dataclasses import dataclass, field

from nftlife.core.errors import InvalidLevelProgression
from nftlife.core.grammar import Rarity, rarity_from_value
from nftlife.core.schema import NftState

from .achievements import with_points
from .cooldown import CooldownPolicy, check_elapsed

__all__ = ["AttributeUpdater", "check_level_progression"]


def check_level_progression(state: NftState, new_level: int) -> None:
    """
    Raises:
        InvalidLevelProgression: If ``new_level`` is below the current level.
    """
    if new_level < state.level:
        raise InvalidLevelProgression(
            f"level cannot move from {state.level} to {new_level}",
            current=state.level,
            requested=new_level,
        )


@dataclass(frozen=True)
class AttributeUpdater:
    """
    Attributes:
        cooldown (CooldownPolicy): Policy used by the narrower updates.
        enforce_cooldown_floor (bool): Raise update_metadata's caller minimum to the
            policy cooldown when it is lower.
    """

    cooldown: CooldownPolicy = field(default_factory=CooldownPolicy)
    enforce_cooldown_floor: bool = False

    def update_metadata(
        self,
        state: NftState,
        now: int,
        new_level: int,
        min_time_elapsed: int,
        new_rarity: Rarity | str | None = None,
    ) -> NftState:
        required = min_time_elapsed
        if self.enforce_cooldown_floor:
            required = max(required, self.cooldown.cooldown_for(state.rarity))
        check_elapsed(state, now, required)
        check_level_progression(state, new_level)
        rarity = state.rarity if new_rarity is None else rarity_from_value(new_rarity)
        return with_points(
            state.with_changes(level=new_level, rarity=rarity, last_updated_timestamp=now)
        )

    def update_level(self, state: NftState, now: int, new_level: int) -> NftState:
        self.cooldown.check(state, now)
        check_level_progression(state, new_level)
        return with_points(state.with_changes(level=new_level, last_updated_timestamp=now))

    def update_rarity(self, state: NftState, now: int, rarity: Rarity | str) -> NftState:
        """Administrative rarity set; the cooldown is the one of the current rarity."""
        target = rarity_from_value(rarity)
        self.cooldown.check(state, now)
        return with_points(state.with_changes(rarity=target, last_updated_timestamp=now))

    def update_uri(self, state: NftState, now: int, uri: str) -> NftState:
        return state.with_changes(uri=uri, last_updated_timestamp=max(now, state.mint_timestamp))

    def level_up(self, state: NftState, now: int) -> NftState:
        self.cooldown.check(state, now)
        return with_points(state.with_changes(level=state.level + 1, last_updated_timestamp=now))
