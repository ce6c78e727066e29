"""
CooldownPolicy: minimum interval between two mutating updates on one record.

The interval is the rarity multiplier times a base unit, so scarcer entities
change more slowly:

| Rarity    | Multiplier | Default cooldown |
|-----------|------------|------------------|
| common    | 1          | 1h               |
| uncommon  | 2          | 2h               |
| rare      | 3          | 3h               |
| epic      | 4          | 4h               |
| legendary | 5          | 5h               |
| mythic    | 6          | 6h               |
| divine    | 7          | 7h               |
"""

from __future__ import annotations

from dataclasses import dataclass

from nftlife.core.constants import BASE_COOLDOWN_SECONDS
from nftlife.core.errors import UpdateTooSoon
from nftlife.core.grammar import Rarity, rarity_from_value, rarity_multiplier
from nftlife.core.schema import NftState

__all__ = ["CooldownPolicy", "check_elapsed"]


def check_elapsed(state: NftState, now: int, min_elapsed: int) -> None:
    """
    Reject an update attempted before ``min_elapsed`` seconds since the last one.

    Raises:
        UpdateTooSoon: If ``now - state.last_updated_timestamp < min_elapsed``.
    """
    elapsed = now - state.last_updated_timestamp
    if elapsed < min_elapsed:
        raise UpdateTooSoon(
            f"{elapsed}s elapsed since last update, {min_elapsed}s required",
            elapsed=elapsed,
            required=min_elapsed,
        )


@dataclass(frozen=True)
class CooldownPolicy:
    """
    Table-driven cooldown per rarity.

    Attributes:
        base_seconds (int): Cooldown unit multiplied by the rarity multiplier.

    Examples:
        >>> CooldownPolicy().cooldown_for("legendary")
        18000
    """

    base_seconds: int = BASE_COOLDOWN_SECONDS

    def cooldown_for(self, rarity: Rarity | str) -> int:
        return rarity_multiplier(rarity_from_value(rarity)) * self.base_seconds

    def check(self, state: NftState, now: int, min_elapsed: int | None = None) -> None:
        """
        Enforce the cooldown of the record's current rarity, or an explicit minimum.

        Raises:
            UpdateTooSoon: If the elapsed time is below the minimum.
        """
        required = self.cooldown_for(state.rarity) if min_elapsed is None else min_elapsed
        check_elapsed(state, now, required)
