"""
RarityOracle: initial rarity of a freshly minted entity.

The hour-of-day of the mint timestamp is read in a fixed reference timezone;
midnight and noon mints are ``legendary``, every other hour is ``common``.
Pure and total, no failure mode for any integer timestamp.

Examples:
    >>> from nftlife.lifecycle.rarity import RarityOracle
    >>> oracle = RarityOracle()
    >>> oracle.initial_rarity(0).value          # 1970-01-01T00:00:00Z
    'legendary'
    >>> oracle.initial_rarity(13 * 3600).value
    'common'
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from zoneinfo import ZoneInfo

from nftlife.core.constants import REFERENCE_TIMEZONE
from nftlife.core.grammar import Rarity, next_rarity, rarity_rank

__all__ = ["RarityOracle", "LEGENDARY_HOURS", "rarity_rank", "next_rarity"]

# Hours of day that mint as legendary.
LEGENDARY_HOURS: frozenset[int] = frozenset({0, 12})


@dataclass(frozen=True)
class RarityOracle:
    """
    Derive an initial rarity from a creation timestamp.

    Attributes:
        timezone (str): IANA zone name used to compute hour-of-day.

    Raises:
        zoneinfo.ZoneInfoNotFoundError: If the zone name is unknown.
    """

    timezone: str = REFERENCE_TIMEZONE
    _zone: ZoneInfo = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_zone", ZoneInfo(self.timezone))

    def hour_of_day(self, ts: int) -> int:
        return datetime.fromtimestamp(ts, tz=self._zone).hour

    def initial_rarity(self, ts: int) -> Rarity:
        return Rarity.LEGENDARY if self.hour_of_day(ts) in LEGENDARY_HOURS else Rarity.COMMON
