"""
Clock sources: the trusted current time handed to every mutation.

The lifecycle components never read the wall clock; the ledger asks its clock once
per operation and passes the value down as ``now``.

Examples:
    >>> from nftlife.ledger.clock import FixedClock
    >>> clock = FixedClock(1_700_000_000)
    >>> clock.advance(3600)
    1700003600
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable

from nftlife.core.typing import UnixSeconds

__all__ = ["Clock", "SystemClock", "FixedClock"]


@runtime_checkable
class Clock(Protocol):
    """Anything with ``now() -> int`` (unix seconds)."""

    def now(self) -> UnixSeconds: ...


class SystemClock:
    """Wall-clock seconds (``time.time`` truncated)."""

    def now(self) -> UnixSeconds:
        return UnixSeconds(int(time.time()))


class FixedClock:
    """Manually driven clock for tests, simulations, and replay."""

    def __init__(self, start: int = 0) -> None:
        self._now = int(start)

    def now(self) -> UnixSeconds:
        return UnixSeconds(self._now)

    def set(self, ts: int) -> int:
        self._now = int(ts)
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("FixedClock only moves forward")
        self._now += int(seconds)
        return self._now
