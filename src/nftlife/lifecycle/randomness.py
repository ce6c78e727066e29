"""
Injected randomness sources for probability-gated lifecycle steps.

The evolution draw never touches a global RNG; callers hand the engine an object
satisfying ``RandomSource`` so the draw is deterministic given the seed.

Provided sources:
    - SeededRandom: Mersenne Twister seeded with an int (tests, simulations).
    - DigestRandom: SHA-256 counter stream over an external seed, e.g. a block hash,
      so every draw is auditable from the published seed and the draw index.

Examples:
    >>> from nftlife.lifecycle.randomness import SeededRandom
    >>> a, b = SeededRandom(7), SeededRandom(7)
    >>> [a.next(100) for _ in range(3)] == [b.next(100) for _ in range(3)]
    True
"""

from __future__ import annotations

import hashlib
import random
from typing import Protocol, runtime_checkable

__all__ = ["RandomSource", "SeededRandom", "DigestRandom"]


@runtime_checkable
class RandomSource(Protocol):
    """Anything that returns a uniform integer in ``[0, bound)``."""

    def next(self, bound: int) -> int: ...


def _check_bound(bound: int) -> None:
    if bound <= 0:
        raise ValueError(f"bound must be positive, got {bound}")


class SeededRandom:
    """Mersenne Twister backed source; ``SeededRandom(seed)`` replays identically."""

    def __init__(self, seed: int | None = None) -> None:
        self.seed = seed
        self._rng = random.Random(seed)

    def next(self, bound: int) -> int:
        _check_bound(bound)
        return self._rng.randrange(bound)


class DigestRandom:
    """
    Deterministic stream derived from ``sha256(seed || counter)``.

    Each draw hashes the seed with a big-endian 8-byte counter and reduces the
    first 8 bytes of the digest. Values that fall in the biased tail of the 64-bit
    range are rejected and redrawn, so the result is uniform over ``[0, bound)``.

    Args:
        seed (bytes): External seed, e.g. a block hash.
        counter (int): Index of the first draw (resume an audited stream).
    """

    _SPACE = 1 << 64

    def __init__(self, seed: bytes, counter: int = 0) -> None:
        if not seed:
            raise ValueError("seed must be non-empty")
        self.seed = bytes(seed)
        self.counter = counter

    def _block(self) -> int:
        digest = hashlib.sha256(self.seed + self.counter.to_bytes(8, "big")).digest()
        self.counter += 1
        return int.from_bytes(digest[:8], "big")

    def next(self, bound: int) -> int:
        _check_bound(bound)
        limit = self._SPACE - (self._SPACE % bound)
        while True:
            value = self._block()
            if value < limit:
                return value % bound
