"""
nftlife.ledger: control flow around the lifecycle components.

- clock.py: Clock protocol, SystemClock, FixedClock.
- store.py: RecordStore protocol, InMemoryStore, store errors.
- service.py: NftLedger, the public operation surface (mint, update_metadata,
  update_level, update_rarity, update_uri, evolve, level_up, evolve_rarity, fuse, get).
- cli.py: the ``nftlife`` console script.

Import DAG discipline
- Top layer: may import nftlife.core, nftlife.lifecycle, and nftlife.io.
"""

from __future__ import annotations

from .clock import Clock, FixedClock, SystemClock
from .service import NftLedger
from .store import InMemoryStore, RecordStore

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "NftLedger",
    "InMemoryStore",
    "RecordStore",
]
