"""
nftlife core defaults.

Single source of truth for the lifecycle constants (cooldown unit, evolution
threshold, fusion bonus), record addressing, and the IO-facing journal defaults.
This module is zero-IO and uses only the Python standard library.

Notes:
    - Settings classes (``nftlife.lifecycle.config``, ``nftlife.io.config``) take their
      defaults from here; override them through env/TOML, not by editing call sites.
    - The evolution and fusion-bonus constants are part of the contract; tests pin them.
"""

from __future__ import annotations

__all__ = [
    "ONE_DAY_SECONDS",
    "ONE_HOUR_SECONDS",
    "BASE_COOLDOWN_SECONDS",
    "FUSION_BONUS_PER_POINT_SECONDS",
    "EVOLUTION_TIER_SPAN",
    "EVOLUTION_POINTS_PER_EVOLUTION",
    "FUSION_MIN_LEVEL",
    "FUSION_MIN_POTENTIAL",
    "FUSION_LEVEL_BASELINE",
    "MAX_FUSION_POTENTIAL",
    "RARITY_TIME_LOCK_SECONDS",
    "RARITY_POINTS_UNIT",
    "REFERENCE_TIMEZONE",
    "RECORD_NAMESPACE",
    "ENTITY_REF_SIZE",
    "JOURNAL_BUCKET_SECONDS",
    "ROW_GROUP_SIZE",
    "COMPRESSION",
]

ONE_HOUR_SECONDS: int = 3600
ONE_DAY_SECONDS: int = 86400

# Cooldown between two mutating updates is rarity multiplier x this unit.
BASE_COOLDOWN_SECONDS: int = ONE_HOUR_SECONDS

# Each point of fusion potential shortens the evolution wait by one hour.
FUSION_BONUS_PER_POINT_SECONDS: int = ONE_HOUR_SECONDS

# Rarity advances on a successful evolution when new_level % span == 0.
EVOLUTION_TIER_SPAN: int = 1

# Achievement points awarded per recorded evolution.
EVOLUTION_POINTS_PER_EVOLUTION: int = 10

# Fusion gate: a parent qualifies with level >= FUSION_MIN_LEVEL or
# fusion_potential >= FUSION_MIN_POTENTIAL.
FUSION_MIN_LEVEL: int = 5
FUSION_MIN_POTENTIAL: int = 1

# Fused level = max(parent levels) * multiplier // FUSION_LEVEL_BASELINE.
FUSION_LEVEL_BASELINE: int = 2

# Parents at or above this potential can no longer be fused.
MAX_FUSION_POTENTIAL: int = 50

# evolve_rarity is locked for this long after mint.
RARITY_TIME_LOCK_SECONDS: int = 7 * ONE_DAY_SECONDS

# evolve_rarity needs rarity_multiplier(next tier) * RARITY_POINTS_UNIT points.
RARITY_POINTS_UNIT: int = 50

# Hour-of-day for the rarity oracle is read in this zone.
REFERENCE_TIMEZONE: str = "UTC"

# Record address = sha256(RECORD_NAMESPACE + entity_ref).
RECORD_NAMESPACE: bytes = b"nft_state"
ENTITY_REF_SIZE: int = 32

# Journal partitioning: bucket = ts // JOURNAL_BUCKET_SECONDS.
JOURNAL_BUCKET_SECONDS: int = ONE_DAY_SECONDS

ROW_GROUP_SIZE: int = 128 * 1024

COMPRESSION: str = "zstd"
