"""
Configuration for the nftlife.lifecycle components.

Defines LifecycleSettings, a frozen dataclass carrying the tunable policy values
of the state machine. Defaults are sourced from nftlife.core.constants (the single
source of truth) and can be overridden from TOML and the environment.

Precedence: env > TOML > defaults.

Import DAG discipline
- Depends only on stdlib, nftlife.core, and sibling lifecycle modules.
- Does not import nftlife.ledger or nftlife.io.

Notes
- The evolution threshold (one day per level, one hour off per fusion point) and the
  tier tables are contract constants, not settings.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Callable
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from nftlife.core.constants import (
    BASE_COOLDOWN_SECONDS,
    EVOLUTION_TIER_SPAN,
    FUSION_LEVEL_BASELINE,
    FUSION_MIN_LEVEL,
    FUSION_MIN_POTENTIAL,
    MAX_FUSION_POTENTIAL,
    RARITY_POINTS_UNIT,
    RARITY_TIME_LOCK_SECONDS,
    REFERENCE_TIMEZONE,
)

from .cooldown import CooldownPolicy
from .evolution import EvolutionEngine
from .fusion import FusionEngine
from .rarity import RarityOracle

_INT_FIELDS: tuple[str, ...] = (
    "base_cooldown_seconds",
    "evolution_tier_span",
    "fusion_min_level",
    "fusion_min_potential",
    "fusion_level_baseline",
    "max_fusion_potential",
    "rarity_time_lock_seconds",
    "rarity_points_unit",
)
_BOOL_FIELDS: tuple[str, ...] = (
    "enforce_cooldown_floor",
    "retire_fused_parents",
)
_STR_FIELDS: tuple[str, ...] = ("reference_timezone",)


def _flag(v: Any) -> bool:
    if isinstance(v, str):
        return v.strip().lower() in {"1", "true", "t", "yes", "y", "on"}
    return bool(v)


def _zone(v: Any) -> str:
    if not isinstance(v, str) or not v.strip():
        raise ValueError("reference_timezone must be a non-empty string")
    return v.strip()


_PARSERS: dict[str, Callable[[Any], Any]] = {
    **{name: int for name in _INT_FIELDS},
    **{name: _flag for name in _BOOL_FIELDS},
    **{name: _zone for name in _STR_FIELDS},
}


def _lifecycle_table(path: str | os.PathLike[str] | None) -> dict[str, Any]:
    """``[lifecycle]`` of nftlife.toml (or its top level), else [tool.nftlife.lifecycle]."""
    if path is not None:
        candidates = [Path(path)]
    else:
        candidates = [Path.cwd() / "nftlife.toml", Path.cwd() / "pyproject.toml"]
    for candidate in candidates:
        try:
            data = tomllib.loads(candidate.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError):
            continue
        if candidate.name == "pyproject.toml":
            table = data.get("tool", {}).get("nftlife", {}).get("lifecycle", {})
        else:
            table = data.get("lifecycle", data)
        if table:
            return table
    return {}


@dataclass(frozen=True)
class LifecycleSettings:
    """
    Runtime policy settings for the lifecycle components.

    Attributes:
        reference_timezone (str): IANA zone in which the rarity oracle reads hour-of-day.
        base_cooldown_seconds (int): Cooldown unit multiplied by the rarity multiplier.
        evolution_tier_span (int): Rarity advances on evolution when new_level % span == 0.
        enforce_cooldown_floor (bool): When True, update_metadata never accepts a
            caller min_time_elapsed below the rarity cooldown.
        fusion_min_level (int): Level that qualifies a parent for fusion.
        fusion_min_potential (int): Fusion potential that qualifies a parent instead.
        fusion_level_baseline (int): Divisor applied to max(parent level) x multiplier.
        max_fusion_potential (int): Parents at or above this potential cannot fuse.
        rarity_time_lock_seconds (int): evolve_rarity lock after mint.
        rarity_points_unit (int): evolve_rarity needs multiplier(next) x unit points.
        retire_fused_parents (bool): Store policy for fusion parents (retire vs keep).

    Raises:
        ValueError: On negative durations or non-positive spans/baselines.

    Examples:
        >>> from nftlife.lifecycle.config import LifecycleSettings
        >>> LifecycleSettings(base_cooldown_seconds=60).cooldown_policy().cooldown_for("epic")
        240
    """

    reference_timezone: str = REFERENCE_TIMEZONE
    base_cooldown_seconds: int = BASE_COOLDOWN_SECONDS
    evolution_tier_span: int = EVOLUTION_TIER_SPAN
    enforce_cooldown_floor: bool = False
    fusion_min_level: int = FUSION_MIN_LEVEL
    fusion_min_potential: int = FUSION_MIN_POTENTIAL
    fusion_level_baseline: int = FUSION_LEVEL_BASELINE
    max_fusion_potential: int = MAX_FUSION_POTENTIAL
    rarity_time_lock_seconds: int = RARITY_TIME_LOCK_SECONDS
    rarity_points_unit: int = RARITY_POINTS_UNIT
    retire_fused_parents: bool = False

    def __post_init__(self) -> None:
        if self.base_cooldown_seconds < 0:
            raise ValueError("base_cooldown_seconds must be >= 0")
        if self.evolution_tier_span < 1:
            raise ValueError("evolution_tier_span must be >= 1")
        if self.fusion_level_baseline < 1:
            raise ValueError("fusion_level_baseline must be >= 1")
        if self.rarity_time_lock_seconds < 0:
            raise ValueError("rarity_time_lock_seconds must be >= 0")

    # Component factories -------------------------------------------------

    def rarity_oracle(self) -> RarityOracle:
        return RarityOracle(timezone=self.reference_timezone)

    def cooldown_policy(self) -> CooldownPolicy:
        return CooldownPolicy(base_seconds=self.base_cooldown_seconds)

    def evolution_engine(self) -> EvolutionEngine:
        return EvolutionEngine(
            tier_span=self.evolution_tier_span,
            rarity_time_lock_seconds=self.rarity_time_lock_seconds,
            rarity_points_unit=self.rarity_points_unit,
        )

    def fusion_engine(self) -> FusionEngine:
        return FusionEngine(
            min_level=self.fusion_min_level,
            min_potential=self.fusion_min_potential,
            level_baseline=self.fusion_level_baseline,
            max_fusion_potential=self.max_fusion_potential,
        )

    # Loaders: env > TOML > defaults --------------------------------------

    def override(self, cfg: dict[str, Any]) -> LifecycleSettings:
        """Copy with every recognized key of ``cfg`` applied; unparseable values are skipped."""
        changes: dict[str, Any] = {}
        for name, parse in _PARSERS.items():
            if cfg.get(name) in (None, ""):
                continue
            try:
                changes[name] = parse(cfg[name])
            except (TypeError, ValueError):
                continue
        return replace(self, **changes)

    @classmethod
    def from_env(
        cls, base: LifecycleSettings | None = None, prefix: str = "NFTLIFE_"
    ) -> LifecycleSettings:
        """
        Overlay environment variables on ``base`` (or the defaults).

        Variables are the upper-cased field names with the prefix, e.g.
        NFTLIFE_BASE_COOLDOWN_SECONDS or NFTLIFE_RETIRE_FUSED_PARENTS=yes.
        """
        env = {name: os.getenv(prefix + name.upper()) for name in _PARSERS}
        return (base or cls()).override(env)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> LifecycleSettings:
        return cls().override(_lifecycle_table(path))

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> LifecycleSettings:
        return cls.from_env(base=cls.from_toml(path))
