"""
Core exception types raised by the lifecycle components and the record contracts.

Provides typed exceptions for lifecycle rejections and contract failures:
- NftError, the base of every lifecycle rejection. Each subclass carries a stable
  ``code`` (the CamelCase name surfaced to callers, logs, and the journal).
- Grouping bases mirror the taxonomy callers branch on: TimingViolation,
  MonotonicityViolation, FusionViolation, LifecycleValidationError.
- EvolutionFailed is a designed probabilistic outcome, not a bug.
- SchemaError and VersionMismatch guard record shape and persisted layout.

Notes:
    - This module uses only the Python standard library and has no side effects.
    - Every rejection leaves the touched records unchanged. The single exception is
      EvolutionFailed, which carries the record with only ``last_updated_timestamp``
      advanced; the ledger persists that record before re-raising.

Examples:
    Branch on a group rather than on individual errors.

    >>> from nftlife.core.errors import TimingViolation, UpdateTooSoon
    >>> try:
    ...     raise UpdateTooSoon("3600s cooldown, 10s elapsed")
    ... except TimingViolation as e:
    ...     code = e.code
    >>> code
    'UpdateTooSoon'
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover
    from .schema import NftState

__all__ = [
    "NftError",
    "TimingViolation",
    "MonotonicityViolation",
    "FusionViolation",
    "LifecycleValidationError",
    "UpdateTooSoon",
    "EvolutionNotReady",
    "TimeLockedFeature",
    "InvalidLevelProgression",
    "CannotFuseSameNFT",
    "FusionRequirementsNotMet",
    "FusionPotentialExhausted",
    "InvalidRarity",
    "InsufficientAchievementPoints",
    "EvolutionFailed",
    "SchemaError",
    "VersionMismatch",
    "ALL_ERROR_CODES",
]


class NftError(Exception):
    """Base class for lifecycle rejections; ``code`` is the stable error name."""

    code: str = "NftError"

    def __init__(self, message: str = "", **context: Any) -> None:
        super().__init__(message or self.code)
        self.context = context

    def __str__(self) -> str:
        msg = super().__str__()
        return msg if msg.startswith(self.code) else f"{self.code}: {msg}"


class TimingViolation(NftError):
    """An operation was attempted before its time precondition held."""


class MonotonicityViolation(NftError):
    """An operation would move a forward-only attribute backwards."""


class FusionViolation(NftError):
    """A fusion precondition failed."""


class LifecycleValidationError(NftError, ValueError):
    """An input value or score gate was invalid."""


class UpdateTooSoon(TimingViolation):
    """Cannot update metadata too soon."""

    code = "UpdateTooSoon"


class EvolutionNotReady(TimingViolation):
    """NFT is not ready for evolution yet."""

    code = "EvolutionNotReady"


class TimeLockedFeature(TimingViolation):
    """Feature is still time-locked for this NFT."""

    code = "TimeLockedFeature"


class InvalidLevelProgression(MonotonicityViolation):
    """Level progression must be forward-only."""

    code = "InvalidLevelProgression"


class CannotFuseSameNFT(FusionViolation):
    """Both fusion inputs reference the same entity."""

    code = "CannotFuseSameNFT"


class FusionRequirementsNotMet(FusionViolation):
    """A parent is below both the level and the fusion-potential gate."""

    code = "FusionRequirementsNotMet"


class FusionPotentialExhausted(FusionViolation):
    """A parent's fusion potential reached the policy ceiling."""

    code = "FusionPotentialExhausted"


class InvalidRarity(LifecycleValidationError):
    """Unknown rarity/fusion type, or no further rarity tier exists."""

    code = "InvalidRarity"


class InsufficientAchievementPoints(LifecycleValidationError):
    """Achievement score below the minimum a feature requires."""

    code = "InsufficientAchievementPoints"


class EvolutionFailed(NftError):
    """
    The evolution draw missed.

    Attributes:
        state (NftState | None): Record as it must be persisted after the miss
            (``last_updated_timestamp`` advanced, everything else unchanged).
        roll (int | None): The drawn value in ``[0, 100)``.
        chance (int | None): The success chance (percent) it was compared to.
    """

    code = "EvolutionFailed"

    def __init__(
        self,
        message: str = "",
        *,
        state: NftState | None = None,
        roll: int | None = None,
        chance: int | None = None,
    ) -> None:
        super().__init__(message, roll=roll, chance=chance)
        self.state = state
        self.roll = roll
        self.chance = chance


class SchemaError(ValueError):
    """Record-level validation failure (shape, constraints, cross-field rules)."""


class VersionMismatch(RuntimeError):
    """Incompatible or unexpected persisted layout version encountered."""


ALL_ERROR_CODES: tuple[str, ...] = (
    UpdateTooSoon.code,
    InvalidLevelProgression.code,
    EvolutionNotReady.code,
    EvolutionFailed.code,
    CannotFuseSameNFT.code,
    FusionRequirementsNotMet.code,
    InvalidRarity.code,
    InsufficientAchievementPoints.code,
    TimeLockedFeature.code,
    FusionPotentialExhausted.code,
)
