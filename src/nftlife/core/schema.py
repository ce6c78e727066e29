"""
Pydantic v2 models for the persisted NFT record and the journal rows.

Validators normalize enum-like strings through grammar helpers and enforce the
cross-field record rules (``last_updated_timestamp >= mint_timestamp``).

Responsibilities
- Define ``NftState``, the aggregate every lifecycle component reads and replaces.
- Define the journal row models (``LifecycleEventRow``, ``StateSnapshotRow``).
- Provide canonical JSON mappings for records (entity_ref as lowercase hex).

Style
- Zero-IO (stdlib + pydantic only).
- Google-style docstrings; row models carry "Table mappings" under Notes.

References
- grammar: nftlife/core/grammar.py (Rarity, Operation, Outcome)
- errors: nftlife/core/errors.py (SchemaError, InvalidRarity)
- codec: nftlife/core/codec.py (binary layout of NftState)
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .constants import ENTITY_REF_SIZE
from .errors import SchemaError
from .grammar import Outcome, Rarity, operation_from_value, rarity_from_value
from .hashing import derive_record_address, entity_ref_from_hex
from .typing import JsonDict, RecordAddress

__all__ = [
    "NftState",
    "LifecycleEventRow",
    "StateSnapshotRow",
]


class NftState(BaseModel):
    """
    State record of one entity. Owned by the store; the core reads, validates, and
    replaces it as a value.

    Attributes:
        level (int): Current level (>= 1); never decreases over the lifetime.
        rarity (Rarity): Current tier; moves forward only, except administrative sets.
        mint_timestamp (int): Creation time in unix seconds; immutable.
        last_updated_timestamp (int): Time of the last mutating operation.
        evolution_count (int): Successful evolutions (>= 0).
        fusion_potential (int): Accumulated fusion resource (>= 0).
        achievement_points (int): Derived score (>= 0).
        entity_ref (bytes): 32-byte opaque reference to the underlying asset.
        uri (str): Free-form metadata pointer.

    Raises:
        pydantic.ValidationError: On out-of-range fields, an unknown rarity, a
            malformed entity_ref, or ``last_updated_timestamp < mint_timestamp``.

    Examples:
        >>> from nftlife.core.schema import NftState
        >>> s = NftState(level=3, rarity="Rare", mint_timestamp=100,
        ...              last_updated_timestamp=100, entity_ref=bytes(32), uri="ipfs://x")
        >>> s.rarity.value
        'rare'
        >>> s.with_changes(level=4).level
        4
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    level: int = Field(..., ge=1)
    rarity: Rarity
    mint_timestamp: int
    last_updated_timestamp: int
    evolution_count: int = Field(default=0, ge=0)
    fusion_potential: int = Field(default=0, ge=0)
    achievement_points: int = Field(default=0, ge=0)
    entity_ref: bytes
    uri: str = ""

    @field_validator("rarity", mode="before")
    @classmethod
    def _normalize_rarity(cls, v: Any) -> Rarity:
        return rarity_from_value(v)

    @field_validator("entity_ref", mode="before")
    @classmethod
    def _coerce_entity_ref(cls, v: Any) -> bytes:
        """
        Accept raw bytes or the 64-character hex form.

        Raises:
            SchemaError: If the value does not decode to exactly 32 bytes.
        """
        if isinstance(v, str):
            return entity_ref_from_hex(v)
        if isinstance(v, (bytes, bytearray, memoryview)):
            raw = bytes(v)
            if len(raw) != ENTITY_REF_SIZE:
                raise SchemaError(f"entity_ref must be {ENTITY_REF_SIZE} bytes, got {len(raw)}")
            return raw
        raise SchemaError(f"entity_ref must be bytes or hex str, got {type(v).__name__}")

    @model_validator(mode="after")
    def _check_timestamps(self) -> NftState:
        if self.last_updated_timestamp < self.mint_timestamp:
            raise SchemaError(
                "last_updated_timestamp must be >= mint_timestamp "
                f"({self.last_updated_timestamp} < {self.mint_timestamp})"
            )
        return self

    @property
    def address(self) -> RecordAddress:
        """Content-addressed store key of this record."""
        return derive_record_address(self.entity_ref)

    def with_changes(self, **changes: Any) -> NftState:
        """Return a validated copy with ``changes`` applied."""
        data = self.model_dump()
        data.update(changes)
        return NftState.model_validate(data)

    def to_json_obj(self) -> JsonDict:
        """Canonical JSON mapping (entity_ref hex, rarity lower_snake)."""
        return {
            "level": self.level,
            "rarity": self.rarity.value,
            "mint_timestamp": self.mint_timestamp,
            "last_updated_timestamp": self.last_updated_timestamp,
            "evolution_count": self.evolution_count,
            "fusion_potential": self.fusion_potential,
            "achievement_points": self.achievement_points,
            "entity_ref": self.entity_ref.hex(),
            "uri": self.uri,
        }

    @classmethod
    def from_json_obj(cls, obj: JsonDict) -> NftState:
        return cls.model_validate(obj)


class LifecycleEventRow(BaseModel):
    """
    One attempted lifecycle operation, applied or rejected.

    Attributes:
        ts (int): Clock time of the attempt (unix seconds).
        operation (str): Operation value (lower_snake).
        outcome (str): "applied" or "rejected".
        entity_address (str): Record address of the primary entity.
        error_code (str | None): Error code for rejections (e.g. "UpdateTooSoon").
        level (int | None): Post-operation level (pre-state for rejections, when known).
        rarity (str | None): Post-operation rarity value.
        evolution_count (int | None): Post-operation evolution count.
        fusion_potential (int | None): Post-operation fusion potential.
        achievement_points (int | None): Post-operation points.
        detail (str): Canonical JSON with operation arguments.

    Notes:
        Table mappings: lifecycle_events (see tables.LIFECYCLE_EVENTS_DESC).
        A rejected EvolutionFailed row still reports the touched state.
    """

    model_config = ConfigDict(extra="forbid")

    ts: int
    operation: str
    outcome: str
    entity_address: str
    error_code: str | None = None
    level: int | None = None
    rarity: str | None = None
    evolution_count: int | None = None
    fusion_potential: int | None = None
    achievement_points: int | None = None
    detail: str = "{}"

    @field_validator("operation", mode="before")
    @classmethod
    def _normalize_operation(cls, v: Any) -> str:
        return operation_from_value(getattr(v, "value", v)).value

    @field_validator("outcome", mode="before")
    @classmethod
    def _normalize_outcome(cls, v: Any) -> str:
        try:
            return Outcome(getattr(v, "value", v)).value
        except ValueError as e:
            raise SchemaError(f"unknown outcome {v!r}") from e

    @field_validator("rarity", mode="before")
    @classmethod
    def _normalize_rarity(cls, v: Any) -> str | None:
        if v is None:
            return v
        return rarity_from_value(v).value

    @model_validator(mode="after")
    def _check_error_code(self) -> LifecycleEventRow:
        if self.outcome == Outcome.REJECTED.value and not self.error_code:
            raise SchemaError("rejected events must carry an error_code")
        if self.outcome == Outcome.APPLIED.value and self.error_code:
            raise SchemaError("applied events must not carry an error_code")
        return self


class StateSnapshotRow(BaseModel):
    """
    Post-state of an entity after an applied operation.

    Notes:
        Table mappings: state_snapshots (see tables.STATE_SNAPSHOTS_DESC).
        Mirrors NftState field-for-field with entity_ref as hex.
    """

    model_config = ConfigDict(extra="forbid")

    ts: int
    operation: str
    entity_address: str
    entity_ref: str
    level: int
    rarity: str
    mint_timestamp: int
    last_updated_timestamp: int
    evolution_count: int
    fusion_potential: int
    achievement_points: int
    uri: str

    @classmethod
    def from_state(cls, ts: int, operation: Any, state: NftState) -> StateSnapshotRow:
        op = operation_from_value(getattr(operation, "value", operation)).value
        return cls(ts=ts, operation=op, entity_address=state.address, **state.to_json_obj())
