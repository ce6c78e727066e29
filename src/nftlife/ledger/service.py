"""
NftLedger: the public operation surface.

Every operation follows the same shape: read the clock once, lock the touched
records, load them, run one lifecycle component, and write the results back with
compare-and-swap. A rejection raises the component's error unchanged and leaves
every record as it was, with one documented exception: a missed evolution draw
persists the record with ``last_updated_timestamp`` advanced, then re-raises
``EvolutionFailed``.

Fusion touches up to three records (two parents, one result). Retirements run
before the insert so that every undo is a write. If a swap returns False or
raises, the already-applied swaps are undone in reverse and the failure
propagates (``ConcurrentModification`` for a False swap).

The record store is authoritative. A journal write that fails after a commit is
logged at ERROR and skipped; the operation still returns its new state.

Observability
- loguru: INFO per applied operation, WARNING per rejection (code + address),
  ERROR for a failed rollback or journal write.
- Optional Journal: a lifecycle_events row for every attempt and a
  state_snapshots row for every record an applied operation wrote.

Examples:
    >>> from nftlife.ledger import NftLedger, InMemoryStore, FixedClock
    >>> from nftlife.lifecycle.randomness import SeededRandom
    >>> ledger = NftLedger(InMemoryStore(), FixedClock(13 * 3600), SeededRandom(0))
    >>> s = ledger.mint("Ember", "ipfs://ember", entity_ref=bytes(32))
    >>> (s.level, s.rarity.value, s.achievement_points)
    (1, 'common', 1)
"""

from __future__ import annotations

import secrets
from collections.abc import Callable
from typing import Any

from loguru import logger

from nftlife.core.constants import ENTITY_REF_SIZE
from nftlife.core.errors import EvolutionFailed, InvalidLevelProgression, NftError, SchemaError
from nftlife.core.grammar import FusionType, Operation, Outcome, Rarity, rarity_from_value
from nftlife.core.hashing import derive_record_address, entity_ref_from_hex, json_dumps_canonical
from nftlife.core.schema import LifecycleEventRow, NftState, StateSnapshotRow
from nftlife.core.typing import EntityRef, RecordAddress
from nftlife.io.errors import IoError, StoreError
from nftlife.io.journal import Journal
from nftlife.lifecycle.achievements import with_points
from nftlife.lifecycle.config import LifecycleSettings
from nftlife.lifecycle.randomness import RandomSource, SeededRandom
from nftlife.lifecycle.updater import AttributeUpdater

from .clock import Clock, SystemClock
from .store import ConcurrentModification, RecordExists, RecordStore

__all__ = ["NftLedger", "EntityRefLike", "to_entity_ref"]

EntityRefLike = bytes | str
Mutation = Callable[[NftState, int], NftState]
Swap = tuple[str, NftState | None, NftState | None]


def to_entity_ref(ref: EntityRefLike) -> EntityRef:
    """
    Accept a raw 32-byte reference or its 64-character hex form.

    Raises:
        SchemaError: If the value is not a 32-byte reference.
    """
    if isinstance(ref, str):
        return EntityRef(entity_ref_from_hex(ref))
    raw = bytes(ref)
    if len(raw) != ENTITY_REF_SIZE:
        raise SchemaError(f"entity_ref must be {ENTITY_REF_SIZE} bytes, got {len(raw)}")
    return EntityRef(raw)


def _jsonable(value: Any) -> Any:
    if isinstance(value, (Rarity, FusionType)):
        return value.value
    if isinstance(value, bytes):
        return value.hex()
    return value


class NftLedger:
    """
    Lifecycle operations over an injected record store.

    Args:
        store (RecordStore): Persistence collaborator (InMemoryStore, FileStore).
        clock (Clock | None): Trusted time source; SystemClock when omitted.
        rng (RandomSource | None): Evolution draws; an OS-seeded SeededRandom when omitted.
        settings (LifecycleSettings | None): Policy values; defaults when omitted.
        journal (Journal | None): Optional Parquet journal of every attempt.
    """

    def __init__(
        self,
        store: RecordStore,
        clock: Clock | None = None,
        rng: RandomSource | None = None,
        settings: LifecycleSettings | None = None,
        journal: Journal | None = None,
    ) -> None:
        self.store = store
        self.clock = clock or SystemClock()
        self.rng = rng or SeededRandom()
        self.settings = settings or LifecycleSettings()
        self.journal = journal
        self.oracle = self.settings.rarity_oracle()
        self.cooldown = self.settings.cooldown_policy()
        self.updater = AttributeUpdater(
            cooldown=self.cooldown,
            enforce_cooldown_floor=self.settings.enforce_cooldown_floor,
        )
        self.evolution = self.settings.evolution_engine()
        self.fusion = self.settings.fusion_engine()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def address_of(self, ref: EntityRefLike) -> RecordAddress:
        return derive_record_address(to_entity_ref(ref))

    def get(self, ref: EntityRefLike) -> NftState:
        """
        Raises:
            RecordNotFound: If the entity has no record.
        """
        return self.store.load(self.address_of(ref))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def mint(
        self,
        name: str,
        uri: str,
        initial_level: int = 1,
        rarity_override: Rarity | str | None = None,
        entity_ref: EntityRefLike | None = None,
    ) -> NftState:
        """
        Create a record. Rarity comes from the RarityOracle unless overridden.

        Raises:
            InvalidLevelProgression: If ``initial_level < 1``.
            InvalidRarity: If ``rarity_override`` names no tier.
            RecordExists: If the entity already has a record.
        """
        ref = secrets.token_bytes(ENTITY_REF_SIZE) if entity_ref is None else to_entity_ref(entity_ref)
        address = derive_record_address(ref)
        now = self.clock.now()
        detail = {
            "name": name,
            "uri": uri,
            "initial_level": initial_level,
            "rarity_override": rarity_override,
        }
        try:
            if initial_level < 1:
                raise InvalidLevelProgression(
                    f"initial level must be >= 1, got {initial_level}", requested=initial_level
                )
            rarity = (
                self.oracle.initial_rarity(now)
                if rarity_override is None
                else rarity_from_value(rarity_override)
            )
        except NftError as exc:
            self._rejected(Operation.MINT, now, address, exc, None, detail)
            raise
        state = with_points(
            NftState(
                level=initial_level,
                rarity=rarity,
                mint_timestamp=now,
                last_updated_timestamp=now,
                entity_ref=ref,
                uri=uri,
            )
        )
        with self.store.locked(address):
            existing = self.store.get(address)
            if existing is not None:
                exists = RecordExists(f"entity {ref.hex()} already has a record at {address}")
                self._rejected(Operation.MINT, now, address, exists, existing, detail)
                raise exists
            self._commit([(address, None, state)])
        self._applied(Operation.MINT, now, state, detail)
        return state

    def update_metadata(
        self,
        ref: EntityRefLike,
        new_level: int,
        min_time_elapsed: int,
        new_rarity: Rarity | str | None = None,
    ) -> NftState:
        return self._mutate(
            Operation.UPDATE_METADATA,
            ref,
            lambda s, now: self.updater.update_metadata(
                s, now, new_level, min_time_elapsed, new_rarity
            ),
            new_level=new_level,
            min_time_elapsed=min_time_elapsed,
            new_rarity=new_rarity,
        )

    def update_level(self, ref: EntityRefLike, new_level: int) -> NftState:
        return self._mutate(
            Operation.UPDATE_LEVEL,
            ref,
            lambda s, now: self.updater.update_level(s, now, new_level),
            new_level=new_level,
        )

    def update_rarity(self, ref: EntityRefLike, rarity: Rarity | str) -> NftState:
        return self._mutate(
            Operation.UPDATE_RARITY,
            ref,
            lambda s, now: self.updater.update_rarity(s, now, rarity),
            rarity=rarity,
        )

    def update_uri(self, ref: EntityRefLike, uri: str) -> NftState:
        return self._mutate(
            Operation.UPDATE_URI,
            ref,
            lambda s, now: self.updater.update_uri(s, now, uri),
            uri=uri,
        )

    def level_up(self, ref: EntityRefLike) -> NftState:
        return self._mutate(Operation.LEVEL_UP, ref, self.updater.level_up)

    def evolve(self, ref: EntityRefLike) -> NftState:
        """
        Raises:
            EvolutionNotReady: Before the threshold; the record is unchanged.
            EvolutionFailed: The draw missed; ``last_updated_timestamp`` was persisted.
        """
        return self._mutate(
            Operation.EVOLVE, ref, lambda s, now: self.evolution.evolve(s, now, self.rng)
        )

    def evolve_rarity(self, ref: EntityRefLike) -> NftState:
        return self._mutate(Operation.EVOLVE_RARITY, ref, self.evolution.evolve_rarity)

    def fuse(
        self,
        ref_a: EntityRefLike,
        ref_b: EntityRefLike,
        fusion_type: FusionType | str,
        result_ref: EntityRefLike | None = None,
        uri: str | None = None,
    ) -> NftState:
        """
        Fuse two parents into a new record at ``result_ref`` (random when omitted).

        Raises:
            CannotFuseSameNFT, FusionPotentialExhausted, FusionRequirementsNotMet,
            InvalidRarity: From the FusionEngine; nothing is written.
            RecordExists: If ``result_ref`` already has a record.
            ConcurrentModification: A swap found a foreign write; applied swaps were
                rolled back.
            IoWriteError: A FileStore write failed; applied swaps were rolled back.
        """
        child_ref = (
            secrets.token_bytes(ENTITY_REF_SIZE) if result_ref is None else to_entity_ref(result_ref)
        )
        addr_a, addr_b = self.address_of(ref_a), self.address_of(ref_b)
        addr_child = derive_record_address(child_ref)
        now = self.clock.now()
        detail = {
            "parent_a": addr_a,
            "parent_b": addr_b,
            "fusion_type": fusion_type,
            "result_ref": child_ref,
            "uri": uri,
        }
        with self.store.locked(addr_a, addr_b, addr_child):
            a = self.store.load(addr_a)
            b = a if addr_b == addr_a else self.store.load(addr_b)
            try:
                child = self.fusion.fuse(a, b, fusion_type, now, child_ref, uri)
            except NftError as exc:
                self._rejected(Operation.FUSE, now, addr_a, exc, a, detail)
                raise
            if self.store.get(addr_child) is not None:
                exists = RecordExists(f"fusion result {child_ref.hex()} already has a record")
                self._rejected(Operation.FUSE, now, addr_a, exists, a, detail)
                raise exists
            swaps: list[Swap] = []
            if self.settings.retire_fused_parents:
                swaps += [(addr_a, a, None), (addr_b, b, None)]
            swaps.append((addr_child, None, child))
            self._commit(swaps)
        detail["retired_parents"] = self.settings.retire_fused_parents
        self._applied(Operation.FUSE, now, child, detail)
        return child

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _mutate(self, op: Operation, ref: EntityRefLike, mutation: Mutation, **detail: Any) -> NftState:
        address = self.address_of(ref)
        now = self.clock.now()
        with self.store.locked(address):
            current = self.store.load(address)
            try:
                new = mutation(current, now)
            except EvolutionFailed as exc:
                touched = exc.state if exc.state is not None else current
                if exc.state is not None:
                    self._commit([(address, current, exc.state)])
                self._rejected(op, now, address, exc, touched, detail)
                raise
            except NftError as exc:
                self._rejected(op, now, address, exc, current, detail)
                raise
            self._commit([(address, current, new)])
        self._applied(op, now, new, detail)
        return new

    def _commit(self, swaps: list[Swap]) -> None:
        """
        Apply compare-and-swaps in order; undo applied ones in reverse on failure.

        Raises:
            ConcurrentModification: If any swap found an unexpected record.
            IoError: Whatever a store swap raised, after the undo.
        """
        done: list[Swap] = []
        for address, expected, new in swaps:
            try:
                swapped = self.store.compare_and_swap(address, expected, new)
            except Exception:
                self._undo(done)
                raise
            if not swapped:
                self._undo(done)
                raise ConcurrentModification(f"record {address} changed during the operation")
            done.append((address, expected, new))

    def _undo(self, done: list[Swap]) -> None:
        for address, expected, new in reversed(done):
            try:
                restored = self.store.compare_and_swap(address, new, expected)
            except (IoError, StoreError) as exc:
                logger.error("rollback of {} failed: {}", address, exc)
                continue
            if not restored:
                logger.error("rollback of {} failed: record changed again", address)

    def _applied(self, op: Operation, now: int, state: NftState, detail: dict[str, Any]) -> None:
        logger.info(
            "{} applied to {} (level={}, rarity={}, points={})",
            op.value,
            state.address,
            state.level,
            state.rarity.value,
            state.achievement_points,
        )
        if self.journal is None:
            return
        self._journal(
            op,
            state.address,
            self._event_row(op, Outcome.APPLIED, now, state.address, None, state, detail),
            StateSnapshotRow.from_state(now, op, state),
        )

    def _rejected(
        self,
        op: Operation,
        now: int,
        address: str,
        exc: NftError | StoreError,
        state: NftState | None,
        detail: dict[str, Any],
    ) -> None:
        logger.warning("{} rejected for {}: {}", op.value, address, exc)
        if self.journal is None:
            return
        self._journal(
            op,
            address,
            self._event_row(op, Outcome.REJECTED, now, address, exc.code, state, detail),
        )

    def _journal(
        self,
        op: Operation,
        address: str,
        event: LifecycleEventRow,
        snapshot: StateSnapshotRow | None = None,
    ) -> None:
        if self.journal is None:
            return
        try:
            self.journal.record_event(event)
            if snapshot is not None:
                self.journal.record_snapshot(snapshot)
        except IoError as exc:
            logger.error("journal write for {} on {} skipped: {}", op.value, address, exc)

    @staticmethod
    def _event_row(
        op: Operation,
        outcome: Outcome,
        now: int,
        address: str,
        error_code: str | None,
        state: NftState | None,
        detail: dict[str, Any],
    ) -> LifecycleEventRow:
        return LifecycleEventRow(
            ts=now,
            operation=op,
            outcome=outcome,
            entity_address=address,
            error_code=error_code,
            level=None if state is None else state.level,
            rarity=None if state is None else state.rarity,
            evolution_count=None if state is None else state.evolution_count,
            fusion_potential=None if state is None else state.fusion_potential,
            achievement_points=None if state is None else state.achievement_points,
            detail=json_dumps_canonical({k: _jsonable(v) for k, v in detail.items()}),
        )
