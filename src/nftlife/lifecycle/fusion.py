"""
FusionEngine: combine two parent records into a fresh derived record.

Checks run in this order and the first failure wins:

1. ``CannotFuseSameNFT``: both parents reference the same entity.
2. ``FusionPotentialExhausted``: a parent's potential reached the ceiling (50).
3. ``FusionRequirementsNotMet``: a parent has neither ``level >= 5`` nor
   ``fusion_potential >= 1``.
4. ``InvalidRarity``: the fusion type is not power/speed/magic/legendary.

Result record:
    level            = max(la, lb) * multiplier // baseline   (never below max parent)
    fusion_potential = pa + pb + 1
    rarity           = max(ra, rb)
    evolution_count  = 0
    mint = last_updated = now
    uri              = given, else parent A's

The parents themselves are returned unchanged; retiring them is a store policy.
"""

from __future__ import annotations

from dataclasses import dataclass

from nftlife.core.constants import (
    FUSION_LEVEL_BASELINE,
    FUSION_MIN_LEVEL,
    FUSION_MIN_POTENTIAL,
    MAX_FUSION_POTENTIAL,
)
from nftlife.core.errors import (
    CannotFuseSameNFT,
    FusionPotentialExhausted,
    FusionRequirementsNotMet,
)
from nftlife.core.grammar import FusionType, fusion_multiplier, fusion_type_from_value, max_rarity
from nftlife.core.schema import NftState

from .achievements import with_points

__all__ = ["FusionEngine", "fused_potential", "fused_level"]


def fused_potential(potential_a: int, potential_b: int) -> int:
    """
    Examples:
        >>> fused_potential(5, 3), fused_potential(10, 10), fused_potential(0, 0)
        (9, 21, 1)
    """
    return potential_a + potential_b + 1


def fused_level(level_a: int, level_b: int, multiplier: int, baseline: int = FUSION_LEVEL_BASELINE) -> int:
    strongest = max(level_a, level_b)
    return max(strongest, strongest * multiplier // baseline)


@dataclass(frozen=True)
class FusionEngine:
    """
    Attributes:
        min_level (int): Level that qualifies a parent.
        min_potential (int): Fusion potential that qualifies a parent instead.
        level_baseline (int): Divisor of ``max level * multiplier``.
        max_fusion_potential (int): Parents at or above this cannot fuse again.
    """

    min_level: int = FUSION_MIN_LEVEL
    min_potential: int = FUSION_MIN_POTENTIAL
    level_baseline: int = FUSION_LEVEL_BASELINE
    max_fusion_potential: int = MAX_FUSION_POTENTIAL

    def qualifies(self, state: NftState) -> bool:
        return state.level >= self.min_level or state.fusion_potential >= self.min_potential

    def check(self, a: NftState, b: NftState, fusion_type: FusionType | str) -> FusionType:
        """
        Validate a fusion request and return the parsed fusion type.

        Raises:
            CannotFuseSameNFT, FusionPotentialExhausted, FusionRequirementsNotMet,
            InvalidRarity: See module docstring for the order.
        """
        if a.entity_ref == b.entity_ref:
            raise CannotFuseSameNFT(f"both inputs are {a.address}", address=a.address)
        for parent in (a, b):
            if parent.fusion_potential >= self.max_fusion_potential:
                raise FusionPotentialExhausted(
                    f"{parent.address} has fusion potential {parent.fusion_potential}, "
                    f"ceiling is {self.max_fusion_potential}",
                    address=parent.address,
                )
        for parent in (a, b):
            if not self.qualifies(parent):
                raise FusionRequirementsNotMet(
                    f"{parent.address} needs level >= {self.min_level} "
                    f"or fusion potential >= {self.min_potential}",
                    address=parent.address,
                )
        return fusion_type_from_value(fusion_type)

    def fuse(
        self,
        a: NftState,
        b: NftState,
        fusion_type: FusionType | str,
        now: int,
        result_ref: bytes,
        uri: str | None = None,
    ) -> NftState:
        """
        Build the derived record.

        Raises:
            CannotFuseSameNFT: Also when ``result_ref`` equals a parent's reference.
        """
        kind = self.check(a, b, fusion_type)
        if result_ref in (a.entity_ref, b.entity_ref):
            raise CannotFuseSameNFT("fusion result must be a new entity")
        return with_points(
            NftState(
                level=fused_level(a.level, b.level, fusion_multiplier(kind), self.level_baseline),
                rarity=max_rarity(a.rarity, b.rarity),
                mint_timestamp=now,
                last_updated_timestamp=now,
                evolution_count=0,
                fusion_potential=fused_potential(a.fusion_potential, b.fusion_potential),
                entity_ref=result_ref,
                uri=a.uri if uri is None else uri,
            )
        )
