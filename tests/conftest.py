from __future__ import annotations

from collections.abc import Iterator

import pytest
from loguru import logger

import nftlife.io.logs as nft_logs
from nftlife.core.schema import NftState


def ref(n: int) -> bytes:
    return bytes([n]) * 32


class ScriptedRandom:
    """RandomSource replaying fixed draws; records every bound it was asked for."""

    def __init__(self, draws: list[int]) -> None:
        self.draws = list(draws)
        self.bounds: list[int] = []

    def next(self, bound: int) -> int:
        self.bounds.append(bound)
        return self.draws.pop(0)


@pytest.fixture(autouse=True)
def _isolated_logging(monkeypatch) -> Iterator[None]:
    # Each test starts with no loguru sinks and an unconfigured CLI logger.
    logger.remove()
    monkeypatch.setattr(nft_logs, "_configured", False)
    yield
    logger.remove()


@pytest.fixture
def log_messages() -> list[str]:
    messages: list[str] = []
    logger.add(lambda m: messages.append(m.record["level"].name + " " + m.record["message"]), level="DEBUG")
    return messages


@pytest.fixture
def make_state():
    def _make(
        level: int = 1,
        rarity: str = "common",
        mint: int = 0,
        last: int | None = None,
        evolution_count: int = 0,
        fusion_potential: int = 0,
        points: int = 0,
        entity: int = 1,
        uri: str = "ipfs://meta",
    ) -> NftState:
        return NftState(
            level=level,
            rarity=rarity,
            mint_timestamp=mint,
            last_updated_timestamp=mint if last is None else last,
            evolution_count=evolution_count,
            fusion_potential=fusion_potential,
            achievement_points=points,
            entity_ref=ref(entity),
            uri=uri,
        )

    return _make


@pytest.fixture
def scripted():
    return ScriptedRandom


@pytest.fixture
def entity_ref():
    return ref
