import pytest

from nftlife.core.errors import InsufficientAchievementPoints
from nftlife.core.grammar import AchievementTier
from nftlife.lifecycle.achievements import (
    achievement_tier,
    compute_points,
    rarity_reward,
    require_points,
    with_points,
)


def test_compute_points_examples():
    assert compute_points(10, "rare", 2) == 50
    assert compute_points(20, "legendary", 5) == 150
    assert compute_points(1, "common", 0) == 1


def test_with_points_recomputes_only_when_needed(make_state):
    s = make_state(level=4, rarity="epic", evolution_count=1, points=26)
    assert with_points(s) is s
    stale = make_state(level=4, rarity="epic", evolution_count=1, points=0)
    assert with_points(stale).achievement_points == 26


def test_require_points(make_state):
    s = make_state(points=99)
    require_points(s, 99)
    with pytest.raises(InsufficientAchievementPoints) as ei:
        require_points(s, 100, feature="rarity evolution")
    assert ei.value.context == {"required": 100, "actual": 99}


@pytest.mark.parametrize(
    "level,tier",
    [
        (1, AchievementTier.NOVICE),
        (10, AchievementTier.NOVICE),
        (11, AchievementTier.APPRENTICE),
        (25, AchievementTier.APPRENTICE),
        (26, AchievementTier.EXPERT),
        (50, AchievementTier.EXPERT),
        (51, AchievementTier.MASTER),
        (75, AchievementTier.MASTER),
        (76, AchievementTier.GRANDMASTER),
    ],
)
def test_achievement_tier_bounds(level: int, tier: AchievementTier):
    assert achievement_tier(level) is tier


def test_rarity_reward():
    assert rarity_reward(10, "mythic") == 60
