import pytest

from nftlife.core.errors import UpdateTooSoon
from nftlife.core.grammar import RARITY_ORDER
from nftlife.lifecycle.cooldown import CooldownPolicy, check_elapsed


def test_cooldown_grows_with_rarity():
    policy = CooldownPolicy()
    cooldowns = [policy.cooldown_for(r) for r in RARITY_ORDER]
    assert cooldowns == [3600 * m for m in range(1, 8)]
    assert policy.cooldown_for("legendary") > policy.cooldown_for("common")
    assert CooldownPolicy(base_seconds=60).cooldown_for("Epic") == 240


def test_policy_check_uses_current_rarity(make_state):
    policy = CooldownPolicy()
    common = make_state(rarity="common", mint=100)
    with pytest.raises(UpdateTooSoon) as ei:
        policy.check(common, 100 + 3599)
    assert ei.value.context == {"elapsed": 3599, "required": 3600}
    policy.check(common, 100 + 3600)

    legendary = make_state(rarity="legendary", mint=100)
    with pytest.raises(UpdateTooSoon):
        policy.check(legendary, 100 + 3600)
    policy.check(legendary, 100 + 5 * 3600)


def test_explicit_minimum_overrides_policy(make_state):
    s = make_state(rarity="divine", mint=0)
    CooldownPolicy().check(s, 1, min_elapsed=1)
    check_elapsed(s, 0, 0)
    with pytest.raises(UpdateTooSoon):
        check_elapsed(s, 9, 10)
