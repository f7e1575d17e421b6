from __future__ import annotations

import random

from sharelink.user_agents import USER_AGENTS, select


def test_pool_is_non_empty_and_distinct():
    assert len(USER_AGENTS) >= 5
    assert len(set(USER_AGENTS)) == len(USER_AGENTS)


def test_pool_is_desktop_only():
    for ua in USER_AGENTS:
        assert ua.startswith("Mozilla/5.0 (")
        assert "Mobile" not in ua
        assert "Android" not in ua and "iPhone" not in ua


def test_select_draws_from_pool():
    for _ in range(50):
        assert select() in USER_AGENTS


def test_select_with_seeded_rng_is_reproducible():
    a = [select(random.Random(7)) for _ in range(3)]
    b = [select(random.Random(7)) for _ in range(3)]
    assert a == b


def test_select_covers_more_than_one_agent():
    rng = random.Random(1234)
    seen = {select(rng) for _ in range(200)}
    assert len(seen) > 1
