"""
Tests for Personalized Ranking

Multiplier scoring, the interaction threshold and bounded exploration.
"""

import random
from datetime import datetime, timezone

import pytest

from flare.services.ranking import MULTIPLIER_FLOOR, PersonalizedRanker
from flare.services.trending import ContentItem, Platform
from flare.services.votes import UserPreferences

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class ScriptedRandom:
    """randrange() returns scripted values in order."""

    def __init__(self, values):
        self._values = iter(values)
        self.calls = []

    def randrange(self, stop):
        value = next(self._values)
        assert 0 <= value < stop
        self.calls.append(stop)
        return value


class NoRandom:
    def randrange(self, stop):
        raise AssertionError("exploration should not run")


def make_item(item_id, engagement, platform=Platform.REDDIT, category=None):
    return ContentItem(
        id=item_id,
        platform=platform,
        title=item_id,
        url=f"https://example.com/{item_id}",
        timestamp=NOW,
        engagement_count=engagement,
        category=category,
    )


def personalized(**kwargs):
    kwargs.setdefault("total_interactions", 5)
    kwargs.setdefault("exploration_enabled", False)
    return UserPreferences(**kwargs)


@pytest.fixture
def ranker():
    return PersonalizedRanker(rng=NoRandom(), min_interactions=5, exploration_window=20)


# =============================================================================
# Scoring
# =============================================================================


class TestScoring:
    def test_multiplier(self):
        prefs = personalized(platform_scores={"reddit": 0.5}, category_scores={"aww": 0.2})
        item = make_item("a", 100, category="aww")
        assert PersonalizedRanker.multiplier(item, prefs) == pytest.approx(1.7)

    def test_multiplier_floor(self):
        prefs = personalized(platform_scores={"reddit": -1.0}, category_scores={"news": -1.0})
        item = make_item("a", 1000, category="news")

        assert PersonalizedRanker.multiplier(item, prefs) == MULTIPLIER_FLOOR
        assert PersonalizedRanker(rng=NoRandom()).score(item, prefs) == pytest.approx(100)

    def test_disliked_item_is_never_zeroed(self, ranker):
        prefs = personalized(platform_scores={"reddit": -1.0}, category_scores={"news": -1.0})
        items = [make_item("disliked", 1000, category="news"), make_item("zero", 0, Platform.HACKERNEWS)]

        ranked = ranker.rank(items, prefs)
        assert [i.id for i in ranked] == ["disliked", "zero"]


# =============================================================================
# Ranking
# =============================================================================


class TestRank:
    def test_platform_affinity_reorders(self, ranker):
        prefs = personalized(platform_scores={"reddit": 1.0})
        items = [make_item("hn", 150, Platform.HACKERNEWS), make_item("rd", 100)]

        ranked = ranker.rank(items, prefs)

        # 100 * 2.0 beats 150 * 1.0
        assert [i.id for i in ranked] == ["rd", "hn"]

    def test_below_threshold_is_engagement_order(self, ranker):
        prefs = UserPreferences(platform_scores={"reddit": 1.0}, total_interactions=4)
        items = [make_item("rd", 100), make_item("hn", 150, Platform.HACKERNEWS)]

        assert not ranker.is_personalized(prefs)
        assert [i.id for i in ranker.rank(items, prefs)] == ["hn", "rd"]

    def test_anonymous_is_engagement_order(self, ranker):
        items = [make_item("low", 1), make_item("high", 9)]
        assert [i.id for i in ranker.rank(items, None)] == ["high", "low"]

    def test_ties_keep_input_order(self, ranker):
        prefs = personalized()
        items = [make_item(name, 50) for name in ("first", "second", "third")]

        assert [i.id for i in ranker.rank(items, prefs)] == ["first", "second", "third"]

    @pytest.mark.parametrize("order", [("rd", "hn"), ("hn", "rd")])
    def test_cross_platform_tie_keeps_input_order(self, ranker, order):
        # 100 * 1.5 and 150 * 1.0 both score 150
        prefs = personalized(total_interactions=6, platform_scores={"reddit": 0.5})
        by_id = {
            "rd": make_item("rd", 100),
            "hn": make_item("hn", 150, Platform.HACKERNEWS),
        }
        items = [by_id[item_id] for item_id in order]

        assert ranker.score(by_id["rd"], prefs) == ranker.score(by_id["hn"], prefs) == 150
        assert [i.id for i in ranker.rank(items, prefs)] == list(order)

    def test_input_is_not_mutated(self, ranker):
        items = [make_item("low", 1), make_item("high", 9)]
        ranker.rank(items, personalized())
        assert [i.id for i in items] == ["low", "high"]

    def test_empty(self, ranker):
        assert ranker.rank([], personalized(exploration_enabled=True)) == []


# =============================================================================
# Exploration
# =============================================================================


class TestExploration:
    def _feed(self, n):
        return [make_item(f"item-{i}", 10_000 - i * 100) for i in range(n)]

    def test_swaps_only_from_beyond_window(self):
        # 30 items at 10% gives 3 draws of (i, j)
        rng = ScriptedRandom([25, 3, 20, 5, 7, 7])
        ranker = PersonalizedRanker(rng=rng, min_interactions=5, exploration_window=20)
        prefs = personalized(exploration_enabled=True, exploration_percentage=10)

        ranked = ranker.rank(self._feed(30), prefs)
        ids = [i.id for i in ranked]

        assert ids[3] == "item-25"
        assert ids[25] == "item-3"
        # i == window is not beyond it
        assert ids[20] == "item-20"
        assert ids[5] == "item-5"
        assert rng.calls == [30, 20] * 3

    def test_short_feed_never_explores(self):
        prefs = personalized(exploration_enabled=True, exploration_percentage=100)
        ranker = PersonalizedRanker(rng=random.Random(7), min_interactions=5, exploration_window=20)

        ranked = ranker.rank(self._feed(15), prefs)

        assert [i.id for i in ranked] == [f"item-{i}" for i in range(15)]

    def test_disabled_exploration_draws_nothing(self, ranker):
        ranked = ranker.rank(self._feed(40), personalized(exploration_percentage=50))
        assert [i.id for i in ranked] == [f"item-{i}" for i in range(40)]

    def test_zero_percentage_draws_nothing(self, ranker):
        prefs = personalized(exploration_enabled=True, exploration_percentage=0)
        ranked = ranker.rank(self._feed(40), prefs)
        assert ranked[0].id == "item-0"

    def test_seeded_exploration_is_a_permutation(self):
        prefs = personalized(exploration_enabled=True, exploration_percentage=50)
        ranker = PersonalizedRanker(rng=random.Random(42), min_interactions=5, exploration_window=20)
        feed = self._feed(100)

        ranked = ranker.rank(feed, prefs)

        assert sorted(i.id for i in ranked) == sorted(i.id for i in feed)
