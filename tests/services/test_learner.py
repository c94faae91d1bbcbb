"""
Tests for the Preference Learner

Bounded online updates, interaction counting and settings.
"""

import asyncio

import pytest
from unittest.mock import AsyncMock

from flare.db.store import InMemoryVoteStore
from flare.errors import InvalidArgument, StorageUnavailable, Unauthenticated
from flare.services.votes import UserPreferences, VoteEvent, VoteValue
from flare.services.votes.learner import LEARNING_RATE, PreferenceLearner


@pytest.fixture
def store():
    return InMemoryVoteStore()


@pytest.fixture
def learner(store):
    return PreferenceLearner(store, learning_rate=LEARNING_RATE)


class TestApplyVote:
    @pytest.mark.asyncio
    async def test_upvote_nudges_platform_and_category(self, learner):
        prefs = await learner.apply_vote("u1", 1, "reddit", "aww")

        assert prefs.platform_scores == {"reddit": pytest.approx(0.1)}
        assert prefs.category_scores == {"aww": pytest.approx(0.1)}
        assert prefs.total_interactions == 1

    @pytest.mark.asyncio
    async def test_three_upvotes(self, learner):
        for _ in range(3):
            prefs = await learner.apply_vote("u1", 1, "reddit", None)

        assert prefs.platform_scores["reddit"] == pytest.approx(0.3)
        assert prefs.category_scores == {}
        assert prefs.total_interactions == 3

    @pytest.mark.asyncio
    async def test_scores_clamp_to_unit_range(self, learner):
        for _ in range(15):
            await learner.apply_vote("u1", 1, "hackernews", "tech")
        for _ in range(15):
            await learner.apply_vote("u1", -1, "youtube", None)

        prefs = await learner.get_preferences("u1")
        assert prefs.platform_scores["hackernews"] == 1.0
        assert prefs.category_scores["tech"] == 1.0
        assert prefs.platform_scores["youtube"] == -1.0
        assert prefs.total_interactions == 30

    @pytest.mark.asyncio
    async def test_neutral_vote_counts_without_moving_scores(self, learner):
        await learner.apply_vote("u1", 1, "reddit", None)
        prefs = await learner.apply_vote("u1", 0, "reddit", None)

        assert prefs.platform_scores["reddit"] == pytest.approx(0.1)
        assert prefs.total_interactions == 2

    @pytest.mark.asyncio
    async def test_vote_without_hints_only_counts(self, learner):
        prefs = await learner.apply_vote("u1", -1)

        assert prefs.platform_scores == {}
        assert prefs.category_scores == {}
        assert prefs.total_interactions == 1

    @pytest.mark.asyncio
    async def test_handle_vote_event(self, learner):
        event = VoteEvent(
            user_id="u1",
            item_id="reddit:a",
            value=VoteValue.DOWN,
            previous_value=VoteValue.NEUTRAL,
            platform="reddit",
        )
        await learner.handle_vote_event(event)

        prefs = await learner.get_preferences("u1")
        assert prefs.platform_scores["reddit"] == pytest.approx(-0.1)

    @pytest.mark.asyncio
    async def test_write_failure_surfaces(self):
        store = AsyncMock()
        store.get_preferences.return_value = None
        store.upsert_preferences.side_effect = RuntimeError("down")

        with pytest.raises(StorageUnavailable):
            await PreferenceLearner(store).apply_vote("u1", 1, "reddit")


class TestUserLocks:
    @pytest.mark.asyncio
    async def test_concurrent_votes_by_one_user_are_serialized(self, learner):
        await asyncio.gather(*(learner.apply_vote("u1", 1, "reddit") for _ in range(20)))

        prefs = await learner.get_preferences("u1")
        assert prefs.total_interactions == 20
        assert prefs.platform_scores["reddit"] == 1.0

    @pytest.mark.asyncio
    async def test_locks_are_released_after_use(self, learner):
        await asyncio.gather(*(learner.apply_vote(f"user-{n}", 1, "reddit") for n in range(50)))
        await learner.update_settings("settings-user", recency_weight=0.2)
        await learner.reset_preferences("reset-user")

        assert learner._user_locks == {}

    @pytest.mark.asyncio
    async def test_lock_released_when_write_fails(self):
        store = AsyncMock()
        store.get_preferences.return_value = None
        store.upsert_preferences.side_effect = RuntimeError("down")
        learner = PreferenceLearner(store)

        with pytest.raises(StorageUnavailable):
            await learner.apply_vote("u1", 1, "reddit")

        assert learner._user_locks == {}


class TestReads:
    @pytest.mark.asyncio
    async def test_defaults_for_new_user(self, learner):
        prefs = await learner.get_preferences("nobody")

        assert prefs == UserPreferences()
        assert prefs.recency_weight == 0.5
        assert prefs.virality_weight == 0.5
        assert prefs.exploration_enabled is True
        assert prefs.exploration_percentage == 20

    @pytest.mark.asyncio
    async def test_defaults_when_storage_fails(self):
        store = AsyncMock()
        store.get_preferences.side_effect = RuntimeError("down")

        prefs = await PreferenceLearner(store).get_preferences("u1")
        assert prefs.total_interactions == 0

    @pytest.mark.asyncio
    async def test_reset(self, learner, store):
        await learner.apply_vote("u1", 1, "reddit", "aww")
        await store.upsert_interaction("u1", "reddit:a", {"isSaved": True})

        await learner.reset_preferences("u1")

        assert await learner.get_preferences("u1") == UserPreferences()
        interactions = await store.get_interactions("u1")
        assert interactions["reddit:a"]["isSaved"] is False

    @pytest.mark.asyncio
    async def test_reset_requires_user(self, learner):
        with pytest.raises(Unauthenticated):
            await learner.reset_preferences(None)


class TestSettings:
    @pytest.mark.asyncio
    async def test_update_keeps_learned_scores(self, learner):
        await learner.apply_vote("u1", 1, "reddit", None)

        prefs = await learner.update_settings(
            "u1", recency_weight=0.8, exploration_enabled=False, exploration_percentage=5,
        )

        assert prefs.recency_weight == 0.8
        assert prefs.virality_weight == 0.5
        assert prefs.exploration_enabled is False
        assert prefs.exploration_percentage == 5
        assert prefs.platform_scores["reddit"] == pytest.approx(0.1)
        assert prefs.total_interactions == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("changes", [
        {"recency_weight": 1.5},
        {"virality_weight": -0.1},
        {"exploration_percentage": 101},
    ])
    async def test_rejects_out_of_range(self, learner, changes):
        with pytest.raises(InvalidArgument):
            await learner.update_settings("u1", **changes)


class TestUserPreferences:
    def test_construction_clamps(self):
        prefs = UserPreferences(platform_scores={"reddit": 3.0}, category_scores={"x": -7})

        assert prefs.platform_scores["reddit"] == 1.0
        assert prefs.category_scores["x"] == -1.0

    def test_from_dict_tolerates_missing_keys(self):
        prefs = UserPreferences.from_dict({"platformScores": {"reddit": 0.4}, "totalInteractions": 9})

        assert prefs.platform_score("reddit") == 0.4
        assert prefs.platform_score(None) == 0.0
        assert prefs.exploration_enabled is True
        assert prefs.total_interactions == 9
