"""
Preference Learner

Online, bounded update of per-user platform and category affinities from
vote events. No batch retraining: each vote nudges the scores by
``value * learning_rate`` and clamps to [-1, 1].
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional, Tuple

from ...config import settings
from ...db.store import VoteStore, guarded
from ...errors import InvalidArgument, StorageUnavailable, Unauthenticated
from .models import UserPreferences, VoteEvent, VoteValue

logger = logging.getLogger(__name__)

LEARNING_RATE = 0.1


class PreferenceLearner:
    """Maintains UserPreferences from votes."""

    def __init__(self, store: VoteStore, learning_rate: Optional[float] = None):
        self._store = store
        self._learning_rate = learning_rate if learning_rate is not None else settings.learning_rate
        # user_id -> (lock, holders + waiters); entries live only while in use
        self._user_locks: Dict[str, Tuple[asyncio.Lock, int]] = {}

    @asynccontextmanager
    async def _user_lock(self, user_id: str) -> AsyncIterator[None]:
        """Serialize read-modify-write of one user's record within this process."""
        lock, users = self._user_locks.get(user_id, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._user_locks[user_id] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._user_locks[user_id]
            if users <= 1:
                del self._user_locks[user_id]
            else:
                self._user_locks[user_id] = (lock, users - 1)

    async def apply_vote(
        self,
        user_id: str,
        value: Any,
        platform: Optional[str] = None,
        category: Optional[str] = None,
    ) -> UserPreferences:
        """
        Apply one vote to the user's preferences.

        A neutral vote leaves scores unchanged but still counts as an
        interaction.
        """
        if not user_id:
            raise Unauthenticated()
        vote = VoteValue.parse(value)
        delta = int(vote) * self._learning_rate

        async with self._user_lock(user_id):
            prefs = await guarded(self._store.get_preferences(user_id), "get_preferences")
            prefs = prefs or UserPreferences()

            if platform:
                prefs.adjust_platform(platform, delta)
            if category:
                prefs.adjust_category(category, delta)
            prefs.total_interactions += 1

            await guarded(self._store.upsert_preferences(user_id, prefs), "upsert_preferences")

        return prefs

    async def handle_vote_event(self, event: VoteEvent) -> None:
        """Ledger subscriber."""
        await self.apply_vote(event.user_id, event.value, event.platform, event.category)

    async def get_preferences(self, user_id: Optional[str]) -> UserPreferences:
        """Stored preferences, or defaults when absent or unreadable."""
        if not user_id:
            return UserPreferences()
        try:
            prefs = await guarded(self._store.get_preferences(user_id), "get_preferences")
        except StorageUnavailable as e:
            logger.warning(f"Using default preferences for {user_id}: {e}")
            return UserPreferences()
        return prefs or UserPreferences()

    async def reset_preferences(self, user_id: Optional[str]) -> None:
        """Delete learned preferences and clear interaction flags."""
        if not user_id:
            raise Unauthenticated()
        async with self._user_lock(user_id):
            await guarded(self._store.reset_user(user_id), "reset_user")
        logger.info(f"Preferences reset for {user_id}")

    async def update_settings(
        self,
        user_id: Optional[str],
        *,
        recency_weight: Optional[float] = None,
        virality_weight: Optional[float] = None,
        exploration_enabled: Optional[bool] = None,
        exploration_percentage: Optional[int] = None,
    ) -> UserPreferences:
        """Update the user-editable feed settings; learned scores are untouched."""
        if not user_id:
            raise Unauthenticated()
        for name, weight in (("recencyWeight", recency_weight), ("viralityWeight", virality_weight)):
            if weight is not None and not 0 <= weight <= 1:
                raise InvalidArgument(f"{name} must be between 0 and 1", {name: weight})
        if exploration_percentage is not None and not 0 <= exploration_percentage <= 100:
            raise InvalidArgument(
                "explorationPercentage must be between 0 and 100",
                {"explorationPercentage": exploration_percentage},
            )

        async with self._user_lock(user_id):
            prefs = await guarded(self._store.get_preferences(user_id), "get_preferences")
            prefs = prefs or UserPreferences()
            if recency_weight is not None:
                prefs.recency_weight = recency_weight
            if virality_weight is not None:
                prefs.virality_weight = virality_weight
            if exploration_enabled is not None:
                prefs.exploration_enabled = exploration_enabled
            if exploration_percentage is not None:
                prefs.exploration_percentage = exploration_percentage
            await guarded(self._store.upsert_preferences(user_id, prefs), "upsert_preferences")

        return prefs
