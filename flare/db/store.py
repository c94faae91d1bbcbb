"""
Vote & Preference Store

Storage collaborator used by the ledger, learner and aggregator. Components
receive a store handle explicitly; nothing here is a process-wide singleton.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Awaitable, Dict, Iterable, List, Optional, Tuple, TypeVar

from ..config import settings
from ..errors import FlareError, StorageUnavailable
from ..services.votes.models import (
    FlareScore,
    UserPreferences,
    UserVoteStats,
    VoteValue,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def guarded(awaitable: Awaitable[T], operation: str, timeout: Optional[float] = None) -> T:
    """
    Await a store call with a timeout.

    Timeouts and backend errors become StorageUnavailable; engine errors
    pass through unchanged.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout or settings.storage_timeout_seconds)
    except asyncio.TimeoutError as e:
        raise StorageUnavailable(f"Storage timed out during {operation}") from e
    except FlareError:
        raise
    except Exception as e:
        raise StorageUnavailable(f"Storage failed during {operation}: {e}") from e


class VoteStore(ABC):
    """Persistence contract for votes, preferences, scores and interactions."""

    @abstractmethod
    async def upsert_vote(
        self,
        user_id: str,
        item_id: str,
        value: VoteValue,
        platform: Optional[str] = None,
        category: Optional[str] = None,
    ) -> VoteValue:
        """Write the single vote for (user, item); return the previous value."""

    @abstractmethod
    async def get_user_votes(
        self,
        user_id: str,
        item_ids: Optional[Iterable[str]] = None,
    ) -> Dict[str, VoteValue]:
        """Live (non-neutral) votes for a user, optionally limited to items."""

    @abstractmethod
    async def get_user_vote_stats(self, user_id: str) -> UserVoteStats:
        """Counts of a user's live up and down votes."""

    @abstractmethod
    async def record_activity(
        self,
        user_id: str,
        event_type: str,
        item_id: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Append an activity event."""

    @abstractmethod
    async def get_preferences(self, user_id: str) -> Optional[UserPreferences]:
        """Stored preferences, or None if the user has none yet."""

    @abstractmethod
    async def upsert_preferences(self, user_id: str, preferences: UserPreferences) -> None:
        """Replace the user's preference record."""

    @abstractmethod
    async def increment_vote_counts(
        self,
        item_id: str,
        upvote_delta: int,
        downvote_delta: int,
    ) -> FlareScore:
        """Atomically apply deltas to an item's counts; return the new totals."""

    @abstractmethod
    async def get_flare_scores(self, item_ids: Iterable[str]) -> Dict[str, FlareScore]:
        """Counts for the given items; missing items are omitted."""

    @abstractmethod
    async def upsert_interaction(self, user_id: str, item_id: str, flags: Dict[str, Any]) -> None:
        """Merge interaction flags into the (user, item) record."""

    @abstractmethod
    async def get_interactions(self, user_id: str) -> Dict[str, Dict[str, Any]]:
        """Interaction records for a user keyed by item id."""

    @abstractmethod
    async def reset_user(self, user_id: str) -> None:
        """Delete preferences and clear interaction flags in one unit."""

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


# Field values that a reset writes back onto each interaction record
CLEARED_INTERACTION_FLAGS: Dict[str, Any] = {
    "vote": 0,
    "isSaved": False,
    "isHidden": False,
    "isShared": False,
    "timeSpentSec": None,
    "scrollDepth": None,
}


class InMemoryVoteStore(VoteStore):
    """
    Single-owner in-memory store.

    Every mutation runs under one asyncio.Lock, so counter updates are
    atomic read-modify-writes.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._votes: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self._preferences: Dict[str, UserPreferences] = {}
        self._counts: Dict[str, Tuple[int, int]] = {}
        self._interactions: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.activity: List[Dict[str, Any]] = []

    async def upsert_vote(
        self,
        user_id: str,
        item_id: str,
        value: VoteValue,
        platform: Optional[str] = None,
        category: Optional[str] = None,
    ) -> VoteValue:
        async with self._lock:
            key = (user_id, item_id)
            existing = self._votes.get(key)
            previous = VoteValue(existing["vote"]) if existing else VoteValue.NEUTRAL
            self._votes[key] = {
                "vote": int(value),
                "platform": platform,
                "category": category,
                "updatedAt": datetime.now(timezone.utc),
            }
            return previous

    async def get_user_votes(
        self,
        user_id: str,
        item_ids: Optional[Iterable[str]] = None,
    ) -> Dict[str, VoteValue]:
        wanted = set(item_ids) if item_ids is not None else None
        async with self._lock:
            return {
                item_id: VoteValue(row["vote"])
                for (uid, item_id), row in self._votes.items()
                if uid == user_id
                and row["vote"] != 0
                and (wanted is None or item_id in wanted)
            }

    async def get_user_vote_stats(self, user_id: str) -> UserVoteStats:
        votes = await self.get_user_votes(user_id)
        up = sum(1 for v in votes.values() if v == VoteValue.UP)
        down = sum(1 for v in votes.values() if v == VoteValue.DOWN)
        return UserVoteStats(upvotes=up, downvotes=down)

    async def record_activity(
        self,
        user_id: str,
        event_type: str,
        item_id: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        async with self._lock:
            self.activity.append({
                "userId": user_id,
                "eventType": event_type,
                "itemId": item_id,
                "metadata": metadata or {},
                "createdAt": datetime.now(timezone.utc),
            })

    async def get_preferences(self, user_id: str) -> Optional[UserPreferences]:
        async with self._lock:
            prefs = self._preferences.get(user_id)
            # Callers mutate what they get back
            return UserPreferences.from_dict(prefs.to_dict()) if prefs else None

    async def upsert_preferences(self, user_id: str, preferences: UserPreferences) -> None:
        async with self._lock:
            self._preferences[user_id] = UserPreferences.from_dict(preferences.to_dict())

    async def increment_vote_counts(
        self,
        item_id: str,
        upvote_delta: int,
        downvote_delta: int,
    ) -> FlareScore:
        async with self._lock:
            up, down = self._counts.get(item_id, (0, 0))
            up = max(0, up + upvote_delta)
            down = max(0, down + downvote_delta)
            self._counts[item_id] = (up, down)
            return FlareScore(upvotes=up, downvotes=down)

    async def get_flare_scores(self, item_ids: Iterable[str]) -> Dict[str, FlareScore]:
        async with self._lock:
            return {
                item_id: FlareScore(*self._counts[item_id])
                for item_id in item_ids
                if item_id in self._counts
            }

    async def upsert_interaction(self, user_id: str, item_id: str, flags: Dict[str, Any]) -> None:
        async with self._lock:
            record = self._interactions.setdefault((user_id, item_id), {})
            record.update(flags)
            record["updatedAt"] = datetime.now(timezone.utc)

    async def get_interactions(self, user_id: str) -> Dict[str, Dict[str, Any]]:
        async with self._lock:
            return {
                item_id: dict(record)
                for (uid, item_id), record in self._interactions.items()
                if uid == user_id
            }

    async def reset_user(self, user_id: str) -> None:
        async with self._lock:
            self._preferences.pop(user_id, None)
            for (uid, _), record in self._interactions.items():
                if uid == user_id:
                    record.update(CLEARED_INTERACTION_FLAGS)


__all__ = [
    "VoteStore",
    "InMemoryVoteStore",
    "CLEARED_INTERACTION_FLAGS",
    "guarded",
]
