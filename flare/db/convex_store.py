"""
Convex-backed VoteStore.

Each method maps to one Convex function. Counter increments and user resets
are single mutations, so they commit atomically on the server.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional

from ..services.votes.models import (
    FlareScore,
    UserPreferences,
    UserVoteStats,
    VoteValue,
)
from .convex_client import ConvexClient
from .store import CLEARED_INTERACTION_FLAGS, VoteStore

logger = logging.getLogger(__name__)


class ConvexVoteStore(VoteStore):
    """VoteStore backed by Convex queries and mutations."""

    def __init__(self, client: ConvexClient):
        self._convex = client

    async def upsert_vote(
        self,
        user_id: str,
        item_id: str,
        value: VoteValue,
        platform: Optional[str] = None,
        category: Optional[str] = None,
    ) -> VoteValue:
        previous = await self._convex.mutation(
            "votes:upsert",
            {
                "userId": user_id,
                "itemId": item_id,
                "vote": int(value),
                "platform": platform,
                "category": category,
            },
        )
        return VoteValue(int(previous or 0))

    async def get_user_votes(
        self,
        user_id: str,
        item_ids: Optional[Iterable[str]] = None,
    ) -> Dict[str, VoteValue]:
        args: Dict[str, Any] = {"userId": user_id}
        if item_ids is not None:
            args["itemIds"] = list(item_ids)
        rows = await self._convex.query("votes:listByUser", args) or []
        return {
            row["itemId"]: VoteValue(int(row["vote"]))
            for row in rows
            if int(row.get("vote", 0)) != 0
        }

    async def get_user_vote_stats(self, user_id: str) -> UserVoteStats:
        stats = await self._convex.query("votes:statsByUser", {"userId": user_id}) or {}
        return UserVoteStats(
            upvotes=int(stats.get("upvotes", 0)),
            downvotes=int(stats.get("downvotes", 0)),
        )

    async def record_activity(
        self,
        user_id: str,
        event_type: str,
        item_id: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        await self._convex.mutation(
            "activity:record",
            {
                "userId": user_id,
                "eventType": event_type,
                "itemId": item_id,
                "metadata": metadata or {},
            },
        )

    async def get_preferences(self, user_id: str) -> Optional[UserPreferences]:
        record = await self._convex.query("preferences:get", {"userId": user_id})
        return UserPreferences.from_dict(record) if record else None

    async def upsert_preferences(self, user_id: str, preferences: UserPreferences) -> None:
        await self._convex.mutation(
            "preferences:upsert",
            {"userId": user_id, **preferences.to_dict()},
        )

    async def increment_vote_counts(
        self,
        item_id: str,
        upvote_delta: int,
        downvote_delta: int,
    ) -> FlareScore:
        result = await self._convex.mutation(
            "flareScores:increment",
            {
                "itemId": item_id,
                "upvoteDelta": upvote_delta,
                "downvoteDelta": downvote_delta,
            },
        ) or {}
        return FlareScore(
            upvotes=max(0, int(result.get("upvotes", 0))),
            downvotes=max(0, int(result.get("downvotes", 0))),
        )

    async def get_flare_scores(self, item_ids: Iterable[str]) -> Dict[str, FlareScore]:
        rows = await self._convex.query("flareScores:getMany", {"itemIds": list(item_ids)}) or []
        return {
            row["itemId"]: FlareScore(
                upvotes=max(0, int(row.get("upvotes", 0))),
                downvotes=max(0, int(row.get("downvotes", 0))),
            )
            for row in rows
        }

    async def upsert_interaction(self, user_id: str, item_id: str, flags: Dict[str, Any]) -> None:
        await self._convex.mutation(
            "interactions:upsert",
            {"userId": user_id, "itemId": item_id, "flags": flags},
        )

    async def get_interactions(self, user_id: str) -> Dict[str, Dict[str, Any]]:
        rows = await self._convex.query("interactions:listByUser", {"userId": user_id}) or []
        return {row["itemId"]: row.get("flags", {}) for row in rows}

    async def reset_user(self, user_id: str) -> None:
        await self._convex.mutation(
            "preferences:reset",
            {"userId": user_id, "clearedFlags": CLEARED_INTERACTION_FLAGS},
        )

    async def ping(self) -> bool:
        try:
            await self._convex.query("preferences:get", {"userId": "__healthcheck__"})
            return True
        except Exception as e:
            logger.warning(f"Convex ping failed: {e}")
            return False

    async def close(self) -> None:
        await self._convex.close()
