"""
Vote Ledger

Records one vote per (user, item) and notifies subscribers after the write
commits. Subscriber failures are logged and never undo the recorded vote.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from ...db.store import VoteStore, guarded
from ...errors import InvalidArgument, StorageUnavailable, Unauthenticated
from .models import UserVoteStats, VoteEvent, VoteValue

logger = logging.getLogger(__name__)

VoteSubscriber = Callable[[VoteEvent], Awaitable[Any]]


class VoteLedger:
    """Source of truth for users' raw votes."""

    def __init__(self, store: VoteStore, subscribers: Optional[List[VoteSubscriber]] = None):
        self._store = store
        self._subscribers: List[VoteSubscriber] = list(subscribers or [])

    def subscribe(self, handler: VoteSubscriber) -> None:
        """Register a handler awaited after each recorded vote."""
        self._subscribers.append(handler)

    async def submit_vote(
        self,
        user_id: Optional[str],
        item_id: Optional[str],
        value: Any,
        platform: Optional[str] = None,
        category: Optional[str] = None,
    ) -> VoteEvent:
        """
        Record a vote and notify subscribers.

        Args:
            user_id: Authenticated user
            item_id: Platform-qualified item id
            value: -1, 0 or 1
            platform: Optional platform hint for preference learning
            category: Optional category hint for preference learning

        Returns:
            The emitted VoteEvent

        Raises:
            Unauthenticated: No user context
            InvalidArgument: Missing item id or out-of-range value
            StorageUnavailable: The vote was not recorded
        """
        if not user_id:
            raise Unauthenticated()
        if not item_id:
            raise InvalidArgument("itemId is required")
        try:
            vote = VoteValue.parse(value)
        except ValueError as e:
            raise InvalidArgument(str(e), {"value": value}) from e

        previous = await guarded(
            self._store.upsert_vote(user_id, item_id, vote, platform, category),
            "upsert_vote",
        )

        event = VoteEvent(
            user_id=user_id,
            item_id=item_id,
            value=vote,
            previous_value=previous,
            platform=platform or None,
            category=category or None,
        )
        logger.info(
            f"Vote recorded user={user_id} item={item_id} "
            f"{int(previous)} -> {int(vote)}"
        )

        await self._record_activity(event)
        await self._notify(event)
        return event

    async def _record_activity(self, event: VoteEvent) -> None:
        try:
            await guarded(
                self._store.record_activity(
                    event.user_id,
                    event.value.activity_type,
                    event.item_id,
                    {"platform": event.platform, "category": event.category},
                ),
                "record_activity",
            )
        except StorageUnavailable as e:
            logger.warning(f"Activity event not recorded: {e}")

    async def _notify(self, event: VoteEvent) -> None:
        for handler in self._subscribers:
            try:
                await handler(event)
            except Exception as e:
                name = getattr(handler, "__qualname__", repr(handler))
                logger.error(f"Vote subscriber {name} failed for {event.item_id}: {e}")

    async def get_user_votes(
        self,
        user_id: Optional[str],
        item_ids: Optional[Iterable[str]] = None,
    ) -> Dict[str, VoteValue]:
        """A user's live votes; empty for anonymous users or on read failure."""
        if not user_id:
            return {}
        try:
            return await guarded(self._store.get_user_votes(user_id, item_ids), "get_user_votes")
        except StorageUnavailable as e:
            logger.warning(f"Falling back to no votes for {user_id}: {e}")
            return {}

    async def get_user_vote_stats(self, user_id: str) -> UserVoteStats:
        try:
            return await guarded(self._store.get_user_vote_stats(user_id), "get_user_vote_stats")
        except StorageUnavailable as e:
            logger.warning(f"Falling back to empty vote stats for {user_id}: {e}")
            return UserVoteStats()
