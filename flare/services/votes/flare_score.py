"""
Flare Score Aggregator

Serves community vote aggregates per item through a short-TTL read-through
cache, and applies vote deltas with the store's atomic increment.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from ...cache import TTLCache
from ...config import settings
from ...db.store import VoteStore, guarded
from ...errors import StorageUnavailable
from .models import FlareScore, VoteEvent, VoteValue

logger = logging.getLogger(__name__)


def vote_deltas(previous: VoteValue, new: VoteValue) -> tuple[int, int]:
    """(upvote_delta, downvote_delta) for a vote change."""
    up = int(new == VoteValue.UP) - int(previous == VoteValue.UP)
    down = int(new == VoteValue.DOWN) - int(previous == VoteValue.DOWN)
    return up, down


def _cache_key(item_id: str) -> str:
    return f"flare:{item_id}"


class FlareScoreAggregator:
    """Per-item upvote/downvote totals."""

    def __init__(
        self,
        store: VoteStore,
        cache: Optional[TTLCache] = None,
        batch_limit: Optional[int] = None,
    ):
        self._store = store
        self._cache = cache or TTLCache(
            default_ttl=settings.flare_score_cache_ttl_seconds,
            max_size=settings.max_cache_size,
        )
        self._batch_limit = batch_limit or settings.flare_score_batch_limit

    async def apply_vote(self, item_id: str, previous: VoteValue, new: VoteValue) -> Optional[FlareScore]:
        """
        Apply a vote change to the item's counts.

        Returns the new totals, or None when the change has no effect on
        the counts (e.g. re-submitting the same vote).
        """
        upvote_delta, downvote_delta = vote_deltas(previous, new)
        if upvote_delta == 0 and downvote_delta == 0:
            return None

        score = await guarded(
            self._store.increment_vote_counts(item_id, upvote_delta, downvote_delta),
            "increment_vote_counts",
        )
        await self._cache.delete(_cache_key(item_id))
        return score

    async def handle_vote_event(self, event: VoteEvent) -> None:
        """Ledger subscriber."""
        await self.apply_vote(event.item_id, event.previous_value, event.value)

    async def get_score(self, item_id: str) -> FlareScore:
        """Score for one item; zero on miss or read failure."""
        scores = await self.get_scores_batch([item_id])
        return scores.get(item_id, FlareScore())

    async def get_scores_batch(self, item_ids: Iterable[str]) -> Dict[str, FlareScore]:
        """
        Scores for up to ``batch_limit`` distinct items.

        Every requested id (after the cap) is present in the result.
        """
        limited: List[str] = []
        for item_id in item_ids:
            if item_id and item_id not in limited:
                limited.append(item_id)
            if len(limited) >= self._batch_limit:
                break

        result: Dict[str, FlareScore] = {}
        missing: List[str] = []
        for item_id in limited:
            cached = await self._cache.get(_cache_key(item_id))
            if cached is not None:
                result[item_id] = cached
            else:
                missing.append(item_id)

        if missing:
            try:
                fetched = await guarded(self._store.get_flare_scores(missing), "get_flare_scores")
            except StorageUnavailable as e:
                logger.warning(f"Falling back to zero scores for {len(missing)} items: {e}")
                result.update({item_id: FlareScore() for item_id in missing})
                return result

            for item_id in missing:
                score = fetched.get(item_id, FlareScore())
                result[item_id] = score
                await self._cache.set(_cache_key(item_id), score)

        return result
