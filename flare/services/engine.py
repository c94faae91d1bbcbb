"""
Feed Engine

Consumer-facing core API used by the HTTP layer. Wires the ledger to the
learner and aggregator, and exposes ranking, scores, stats and signals.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..db import get_store
from ..db.store import VoteStore, guarded
from ..errors import InvalidArgument, StorageUnavailable, Unauthenticated
from .ranking.ranker import PersonalizedRanker
from .trending.models import ContentItem
from .votes.flare_score import FlareScoreAggregator
from .votes.learner import PreferenceLearner
from .votes.ledger import VoteLedger
from .votes.models import (
    EXPLICIT_SIGNALS,
    FlareScore,
    InteractionSignal,
    SignalType,
    UserPreferences,
    VoteEvent,
    VoteValue,
)

logger = logging.getLogger(__name__)


class FeedEngine:
    """
    High-level service for votes, preferences and personalized feeds.

    Integrates:
    - Vote ledger (raw votes, source of truth)
    - Preference learner (subscribed to the ledger)
    - Flare Score aggregator (subscribed to the ledger)
    - Personalized ranker
    """

    def __init__(
        self,
        store: VoteStore,
        ranker: Optional[PersonalizedRanker] = None,
        learner: Optional[PreferenceLearner] = None,
        aggregator: Optional[FlareScoreAggregator] = None,
    ):
        self._store = store
        self.learner = learner or PreferenceLearner(store)
        self.aggregator = aggregator or FlareScoreAggregator(store)
        self.ranker = ranker or PersonalizedRanker()
        self.ledger = VoteLedger(
            store,
            subscribers=[self.learner.handle_vote_event, self.aggregator.handle_vote_event],
        )

    async def submit_vote(
        self,
        user_id: Optional[str],
        item_id: Optional[str],
        value: Any,
        platform: Optional[str] = None,
        category: Optional[str] = None,
    ) -> VoteEvent:
        return await self.ledger.submit_vote(user_id, item_id, value, platform, category)

    async def get_personalized_feed(
        self,
        user_id: Optional[str],
        items: Sequence[ContentItem],
    ) -> List[ContentItem]:
        """Rank items for a user; anonymous users get engagement order."""
        prefs = await self.learner.get_preferences(user_id) if user_id else None
        ranked = self.ranker.rank(items, prefs)
        return [item.with_rank(index + 1) for index, item in enumerate(ranked)]

    async def get_flare_score(self, item_id: str) -> FlareScore:
        return await self.aggregator.get_score(item_id)

    async def get_flare_scores_batch(self, item_ids: Iterable[str]) -> Dict[str, FlareScore]:
        return await self.aggregator.get_scores_batch(item_ids)

    async def get_user_votes(
        self,
        user_id: Optional[str],
        item_ids: Optional[Iterable[str]] = None,
    ) -> Dict[str, VoteValue]:
        return await self.ledger.get_user_votes(user_id, item_ids)

    async def get_preferences(self, user_id: Optional[str]) -> UserPreferences:
        return await self.learner.get_preferences(user_id)

    async def reset_preferences(self, user_id: Optional[str]) -> None:
        await self.learner.reset_preferences(user_id)

    async def update_settings(self, user_id: Optional[str], **changes: Any) -> UserPreferences:
        return await self.learner.update_settings(user_id, **changes)

    async def get_stats(self, user_id: Optional[str]) -> Dict[str, Any]:
        """Preferences plus interaction and vote counts."""
        if not user_id:
            raise Unauthenticated()
        prefs = await self.learner.get_preferences(user_id)
        votes = await self.ledger.get_user_vote_stats(user_id)
        return {
            "preferences": prefs,
            "totalInteractions": prefs.total_interactions,
            "totalVotes": votes.total_votes,
            "upvotes": votes.upvotes,
            "downvotes": votes.downvotes,
            "isPersonalized": self.ranker.is_personalized(prefs),
        }

    async def track_signals(
        self,
        user_id: Optional[str],
        signals: Sequence[Dict[str, Any]],
    ) -> int:
        """
        Record implicit interaction signals.

        Returns:
            Number of signals processed
        """
        if not user_id:
            raise Unauthenticated()

        parsed: List[InteractionSignal] = []
        for raw in signals:
            item_id = raw.get("itemId")
            if not item_id:
                raise InvalidArgument("itemId is required for every signal")
            try:
                signal_type = SignalType(raw.get("type"))
            except ValueError as e:
                raise InvalidArgument(f"Unknown signal type {raw.get('type')!r}") from e
            parsed.append(InteractionSignal(
                item_id=item_id,
                type=signal_type,
                value=raw.get("value"),
                platform=raw.get("platform"),
                category=raw.get("category"),
            ))

        for signal in parsed:
            await guarded(
                self._store.upsert_interaction(user_id, signal.item_id, signal.to_flags()),
                "upsert_interaction",
            )
            if signal.type in EXPLICIT_SIGNALS:
                try:
                    await guarded(
                        self._store.record_activity(user_id, signal.type.value, signal.item_id),
                        "record_activity",
                    )
                except StorageUnavailable as e:
                    logger.warning(f"Activity event not recorded: {e}")

        return len(parsed)

    async def ping(self) -> bool:
        return await self._store.ping()

    async def close(self) -> None:
        await self._store.close()


_engine: Optional[FeedEngine] = None


def get_engine() -> FeedEngine:
    """Get the application engine, built on the configured store."""
    global _engine
    if _engine is None:
        _engine = FeedEngine(get_store())
    return _engine
