"""
Personalized Ranker

Re-ranks trending items with a user's learned platform/category affinities,
then applies bounded random exploration.
"""

from __future__ import annotations

import logging
import random
from typing import List, Optional, Sequence

from ...config import settings
from ..trending.models import ContentItem
from ..votes.models import UserPreferences

logger = logging.getLogger(__name__)

# Lowest multiplier a maximally disliked item can get
MULTIPLIER_FLOOR = 0.1


class PersonalizedRanker:
    """
    Orders items by ``engagement * max(0.1, 1 + platform + category)``.

    Users below the interaction threshold get plain engagement order.
    Exploration swaps pull items from beyond the feed head into it. A swap
    only fires when the source index is past the window; draws that land
    inside the head are spent without effect.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        min_interactions: Optional[int] = None,
        exploration_window: Optional[int] = None,
    ):
        self._rng = rng or random.Random()
        self._min_interactions = (
            min_interactions if min_interactions is not None
            else settings.personalization_min_interactions
        )
        self._window = exploration_window or settings.exploration_window

    def is_personalized(self, prefs: Optional[UserPreferences]) -> bool:
        return prefs is not None and prefs.total_interactions >= self._min_interactions

    @staticmethod
    def multiplier(item: ContentItem, prefs: UserPreferences) -> float:
        raw = 1 + prefs.platform_score(item.platform.value) + prefs.category_score(item.category)
        return max(MULTIPLIER_FLOOR, raw)

    def score(self, item: ContentItem, prefs: UserPreferences) -> float:
        return item.engagement_count * self.multiplier(item, prefs)

    def rank(self, items: Sequence[ContentItem], prefs: Optional[UserPreferences]) -> List[ContentItem]:
        """Return a new ordered list; ties keep their input order."""
        if not self.is_personalized(prefs):
            return sorted(items, key=lambda item: item.engagement_count, reverse=True)

        ranked = sorted(items, key=lambda item: self.score(item, prefs), reverse=True)

        if prefs.exploration_enabled and prefs.exploration_percentage > 0:
            self._explore(ranked, prefs.exploration_percentage)

        return ranked

    def _explore(self, ranked: List[ContentItem], percentage: int) -> None:
        n = len(ranked)
        if n == 0:
            return
        num_explore = int(n * percentage // 100)
        head = min(self._window, n)
        swaps = 0
        for _ in range(num_explore):
            i = self._rng.randrange(n)
            j = self._rng.randrange(head)
            # TODO: confirm with product whether head items should also be pushed down
            if i != j and i > self._window:
                ranked[i], ranked[j] = ranked[j], ranked[i]
                swaps += 1
        logger.debug(f"Exploration applied {swaps}/{num_explore} swaps over {n} items")
