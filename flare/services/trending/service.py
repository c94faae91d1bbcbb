"""Service that fetches, normalizes and caches trending items from all platforms."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from ...config import settings
from ...errors import UpstreamUnavailable
from .heat import hours_since
from .models import PLATFORM_WEIGHTS, ContentItem
from .normalizer import ItemNormalizer
from .sources import PlatformSource, build_default_sources

logger = logging.getLogger(__name__)


def unified_score(item: ContentItem, now: Optional[datetime] = None) -> float:
    """Platform-weighted engagement decayed by age."""
    age = max(0.0, hours_since(item.timestamp, now))
    weight = PLATFORM_WEIGHTS.get(item.platform, 1.0)
    return (item.engagement_count * weight) / ((age + 2) ** 1.5)


def unified_order(items: Sequence[ContentItem], now: Optional[datetime] = None) -> List[ContentItem]:
    """Default order for anonymous readers, re-ranked from 1."""
    now = now or datetime.now(timezone.utc)
    ordered = sorted(items, key=lambda item: unified_score(item, now), reverse=True)
    return [item.with_rank(index + 1) for index, item in enumerate(ordered)]


class TrendingService:
    """Fetch all enabled platforms concurrently and cache the merged list."""

    def __init__(
        self,
        *,
        sources: Optional[List[PlatformSource]] = None,
        normalizer: Optional[ItemNormalizer] = None,
        cache_ttl_seconds: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self._sources = sources if sources is not None else build_default_sources()
        self._normalizer = normalizer or ItemNormalizer()
        ttl = cache_ttl_seconds or settings.trending_cache_ttl_seconds
        self._cache_ttl = timedelta(seconds=max(10, ttl))
        self._timeout = timeout_seconds or settings.upstream_timeout_seconds
        self._cache: Optional[tuple[datetime, List[ContentItem]]] = None
        self._lock = asyncio.Lock()

    async def _fetch_source(self, source: PlatformSource) -> List[ContentItem]:
        """Fetch and normalize one platform; failures degrade to no items."""
        try:
            payload = await asyncio.wait_for(source.fetch(), timeout=self._timeout)
            items = self._normalizer.normalize(source.platform, payload)
        except asyncio.TimeoutError:
            logger.warning(f"Timed out fetching {source.platform.value}")
            return []
        except UpstreamUnavailable as e:
            logger.warning(f"Upstream unavailable: {e}")
            return []
        except Exception as e:
            logger.error(f"Error loading {source.platform.value}: {e!r}")
            return []

        return items[: source.limit]

    async def fetch_all(self) -> Dict[str, List[ContentItem]]:
        """Fetch every enabled platform, keyed by platform tag."""
        active = [s for s in self._sources if s.enabled]
        results = await asyncio.gather(*(self._fetch_source(s) for s in active))
        sections = {
            source.platform.value: items
            for source, items in zip(active, results)
            if items
        }
        logger.info(
            f"Fetched {sum(len(v) for v in sections.values())} items "
            f"from {len(sections)}/{len(active)} platforms"
        )
        return sections

    async def get_items(self, *, refresh: bool = False) -> List[ContentItem]:
        """Return cached trending items in unified order, refreshing as needed."""
        async with self._lock:
            now = datetime.now(timezone.utc)
            if not refresh and self._cache and now - self._cache[0] < self._cache_ttl:
                return list(self._cache[1])

            sections = await self.fetch_all()
            merged = [item for items in sections.values() for item in items]
            ordered = unified_order(merged, now)
            self._cache = (now, ordered)
            return list(ordered)

    async def close(self) -> None:
        for source in self._sources:
            await source.close()

    def stats(self) -> Dict[str, Any]:
        cached_at, items = self._cache or (None, [])
        return {
            "platforms": [s.platform.value for s in self._sources if s.enabled],
            "cachedItems": len(items),
            "cachedAt": cached_at.isoformat() if cached_at else None,
        }


__all__ = ["TrendingService", "unified_order", "unified_score"]
