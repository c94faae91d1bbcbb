"""
Platform Sources

Fetchers for raw trending payloads:
- Reddit r/popular (and local subreddits)
- Hacker News top stories
- YouTube most-popular chart
- Google Trends RSS

Each fetcher returns the platform's raw payload; normalization happens in
ItemNormalizer. Failures surface as UpstreamUnavailable.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import httpx

from ...config import settings
from ...errors import UpstreamUnavailable
from .models import Platform

logger = logging.getLogger(__name__)


class PlatformSource(ABC):
    """Base class for platform fetchers."""

    platform: Platform

    def __init__(self, timeout: Optional[float] = None, limit: int = 25):
        self._timeout = timeout or settings.upstream_timeout_seconds
        self.limit = limit
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def enabled(self) -> bool:
        return True

    def _headers(self) -> Dict[str, str]:
        return {"User-Agent": settings.reddit_user_agent}

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers=self._headers(),
                follow_redirects=True,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        client = await self._get_client()
        try:
            response = await client.get(url, params=params)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            raise UpstreamUnavailable(
                f"{self.platform.value} returned {e.response.status_code}",
                platform=self.platform.value,
            ) from e
        except httpx.RequestError as e:
            raise UpstreamUnavailable(
                f"{self.platform.value} request failed: {e}",
                platform=self.platform.value,
            ) from e

    @abstractmethod
    async def fetch(self) -> Any:
        """Fetch the raw trending payload."""


class RedditSource(PlatformSource):
    """Hot posts from r/popular."""

    platform = Platform.REDDIT

    def __init__(self, timeout: Optional[float] = None, limit: Optional[int] = None):
        super().__init__(timeout, limit or settings.reddit_limit)

    async def fetch(self) -> Any:
        response = await self._get(
            "https://www.reddit.com/r/popular/hot.json",
            params={"limit": self.limit},
        )
        return response.json()


class LocalRedditSource(PlatformSource):
    """Hot posts from a set of local subreddits, merged into one listing."""

    platform = Platform.LOCAL

    def __init__(self, subreddits: Sequence[str], timeout: Optional[float] = None, limit: int = 10):
        super().__init__(timeout, limit)
        self._subreddits = list(subreddits)

    @property
    def enabled(self) -> bool:
        return bool(self._subreddits)

    async def fetch(self) -> Any:
        children: List[Dict[str, Any]] = []
        for subreddit in self._subreddits:
            try:
                response = await self._get(
                    f"https://www.reddit.com/r/{subreddit}/hot.json",
                    params={"limit": self.limit},
                )
                children.extend(response.json().get("data", {}).get("children", []))
            except UpstreamUnavailable as e:
                logger.warning(f"Local subreddit fetch error for {subreddit}: {e}")
        return {"data": {"children": children}}


class HackerNewsSource(PlatformSource):
    """Top stories from the Hacker News Firebase API."""

    platform = Platform.HACKERNEWS
    BASE_URL = "https://hacker-news.firebaseio.com/v0"

    def __init__(self, timeout: Optional[float] = None, limit: Optional[int] = None, max_concurrent: int = 10):
        super().__init__(timeout, limit or settings.hackernews_limit)
        self._semaphore = asyncio.Semaphore(max_concurrent)

    async def _fetch_story(self, story_id: int) -> Optional[Dict[str, Any]]:
        async with self._semaphore:
            try:
                response = await self._get(f"{self.BASE_URL}/item/{story_id}.json")
                return response.json()
            except UpstreamUnavailable as e:
                logger.warning(f"Skipping HN story {story_id}: {e}")
                return None

    async def fetch(self) -> Any:
        response = await self._get(f"{self.BASE_URL}/topstories.json")
        story_ids = response.json()[: self.limit]
        stories = await asyncio.gather(*(self._fetch_story(i) for i in story_ids))
        return [s for s in stories if s]


class YouTubeSource(PlatformSource):
    """Most-popular videos chart. Requires an API key."""

    platform = Platform.YOUTUBE

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        limit: Optional[int] = None,
    ):
        super().__init__(timeout, limit or settings.youtube_limit)
        self._api_key = api_key if api_key is not None else settings.youtube_api_key

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    async def fetch(self) -> Any:
        if not self._api_key:
            raise UpstreamUnavailable("YouTube API key not configured", platform=self.platform.value)
        response = await self._get(
            "https://www.googleapis.com/youtube/v3/videos",
            params={
                "part": "snippet,statistics",
                "chart": "mostPopular",
                "regionCode": settings.youtube_region_code,
                "maxResults": self.limit,
                "key": self._api_key,
            },
        )
        return response.json()


class GoogleTrendsSource(PlatformSource):
    """Daily trending searches via RSS."""

    platform = Platform.GOOGLE

    def __init__(self, timeout: Optional[float] = None, limit: Optional[int] = None):
        super().__init__(timeout, limit or settings.google_trends_limit)

    def _headers(self) -> Dict[str, str]:
        return {
            "User-Agent": settings.reddit_user_agent,
            "Accept": "application/rss+xml, application/xml, text/xml",
        }

    async def fetch(self) -> Any:
        response = await self._get(
            "https://trends.google.com/trending/rss",
            params={"geo": settings.google_trends_geo},
        )
        return response.text


SOURCE_FACTORIES = {
    Platform.REDDIT: RedditSource,
    Platform.HACKERNEWS: HackerNewsSource,
    Platform.YOUTUBE: YouTubeSource,
    Platform.GOOGLE: GoogleTrendsSource,
    Platform.LOCAL: lambda: LocalRedditSource(settings.local_subreddits),
}


def build_default_sources(platforms: Optional[Sequence[str]] = None) -> List[PlatformSource]:
    """Instantiate fetchers for the configured platforms."""
    sources: List[PlatformSource] = []
    for name in platforms if platforms is not None else settings.enabled_platforms:
        platform = Platform.parse(name)
        factory = SOURCE_FACTORIES.get(platform) if platform else None
        if factory is None:
            logger.warning(f"No fetcher for platform {name!r}")
            continue
        sources.append(factory())
    return sources


__all__ = [
    "PlatformSource",
    "RedditSource",
    "LocalRedditSource",
    "HackerNewsSource",
    "YouTubeSource",
    "GoogleTrendsSource",
    "build_default_sources",
]
