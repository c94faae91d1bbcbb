"""
Tests for Platform Sources

HTTP behavior of the fetchers against httpx.MockTransport.
"""

import httpx
import pytest

from flare.errors import UpstreamUnavailable
from flare.services.trending import GoogleTrendsSource, HackerNewsSource, LocalRedditSource, RedditSource
from flare.services.trending.sources import build_default_sources


def attach(source, handler):
    source._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return source


class TestReddit:
    @pytest.mark.asyncio
    async def test_fetch_popular(self):
        def handler(request):
            assert request.url.path == "/r/popular/hot.json"
            assert request.url.params["limit"] == "5"
            return httpx.Response(200, json={"data": {"children": []}})

        source = attach(RedditSource(limit=5), handler)
        assert await source.fetch() == {"data": {"children": []}}
        await source.close()

    @pytest.mark.asyncio
    async def test_http_error_is_upstream_unavailable(self):
        source = attach(RedditSource(), lambda request: httpx.Response(429))

        with pytest.raises(UpstreamUnavailable) as exc_info:
            await source.fetch()

        assert exc_info.value.platform == "reddit"
        assert "429" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_network_error_is_upstream_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        source = attach(RedditSource(), handler)
        with pytest.raises(UpstreamUnavailable):
            await source.fetch()


class TestLocalReddit:
    @pytest.mark.asyncio
    async def test_merges_subreddits_and_skips_failures(self):
        def handler(request):
            if "/r/austin/" in request.url.path:
                return httpx.Response(503)
            return httpx.Response(200, json={"data": {"children": [{"data": {"id": request.url.path}}]}})

        source = attach(LocalRedditSource(["sf", "austin", "nyc"]), handler)
        payload = await source.fetch()

        assert [c["data"]["id"] for c in payload["data"]["children"]] == [
            "/r/sf/hot.json",
            "/r/nyc/hot.json",
        ]

    def test_disabled_without_subreddits(self):
        assert not LocalRedditSource([]).enabled


class TestHackerNews:
    @pytest.mark.asyncio
    async def test_skips_failed_stories(self):
        def handler(request):
            path = request.url.path
            if path.endswith("/topstories.json"):
                return httpx.Response(200, json=[1, 2, 3, 4])
            if path.endswith("/item/2.json"):
                return httpx.Response(500)
            story_id = int(path.rsplit("/", 1)[-1].split(".")[0])
            return httpx.Response(200, json={"id": story_id, "title": f"Story {story_id}"})

        source = attach(HackerNewsSource(limit=3), handler)
        stories = await source.fetch()

        assert [s["id"] for s in stories] == [1, 3]


class TestGoogleTrends:
    @pytest.mark.asyncio
    async def test_returns_rss_text(self):
        def handler(request):
            assert request.url.params["geo"]
            return httpx.Response(200, text="<rss><channel/></rss>")

        source = attach(GoogleTrendsSource(), handler)
        assert await source.fetch() == "<rss><channel/></rss>"


def test_build_default_sources_skips_unknown():
    sources = build_default_sources(["reddit", "hackernews", "friendster"])
    assert [s.platform.value for s in sources] == ["reddit", "hackernews"]
