"""
API tests for the feed, preference and community endpoints.

The engine and trending service are swapped for in-memory instances via
dependency overrides, so no network or Convex deployment is needed.
"""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from flare.api.deps import engine_dependency, get_trending_service
from flare.db.store import InMemoryVoteStore
from flare.main import app
from flare.services.engine import FeedEngine
from flare.services.trending import ItemNormalizer, Platform, PlatformSource, TrendingService

EPOCH_NOW = int(datetime.now(timezone.utc).timestamp())
USER = {"X-User-Id": "user-1"}


class StaticSource(PlatformSource):
    platform = Platform.HACKERNEWS

    async def fetch(self):
        return [
            {"id": 1, "title": "Quiet story", "score": 10, "time": EPOCH_NOW - 3600 * 5},
            {"id": 2, "title": "Loud story", "score": 5000, "time": EPOCH_NOW - 1800},
        ]


@pytest.fixture
def engine():
    return FeedEngine(InMemoryVoteStore())


@pytest.fixture
def client(engine):
    trending = TrendingService(sources=[StaticSource()], normalizer=ItemNormalizer(ensure_images=False))
    app.dependency_overrides[engine_dependency] = lambda: engine
    app.dependency_overrides[get_trending_service] = lambda: trending
    yield TestClient(app)
    app.dependency_overrides.clear()


# =============================================================================
# Health & Feed
# =============================================================================


class TestHealth:
    def test_healthz(self, client):
        response = client.get("/healthz")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["trending"]["platforms"] == ["hackernews"]

    def test_success_has_no_error_category(self, client):
        response = client.get("/healthz")
        assert "x-error-category" not in response.headers

    def test_request_id_header(self, client):
        response = client.get("/", headers={"x-request-id": "abc123"})
        assert response.headers["x-request-id"] == "abc123"


class TestFeed:
    def test_anonymous_feed_has_heat(self, client):
        response = client.get("/feed")
        assert response.status_code == 200

        data = response.json()
        assert data["count"] == 2
        assert data["personalized"] is False
        loud, quiet = data["items"]
        assert loud["id"] == "hackernews:2"
        assert loud["rank"] == 1
        assert loud["heatLevel"] == "viral"
        assert loud["heatBadge"]["label"] == "Viral"
        assert quiet["heatLevel"] == "cold"
        assert quiet["heatBadge"] is None

    def test_limit(self, client):
        data = client.get("/feed", params={"limit": 1}).json()
        assert data["count"] == 1

    def test_rank_endpoint(self, client):
        body = {"items": [
            {"id": "reddit:a", "platform": "reddit", "title": "A", "engagementCount": 5,
             "timestamp": "2026-03-01T12:00:00Z"},
            {"id": "reddit:b", "platform": "reddit", "title": "B", "engagementCount": 50,
             "timestamp": "2026-03-01T12:00:00Z"},
        ]}
        response = client.post("/feed/rank", json=body, headers=USER)

        assert response.status_code == 200
        assert [i["id"] for i in response.json()["items"]] == ["reddit:b", "reddit:a"]

    def test_rank_rejects_unknown_platform(self, client):
        body = {"items": [{"id": "x:1", "platform": "myspace", "title": "t",
                           "timestamp": "2026-03-01T12:00:00Z"}]}
        response = client.post("/feed/rank", json=body)
        assert response.status_code == 400
        assert response.json()["category"] == "validation"


# =============================================================================
# Votes & Scores
# =============================================================================


class TestVotes:
    def test_vote_requires_identity(self, client):
        response = client.post("/preferences/vote", json={"itemId": "reddit:a", "vote": 1})
        assert response.status_code == 401
        assert response.json()["error"] == "Authentication required"
        assert response.headers["x-error-category"] == "authentication"

    def test_vote_out_of_range(self, client):
        response = client.post("/preferences/vote", json={"itemId": "reddit:a", "vote": 3}, headers=USER)
        assert response.status_code == 400

    def test_vote_then_score(self, client):
        response = client.post(
            "/preferences/vote",
            json={"itemId": "reddit:a", "vote": 1, "platform": "reddit", "category": "pics"},
            headers=USER,
        )
        assert response.status_code == 200
        assert response.json()["success"] is True

        score = client.get("/community/flare-score/reddit:a", headers=USER).json()
        assert score == {
            "itemId": "reddit:a",
            "upvotes": 1,
            "downvotes": 0,
            "score": 1,
            "voterCount": 1,
            "userVote": 1,
        }

        anonymous = client.get("/community/flare-score/reddit:a").json()
        assert anonymous["userVote"] == 0

        votes = client.get("/preferences/vote", headers=USER).json()
        assert votes == {"votes": {"reddit:a": 1}}

    def test_batch_scores(self, client):
        client.post("/preferences/vote", json={"itemId": "reddit:a", "vote": -1}, headers=USER)

        response = client.post(
            "/community/flare-score/batch",
            json={"itemIds": ["reddit:a", "reddit:b"]},
            headers=USER,
        )

        scores = response.json()["scores"]
        assert scores["reddit:a"]["downvotes"] == 1
        assert scores["reddit:a"]["userVote"] == -1
        assert scores["reddit:b"]["score"] == 0

    def test_batch_empty(self, client):
        response = client.post("/community/flare-score/batch", json={"itemIds": []})
        assert response.json() == {"scores": {}}


# =============================================================================
# Preferences
# =============================================================================


class TestPreferences:
    def test_stats_after_votes(self, client):
        for n in range(5):
            client.post(
                "/preferences/vote",
                json={"itemId": f"hackernews:{n}", "vote": 1, "platform": "hackernews"},
                headers=USER,
            )

        data = client.get("/preferences/stats", headers=USER).json()

        assert data["stats"]["totalInteractions"] == 5
        assert data["stats"]["upvotes"] == 5
        assert data["stats"]["isPersonalized"] is True
        assert data["preferences"]["platformScores"]["hackernews"] == pytest.approx(0.5)

        feed = client.get("/feed", headers=USER).json()
        assert feed["personalized"] is True

    def test_update_settings(self, client):
        response = client.put(
            "/preferences/stats",
            json={"recencyWeight": 0.9, "explorationPercentage": 0},
            headers=USER,
        )
        assert response.status_code == 200

        prefs = client.get("/preferences/stats", headers=USER).json()["preferences"]
        assert prefs["recencyWeight"] == 0.9
        assert prefs["viralityWeight"] == 0.5
        assert prefs["explorationPercentage"] == 0

    def test_update_settings_validation(self, client):
        response = client.put("/preferences/stats", json={"viralityWeight": 2}, headers=USER)
        assert response.status_code == 400

    def test_reset(self, client):
        client.post("/preferences/vote", json={"itemId": "reddit:a", "vote": 1, "platform": "reddit"},
                    headers=USER)

        assert client.delete("/preferences/stats", headers=USER).status_code == 200

        data = client.get("/preferences/stats", headers=USER).json()
        assert data["stats"]["totalInteractions"] == 0
        assert data["preferences"]["platformScores"] == {}
        # Votes are kept
        assert data["stats"]["upvotes"] == 1

    def test_track(self, client):
        response = client.post(
            "/preferences/track",
            json={"signals": [{"itemId": "reddit:a", "type": "save"},
                              {"itemId": "reddit:a", "type": "scroll", "value": 0.8}]},
            headers=USER,
        )
        assert response.json() == {"success": True, "processed": 2}

    def test_track_unknown_type(self, client):
        response = client.post(
            "/preferences/track",
            json={"signals": [{"itemId": "reddit:a", "type": "stare"}]},
            headers=USER,
        )
        assert response.status_code == 400
