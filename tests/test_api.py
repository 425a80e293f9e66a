# tests/test_api.py
"""
Contract tests for API responses.
"""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from app.llm.base import TextGenerator
from app.main import app
from app.routers.reddit import get_analytics_service, get_insight_generator

POST_URL = "https://www.reddit.com/r/python/comments/abc123/i_love_this/"


@pytest.fixture
def routes(reddit):
    return {
        "/comments/abc123.json": reddit.post(),
        "/oembed": reddit.oembed(),
        "/r/python/about.json": reddit.subreddit_about(),
        "/r/python/top.json": reddit.listing([reddit.submission("Great week", item_id="t1")]),
        "/r/python/new.json": reddit.listing([reddit.submission("New here", item_id="n1")]),
        "/user/spez/about.json": reddit.user_about(),
        "/user/spez/overview.json": reddit.listing([]),
        "/r/broken/about.json": httpx.Response(500),
    }


@pytest.fixture
def service(service_factory, routes):
    service, _ = service_factory(routes, max_attempts=1)
    return service


@pytest.fixture
def generator():
    return None


@pytest.fixture
def client(service, generator):
    """Create test client with the analytics service wired to mock upstreams."""
    app.dependency_overrides[get_analytics_service] = lambda: service
    app.dependency_overrides[get_insight_generator] = lambda: generator
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealthEndpoints:
    """Test health check endpoints."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "reddit-analytics-backend"

    def test_reddit_test_endpoint(self, client):
        response = client.get("/v1/reddit/test")
        assert response.status_code == 200
        assert response.json()["success"] is True


class TestPostEndpoint:
    """Test POST /v1/reddit/post contract."""

    def test_post_analytics(self, client):
        response = client.post("/v1/reddit/post", json={"url": POST_URL})
        assert response.status_code == 200

        body = response.json()
        assert body["success"] is True
        assert body["cached"] is False
        assert body["warnings"] == []
        assert body["data"]["post_id"] == "abc123"
        assert body["data"]["scoring_version"] == "v1"
        assert 0 <= body["data"]["engagement"]["score"] <= 100
        assert body["data"]["sentiment"]["category"] in ("Positive", "Neutral", "Negative")

    def test_repeat_request_is_cached(self, client):
        client.post("/v1/reddit/post", json={"url": POST_URL})
        response = client.post("/v1/reddit/post", json={"url": POST_URL})

        assert response.status_code == 200
        assert response.json()["cached"] is True

    def test_invalid_url(self, client):
        response = client.post("/v1/reddit/post", json={"url": "https://example.com/nothing"})
        assert response.status_code == 400

        body = response.json()
        assert body["success"] is False
        assert body["code"] == "INVALID_URL_FORMAT"

    def test_missing_body(self, client):
        response = client.post("/v1/reddit/post", json={})
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_INPUT"

    def test_post_not_found(self, client):
        response = client.post("/v1/reddit/post", json={"url": "https://redd.it/zzz999"})
        assert response.status_code == 404
        assert response.json()["code"] == "POST_NOT_FOUND"


class TestUserEndpoint:
    def test_user_analytics(self, client):
        response = client.get("/v1/reddit/user/spez")
        assert response.status_code == 200

        data = response.json()["data"]
        assert data["username"] == "spez"
        assert data["karma"]["total"] == 150

    def test_invalid_username(self, client):
        response = client.get("/v1/reddit/user/ab")
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_USERNAME"

    def test_unknown_user(self, client):
        response = client.get("/v1/reddit/user/ghost_user")
        assert response.status_code == 404
        assert response.json()["code"] == "USER_NOT_FOUND"


class TestSubredditEndpoint:
    def test_subreddit_analytics(self, client):
        response = client.get("/v1/reddit/subreddit/python")
        assert response.status_code == 200

        data = response.json()["data"]
        assert data["name"] == "python"
        assert data["engagement"]["subscribers_to_active_ratio"] == 200.0

    def test_invalid_name(self, client):
        response = client.get("/v1/reddit/subreddit/not-valid")
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_SUBREDDIT_NAME"

    def test_upstream_failure(self, client):
        response = client.get("/v1/reddit/subreddit/broken")
        assert response.status_code == 502
        assert response.json()["code"] == "API_ERROR"


class TestInsightEndpoint:
    def test_unavailable_without_provider(self, client):
        response = client.get("/v1/reddit/post/abc123/insight")
        assert response.status_code == 503
        assert response.json()["code"] == "INSIGHT_UNAVAILABLE"

    @pytest.mark.parametrize("generator", [MagicMock(spec=TextGenerator)])
    def test_insight_after_analysis(self, client, generator):
        generator.generate.return_value = "Well received."
        client.post("/v1/reddit/post", json={"url": POST_URL})

        response = client.get("/v1/reddit/post/abc123/insight")
        assert response.status_code == 200
        assert response.json() == {"post_id": "abc123", "insight": "Well received.", "cached": False}

    @pytest.mark.parametrize("generator", [MagicMock(spec=TextGenerator)])
    def test_insight_before_analysis(self, client, generator):
        response = client.get("/v1/reddit/post/abc123/insight")
        assert response.status_code == 404
        assert response.json()["code"] == "POST_NOT_FOUND"


class TestLegacyPrefix:
    def test_routes_served_under_api_prefix(self, client):
        assert client.get("/api/reddit/test").status_code == 200

        response = client.get("/api/reddit/subreddit/python")
        assert response.status_code == 200
        assert response.json()["data"]["name"] == "python"


class TestUnhandledErrors:
    @pytest.fixture
    def broken_client(self):
        broken = MagicMock()
        broken.analyze_subreddit = AsyncMock(side_effect=RuntimeError("unexpected payload"))
        app.dependency_overrides[get_analytics_service] = lambda: broken
        yield TestClient(app, raise_server_exceptions=False)
        app.dependency_overrides.clear()

    def test_unexpected_error_is_structured(self, broken_client):
        response = broken_client.get("/v1/reddit/subreddit/python")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Internal server error", "code": "API_ERROR"}


class TestStartup:
    def test_insight_generator_built_once(self, service, monkeypatch):
        generator = MagicMock(spec=TextGenerator)
        factory = MagicMock(return_value=generator)
        monkeypatch.setattr("app.main.get_text_generator", factory)
        monkeypatch.setattr(app.state, "analytics_service", service, raising=False)
        monkeypatch.setattr(app.state, "insight_generator", None, raising=False)

        with TestClient(app) as client:
            for _ in range(3):
                response = client.get("/v1/reddit/post/abc123/insight")
                assert response.status_code == 404

        factory.assert_called_once()
        generator.generate.assert_not_called()
