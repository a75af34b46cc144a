"""
HTTP-level tests for the story service.
"""

import dataclasses
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient

from shared.llm_adapter import MockProvider, UpstreamError
from services.story_service.main import create_app


class TestStoryService:
    """End-to-end behaviour of the FastAPI application."""

    @pytest.fixture
    def provider(self):
        provider = MockProvider()
        provider.generate = AsyncMock(wraps=provider.generate)
        return provider

    @pytest.fixture
    def app(self, config, provider):
        return create_app(config, provider=provider)

    @pytest.fixture
    def client(self, app):
        with TestClient(app) as client:
            yield client

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "OK"
        assert data["environment"] == "test"
        assert data["timestamp"].endswith("+00:00")

    def test_unknown_route(self, client):
        response = client.get("/nope")
        assert response.status_code == 404
        assert response.json() == {"error": "Endpoint not found"}

    @pytest.mark.parametrize("method", ["post", "put", "delete"])
    def test_wrong_method_on_story(self, client, app, provider, method):
        response = client.request(method.upper(), "/story", params={"word": "cat"})
        assert response.status_code == 404
        assert response.json() == {"error": "Endpoint not found"}
        provider.generate.assert_not_awaited()
        assert app.state.orchestrator.limiter.window() is None

    def test_metrics(self, client):
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "story_requests_total" in response.text

    @pytest.mark.parametrize("query", ["", "?word=", "?word=%20%20"])
    def test_missing_word(self, client, app, provider, query):
        response = client.get(f"/story{query}")
        assert response.status_code == 400
        assert response.json() == {"error": "Word is required!"}
        provider.generate.assert_not_awaited()
        assert app.state.orchestrator.limiter.window() is None

    def test_cold_then_cached(self, client, app, provider):
        first = client.get("/story", params={"word": "dragon", "wordCount": "200"})
        assert first.status_code == 200
        body = first.json()
        assert body["cached"] is False
        assert body["usedApiKey"] == "default"
        assert body["wordCount"] == "200"
        assert "candidates" in body

        llm_request = provider.generate.await_args.args[0]
        assert llm_request.max_tokens == 350
        assert llm_request.api_key == "default-key"
        assert app.state.orchestrator.cache.lookup("dragon:200") is not None

        second = client.get("/story", params={"word": "dragon", "wordCount": "200"})
        assert second.status_code == 200
        cached_body = second.json()
        assert cached_body["cached"] is True
        assert cached_body["candidates"] == body["candidates"]
        assert provider.generate.await_count == 1

    def test_word_count_defaults_to_200(self, client):
        assert client.get("/story", params={"word": "cat"}).json()["wordCount"] == "200"
        body = client.get("/story", params={"word": "cat", "wordCount": ""}).json()
        assert body["wordCount"] == "200"
        assert body["cached"] is True

    def test_unknown_word_count_kept_with_short_budget(self, client, app, provider):
        body = client.get("/story", params={"word": "cat", "wordCount": "300"}).json()

        assert body["wordCount"] == "300"
        assert body["cached"] is False
        llm_request = provider.generate.await_args.args[0]
        assert llm_request.max_tokens == 350
        assert "ঠিক 300 শব্দের" in llm_request.prompt
        assert app.state.orchestrator.cache.lookup("cat:300") is not None
        assert app.state.orchestrator.cache.lookup("cat:200") is None

    def test_long_tier_budget(self, client, provider):
        body = client.get("/story", params={"word": "cat", "wordCount": "1000"}).json()
        assert body["wordCount"] == "1000"
        assert provider.generate.await_args.args[0].max_tokens == 1500

    def test_user_api_key(self, client, provider):
        body = client.get("/story", params={"word": "cat", "apiKey": "mine"}).json()
        assert body["usedApiKey"] == "user"
        assert provider.generate.await_args.args[0].api_key == "mine"

    def test_rate_limit_headers(self, client):
        response = client.get("/story", params={"word": "cat"})
        assert response.headers["X-RateLimit-Limit"] == "25"
        assert response.headers["X-RateLimit-Remaining"] == "24"

    def test_26th_call_is_rejected(self, client, provider):
        for i in range(25):
            response = client.get("/story", params={"word": f"topic{i}"})
            assert response.status_code == 200
        assert provider.generate.await_count == 25

        response = client.get("/story", params={"word": "one-more"})
        assert response.status_code == 429
        assert response.json() == {"error": "Too many requests. Please try again later."}
        assert "Retry-After" in response.headers
        assert provider.generate.await_count == 25

    def test_rate_limit_only_on_story(self, client):
        for _ in range(26):
            client.get("/story", params={"word": "cat"})
        assert client.get("/health").status_code == 200

    def test_upstream_failure(self, client, app, provider):
        provider.generate.side_effect = UpstreamError("API key not valid.", status_code=400)

        response = client.get("/story", params={"word": "dragon", "apiKey": "bad"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "Story generation failed",
            "details": "API key not valid.",
            "usedApiKey": "user",
        }
        assert len(app.state.orchestrator.cache) == 0

    def test_failure_then_retry_reaches_upstream(self, client, provider):
        calls = {"n": 0}
        backend = MockProvider()

        async def flaky(request):
            calls["n"] += 1
            if calls["n"] == 1:
                raise UpstreamError("boom")
            return await backend.generate(request)

        provider.generate.side_effect = flaky

        assert client.get("/story", params={"word": "dragon"}).status_code == 500
        retry = client.get("/story", params={"word": "dragon"})
        assert retry.status_code == 200
        assert retry.json()["cached"] is False
        assert calls["n"] == 2

    def test_unexpected_error_maps_to_500(self, client, provider):
        provider.generate.side_effect = RuntimeError("kaboom")
        response = client.get("/story", params={"word": "dragon"})
        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Story generation failed"
        assert body["details"] == "kaboom"
        assert body["usedApiKey"] == "default"

    def test_per_caller_scope(self, config, provider):
        cfg = dataclasses.replace(config, rate_limit_per_caller=True, rate_limit_max=1)
        app = create_app(cfg, provider=provider)
        with TestClient(app) as client:
            assert client.get("/story", params={"word": "a"}).status_code == 200
            assert client.get("/story", params={"word": "a"}).status_code == 429
        assert app.state.orchestrator.limiter.window("caller:testclient").count == 2


class TestAppLifecycle:
    """Each application owns its provider for exactly one lifecycle."""

    @pytest.fixture
    def gemini_config(self, config):
        return dataclasses.replace(config, llm_provider="gemini")

    @pytest.fixture
    def upstream(self, monkeypatch):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(
                200,
                json={"candidates": [{"content": {"parts": [{"text": "story"}]}}]},
            )

        transport = httpx.MockTransport(handler)
        real_client = httpx.AsyncClient

        def client_with_transport(**kwargs):
            kwargs["transport"] = transport
            return real_client(**kwargs)

        monkeypatch.setattr(httpx, "AsyncClient", client_with_transport)
        return calls

    def test_second_app_after_first_shutdown(self, gemini_config, upstream):
        first_app = create_app(gemini_config)
        with TestClient(first_app) as client:
            assert client.get("/story", params={"word": "dragon"}).status_code == 200
        first_provider = first_app.state.orchestrator.provider

        second_app = create_app(gemini_config)
        second_provider = second_app.state.orchestrator.provider
        assert second_provider is not first_provider

        with TestClient(second_app) as client:
            response = client.get("/story", params={"word": "dragon"})

        assert response.status_code == 200
        assert response.json()["cached"] is False
        assert len(upstream) == 2
