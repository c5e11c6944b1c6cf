"""Tests for GitHubSource over a mocked HTTP transport."""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import httpx
import pytest

from hunter.core.config import GitHubConfig
from hunter.core.schemas import SearchFilters
from hunter.platforms.github.adapter import GitHubRateLimitError, GitHubSearchError, GitHubSource

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _source(
    handler: Callable[[httpx.Request], httpx.Response],
    token: str | None = None,
) -> tuple[GitHubSource, httpx.AsyncClient]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GitHubSource(client, GitHubConfig(), token=token, clock=lambda: NOW), client


def _ok(items: list[dict[str, Any]]) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"total_count": 999, "items": items})

    return handler


# ---------------------------------------------------------------------------
# Request shape
# ---------------------------------------------------------------------------


class TestRequest:
    async def test_headers_and_params(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"items": []})

        source, client = _source(handler)
        async with client:
            await source.search(SearchFilters(topic="graph database", language="Go", limit=4))

        assert len(seen) == 1
        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/search/repositories"
        assert request.headers["Accept"] == "application/vnd.github+json"
        assert request.headers["User-Agent"] == "open-source-hunter/0.2.0"
        assert request.headers["X-GitHub-Api-Version"] == "2022-11-28"
        assert "Authorization" not in request.headers
        assert request.url.params["q"] == '"graph database" in:name,description,readme language:Go'
        assert request.url.params["sort"] == "stars"
        assert request.url.params["order"] == "desc"
        assert request.url.params["per_page"] == "8"

    async def test_token_sent_as_bearer(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"items": []})

        source, client = _source(handler, token="ghp_secret")
        async with client:
            await source.search(SearchFilters(topic="orm"))

        assert seen[0].headers["Authorization"] == "Bearer ghp_secret"

    async def test_logs_request_url(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="hunter.platforms.github.adapter")
        source, client = _source(_ok([]))
        async with client:
            await source.search(SearchFilters(topic="orm", language="Go", limit=4))

        [line] = [r.getMessage() for r in caplog.records if r.getMessage().startswith("GitHub search GET ")]
        assert "https://api.github.com/search/repositories?q=orm" in line
        assert "language%3AGo" in line
        assert line.endswith("sort=stars&order=desc&per_page=8")

    def test_source_id(self) -> None:
        source, _ = _source(_ok([]))
        assert source.source_id == "github"


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class TestResponses:
    async def test_parses_items(self, github_item: Callable[..., dict[str, Any]]) -> None:
        source, client = _source(_ok([github_item(id=1), github_item(id=2, stargazers_count=40)]))
        async with client:
            result = await source.search(SearchFilters(topic="orm"))

        assert result.total_fetched == 2
        assert [c.name for c in result.candidates] == ["acme/project-1", "acme/project-2"]
        assert result.candidates[1].stars == 40

    async def test_total_counts_unusable_items(self, github_item: Callable[..., dict[str, Any]]) -> None:
        broken = github_item(id=2)
        del broken["full_name"]
        source, client = _source(_ok([github_item(id=1), broken]))
        async with client:
            result = await source.search(SearchFilters(topic="orm"))

        assert result.total_fetched == 2
        assert len(result.candidates) == 1

    async def test_missing_items_is_empty(self) -> None:
        source, client = _source(lambda request: httpx.Response(200, json={"total_count": 0}))
        async with client:
            result = await source.search(SearchFilters(topic="orm"))

        assert result.total_fetched == 0
        assert result.candidates == []

    @pytest.mark.parametrize("status", [403, 429])
    async def test_rate_limit_without_token(self, status: int) -> None:
        source, client = _source(lambda request: httpx.Response(status, json={"message": "limit"}))
        async with client:
            with pytest.raises(GitHubRateLimitError) as exc_info:
                await source.search(SearchFilters(topic="orm"))

        assert str(exc_info.value) == "GitHub rate limit exceeded. Set GITHUB_TOKEN for higher limits."
        assert exc_info.value.status_code == status

    async def test_rate_limit_with_token(self) -> None:
        source, client = _source(lambda request: httpx.Response(403), token="ghp_secret")
        async with client:
            with pytest.raises(GitHubRateLimitError, match="Consider waiting before retrying"):
                await source.search(SearchFilters(topic="orm"))

    async def test_server_error(self) -> None:
        source, client = _source(lambda request: httpx.Response(502, text="Bad gateway"))
        async with client:
            with pytest.raises(GitHubSearchError) as exc_info:
                await source.search(SearchFilters(topic="orm"))

        assert str(exc_info.value) == "GitHub search failed (502): Bad gateway"
        assert not isinstance(exc_info.value, GitHubRateLimitError)

    async def test_transport_error_propagates(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("boom", request=request)

        source, client = _source(handler)
        async with client:
            with pytest.raises(httpx.ConnectError):
                await source.search(SearchFilters(topic="orm"))
