"""GitHub candidate source: wires query builder, HTTP client and parser."""

import logging
from collections.abc import Callable
from datetime import datetime

import httpx

from hunter.core.config import GitHubConfig
from hunter.core.schemas import SearchFilters, SourceResult, utcnow
from hunter.platforms.base import CandidateSource
from hunter.platforms.github.parser import parse_items
from hunter.platforms.github.searcher import build_params, build_url

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUSES = (403, 429)


class GitHubSearchError(RuntimeError):
    """The search endpoint answered with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GitHubRateLimitError(GitHubSearchError):
    """GitHub refused the request because the rate limit was hit."""


class GitHubSource(CandidateSource):
    """Repository search against the GitHub REST API.

    The httpx.AsyncClient is injected; this class never opens or closes it.
    Exactly one GET per search, never retried here: re-submitting is the
    caller's job.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        config: GitHubConfig,
        token: str | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._client = client
        self._config = config
        self._token = token
        self._clock = clock

    @property
    def source_id(self) -> str:
        return "github"

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": self._config.user_agent,
            "X-GitHub-Api-Version": self._config.api_version,
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def search(self, filters: SearchFilters) -> SourceResult:
        now = self._clock()
        window = self._config.maintained_month_window
        params = build_params(filters, now, window)
        logger.debug("GitHub search GET %s", build_url(self._config.api_url, filters, now, window))

        response = await self._client.get(
            self._config.api_url,
            params=params,
            headers=self._headers(),
            timeout=self._config.timeout_seconds,
        )

        if response.status_code in RATE_LIMIT_STATUSES:
            hint = (
                "Consider waiting before retrying."
                if self._token
                else f"Set {self._config.token_env} for higher limits."
            )
            msg = f"GitHub rate limit exceeded. {hint}"
            raise GitHubRateLimitError(msg, response.status_code)

        if not response.is_success:
            msg = f"GitHub search failed ({response.status_code}): {response.text}"
            raise GitHubSearchError(msg, response.status_code)

        data = response.json()
        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            items = []

        candidates = parse_items(items)
        logger.info(
            "GitHub returned %d items for '%s' (%d usable)",
            len(items), filters.topic, len(candidates),
        )
        return SourceResult(total_fetched=len(items), candidates=candidates)
