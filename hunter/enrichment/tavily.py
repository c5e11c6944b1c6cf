"""Tavily search provider for project descriptions."""

import logging
from typing import Any

import httpx

from hunter.core.config import EnrichmentConfig
from hunter.enrichment.base import DescriptionProvider

logger = logging.getLogger(__name__)


def build_query(name: str, topic: str | None) -> str:
    return f"{name} GitHub open-source project for {topic or 'software'} summary"


def extract_description(payload: Any) -> str | None:
    """Prefer the synthesized answer, else the first result with content."""
    if not isinstance(payload, dict):
        return None
    answer = payload.get("answer")
    if isinstance(answer, str) and answer.strip():
        return answer.strip()
    for entry in payload.get("results") or []:
        content = entry.get("content") if isinstance(entry, dict) else None
        if isinstance(content, str) and content.strip():
            return content.strip()
    return None


class TavilyProvider(DescriptionProvider):
    """Description lookups through the Tavily search API.

    Requires an API key and an injected httpx.AsyncClient.
    """

    def __init__(self, client: httpx.AsyncClient, config: EnrichmentConfig, api_key: str) -> None:
        self._client = client
        self._config = config
        self._api_key = api_key

    @property
    def provider_id(self) -> str:
        return "tavily"

    async def describe(self, name: str, topic: str | None) -> str | None:
        """One POST per call. Any HTTP or decoding failure is logged and yields None."""
        body = {
            "api_key": self._api_key,
            "query": build_query(name, topic),
            "max_results": self._config.max_results,
            "include_answer": True,
            "include_images": False,
        }
        try:
            response = await self._client.post(
                self._config.endpoint,
                json=body,
                headers={"Accept": "application/json"},
                timeout=self._config.timeout_seconds,
            )
            response.raise_for_status()
            return extract_description(response.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Tavily description fetch failed for '%s': %s", name, e)
            return None


def build_provider(client: httpx.AsyncClient, config: EnrichmentConfig) -> TavilyProvider | None:
    """Return a provider, or None when no API key is configured (degraded mode)."""
    api_key = config.api_key()
    if not api_key:
        logger.warning(
            "%s not set - project descriptions will rely on GitHub metadata only",
            config.api_key_env,
        )
        return None
    return TavilyProvider(client, config, api_key)
