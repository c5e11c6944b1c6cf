"""Best-effort description enrichment for ranked candidates."""

import logging
from abc import ABC, abstractmethod

from hunter.core.schemas import RankedCandidate

logger = logging.getLogger(__name__)

_PLACEHOLDERS = ("null", "undefined")


class DescriptionProvider(ABC):
    """Base class for secondary lookup services."""

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'tavily')."""

    @abstractmethod
    async def describe(self, name: str, topic: str | None) -> str | None:
        """Return a description for the project, or None if nothing useful came back."""


def needs_description(description: str | None) -> bool:
    """True for empty, placeholder, or "No description..." texts."""
    value = (description or "").strip().lower()
    return not value or value in _PLACEHOLDERS or value.startswith("no description")


async def enrich_candidates(
    projects: list[RankedCandidate],
    topic: str | None,
    provider: DescriptionProvider | None,
) -> list[RankedCandidate]:
    """Fill missing descriptions, one lookup per candidate that needs it.

    Never raises: a failing lookup leaves that candidate as it was. Returns
    new frozen copies for the candidates that changed. Lookups run one after
    another and all finish before this returns.
    """
    if provider is None:
        return projects

    enriched: list[RankedCandidate] = []
    for project in projects:
        if not needs_description(project.description):
            enriched.append(project)
            continue
        try:
            description = await provider.describe(project.name, topic)
        except Exception:
            logger.warning(
                "%s lookup failed for '%s' - keeping original description",
                provider.provider_id, project.name,
                exc_info=True,
            )
            description = None

        if description and description.strip():
            project = project.model_copy(update={"description": description.strip()})
        enriched.append(project)
    return enriched
