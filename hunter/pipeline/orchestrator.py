"""Search pipeline: source fetch -> rank -> truncate -> enrich -> summary.

Data flow for one job:
  1. Candidate source -> raw candidates + total fetched
  2. Scorer -> ranked candidates (score desc, stable)
  3. Truncate to filters.limit
  4. Enrichment of the selected candidates only (best effort)
  5. Summary sentence -> ResultEnvelope
"""

import logging
from collections.abc import Callable
from datetime import datetime

from hunter.core.schemas import ResultEnvelope, SearchFilters, utcnow
from hunter.enrichment.base import DescriptionProvider, enrich_candidates
from hunter.pipeline.scorer import rank_candidates, summarize
from hunter.platforms.base import CandidateSource

logger = logging.getLogger(__name__)


class SearchPipeline:
    """Runs one search end to end. Holds no per-job state."""

    def __init__(
        self,
        source: CandidateSource,
        provider: DescriptionProvider | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._source = source
        self._provider = provider
        self._clock = clock

    async def run(self, filters: SearchFilters) -> ResultEnvelope:
        """Execute the pipeline. Source failures propagate to the caller."""
        fetched = await self._source.search(filters)

        ranked = rank_candidates(fetched.candidates, self._clock(), filters.min_stars)
        projects = ranked[: filters.limit]
        projects = await enrich_candidates(projects, filters.topic, self._provider)

        logger.info(
            "Search '%s': %d fetched, %d ranked, %d returned",
            filters.topic, fetched.total_fetched, len(ranked), len(projects),
        )

        return ResultEnvelope(
            status="completed",
            summary=summarize(filters, projects),
            filters=filters,
            total_fetched=fetched.total_fetched,
            projects=projects,
            generated_at=self._clock(),
        )


def build_error_result(filters: SearchFilters, message: str) -> ResultEnvelope:
    """Error envelope carrying the failure text and the original filters."""
    return ResultEnvelope(status="error", filters=filters, error=message)
