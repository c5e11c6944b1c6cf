"""Popularity/recency scoring and result summaries for repository candidates.

score = 2.5*log10(stars+1) + 1.5*log10(forks+1) + log10(watchers+1)
        + freshness - log10(open_issues+1)
freshness = max(0, 3 - days_since_update/120), zero when the date is unknown.

Everything here is pure: ``now`` is always passed in.
"""

import logging
import math
from datetime import datetime

from hunter.core.schemas import Candidate, RankedCandidate, SearchFilters

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 60 * 60 * 24

# (max days inclusive, label), checked in order.
FRESHNESS_BUCKETS: list[tuple[int, str]] = [
    (7, "updated this week"),
    (30, "updated this month"),
    (90, "activity within the last quarter"),
    (180, "activity within the last six months"),
    (365, "activity within the last year"),
]
STALE_LABEL = "no recent commits in the last year"
UNKNOWN_LABEL = "unknown activity"

MAX_HIGHLIGHTS = 3


def days_since(timestamp: datetime | None, now: datetime) -> float:
    """Whole days between ``timestamp`` and ``now`` (half rounds up), inf if unknown."""
    if timestamp is None:
        return math.inf
    elapsed = (now - timestamp).total_seconds() / SECONDS_PER_DAY
    return float(math.floor(elapsed + 0.5))


def describe_freshness(days: float) -> str:
    if math.isinf(days):
        return UNKNOWN_LABEL
    for limit, label in FRESHNESS_BUCKETS:
        if days <= limit:
            return label
    return STALE_LABEL


def _freshness_score(days: float) -> float:
    if math.isinf(days):
        return 0.0
    return max(0.0, 3.0 - days / 120.0)


def score_candidate(candidate: Candidate, now: datetime) -> RankedCandidate:
    """Score one candidate and attach its reasons.

    Deterministic for a given ``now``: scoring the same candidate twice
    yields equal RankedCandidates.
    """
    days = days_since(candidate.last_pushed_at, now)

    score = (
        2.5 * math.log10(candidate.stars + 1)
        + 1.5 * math.log10(candidate.forks + 1)
        + math.log10(candidate.watchers + 1)
        + _freshness_score(days)
        - math.log10(candidate.open_issues + 1)
    )

    reasons: list[str] = []
    if candidate.stars:
        reasons.append(f"{candidate.stars:,} stars")
    if candidate.forks:
        reasons.append(f"{candidate.forks:,} forks")
    reasons.append(describe_freshness(days))
    if candidate.license:
        reasons.append(f"License: {candidate.license}")

    return RankedCandidate(
        **candidate.model_dump(include=set(Candidate.model_fields)),
        days_since_update=days,
        score=round(score, 2),
        reasons=reasons,
    )


def rank_candidates(
    candidates: list[Candidate],
    now: datetime,
    min_stars: int | None = None,
) -> list[RankedCandidate]:
    """Score a batch, sorted by score desc. Ties keep source order.

    Candidates under ``min_stars`` are dropped even if the source returned
    them.
    """
    if min_stars:
        kept = [c for c in candidates if c.stars >= min_stars]
        if len(kept) < len(candidates):
            logger.debug("Dropped %d candidates below %d stars", len(candidates) - len(kept), min_stars)
        candidates = kept

    ranked = [score_candidate(c, now) for c in candidates]
    # sorted() is stable, also with reverse=True
    return sorted(ranked, key=lambda r: r.score, reverse=True)


def summarize(filters: SearchFilters, projects: list[RankedCandidate]) -> str:
    """One-sentence summary of a result set."""
    if not projects:
        return f'No repositories matched "{filters.topic}" with the current filters.'

    languages: list[str] = []
    for project in projects:
        if project.language and project.language not in languages:
            languages.append(project.language)

    highlights: list[str] = []
    for project in projects:
        if not project.reasons:
            continue
        first = project.reasons[0]
        if first not in highlights:
            highlights.append(first)
        if len(highlights) == MAX_HIGHLIGHTS:
            break

    maintained = " that are actively maintained" if filters.only_maintained else ""
    summary = f'Found {len(projects)} standout open-source project(s){maintained} for "{filters.topic}".'
    if languages:
        summary += f" Focused languages: {', '.join(languages)}."
    if highlights:
        summary += f" Highlights: {', '.join(highlights)}."
    return summary
