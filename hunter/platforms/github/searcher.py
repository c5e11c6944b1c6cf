"""GitHub repository-search query builder.

Pure functions, no HTTP.
"""

import calendar
import logging
from datetime import date, datetime
from urllib.parse import urlencode

from hunter.core.schemas import SearchFilters

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 50
SEARCH_FIELDS = "in:name,description,readme"


def build_query(filters: SearchFilters, now: datetime, maintained_months: int = 12) -> str:
    """Build the ``q`` search expression for the given filters.

    Args:
        filters: Search filters for the job.
        now: Reference time for the "only maintained" cut-off.
        maintained_months: How far back the last push may be when
            ``filters.only_maintained`` is set.

    Returns:
        Space-separated GitHub search qualifiers.
    """
    topic = f'"{filters.topic}"' if any(ch.isspace() for ch in filters.topic) else filters.topic
    segments = [f"{topic} {SEARCH_FIELDS}"]

    if filters.language:
        segments.append(f"language:{filters.language}")

    if filters.min_stars:
        segments.append(f"stars:>={filters.min_stars}")

    if filters.only_maintained:
        since = subtract_months(now.date(), maintained_months)
        segments.append(f"pushed:>={since.isoformat()}")

    return " ".join(segments)


def page_size(limit: int) -> int:
    """Fetch twice the requested output so the scorer has a wider pool."""
    return min(limit * 2, MAX_PAGE_SIZE)


def build_params(filters: SearchFilters, now: datetime, maintained_months: int = 12) -> dict[str, str]:
    """Query-string parameters for the search endpoint, sorted by stars."""
    return {
        "q": build_query(filters, now, maintained_months),
        "sort": "stars",
        "order": "desc",
        "per_page": str(page_size(filters.limit)),
    }


def build_url(base: str, filters: SearchFilters, now: datetime, maintained_months: int = 12) -> str:
    """Full request URL, for log lines."""
    return f"{base}?{urlencode(build_params(filters, now, maintained_months))}"


def subtract_months(day: date, months: int) -> date:
    """Go back ``months`` calendar months, clamping to the last day of the month."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))
