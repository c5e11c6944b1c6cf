"""Translate raw GitHub search items into Candidate models."""

import logging
from datetime import datetime
from typing import Any

from hunter.core.schemas import Candidate, Owner

logger = logging.getLogger(__name__)


def parse_datetime(value: str | None) -> datetime | None:
    """Convert GitHub's ISO timestamp to an aware datetime."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Unparseable timestamp %r", value)
        return None


def _clean_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _license_id(raw: Any) -> str | None:
    if not isinstance(raw, dict):
        return None
    return raw.get("spdx_id") or raw.get("name") or None


def parse_item(item: dict[str, Any]) -> Candidate | None:
    """Map one search item to a Candidate.

    Optional fields (license, homepage, topics, owner, ...) default when
    absent. Items without identity, name or url are skipped (returns None).
    """
    try:
        owner = item.get("owner") or {}
        return Candidate(
            id=item["id"],
            name=item["full_name"],
            url=item["html_url"],
            description=_clean_text(item.get("description")),
            homepage=item.get("homepage") or None,
            stars=item.get("stargazers_count") or 0,
            forks=item.get("forks_count") or 0,
            watchers=item.get("watchers_count") or 0,
            open_issues=item.get("open_issues_count") or 0,
            language=item.get("language") or None,
            topics=item.get("topics") or [],
            license=_license_id(item.get("license")),
            last_pushed_at=parse_datetime(item.get("pushed_at") or item.get("updated_at")),
            owner=Owner(
                login=owner.get("login"),
                url=owner.get("html_url"),
                type=owner.get("type"),
            ),
            default_branch=item.get("default_branch"),
        )
    except (KeyError, TypeError, ValueError) as exc:
        logger.debug("Skipping malformed search item %s: %s", item.get("id"), exc)
        return None


def parse_items(items: list[Any]) -> list[Candidate]:
    """Parse every usable item, keeping source order."""
    candidates: list[Candidate] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        candidate = parse_item(item)
        if candidate is not None:
            candidates.append(candidate)
    return candidates
