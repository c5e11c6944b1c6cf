"""Core data models for the open-source hunter.

Every model is frozen. JSON on the wire uses camelCase aliases so payloads
match what the presentation layer reads; Python code uses the field names.
"""

import math
import uuid
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from hunter.core.config import MAX_RESULT_LIMIT

JobState = Literal["queued", "processing", "completed", "error"]
ResultState = Literal["completed", "error"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_job_id() -> str:
    return uuid.uuid4().hex


class WireModel(BaseModel):
    """Base for every model that crosses the queue boundary."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class SearchFilters(WireModel):
    """Structured search request. Immutable once a job is created."""

    topic: str
    language: str | None = None
    min_stars: int | None = Field(default=None, ge=0)
    only_maintained: bool = False
    limit: int = Field(default=6, ge=1, le=MAX_RESULT_LIMIT)

    @field_validator("topic")
    @classmethod
    def topic_not_empty(cls, v: str) -> str:
        if not v.strip():
            msg = "A non-empty topic is required to search for projects."
            raise ValueError(msg)
        return v.strip()

    @field_validator("language")
    @classmethod
    def blank_language_is_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()

    @classmethod
    def from_request(
        cls,
        topic: str | None,
        language: str | None = None,
        min_stars: float | None = None,
        only_maintained: bool | None = False,
        limit: float | None = None,
        default_limit: int = 6,
    ) -> "SearchFilters":
        """Normalize a loosely-typed request into filters.

        A missing or non-positive limit falls back to ``default_limit``; a
        limit above the ceiling is clamped rather than rejected.
        """
        if limit is None or limit <= 0:
            effective_limit = default_limit
        else:
            effective_limit = min(int(limit), MAX_RESULT_LIMIT)
        return cls(
            topic=(topic or "").strip(),
            language=language,
            min_stars=int(min_stars) if min_stars is not None else None,
            only_maintained=bool(only_maintained),
            limit=effective_limit,
        )


class JobEnvelope(WireModel):
    """One request on the shared request queue."""

    id: str = Field(min_length=1)
    requested_at: datetime
    filters: SearchFilters

    @classmethod
    def new(cls, filters: SearchFilters) -> "JobEnvelope":
        """Fresh envelope with a generated id, stamped now."""
        return cls(id=new_job_id(), requested_at=utcnow(), filters=filters)


class JobStatus(WireModel):
    """Short-lived status record keyed by job id. Observability only."""

    status: JobState
    updated_at: datetime = Field(default_factory=utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    topic: str | None = None
    total_fetched: int | None = None
    error: str | None = None


class Owner(WireModel):
    login: str | None = None
    url: str | None = None
    type: str | None = None


class Candidate(WireModel):
    """A raw project record from the primary source, with typed defaults."""

    id: int
    name: str
    url: str
    description: str = ""
    homepage: str | None = None
    stars: int = 0
    forks: int = 0
    watchers: int = 0
    open_issues: int = 0
    language: str | None = None
    topics: list[str] = Field(default_factory=list)
    license: str | None = None
    last_pushed_at: datetime | None = None
    owner: Owner = Field(default_factory=Owner)
    default_branch: str | None = None


class RankedCandidate(Candidate):
    """Candidate plus its derived score and explanation. Never mutated."""

    days_since_update: float = math.inf
    score: float = 0.0
    reasons: list[str] = Field(default_factory=list)

    @field_validator("days_since_update", mode="before")
    @classmethod
    def unknown_is_infinite(cls, v: Any) -> Any:
        # infinity is written as JSON null
        return math.inf if v is None else v


class SourceResult(BaseModel):
    """What a candidate source hands back for one query."""

    model_config = ConfigDict(frozen=True)

    total_fetched: int
    candidates: list[Candidate] = Field(default_factory=list)


class ResultEnvelope(WireModel):
    """The only artifact handed back across the queue boundary."""

    status: ResultState
    summary: str = ""
    filters: SearchFilters
    total_fetched: int = 0
    projects: list[RankedCandidate] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=utcnow)
    error: str | None = None


class SearchResponse(ResultEnvelope):
    """ResultEnvelope as returned to the submitting caller."""

    job_id: str
    received_at: datetime = Field(default_factory=utcnow)
