"""Tests for core schemas: filters, envelopes, candidates."""

import json
import math
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from hunter.core.schemas import (
    Candidate,
    JobEnvelope,
    JobStatus,
    RankedCandidate,
    ResultEnvelope,
    SearchFilters,
)


def _make_candidate(**overrides: object) -> Candidate:
    defaults: dict[str, object] = {
        "id": 1,
        "name": "acme/graph",
        "url": "https://github.com/acme/graph",
    }
    defaults.update(overrides)
    return Candidate(**defaults)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# SearchFilters
# ---------------------------------------------------------------------------


class TestSearchFilters:
    def test_defaults(self) -> None:
        f = SearchFilters(topic="graph database")
        assert f.language is None
        assert f.min_stars is None
        assert f.only_maintained is False
        assert f.limit == 6

    def test_topic_required(self) -> None:
        with pytest.raises(ValidationError):
            SearchFilters(topic="   ")

    def test_topic_stripped(self) -> None:
        assert SearchFilters(topic="  vector db ").topic == "vector db"

    def test_blank_language_is_none(self) -> None:
        assert SearchFilters(topic="x", language="  ").language is None

    def test_limit_bounds(self) -> None:
        with pytest.raises(ValidationError):
            SearchFilters(topic="x", limit=0)
        with pytest.raises(ValidationError):
            SearchFilters(topic="x", limit=16)
        assert SearchFilters(topic="x", limit=15).limit == 15

    def test_negative_min_stars_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SearchFilters(topic="x", min_stars=-1)

    def test_frozen(self) -> None:
        f = SearchFilters(topic="x")
        with pytest.raises(ValidationError):
            f.topic = "y"  # type: ignore[misc]

    def test_camel_case_wire_format(self) -> None:
        f = SearchFilters(topic="x", min_stars=5, only_maintained=True)
        data = json.loads(f.to_json())
        assert data == {
            "topic": "x",
            "language": None,
            "minStars": 5,
            "onlyMaintained": True,
            "limit": 6,
        }

    def test_accepts_camel_case_input(self) -> None:
        f = SearchFilters.model_validate({"topic": "x", "minStars": 3, "onlyMaintained": True})
        assert f.min_stars == 3
        assert f.only_maintained is True


class TestFromRequest:
    def test_missing_limit_uses_default(self) -> None:
        assert SearchFilters.from_request("x", default_limit=4).limit == 4

    def test_non_positive_limit_uses_default(self) -> None:
        assert SearchFilters.from_request("x", limit=0).limit == 6
        assert SearchFilters.from_request("x", limit=-3).limit == 6

    def test_limit_clamped_to_ceiling(self) -> None:
        assert SearchFilters.from_request("x", limit=40).limit == 15

    def test_float_inputs_truncated(self) -> None:
        f = SearchFilters.from_request("x", min_stars=99.7, limit=3.9)
        assert f.min_stars == 99
        assert f.limit == 3

    def test_none_topic_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SearchFilters.from_request(None)

    def test_only_maintained_coerced(self) -> None:
        assert SearchFilters.from_request("x", only_maintained=None).only_maintained is False


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


class TestJobEnvelope:
    def test_generates_unique_ids(self) -> None:
        filters = SearchFilters(topic="x")
        a = JobEnvelope.new(filters)
        b = JobEnvelope.new(filters)
        assert a.id != b.id
        assert a.requested_at.tzinfo is not None

    def test_round_trip(self) -> None:
        envelope = JobEnvelope.new(SearchFilters(topic="graph database", limit=3))
        parsed = JobEnvelope.model_validate_json(envelope.to_json())
        assert parsed == envelope

    def test_wire_keys(self) -> None:
        data = json.loads(JobEnvelope.new(SearchFilters(topic="x")).to_json())
        assert set(data) == {"id", "requestedAt", "filters"}

    @pytest.mark.parametrize(
        "raw",
        [
            '{"requestedAt": "2026-10-19T12:00:00Z", "filters": {"topic": "x"}}',
            '{"id": "", "requestedAt": "2026-10-19T12:00:00Z", "filters": {"topic": "x"}}',
            '{"id": "abc", "filters": {"topic": "x"}}',
        ],
    )
    def test_identity_required(self, raw: str) -> None:
        with pytest.raises(ValidationError):
            JobEnvelope.model_validate_json(raw)

    def test_missing_filters_rejected(self) -> None:
        with pytest.raises(ValidationError):
            JobEnvelope.model_validate_json('{"id": "abc"}')


class TestJobStatus:
    def test_unknown_state_rejected(self) -> None:
        with pytest.raises(ValidationError):
            JobStatus(status="cancelled")  # type: ignore[arg-type]

    def test_optional_fields_default_none(self) -> None:
        s = JobStatus(status="queued")
        assert s.started_at is None
        assert s.error is None


# ---------------------------------------------------------------------------
# Candidates
# ---------------------------------------------------------------------------


class TestCandidate:
    def test_optional_defaults(self) -> None:
        c = _make_candidate()
        assert c.description == ""
        assert c.topics == []
        assert c.license is None
        assert c.last_pushed_at is None
        assert c.owner.login is None
        assert c.stars == 0

    def test_ranked_unknown_days_is_infinite(self) -> None:
        r = RankedCandidate(**_make_candidate().model_dump())
        assert math.isinf(r.days_since_update)

    def test_infinite_days_survive_json(self) -> None:
        r = RankedCandidate(**_make_candidate().model_dump(), days_since_update=math.inf)
        data = json.loads(r.to_json())
        assert data["daysSinceUpdate"] is None
        assert math.isinf(RankedCandidate.model_validate_json(r.to_json()).days_since_update)


class TestResultEnvelope:
    def test_error_envelope(self) -> None:
        e = ResultEnvelope(status="error", filters=SearchFilters(topic="x"), error="boom")
        assert e.projects == []
        assert e.total_fetched == 0

    def test_round_trip_with_projects(self) -> None:
        project = RankedCandidate(
            **_make_candidate(last_pushed_at=datetime(2026, 1, 1, tzinfo=timezone.utc)).model_dump(),
            days_since_update=10,
            score=4.2,
            reasons=["updated this month"],
        )
        envelope = ResultEnvelope(
            status="completed",
            summary="Found 1",
            filters=SearchFilters(topic="x"),
            total_fetched=3,
            projects=[project],
        )
        parsed = ResultEnvelope.model_validate_json(envelope.to_json())
        assert parsed == envelope
        assert "totalFetched" in json.loads(envelope.to_json())
