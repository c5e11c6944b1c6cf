"""Configuration models and YAML/env loader for the open-source hunter."""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

MAX_RESULT_LIMIT = 15


class QueueConfig(BaseModel):
    """Queue store location and key layout."""

    redis_url: str = "redis://127.0.0.1:6379"
    request_queue: str = "hunter:requests"
    result_prefix: str = "hunter:results"
    status_prefix: str = "hunter:job"
    # every status record (queued, processing, terminal)
    job_ttl_seconds: int = Field(default=300, ge=1)
    # result lists only
    result_ttl_seconds: int = Field(default=300, ge=1)


class SubmitConfig(BaseModel):
    """Caller-side defaults for submitting a search."""

    timeout_ms: int = Field(default=20000, ge=1)
    default_limit: int = Field(default=6, ge=1, le=MAX_RESULT_LIMIT)


class GitHubConfig(BaseModel):
    """Primary candidate source (GitHub repository search)."""

    api_url: str = "https://api.github.com/search/repositories"
    user_agent: str = "open-source-hunter/0.2.0"
    api_version: str = "2022-11-28"
    maintained_month_window: int = Field(default=12, ge=1)
    timeout_seconds: float = Field(default=15.0, gt=0)
    token_env: str = "GITHUB_TOKEN"

    def token(self) -> str | None:
        """Read the optional bearer token from the environment."""
        return os.environ.get(self.token_env) or None


class EnrichmentConfig(BaseModel):
    """Secondary description lookup (Tavily search)."""

    endpoint: str = "https://api.tavily.com/search"
    max_results: int = Field(default=2, ge=1)
    timeout_seconds: float = Field(default=10.0, gt=0)
    api_key_env: str = "TAVILY_API_KEY"

    def api_key(self) -> str | None:
        """Read the API key from the environment. None disables enrichment."""
        return os.environ.get(self.api_key_env) or None


class WorkerConfig(BaseModel):
    """Worker loop timing."""

    poll_timeout_seconds: int = Field(default=5, ge=1)
    backoff_seconds: float = Field(default=1.0, ge=0.0)


# env var → (section, field)
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "REDIS_URL": ("queue", "redis_url"),
    "HUNTER_REQUEST_QUEUE": ("queue", "request_queue"),
    "HUNTER_RESULT_PREFIX": ("queue", "result_prefix"),
    "HUNTER_JOB_META_PREFIX": ("queue", "status_prefix"),
    "HUNTER_JOB_TTL_SECONDS": ("queue", "job_ttl_seconds"),
    "HUNTER_RESULT_TTL_SECONDS": ("queue", "result_ttl_seconds"),
    "SEARCH_TIMEOUT_MS": ("submit", "timeout_ms"),
    "HUNTER_DEFAULT_LIMIT": ("submit", "default_limit"),
    "HUNTER_USER_AGENT": ("github", "user_agent"),
    "HUNTER_MAINTAINED_MONTH_WINDOW": ("github", "maintained_month_window"),
}


class Settings(BaseModel):
    """Top-level settings loaded from YAML, then overridden from the environment."""

    queue: QueueConfig = Field(default_factory=QueueConfig)
    submit: SubmitConfig = Field(default_factory=SubmitConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    enrichment: EnrichmentConfig = Field(default_factory=EnrichmentConfig)
    worker: WorkerConfig = Field(default_factory=WorkerConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)

    @classmethod
    def load(
        cls,
        path: str | Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "Settings":
        """Load YAML settings (when a path is given) and apply env overrides.

        Values from the environment win over the file, so a deployment can
        point workers at another store without editing the YAML.
        """
        raw: dict[str, Any] = {}
        if path is not None:
            raw = cls.from_yaml(path).model_dump()

        env = os.environ if environ is None else environ
        for var, (section, field) in _ENV_OVERRIDES.items():
            value = env.get(var)
            if value:
                raw.setdefault(section, {})[field] = value
                logger.debug("Config override %s.%s from %s", section, field, var)

        return cls.model_validate(raw)
