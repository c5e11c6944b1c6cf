"""Shared fixtures: in-process Redis and raw GitHub search items."""

from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest
from fakeredis import FakeServer
from fakeredis.aioredis import FakeRedis

from hunter.core.config import QueueConfig, SubmitConfig
from hunter.core.store import RedisConnection
from hunter.queue.protocol import JobQueue


@pytest.fixture
def fake_server() -> FakeServer:
    return FakeServer()


@pytest.fixture
async def connection(fake_server: FakeServer) -> AsyncIterator[RedisConnection]:
    conn = RedisConnection.from_clients(
        FakeRedis(server=fake_server, decode_responses=True),
        FakeRedis(server=fake_server, decode_responses=True),
    )
    async with conn:
        yield conn


@pytest.fixture
def queue_config() -> QueueConfig:
    return QueueConfig(job_ttl_seconds=120, result_ttl_seconds=60)


@pytest.fixture
def job_queue(connection: RedisConnection, queue_config: QueueConfig) -> JobQueue:
    return JobQueue(connection, queue_config, SubmitConfig(timeout_ms=3000))


@pytest.fixture
def github_item() -> Callable[..., dict[str, Any]]:
    """Factory for raw GitHub search items with sensible defaults."""

    def _make(**overrides: Any) -> dict[str, Any]:
        repo_id = overrides.pop("id", 1)
        item: dict[str, Any] = {
            "id": repo_id,
            "full_name": f"acme/project-{repo_id}",
            "html_url": f"https://github.com/acme/project-{repo_id}",
            "description": "A project",
            "homepage": None,
            "stargazers_count": 10,
            "forks_count": 2,
            "watchers_count": 10,
            "open_issues_count": 1,
            "language": "Python",
            "topics": ["graph"],
            "license": {"spdx_id": "MIT", "name": "MIT License"},
            "pushed_at": "2026-10-01T12:00:00Z",
            "updated_at": "2026-10-02T12:00:00Z",
            "owner": {"login": "acme", "html_url": "https://github.com/acme", "type": "Organization"},
            "default_branch": "main",
        }
        item.update(overrides)
        return item

    return _make
