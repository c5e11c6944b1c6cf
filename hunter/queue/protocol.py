"""Request/response protocol over the shared queue store.

Caller side: ``enqueue`` -> ``await_result`` (or ``submit_search`` for both).
Worker side: ``dequeue`` -> ``mark_processing`` -> ``publish_result``.

Writes that must be seen together (status + request push, result push +
status) go through one MULTI/EXEC pipeline. Status keys expire after
``job_ttl_seconds``, result lists after ``result_ttl_seconds``.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError
from redis.exceptions import RedisError

from hunter.core.config import QueueConfig, SubmitConfig
from hunter.core.schemas import (
    JobEnvelope,
    JobStatus,
    ResultEnvelope,
    SearchFilters,
    SearchResponse,
    utcnow,
)
from hunter.core.store import RedisConnection
from hunter.queue.keys import QueueKeys

logger = logging.getLogger(__name__)

# Smallest decimal timeout sent to the store; 0 would mean "block forever".
MIN_BLOCK_SECONDS = 0.001


class SearchTimeoutError(TimeoutError):
    """No result arrived before the caller's deadline. The job may still finish."""

    def __init__(self, job_id: str, timeout_ms: int) -> None:
        super().__init__("Search timed out before the worker responded. Please try again.")
        self.job_id = job_id
        self.timeout_ms = timeout_ms


class SearchFailedError(RuntimeError):
    """The worker published an error result for the job."""

    def __init__(self, job_id: str, result: ResultEnvelope) -> None:
        super().__init__(result.error or "Worker failed to process the search request.")
        self.job_id = job_id
        self.result = result


class MalformedResultError(ValueError):
    """A result payload could not be parsed."""


def block_timeout(remaining: float) -> float:
    """Timeout for one blocking pop given the remaining budget in seconds.

    Whole seconds while at least one is left, then the sub-second tail as a
    decimal (Redis >= 6 accepts decimal timeouts).
    """
    if remaining >= 1:
        return int(remaining)
    return max(round(remaining, 3), MIN_BLOCK_SECONDS)


class JobQueue:
    """Both ends of the job protocol over one RedisConnection.

    Usage::

        queue = JobQueue(conn, settings.queue, settings.submit)
        response = await queue.submit_search(filters)
    """

    def __init__(
        self,
        connection: RedisConnection,
        config: QueueConfig,
        submit: SubmitConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._conn = connection
        self._config = config
        self._submit = submit or SubmitConfig()
        self._clock = clock
        self.keys = QueueKeys(config)

    # ------------------------------------------------------------------
    # Caller side
    # ------------------------------------------------------------------

    async def enqueue(self, filters: SearchFilters) -> JobEnvelope:
        """Write a ``queued`` status and push the request, atomically."""
        envelope = JobEnvelope.new(filters)
        status = JobStatus(status="queued", topic=filters.topic)

        async with self._conn.client.pipeline(transaction=True) as pipe:
            pipe.set(
                self.keys.status_key(envelope.id),
                status.to_json(),
                ex=self._config.job_ttl_seconds,
            )
            pipe.rpush(self.keys.request_queue, envelope.to_json())
            await pipe.execute()

        logger.info("Enqueued job %s for '%s'", envelope.id, filters.topic)
        return envelope

    async def await_result(self, job_id: str, timeout_ms: int | None = None) -> ResultEnvelope:
        """Block until the job's result arrives or the deadline passes.

        The remaining budget is recomputed after every wake-up, so empty
        wake-ups never extend the overall deadline.

        Raises:
            SearchTimeoutError: Nothing arrived in time. The job is not cancelled.
            MalformedResultError: The payload was not a valid ResultEnvelope.
        """
        timeout_ms = timeout_ms or self._submit.timeout_ms
        result_key = self.keys.result_key(job_id)
        deadline = self._clock() + timeout_ms / 1000

        while True:
            remaining = deadline - self._clock()
            if remaining <= 0:
                logger.warning("Job %s timed out after %d ms", job_id, timeout_ms)
                raise SearchTimeoutError(job_id, timeout_ms)

            response = await self._conn.blocking.brpop([result_key], timeout=block_timeout(remaining))
            if not response:
                continue

            _, raw = response
            return await self._accept_result(job_id, raw)

    async def submit_search(self, filters: SearchFilters, timeout_ms: int | None = None) -> SearchResponse:
        """Enqueue a search and wait for its result.

        Raises:
            SearchFailedError: The worker reported an error.
            SearchTimeoutError: No answer within the deadline.
        """
        envelope = await self.enqueue(filters)
        result = await self.await_result(envelope.id, timeout_ms)
        if result.status == "error":
            raise SearchFailedError(envelope.id, result)
        return SearchResponse(**result.model_dump(), job_id=envelope.id)

    async def _accept_result(self, job_id: str, raw: str) -> ResultEnvelope:
        try:
            result = ResultEnvelope.model_validate_json(raw)
        except ValidationError as e:
            logger.error("Failed to parse worker response for job %s: %s", job_id, e)
            msg = "Received malformed data from worker"
            raise MalformedResultError(msg) from e

        status = JobStatus(
            status=result.status,
            completed_at=utcnow(),
            total_fetched=result.total_fetched if result.status == "completed" else None,
            error=result.error,
        )
        # single consumer: the result list goes away once read
        async with self._conn.client.pipeline(transaction=True) as pipe:
            pipe.delete(self.keys.result_key(job_id))
            pipe.set(self.keys.status_key(job_id), status.to_json(), ex=self._config.job_ttl_seconds)
            await pipe.execute()
        return result

    # ------------------------------------------------------------------
    # Worker side
    # ------------------------------------------------------------------

    async def dequeue(self, timeout: int) -> str | None:
        """Pop one raw request payload, waiting up to ``timeout`` seconds."""
        response = await self._conn.blocking.blpop([self.keys.request_queue], timeout=timeout)
        if not response:
            return None
        _, raw = response
        return raw  # type: ignore[no-any-return]

    async def mark_processing(self, envelope: JobEnvelope) -> None:
        status = JobStatus(status="processing", started_at=utcnow(), topic=envelope.filters.topic)
        await self._conn.client.set(
            self.keys.status_key(envelope.id),
            status.to_json(),
            ex=self._config.job_ttl_seconds,
        )
        logger.debug("Job %s marked processing", envelope.id)

    async def publish_result(self, job_id: str, result: ResultEnvelope) -> None:
        """Push the result, set its expiry and the terminal status in one batch."""
        result_key = self.keys.result_key(job_id)
        status = JobStatus(
            status=result.status,
            completed_at=utcnow(),
            total_fetched=result.total_fetched if result.status == "completed" else None,
            error=result.error,
        )
        async with self._conn.client.pipeline(transaction=True) as pipe:
            pipe.rpush(result_key, result.to_json())
            pipe.expire(result_key, self._config.result_ttl_seconds)
            pipe.set(self.keys.status_key(job_id), status.to_json(), ex=self._config.job_ttl_seconds)
            await pipe.execute()

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    async def get_status(self, job_id: str) -> JobStatus | None:
        """Read a job's status record. None if it never existed or expired."""
        raw = await self._conn.client.get(self.keys.status_key(job_id))
        if raw is None:
            return None
        try:
            return JobStatus.model_validate_json(raw)
        except ValidationError:
            logger.warning("Unreadable status record for job %s", job_id, exc_info=True)
            return None

    async def health(self) -> dict[str, Any]:
        """Store reachability and queue depth, for health checks."""
        try:
            pong = await self._conn.ping()
            depth = await self._conn.client.llen(self.keys.request_queue)
        except RedisError as e:
            logger.error("Health check failed: %s", e)
            return {"status": "error", "error": str(e), "time": utcnow().isoformat()}

        return {
            "status": "ok" if pong else "error",
            "redis": "PONG" if pong else None,
            "requestQueue": self.keys.request_queue,
            "queueDepth": depth,
            "resultPrefix": self._config.result_prefix,
            "time": utcnow().isoformat(),
        }
