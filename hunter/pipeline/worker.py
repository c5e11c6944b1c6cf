"""Worker loop: dequeue a request, run the pipeline, publish the result.

Per job: received -> processing -> (completed | error). The ``processing``
status is written before any external I/O, so a crashed job shows up as a
stuck ``processing`` record until its TTL expires.
"""

import asyncio
import logging

from pydantic import ValidationError

from hunter.core.config import WorkerConfig
from hunter.core.schemas import JobEnvelope, ResultEnvelope
from hunter.pipeline.orchestrator import SearchPipeline, build_error_result
from hunter.queue.protocol import JobQueue

logger = logging.getLogger(__name__)


class MalformedJobError(ValueError):
    """A request payload was unparseable or missing required fields."""


def parse_job(raw: str) -> JobEnvelope:
    """Parse a raw request payload.

    Raises:
        MalformedJobError: Not JSON, or not a valid JobEnvelope.
    """
    try:
        return JobEnvelope.model_validate_json(raw)
    except ValidationError as e:
        msg = f"Ignoring malformed job: {e.error_count()} validation error(s)"
        raise MalformedJobError(msg) from e


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class Worker:
    """Consumes the request queue one job at a time.

    Usage::

        worker = Worker(queue, pipeline, settings.worker)
        await worker.run()   # until worker.stop()
    """

    def __init__(self, queue: JobQueue, pipeline: SearchPipeline, config: WorkerConfig) -> None:
        self._queue = queue
        self._pipeline = pipeline
        self._config = config
        self._stopping = asyncio.Event()

    def stop(self) -> None:
        """Ask the loop to exit after the current job or poll."""
        self._stopping.set()

    @property
    def stopping(self) -> bool:
        return self._stopping.is_set()

    async def handle_job(self, envelope: JobEnvelope) -> ResultEnvelope:
        """Process one job and publish exactly one result for it."""
        logger.info("Job %s received: '%s'", envelope.id, envelope.filters.topic)
        await self._queue.mark_processing(envelope)

        try:
            result = await self._pipeline.run(envelope.filters)
        except Exception as e:
            logger.error("Job %s failed: %s", envelope.id, _describe(e), exc_info=True)
            result = build_error_result(envelope.filters, _describe(e))

        await self._queue.publish_result(envelope.id, result)
        logger.info("Job %s %s (%d projects)", envelope.id, result.status, len(result.projects))
        return result

    async def process_next(self, timeout: int | None = None) -> ResultEnvelope | None:
        """One dequeue cycle. Returns None when idle or the payload was dropped."""
        raw = await self._queue.dequeue(timeout or self._config.poll_timeout_seconds)
        if raw is None:
            return None

        try:
            envelope = parse_job(raw)
        except MalformedJobError as e:
            logger.warning("%s: %.200s", e, raw)
            return None

        return await self.handle_job(envelope)

    async def run(self) -> None:
        """Dequeue and process until stopped.

        Failures outside a job (e.g. the store going away) are logged and
        followed by a fixed backoff; the loop never exits on its own.
        """
        logger.info("Waiting for jobs on %s...", self._queue.keys.request_queue)
        while not self._stopping.is_set():
            try:
                await self.process_next()
            except Exception:
                logger.error("Unexpected loop error", exc_info=True)
                await self._sleep_backoff()
        logger.info("Worker stopped")

    async def _sleep_backoff(self) -> None:
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=self._config.backoff_seconds)
        except asyncio.TimeoutError:
            pass
