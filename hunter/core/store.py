"""Queue-store connection management using redis.asyncio.

One RedisConnection per process, entered once and passed to the queue
protocol. Blocking pops get their own client so they never stall ordinary
commands queued behind them.
"""

import logging
from types import TracebackType

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class RedisConnection:
    """Async context manager that owns a command client and a blocking client.

    Usage::

        async with RedisConnection(url) as conn:
            queue = JobQueue(conn, settings.queue)
            ...
    """

    def __init__(self, url: str) -> None:
        self._url = url
        self._client: redis.Redis | None = None
        self._blocking: redis.Redis | None = None

    @classmethod
    def from_clients(cls, client: redis.Redis, blocking: redis.Redis) -> "RedisConnection":
        """Wrap already-built clients (e.g. in tests). They are closed on exit."""
        conn = cls(url="<injected>")
        conn._client = client
        conn._blocking = blocking
        return conn

    @property
    def client(self) -> redis.Redis:
        """Client for ordinary commands. Raises if not entered."""
        if self._client is None:
            msg = "RedisConnection not entered - use 'async with'"
            raise RuntimeError(msg)
        return self._client

    @property
    def blocking(self) -> redis.Redis:
        """Client reserved for BLPOP/BRPOP. Raises if not entered."""
        if self._blocking is None:
            msg = "RedisConnection not entered - use 'async with'"
            raise RuntimeError(msg)
        return self._blocking

    async def ping(self) -> bool:
        return bool(await self.client.ping())

    async def __aenter__(self) -> "RedisConnection":
        if self._client is None:
            self._client = redis.Redis.from_url(self._url, decode_responses=True)
            self._blocking = redis.Redis.from_url(self._url, decode_responses=True)
            await self._client.ping()
            logger.info("Connected to Redis at %s", self._url)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close both clients. Safe to call more than once."""
        client, blocking = self._client, self._blocking
        self._client = None
        self._blocking = None
        if client is not None:
            await client.aclose()
        if blocking is not None:
            await blocking.aclose()
