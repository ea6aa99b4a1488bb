from __future__ import annotations

import logging
from typing import Any

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import ResponseError

logger = logging.getLogger(__name__)

StreamEntry = tuple[str, dict[str, Any]]


class StreamsClient:
    """Pooled Redis connection limited to the stream commands the service issues."""

    name = "redis"

    def __init__(
        self,
        url: str,
        *,
        max_connections: int = 10,
        socket_timeout: float | None = None,
        socket_connect_timeout: float = 5.0,
    ) -> None:
        # Blocking XREADGROUP calls must outlive a socket timeout, so none is set by default.
        self._pool = ConnectionPool.from_url(
            url,
            max_connections=max_connections,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_connect_timeout,
            decode_responses=True,
        )
        self._redis = Redis(connection_pool=self._pool)

    async def append(
        self,
        stream: str,
        fields: dict[str, str],
        *,
        maxlen: int | None = None,
        approximate: bool = True,
    ) -> str:
        """XADD one entry, trimming the stream to roughly ``maxlen`` entries."""
        return await self._redis.xadd(stream, fields, maxlen=maxlen, approximate=approximate)

    async def ensure_group(self, stream: str, group: str) -> None:
        """Create ``group`` on ``stream`` (and the stream itself) unless it already exists."""
        try:
            await self._redis.xgroup_create(name=stream, groupname=group, id="$", mkstream=True)
        except ResponseError as exc:
            if "BUSYGROUP" not in str(exc):
                raise
            return
        logger.info("Created consumer group", extra={"stream": stream, "group": group})

    async def read_group(
        self,
        stream: str,
        group: str,
        consumer: str,
        *,
        count: int,
        block_ms: int,
    ) -> list[StreamEntry]:
        """Return up to ``count`` entries never delivered to ``group``, waiting at most ``block_ms``."""
        response = await self._redis.xreadgroup(
            groupname=group,
            consumername=consumer,
            streams={stream: ">"},
            count=count,
            block=block_ms,
        )
        return [entry for _stream, entries in response or [] for entry in entries]

    async def ack(self, stream: str, group: str, entry_id: str) -> None:
        await self._redis.xack(stream, group, entry_id)

    async def start(self) -> None:
        await self._redis.ping()
        logger.info("Redis connection ready")

    async def stop(self) -> None:
        await self._redis.aclose()
        await self._pool.disconnect()
        logger.info("Redis connection closed")
