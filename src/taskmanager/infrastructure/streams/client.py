from __future__ import annotations

import logging
from typing import Any

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import ResponseError

logger = logging.getLogger(__name__)

StreamMessage = tuple[str, dict[str, Any] | None]


class StreamsClient:
    """Consumer group operations over one pooled ``redis.asyncio`` connection."""

    def __init__(
        self,
        url: str,
        *,
        max_connections: int = 10,
        socket_timeout: float = 5.0,
        socket_connect_timeout: float = 5.0,
        retry_on_timeout: bool = True,
    ) -> None:
        pool = ConnectionPool.from_url(
            url,
            max_connections=max_connections,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_connect_timeout,
            retry_on_timeout=retry_on_timeout,
            decode_responses=True,
        )
        self._redis = Redis(connection_pool=pool)

    async def ensure_consumer_group(
        self,
        *,
        stream: str,
        group: str,
        start_id: str = "0",
    ) -> None:
        """Create ``group`` on ``stream`` (and the stream itself) unless it exists."""
        try:
            await self._redis.xgroup_create(
                name=stream,
                groupname=group,
                id=start_id,
                mkstream=True,
            )
        except ResponseError as exc:
            if "BUSYGROUP" in str(exc):
                return
            raise
        logger.info("Created consumer group", extra={"stream": stream, "group": group})

    async def add(
        self,
        stream: str,
        fields: dict[str, str],
        *,
        maxlen: int | None = None,
        approximate: bool = True,
    ) -> str:
        return await self._redis.xadd(stream, fields, maxlen=maxlen, approximate=approximate)

    async def read_group(
        self,
        *,
        stream: str,
        group: str,
        consumer: str,
        start_id: str,
        count: int,
        block: int | None = None,
    ) -> list[StreamMessage]:
        """Read for ``consumer``: ``">"`` for new entries, ``"0"`` for its own pending ones.

        A group that disappeared (stream deleted or flushed) is created again
        and the read returns nothing; the next read starts from the beginning.
        """
        try:
            response = await self._redis.xreadgroup(
                groupname=group,
                consumername=consumer,
                streams={stream: start_id},
                count=count,
                block=block,
            )
        except ResponseError as exc:
            if "NOGROUP" not in str(exc):
                raise
            logger.warning(
                "Consumer group missing, recreating",
                extra={"stream": stream, "group": group},
            )
            await self.ensure_consumer_group(stream=stream, group=group)
            return []
        return [
            (entry_id, fields)
            for _stream, messages in response or []
            for entry_id, fields in messages
        ]

    async def ack(self, stream: str, group: str, *entry_ids: str) -> int:
        return await self._redis.xack(stream, group, *entry_ids)

    async def claim_idle(
        self,
        *,
        stream: str,
        group: str,
        consumer: str,
        min_idle_ms: int,
        cursor: str,
        count: int,
    ) -> tuple[str, list[StreamMessage]]:
        """Take over entries idle for ``min_idle_ms``; returns the next cursor and the entries."""
        response = await self._redis.xautoclaim(
            stream,
            group,
            consumer,
            min_idle_time=min_idle_ms,
            start_id=cursor,
            count=count,
        )
        return response[0] or "0-0", list(response[1])

    async def close(self) -> None:
        await self._redis.aclose()
