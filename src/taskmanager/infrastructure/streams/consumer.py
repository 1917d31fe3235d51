from __future__ import annotations

import asyncio
import logging
import os
import socket
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import uuid4

from redis.exceptions import RedisError

from src.taskmanager.application.notifications import NotificationDispatcher
from src.taskmanager.infrastructure.streams.client import StreamsClient
from src.taskmanager.infrastructure.streams.retry import RetryPolicy
from src.taskmanager.infrastructure.streams.serializers import decode_envelope

logger = logging.getLogger(__name__)

STREAM_TASK_STATUS = "task-status-updates"
GROUP_NOTIFICATIONS = "task-notifications"


def consumer_name() -> str:
    """Unique group member name for this process."""
    return f"{socket.gethostname()}-{os.getpid()}-{uuid4().hex[:6]}"


@dataclass(frozen=True)
class StreamEntry:
    entry_id: str
    fields: dict[str, Any] | None

    @property
    def size(self) -> int:
        if not self.fields:
            return 0
        return sum(
            len(str(key).encode()) + len(str(value).encode())
            for key, value in self.fields.items()
        )


class BatchOutcome(str, Enum):
    ACKNOWLEDGED = "acknowledged"
    SKIPPED = "skipped"
    ABANDONED = "abandoned"


class StreamsConsumer:
    """Consumer group member that dispatches status changes batch by batch.

    A batch is acknowledged only after every entry in it was dispatched, so a
    failure part-way through redelivers the whole batch (at-least-once).
    Retryable failures are retried with the fixed backoff of ``retry_policy``;
    non-retryable ones skip the batch immediately.
    """

    def __init__(
        self,
        client: StreamsClient,
        *,
        stream: str,
        group: str,
        consumer_name: str,
        dispatcher: NotificationDispatcher,
        retry_policy: RetryPolicy | None = None,
        block_ms: int = 5000,
        count: int = 1,
        max_batch_bytes: int = 300_000,
        reclaim_pending: bool = False,
        reclaim_idle_ms: int = 15_000,
        dead_letter_stream: str | None = None,
        error_backoff_s: float = 1.0,
    ) -> None:
        if count < 1:
            raise ValueError("count must be at least 1")
        self._client = client
        self._stream = stream
        self._group = group
        self._consumer_name = consumer_name
        self._dispatcher = dispatcher
        self._retry = retry_policy or RetryPolicy()
        self._block_ms = block_ms
        self._count = count
        self._max_batch_bytes = max_batch_bytes
        self._reclaim_pending = reclaim_pending
        self._reclaim_idle_ms = reclaim_idle_ms
        self._reclaim_cursor = "0-0"
        self._dead_letter_stream = dead_letter_stream
        self._error_backoff_s = error_backoff_s

        self._stopping = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._backlog: deque[StreamEntry] = deque()
        # Entries delivered to this member but never acked are read back first.
        self._drain_pending = True

    @property
    def name(self) -> str:
        return self._consumer_name

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        await self._client.ensure_consumer_group(stream=self._stream, group=self._group)
        self._stopping.clear()
        self._task = asyncio.create_task(self.run(), name=f"stream-consumer:{self._stream}")
        logger.info(
            "Started stream consumer",
            extra={"stream": self._stream, "group": self._group, "consumer": self._consumer_name},
        )

    def request_stop(self) -> None:
        self._stopping.set()

    async def join(self) -> None:
        if self._task is not None:
            await self._task

    async def stop(self) -> None:
        self.request_stop()
        await self.join()
        self._task = None

    async def run(self) -> None:
        while not self._stopping.is_set():
            try:
                batch = await self.poll()
            except RedisError:
                logger.exception("Failed to poll stream", extra={"stream": self._stream})
                await self._wait(self._error_backoff_s)
                continue
            if batch:
                await self.process_batch(batch)
        logger.info(
            "Stream consumer stopped",
            extra={"stream": self._stream, "consumer": self._consumer_name},
        )

    async def poll(self) -> list[StreamEntry]:
        if self._backlog:
            entries = list(self._backlog)
            self._backlog.clear()
            return self._limit(entries)

        entries: list[StreamEntry] = []
        if self._drain_pending:
            entries = await self._read("0", block=None)
            if not entries:
                self._drain_pending = False
        if not entries and self._reclaim_pending:
            entries = await self._reclaim()
        if not entries:
            entries = await self._read(">", block=self._block_ms)
        return self._limit(entries)

    async def process_batch(self, entries: list[StreamEntry]) -> BatchOutcome:
        entry_ids = [entry.entry_id for entry in entries]
        attempt = 0
        while True:
            attempt += 1
            try:
                await self._dispatch(entries)
            except Exception as exc:
                if not self._retry.is_retryable(exc):
                    logger.error(
                        "Non-retryable failure, skipping batch",
                        extra={"entry_ids": entry_ids, "attempt": attempt},
                        exc_info=exc,
                    )
                    return await self._skip(entries, exc)
                if not self._retry.can_retry(attempt):
                    return await self._exhausted(entries, exc, attempt)
                logger.error(
                    "Batch dispatch failed, retrying",
                    extra={"entry_ids": entry_ids, "attempt": attempt, "error": str(exc)},
                )
                if await self._wait(self._retry.interval_s):
                    logger.warning(
                        "Shutdown during retry backoff, batch left pending",
                        extra={"entry_ids": entry_ids},
                    )
                    return BatchOutcome.ABANDONED
            else:
                if await self._acknowledge(entries):
                    return BatchOutcome.ACKNOWLEDGED
                return BatchOutcome.ABANDONED

    async def _dispatch(self, entries: list[StreamEntry]) -> None:
        envelopes = [decode_envelope(entry.fields) for entry in entries]
        logger.debug("Dispatching batch", extra={"size": len(envelopes)})
        for envelope in envelopes:
            await self._dispatcher.handle(envelope)

    async def _exhausted(
        self, entries: list[StreamEntry], exc: Exception, attempts: int
    ) -> BatchOutcome:
        entry_ids = [entry.entry_id for entry in entries]
        if self._retry.skip_exhausted:
            logger.error(
                "Retries exhausted, skipping batch",
                extra={"entry_ids": entry_ids, "attempts": attempts},
                exc_info=exc,
            )
            return await self._skip(entries, exc)

        logger.error(
            "Retries exhausted, batch left pending for redelivery",
            extra={"entry_ids": entry_ids, "attempts": attempts},
            exc_info=exc,
        )
        self._schedule_redelivery()
        await self._wait(self._retry.interval_s)
        return BatchOutcome.ABANDONED

    async def _skip(self, entries: list[StreamEntry], exc: Exception) -> BatchOutcome:
        if self._dead_letter_stream is not None:
            try:
                for entry in entries:
                    fields = {str(key): str(value) for key, value in (entry.fields or {}).items()}
                    fields.update(
                        {
                            "source_stream": self._stream,
                            "source_id": entry.entry_id,
                            "error": repr(exc),
                        }
                    )
                    await self._client.add(self._dead_letter_stream, fields)
            except RedisError:
                logger.exception(
                    "Failed to dead-letter batch, it will be redelivered",
                    extra={"dead_letter_stream": self._dead_letter_stream},
                )
                self._schedule_redelivery()
                return BatchOutcome.ABANDONED

        if await self._acknowledge(entries):
            return BatchOutcome.SKIPPED
        return BatchOutcome.ABANDONED

    async def _acknowledge(self, entries: list[StreamEntry]) -> bool:
        entry_ids = [entry.entry_id for entry in entries]
        try:
            await self._client.ack(self._stream, self._group, *entry_ids)
        except RedisError:
            logger.exception(
                "Failed to acknowledge batch, it will be redelivered",
                extra={"entry_ids": entry_ids},
            )
            self._schedule_redelivery()
            return False
        logger.debug("Acknowledged batch", extra={"entry_ids": entry_ids})
        return True

    def _schedule_redelivery(self) -> None:
        # Carried-over entries are pending too and come back with the drain.
        self._backlog.clear()
        self._drain_pending = True

    async def _read(self, start_id: str, *, block: int | None) -> list[StreamEntry]:
        messages = await self._client.read_group(
            stream=self._stream,
            group=self._group,
            consumer=self._consumer_name,
            start_id=start_id,
            count=self._count,
            block=block,
        )
        return [StreamEntry(entry_id, fields) for entry_id, fields in messages]

    async def _reclaim(self) -> list[StreamEntry]:
        self._reclaim_cursor, messages = await self._client.claim_idle(
            stream=self._stream,
            group=self._group,
            consumer=self._consumer_name,
            min_idle_ms=self._reclaim_idle_ms,
            cursor=self._reclaim_cursor,
            count=self._count,
        )
        entries = [StreamEntry(entry_id, fields) for entry_id, fields in messages]
        if entries:
            logger.info(
                "Reclaimed idle pending entries",
                extra={"entry_ids": [entry.entry_id for entry in entries]},
            )
        return entries

    def _limit(self, entries: list[StreamEntry]) -> list[StreamEntry]:
        batch: list[StreamEntry] = []
        total = 0
        for index, entry in enumerate(entries):
            if batch and total + entry.size > self._max_batch_bytes:
                self._backlog.extend(entries[index:])
                break
            batch.append(entry)
            total += entry.size
        return batch

    async def _wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; return True when shutdown was requested."""
        if timeout <= 0:
            return self._stopping.is_set()
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True
