from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Any
from uuid import uuid4

from src.taskmanager.domain.events.task_status_changed import TaskStatusChanged
from src.taskmanager.domain.exceptions import PublishError
from src.taskmanager.infrastructure.streams.client import StreamsClient
from src.taskmanager.infrastructure.streams.serializers import encode_envelope, encode_payload

logger = logging.getLogger(__name__)


class StreamsPublisher:
    """Fire-and-forget publisher on top of ``XADD``.

    Sends are scheduled on the running event loop and observed through a
    completion callback; broker failures are logged, never raised.
    """

    def __init__(
        self,
        client: StreamsClient,
        stream: str,
        *,
        default_stream: str | None = None,
        maxlen: int | None = None,
        approximate: bool = True,
    ) -> None:
        self._client = client
        self._stream = stream
        if default_stream == stream:
            raise ValueError("default_stream must differ from the status stream")
        self._default_stream = default_stream
        self._maxlen = maxlen
        self._approximate = approximate
        self._pending: set[asyncio.Task[str]] = set()
        self._closed = False

    @property
    def in_flight(self) -> int:
        return len(self._pending)

    def publish(self, envelope: TaskStatusChanged) -> asyncio.Task[str]:
        """Schedule delivery of a status change to the status stream."""
        return self._enqueue(self._stream, encode_envelope(envelope))

    def send_default(self, key: str | None, payload: Any) -> asyncio.Task[str]:
        """Send a scalar payload to the default stream under ``key``."""
        if self._default_stream is None:
            raise PublishError("No default stream configured")
        if key is None:
            key = uuid4().hex
        return self._enqueue(self._default_stream, {"key": key, "value": str(payload)})

    async def send_to(self, stream: str, payload: Any) -> None:
        """Send any payload to ``stream`` and flush buffered sends right away."""
        try:
            self._enqueue(stream, encode_payload(payload))
            await self.flush()
        except Exception:
            logger.exception("Failed to send payload", extra={"stream": stream})

    async def flush(self) -> None:
        """Wait until every in-flight send has completed."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        self._closed = True
        await self.flush()

    def _enqueue(self, stream: str, fields: dict[str, str]) -> asyncio.Task[str]:
        if self._closed:
            raise PublishError("Publisher is closed")
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise PublishError("Publishing requires a running event loop") from exc

        task = loop.create_task(
            self._client.add(
                stream,
                fields,
                maxlen=self._maxlen,
                approximate=self._approximate,
            )
        )
        self._pending.add(task)
        task.add_done_callback(partial(self._on_complete, stream, fields))
        return task

    def _on_complete(self, stream: str, fields: dict[str, str], task: asyncio.Task[str]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning("Publish cancelled", extra={"stream": stream, "fields": fields})
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Failed to publish to stream",
                extra={"stream": stream, "fields": fields},
                exc_info=exc,
            )
            return
        logger.info(
            "Published to stream",
            extra={"stream": stream, "entry_id": task.result(), "fields": fields},
        )
