from __future__ import annotations

import logging

import httpx

from src.taskmanager.application.instrumentation import logged
from src.taskmanager.domain.events.task_status_changed import TaskStatusChanged
from src.taskmanager.domain.exceptions import DispatchError, NonRetryableError

logger = logging.getLogger(__name__)

# Client errors that can still succeed later.
_RETRYABLE_CLIENT_ERRORS = {408, 425, 429}


class WebhookNotificationDispatcher:
    """POSTs every status change as JSON to a fixed URL."""

    def __init__(self, url: str, client: httpx.AsyncClient) -> None:
        self._url = url
        self._client = client

    @logged
    async def handle(self, envelope: TaskStatusChanged) -> None:
        try:
            response = await self._client.post(self._url, json=envelope.model_dump(mode="json"))
        except httpx.HTTPError as exc:
            raise DispatchError(f"Webhook request failed for task {envelope.id}") from exc

        status_code = response.status_code
        if 400 <= status_code < 500 and status_code not in _RETRYABLE_CLIENT_ERRORS:
            raise NonRetryableError(
                f"Webhook rejected task {envelope.id} with HTTP {status_code}"
            )
        if status_code >= 300:
            raise DispatchError(f"Webhook returned HTTP {status_code} for task {envelope.id}")
        logger.info(
            "Status change webhook delivered",
            extra={"task_id": envelope.id, "status_code": status_code},
        )

    async def close(self) -> None:
        await self._client.aclose()
