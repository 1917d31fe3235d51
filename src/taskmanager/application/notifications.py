from __future__ import annotations

from typing import Protocol

from src.taskmanager.domain.events.task_status_changed import TaskStatusChanged


class NotificationDispatcher(Protocol):
    async def handle(self, envelope: TaskStatusChanged) -> None:
        """Deliver the side effect of one status change; raise to request a retry."""
