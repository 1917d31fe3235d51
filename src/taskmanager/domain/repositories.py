from __future__ import annotations

from typing import Any, Protocol

from src.taskmanager.domain.events.task_status_changed import TaskStatusChanged
from src.taskmanager.domain.models.task import Task


class TaskRepository(Protocol):
    """Persistence contract for task entities keyed by id."""

    async def find_by_id(self, task_id: int) -> Task | None:
        """Return the task or ``None`` when it does not exist."""

    async def find_all(self) -> list[Task]:
        """Return every stored task ordered by id."""

    async def save(self, task: Task) -> Task:
        """Insert or update ``task``; a new task receives its id here."""

    async def exists_by_id(self, task_id: int) -> bool:
        """Return whether a task with ``task_id`` exists."""

    async def delete_by_id(self, task_id: int) -> None:
        """Remove the task with ``task_id``."""


class StatusChangePublisher(Protocol):
    """Outbound side of the status change pipeline."""

    def publish(self, envelope: TaskStatusChanged) -> Any:
        """Hand the event over for asynchronous delivery without waiting for it."""
