from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from src.taskmanager.domain.models.task import Task
from src.taskmanager.domain.models.task_status import TaskStatus


class TaskStatusChanged(BaseModel):
    """A single status transition of a task, as carried over the stream."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: int = Field(description="Identifier of the task that changed.")
    status: TaskStatus = Field(description="Status the task moved to.")

    @classmethod
    def from_task(cls, task: Task) -> TaskStatusChanged:
        if task.id is None:
            raise ValueError("Task id is required to build a status change event.")
        return cls(id=task.id, status=task.status)
