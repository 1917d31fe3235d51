from __future__ import annotations

from src.taskmanager.domain.models.task import Task
from src.taskmanager.infrastructure.postgres.orm import TaskRow


class OrmMapper:
    @staticmethod
    def to_task_row(task: Task) -> TaskRow:
        return TaskRow(
            id=task.id,
            title=task.title,
            description=task.description,
            user_id=task.user_id,
            status=task.status,
        )

    @staticmethod
    def apply_to_row(row: TaskRow, task: Task) -> TaskRow:
        row.title = task.title
        row.description = task.description
        row.user_id = task.user_id
        row.status = task.status
        return row

    @staticmethod
    def to_domain_task(row: TaskRow) -> Task:
        return Task(
            id=row.id,
            title=row.title,
            description=row.description,
            user_id=row.user_id,
            status=row.status,
        )
