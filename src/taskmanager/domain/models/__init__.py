from src.taskmanager.domain.models.task import Task, TaskCreate, TaskUpdate
from src.taskmanager.domain.models.task_status import TaskStatus

__all__ = [
    "Task",
    "TaskCreate",
    "TaskUpdate",
    "TaskStatus",
]
