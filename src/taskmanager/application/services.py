import logging

from src.taskmanager.application.instrumentation import logged
from src.taskmanager.domain.events.task_status_changed import TaskStatusChanged
from src.taskmanager.domain.exceptions import TaskNotFoundError
from src.taskmanager.domain.models import Task, TaskCreate, TaskUpdate
from src.taskmanager.domain.repositories import StatusChangePublisher, TaskRepository

logger = logging.getLogger(__name__)


class TaskService:
    """CRUD over the task store that announces status transitions."""

    def __init__(self, repository: TaskRepository, publisher: StatusChangePublisher) -> None:
        self._repository = repository
        self._publisher = publisher

    @logged
    async def get_all(self) -> list[Task]:
        return await self._repository.find_all()

    @logged
    async def get_by_id(self, task_id: int) -> Task:
        task = await self._repository.find_by_id(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    @logged
    async def create(self, data: TaskCreate) -> Task:
        return await self._repository.save(Task(**data.model_dump()))

    @logged
    async def update(self, task_id: int, data: TaskUpdate) -> Task:
        """
        Replace the task fields and publish a status change when the status moved.

        The task is saved before publishing; a failed publish is logged and
        does not fail the update.
        """
        existing = await self.get_by_id(task_id)
        status_changed = existing.status != data.status

        updated = existing.model_copy(
            update={
                "title": data.title,
                "description": data.description,
                "user_id": data.user_id,
                "status": data.status,
            }
        )
        saved = await self._repository.save(updated)

        if status_changed:
            try:
                self._publisher.publish(TaskStatusChanged.from_task(saved))
            except Exception:
                logger.exception(
                    "Failed to publish status change",
                    extra={"task_id": task_id, "status": saved.status.value},
                )
        return saved

    @logged
    async def delete(self, task_id: int) -> None:
        if not await self._repository.exists_by_id(task_id):
            raise TaskNotFoundError(task_id)
        await self._repository.delete_by_id(task_id)
