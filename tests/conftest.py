from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.taskmanager.application.services import TaskService
from src.taskmanager.domain.events.task_status_changed import TaskStatusChanged
from src.taskmanager.domain.exceptions import PublishError, TaskNotFoundError
from src.taskmanager.domain.models import Task, TaskStatus
from src.taskmanager.domain.repositories import StatusChangePublisher, TaskRepository
from src.taskmanager.infrastructure.streams.client import StreamsClient

from .fakes import FakeRedis


class StubTaskRepository(TaskRepository):
    """Simple in-memory task store replacement for tests."""

    def __init__(self) -> None:
        self.tasks: dict[int, Task] = {}
        self.saved: list[Task] = []
        self._counter = 0

    def seed(self, task: Task) -> Task:
        assert task.id is not None
        self.tasks[task.id] = task.model_copy()
        self._counter = max(self._counter, task.id)
        return task

    async def find_by_id(self, task_id: int) -> Task | None:
        task = self.tasks.get(task_id)
        return task.model_copy() if task is not None else None

    async def find_all(self) -> list[Task]:
        return [self.tasks[task_id].model_copy() for task_id in sorted(self.tasks)]

    async def save(self, task: Task) -> Task:
        if task.id is None:
            self._counter += 1
            task = task.model_copy(update={"id": self._counter})
        elif task.id not in self.tasks:
            raise TaskNotFoundError(task.id)
        self.tasks[task.id] = task.model_copy()
        self.saved.append(task.model_copy())
        return task

    async def exists_by_id(self, task_id: int) -> bool:
        return task_id in self.tasks

    async def delete_by_id(self, task_id: int) -> None:
        self.tasks.pop(task_id, None)


class RecordingPublisher(StatusChangePublisher):
    def __init__(self) -> None:
        self.published: list[TaskStatusChanged] = []

    def publish(self, envelope: TaskStatusChanged) -> None:
        self.published.append(envelope)


class FailingPublisher(StatusChangePublisher):
    def __init__(self) -> None:
        self.attempts = 0

    def publish(self, envelope: TaskStatusChanged) -> None:
        self.attempts += 1
        raise PublishError("broker unavailable")


@pytest.fixture
def repository() -> StubTaskRepository:
    repo = StubTaskRepository()
    repo.seed(Task(id=42, title="Write report", user_id=1, status=TaskStatus.NEW))
    repo.seed(Task(id=7, title="Old task", user_id=2, status=TaskStatus.DONE))
    return repo


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def task_service(repository: StubTaskRepository, publisher: RecordingPublisher) -> TaskService:
    return TaskService(repository, publisher)


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def streams_client(fake_redis: FakeRedis) -> StreamsClient:
    """Real client wrapper whose connection is swapped for the in-memory fake."""
    client = StreamsClient("redis://localhost:6379/0")
    client._redis = fake_redis  # type: ignore[assignment]
    return client


@pytest.fixture
def api_client(task_service: TaskService):
    """FastAPI test client with the tasks router wired to the stub store."""
    from src.taskmanager.presentation.routes import router

    app = FastAPI()
    app.state.task_service = task_service
    app.include_router(router)
    return TestClient(app)
