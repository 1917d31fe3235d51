from __future__ import annotations

from sqlalchemy import delete, select

from src.taskmanager.domain.exceptions import TaskNotFoundError
from src.taskmanager.domain.models.task import Task
from src.taskmanager.domain.repositories import TaskRepository
from src.taskmanager.infrastructure.postgres.mappers import OrmMapper
from src.taskmanager.infrastructure.postgres.orm import PostgresOrm, TaskRow


class PostgresTaskRepository(TaskRepository):
    """Postgres-backed task store using SQLAlchemy async sessions."""

    def __init__(self, orm: PostgresOrm) -> None:
        self._orm = orm

    async def find_by_id(self, task_id: int) -> Task | None:
        async with self._orm.session_factory() as session:
            row = await session.get(TaskRow, task_id)
        if row is None:
            return None
        return OrmMapper.to_domain_task(row)

    async def find_all(self) -> list[Task]:
        async with self._orm.session_factory() as session:
            result = await session.execute(select(TaskRow).order_by(TaskRow.id))
            rows = result.scalars().all()
        return [OrmMapper.to_domain_task(row) for row in rows]

    async def save(self, task: Task) -> Task:
        """Insert a new task (id assigned by the database) or update an existing one."""
        async with self._orm.session_factory() as session:
            async with session.begin():
                if task.id is None:
                    row = OrmMapper.to_task_row(task)
                    session.add(row)
                else:
                    row = await session.get(TaskRow, task.id)
                    if row is None:
                        raise TaskNotFoundError(task.id)
                    OrmMapper.apply_to_row(row, task)
                # Flush inside the transaction so a new row gets its identity.
                await session.flush()
                saved = OrmMapper.to_domain_task(row)
        return saved

    async def exists_by_id(self, task_id: int) -> bool:
        async with self._orm.session_factory() as session:
            result = await session.execute(select(TaskRow.id).where(TaskRow.id == task_id))
            return result.scalar_one_or_none() is not None

    async def delete_by_id(self, task_id: int) -> None:
        async with self._orm.session_factory() as session:
            async with session.begin():
                await session.execute(delete(TaskRow).where(TaskRow.id == task_id))
