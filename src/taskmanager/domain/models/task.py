from pydantic import BaseModel, Field

from src.taskmanager.domain.models.task_status import TaskStatus


class Task(BaseModel):
    id: int | None = Field(default=None, description="Unique task identifier.")
    title: str = Field(min_length=1, description="Short task title.")
    description: str | None = Field(default=None, description="Free-form details.")
    user_id: int | None = Field(default=None, description="Owner of the task.")
    status: TaskStatus = Field(default=TaskStatus.NEW, description="Lifecycle state.")


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, description="Short task title.")
    description: str | None = Field(default=None, description="Free-form details.")
    user_id: int | None = Field(default=None, description="Owner of the task.")
    status: TaskStatus = Field(default=TaskStatus.NEW, description="Initial state.")


class TaskUpdate(BaseModel):
    """Full replacement of the mutable task fields."""

    title: str = Field(min_length=1, description="Short task title.")
    description: str | None = Field(default=None, description="Free-form details.")
    user_id: int | None = Field(default=None, description="Owner of the task.")
    status: TaskStatus = Field(description="Desired lifecycle state.")
