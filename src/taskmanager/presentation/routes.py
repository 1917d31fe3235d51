from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from src.taskmanager.application.services import TaskService
from src.taskmanager.domain.exceptions import TaskNotFoundError
from src.taskmanager.domain.models import Task, TaskCreate, TaskUpdate

router = APIRouter(prefix="/tasks", tags=["tasks"])


def get_task_service(request: Request) -> TaskService:
    return request.app.state.task_service


@router.get("", response_model=list[Task], summary="List tasks")
async def list_tasks(service: TaskService = Depends(get_task_service)) -> list[Task]:
    return await service.get_all()


@router.get(
    "/{task_id}",
    response_model=Task,
    summary="Get a task",
    responses={404: {"description": "Task not found."}},
)
async def get_task(task_id: int, service: TaskService = Depends(get_task_service)) -> Task:
    try:
        return await service.get_by_id(task_id)
    except TaskNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.post("", response_model=Task, summary="Create a task")
async def create_task(body: TaskCreate, service: TaskService = Depends(get_task_service)) -> Task:
    return await service.create(body)


@router.put(
    "/{task_id}",
    response_model=Task,
    summary="Update a task",
    description=(
        "Replaces title, description, owner and status. "
        "A status change is announced on the task status stream."
    ),
    responses={404: {"description": "Task not found."}},
)
async def update_task(
    task_id: int, body: TaskUpdate, service: TaskService = Depends(get_task_service)
) -> Task:
    try:
        return await service.update(task_id, body)
    except TaskNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a task",
    responses={404: {"description": "Task not found."}},
)
async def delete_task(task_id: int, service: TaskService = Depends(get_task_service)) -> None:
    try:
        await service.delete(task_id)
    except TaskNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
