from src.taskmanager.domain.events.task_status_changed import TaskStatusChanged

__all__ = ["TaskStatusChanged"]
