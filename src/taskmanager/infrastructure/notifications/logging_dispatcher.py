import logging

from src.taskmanager.application.instrumentation import logged
from src.taskmanager.domain.events.task_status_changed import TaskStatusChanged

logger = logging.getLogger(__name__)


class LoggingNotificationDispatcher:
    """Dispatcher that only records the transition in the log."""

    @logged
    async def handle(self, envelope: TaskStatusChanged) -> None:
        logger.info(
            "Task %s changed status to %s",
            envelope.id,
            envelope.status.value,
            extra={"task_id": envelope.id, "status": envelope.status.value},
        )
