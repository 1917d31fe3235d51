from src.taskmanager.infrastructure.notifications.logging_dispatcher import (
    LoggingNotificationDispatcher,
)
from src.taskmanager.infrastructure.notifications.mail import MailNotificationDispatcher
from src.taskmanager.infrastructure.notifications.webhook import WebhookNotificationDispatcher

__all__ = [
    "LoggingNotificationDispatcher",
    "MailNotificationDispatcher",
    "WebhookNotificationDispatcher",
]
