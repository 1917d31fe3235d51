from typing import Literal

import httpx
from pydantic import ConfigDict
from pydantic_settings import BaseSettings

from src.taskmanager.application.notifications import NotificationDispatcher
from src.taskmanager.infrastructure.notifications import (
    LoggingNotificationDispatcher,
    MailNotificationDispatcher,
    WebhookNotificationDispatcher,
)


class NotificationSettings(BaseSettings):
    """Which side effect a status change triggers, and how to reach it."""
    NOTIFICATION_BACKEND: Literal["log", "mail", "webhook"] = "log"
    MAIL_HOST: str = "localhost"
    MAIL_PORT: int = 587
    MAIL_USERNAME: str | None = None
    MAIL_PASSWORD: str | None = None
    MAIL_USE_TLS: bool = True
    MAIL_SENDER: str | None = None
    MAIL_RECIPIENT: str | None = None
    MAIL_SUBJECT: str = "Task status updated"
    WEBHOOK_URL: str | None = None
    WEBHOOK_TIMEOUT_S: float = 5.0

    model_config = ConfigDict(env_file=".env", extra="ignore")


def build_notification_dispatcher(settings: NotificationSettings) -> NotificationDispatcher:
    if settings.NOTIFICATION_BACKEND == "mail":
        return MailNotificationDispatcher(
            host=settings.MAIL_HOST,
            port=settings.MAIL_PORT,
            username=settings.MAIL_USERNAME,
            password=settings.MAIL_PASSWORD,
            use_tls=settings.MAIL_USE_TLS,
            sender=settings.MAIL_SENDER,
            recipient=settings.MAIL_RECIPIENT,
            subject=settings.MAIL_SUBJECT,
        )
    if settings.NOTIFICATION_BACKEND == "webhook":
        if not settings.WEBHOOK_URL:
            raise ValueError("WEBHOOK_URL is required for the webhook notification backend.")
        client = httpx.AsyncClient(timeout=settings.WEBHOOK_TIMEOUT_S)
        return WebhookNotificationDispatcher(settings.WEBHOOK_URL, client)
    return LoggingNotificationDispatcher()
