from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from src.taskmanager.application.instrumentation import logged
from src.taskmanager.domain.events.task_status_changed import TaskStatusChanged
from src.taskmanager.domain.exceptions import DispatchError, InvalidStateError

logger = logging.getLogger(__name__)


class MailNotificationDispatcher:
    """Emails the configured recipient about every status change."""

    def __init__(
        self,
        *,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        sender: str | None = None,
        recipient: str | None = None,
        subject: str = "Task status updated",
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._sender = sender or username
        self._recipient = recipient
        self._subject = subject
        self._timeout = timeout

    def build_message(self, envelope: TaskStatusChanged) -> EmailMessage:
        if not self._recipient or not self._sender:
            raise InvalidStateError("Mail sender and recipient must be configured.")
        message = EmailMessage()
        message["From"] = self._sender
        message["To"] = self._recipient
        message["Subject"] = self._subject
        message.set_content(
            f"Task with id: {envelope.id} was updated, new status: {envelope.status.value}"
        )
        return message

    @logged
    async def handle(self, envelope: TaskStatusChanged) -> None:
        message = self.build_message(envelope)
        try:
            await asyncio.to_thread(self._send, message)
        except (smtplib.SMTPException, OSError) as exc:
            raise DispatchError(f"Failed to send mail for task {envelope.id}") from exc
        logger.info(
            "Status change mail sent",
            extra={"task_id": envelope.id, "recipient": self._recipient},
        )

    def _send(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
            if self._use_tls:
                smtp.starttls()
            if self._username and self._password:
                smtp.login(self._username, self._password)
            smtp.send_message(message)
