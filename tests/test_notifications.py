import json
import smtplib

import httpx
import pytest

from src.taskmanager.domain.events.task_status_changed import TaskStatusChanged
from src.taskmanager.domain.exceptions import DispatchError, InvalidStateError, NonRetryableError
from src.taskmanager.domain.models import TaskStatus
from src.taskmanager.infrastructure.notifications import (
    LoggingNotificationDispatcher,
    MailNotificationDispatcher,
    WebhookNotificationDispatcher,
)
from src.taskmanager.infrastructure.notifications import mail as mail_module

ENVELOPE = TaskStatusChanged(id=42, status=TaskStatus.IN_PROGRESS)
WEBHOOK_URL = "https://hooks.example.test/tasks"


def _webhook(handler) -> WebhookNotificationDispatcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WebhookNotificationDispatcher(WEBHOOK_URL, client)


@pytest.mark.asyncio
async def test_webhook_posts_envelope_json() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    dispatcher = _webhook(handler)
    await dispatcher.handle(ENVELOPE)
    await dispatcher.close()

    assert len(seen) == 1
    assert str(seen[0].url) == WEBHOOK_URL
    assert json.loads(seen[0].read()) == {"id": 42, "status": "IN_PROGRESS"}


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [500, 503, 429, 408])
async def test_webhook_server_errors_are_retryable(status_code: int) -> None:
    dispatcher = _webhook(lambda request: httpx.Response(status_code))

    with pytest.raises(DispatchError):
        await dispatcher.handle(ENVELOPE)


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [400, 404, 422])
async def test_webhook_client_errors_are_not_retryable(status_code: int) -> None:
    dispatcher = _webhook(lambda request: httpx.Response(status_code))

    with pytest.raises(NonRetryableError):
        await dispatcher.handle(ENVELOPE)


@pytest.mark.asyncio
async def test_webhook_transport_errors_are_retryable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    dispatcher = _webhook(handler)

    with pytest.raises(DispatchError):
        await dispatcher.handle(ENVELOPE)


class FakeSMTP:
    sent: list = []
    fail_with: Exception | None = None

    def __init__(self, host: str, port: int, timeout: float) -> None:
        self.host = host
        self.port = port
        self.calls: list[str] = []

    def __enter__(self) -> "FakeSMTP":
        return self

    def __exit__(self, *exc_info) -> None:
        return None

    def starttls(self) -> None:
        self.calls.append("starttls")

    def login(self, username: str, password: str) -> None:
        self.calls.append(f"login:{username}")

    def send_message(self, message) -> None:
        if FakeSMTP.fail_with is not None:
            raise FakeSMTP.fail_with
        FakeSMTP.sent.append(message)


@pytest.fixture
def fake_smtp(monkeypatch: pytest.MonkeyPatch) -> type[FakeSMTP]:
    FakeSMTP.sent = []
    FakeSMTP.fail_with = None
    monkeypatch.setattr(mail_module.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def _mail(**overrides) -> MailNotificationDispatcher:
    options = {
        "host": "smtp.example.test",
        "username": "robot@example.test",
        "password": "secret",
        "recipient": "team@example.test",
        "subject": "Task update",
    }
    options.update(overrides)
    return MailNotificationDispatcher(**options)


def test_mail_message_content() -> None:
    message = _mail().build_message(ENVELOPE)

    assert message["From"] == "robot@example.test"
    assert message["To"] == "team@example.test"
    assert message["Subject"] == "Task update"
    assert "Task with id: 42 was updated, new status: IN_PROGRESS" in message.get_content()


def test_mail_without_recipient_is_invalid_state() -> None:
    with pytest.raises(InvalidStateError):
        _mail(recipient=None).build_message(ENVELOPE)


@pytest.mark.asyncio
async def test_mail_is_sent(fake_smtp: type[FakeSMTP]) -> None:
    await _mail().handle(ENVELOPE)

    assert len(fake_smtp.sent) == 1
    assert fake_smtp.sent[0]["To"] == "team@example.test"


@pytest.mark.asyncio
async def test_smtp_failure_is_retryable(fake_smtp: type[FakeSMTP]) -> None:
    fake_smtp.fail_with = smtplib.SMTPServerDisconnected("gone")

    with pytest.raises(DispatchError):
        await _mail().handle(ENVELOPE)


@pytest.mark.asyncio
async def test_logging_dispatcher_never_fails() -> None:
    await LoggingNotificationDispatcher().handle(ENVELOPE)
