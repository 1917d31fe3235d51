import pytest
from pydantic import ValidationError

from src.taskmanager.domain.events.task_status_changed import TaskStatusChanged
from src.taskmanager.domain.exceptions import EnvelopeDecodeError
from src.taskmanager.domain.models import Task, TaskStatus
from src.taskmanager.infrastructure.streams.retry import RetryPolicy
from src.taskmanager.infrastructure.streams.serializers import (
    decode_envelope,
    encode_envelope,
    encode_payload,
)


def test_encode_envelope_has_exactly_id_and_status() -> None:
    fields = encode_envelope(TaskStatusChanged(id=42, status=TaskStatus.IN_PROGRESS))

    assert fields == {"id": "42", "status": "IN_PROGRESS"}


@pytest.mark.parametrize("status", list(TaskStatus))
def test_encode_of_decode_is_identity(status: TaskStatus) -> None:
    wire = {"id": "1001", "status": status.value}

    assert encode_envelope(decode_envelope(wire)) == wire


def test_decode_accepts_bytes_fields() -> None:
    envelope = decode_envelope({b"id": b"5", b"status": b"DONE"})

    assert envelope == TaskStatusChanged(id=5, status=TaskStatus.DONE)


def test_unknown_status_tag_is_rejected_and_not_retryable() -> None:
    with pytest.raises(EnvelopeDecodeError) as exc_info:
        decode_envelope({"id": "42", "status": "ARCHIVED"})

    assert RetryPolicy().is_retryable(exc_info.value) is False


def test_unknown_status_tag_fails_the_same_way_every_time() -> None:
    messages = set()
    for _ in range(3):
        with pytest.raises(EnvelopeDecodeError) as exc_info:
            decode_envelope({"id": "42", "status": "in_progress"})
        messages.add(str(exc_info.value))

    assert len(messages) == 1


@pytest.mark.parametrize(
    "fields",
    [
        None,
        {},
        {"id": "42"},
        {"status": "NEW"},
        {"id": "42", "status": "NEW", "version": "2"},
        {"id": "forty-two", "status": "NEW"},
        {"id": "4.2", "status": "NEW"},
        {"id": " 42", "status": "NEW"},
        {"id": "007", "status": "NEW"},
        {"id": "-0", "status": "NEW"},
    ],
)
def test_malformed_entries_are_rejected(fields) -> None:
    with pytest.raises(EnvelopeDecodeError):
        decode_envelope(fields)


def test_envelope_is_immutable() -> None:
    envelope = TaskStatusChanged(id=1, status=TaskStatus.NEW)

    with pytest.raises(ValidationError):
        envelope.status = TaskStatus.DONE  # type: ignore[misc]


def test_envelope_from_task_uses_final_state() -> None:
    task = Task(id=9, title="Ship it", status=TaskStatus.DONE)

    assert TaskStatusChanged.from_task(task) == TaskStatusChanged(id=9, status=TaskStatus.DONE)


def test_envelope_from_unsaved_task_fails() -> None:
    with pytest.raises(ValueError):
        TaskStatusChanged.from_task(Task(title="Draft"))


def test_encode_payload_variants() -> None:
    envelope = TaskStatusChanged(id=3, status=TaskStatus.NEW)

    assert encode_payload(envelope) == {"id": "3", "status": "NEW"}
    assert encode_payload(Task(id=3, title="t")) == {
        "payload": Task(id=3, title="t").model_dump_json()
    }
    assert encode_payload({"count": 2, "name": "x"}) == {"count": "2", "name": "x"}
    assert encode_payload(17) == {"value": "17"}
