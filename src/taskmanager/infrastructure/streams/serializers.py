from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from src.taskmanager.domain.events.task_status_changed import TaskStatusChanged
from src.taskmanager.domain.exceptions import EnvelopeDecodeError

ENVELOPE_FIELDS = frozenset({"id", "status"})
_INTEGER = re.compile(r"0|-?[1-9][0-9]*")


def _as_str(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def encode_envelope(envelope: TaskStatusChanged) -> dict[str, str]:
    return {
        "id": str(envelope.id),
        "status": envelope.status.value,
    }


def decode_envelope(fields: Mapping[Any, Any] | None) -> TaskStatusChanged:
    """Decode stream entry fields into a status change event.

    Anything other than exactly ``id`` and ``status`` with an integer id and a
    known status tag raises :class:`EnvelopeDecodeError`.
    """
    if not fields:
        raise EnvelopeDecodeError("Empty status change entry", fields)

    data = {_as_str(key): _as_str(value) for key, value in fields.items()}
    if set(data) != ENVELOPE_FIELDS:
        raise EnvelopeDecodeError(
            f"Expected fields {sorted(ENVELOPE_FIELDS)}, got {sorted(data)}", fields
        )
    if _INTEGER.fullmatch(data["id"]) is None:
        raise EnvelopeDecodeError(f"Task id is not an integer: {data['id']!r}", fields)
    try:
        return TaskStatusChanged.model_validate({"id": int(data["id"]), "status": data["status"]})
    except ValidationError as exc:
        raise EnvelopeDecodeError("Invalid status change schema", fields) from exc


def encode_payload(payload: Any) -> dict[str, str]:
    """Encode an arbitrary payload into stream entry fields."""
    if isinstance(payload, TaskStatusChanged):
        return encode_envelope(payload)
    if isinstance(payload, BaseModel):
        return {"payload": payload.model_dump_json()}
    if isinstance(payload, Mapping):
        return {
            _as_str(key): value if isinstance(value, str) else json.dumps(value)
            for key, value in payload.items()
        }
    return {"value": _as_str(payload)}
