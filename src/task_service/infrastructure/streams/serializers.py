from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from src.task_service.domain.events.task_event import TaskEvent


def _as_str(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode()
    return str(value)


def encode_event(
    key: str,
    event: TaskEvent,
    *,
    trace_id: str = "",
    request_id: str = "",
) -> dict[str, str]:
    """Flatten a keyed envelope and its correlation headers into stream entry fields."""
    return {
        "key": key,
        "trace_id": trace_id,
        "request_id": request_id,
        "value": event.model_dump_json(),
    }


def decode_event(fields: dict[str, Any]) -> tuple[TaskEvent, dict[str, str]]:
    """Return the envelope and its headers (``key``, ``trace_id``, ``request_id``)."""
    raw_value = fields.get("value")
    if raw_value is None:
        raise ValueError("Stream entry has no value")
    try:
        data = json.loads(_as_str(raw_value))
    except json.JSONDecodeError as exc:
        raise ValueError("Invalid event JSON") from exc

    try:
        event = TaskEvent.model_validate(data)
    except ValidationError as exc:
        raise ValueError("Invalid event schema") from exc

    headers = {
        name: _as_str(fields.get(name, ""))
        for name in ("key", "trace_id", "request_id")
    }
    return event, headers
