"""
Normalisation of ServiceNow change-request payloads.

The Table API wraps records in ``{"result": ...}``: a list for GET and a single
object for POST. Each record is reduced to the generic :class:`ChangeRecord`
fields. Values are passed through as the instance returned them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from ..api.base import ResponseEnvelope
from .reply import Reply

NO_BODY_MESSAGE = "no body in response"


@dataclass(frozen=True, slots=True)
class ChangeRecord:
    """
    Adapter-facing shape of a change-request ticket.

    Attributes
    ----------
    ticket_number:
        Public change number, e.g. ``CHG0000001``.
    active:
        Whether the change is still active.
    priority:
        Priority between 0 and 5.
    description:
        Free-text description of the change.
    work_start:
        Planned work start, ``YYYY-MM-DD HH:MM TZ``.
    work_end:
        Planned work end, ``YYYY-MM-DD HH:MM TZ``.
    ticket_key:
        The record's unique key (``sys_id``).
    """

    ticket_number: Any
    active: Any
    priority: Any
    description: Any
    work_start: Any
    work_end: Any
    ticket_key: Any

    @classmethod
    def from_provider(cls, payload: Mapping[str, Any]) -> "ChangeRecord":
        return cls(
            ticket_number=payload.get("number"),
            active=payload.get("active"),
            priority=payload.get("priority"),
            description=payload.get("description"),
            work_start=payload.get("work_start"),
            work_end=payload.get("work_end"),
            ticket_key=payload.get("sys_id"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "ticketNumber": self.ticket_number,
            "active": self.active,
            "priority": self.priority,
            "description": self.description,
            "workStart": self.work_start,
            "workEnd": self.work_end,
            "ticketKey": self.ticket_key,
        }


def _load_result(envelope: Optional[ResponseEnvelope]) -> Reply[Any]:
    body = envelope.body if envelope is not None else None
    if not body:
        return Reply.failed(NO_BODY_MESSAGE)
    try:
        payload = json.loads(body)
    except (TypeError, ValueError) as exc:
        return Reply.failed(f"malformed JSON in response body: {exc}")
    if not isinstance(payload, Mapping) or "result" not in payload:
        return Reply.failed("unexpected result shape in response body: missing 'result'")
    return Reply.ok(payload["result"])


def map_list(envelope: Optional[ResponseEnvelope]) -> Reply[List[ChangeRecord]]:
    """Map a GET response to its change records."""

    loaded = _load_result(envelope)
    if not loaded.succeeded:
        return Reply.failed(loaded.error)
    result = loaded.data
    if not isinstance(result, list):
        return Reply.failed(f"unexpected result shape in response body: expected list, got {type(result).__name__}")
    records: List[ChangeRecord] = []
    for entry in result:
        if not isinstance(entry, Mapping):
            return Reply.failed(f"unexpected result shape in response body: expected object entries, got {type(entry).__name__}")
        records.append(ChangeRecord.from_provider(entry))
    return Reply.ok(records)


def map_single(envelope: Optional[ResponseEnvelope]) -> Reply[ChangeRecord]:
    """Map a POST response to the created change record."""

    loaded = _load_result(envelope)
    if not loaded.succeeded:
        return Reply.failed(loaded.error)
    result = loaded.data
    if not isinstance(result, Mapping):
        return Reply.failed(f"unexpected result shape in response body: expected object, got {type(result).__name__}")
    return Reply.ok(ChangeRecord.from_provider(result))
