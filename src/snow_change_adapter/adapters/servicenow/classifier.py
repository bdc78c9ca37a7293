"""
Classification of raw transport outcomes.

ServiceNow developer instances that have gone to sleep answer every request
with HTTP 200 and an HTML maintenance page, so a status code alone cannot tell
success from failure. :func:`classify` folds the transport error, the status
code and a sniff of the body into exactly one :data:`Outcome` case, checked in
a fixed order:

1. a transport error, even when an envelope also arrived;
2. no envelope at all;
3. a status code outside ``2xx``;
4. the hibernation page;
5. success.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Union

from ..api.base import ResponseEnvelope

HIBERNATING_MARKER = "Instance Hibernating page"
HTML_ROOT_TAG = "<html>"
HIBERNATING_STATUS = 200
_VALID_STATUS = re.compile(r"2\d\d")


@dataclass(frozen=True, slots=True)
class Success:
    envelope: ResponseEnvelope
    kind = "success"


@dataclass(frozen=True, slots=True)
class TransportError:
    error: BaseException
    kind = "transport-error"


@dataclass(frozen=True, slots=True)
class BadStatus:
    envelope: ResponseEnvelope
    kind = "bad-status"


@dataclass(frozen=True, slots=True)
class Hibernating:
    kind = "hibernating"


@dataclass(frozen=True, slots=True)
class MalformedResponse:
    """No envelope arrived although the transport reported no error."""

    reason: str
    kind = "malformed-response"


Outcome = Union[Success, TransportError, BadStatus, Hibernating, MalformedResponse]


def is_valid_status(status_code: object) -> bool:
    """Return ``True`` for three-digit status codes starting with ``2``."""

    if isinstance(status_code, bool) or not isinstance(status_code, (int, str)):
        return False
    return _VALID_STATUS.fullmatch(str(status_code).strip()) is not None


def is_hibernating(envelope: ResponseEnvelope) -> bool:
    """Detect the hibernating-instance page: marker text, HTML root tag and status 200 together."""

    body = envelope.body
    if not isinstance(body, str):
        return False
    return HIBERNATING_MARKER in body and HTML_ROOT_TAG in body and envelope.status_code == HIBERNATING_STATUS


def classify(transport_error: Optional[BaseException], envelope: Optional[ResponseEnvelope]) -> Outcome:
    """Map a raw transport outcome to exactly one :data:`Outcome` case. Never raises."""

    if transport_error is not None:
        return TransportError(transport_error)
    if envelope is None:
        return MalformedResponse("no response received from transport")
    if not is_valid_status(envelope.status_code):
        return BadStatus(envelope)
    if is_hibernating(envelope):
        return Hibernating()
    return Success(envelope)
