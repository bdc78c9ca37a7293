"""
Request descriptors for the ServiceNow Table API.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ...config import Credentials

TABLE_API_PREFIX = "/api/now/table/"


class HTTPMethod(str, Enum):
    """HTTP verbs used against the Table API."""

    GET = "GET"
    POST = "POST"


@dataclass(frozen=True, slots=True)
class RequestSpec:
    """Transport-ready description of one Table API call."""

    target_collection: str
    http_method: HTTPMethod
    credentials: Credentials
    base_url: str
    query_string: Optional[str] = None

    @property
    def path(self) -> str:
        path = TABLE_API_PREFIX + self.target_collection
        if self.query_string:
            path = f"{path}?{self.query_string}"
        return path

    @property
    def url(self) -> str:
        return self.base_url.rstrip("/") + self.path

    def to_log_dict(self) -> dict[str, object]:
        """Render the spec for logging. The password is never included."""

        return {
            "method": self.http_method.value,
            "url": self.url,
            "username": self.credentials.username,
        }


def build_request_spec(
    table: str,
    method: HTTPMethod | str,
    query: Optional[str] = None,
    *,
    base_url: str,
    credentials: Credentials,
) -> RequestSpec:
    """
    Build the descriptor for a call against ``table``.

    ``query`` is appended verbatim after ``?``; callers are responsible for
    passing a well-formed query string.
    """

    if not table:
        raise ValueError("table must be a non-empty string")
    return RequestSpec(
        target_collection=table,
        http_method=HTTPMethod(method),
        credentials=credentials,
        base_url=base_url,
        query_string=query or None,
    )
