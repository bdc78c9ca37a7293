"""
Shared HTTP transport for the ServiceNow adapters.

The transport is a thin HTTPX wrapper that performs exactly one request per
call and never raises for network or status problems: every outcome comes back
as a :class:`TransportResult` holding either the transport error or the raw
:class:`ResponseEnvelope`. Interpreting status codes and bodies is left to the
response classifier.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import LoggerAdapter
from typing import TYPE_CHECKING, Mapping, MutableMapping, Optional, Protocol

import httpx

from ...config import DEFAULT_TIMEOUT
from ...core.logging import get_logger

if TYPE_CHECKING:
    from ..servicenow.request import RequestSpec


@dataclass(frozen=True, slots=True)
class ResponseEnvelope:
    """
    Raw response returned by the transport.

    A response arriving only means the round trip completed. It says nothing
    about whether the operation succeeded.
    """

    status_code: object
    body: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ResponseEnvelope":
        return cls(
            status_code=response.status_code,
            body=response.text,
            headers=dict(response.headers),
        )

    def to_dict(self) -> dict[str, object]:
        return {"statusCode": self.status_code, "body": self.body, "headers": dict(self.headers)}


@dataclass(frozen=True, slots=True)
class TransportResult:
    """Either a transport error or a response envelope. An error wins if both are set."""

    error: Optional[BaseException] = None
    envelope: Optional[ResponseEnvelope] = None


class Transport(Protocol):
    """Capability performing one HTTP request for a :class:`RequestSpec`."""

    def perform(self, spec: "RequestSpec") -> TransportResult:
        """Execute the request described by ``spec``."""


@dataclass(slots=True)
class HTTPTransport:
    """
    Synchronous HTTPX transport with basic authentication.

    Parameters
    ----------
    timeout:
        Request deadline in seconds. ``None`` waits indefinitely.
    default_headers:
        Headers automatically attached to every request.
    http_client:
        Optional pre-built :class:`httpx.Client`. When omitted a short-lived
        client is created per request.
    """

    timeout: Optional[float] = DEFAULT_TIMEOUT
    default_headers: MutableMapping[str, str] = field(default_factory=lambda: {"Accept": "application/json"})
    http_client: Optional[httpx.Client] = None
    logger: LoggerAdapter = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.logger = get_logger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    def _build_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.timeout,
            headers=dict(self.default_headers),
            follow_redirects=True,
        )

    def perform(self, spec: "RequestSpec") -> TransportResult:
        method = spec.http_method.value
        url = spec.url
        auth = httpx.BasicAuth(spec.credentials.username, spec.credentials.password)
        self.logger.debug("HTTP request", extra={"method": method, "url": url})

        try:
            if self.http_client is not None:
                response = self.http_client.request(
                    method,
                    url,
                    auth=auth,
                    headers=dict(self.default_headers),
                    timeout=self.timeout,
                )
            else:
                with self._build_client() as client:
                    response = client.request(method, url, auth=auth)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self.logger.error(
                "HTTP error during request",
                extra={"method": method, "url": url, "error": str(exc) or exc.__class__.__name__},
            )
            return TransportResult(error=exc)

        self.logger.debug(
            "HTTP response",
            extra={"status_code": response.status_code, "url": str(response.url)},
        )
        return TransportResult(envelope=ResponseEnvelope.from_response(response))
