"""
ServiceNow Table API connector.

The connector builds a :class:`RequestSpec`, hands it to the transport once and
classifies what came back. Callers receive a data-first :class:`Reply`; no
retries are attempted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from logging import LoggerAdapter
from typing import Optional

from ...config import AdapterProperties
from ...core.logging import get_logger, log_progress
from ..api.base import HTTPTransport, ResponseEnvelope, Transport
from .classifier import BadStatus, Hibernating, MalformedResponse, Outcome, Success, TransportError, classify
from .reply import Reply, ReplyCallback
from .request import HTTPMethod, RequestSpec, build_request_spec

GET_QUERY = "sysparm_limit=1"
HIBERNATING_MESSAGE = "ServiceNow instance is hibernating"


def outcome_to_reply(outcome: Outcome) -> Reply[ResponseEnvelope]:
    """Collapse a classified outcome into the boundary ``(data, error)`` pair."""

    if isinstance(outcome, Success):
        return Reply.ok(outcome.envelope)
    if isinstance(outcome, TransportError):
        return Reply.failed(outcome.error)
    if isinstance(outcome, BadStatus):
        return Reply.failed(outcome.envelope)
    if isinstance(outcome, Hibernating):
        return Reply.failed(HIBERNATING_MESSAGE)
    if isinstance(outcome, MalformedResponse):
        return Reply.failed(outcome.reason)
    raise TypeError(f"Unknown outcome {outcome!r}")


@dataclass(slots=True)
class ServiceNowConnector:
    """
    Executes Table API calls for one ServiceNow instance.

    Parameters
    ----------
    properties:
        Connection details of the instance.
    transport:
        Capability performing the HTTP request. Defaults to :class:`HTTPTransport`
        using the deadline from ``properties``.
    """

    properties: AdapterProperties
    transport: Optional[Transport] = None
    logger: LoggerAdapter = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.transport is None:
            self.transport = HTTPTransport(timeout=self.properties.timeout)
        self.logger = get_logger(
            f"{self.__class__.__module__}.{self.__class__.__name__}",
            extra={"url": self.properties.url},
        )

    def build(self, method: HTTPMethod, query: Optional[str] = None) -> RequestSpec:
        return build_request_spec(
            self.properties.service_now_table,
            method,
            query,
            base_url=self.properties.url,
            credentials=self.properties.auth,
        )

    def dispatch(self, spec: RequestSpec) -> Outcome:
        """Perform one transport call for ``spec`` and classify the result."""

        self.logger.debug("Dispatching Table API call", extra=spec.to_log_dict())
        result = self.transport.perform(spec)
        outcome = classify(result.error, result.envelope)
        if isinstance(outcome, Hibernating):
            log_progress(
                self.logger,
                f"{HIBERNATING_MESSAGE}: {self.properties.url}",
                outcome=outcome.kind,
                level=logging.WARNING,
                extra={"method": spec.http_method.value},
            )
        elif not isinstance(outcome, Success):
            status_code = outcome.envelope.status_code if isinstance(outcome, BadStatus) else None
            log_progress(
                self.logger,
                "Table API call failed",
                outcome=outcome.kind,
                level=logging.WARNING,
                extra={"method": spec.http_method.value, "status_code": status_code},
            )
        return outcome

    def execute(self, spec: RequestSpec) -> Reply[ResponseEnvelope]:
        return outcome_to_reply(self.dispatch(spec))

    def get(self, callback: Optional[ReplyCallback] = None) -> Reply[ResponseEnvelope]:
        """Read from the configured table, limited to a single record."""

        return self.execute(self.build(HTTPMethod.GET, GET_QUERY)).deliver(callback)

    def post(self, callback: Optional[ReplyCallback] = None) -> Reply[ResponseEnvelope]:
        """Create a record in the configured table."""

        return self.execute(self.build(HTTPMethod.POST)).deliver(callback)
