"""
ServiceNow change-request adapter.

The adapter is the surface handed to the orchestration host. It composes the
connector, the record mappers and the health monitor, and owns the event
publisher through which ``ONLINE``/``OFFLINE`` are broadcast.
"""

from __future__ import annotations

import logging
from logging import LoggerAdapter
from typing import List, Optional, Sequence

from ...config import AdapterProperties
from ...core.events import EventHandler, EventPublisher
from ...core.logging import bind_tags, get_logger, log_progress
from ..api.base import Transport
from ..base import VerificationResult
from .connector import ServiceNowConnector
from .health import ConnectivityState, HealthMonitor, describe_error
from .records import ChangeRecord, map_list, map_single
from .reply import Reply, ReplyCallback


class ServiceNowAdapter:
    """
    Change-request adapter for one ServiceNow instance.

    Parameters
    ----------
    adapter_id:
        Identifier of this adapter instance. Appears in every log line and in
        the payload of connectivity events.
    properties:
        Connection details. Validated on construction.
    transport:
        Optional transport override, mainly for tests.
    events:
        Optional shared publisher. A private one is created when omitted.
    tags:
        Observability tags attached to every log line of this adapter.
    """

    def __init__(
        self,
        adapter_id: str,
        properties: AdapterProperties,
        *,
        transport: Optional[Transport] = None,
        events: Optional[EventPublisher] = None,
        tags: Sequence[str] = (),
    ) -> None:
        properties.validate()
        self._adapter_id = adapter_id
        self.properties = properties
        self.logger: LoggerAdapter = get_logger(
            f"{self.__class__.__module__}.{self.__class__.__name__}",
            extra={"adapter_id": adapter_id},
        )
        if tags:
            self.logger = bind_tags(self.logger, tags)
        self.events = events or EventPublisher(logger=self.logger)
        self.connector = ServiceNowConnector(properties=properties, transport=transport)
        self.monitor = HealthMonitor(
            adapter_id=adapter_id,
            connector=self.connector,
            events=self.events,
            logger=self.logger,
        )

    @property
    def adapter_id(self) -> str:
        return self._adapter_id

    @property
    def state(self) -> Optional[ConnectivityState]:
        """Last published connectivity state, ``None`` before the first probe."""

        return self.monitor.state

    def on(self, event: str, handler: EventHandler) -> None:
        self.events.subscribe(event, handler)

    def off(self, event: str, handler: EventHandler) -> None:
        self.events.unsubscribe(event, handler)

    def connect(self) -> None:
        """Run a single health check. The outcome is published as an event."""

        self.healthcheck()

    def healthcheck(self, callback: Optional[ReplyCallback] = None) -> ConnectivityState:
        return self.monitor.probe(callback)

    def emit_status(self, status: ConnectivityState | str) -> None:
        """Publish ``status`` for this adapter, updating the tracked state."""

        self.monitor.transition(ConnectivityState(status))

    def get_record(self, callback: Optional[ReplyCallback] = None) -> Reply[List[ChangeRecord]]:
        """Retrieve change records and deliver them as ``(records, error)``."""

        reply = self.connector.get()
        if reply.error is not None:
            self._log_failure("GET", reply.error)
            return Reply.failed(reply.error).deliver(callback)
        mapped = map_list(reply.data)
        if mapped.succeeded:
            self.logger.debug("GET returned change records", extra={"method": "GET", "count": len(mapped.data)})
        else:
            self._log_failure("GET", mapped.error)
        return mapped.deliver(callback)

    def post_record(self, callback: Optional[ReplyCallback] = None) -> Reply[ChangeRecord]:
        """Create a change record and deliver it as ``(record, error)``."""

        reply = self.connector.post()
        if reply.error is not None:
            self._log_failure("POST", reply.error)
            return Reply.failed(reply.error).deliver(callback)
        mapped = map_single(reply.data)
        if mapped.succeeded:
            self.logger.debug("POST created change record", extra={"method": "POST", "ticket_key": mapped.data.ticket_key})
        else:
            self._log_failure("POST", mapped.error)
        return mapped.deliver(callback)

    def verify(self) -> VerificationResult:
        """Probe the instance and summarise the result for CLI and host checks."""

        captured: dict[str, object] = {}

        def _capture(_data: object, error: object) -> None:
            captured["error"] = error

        state = self.healthcheck(_capture)
        details: dict[str, object] = {"id": self.adapter_id, "state": state.value}
        if state is ConnectivityState.ONLINE:
            return VerificationResult(success=True, message=f"ServiceNow instance {self.properties.url} is reachable.", details=details)
        details["error"] = describe_error(captured.get("error"))
        return VerificationResult(
            success=False,
            message=f"ServiceNow instance {self.properties.url} is unavailable: {details['error']}",
            details=details,
        )

    def _log_failure(self, method: str, error: object) -> None:
        log_progress(
            self.logger,
            f"{method} request failed",
            status="error",
            level=logging.ERROR,
            extra={"method": method, "error": describe_error(error)},
        )
