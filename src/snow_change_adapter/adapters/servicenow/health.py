"""
Connectivity probing for ServiceNow adapter instances.

A probe is a single ``GET`` through the connector. Any error moves the
instance to ``OFFLINE``, anything else to ``ONLINE``. Every probe publishes its
state, including repeats of the previous one, with the adapter id as payload.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from logging import LoggerAdapter
from typing import Optional

from ...core.events import EventPublisher
from ...core.logging import get_logger, log_progress
from .connector import ServiceNowConnector
from .reply import ReplyCallback


class ConnectivityState(str, Enum):
    """Connectivity states published by adapters."""

    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"


@dataclass(slots=True)
class HealthMonitor:
    """
    Runs health probes for one adapter instance.

    Parameters
    ----------
    adapter_id:
        Identifier placed in event payloads and log lines.
    connector:
        Connector used for the probe request.
    events:
        Publisher receiving ``ONLINE``/``OFFLINE`` events.
    """

    adapter_id: str
    connector: ServiceNowConnector
    events: EventPublisher
    logger: Optional[LoggerAdapter] = None
    state: Optional[ConnectivityState] = field(default=None, init=False)

    def __post_init__(self) -> None:
        if self.logger is None:
            self.logger = get_logger(
                f"{self.__class__.__module__}.{self.__class__.__name__}",
                extra={"adapter_id": self.adapter_id},
            )

    def probe(self, callback: Optional[ReplyCallback] = None) -> ConnectivityState:
        """
        Probe the instance once and publish the resulting state.

        When ``callback`` is supplied it receives ``(None, error)`` for an
        unavailable instance and ``(response, None)`` otherwise.
        """

        reply = self.connector.get()
        if reply.error is not None:
            self.transition(ConnectivityState.OFFLINE)
            log_progress(
                self.logger,
                f"ServiceNow adapter {self.adapter_id}: instance is unavailable",
                state=ConnectivityState.OFFLINE.value,
                level=logging.ERROR,
                extra={"adapter_id": self.adapter_id, "error": describe_error(reply.error)},
            )
        else:
            self.transition(ConnectivityState.ONLINE)
            log_progress(
                self.logger,
                f"ServiceNow adapter {self.adapter_id}: instance is available",
                state=ConnectivityState.ONLINE.value,
                level=logging.DEBUG,
                extra={"adapter_id": self.adapter_id},
            )
        reply.deliver(callback)
        return self.state

    def transition(self, state: ConnectivityState) -> None:
        """Record ``state`` and publish it. Repeated states are published again."""

        self.state = state
        self.events.publish(state.value, {"id": self.adapter_id})


def describe_error(error: object) -> str:
    status_code = getattr(error, "status_code", None)
    if status_code is not None:
        return f"HTTP {status_code}"
    if isinstance(error, BaseException):
        return str(error) or error.__class__.__name__
    return str(error)
