"""
ServiceNow change-request adapter and its building blocks.

* :mod:`.request` builds Table API request descriptors.
* :mod:`.classifier` turns raw transport outcomes into :data:`~.classifier.Outcome` cases.
* :mod:`.connector` runs one classified call per operation.
* :mod:`.records` normalises provider payloads to :class:`~.records.ChangeRecord`.
* :mod:`.health` drives the ``ONLINE``/``OFFLINE`` state.
* :mod:`.adapter` composes everything behind :class:`~.adapter.ServiceNowAdapter`.
"""

from .adapter import ServiceNowAdapter
from .classifier import BadStatus, Hibernating, MalformedResponse, Outcome, Success, TransportError, classify
from .connector import GET_QUERY, HIBERNATING_MESSAGE, ServiceNowConnector, outcome_to_reply
from .health import ConnectivityState, HealthMonitor
from .records import NO_BODY_MESSAGE, ChangeRecord, map_list, map_single
from .reply import Reply, ReplyCallback
from .request import HTTPMethod, RequestSpec, build_request_spec

__all__ = [
    "BadStatus",
    "ChangeRecord",
    "ConnectivityState",
    "GET_QUERY",
    "HIBERNATING_MESSAGE",
    "HTTPMethod",
    "HealthMonitor",
    "Hibernating",
    "MalformedResponse",
    "NO_BODY_MESSAGE",
    "Outcome",
    "Reply",
    "ReplyCallback",
    "RequestSpec",
    "ServiceNowAdapter",
    "ServiceNowConnector",
    "Success",
    "TransportError",
    "build_request_spec",
    "classify",
    "map_list",
    "map_single",
    "outcome_to_reply",
]
