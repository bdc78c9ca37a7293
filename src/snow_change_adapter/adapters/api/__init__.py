"""
HTTP transport used by the ServiceNow adapters.

The transport only reports what happened on the wire; classification of the
raw outcome lives in :mod:`snow_change_adapter.adapters.servicenow.classifier`.
"""

from .base import HTTPTransport, ResponseEnvelope, Transport, TransportResult

__all__ = [
    "HTTPTransport",
    "ResponseEnvelope",
    "Transport",
    "TransportResult",
]
