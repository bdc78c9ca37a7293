"""
ServiceNow change-request adapter for orchestration hosts.

Import :class:`ServiceNowAdapter` for the host-facing surface. Connection
details come from :class:`AdapterProperties`; connectivity changes are
published as ``ONLINE``/``OFFLINE`` events carrying the adapter id.
"""

from .adapters import AdapterError, ChangeRecord, ConnectivityState, ServiceNowAdapter, VerificationResult
from .config import AdapterProperties, ConfigurationError, Credentials

__all__ = [
    "AdapterError",
    "AdapterProperties",
    "ChangeRecord",
    "ConfigurationError",
    "ConnectivityState",
    "Credentials",
    "ServiceNowAdapter",
    "VerificationResult",
]
