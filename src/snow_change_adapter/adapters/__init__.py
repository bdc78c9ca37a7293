"""
Adapter interfaces for ServiceNow instances.

The HTTP transport lives in :mod:`.api`; the change-request adapter and its
classification pipeline live in :mod:`.servicenow`.
"""

from .base import AdapterError, VerifiableAdapter, VerificationResult
from .servicenow import ChangeRecord, ConnectivityState, ServiceNowAdapter

__all__ = [
    "AdapterError",
    "VerifiableAdapter",
    "VerificationResult",
    "ChangeRecord",
    "ConnectivityState",
    "ServiceNowAdapter",
]
