"""
Base protocols for ServiceNow adapters.

Adapters are intentionally narrow in scope: they provide deterministic methods
for verifying connectivity and performing well-defined Table API operations.
Retry policies and scheduling belong to the callers wrapping them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Protocol


class AdapterError(RuntimeError):
    """Raised when an adapter encounters a non-recoverable error."""


@dataclass(slots=True)
class VerificationResult:
    """
    Structured response returned by adapter verification routines.

    Attributes
    ----------
    success:
        Indicates whether the verification succeeded.
    message:
        Human-readable summary.
    details:
        Optional structured metadata, e.g. the adapter id and connectivity state.
    """

    success: bool
    message: str
    details: Optional[Mapping[str, object]] = None


class VerifiableAdapter(Protocol):
    """Protocol implemented by adapters that can report their connectivity."""

    def verify(self) -> VerificationResult:
        """Perform a lightweight connectivity check."""

    @property
    def adapter_id(self) -> str:
        """Identifier distinguishing configured adapter instances."""
