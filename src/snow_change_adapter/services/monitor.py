"""
Caller-side probing policies for ServiceNow adapters.

Adapters never retry on their own. Operators waiting for a hibernating
developer instance to wake up can wrap the adapter with
:func:`probe_until_online`, which repeats health probes with exponential
backoff until the instance reports ``ONLINE`` or the attempts run out.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import LoggerAdapter
from typing import Optional

from tenacity import RetryError, Retrying, retry_if_result, stop_after_attempt, wait_exponential

from ..adapters.base import VerifiableAdapter, VerificationResult
from ..adapters.servicenow import ConnectivityState
from ..core.logging import get_logger


@dataclass(slots=True)
class ProbeReport:
    """Final verification plus the number of probes it took."""

    result: VerificationResult
    attempts: int


def probe_until_online(
    adapter: VerifiableAdapter,
    *,
    attempts: int = 1,
    wait_min: float = 1.0,
    wait_max: float = 30.0,
    logger: Optional[LoggerAdapter] = None,
) -> ProbeReport:
    """
    Verify ``adapter`` up to ``attempts`` times, stopping at the first ``ONLINE``.

    Every probe publishes its own ``ONLINE``/``OFFLINE`` event.
    """

    log = logger or get_logger(__name__, extra={"adapter_id": adapter.adapter_id})
    retrying = Retrying(
        retry=retry_if_result(lambda result: not result.success),
        wait=wait_exponential(multiplier=wait_min, min=wait_min, max=wait_max),
        stop=stop_after_attempt(max(1, attempts)),
        reraise=False,
    )
    calls: list[VerificationResult] = []

    def _probe() -> VerificationResult:
        result = adapter.verify()
        calls.append(result)
        if not result.success:
            log.info("Probe reported OFFLINE", extra={"state": ConnectivityState.OFFLINE.value, "attempt": len(calls)})
        return result

    try:
        final = retrying(_probe)
    except RetryError as exc:
        final = exc.last_attempt.result()
    return ProbeReport(result=final, attempts=len(calls))

