"""
Helpers for resolving ServiceNow adapters in CLI contexts.
"""

from __future__ import annotations

from typing import Optional

from ..adapters import ServiceNowAdapter
from ..adapters.api import Transport
from ..core.context import ExecutionContext
from ..core.events import EventPublisher
from ..core.registry import InstanceRegistry


def resolve_adapter(
    instance_id: str,
    registry: InstanceRegistry,
    context: ExecutionContext,
    *,
    transport: Optional[Transport] = None,
    events: Optional[EventPublisher] = None,
) -> ServiceNowAdapter:
    """
    Build an adapter for a catalogued instance.

    Raises ``KeyError`` for unknown instances and
    :class:`~snow_change_adapter.config.ConfigurationError` when credentials are
    missing.
    """

    descriptor = registry.require(instance_id)
    properties = context.properties_for(descriptor)
    return ServiceNowAdapter(
        descriptor.instance_id,
        properties,
        transport=transport,
        events=events,
        tags=context.options.observability_tags,
    )
