"""
Core infrastructure modules shared across the ServiceNow change adapter.

This package intentionally stays lightweight. It exposes the instance registry,
execution context, event publishing and logging helpers used by the adapters
and the CLI.
"""

from .context import ExecutionContext, ExecutionOptions
from .events import EventHandler, EventPublisher
from .logging import bind_tags, configure_logging, get_logger, log_progress
from .registry import InstanceDescriptor, InstanceRegistry, RegistryLoadError

__all__ = [
    "ExecutionContext",
    "ExecutionOptions",
    "EventHandler",
    "EventPublisher",
    "InstanceDescriptor",
    "InstanceRegistry",
    "RegistryLoadError",
    "get_logger",
    "configure_logging",
    "bind_tags",
    "log_progress",
]
