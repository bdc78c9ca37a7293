"""
Execution context primitives shared across CLI commands and host integrations.

The context bundles the loaded secrets with runtime options so adapter
construction stays declarative: callers hand over an
:class:`~snow_change_adapter.core.registry.InstanceDescriptor` and receive
validated :class:`~snow_change_adapter.config.AdapterProperties`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import LoggerAdapter
from typing import Mapping, Optional, Sequence

from ..config import AdapterProperties, SecretsBundle, load_secrets, resolve_credentials
from .logging import get_logger as _get_logger
from .registry import InstanceDescriptor


@dataclass(slots=True)
class ExecutionOptions:
    """
    Flags controlling how commands behave at runtime.

    Attributes
    ----------
    observability_tags:
        Additional tags surfaced in logs.
    timeout_override:
        When set, replaces the transport deadline declared by every instance.
    """

    observability_tags: Sequence[str] = field(default_factory=tuple)
    timeout_override: Optional[float] = None


@dataclass(slots=True)
class ExecutionContext:
    """
    Shared execution context across CLI commands.

    Attributes
    ----------
    secrets:
        Bundled secret values loaded from ``.secrets``.
    options:
        Auxiliary execution flags toggled by the caller or environment.
    extra:
        Free-form slot for additional metadata.
    """

    secrets: SecretsBundle
    options: ExecutionOptions = field(default_factory=ExecutionOptions)
    extra: Mapping[str, object] = field(default_factory=dict)

    @classmethod
    def build_default(
        cls,
        *,
        options: Optional[ExecutionOptions] = None,
        secrets: Optional[SecretsBundle] = None,
    ) -> "ExecutionContext":
        """
        Construct a context using sensible defaults.

        When ``secrets`` is omitted the helper calls :func:`load_secrets`.
        """

        return cls(
            secrets=secrets or load_secrets(strict=False),
            options=options or ExecutionOptions(),
        )

    def properties_for(self, descriptor: InstanceDescriptor) -> AdapterProperties:
        """Resolve validated adapter properties for a catalogue entry."""

        timeout = self.options.timeout_override if self.options.timeout_override is not None else descriptor.timeout
        properties = AdapterProperties(
            url=descriptor.url,
            auth=resolve_credentials(self.secrets, descriptor.credentials),
            service_now_table=descriptor.table,
            timeout=timeout,
        )
        properties.validate()
        return properties

    def get_logger(self, name: str, *, extra: Optional[Mapping[str, object]] = None) -> LoggerAdapter:
        """Return a logger adapter enriched with execution context observability tags."""

        tags = tuple(self.options.observability_tags)
        return _get_logger(name, tags=tags if tags else None, extra=extra)
