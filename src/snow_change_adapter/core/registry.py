"""
ServiceNow instance catalogue declarations and helpers.

The registry lists every ServiceNow instance the adapter can be pointed at. Each
entry captures the non-secret connection details (URL, target table, transport
deadline) plus the name of the secrets table holding the instance credentials,
so catalogue files can be committed while passwords stay in ``.secrets``.

Descriptors are loaded from YAML documents to keep day-to-day maintenance
approachable for operators while still providing typed access for Python code.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, MutableMapping, Optional, Sequence

import yaml

from ..config import DEFAULT_TABLE, DEFAULT_TIMEOUT


class RegistryLoadError(RuntimeError):
    """Raised when an instance catalogue YAML file cannot be parsed or validated."""


@dataclass(slots=True)
class InstanceDescriptor:
    """
    Metadata for a single configured ServiceNow instance.

    Parameters
    ----------
    instance_id:
        Adapter instance identifier. Used in log lines and ONLINE/OFFLINE
        event payloads to tell instances apart.
    url:
        Base URL of the ServiceNow instance.
    table:
        Table targeted by the Table API.
    credentials:
        Name of the secrets table holding ``username`` and ``password``.
    timeout:
        Transport deadline in seconds. ``None`` disables the deadline.
    description:
        Free-form operator notes.
    tags:
        Keywords for quick filtering.
    """

    instance_id: str
    url: str
    table: str = DEFAULT_TABLE
    credentials: Optional[str] = None
    timeout: Optional[float] = DEFAULT_TIMEOUT
    description: str = ""
    tags: Sequence[str] = field(default_factory=tuple)

    def validate(self) -> None:
        """Validate internal consistency of the descriptor."""

        if not self.instance_id or not self.instance_id.strip():
            raise RegistryLoadError("Instance entries require a non-empty 'id'.")
        if not self.url.startswith(("http://", "https://")):
            raise RegistryLoadError(f"Instance '{self.instance_id}' url must start with http:// or https://.")
        if not self.table:
            raise RegistryLoadError(f"Instance '{self.instance_id}' must declare a table.")
        if self.timeout is not None and self.timeout <= 0:
            raise RegistryLoadError(f"Instance '{self.instance_id}' timeout must be positive.")

    def to_json(self) -> str:
        """Return a JSON representation useful for CLI output."""

        payload = {
            "id": self.instance_id,
            "url": self.url,
            "table": self.table,
            "credentials": self.credentials,
            "timeout": self.timeout,
            "description": self.description,
            "tags": list(self.tags),
        }
        return json.dumps(payload, ensure_ascii=False, indent=2)


class InstanceRegistry:
    """In-memory catalogue of :class:`InstanceDescriptor` entries."""

    def __init__(self) -> None:
        self._entries: MutableMapping[str, InstanceDescriptor] = {}

    def register(self, descriptor: InstanceDescriptor) -> None:
        """Register or overwrite a descriptor in the catalogue."""

        descriptor.validate()
        self._entries[descriptor.instance_id] = descriptor

    def unregister(self, instance_id: str) -> None:
        self._entries.pop(instance_id, None)

    def get(self, instance_id: str) -> Optional[InstanceDescriptor]:
        return self._entries.get(instance_id)

    def require(self, instance_id: str) -> InstanceDescriptor:
        """Retrieve a descriptor or raise an informative error."""

        descriptor = self.get(instance_id)
        if descriptor is None:
            raise KeyError(f"ServiceNow instance '{instance_id}' is not registered.")
        return descriptor

    def list(self, *, tag: Optional[str] = None) -> List[InstanceDescriptor]:
        """Return registered descriptors, optionally filtered by tag."""

        items = self._entries.values()
        if tag:
            return [item for item in items if tag in item.tags]
        return list(items)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "InstanceRegistry":
        """Load descriptors from a YAML document."""

        location = Path(path)
        if not location.exists():
            raise RegistryLoadError(f"Instance file '{location}' does not exist.")

        try:
            with location.open("r", encoding="utf-8") as handle:
                payload = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise RegistryLoadError(f"Failed to parse '{location}': {exc}") from exc

        if not isinstance(payload, list):
            raise RegistryLoadError(f"Instance file '{location}' must contain a list of instances.")

        registry = cls()
        for entry in payload:
            descriptor = cls._descriptor_from_payload(entry, origin=location)
            if descriptor.instance_id in registry._entries:
                raise RegistryLoadError(f"Duplicate instance id '{descriptor.instance_id}' in '{location}'.")
            registry.register(descriptor)
        return registry

    @staticmethod
    def _descriptor_from_payload(entry: Dict[str, object], *, origin: Path) -> InstanceDescriptor:
        """Convert a YAML mapping into a descriptor instance."""

        if not isinstance(entry, dict):
            raise RegistryLoadError(f"Invalid entry in '{origin}': expected mapping, got {type(entry)!r}")

        try:
            timeout = entry.get("timeout", DEFAULT_TIMEOUT)
            descriptor = InstanceDescriptor(
                instance_id=str(entry["id"]),
                url=str(entry["url"]),
                table=str(entry.get("table", DEFAULT_TABLE)),
                credentials=_optional_str(entry.get("credentials")),
                timeout=float(timeout) if timeout is not None else None,
                description=str(entry.get("description", "")),
                tags=tuple(_ensure_list(entry.get("tags"))),
            )
        except KeyError as exc:
            raise RegistryLoadError(f"Missing required key {exc!s} in '{origin}'.") from exc
        except (TypeError, ValueError) as exc:
            raise RegistryLoadError(f"Invalid field in '{origin}': {exc}") from exc

        descriptor.validate()
        return descriptor


def _ensure_list(value: object | None) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(item) for item in value]
    return [str(value)]


def _optional_str(value: object | None) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
