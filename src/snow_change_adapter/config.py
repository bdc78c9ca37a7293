"""
Secret and adapter property helpers for the ServiceNow change adapter.

Secrets are loaded from ``.secrets/secret.toml`` by default. The lookup order is:

1. Explicit ``SNOW_ADAPTER_SECRETS_PATH`` environment variable.
2. Project-relative ``.secrets/secret.toml`` (both from CWD and the package root).
3. Project-relative ``.secrets/secrets.toml``.
4. Fallback to ``.secrets/secrets.example.toml`` for scaffolding values.

Each ServiceNow instance keeps its credentials in a dedicated table::

    [servicenow_dev]
    username = "admin"
    password = "<PASSWORD>"

Call :func:`load_secrets` to retrieve a :class:`SecretsBundle` instance and
:func:`resolve_credentials` to turn one of its sections into :class:`Credentials`.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

from .adapters.base import AdapterError

DEFAULT_TABLE = "change_request"
DEFAULT_TIMEOUT = 15.0
_ENV_SECRETS_PATH = "SNOW_ADAPTER_SECRETS_PATH"
_ENV_USERNAME = "SNOW_ADAPTER_USERNAME"
_ENV_PASSWORD = "SNOW_ADAPTER_PASSWORD"


class ConfigurationError(AdapterError, ValueError):
    """Raised when adapter properties or credentials are missing or invalid."""


@dataclass(frozen=True, slots=True)
class Credentials:
    """Basic-auth credentials passed through to the ServiceNow instance."""

    username: str
    password: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class AdapterProperties:
    """
    Connection details for a single ServiceNow adapter instance.

    Attributes
    ----------
    url:
        ServiceNow instance URL, e.g. ``https://dev00000.service-now.com/``.
    auth:
        Basic-auth credentials for the instance.
    service_now_table:
        Table targeted by the Table API. Defaults to ``change_request``.
    timeout:
        Transport deadline in seconds. ``None`` waits indefinitely.
    """

    url: str
    auth: Credentials
    service_now_table: str = DEFAULT_TABLE
    timeout: Optional[float] = DEFAULT_TIMEOUT

    def validate(self) -> None:
        """Validate the properties before an adapter is built from them."""

        if not self.url or not self.url.strip():
            raise ConfigurationError("ServiceNow instance url is required.")
        if not self.url.startswith(("http://", "https://")):
            raise ConfigurationError(f"ServiceNow instance url '{self.url}' must start with http:// or https://.")
        if not self.service_now_table or not self.service_now_table.strip():
            raise ConfigurationError("ServiceNow table name is required.")
        if not self.auth.username:
            raise ConfigurationError("ServiceNow username is required.")
        if not self.auth.password:
            raise ConfigurationError("ServiceNow password is required.")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError(f"Transport timeout must be positive, got {self.timeout!r}.")

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> "AdapterProperties":
        """
        Build properties from the platform's adapter-properties mapping.

        The mapping follows the shape ``{"url", "auth": {"username", "password"},
        "serviceNowTable", "timeout"}``.
        """

        auth = payload.get("auth")
        if not isinstance(auth, Mapping):
            raise ConfigurationError("Adapter properties must include an 'auth' mapping.")
        timeout = payload.get("timeout", DEFAULT_TIMEOUT)
        properties = cls(
            url=str(payload.get("url") or ""),
            auth=Credentials(
                username=str(auth.get("username") or ""),
                password=str(auth.get("password") or ""),
            ),
            service_now_table=str(payload.get("serviceNowTable") or DEFAULT_TABLE),
            timeout=float(timeout) if timeout is not None else None,
        )
        properties.validate()
        return properties


@dataclass(slots=True)
class SecretsBundle:
    """Lightweight container for parsed secret values."""

    source_path: Optional[Path]
    data: Dict[str, Dict[str, object]]

    def section(self, name: str) -> Mapping[str, object]:
        """Return a top-level table, or an empty mapping when it is absent or malformed."""

        value = self.data.get(name)
        return value if isinstance(value, dict) else {}


def _discover_project_root() -> Optional[Path]:
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / "pyproject.toml").is_file():
            return parent
    return None


def _candidate_paths() -> Iterable[Path]:
    env_override = os.getenv(_ENV_SECRETS_PATH)
    if env_override:
        yield Path(env_override).expanduser()

    package_root = _discover_project_root()
    cwd = Path.cwd()

    def secrets_paths(base: Path) -> Iterable[Path]:
        secrets_dir = base / ".secrets"
        for filename in ("secret.toml", "secrets.toml"):
            yield secrets_dir / filename
        yield secrets_dir / "secrets.example.toml"

    seen: set[Path] = set()
    search_roots = [cwd]
    if package_root and package_root not in search_roots:
        search_roots.append(package_root)
    for base in search_roots:
        for candidate in secrets_paths(base):
            if candidate not in seen:
                seen.add(candidate)
                yield candidate


def _load_toml(path: Path) -> Dict[str, Dict[str, object]]:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _clean_secret(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if text.startswith("<") and text.endswith(">"):
        # Placeholder convention used in secrets.example files.
        return None
    return text


def load_secrets(strict: bool = False) -> SecretsBundle:
    """
    Attempt to load secrets from the configured locations.

    Parameters
    ----------
    strict:
        When ``True`` the function raises ``FileNotFoundError`` if no secrets file is
        discovered. Defaults to ``False`` for ease of use in development environments.
    """

    for path in _candidate_paths():
        if path.is_file():
            return SecretsBundle(source_path=path, data=_load_toml(path))

    if strict:
        raise FileNotFoundError("No secrets file found. Configure SNOW_ADAPTER_SECRETS_PATH or .secrets/secret.toml.")

    return SecretsBundle(source_path=None, data={})


def resolve_credentials(secrets: SecretsBundle, section: Optional[str]) -> Credentials:
    """
    Resolve basic-auth credentials for an instance.

    Values from the named secrets table win; ``SNOW_ADAPTER_USERNAME`` and
    ``SNOW_ADAPTER_PASSWORD`` fill whatever the table leaves empty.
    """

    table = secrets.section(section) if section else {}
    username = _clean_secret(table.get("username")) or _clean_secret(os.getenv(_ENV_USERNAME))
    password = _clean_secret(table.get("password")) or _clean_secret(os.getenv(_ENV_PASSWORD))
    if not username or not password:
        hint = f"[{section}]" if section else "a secrets table"
        raise ConfigurationError(f"ServiceNow credentials missing. Set username/password in {hint} or {_ENV_USERNAME}/{_ENV_PASSWORD}.")
    return Credentials(username=username, password=password)
