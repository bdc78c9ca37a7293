from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any, Callable, List, Optional

import pytest
from typer.testing import CliRunner

from snow_change_adapter.adapters.api import ResponseEnvelope, TransportResult
from snow_change_adapter.cli.main import app
from snow_change_adapter.config import AdapterProperties, Credentials

BASE_URL = "https://dev00000.service-now.com/"

SAMPLE_RECORD = {
    "number": "CHG01",
    "active": True,
    "priority": 3,
    "description": "d",
    "work_start": "2024-01-01 00:00 UTC",
    "work_end": "2024-01-01 01:00 UTC",
    "sys_id": "abc123",
    "sys_created_by": "admin",
}

HIBERNATING_PAGE = "<html><head><title>Instance Hibernating page</title></head><body>Your instance is hibernating.</body></html>"


class StubTransport:
    """Returns queued results in order, repeating the last one once the queue runs dry."""

    def __init__(self, *results: TransportResult) -> None:
        self.results: List[TransportResult] = list(results)
        self.requests: list[Any] = []

    def perform(self, spec):  # type: ignore[no-untyped-def]
        self.requests.append(spec)
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]


@pytest.fixture(scope="session")
def instances_file() -> Path:
    instances_pkg = "snow_change_adapter.resources.instances"
    with resources.as_file(resources.files(instances_pkg) / "default.yaml") as ref:
        return Path(ref)


@pytest.fixture()
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def cli_app():
    return app


@pytest.fixture()
def properties() -> AdapterProperties:
    return AdapterProperties(url=BASE_URL, auth=Credentials(username="admin", password="s3cret"))


@pytest.fixture()
def envelope() -> Callable[..., ResponseEnvelope]:
    def _build(status_code: object = 200, body: Optional[str] = None, *, payload: Any = None) -> ResponseEnvelope:
        if payload is not None:
            body = json.dumps(payload)
        return ResponseEnvelope(status_code=status_code, body=body, headers={"content-type": "application/json"})

    return _build


@pytest.fixture()
def stub_transport() -> Callable[..., StubTransport]:
    return StubTransport


@pytest.fixture()
def ok_result(envelope) -> Callable[[Any], TransportResult]:
    def _build(result: Any) -> TransportResult:
        return TransportResult(envelope=envelope(200, payload={"result": result}))

    return _build


@pytest.fixture()
def hibernating_page() -> str:
    return HIBERNATING_PAGE


@pytest.fixture()
def sample_record() -> dict[str, Any]:
    return dict(SAMPLE_RECORD)
