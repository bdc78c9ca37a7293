from __future__ import annotations

import base64

import httpx

from snow_change_adapter.adapters.api import HTTPTransport, ResponseEnvelope
from snow_change_adapter.adapters.servicenow.request import HTTPMethod, build_request_spec
from snow_change_adapter.config import Credentials


def _spec(method=HTTPMethod.GET, query="sysparm_limit=1"):
    return build_request_spec(
        "change_request",
        method,
        query,
        base_url="https://dev00000.service-now.com/",
        credentials=Credentials(username="admin", password="s3cret"),
    )


def test_perform_sends_basic_auth_and_returns_envelope():
    captured: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["request"] = request
        return httpx.Response(200, json={"result": []})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    transport = HTTPTransport(http_client=client)

    result = transport.perform(_spec())

    request = captured["request"]
    assert request.method == "GET"
    assert str(request.url) == "https://dev00000.service-now.com/api/now/table/change_request?sysparm_limit=1"
    expected = base64.b64encode(b"admin:s3cret").decode()
    assert request.headers["Authorization"] == f"Basic {expected}"
    assert request.headers["Accept"] == "application/json"
    assert result.error is None
    assert result.envelope.status_code == 200
    assert '"result"' in result.envelope.body


def test_perform_returns_non_2xx_without_raising():
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(503, text="unavailable")))

    result = HTTPTransport(http_client=client).perform(_spec(HTTPMethod.POST, None))

    assert result.error is None
    assert result.envelope == ResponseEnvelope(status_code=503, body="unavailable", headers=result.envelope.headers)


def test_perform_captures_transport_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = httpx.Client(transport=httpx.MockTransport(handler))

    result = HTTPTransport(http_client=client).perform(_spec())

    assert isinstance(result.error, httpx.ConnectError)
    assert result.envelope is None


def test_envelope_to_dict():
    envelope = ResponseEnvelope(status_code=201, body="{}", headers={"content-type": "application/json"})

    assert envelope.to_dict() == {"statusCode": 201, "body": "{}", "headers": {"content-type": "application/json"}}
