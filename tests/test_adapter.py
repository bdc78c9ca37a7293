from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest

from snow_change_adapter import AdapterError, AdapterProperties, ConfigurationError, Credentials, ServiceNowAdapter
from snow_change_adapter.adapters.api import TransportResult
from snow_change_adapter.adapters.servicenow import HIBERNATING_MESSAGE, NO_BODY_MESSAGE, ChangeRecord, ConnectivityState
from snow_change_adapter.core.events import EventPublisher


def test_get_record_delivers_normalised_records(properties, stub_transport, ok_result, sample_record):
    adapter = ServiceNowAdapter("snow-1", properties, transport=stub_transport(ok_result([sample_record])))
    callback = MagicMock()

    adapter.get_record(callback)

    records, error = callback.call_args.args
    assert error is None
    assert records == [
        ChangeRecord(
            ticket_number="CHG01",
            active=True,
            priority=3,
            description="d",
            work_start="2024-01-01 00:00 UTC",
            work_end="2024-01-01 01:00 UTC",
            ticket_key="abc123",
        )
    ]


def test_get_record_error_skips_mapping(properties, stub_transport, envelope):
    response = envelope(500, '{"result": []}')
    adapter = ServiceNowAdapter("snow-1", properties, transport=stub_transport(TransportResult(envelope=response)))
    callback = MagicMock()

    records, error = adapter.get_record(callback)

    assert records is None
    assert error is response
    callback.assert_called_once_with(None, response)


def test_post_record_without_body_reports_no_body(properties, stub_transport, envelope):
    adapter = ServiceNowAdapter("snow-1", properties, transport=stub_transport(TransportResult(envelope=envelope(201, None))))
    callback = MagicMock()

    adapter.post_record(callback)

    callback.assert_called_once_with(None, NO_BODY_MESSAGE)
    assert NO_BODY_MESSAGE.startswith("no body")


def test_post_record_returns_created_record(properties, stub_transport, envelope, sample_record):
    response = envelope(201, payload={"result": sample_record})
    adapter = ServiceNowAdapter("snow-1", properties, transport=stub_transport(TransportResult(envelope=response)))

    record, error = adapter.post_record()

    assert error is None
    assert record.ticket_number == "CHG01"
    assert record.to_dict()["ticketKey"] == "abc123"


@pytest.mark.parametrize("operation", ["get_record", "post_record"])
def test_hibernating_instance_is_an_error(properties, stub_transport, envelope, hibernating_page, operation):
    adapter = ServiceNowAdapter("snow-1", properties, transport=stub_transport(TransportResult(envelope=envelope(200, hibernating_page))))

    data, error = getattr(adapter, operation)()

    assert data is None
    assert error == HIBERNATING_MESSAGE


def test_transport_error_passes_through(properties, stub_transport):
    failure = httpx.ConnectTimeout("timed out")
    adapter = ServiceNowAdapter("snow-1", properties, transport=stub_transport(TransportResult(error=failure)))

    assert adapter.post_record() == (None, failure)


def test_connect_emits_state_event(properties, stub_transport, ok_result):
    adapter = ServiceNowAdapter("snow-1", properties, transport=stub_transport(ok_result([])))
    online = MagicMock()
    adapter.on("ONLINE", online)

    assert adapter.state is None
    result = adapter.connect()

    assert result is None
    assert adapter.state is ConnectivityState.ONLINE
    online.assert_called_once_with({"id": "snow-1"})


def test_off_removes_subscription(properties, stub_transport, ok_result):
    adapter = ServiceNowAdapter("snow-1", properties, transport=stub_transport(ok_result([])))
    online = MagicMock()
    adapter.on("ONLINE", online)
    adapter.off("ONLINE", online)

    adapter.connect()

    online.assert_not_called()


def test_shared_publisher_distinguishes_instances(properties, stub_transport, ok_result):
    events = EventPublisher()
    seen = []
    events.subscribe("ONLINE", seen.append)
    events.subscribe("OFFLINE", seen.append)
    first = ServiceNowAdapter("snow-1", properties, transport=stub_transport(ok_result([])), events=events)
    second = ServiceNowAdapter("snow-2", properties, transport=stub_transport(TransportResult(error=httpx.ConnectError("down"))), events=events)

    first.connect()
    second.connect()

    assert seen == [{"id": "snow-1"}, {"id": "snow-2"}]
    assert first.state is ConnectivityState.ONLINE
    assert second.state is ConnectivityState.OFFLINE


def test_emit_status_publishes_and_tracks_state(properties, stub_transport, ok_result):
    adapter = ServiceNowAdapter("snow-1", properties, transport=stub_transport(ok_result([])))
    offline = MagicMock()
    adapter.on("OFFLINE", offline)

    adapter.emit_status("OFFLINE")

    offline.assert_called_once_with({"id": "snow-1"})
    assert adapter.state is ConnectivityState.OFFLINE


def test_verify_reports_online(properties, stub_transport, ok_result):
    adapter = ServiceNowAdapter("snow-1", properties, transport=stub_transport(ok_result([])))

    result = adapter.verify()

    assert result.success is True
    assert result.details == {"id": "snow-1", "state": "ONLINE"}


def test_verify_reports_offline_with_reason(properties, stub_transport, envelope):
    adapter = ServiceNowAdapter("snow-1", properties, transport=stub_transport(TransportResult(envelope=envelope(401, "denied"))))

    result = adapter.verify()

    assert result.success is False
    assert result.details["state"] == "OFFLINE"
    assert result.details["error"] == "HTTP 401"
    assert "unavailable" in result.message


def test_invalid_properties_are_rejected():
    properties = AdapterProperties(url="https://dev.example.com", auth=Credentials(username="admin", password=""))

    with pytest.raises(ConfigurationError):
        ServiceNowAdapter("snow-1", properties)


def test_observability_tags_are_bound_to_logger(properties, stub_transport, ok_result):
    adapter = ServiceNowAdapter("snow-1", properties, transport=stub_transport(ok_result([])), tags=["ops"])

    assert adapter.logger.extra["adapter_id"] == "snow-1"
    assert adapter.logger.extra["tags"] == ("ops",)


def test_configuration_error_is_an_adapter_error():
    assert issubclass(ConfigurationError, AdapterError)
    assert issubclass(ConfigurationError, ValueError)
