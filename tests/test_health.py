from __future__ import annotations

import logging
from unittest.mock import MagicMock

import httpx

from snow_change_adapter.adapters.api import TransportResult
from snow_change_adapter.adapters.servicenow.connector import ServiceNowConnector
from snow_change_adapter.adapters.servicenow.health import ConnectivityState, HealthMonitor
from snow_change_adapter.core.events import EventPublisher


def _monitor(properties, transport, events=None) -> HealthMonitor:
    connector = ServiceNowConnector(properties=properties, transport=transport)
    return HealthMonitor(adapter_id="snow-1", connector=connector, events=events or EventPublisher())


def test_connection_error_emits_offline_and_logs_error(properties, stub_transport, caplog):
    caplog.set_level(logging.DEBUG)
    events = EventPublisher()
    offline = MagicMock()
    online = MagicMock()
    events.subscribe("OFFLINE", offline)
    events.subscribe("ONLINE", online)
    failure = httpx.ConnectError("connection refused")
    monitor = _monitor(properties, stub_transport(TransportResult(error=failure)), events)

    state = monitor.probe()

    assert state is ConnectivityState.OFFLINE
    assert monitor.state is ConnectivityState.OFFLINE
    offline.assert_called_once_with({"id": "snow-1"})
    online.assert_not_called()
    errors = [record for record in caplog.records if record.levelno == logging.ERROR and "snow-1" in record.getMessage()]
    assert errors
    assert errors[-1].adapter_id == "snow-1"


def test_offline_probe_invokes_callback_with_error(properties, stub_transport):
    failure = httpx.ConnectError("connection refused")
    monitor = _monitor(properties, stub_transport(TransportResult(error=failure)))
    callback = MagicMock()

    monitor.probe(callback)

    callback.assert_called_once_with(None, failure)


def test_successful_probe_emits_online_and_logs_debug(properties, stub_transport, ok_result, caplog):
    caplog.set_level(logging.DEBUG)
    events = EventPublisher()
    online = MagicMock()
    events.subscribe("ONLINE", online)
    monitor = _monitor(properties, stub_transport(ok_result([])), events)
    callback = MagicMock()

    state = monitor.probe(callback)

    assert state is ConnectivityState.ONLINE
    online.assert_called_once_with({"id": "snow-1"})
    data, error = callback.call_args.args
    assert data.status_code == 200
    assert error is None
    assert any(record.levelno == logging.DEBUG and "available" in record.getMessage() for record in caplog.records)


def test_repeated_online_probes_are_not_suppressed(properties, stub_transport, ok_result):
    events = EventPublisher()
    online = MagicMock()
    events.subscribe("ONLINE", online)
    monitor = _monitor(properties, stub_transport(ok_result([])), events)

    monitor.probe()
    monitor.probe()

    assert online.call_count == 2


def test_hibernating_probe_goes_offline(properties, stub_transport, envelope, hibernating_page):
    events = EventPublisher()
    offline = MagicMock()
    events.subscribe("OFFLINE", offline)
    monitor = _monitor(properties, stub_transport(TransportResult(envelope=envelope(200, hibernating_page))), events)

    assert monitor.probe() is ConnectivityState.OFFLINE
    offline.assert_called_once_with({"id": "snow-1"})


def test_state_follows_latest_probe(properties, stub_transport, ok_result, envelope):
    transport = stub_transport(TransportResult(envelope=envelope(503, "")), ok_result([]))
    monitor = _monitor(properties, transport)

    assert monitor.state is None
    assert monitor.probe() is ConnectivityState.OFFLINE
    assert monitor.probe() is ConnectivityState.ONLINE
