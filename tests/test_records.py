from __future__ import annotations

from snow_change_adapter.adapters.servicenow.records import NO_BODY_MESSAGE, ChangeRecord, map_list, map_single


def test_map_list_normalises_fields(envelope, sample_record):
    records, error = map_list(envelope(200, payload={"result": [sample_record]}))

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


def test_map_list_empty_result(envelope):
    records, error = map_list(envelope(200, payload={"result": []}))

    assert records == []
    assert error is None


def test_map_single_normalises_object(envelope, sample_record):
    record, error = map_single(envelope(201, payload={"result": sample_record}))

    assert error is None
    assert record.ticket_number == "CHG01"
    assert record.ticket_key == "abc123"


def test_missing_body_reports_structural_error(envelope):
    assert map_list(envelope(200, None)) == (None, NO_BODY_MESSAGE)
    assert map_single(envelope(200, "")) == (None, NO_BODY_MESSAGE)
    assert map_single(None) == (None, NO_BODY_MESSAGE)


def test_invalid_json_reports_structural_error(envelope):
    record, error = map_single(envelope(200, "<html>not json</html>"))

    assert record is None
    assert error.startswith("malformed JSON in response body")


def test_missing_result_field(envelope):
    records, error = map_list(envelope(200, payload={"records": []}))

    assert records is None
    assert "missing 'result'" in error


def test_result_shape_mismatch(envelope, sample_record):
    _, list_error = map_list(envelope(200, payload={"result": sample_record}))
    _, single_error = map_single(envelope(200, payload={"result": [sample_record]}))
    _, entry_error = map_list(envelope(200, payload={"result": ["CHG01"]}))

    assert "expected list" in list_error
    assert "expected object" in single_error
    assert "expected object entries" in entry_error


def test_values_are_passed_through_without_coercion(envelope, sample_record):
    sample_record.update({"active": "true", "priority": "3"})

    record, _ = map_single(envelope(200, payload={"result": sample_record}))

    assert record.active == "true"
    assert record.priority == "3"


def test_change_record_to_dict_uses_generic_names(sample_record):
    rendered = ChangeRecord.from_provider(sample_record).to_dict()

    assert rendered == {
        "ticketNumber": "CHG01",
        "active": True,
        "priority": 3,
        "description": "d",
        "workStart": "2024-01-01 00:00 UTC",
        "workEnd": "2024-01-01 01:00 UTC",
        "ticketKey": "abc123",
    }
