"""Tests for decoding change-feed payloads."""

import pytest
from realtime import PostgresChangesMessage, RealtimePostgresChangesListenEvent

from boardsync.remote import ChangeEvent, EventType, parse_change


def test_parse_server_shape():
    payload = {
        "data": {
            "type": "UPDATE",
            "table": "cards",
            "record": {"id": "c1", "title": "new"},
            "old_record": {"id": "c1"},
        },
        "ids": [1],
    }
    event = parse_change(payload)
    assert event.type is EventType.UPDATE
    assert event.new == {"id": "c1", "title": "new"}
    assert event.row_id == "c1"


def test_parse_flat_shape():
    event = parse_change({"eventType": "insert", "new": {"id": 7}, "old": {}})
    assert event.type is EventType.INSERT
    assert event.row_id == "7"


def test_delete_takes_id_from_old_row():
    event = parse_change({"eventType": "DELETE", "new": {}, "old": {"id": "c1"}})
    assert event.type is EventType.DELETE
    assert event.new == {}
    assert event.row_id == "c1"


def test_missing_type():
    with pytest.raises(ValueError):
        parse_change({"new": {"id": "c1"}})


def test_unknown_type():
    with pytest.raises(ValueError):
        parse_change({"eventType": "TRUNCATE"})


def test_row_id_missing():
    assert ChangeEvent(EventType.DELETE).row_id is None


def validated(kind, record=None, old_record=None):
    """A payload as the realtime client hands it over after validation."""
    message = PostgresChangesMessage.model_validate(
        {
            "event": "postgres_changes",
            "topic": "realtime:cards-changes-l1",
            "ref": None,
            "payload": {
                "ids": [1],
                "data": {
                    "schema": "public",
                    "table": "cards",
                    "commit_timestamp": "2025-01-01T00:00:00Z",
                    "type": kind,
                    "errors": None,
                    "columns": [{"name": "id", "type": "uuid"}],
                    "record": record or {},
                    "old_record": old_record or {},
                },
            },
        }
    )
    return message.payload


def test_parse_validated_update():
    event = parse_change(validated("UPDATE", record={"id": "c1", "title": "new"}))
    assert event.type is EventType.UPDATE
    assert event.new["title"] == "new"


def test_parse_validated_insert_and_delete():
    assert parse_change(validated("INSERT", record={"id": "c2"})).row_id == "c2"
    deleted = parse_change(validated("DELETE", old_record={"id": "c3"}))
    assert deleted.type is EventType.DELETE
    assert deleted.row_id == "c3"


def test_parse_listen_event_enum():
    event = parse_change({"data": {"type": RealtimePostgresChangesListenEvent.Delete, "old_record": {"id": "c1"}}})
    assert event.type is EventType.DELETE
