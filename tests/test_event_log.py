"""Tests for the event log — proves the audit trail is append-only and hashed."""

import pytest
from datetime import datetime, timezone

from stakepool.persistence.event_log import EventKind, EventLog, EventRecord


def _now() -> datetime:
    return datetime(2026, 3, 1, 9, 30, 0, tzinfo=timezone.utc)


def _event(event_id: str, kind: EventKind = EventKind.STAKE_DEPOSITED,
           participant_id: str = "alice") -> EventRecord:
    return EventRecord.create(
        event_id=event_id,
        event_kind=kind,
        participant_id=participant_id,
        payload={"amount": 100},
        timestamp_utc=_now(),
    )


class TestEventRecord:
    def test_hash_is_deterministic(self) -> None:
        assert _event("EVT-1").event_hash == _event("EVT-1").event_hash
        assert _event("EVT-1").event_hash.startswith("sha256:")

    def test_hash_covers_content(self) -> None:
        assert _event("EVT-1").event_hash != _event("EVT-2").event_hash
        assert _event("EVT-1").event_hash != _event("EVT-1", participant_id="bob").event_hash

    def test_timestamp_format(self) -> None:
        assert _event("EVT-1").timestamp_utc == "2026-03-01T09:30:00Z"

    def test_verify(self) -> None:
        event = _event("EVT-1")
        assert event.verify()
        tampered = EventRecord(
            event_id=event.event_id,
            event_kind=event.event_kind,
            timestamp_utc=event.timestamp_utc,
            participant_id=event.participant_id,
            payload={"amount": 1_000_000},
            event_hash=event.event_hash,
        )
        assert not tampered.verify()

    def test_to_dict(self) -> None:
        data = _event("EVT-1").to_dict()
        assert data["event_kind"] == "stake_deposited"
        assert data["payload"] == {"amount": 100}


class TestEventLog:
    def test_append_and_count(self) -> None:
        log = EventLog()
        assert log.count == 0
        assert log.last_event is None
        log.append(_event("EVT-1"))
        log.append(_event("EVT-2"))
        assert log.count == 2
        assert log.last_event.event_id == "EVT-2"

    def test_duplicate_rejected(self) -> None:
        log = EventLog()
        log.append(_event("EVT-1"))
        with pytest.raises(ValueError, match="Duplicate"):
            log.append(_event("EVT-1"))
        assert log.count == 1

    def test_filters(self) -> None:
        log = EventLog()
        log.append(_event("EVT-1"))
        log.append(_event("EVT-2", EventKind.REWARD_DISTRIBUTED, ""))
        log.append(_event("EVT-3", EventKind.REWARD_CLAIMED, "bob"))
        assert [e.event_id for e in log.events(EventKind.REWARD_DISTRIBUTED)] == ["EVT-2"]
        assert [e.event_id for e in log.events_for("bob")] == ["EVT-3"]
        assert len(log.event_hashes()) == 3

    def test_events_returns_copy(self) -> None:
        log = EventLog()
        log.append(_event("EVT-1"))
        log.events().clear()
        assert log.count == 1
