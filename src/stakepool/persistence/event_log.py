"""Append-only event log — the audit trail of every pool mutation.

Every successful state change produces an event record that is appended
to the log. Events are immutable once written, and each carries a SHA-256
hash of its canonical JSON form so a third party can check that the
recorded history was not altered.

The log lives in memory for the lifetime of the pool. Durable storage is
the embedding ledger's concern.
"""

from __future__ import annotations

import enum
import hashlib
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional


class EventKind(str, enum.Enum):
    """Classification of pool events."""
    STAKE_DEPOSITED = "stake_deposited"
    STAKE_WITHDRAWN = "stake_withdrawn"
    REWARD_DISTRIBUTED = "reward_distributed"
    # Reward paid on a repeated fixed-stake deposit
    REWARD_SETTLED = "reward_settled"
    REWARD_CLAIMED = "reward_claimed"


def canonical_hash(
    event_id: str,
    event_kind: str,
    timestamp_utc: str,
    participant_id: str,
    payload: dict[str, Any],
) -> str:
    canonical = json.dumps(
        {
            "event_id": event_id,
            "event_kind": event_kind,
            "timestamp_utc": timestamp_utc,
            "participant_id": participant_id,
            "payload": payload,
        },
        sort_keys=True,
        ensure_ascii=False,
    ).encode("utf-8")
    return f"sha256:{hashlib.sha256(canonical).hexdigest()}"


@dataclass(frozen=True)
class EventRecord:
    """A single immutable event in the pool log.

    participant_id is empty for pool-wide events such as distributions.
    """
    event_id: str
    event_kind: EventKind
    timestamp_utc: str
    participant_id: str
    payload: dict[str, Any]
    event_hash: str  # SHA-256 of canonical JSON

    @staticmethod
    def create(
        event_id: str,
        event_kind: EventKind,
        participant_id: str,
        payload: dict[str, Any],
        timestamp_utc: Optional[datetime] = None,
    ) -> EventRecord:
        """Create a new event record with computed hash."""
        ts = timestamp_utc or datetime.now(timezone.utc)
        ts_str = ts.strftime("%Y-%m-%dT%H:%M:%SZ")
        return EventRecord(
            event_id=event_id,
            event_kind=event_kind,
            timestamp_utc=ts_str,
            participant_id=participant_id,
            payload=payload,
            event_hash=canonical_hash(
                event_id, event_kind.value, ts_str, participant_id, payload,
            ),
        )

    def verify(self) -> bool:
        """True if the stored hash matches the record's content."""
        return self.event_hash == canonical_hash(
            self.event_id,
            self.event_kind.value,
            self.timestamp_utc,
            self.participant_id,
            self.payload,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_kind": self.event_kind.value,
            "timestamp_utc": self.timestamp_utc,
            "participant_id": self.participant_id,
            "payload": self.payload,
            "event_hash": self.event_hash,
        }


class EventLog:
    """Append-only in-memory event log.

    Events can only be appended, never modified or deleted.
    """

    def __init__(self) -> None:
        self._events: list[EventRecord] = []
        self._event_ids: set[str] = set()

    def append(self, event: EventRecord) -> None:
        """Append an event to the log.

        Raises ValueError if event_id is a duplicate (replay protection).
        """
        if event.event_id in self._event_ids:
            raise ValueError(f"Duplicate event ID: {event.event_id}")
        self._events.append(event)
        self._event_ids.add(event.event_id)

    def events(self, kind: Optional[EventKind] = None) -> list[EventRecord]:
        """Return events, optionally filtered by kind."""
        if kind is None:
            return list(self._events)
        return [e for e in self._events if e.event_kind == kind]

    def contains(self, event_id: str) -> bool:
        return event_id in self._event_ids

    def events_for(self, participant_id: str) -> list[EventRecord]:
        return [e for e in self._events if e.participant_id == participant_id]

    def event_hashes(self, kind: Optional[EventKind] = None) -> list[str]:
        return [e.event_hash for e in self.events(kind)]

    @property
    def count(self) -> int:
        return len(self._events)

    @property
    def last_event(self) -> Optional[EventRecord]:
        return self._events[-1] if self._events else None
