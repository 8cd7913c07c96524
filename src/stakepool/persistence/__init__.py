"""Audit trail for pool operations."""

from stakepool.persistence.event_log import EventKind, EventLog, EventRecord

__all__ = [
    "EventKind",
    "EventLog",
    "EventRecord",
]
