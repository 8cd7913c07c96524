"""Tests for the pool service — proves the facade audits every mutation.

Proves:
- Both variants are reachable through one call surface.
- Every successful mutation appends exactly one event (two for a settling
  fixed-stake deposit).
- Rejected operations append nothing and leave the pool untouched.
"""

import logging

import pytest
from datetime import datetime, timezone
from pathlib import Path

from stakepool.distribution.fixed_stake import FixedStakeDistributor
from stakepool.distribution.variable_stake import VariableStakeDistributor
from stakepool.models.distribution import ErrorKind, Settlement, Withdrawal
from stakepool.persistence.event_log import EventKind, EventLog, EventRecord
from stakepool.policy.resolver import PolicyResolver
from stakepool.service import PoolService


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


def _now() -> datetime:
    return datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def resolver() -> PolicyResolver:
    return PolicyResolver.from_config_dir(CONFIG_DIR)


@pytest.fixture
def variable(resolver: PolicyResolver) -> PoolService:
    return PoolService(resolver, variant="variable", clock=_now)


@pytest.fixture
def fixed(resolver: PolicyResolver) -> PoolService:
    return PoolService(resolver, variant="fixed", clock=_now)


class TestConstruction:
    def test_variant_selects_distributor(self, variable: PoolService, fixed: PoolService) -> None:
        assert isinstance(variable.distributor, VariableStakeDistributor)
        assert isinstance(fixed.distributor, FixedStakeDistributor)

    def test_unknown_variant(self, resolver: PolicyResolver) -> None:
        with pytest.raises(ValueError, match="Unknown pool variant"):
            PoolService(resolver, variant="weighted")

    def test_default_resolver(self) -> None:
        service = PoolService()
        assert service.variant == "variable"
        assert service.status()["scale"] == 10 ** 18

    def test_event_ids_continue_shared_log(self, resolver: PolicyResolver) -> None:
        log = EventLog()
        first = PoolService(resolver, event_log=log, clock=_now)
        first.deposit("a", 10)
        second = PoolService(resolver, event_log=log, clock=_now)
        second.deposit("a", 10)
        assert [e.event_id for e in log.events()] == ["EVT-00000001", "EVT-00000002"]

    def test_older_service_writes_after_newer_one(self, resolver: PolicyResolver) -> None:
        log = EventLog()
        first = PoolService(resolver, event_log=log, clock=_now)
        first.deposit("a", 10)
        second = PoolService(resolver, event_log=log, clock=_now)
        second.deposit("b", 10)
        second.deposit("b", 20)

        result = first.deposit("a", 5)
        assert result.success
        assert first.distributor.total_stake == 15
        assert log.count == 4
        assert len(log.events_for("a")) == 2
        assert len({e.event_id for e in log.events()}) == 4

    def test_event_ids_skip_externally_taken_ids(self, resolver: PolicyResolver) -> None:
        log = EventLog()
        log.append(EventRecord.create(
            event_id="EVT-00000002",
            event_kind=EventKind.STAKE_DEPOSITED,
            participant_id="x",
            payload={},
            timestamp_utc=_now(),
        ))
        service = PoolService(resolver, event_log=log, clock=_now)
        assert service.deposit("a", 10).success
        assert service.deposit("a", 10).success
        assert [e.event_id for e in log.events()] == [
            "EVT-00000002", "EVT-00000003", "EVT-00000004",
        ]


class TestVariableService:
    def test_full_lifecycle(self, variable: PoolService) -> None:
        assert variable.deposit("a", 100).success
        assert variable.deposit("b", 100).success
        assert variable.distribute(10).success
        assert variable.pending_reward("a") == 5

        assert variable.withdraw("a", 40).value == 60
        assert variable.claim("a").value == Settlement("a", 5)
        assert variable.withdraw("b").value == Withdrawal("b", 100, 5)

        kinds = [e.event_kind for e in variable.event_log.events()]
        assert kinds == [
            EventKind.STAKE_DEPOSITED,
            EventKind.STAKE_DEPOSITED,
            EventKind.REWARD_DISTRIBUTED,
            EventKind.STAKE_WITHDRAWN,
            EventKind.REWARD_CLAIMED,
            EventKind.STAKE_WITHDRAWN,
        ]
        assert variable.check_invariants() == []

    def test_withdraw_payloads(self, variable: PoolService) -> None:
        variable.deposit("a", 100)
        variable.distribute(10)
        variable.withdraw("a", 30)
        variable.withdraw("a")
        partial, full = variable.event_log.events(EventKind.STAKE_WITHDRAWN)
        assert partial.payload == {"amount": 30, "reward": 0, "remaining": 70}
        assert full.payload == {"amount": 70, "reward": 10, "remaining": 0}

    def test_distribution_event_payload(self, variable: PoolService) -> None:
        variable.deposit("a", 150)
        variable.distribute(10)
        event = variable.event_log.last_event
        assert event.participant_id == ""
        assert event.timestamp_utc == "2026-03-01T12:00:00Z"
        assert event.payload == {
            "reward": 10,
            "increment": 66666666666666666,
            "accumulator": 66666666666666666,
            "carry": 100,
        }


class TestFixedService:
    def test_full_lifecycle(self, fixed: PoolService) -> None:
        fixed.deposit("a", 100)
        fixed.deposit("b", 50)
        fixed.distribute(10)
        fixed.distribute(10)
        assert fixed.pending_reward("a") == 13
        assert fixed.withdraw("a").value == Withdrawal("a", 100, 13)
        assert fixed.withdraw("b").value == Withdrawal("b", 50, 6)
        assert fixed.status()["total_stake"] == 0
        assert fixed.status()["total_paid_out"] == 19

    def test_repeated_deposit_records_settlement(self, fixed: PoolService) -> None:
        fixed.deposit("a", 100)
        fixed.distribute(10)
        fixed.deposit("a", 100)
        settled = fixed.event_log.events(EventKind.REWARD_SETTLED)
        assert len(settled) == 1
        assert settled[0].payload == {"reward": 10}

    def test_partial_withdraw_rejected(self, fixed: PoolService) -> None:
        fixed.deposit("a", 100)
        result = fixed.withdraw("a", 50)
        assert result.error == ErrorKind.INVALID_AMOUNT
        assert fixed.distributor.total_stake == 100

    def test_pending_reward_for_absent_participant(self, fixed: PoolService) -> None:
        assert fixed.pending_reward("ghost") == 0


class TestRejectedOperations:
    def test_no_events_on_failure(self, variable: PoolService, fixed: PoolService) -> None:
        for service in (variable, fixed):
            assert service.distribute(10).error == ErrorKind.ZERO_TOTAL_DEPOSIT
            assert service.deposit("a", 0).error == ErrorKind.INVALID_AMOUNT
            assert service.withdraw("ghost").error == ErrorKind.NO_STAKER
            assert service.claim("ghost").error == ErrorKind.NO_STAKER
            assert service.event_log.count == 0
            assert service.status()["events"] == 0

    def test_failures_are_logged(self, variable: PoolService, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="stakepool.service"):
            variable.distribute(10)
        assert "zero_total_deposit" in caplog.text
