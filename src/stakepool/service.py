"""Pool service — unified facade over the two distributors.

This is the primary interface for programmatic access to a stake pool.
It owns exactly one distributor, selected by variant:
- "fixed": stake constant between deposit and withdrawal
- "variable": partial deposits and withdrawals at any time

and adds what the distributors deliberately leave out:
- an audit event for every successful mutation (EventLog)
- diagnostic logging
- a status summary

Results are returned unchanged from the distributor. Failed operations
leave the pool untouched and produce no event.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Union

from stakepool.distribution.fixed_stake import FixedStakeDistributor
from stakepool.distribution.variable_stake import VariableStakeDistributor
from stakepool.models.distribution import (
    Distribution,
    ErrorKind,
    LedgerResult,
    Settlement,
    Withdrawal,
)
from stakepool.persistence.event_log import EventKind, EventLog, EventRecord
from stakepool.policy.resolver import PolicyResolver

logger = logging.getLogger(__name__)

VARIANTS = ("fixed", "variable")

Distributor = Union[FixedStakeDistributor, VariableStakeDistributor]


class PoolService:
    """Stake pool facade.

    Usage:
        resolver = PolicyResolver.from_config_dir(config_dir)
        service = PoolService(resolver, variant="variable")

        service.deposit("alice", 100)
        service.distribute(10)
        owed = service.pending_reward("alice")
        result = service.withdraw("alice")       # full exit
        result = service.withdraw("bob", 25)     # partial, variable only
    """

    def __init__(
        self,
        resolver: Optional[PolicyResolver] = None,
        variant: str = "variable",
        event_log: Optional[EventLog] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if variant not in VARIANTS:
            raise ValueError(
                f"Unknown pool variant: {variant}. Expected one of {', '.join(VARIANTS)}"
            )
        self._resolver = resolver or PolicyResolver.default()
        self._variant = variant
        self._distributor: Distributor
        if variant == "fixed":
            self._distributor = FixedStakeDistributor(self._resolver)
        else:
            self._distributor = VariableStakeDistributor(self._resolver)
        self._event_log = event_log if event_log is not None else EventLog()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def variant(self) -> str:
        return self._variant

    @property
    def distributor(self) -> Distributor:
        return self._distributor

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def deposit(self, participant_id: str, amount: int) -> LedgerResult:
        if isinstance(self._distributor, FixedStakeDistributor):
            result = self._distributor.deposit(participant_id, amount)
        else:
            result = self._distributor.deposit_stake(participant_id, amount)
        if not self._check("deposit", result):
            return result

        self._record(EventKind.STAKE_DEPOSITED, participant_id, {
            "amount": amount,
            "total_stake": self._distributor.total_stake,
        })
        if isinstance(result.value, Settlement) and result.value.reward > 0:
            self._record(EventKind.REWARD_SETTLED, participant_id, {
                "reward": result.value.reward,
            })
        return result

    def distribute(self, reward_amount: int) -> LedgerResult:
        if isinstance(self._distributor, FixedStakeDistributor):
            result = self._distributor.distribute(reward_amount)
        else:
            result = self._distributor.distribute_rewards(reward_amount)
        if not self._check("distribute", result):
            return result

        receipt: Distribution = result.value
        self._record(EventKind.REWARD_DISTRIBUTED, "", {
            "reward": receipt.reward,
            "increment": receipt.increment,
            "accumulator": receipt.accumulator,
            "carry": receipt.carry,
        })
        return result

    def withdraw(self, participant_id: str, amount: Optional[int] = None) -> LedgerResult:
        """Withdraw stake.

        amount=None withdraws everything along with the reward owed.
        A partial amount is only meaningful for the variable variant.
        """
        if isinstance(self._distributor, FixedStakeDistributor):
            if amount is not None:
                result = LedgerResult.fail(
                    ErrorKind.INVALID_AMOUNT,
                    "Fixed-stake pools only support full withdrawal",
                )
            else:
                result = self._distributor.withdraw(participant_id)
        elif amount is None:
            result = self._distributor.withdraw_all(participant_id)
        else:
            result = self._distributor.withdraw_stake(participant_id, amount)
        if not self._check("withdraw", result):
            return result

        if isinstance(result.value, Withdrawal):
            payload = {
                "amount": result.value.stake,
                "reward": result.value.reward,
                "remaining": 0,
            }
        else:
            payload = {"amount": amount, "reward": 0, "remaining": result.value}
        self._record(EventKind.STAKE_WITHDRAWN, participant_id, payload)
        return result

    def claim(self, participant_id: str) -> LedgerResult:
        result = self._distributor.claim_rewards(participant_id)
        if not self._check("claim", result):
            return result

        self._record(EventKind.REWARD_CLAIMED, participant_id, {
            "reward": result.value.reward,
        })
        return result

    def pending_reward(self, participant_id: str) -> int:
        """Reward currently owed to a participant; 0 if not staking."""
        if isinstance(self._distributor, FixedStakeDistributor):
            result = self._distributor.query(participant_id)
            if result.error == ErrorKind.NO_STAKER:
                return 0
            return result.unwrap().pending_reward
        return self._distributor.calculate_rewards(participant_id)

    def status(self) -> dict[str, Any]:
        """Return a pool-wide status summary."""
        data = self._distributor.stats().to_dict()
        data["events"] = self._event_log.count
        return data

    def check_invariants(self) -> list[str]:
        return self._distributor.check_invariants()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check(self, operation: str, result: LedgerResult) -> bool:
        if result.success:
            logger.debug("%s pool: %s ok -> %r", self._variant, operation, result.value)
            return True
        logger.info(
            "%s pool: %s rejected (%s): %s",
            self._variant, operation, result.error.value, result.message,
        )
        return False

    def _next_event_id(self) -> str:
        """Next unused event ID in the log, which may be shared across services."""
        sequence = self._event_log.count + 1
        while self._event_log.contains(f"EVT-{sequence:08d}"):
            sequence += 1
        return f"EVT-{sequence:08d}"

    def _record(
        self, kind: EventKind, participant_id: str, payload: dict[str, Any],
    ) -> None:
        event = EventRecord.create(
            event_id=self._next_event_id(),
            event_kind=kind,
            participant_id=participant_id,
            payload=payload,
            timestamp_utc=self._clock(),
        )
        self._event_log.append(event)
