"""Fixed-stake distributor — constant-time reward distribution, constant stake.

Each participant holds a stake and a snapshot of the reward-per-stake
accumulator S taken when the stake was last deposited or settled:

    distribute(r):   S += r / T
    reward(j)     =  stake_j × (S - snapshot_j)

Distributing a reward is a single accumulator update. No operation
iterates over participants, so every call is O(1) in pool size.

A second deposit by the same participant settles the reward accrued so
far, returns it to the caller, and restarts the snapshot on the summed
stake. Accrued reward is never silently dropped.

The distributor is a pure state machine with no side effects. Event logging
is handled by the service layer.
"""

from __future__ import annotations

from typing import Dict, Optional

from stakepool.distribution.fixed_point import (
    accrued,
    is_valid_amount,
    per_stake_increment,
)
from stakepool.models.distribution import (
    Distribution,
    ErrorKind,
    FixedStakePosition,
    FixedStakeRecord,
    LedgerResult,
    PoolStats,
    Settlement,
    Withdrawal,
)
from stakepool.policy.resolver import PolicyResolver


class FixedStakeDistributor:
    """Pull-based distributor for stakes that do not change while deposited.

    Usage:
        pool = FixedStakeDistributor(resolver)
        pool.deposit("alice", 100)
        pool.deposit("bob", 50)
        pool.distribute(10)
        position = pool.query("alice").value
        receipt = pool.withdraw("alice").value
    """

    variant = "fixed"

    def __init__(self, resolver: Optional[PolicyResolver] = None) -> None:
        params = (resolver or PolicyResolver.default()).pool_params()
        self._scale = params.scale
        self._carry_remainder = params.carry_remainder
        self._total_stake = 0
        self._accumulator = 0
        self._carry = 0
        self._total_distributed = 0
        self._total_paid_out = 0
        self._records: Dict[str, FixedStakeRecord] = {}

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def deposit(self, participant_id: str, amount: int) -> LedgerResult:
        """Deposit stake for a participant.

        On a repeated deposit the pending reward is settled first and
        returned in the Settlement; the new stake is the sum of old and new.
        InsufficientFunds is only returned when the ledger is corrupt, i.e.
        a snapshot is ahead of the accumulator.
        """
        if not is_valid_amount(amount):
            return LedgerResult.fail(
                ErrorKind.INVALID_AMOUNT,
                f"Deposit amount must be a positive integer, got {amount!r}",
            )

        record = self._records.get(participant_id)
        if record is None:
            self._records[participant_id] = FixedStakeRecord(
                stake=amount, snapshot=self._accumulator,
            )
            self._total_stake += amount
            return LedgerResult.ok(Settlement(participant_id, 0))

        # Invariant guard: unreachable while the accumulator only grows.
        if self._accumulator < record.snapshot:
            return self._snapshot_ahead(participant_id, record)

        reward = accrued(record.stake, self._accumulator - record.snapshot, self._scale)
        record.stake += amount
        record.snapshot = self._accumulator
        self._total_stake += amount
        self._total_paid_out += reward
        return LedgerResult.ok(Settlement(participant_id, reward))

    def distribute(self, reward_amount: int) -> LedgerResult:
        """Spread reward_amount over all current stake in one step."""
        if not is_valid_amount(reward_amount):
            return LedgerResult.fail(
                ErrorKind.INVALID_AMOUNT,
                f"Reward amount must be a positive integer, got {reward_amount!r}",
            )
        if self._total_stake == 0:
            return LedgerResult.fail(
                ErrorKind.ZERO_TOTAL_DEPOSIT,
                "Cannot distribute to a pool with zero total deposit",
            )

        carry_in = self._carry if self._carry_remainder else 0
        increment, carry = per_stake_increment(
            reward_amount, self._total_stake, self._scale, carry_in,
        )
        self._accumulator += increment
        self._carry = carry if self._carry_remainder else 0
        self._total_distributed += reward_amount
        return LedgerResult.ok(Distribution(
            reward=reward_amount,
            increment=increment,
            accumulator=self._accumulator,
            carry=self._carry,
        ))

    def withdraw(self, participant_id: str) -> LedgerResult:
        """Withdraw the full stake and the reward accrued on it."""
        record = self._records.get(participant_id)
        if record is None:
            return self._no_staker(participant_id)
        # Invariant guard: records are created with positive stake.
        if record.stake <= 0:
            return LedgerResult.fail(
                ErrorKind.INSUFFICIENT_FUNDS,
                f"Participant {participant_id} has no stake on record",
            )
        if self._accumulator < record.snapshot:
            return self._snapshot_ahead(participant_id, record)

        reward = accrued(record.stake, self._accumulator - record.snapshot, self._scale)
        del self._records[participant_id]
        self._total_stake -= record.stake
        self._total_paid_out += reward
        return LedgerResult.ok(Withdrawal(participant_id, record.stake, reward))

    def claim_rewards(self, participant_id: str) -> LedgerResult:
        """Pay out the pending reward and restart the snapshot. Stake is kept."""
        record = self._records.get(participant_id)
        if record is None:
            return self._no_staker(participant_id)
        if self._accumulator < record.snapshot:
            return self._snapshot_ahead(participant_id, record)

        reward = accrued(record.stake, self._accumulator - record.snapshot, self._scale)
        record.snapshot = self._accumulator
        self._total_paid_out += reward
        return LedgerResult.ok(Settlement(participant_id, reward))

    def query(self, participant_id: str) -> LedgerResult:
        """Read-only view of a participant's stake, snapshot and pending reward."""
        record = self._records.get(participant_id)
        if record is None:
            return self._no_staker(participant_id)
        if self._accumulator < record.snapshot:
            return self._snapshot_ahead(participant_id, record)
        return LedgerResult.ok(FixedStakePosition(
            stake=record.stake,
            snapshot=record.snapshot,
            pending_reward=accrued(
                record.stake, self._accumulator - record.snapshot, self._scale,
            ),
        ))

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def total_stake(self) -> int:
        return self._total_stake

    @property
    def accumulator(self) -> int:
        return self._accumulator

    @property
    def carry(self) -> int:
        return self._carry

    @property
    def scale(self) -> int:
        return self._scale

    @property
    def participant_count(self) -> int:
        return len(self._records)

    def has_participant(self, participant_id: str) -> bool:
        return participant_id in self._records

    def stats(self) -> PoolStats:
        return PoolStats(
            variant=self.variant,
            total_stake=self._total_stake,
            participant_count=len(self._records),
            accumulator=self._accumulator,
            carry=self._carry,
            scale=self._scale,
            total_distributed=self._total_distributed,
            total_paid_out=self._total_paid_out,
        )

    def check_invariants(self) -> list[str]:
        """Audit the whole ledger. O(n); never called by an operation."""
        errors: list[str] = []
        stake_sum = sum(r.stake for r in self._records.values())
        if stake_sum != self._total_stake:
            errors.append(
                f"total_stake {self._total_stake} != sum of stakes {stake_sum}"
            )
        for pid, record in self._records.items():
            if record.stake <= 0:
                errors.append(f"{pid} has a record with non-positive stake")
            if record.snapshot > self._accumulator:
                errors.append(f"{pid} snapshot is ahead of the accumulator")
        if self._total_paid_out > self._total_distributed:
            errors.append(
                f"paid out {self._total_paid_out} exceeds distributed "
                f"{self._total_distributed}"
            )
        return errors

    def _no_staker(self, participant_id: str) -> LedgerResult:
        return LedgerResult.fail(
            ErrorKind.NO_STAKER, f"No stake on record for {participant_id}",
        )

    def _snapshot_ahead(
        self, participant_id: str, record: FixedStakeRecord,
    ) -> LedgerResult:
        return LedgerResult.fail(
            ErrorKind.INSUFFICIENT_FUNDS,
            f"Snapshot for {participant_id} ({record.snapshot}) is ahead of "
            f"the accumulator ({self._accumulator})",
        )
