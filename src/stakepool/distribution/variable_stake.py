"""Variable-stake distributor — constant-time rewards under changing stakes.

Participants may add or remove stake between distributions. Re-scanning
the stake history at withdrawal time would be O(history); instead each
participant carries a reward tally, and the reward owed after the n-th
distribution follows from summation by parts (Abel's transform):

    N_j = Σ_k stake_{j,k} × (R_k - R_{k-1})
        = stake_{j,n} × R_n - Σ_k (stake_{j,k} - stake_{j,k-1}) × R_k
        = stake_{j,n} × R_n - tally_{j,n}

where R is the reward-per-stake accumulator. Every stake change Δ made
while the accumulator reads R adds Δ × R to the tally, cancelling the
part of stake × R the new increment never earned.

R and the tally are both scaled integers, so stake × R - tally is exact
and never negative; only the final division by the scale rounds down.

The distributor is a pure state machine with no side effects. Event logging
is handled by the service layer.
"""

from __future__ import annotations

from typing import Dict, Optional

from stakepool.distribution.fixed_point import is_valid_amount, per_stake_increment
from stakepool.models.distribution import (
    Distribution,
    ErrorKind,
    LedgerResult,
    PoolStats,
    Settlement,
    VariableStakePosition,
    VariableStakeRecord,
    Withdrawal,
)
from stakepool.policy.resolver import PolicyResolver


class VariableStakeDistributor:
    """Pull-based distributor allowing partial deposits and withdrawals.

    Usage:
        pool = VariableStakeDistributor(resolver)
        pool.deposit_stake("alice", 100)
        pool.distribute_rewards(10)
        pool.deposit_stake("alice", 100)
        owed = pool.calculate_rewards("alice")
        receipt = pool.withdraw_all("alice").value
    """

    variant = "variable"

    def __init__(self, resolver: Optional[PolicyResolver] = None) -> None:
        params = (resolver or PolicyResolver.default()).pool_params()
        self._scale = params.scale
        self._carry_remainder = params.carry_remainder
        self._total_stake = 0
        self._reward_per_stake = 0
        self._carry = 0
        self._total_distributed = 0
        self._total_paid_out = 0
        self._records: Dict[str, VariableStakeRecord] = {}

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def deposit_stake(self, participant_id: str, amount: int) -> LedgerResult:
        if not is_valid_amount(amount):
            return LedgerResult.fail(
                ErrorKind.INVALID_AMOUNT,
                f"Deposit amount must be a positive integer, got {amount!r}",
            )

        record = self._records.get(participant_id)
        if record is None:
            record = VariableStakeRecord(stake=0, reward_tally=0)
            self._records[participant_id] = record
        record.stake += amount
        record.reward_tally += self._reward_per_stake * amount
        self._total_stake += amount
        return LedgerResult.ok(record.stake)

    def distribute_rewards(self, reward_amount: int) -> LedgerResult:
        if not is_valid_amount(reward_amount):
            return LedgerResult.fail(
                ErrorKind.INVALID_AMOUNT,
                f"Reward amount must be a positive integer, got {reward_amount!r}",
            )
        if self._total_stake == 0:
            return LedgerResult.fail(
                ErrorKind.ZERO_TOTAL_DEPOSIT,
                "Cannot distribute to a pool with zero total stake",
            )

        carry_in = self._carry if self._carry_remainder else 0
        increment, carry = per_stake_increment(
            reward_amount, self._total_stake, self._scale, carry_in,
        )
        self._reward_per_stake += increment
        self._carry = carry if self._carry_remainder else 0
        self._total_distributed += reward_amount
        return LedgerResult.ok(Distribution(
            reward=reward_amount,
            increment=increment,
            accumulator=self._reward_per_stake,
            carry=self._carry,
        ))

    def calculate_rewards(self, participant_id: str) -> int:
        """Reward owed to a participant. Absent participants are owed 0."""
        record = self._records.get(participant_id)
        if record is None:
            return 0
        return self._pending(record)

    def withdraw_stake(self, participant_id: str, amount: int) -> LedgerResult:
        """Remove part or all of a stake. Returns the remaining stake.

        Reward accrued so far is left in place; withdraw_all or
        claim_rewards pay it out.
        """
        record = self._records.get(participant_id)
        if record is None:
            return self._no_staker(participant_id)
        if not is_valid_amount(amount) or amount > record.stake:
            return LedgerResult.fail(
                ErrorKind.INVALID_AMOUNT,
                f"Withdrawal amount must be in (0, {record.stake}], got {amount!r}",
            )

        record.stake -= amount
        record.reward_tally -= self._reward_per_stake * amount
        self._total_stake -= amount
        if record.stake == 0:
            del self._records[participant_id]
        return LedgerResult.ok(record.stake)

    def withdraw_all(self, participant_id: str) -> LedgerResult:
        """Withdraw the whole stake together with the reward owed on it."""
        record = self._records.get(participant_id)
        if record is None:
            return self._no_staker(participant_id)

        reward = self._pending(record)
        stake = record.stake
        self.withdraw_stake(participant_id, stake).unwrap()
        self._total_paid_out += reward
        return LedgerResult.ok(Withdrawal(participant_id, stake, reward))

    def claim_rewards(self, participant_id: str) -> LedgerResult:
        """Pay out the reward owed while leaving the stake in the pool.

        The tally advances by exactly the paid amount, so the sub-unit
        remainder stays with the participant.
        """
        record = self._records.get(participant_id)
        if record is None:
            return self._no_staker(participant_id)

        reward = self._pending(record)
        record.reward_tally += reward * self._scale
        self._total_paid_out += reward
        return LedgerResult.ok(Settlement(participant_id, reward))

    def position(self, participant_id: str) -> LedgerResult:
        record = self._records.get(participant_id)
        if record is None:
            return self._no_staker(participant_id)
        return LedgerResult.ok(VariableStakePosition(
            stake=record.stake,
            reward_tally=record.reward_tally,
            pending_reward=self._pending(record),
        ))

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def total_stake(self) -> int:
        return self._total_stake

    @property
    def accumulator(self) -> int:
        return self._reward_per_stake

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
            accumulator=self._reward_per_stake,
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
            if record.stake * self._reward_per_stake < record.reward_tally:
                errors.append(f"{pid} has a negative pending reward")
        if self._total_paid_out > self._total_distributed:
            errors.append(
                f"paid out {self._total_paid_out} exceeds distributed "
                f"{self._total_distributed}"
            )
        return errors

    def _pending(self, record: VariableStakeRecord) -> int:
        return (record.stake * self._reward_per_stake - record.reward_tally) // self._scale

    def _no_staker(self, participant_id: str) -> LedgerResult:
        return LedgerResult.fail(
            ErrorKind.NO_STAKER, f"No stake on record for {participant_id}",
        )
