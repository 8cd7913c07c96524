"""Distribution models — error kinds, operation results, positions, receipts.

All amounts are integers in the smallest unit of the asset. Accumulators
are integers scaled by the pool's precision factor. No floats in finance.

Operations never raise for usage errors. They return a LedgerResult
carrying either a value or an ErrorKind, and leave the ledger untouched
on failure.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional


class ErrorKind(str, enum.Enum):
    """Why a ledger operation was rejected."""
    INVALID_AMOUNT = "invalid_amount"
    ZERO_TOTAL_DEPOSIT = "zero_total_deposit"
    NO_STAKER = "no_staker"
    # Accumulator behind a snapshot. Unreachable unless the ledger is corrupt.
    INSUFFICIENT_FUNDS = "insufficient_funds"


class LedgerError(Exception):
    """Raised by LedgerResult.unwrap() for callers that want exceptions."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(f"{kind.value}: {message}")
        self.kind = kind
        self.message = message


@dataclass(frozen=True)
class LedgerResult:
    """Result of a ledger operation.

    Usage:
        result = distributor.withdraw("alice")
        if result.error == ErrorKind.NO_STAKER:
            ...
        receipt = result.value
    """
    success: bool
    error: Optional[ErrorKind] = None
    message: str = ""
    value: Any = None

    @staticmethod
    def ok(value: Any = None) -> LedgerResult:
        return LedgerResult(success=True, value=value)

    @staticmethod
    def fail(kind: ErrorKind, message: str) -> LedgerResult:
        return LedgerResult(success=False, error=kind, message=message)

    def unwrap(self) -> Any:
        """Return the value, or raise LedgerError if the operation failed."""
        if not self.success:
            raise LedgerError(self.error, self.message)
        return self.value


@dataclass(frozen=True)
class Distribution:
    """Receipt for a single reward distribution.

    increment is the scaled amount added to the accumulator; carry is the
    scaled remainder held back for the next distribution.
    """
    reward: int
    increment: int
    accumulator: int
    carry: int


@dataclass(frozen=True)
class Withdrawal:
    """Stake and reward released to the caller on exit from the pool."""
    participant_id: str
    stake: int
    reward: int


@dataclass(frozen=True)
class Settlement:
    """Reward paid out while the participant stays in the pool."""
    participant_id: str
    reward: int


@dataclass(frozen=True)
class FixedStakePosition:
    stake: int
    snapshot: int
    pending_reward: int


@dataclass(frozen=True)
class VariableStakePosition:
    stake: int
    reward_tally: int
    pending_reward: int


@dataclass
class FixedStakeRecord:
    """Mutable per-participant state in the fixed-stake ledger."""
    stake: int
    snapshot: int


@dataclass
class VariableStakeRecord:
    """Mutable per-participant state in the variable-stake ledger.

    reward_tally is a scaled correction term, not a snapshot: it may go
    negative after partial withdrawals.
    """
    stake: int
    reward_tally: int


@dataclass(frozen=True)
class PoolStats:
    """Observable aggregate state of a pool."""
    variant: str
    total_stake: int
    participant_count: int
    accumulator: int
    carry: int
    scale: int
    total_distributed: int
    total_paid_out: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "variant": self.variant,
            "total_stake": self.total_stake,
            "participant_count": self.participant_count,
            "accumulator": self.accumulator,
            "carry": self.carry,
            "scale": self.scale,
            "total_distributed": self.total_distributed,
            "total_paid_out": self.total_paid_out,
        }
