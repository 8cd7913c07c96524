"""Core data models for the stake pool ledgers."""

from stakepool.models.distribution import (
    Distribution,
    ErrorKind,
    FixedStakePosition,
    LedgerError,
    LedgerResult,
    PoolStats,
    Settlement,
    VariableStakePosition,
    Withdrawal,
)

__all__ = [
    "Distribution",
    "ErrorKind",
    "FixedStakePosition",
    "LedgerError",
    "LedgerResult",
    "PoolStats",
    "Settlement",
    "VariableStakePosition",
    "Withdrawal",
]
