"""Fixed-point arithmetic shared by both distributors.

Reward-per-stake accumulators are integers scaled by 10**precision_decimals.
Every division rounds down, so the sum of rewards a ledger can ever pay
out is bounded above by the sum of rewards distributed into it:

    increment * total_stake <= reward * scale + carry

The remainder of each division (the carry) is returned to the caller, who
may fold it into the next distribution instead of losing it.
"""

from __future__ import annotations

from typing import Any, Tuple


def is_valid_amount(value: Any) -> bool:
    """True for strictly positive ints. bool, float and Decimal are rejected."""
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def per_stake_increment(
    reward: int,
    total_stake: int,
    scale: int,
    carry: int = 0,
) -> Tuple[int, int]:
    """Split a reward over the total stake.

    Returns (increment, carry): the scaled reward-per-stake increment and
    the scaled remainder left over by round-down.
    """
    if total_stake <= 0:
        raise ValueError("total_stake must be positive")
    numerator = reward * scale + carry
    return numerator // total_stake, numerator % total_stake


def accrued(stake: int, accumulator_delta: int, scale: int) -> int:
    """Reward earned by stake over an accumulator delta, rounded down."""
    return (stake * accumulator_delta) // scale
