"""Distribution subsystem — constant-time pooled reward accounting.

Two independent ledgers share the fixed-point conventions in fixed_point:
the fixed-stake distributor for stakes that stay constant between deposit
and withdrawal, and the variable-stake distributor for arbitrary partial
deposits and withdrawals.
"""

from stakepool.distribution.fixed_stake import FixedStakeDistributor
from stakepool.distribution.variable_stake import VariableStakeDistributor

__all__ = [
    "FixedStakeDistributor",
    "VariableStakeDistributor",
]
