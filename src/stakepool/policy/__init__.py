"""Pool parameter resolution."""

from stakepool.policy.resolver import PolicyResolver, PoolParams

__all__ = [
    "PolicyResolver",
    "PoolParams",
]
