"""Policy resolver — loads pool parameters from the config directory.

Parameters live in config/pool_params.json:

    {
      "distribution": {
        "precision_decimals": 18,
        "carry_remainder": true
      }
    }

Missing keys fall back to DEFAULT_PARAMS. Unknown keys are rejected so a
typo cannot silently change pool arithmetic.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any


PARAMS_FILENAME = "pool_params.json"
MAX_PRECISION_DECIMALS = 36

DEFAULT_PARAMS: dict[str, Any] = {
    "distribution": {
        "precision_decimals": 18,
        "carry_remainder": True,
    },
}


@dataclass(frozen=True)
class PoolParams:
    """Validated distribution parameters for one pool."""
    precision_decimals: int = 18
    carry_remainder: bool = True

    def __post_init__(self) -> None:
        precision = self.precision_decimals
        if (
            not isinstance(precision, int)
            or isinstance(precision, bool)
            or not 0 <= precision <= MAX_PRECISION_DECIMALS
        ):
            raise ValueError(
                f"precision_decimals must be an int in [0, {MAX_PRECISION_DECIMALS}], "
                f"got {precision!r}"
            )
        if not isinstance(self.carry_remainder, bool):
            raise ValueError(
                f"carry_remainder must be a bool, got {self.carry_remainder!r}"
            )

    @property
    def scale(self) -> int:
        return 10 ** self.precision_decimals


class PolicyResolver:
    """Resolves pool parameters from a config directory or a dict.

    Usage:
        resolver = PolicyResolver.from_config_dir(config_dir)
        params = resolver.pool_params()
    """

    def __init__(self, params: dict[str, Any]) -> None:
        merged = copy.deepcopy(DEFAULT_PARAMS)
        for section, values in params.items():
            if section not in merged:
                raise ValueError(f"Unknown config section: {section}")
            if not isinstance(values, dict):
                raise ValueError(f"Config section {section} must be an object")
            for key, value in values.items():
                if key not in merged[section]:
                    raise ValueError(f"Unknown config key: {section}.{key}")
                merged[section][key] = value
        self._params = merged
        self._pool_params = PoolParams(**merged["distribution"])

    @classmethod
    def from_config_dir(cls, config_dir: Path) -> PolicyResolver:
        path = Path(config_dir) / PARAMS_FILENAME
        if not path.exists():
            raise ValueError(f"Pool parameter file not found: {path}")
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a JSON object")
        return cls(data)

    @classmethod
    def from_dict(cls, params: dict[str, Any]) -> PolicyResolver:
        return cls(params)

    @classmethod
    def default(cls) -> PolicyResolver:
        return cls({})

    def pool_params(self) -> PoolParams:
        return self._pool_params

    def distribution_params(self) -> dict[str, Any]:
        """Return the raw distribution section (a copy)."""
        return dict(self._params["distribution"])
