#!/usr/bin/env python3
"""Stake pool invariant checks against the pool parameter file."""

import json
import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_DIR = ROOT / "config"
PARAMS_FILENAME = "pool_params.json"

KNOWN_KEYS = {
    "distribution": {"precision_decimals", "carry_remainder"},
}

# Below this, a pool of 10**precision units staked cannot receive a
# reward of 1 unit without the whole reward rounding into the carry.
MIN_PRECISION_DECIMALS = 6
MAX_PRECISION_DECIMALS = 36


def load_json(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def check_params(params: dict, errors: list[str]) -> None:
    for section, values in params.items():
        if section not in KNOWN_KEYS:
            errors.append(f"unknown section: {section}")
            continue
        if not isinstance(values, dict):
            errors.append(f"{section} must be an object")
            continue
        for key in values:
            if key not in KNOWN_KEYS[section]:
                errors.append(f"unknown key: {section}.{key}")

    distribution = params.get("distribution", {})
    if not isinstance(distribution, dict):
        return

    precision = distribution.get("precision_decimals", 18)
    if not isinstance(precision, int) or isinstance(precision, bool):
        errors.append(f"precision_decimals must be an integer, got {precision!r}")
    elif not MIN_PRECISION_DECIMALS <= precision <= MAX_PRECISION_DECIMALS:
        errors.append(
            f"precision_decimals must be in [{MIN_PRECISION_DECIMALS}, "
            f"{MAX_PRECISION_DECIMALS}], got {precision}"
        )

    carry = distribution.get("carry_remainder", True)
    if not isinstance(carry, bool):
        errors.append(f"carry_remainder must be true or false, got {carry!r}")


def check(config_dir: Path = DEFAULT_CONFIG_DIR) -> int:
    path = Path(config_dir) / PARAMS_FILENAME
    if not path.exists():
        print(f"Invariant check failed: {path} not found")
        return 1

    params = load_json(path)
    errors: list[str] = []
    if not isinstance(params, dict):
        errors.append(f"{PARAMS_FILENAME} must contain a JSON object")
    else:
        check_params(params, errors)

    if errors:
        print("Invariant check failed:")
        for err in errors:
            print(f"  - {err}")
        return 1

    print("Invariant check passed.")
    return 0


if __name__ == "__main__":
    target = Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_CONFIG_DIR
    raise SystemExit(check(target))
