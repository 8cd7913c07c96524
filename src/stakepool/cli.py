"""Stake pool CLI — replay operation scripts against a pool.

Usage:
    python -m stakepool.cli params
    python -m stakepool.cli replay ops.json --variant variable
    python -m stakepool.cli check-invariants

An operation script is a JSON list:
    [
      {"op": "deposit", "participant": "alice", "amount": 100},
      {"op": "distribute", "amount": 10},
      {"op": "pending", "participant": "alice"},
      {"op": "claim", "participant": "alice"},
      {"op": "withdraw", "participant": "alice", "amount": 40},
      {"op": "withdraw", "participant": "alice"}
    ]

The default config directory is config/ at the project root, or
STAKEPOOL_CONFIG_DIR when set in the environment or in a .env file.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import os
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from stakepool.models.distribution import LedgerResult
from stakepool.policy.resolver import PolicyResolver
from stakepool.service import VARIANTS, PoolService


ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG = ROOT / "config"


def _default_config_dir() -> Path:
    load_dotenv(ROOT / ".env")
    configured = os.getenv("STAKEPOOL_CONFIG_DIR")
    return Path(configured) if configured else DEFAULT_CONFIG


def _to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value):
        return dataclasses.asdict(value)
    return value


PARTICIPANT_OPERATIONS = frozenset({"deposit", "withdraw", "claim", "pending"})


def _result_line(op: dict[str, Any], result: LedgerResult) -> dict[str, Any]:
    return {
        "op": op.get("op"),
        "participant": op.get("participant"),
        "success": result.success,
        "error": result.error.value if result.error else None,
        "message": result.message,
        "value": _to_jsonable(result.value),
    }


def run_operation(service: PoolService, op: dict[str, Any]) -> dict[str, Any]:
    """Apply one scripted operation and describe the outcome.

    Raises ValueError for malformed entries; nothing is applied in that case.
    """
    if not isinstance(op, dict):
        raise ValueError(f"operation must be a JSON object, got {op!r}")
    kind = op.get("op")
    participant = op.get("participant")
    if kind in PARTICIPANT_OPERATIONS and (
        not isinstance(participant, str) or not participant
    ):
        raise ValueError(f"{kind} requires a non-empty participant string")
    if kind == "deposit":
        return _result_line(op, service.deposit(participant, op.get("amount")))
    if kind == "distribute":
        return _result_line(op, service.distribute(op.get("amount")))
    if kind == "withdraw":
        return _result_line(op, service.withdraw(participant, op.get("amount")))
    if kind == "claim":
        return _result_line(op, service.claim(participant))
    if kind == "pending":
        return {
            "op": kind,
            "participant": participant,
            "success": True,
            "error": None,
            "message": "",
            "value": service.pending_reward(participant),
        }
    raise ValueError(f"Unknown operation: {kind!r}")


def cmd_params(args: argparse.Namespace) -> int:
    resolver = PolicyResolver.from_config_dir(args.config)
    print(json.dumps(resolver.distribution_params(), indent=2))
    return 0


def cmd_replay(args: argparse.Namespace) -> int:
    resolver = PolicyResolver.from_config_dir(args.config)
    service = PoolService(resolver, variant=args.variant)

    try:
        with args.script.open("r", encoding="utf-8") as handle:
            operations = json.load(handle)
    except json.JSONDecodeError as e:
        print(f"Failed: {args.script} is not valid JSON: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Failed: cannot read {args.script}: {e}", file=sys.stderr)
        return 1
    if not isinstance(operations, list):
        print("Failed: operation script must be a JSON list", file=sys.stderr)
        return 1

    failures = 0
    for index, op in enumerate(operations):
        try:
            line = run_operation(service, op)
        except ValueError as e:
            print(f"Failed: operation {index}: {e}", file=sys.stderr)
            return 1
        if not line["success"]:
            failures += 1
        print(json.dumps(line, sort_keys=True))

    print(json.dumps({"status": service.status()}, indent=2))
    return 1 if failures else 0


def cmd_check_invariants(args: argparse.Namespace) -> int:
    """Run pool parameter invariant checks."""
    tools_dir = ROOT / "tools"
    sys.path.insert(0, str(tools_dir))
    from check_invariants import check
    return check(args.config)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stakepool",
        description="Constant-time pooled reward accounting",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config directory (default: config/ or STAKEPOOL_CONFIG_DIR)",
    )
    sub = parser.add_subparsers(dest="command")

    # params
    sub.add_parser("params", help="Show resolved pool parameters")

    # replay
    p_replay = sub.add_parser("replay", help="Replay a JSON operation script")
    p_replay.add_argument("script", type=Path, help="Path to the operation script")
    p_replay.add_argument(
        "--variant", default="variable", choices=list(VARIANTS),
        help="Distributor variant (default: variable)",
    )

    # check-invariants
    sub.add_parser("check-invariants", help="Check pool parameter invariants")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.config is None:
        args.config = _default_config_dir()

    commands = {
        "params": cmd_params,
        "replay": cmd_replay,
        "check-invariants": cmd_check_invariants,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
