#!/usr/bin/env python3
"""
Run the checkers for a workload over a recorded history.

Usage:
    python scripts/check_history.py history.jsonl --workload set
    python scripts/check_history.py history.jsonl --workload bank --accounts 5 --initial-balance 10
    python scripts/check_history.py history.jsonl --workload monotonic-spread --partitions 5 --out report.json

Exit codes:
    0 - history valid
    1 - history invalid
    2 - input or configuration error
"""

import argparse
import json
import sys
from pathlib import Path

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pydantic import ValidationError  # noqa: E402

from histcheck.config import Settings  # noqa: E402
from histcheck.errors import HistcheckError  # noqa: E402
from histcheck.history import load_history  # noqa: E402
from histcheck.logging import clear_run_id, get_logger, set_run_id, setup_logging  # noqa: E402
from histcheck.workloads import Workload, build_checker  # noqa: E402

logger = get_logger("histcheck.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Check a recorded history for consistency anomalies")
    parser.add_argument("history", type=Path, help="History file (JSON Lines)")
    parser.add_argument(
        "--workload",
        required=True,
        choices=[w.value for w in Workload if w is not Workload.ATOMIC],
        help="Workload that produced the history",
    )
    parser.add_argument("--accounts", type=int, help="Bank account count")
    parser.add_argument("--initial-balance", type=int, help="Bank starting balance per account")
    parser.add_argument("--partitions", type=int, help="Monotonic-spread partition count")
    parser.add_argument("--run-id", help="Run ID to tag log lines with")
    parser.add_argument("--out", type=Path, help="Write the report here instead of stdout")
    parser.add_argument(
        "--save",
        action="store_true",
        help="Write the report to the configured reports directory",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    overrides = {
        "bank_accounts": args.accounts,
        "bank_initial_balance": args.initial_balance,
        "monotonic_partitions": args.partitions,
    }
    try:
        settings = Settings(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    # stdout carries the report
    setup_logging(settings.log_level, json_output=settings.log_json, stream=sys.stderr)
    if args.run_id:
        set_run_id(args.run_id)

    try:
        logger.info("Checking %s as workload %s", args.history, args.workload)
        history = load_history(args.history)
        report = build_checker(args.workload, settings).check(history)
    except (HistcheckError, OSError) as e:
        logger.error("Cannot check history: %s", e)
        return 2
    finally:
        clear_run_id()

    out = args.out
    if out is None and args.save:
        out = settings.reports_dir / f"{args.run_id or args.workload}.json"

    payload = json.dumps(report.to_dict(), indent=2, sort_keys=True)
    if out:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(payload + "\n", encoding="utf-8")
        logger.info("Report written to %s", out)
    else:
        print(payload)

    return 0 if report.valid else 1


if __name__ == "__main__":
    sys.exit(main())
