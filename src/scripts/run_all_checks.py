#!/usr/bin/env python3
"""
Run every evaluator in sequence.

Missing-timesheet runs before lockout so that counters bumped in this pass are
seen by the lockout check. Each evaluator records its own run; the exit code is
1 if any of them failed.

Usage:
    python src/scripts/run_all_checks.py [--now 2026-01-20T11:00] [--mode development]
"""

import asyncio
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.log_setup import configure_logging
from services.runner import EVALUATORS, build_parser, run_evaluator


async def main(args) -> int:
    exit_code = 0
    for name in EVALUATORS:
        print(f"\n=== {name} ===")
        exit_code = max(exit_code, await run_evaluator(name, args.db, args.now, args.mode, args.email))
    print("\nDone!")
    return exit_code


if __name__ == "__main__":
    parser = build_parser("Run all timesheet and workload checks")
    args = parser.parse_args()

    configure_logging()
    sys.exit(asyncio.run(main(args)))
