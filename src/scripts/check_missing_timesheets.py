#!/usr/bin/env python3
"""
Raise missing-timesheet alerts.

Checks each viewer's activity log for the target day once the grace period
after scheduled work start has passed. Repeat violations increment the
ignored-alert counter; compliant users have their alert resolved.

Usage:
    python src/scripts/check_missing_timesheets.py [--now 2026-01-20T11:00] [--mode development] [--email]
"""

import asyncio
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.log_setup import configure_logging
from services.runner import build_parser, run_evaluator


if __name__ == "__main__":
    parser = build_parser("Raise missing-timesheet alerts.")
    args = parser.parse_args()

    configure_logging()
    sys.exit(asyncio.run(run_evaluator("missing_timesheet", args.db, args.now, args.mode, args.email)))
