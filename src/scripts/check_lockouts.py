#!/usr/bin/env python3
"""
Raise lockout alarms for ignored timesheet alerts.

Viewers whose ignored-alert count reached the threshold get a lockout alarm.
Lockout alarms are cleared by a manager through the API.

Usage:
    python src/scripts/check_lockouts.py [--now 2026-01-20T11:00] [--mode development] [--email]
"""

import asyncio
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.log_setup import configure_logging
from services.runner import build_parser, run_evaluator


if __name__ == "__main__":
    parser = build_parser("Raise lockout alarms for ignored timesheet alerts.")
    args = parser.parse_args()

    configure_logging()
    sys.exit(asyncio.run(run_evaluator("lockout", args.db, args.now, args.mode, args.email)))
