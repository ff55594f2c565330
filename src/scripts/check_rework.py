#!/usr/bin/env python3
"""
Raise rework alarms from recent timesheets.

Computes each member's rework share over the lookback window, records it in
the activity log, and raises rework or high-rework (freeze) alarms.

Usage:
    python src/scripts/check_rework.py [--now 2026-01-20T11:00] [--mode development] [--email]
"""

import asyncio
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.log_setup import configure_logging
from services.runner import build_parser, run_evaluator


if __name__ == "__main__":
    parser = build_parser("Raise rework alarms from recent timesheets.")
    args = parser.parse_args()

    configure_logging()
    sys.exit(asyncio.run(run_evaluator("rework", args.db, args.now, args.mode, args.email)))
