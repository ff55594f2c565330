#!/usr/bin/env python3
"""
Raise overwork alarms from planned workload.

Flags members whose estimated hours for the week exceed the limit and alerts
the project managers of their tenant.

Usage:
    python src/scripts/check_overwork.py [--now 2026-01-20T11:00] [--mode development] [--email]
"""

import asyncio
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.log_setup import configure_logging
from services.runner import build_parser, run_evaluator


if __name__ == "__main__":
    parser = build_parser("Raise overwork alarms from planned workload.")
    args = parser.parse_args()

    configure_logging()
    sys.exit(asyncio.run(run_evaluator("overwork", args.db, args.now, args.mode, args.email)))
