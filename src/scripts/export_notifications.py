#!/usr/bin/env python3
"""
Export notifications to an Excel workbook.

Sheet 1 pivots active notifications by recipient and type; sheet 2 lists every
notification. Optionally emails an active-alarm digest.

Usage:
    python src/scripts/export_notifications.py [--tenant acme] [--digest-to pm@acme.com]
"""

import argparse
import asyncio
import sys
from datetime import date
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import DB_PATH, OUTPUT_DIR
from core.database import get_store
from core.log_setup import configure_logging
from services.email import send_email
from services.notifications import ACTIVE_STATUSES
from services.reports import export_notifications


async def main(args) -> int:
    try:
        with get_store(args.db) as store:
            notifications = store.find_notifications(tenant_id=args.tenant)

        output_path = args.output or (
            OUTPUT_DIR / "notifications" / f"notifications_{args.tenant or 'all'}_{date.today():%Y_%m_%d}.xlsx"
        )
        export_notifications(notifications, output_path)
        print(f"Saved {len(notifications)} notification(s) to: {output_path}")

        if args.digest_to:
            active = [n for n in notifications if n["status"] in ACTIVE_STATUSES]
            await send_email(
                args.digest_to,
                "alarm_digest",
                {"tenant_id": args.tenant or "all tenants", "notifications": active},
            )
            print(f"Sent digest of {len(active)} active notification(s)")
        return 0
    except Exception as e:
        print(f"\nError: {e}")
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Export notifications to Excel")
    parser.add_argument("--db", type=Path, default=DB_PATH, help="SQLite database path")
    parser.add_argument("--tenant", help="Only this tenant")
    parser.add_argument("--output", type=Path, help="Output .xlsx path")
    parser.add_argument("--digest-to", nargs="+", help="Email an active-alarm digest to these addresses")
    args = parser.parse_args()

    configure_logging()
    sys.exit(asyncio.run(main(args)))
