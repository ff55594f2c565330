#!/usr/bin/env python3
"""
List notifications, or recent timesheets per active member.

Usage:
    python src/scripts/list_notifications.py [--type rework_alarm] [--status OPEN]
    python src/scripts/list_notifications.py --timesheets
"""

import argparse
import sys
from collections import defaultdict
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import DB_PATH
from core.database import Store, get_store


def print_notifications(store: Store, notification_type: str | None, status: str | None):
    notifications = store.find_notifications(
        types=(notification_type,) if notification_type else None,
        statuses=(status,) if status else None,
    )
    print(f"Found {len(notifications)} notification(s)\n")
    print("=" * 80)
    for n in notifications:
        print(f"#{n['id']} [{n['status']}] {n['type']} ({n['category']})")
        print(f"  To: {n['recipient_email']}  About: {n['subject_email']}")
        print(f"  {n['title']}: {n['message']}")
        print(f"  Created: {n['created_date']}  Read: {'yes' if n['read'] else 'no'}")
        print("-" * 80)


def print_recent_timesheets(store: Store, limit: int):
    users = store.find_users(role="member", status="active")
    print(f"Found {len(users)} active members.")

    for user in users:
        print(f"\nUser: {user['email']} ({user['full_name']})")
        entries = store.find_recent_timesheets(user["email"], limit)
        if not entries:
            print("  No timesheets found.")
            continue

        print(f"  Found {len(entries)} recent entries:")
        hours_by_date: dict[str, float] = defaultdict(float)
        for entry in entries:
            hours_by_date[entry["date"]] += entry["hours"] or 0
            print(f"    - Date: {entry['date']}, Hours: {entry['hours']}, Type: {entry['work_type']}")

        print("  Daily Totals:")
        for day, total in sorted(hours_by_date.items()):
            print(f"    {day}: {total}h")


def main():
    parser = argparse.ArgumentParser(description="Inspect notifications and timesheets")
    parser.add_argument("--db", type=Path, default=DB_PATH, help="SQLite database path")
    parser.add_argument("--type", dest="notification_type", help="Only this notification type")
    parser.add_argument("--status", choices=["OPEN", "RESOLVED", "APPEALED"], help="Only this status")
    parser.add_argument("--timesheets", action="store_true", help="Show recent timesheets instead")
    parser.add_argument("--limit", type=int, default=10, help="Timesheet entries per user")
    args = parser.parse_args()

    with get_store(args.db) as store:
        if args.timesheets:
            print_recent_timesheets(store, args.limit)
        else:
            print_notifications(store, args.notification_type, args.status)

    print("\nDone!")


if __name__ == "__main__":
    main()
