"""
Excel export of notifications.
"""

from collections import defaultdict
from datetime import datetime
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font

from services.notifications import ACTIVE_STATUSES

DETAIL_HEADERS = [
    "ID", "Tenant", "Recipient", "Subject", "Type", "Category",
    "Status", "Title", "Message", "Read", "Created", "Updated",
]
SUMMARY_SHEET = "Active Summary"
DETAIL_SHEET = "Notification Detail"


def format_timestamp(value: str | None) -> str:
    """Format an ISO timestamp as 'YYYY-MM-DD HH:MM' (empty when missing)."""
    if not value:
        return ""
    return datetime.fromisoformat(value).strftime("%Y-%m-%d %H:%M")


def write_summary_sheet(ws, notifications: list[dict]):
    """
    Pivot of active notifications: recipients as rows, types as columns, plus totals.
    """
    active = [n for n in notifications if n["status"] in ACTIVE_STATUSES]
    recipients = sorted(set(n["recipient_email"] for n in active))
    types = sorted(set(n["type"] for n in active))

    counts: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
    for n in active:
        counts[n["recipient_email"]][n["type"]] += 1

    headers = ["Recipient"] + types + ["Total"]
    for col_idx, header in enumerate(headers, start=1):
        ws.cell(row=1, column=col_idx, value=header).font = Font(bold=True)

    for row_idx, recipient in enumerate(recipients, start=2):
        ws.cell(row=row_idx, column=1, value=recipient)
        for col_idx, notification_type in enumerate(types, start=2):
            count = counts[recipient].get(notification_type, 0)
            if count:
                ws.cell(row=row_idx, column=col_idx, value=count)
        ws.cell(row=row_idx, column=len(types) + 2, value=sum(counts[recipient].values()))

    total_row = len(recipients) + 2
    ws.cell(row=total_row, column=1, value="Total").font = Font(bold=True)
    for col_idx, notification_type in enumerate(types, start=2):
        ws.cell(
            row=total_row,
            column=col_idx,
            value=sum(counts[r].get(notification_type, 0) for r in recipients),
        )
    ws.cell(row=total_row, column=len(types) + 2, value=len(active))


def write_detail_sheet(ws, notifications: list[dict]):
    """One row per notification, all statuses."""
    for col_idx, header in enumerate(DETAIL_HEADERS, start=1):
        ws.cell(row=1, column=col_idx, value=header).font = Font(bold=True)

    for row_idx, n in enumerate(notifications, start=2):
        row_data = [
            n["id"],
            n["tenant_id"],
            n["recipient_email"],
            n["subject_email"],
            n["type"],
            n["category"],
            n["status"],
            n["title"],
            n["message"],
            "yes" if n["read"] else "no",
            format_timestamp(n["created_date"]),
            format_timestamp(n["updated_at"]),
        ]
        for col_idx, value in enumerate(row_data, start=1):
            ws.cell(row=row_idx, column=col_idx, value=value)


def create_notifications_workbook(notifications: list[dict]) -> Workbook:
    wb = Workbook()
    ws_summary = wb.active
    ws_summary.title = SUMMARY_SHEET
    write_summary_sheet(ws_summary, notifications)

    ws_detail = wb.create_sheet(title=DETAIL_SHEET)
    write_detail_sheet(ws_detail, notifications)
    return wb


def export_notifications(notifications: list[dict], output_path: Path) -> Path:
    """Write the notifications workbook to output_path."""
    wb = create_notifications_workbook(notifications)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(str(output_path))
    return output_path
