"""Tests for the Excel notification export."""

from openpyxl import load_workbook

from services.notifications import NotificationType, open_notification, resolve
from services.reports import DETAIL_HEADERS, export_notifications, format_timestamp


def _open(store, user, notification_type, now):
    return open_notification(
        store,
        recipient=user,
        notification_type=notification_type,
        category="alarm",
        title="Title",
        message="Message",
        now=now,
    )


def test_format_timestamp():
    assert format_timestamp("2026-01-21T12:34:56+00:00") == "2026-01-21 12:34"
    assert format_timestamp(None) == ""


def test_export_workbook(store, make_user, now, tmp_path):
    alice = make_user("alice@acme.com")
    bob = make_user("bob@acme.com")
    _open(store, alice, NotificationType.REWORK_ALARM, now)
    _open(store, alice, NotificationType.TIMESHEET_LOCKOUT_ALARM, now)
    resolved = _open(store, bob, NotificationType.REWORK_ALARM, now)
    resolve(store, resolved["id"])

    path = export_notifications(store.find_notifications(), tmp_path / "out" / "notifications.xlsx")

    wb = load_workbook(path)
    assert wb.sheetnames == ["Active Summary", "Notification Detail"]

    summary = wb["Active Summary"]
    assert [c.value for c in summary[1]] == ["Recipient", "rework_alarm", "timesheet_lockout_alarm", "Total"]
    assert [c.value for c in summary[2]] == ["alice@acme.com", 1, 1, 2]
    assert [c.value for c in summary[3]] == ["Total", 1, 1, 2]

    detail = wb["Notification Detail"]
    assert [c.value for c in detail[1]] == DETAIL_HEADERS
    assert detail.max_row == 4
    assert detail.cell(row=4, column=7).value == "RESOLVED"
    assert detail.cell(row=2, column=11).value == "2026-01-21 12:00"
