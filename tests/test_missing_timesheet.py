"""Tests for the missing-timesheet evaluator."""

import sqlite3
from datetime import date, datetime, timezone

import pytest

from services import missing_timesheet
from services.missing_timesheet import evaluate_missing_timesheets, resolve_stale_alerts
from services.notifications import NotificationType, Status, appeal, open_notification

YESTERDAY = date(2026, 1, 20)
ALERT = NotificationType.TIMESHEET_MISSING_ALERT


def _alerts(store, email, statuses=None):
    return store.find_notifications(recipient_email=email, types=(ALERT,), statuses=statuses)


def _open_alert(store, user, now):
    return open_notification(
        store,
        recipient=user,
        notification_type=ALERT,
        category="alert",
        title="Incomplete Timesheet Submission",
        message="pending",
        now=now,
    )


def test_creates_alert_when_submissions_short(store, viewer, make_daily_log, now, prod):
    make_daily_log(viewer, YESTERDAY, total_assigned_tasks=5, submitted_timesheets_count=3)

    result = evaluate_missing_timesheets(store, now, prod)

    alerts = _alerts(store, viewer["email"])
    assert len(alerts) == 1
    assert alerts[0]["status"] == Status.OPEN
    assert alerts[0]["category"] == "alert"
    assert alerts[0]["rule_id"] == "TIMESHEET_MISSING_ASSIGNED"
    assert result.notifications_created == 1


def test_existing_alert_increments_ignored_count(store, viewer, make_daily_log, now, prod):
    log_id = make_daily_log(viewer, YESTERDAY, total_assigned_tasks=5, submitted_timesheets_count=3)
    _open_alert(store, viewer, now)

    result = evaluate_missing_timesheets(store, now, prod)

    assert len(_alerts(store, viewer["email"])) == 1
    assert result.notifications_created == 0
    assert result.counters_updated == 1
    log = store.find_daily_log(viewer["id"], YESTERDAY)
    assert log["id"] == log_id
    assert log["ignored_alert_count"] == 1


def test_appealed_alert_still_counts_as_active(store, viewer, make_daily_log, now, prod):
    make_daily_log(viewer, YESTERDAY, total_assigned_tasks=2, submitted_timesheets_count=0)
    appeal(store, _open_alert(store, viewer, now)["id"])

    evaluate_missing_timesheets(store, now, prod)

    assert len(_alerts(store, viewer["email"])) == 1
    assert store.find_daily_log(viewer["id"], YESTERDAY)["ignored_alert_count"] == 1


def test_compliant_user_resolves_open_alert(store, viewer, make_daily_log, now, prod):
    make_daily_log(viewer, YESTERDAY, total_assigned_tasks=5, submitted_timesheets_count=5)
    _open_alert(store, viewer, now)

    result = evaluate_missing_timesheets(store, now, prod)

    alerts = _alerts(store, viewer["email"])
    assert [a["status"] for a in alerts] == [Status.RESOLVED]
    assert result.notifications_created == 0
    assert result.notifications_resolved == 1


def test_compliant_user_without_alert_gets_nothing(store, viewer, make_daily_log, now, prod):
    make_daily_log(viewer, YESTERDAY, total_assigned_tasks=5, submitted_timesheets_count=5)

    evaluate_missing_timesheets(store, now, prod)

    assert _alerts(store, viewer["email"]) == []


def test_within_grace_period_does_nothing(store, viewer, make_daily_log, prod):
    make_daily_log(viewer, YESTERDAY, total_assigned_tasks=5, submitted_timesheets_count=0)
    # Deadline is 2026-01-21 10:00 (yesterday 10:00 + 24h)
    early = datetime(2026, 1, 21, 10, 0, tzinfo=timezone.utc)

    evaluate_missing_timesheets(store, early, prod)

    assert _alerts(store, viewer["email"]) == []


def test_missing_log_is_skipped(store, viewer, now, prod):
    result = evaluate_missing_timesheets(store, now, prod)

    assert result.users_checked == 1
    assert result.users_skipped == 1
    assert _alerts(store, viewer["email"]) == []


def test_rework_audit_records_are_not_daily_logs(store, viewer, now, prod):
    store.insert_activity_log(
        viewer["id"], YESTERDAY, now.isoformat(), event_type="rework_check", rework_percentage=10.0
    )

    result = evaluate_missing_timesheets(store, now, prod)

    assert result.users_skipped == 1


def test_development_mode_uses_today_and_short_grace(store, viewer, make_daily_log, dev):
    today = date(2026, 1, 21)
    make_daily_log(
        viewer, today, scheduled_working_start="08:30", total_assigned_tasks=1, submitted_timesheets_count=0
    )

    evaluate_missing_timesheets(store, datetime(2026, 1, 21, 8, 31, tzinfo=timezone.utc), dev)
    assert _alerts(store, viewer["email"]) == []

    evaluate_missing_timesheets(store, datetime(2026, 1, 21, 8, 33, tzinfo=timezone.utc), dev)
    assert len(_alerts(store, viewer["email"])) == 1


def test_malformed_start_time_falls_back_to_ten(store, viewer, make_daily_log, dev):
    today = date(2026, 1, 21)
    make_daily_log(
        viewer, today, scheduled_working_start="late", total_assigned_tasks=1, submitted_timesheets_count=0
    )

    evaluate_missing_timesheets(store, datetime(2026, 1, 21, 9, 0, tzinfo=timezone.utc), dev)
    assert _alerts(store, viewer["email"]) == []

    evaluate_missing_timesheets(store, datetime(2026, 1, 21, 10, 5, tzinfo=timezone.utc), dev)
    assert len(_alerts(store, viewer["email"])) == 1


def test_only_active_viewers_are_evaluated(store, make_user, make_daily_log, now, prod):
    inactive = make_user("gone@acme.com", status="inactive")
    manager = make_user("pm@acme.com", custom_role="project_manager")
    for user in (inactive, manager):
        make_daily_log(user, YESTERDAY, total_assigned_tasks=3, submitted_timesheets_count=0)

    result = evaluate_missing_timesheets(store, now, prod)

    assert result.users_checked == 0
    assert store.find_notifications(types=(ALERT,)) == []


def test_stale_alerts_for_non_viewers_are_resolved(store, make_user, now):
    still_viewer = make_user("stay@acme.com")
    demoted = make_user("demoted@acme.com")
    _open_alert(store, still_viewer, now)
    _open_alert(store, demoted, now)
    store.conn.execute("UPDATE users SET custom_role = 'project_manager' WHERE id = ?", (demoted["id"],))

    resolved = resolve_stale_alerts(store)

    assert resolved == 1
    assert _alerts(store, demoted["email"])[0]["status"] == Status.RESOLVED
    assert _alerts(store, still_viewer["email"])[0]["status"] == Status.OPEN


def test_failed_alert_insert_is_an_error_not_an_ignore(store, viewer, make_daily_log, now, prod, monkeypatch):
    make_daily_log(viewer, YESTERDAY, total_assigned_tasks=5, submitted_timesheets_count=3)
    monkeypatch.setattr(missing_timesheet, "missing_timesheet_message", lambda: ("Incomplete Timesheet Submission", None))

    result = evaluate_missing_timesheets(store, now, prod)

    assert result.errors == 1
    assert result.counters_updated == 0
    assert store.find_daily_log(viewer["id"], YESTERDAY)["ignored_alert_count"] == 0
    assert _alerts(store, viewer["email"]) == []


def test_lost_store_ends_the_sweep(store, make_user, now, prod, monkeypatch):
    make_user("first@acme.com")
    make_user("second@acme.com")

    def gone(user_id, day):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(store, "find_daily_log", gone)

    with pytest.raises(sqlite3.OperationalError):
        evaluate_missing_timesheets(store, now, prod)


def test_failure_for_one_user_does_not_abort_sweep(store, make_user, make_daily_log, now, prod, monkeypatch):
    broken = make_user("broken@acme.com")
    healthy = make_user("healthy@acme.com")
    make_daily_log(healthy, YESTERDAY, total_assigned_tasks=4, submitted_timesheets_count=1)

    original = store.find_daily_log

    def flaky(user_id, day):
        if user_id == broken["id"]:
            raise RuntimeError("corrupt record")
        return original(user_id, day)

    monkeypatch.setattr(store, "find_daily_log", flaky)

    result = evaluate_missing_timesheets(store, now, prod)

    assert result.errors == 1
    assert result.users_checked == 2
    assert len(_alerts(store, healthy["email"])) == 1
