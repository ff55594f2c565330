"""Tests for the lockout evaluator."""

from datetime import date

from services.lockout import evaluate_lockouts
from services.notifications import NotificationType, Status, resolve

YESTERDAY = date(2026, 1, 20)
LOCKOUT = NotificationType.TIMESHEET_LOCKOUT_ALARM


def _alarms(store, email):
    return store.find_notifications(recipient_email=email, types=(LOCKOUT,))


def test_below_threshold_raises_nothing(store, viewer, make_daily_log, now, prod):
    make_daily_log(viewer, YESTERDAY, ignored_alert_count=2)

    evaluate_lockouts(store, now, prod)

    assert _alarms(store, viewer["email"]) == []


def test_threshold_creates_single_alarm(store, viewer, make_daily_log, now, prod):
    make_daily_log(viewer, YESTERDAY, ignored_alert_count=3)

    first = evaluate_lockouts(store, now, prod)
    second = evaluate_lockouts(store, now, prod)

    alarms = _alarms(store, viewer["email"])
    assert len(alarms) == 1
    assert alarms[0]["category"] == "alarm"
    assert alarms[0]["status"] == Status.OPEN
    assert "3 times" in alarms[0]["message"]
    assert first.notifications_created == 1
    assert second.notifications_created == 0


def test_alarm_is_not_auto_resolved(store, viewer, make_daily_log, now, prod):
    log_id = make_daily_log(viewer, YESTERDAY, ignored_alert_count=4)
    evaluate_lockouts(store, now, prod)

    store.conn.execute("UPDATE activity_logs SET ignored_alert_count = 0 WHERE id = ?", (log_id,))
    evaluate_lockouts(store, now, prod)

    assert [a["status"] for a in _alarms(store, viewer["email"])] == [Status.OPEN]


def test_manual_resolution_allows_a_fresh_alarm(store, viewer, make_daily_log, now, prod):
    make_daily_log(viewer, YESTERDAY, ignored_alert_count=3)
    evaluate_lockouts(store, now, prod)
    resolve(store, _alarms(store, viewer["email"])[0]["id"])

    evaluate_lockouts(store, now, prod)

    assert [a["status"] for a in _alarms(store, viewer["email"])] == [Status.RESOLVED, Status.OPEN]


def test_missing_log_is_skipped(store, viewer, now, prod):
    result = evaluate_lockouts(store, now, prod)

    assert result.users_skipped == 1
    assert _alarms(store, viewer["email"]) == []
