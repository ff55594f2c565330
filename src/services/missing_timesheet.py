"""
Missing-timesheet alerts.

Compares submitted timesheets against assigned tasks on the target day's
activity log once the grace period after scheduled work start has passed.
Repeat violations bump the log's ignored_alert_count, which feeds the lockout
rule. Alerts resolve automatically once the user is compliant.
"""

import logging
from datetime import datetime

from core.config import Thresholds, get_thresholds
from core.database import Store
from services.aggregation import as_local, target_day, work_start_time
from services.evaluation import EvaluationResult, for_each_user
from services.notifications import (
    ACTIVE_STATUSES,
    Category,
    NotificationType,
    Status,
    missing_timesheet_message,
    open_notification,
    resolve_active,
)

logger = logging.getLogger(__name__)

EVALUATOR_NAME = "missing_timesheet"
RULE_ID = "TIMESHEET_MISSING_ASSIGNED"


def find_viewers(store: Store) -> list[dict]:
    """Active members with the viewer custom role."""
    return store.find_users(role="member", custom_role="viewer", exclude_status="inactive")


def _is_viewer_in_scope(user: dict | None) -> bool:
    return (
        user is not None
        and user.get("status") != "inactive"
        and user.get("role") == "member"
        and user.get("custom_role") == "viewer"
    )


def resolve_stale_alerts(store: Store) -> int:
    """Force-resolve active alerts whose owner is gone, inactive, or no longer a viewer."""
    resolved = 0
    for alert in store.find_notifications(
        types=(NotificationType.TIMESHEET_MISSING_ALERT,), statuses=ACTIVE_STATUSES
    ):
        owner = store.get_user(alert["user_id"]) if alert["user_id"] is not None else None
        if _is_viewer_in_scope(owner):
            continue
        if store.set_notification_status(alert["id"], Status.RESOLVED, expected=ACTIVE_STATUSES):
            resolved += 1
            logger.info("[CLEANUP] Resolved stale alert %s for %s", alert["id"], alert["recipient_email"])
    return resolved


def evaluate_missing_timesheets(
    store: Store, now: datetime | None = None, thresholds: Thresholds | None = None
) -> EvaluationResult:
    """Run the missing-timesheet sweep over all viewers."""
    now = as_local(now)
    thresholds = thresholds or get_thresholds()
    day = target_day(now, thresholds.target_day_offset)
    result = EvaluationResult(EVALUATOR_NAME)

    result.notifications_resolved += resolve_stale_alerts(store)

    users = find_viewers(store)
    logger.info(
        "=== MISSING TIMESHEET CHECK (target day %s, grace %s) === %d viewer(s)",
        day, thresholds.grace_period, len(users),
    )

    def check(user: dict) -> None:
        log = store.find_daily_log(user["id"], day)
        if log is None:
            logger.info("[SKIP] %s - no activity log for %s", user["email"], day)
            result.users_skipped += 1
            return

        deadline = work_start_time(log, day, now, thresholds.default_work_start) + thresholds.grace_period
        if now <= deadline:
            logger.info("[WAIT] %s - within grace period until %s", user["email"], deadline.isoformat())
            return

        assigned = log.get("total_assigned_tasks") or 0
        submitted = log.get("submitted_timesheets_count") or 0
        logger.info("[CHECK] %s - assigned %d, submitted %d", user["email"], assigned, submitted)

        if submitted < assigned:
            title, message = missing_timesheet_message()
            created = open_notification(
                store,
                recipient=user,
                notification_type=NotificationType.TIMESHEET_MISSING_ALERT,
                category=Category.ALERT,
                title=title,
                message=message,
                rule_id=RULE_ID,
                now=now,
            )
            if result.record_created(created):
                logger.info("   -> [ALERT] created missing-timesheet alert")
            else:
                count = store.increment_ignored_alert_count(log["id"])
                result.counters_updated += 1
                logger.info("   -> [IGNORED] alert already active, ignored count now %d", count)
        else:
            resolved = resolve_active(store, user["email"], NotificationType.TIMESHEET_MISSING_ALERT)
            result.notifications_resolved += resolved
            logger.info("   -> [OK] compliant%s", ", resolved alert" if resolved else "")

    return for_each_user(users, check, result, logger)
