"""
Lockout alarms for users who keep ignoring missing-timesheet alerts.

Lockout alarms are never resolved here; a manager clears them by hand.
"""

import logging
from datetime import datetime

from core.config import Thresholds, get_thresholds
from core.database import Store
from services.aggregation import as_local, target_day
from services.evaluation import EvaluationResult, for_each_user
from services.missing_timesheet import find_viewers
from services.notifications import Category, NotificationType, lockout_message, open_notification

logger = logging.getLogger(__name__)

EVALUATOR_NAME = "lockout"
RULE_ID = "TIMESHEET_LOCKOUT_MAX_IGNORES"


def evaluate_lockouts(
    store: Store, now: datetime | None = None, thresholds: Thresholds | None = None
) -> EvaluationResult:
    """Raise a lockout alarm once ignored_alert_count reaches the threshold."""
    now = as_local(now)
    thresholds = thresholds or get_thresholds()
    day = target_day(now, thresholds.target_day_offset)
    result = EvaluationResult(EVALUATOR_NAME)

    users = find_viewers(store)
    logger.info(
        "=== LOCKOUT CHECK (threshold >= %d, target day %s) === %d viewer(s)",
        thresholds.lockout_threshold, day, len(users),
    )

    def check(user: dict) -> None:
        log = store.find_daily_log(user["id"], day)
        if log is None:
            logger.info("[SKIP] %s - no activity log for %s", user["email"], day)
            result.users_skipped += 1
            return

        ignored = log.get("ignored_alert_count") or 0
        if ignored < thresholds.lockout_threshold:
            logger.info("[OK] %s - ignored count %d within limits", user["email"], ignored)
            return

        title, message = lockout_message(ignored)
        created = open_notification(
            store,
            recipient=user,
            notification_type=NotificationType.TIMESHEET_LOCKOUT_ALARM,
            category=Category.ALARM,
            title=title,
            message=message,
            rule_id=RULE_ID,
            now=now,
        )
        if result.record_created(created):
            logger.info("[ALARM] %s - ignored %d times, lockout alarm created", user["email"], ignored)
        else:
            logger.info("[KEEP] %s - lockout alarm already active", user["email"])

    return for_each_user(users, check, result, logger)
