"""
Rework alarms from the share of recently logged time spent on rework.

Every evaluated user gets a rework_check audit record. Alarms are not resolved
when the ratio drops; a high-rework freeze is lifted only by appeal/resolution.
"""

import logging
import sqlite3
from datetime import datetime, timedelta

from core.config import Thresholds, get_thresholds
from core.database import Store
from services.aggregation import as_local, rework_percent, rework_totals
from services.evaluation import EvaluationResult, for_each_user
from services.notifications import (
    Category,
    NotificationType,
    high_rework_message,
    open_notification,
    rework_message,
)

logger = logging.getLogger(__name__)

EVALUATOR_NAME = "rework"
RULE_ID = "REWORK_RATIO"
HIGH_RULE_ID = "REWORK_RATIO_CRITICAL"


def record_rework_check(store: Store, user: dict, percent: float, now: datetime) -> bool:
    """Append a rework_check audit record; failures are logged, never raised."""
    try:
        store.insert_activity_log(
            user["id"],
            now.date(),
            now.isoformat(),
            email=user["email"],
            tenant_id=user.get("tenant_id"),
            event_type="rework_check",
            rework_percentage=round(percent, 1),
        )
    except sqlite3.Error as e:
        logger.error("   -> [ERROR] failed to log rework activity for %s: %s", user["email"], e)
        return False
    return True


def evaluate_rework(
    store: Store, now: datetime | None = None, thresholds: Thresholds | None = None
) -> EvaluationResult:
    """Raise rework / high-rework alarms for active members."""
    now = as_local(now)
    thresholds = thresholds or get_thresholds()
    since = now.date() - timedelta(days=thresholds.rework_lookback_days)
    result = EvaluationResult(EVALUATOR_NAME)

    users = store.find_users(role="member", status="active")
    logger.info(
        "=== REWORK CHECK (> %g%% in last %d days) === %d member(s)",
        thresholds.rework_threshold_percent, thresholds.rework_lookback_days, len(users),
    )

    def check(user: dict) -> None:
        timesheets = store.find_timesheets_since(user["email"], since)
        if not timesheets:
            logger.info("User: %s | no timesheets since %s", user["email"], since)
            result.users_skipped += 1
            return

        total, rework = rework_totals(timesheets)
        percent = rework_percent(total, rework)
        if percent is None:
            logger.info("User: %s | total hours 0 (skipping)", user["email"])
            result.users_skipped += 1
            return

        logger.info(
            "User: %s | total %.1fh | rework %.1fh | ratio %.1f%%",
            user["email"], total / 60, rework / 60, percent,
        )
        record_rework_check(store, user, percent, now)

        if percent > thresholds.high_rework_threshold_percent:
            title, message = high_rework_message(percent, thresholds.high_rework_threshold_percent)
            created = open_notification(
                store,
                recipient=user,
                notification_type=NotificationType.HIGH_REWORK_ALARM,
                category=Category.ALARM,
                title=title,
                message=message,
                rule_id=HIGH_RULE_ID,
                now=now,
            )
        elif percent > thresholds.rework_threshold_percent:
            title, message = rework_message(percent, thresholds.rework_threshold_percent)
            # An active high-rework alarm already covers this user
            created = open_notification(
                store,
                recipient=user,
                notification_type=NotificationType.REWORK_ALARM,
                category=Category.ALARM,
                title=title,
                message=message,
                rule_id=RULE_ID,
                now=now,
                blocking_types=(NotificationType.REWORK_ALARM, NotificationType.HIGH_REWORK_ALARM),
            )
        else:
            return

        if result.record_created(created):
            logger.info("   -> [FLAG] %s created", created["type"])
        else:
            logger.info("   -> alarm already active, skipping")

    return for_each_user(users, check, result, logger)
