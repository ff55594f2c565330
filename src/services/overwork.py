"""
Overwork alarms based on planned workload.

Sums estimated hours of this week's relevant tasks per member. Crossing the
threshold flags the user and notifies every project manager in the tenant;
dropping back under clears the flag silently.
"""

import logging
from datetime import datetime

from core.config import Thresholds, get_thresholds
from core.database import Store
from services.aggregation import as_local, planned_workload
from services.evaluation import EvaluationResult, for_each_user
from services.notifications import Category, NotificationType, open_notification, overwork_message

logger = logging.getLogger(__name__)

EVALUATOR_NAME = "overwork"
RULE_ID = "OVERWORK_PLANNED_LOAD"


def evaluate_overwork(
    store: Store, now: datetime | None = None, thresholds: Thresholds | None = None
) -> EvaluationResult:
    """Flag overloaded members and alert their project managers."""
    now = as_local(now)
    thresholds = thresholds or get_thresholds()
    limit = thresholds.overwork_threshold_hours
    result = EvaluationResult(EVALUATOR_NAME)

    users = store.find_users(role="member", status="active")
    logger.info("=== OVERWORK CHECK (mode %s, > %gh) === %d member(s)", thresholds.mode, limit, len(users))

    def check(user: dict) -> None:
        tasks = store.find_tasks_assigned_to(user["email"])
        total_hours, relevant = planned_workload(tasks, now.date())
        logger.info("User: %s | workload %.1fh | relevant tasks %d", user["email"], total_hours, len(relevant))

        overloaded = total_hours > limit
        flagged = bool(user.get("is_overloaded"))

        if overloaded and not flagged:
            store.set_user_overloaded(user["id"], True)
            result.counters_updated += 1
            logger.info("   -> [FLAG] overloaded (> %gh)", limit)

            title, message = overwork_message(user, total_hours)
            pms = store.find_project_managers(user["tenant_id"])
            notified = 0
            for pm in pms:
                notified += result.record_created(
                    open_notification(
                        store,
                        recipient=pm,
                        notification_type=NotificationType.OVERWORK_ALARM,
                        category=Category.ALARM,
                        title=title,
                        message=message,
                        rule_id=RULE_ID,
                        subject_email=user["email"],
                        now=now,
                    )
                )
            if pms and not notified:
                logger.info("   -> [KEEP] all %d PM alarm(s) for %s still active, none sent", len(pms), user["email"])
            elif not pms:
                logger.info("   -> no project managers in tenant %s", user["tenant_id"])
        elif not overloaded and flagged:
            store.set_user_overloaded(user["id"], False)
            result.counters_updated += 1
            logger.info("   -> [RESET] normal workload")
        elif overloaded:
            logger.info("   -> [KEEP] still overloaded")

    return for_each_user(users, check, result, logger)
