"""
Shared result type and per-user loop for the evaluators.
"""

import logging
import sqlite3
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from core.database import StoreError


@dataclass
class EvaluationResult:
    """Outcome of one evaluator sweep."""

    evaluator: str
    users_checked: int = 0
    users_skipped: int = 0
    notifications_created: int = 0
    notifications_resolved: int = 0
    counters_updated: int = 0
    errors: int = 0
    created: list[dict] = field(default_factory=list)

    def record_created(self, notification: dict | None) -> bool:
        """Track a notification returned by open_notification; False when suppressed."""
        if notification is None:
            return False
        self.created.append(notification)
        self.notifications_created += 1
        return True

    def summary(self) -> str:
        return (
            f"{self.evaluator}: checked={self.users_checked} skipped={self.users_skipped} "
            f"created={self.notifications_created} resolved={self.notifications_resolved} "
            f"counters={self.counters_updated} errors={self.errors}"
        )


def for_each_user(
    users: Iterable[dict],
    check: Callable[[dict], None],
    result: EvaluationResult,
    logger: logging.Logger,
) -> EvaluationResult:
    """
    Run check(user) for every user, isolating failures.

    An exception for one user is logged with its traceback and counted; the
    sweep continues with the next user. Losing the store (OperationalError,
    StoreError) ends the sweep.
    """
    for user in users:
        result.users_checked += 1
        try:
            check(user)
        except (sqlite3.OperationalError, StoreError):
            raise
        except Exception:
            result.errors += 1
            logger.exception("[ERROR] %s - evaluation failed", user.get("email"))
    return result
