"""
Notification lifecycle: creation with de-duplication, resolution, manual transitions.

    NONE -> OPEN            threshold crossed, no active notification
    OPEN -> RESOLVED        condition cleared (auto-resolve rules) or manual
    OPEN -> APPEALED        manual appeal
    APPEALED -> RESOLVED    manual

OPEN and APPEALED both count as active; RESOLVED is terminal.
"""

import logging
from datetime import datetime

from core.config import NOTIFICATION_SENDER_NAME
from core.database import ACTIVE_NOTIFICATION_STATUSES, Store

logger = logging.getLogger(__name__)


class NotificationType:
    """Notification type constants."""

    TIMESHEET_MISSING_ALERT = "timesheet_missing_alert"
    TIMESHEET_LOCKOUT_ALARM = "timesheet_lockout_alarm"
    OVERWORK_ALARM = "overwork_alarm"
    REWORK_ALARM = "rework_alarm"
    HIGH_REWORK_ALARM = "high_rework_alarm"


class Category:
    ALERT = "alert"
    ALARM = "alarm"


class Status:
    OPEN = "OPEN"
    RESOLVED = "RESOLVED"
    APPEALED = "APPEALED"


ACTIVE_STATUSES = ACTIVE_NOTIFICATION_STATUSES

# Allowed manual transitions: target -> statuses it may be reached from
MANUAL_TRANSITIONS = {
    Status.APPEALED: (Status.OPEN,),
    Status.RESOLVED: (Status.OPEN, Status.APPEALED),
}


class NotificationNotFoundError(Exception):
    """No notification with the given id."""


class InvalidTransitionError(Exception):
    """The requested status change is not allowed from the current status."""


# =============================================================================
# CREATION AND AUTO-RESOLVE
# =============================================================================


def open_notification(
    store: Store,
    *,
    recipient: dict,
    notification_type: str,
    category: str,
    title: str,
    message: str,
    rule_id: str | None = None,
    subject_email: str | None = None,
    now: datetime | None = None,
    blocking_types: tuple[str, ...] | None = None,
) -> dict | None:
    """
    Create an OPEN notification unless an active one already exists.

    Args:
        recipient: user record the notification is addressed to
        subject_email: user the notification is about (defaults to the recipient)
        blocking_types: active types that suppress creation (defaults to notification_type)

    Returns:
        The created notification, or None when suppressed.
    """
    record = {
        "tenant_id": recipient.get("tenant_id") or "default",
        "recipient_email": recipient["email"],
        "user_id": recipient.get("id"),
        "subject_email": subject_email or recipient["email"],
        "rule_id": rule_id,
        "scope": "user",
        "type": notification_type,
        "category": category,
        "status": Status.OPEN,
        "title": title,
        "message": message,
        "read": 0,
        "sender_name": NOTIFICATION_SENDER_NAME,
        "created_date": now.isoformat() if now else None,
    }
    notification_id = store.insert_notification_if_absent(record, blocking_types)
    if notification_id is None:
        return None
    return store.get_notification(notification_id)


def resolve_active(store: Store, recipient_email: str, notification_type: str, subject_email: str | None = None) -> int:
    """Resolve every active notification of a type for a recipient; returns the count."""
    resolved = 0
    for notification in store.find_notifications(
        recipient_email=recipient_email,
        types=(notification_type,),
        statuses=ACTIVE_STATUSES,
        subject_email=subject_email or recipient_email,
    ):
        if store.set_notification_status(notification["id"], Status.RESOLVED, expected=ACTIVE_STATUSES):
            resolved += 1
    return resolved


# =============================================================================
# MANUAL TRANSITIONS
# =============================================================================


def _transition(store: Store, notification_id: int, target: str) -> dict:
    notification = store.get_notification(notification_id)
    if notification is None:
        raise NotificationNotFoundError(f"Notification {notification_id} not found")

    allowed_from = MANUAL_TRANSITIONS[target]
    if notification["status"] not in allowed_from:
        raise InvalidTransitionError(
            f"Cannot move notification {notification_id} from {notification['status']} to {target}"
        )

    # Guarded update: a concurrent change makes this a no-op
    if not store.set_notification_status(notification_id, target, expected=allowed_from):
        current = store.get_notification(notification_id)
        raise InvalidTransitionError(
            f"Notification {notification_id} changed to {current['status']} concurrently"
        )
    logger.info("Notification %s: %s -> %s", notification_id, notification["status"], target)
    return store.get_notification(notification_id)


def appeal(store: Store, notification_id: int) -> dict:
    """OPEN -> APPEALED."""
    return _transition(store, notification_id, Status.APPEALED)


def resolve(store: Store, notification_id: int) -> dict:
    """OPEN or APPEALED -> RESOLVED. The only clearance path for lockout and rework alarms."""
    return _transition(store, notification_id, Status.RESOLVED)


def mark_read(store: Store, notification_id: int) -> dict:
    if not store.mark_notification_read(notification_id):
        raise NotificationNotFoundError(f"Notification {notification_id} not found")
    return store.get_notification(notification_id)


# =============================================================================
# MESSAGES
# =============================================================================


def missing_timesheet_message() -> tuple[str, str]:
    return (
        "Incomplete Timesheet Submission",
        "No entry for 24 hrs missing timesheet Log pending hours & Submit before EOD",
    )


def lockout_message(ignored_count: int) -> tuple[str, str]:
    return (
        "Account Locked: Non-Compliance",
        f"You have ignored the timesheet alert {ignored_count} times. "
        "Your account is locked until Manager Approval.",
    )


def overwork_message(user: dict, total_hours: float) -> tuple[str, str]:
    name = user.get("full_name") or user["email"]
    return (
        "Overwork Plan Alert",
        f"User {name} is planned for {total_hours:.1f}h this week (> Limit). "
        "Overtime disabled to prevent burnout.",
    )


def high_rework_message(percent: float, threshold: float) -> tuple[str, str]:
    return (
        "Critical Rework Detected",
        f"Your rework time is at {percent:.1f}%, exceeding the {threshold:g}% threshold. "
        "Task assignments are frozen. Peer review required.",
    )


def rework_message(percent: float, threshold: float) -> tuple[str, str]:
    return (
        "High Rework Detected",
        f"Your rework time is at {percent:.1f}%, exceeding the {threshold:g}% threshold. "
        "Peer review is recommended.",
    )
