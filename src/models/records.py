"""
Data models for store records.

Rows come back from SQLite as plain dicts; these TypedDicts describe their keys.
"""

from typing import TypedDict


class User(TypedDict):
    """Account owned by the external account system."""
    id: int
    email: str
    full_name: str
    tenant_id: str
    role: str
    custom_role: str | None
    status: str
    is_overloaded: int


class ActivityLog(TypedDict):
    """Per-user daily log, or a rework audit record."""
    id: int
    user_id: int
    email: str
    tenant_id: str
    event_type: str
    log_date: str
    timestamp: str
    scheduled_working_start: str | None
    total_assigned_tasks: int
    submitted_timesheets_count: int
    ignored_alert_count: int
    rework_percentage: float | None


class Task(TypedDict):
    """Assigned unit of work."""
    id: int
    tenant_id: str
    title: str
    status: str
    due_date: str | None
    estimated_hours: float | None
    story_points: float | None
    assigned_to: str


class Timesheet(TypedDict):
    """Logged time entry."""
    id: int
    user_email: str
    tenant_id: str
    date: str
    hours: float
    minutes: float
    work_type: str | None


class Notification(TypedDict):
    """Alert or alarm raised by an evaluator."""
    id: int
    tenant_id: str
    recipient_email: str
    user_id: int | None
    subject_email: str
    rule_id: str | None
    scope: str
    type: str
    category: str
    status: str
    title: str
    message: str
    read: int
    sender_name: str | None
    created_date: str
    updated_at: str | None
