"""
Date windows and per-user metrics over activity logs, tasks and timesheets.
"""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from core.config import (
    ACTIVE_TASK_STATUSES,
    APP_TIMEZONE,
    COMPLETED_TASK_STATUSES,
    DEFAULT_WORK_START,
)
from core.validation import parse_work_start


# =============================================================================
# CLOCK AND WINDOWS
# =============================================================================


def local_now(tz_name: str = APP_TIMEZONE) -> datetime:
    """Current time in the configured timezone."""
    return datetime.now(ZoneInfo(tz_name))


def as_local(now: datetime | None, tz_name: str = APP_TIMEZONE) -> datetime:
    """Return an aware datetime; naive values are taken to be in the configured timezone."""
    if now is None:
        return local_now(tz_name)
    if now.tzinfo is None:
        return now.replace(tzinfo=ZoneInfo(tz_name))
    return now


def target_day(now: datetime, offset_days: int) -> date:
    """Day whose daily activity log is evaluated (0 = today, 1 = yesterday)."""
    return now.date() - timedelta(days=offset_days)


def work_start_time(log: dict, day: date, now: datetime, default: str = DEFAULT_WORK_START) -> datetime:
    """The moment work was scheduled to start on the given day."""
    start = parse_work_start(log.get("scheduled_working_start"), default)
    return datetime.combine(day, start, tzinfo=now.tzinfo)


def week_bounds(today: date) -> tuple[date, date]:
    """Monday and Sunday of the week containing today."""
    monday = today - timedelta(days=today.weekday())
    return monday, monday + timedelta(days=6)


# =============================================================================
# WORKLOAD
# =============================================================================


def _parse_day(value) -> date | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def is_relevant_task(task: dict, week_start: date, week_end: date) -> bool:
    """
    Check whether a task counts toward current planned workload.

    Counts:
    1. Active work (in progress / review), regardless of due date
    2. Anything due this week
    3. Overdue work that is not completed
    """
    status = (task.get("status") or "").lower()
    if status in ACTIVE_TASK_STATUSES:
        return True

    due = _parse_day(task.get("due_date"))
    if due is None:
        return False
    if week_start <= due <= week_end:
        return True
    return due < week_start and status not in COMPLETED_TASK_STATUSES


def task_hours(task: dict) -> float:
    """Estimated hours, falling back to two hours per story point."""
    hours = task.get("estimated_hours") or 0
    if not hours and task.get("story_points"):
        hours = task["story_points"] * 2
    return float(hours)


def planned_workload(tasks: list[dict], today: date) -> tuple[float, list[dict]]:
    """Sum estimated hours over the tasks relevant to this week."""
    week_start, week_end = week_bounds(today)
    relevant = [t for t in tasks if is_relevant_task(t, week_start, week_end)]
    return sum(task_hours(t) for t in relevant), relevant


# =============================================================================
# REWORK
# =============================================================================


def entry_minutes(entry: dict) -> float:
    return (entry.get("hours") or 0) * 60 + (entry.get("minutes") or 0)


def rework_totals(timesheets: list[dict]) -> tuple[float, float]:
    """Return (total_minutes, rework_minutes)."""
    total = 0.0
    rework = 0.0
    for entry in timesheets:
        minutes = entry_minutes(entry)
        total += minutes
        if entry.get("work_type") == "rework":
            rework += minutes
    return total, rework


def rework_percent(total_minutes: float, rework_minutes: float) -> float | None:
    """Rework share of logged time, or None when nothing was logged."""
    if total_minutes == 0:
        return None
    return rework_minutes / total_minutes * 100
