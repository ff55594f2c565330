"""Tests for date windows and workload/rework metrics."""

from datetime import date, datetime, time, timezone

import pytest

from services.aggregation import (
    as_local,
    is_relevant_task,
    planned_workload,
    rework_percent,
    rework_totals,
    target_day,
    task_hours,
    week_bounds,
    work_start_time,
)

MONDAY = date(2026, 1, 19)
SUNDAY = date(2026, 1, 25)


def test_week_bounds_from_midweek_and_sunday():
    assert week_bounds(date(2026, 1, 21)) == (MONDAY, SUNDAY)
    assert week_bounds(SUNDAY) == (MONDAY, SUNDAY)


def test_target_day(now):
    assert target_day(now, 0) == date(2026, 1, 21)
    assert target_day(now, 1) == date(2026, 1, 20)


def test_as_local_attaches_timezone_to_naive():
    assert as_local(datetime(2026, 1, 21, 9, 0)).tzinfo is not None


def test_work_start_time(now):
    start = work_start_time({"scheduled_working_start": "08:45"}, date(2026, 1, 20), now)

    assert start == datetime(2026, 1, 20, 8, 45, tzinfo=timezone.utc)


def test_work_start_time_default(now):
    start = work_start_time({}, date(2026, 1, 20), now)

    assert start.time() == time(10, 0)


@pytest.mark.parametrize(
    "task, expected",
    [
        ({"status": "In_Progress"}, True),
        ({"status": "review", "due_date": "2026-03-01"}, True),
        ({"status": "todo", "due_date": "2026-01-25"}, True),
        ({"status": "done", "due_date": "2026-01-20"}, True),
        ({"status": "todo", "due_date": "2026-01-02"}, True),
        ({"status": "completed", "due_date": "2026-01-02"}, False),
        ({"status": "todo", "due_date": "2026-01-26"}, False),
        ({"status": "todo"}, False),
    ],
)
def test_is_relevant_task(task, expected):
    assert is_relevant_task(task, MONDAY, SUNDAY) is expected


def test_task_hours_prefers_estimate():
    assert task_hours({"estimated_hours": 3, "story_points": 5}) == 3.0
    assert task_hours({"estimated_hours": 0, "story_points": 5}) == 10.0
    assert task_hours({}) == 0.0


def test_planned_workload():
    tasks = [
        {"status": "in_progress", "estimated_hours": 4},
        {"status": "todo", "due_date": "2026-01-22", "story_points": 2},
        {"status": "todo", "due_date": "2026-02-22", "estimated_hours": 50},
    ]

    total, relevant = planned_workload(tasks, date(2026, 1, 21))

    assert total == 8.0
    assert len(relevant) == 2


def test_rework_totals_and_percent():
    entries = [
        {"hours": 2, "minutes": 30, "work_type": "development"},
        {"hours": 0, "minutes": 30, "work_type": "rework"},
        {"hours": None, "minutes": None, "work_type": "rework"},
    ]

    total, rework = rework_totals(entries)

    assert (total, rework) == (180.0, 30.0)
    assert rework_percent(total, rework) == pytest.approx(16.667, abs=0.001)


def test_rework_percent_without_time():
    assert rework_percent(0, 0) is None
