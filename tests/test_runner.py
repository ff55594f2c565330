"""Tests for the evaluator process wrapper."""

import asyncio
import sqlite3

import pytest

from core.database import Store, get_store
from services import runner
from services.evaluation import EvaluationResult
from services.runner import EVALUATORS, build_parser, run_evaluator


@pytest.fixture(autouse=True)
def no_error_email(monkeypatch):
    sent = []

    async def record(error, script="script"):
        sent.append(script)

    monkeypatch.setattr(runner, "send_error_email", record)
    return sent


def _runs(db_file):
    with get_store(db_file) as store:
        return store.find_runs()


def test_successful_run_is_recorded(db_file, now):
    with get_store(db_file) as store:
        store.insert_user("viewer@acme.com", role="member", custom_role="viewer", status="active")

    exit_code = asyncio.run(run_evaluator("missing_timesheet", db_file, now, "production"))

    runs = _runs(db_file)
    assert exit_code == 0
    assert len(runs) == 1
    assert runs[0]["evaluator"] == "missing_timesheet"
    assert runs[0]["mode"] == "production"
    assert runs[0]["status"] == "completed"
    assert runs[0]["users_checked"] == 1


def test_per_user_errors_still_exit_zero(db_file, now, monkeypatch):
    def partial(store, now=None, thresholds=None):
        return EvaluationResult("rework", users_checked=3, errors=1)

    monkeypatch.setitem(EVALUATORS, "rework", partial)

    exit_code = asyncio.run(run_evaluator("rework", db_file, now, "production"))

    assert exit_code == 0
    assert _runs(db_file)[0]["status"] == "completed_with_errors"


def test_evaluator_crash_exits_one(db_file, now, monkeypatch, no_error_email):
    def crash(store, now=None, thresholds=None):
        raise RuntimeError("query failed")

    monkeypatch.setitem(EVALUATORS, "overwork", crash)

    exit_code = asyncio.run(run_evaluator("overwork", db_file, now, "production"))

    runs = _runs(db_file)
    assert exit_code == 1
    assert runs[0]["status"] == "failed"
    assert runs[0]["error_message"] == "query failed"
    assert no_error_email == ["overwork"]


def test_missing_database_exits_one(tmp_path, now, no_error_email):
    exit_code = asyncio.run(run_evaluator("lockout", tmp_path / "absent.db", now, "production"))

    assert exit_code == 1
    assert no_error_email == ["lockout"]


def test_new_notifications_are_emailed(db_file, now, monkeypatch):
    emailed = []

    def creating(store, now=None, thresholds=None):
        result = EvaluationResult("lockout")
        result.record_created({"id": 7, "recipient_email": "viewer@acme.com"})
        return result

    async def send(notifications):
        emailed.extend(n["id"] for n in notifications)
        return len(notifications)

    monkeypatch.setitem(EVALUATORS, "lockout", creating)
    monkeypatch.setattr(runner, "send_alarm_emails", send)

    asyncio.run(run_evaluator("lockout", db_file, now, "production", send_emails=True))

    assert emailed == [7]


def test_parser_reads_now_and_mode():
    args = build_parser("test").parse_args(["--now", "2026-01-20T11:00", "--mode", "development", "--email"])

    assert args.now.hour == 11
    assert args.mode == "development"
    assert args.email


def test_store_lost_mid_sweep_exits_one(db_file, now, monkeypatch):
    with get_store(db_file) as store:
        store.insert_user("viewer@acme.com", role="member", custom_role="viewer", status="active")

    def gone(self, user_id, day):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(Store, "find_daily_log", gone)

    exit_code = asyncio.run(run_evaluator("missing_timesheet", db_file, now, "production"))

    assert exit_code == 1
    assert _runs(db_file)[0]["status"] == "failed"
