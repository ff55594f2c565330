"""
Process wrapper shared by the evaluator scripts.

Opens the store, runs one evaluator, records the run, optionally emails new
notifications, and turns the outcome into an exit code (0 done, 1 fault).
"""

import argparse
import logging
import sqlite3
import time
from datetime import datetime
from pathlib import Path

from core.config import DB_PATH, DEVELOPMENT, PRODUCTION, get_thresholds
from core.database import Store, get_store
from services.email import send_alarm_emails, send_error_email
from services.evaluation import EvaluationResult
from services.lockout import evaluate_lockouts
from services.missing_timesheet import evaluate_missing_timesheets
from services.overwork import evaluate_overwork
from services.rework import evaluate_rework
from services.run_log import RunLog, log_run

logger = logging.getLogger(__name__)

EVALUATORS = {
    "missing_timesheet": evaluate_missing_timesheets,
    "lockout": evaluate_lockouts,
    "overwork": evaluate_overwork,
    "rework": evaluate_rework,
}


def build_parser(description: str) -> argparse.ArgumentParser:
    """Argument parser with the options every evaluator script accepts."""
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument(
        "--now",
        type=datetime.fromisoformat,
        help="Evaluate as of this ISO timestamp (YYYY-MM-DDTHH:MM). Defaults to the current time.",
    )
    parser.add_argument(
        "--mode",
        choices=[DEVELOPMENT, PRODUCTION],
        help="Threshold set to use. Defaults to APP_ENV.",
    )
    parser.add_argument("--db", type=Path, default=DB_PATH, help="SQLite database path")
    parser.add_argument(
        "--email",
        action="store_true",
        help="Email each notification created in this run to its recipient",
    )
    return parser


def _record(store: Store | None, log: RunLog) -> None:
    if store is None:
        return
    try:
        log_run(store, log)
    except sqlite3.Error as e:
        logger.error("Failed to record run %s: %s", log.run_id, e)


async def run_evaluator(
    name: str,
    db_path: Path | str = DB_PATH,
    now: datetime | None = None,
    mode: str | None = None,
    send_emails: bool = False,
) -> int:
    """Run one evaluator end to end and return the process exit code."""
    started = time.monotonic()
    log = RunLog(evaluator=name)
    store = None
    try:
        thresholds = get_thresholds(mode)
        log.mode = thresholds.mode
        store = get_store(db_path)

        result: EvaluationResult = EVALUATORS[name](store, now=now, thresholds=thresholds)

        log.apply(result)
        log.processing_time_ms = int((time.monotonic() - started) * 1000)
        _record(store, log)
        print(result.summary())

        if send_emails and result.created:
            sent = await send_alarm_emails(result.created)
            print(f"Emailed {sent} of {len(result.created)} new notification(s)")

        return 0

    except Exception as e:
        logger.exception("%s check failed", name)
        log.status = "failed"
        log.error_message = str(e)
        log.processing_time_ms = int((time.monotonic() - started) * 1000)
        _record(store, log)
        await send_error_email(e, script=name)
        return 1

    finally:
        if store is not None:
            store.close()
