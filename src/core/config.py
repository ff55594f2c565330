"""
Configuration constants and environment setup.
"""

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent
DB_PATH = Path(
    os.environ.get("ALARMS_DB_PATH", str(PROJECT_ROOT / "data" / "db" / "timesheet-alarms.db"))
)
OUTPUT_DIR = PROJECT_ROOT / "output"

# =============================================================================
# RUNTIME MODE
# =============================================================================

DEVELOPMENT = "development"
PRODUCTION = "production"

APP_ENV = os.environ.get("APP_ENV", PRODUCTION).lower()
APP_TIMEZONE = os.environ.get("APP_TIMEZONE", "UTC")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# =============================================================================
# EMAIL CONFIGURATION
# =============================================================================

NOTIFICATION_SENDER_NAME = os.environ.get("NOTIFICATION_SENDER_NAME", "Groona Bot")
MAIL_FROM = os.environ.get("MAIL_FROM", "")
ERROR_EMAIL = os.environ.get("ERROR_EMAIL", "")

# =============================================================================
# RULE CONSTANTS
# =============================================================================

DEFAULT_WORK_START = "10:00"
LOCKOUT_THRESHOLD = 3  # ignored alerts before lockout
OVERWORK_DAILY_HOURS = 11
WORK_DAYS_PER_WEEK = 6
REWORK_THRESHOLD_PERCENT = 15
HIGH_REWORK_THRESHOLD_PERCENT = 25
REWORK_LOOKBACK_DAYS = 7

# Statuses are compared lower-cased
ACTIVE_TASK_STATUSES = {"in_progress", "review"}
COMPLETED_TASK_STATUSES = {"completed", "done", "closed", "resolved"}

# Grace period after scheduled work start before a missing timesheet counts
DEV_GRACE_PERIOD = timedelta(minutes=2)
PROD_GRACE_PERIOD = timedelta(hours=24)

# =============================================================================
# MS GRAPH CREDENTIALS (from environment)
# =============================================================================

GRAPH_TENANT_ID = os.environ.get("MICROSOFT_GRAPH_TENANT_ID", "")
GRAPH_APP_ID = os.environ.get("MICROSOFT_GRAPH_APP_ID", "")
GRAPH_CLIENT_SECRET = os.environ.get("MICROSOFT_GRAPH_CLIENT_SECRET", "")

# =============================================================================
# API CONFIGURATION
# =============================================================================

ALARMS_API_KEY = os.environ.get("ALARMS_API_KEY", "")
API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8000"))
API_DEBUG = os.environ.get("API_DEBUG", "false").lower() == "true"
API_VERSION = "1.0.0"


# =============================================================================
# MODE-DEPENDENT THRESHOLDS
# =============================================================================


@dataclass(frozen=True)
class Thresholds:
    """Rule parameters resolved for one runtime mode."""

    mode: str
    grace_period: timedelta
    target_day_offset: int  # days back from today for the daily activity log
    default_work_start: str = DEFAULT_WORK_START
    lockout_threshold: int = LOCKOUT_THRESHOLD
    overwork_threshold_hours: float = OVERWORK_DAILY_HOURS * WORK_DAYS_PER_WEEK
    rework_threshold_percent: float = REWORK_THRESHOLD_PERCENT
    high_rework_threshold_percent: float = HIGH_REWORK_THRESHOLD_PERCENT
    rework_lookback_days: int = REWORK_LOOKBACK_DAYS


def get_thresholds(mode: str | None = None) -> Thresholds:
    """
    Build thresholds for the given mode (defaults to APP_ENV).

    Development checks today's log with a 2-minute grace period and a single-day
    overwork limit; production checks yesterday's log with 24 hours of grace and
    a weekly limit. GRACE_PERIOD_MINUTES and OVERWORK_THRESHOLD_HOURS override
    either mode.
    """
    mode = (mode or APP_ENV).lower()
    if mode not in (DEVELOPMENT, PRODUCTION):
        raise ValueError(f"Unknown mode '{mode}', expected '{DEVELOPMENT}' or '{PRODUCTION}'")

    if mode == DEVELOPMENT:
        grace_period = DEV_GRACE_PERIOD
        target_day_offset = 0
        overwork_threshold = float(OVERWORK_DAILY_HOURS)
    else:
        grace_period = PROD_GRACE_PERIOD
        target_day_offset = 1
        overwork_threshold = float(OVERWORK_DAILY_HOURS * WORK_DAYS_PER_WEEK)

    grace_override = os.environ.get("GRACE_PERIOD_MINUTES")
    if grace_override:
        grace_period = timedelta(minutes=float(grace_override))

    overwork_override = os.environ.get("OVERWORK_THRESHOLD_HOURS")
    if overwork_override:
        overwork_threshold = float(overwork_override)

    return Thresholds(
        mode=mode,
        grace_period=grace_period,
        target_day_offset=target_day_offset,
        overwork_threshold_hours=overwork_threshold,
    )
