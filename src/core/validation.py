"""
Record validation and normalisation applied at write time.
"""

from datetime import date, datetime, time

from dateutil import parser as date_parser

from core.config import DEFAULT_WORK_START


def normalize_date(value) -> str | None:
    """
    Normalise a loosely typed date to ISO 'YYYY-MM-DD'.

    Accepts date/datetime objects, ISO strings and locale strings such as
    'Mon Jan 19 2026 10:00:00 GMT+0000 (Coordinated Universal Time)'.
    Returns None for empty values; raises ValueError when unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    text = str(value).strip()
    # Drop the trailing "(Zone Name)" some clients append
    if "(" in text:
        text = text.split("(")[0].strip()
    try:
        parsed = date_parser.parse(text)
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Unrecognised date '{value}'") from e
    return parsed.date().isoformat()


def parse_work_start(value: str | None, default: str = DEFAULT_WORK_START) -> time:
    """Parse an 'HH:MM' scheduled start, falling back to the default when malformed."""
    for candidate in (value, default):
        if not candidate:
            continue
        parts = candidate.split(":")
        if len(parts) < 2:
            continue
        try:
            hour, minute = int(parts[0]), int(parts[1])
            return time(hour, minute)
        except ValueError:
            continue
    return time(10, 0)


def validate_timesheet(entry: dict) -> dict:
    """
    Validate a timesheet entry and return a normalised copy.

    Checks:
    1. user_email and date are present
    2. hours/minutes are non-negative numbers
    """
    errors = []
    if not entry.get("user_email"):
        errors.append("Missing user_email")

    try:
        entry_date = normalize_date(entry.get("date"))
    except ValueError as e:
        entry_date = None
        errors.append(str(e))
    if entry.get("date") in (None, ""):
        errors.append("Missing date")

    hours = entry.get("hours") or 0
    minutes = entry.get("minutes") or 0
    if not isinstance(hours, (int, float)) or hours < 0:
        errors.append(f"Invalid hours '{hours}'")
    if not isinstance(minutes, (int, float)) or minutes < 0:
        errors.append(f"Invalid minutes '{minutes}'")

    if errors:
        raise ValueError("; ".join(errors))

    return {**entry, "date": entry_date, "hours": hours, "minutes": minutes}
