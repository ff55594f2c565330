"""
SQLite store for users, tasks, timesheets, activity logs and notifications.

One Store is opened per process run and handed to each evaluator.
"""

import sqlite3
from datetime import date, datetime, timezone
from pathlib import Path

from core.config import DB_PATH
from core.validation import normalize_date, validate_timesheet
from models.records import ActivityLog, Notification, Task, Timesheet, User

ACTIVE_NOTIFICATION_STATUSES = ("OPEN", "APPEALED")

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email TEXT UNIQUE NOT NULL,
    full_name TEXT NOT NULL DEFAULT '',
    tenant_id TEXT NOT NULL DEFAULT 'default',
    role TEXT NOT NULL DEFAULT 'member',
    custom_role TEXT,
    status TEXT NOT NULL DEFAULT 'active',
    is_overloaded INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS activity_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    email TEXT,
    tenant_id TEXT,
    event_type TEXT NOT NULL DEFAULT 'daily',
    log_date TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    scheduled_working_start TEXT,
    total_assigned_tasks INTEGER NOT NULL DEFAULT 0,
    submitted_timesheets_count INTEGER NOT NULL DEFAULT 0,
    ignored_alert_count INTEGER NOT NULL DEFAULT 0,
    rework_percentage REAL,
    FOREIGN KEY (user_id) REFERENCES users(id)
);

CREATE TABLE IF NOT EXISTS tasks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    tenant_id TEXT NOT NULL DEFAULT 'default',
    title TEXT NOT NULL DEFAULT '',
    status TEXT NOT NULL DEFAULT 'todo',
    due_date TEXT,
    estimated_hours REAL,
    story_points REAL,
    assigned_to TEXT
);

CREATE TABLE IF NOT EXISTS timesheets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_email TEXT NOT NULL,
    tenant_id TEXT NOT NULL DEFAULT 'default',
    date TEXT NOT NULL,
    hours REAL NOT NULL DEFAULT 0,
    minutes REAL NOT NULL DEFAULT 0,
    work_type TEXT
);

CREATE TABLE IF NOT EXISTS notifications (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    tenant_id TEXT NOT NULL DEFAULT 'default',
    recipient_email TEXT NOT NULL,
    user_id INTEGER,
    subject_email TEXT NOT NULL,
    rule_id TEXT,
    scope TEXT NOT NULL DEFAULT 'user',
    type TEXT NOT NULL,
    category TEXT NOT NULL CHECK(category IN ('alert', 'alarm')),
    status TEXT NOT NULL CHECK(status IN ('OPEN', 'RESOLVED', 'APPEALED')),
    title TEXT NOT NULL,
    message TEXT NOT NULL,
    read INTEGER NOT NULL DEFAULT 0,
    sender_name TEXT,
    created_date TEXT NOT NULL,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS evaluator_runs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    run_id TEXT UNIQUE NOT NULL,
    evaluator TEXT NOT NULL,
    mode TEXT NOT NULL,
    started_at TEXT NOT NULL,
    status TEXT NOT NULL CHECK(status IN ('completed', 'completed_with_errors', 'failed')),
    users_checked INTEGER NOT NULL DEFAULT 0,
    notifications_created INTEGER NOT NULL DEFAULT 0,
    notifications_resolved INTEGER NOT NULL DEFAULT 0,
    errors INTEGER NOT NULL DEFAULT 0,
    error_message TEXT,
    processing_time_ms INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_users_scope ON users(role, custom_role, status);
CREATE INDEX IF NOT EXISTS idx_activity_logs_user_day ON activity_logs(user_id, log_date, event_type);
CREATE INDEX IF NOT EXISTS idx_tasks_assigned_to ON tasks(assigned_to);
CREATE INDEX IF NOT EXISTS idx_timesheets_user_date ON timesheets(user_email, date);
CREATE INDEX IF NOT EXISTS idx_notifications_type_status ON notifications(type, status);

-- At most one active notification per (recipient, type, subject)
CREATE UNIQUE INDEX IF NOT EXISTS idx_notifications_active
    ON notifications(recipient_email, type, subject_email)
    WHERE status IN ('OPEN', 'APPEALED');
"""

NOTIFICATION_COLUMNS = (
    "tenant_id",
    "recipient_email",
    "user_id",
    "subject_email",
    "rule_id",
    "scope",
    "type",
    "category",
    "status",
    "title",
    "message",
    "read",
    "sender_name",
    "created_date",
    "updated_at",
)


class StoreError(Exception):
    """The data store could not be opened or queried."""


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _in_clause(values) -> str:
    return ", ".join("?" for _ in values)


# SQLite names the columns, not the index, when a unique index rejects a row
ACTIVE_DUPLICATE_MESSAGE = (
    "UNIQUE constraint failed: notifications.recipient_email, "
    "notifications.type, notifications.subject_email"
)


def _is_active_duplicate(error: sqlite3.IntegrityError) -> bool:
    """True when the error came from idx_notifications_active."""
    return ACTIVE_DUPLICATE_MESSAGE in str(error)


def init_schema(conn: sqlite3.Connection) -> None:
    """Create tables and indexes if they don't exist."""
    conn.executescript(SCHEMA)


def get_connection(db_path: Path | str = DB_PATH) -> sqlite3.Connection:
    """Get a database connection in autocommit mode with dict-like rows."""
    conn = sqlite3.connect(db_path, timeout=30, isolation_level=None, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def get_store(db_path: Path | str = DB_PATH) -> "Store":
    """
    Open the store for one run.

    Raises:
        StoreError: database missing, unreadable, or not initialised
    """
    if str(db_path) != ":memory:" and not Path(db_path).exists():
        raise StoreError(f"Database not found at {db_path}; run src/scripts/init_db.py first")
    try:
        conn = get_connection(db_path)
        conn.execute("SELECT 1 FROM notifications LIMIT 1")
    except sqlite3.Error as e:
        raise StoreError(f"Cannot open database at {db_path}: {e}") from e
    return Store(conn)


class Store:
    """Explicit handle over one SQLite connection."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _all(self, sql: str, params=()) -> list[dict]:
        return [dict(row) for row in self.conn.execute(sql, params).fetchall()]

    def _one(self, sql: str, params=()) -> dict | None:
        row = self.conn.execute(sql, params).fetchone()
        return dict(row) if row else None

    def _insert(self, table: str, record: dict) -> int:
        columns = list(record)
        cursor = self.conn.execute(
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({_in_clause(columns)})",
            [record[c] for c in columns],
        )
        return cursor.lastrowid

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def insert_user(self, email: str, **fields) -> int:
        return self._insert("users", {"email": email, **fields})

    def get_user(self, user_id: int) -> User | None:
        return self._one("SELECT * FROM users WHERE id = ?", (user_id,))

    def find_users(
        self,
        role: str | None = None,
        custom_role: str | None = None,
        status: str | None = None,
        exclude_status: str | None = None,
        tenant_id: str | None = None,
    ) -> list[User]:
        """Find users matching every given equality filter."""
        clauses, params = [], []
        for column, value in (
            ("role", role),
            ("custom_role", custom_role),
            ("status", status),
            ("tenant_id", tenant_id),
        ):
            if value is not None:
                clauses.append(f"{column} = ?")
                params.append(value)
        if exclude_status is not None:
            clauses.append("status != ?")
            params.append(exclude_status)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return self._all(f"SELECT * FROM users {where} ORDER BY id", params)

    def find_project_managers(self, tenant_id: str) -> list[User]:
        return self.find_users(custom_role="project_manager", tenant_id=tenant_id)

    def set_user_overloaded(self, user_id: int, overloaded: bool) -> None:
        self.conn.execute(
            "UPDATE users SET is_overloaded = ? WHERE id = ?", (int(overloaded), user_id)
        )

    # -------------------------------------------------------------------------
    # Activity logs
    # -------------------------------------------------------------------------

    def insert_activity_log(self, user_id: int, log_date: date | str, timestamp: str, **fields) -> int:
        record = {
            "user_id": user_id,
            "log_date": normalize_date(log_date),
            "timestamp": timestamp,
            **fields,
        }
        return self._insert("activity_logs", record)

    def find_daily_log(self, user_id: int, day: date) -> ActivityLog | None:
        """Find the user's daily activity log for one day."""
        return self._one(
            """
            SELECT * FROM activity_logs
            WHERE user_id = ? AND log_date = ? AND event_type = 'daily'
            ORDER BY id LIMIT 1
            """,
            (user_id, day.isoformat()),
        )

    def find_activity_logs(self, user_id: int, event_type: str | None = None) -> list[ActivityLog]:
        if event_type is None:
            return self._all("SELECT * FROM activity_logs WHERE user_id = ? ORDER BY id", (user_id,))
        return self._all(
            "SELECT * FROM activity_logs WHERE user_id = ? AND event_type = ? ORDER BY id",
            (user_id, event_type),
        )

    def increment_ignored_alert_count(self, log_id: int) -> int:
        """Atomically add one to ignored_alert_count and return the new value."""
        self.conn.execute(
            "UPDATE activity_logs SET ignored_alert_count = ignored_alert_count + 1 WHERE id = ?",
            (log_id,),
        )
        row = self._one("SELECT ignored_alert_count FROM activity_logs WHERE id = ?", (log_id,))
        return row["ignored_alert_count"] if row else 0

    # -------------------------------------------------------------------------
    # Tasks and timesheets
    # -------------------------------------------------------------------------

    def insert_task(self, assigned_to: str, **fields) -> int:
        if "due_date" in fields:
            fields["due_date"] = normalize_date(fields["due_date"])
        return self._insert("tasks", {"assigned_to": assigned_to, **fields})

    def find_tasks_assigned_to(self, email: str) -> list[Task]:
        return self._all("SELECT * FROM tasks WHERE assigned_to = ? ORDER BY id", (email,))

    def insert_timesheet(self, entry: dict) -> int:
        """Validate, normalise the date, and insert a timesheet entry."""
        return self._insert("timesheets", validate_timesheet(entry))

    def find_timesheets_since(self, email: str, since: date) -> list[Timesheet]:
        return self._all(
            "SELECT * FROM timesheets WHERE user_email = ? AND date >= ? ORDER BY date, id",
            (email, since.isoformat()),
        )

    def find_recent_timesheets(self, email: str, limit: int = 10) -> list[Timesheet]:
        return self._all(
            "SELECT * FROM timesheets WHERE user_email = ? ORDER BY date DESC, id DESC LIMIT ?",
            (email, limit),
        )

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def get_notification(self, notification_id: int) -> Notification | None:
        return self._one("SELECT * FROM notifications WHERE id = ?", (notification_id,))

    def find_notifications(
        self,
        recipient_email: str | None = None,
        types: tuple[str, ...] | list[str] | None = None,
        statuses: tuple[str, ...] | list[str] | None = None,
        subject_email: str | None = None,
        tenant_id: str | None = None,
    ) -> list[Notification]:
        clauses, params = [], []
        for column, value in (
            ("recipient_email", recipient_email),
            ("subject_email", subject_email),
            ("tenant_id", tenant_id),
        ):
            if value is not None:
                clauses.append(f"{column} = ?")
                params.append(value)
        if types:
            clauses.append(f"type IN ({_in_clause(types)})")
            params.extend(types)
        if statuses:
            clauses.append(f"status IN ({_in_clause(statuses)})")
            params.extend(statuses)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return self._all(f"SELECT * FROM notifications {where} ORDER BY id", params)

    def has_active_notification(
        self, recipient_email: str, types: tuple[str, ...] | list[str], subject_email: str | None = None
    ) -> bool:
        return bool(
            self.find_notifications(
                recipient_email=recipient_email,
                types=types,
                statuses=ACTIVE_NOTIFICATION_STATUSES,
                subject_email=subject_email or recipient_email,
            )
        )

    def insert_notification_if_absent(
        self, record: dict, blocking_types: tuple[str, ...] | list[str] | None = None
    ) -> int | None:
        """
        Insert an OPEN notification unless an active one already blocks it.

        The existence check and insert run as one statement inside an IMMEDIATE
        transaction; the partial unique index on active notifications rejects
        anything that slips past. Returns the new id, or None when blocked.
        Any other constraint failure (missing field, bad category) is raised.

        Args:
            record: notification fields (see NOTIFICATION_COLUMNS)
            blocking_types: types whose active notifications for the same
                recipient/subject suppress this one. Defaults to the record's type.
        """
        values = {c: record.get(c) for c in NOTIFICATION_COLUMNS}
        values["tenant_id"] = values["tenant_id"] or "default"
        values["status"] = values["status"] or "OPEN"
        values["read"] = values["read"] or 0
        values["scope"] = values["scope"] or "user"
        values["created_date"] = values["created_date"] or _now_iso()
        values["subject_email"] = values["subject_email"] or values["recipient_email"]
        blocking = tuple(blocking_types or (values["type"],))

        sql = f"""
            INSERT INTO notifications ({', '.join(NOTIFICATION_COLUMNS)})
            SELECT {_in_clause(NOTIFICATION_COLUMNS)}
            WHERE NOT EXISTS (
                SELECT 1 FROM notifications
                WHERE recipient_email = ? AND subject_email = ?
                  AND type IN ({_in_clause(blocking)})
                  AND status IN ({_in_clause(ACTIVE_NOTIFICATION_STATUSES)})
            )
        """
        params = [
            *(values[c] for c in NOTIFICATION_COLUMNS),
            values["recipient_email"],
            values["subject_email"],
            *blocking,
            *ACTIVE_NOTIFICATION_STATUSES,
        ]

        self.conn.execute("BEGIN IMMEDIATE")
        try:
            cursor = self.conn.execute(sql, params)
            self.conn.execute("COMMIT")
        except sqlite3.IntegrityError as e:
            self.conn.execute("ROLLBACK")
            if _is_active_duplicate(e):
                return None
            raise
        except sqlite3.Error:
            self.conn.execute("ROLLBACK")
            raise
        return cursor.lastrowid if cursor.rowcount == 1 else None

    def set_notification_status(
        self, notification_id: int, status: str, expected: tuple[str, ...] | None = None
    ) -> bool:
        """
        Update a notification's status, optionally only from the expected statuses.

        Returns True when a row changed.
        """
        sql = "UPDATE notifications SET status = ?, updated_at = ? WHERE id = ?"
        params: list = [status, _now_iso(), notification_id]
        if expected:
            sql += f" AND status IN ({_in_clause(expected)})"
            params.extend(expected)
        return self.conn.execute(sql, params).rowcount == 1

    def mark_notification_read(self, notification_id: int) -> bool:
        cursor = self.conn.execute(
            "UPDATE notifications SET read = 1, updated_at = ? WHERE id = ?",
            (_now_iso(), notification_id),
        )
        return cursor.rowcount == 1

    # -------------------------------------------------------------------------
    # Run log
    # -------------------------------------------------------------------------

    def insert_run(self, record: dict) -> int:
        return self._insert("evaluator_runs", record)

    def find_runs(self, evaluator: str | None = None) -> list[dict]:
        if evaluator is None:
            return self._all("SELECT * FROM evaluator_runs ORDER BY id")
        return self._all(
            "SELECT * FROM evaluator_runs WHERE evaluator = ? ORDER BY id", (evaluator,)
        )
