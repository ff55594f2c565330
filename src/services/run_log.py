"""SQLite run logging for evaluator sweeps."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from core.database import Store
from services.evaluation import EvaluationResult


@dataclass
class RunLog:
    """Captured outcome of one evaluator run."""

    evaluator: str
    mode: str = ""
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    status: str = "completed"
    users_checked: int = 0
    notifications_created: int = 0
    notifications_resolved: int = 0
    errors: int = 0
    error_message: str | None = None
    processing_time_ms: int = 0

    def apply(self, result: EvaluationResult) -> None:
        """Copy counters from an evaluation result."""
        self.users_checked = result.users_checked
        self.notifications_created = result.notifications_created
        self.notifications_resolved = result.notifications_resolved
        self.errors = result.errors
        self.status = "completed_with_errors" if result.errors else "completed"


def log_run(store: Store, log: RunLog) -> int:
    """Write run log to the evaluator_runs table."""
    return store.insert_run(
        {
            "run_id": log.run_id,
            "evaluator": log.evaluator,
            "mode": log.mode,
            "started_at": log.started_at,
            "status": log.status,
            "users_checked": log.users_checked,
            "notifications_created": log.notifications_created,
            "notifications_resolved": log.notifications_resolved,
            "errors": log.errors,
            "error_message": log.error_message,
            "processing_time_ms": log.processing_time_ms,
        }
    )
