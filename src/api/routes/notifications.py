"""Notification listing and manual status transitions."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.dependencies import get_db, verify_api_key
from api.models.responses import ErrorCodes, NotificationListResponse, NotificationResponse
from core.database import Store
from services import notifications as lifecycle
from services.notifications import InvalidTransitionError, NotificationNotFoundError

router = APIRouter(prefix="/v1", dependencies=[Depends(verify_api_key)])

StoreDep = Annotated[Store, Depends(get_db)]


def _apply(action, store: Store, notification_id: int) -> NotificationResponse:
    """Run a lifecycle action and map its errors to HTTP responses."""
    try:
        notification = action(store, notification_id)
    except NotificationNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": str(e), "code": ErrorCodes.NOT_FOUND, "details": []},
        )
    except InvalidTransitionError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": str(e), "code": ErrorCodes.INVALID_TRANSITION, "details": []},
        )
    return NotificationResponse(**notification)


@router.get("/notifications", response_model=NotificationListResponse)
def list_notifications(
    store: StoreDep,
    recipient_email: str | None = None,
    notification_status: Annotated[str | None, Query(alias="status", pattern="^(OPEN|RESOLVED|APPEALED)$")] = None,
    notification_type: Annotated[str | None, Query(alias="type")] = None,
):
    """List notifications, optionally filtered by recipient, status and type."""
    rows = store.find_notifications(
        recipient_email=recipient_email,
        types=(notification_type,) if notification_type else None,
        statuses=(notification_status,) if notification_status else None,
    )
    return NotificationListResponse(
        count=len(rows), notifications=[NotificationResponse(**row) for row in rows]
    )


@router.post("/notifications/{notification_id}/appeal", response_model=NotificationResponse)
def appeal_notification(notification_id: int, store: StoreDep):
    """OPEN -> APPEALED."""
    return _apply(lifecycle.appeal, store, notification_id)


@router.post("/notifications/{notification_id}/resolve", response_model=NotificationResponse)
def resolve_notification(notification_id: int, store: StoreDep):
    """OPEN or APPEALED -> RESOLVED (manual clearance)."""
    return _apply(lifecycle.resolve, store, notification_id)


@router.post("/notifications/{notification_id}/read", response_model=NotificationResponse)
def read_notification(notification_id: int, store: StoreDep):
    """Mark a notification as read."""
    return _apply(lifecycle.mark_read, store, notification_id)
