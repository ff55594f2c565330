"""API Pydantic models."""

from .responses import (
    ErrorCodes,
    ErrorResponse,
    HealthResponse,
    NotificationListResponse,
    NotificationResponse,
)

__all__ = [
    "HealthResponse",
    "NotificationResponse",
    "NotificationListResponse",
    "ErrorResponse",
    "ErrorCodes",
]
