"""Pydantic response models for API endpoints."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""

    status: str  # "healthy" or "unhealthy"
    version: str
    database_available: bool
    timestamp: str  # ISO 8601 UTC
    error: str | None = None


class NotificationResponse(BaseModel):
    """A single notification."""

    id: int
    tenant_id: str
    recipient_email: str
    user_id: int | None = None
    subject_email: str
    rule_id: str | None = None
    type: str
    category: str
    status: str
    title: str
    message: str
    read: bool
    sender_name: str | None = None
    created_date: str
    updated_at: str | None = None


class NotificationListResponse(BaseModel):
    count: int
    notifications: list[NotificationResponse]


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str
    details: list[str] = []


class ErrorCodes:
    """Error code constants."""

    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    INTERNAL_ERROR = "INTERNAL_ERROR"
