"""FastAPI dependencies for authentication and shared resources."""

import secrets
from collections.abc import Iterator

from fastapi import Header, HTTPException, status

from core.config import ALARMS_API_KEY, DB_PATH
from core.database import Store, get_store


async def verify_api_key(x_api_key: str = Header(..., alias="X-API-Key")) -> str:
    """
    Verify API key from X-API-Key header.

    Raises:
        HTTPException: 401 if key is missing or invalid
    """
    if not ALARMS_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "API key not configured on server",
                "code": "INTERNAL_ERROR",
                "details": [],
            },
        )

    # Use constant-time comparison to prevent timing attacks
    if not secrets.compare_digest(x_api_key, ALARMS_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Invalid or missing API key",
                "code": "UNAUTHORIZED",
                "details": [],
            },
        )

    return x_api_key


def get_db() -> Iterator[Store]:
    """Open a store for the duration of one request."""
    store = get_store(DB_PATH)
    try:
        yield store
    finally:
        store.close()
