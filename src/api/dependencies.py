"""FastAPI dependencies for authentication and shared resources."""

import secrets
from collections.abc import AsyncIterator
from datetime import date

from fastapi import Header, HTTPException, status

from core.config import RAPPORT_API_KEY
from core.database import get_connection
from services.email import get_transport


async def verify_api_key(x_api_key: str = Header(..., alias="X-API-Key")) -> str:
    """
    Verify API key from X-API-Key header.

    Raises:
        HTTPException: 401 if key is missing or invalid
    """
    if not RAPPORT_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "API key not configured on server",
                "code": "INTERNAL_ERROR",
                "details": [],
            },
        )

    # Use constant-time comparison to prevent timing attacks
    if not secrets.compare_digest(x_api_key, RAPPORT_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Invalid or missing API key",
                "code": "UNAUTHORIZED",
                "details": [],
            },
        )

    return x_api_key


async def get_db() -> AsyncIterator:
    """One SQLite connection per request, used on the event loop thread."""
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


def get_transport_factory():
    """Factory building the configured mail transport (overridable in tests)."""
    return get_transport


def get_today() -> date:
    """Reference date for range presets when the client sends none."""
    return date.today()
