"""Health check endpoint."""

import sqlite3
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from api.models.responses import HealthResponse
from core.config import API_VERSION, DB_PATH

router = APIRouter()


def database_available() -> bool:
    """True if the database file exists and has the reports table."""
    if not DB_PATH.exists():
        return False
    conn = sqlite3.connect(DB_PATH)
    try:
        row = conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'reports'"
        ).fetchone()
        return row is not None
    except sqlite3.Error:
        return False
    finally:
        conn.close()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint for monitoring.

    Returns 200 if healthy, 503 if unhealthy.
    """
    available = database_available()
    timestamp = datetime.now(timezone.utc).isoformat()

    if available:
        return HealthResponse(
            status="healthy",
            version=API_VERSION,
            database_available=True,
            timestamp=timestamp,
        )
    else:
        return JSONResponse(
            status_code=503,
            content=HealthResponse(
                status="unhealthy",
                version=API_VERSION,
                database_available=False,
                timestamp=timestamp,
                error="Database not initialized (run src/scripts/init_db.py)",
            ).model_dump(),
        )
