"""SQLite request logging for API."""

import sqlite3
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone

from fastapi import HTTPException, Request, status

from api.models.responses import ErrorCodes
from core.config import DB_PATH
from services.aggregation import InvalidRangeError, InvalidUnitError
from services.email import MailError


@dataclass
class RequestLog:
    """Captured request/response data for logging."""

    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    endpoint: str = ""
    method: str = ""
    client_ip: str | None = None
    user_id: str | None = None
    export_format: str | None = None
    status_code: int = 0
    error_code: str | None = None
    error_message: str | None = None
    processing_time_ms: int = 0
    entry_count: int | None = None
    total_hours: float | None = None
    details: list[tuple[str, str]] = field(default_factory=list)  # (type, message)


def log_request(log: RequestLog) -> None:
    """Write request log to SQLite database."""
    conn = sqlite3.connect(DB_PATH)
    try:
        cursor = conn.cursor()

        # Insert main request record
        cursor.execute(
            """
            INSERT INTO api_requests (
                request_id, timestamp, endpoint, method, client_ip,
                user_id, export_format, status_code, error_code,
                error_message, processing_time_ms, entry_count, total_hours
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
            (
                log.request_id,
                log.timestamp,
                log.endpoint,
                log.method,
                log.client_ip,
                log.user_id,
                log.export_format,
                log.status_code,
                log.error_code,
                log.error_message,
                log.processing_time_ms,
                log.entry_count,
                log.total_hours,
            ),
        )

        # Insert detail records
        for detail_type, message in log.details:
            cursor.execute(
                """
                INSERT INTO api_request_details (request_id, detail_type, message)
                VALUES (?, ?, ?)
            """,
                (log.request_id, detail_type, message),
            )

        conn.commit()
    finally:
        conn.close()


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _error(status_code: int, error: str, code: str, details: list[str]) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"error": error, "code": code, "details": details},
    )


@contextmanager
def logged_request(request: Request, **fields):
    """
    Run an endpoint body, translate service errors to HTTP errors and
    always write a RequestLog row.

    Yields the RequestLog so the endpoint can fill in result fields.
    """
    start_time = time.time()
    request_log = RequestLog(
        endpoint=request.url.path,
        method=request.method,
        client_ip=get_client_ip(request),
        **fields,
    )

    try:
        yield request_log
        request_log.status_code = request_log.status_code or 200

    except HTTPException as e:
        request_log.status_code = e.status_code
        if isinstance(e.detail, dict):
            request_log.error_code = e.detail.get("code")
            request_log.error_message = e.detail.get("error")
            for detail in e.detail.get("details", []):
                request_log.details.append(("validation_error", detail))
        else:
            request_log.error_message = str(e.detail)
        raise

    except (InvalidRangeError, InvalidUnitError) as e:
        code = ErrorCodes.INVALID_UNIT if isinstance(e, InvalidUnitError) else ErrorCodes.INVALID_RANGE
        request_log.status_code = 422
        request_log.error_code = code
        request_log.error_message = str(e)
        request_log.details.append(("validation_error", str(e)))
        raise _error(status.HTTP_422_UNPROCESSABLE_ENTITY, str(e), code, [str(e)])

    except MailError as e:
        request_log.status_code = 502
        request_log.error_code = ErrorCodes.MAIL_ERROR
        request_log.error_message = str(e)
        raise _error(status.HTTP_502_BAD_GATEWAY, "Email could not be sent", ErrorCodes.MAIL_ERROR, [str(e)])

    except ValueError as e:
        # Entry parsing and format validation
        error_msg = str(e)
        request_log.status_code = 422
        request_log.error_code = ErrorCodes.VALIDATION_ERROR
        request_log.error_message = error_msg
        request_log.details.append(("validation_error", error_msg))
        raise _error(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "Report validation failed",
            ErrorCodes.VALIDATION_ERROR,
            [error_msg],
        )

    except Exception as e:
        request_log.status_code = 500
        request_log.error_code = ErrorCodes.INTERNAL_ERROR
        request_log.error_message = str(e)
        raise _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            ErrorCodes.INTERNAL_ERROR,
            [],
        )

    finally:
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)
        # Don't fail the request if logging fails
        try:
            log_request(request_log)
        except sqlite3.Error as e:
            print(f"Failed to write request log: {e}")
