"""
SQLite database operations for work reports.
"""

import json
import sqlite3
from datetime import date

from core.config import DB_PATH
from core.ingestion import entries_from_reports, entry_to_dict
from models.entries import SmtpSettings, TimeEntry, WorkReport


SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS reports (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        period TEXT NOT NULL DEFAULT '',
        date TEXT NOT NULL,
        content TEXT NOT NULL,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS smtp_config (
        user_id TEXT PRIMARY KEY,
        host TEXT NOT NULL,
        port INTEGER NOT NULL,
        secure INTEGER NOT NULL DEFAULT 1,
        username TEXT NOT NULL,
        password TEXT NOT NULL,
        from_email TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS api_requests (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        request_id TEXT UNIQUE NOT NULL,
        timestamp TEXT NOT NULL,
        endpoint TEXT NOT NULL,
        method TEXT NOT NULL,
        client_ip TEXT,
        user_id TEXT,
        export_format TEXT,
        status_code INTEGER NOT NULL,
        error_code TEXT,
        error_message TEXT,
        processing_time_ms INTEGER NOT NULL,
        entry_count INTEGER,
        total_hours REAL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS api_request_details (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        request_id TEXT NOT NULL,
        detail_type TEXT NOT NULL CHECK(detail_type IN ('validation_error', 'warning')),
        message TEXT NOT NULL,
        FOREIGN KEY (request_id) REFERENCES api_requests(request_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_reports_user_date ON reports(user_id, date)",
    "CREATE INDEX IF NOT EXISTS idx_api_requests_timestamp ON api_requests(timestamp)",
    "CREATE INDEX IF NOT EXISTS idx_api_requests_status ON api_requests(status_code)",
]


def get_connection(db_path=None) -> sqlite3.Connection:
    """Get a database connection with rows addressable by column name."""
    conn = sqlite3.connect(db_path or DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_schema(conn: sqlite3.Connection):
    """Create all tables and indexes if they don't exist."""
    conn.execute("PRAGMA foreign_keys = ON")
    for statement in SCHEMA:
        conn.execute(statement)
    conn.commit()


def generate_report_name(user_id: str, report_date: date, conn: sqlite3.Connection) -> str:
    """
    Generate unique report name with auto-incremented suffix.

    Example: arbeitsrapport_2025_11_a, arbeitsrapport_2025_11_b
    """
    base_pattern = f"arbeitsrapport_{report_date.strftime('%Y_%m')}_"

    cursor = conn.cursor()
    cursor.execute(
        "SELECT name FROM reports WHERE user_id = ? AND name LIKE ? ORDER BY name DESC",
        (user_id, f"{base_pattern}%"),
    )
    existing = cursor.fetchall()

    if not existing:
        return f"{base_pattern}a"

    # Find the highest suffix
    highest_suffix = "a"
    for row in existing:
        suffix = row["name"].replace(base_pattern, "")
        if suffix and suffix > highest_suffix:
            highest_suffix = suffix

    next_suffix = chr(ord(highest_suffix) + 1)
    return f"{base_pattern}{next_suffix}"


def save_report(
    conn: sqlite3.Connection, user_id: str, report: WorkReport, report_date: date
) -> int:
    """Store a report with its entries as JSON content and return its id."""
    content = {
        "client": report.client,
        "employeeName": report.employee_name,
        "month": report.month,
        "year": report.year,
        "entries": [entry_to_dict(e) for e in report.entries],
    }
    cursor = conn.cursor()
    cursor.execute(
        "INSERT INTO reports (user_id, name, period, date, content) VALUES (?, ?, ?, ?, ?)",
        (user_id, report.name, report.period, report_date.isoformat(), json.dumps(content)),
    )
    conn.commit()
    return cursor.lastrowid


def list_reports(conn: sqlite3.Connection, user_id: str) -> list[dict]:
    """Report history for a user, newest first (without entry content)."""
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT id, name, period, date, created_at FROM reports
        WHERE user_id = ?
        ORDER BY date DESC, id DESC
        """,
        (user_id,),
    )
    return [dict(row) for row in cursor.fetchall()]


def fetch_entries(
    conn: sqlite3.Connection, user_id: str, date_range_hint: tuple[date, date]
) -> list[TimeEntry]:
    """
    Load all entries from the user's reports dated within the hint window.

    The hint may be wider than the final range; callers re-filter with
    services.aggregation.filter_by_range.
    """
    start_date, end_date = date_range_hint
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT content FROM reports
        WHERE user_id = ? AND date >= ? AND date <= ?
        ORDER BY date, id
        """,
        (user_id, start_date.isoformat(), end_date.isoformat()),
    )
    return entries_from_reports([dict(row) for row in cursor.fetchall()])


def get_smtp_config(conn: sqlite3.Connection, user_id: str) -> SmtpSettings | None:
    """Per-user SMTP settings, or None if the user has none stored."""
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT host, port, secure, username, password, from_email
        FROM smtp_config WHERE user_id = ?
        """,
        (user_id,),
    )
    row = cursor.fetchone()
    if row is None:
        return None
    return SmtpSettings(
        host=row["host"],
        port=int(row["port"]),
        username=row["username"],
        password=row["password"],
        secure=bool(row["secure"]),
        from_email=row["from_email"] or "",
    )


def save_smtp_config(conn: sqlite3.Connection, user_id: str, settings: SmtpSettings):
    """Insert or replace a user's SMTP settings."""
    conn.execute(
        """
        INSERT OR REPLACE INTO smtp_config (
            user_id, host, port, secure, username, password, from_email
        ) VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (
            user_id,
            settings.host,
            settings.port,
            int(settings.secure),
            settings.username,
            settings.password,
            settings.from_email,
        ),
    )
    conn.commit()
