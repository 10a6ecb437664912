"""
Pytest configuration and shared fixtures.
"""

import sys
from datetime import date
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.database import get_connection, init_schema  # noqa: E402
from models.entries import TimeEntry, WorkReport  # noqa: E402


@pytest.fixture
def sample_entries():
    """Three entries over two objects in March/April 2024."""
    return [
        TimeEntry(date=date(2024, 3, 1), object="A", hours=5),
        TimeEntry(date=date(2024, 3, 15), object="A", hours=3),
        TimeEntry(date=date(2024, 4, 2), object="B", hours=2),
    ]


@pytest.fixture
def sample_raw_entry():
    """Entry dictionary as stored by the web client."""
    return {
        "date": "2024-03-01",
        "orderNumber": "A-1001",
        "object": "Bahnhofstrasse 5",
        "location": "Zürich",
        "hours": 8,
        "absences": 0,
        "overtime": 1.5,
        "expenses": "Parkgebühr",
        "expenseAmount": 12.5,
        "notes": "Fenster montiert",
    }


@pytest.fixture
def sample_report():
    """Small report with absences, overtime and an expense."""
    return WorkReport(
        name="Max Muster",
        period="März 2024",
        entries=[
            TimeEntry(
                date=date(2024, 3, 1),
                order_number="A-1001",
                object="Bahnhofstrasse 5",
                location="Zürich",
                hours=8,
                overtime=1.5,
                expenses="Parkgebühr",
                expense_amount=12.5,
            ),
            TimeEntry(
                date=date(2024, 3, 4),
                order_number="A-1002",
                object="Seeweg 2",
                location="Bern",
                hours=4,
                absences=4,
                notes='Arzt "Dr. X"',
            ),
        ],
        employee_name="Max Muster",
        month="03",
        year="2024",
    )


@pytest.fixture
def db_path(tmp_path):
    """Initialized SQLite database file."""
    path = tmp_path / "rapport.db"
    conn = get_connection(path)
    init_schema(conn)
    conn.close()
    return path


@pytest.fixture
def conn(db_path):
    connection = get_connection(db_path)
    yield connection
    connection.close()
