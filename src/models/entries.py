"""
Data models for time entries, reports and chart output.

Entries are parsed into these records at the storage boundary
(see core.ingestion); everything downstream works on typed fields.
"""

from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class TimeEntry:
    """One line of a work report."""
    date: date
    order_number: str = ""
    object: str = ""
    location: str = ""
    hours: float = 0.0
    absences: float = 0.0
    overtime: float = 0.0
    expenses: str = ""
    expense_amount: float = 0.0
    notes: str = ""


@dataclass
class WorkReport:
    """A named report covering a period, as exported and emailed."""
    name: str
    period: str
    entries: list[TimeEntry] = field(default_factory=list)
    client: str = ""
    employee_name: str = ""
    month: str = ""
    year: str = ""


@dataclass
class PeriodBucket:
    """Summed hours for one week, month or year of a chart series."""
    label: str
    hours: float = 0.0
    absences: float = 0.0
    overtime: float = 0.0


@dataclass
class CategoryTotal:
    """Summed hours for one object/site."""
    label: str
    value: float = 0.0


@dataclass
class SmtpSettings:
    """Per-user SMTP account."""
    host: str
    port: int
    username: str
    password: str
    secure: bool = True
    from_email: str = ""

    def is_complete(self) -> bool:
        return bool(self.host and self.port and self.username and self.password)
