"""Pydantic request models for API endpoints."""

from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, Field

from core.ingestion import parse_entry
from models.entries import WorkReport

ExportFormat = Literal["csv", "excel", "pdf"]


class ReportPayload(BaseModel):
    """
    A work report as sent by the web client.

    Entries stay loosely typed here; they are parsed by core.ingestion so
    the API and the storage path share the same defaults.
    """

    name: str = ""
    period: str = ""
    client: str = ""
    employeeName: str = ""
    month: str | int = ""
    year: str | int = ""
    entries: list[dict[str, Any]] = Field(default_factory=list)

    def to_report(self) -> WorkReport:
        """Raises ValueError if an entry cannot be parsed."""
        return WorkReport(
            name=self.name or self.employeeName,
            period=self.period or f"{self.month}/{self.year}".strip("/"),
            entries=[parse_entry(raw) for raw in self.entries],
            client=self.client,
            employee_name=self.employeeName,
            month=str(self.month),
            year=str(self.year),
        )


class SaveReportRequest(BaseModel):
    user_id: str
    report_date: date
    report: ReportPayload


class EmailReportRequest(BaseModel):
    to: str = Field(min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    format: ExportFormat = "excel"
    subject: str | None = None
    message: str | None = None
    user_id: str | None = None
    report: ReportPayload
