"""API Pydantic models."""

from .requests import EmailReportRequest, ReportPayload, SaveReportRequest
from .responses import (
    CategoriesResponse,
    CategoryTotalModel,
    EmailResponse,
    ErrorCodes,
    ErrorResponse,
    HealthResponse,
    PeriodBucketModel,
    PeriodsResponse,
    ReportCreatedResponse,
    ReportSummary,
)

__all__ = [
    "CategoriesResponse",
    "CategoryTotalModel",
    "EmailReportRequest",
    "EmailResponse",
    "ErrorCodes",
    "ErrorResponse",
    "HealthResponse",
    "PeriodBucketModel",
    "PeriodsResponse",
    "ReportCreatedResponse",
    "ReportPayload",
    "ReportSummary",
    "SaveReportRequest",
]
