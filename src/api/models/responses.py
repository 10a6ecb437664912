"""Pydantic response models for API endpoints."""

from datetime import date

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""

    status: str  # "healthy" or "unhealthy"
    version: str
    database_available: bool
    timestamp: str  # ISO 8601 UTC
    error: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str
    details: list[str] = []


class CategoryTotalModel(BaseModel):
    label: str
    value: float


class PeriodBucketModel(BaseModel):
    label: str
    hours: float
    absences: float
    overtime: float


class CategoriesResponse(BaseModel):
    """Pie chart data: hours per object within the range."""

    start_date: date
    end_date: date
    categories: list[str]
    totals: list[CategoryTotalModel]


class PeriodsResponse(BaseModel):
    """Bar chart data: one bucket per week, month or year."""

    start_date: date
    end_date: date
    unit: str
    category: str | None = None
    buckets: list[PeriodBucketModel]


class ReportSummary(BaseModel):
    id: int
    name: str
    period: str
    date: str
    created_at: str | None = None


class ReportCreatedResponse(BaseModel):
    id: int
    name: str


class EmailResponse(BaseModel):
    success: bool
    message_id: str
    transport: str


class ErrorCodes:
    """Error code constants."""

    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_RANGE = "INVALID_RANGE"
    INVALID_UNIT = "INVALID_UNIT"
    MAIL_ERROR = "MAIL_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
