"""API route modules."""

from .charts import router as charts_router
from .health import router as health_router
from .reports import router as reports_router

__all__ = ["charts_router", "health_router", "reports_router"]
