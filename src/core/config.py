"""
Configuration constants and environment setup.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent
DB_PATH = Path(os.environ.get("RAPPORT_DB_PATH", PROJECT_ROOT / "data" / "db" / "rapport.db"))
OUTPUT_DIR = PROJECT_ROOT / "output"

# =============================================================================
# EMAIL CONFIGURATION
# =============================================================================

# One of: smtp, graph, resend
MAIL_TRANSPORT = os.environ.get("MAIL_TRANSPORT", "smtp").lower()
MAIL_FROM = os.environ.get("MAIL_FROM", "rapport@example.com")
ERROR_EMAIL = os.environ.get("ERROR_EMAIL", "")

SMTP_HOST = os.environ.get("SMTP_HOST", "")
SMTP_PORT = int(os.environ.get("SMTP_PORT", "465"))
SMTP_SECURE = os.environ.get("SMTP_SECURE", "true").lower() == "true"
SMTP_USER = os.environ.get("SMTP_USER", "")
SMTP_PASSWORD = os.environ.get("SMTP_PASSWORD", "")
SMTP_TIMEOUT = int(os.environ.get("SMTP_TIMEOUT", "10"))

RESEND_API_KEY = os.environ.get("RESEND_API_KEY", "")
RESEND_API_URL = "https://api.resend.com/emails"

# =============================================================================
# MS GRAPH CREDENTIALS (from environment)
# =============================================================================

GRAPH_TENANT_ID = os.environ.get("MICROSOFT_GRAPH_TENANT_ID", "")
GRAPH_APP_ID = os.environ.get("MICROSOFT_GRAPH_APP_ID", "")
GRAPH_CLIENT_SECRET = os.environ.get("MICROSOFT_GRAPH_CLIENT_SECRET", "")

# =============================================================================
# CHART CONFIGURATION
# =============================================================================

RANGE_MODES = {"week", "month", "year", "custom"}
GROUPING_UNITS = {"week", "month", "year"}

# Presets: how far back each range mode reaches from "now"
WEEK_RANGE_WEEKS = 4
MONTH_RANGE_MONTHS = 12
YEAR_RANGE_YEARS = 3

# =============================================================================
# REPORT CONFIGURATION
# =============================================================================

REPORT_HEADERS = [
    "Datum",
    "Auftrag Nr.",
    "Objekt oder Strasse",
    "Ort",
    "Std.",
    "Absenzen",
    "Überstd.",
    "Auslagen und Bemerkungen",
    "Auslagen Fr.",
    "Notizen",
]
TOTAL_LABEL = "Total"
REQUIRED_HOURS_LABEL = "Total Sollstunden"
APP_NAME = "RapportGenius"

EXPORT_FORMATS = {
    "csv": ("csv", "text/csv; charset=utf-8"),
    "excel": ("xlsx", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"),
    "pdf": ("pdf", "application/pdf"),
}

# =============================================================================
# API CONFIGURATION
# =============================================================================

RAPPORT_API_KEY = os.environ.get("RAPPORT_API_KEY", "")
API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8000"))
API_DEBUG = os.environ.get("API_DEBUG", "false").lower() == "true"
API_VERSION = "1.0.0"
