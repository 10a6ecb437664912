#!/usr/bin/env python3
"""
Create a monthly work report from stored entries.

Loads a user's entries for the month, writes the export to
output/reports/<format>/ and optionally emails it.

Usage:
    uv run python src/scripts/create_report.py --user-id u1 --month 2025-11 --format pdf
    uv run python src/scripts/create_report.py --user-id u1 --email chef@example.com
"""

import argparse
import asyncio
import calendar
import sys
import traceback
from datetime import date
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import OUTPUT_DIR
from core.database import fetch_entries, get_connection, get_smtp_config
from models.entries import WorkReport
from services.aggregation import filter_by_range, query_window
from services.email import get_transport, send_error_email, send_report_email
from services.reports import export_report, totals


# =============================================================================
# DATE UTILITIES
# =============================================================================


def get_monthly_date_range(month_str: str | None, today: date | None = None) -> tuple[date, date]:
    """
    Calculate date range for monthly report.

    Args:
        month_str: Optional month string (YYYY-MM). Uses previous month if None.

    Returns:
        Tuple of (first_of_month, last_of_month)
    """
    if month_str:
        # Parse YYYY-MM format
        year, month = map(int, month_str.split("-"))
        target_date = date(year, month, 1)
    else:
        # Default to previous month
        today = today or date.today()
        if today.month == 1:
            target_date = date(today.year - 1, 12, 1)
        else:
            target_date = date(today.year, today.month - 1, 1)

    first_of_month = target_date.replace(day=1)
    _, last_day = calendar.monthrange(target_date.year, target_date.month)
    last_of_month = target_date.replace(day=last_day)

    return first_of_month, last_of_month


# =============================================================================
# MAIN
# =============================================================================


async def main(
    user_id: str,
    month_str: str | None = None,
    fmt: str = "excel",
    employee_name: str = "",
    email_to: str | None = None,
):
    """Main entry point for the monthly report."""
    try:
        # 1. Calculate date range (full month)
        start_date, end_date = get_monthly_date_range(month_str)
        print(f"Generating report for {start_date} to {end_date}")

        # 2. Load entries (widened query, exact filter afterwards)
        conn = get_connection()
        try:
            entries = fetch_entries(conn, user_id, query_window(start_date, end_date))
            smtp_settings = get_smtp_config(conn, user_id)
        finally:
            conn.close()
        entries = sorted(filter_by_range(entries, start_date, end_date), key=lambda e: e.date)
        print(f"Entries in range: {len(entries)}")

        if not entries:
            print("No entries found for this period!")
            return

        # 3. Write export file
        report = WorkReport(
            name=employee_name or user_id,
            period=start_date.strftime("%m/%Y"),
            entries=entries,
            employee_name=employee_name,
            month=f"{start_date.month:02d}",
            year=str(start_date.year),
        )
        content, filename, _ = export_report(report, fmt)
        output_dir = OUTPUT_DIR / "reports" / fmt
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / filename
        output_path.write_bytes(content)
        print(f"Saved report to: {output_path}")

        t = totals(entries)
        print(f"Hours: {t.hours:.2f}  Absences: {t.absences:.2f}  "
              f"Overtime: {t.overtime:.2f}  Sollstunden: {t.required_hours:.2f}")

        # 4. Send email
        if email_to:
            transport = get_transport(smtp_settings=smtp_settings)
            await send_report_email(transport, email_to, report, fmt)

        print("\nDone!")

    except Exception as e:
        print(f"\nError: {e}")
        traceback.print_exc()
        await send_error_email(e)
        raise


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Generate monthly work report")
    parser.add_argument("--user-id", required=True, help="Owner of the stored reports")
    parser.add_argument(
        "--month",
        help="Target month (YYYY-MM). Defaults to previous month.",
    )
    parser.add_argument("--format", choices=["csv", "excel", "pdf"], default="excel")
    parser.add_argument("--employee", default="", help="Employee name for title and email")
    parser.add_argument("--email", help="Send the report to this address")
    args = parser.parse_args()

    asyncio.run(main(args.user_id, args.month, args.format, args.employee, args.email))
