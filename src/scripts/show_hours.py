#!/usr/bin/env python3
"""
Print hours per object and the period series for a user.

Usage:
    uv run python src/scripts/show_hours.py --user-id u1 --mode month
    uv run python src/scripts/show_hours.py --user-id u1 --mode custom --from 2025-01-01 --to 2025-03-31 --object "Bahnhofstrasse 5"
"""

import argparse
import sys
from datetime import date, datetime
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.database import fetch_entries, get_connection
from services.aggregation import (
    AggregationError,
    aggregate_by_period,
    build_chart,
    filter_by_range,
    query_window,
    select_range,
    unit_for_mode,
)


def parse_date(value: str | None) -> date | None:
    if not value:
        return None
    return datetime.strptime(value, "%Y-%m-%d").date()


def main(user_id: str, mode: str, start: date | None, end: date | None, category: str | None):
    custom_range = (start, end) if mode == "custom" else None
    today = date.today()
    start_date, end_date = select_range(mode, custom_range, today)

    conn = get_connection()
    try:
        entries = fetch_entries(conn, user_id, query_window(start_date, end_date))
    finally:
        conn.close()

    chart = build_chart(entries, mode, today, custom_range, category)
    print(f"Range: {chart.start_date} to {chart.end_date}")

    print("\nHours per object:")
    if not chart.category_totals:
        print("  (no entries)")
    for total in chart.category_totals:
        print(f"  {total.label:<40} {total.value:>8.1f}h")

    # Without an object, show the series over all entries
    series = chart.series if category else aggregate_by_period(
        filter_by_range(entries, start_date, end_date), start_date, end_date, unit_for_mode(mode)
    )
    title = f"Series for {category}" if category else "Series (all objects)"
    print(f"\n{title}:")
    for bucket in series:
        print(f"  {bucket.label:<10} hours={bucket.hours:>7.2f}  "
              f"absences={bucket.absences:>6.2f}  overtime={bucket.overtime:>6.2f}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Show aggregated hours")
    parser.add_argument("--user-id", required=True)
    parser.add_argument("--mode", choices=["week", "month", "year", "custom"], default="month")
    parser.add_argument("--from", dest="start", help="Custom range start (YYYY-MM-DD)")
    parser.add_argument("--to", dest="end", help="Custom range end (YYYY-MM-DD)")
    parser.add_argument("--object", dest="category", help="Only this object for the series")
    args = parser.parse_args()

    try:
        main(args.user_id, args.mode, parse_date(args.start), parse_date(args.end), args.category)
    except AggregationError as e:
        print(f"Error: {e}")
        sys.exit(1)
