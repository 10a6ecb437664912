#!/usr/bin/env python3
"""
Import work reports from a JSON export into the database.

The file holds either one report or a list of reports in the web client's
shape: {"name", "period", "date", "entries": [...]}.

Usage:
    uv run python src/scripts/import_reports.py --user-id u1 reports.json
"""

import argparse
import json
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.database import get_connection, save_report
from core.ingestion import parse_entry, parse_entry_date
from models.entries import WorkReport


def load_reports(path: Path) -> list[tuple[WorkReport, object]]:
    """Parse the file into (report, report_date) pairs; raises ValueError on bad entries."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = [data]

    reports = []
    for idx, raw in enumerate(data, start=1):
        try:
            entries = [parse_entry(e) for e in raw.get("entries") or []]
            report_date = parse_entry_date(raw.get("date") or (entries[0].date if entries else None))
        except ValueError as e:
            raise ValueError(f"Report {idx}: {e}") from e
        report = WorkReport(
            name=raw.get("name", ""),
            period=raw.get("period", ""),
            entries=entries,
            client=raw.get("client", ""),
            employee_name=raw.get("employeeName", ""),
            month=str(raw.get("month", "")),
            year=str(raw.get("year", "")),
        )
        reports.append((report, report_date))
    return reports


def main(user_id: str, path: Path):
    reports = load_reports(path)
    conn = get_connection()
    try:
        for report, report_date in reports:
            report_id = save_report(conn, user_id, report, report_date)
            print(f"  Imported {report.name or '(unnamed)'} ({len(report.entries)} entries) as #{report_id}")
    finally:
        conn.close()
    print(f"Imported {len(reports)} report(s) for {user_id}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Import work reports from JSON")
    parser.add_argument("--user-id", required=True)
    parser.add_argument("file", type=Path)
    args = parser.parse_args()

    main(args.user_id, args.file)
