"""Tests for command-line helpers."""

import json
from datetime import date

import pytest

from scripts.create_report import get_monthly_date_range
from scripts.import_reports import load_reports


def test_monthly_range_from_argument():
    assert get_monthly_date_range("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))


def test_monthly_range_defaults_to_previous_month():
    assert get_monthly_date_range(None, today=date(2024, 1, 10)) == (date(2023, 12, 1), date(2023, 12, 31))


def test_load_reports_single_and_list(tmp_path, sample_raw_entry):
    path = tmp_path / "reports.json"
    path.write_text(json.dumps({"name": "März", "entries": [sample_raw_entry]}), encoding="utf-8")
    [(report, report_date)] = load_reports(path)
    assert report.name == "März"
    # falls back to the first entry's date
    assert report_date == date(2024, 3, 1)

    path.write_text(json.dumps([
        {"name": "a", "date": "2024-03-31", "entries": []},
        {"name": "b", "date": "30.04.2024", "entries": [sample_raw_entry]},
    ]), encoding="utf-8")
    reports = load_reports(path)
    assert [(r.name, d) for r, d in reports] == [("a", date(2024, 3, 31)), ("b", date(2024, 4, 30))]


def test_load_reports_names_bad_report(tmp_path):
    path = tmp_path / "reports.json"
    path.write_text(json.dumps([{"name": "x", "entries": [{"date": "bald"}]}]), encoding="utf-8")
    with pytest.raises(ValueError, match="Report 1"):
        load_reports(path)
