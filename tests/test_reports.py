"""Tests for CSV, Excel and PDF report generation."""

from datetime import date
from io import BytesIO

import pytest
from openpyxl import load_workbook

from core.config import REPORT_HEADERS
from models.entries import WorkReport
from services.reports import (
    create_csv_report,
    create_excel_report,
    create_pdf_report,
    export_filename,
    export_report,
    format_number,
    totals,
)

CREATED = date(2024, 4, 2)


def test_totals_and_required_hours(sample_report):
    t = totals(sample_report.entries)
    assert (t.hours, t.absences, t.overtime, t.expenses) == (12, 4, 1.5, 12.5)
    assert t.required_hours == 16


def test_format_number():
    assert format_number(7.5) == "7,50"
    assert format_number(0) == ""
    assert format_number(0, blank_zero=False) == "0,00"


def test_export_filename_replaces_whitespace(sample_report):
    assert export_filename(sample_report, "csv") == "Arbeitsrapport_Max_Muster_März_2024.csv"


class TestCsv:
    def test_bom_and_header(self, sample_report):
        data = create_csv_report(sample_report, CREATED)
        assert data.startswith(b"\xef\xbb\xbf")
        lines = data.decode("utf-8-sig").splitlines()
        assert lines[0] == ",".join(REPORT_HEADERS)

    def test_rows_totals_and_metadata(self, sample_report):
        lines = create_csv_report(sample_report, CREATED).decode("utf-8-sig").splitlines()
        assert lines[1] == '01.03.2024,A-1001,Bahnhofstrasse 5,Zürich,"8,00",,"1,50",Parkgebühr,"12,50",'
        assert lines[2] == '04.03.2024,A-1002,Seeweg 2,Bern,"4,00","4,00",,,,"Arzt ""Dr. X"""'
        assert lines[3] == 'Total,,,,"12,00","4,00","1,50",,"12,50"'
        assert lines[4] == 'Total Sollstunden,,,,"16,00"'
        assert lines[6:] == [
            "Arbeitsrapport: Max Muster",
            "Zeitraum: März 2024",
            "Erstellt am: 02.04.2024",
        ]

    def test_empty_report_has_zero_totals(self):
        lines = create_csv_report(WorkReport(name="x", period="y"), CREATED).decode("utf-8-sig").splitlines()
        assert lines[1] == 'Total,,,,"0,00",,,,'
        assert lines[2] == 'Total Sollstunden,,,,"0,00"'


class TestExcel:
    def test_layout(self, sample_report):
        wb = load_workbook(BytesIO(create_excel_report(sample_report, CREATED)))
        ws = wb["Arbeitsrapport"]

        assert ws["A1"].value == "Arbeitsrapport: Max Muster"
        assert ws["A2"].value == "Zeitraum: März 2024"
        assert ws["H3"].value == "Erstellt am: 02.04.2024"
        assert [c.value for c in ws[5]] == REPORT_HEADERS

        assert ws["A6"].value == "01.03.2024"
        assert ws["E6"].value == 8
        assert ws["F6"].value is None  # no absences
        assert ws["I6"].value == 12.5
        assert ws["I6"].number_format == '#,##0.00 "CHF"'
        assert ws["E7"].number_format == "0.00"

    def test_totals_rows(self, sample_report):
        ws = load_workbook(BytesIO(create_excel_report(sample_report, CREATED))).active
        # rows 6-7 data, 8 blank, 9 total, 10 Sollstunden
        assert ws["A9"].value == "Total"
        assert ws["E9"].value == 12
        assert ws["F9"].value == 4
        assert ws["A10"].value == "Total Sollstunden"
        assert ws["E10"].value == 16
        assert ws["A9"].font.bold


def test_pdf_is_generated(sample_report):
    data = create_pdf_report(sample_report, CREATED)
    assert data.startswith(b"%PDF")


def test_pdf_escapes_markup():
    report = WorkReport(name="A & B <GmbH>", period="1/2024")
    assert create_pdf_report(report, CREATED).startswith(b"%PDF")


@pytest.mark.parametrize(
    "fmt, extension, media_type",
    [
        ("csv", "csv", "text/csv; charset=utf-8"),
        ("excel", "xlsx", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"),
        ("pdf", "pdf", "application/pdf"),
    ],
)
def test_export_report_dispatch(sample_report, fmt, extension, media_type):
    data, filename, returned_type = export_report(sample_report, fmt, CREATED)
    assert data
    assert filename.endswith(f".{extension}")
    assert returned_type == media_type


def test_export_report_unknown_format(sample_report):
    with pytest.raises(ValueError):
        export_report(sample_report, "docx")


def test_export_filename_replaces_quotes_and_slashes():
    report = WorkReport(name='Max "Boss" Muster', period="03/2024")
    assert export_filename(report, "pdf") == "Arbeitsrapport_Max_Boss_Muster_03_2024.pdf"
