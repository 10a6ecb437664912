"""
Report generation utilities for CSV, Excel and PDF formats.
"""

import csv
import io
import re
from dataclasses import dataclass
from datetime import date
from xml.sax.saxutils import escape

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from core.config import (
    APP_NAME,
    EXPORT_FORMATS,
    REPORT_HEADERS,
    REQUIRED_HOURS_LABEL,
    TOTAL_LABEL,
)
from models.entries import TimeEntry, WorkReport

PRIMARY_COLOR = "2B5FB6"
SECONDARY_COLOR = "E6EFF9"
ZEBRA_COLOR = "F9F9F9"
HEADER_BORDER_COLOR = "B2B2B2"
ROW_BORDER_COLOR = "E0E0E0"

# Column widths (Excel character units), same order as REPORT_HEADERS
EXCEL_COLUMN_WIDTHS = [12, 12, 25, 15, 8, 8, 8, 25, 12, 20]
# Column widths (mm) for the A4 PDF table
PDF_COLUMN_WIDTHS = [20, 18, 30, 20, 12, 12, 12, 25, 18, 23]

HOURS_COLUMNS = {5, 6, 7}
AMOUNT_COLUMN = 9


@dataclass
class ReportTotals:
    hours: float
    absences: float
    overtime: float
    expenses: float

    @property
    def required_hours(self) -> float:
        """Sollstunden: worked hours plus absences."""
        return self.hours + self.absences


def totals(entries: list[TimeEntry]) -> ReportTotals:
    """Sum the numeric columns of a report."""
    return ReportTotals(
        hours=sum(e.hours for e in entries),
        absences=sum(e.absences for e in entries),
        overtime=sum(e.overtime for e in entries),
        expenses=sum(e.expense_amount for e in entries),
    )


def format_date_display(d: date) -> str:
    """Format date as DD.MM.YYYY (Swiss)."""
    return d.strftime("%d.%m.%Y")


def format_number(value: float, blank_zero: bool = True) -> str:
    """Two decimals with a comma separator, e.g. 7,50."""
    if blank_zero and value == 0:
        return ""
    return f"{value:.2f}".replace(".", ",")


def format_amount(value: float) -> str:
    return f"{value:.2f} CHF" if value > 0 else ""


def export_filename(report: WorkReport, extension: str) -> str:
    """Arbeitsrapport_<name>_<period>.<ext> with whitespace, slashes and quotes replaced."""
    name = re.sub(r"[\s/\\\"]+", "_", report.name)
    period = re.sub(r"[\s/\\\"]+", "_", report.period)
    return f"Arbeitsrapport_{name}_{period}.{extension}"


# =============================================================================
# CSV
# =============================================================================


def create_csv_report(report: WorkReport, created: date | None = None) -> bytes:
    """
    Create a CSV export (UTF-8 with BOM so Excel detects the encoding).

    Numbers use a comma decimal separator, so the csv writer quotes them.
    """
    created = created or date.today()
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    writer.writerow(REPORT_HEADERS)
    for entry in report.entries:
        writer.writerow([
            format_date_display(entry.date),
            entry.order_number,
            entry.object,
            entry.location,
            format_number(entry.hours),
            format_number(entry.absences),
            format_number(entry.overtime),
            entry.expenses,
            format_number(entry.expense_amount),
            entry.notes,
        ])

    t = totals(report.entries)
    writer.writerow([
        TOTAL_LABEL, "", "", "",
        format_number(t.hours, blank_zero=False),
        format_number(t.absences),
        format_number(t.overtime),
        "",
        format_number(t.expenses),
    ])
    writer.writerow([
        REQUIRED_HOURS_LABEL, "", "", "",
        format_number(t.required_hours, blank_zero=False),
    ])

    writer.writerow([])
    writer.writerow([f"Arbeitsrapport: {report.name}"])
    writer.writerow([f"Zeitraum: {report.period}"])
    writer.writerow([f"Erstellt am: {format_date_display(created)}"])

    return buffer.getvalue().encode("utf-8-sig")


# =============================================================================
# EXCEL
# =============================================================================


def _border(color: str) -> Border:
    side = Side(style="thin", color=color)
    return Border(top=side, left=side, bottom=side, right=side)


def _fill(color: str) -> PatternFill:
    return PatternFill(fill_type="solid", fgColor=color)


def _apply_number_format(cell, column: int):
    if column in HOURS_COLUMNS:
        cell.number_format = "0.00"
        cell.alignment = Alignment(horizontal="right")
    elif column == AMOUNT_COLUMN:
        cell.number_format = '#,##0.00 "CHF"'
        cell.alignment = Alignment(horizontal="right")


def write_excel_report_sheet(ws, report: WorkReport, created: date, include_company_info: bool):
    """
    Write the report to a worksheet.

    Rows 1-3: title, period, creation info
    Row 5: column headers
    Then one row per entry, a blank row, Total, Total Sollstunden, footer.
    """
    last_col = get_column_letter(len(REPORT_HEADERS))

    ws.merge_cells(f"A1:{last_col}1")
    ws["A1"] = f"Arbeitsrapport: {report.name}"
    ws["A1"].font = Font(size=16, bold=True, color=PRIMARY_COLOR)
    ws["A1"].alignment = Alignment(horizontal="center")

    ws.merge_cells(f"A2:{last_col}2")
    ws["A2"] = f"Zeitraum: {report.period}"
    ws["A2"].font = Font(size=12, bold=True)
    ws["A2"].alignment = Alignment(horizontal="center")

    ws.merge_cells(f"H3:{last_col}3")
    ws["H3"] = f"Erstellt am: {format_date_display(created)}"
    ws["H3"].font = Font(size=10, italic=True)
    ws["H3"].alignment = Alignment(horizontal="right")

    if include_company_info:
        ws.merge_cells("A3:D3")
        ws["A3"] = f"Erstellt mit {APP_NAME}"
        ws["A3"].font = Font(size=10, italic=True)

    header_row = 5
    for col_idx, header in enumerate(REPORT_HEADERS, start=1):
        cell = ws.cell(row=header_row, column=col_idx, value=header)
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = _fill(PRIMARY_COLOR)
        cell.border = _border(HEADER_BORDER_COLOR)
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)

    for col_idx, width in enumerate(EXCEL_COLUMN_WIDTHS, start=1):
        ws.column_dimensions[get_column_letter(col_idx)].width = width

    row_idx = header_row
    for row_idx, entry in enumerate(report.entries, start=header_row + 1):
        row_data = [
            format_date_display(entry.date),
            entry.order_number or None,
            entry.object or None,
            entry.location or None,
            entry.hours,
            entry.absences if entry.absences > 0 else None,
            entry.overtime if entry.overtime > 0 else None,
            entry.expenses or None,
            entry.expense_amount if entry.expense_amount > 0 else None,
            entry.notes or None,
        ]
        for col_idx, value in enumerate(row_data, start=1):
            cell = ws.cell(row=row_idx, column=col_idx, value=value)
            cell.border = _border(ROW_BORDER_COLOR)
            _apply_number_format(cell, col_idx)
            if row_idx % 2 == 0:
                cell.fill = _fill(ZEBRA_COLOR)

    t = totals(report.entries)

    # One blank row between data and totals
    total_row = row_idx + 2
    total_data = [
        TOTAL_LABEL, None, None, None,
        t.hours,
        t.absences if t.absences > 0 else None,
        t.overtime if t.overtime > 0 else None,
        None,
        t.expenses if t.expenses > 0 else None,
        None,
    ]
    for col_idx, value in enumerate(total_data, start=1):
        cell = ws.cell(row=total_row, column=col_idx, value=value)
        cell.font = Font(bold=True)
        cell.fill = _fill(SECONDARY_COLOR)
        cell.border = _border(HEADER_BORDER_COLOR)
        _apply_number_format(cell, col_idx)

    required_row = total_row + 1
    for col_idx in range(1, len(REPORT_HEADERS) + 1):
        cell = ws.cell(row=required_row, column=col_idx)
        cell.border = _border(HEADER_BORDER_COLOR)
    label_cell = ws.cell(row=required_row, column=1, value=REQUIRED_HOURS_LABEL)
    label_cell.font = Font(bold=True)
    value_cell = ws.cell(row=required_row, column=5, value=t.required_hours)
    value_cell.font = Font(bold=True)
    value_cell.fill = _fill(SECONDARY_COLOR)
    _apply_number_format(value_cell, 5)

    footer_row = required_row + 1
    ws.merge_cells(f"A{footer_row}:{last_col}{footer_row}")
    footer = ws.cell(row=footer_row, column=1, value=f"Erstellt mit {APP_NAME}")
    footer.font = Font(size=8, italic=True, color="808080")
    footer.alignment = Alignment(horizontal="center")


def create_excel_report(
    report: WorkReport, created: date | None = None, include_company_info: bool = True
) -> bytes:
    """Create a formatted single-sheet Excel workbook."""
    created = created or date.today()
    wb = Workbook()
    ws = wb.active
    ws.title = "Arbeitsrapport"
    wb.properties.creator = APP_NAME
    wb.properties.title = f"Arbeitsrapport: {report.name}"
    write_excel_report_sheet(ws, report, created, include_company_info)

    buffer = io.BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer.getvalue()


# =============================================================================
# PDF
# =============================================================================


def create_pdf_report(
    report: WorkReport, created: date | None = None, include_company_info: bool = True
) -> bytes:
    """Create an A4 portrait PDF with the entry table, totals and a summary."""
    created = created or date.today()
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=A4,
        leftMargin=15 * mm, rightMargin=15 * mm,
        topMargin=15 * mm, bottomMargin=15 * mm,
        title=f"Arbeitsrapport: {report.name}",
        subject=f"Zeitraum: {report.period}",
        author=APP_NAME,
        creator=APP_NAME,
    )
    styles = getSampleStyleSheet()
    elements = []

    elements.append(Paragraph(f"<b>Arbeitsrapport: {escape(report.name)}</b>", styles["Title"]))
    elements.append(Paragraph(f"Zeitraum: {escape(report.period)}", styles["Heading3"]))
    created_line = f"Erstellt am: {format_date_display(created)}"
    if include_company_info:
        created_line = f"Erstellt mit {APP_NAME} · {created_line}"
    elements.append(Paragraph(f"<font size=9 color=grey>{created_line}</font>", styles["Normal"]))
    elements.append(Spacer(1, 5 * mm))

    cell_style = styles["BodyText"].clone("cell", fontSize=7, leading=8)
    t = totals(report.entries)

    table_data = [REPORT_HEADERS]
    for entry in report.entries:
        table_data.append([
            format_date_display(entry.date),
            Paragraph(escape(entry.order_number), cell_style),
            Paragraph(escape(entry.object), cell_style),
            Paragraph(escape(entry.location), cell_style),
            f"{entry.hours:.2f}",
            f"{entry.absences:.2f}" if entry.absences > 0 else "",
            f"{entry.overtime:.2f}" if entry.overtime > 0 else "",
            Paragraph(escape(entry.expenses), cell_style),
            format_amount(entry.expense_amount),
            Paragraph(escape(entry.notes), cell_style),
        ])
    table_data.append([
        TOTAL_LABEL, "", "", "",
        f"{t.hours:.2f}",
        f"{t.absences:.2f}" if t.absences > 0 else "",
        f"{t.overtime:.2f}" if t.overtime > 0 else "",
        "",
        format_amount(t.expenses),
        "",
    ])
    table_data.append([REQUIRED_HOURS_LABEL, "", "", "", f"{t.required_hours:.2f}", "", "", "", "", ""])

    total_idx = len(report.entries) + 1
    style = [
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(f"#{PRIMARY_COLOR}")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("ALIGN", (0, 0), (-1, 0), "CENTER"),
        ("GRID", (0, 0), (-1, -1), 0.3, colors.HexColor(f"#{ROW_BORDER_COLOR}")),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("FONTSIZE", (0, 0), (-1, -1), 7),
        ("ALIGN", (4, 1), (6, -1), "RIGHT"),
        ("ALIGN", (8, 1), (8, -1), "RIGHT"),
        ("FONTNAME", (0, total_idx), (-1, total_idx), "Helvetica-Bold"),
        ("BACKGROUND", (0, total_idx), (-1, total_idx), colors.HexColor(f"#{SECONDARY_COLOR}")),
        ("FONTNAME", (0, total_idx + 1), (0, total_idx + 1), "Helvetica-Bold"),
        ("FONTNAME", (4, total_idx + 1), (4, total_idx + 1), "Helvetica-Bold"),
        ("BACKGROUND", (4, total_idx + 1), (4, total_idx + 1), colors.HexColor(f"#{SECONDARY_COLOR}")),
    ]
    for row in range(2, total_idx, 2):
        style.append(("BACKGROUND", (0, row), (-1, row), colors.HexColor(f"#{ZEBRA_COLOR}")))

    table = Table(table_data, colWidths=[w * mm for w in PDF_COLUMN_WIDTHS], repeatRows=1)
    table.setStyle(TableStyle(style))
    elements.append(table)
    elements.append(Spacer(1, 6 * mm))

    summary = [
        f"Gesamtstunden: {t.hours:.2f}",
        f"Absenzen: {t.absences:.2f}",
        f"Überstunden: {t.overtime:.2f}",
        f"Auslagen: {t.expenses:.2f} CHF",
        f"Sollstunden: {t.required_hours:.2f}",
    ]
    elements.append(Paragraph(" | ".join(summary), styles["Normal"]))

    doc.build(elements)
    buffer.seek(0)
    return buffer.getvalue()


# =============================================================================
# DISPATCH
# =============================================================================


def export_report(
    report: WorkReport, fmt: str, created: date | None = None
) -> tuple[bytes, str, str]:
    """
    Export a report in the requested format.

    Returns:
        Tuple of (file_bytes, filename, media_type)

    Raises:
        ValueError: Unknown format
    """
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format '{fmt}'. Expected one of: csv, excel, pdf")

    extension, media_type = EXPORT_FORMATS[fmt]
    if fmt == "csv":
        data = create_csv_report(report, created)
    elif fmt == "excel":
        data = create_excel_report(report, created)
    else:
        data = create_pdf_report(report, created)

    return data, export_filename(report, extension), media_type
