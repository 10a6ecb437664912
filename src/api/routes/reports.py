"""Report storage, export and email endpoints."""

import asyncio
import unicodedata
from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response

from api.dependencies import get_db, get_transport_factory, verify_api_key
from api.logging import logged_request
from api.models.requests import EmailReportRequest, ExportFormat, ReportPayload, SaveReportRequest
from api.models.responses import EmailResponse, ReportCreatedResponse, ReportSummary
from core.database import generate_report_name, get_smtp_config, list_reports, save_report
from services.email import send_report_email
from services.reports import export_report, totals

router = APIRouter(prefix="/v1/reports")


def content_disposition(filename: str) -> str:
    """
    Attachment header that survives any report name (RFC 6266 / 5987).

    Latin-1 is all Starlette can put in a header, so the plain `filename`
    is an ASCII fallback and the real name goes into `filename*`.
    """
    fallback = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    fallback = "".join(c if c.isprintable() and c not in '"\\' else "_" for c in fallback)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


@router.post("", response_model=ReportCreatedResponse, status_code=201)
async def create_report(
    request: Request,
    body: SaveReportRequest,
    conn=Depends(get_db),
    _api_key: str = Depends(verify_api_key),
):
    """Store a report; a name is generated when none is given."""
    with logged_request(request, user_id=body.user_id) as request_log:
        report = body.report.to_report()
        if not report.name:
            report.name = generate_report_name(body.user_id, body.report_date, conn)
        report_id = save_report(conn, body.user_id, report, body.report_date)

        request_log.status_code = 201
        request_log.entry_count = len(report.entries)
        request_log.total_hours = totals(report.entries).hours
        return ReportCreatedResponse(id=report_id, name=report.name)


@router.get("", response_model=list[ReportSummary])
async def report_history(
    request: Request,
    user_id: str,
    conn=Depends(get_db),
    _api_key: str = Depends(verify_api_key),
):
    """Stored reports for a user, newest first."""
    with logged_request(request, user_id=user_id):
        return [ReportSummary(**row) for row in list_reports(conn, user_id)]


@router.post("/export")
async def export_report_endpoint(
    request: Request,
    body: ReportPayload,
    format: Annotated[ExportFormat, Query(description="csv, excel or pdf")] = "excel",
    _api_key: str = Depends(verify_api_key),
):
    """Render a report as CSV, Excel or PDF and return the file."""
    with logged_request(request, export_format=format) as request_log:
        report = body.to_report()

        # Rendering is CPU-bound
        content, filename, media_type = await asyncio.to_thread(export_report, report, format)

        request_log.entry_count = len(report.entries)
        request_log.total_hours = totals(report.entries).hours
        return Response(
            content=content,
            media_type=media_type,
            headers={"Content-Disposition": content_disposition(filename)},
        )


@router.post("/email", response_model=EmailResponse)
async def email_report(
    request: Request,
    body: EmailReportRequest,
    conn=Depends(get_db),
    transport_factory=Depends(get_transport_factory),
    _api_key: str = Depends(verify_api_key),
):
    """Export a report and send it through the configured mail transport."""
    with logged_request(request, user_id=body.user_id, export_format=body.format) as request_log:
        report = body.report.to_report()
        smtp_settings = get_smtp_config(conn, body.user_id) if body.user_id else None
        transport = transport_factory(smtp_settings=smtp_settings)

        message_id = await send_report_email(
            transport, body.to, report, body.format, body.subject, body.message
        )

        request_log.entry_count = len(report.entries)
        request_log.total_hours = totals(report.entries).hours
        return EmailResponse(success=True, message_id=message_id, transport=transport.name)
