"""
Email sending for work reports.

All providers implement MailTransport.send(); which one is used is decided
by configuration (MAIL_TRANSPORT), not by trying one after another.
"""

import asyncio
import base64
import smtplib
import ssl
import traceback
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from email.message import EmailMessage
from email.utils import make_msgid

import httpx
from azure.identity import ClientSecretCredential
from msgraph import GraphServiceClient
from msgraph.generated.models.body_type import BodyType
from msgraph.generated.models.email_address import EmailAddress
from msgraph.generated.models.file_attachment import FileAttachment
from msgraph.generated.models.item_body import ItemBody
from msgraph.generated.models.message import Message
from msgraph.generated.models.recipient import Recipient
from msgraph.generated.users.item.send_mail.send_mail_post_request_body import (
    SendMailPostRequestBody,
)

from core.config import (
    ERROR_EMAIL,
    GRAPH_APP_ID,
    GRAPH_CLIENT_SECRET,
    GRAPH_TENANT_ID,
    MAIL_FROM,
    MAIL_TRANSPORT,
    RESEND_API_KEY,
    RESEND_API_URL,
    SMTP_HOST,
    SMTP_PASSWORD,
    SMTP_PORT,
    SMTP_SECURE,
    SMTP_TIMEOUT,
    SMTP_USER,
)
from models.entries import SmtpSettings, WorkReport
from services.reports import export_report, totals


class MailError(Exception):
    """Sending failed or the transport is not usable."""


@dataclass
class Attachment:
    filename: str
    content: bytes
    content_type: str


@dataclass
class MailMessage:
    to: str
    subject: str
    text: str
    attachments: list[Attachment] = field(default_factory=list)
    from_email: str = ""


class MailTransport(ABC):
    """Sends a message and returns the provider's message id."""

    name = ""

    @abstractmethod
    async def send(self, message: MailMessage) -> str:
        ...


class SmtpTransport(MailTransport):
    """Plain SMTP: implicit TLS when `secure`, otherwise STARTTLS."""

    name = "smtp"

    def __init__(self, settings: SmtpSettings, timeout: int = SMTP_TIMEOUT):
        if not settings.is_complete():
            raise MailError(
                "Ihre SMTP-Einstellungen sind unvollständig. Bitte überprüfen Sie Ihr Profil."
            )
        self.settings = settings
        self.timeout = timeout

    def build_message(self, message: MailMessage) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = message.subject
        msg["From"] = message.from_email or self.settings.from_email or self.settings.username
        msg["To"] = message.to
        msg["Message-ID"] = make_msgid()
        msg.set_content(message.text)
        for attachment in message.attachments:
            maintype, _, subtype = attachment.content_type.partition("/")
            msg.add_attachment(
                attachment.content,
                maintype=maintype,
                subtype=subtype.split(";")[0].strip(),
                filename=attachment.filename,
            )
        return msg

    def _connect(self) -> smtplib.SMTP:
        s = self.settings
        if s.secure:
            return smtplib.SMTP_SSL(s.host, s.port, timeout=self.timeout)
        return smtplib.SMTP(s.host, s.port, timeout=self.timeout)

    def _send_sync(self, msg: EmailMessage):
        s = self.settings
        with self._connect() as server:
            if not s.secure:
                server.starttls(context=ssl.create_default_context())
            server.login(s.username, s.password)
            server.send_message(msg)

    async def send(self, message: MailMessage) -> str:
        msg = self.build_message(message)
        try:
            await asyncio.to_thread(self._send_sync, msg)
        except (smtplib.SMTPException, OSError) as e:
            raise MailError(f"SMTP delivery failed: {e}") from e
        return msg["Message-ID"]


class GraphTransport(MailTransport):
    """Microsoft Graph sendMail on behalf of MAIL_FROM (app credentials)."""

    name = "graph"

    def __init__(self, sender: str = MAIL_FROM, tenant_id: str = GRAPH_TENANT_ID,
                 app_id: str = GRAPH_APP_ID, client_secret: str = GRAPH_CLIENT_SECRET):
        self.sender = sender
        self.tenant_id = tenant_id
        self.app_id = app_id
        self.client_secret = client_secret
        self._client: GraphServiceClient | None = None

    def get_client(self) -> GraphServiceClient:
        """Create the Graph client on first use."""
        if self._client is None:
            if not (self.tenant_id and self.app_id and self.client_secret):
                raise MailError("MS Graph credentials are not configured")
            credential = ClientSecretCredential(
                tenant_id=self.tenant_id,
                client_id=self.app_id,
                client_secret=self.client_secret,
            )
            self._client = GraphServiceClient(
                credentials=credential,
                scopes=["https://graph.microsoft.com/.default"],
            )
        return self._client

    def build_request(self, message: MailMessage, message_id: str) -> SendMailPostRequestBody:
        attachments = [
            FileAttachment(
                odata_type="#microsoft.graph.fileAttachment",
                name=a.filename,
                content_type=a.content_type,
                content_bytes=a.content,
            )
            for a in message.attachments
        ]
        graph_message = Message(
            subject=message.subject,
            body=ItemBody(content_type=BodyType.Text, content=message.text),
            to_recipients=[Recipient(email_address=EmailAddress(address=message.to))],
            attachments=attachments,
            internet_message_id=message_id,
        )
        return SendMailPostRequestBody(message=graph_message, save_to_sent_items=True)

    async def send(self, message: MailMessage) -> str:
        message_id = make_msgid()
        request_body = self.build_request(message, message_id)
        graph = self.get_client()
        try:
            await graph.users.by_user_id(message.from_email or self.sender).send_mail.post(
                request_body
            )
        except Exception as e:
            raise MailError(f"Graph delivery failed: {e}") from e
        return message_id


class ResendTransport(MailTransport):
    """Resend HTTP API."""

    name = "resend"

    def __init__(self, api_key: str = RESEND_API_KEY, api_url: str = RESEND_API_URL,
                 sender: str = MAIL_FROM):
        if not api_key:
            raise MailError("RESEND_API_KEY is not configured")
        self.api_url = api_url
        self.sender = sender
        self.headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def build_payload(self, message: MailMessage) -> dict:
        return {
            "from": message.from_email or self.sender,
            "to": [message.to],
            "subject": message.subject,
            "text": message.text,
            "attachments": [
                {
                    "filename": a.filename,
                    "content": base64.b64encode(a.content).decode("ascii"),
                }
                for a in message.attachments
            ],
        }

    async def send(self, message: MailMessage) -> str:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.api_url,
                    json=self.build_payload(message),
                    headers=self.headers,
                    timeout=30.0,
                )
                response.raise_for_status()
                return response.json().get("id", "")
        except httpx.HTTPError as e:
            raise MailError(f"Resend delivery failed: {e}") from e


def default_smtp_settings() -> SmtpSettings:
    """SMTP account from the environment."""
    return SmtpSettings(
        host=SMTP_HOST,
        port=SMTP_PORT,
        username=SMTP_USER,
        password=SMTP_PASSWORD,
        secure=SMTP_SECURE,
        from_email=MAIL_FROM,
    )


def get_transport(name: str | None = None, smtp_settings: SmtpSettings | None = None) -> MailTransport:
    """
    Create the configured transport.

    For smtp, per-user settings take precedence over the environment.
    """
    name = (name or MAIL_TRANSPORT).lower()
    if name == "smtp":
        return SmtpTransport(smtp_settings or default_smtp_settings())
    if name == "graph":
        return GraphTransport()
    if name == "resend":
        return ResendTransport()
    raise MailError(f"Unknown mail transport '{name}'. Expected one of: smtp, graph, resend")


# =============================================================================
# REPORT EMAILS
# =============================================================================


def default_subject(report: WorkReport) -> str:
    employee = report.employee_name or "Mitarbeiter"
    return f"Arbeitsrapport: {employee} - {report.month or 'Monat'}/{report.year or 'Jahr'}"


def default_body(report: WorkReport) -> str:
    """Standard German cover text with the total hours."""
    total_hours = totals(report.entries).hours
    lines = [
        "Sehr geehrte Damen und Herren,",
        "",
        f"anbei erhalten Sie den Arbeitsrapport für {report.month or 'Monat'}/{report.year or 'Jahr'}.",
        "",
        "Zusammenfassung:",
        f"- Gesamtstunden: {total_hours:.2f}",
        "",
        "Mit freundlichen Grüßen,",
        report.employee_name or "Mitarbeiter",
    ]
    return "\n".join(lines)


def build_report_email(
    to: str,
    report: WorkReport,
    fmt: str = "excel",
    subject: str | None = None,
    text: str | None = None,
    created: date | None = None,
) -> MailMessage:
    """Export the report and wrap it in a message."""
    content, filename, media_type = export_report(report, fmt, created)
    return MailMessage(
        to=to,
        subject=subject or default_subject(report),
        text=text or default_body(report),
        attachments=[Attachment(filename=filename, content=content, content_type=media_type)],
    )


async def send_report_email(
    transport: MailTransport,
    to: str,
    report: WorkReport,
    fmt: str = "excel",
    subject: str | None = None,
    text: str | None = None,
) -> str:
    """Send report email with attachment and return the message id."""
    message = build_report_email(to, report, fmt, subject, text)
    message_id = await transport.send(message)
    print(f"Sent report email to {to} via {transport.name}")
    return message_id


async def send_error_email(error: Exception, transport: MailTransport | None = None):
    """Send error notification email."""
    if not ERROR_EMAIL:
        print("No ERROR_EMAIL configured, skipping error notification")
        return

    message = MailMessage(
        to=ERROR_EMAIL,
        subject="Arbeitsrapport - Script Error",
        text=(
            f"An error occurred while generating the work report: {error}\n\n"
            f"{traceback.format_exc()}"
        ),
    )
    try:
        transport = transport or get_transport()
        await transport.send(message)
        print(f"Sent error email to {ERROR_EMAIL}")
    except MailError as e:
        print(f"Failed to send error email: {e}")
