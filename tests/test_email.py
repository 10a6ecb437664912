"""Tests for mail transports and report email construction."""

import asyncio
import base64
import smtplib

import httpx
import pytest

import services.email as email_service
from models.entries import SmtpSettings
from services.email import (
    GraphTransport,
    MailError,
    MailMessage,
    ResendTransport,
    SmtpTransport,
    build_report_email,
    default_body,
    default_subject,
    get_transport,
    send_error_email,
    send_report_email,
)

SMTP_SETTINGS = SmtpSettings(
    host="smtp.example.com", port=465, username="max@example.com", password="secret"
)


class FakeSMTP:
    """Records calls instead of talking to a server."""

    instances = []
    fail_login = False
    fail_starttls = False

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.sent = []
        self.started_tls = False
        self.closed = False
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.quit()

    def starttls(self, context=None):
        if FakeSMTP.fail_starttls:
            raise smtplib.SMTPNotSupportedError("STARTTLS extension not supported by server.")
        self.started_tls = True

    def login(self, user, password):
        if FakeSMTP.fail_login:
            raise smtplib.SMTPAuthenticationError(535, b"bad credentials")
        self.credentials = (user, password)

    def send_message(self, msg):
        self.sent.append(msg)

    def quit(self):
        self.closed = True


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.fail_login = False
    FakeSMTP.fail_starttls = False
    monkeypatch.setattr(smtplib, "SMTP_SSL", FakeSMTP)
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


class RecordingTransport(email_service.MailTransport):
    name = "recording"

    def __init__(self):
        self.messages = []

    async def send(self, message):
        self.messages.append(message)
        return "<id@test>"


# =============================================================================
# Message content
# =============================================================================


def test_default_subject_and_body(sample_report):
    assert default_subject(sample_report) == "Arbeitsrapport: Max Muster - 03/2024"
    body = default_body(sample_report)
    assert "anbei erhalten Sie den Arbeitsrapport für 03/2024." in body
    assert "- Gesamtstunden: 12.00" in body
    assert body.endswith("Max Muster")


def test_default_subject_placeholders(sample_report):
    sample_report.employee_name = ""
    sample_report.month = ""
    sample_report.year = ""
    assert default_subject(sample_report) == "Arbeitsrapport: Mitarbeiter - Monat/Jahr"


def test_build_report_email_attaches_export(sample_report):
    message = build_report_email("chef@example.com", sample_report, "pdf", subject="Rapport")
    assert message.subject == "Rapport"
    assert message.text == default_body(sample_report)
    [attachment] = message.attachments
    assert attachment.filename == "Arbeitsrapport_Max_Muster_März_2024.pdf"
    assert attachment.content_type == "application/pdf"
    assert attachment.content.startswith(b"%PDF")


# =============================================================================
# SMTP
# =============================================================================


def test_smtp_requires_complete_settings():
    with pytest.raises(MailError):
        SmtpTransport(SmtpSettings(host="smtp.example.com", port=465, username="", password=""))


def test_smtp_send_with_implicit_tls(fake_smtp, sample_report):
    transport = SmtpTransport(SMTP_SETTINGS)
    message = build_report_email("chef@example.com", sample_report, "csv")

    message_id = asyncio.run(transport.send(message))

    [server] = fake_smtp.instances
    assert not server.started_tls
    assert server.credentials == ("max@example.com", "secret")
    assert server.closed
    [sent] = server.sent
    assert sent["Message-ID"] == message_id
    assert sent["From"] == "max@example.com"
    [attachment] = list(sent.iter_attachments())
    assert attachment.get_filename() == "Arbeitsrapport_Max_Muster_März_2024.csv"


def test_smtp_send_with_starttls(fake_smtp):
    settings = SmtpSettings(
        host="smtp.example.com", port=587, username="max", password="pw",
        secure=False, from_email="rapport@example.com",
    )
    message = MailMessage(to="chef@example.com", subject="s", text="t")
    asyncio.run(SmtpTransport(settings).send(message))

    [server] = fake_smtp.instances
    assert server.started_tls
    assert server.sent[0]["From"] == "rapport@example.com"


def test_smtp_failure_raises_mail_error(fake_smtp):
    fake_smtp.fail_login = True
    message = MailMessage(to="chef@example.com", subject="s", text="t")
    with pytest.raises(MailError):
        asyncio.run(SmtpTransport(SMTP_SETTINGS).send(message))
    assert fake_smtp.instances[0].closed


def test_smtp_starttls_failure_closes_connection(fake_smtp):
    fake_smtp.fail_starttls = True
    settings = SmtpSettings(
        host="smtp.example.com", port=587, username="max", password="pw", secure=False,
    )
    message = MailMessage(to="chef@example.com", subject="s", text="t")
    with pytest.raises(MailError):
        asyncio.run(SmtpTransport(settings).send(message))

    [server] = fake_smtp.instances
    assert server.closed
    assert server.sent == []


# =============================================================================
# Resend / Graph
# =============================================================================


def test_resend_requires_api_key():
    with pytest.raises(MailError):
        ResendTransport(api_key="")


def test_resend_payload_base64_attachments(sample_report):
    transport = ResendTransport(api_key="re_test", sender="rapport@example.com")
    message = build_report_email("chef@example.com", sample_report, "csv")
    payload = transport.build_payload(message)

    assert payload["from"] == "rapport@example.com"
    assert payload["to"] == ["chef@example.com"]
    decoded = base64.b64decode(payload["attachments"][0]["content"])
    assert decoded == message.attachments[0].content


def _patch_httpx(monkeypatch, handler):
    real_client = httpx.AsyncClient
    monkeypatch.setattr(
        httpx, "AsyncClient", lambda: real_client(transport=httpx.MockTransport(handler))
    )


def test_resend_send_returns_id(monkeypatch):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"id": "msg_123"})

    _patch_httpx(monkeypatch, handler)
    transport = ResendTransport(api_key="re_test")
    message_id = asyncio.run(transport.send(MailMessage(to="a@b.ch", subject="s", text="t")))

    assert message_id == "msg_123"
    assert requests[0].headers["Authorization"] == "Bearer re_test"


def test_resend_http_error_raises_mail_error(monkeypatch):
    _patch_httpx(monkeypatch, lambda request: httpx.Response(422, json={"message": "invalid"}))
    transport = ResendTransport(api_key="re_test")
    with pytest.raises(MailError):
        asyncio.run(transport.send(MailMessage(to="a@b.ch", subject="s", text="t")))


def test_graph_request_body(sample_report):
    message = build_report_email("chef@example.com", sample_report, "excel")
    body = GraphTransport(sender="rapport@example.com").build_request(message, "<id@test>")

    assert body.save_to_sent_items is True
    assert body.message.subject == message.subject
    assert body.message.to_recipients[0].email_address.address == "chef@example.com"
    assert body.message.attachments[0].name.endswith(".xlsx")


def test_graph_without_credentials_raises_mail_error():
    transport = GraphTransport(tenant_id="", app_id="", client_secret="")
    with pytest.raises(MailError):
        asyncio.run(transport.send(MailMessage(to="a@b.ch", subject="s", text="t")))


# =============================================================================
# Transport selection and helpers
# =============================================================================


def test_get_transport_by_name():
    assert isinstance(get_transport("smtp", SMTP_SETTINGS), SmtpTransport)
    assert isinstance(get_transport("GRAPH"), GraphTransport)
    with pytest.raises(MailError):
        get_transport("carrier-pigeon")


def test_send_report_email_uses_transport(sample_report):
    transport = RecordingTransport()
    message_id = asyncio.run(send_report_email(transport, "chef@example.com", sample_report, "csv"))

    assert message_id == "<id@test>"
    [message] = transport.messages
    assert message.to == "chef@example.com"
    assert message.attachments[0].filename.endswith(".csv")


def test_send_error_email_skipped_without_address(monkeypatch):
    monkeypatch.setattr(email_service, "ERROR_EMAIL", "")
    transport = RecordingTransport()
    asyncio.run(send_error_email(RuntimeError("boom"), transport))
    assert transport.messages == []


def test_send_error_email(monkeypatch):
    monkeypatch.setattr(email_service, "ERROR_EMAIL", "admin@example.com")
    transport = RecordingTransport()
    asyncio.run(send_error_email(RuntimeError("boom"), transport))
    [message] = transport.messages
    assert message.to == "admin@example.com"
    assert "boom" in message.text
