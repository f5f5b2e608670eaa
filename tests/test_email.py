"""MailClient transport selection, payload rendering and error taxonomy."""

from __future__ import annotations

import asyncio
import smtplib
import socket

import pytest

from voice_capture.config.settings import MailConfig
from voice_capture.context import RequestContext
from voice_capture.services.email import (
    MAIL_SUBJECT,
    MailClient,
    MailError,
    MailErrorCode,
    MailPayload,
    classify_mail_failure,
)


class FakeSMTP:
    """Stand-in for smtplib.SMTP / SMTP_SSL that records the conversation."""

    instances: list["FakeSMTP"] = []
    starttls_offered = True
    error: Exception | None = None

    def __init__(self, host, port, timeout=None, context=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.context = context
        self.commands: list[str] = []
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.commands.append("quit")
        return False

    def ehlo(self):
        self.commands.append("ehlo")

    def has_extn(self, name):
        return self.starttls_offered and name == "starttls"

    def starttls(self, context=None):
        self.commands.append("starttls")

    def login(self, username, password):
        self.commands.append(f"login:{username}:{password}")
        if self.error is not None:
            raise self.error

    def send_message(self, message):
        self.commands.append("send")
        self.messages.append(message)


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.starttls_offered = True
    FakeSMTP.error = None
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(smtplib, "SMTP_SSL", FakeSMTP)
    return FakeSMTP


def _config(port: int = 587) -> MailConfig:
    return MailConfig(
        host="smtp.example.com",
        port=port,
        username="mailer",
        password="mail-secret",
        sender="voice@example.com",
        recipient="inbox@example.com",
        timeout=10,
    )


def _payload(**overrides) -> MailPayload:
    values = {"text": "buy milk", "captured_at": "2024-05-01T09:30:00.123Z", "language": "en"}
    values.update(overrides)
    return MailPayload(**values)


def _send(client: MailClient, payload: MailPayload | None = None):
    return asyncio.run(client.send(payload or _payload(), RequestContext()))


def test_send_requires_initialization(fake_smtp):
    client = MailClient(_config())

    with pytest.raises(MailError) as excinfo:
        _send(client)

    assert excinfo.value.code is MailErrorCode.NOT_INITIALIZED
    assert fake_smtp.instances == []


def test_starttls_on_submission_port(fake_smtp):
    client = MailClient(_config(587))
    client.initialize()

    _send(client)

    smtp = fake_smtp.instances[0]
    assert (smtp.host, smtp.port, smtp.timeout) == ("smtp.example.com", 587, 10)
    assert smtp.commands == ["ehlo", "starttls", "ehlo", "login:mailer:mail-secret", "send", "quit"]

    message = smtp.messages[0]
    assert message["From"] == "voice@example.com"
    assert message["To"] == "inbox@example.com"
    assert message["Subject"] == MAIL_SUBJECT
    assert message.get_content().startswith("buy milk\n\n---\n")


def test_plain_relay_without_starttls(fake_smtp):
    fake_smtp.starttls_offered = False
    client = MailClient(_config(25))
    client.initialize()

    _send(client)

    assert "starttls" not in fake_smtp.instances[0].commands


def test_implicit_tls_on_port_465(fake_smtp):
    client = MailClient(_config(465))
    client.initialize()

    _send(client)

    smtp = fake_smtp.instances[0]
    assert smtp.context is not None
    assert smtp.commands == ["login:mailer:mail-secret", "send", "quit"]


@pytest.mark.parametrize(
    "error, code",
    [
        (ConnectionRefusedError(111, "Connection refused"), MailErrorCode.SMTP_CONNECTION_FAILED),
        (smtplib.SMTPConnectError(421, b"busy"), MailErrorCode.SMTP_CONNECTION_FAILED),
        (smtplib.SMTPAuthenticationError(535, b"5.7.8 bad credentials"), MailErrorCode.AUTH_FAILED),
        (socket.timeout("timed out"), MailErrorCode.TIMEOUT),
        (smtplib.SMTPRecipientsRefused({}), MailErrorCode.SEND_FAILED),
        (ValueError("bad header"), MailErrorCode.UNKNOWN_ERROR),
    ],
)
def test_transport_failures_are_classified(fake_smtp, error, code):
    fake_smtp.error = error
    client = MailClient(_config())
    client.initialize()

    with pytest.raises(MailError) as excinfo:
        _send(client)

    assert excinfo.value.code is code
    # Worker-thread timeouts are re-created when they cross back to the loop.
    cause = excinfo.value.__cause__
    assert type(cause) is type(error)
    assert cause.args == error.args


@pytest.mark.parametrize(
    "message, code",
    [
        ("connect ECONNREFUSED 127.0.0.1:587", MailErrorCode.SMTP_CONNECTION_FAILED),
        ("Invalid login: 535", MailErrorCode.AUTH_FAILED),
        ("socket operation timed out", MailErrorCode.TIMEOUT),
        ("broken pipe", MailErrorCode.SEND_FAILED),
    ],
)
def test_generic_os_errors_fall_back_to_message(message, code):
    assert classify_mail_failure(OSError(message)).code is code


def test_existing_mail_error_passes_through():
    error = MailError(MailErrorCode.AUTH_FAILED, "nope")

    assert classify_mail_failure(error) is error


def test_body_footer_defaults():
    body = _payload(language=None).body

    assert body == "buy milk\n\n---\nCaptured at: 2024-05-01T09:30:00.123Z\nLanguage: auto-detected"


def test_body_footer_with_filename():
    body = _payload(filename="memo.m4a").body

    assert body.splitlines()[-1] == "Filename: memo.m4a"
    assert body.splitlines()[-2] == "Language: en"
