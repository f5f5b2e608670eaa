"""SMTP delivery of transcript emails."""

from __future__ import annotations

import asyncio
import logging
import smtplib
import socket
import ssl
import time
from dataclasses import dataclass
from email.message import EmailMessage
from enum import Enum

from voice_capture.config.settings import MailConfig
from voice_capture.context import RequestContext

logger = logging.getLogger(__name__)

MAIL_SUBJECT = "[GTD][VOICE] Transcribed Audio"


class MailErrorCode(str, Enum):
    NOT_INITIALIZED = "NOT_INITIALIZED"
    SMTP_CONNECTION_FAILED = "SMTP_CONNECTION_FAILED"
    AUTH_FAILED = "AUTH_FAILED"
    TIMEOUT = "TIMEOUT"
    SEND_FAILED = "SEND_FAILED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class MailError(RuntimeError):
    """Raised when the mail relay cannot deliver a message."""

    def __init__(self, code: MailErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code


# Used only when the exception type alone does not identify the failure.
_MESSAGE_MARKERS: tuple[tuple[MailErrorCode, tuple[str, ...]], ...] = (
    (MailErrorCode.SMTP_CONNECTION_FAILED, ("econnrefused", "connection refused")),
    (MailErrorCode.AUTH_FAILED, ("invalid login", "authentication")),
    (MailErrorCode.TIMEOUT, ("timed out", "timeout")),
)

_MESSAGES = {
    MailErrorCode.SMTP_CONNECTION_FAILED: "Failed to connect to SMTP server",
    MailErrorCode.AUTH_FAILED: "SMTP authentication failed",
    MailErrorCode.TIMEOUT: "SMTP request timed out",
}


def classify_mail_failure(exc: BaseException) -> MailError:
    """Map a transport failure onto the fixed mail error taxonomy."""

    if isinstance(exc, MailError):
        return exc

    code: MailErrorCode | None = None
    if isinstance(exc, (ConnectionRefusedError, smtplib.SMTPConnectError)):
        code = MailErrorCode.SMTP_CONNECTION_FAILED
    elif isinstance(exc, smtplib.SMTPAuthenticationError):
        code = MailErrorCode.AUTH_FAILED
    elif isinstance(exc, (TimeoutError, socket.timeout)):
        code = MailErrorCode.TIMEOUT
    elif isinstance(exc, OSError):
        text = str(exc).lower()
        for candidate, markers in _MESSAGE_MARKERS:
            if any(marker in text for marker in markers):
                code = candidate
                break
        else:
            return MailError(MailErrorCode.SEND_FAILED, f"Failed to send email: {exc}")
    else:
        return MailError(MailErrorCode.UNKNOWN_ERROR, "Unknown error sending email")

    return MailError(code, _MESSAGES[code])


@dataclass(frozen=True)
class MailPayload:
    """Transcript email derived from one successful transcription."""

    text: str
    captured_at: str
    language: str | None = None
    filename: str | None = None
    size: int | None = None
    subject: str = MAIL_SUBJECT

    @property
    def body(self) -> str:
        """Transcript followed by the capture metadata footer."""

        footer = [
            "---",
            f"Captured at: {self.captured_at}",
            f"Language: {self.language or 'auto-detected'}",
        ]
        if self.filename:
            footer.append(f"Filename: {self.filename}")
        return f"{self.text}\n\n" + "\n".join(footer)


class MailClient:
    """Send plain text emails through the configured SMTP relay."""

    def __init__(self, config: MailConfig) -> None:
        self._config = config
        self._ssl_context: ssl.SSLContext | None = None

    @property
    def initialized(self) -> bool:
        return self._ssl_context is not None

    def initialize(self) -> None:
        """Prepare the transport; must run once before any send."""

        self._ssl_context = ssl.create_default_context()
        logger.info(
            "Mail transport initialized",
            extra={
                "host": self._config.host,
                "port": self._config.port,
                "secure": self._config.use_ssl,
            },
        )

    async def send(self, payload: MailPayload, context: RequestContext) -> None:
        """Deliver one message to the configured recipient. Never retries."""

        if self._ssl_context is None:
            raise MailError(MailErrorCode.NOT_INITIALIZED, "Mail transport not initialized")

        log = context.logger(__name__)
        start_time = time.perf_counter()

        message = EmailMessage()
        message["From"] = self._config.sender
        message["To"] = self._config.recipient
        message["Subject"] = payload.subject
        message.set_content(payload.body)

        log.debug(
            "Sending email",
            extra={"recipient": self._config.recipient, "text_length": len(payload.text)},
        )

        try:
            await asyncio.to_thread(self._send_sync, message, self._ssl_context)
        except Exception as exc:
            error = classify_mail_failure(exc)
            log.error(
                "Failed to send email",
                extra={
                    "error_code": error.code.value,
                    "error": str(exc),
                    "duration_ms": _elapsed_ms(start_time),
                },
            )
            raise error from exc

        log.info("Email sent", extra={"duration_ms": _elapsed_ms(start_time)})

    def _send_sync(self, message: EmailMessage, context: ssl.SSLContext) -> None:
        config = self._config
        password = config.password.get_secret_value()

        if config.use_ssl:
            with smtplib.SMTP_SSL(
                config.host,
                config.port,
                timeout=config.timeout,
                context=context,
            ) as client:
                client.login(config.username, password)
                client.send_message(message)
            return

        with smtplib.SMTP(config.host, config.port, timeout=config.timeout) as client:
            client.ehlo()
            if client.has_extn("starttls"):
                client.starttls(context=context)
                client.ehlo()
            client.login(config.username, password)
            client.send_message(message)


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)


__all__ = [
    "MAIL_SUBJECT",
    "MailClient",
    "MailError",
    "MailErrorCode",
    "MailPayload",
    "classify_mail_failure",
]
