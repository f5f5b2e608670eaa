"""Service layer helpers for external integrations."""

from .email import (
    MAIL_SUBJECT,
    MailClient,
    MailError,
    MailErrorCode,
    MailPayload,
    classify_mail_failure,
)
from .transcribe import (
    TranscriptionClient,
    TranscriptionError,
    TranscriptionErrorCode,
    TranscriptionResult,
    classify_transcription_failure,
)

__all__ = [
    "MAIL_SUBJECT",
    "MailClient",
    "MailError",
    "MailErrorCode",
    "MailPayload",
    "classify_mail_failure",
    "TranscriptionClient",
    "TranscriptionError",
    "TranscriptionErrorCode",
    "TranscriptionResult",
    "classify_transcription_failure",
]
