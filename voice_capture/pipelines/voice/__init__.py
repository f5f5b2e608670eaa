"""Voice capture pipeline package.

Modules are organised by the order in which ``POST /voice`` executes:

1. `auth` – bearer credential check against the ingest token.
2. `ingestion` – single-part upload validation.
3. `flow` – the orchestrator that sequences transcription and mail.

`types` holds the request outcomes shared by the controller and the
orchestrator.
"""

from .auth import check_credential, extract_bearer_token
from .flow import MAIL_FAILED, TRANSCRIPTION_FAILED, Mailer, Transcriber, VoicePipeline
from .ingestion import (
    ALLOWED_CONTENT_TYPES,
    INVALID_UPLOAD_MESSAGE,
    MAX_UPLOAD_BYTES,
    OVERSIZE_MESSAGE,
    UPLOAD_FIELD,
    validate_upload,
)
from .types import (
    AuthFailureReason,
    BadRequest,
    InternalError,
    Outcome,
    RawFile,
    ServiceUnavailable,
    Success,
    Unauthorized,
    UploadedAudio,
    UploadParseError,
    UploadSource,
    UploadTooLargeError,
    ValidationFailureReason,
)

__all__ = [
    "ALLOWED_CONTENT_TYPES",
    "INVALID_UPLOAD_MESSAGE",
    "MAX_UPLOAD_BYTES",
    "OVERSIZE_MESSAGE",
    "UPLOAD_FIELD",
    "MAIL_FAILED",
    "TRANSCRIPTION_FAILED",
    "AuthFailureReason",
    "BadRequest",
    "InternalError",
    "Mailer",
    "Outcome",
    "RawFile",
    "ServiceUnavailable",
    "Success",
    "Transcriber",
    "Unauthorized",
    "UploadedAudio",
    "UploadParseError",
    "UploadSource",
    "UploadTooLargeError",
    "ValidationFailureReason",
    "VoicePipeline",
    "check_credential",
    "extract_bearer_token",
    "validate_upload",
]
