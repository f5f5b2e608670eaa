"""Upload validation helpers."""

from __future__ import annotations

from typing import Final, Sequence

from .types import (
    BadRequest,
    RawFile,
    UploadedAudio,
    ValidationFailureReason,
)

MAX_UPLOAD_BYTES: Final[int] = 100 * 1024 * 1024

UPLOAD_FIELD: Final[str] = "file"

INVALID_UPLOAD_MESSAGE: Final[str] = "Invalid file upload"
OVERSIZE_MESSAGE: Final[str] = "Audio file exceeds the 100 MiB limit"

ALLOWED_CONTENT_TYPES: Final[frozenset[str]] = frozenset(
    {
        "audio/mpeg",
        "audio/mp3",
        "audio/mp4",
        "audio/x-m4a",
        "audio/wav",
        "audio/webm",
        "audio/ogg",
    }
)


def normalize_content_type(content_type: str | None) -> str:
    """Drop media type parameters (``audio/webm;codecs=opus`` -> ``audio/webm``)."""

    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def validate_upload(files: Sequence[RawFile]) -> UploadedAudio | BadRequest:
    """Accept exactly one non-empty audio file within the size limit."""

    if not files:
        return BadRequest(ValidationFailureReason.MISSING_FILE, "No audio file provided")

    if any(upload.field_name != UPLOAD_FIELD for upload in files):
        return BadRequest(ValidationFailureReason.MALFORMED_UPLOAD, INVALID_UPLOAD_MESSAGE)

    if len(files) > 1:
        return BadRequest(
            ValidationFailureReason.UNEXPECTED_FILE,
            "Only one audio file may be uploaded",
        )

    upload = files[0]
    content_type = normalize_content_type(upload.content_type)
    if content_type not in ALLOWED_CONTENT_TYPES:
        return BadRequest(
            ValidationFailureReason.INVALID_FORMAT,
            f"Invalid audio format: {upload.content_type or 'unknown'}",
        )

    if not upload.content:
        return BadRequest(ValidationFailureReason.EMPTY_FILE, "Audio file is empty")

    if len(upload.content) > MAX_UPLOAD_BYTES:
        return BadRequest(ValidationFailureReason.OVERSIZE, OVERSIZE_MESSAGE)

    return UploadedAudio(
        content=upload.content,
        content_type=content_type,
        filename=upload.filename or None,
    )


__all__ = [
    "ALLOWED_CONTENT_TYPES",
    "INVALID_UPLOAD_MESSAGE",
    "MAX_UPLOAD_BYTES",
    "OVERSIZE_MESSAGE",
    "UPLOAD_FIELD",
    "normalize_content_type",
    "validate_upload",
]
