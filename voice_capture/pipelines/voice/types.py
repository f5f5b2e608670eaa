"""Typed containers shared across the voice pipeline.

The outcome classes form the complete response surface of ``POST /voice``;
each one knows its HTTP status and JSON body so the controller never has to
branch on them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Protocol, Sequence, Union


class AuthFailureReason(str, Enum):
    MISSING_CREDENTIAL = "missing_credential"
    INVALID_CREDENTIAL = "invalid_credential"


class ValidationFailureReason(str, Enum):
    MISSING_FILE = "missing_file"
    UNEXPECTED_FILE = "unexpected_file"
    MALFORMED_UPLOAD = "malformed_upload"
    EMPTY_FILE = "empty_file"
    INVALID_FORMAT = "invalid_format"
    OVERSIZE = "oversize"


class UploadParseError(ValueError):
    """Raised by an upload source when the request body is not valid multipart."""


class UploadTooLargeError(UploadParseError):
    """Raised by an upload source that stops reading a body over the size limit."""


@dataclass(frozen=True)
class RawFile:
    """One file part as received, before validation."""

    field_name: str
    filename: str | None
    content_type: str | None
    content: bytes


class UploadSource(Protocol):
    async def files(self) -> Sequence[RawFile]:
        ...


@dataclass(frozen=True)
class UploadedAudio:
    """A validated audio upload."""

    content: bytes
    content_type: str
    filename: str | None

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class Success:
    text: str
    language: str

    status_code: ClassVar[int] = 200

    def body(self) -> dict[str, Any]:
        return {"ok": True, "text": self.text, "language": self.language}


@dataclass(frozen=True)
class BadRequest:
    reason: ValidationFailureReason
    message: str

    status_code: ClassVar[int] = 400

    def body(self) -> dict[str, Any]:
        return {"ok": False, "error": self.message}


@dataclass(frozen=True)
class Unauthorized:
    reason: AuthFailureReason

    status_code: ClassVar[int] = 401

    def body(self) -> dict[str, Any]:
        # The specific reason only goes to the event stream.
        return {"ok": False, "error": "Unauthorized"}


@dataclass(frozen=True)
class InternalError:
    message: str = "Internal server error"

    status_code: ClassVar[int] = 500

    def body(self) -> dict[str, Any]:
        return {"ok": False, "error": self.message}


@dataclass(frozen=True)
class ServiceUnavailable:
    status_code: ClassVar[int] = 503

    def body(self) -> dict[str, Any]:
        return {"ok": False, "error": "Service is shutting down"}


Outcome = Union[Success, BadRequest, Unauthorized, InternalError, ServiceUnavailable]


__all__ = [
    "AuthFailureReason",
    "BadRequest",
    "InternalError",
    "Outcome",
    "RawFile",
    "ServiceUnavailable",
    "Success",
    "Unauthorized",
    "UploadParseError",
    "UploadTooLargeError",
    "UploadSource",
    "UploadedAudio",
    "ValidationFailureReason",
]
