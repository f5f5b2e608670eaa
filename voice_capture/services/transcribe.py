"""Speech-to-text integration against an OpenAI-compatible transcription API."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from voice_capture.config.settings import TranscriptionConfig
from voice_capture.context import RequestContext


@dataclass(frozen=True)
class TranscriptionResult:
    """Structured transcription outcome returned to the pipeline."""

    text: str
    language: str | None = None


class TranscriptionErrorCode(str, Enum):
    TIMEOUT = "TIMEOUT"
    RATE_LIMIT = "RATE_LIMIT"
    AUTH_ERROR = "AUTH_ERROR"
    API_ERROR = "API_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class TranscriptionError(RuntimeError):
    """Raised when the provider fails to transcribe audio successfully."""

    def __init__(
        self,
        code: TranscriptionErrorCode,
        message: str,
        *,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code


def classify_transcription_failure(exc: BaseException) -> TranscriptionError:
    """Map a raw failure onto the fixed transcription error taxonomy."""

    if isinstance(exc, TranscriptionError):
        return exc

    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException)):
        return TranscriptionError(
            TranscriptionErrorCode.TIMEOUT,
            "Transcription request timed out",
        )

    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
        if status_code == 429:
            return TranscriptionError(
                TranscriptionErrorCode.RATE_LIMIT,
                "Transcription provider rate limit exceeded",
                status_code=status_code,
            )
        if status_code in (401, 403):
            return TranscriptionError(
                TranscriptionErrorCode.AUTH_ERROR,
                "Transcription provider authentication failed",
                status_code=status_code,
            )
        return TranscriptionError(
            TranscriptionErrorCode.API_ERROR,
            f"Transcription provider returned {status_code}",
            status_code=status_code,
        )

    return TranscriptionError(
        TranscriptionErrorCode.UNKNOWN_ERROR,
        f"Transcription failed: {exc}",
    )


class TranscriptionClient:
    """Single-attempt facade over the provider's transcription endpoint."""

    def __init__(
        self,
        config: TranscriptionConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout)

    @property
    def endpoint(self) -> str:
        return f"{self._config.base_url.rstrip('/')}/audio/transcriptions"

    async def transcribe(
        self,
        content: bytes,
        filename: str | None,
        context: RequestContext,
    ) -> TranscriptionResult:
        """Send the audio to the provider and return the recognised text.

        The whole call, upload included, is bounded by the configured timeout.
        Failures are raised as :class:`TranscriptionError`; nothing is retried.
        """

        log = context.logger(__name__)
        start_time = time.perf_counter()
        log.debug(
            "Calling transcription API",
            extra={"file_name": filename, "file_size": len(content)},
        )

        try:
            result = await asyncio.wait_for(
                self._request(content, filename or "audio"),
                timeout=self._config.timeout,
            )
        except Exception as exc:
            error = classify_transcription_failure(exc)
            log.error(
                "Transcription failed",
                extra={
                    "error_code": error.code.value,
                    "status_code": error.status_code,
                    "error": str(exc),
                    "duration_ms": _elapsed_ms(start_time),
                },
            )
            if error is exc:
                raise
            raise error from exc

        log.info(
            "Transcription successful",
            extra={
                "duration_ms": _elapsed_ms(start_time),
                "text_length": len(result.text),
                "language": result.language or "auto-detected",
            },
        )
        return result

    async def _request(self, content: bytes, filename: str) -> TranscriptionResult:
        # No language field: the provider auto-detects.
        response = await self._client.post(
            self.endpoint,
            headers={
                "Authorization": f"Bearer {self._config.api_key.get_secret_value()}",
            },
            data={
                "model": self._config.model,
                "response_format": self._config.response_format,
            },
            files={"file": (filename, content)},
        )
        response.raise_for_status()
        return self._parse(response)

    @staticmethod
    def _parse(response: httpx.Response) -> TranscriptionResult:
        payload: Any = response.json()
        text = payload.get("text") if isinstance(payload, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise TranscriptionError(
                TranscriptionErrorCode.API_ERROR,
                "Transcription provider returned no text",
                status_code=response.status_code,
            )

        language = payload.get("language")
        return TranscriptionResult(
            text=text.strip(),
            language=language if isinstance(language, str) and language else None,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)


__all__ = [
    "TranscriptionClient",
    "TranscriptionError",
    "TranscriptionErrorCode",
    "TranscriptionResult",
    "classify_transcription_failure",
]
