"""Orchestration of a single ``POST /voice`` request.

Stages, each a short-circuit point:

1. ``gate`` – refuse new work once the lifecycle is draining.
2. ``auth`` – compare the bearer credential with the ingest token.
3. ``validation`` – read the multipart body and check the single audio part.
4. ``transcription`` – forward the audio to the speech-to-text provider.
5. ``mail`` – email the transcript with its capture metadata.

Every attempted stage emits exactly one event to the configured sink; stages
skipped by an earlier short-circuit emit nothing. Provider and relay error
codes only ever reach the event stream, never the caller.
"""

from __future__ import annotations

import time
from typing import Any, Protocol

from voice_capture.context import RequestContext
from voice_capture.lifecycle import LifecycleController
from voice_capture.services.email import MailPayload, classify_mail_failure
from voice_capture.services.transcribe import (
    TranscriptionError,
    TranscriptionResult,
    classify_transcription_failure,
)
from voice_capture.telemetry.events import (
    METRIC_AUTH,
    METRIC_GATE,
    METRIC_MAIL,
    METRIC_REQUEST,
    METRIC_TRANSCRIPTION,
    METRIC_VALIDATION,
    RESULT_FAILURE,
    RESULT_SUCCESS,
    EventSink,
    PipelineEvent,
)

from .auth import check_credential
from .ingestion import INVALID_UPLOAD_MESSAGE, OVERSIZE_MESSAGE, validate_upload
from .types import (
    BadRequest,
    InternalError,
    Outcome,
    ServiceUnavailable,
    Success,
    Unauthorized,
    UploadedAudio,
    UploadParseError,
    UploadSource,
    UploadTooLargeError,
    ValidationFailureReason,
)

PIPELINE_LOGGER = "voice_capture.pipelines.voice"

TRANSCRIPTION_FAILED = "Failed to transcribe audio"
MAIL_FAILED = "Failed to send email"
UNEXPECTED = "UNEXPECTED"


class Transcriber(Protocol):
    async def transcribe(
        self,
        content: bytes,
        filename: str | None,
        context: RequestContext,
    ) -> TranscriptionResult:
        ...


class Mailer(Protocol):
    async def send(self, payload: MailPayload, context: RequestContext) -> None:
        ...


class VoicePipeline:
    """Gate, authenticate, validate, transcribe and mail one upload."""

    def __init__(
        self,
        *,
        ingest_token: str,
        lifecycle: LifecycleController,
        transcriber: Transcriber,
        mailer: Mailer,
        events: EventSink,
    ) -> None:
        self._ingest_token = ingest_token
        self._lifecycle = lifecycle
        self._transcriber = transcriber
        self._mailer = mailer
        self._events = events

    async def handle_upload_request(
        self,
        upload: UploadSource,
        authorization: str | None,
        context: RequestContext,
    ) -> Outcome:
        """Run the full pipeline and return exactly one outcome."""

        start_time = time.perf_counter()
        try:
            outcome = await self._run(upload, authorization, context)
        except Exception:
            context.logger(PIPELINE_LOGGER).exception("Unexpected pipeline failure")
            outcome = InternalError()
            reason: str | None = UNEXPECTED
        else:
            reason = None if isinstance(outcome, Success) else str(outcome.status_code)

        tags: dict[str, Any] = {"outcome": type(outcome).__name__}
        if isinstance(outcome, Success):
            tags["language"] = outcome.language
        self._emit(context, METRIC_REQUEST, start_time, reason=reason, **tags)
        return outcome

    async def _run(
        self,
        upload: UploadSource,
        authorization: str | None,
        context: RequestContext,
    ) -> Outcome:
        log = context.logger(PIPELINE_LOGGER)

        started = time.perf_counter()
        if self._lifecycle.is_draining:
            log.warning("Request rejected: service shutting down")
            self._emit(context, METRIC_GATE, started, reason="draining")
            return ServiceUnavailable()
        self._emit(context, METRIC_GATE, started)

        started = time.perf_counter()
        auth_failure = check_credential(authorization, self._ingest_token)
        if auth_failure is not None:
            log.warning(
                "Request rejected: unauthorized",
                extra={"reason": auth_failure.value},
            )
            self._emit(context, METRIC_AUTH, started, reason=auth_failure.value)
            return Unauthorized(auth_failure)
        log.debug("Request authorized")
        self._emit(context, METRIC_AUTH, started)

        started = time.perf_counter()
        try:
            validated = await self._validate(upload)
        except Exception:
            self._emit(context, METRIC_VALIDATION, started, reason=UNEXPECTED)
            raise
        if isinstance(validated, BadRequest):
            log.warning(
                "Request rejected: invalid upload",
                extra={"reason": validated.reason.value, "error": validated.message},
            )
            self._emit(context, METRIC_VALIDATION, started, reason=validated.reason.value)
            return validated
        log.info(
            "Request received",
            extra={
                "file_name": validated.filename,
                "file_size": validated.size,
                "content_type": validated.content_type,
            },
        )
        self._emit(
            context,
            METRIC_VALIDATION,
            started,
            content_type=validated.content_type,
            file_size=validated.size,
        )

        started = time.perf_counter()
        try:
            transcription = await self._transcriber.transcribe(
                validated.content,
                validated.filename,
                context,
            )
        except Exception as exc:
            error = classify_transcription_failure(exc)
            self._emit_transcription_failure(context, started, error)
            return InternalError(TRANSCRIPTION_FAILED)
        self._emit(
            context,
            METRIC_TRANSCRIPTION,
            started,
            language=transcription.language or "unknown",
            text_length=len(transcription.text),
        )

        payload = self._build_payload(transcription, validated, context)
        started = time.perf_counter()
        try:
            await self._mailer.send(payload, context)
        except Exception as exc:
            error = classify_mail_failure(exc)
            # The transcript is kept in the logs even though the caller sees a failure.
            log.error(
                "Transcript not delivered",
                extra={"error_code": error.code.value, "text_length": len(transcription.text)},
            )
            log.debug("Undelivered transcript", extra={"transcript": transcription.text})
            self._emit(context, METRIC_MAIL, started, reason=error.code.value)
            return InternalError(MAIL_FAILED)
        self._emit(context, METRIC_MAIL, started)

        log.info(
            "Request completed",
            extra={"text_length": len(transcription.text)},
        )
        return Success(
            text=transcription.text,
            language=transcription.language or "unknown",
        )

    async def _validate(self, upload: UploadSource) -> UploadedAudio | BadRequest:
        try:
            files = await upload.files()
        except UploadTooLargeError:
            return BadRequest(ValidationFailureReason.OVERSIZE, OVERSIZE_MESSAGE)
        except UploadParseError:
            return BadRequest(ValidationFailureReason.MALFORMED_UPLOAD, INVALID_UPLOAD_MESSAGE)
        return validate_upload(files)

    @staticmethod
    def _build_payload(
        transcription: TranscriptionResult,
        audio: UploadedAudio,
        context: RequestContext,
    ) -> MailPayload:
        return MailPayload(
            text=transcription.text,
            captured_at=context.captured_at,
            language=transcription.language,
            filename=audio.filename,
            size=audio.size,
        )

    def _emit_transcription_failure(
        self,
        context: RequestContext,
        started: float,
        error: TranscriptionError,
    ) -> None:
        tags: dict[str, Any] = {}
        if error.status_code is not None:
            tags["status_code"] = error.status_code
        self._emit(context, METRIC_TRANSCRIPTION, started, reason=error.code.value, **tags)

    def _emit(
        self,
        context: RequestContext,
        metric: str,
        started: float,
        *,
        reason: str | None = None,
        **tags: Any,
    ) -> None:
        self._events.emit(
            PipelineEvent(
                metric=metric,
                result=RESULT_SUCCESS if reason is None else RESULT_FAILURE,
                request_id=context.request_id,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                reason=reason,
                tags=tags,
            )
        )


__all__ = ["Mailer", "Transcriber", "VoicePipeline", "MAIL_FAILED", "TRANSCRIPTION_FAILED"]
