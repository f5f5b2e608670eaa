"""Voice capture endpoint.

``POST /voice`` hands the request to
:class:`voice_capture.pipelines.voice.VoicePipeline`, which performs:

1. Drain gate.
2. Bearer token authentication.
3. Validation of the single uploaded audio part.
4. Transcription of the recording.
5. Delivery of the transcript by email.

The multipart body is parsed lazily so unauthorized requests never have
their uploads read, and parsing stops as soon as the body outgrows the
upload limit.
"""

from __future__ import annotations

from typing import AsyncGenerator, Sequence

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile
from starlette.formparsers import MultiPartException, MultiPartParser

from voice_capture.controllers.dependencies import PipelineDep, RequestContextDep
from voice_capture.pipelines.voice import (
    MAX_UPLOAD_BYTES,
    RawFile,
    UploadParseError,
    UploadTooLargeError,
)

router = APIRouter(tags=["voice"])

# Room for part headers and boundaries on top of the file itself.
MULTIPART_OVERHEAD_BYTES = 64 * 1024

# Two file parts are enough to report "more than one file".
MAX_FILE_PARTS = 2
MAX_FORM_FIELDS = 16


class FormUploadSource:
    """Read file parts from a multipart request on first use.

    The body is fed to the parser through a byte counter, so at most
    ``max_bytes`` plus multipart overhead is ever spooled to disk. A declared
    ``Content-Length`` over that bound is rejected before anything is read.
    """

    def __init__(self, request: Request, *, max_bytes: int = MAX_UPLOAD_BYTES) -> None:
        self._request = request
        self._max_bytes = max_bytes
        self._max_body_bytes = max_bytes + MULTIPART_OVERHEAD_BYTES

    async def files(self) -> Sequence[RawFile]:
        headers = self._request.headers
        if not headers.get("content-type", "").lower().startswith("multipart/form-data"):
            # Any other body carries no file part.
            return []

        declared = headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self._max_body_bytes:
            raise UploadTooLargeError(f"Declared body of {declared} bytes exceeds the upload limit")

        parser = MultiPartParser(
            headers,
            self._bounded_stream(),
            max_files=MAX_FILE_PARTS,
            max_fields=MAX_FORM_FIELDS,
        )
        try:
            form = await parser.parse()
        except MultiPartException as exc:
            raise UploadParseError(exc.message) from exc

        files: list[RawFile] = []
        try:
            for field_name, value in form.multi_items():
                if not isinstance(value, UploadFile):
                    continue
                # One byte past the limit is enough to reject oversize uploads.
                content = await value.read(self._max_bytes + 1)
                files.append(
                    RawFile(
                        field_name=field_name,
                        filename=value.filename,
                        content_type=value.content_type,
                        content=content,
                    )
                )
        finally:
            await form.close()
        return files

    async def _bounded_stream(self) -> AsyncGenerator[bytes, None]:
        received = 0
        async for chunk in self._request.stream():
            received += len(chunk)
            if received > self._max_body_bytes:
                raise UploadTooLargeError(f"Body exceeded {self._max_body_bytes} bytes while streaming")
            yield chunk


@router.post("/voice")
async def capture_voice(
    request: Request,
    pipeline: PipelineDep,
    context: RequestContextDep,
) -> JSONResponse:
    """Transcribe an uploaded recording and email the transcript."""

    outcome = await pipeline.handle_upload_request(
        FormUploadSource(request),
        request.headers.get("authorization"),
        context,
    )
    return JSONResponse(status_code=outcome.status_code, content=outcome.body())


__all__ = ["FormUploadSource", "router"]
