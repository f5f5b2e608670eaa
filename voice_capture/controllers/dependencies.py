"""Common FastAPI dependencies reused across controllers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated
from uuid import uuid4

from fastapi import Depends, Request

from voice_capture.context import RequestContext
from voice_capture.pipelines.voice import VoicePipeline


def get_pipeline(request: Request) -> VoicePipeline:
    return request.app.state.pipeline


def get_request_context(request: Request) -> RequestContext:
    """Build the request context from the correlation data set by middleware."""

    request_id = getattr(request.state, "request_id", None) or str(uuid4())
    received_at = getattr(request.state, "received_at", None) or datetime.now(timezone.utc)
    return RequestContext(request_id=request_id, received_at=received_at)


PipelineDep = Annotated[VoicePipeline, Depends(get_pipeline)]
RequestContextDep = Annotated[RequestContext, Depends(get_request_context)]


__all__ = [
    "get_pipeline",
    "get_request_context",
    "PipelineDep",
    "RequestContextDep",
]
