"""Drain gate for requests arriving after shutdown has begun."""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from voice_capture.lifecycle import LifecycleController

logger = logging.getLogger(__name__)

# /health reports drain state itself; /voice runs the gate inside its pipeline
# so the rejection is recorded as a pipeline event.
_GATE_EXEMPT_PATHS = frozenset({"/health", "/voice"})


class DrainGateMiddleware(BaseHTTPMiddleware):
    """Reject new work with 503 once the lifecycle is draining."""

    def __init__(self, app, lifecycle: LifecycleController) -> None:
        super().__init__(app)
        self._lifecycle = lifecycle

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if self._lifecycle.is_draining and request.url.path not in _GATE_EXEMPT_PATHS:
            logger.warning(
                "Request rejected: service shutting down",
                extra={
                    "request_id": getattr(request.state, "request_id", None),
                    "path": request.url.path,
                },
            )
            return JSONResponse(
                status_code=503,
                content={"ok": False, "error": "Service is shutting down"},
            )

        return await call_next(request)
