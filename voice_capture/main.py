"""Application entry point and FastAPI app factory."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pythonjsonlogger.json import JsonFormatter
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config.settings import Settings
from .controllers import voice
from .lifecycle import LifecycleController
from .middleware import (
    REQUEST_ID_HEADER,
    DrainGateMiddleware,
    StructuredLoggingMiddleware,
    TelemetryMiddleware,
)
from .pipelines.voice import Mailer, Transcriber, VoicePipeline
from .services import MailClient, TranscriptionClient
from .telemetry import EventSink, PrometheusEventSink

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_ERROR_MESSAGES = {
    404: "Not found",
    405: "Method not allowed",
}


def _configure_logging(settings: Settings) -> None:
    """Send JSON log records to stdout and, when configured, a rotating file."""

    formatter = JsonFormatter(
        _LOG_FORMAT,
        static_fields={
            "service": "voice-capture",
            "env": settings.environment,
            "version": settings.service_version,
        },
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    root_logger.addHandler(stdout_handler)

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=1_000_000,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.setLevel(settings.log_level.upper())

    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    # Request lines come from the structured middleware instead.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    noisy_loggers = [
        "httpx",
        "httpcore",
        "multipart",
        "python_multipart",
    ]
    for name in noisy_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)


def create_app(
    settings: Settings,
    *,
    lifecycle: LifecycleController | None = None,
    transcriber: Transcriber | None = None,
    mailer: Mailer | None = None,
    events: EventSink | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    _configure_logging(settings)

    lifecycle = lifecycle or LifecycleController()
    transcription_client = transcriber or TranscriptionClient(settings.transcription)
    mail_client = mailer or MailClient(settings.mail)

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        debug=settings.debug,
        description="Voice capture gateway: transcribe uploaded audio and email the text",
    )
    app.state.settings = settings
    app.state.lifecycle = lifecycle
    app.state.pipeline = VoicePipeline(
        ingest_token=settings.ingest_token.get_secret_value(),
        lifecycle=lifecycle,
        transcriber=transcription_client,
        mailer=mail_client,
        events=events or PrometheusEventSink(),
    )

    app.add_middleware(DrainGateMiddleware, lifecycle=lifecycle)
    app.add_middleware(TelemetryMiddleware)
    app.add_middleware(StructuredLoggingMiddleware)

    app.include_router(voice.router)

    @app.get("/health", include_in_schema=False)
    async def health_check() -> JSONResponse:
        """Liveness probe; reports drain state without side effects."""

        if lifecycle.is_draining:
            return JSONResponse(status_code=503, content={"ok": False, "shuttingDown": True})
        return JSONResponse(content={"ok": True})

    @app.get("/ready", include_in_schema=False)
    async def readiness_check() -> JSONResponse:
        """Readiness probe; every required setting must be present."""

        missing = settings.missing_required()
        if missing:
            logging.getLogger(__name__).warning(
                "Service not ready - missing configuration",
                extra={"missing": missing},
            )
            return JSONResponse(status_code=503, content={"ok": False, "error": "Service not ready"})
        return JSONResponse(content={"ok": True})

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Expose application metrics for Prometheus scraping."""

        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = _ERROR_MESSAGES.get(exc.status_code, str(exc.detail))
        return JSONResponse(
            status_code=exc.status_code,
            content={"ok": False, "error": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        headers = {}
        request_id = getattr(request.state, "request_id", None)
        if request_id:
            headers[REQUEST_ID_HEADER] = request_id
        return JSONResponse(
            status_code=500,
            content={"ok": False, "error": "Internal server error"},
            headers=headers,
        )

    @app.on_event("startup")
    async def startup_event() -> None:
        if isinstance(mail_client, MailClient) and not mail_client.initialized:
            mail_client.initialize()

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        if isinstance(transcription_client, TranscriptionClient):
            await transcription_client.aclose()

    return app


__all__ = ["create_app"]
