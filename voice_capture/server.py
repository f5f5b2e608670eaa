"""uvicorn runner that drains the lifecycle on shutdown signals."""

from __future__ import annotations

import logging
from types import FrameType

import uvicorn
from fastapi import FastAPI

from .config.settings import Settings
from .lifecycle import LifecycleController

logger = logging.getLogger(__name__)

DRAIN_TIMEOUT_SECONDS = 30


class DrainingServer(uvicorn.Server):
    """Flip the lifecycle to draining before uvicorn begins its shutdown.

    uvicorn then stops accepting connections and waits for in-flight requests
    for at most ``DRAIN_TIMEOUT_SECONDS`` before cancelling them.
    """

    def __init__(self, config: uvicorn.Config, lifecycle: LifecycleController) -> None:
        super().__init__(config)
        self._lifecycle = lifecycle

    def handle_exit(self, sig: int, frame: FrameType | None) -> None:
        if self._lifecycle.begin_drain():
            logger.info("Shutdown signal received, draining", extra={"signal": int(sig)})
        super().handle_exit(sig, frame)


def build_server(
    app: FastAPI,
    settings: Settings,
    lifecycle: LifecycleController,
) -> DrainingServer:
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
        timeout_graceful_shutdown=DRAIN_TIMEOUT_SECONDS,
    )
    return DrainingServer(config, lifecycle)


__all__ = ["DRAIN_TIMEOUT_SECONDS", "DrainingServer", "build_server"]
