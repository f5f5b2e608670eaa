#!/usr/bin/env python3
"""
Run script for the voice capture gateway
"""
import logging
import sys

from voice_capture.config.settings import ConfigurationError, load_settings
from voice_capture.lifecycle import LifecycleController
from voice_capture.main import create_app
from voice_capture.server import build_server


def main() -> int:
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        logging.basicConfig(level=logging.ERROR, format="%(levelname)s %(message)s")
        logging.getLogger("voice_capture.bootstrap").critical(
            "Configuration validation failed: %s", "; ".join(exc.errors)
        )
        return 1

    lifecycle = LifecycleController()
    app = create_app(settings, lifecycle=lifecycle)
    logging.getLogger("voice_capture.bootstrap").info(
        "Service starting",
        extra={
            "port": settings.port,
            "service_version": settings.service_version,
        },
    )
    build_server(app, settings, lifecycle).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
