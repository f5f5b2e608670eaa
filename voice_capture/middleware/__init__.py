"""Application middleware package."""

from .lifecycle import DrainGateMiddleware
from .logging import REQUEST_ID_HEADER, StructuredLoggingMiddleware
from .telemetry import TelemetryMiddleware

__all__ = [
    "DrainGateMiddleware",
    "REQUEST_ID_HEADER",
    "StructuredLoggingMiddleware",
    "TelemetryMiddleware",
]
