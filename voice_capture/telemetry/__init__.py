"""Telemetry helpers, metrics and pipeline events."""

from .events import (
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
    PrometheusEventSink,
)
from .metrics import (
    ERROR_COUNTER,
    PIPELINE_EVENT_COUNT,
    PIPELINE_EVENT_LATENCY,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    observe_pipeline_event,
    observe_request,
)

__all__ = [
    "ERROR_COUNTER",
    "PIPELINE_EVENT_COUNT",
    "PIPELINE_EVENT_LATENCY",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "observe_pipeline_event",
    "observe_request",
    "EventSink",
    "PipelineEvent",
    "PrometheusEventSink",
    "METRIC_AUTH",
    "METRIC_GATE",
    "METRIC_MAIL",
    "METRIC_REQUEST",
    "METRIC_TRANSCRIPTION",
    "METRIC_VALIDATION",
    "RESULT_FAILURE",
    "RESULT_SUCCESS",
]
