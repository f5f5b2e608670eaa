"""Side-channel events emitted by the voice pipeline.

Each attempted pipeline step produces exactly one :class:`PipelineEvent`.
Sinks decide what to do with it; the default sink feeds Prometheus and
writes one structured log record so operators can join events by
``request_id``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol

from .metrics import observe_pipeline_event

events_logger = logging.getLogger("voice_capture.events")

METRIC_GATE = "voice_gate"
METRIC_AUTH = "auth"
METRIC_VALIDATION = "validation"
METRIC_TRANSCRIPTION = "whisper_transcription"
METRIC_MAIL = "mail_send"
METRIC_REQUEST = "voice_request"

RESULT_SUCCESS = "success"
RESULT_FAILURE = "failure"


@dataclass(frozen=True)
class PipelineEvent:
    """One step outcome keyed by a fixed metric name."""

    metric: str
    result: str
    request_id: str
    duration_ms: float
    reason: str | None = None
    tags: Mapping[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.result == RESULT_SUCCESS


class EventSink(Protocol):
    def emit(self, event: PipelineEvent) -> None:
        ...


class PrometheusEventSink:
    """Default sink: Prometheus counters plus a JSON log line per event."""

    def emit(self, event: PipelineEvent) -> None:
        observe_pipeline_event(
            event.metric,
            event.result,
            event.reason,
            event.duration_ms / 1000,
        )

        level = logging.INFO if event.succeeded else logging.WARNING
        events_logger.log(
            level,
            "Metric: %s",
            event.metric,
            extra={
                "metric": event.metric,
                "value": 1,
                "result": event.result,
                "reason": event.reason,
                "duration_ms": event.duration_ms,
                "request_id": event.request_id,
                **dict(event.tags),
            },
        )


__all__ = [
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
