"""Per-request context threaded through the pipeline and both clients."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import uuid4


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContextLoggerAdapter(logging.LoggerAdapter):
    """Merge the context fields into any ``extra`` given at the call site."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


@dataclass(frozen=True)
class RequestContext:
    """Correlation data for a single inbound request."""

    request_id: str = field(default_factory=lambda: str(uuid4()))
    received_at: datetime = field(default_factory=_utcnow)

    def logger(self, name: str) -> ContextLoggerAdapter:
        """Return a logger adapter that stamps ``request_id`` on every record."""

        return ContextLoggerAdapter(
            logging.getLogger(name),
            {"request_id": self.request_id},
        )

    @property
    def captured_at(self) -> str:
        """ISO-8601 UTC arrival time with millisecond precision."""

        return (
            self.received_at.astimezone(timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )


__all__ = ["ContextLoggerAdapter", "RequestContext"]
