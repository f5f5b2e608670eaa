"""Process lifecycle state shared by the HTTP layer and the voice pipeline."""

from __future__ import annotations

import logging
import threading
from enum import Enum

logger = logging.getLogger(__name__)


class LifecycleState(str, Enum):
    """Two-phase service lifecycle; ``DRAINING`` is terminal."""

    ACCEPTING = "accepting"
    DRAINING = "draining"


class LifecycleController:
    """Track whether the service still accepts new work.

    One instance is created per process by the server runner and handed to
    the app factory. Readers only ever look at the current value; the single
    write happens from a signal handler, which may re-enter while a previous
    handler still holds the lock.
    """

    def __init__(self) -> None:
        self._state = LifecycleState.ACCEPTING
        self._lock = threading.RLock()

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def is_draining(self) -> bool:
        return self._state is LifecycleState.DRAINING

    def begin_drain(self) -> bool:
        """Stop accepting new requests. Returns True only on the first call."""

        with self._lock:
            if self._state is LifecycleState.DRAINING:
                return False
            self._state = LifecycleState.DRAINING

        logger.info("Drain started; new requests will be rejected")
        return True


__all__ = ["LifecycleController", "LifecycleState"]
