"""
Single-Flight Gate
==================

Admits at most one render job at a time. Overlapping requests are rejected
immediately instead of queued.
"""

import threading
from contextlib import contextmanager
from typing import Any, Iterator

from cardshot.config.logging import get_logger
from cardshot.core.errors import AlreadyBusy
from cardshot.models.schemas import GateState

logger = get_logger(__name__)


class SingleFlightGate:
    """Two-state admission gate: idle -> busy on admit, busy -> idle on release."""

    def __init__(self) -> None:
        # Non-blocking acquire is the atomic check-and-set, safe under a thread pool too.
        self._lock = threading.Lock()
        self.logger: Any = logger.bind(component="single_flight_gate")

    @property
    def state(self) -> GateState:
        return GateState.BUSY if self._lock.locked() else GateState.IDLE

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def try_admit(self) -> bool:
        """
        Atomically move idle -> busy.

        Returns:
            True if admitted, False (with no state change) if already busy
        """
        admitted = self._lock.acquire(blocking=False)
        if admitted:
            self.logger.debug("Job admitted")
        else:
            self.logger.info("Job rejected, gate busy")
        return admitted

    def release(self) -> None:
        """Move busy -> idle. Releasing an idle gate is a programming error."""
        if not self._lock.locked():
            raise RuntimeError("Gate released while idle")
        self._lock.release()
        self.logger.debug("Gate released")

    @contextmanager
    def admit(self) -> Iterator["SingleFlightGate"]:
        """
        Hold the gate for the duration of the block.

        Raises:
            AlreadyBusy: If another job holds the gate
        """
        if not self.try_admit():
            raise AlreadyBusy()
        try:
            yield self
        finally:
            self.release()
