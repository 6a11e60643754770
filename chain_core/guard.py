from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from .config import GUARD_TIMEOUT

logger = logging.getLogger(__name__)


class MoveGuard:
    """
    Re-entrancy guard allowing exactly one move in flight.

    A second acquire while held is refused, never queued. The guard also
    expires on its own once ``timeout`` seconds have passed since it was
    taken, so a presentation callback that never reports back cannot leave
    the game permanently busy. Expiry is checked lazily against ``clock``
    whenever the guard is queried; no timer threads are involved.
    """

    def __init__(self, timeout: float = GUARD_TIMEOUT, clock: Callable[[], float] = time.monotonic) -> None:
        self.timeout = timeout
        self._clock = clock
        self._held_since: Optional[float] = None
        self._label: str = ""

    @property
    def busy(self) -> bool:
        if self._held_since is None:
            return False
        if self._clock() - self._held_since >= self.timeout:
            logger.warning("move guard (%s) held for over %.2fs; forcing release", self._label, self.timeout)
            self.release()
            return False
        return True

    def acquire(self, label: str = "move") -> bool:
        if self.busy:
            return False
        self._held_since = self._clock()
        self._label = label
        return True

    def release(self) -> None:
        self._held_since = None
        self._label = ""

    def rearm(self, label: str) -> None:
        """Keeps the guard held under a new label and restarts the safety timeout."""
        self._held_since = self._clock()
        self._label = label
