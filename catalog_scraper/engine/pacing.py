"""Global start-time pacing shared by every worker thread."""

from __future__ import annotations

import time
from threading import Event, Lock
from typing import Callable


class RequestPacer:
    """Space task starts at least ``interval`` seconds apart.

    Slots are measured from the previous task's start, not its completion,
    so the aggregate start rate stays at one per ``interval`` whatever the
    number of workers.
    """

    def __init__(
        self,
        interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        wait: Callable[[float], bool] | None = None,
    ) -> None:
        self.interval = max(0.0, interval)
        self._clock = clock
        self._stopped = Event()
        self._wait = wait or self._stopped.wait
        self._lock = Lock()
        self._next_slot: float | None = None

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def stop(self) -> None:
        """Wake every waiting caller; later :meth:`acquire` calls return ``False``."""

        self._stopped.set()

    def acquire(self) -> bool:
        """Block until the caller's slot; ``False`` if stopped before it arrived."""

        with self._lock:
            now = self._clock()
            slot = now if self._next_slot is None else max(now, self._next_slot)
            self._next_slot = slot + self.interval
        delay = slot - now
        if delay > 0 and self._wait(delay):
            return False
        return not self._stopped.is_set()


__all__ = ["RequestPacer"]
