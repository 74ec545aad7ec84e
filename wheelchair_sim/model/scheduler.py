"""Periodic trigger primitives used to drive the tick engine."""

import threading
from typing import Callable, Dict, Hashable, Tuple


class Scheduler:
    """Repeatedly invokes a callback at a fixed interval until cancelled."""

    def schedule(self, interval: float, callback: Callable[[], None]) -> Hashable:
        raise NotImplementedError

    def cancel(self, handle: Hashable) -> None:
        raise NotImplementedError


class _RepeatingThread(threading.Thread):
    def __init__(self, interval: float, callback: Callable[[], None]):
        super().__init__(name="wheelchair-sim-ticker", daemon=True)
        self.interval = interval
        self.callback = callback
        self._stopped = threading.Event()

    def run(self) -> None:
        while not self._stopped.wait(self.interval):
            self.callback()

    def stop(self) -> None:
        self._stopped.set()


class ThreadingScheduler(Scheduler):
    """
    Background-thread timer for hosts without an event loop.

    cancel() only stops future firings; a callback already running is
    allowed to finish, so callers needing a hard stop must guard the
    callback themselves.
    """

    def schedule(self, interval: float,
                 callback: Callable[[], None]) -> _RepeatingThread:
        if interval <= 0:
            raise ValueError("interval must be positive")
        ticker = _RepeatingThread(interval, callback)
        ticker.start()
        return ticker

    def cancel(self, handle: _RepeatingThread) -> None:
        handle.stop()


class ManualScheduler(Scheduler):
    """Deterministic scheduler: callbacks fire only when advance() is called."""

    def __init__(self):
        self._next_handle = 0
        self._jobs: Dict[int, Tuple[float, Callable[[], None]]] = {}

    @property
    def active(self) -> int:
        return len(self._jobs)

    def schedule(self, interval: float, callback: Callable[[], None]) -> int:
        self._next_handle += 1
        self._jobs[self._next_handle] = (interval, callback)
        return self._next_handle

    def cancel(self, handle: int) -> None:
        self._jobs.pop(handle, None)

    def advance(self, periods: int = 1) -> None:
        """Fire every active job once per period."""
        for _ in range(periods):
            for handle in list(self._jobs):
                job = self._jobs.get(handle)
                if job is not None:
                    job[1]()
