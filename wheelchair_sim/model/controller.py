"""Run/pause/reset lifecycle wrapped around the tick engine."""

import logging
import threading
import numpy as np
from typing import Callable, Hashable, List, Optional, Tuple

from ..config import SimulationConfig
from .agent import Wheelchair, Obstacle
from .engine import SimulationEngine
from .grid import Point
from .placement import GridSaturatedError
from .scheduler import Scheduler, ThreadingScheduler
from .state import SimulationState

logger = logging.getLogger(__name__)

Listener = Callable[[SimulationState], None]


class SimulationController:
    """
    Single owner of one simulation session.

    Every public method runs under one re-entrant lock, so timer ticks and
    user actions are applied one at a time. Readers get immutable
    SimulationState snapshots through ``state``.
    """

    def __init__(self, config: Optional[SimulationConfig] = None,
                 scheduler: Optional[Scheduler] = None,
                 rng: Optional[np.random.Generator] = None):
        self.config = config or SimulationConfig.default()
        self.engine = SimulationEngine(self.config, rng)
        self.scheduler = scheduler or ThreadingScheduler()

        self._lock = threading.RLock()
        self._running = False
        self._timer: Optional[Hashable] = None
        self._generation = 0
        self._listeners: List[Listener] = []
        self._state = self.engine.snapshot(False)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    @property
    def state(self) -> SimulationState:
        return self._state

    @property
    def wheelchairs(self) -> Tuple[Wheelchair, ...]:
        return self._state.wheelchairs

    @property
    def obstacles(self) -> Tuple[Obstacle, ...]:
        return self._state.obstacles

    def subscribe(self, listener: Listener) -> None:
        """Call listener with every newly published snapshot."""
        with self._lock:
            self._listeners.append(listener)

    def _publish(self) -> SimulationState:
        self._state = self.engine.snapshot(self._running)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("Snapshot listener %r failed", listener)
        return self._state

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def add_wheelchair(self) -> Optional[Wheelchair]:
        with self._lock:
            try:
                wheelchair = self.engine.add_wheelchair()
            except GridSaturatedError as e:
                logger.warning("Cannot add wheelchair: %s", e)
                return None
            self._publish()
            return wheelchair

    def add_obstacle(self) -> Optional[Obstacle]:
        with self._lock:
            try:
                obstacle = self.engine.add_obstacle()
            except GridSaturatedError as e:
                logger.warning("Cannot add obstacle: %s", e)
                return None
            self._publish()
            return obstacle

    def set_destination(self, wheelchair_id: str, destination: Point) -> bool:
        with self._lock:
            accepted = self.engine.set_destination(wheelchair_id, destination)
            if accepted:
                self._publish()
            return accepted

    def manual_move(self, wheelchair_id: str, dx: int, dy: int) -> bool:
        with self._lock:
            moved = self.engine.manual_move(wheelchair_id, dx, dy)
            if moved:
                self._publish()
            return moved

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def tick(self) -> SimulationState:
        """Run one engine pass and publish the result."""
        with self._lock:
            self.engine.tick()
            return self._publish()

    def _on_timer(self, generation: int) -> None:
        with self._lock:
            # A timer cancelled after it began waiting for the lock is stale
            if not self._running or generation != self._generation:
                return
            try:
                self.tick()
            except Exception:
                logger.exception("Tick %d failed, stopping simulation",
                                 self.engine.current_step)
                self._stop_timer()
                self._publish()

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
            self._generation += 1
            generation = self._generation
            self._timer = self.scheduler.schedule(
                self.config.tick_interval,
                lambda: self._on_timer(generation))
            logger.info("Simulation started (tick every %d ms)",
                        self.config.tick_interval_ms)
            self._publish()

    def pause(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._stop_timer()
            logger.info("Simulation paused at step %d",
                        self.engine.current_step)
            self._publish()

    def _stop_timer(self) -> None:
        self._running = False
        self._generation += 1
        if self._timer is not None:
            self.scheduler.cancel(self._timer)
            self._timer = None

    def toggle_run(self) -> bool:
        """Flip between running and paused; returns the new running flag."""
        with self._lock:
            if self._running:
                self.pause()
            else:
                self.start()
            return self._running

    def reset(self) -> None:
        """Stop the timer and remove every wheelchair and obstacle."""
        with self._lock:
            self._stop_timer()
            self.engine.clear()
            logger.info("Simulation reset")
            self._publish()
