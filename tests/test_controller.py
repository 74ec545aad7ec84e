"""
Test suite for the simulation controller.

Tests cover:
- Spawning through the controller
- Run/pause toggling without duplicate timers
- Timer cancellation, including stale callbacks
- Reset
- Published snapshots
- Failing listeners and ticks
- Saturated grids
- Wall-clock scheduling
"""

import threading
import time

import numpy as np
import pytest

from wheelchair_sim.config import SimulationConfig
from wheelchair_sim.model import (
    SimulationController, ManualScheduler, ThreadingScheduler, Point,
    WheelchairStatus,
)


class LeakyScheduler(ManualScheduler):
    """Keeps firing cancelled jobs, like a timer already past its wait."""

    def cancel(self, handle):
        pass


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def controller(config, scheduler):
    return SimulationController(config, scheduler, np.random.default_rng(7))


class TestSpawning:
    def test_add_wheelchair_publishes(self, controller):
        wc = controller.add_wheelchair()
        assert controller.wheelchairs == (wc,)
        assert controller.state.metrics['total_wheelchairs'] == 1

    def test_add_obstacle_publishes(self, controller):
        obstacle = controller.add_obstacle()
        assert controller.obstacles == (obstacle,)

    def test_saturated_grid_is_noop(self, config, scheduler):
        config.grid.width, config.grid.height = 1, 1
        controller = SimulationController(config, scheduler)

        assert controller.add_wheelchair() is not None
        assert controller.add_obstacle() is None
        assert controller.add_wheelchair() is None
        assert len(controller.wheelchairs) == 1
        assert controller.obstacles == ()


class TestRunToggle:
    def test_toggle_starts_and_pauses(self, controller, scheduler):
        assert controller.toggle_run() is True
        assert controller.running
        assert controller.state.running
        assert scheduler.active == 1

        assert controller.toggle_run() is False
        assert not controller.running
        assert scheduler.active == 0

    def test_start_is_idempotent(self, controller, scheduler):
        controller.start()
        controller.start()
        assert scheduler.active == 1

    def test_timer_drives_ticks(self, controller, scheduler):
        controller.toggle_run()
        scheduler.advance(3)
        assert controller.state.step == 3

    def test_no_tick_after_pause(self, controller, scheduler):
        controller.toggle_run()
        scheduler.advance(2)
        controller.toggle_run()
        scheduler.advance(5)
        assert controller.state.step == 2

    def test_stale_timer_cannot_tick(self, config):
        scheduler = LeakyScheduler()
        controller = SimulationController(config, scheduler)
        controller.toggle_run()
        scheduler.advance(1)
        controller.toggle_run()
        controller.toggle_run()  # second timer; the first one is stale

        scheduler.advance(1)
        assert controller.state.step == 2

        controller.toggle_run()
        scheduler.advance(4)
        assert controller.state.step == 2

    def test_manual_tick_while_paused(self, controller):
        state = controller.tick()
        assert state.step == 1
        assert not state.running


class TestUserActions:
    def test_set_destination_then_ticks(self, controller):
        wc = controller.add_wheelchair()
        target = Point(0, 0) if wc.position != (0, 0) else Point(1, 0)
        assert controller.set_destination(wc.id, target)

        for _ in range(60):
            controller.tick()
        arrived = controller.state.get_wheelchair(wc.id)
        assert arrived.position == target
        assert arrived.status is WheelchairStatus.AVAILABLE

    def test_redirect_in_transit_is_ignored(self, controller):
        wc = controller.add_wheelchair()
        controller.set_destination(wc.id, Point(49, 29) if wc.position != (49, 29)
                                   else Point(0, 0))
        assert not controller.set_destination(wc.id, Point(10, 10))

    def test_manual_move_works_while_paused(self, controller):
        wc = controller.add_wheelchair()
        dx = 1 if wc.position.x < 49 else -1
        assert controller.manual_move(wc.id, dx, 0)
        moved = controller.state.get_wheelchair(wc.id)
        assert moved.position == (wc.position.x + dx, wc.position.y)

    def test_manual_move_out_of_bounds_keeps_record(self, config, scheduler):
        config.grid.width, config.grid.height = 1, 1
        controller = SimulationController(config, scheduler)
        wc = controller.add_wheelchair()
        before = controller.state

        for dx, dy in ((1, 0), (-1, 0), (0, 1), (0, -1)):
            assert not controller.manual_move(wc.id, dx, dy)
        assert controller.state is before
        assert controller.wheelchairs == (wc,)


class TestReset:
    def test_reset_then_add_wheelchair(self, controller, scheduler):
        for _ in range(3):
            controller.add_wheelchair()
            controller.add_obstacle()
        controller.toggle_run()
        scheduler.advance(2)

        controller.reset()
        assert not controller.running
        assert scheduler.active == 0

        wc = controller.add_wheelchair()
        assert controller.wheelchairs == (wc,)
        assert wc.status is WheelchairStatus.AVAILABLE
        assert wc.battery == 100.0
        assert controller.obstacles == ()

    def test_reset_restarts_step_counter(self, controller):
        controller.tick()
        controller.reset()
        assert controller.state.step == 0


class TestPublishing:
    def test_listener_sees_every_tick(self, controller, scheduler):
        seen = []
        controller.subscribe(seen.append)
        controller.toggle_run()
        scheduler.advance(3)

        steps = [s.step for s in seen]
        assert steps[-3:] == [1, 2, 3]

    def test_snapshots_are_not_mutated(self, controller):
        controller.add_wheelchair()
        first = controller.state
        wheelchairs = first.wheelchairs
        controller.tick()
        assert first.wheelchairs is wheelchairs
        assert first.step == 0


class TestFailures:
    def test_failing_listener_does_not_stop_ticks(self, controller, scheduler,
                                                  caplog):
        def explode(state):
            if state.step == 2:
                raise RuntimeError("listener bug")

        seen = []
        controller.subscribe(explode)
        controller.subscribe(seen.append)
        controller.toggle_run()
        scheduler.advance(5)

        assert controller.running
        assert controller.state.step == 5
        assert 2 in [s.step for s in seen]
        assert "listener bug" in caplog.text

    def test_failing_tick_stops_the_run(self, controller, scheduler,
                                        monkeypatch, caplog):
        controller.toggle_run()
        scheduler.advance(1)

        def boom():
            raise RuntimeError("engine bug")

        monkeypatch.setattr(controller.engine, "tick", boom)
        scheduler.advance(1)

        assert not controller.running
        assert not controller.state.running
        assert controller.state.step == 1
        assert scheduler.active == 0
        assert "engine bug" in caplog.text

    def test_run_can_restart_after_failed_tick(self, controller, scheduler,
                                               monkeypatch):
        original = controller.engine.tick

        def boom():
            raise RuntimeError("engine bug")

        monkeypatch.setattr(controller.engine, "tick", boom)
        controller.toggle_run()
        scheduler.advance(1)
        assert not controller.running

        monkeypatch.setattr(controller.engine, "tick", original)
        assert controller.toggle_run() is True
        scheduler.advance(2)
        assert controller.state.step == 2


class TestThreadingScheduler:
    def test_wall_clock_ticks_stop_on_pause(self):
        config = SimulationConfig.default()
        config.tick_interval_ms = 5
        controller = SimulationController(config, ThreadingScheduler())
        controller.add_wheelchair()

        ticked = threading.Event()

        def on_state(state):
            if state.step >= 3:
                ticked.set()

        controller.subscribe(on_state)
        controller.toggle_run()
        assert ticked.wait(timeout=5)
        controller.toggle_run()

        stopped_at = controller.state.step
        time.sleep(0.05)
        assert controller.state.step == stopped_at

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            ThreadingScheduler().schedule(0, lambda: None)

    def test_wall_clock_ticks_survive_failing_listener(self):
        config = SimulationConfig.default()
        config.tick_interval_ms = 5
        controller = SimulationController(config, ThreadingScheduler())

        ticked = threading.Event()

        def explode(state):
            if state.step == 2:
                raise RuntimeError("listener bug")

        def on_state(state):
            if state.step > 5:
                ticked.set()

        controller.subscribe(explode)
        controller.subscribe(on_state)
        controller.toggle_run()
        try:
            assert ticked.wait(timeout=5)
            assert controller.running
        finally:
            controller.toggle_run()
