#!/usr/bin/env python3
"""
Wheelchair Fleet Simulation

A discrete-time grid simulation of autonomous wheelchairs moving around a
hospital floor with static obstacles, battery drain and blockage handling.

Usage:
    wheelchair-sim --config configs/hospital_floor.yaml [options]

Examples:
    wheelchair-sim --config configs/hospital_floor.yaml
    wheelchair-sim --config configs/hospital_floor.yaml --gif --out-dir results/
    wheelchair-sim --config configs/hospital_floor.yaml --no-csv --no-snapshot --quiet
    wheelchair-sim --config configs/hospital_floor.yaml --seed 42 --realtime
"""

import argparse
import logging
import queue
import sys
from pathlib import Path
from typing import Callable, Optional

import numpy as np
import yaml

from .config import load_config, SimulationConfig
from .model.controller import SimulationController
from .model.agent import WheelchairStatus
from .model.grid import Point
from .model.scheduler import ManualScheduler, ThreadingScheduler
from .model.state import SimulationState
from .export.csv_writer import CSVWriter
from .export.visualizer import Visualizer
from .export.reporter import Reporter


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Wheelchair Fleet Simulation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    wheelchair-sim --config configs/hospital_floor.yaml
    wheelchair-sim --config configs/hospital_floor.yaml --gif --out-dir results/
    wheelchair-sim --config configs/hospital_floor.yaml --no-csv --no-snapshot --quiet
    wheelchair-sim --config configs/hospital_floor.yaml --seed 42 --realtime
        """
    )

    parser.add_argument('--config', type=Path, required=True,
                        help='Path to YAML configuration file')

    # Optional overrides
    parser.add_argument('--steps', type=int, default=None,
                        help='Override max simulation steps')
    parser.add_argument('--out-dir', type=Path, default=Path('./output'),
                        help='Output directory for exports (default: ./output)')

    # Export toggles
    parser.add_argument('--csv', dest='csv', action='store_true', default=None,
                        help='Enable CSV export (default)')
    parser.add_argument('--no-csv', dest='csv', action='store_false',
                        help='Disable CSV export')

    parser.add_argument('--snapshot', dest='snapshot', action='store_true', default=None,
                        help='Enable final snapshot (default)')
    parser.add_argument('--no-snapshot', dest='snapshot', action='store_false',
                        help='Disable final snapshot')

    parser.add_argument('--gif', action='store_true', default=False,
                        help='Enable GIF animation export')

    parser.add_argument('--realtime', action='store_true', default=False,
                        help='Drive ticks from the wall-clock timer instead of '
                             'stepping as fast as possible')

    parser.add_argument('--quiet', action='store_true', default=False,
                        help='Suppress stdout output')

    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for reproducibility')

    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level (default: WARNING)')

    return parser.parse_args(argv)


def dispatch_random_destinations(controller: SimulationController,
                                 rng: np.random.Generator,
                                 probability: float) -> int:
    """
    Send some Available wheelchairs to random cells.

    Stands in for users clicking on the map. Returns the number of
    destinations the engine accepted.
    """
    if probability <= 0:
        return 0
    grid = controller.engine.grid
    accepted = 0
    for wc in controller.wheelchairs:
        if wc.status is not WheelchairStatus.AVAILABLE:
            continue
        if rng.random() >= probability:
            continue
        target = Point(int(rng.integers(0, grid.width)),
                       int(rng.integers(0, grid.height)))
        if controller.set_destination(wc.id, target):
            accepted += 1
    return accepted


def populate(controller: SimulationController, config: SimulationConfig) -> None:
    """Spawn the configured obstacles and wheelchairs."""
    for _ in range(config.dispatch.obstacle_count):
        controller.add_obstacle()
    for _ in range(config.dispatch.wheelchair_count):
        controller.add_wheelchair()


def run_stepped(controller: SimulationController, steps: int,
                before_tick: Callable[[], None],
                on_state: Callable[[SimulationState], None]) -> None:
    """Advance the simulation steps times, as fast as possible."""
    for _ in range(steps):
        before_tick()
        on_state(controller.tick())


def run_realtime(controller: SimulationController, steps: int,
                 before_tick: Callable[[], None],
                 on_state: Callable[[SimulationState], None]) -> None:
    """Let the controller's timer drive ticks until steps have elapsed."""
    ticks: "queue.Queue[SimulationState]" = queue.Queue()
    last_step = controller.state.step

    def on_publish(state: SimulationState) -> None:
        nonlocal last_step
        if state.step != last_step:
            last_step = state.step
            ticks.put(state)

    controller.subscribe(on_publish)
    before_tick()
    controller.toggle_run()
    poll = max(1.0, controller.config.tick_interval * 10)
    try:
        seen = 0
        while seen < steps:
            try:
                state = ticks.get(timeout=poll)
            except queue.Empty:
                # The controller stops itself when a tick fails
                if not controller.running:
                    break
                continue
            seen += 1
            on_state(state)
            # Best effort: the timer keeps ticking while this thread catches
            # up, so dispatches may land a few ticks after the state they saw
            if seen < steps:
                before_tick()
    finally:
        if controller.running:
            controller.toggle_run()


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    # Load configuration
    try:
        config = load_config(args.config)
    except FileNotFoundError:
        print(f"Error: Configuration file not found: {args.config}", file=sys.stderr)
        return 1
    except (ValueError, KeyError, TypeError, yaml.YAMLError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    # Apply CLI overrides
    if args.steps is not None:
        config.max_steps = args.steps
    if args.csv is not None:
        config.csv_enabled = args.csv
    if args.snapshot is not None:
        config.snapshot_enabled = args.snapshot
    if args.gif:
        config.gif_enabled = True
    config.quiet = args.quiet
    if args.seed is not None:
        config.seed = args.seed
    config.out_dir = args.out_dir

    if not config.quiet:
        print("Initializing simulation...")
        print(f"  Grid: {config.grid.width}x{config.grid.height}")
        print(f"  Wheelchairs: {config.dispatch.wheelchair_count}")
        print(f"  Obstacles: {config.dispatch.obstacle_count}")
        print(f"  Planner: {config.movement.planner}")
        print(f"  Max steps: {config.max_steps}")

    scheduler = ThreadingScheduler() if args.realtime else ManualScheduler()
    controller = SimulationController(config, scheduler)
    populate(controller, config)

    if not config.quiet:
        print(f"  Spawned: {len(controller.wheelchairs)} wheelchairs, "
              f"{len(controller.obstacles)} obstacles")

    # Initialize exporters
    csv_writers = []
    if config.csv_enabled:
        csv_writers = [
            CSVWriter(config.out_dir / 'simulation_log.csv'),
            CSVWriter.metrics(config.out_dir / 'simulation_metrics.csv'),
        ]
        for writer in csv_writers:
            writer.open()

    visualizer = Visualizer(config.grid.width, config.grid.height)
    reporter = Reporter(str(args.config), config.seed)

    dispatch_rng = np.random.default_rng(
        None if config.seed is None else config.seed + 1)

    def before_tick() -> None:
        reporter.record_dispatch(dispatch_random_destinations(
            controller, dispatch_rng, config.dispatch.dispatch_probability))

    final_state: Optional[SimulationState] = None

    def on_state(state: SimulationState) -> None:
        nonlocal final_state
        final_state = state

        for writer in csv_writers:
            writer.append(state)

        # Buffer GIF frame (every N steps to reduce memory)
        if config.gif_enabled and (state.step % 5 == 0
                                   or state.step == config.max_steps):
            visualizer.buffer_frame(state)

        reporter.update(state)

        if not config.quiet and state.step % 100 == 0:
            in_transit = int(state.metrics.get('in_transit', 0))
            assistance = int(state.metrics.get('needs_assistance', 0))
            print(f"  Step {state.step}: {in_transit} in transit, "
                  f"{assistance} need assistance")

    if not config.quiet:
        print("\nRunning simulation...")

    run = run_realtime if args.realtime else run_stepped
    try:
        run(controller, config.max_steps, before_tick, on_state)
    except KeyboardInterrupt:
        if not config.quiet:
            print("\nSimulation interrupted by user.")

    # Cleanup and final exports
    for writer in csv_writers:
        writer.close()
        if not config.quiet:
            print(f"CSV saved: {writer.output_path}")

    if config.snapshot_enabled and final_state:
        snapshot_path = config.out_dir / 'final_state.png'
        visualizer.save_snapshot(final_state, snapshot_path)
        if not config.quiet:
            print(f"Snapshot saved: {snapshot_path}")

    if config.gif_enabled:
        gif_path = config.out_dir / 'simulation.gif'
        if not config.quiet:
            print(f"Generating GIF ({len(visualizer.frames)} frames)...")
        visualizer.generate_gif(gif_path, fps=10)
        if not config.quiet:
            print(f"Animation saved: {gif_path}")

    if not config.quiet and final_state:
        report = reporter.generate_summary(
            final_state,
            config.out_dir,
            config.csv_enabled,
            config.snapshot_enabled,
            config.gif_enabled
        )
        print(report)

    return 0


if __name__ == '__main__':
    sys.exit(main())
