"""Tick engine for the wheelchair fleet simulation."""

import logging
import numpy as np
from typing import List, Dict, Optional, Tuple, TYPE_CHECKING
from collections import defaultdict

from .grid import GridMap, Point, CARDINAL_DIRECTIONS
from .agent import Wheelchair, Obstacle, WheelchairStatus
from .placement import find_empty_spot
from .pathing import get_planner
from .state import SimulationState

if TYPE_CHECKING:
    from ..config import SimulationConfig

logger = logging.getLogger(__name__)


class SimulationEngine:
    """
    Owns the fleet and obstacles and advances them one tick at a time.

    Implements:
    1. Spawning on random free cells
    2. Destination assignment and manual moves
    3. Parallel update against the pre-tick snapshot
    4. Conflict resolution for cells claimed by several wheelchairs
    5. State snapshot generation
    """

    def __init__(self, config: "SimulationConfig",
                 rng: Optional[np.random.Generator] = None):
        self.config = config
        self.current_step = 0
        self.rng = rng if rng is not None else np.random.default_rng(config.seed)

        self.grid = GridMap(config.grid.width, config.grid.height)
        self.planner = get_planner(config.movement.planner)

        self.wheelchairs: Tuple[Wheelchair, ...] = ()
        self.obstacles: Tuple[Obstacle, ...] = ()

        # Per-tick and cumulative counters
        self._last_tick: Dict[str, int] = {'moves': 0, 'blockages': 0,
                                           'yields': 0}
        self.total_moves = 0
        self.total_blockages = 0

    # ------------------------------------------------------------------
    # Spawning
    # ------------------------------------------------------------------

    def add_wheelchair(self) -> Wheelchair:
        """Spawn a wheelchair on a random free cell."""
        position = find_empty_spot(self.grid, self.wheelchairs,
                                   self.obstacles, self.rng,
                                   self.config.placement.max_attempts)
        wheelchair = Wheelchair.create(position, self.config.battery.initial)
        self.wheelchairs = self.wheelchairs + (wheelchair,)
        return wheelchair

    def add_obstacle(self) -> Obstacle:
        """Spawn an obstacle on a random cell free of wheelchairs and obstacles."""
        position = find_empty_spot(self.grid, self.wheelchairs,
                                   self.obstacles, self.rng,
                                   self.config.placement.max_attempts)
        obstacle = Obstacle.create(position)
        self.obstacles = self.obstacles + (obstacle,)
        return obstacle

    def clear(self) -> None:
        """Drop every wheelchair and obstacle."""
        self.wheelchairs = ()
        self.obstacles = ()
        self.current_step = 0
        self._last_tick = {'moves': 0, 'blockages': 0, 'yields': 0}
        self.total_moves = 0
        self.total_blockages = 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_wheelchair(self, wheelchair_id: str) -> Optional[Wheelchair]:
        for wc in self.wheelchairs:
            if wc.id == wheelchair_id:
                return wc
        return None

    def is_free(self, p: Point, wheelchairs: Tuple[Wheelchair, ...],
                ignore_id: Optional[str] = None) -> bool:
        """In bounds and not taken by an obstacle or another wheelchair."""
        return (self.grid.is_within_bounds(p) and
                not self.grid.is_occupied(p, wheelchairs, self.obstacles,
                                          ignore_id))

    def _replace(self, updated: Wheelchair) -> None:
        self.wheelchairs = tuple(updated if wc.id == updated.id else wc
                                 for wc in self.wheelchairs)

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def set_destination(self, wheelchair_id: str, destination: Point) -> bool:
        """
        Route an Available wheelchair to destination.

        Returns False without changing anything when the wheelchair is
        unknown or not Available, the destination is off the grid or equal
        to the current position, or the planner finds no route.
        """
        wc = self.get_wheelchair(wheelchair_id)
        if wc is None or wc.status is not WheelchairStatus.AVAILABLE:
            return False
        destination = Point(*destination)
        if not self.grid.is_within_bounds(destination):
            return False

        path = self.planner(wc.position, destination, self.grid,
                            self.grid.obstacle_mask(self.obstacles))
        if not path:
            return False

        self._replace(wc.evolve(destination=destination, path=tuple(path),
                                status=WheelchairStatus.IN_TRANSIT))
        return True

    def manual_move(self, wheelchair_id: str, dx: int, dy: int) -> bool:
        """
        Shift one wheelchair a single cell in a cardinal direction.

        A successful move cancels any transit: the wheelchair becomes
        Available with no path or destination. Manual moves do not use
        battery. Invalid moves change nothing and return False.
        """
        if (dx, dy) not in CARDINAL_DIRECTIONS:
            return False
        wc = self.get_wheelchair(wheelchair_id)
        if wc is None:
            return False

        new_pos = wc.position.offset(dx, dy)
        if not self.is_free(new_pos, self.wheelchairs, wc.id):
            return False

        self._replace(wc.evolve(position=new_pos,
                                status=WheelchairStatus.AVAILABLE,
                                path=(), destination=None))
        return True

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def _wander(self, wc: Wheelchair,
                snapshot: Tuple[Wheelchair, ...]) -> Optional[Wheelchair]:
        """Random single-cell step of an idle wheelchair, or None."""
        if (wc.status is not WheelchairStatus.AVAILABLE or
                wc.battery <= self.config.battery.wander_threshold):
            return None
        if self.rng.random() >= self.config.movement.wander_probability:
            return None

        direction = CARDINAL_DIRECTIONS[
            int(self.rng.integers(len(CARDINAL_DIRECTIONS)))]
        candidate = wc.position.offset(*direction)
        if not self.is_free(candidate, snapshot, wc.id):
            return None
        return wc.evolve(position=candidate,
                         battery=wc.drained(self.config.battery.depletion_rate))

    def _update_wheelchair(self, wc: Wheelchair,
                           snapshot: Tuple[Wheelchair, ...]) -> Wheelchair:
        wandered = self._wander(wc, snapshot)
        if wandered is not None:
            return wandered

        if not wc.in_transit or not wc.path or wc.battery <= 0:
            if (wc.battery <= 0 and
                    wc.status is not WheelchairStatus.NEEDS_ASSISTANCE):
                logger.debug("%s battery depleted at %s", wc.id, wc.position)
                return wc.evolve(status=WheelchairStatus.NEEDS_ASSISTANCE,
                                 battery=0.0)
            return wc

        next_pos = wc.path[0]
        if not self.is_free(next_pos, snapshot, wc.id):
            logger.debug("%s blocked at %s on the way to %s",
                         wc.id, wc.position, next_pos)
            return wc.evolve(status=WheelchairStatus.NEEDS_ASSISTANCE)

        remaining = wc.path[1:]
        arrived = not remaining
        return wc.evolve(
            position=next_pos,
            path=remaining,
            destination=None if arrived else wc.destination,
            status=(WheelchairStatus.AVAILABLE if arrived
                    else WheelchairStatus.IN_TRANSIT),
            battery=wc.drained(self.config.battery.depletion_rate)
        )

    def tick(self) -> SimulationState:
        """
        Execute one discrete time step.

        1. Compute each wheelchair's update from the pre-tick snapshot
        2. Resolve cells claimed by more than one wheelchair (seeded draw)
        3. Publish the new fleet as a single replacement
        4. Return current state snapshot
        """
        self.current_step += 1
        snapshot = self.wheelchairs

        # Phase 1: Calculate updates for all wheelchairs
        proposals: Dict[str, Wheelchair] = {}
        claims: Dict[Point, List[str]] = defaultdict(list)
        blockages = 0
        for wc in snapshot:
            updated = self._update_wheelchair(wc, snapshot)
            proposals[wc.id] = updated
            if updated.position != wc.position:
                claims[updated.position].append(wc.id)
            elif (updated.status is WheelchairStatus.NEEDS_ASSISTANCE and
                    wc.status is WheelchairStatus.IN_TRANSIT and
                    wc.battery > 0):
                blockages += 1

        # Phase 2: Resolve conflicts
        # Random priority among competitors; losers keep their old record
        originals = {wc.id: wc for wc in snapshot}
        yields = 0
        for target, competing in claims.items():
            if len(competing) < 2:
                continue
            competing = sorted(competing)
            winner = competing[int(self.rng.integers(len(competing)))]
            for wc_id in competing:
                if wc_id != winner:
                    proposals[wc_id] = originals[wc_id]
                    yields += 1

        # Phase 3: Publish
        self.wheelchairs = tuple(proposals[wc.id] for wc in snapshot)

        moves = sum(1 for wc in snapshot
                    if proposals[wc.id].position != wc.position)
        self._last_tick = {'moves': moves, 'blockages': blockages,
                           'yields': yields}
        self.total_moves += moves
        self.total_blockages += blockages

        return self.snapshot()

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def _metrics(self) -> Dict[str, float]:
        counts = {status: 0 for status in WheelchairStatus}
        for wc in self.wheelchairs:
            counts[wc.status] += 1

        fleet = len(self.wheelchairs)
        batteries = np.array([wc.battery for wc in self.wheelchairs],
                             dtype=np.float64)
        occupied = fleet + len(self.obstacles)

        return {
            'total_wheelchairs': fleet,
            'obstacles': len(self.obstacles),
            'available': counts[WheelchairStatus.AVAILABLE],
            'in_transit': counts[WheelchairStatus.IN_TRANSIT],
            'charging': counts[WheelchairStatus.CHARGING],
            'needs_assistance': counts[WheelchairStatus.NEEDS_ASSISTANCE],
            'mean_battery': float(batteries.mean()) if fleet else 0.0,
            'min_battery': float(batteries.min()) if fleet else 0.0,
            'density': occupied / self.grid.cell_count,
            'moves': self._last_tick['moves'],
            'blockages': self._last_tick['blockages'],
            'yields': self._last_tick['yields'],
            'total_moves': self.total_moves,
            'total_blockages': self.total_blockages,
        }

    def snapshot(self, running: bool = False) -> SimulationState:
        """Create immutable snapshot of current simulation state."""
        return SimulationState(
            step=self.current_step,
            wheelchairs=self.wheelchairs,
            obstacles=self.obstacles,
            running=running,
            metrics=self._metrics()
        )
