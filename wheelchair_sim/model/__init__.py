"""Model package for the wheelchair fleet simulation."""

from .grid import GridMap, Point, CARDINAL_DIRECTIONS
from .agent import Wheelchair, Obstacle, WheelchairStatus
from .placement import find_empty_spot, GridSaturatedError
from .pathing import compute_path, compute_path_bfs, get_planner
from .state import SimulationState
from .engine import SimulationEngine
from .scheduler import Scheduler, ThreadingScheduler, ManualScheduler
from .controller import SimulationController

__all__ = [
    'GridMap',
    'Point',
    'CARDINAL_DIRECTIONS',
    'Wheelchair',
    'Obstacle',
    'WheelchairStatus',
    'find_empty_spot',
    'GridSaturatedError',
    'compute_path',
    'compute_path_bfs',
    'get_planner',
    'SimulationState',
    'SimulationEngine',
    'Scheduler',
    'ThreadingScheduler',
    'ManualScheduler',
    'SimulationController',
]
