"""Random spawn placement on free grid cells."""

from typing import Iterable
import numpy as np

from .grid import GridMap, Point
from .agent import Wheelchair, Obstacle


class GridSaturatedError(RuntimeError):
    """Raised when every cell of the grid is occupied."""


def find_empty_spot(grid: GridMap,
                    wheelchairs: Iterable[Wheelchair],
                    obstacles: Iterable[Obstacle],
                    rng: np.random.Generator,
                    max_attempts: int = 1000) -> Point:
    """
    Pick a uniformly random unoccupied cell.

    Samples random cells up to max_attempts times; if none of them is
    free, falls back to choosing uniformly among the free cells listed by
    the occupancy mask. Raises GridSaturatedError if there are none.
    """
    wheelchairs = list(wheelchairs)
    obstacles = list(obstacles)
    occupied = grid.occupied_positions(wheelchairs, obstacles)

    for _ in range(max_attempts):
        x = int(rng.integers(0, grid.width))
        y = int(rng.integers(0, grid.height))
        if (x, y) not in occupied:
            return Point(x, y)

    # Dense grid: scan for the remaining free cells
    ys, xs = np.where(~grid.occupancy_mask(wheelchairs, obstacles))
    if len(xs) == 0:
        raise GridSaturatedError(
            f"No free cell left on {grid.width}x{grid.height} grid")
    idx = int(rng.integers(0, len(xs)))
    return Point(int(xs[idx]), int(ys[idx]))
