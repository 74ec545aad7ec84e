"""Grid geometry and occupancy queries for the wheelchair simulation."""

import numpy as np
from typing import Iterable, NamedTuple, Optional, Set, TYPE_CHECKING

if TYPE_CHECKING:
    from .agent import Wheelchair, Obstacle


class Point(NamedTuple):
    """A grid cell. Compares equal to the plain (x, y) tuple."""
    x: int
    y: int

    def offset(self, dx: int, dy: int) -> "Point":
        return Point(self.x + dx, self.y + dy)


# Up, down, left, right (screen coordinates, y grows downward)
CARDINAL_DIRECTIONS = (Point(0, -1), Point(0, 1), Point(-1, 0), Point(1, 0))


class GridMap:
    """
    Fixed-size discrete coordinate space.

    Occupancy is never stored here: wheelchairs and obstacles are passed in
    per query so that the engine can check moves against a snapshot.
    Coordinate convention: (x, y) for API, [y, x] for array indexing.
    """

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height

    @property
    def cell_count(self) -> int:
        return self.width * self.height

    def is_within_bounds(self, p: Point) -> bool:
        """True iff 0 <= x < width and 0 <= y < height."""
        return 0 <= p[0] < self.width and 0 <= p[1] < self.height

    def is_occupied(self, p: Point,
                    wheelchairs: Iterable["Wheelchair"],
                    obstacles: Iterable["Obstacle"],
                    ignore_id: Optional[str] = None) -> bool:
        """
        True iff an obstacle or a wheelchair sits on p.

        The wheelchair whose id equals ignore_id is skipped, so an agent
        never blocks its own candidate move.
        """
        p = Point(*p)
        if any(o.position == p for o in obstacles):
            return True
        return any(w.position == p for w in wheelchairs if w.id != ignore_id)

    def occupied_positions(self, wheelchairs: Iterable["Wheelchair"],
                           obstacles: Iterable["Obstacle"]) -> Set[Point]:
        """Return set of all occupied cell positions."""
        occupied = {o.position for o in obstacles}
        occupied.update(w.position for w in wheelchairs)
        return occupied

    def occupancy_mask(self, wheelchairs: Iterable["Wheelchair"],
                       obstacles: Iterable["Obstacle"]) -> np.ndarray:
        """Boolean [height, width] array, True where a cell is taken."""
        mask = np.zeros((self.height, self.width), dtype=bool)
        for x, y in self.occupied_positions(wheelchairs, obstacles):
            if self.is_within_bounds(Point(x, y)):
                mask[y, x] = True
        return mask

    def obstacle_mask(self, obstacles: Iterable["Obstacle"]) -> np.ndarray:
        """Boolean [height, width] array, True on obstacle cells."""
        return self.occupancy_mask((), obstacles)
