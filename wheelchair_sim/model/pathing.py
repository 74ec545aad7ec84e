"""Route planners producing cell-by-cell paths for wheelchairs."""

import numpy as np
from collections import deque
from typing import Callable, Dict, List, Optional

from .grid import GridMap, Point


def _step_toward(current: int, target: int) -> int:
    if current < target:
        return current + 1
    if current > target:
        return current - 1
    return current


def compute_path(start: Point, end: Point) -> List[Point]:
    """
    Greedy diagonal stepping from start to end.

    Each iteration moves x and y one step toward the target independently,
    so the route is diagonal until one axis is aligned and straight after.
    The result excludes start, ends with end and has max(|dx|, |dy|)
    elements. Occupancy is not considered here.
    """
    x, y = start
    end_x, end_y = end
    path = []
    while (x, y) != (end_x, end_y):
        x = _step_toward(x, end_x)
        y = _step_toward(y, end_y)
        path.append(Point(x, y))
    return path


# Moore neighborhood (8-connected), straight moves first
_NEIGHBOR_OFFSETS = [
    (1, 0), (-1, 0), (0, 1), (0, -1),
    (1, 1), (1, -1), (-1, 1), (-1, -1),
]


def compute_path_bfs(start: Point, end: Point,
                     grid: GridMap,
                     blocked: Optional[np.ndarray] = None) -> List[Point]:
    """
    Shortest 8-connected route around blocked cells.

    blocked is a [height, width] boolean mask (typically the obstacle
    mask at assignment time). Same contract as compute_path; returns an
    empty list when end cannot be reached.
    """
    start, end = Point(*start), Point(*end)
    if start == end or not grid.is_within_bounds(end):
        return []
    if blocked is None:
        blocked = np.zeros((grid.height, grid.width), dtype=bool)
    if blocked[end.y, end.x]:
        return []

    came_from: Dict[Point, Point] = {}
    visited = np.zeros((grid.height, grid.width), dtype=bool)
    visited[start.y, start.x] = True
    queue = deque([start])

    while queue:
        current = queue.popleft()
        if current == end:
            path = []
            while current != start:
                path.append(current)
                current = came_from[current]
            path.reverse()
            return path

        for dx, dy in _NEIGHBOR_OFFSETS:
            nxt = current.offset(dx, dy)
            if (grid.is_within_bounds(nxt) and not visited[nxt.y, nxt.x]
                    and not blocked[nxt.y, nxt.x]):
                visited[nxt.y, nxt.x] = True
                came_from[nxt] = current
                queue.append(nxt)

    return []


Planner = Callable[[Point, Point, GridMap, np.ndarray], List[Point]]


def _greedy(start: Point, end: Point, grid: GridMap,
            blocked: np.ndarray) -> List[Point]:
    return compute_path(start, end)


PLANNERS: Dict[str, Planner] = {
    'greedy': _greedy,
    'bfs': compute_path_bfs,
}


def get_planner(name: str) -> Planner:
    """Look up a planner by its configuration name."""
    try:
        return PLANNERS[name]
    except KeyError:
        raise ValueError(f"Unknown planner: {name}") from None
