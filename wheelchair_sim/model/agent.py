"""Wheelchair and obstacle records."""

import itertools
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from .grid import Point


class WheelchairStatus(Enum):
    """Possible states for a wheelchair."""
    AVAILABLE = "Available"
    IN_TRANSIT = "In Transit"
    CHARGING = "Charging"  # declared, no transition produces it yet
    NEEDS_ASSISTANCE = "Needs Assistance"


_id_counter = itertools.count(1)


def generate_id(prefix: str) -> str:
    """Process-unique identifier such as 'wc_12'."""
    return f"{prefix}_{next(_id_counter)}"


@dataclass(frozen=True)
class Wheelchair:
    """
    One mobile unit.

    Records are immutable: every move or status change produces a new
    record via ``evolve`` so a published snapshot never changes under a
    reader.
    """
    id: str
    position: Point
    destination: Optional[Point] = None
    path: Tuple[Point, ...] = ()
    status: WheelchairStatus = WheelchairStatus.AVAILABLE
    battery: float = 100.0
    speed: int = 1

    @classmethod
    def create(cls, position: Point, battery: float = 100.0) -> "Wheelchair":
        return cls(id=generate_id("wc"), position=Point(*position),
                   battery=battery)

    @property
    def in_transit(self) -> bool:
        return self.status is WheelchairStatus.IN_TRANSIT

    def evolve(self, **changes) -> "Wheelchair":
        return replace(self, **changes)

    def drained(self, amount: float) -> float:
        """Battery level after spending amount, never below zero."""
        return max(0.0, self.battery - amount)

    def __repr__(self) -> str:
        return (f"Wheelchair(id={self.id}, pos=({self.position.x}, "
                f"{self.position.y}), status={self.status.value}, "
                f"battery={self.battery:.2f})")


@dataclass(frozen=True)
class Obstacle:
    """Static blocker; its position never changes."""
    id: str
    position: Point

    @classmethod
    def create(cls, position: Point) -> "Obstacle":
        return cls(id=generate_id("obs"), position=Point(*position))
