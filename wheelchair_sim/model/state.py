"""State snapshot dataclasses for the wheelchair simulation."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .agent import Wheelchair, Obstacle


@dataclass(frozen=True)
class SimulationState:
    """Complete snapshot of simulation state at a given time step."""
    step: int
    wheelchairs: Tuple[Wheelchair, ...]
    obstacles: Tuple[Obstacle, ...]
    running: bool = False
    metrics: Dict[str, float] = field(default_factory=dict)

    def get_wheelchair(self, wheelchair_id: str) -> Optional[Wheelchair]:
        for wc in self.wheelchairs:
            if wc.id == wheelchair_id:
                return wc
        return None

    def to_csv_rows(self) -> List[Dict]:
        """Convert to CSV-compatible format."""
        return [
            {
                "step": self.step,
                "wheelchair_id": wc.id,
                "x": wc.position.x,
                "y": wc.position.y,
                "status": wc.status.value,
                "battery": round(wc.battery, 4)
            }
            for wc in self.wheelchairs
        ]
