"""CSV export functionality for the wheelchair simulation."""

import csv
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from ..model.state import SimulationState

RowSource = Callable[["SimulationState"], List[Dict]]

WHEELCHAIR_FIELDS = ['step', 'wheelchair_id', 'x', 'y', 'status', 'battery']
METRIC_FIELDS = ['step', 'available', 'in_transit', 'needs_assistance',
                 'mean_battery', 'moves', 'blockages', 'yields']


def _metric_rows(state: "SimulationState") -> List[Dict]:
    row = {'step': state.step}
    row.update({k: state.metrics.get(k, 0) for k in METRIC_FIELDS[1:]})
    return [row]


class CSVWriter:
    """
    Exports simulation data to CSV format incrementally.

    The default layout has one row per wheelchair per step:
        step,wheelchair_id,x,y,status,battery
        1,wc_1,5,10,Available,100.0
        ...

    ``CSVWriter.metrics(path)`` writes one row of fleet metrics per step
    instead.
    """

    def __init__(self, output_path: Path,
                 fieldnames: Sequence[str] = WHEELCHAIR_FIELDS,
                 rows: Optional[RowSource] = None):
        self.output_path = Path(output_path)
        self.fieldnames = list(fieldnames)
        self.rows = rows or (lambda state: state.to_csv_rows())
        self.file = None
        self.writer: Optional[csv.DictWriter] = None
        self.rows_written = 0

    @classmethod
    def metrics(cls, output_path: Path) -> "CSVWriter":
        return cls(output_path, METRIC_FIELDS, _metric_rows)

    @property
    def is_open(self) -> bool:
        return self.file is not None

    def open(self) -> None:
        """Initialize file and write header."""
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.file = open(self.output_path, 'w', newline='')
        self.writer = csv.DictWriter(self.file, fieldnames=self.fieldnames)
        self.writer.writeheader()

    def append(self, state: "SimulationState") -> None:
        """Write state data for current step."""
        if not self.is_open:
            self.open()
        rows = self.rows(state)
        self.writer.writerows(rows)
        self.rows_written += len(rows)
        self.file.flush()

    def close(self) -> None:
        """Close file handle."""
        if self.file:
            self.file.close()
            self.file = None
            self.writer = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
