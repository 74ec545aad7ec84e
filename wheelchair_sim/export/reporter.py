"""Summary report generation for the wheelchair simulation."""

from typing import Optional, TYPE_CHECKING
from pathlib import Path

if TYPE_CHECKING:
    from ..model.state import SimulationState


class Reporter:
    """Generates summary statistics and formatted text report."""

    def __init__(self, config_path: str, seed: Optional[int]):
        self.config_path = config_path
        self.seed = seed
        self.peak_assistance = 0
        self.peak_in_transit = 0
        self.total_yields = 0
        self.dispatches = 0

    def record_dispatch(self, count: int = 1) -> None:
        self.dispatches += count

    def update(self, state: "SimulationState") -> None:
        """Accumulate metrics per step."""
        self.peak_assistance = max(self.peak_assistance,
                                   int(state.metrics.get('needs_assistance', 0)))
        self.peak_in_transit = max(self.peak_in_transit,
                                   int(state.metrics.get('in_transit', 0)))
        self.total_yields += int(state.metrics.get('yields', 0))

    def generate_summary(self, final_state: "SimulationState",
                         output_dir: Path,
                         csv_enabled: bool,
                         snapshot_enabled: bool,
                         gif_enabled: bool) -> str:
        """Returns formatted text report."""
        metrics = final_state.metrics
        fleet = int(metrics.get('total_wheelchairs', 0))
        assistance = int(metrics.get('needs_assistance', 0))
        assistance_pct = (assistance / fleet * 100) if fleet > 0 else 0

        lines = [
            "",
            "=" * 80,
            "                    WHEELCHAIR FLEET SIMULATION REPORT",
            "=" * 80,
            f"Configuration: {self.config_path}",
            f"Random Seed: {self.seed if self.seed is not None else 'None (random)'}",
            "",
            "SIMULATION METRICS",
            "-" * 40,
            f"Total Steps:           {final_state.step}",
            f"Wheelchairs:           {fleet}",
            f"Obstacles:             {int(metrics.get('obstacles', 0))}",
            f"Destinations Assigned: {self.dispatches}",
            f"Cells Travelled:       {int(metrics.get('total_moves', 0))}",
            f"Mean Battery:          {metrics.get('mean_battery', 0):.2f}%",
            f"Lowest Battery:        {metrics.get('min_battery', 0):.2f}%",
            f"Peak In Transit:       {self.peak_in_transit}",
            "",
            "INCIDENTS",
            "-" * 40,
            f"[{'X' if metrics.get('total_blockages', 0) else ' '}] Blockages: "
            f"{int(metrics.get('total_blockages', 0))}",
            f"[{'X' if self.total_yields else ' '}] Yielded Moves: {self.total_yields}",
            f"Needs Assistance:      {assistance} / {fleet} ({assistance_pct:.1f}%)",
            f"Peak Needs Assistance: {self.peak_assistance}",
            "",
            "OUTPUT FILES",
            "-" * 40,
        ]

        if csv_enabled:
            lines.append(f"CSV Log:    {output_dir / 'simulation_log.csv'}")
            lines.append(f"Metrics:    {output_dir / 'simulation_metrics.csv'}")
        else:
            lines.append("CSV Log:    (disabled)")

        if snapshot_enabled:
            lines.append(f"Snapshot:   {output_dir / 'final_state.png'}")
        else:
            lines.append("Snapshot:   (disabled)")

        if gif_enabled:
            lines.append(f"Animation:  {output_dir / 'simulation.gif'}")
        else:
            lines.append("Animation:  (disabled)")

        lines.append("=" * 80)

        return "\n".join(lines)
