"""Visualization and export for the wheelchair simulation."""

import numpy as np
import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend
import matplotlib.pyplot as plt
from matplotlib.colors import to_rgb
from pathlib import Path
from typing import List, TYPE_CHECKING
from PIL import Image
import io

if TYPE_CHECKING:
    from ..model.state import SimulationState


class Visualizer:
    """
    Generates visual outputs using matplotlib.

    Supports:
    - Single PNG snapshots
    - Animated GIF compilation
    """

    # Color scheme, keyed by WheelchairStatus.value
    COLORS = {
        'floor': '#FFFFFF',
        'obstacle': '#4B5563',          # Gray
        'path': '#3B82F6',
        'Available': '#22C55E',         # Green
        'In Transit': '#3B82F6',        # Blue
        'Charging': '#EAB308',          # Yellow
        'Needs Assistance': '#EF4444',  # Red
    }

    def __init__(self, grid_width: int, grid_height: int):
        self.width = grid_width
        self.height = grid_height
        self.frames: List[Image.Image] = []

    def _create_figure(self, state: "SimulationState",
                       show_paths: bool = True) -> plt.Figure:
        """Create matplotlib figure for state visualization."""
        aspect = self.width / self.height
        fig_height = 6
        fig_width = max(8, fig_height * aspect)
        fig, ax = plt.subplots(figsize=(fig_width, fig_height))

        # Base layer: floor and obstacles
        base = np.ones((self.height, self.width, 3))
        base[:, :] = to_rgb(self.COLORS['floor'])
        obstacle_rgb = to_rgb(self.COLORS['obstacle'])
        for obstacle in state.obstacles:
            base[obstacle.position.y, obstacle.position.x] = obstacle_rgb

        # origin='upper' keeps y growing downward, as on the floor plan
        ax.imshow(base, origin='upper', aspect='equal',
                  extent=[-0.5, self.width - 0.5, self.height - 0.5, -0.5])

        # Remaining routes
        if show_paths:
            for wc in state.wheelchairs:
                if not wc.path:
                    continue
                xs = [wc.position.x] + [p.x for p in wc.path]
                ys = [wc.position.y] + [p.y for p in wc.path]
                ax.plot(xs, ys, '--', color=self.COLORS['path'],
                        linewidth=1, alpha=0.5)

        # Draw wheelchairs
        for wc in state.wheelchairs:
            color = self.COLORS.get(wc.status.value, '#95A5A6')
            ax.plot(wc.position.x, wc.position.y, 'o', color=color,
                    markersize=6, markeredgecolor='black', markeredgewidth=0.3)

        ax.set_title(f'Step {state.step} | Wheelchairs: {len(state.wheelchairs)} | '
                     f'Needs Assistance: {int(state.metrics.get("needs_assistance", 0))}')
        ax.set_xlabel('X')
        ax.set_ylabel('Y')
        ax.set_xlim(-0.5, self.width - 0.5)
        ax.set_ylim(self.height - 0.5, -0.5)

        legend_elements = [
            plt.Line2D([0], [0], marker='o', color='w', label=status,
                       markerfacecolor=self.COLORS[status], markersize=8)
            for status in ('Available', 'In Transit', 'Needs Assistance')
        ]
        legend_elements.append(
            plt.Line2D([0], [0], marker='s', color='w', label='Obstacle',
                       markerfacecolor=self.COLORS['obstacle'], markersize=8))
        ax.legend(handles=legend_elements, loc='upper right', fontsize=8)

        plt.tight_layout()
        return fig

    def buffer_frame(self, state: "SimulationState") -> None:
        """Store frame for GIF generation."""
        fig = self._create_figure(state)

        buf = io.BytesIO()
        fig.savefig(buf, format='png', dpi=80)
        buf.seek(0)
        img = Image.open(buf).copy()
        self.frames.append(img)
        buf.close()
        plt.close(fig)

    def save_snapshot(self, state: "SimulationState", output_path: Path) -> None:
        """Save single PNG image of current state."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig = self._create_figure(state)
        fig.savefig(output_path, dpi=150, bbox_inches='tight')
        plt.close(fig)

    def generate_gif(self, output_path: Path, fps: int = 10) -> None:
        """Compile buffered frames into animated GIF."""
        if not self.frames:
            return

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        duration = int(1000 / fps)  # milliseconds per frame

        self.frames[0].save(
            output_path,
            save_all=True,
            append_images=self.frames[1:],
            duration=duration,
            loop=0
        )
