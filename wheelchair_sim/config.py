"""Configuration dataclasses and YAML loader for the wheelchair fleet simulation."""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional
from pathlib import Path
import yaml


PLANNERS = ('greedy', 'bfs')


@dataclass
class GridConfig:
    width: int = 50
    height: int = 30


@dataclass
class BatteryConfig:
    initial: float = 100.0
    depletion_rate: float = 0.05     # percent per successful move
    wander_threshold: float = 20.0   # idle wander only above this level


@dataclass
class MovementConfig:
    speed: int = 1
    wander_probability: float = 0.05
    planner: str = 'greedy'          # "greedy" or "bfs"


@dataclass
class PlacementConfig:
    max_attempts: int = 1000  # random samples before scanning free cells


@dataclass
class DispatchConfig:
    """Headless stand-in for users clicking destinations on the map."""
    wheelchair_count: int = 0
    obstacle_count: int = 0
    dispatch_probability: float = 0.0


@dataclass
class SimulationConfig:
    grid: GridConfig = field(default_factory=GridConfig)
    battery: BatteryConfig = field(default_factory=BatteryConfig)
    movement: MovementConfig = field(default_factory=MovementConfig)
    placement: PlacementConfig = field(default_factory=PlacementConfig)
    dispatch: DispatchConfig = field(default_factory=DispatchConfig)
    tick_interval_ms: int = 100
    max_steps: int = 500

    # Export flags (can be overridden by CLI)
    csv_enabled: bool = True
    snapshot_enabled: bool = True
    gif_enabled: bool = False
    quiet: bool = False
    seed: Optional[int] = None
    out_dir: Path = field(default_factory=lambda: Path("./output"))

    @classmethod
    def default(cls) -> "SimulationConfig":
        return cls()

    @property
    def tick_interval(self) -> float:
        """Tick interval in seconds."""
        return self.tick_interval_ms / 1000.0

    def validate(self) -> None:
        """Raise ValueError if any setting is out of range."""
        if self.grid.width <= 0 or self.grid.height <= 0:
            raise ValueError(
                f"Grid dimensions must be positive, got "
                f"{self.grid.width}x{self.grid.height}")
        if self.tick_interval_ms <= 0:
            raise ValueError("tick_interval_ms must be positive")
        if self.movement.planner not in PLANNERS:
            raise ValueError(f"Unknown planner: {self.movement.planner}")
        if self.movement.speed != 1:
            raise ValueError("Only speed 1 (one cell per tick) is supported")
        for name, value in (
                ('wander_probability', self.movement.wander_probability),
                ('dispatch_probability', self.dispatch.dispatch_probability)):
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")
        if not 0.0 < self.battery.initial <= 100.0:
            raise ValueError("battery.initial must be in (0, 100]")
        if self.battery.depletion_rate < 0:
            raise ValueError("battery.depletion_rate must not be negative")
        if self.placement.max_attempts < 0:
            raise ValueError("placement.max_attempts must not be negative")


def _section(raw: Dict[str, Any], key: str) -> Dict[str, Any]:
    """Return a mapping section, treating a missing or empty key as {}."""
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Section '{key}' must be a mapping")
    return value


def parse_config(raw: Dict[str, Any]) -> SimulationConfig:
    """Build a validated SimulationConfig from already-parsed YAML data."""
    defaults = SimulationConfig()

    grid_raw = _section(raw, 'grid')
    grid = GridConfig(
        width=grid_raw.get('width', defaults.grid.width),
        height=grid_raw.get('height', defaults.grid.height)
    )

    battery_raw = _section(raw, 'battery')
    battery = BatteryConfig(
        initial=battery_raw.get('initial', defaults.battery.initial),
        depletion_rate=battery_raw.get('depletion_rate',
                                       defaults.battery.depletion_rate),
        wander_threshold=battery_raw.get('wander_threshold',
                                         defaults.battery.wander_threshold)
    )

    movement_raw = _section(raw, 'movement')
    movement = MovementConfig(
        speed=movement_raw.get('speed', defaults.movement.speed),
        wander_probability=movement_raw.get(
            'wander_probability', defaults.movement.wander_probability),
        planner=movement_raw.get('planner', defaults.movement.planner)
    )

    placement_raw = _section(raw, 'placement')
    placement = PlacementConfig(
        max_attempts=placement_raw.get('max_attempts',
                                       defaults.placement.max_attempts)
    )

    sim_raw = _section(raw, 'simulation')
    dispatch = DispatchConfig(
        wheelchair_count=sim_raw.get('wheelchair_count', 0),
        obstacle_count=sim_raw.get('obstacle_count', 0),
        dispatch_probability=sim_raw.get('dispatch_probability', 0.0)
    )

    # Parse export config (optional)
    export_raw = _section(raw, 'export')

    config = SimulationConfig(
        grid=grid,
        battery=battery,
        movement=movement,
        placement=placement,
        dispatch=dispatch,
        tick_interval_ms=sim_raw.get('tick_interval_ms',
                                     defaults.tick_interval_ms),
        max_steps=sim_raw.get('max_steps', defaults.max_steps),
        csv_enabled=export_raw.get('csv', True),
        snapshot_enabled=export_raw.get('snapshot', True),
        gif_enabled=export_raw.get('gif', False),
        seed=sim_raw.get('seed')
    )
    config.validate()
    return config


def load_config(config_path: Path) -> SimulationConfig:
    """Load and validate YAML configuration file."""
    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Configuration root must be a mapping: {config_path}")
    return parse_config(raw)
