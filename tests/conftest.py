"""Shared fixtures for the wheelchair simulation tests."""

import pytest

from wheelchair_sim.config import SimulationConfig
from wheelchair_sim.model import SimulationEngine, Wheelchair, Obstacle, Point


@pytest.fixture
def config():
    """Default configuration with idle wander switched off."""
    config = SimulationConfig.default()
    config.movement.wander_probability = 0.0
    config.seed = 1234
    return config


@pytest.fixture
def engine(config):
    return SimulationEngine(config)


@pytest.fixture
def place(engine):
    """Put wheelchairs at fixed cells, bypassing random placement."""

    def _place(*positions, battery=100.0):
        chairs = tuple(Wheelchair.create(Point(*p), battery) for p in positions)
        engine.wheelchairs = engine.wheelchairs + chairs
        return [c.id for c in chairs]

    return _place


@pytest.fixture
def block(engine):
    """Put obstacles at fixed cells."""

    def _block(*positions):
        obstacles = tuple(Obstacle.create(Point(*p)) for p in positions)
        engine.obstacles = engine.obstacles + obstacles
        return obstacles

    return _block
