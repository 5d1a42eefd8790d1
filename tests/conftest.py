"""Shared fixtures for the Daisyworld test suite."""

from __future__ import annotations

from collections.abc import Iterator

import numpy as np
import pytest
from numpy.random import Generator

from daisyworld.simulation.config import Conditions, SimulationConfig
from daisyworld.simulation.engine import SimulationEngine
from daisyworld.world.grid import Grid


@pytest.fixture
def rng() -> Generator:
    """A deterministic random generator for reproducible tests."""
    return np.random.default_rng(seed=12345)


@pytest.fixture
def small_grid() -> Grid:
    """A small 8x8 grid for fast tests."""
    return Grid(rows=8, cols=8)


@pytest.fixture
def conditions() -> Conditions:
    """Default conditions (low luminosity, 0.25/0.75/0.4 albedo)."""
    return Conditions()


@pytest.fixture
def default_config() -> SimulationConfig:
    """Default simulation config (no YAML file needed)."""
    return SimulationConfig()


@pytest.fixture
def small_config() -> SimulationConfig:
    """A 10x10 config with two workers for fast engine tests."""
    return SimulationConfig(seed=7, rows=10, cols=10, workers=2)


@pytest.fixture
def engine(small_config: SimulationConfig) -> Iterator[SimulationEngine]:
    """A set-up engine on the small config, closed after the test."""
    with SimulationEngine(config=small_config) as eng:
        eng.setup()
        yield eng

