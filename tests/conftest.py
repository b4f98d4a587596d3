"""
Pytest configuration and fixtures for devogrow tests.
"""

import numpy as np
import pytest

from devogrow.config import Config
from devogrow.controllers import DistributedControllerStrategy, OscillatorControllerStrategy
from devogrow.organism import box
from devogrow.voxel import Voxel, sensorized


@pytest.fixture
def default_config() -> Config:
    """Default configuration for tests."""
    return Config()


@pytest.fixture
def plain_voxel() -> Voxel:
    """Voxel without sensors."""
    return Voxel()


@pytest.fixture
def touch_voxel() -> Voxel:
    """Voxel with one single-reading sensor."""
    return sensorized(("touch", 1))


@pytest.fixture
def square_target(touch_voxel: Voxel) -> np.ndarray:
    """Full 2x2 body."""
    return box(2, 2, touch_voxel)


@pytest.fixture
def box_target(touch_voxel: Voxel) -> np.ndarray:
    """Full 5x5 body."""
    return box(5, 5, touch_voxel)


@pytest.fixture
def fixed_oscillator() -> OscillatorControllerStrategy:
    """Oscillators with every component fixed: no genome values needed."""
    return OscillatorControllerStrategy(frequency=1.0, phase=0.0, amplitude=1.0)


@pytest.fixture
def phase_oscillator() -> OscillatorControllerStrategy:
    """Oscillators with an evolved phase per cell."""
    return OscillatorControllerStrategy(frequency=1.0, phase=None, amplitude=1.0)


@pytest.fixture
def homogeneous_mlp() -> DistributedControllerStrategy:
    """One shared controller network."""
    return DistributedControllerStrategy()


@pytest.fixture
def rng() -> np.random.Generator:
    """Random generator for stochastic tests."""
    return np.random.default_rng(12345)
