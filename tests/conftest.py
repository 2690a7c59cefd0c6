"""
Pytest configuration and shared fixtures for the particle life tests.
"""
import numpy as np
import pytest

from particle import Bounds


@pytest.fixture
def rng():
    """A seeded generator so every test sees the same random draws."""
    return np.random.default_rng(1234)


@pytest.fixture
def wide_bounds():
    """Viewport large enough that no test particle reaches it."""
    return Bounds(-1000.0, 1000.0, -1000.0, 1000.0)


@pytest.fixture
def small_params():
    """Simulation parameters small enough to step quickly."""
    return {
        "seed": 7,
        "num_classes": 3,
        "particles_per_class": 40,
        "cutoff_radius": 80.0,
        "gravity_mag_max": 0.5,
        "max_speed": 2.0,
        "mass_range": [50.0, 150.0],
        "initial_position_bounds": {"left": -100.0, "right": 100.0, "bottom": -100.0, "top": 100.0},
    }
