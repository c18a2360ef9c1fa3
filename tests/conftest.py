"""
Pytest configuration and shared fixtures for geostats-tutorials tests.
"""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest

from geostats_tutorials.data import GeoTable, GridData
from geostats_tutorials.utils import CartesianGrid, VariogramModel


@pytest.fixture(autouse=True)
def close_figures():
    """Close figures created by a test."""
    yield
    plt.close("all")


@pytest.fixture
def point_data():
    """Random 2-D point data with a smooth trend plus noise."""
    rng = np.random.default_rng(42)
    n = 60
    x = rng.uniform(0, 50, n)
    y = rng.uniform(0, 50, n)
    z = 0.05 * x + 0.02 * y + rng.normal(0, 0.1, n)
    return GeoTable(pd.DataFrame({"x": x, "y": y, "z": z}))


@pytest.fixture
def small_grid():
    """A 2-D grid with unit cells."""
    return CartesianGrid(20, 15)


@pytest.fixture
def grid_3d():
    """An irregular 3-D grid with odd dimensions and non-unit cells."""
    return CartesianGrid((7, 5, 3), origin=(2.5, 5.0, 0.25), spacing=(2.5, 1.5, 3.0))


@pytest.fixture
def spherical_variogram():
    """A simple spherical variogram model."""
    return VariogramModel.spherical(sill=1.0, ranges=(50.0, 50.0, 10.0), nugget=0.1)


@pytest.fixture
def gaussian_variogram():
    """A Gaussian variogram with unit sill and range 10."""
    return VariogramModel.gaussian(sill=1.0, ranges=10.0)


@pytest.fixture
def clustered_data():
    """Samples clustered where values are high, sparse elsewhere."""
    rng = np.random.default_rng(123)
    n1, n2 = 80, 20

    # Dense cluster (oversampled high values)
    x1 = rng.normal(25, 3, n1)
    y1 = rng.normal(25, 3, n1)
    v1 = rng.normal(15, 1, n1)

    # Sparse samples (undersampled low values)
    x2 = rng.uniform(0, 100, n2)
    y2 = rng.uniform(0, 100, n2)
    v2 = rng.normal(8, 1, n2)

    return GeoTable(pd.DataFrame({
        "x": np.concatenate([x1, x2]),
        "y": np.concatenate([y1, y2]),
        "value": np.concatenate([v1, v2]),
    }))


@pytest.fixture
def binary_image():
    """Gridded 0/1 facies with vertical stripes."""
    grid = CartesianGrid(40, 40)
    facies = np.zeros(grid.shape, dtype=np.int64)
    facies[10:20, :] = 1
    facies[30:35, :] = 1
    return GridData(grid, {"facies": facies})
