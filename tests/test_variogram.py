"""
Tests for empirical variograms, model fitting and two-point statistics.
"""

import numpy as np
import pandas as pd
import pytest

from geostats_tutorials.data import GeoTable, GridData
from geostats_tutorials.utils import CartesianGrid, VariogramModel
from geostats_tutorials.variogram import (
    VariogramResult,
    VarioplaneResult,
    directional_variogram,
    empirical_variogram,
    fit_variogram,
    hscatter,
    lagged_correlation,
    planar_variogram,
    variogram_fit_error,
    varioplane,
)


def synthetic_result(model, nlags=30, maxlag=60.0):
    """Empirical variogram that exactly follows a model."""
    lags = np.linspace(maxlag / nlags, maxlag, nlags)
    return VariogramResult(lags, model(lags), np.full(nlags, 100, dtype=np.int64))


@pytest.fixture
def striped_grid():
    """Values varying along x only."""
    grid = CartesianGrid(30, 30)
    x = np.arange(30, dtype=np.float64)
    values = np.repeat(np.sin(x / 3.0)[:, np.newaxis], 30, axis=1)
    return GridData(grid, {"v": values})


@pytest.fixture
def smooth_grid():
    """Smooth values varying along both axes."""
    grid = CartesianGrid(30, 30)
    x, y = np.meshgrid(np.arange(30.0), np.arange(30.0), indexing="ij")
    return GridData(grid, {"v": np.sin(x / 4.0) + np.cos(y / 6.0)})


class TestVariogramResult:
    """Tests for the result container."""

    def test_azimuth(self):
        """Directions convert to azimuths clockwise from north."""
        north = VariogramResult(np.zeros(1), np.zeros(1), np.ones(1, dtype=np.int64), (0.0, 1.0))
        east = VariogramResult(np.zeros(1), np.zeros(1), np.ones(1, dtype=np.int64), (1.0, 0.0))
        omni = VariogramResult(np.zeros(1), np.zeros(1), np.ones(1, dtype=np.int64))
        assert north.azimuth == pytest.approx(0.0)
        assert east.azimuth == pytest.approx(90.0)
        assert omni.azimuth is None

    def test_valid(self):
        """Bins without pairs are invalid."""
        result = VariogramResult(np.arange(3.0), np.array([0.1, 0.0, np.nan]), np.array([5, 0, 3]))
        np.testing.assert_array_equal(result.valid, [True, False, False])


class TestEmpiricalVariogram:
    """Tests for omnidirectional and directional variograms."""

    def test_bins(self, point_data):
        """One value per lag bin, non-negative."""
        result = empirical_variogram(point_data, "z", nlags=10, maxlag=30.0)
        assert result.lag_distances.shape == (10,)
        assert result.gamma.shape == result.num_pairs.shape == (10,)
        assert np.all(result.gamma[result.valid] >= 0)
        assert result.lag_distances.max() < 30.0
        assert result.direction is None

    def test_grid_data(self, striped_grid):
        """Gridded data are flattened to points."""
        result = empirical_variogram(striped_grid, "v", nlags=5, maxlag=10.0)
        assert result.num_pairs.sum() > 0

    def test_sampling(self, point_data):
        """Subsampling reduces the number of pairs."""
        full = empirical_variogram(point_data, "z", nlags=5, maxlag=30.0)
        sub = empirical_variogram(point_data, "z", nlags=5, maxlag=30.0, sampling_size=20, seed=1)
        assert sub.num_pairs.sum() < full.num_pairs.sum()

    def test_invalid_bins(self, point_data):
        """nlags and maxlag must be positive."""
        with pytest.raises(ValueError):
            empirical_variogram(point_data, "z", nlags=0)
        with pytest.raises(ValueError):
            empirical_variogram(point_data, "z", maxlag=-1.0)

    def test_directional_anisotropy(self, striped_grid):
        """Values constant along y have zero variogram along y."""
        along_y = directional_variogram(striped_grid, "v", (0.0, 1.0), nlags=5, maxlag=10.0, angles_tol=0.05)
        along_x = directional_variogram(striped_grid, "v", (1.0, 0.0), nlags=5, maxlag=10.0, angles_tol=0.05)
        assert np.allclose(along_y.gamma[along_y.valid], 0.0)
        assert along_x.gamma[along_x.valid].max() > 0.1
        assert along_x.direction == (1.0, 0.0)

    def test_directional_bins(self, striped_grid):
        """A single direction gives one value per lag bin."""
        result = directional_variogram(striped_grid, "v", (1.0, 0.0), nlags=5, maxlag=10.0)
        assert result.lag_distances.shape == (5,)
        assert result.gamma.shape == result.num_pairs.shape == (5,)
        assert result.num_pairs.dtype == np.int64
        assert np.count_nonzero(result.valid) >= 2

    def test_direction_dimension(self, point_data):
        """The direction must match the data dimension."""
        with pytest.raises(ValueError, match="components"):
            directional_variogram(point_data, "z", (1.0, 0.0, 0.0))


class TestPlanarVariogram:
    """Tests for variograms within planes."""

    def test_horizontal_planes(self):
        """Pairs across layers are excluded."""
        grid = CartesianGrid(10, 10, 4)
        values = np.zeros(grid.shape)
        values[..., 1::2] = 1.0
        data = GridData(grid, {"v": values})
        result = planar_variogram(data, "v", normal=(0.0, 0.0, 1.0), nlags=4, maxlag=5.0)
        assert result.num_pairs.sum() > 0
        assert np.allclose(result.gamma[result.valid], 0.0)

    def test_no_plane(self):
        """At least one plane must hold two points."""
        data = GeoTable(pd.DataFrame({"x": [0.0, 1.0], "y": [0.0, 1.0], "z": [0.0, 1.0], "v": [1.0, 2.0]}),
                        ("x", "y", "z"))
        with pytest.raises(ValueError, match="plane"):
            planar_variogram(data, "v", normal=(0.0, 0.0, 1.0), maxlag=5.0)

    def test_invalid_normal(self, point_data):
        """The normal must be a non-zero vector of the data dimension."""
        with pytest.raises(ValueError, match="normal"):
            planar_variogram(point_data, "z", normal=(0.0, 0.0, 0.0))


class TestVarioplane:
    """Tests for the variogram plane."""

    def test_angles(self, smooth_grid):
        """Angles sweep half a turn and each gets a fitted range."""
        result = varioplane(smooth_grid, "v", nangles=4, nlags=6, maxlag=12.0)
        np.testing.assert_allclose(result.angles, [0.0, np.pi / 4, np.pi / 2, 3 * np.pi / 4])
        assert len(result.variograms) == len(result.models) == 4
        assert result.ranges.shape == (4,)

    def test_major_angle(self):
        """The major angle has the largest range, NaN ranges are skipped."""
        variogram = synthetic_result(VariogramModel.spherical(1.0, 20.0))
        result = VarioplaneResult(
            np.array([0.0, np.pi / 4, np.pi / 2]), [variogram] * 3, np.array([10.0, np.nan, 30.0]),
        )
        assert result.major_angle == pytest.approx(np.pi / 2)
        assert result.anisotropy_ratio == pytest.approx(1 / 3)

        unfitted = VarioplaneResult(np.array([0.0]), [variogram], np.array([np.nan]))
        assert np.isnan(unfitted.major_angle)

    def test_rejects_1d(self):
        """Only 2-D and 3-D data have planes."""
        data = GeoTable(pd.DataFrame({"x": np.arange(10.0), "v": np.arange(10.0)}), ("x",))
        with pytest.raises(ValueError):
            varioplane(data, "v")


class TestFitVariogram:
    """Tests for variogram fitting."""

    def test_recovers_spherical(self):
        """A fit to an exact spherical variogram recovers its parameters."""
        truth = VariogramModel.spherical(2.0, 30.0)
        model = fit_variogram(synthetic_result(truth), kind="spherical", nugget=False)
        assert model.kind == "spherical"
        assert model.range == pytest.approx(30.0, rel=0.05)
        assert model.total_sill == pytest.approx(2.0, rel=0.05)
        assert model.nugget == 0.0

    def test_best_kind(self):
        """Without a kind the best fitting model is kept."""
        truth = VariogramModel.gaussian(1.0, 20.0)
        result = synthetic_result(truth)
        model = fit_variogram(result)
        assert model.kind == "gaussian"
        assert variogram_fit_error(model, result) < 1e-3

    def test_invalid_kind(self):
        """Only the three basic models can be fitted."""
        with pytest.raises(ValueError, match="kind"):
            fit_variogram(synthetic_result(VariogramModel.spherical(1.0, 10.0)), kind="power")

    def test_too_few_bins(self):
        """Two populated bins are needed."""
        result = VariogramResult(np.array([1.0, 2.0]), np.array([0.5, 0.0]), np.array([10, 0]))
        with pytest.raises(ValueError):
            fit_variogram(result)

    def test_fit_error(self):
        """The error is zero for the exact model and grows with the misfit."""
        truth = VariogramModel.exponential(1.0, 15.0)
        result = synthetic_result(truth)
        assert variogram_fit_error(truth, result) == pytest.approx(0.0, abs=1e-12)
        assert variogram_fit_error(truth.scaled(2.0), result) > 0.01


class TestHScatter:
    """Tests for h-scatter pairs."""

    def test_lag_zero(self, point_data):
        """At lag zero every point is paired with itself."""
        result = hscatter(point_data, "z", lag=0.0)
        np.testing.assert_array_equal(result.head, result.tail)
        assert len(result.head) == len(point_data)
        assert result.correlation == pytest.approx(1.0)

    def test_pairs_within_tolerance(self):
        """Pairs are separated by the lag within the tolerance."""
        x = np.arange(10, dtype=np.float64)
        data = GeoTable(pd.DataFrame({"x": x, "y": np.zeros(10), "v": x}))
        result = hscatter(data, "v", lag=2.0, tol=0.1)
        assert len(result.head) == 16
        np.testing.assert_allclose(np.abs(result.head - result.tail), 2.0)

    def test_cross_variable(self, point_data):
        """Head and tail can be different variables."""
        frame = pd.DataFrame({"x": point_data["x"], "y": point_data["y"],
                              "a": point_data["z"], "b": -point_data["z"]})
        result = hscatter(GeoTable(frame), "a", "b", lag=0.0)
        assert result.correlation == pytest.approx(-1.0)

    def test_max_pairs(self, point_data):
        """Large pair sets are subsampled."""
        result = hscatter(point_data, "z", lag=10.0, tol=5.0, max_pairs=20, seed=0)
        assert len(result.head) <= 20

    def test_negative_lag(self, point_data):
        """Lags must be non-negative."""
        with pytest.raises(ValueError, match="lag"):
            hscatter(point_data, "z", lag=-1.0)


class TestLaggedCorrelation:
    """Tests for lagged correlation of images."""

    def test_lag_zero(self):
        """Lag zero correlation is one."""
        image = np.random.default_rng(0).random((20, 20))
        np.testing.assert_allclose(lagged_correlation(image, [0]), [1.0])

    def test_periodic(self):
        """A shift by the period correlates perfectly."""
        x = np.arange(40)
        image = np.tile(np.sin(2 * np.pi * x / 10)[:, np.newaxis], (1, 5))
        corr = lagged_correlation(image, [5, 10], axis=0)
        assert corr[0] == pytest.approx(-1.0)
        assert corr[1] == pytest.approx(1.0)

    def test_invalid_lag(self):
        """Lags must fit within the image."""
        with pytest.raises(ValueError):
            lagged_correlation(np.zeros((5, 5)), [5])
