"""
Tests for the plotting helpers.
"""

import gstools as gs
import matplotlib
import matplotlib.pyplot as plt
import numpy as np
import pytest
from matplotlib.axes import Axes
from matplotlib.figure import Figure

from geostats_tutorials.data import GridData
from geostats_tutorials.plotting import (
    export_variogram_par,
    plot_blocks,
    plot_contours,
    plot_experimental,
    plot_geotable,
    plot_grid,
    plot_hscatter,
    plot_model,
    plot_realizations,
    plot_solution,
    plot_strata,
    plot_variogram,
    plot_varioplane,
    set_plot_defaults,
)
from geostats_tutorials.problems import EstimationSolution, SimulationSolution
from geostats_tutorials.stratigraphy import LandState, Strata
from geostats_tutorials.utils import CartesianGrid, VariogramModel, VariogramType
from geostats_tutorials.variogram import HScatterResult, VariogramResult, VarioplaneResult


@pytest.fixture
def experimental():
    return VariogramResult(
        lag_distances=np.array([10.0, 20.0, 30.0]),
        gamma=np.array([0.5, 0.8, 1.0]),
        num_pairs=np.array([100, 80, 50]),
        direction=(1.0, 0.0),
    )


class TestPlotExperimental:
    """Tests for experimental variogram plots."""

    def test_single(self, experimental):
        ax = plot_experimental(experimental)
        assert isinstance(ax, Axes)
        assert ax.get_xlabel() == "lag"

    def test_multiple_directions(self, experimental):
        """Each direction gets a legend entry."""
        other = VariogramResult(
            experimental.lag_distances, np.array([0.3, 0.5, 0.6]), np.array([90, 70, 0]), (0.0, 1.0),
        )
        ax = plot_experimental([experimental, other])
        labels = [t.get_text() for t in ax.get_legend().get_texts()]
        assert labels == ["azimuth 90°", "azimuth 0°"]

    def test_existing_axes(self, experimental):
        """Plots go to the given axes."""
        ax = plot_model(VariogramModel.spherical(1.0, 30.0), 40.0)
        assert plot_experimental(experimental, ax=ax, show_bins=False) is ax


class TestPlotModel:
    """Tests for model curves."""

    def test_nugget_and_sill_lines(self):
        model = VariogramModel.spherical(sill=1.0, ranges=100.0, nugget=0.2)
        ax = plot_model(model, max_distance=150.0, show_range=True)
        labels = [line.get_label() for line in ax.get_lines()]
        assert "nugget = 0.2" in labels
        assert "sill = 1.2" in labels
        assert "range = 100" in labels

    def test_gstools_model(self):
        """GSTools covariance models are plotted from their variogram."""
        ax = plot_model(gs.Exponential(dim=2, var=2.0, len_scale=10.0), 50.0)
        curve = ax.get_lines()[0].get_ydata()
        assert curve[-1] == pytest.approx(2.0, rel=0.01)


class TestPlotVariogram:
    """Tests for combined variogram plots."""

    def test_model_only(self):
        """Without data the curve spans 1.5 ranges."""
        ax = plot_variogram(model=VariogramModel.spherical(1.0, 100.0, nugget=0.1))
        assert ax.get_lines()[0].get_xdata().max() == pytest.approx(150.0)

    def test_title(self, experimental):
        ax = plot_variogram(experimental, VariogramModel.spherical(1.0, 30.0), title="Test Variogram")
        assert ax.get_title() == "Test Variogram"


class TestExportVariogramPar:
    """Tests for exporting variogram models."""

    def test_export_spherical(self, tmp_path):
        model = VariogramModel.spherical(sill=0.9, ranges=(50.0, 30.0, 10.0), nugget=0.1, angles=(45.0, 0.0, 0.0))
        path = export_variogram_par(model, tmp_path / "variogram.par")

        lines = path.read_text().strip().split("\n")
        assert lines[0].startswith("#")
        assert "1 0.1" in lines[1]
        assert "1 0.9 45.0 0.0 0.0" in lines[2]
        assert "50.0 30.0 10.0" in lines[3]

    def test_export_nested(self, tmp_path):
        model = VariogramModel(nugget=0.1)
        model.add_structure(VariogramType.SPHERICAL, sill=0.4, ranges=(50.0, 50.0, 50.0))
        model.add_structure(VariogramType.EXPONENTIAL, sill=0.5, ranges=(200.0, 100.0, 50.0))
        lines = export_variogram_par(model, tmp_path / "nested.par").read_text().strip().split("\n")
        assert "2 0.1" in lines[1]
        assert len(lines) == 6


class TestTwoPointPlots:
    """Tests for variogram planes and h-scatter plots."""

    def test_varioplane(self, experimental):
        result = VarioplaneResult(
            np.array([0.0, np.pi / 2]), [experimental, experimental], np.array([30.0, 10.0]),
        )
        ax = plot_varioplane(result)
        assert ax.name == "polar"

    def test_hscatter(self):
        result = HScatterResult(np.arange(5.0), np.arange(5.0), 0.0)
        ax = plot_hscatter(result)
        assert "ρ = 1.00" in ax.get_title()


class TestSpatialPlots:
    """Tests for maps of point and gridded data."""

    def test_geotable(self, point_data):
        ax = plot_geotable(point_data, "z")
        assert ax.get_xlabel() == "x"

    def test_grid_extent(self):
        """Images cover the cells of the grid."""
        grid = CartesianGrid((4, 2), origin=(1.0, 0.0), spacing=(2.0, 1.0))
        ax = plot_grid(GridData(grid, {"v": np.arange(8.0).reshape(4, 2)}), "v")
        image = ax.get_images()[0]
        assert tuple(image.get_extent()) == pytest.approx((0.0, 8.0, -0.5, 1.5))
        assert image.get_array().shape == (2, 4)

    def test_grid_3d_slice(self, grid_3d):
        values = np.random.default_rng(0).random(grid_3d.shape)
        ax = plot_grid(GridData(grid_3d, {"v": values}), zslice=2, title="slice")
        np.testing.assert_allclose(ax.get_images()[0].get_array(), values[:, :, 2].T)

    def test_contours(self):
        x, y = np.meshgrid(np.arange(10.0), np.arange(8.0), indexing="ij")
        ax = plot_contours(x + y, levels=5)
        assert isinstance(ax, Axes)

    def test_blocks(self, clustered_data):
        ax = plot_blocks(clustered_data, 20.0)
        assert len(ax.collections) == 1


class TestSolutionPlots:
    """Tests for estimation and simulation figures."""

    def test_solution(self, small_grid):
        zeros = np.zeros(small_grid.shape)
        solution = EstimationSolution(small_grid, {"z": zeros}, {"z": zeros + 1})
        fig = plot_solution(solution, "z")
        assert isinstance(fig, Figure)
        assert len(fig.axes) == 4

    def test_realizations(self, small_grid):
        reals = np.random.default_rng(1).random((5, *small_grid.shape))
        fig = plot_realizations(SimulationSolution(small_grid, {"z": reals}), "z", n=3)
        assert len(fig.axes) == 3

    def test_strata(self):
        record = [LandState(np.full((3, 4), float(level))) for level in (0, 1, 2)]
        ax = plot_strata(Strata(record, "depositional"))
        assert ax.get_title() == "depositional strata"


def test_set_plot_defaults():
    """Figure defaults go to the matplotlib rc parameters."""
    with matplotlib.rc_context():
        set_plot_defaults(figsize=(5.0, 3.0), cmap="viridis")
        assert plt.rcParams["image.cmap"] == "viridis"
        assert list(plt.rcParams["figure.figsize"]) == [5.0, 3.0]
