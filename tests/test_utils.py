"""
Tests for grids, variogram models and GSTools conversion.
"""

import gstools as gs
import numpy as np
import pytest

from geostats_tutorials.utils import (
    CartesianGrid,
    VariogramModel,
    VariogramType,
    anisotropic_variogram,
    as_covmodel,
    as_variogram,
    ellipsoid_distance,
    evaluate_variogram,
    evaluate_variogram_vector,
    from_gstools,
    to_gstools,
    variogram_between,
)


class TestCartesianGrid:
    """Tests for CartesianGrid class."""

    def test_varargs_and_tuple(self):
        """Dimensions can be given as arguments or as a tuple."""
        assert CartesianGrid(100, 100).dims == CartesianGrid((100, 100)).dims == (100, 100)

    def test_defaults(self, small_grid):
        """Origin defaults to zeros and spacing to ones."""
        assert small_grid.origin == (0.0, 0.0)
        assert small_grid.spacing == (1.0, 1.0)
        assert small_grid.dim == 2

    def test_shape_and_ncells(self, grid_3d):
        """Arrays on the grid are shaped like dims."""
        assert grid_3d.shape == (7, 5, 3)
        assert grid_3d.ncells == 105

    def test_volume(self, grid_3d):
        """Volume covers all cells."""
        assert grid_3d.volume == pytest.approx(7 * 2.5 * 5 * 1.5 * 3 * 3.0)

    def test_axes(self, grid_3d):
        """Axes hold cell centres."""
        x, y, z = grid_3d.axes()
        assert len(x) == 7 and len(y) == 5 and len(z) == 3
        assert x[0] == pytest.approx(2.5)
        assert x[-1] == pytest.approx(2.5 + 6 * 2.5)
        assert z[1] == pytest.approx(3.25)

    def test_points_order(self, small_grid):
        """Points follow the C order of arrays shaped like the grid."""
        points = small_grid.points()
        assert points.shape == (2, small_grid.ncells)
        field = np.arange(small_grid.ncells).reshape(small_grid.shape)
        i, j = 3, 7
        k = field[i, j]
        assert points[0, k] == pytest.approx(i)
        assert points[1, k] == pytest.approx(j)

    def test_contains_point(self, grid_3d):
        """Points within half a cell of the extreme centres are inside."""
        assert grid_3d.contains_point((2.5, 5.0, 0.25))
        assert grid_3d.contains_point((1.5, 5.0, 0.25))
        assert not grid_3d.contains_point((-1.0, 5.0, 0.25))

    def test_point_to_index(self, grid_3d):
        """Coordinates snap to the nearest cell."""
        assert grid_3d.point_to_index((2.5, 5.0, 0.25)) == (0, 0, 0)
        assert grid_3d.point_to_index((17.5, 11.0, 6.25)) == (6, 4, 2)
        assert grid_3d.point_to_index((100.0, 5.0, 0.25)) is None

    def test_gslib_triples(self):
        """2-D grids are padded to three GSLIB triples."""
        grid = CartesianGrid((10, 20), origin=(0.5, 0.5), spacing=(1.0, 2.0))
        assert grid.to_gslib() == [(10, 0.5, 1.0), (20, 0.5, 2.0), (1, 0.0, 1.0)]

    def test_from_gslib(self):
        """GSLIB triples build a 3-D grid."""
        grid = CartesianGrid.from_gslib(100, 0.5, 1.0, 100, 0.5, 1.0, 1, 2200.5, 1.0)
        assert grid.shape == (100, 100, 1)
        assert grid.origin == (0.5, 0.5, 2200.5)

    def test_invalid(self):
        """Bad dimensions and spacings are rejected."""
        with pytest.raises(ValueError):
            CartesianGrid(0, 10)
        with pytest.raises(ValueError):
            CartesianGrid(1, 2, 3, 4)
        with pytest.raises(ValueError):
            CartesianGrid(10, 10, spacing=(1.0,))
        with pytest.raises(ValueError):
            CartesianGrid(10, 10, spacing=(1.0, -1.0))


class TestVariogramModel:
    """Tests for VariogramModel class."""

    def test_spherical_factory(self):
        """Factories build a single structure."""
        vario = VariogramModel.spherical(sill=1.0, ranges=(100.0, 50.0, 10.0), nugget=0.1)
        assert vario.nugget == pytest.approx(0.1)
        assert len(vario.structures) == 1
        assert vario.structures[0]["type"] == VariogramType.SPHERICAL
        assert vario.structures[0]["ranges"] == (100.0, 50.0, 10.0)

    def test_scalar_and_pair_ranges(self):
        """A scalar range is isotropic and a pair repeats the minor range."""
        assert VariogramModel.gaussian(1.0, 5.0).structures[0]["ranges"] == (5.0, 5.0, 5.0)
        assert VariogramModel.gaussian(1.0, (6.0, 2.0)).structures[0]["ranges"] == (6.0, 2.0, 2.0)

    def test_single_by_name(self):
        """Structure types can be given by name."""
        vario = VariogramModel.single("exponential", sill=0.5, ranges=10.0)
        assert vario.kind == "exponential"
        assert vario.range == pytest.approx(10.0)
        with pytest.raises(KeyError):
            VariogramModel.single("matern")

    def test_total_sill(self):
        """Total sill is nugget plus contributions."""
        vario = VariogramModel(nugget=0.1)
        vario.add_structure(VariogramType.SPHERICAL, 0.5, (50.0, 50.0, 10.0))
        vario.add_structure(VariogramType.EXPONENTIAL, 0.4, (100.0, 100.0, 20.0))
        assert vario.total_sill == pytest.approx(1.0)

    def test_pure_nugget(self):
        """A model without structures is a pure nugget."""
        vario = VariogramModel(nugget=0.3)
        assert vario.kind == "nugget"
        assert vario.range == 0.0

    def test_scaled(self, spherical_variogram):
        """Scaling multiplies nugget and sills, not ranges."""
        scaled = spherical_variogram.scaled(2.0)
        assert scaled.total_sill == pytest.approx(2.2)
        assert scaled.range == spherical_variogram.range
        assert spherical_variogram.total_sill == pytest.approx(1.1)

    def test_callable(self, spherical_variogram):
        """Models evaluate like functions of distance."""
        assert spherical_variogram(100.0) == pytest.approx(1.1)


class TestVariogramEvaluation:
    """Tests for isotropic and anisotropic evaluation."""

    def test_nugget_at_zero(self, spherical_variogram):
        """At zero lag the model equals the nugget."""
        assert evaluate_variogram(spherical_variogram, np.array([0.0]))[0] == pytest.approx(0.1)

    @pytest.mark.parametrize("factory", [
        VariogramModel.spherical, VariogramModel.exponential, VariogramModel.gaussian,
    ])
    def test_practical_range(self, factory):
        """At the range every model reaches at least 95% of the sill."""
        gamma = evaluate_variogram(factory(1.0, 20.0), np.array([20.0]))[0]
        assert 0.95 <= gamma <= 1.0

    def test_monotonic(self, gaussian_variogram):
        """Variograms increase with distance."""
        gamma = evaluate_variogram(gaussian_variogram, np.linspace(0, 30, 50))
        assert np.all(np.diff(gamma) >= 0)

    def test_isotropic_vector_matches_scalar(self, gaussian_variogram):
        """Isotropic models give the same value in every direction."""
        lags = np.array([[3.0, 4.0], [5.0, 0.0], [0.0, -5.0]])
        gamma = evaluate_variogram_vector(gaussian_variogram, lags)
        assert np.allclose(gamma, evaluate_variogram(gaussian_variogram, 5.0))

    def test_variogram_between(self, gaussian_variogram):
        """Value between two points depends on their lag."""
        assert variogram_between(gaussian_variogram, (1.0, 1.0), (4.0, 5.0)) == pytest.approx(
            float(evaluate_variogram(gaussian_variogram, 5.0))
        )

    def test_anisotropic_direction(self):
        """The major axis at azimuth 90 lies along x."""
        vario = VariogramModel.gaussian(1.0, (30.0, 10.0), angles=(90.0, 0.0, 0.0))
        along_x = evaluate_variogram_vector(vario, np.array([[10.0, 0.0]]))[0]
        along_y = evaluate_variogram_vector(vario, np.array([[0.0, 10.0]]))[0]
        assert along_x < along_y
        assert along_y == pytest.approx(float(evaluate_variogram(VariogramModel.gaussian(1.0, 10.0), 10.0)))


class TestAnisotropy:
    """Tests for ellipsoid distances and anisotropic models."""

    def test_equal_semiaxes_euclidean(self):
        """Equal unit semiaxes give the Euclidean distance, whatever the rotation."""
        rng = np.random.default_rng(0)
        d = ellipsoid_distance([1.0, 1.0, 1.0], [0.3, 0.2, 0.1])
        for _ in range(5):
            a, b = rng.random(3), rng.random(3)
            assert d(a, b) == pytest.approx(np.linalg.norm(a - b))

    def test_semiaxes_scale_distance(self):
        """Distances along the major axis are divided by its semiaxis."""
        d = ellipsoid_distance([2.0, 1.0], [0.0])
        assert d((4.0, 0.0), (0.0, 0.0)) == pytest.approx(2.0)
        assert d((0.0, 4.0), (0.0, 0.0)) == pytest.approx(4.0)

    def test_rotated_ellipse(self):
        """A quarter turn swaps the axes."""
        d = ellipsoid_distance([2.0, 1.0], [np.pi / 2])
        assert d((0.0, 4.0), (0.0, 0.0)) == pytest.approx(2.0)
        assert d((4.0, 0.0), (0.0, 0.0)) == pytest.approx(4.0)

    def test_gslib_convention(self):
        """GSLIB azimuth 0 puts the major axis along y."""
        d = ellipsoid_distance([2.0, 1.0, 1.0], [0.0, 0.0, 0.0], convention="gslib")
        assert d((0.0, 4.0, 0.0), (0.0, 0.0, 0.0)) == pytest.approx(2.0)

    def test_invalid_convention(self):
        """Unknown conventions are rejected."""
        with pytest.raises(ValueError):
            ellipsoid_distance([1.0, 1.0], [0.0], convention="leapfrog")

    def test_anisotropic_variogram_ranges(self):
        """Ranges are the base range times the semiaxes."""
        vario = anisotropic_variogram("gaussian", 5.0, [3.0, 1.0], [0.0])
        assert vario.structures[0]["ranges"] == (15.0, 5.0, 5.0)
        assert vario.structures[0]["angles"][0] == pytest.approx(90.0)

    def test_anisotropic_variogram_matches_distance(self):
        """The model is the isotropic model of the ellipsoid distance."""
        vario = anisotropic_variogram("spherical", 10.0, [2.0, 1.0], [np.pi / 6])
        iso = VariogramModel.spherical(1.0, 10.0)
        d = ellipsoid_distance([2.0, 1.0], [np.pi / 6])
        a, b = (3.0, 7.0), (-2.0, 1.0)
        assert variogram_between(vario, a, b) == pytest.approx(float(iso(d(a, b))))


class TestGSToolsConversion:
    """Tests for conversion to and from GSTools models."""

    @pytest.mark.parametrize("factory, cls", [
        (VariogramModel.spherical, gs.Spherical),
        (VariogramModel.exponential, gs.Exponential),
        (VariogramModel.gaussian, gs.Gaussian),
    ])
    def test_model_class(self, factory, cls):
        """Structure types map to GSTools classes."""
        cov = to_gstools(factory(0.8, 20.0, nugget=0.2), dim=2)
        assert type(cov) is cls
        assert cov.var == pytest.approx(0.8)
        assert cov.nugget == pytest.approx(0.2)
        assert cov.len_scale == pytest.approx(20.0)

    @pytest.mark.parametrize("factory", [
        VariogramModel.spherical, VariogramModel.exponential, VariogramModel.gaussian,
    ])
    def test_same_variogram(self, factory):
        """GSTools evaluates the same variogram."""
        model = factory(0.8, 20.0, nugget=0.2)
        cov = to_gstools(model, dim=2)
        h = np.array([1.0, 5.0, 10.0, 20.0, 40.0])
        assert np.allclose(cov.variogram(h), evaluate_variogram(model, h), atol=1e-10)

    def test_anisotropy_ratio(self):
        """Minor ranges become GSTools anisotropy ratios."""
        cov = to_gstools(VariogramModel.gaussian(1.0, (30.0, 10.0)), dim=2)
        assert np.atleast_1d(cov.anis)[0] == pytest.approx(1 / 3)

    def test_angle_2d(self):
        """Azimuth 0 (north) is a quarter turn counter-clockwise from x."""
        cov = to_gstools(VariogramModel.gaussian(1.0, (30.0, 10.0)), dim=2)
        assert np.atleast_1d(cov.angles)[0] == pytest.approx(np.pi / 2)

    @pytest.mark.parametrize("angles", [
        (0.0, 0.0, 0.0), (45.0, 0.0, 0.0), (0.0, 30.0, 0.0), (0.0, 0.0, 30.0),
        (45.0, 10.0, -5.0), (120.0, -40.0, 25.0),
    ])
    def test_same_ellipsoid_3d(self, angles):
        """GSTools evaluates the same 3-D anisotropic variogram."""
        model = VariogramModel.spherical(1.0, (50.0, 40.0, 10.0), angles=angles)
        cov = to_gstools(model, dim=3)
        lags = np.random.default_rng(3).uniform(-60.0, 60.0, size=(200, 3))
        np.testing.assert_allclose(
            cov.vario_spatial(lags.T), evaluate_variogram_vector(model, lags), atol=1e-8
        )

    @pytest.mark.parametrize("angles", [(45.0, 10.0, -5.0), (120.0, -40.0, 25.0), (300.0, 60.0, 80.0)])
    def test_roundtrip_3d(self, angles):
        """3-D ranges and angles survive the trip through GSTools."""
        model = VariogramModel.gaussian(0.9, (60.0, 30.0, 6.0), nugget=0.1, angles=angles)
        back = from_gstools(to_gstools(model, dim=3))
        assert back.structures[0]["ranges"] == pytest.approx((60.0, 30.0, 6.0))
        assert back.structures[0]["angles"] == pytest.approx(angles)

    def test_roundtrip(self):
        """Models survive the trip through GSTools."""
        model = VariogramModel.exponential(0.7, (30.0, 12.0), nugget=0.1, angles=(60.0, 0.0, 0.0))
        back = from_gstools(to_gstools(model, dim=2))
        assert back.kind == "exponential"
        assert back.nugget == pytest.approx(0.1)
        assert back.structures[0]["ranges"][:2] == pytest.approx((30.0, 12.0))
        assert back.structures[0]["angles"][0] == pytest.approx(60.0)

    def test_nested_rejected(self):
        """Nested models have no single GSTools counterpart."""
        model = VariogramModel.spherical(0.5, 10.0).add_structure(VariogramType.GAUSSIAN, 0.5, 20.0)
        with pytest.raises(ValueError):
            to_gstools(model)

    def test_unsupported_type(self):
        """Power models are not converted."""
        with pytest.raises(ValueError):
            to_gstools(VariogramModel.single(VariogramType.POWER, 1.0, 1.0))

    def test_unknown_gstools_model(self):
        """GSTools models without a GSLIB counterpart are rejected."""
        with pytest.raises(ValueError):
            from_gstools(gs.Matern(dim=2))

    def test_as_covmodel(self, gaussian_variogram):
        """Both model flavours are accepted."""
        cov = gs.Gaussian(dim=2, var=1.0, len_scale=10.0)
        assert as_covmodel(cov, dim=2) is cov
        assert isinstance(as_covmodel(gaussian_variogram, dim=3), gs.Gaussian)
        with pytest.raises(ValueError):
            as_covmodel(cov, dim=3)

    def test_as_variogram(self, gaussian_variogram):
        """VariogramModels pass through unchanged."""
        assert as_variogram(gaussian_variogram) is gaussian_variogram
        assert isinstance(as_variogram(gs.Spherical(dim=2)), VariogramModel)
