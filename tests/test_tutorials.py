"""
Smoke tests running every tutorial on small grids, plus the command line.
"""

import numpy as np
import pytest
from matplotlib.figure import Figure

from geostats_tutorials.__main__ import main
from geostats_tutorials.core import TutorialWarning
from geostats_tutorials.tutorials import TITLES, TUTORIALS, TutorialResult
from geostats_tutorials.tutorials import (
    anisotropic_models,
    cookie_cutter,
    declustered_statistics,
    directional_variograms,
    estimation_problems,
    gaussian_processes,
    gslib_comparison,
    image_quilting,
    parallel_simulation,
    stratigraphy,
    two_point_statistics,
    variogram_modeling,
    variography_game,
)
from geostats_tutorials.variogram import FIT_KINDS


@pytest.fixture
def no_gslib(tmp_path, monkeypatch):
    """Point GSLIB_BIN_DIR to an empty directory."""
    monkeypatch.setenv("GSLIB_BIN_DIR", str(tmp_path))


def check_result(result, name):
    assert isinstance(result, TutorialResult)
    assert result.name == name
    assert result.title == TITLES[name]
    assert result.figures
    assert all(isinstance(fig, Figure) for fig in result.figures.values())


class TestRegistry:
    """Tests for the tutorial registry."""

    def test_all_registered(self):
        assert len(TUTORIALS) == 13
        assert set(TUTORIALS) == set(TITLES)

    def test_save_figures(self, tmp_path):
        result = gaussian_processes.run(npoints=5, nsteps=20)
        paths = result.save_figures(tmp_path / "figures")
        assert [p.name for p in paths] == ["gaussian_processes_kriging.png"]
        assert paths[0].exists()

    def test_scalars(self):
        result = TutorialResult("x", "X", values={"a": 1, "b": 2.5, "c": True, "d": np.zeros(3)})
        assert result.scalars() == {"a": 1.0, "b": 2.5}


class TestEstimationTutorials:
    """Kriging based tutorials."""

    def test_estimation_problems(self):
        result = estimation_problems.run(shape=(20, 20))
        check_result(result, "estimation_problems")
        assert result.values["npoints"] == 40
        assert result.values["max_variance"] > 0
        mean, _ = result.values["solution"]["precipitation"]
        assert mean.shape == (20, 20)

    def test_anisotropic_models(self):
        result = anisotropic_models.run(shape=(20, 20), npoints=10, nratios=2, nangles=2)
        check_result(result, "anisotropic_models")
        values = result.values
        assert values["isotropic_gap"] == pytest.approx(0.0, abs=1e-12)
        assert values["euclidean_gap"] == pytest.approx(0.0, abs=1e-12)
        assert values["gamma_along_major"] < values["gamma_along_minor"]
        assert len(values["ratio_means"]) == 2
        assert values["ratio_means"][0].shape == (20, 20)

    def test_gaussian_processes(self):
        result = gaussian_processes.run()
        check_result(result, "gaussian_processes")
        values = result.values
        assert values["max_residual"] < 1e-3
        assert values["max_sk_std"] <= np.sqrt(0.05) + 1e-6
        assert values["sk_mean"].shape == (200,)

    def test_gslib_comparison_without_kt3d(self, no_gslib):
        with pytest.warns(TutorialWarning, match="kt3d"):
            result = gslib_comparison.run(npoints=50, shape=(10, 10))
        check_result(result, "gslib_comparison")
        assert result.values["homology_gap"] < 1e-9
        assert "mse" not in result.values
        mean, _ = result.values["solution"]["clay"]
        assert mean.shape == (10, 10, 1)


@pytest.mark.slow
class TestVariographyTutorials:
    """Variogram and declustering tutorials."""

    def test_variogram_modeling(self):
        result = variogram_modeling.run(nsamples=200, shape=(60, 60), nlags=10, maxlag=30.0)
        check_result(result, "variogram_modeling")
        values = result.values
        assert values["best_kind"] in FIT_KINDS
        assert values["best_error"] <= values["spherical_error"] + 1e-12
        assert values["spherical_range"] > 0

    def test_declustered_statistics(self):
        result = declustered_statistics.run(
            nsamples=40, shape=(60, 60), block_size=10.0, nsizes=5, max_block_size=30.0,
        )
        check_result(result, "declustered_statistics")
        values = result.values
        assert values["naive_mean"] > values["true_mean"]
        assert values["curve"].means.shape == (5,)
        assert values["declustered_quantiles"].shape == (3,)
        assert values["volume"] > 0

    def test_directional_variograms(self):
        result = directional_variograms.run(
            shape=(40, 40), nreals=1, range_=5.0, maxlag=15.0, nangles=4, sampling_size=800,
        )
        check_result(result, "directional_variograms")
        values = result.values
        assert values["horizontal_range"] > 0 and values["vertical_range"] > 0
        assert values["range_ratio"] > 1.0
        assert values["varioplane"].ranges.shape == (4,)

    def test_two_point_statistics(self):
        result = two_point_statistics.run(
            shape=(16, 16, 16), nsamples=2000, maxlag=6.0, nlags=6, nangles=4, sampling_size=500,
        )
        check_result(result, "two_point_statistics")
        values = result.values
        assert 0 < values["proportion"] < 1
        for axis in "xyz":
            assert values[f"radius_{axis}"] > 0

    def test_variography_game(self):
        result = variography_game.run(
            image_shape=(40, 40), nsamples=500, demo_shape=(20, 10), game_shape=(30, 20),
        )
        check_result(result, "variography_game")
        values = result.values
        assert values["answer_score"] == pytest.approx(100.0)
        assert 0 <= values["guess_score"] <= 100
        assert values["hscatter_correlations"][0] == pytest.approx(1.0)
        assert values["correlogram"][0] == pytest.approx(1.0)


@pytest.mark.slow
class TestSimulationTutorials:
    """Simulation tutorials."""

    def test_image_quilting(self):
        result = image_quilting.run(shape=(40, 40), nreals=1, tilesize=(10, 10), ti_shape=(60, 60))
        check_result(result, "image_quilting")
        assert result.values["hard_data_honoured"] == 1.0
        assert result.values["conditional"]["facies"].shape == (1, 40, 40)

    def test_cookie_cutter(self):
        result = cookie_cutter.run(shape=(30, 30), nreals=1, tilesize=(10, 10), ti_shape=(60, 60))
        check_result(result, "cookie_cutter")
        solution = result.values["solution"]
        assert set(np.unique(solution["facies"])) <= {0, 1}
        assert not np.isnan(solution["porosity"]).any()

    def test_parallel_simulation(self):
        result = parallel_simulation.run(
            shape=(20, 20), nreals=2, workers=2, tilesize=(8, 8), ti_shape=(40, 40),
        )
        check_result(result, "parallel_simulation")
        assert result.values["workers"] == 2
        assert result.values["reproducible"] is True

    def test_stratigraphy(self):
        result = stratigraphy.run(shape=(12, 12), nepochs=3, nz=6, nreals=1)
        check_result(result, "stratigraphy")
        values = result.values
        assert values["nlayers"] == 3
        assert values["model"].shape == (12, 12, 6)
        assert values["solution"]["strata"].shape == (1, 12, 12, 6)
        assert 0 < values["filled_fraction"] <= 1


class TestCommandLine:
    """Tests for the command line runner."""

    def test_list(self, capsys):
        assert main(["list"]) == 0
        out = capsys.readouterr().out
        for name in TUTORIALS:
            assert name in out

    def test_run(self, tmp_path, capsys):
        assert main(["run", "gaussian_processes", "--seed", "1", "--output", str(tmp_path)]) == 0
        out = capsys.readouterr().out
        assert "max_residual" in out
        assert (tmp_path / "gaussian_processes_kriging.png").exists()

    def test_unknown(self, capsys):
        assert main(["run", "nope"]) == 2
        assert "Unknown tutorial" in capsys.readouterr().err

    def test_workers_ignored(self, tmp_path, caplog):
        assert main(["run", "gaussian_processes", "--workers", "4", "--output", str(tmp_path)]) == 0
        assert "ignoring --workers" in caplog.text
