"""
Comparison with GSLIB.

Clay content sampled in 3-D is kriged on a single-layer grid with GSTools
and, when the executable is installed, with the GSLIB kt3d program. Both
use the same anisotropic spherical variogram, specified with GSLIB
azimuth, dip and rake, so the estimates should agree.
"""

from __future__ import annotations

import logging
import warnings

import gstools as gs
import matplotlib.pyplot as plt
import numpy as np

from geostats_tutorials.core import TutorialWarning, gslib_available
from geostats_tutorials.data import georef
from geostats_tutorials.estimation import Kriging
from geostats_tutorials.gslib import SearchParameters, compare_estimates, kt3d
from geostats_tutorials.plotting import plot_grid
from geostats_tutorials.problems import EstimationProblem, solve
from geostats_tutorials.tutorials.base import TutorialResult
from geostats_tutorials.utils import (
    CartesianGrid,
    VariogramModel,
    anisotropic_variogram,
    evaluate_variogram_vector,
    to_gstools,
)

logger = logging.getLogger(__name__)

NAME = "gslib_comparison"
TITLE = "Comparison with GSLIB"

ANGLES = (45.0, 10.0, -5.0)
RANGES = (50.0, 40.0, 10.0)


def clay_model() -> VariogramModel:
    """Anisotropic spherical variogram of the clay content."""
    return VariogramModel.spherical(0.8, RANGES, nugget=0.2, angles=ANGLES)


def synthetic_clay(npoints: int = 400, seed: int | None = None):
    """Clay content at random 3-D locations around the grid layer."""
    rng = np.random.default_rng(seed)
    coords = np.vstack([
        rng.uniform(0.0, 100.0, npoints),
        rng.uniform(0.0, 100.0, npoints),
        rng.uniform(2190.0, 2211.0, npoints),
    ])
    srf = gs.SRF(to_gstools(clay_model(), dim=3), mean=30.0)
    clay = srf(coords, seed=int(rng.integers(2**31 - 1)))
    return georef({"clay": np.asarray(clay)}, coords)


def run(
    seed: int = 2020,
    npoints: int = 400,
    shape: tuple[int, int] = (100, 100),
    max_samples: int = 16,
) -> TutorialResult:
    """
    Krige clay content with GSTools and kt3d.

    Args:
        seed: Seed of the synthetic samples
        npoints: Number of samples
        shape: Horizontal grid shape
        max_samples: Maximum number of samples in the kt3d search
    """
    data = synthetic_clay(npoints, seed=seed)
    grid = CartesianGrid((*shape, 1), origin=(0.5, 0.5, 2200.5))
    variogram = clay_model()

    # the same model through ellipsoid semiaxes in GSLIB angles
    homologous = anisotropic_variogram(
        "spherical", RANGES[0], [1.0, RANGES[1] / RANGES[0], RANGES[2] / RANGES[0]],
        ANGLES, sill=0.8, nugget=0.2, convention="gslib",
    )
    lags = np.random.default_rng(seed).normal(scale=30.0, size=(100, 3))
    homology_gap = float(np.max(np.abs(
        evaluate_variogram_vector(variogram, lags) - evaluate_variogram_vector(homologous, lags)
    )))

    problem = EstimationProblem(data, grid, "clay")
    solution = solve(problem, Kriging(clay={"variogram": variogram}))
    mean, variance = solution["clay"]

    values = {
        "data": data,
        "variogram": variogram,
        "homology_gap": homology_gap,
        "solution": solution,
        "mean_clay": float(np.mean(mean)),
    }

    fig, axes = plt.subplots(1, 2, figsize=(10, 4))
    plot_grid(mean[:, :, 0], ax=axes[0], title="GSTools kriging")

    if gslib_available("kt3d"):
        search = SearchParameters(250.0, 250.0, 250.0, *ANGLES, min_samples=1, max_samples=max_samples)
        reference = kt3d(data, "clay", grid, variogram, search)
        values["gslib_solution"] = reference
        values["mse"] = compare_estimates(mean, reference["clay"][0])
        logger.info("Mean squared difference with kt3d: %.4g", values["mse"])
        plot_grid(reference["clay"][0][:, :, 0], ax=axes[1], title="kt3d")
    else:
        warnings.warn(
            "kt3d executable not found; skipping the GSLIB run. Set GSLIB_BIN_DIR to enable it.",
            TutorialWarning,
            stacklevel=2,
        )
        plot_grid(variance[:, :, 0], ax=axes[1], title="GSTools kriging variance")
    fig.tight_layout()

    return TutorialResult(NAME, TITLE, values=values, figures={"estimates": fig})
