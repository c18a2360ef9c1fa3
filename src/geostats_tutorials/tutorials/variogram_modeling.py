"""
Variogram modeling.

Samples of the Walker Lake image give an empirical variogram. A model is
first tuned by eye, then fitted by weighted least squares, for a given
model type and for the best of all types.
"""

from __future__ import annotations

import logging

import matplotlib.pyplot as plt
import numpy as np

from geostats_tutorials.data import sample
from geostats_tutorials.images import geostats_image
from geostats_tutorials.plotting import plot_geotable, plot_grid, plot_variogram
from geostats_tutorials.tutorials.base import TutorialResult
from geostats_tutorials.utils import VariogramModel
from geostats_tutorials.variogram import empirical_variogram, fit_variogram, variogram_fit_error

logger = logging.getLogger(__name__)

NAME = "variogram_modeling"
TITLE = "Variogram modeling"


def run(
    seed: int = 2020,
    nsamples: int = 1000,
    shape: tuple[int, int] | None = None,
    nlags: int = 30,
    maxlag: float = 200.0,
) -> TutorialResult:
    """
    Fit variograms to samples of Walker Lake.

    Args:
        seed: Seed of the sampling
        nsamples: Number of samples drawn from the image
        shape: Image shape (default full size)
        nlags: Number of lag bins
        maxlag: Maximum lag
    """
    image = geostats_image("WalkerLake", shape=shape)
    samples = sample(image.to_geotable(), nsamples, seed=seed)

    empirical = empirical_variogram(samples, "Z", nlags=nlags, maxlag=maxlag)

    # by eye: sill at the sample variance, range where the points flatten
    manual = VariogramModel.spherical(float(np.var(samples["Z"])), 50.0)
    spherical = fit_variogram(empirical, "spherical")
    best = fit_variogram(empirical)
    logger.info("Best fit: %s variogram with range %.1f", best.kind, best.range)

    fig_data, (ax1, ax2) = plt.subplots(1, 2, figsize=(10, 4))
    plot_grid(image, "Z", ax=ax1, title="Walker Lake")
    plot_geotable(samples, "Z", ax=ax2, s=4)
    ax2.set_title(f"{nsamples} samples")
    fig_data.tight_layout()

    figures = {"data": fig_data}
    for key, model in (("manual", manual), ("spherical", spherical), ("best", best)):
        fig, ax = plt.subplots()
        plot_variogram(empirical, model, max_distance=maxlag, ax=ax, title=f"{key} fit")
        figures[key] = fig

    return TutorialResult(
        NAME, TITLE,
        values={
            "empirical": empirical,
            "manual": manual,
            "spherical": spherical,
            "best": best,
            "best_kind": best.kind,
            "manual_error": variogram_fit_error(manual, empirical),
            "spherical_error": variogram_fit_error(spherical, empirical),
            "best_error": variogram_fit_error(best, empirical),
            "spherical_range": spherical.range,
            "spherical_sill": spherical.total_sill,
        },
        figures=figures,
    )
