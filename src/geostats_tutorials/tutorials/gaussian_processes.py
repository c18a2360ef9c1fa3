"""
Gaussian processes.

Simple kriging with a known mean is the posterior mean of a Gaussian
process; ordinary kriging estimates the mean from the data. Both
interpolate the data exactly and their variances grow away from it.
"""

from __future__ import annotations

import logging

import matplotlib.pyplot as plt
import numpy as np

from geostats_tutorials.estimation import predict_1d
from geostats_tutorials.tutorials.base import TutorialResult
from geostats_tutorials.utils import VariogramModel

logger = logging.getLogger(__name__)

NAME = "gaussian_processes"
TITLE = "Gaussian processes"


def _ribbon(ax, xs, mean, variance, x, z, title):
    std = np.sqrt(np.maximum(variance, 0.0))
    ax.fill_between(xs, mean - 2 * std, mean + 2 * std, color="tab:blue", alpha=0.2, label="±2σ")
    ax.plot(xs, mean, color="tab:blue", label="mean")
    ax.scatter(x, z, color="black", zorder=3, label="data")
    ax.set_title(title)
    ax.set_xlabel("x")
    ax.legend()


def run(
    seed: int = 2000,
    npoints: int = 10,
    nsteps: int = 200,
    sill: float = 0.05,
    range_: float = 0.15,
    mean: float = 0.5,
) -> TutorialResult:
    """
    Simple and ordinary kriging along a line.

    Args:
        seed: Seed of the data values
        npoints: Number of data points in [0.1, 0.9]
        nsteps: Number of prediction points in [0, 1]
        sill: Sill of the Gaussian variogram
        range_: Range of the Gaussian variogram
        mean: Known mean of simple kriging
    """
    rng = np.random.default_rng(seed)
    x = np.linspace(0.1, 0.9, npoints)
    z = rng.random(npoints)
    xs = np.linspace(0.0, 1.0, nsteps)
    variogram = VariogramModel.gaussian(sill, range_)

    sk_mean, sk_var = predict_1d(x, z, xs, variogram, mean=mean)
    ok_mean, ok_var = predict_1d(x, z, xs, variogram)
    at_data, _ = predict_1d(x, z, x, variogram, mean=mean)
    logger.debug("Simple kriging residual at the data: %g", np.abs(at_data - z).max())

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(11, 4), sharey=True)
    _ribbon(ax1, xs, sk_mean, sk_var, x, z, f"simple kriging (mean {mean:g})")
    _ribbon(ax2, xs, ok_mean, ok_var, x, z, "ordinary kriging")
    fig.tight_layout()

    return TutorialResult(
        NAME, TITLE,
        values={
            "x": x,
            "z": z,
            "xs": xs,
            "sk_mean": sk_mean,
            "sk_variance": sk_var,
            "ok_mean": ok_mean,
            "ok_variance": ok_var,
            "max_residual": float(np.abs(at_data - z).max()),
            "max_sk_std": float(np.sqrt(np.max(sk_var))),
            "max_ok_std": float(np.sqrt(np.max(ok_var))),
        },
        figures={"kriging": fig},
    )
