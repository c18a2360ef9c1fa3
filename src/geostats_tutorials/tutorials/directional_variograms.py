"""
Directional variograms.

Realizations of an anisotropic Gaussian field are analysed along the
horizontal and vertical directions. Fitted ranges recover the ratio of
the ellipse semiaxes, and a varioplane shows the ranges over all angles.
"""

from __future__ import annotations

import logging

import matplotlib.pyplot as plt

from geostats_tutorials.plotting import plot_realizations, plot_variogram, plot_varioplane
from geostats_tutorials.problems import SimulationProblem, solve
from geostats_tutorials.simulation import GaussianSimulation
from geostats_tutorials.tutorials.base import TutorialResult
from geostats_tutorials.utils import CartesianGrid, anisotropic_variogram
from geostats_tutorials.variogram import directional_variogram, fit_variogram, varioplane

logger = logging.getLogger(__name__)

NAME = "directional_variograms"
TITLE = "Directional variograms"


def run(
    seed: int = 2021,
    shape: tuple[int, int] = (100, 100),
    nreals: int = 3,
    range_: float = 10.0,
    maxlag: float = 50.0,
    nangles: int = 50,
    sampling_size: int | None = 2000,
) -> TutorialResult:
    """
    Recover anisotropy from simulated fields.

    Args:
        seed: Master seed of the simulation
        shape: Grid shape
        nreals: Number of realizations
        range_: Range along the minor axis (the major one is three times longer)
        maxlag: Maximum lag of the variograms
        nangles: Number of angles in the varioplane
        sampling_size: Subsample the grid for the variograms
    """
    model = anisotropic_variogram("gaussian", range_, [3.0, 1.0], [0.0])
    problem = SimulationProblem(CartesianGrid(shape), {"Z": float}, nreals)
    solution = solve(problem, GaussianSimulation(Z={"variogram": model}), seed=seed)
    field = solution[0]

    horizontal = directional_variogram(
        field, "Z", (1.0, 0.0), maxlag=maxlag, sampling_size=sampling_size, seed=seed
    )
    vertical = directional_variogram(
        field, "Z", (0.0, 1.0), maxlag=maxlag, sampling_size=sampling_size, seed=seed
    )
    fit_h = fit_variogram(horizontal, "gaussian")
    fit_v = fit_variogram(vertical, "gaussian")
    ratio = fit_h.range / fit_v.range
    logger.info("Fitted ranges %.1f and %.1f, ratio %.2f", fit_h.range, fit_v.range, ratio)

    plane = varioplane(
        field, "Z", nangles=nangles, maxlag=maxlag, sampling_size=sampling_size, seed=seed
    )

    fig_vario, (ax1, ax2) = plt.subplots(1, 2, figsize=(10, 4))
    plot_variogram(horizontal, fit_h, max_distance=maxlag, ax=ax1, title="horizontal")
    plot_variogram(vertical, fit_v, max_distance=maxlag, ax=ax2, title="vertical")
    fig_vario.tight_layout()

    fig_plane, ax = plt.subplots(subplot_kw={"projection": "polar"})
    plot_varioplane(plane, ax=ax)

    return TutorialResult(
        NAME, TITLE,
        values={
            "model": model,
            "solution": solution,
            "horizontal": horizontal,
            "vertical": vertical,
            "horizontal_range": fit_h.range,
            "vertical_range": fit_v.range,
            "range_ratio": ratio,
            "varioplane": plane,
            "varioplane_ratio": plane.anisotropy_ratio,
            "varioplane_major_angle": plane.major_angle,
        },
        figures={
            "realizations": plot_realizations(solution, "Z", n=nreals),
            "variograms": fig_vario,
            "varioplane": fig_plane,
        },
    )
