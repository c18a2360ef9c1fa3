"""
Cookie-cutter simulation.

Facies are simulated first with image quilting. Porosity is then
simulated once per facies, isotropic in the background and strongly
elongated in the channels, and each cell keeps the porosity of its
facies.
"""

from __future__ import annotations

import logging

import matplotlib.pyplot as plt
import numpy as np

from geostats_tutorials.images import geostats_image
from geostats_tutorials.plotting import plot_grid
from geostats_tutorials.problems import SimulationProblem, solve
from geostats_tutorials.simulation import CookieCutter, GaussianSimulation, ImageQuilting
from geostats_tutorials.tutorials.base import TutorialResult
from geostats_tutorials.utils import CartesianGrid, VariogramModel, anisotropic_variogram

logger = logging.getLogger(__name__)

NAME = "cookie_cutter"
TITLE = "Cookie-cutter"


def build_solver(
    ti: np.ndarray,
    tilesize: tuple[int, int] = (30, 30),
    range_: float = 20.0,
) -> CookieCutter:
    """Image quilting for facies, Gaussian simulation of porosity per facies."""
    facies = ImageQuilting(facies={"TI": ti, "tilesize": tilesize})
    background = GaussianSimulation(porosity={"variogram": VariogramModel.spherical(0.2, range_)})
    channel = GaussianSimulation(
        porosity={"variogram": anisotropic_variogram("spherical", range_, [10.0, 1.0], [0.0])}
    )
    return CookieCutter(facies, {0: background, 1: channel})


def run(
    seed: int = 2020,
    shape: tuple[int, int] = (100, 100),
    nreals: int = 3,
    tilesize: tuple[int, int] = (30, 30),
    ti_shape: tuple[int, int] | None = None,
) -> TutorialResult:
    """
    Facies and porosity with a cookie-cutter solver.

    Args:
        seed: Master seed of the simulations
        shape: Simulation grid shape
        nreals: Number of realizations
        tilesize: Tile size of image quilting
        ti_shape: Training image shape (default full size)
    """
    ti = geostats_image("Strebelle", shape=ti_shape)["facies"]
    problem = SimulationProblem(CartesianGrid(shape), {"facies": int, "porosity": float}, nreals)
    solver = build_solver(ti, tilesize)
    solution = solve(problem, solver, seed=seed)

    facies, porosity = solution["facies"], solution["porosity"]
    channel_var = float(np.var(porosity[facies == 1])) if np.any(facies == 1) else float("nan")
    background_var = float(np.var(porosity[facies == 0])) if np.any(facies == 0) else float("nan")
    logger.info("Porosity variance: background %.3f, channels %.3f", background_var, channel_var)

    fig, axes = plt.subplots(2, nreals, figsize=(4 * nreals, 8), squeeze=False)
    for i in range(nreals):
        plot_grid(facies[i], ax=axes[0, i], title=f"facies {i + 1}", colorbar=False)
        plot_grid(porosity[i], ax=axes[1, i], title=f"porosity {i + 1}", colorbar=False)
    fig.tight_layout()

    return TutorialResult(
        NAME, TITLE,
        values={
            "problem": problem,
            "solver": solver,
            "solution": solution,
            "channel_proportion": float(np.mean(facies)),
            "background_porosity_var": background_var,
            "channel_porosity_var": channel_var,
        },
        figures={"realizations": fig},
    )
