"""
Stratigraphy.

Two Gaussian landscape processes alternate following a Markov chain with
exponential durations. The land surfaces they leave behind are stacked
into strata and voxelized into a layer model, and the same environment
drives a stratigraphic simulation solver on a 3-D grid.
"""

from __future__ import annotations

import logging

import matplotlib.pyplot as plt
import numpy as np

from geostats_tutorials.plotting import plot_grid, plot_strata
from geostats_tutorials.problems import SimulationProblem, solve
from geostats_tutorials.stratigraphy import (
    Environment,
    ExponentialDuration,
    GaussianLandscapeProcess,
    LandState,
    Strata,
    StratSim,
    simulate_environment,
    voxelize,
)
from geostats_tutorials.tutorials.base import TutorialResult
from geostats_tutorials.utils import CartesianGrid, VariogramModel

logger = logging.getLogger(__name__)

NAME = "stratigraphy"
TITLE = "Stratigraphy"


def build_environment(range_: float = 100.0, sill: float = 3e-2) -> Environment:
    """Two smooth landscape processes with equal transition probabilities."""
    processes = [
        GaussianLandscapeProcess(VariogramModel.gaussian(sill, range_)),
        GaussianLandscapeProcess(VariogramModel.gaussian(sill, range_)),
    ]
    return Environment(processes, np.full((2, 2), 0.5), ExponentialDuration(1.0))


def run(
    seed: int = 2021,
    shape: tuple[int, int] = (100, 100),
    nepochs: int = 10,
    nz: int = 50,
    nreals: int = 3,
    stacking: str = "erosional",
) -> TutorialResult:
    """
    Simulate strata and a 3-D layer model.

    Args:
        seed: Seed of the environment simulation
        shape: Horizontal grid shape
        nepochs: Number of epochs
        nz: Number of voxels along the vertical
        nreals: Number of StratSim realizations
        stacking: 'erosional' or 'depositional'
    """
    env = build_environment()
    record = simulate_environment(env, LandState.flat(shape), nepochs, seed=seed)
    strata = Strata(record, stacking)
    model = voxelize(strata, nz)
    logger.info("%d layers between %.3f and %.3f", strata.nlayers, *strata.zrange)

    problem = SimulationProblem(CartesianGrid(*shape, nz), {"strata": float}, nreals)
    solver = StratSim(strata={"environment": env, "nepochs": nepochs, "stacking": stacking})
    solution = solve(problem, solver, seed=seed)

    fig_strata, ax = plt.subplots(figsize=(8, 3))
    plot_strata(strata, section=shape[0] // 2, axis=0, ax=ax)

    fig_model, axes = plt.subplots(1, 2, figsize=(10, 4))
    plot_grid(model[shape[0] // 2], ax=axes[0], title="layers along y", colorbar=False)
    plot_grid(model, ax=axes[1], zslice=nz // 2, title="horizontal slice", colorbar=False)
    fig_model.tight_layout()

    fig_reals, axes = plt.subplots(1, nreals, figsize=(4 * nreals, 3), squeeze=False)
    for i, ax in enumerate(axes[0]):
        plot_grid(solution["strata"][i][shape[0] // 2], ax=ax, title=f"realization {i + 1}", colorbar=False)
    fig_reals.tight_layout()

    thickness = strata.thickness()
    return TutorialResult(
        NAME, TITLE,
        values={
            "environment": env,
            "record": record,
            "strata": strata,
            "model": model,
            "solution": solution,
            "nlayers": strata.nlayers,
            "mean_thickness": float(thickness.mean()),
            "filled_fraction": float(np.mean(np.isfinite(model))),
        },
        figures={
            "strata": fig_strata,
            "model": fig_model,
            "realizations": fig_reals,
        },
    )
