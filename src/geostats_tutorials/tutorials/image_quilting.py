"""
Image quilting.

Patches of a training image are stitched along minimum-error boundary
cuts to produce new images with the same patterns. Hard data are
honoured by preferring patches that agree with them.
"""

from __future__ import annotations

import logging

import matplotlib.pyplot as plt
import numpy as np

from geostats_tutorials.data import georef
from geostats_tutorials.images import geostats_image
from geostats_tutorials.plotting import plot_geotable, plot_grid, plot_realizations
from geostats_tutorials.problems import SimulationProblem, solve
from geostats_tutorials.simulation import ImageQuilting
from geostats_tutorials.tutorials.base import TutorialResult
from geostats_tutorials.utils import CartesianGrid

logger = logging.getLogger(__name__)

NAME = "image_quilting"
TITLE = "Image quilting"

# conditioning data on a 250x250 grid
_HARD_COORDS = np.array([[50.0, 190.0, 150.0, 150.0], [50.0, 50.0, 70.0, 190.0]])
_HARD_FACIES = np.array([1, 0, 1, 1])


def run(
    seed: int = 2020,
    shape: tuple[int, int] = (250, 250),
    nreals: int = 3,
    tilesize: tuple[int, int] = (30, 30),
    ti_shape: tuple[int, int] | None = None,
) -> TutorialResult:
    """
    Conditional and unconditional image quilting of Strebelle channels.

    Args:
        seed: Master seed of the simulations
        shape: Simulation grid shape
        nreals: Number of realizations
        tilesize: Tile size
        ti_shape: Training image shape (default full size)
    """
    ti = geostats_image("Strebelle", shape=ti_shape)
    domain = CartesianGrid(shape)

    scale = (np.array(shape, dtype=np.float64) - 1) / 249.0
    coords = np.rint(_HARD_COORDS * scale[:, np.newaxis])
    hard = georef({"facies": _HARD_FACIES}, coords)

    solver = ImageQuilting(facies={"TI": ti["facies"], "tilesize": tilesize})
    conditional = solve(SimulationProblem(domain, {"facies": int}, nreals, data=hard), solver, seed=seed)
    unconditional = solve(SimulationProblem(domain, {"facies": int}, nreals), solver, seed=seed)

    indices = [domain.point_to_index(p) for p in hard.coords]
    honoured = np.mean([
        real[index] == value
        for real in conditional["facies"]
        for index, value in zip(indices, hard["facies"])
    ])
    logger.info("Hard data honoured in %.0f%% of the cells", 100 * honoured)

    fig_ti, (ax1, ax2) = plt.subplots(1, 2, figsize=(10, 4))
    plot_grid(ti, "facies", ax=ax1, title="training image", colorbar=False)
    plot_grid(np.zeros(shape), ax=ax2, cmap="gray_r", title="hard data", colorbar=False)
    plot_geotable(hard, "facies", ax=ax2, s=40)
    fig_ti.tight_layout()

    return TutorialResult(
        NAME, TITLE,
        values={
            "hard_data": hard,
            "conditional": conditional,
            "unconditional": unconditional,
            "ti_proportion": float(np.mean(ti["facies"])),
            "conditional_proportion": float(np.mean(conditional["facies"])),
            "unconditional_proportion": float(np.mean(unconditional["facies"])),
            "hard_data_honoured": float(honoured),
        },
        figures={
            "training_image": fig_ti,
            "conditional": plot_realizations(conditional, "facies", n=nreals),
            "unconditional": plot_realizations(unconditional, "facies", n=nreals),
        },
    )
