"""
Estimation problems.

Precipitation measured at a few dozen stations is kriged on a 100x100
grid. The problem (data, domain, variable) is defined once and handed to
a solver, which returns the kriging mean and variance.
"""

from __future__ import annotations

import logging

import matplotlib.pyplot as plt
import numpy as np

from geostats_tutorials.core import data_path
from geostats_tutorials.data import GridData, read_geotable
from geostats_tutorials.estimation import Kriging
from geostats_tutorials.plotting import plot_contours, plot_geotable, plot_solution
from geostats_tutorials.problems import EstimationProblem, solve
from geostats_tutorials.tutorials.base import TutorialResult
from geostats_tutorials.utils import CartesianGrid, VariogramModel

logger = logging.getLogger(__name__)

NAME = "estimation_problems"
TITLE = "Estimation problems"


def run(seed: int = 2020, shape: tuple[int, int] = (100, 100), range_: float = 35.0) -> TutorialResult:
    """
    Krige the precipitation data.

    Args:
        seed: Unused, kriging is deterministic
        shape: Grid shape (cells of unit size starting at the origin)
        range_: Range of the Gaussian variogram
    """
    data = read_geotable(data_path("precipitation.csv"))
    domain = CartesianGrid(shape)
    problem = EstimationProblem(data, domain, "precipitation")
    logger.info("%r", problem)

    solver = Kriging(precipitation={"variogram": VariogramModel.gaussian(1.0, range_)})
    solution = solve(problem, solver)
    mean, variance = solution["precipitation"]

    fig_data, ax = plt.subplots()
    plot_geotable(data, "precipitation", ax=ax)
    ax.set_title("precipitation stations")

    fig_contours, ax = plt.subplots()
    plot_contours(GridData(domain, {"precipitation": mean}), "precipitation", ax=ax)
    plot_geotable(data, "precipitation", ax=ax, colorbar=False, s=6)
    ax.set_title("kriged precipitation")

    return TutorialResult(
        NAME, TITLE,
        values={
            "problem": problem,
            "solution": solution,
            "npoints": len(data),
            "mean_precipitation": float(np.mean(mean)),
            "max_variance": float(np.max(variance)),
        },
        figures={
            "data": fig_data,
            "solution": plot_solution(solution, "precipitation"),
            "contours": fig_contours,
        },
    )
