"""
Parallel simulation.

Realizations are independent, so they can be generated by a pool of
worker processes. Every realization gets its own seed derived from the
master seed, which makes the result identical for any number of workers.
"""

from __future__ import annotations

import logging
import os
import time

import numpy as np

from geostats_tutorials.images import geostats_image
from geostats_tutorials.plotting import plot_realizations
from geostats_tutorials.problems import SimulationProblem, solve
from geostats_tutorials.tutorials.base import TutorialResult
from geostats_tutorials.tutorials.cookie_cutter import build_solver
from geostats_tutorials.utils import CartesianGrid

logger = logging.getLogger(__name__)

NAME = "parallel_simulation"
TITLE = "Parallel simulation"


def run(
    seed: int = 2020,
    shape: tuple[int, int] = (100, 100),
    nreals: int = 30,
    workers: int | None = None,
    tilesize: tuple[int, int] = (30, 30),
    ti_shape: tuple[int, int] | None = None,
    compare_serial: bool = True,
) -> TutorialResult:
    """
    Cookie-cutter realizations on several worker processes.

    Args:
        seed: Master seed of the simulations
        shape: Simulation grid shape
        nreals: Number of realizations
        workers: Number of worker processes (default all CPUs)
        tilesize: Tile size of image quilting
        ti_shape: Training image shape (default full size)
        compare_serial: Also simulate serially and compare
    """
    workers = workers or os.cpu_count() or 1
    ti = geostats_image("Ellipsoids", shape=ti_shape)["Z"]
    problem = SimulationProblem(CartesianGrid(shape), {"facies": int, "porosity": float}, nreals)
    solver = build_solver(ti, tilesize)

    start = time.perf_counter()
    solution = solve(problem, solver, seed=seed, workers=workers)
    elapsed = time.perf_counter() - start
    logger.info("%d realizations on %d worker(s) in %.1f s", nreals, workers, elapsed)

    values = {
        "solution": solution,
        "workers": workers,
        "parallel_seconds": elapsed,
    }

    if compare_serial:
        start = time.perf_counter()
        serial = solve(problem, solver, seed=seed, workers=1)
        values["serial_seconds"] = time.perf_counter() - start
        values["reproducible"] = all(
            np.array_equal(serial[var], solution[var], equal_nan=True)
            for var in problem.variables
        )

    return TutorialResult(
        NAME, TITLE,
        values=values,
        figures={
            "facies": plot_realizations(solution, "facies", n=3),
            "porosity": plot_realizations(solution, "porosity", n=3),
        },
    )
