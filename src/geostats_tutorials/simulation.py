"""
Simulation solvers.

- GaussianSimulation: Gaussian random fields with GSTools (SRF / CondSRF)
- ImageQuilting: multiple-point simulation by patch quilting
- CookieCutter: facies first, then properties within each facies

All solvers derive per-realization seeds from a master seed, see
:class:`geostats_tutorials.problems.SimulationSolver`.
"""

from __future__ import annotations

import logging
import warnings
from typing import TYPE_CHECKING, Any, Mapping

import gstools as gs
import numpy as np
from scipy.signal import fftconvolve

from geostats_tutorials.core import TutorialWarning
from geostats_tutorials.estimation import build_krige
from geostats_tutorials.problems import SimulationProblem, SimulationSolver
from geostats_tutorials.utils import as_covmodel

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)


# ============================================================================
# Gaussian simulation
# ============================================================================

class GaussianSimulation(SimulationSolver):
    """
    Gaussian random field simulation.

    Parameters per variable:
        variogram: VariogramModel or GSTools covariance model (required)
        mean: Field mean (default 0.0)

    Unconditional problems are sampled with ``gstools.SRF``. When the
    problem carries data, realizations are conditioned with
    ``gstools.CondSRF`` on a simple kriging of the data.
    """

    def simulate(self, problem: SimulationProblem, var: str, seed: int) -> NDArray[np.float64]:
        params = self.parameters(var)
        if "variogram" not in params:
            raise ValueError(f"A variogram is required to simulate '{var}'")
        mean = float(params.get("mean", 0.0))
        axes = problem.domain.axes()

        if problem.conditional:
            data = problem.data
            krig = build_krige(params["variogram"], data.pos, data[var], mean=mean)
            field = gs.CondSRF(krig)(axes, seed=seed, mesh_type="structured")
        else:
            model = as_covmodel(params["variogram"], dim=problem.domain.dim)
            field = gs.SRF(model, mean=mean)(axes, seed=seed, mesh_type="structured")

        return np.asarray(field).reshape(problem.domain.shape)


# ============================================================================
# Image quilting
# ============================================================================

def _correlate(image: NDArray[np.float64], kernel: NDArray[np.float64]) -> NDArray[np.float64]:
    """Sliding sum of image * kernel over every valid kernel position."""
    return fftconvolve(image, kernel[::-1, ::-1], mode="valid")


def _masked_distance(
    ti: NDArray[np.float64],
    ti_squared: NDArray[np.float64],
    values: NDArray[np.float64],
    mask: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Masked squared distance between a patch and every TI window."""
    if not mask.any():
        return np.zeros((ti.shape[0] - mask.shape[0] + 1, ti.shape[1] - mask.shape[1] + 1))
    masked = mask * values
    dist = _correlate(ti_squared, mask) - 2.0 * _correlate(ti, masked) + np.sum(masked * values)
    # FFT round-off can push exact matches slightly below zero
    return np.maximum(dist, 0.0)


def _min_cut_path(err: NDArray[np.float64]) -> NDArray[np.int64]:
    """Minimum-error path from the first to the last row, one column per row."""
    nrows, ncols = err.shape
    cost = err.copy()
    for i in range(1, nrows):
        prev = cost[i - 1]
        left = np.concatenate(([np.inf], prev[:-1]))
        right = np.concatenate((prev[1:], [np.inf]))
        cost[i] += np.minimum(np.minimum(left, prev), right)

    path = np.empty(nrows, dtype=np.int64)
    path[-1] = int(np.argmin(cost[-1]))
    for i in range(nrows - 2, -1, -1):
        j = path[i + 1]
        lo, hi = max(j - 1, 0), min(j + 2, ncols)
        path[i] = lo + int(np.argmin(cost[i, lo:hi]))
    return path


def _boundary_cut(
    patch: NDArray[np.float64],
    region: NDArray[np.float64],
    overlap: tuple[int, int],
    cut_rows: bool,
    cut_cols: bool,
) -> NDArray[np.bool_]:
    """Cells of the new patch kept after the minimum-error boundary cuts."""
    keep = np.ones(patch.shape, dtype=bool)
    err = (patch - region) ** 2
    ox, oy = overlap

    if cut_cols and oy > 0:
        path = _min_cut_path(err[:, :oy])
        keep[:, :oy] &= np.arange(oy)[np.newaxis, :] >= path[:, np.newaxis]

    if cut_rows and ox > 0:
        path = _min_cut_path(err[:ox, :].T)
        keep[:ox, :] &= np.arange(ox)[:, np.newaxis] >= path[np.newaxis, :]

    return keep


def image_quilting(
    training_image: NDArray,
    shape: tuple[int, int],
    tilesize: tuple[int, int],
    overlap: tuple[int, int] | None = None,
    hard_data: NDArray[np.floating] | None = None,
    tol: float = 0.1,
    seed: int | np.random.Generator | None = None,
) -> NDArray:
    """
    Generate one realization by quilting patches of a training image.

    Tiles are placed in raster order. Each tile is chosen at random among
    the training-image windows whose error over the already simulated
    overlap (and the hard data it covers) is within ``tol`` of the best
    one, and is stitched in along a minimum-error boundary cut.

    Args:
        training_image: 2-D training image
        shape: Output shape
        tilesize: Tile size along each axis
        overlap: Overlap between tiles (default one sixth of the tile)
        hard_data: Array shaped like the output, NaN where there is no data.
                   Hard data are reproduced exactly.
        tol: Relative tolerance above the best overlap error
        seed: Random seed or generator

    Returns:
        Realization with the training image's dtype

    Raises:
        ValueError: If the tile does not fit in the training image or the
                    overlap is not smaller than the tile
    """
    ti = np.asarray(training_image)
    if ti.ndim != 2 or len(shape) != 2 or len(tilesize) != 2:
        raise ValueError("Image quilting works on 2-D training images and grids")

    bx, by = (int(t) for t in tilesize)
    if bx < 1 or by < 1:
        raise ValueError(f"tilesize must be positive, got {tilesize}")
    if bx > ti.shape[0] or by > ti.shape[1]:
        raise ValueError(f"Tile {tilesize} is larger than the training image {ti.shape}")

    if overlap is None:
        overlap = (bx // 6, by // 6)
    ox, oy = (int(o) for o in overlap)
    if not (0 <= ox < bx and 0 <= oy < by):
        raise ValueError(f"overlap {overlap} must be non-negative and smaller than the tile {tilesize}")
    if tol < 0:
        raise ValueError(f"tol must be non-negative, got {tol}")

    rng = np.random.default_rng(seed)
    tif = ti.astype(np.float64)
    tif_squared = tif**2

    sx, sy = bx - ox, by - oy
    nx = max(1, int(np.ceil((shape[0] - ox) / sx)))
    ny = max(1, int(np.ceil((shape[1] - oy) / sy)))
    canvas_shape = (nx * sx + ox, ny * sy + oy)

    canvas = np.zeros(canvas_shape)
    filled = np.zeros(canvas_shape, dtype=bool)
    hard = np.full(canvas_shape, np.nan)
    if hard_data is not None:
        hard_data = np.asarray(hard_data, dtype=np.float64)
        if hard_data.shape != tuple(shape):
            raise ValueError(f"hard_data has shape {hard_data.shape}, expected {tuple(shape)}")
        hard[:shape[0], :shape[1]] = hard_data
    has_hard = ~np.isnan(hard)

    logger.debug("Quilting %dx%d tiles of size %s into %s", nx, ny, tilesize, tuple(shape))

    for i in range(nx):
        for j in range(ny):
            x0, y0 = i * sx, j * sy
            window = (slice(x0, x0 + bx), slice(y0, y0 + by))
            region = canvas[window]
            done = filled[window].astype(np.float64)
            hmask = has_hard[window].astype(np.float64)
            hvals = np.where(has_hard[window], hard[window], 0.0)

            err = _masked_distance(tif, tif_squared, region, done)
            if hmask.any():
                # Hard data mismatches dominate overlap mismatches
                err = err + bx * by * _masked_distance(tif, tif_squared, hvals, hmask)

            best = err.min()
            candidates = np.flatnonzero(err.ravel() <= best * (1.0 + tol) + 1e-9 * max(1.0, best))
            px, py = np.unravel_index(rng.choice(candidates), err.shape)
            patch = tif[px:px + bx, py:py + by]

            keep = _boundary_cut(patch, region, (ox, oy), cut_rows=i > 0, cut_cols=j > 0)
            canvas[window] = np.where(keep | ~filled[window], patch, region)
            filled[window] = True

    canvas[has_hard] = hard[has_hard]
    return canvas[:shape[0], :shape[1]].astype(ti.dtype)


class ImageQuilting(SimulationSolver):
    """
    Image quilting solver.

    Parameters per variable:
        TI: 2-D training image (required)
        tilesize: Tile size (required)
        overlap: Tile overlap (default one sixth of the tile)
        tol: Relative tolerance on the overlap error (default 0.1)

    Conditioning data of the problem are snapped to the nearest cell and
    honoured exactly.
    """

    def hard_data(self, problem: SimulationProblem, var: str) -> NDArray[np.float64] | None:
        """Conditioning data snapped to the grid, NaN elsewhere."""
        if not problem.conditional:
            return None

        grid = problem.domain
        hard = np.full(grid.shape, np.nan)
        outside = 0
        for point, value in zip(problem.data.coords, problem.data[var]):
            index = grid.point_to_index(point)
            if index is None:
                outside += 1
                continue
            hard[index] = value

        if outside:
            warnings.warn(
                f"{outside} conditioning point(s) of '{var}' fall outside the grid and are ignored",
                TutorialWarning,
                stacklevel=2,
            )
        return hard

    def simulate(self, problem: SimulationProblem, var: str, seed: int) -> NDArray:
        params = self.parameters(var)
        for required in ("TI", "tilesize"):
            if required not in params:
                raise ValueError(f"Image quilting needs '{required}' for '{var}'")
        if problem.domain.dim != 2:
            raise ValueError(f"Image quilting needs a 2-D domain, got {problem.domain.dim}-D")

        return image_quilting(
            params["TI"],
            problem.domain.shape,
            params["tilesize"],
            overlap=params.get("overlap"),
            hard_data=self.hard_data(problem, var),
            tol=params.get("tol", 0.1),
            seed=seed,
        )


# ============================================================================
# Cookie-cutter
# ============================================================================

class CookieCutter(SimulationSolver):
    """
    Cookie-cutter simulation.

    The master solver simulates a categorical variable first. Every other
    variable is then simulated once per category with that category's
    solver, and each cell takes the value from the solver of its category.

    Example:
        >>> CookieCutter(
        ...     ImageQuilting(facies={"TI": ti, "tilesize": (30, 30)}),
        ...     {0: GaussianSimulation(porosity={"variogram": model0}),
        ...      1: GaussianSimulation(porosity={"variogram": model1})},
        ... )
    """

    def __init__(self, master: SimulationSolver, solvers: Mapping[Any, SimulationSolver]) -> None:
        super().__init__()
        if not solvers:
            raise ValueError("CookieCutter needs at least one category solver")
        self.master = master
        self.solvers = dict(solvers)

    def __repr__(self) -> str:
        return f"CookieCutter(master={self.master!r}, categories={sorted(self.solvers)})"

    def parameters(self, var: str) -> dict[str, Any]:
        if var in self.master.params:
            return self.master.params[var]
        for solver in self.solvers.values():
            solver.parameters(var)
        return {}

    def _master_variable(self, problem: SimulationProblem) -> str:
        names = [v for v in problem.variables if v in self.master.params]
        if len(names) != 1:
            raise ValueError(
                f"Exactly one problem variable must belong to the master solver, got {names}"
            )
        return names[0]

    def realize(self, problem: SimulationProblem, seed: int) -> dict[str, NDArray]:
        master_var = self._master_variable(problem)
        categories = sorted(self.solvers)
        seeds = np.random.SeedSequence(seed).generate_state(1 + len(categories))

        facies = np.asarray(self.master.simulate(problem, master_var, int(seeds[0])))
        facies = facies.astype(problem.variables[master_var])
        missing = [c for c in np.unique(facies).tolist() if c not in self.solvers]
        if missing:
            raise ValueError(f"No solver for categories {missing} of '{master_var}'")

        result = {master_var: facies}
        for var in problem.variables:
            if var == master_var:
                continue
            values = np.full(problem.domain.shape, np.nan)
            for category, s in zip(categories, seeds[1:]):
                mask = facies == category
                if not mask.any():
                    continue
                field = self.solvers[category].simulate(problem, var, int(s))
                values[mask] = np.asarray(field)[mask]
            result[var] = values.astype(problem.variables[var])
        return result

    def simulate(self, problem: SimulationProblem, var: str, seed: int) -> NDArray:
        return self.realize(problem, seed)[var]
