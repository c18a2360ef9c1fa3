"""
Stratigraphic surfaces from Markov-Poisson sampling of landscape processes.

An environment holds landscape processes, a Markov transition matrix
between them and a duration distribution. Simulating it from an initial
land state produces a record of surfaces, one per epoch, which are
stacked into strata (eroded backward or deposited forward in time) and
voxelized into a 3-D layer model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

import gstools as gs
import numpy as np

from geostats_tutorials.par import validate_positive
from geostats_tutorials.problems import SimulationProblem, SimulationSolver
from geostats_tutorials.utils import VariogramModel, as_covmodel

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)

STACKINGS = ("erosional", "depositional")


@dataclass
class LandState:
    """Elevation of the land surface at a given time."""

    land: NDArray[np.float64]
    time: float = 0.0

    @classmethod
    def flat(cls, shape: tuple[int, int], elevation: float = 0.0) -> "LandState":
        return cls(np.full(shape, float(elevation)))


class GaussianLandscapeProcess:
    """
    Landscape process adding a Gaussian random field.

    Over a duration ``dt`` the land changes by ``dt * (mean + field)``,
    where the field is drawn with GSTools from the variogram. Smooth
    (Gaussian) variograms give smooth depositional surfaces.
    """

    def __init__(self, variogram: VariogramModel | gs.CovModel, mean: float = 0.0):
        self.variogram = variogram
        self.mean = float(mean)

    def __repr__(self) -> str:
        return f"GaussianLandscapeProcess({self.variogram!r}, mean={self.mean})"

    def evolve(self, state: LandState, dt: float, seed: int) -> LandState:
        shape = state.land.shape
        model = as_covmodel(self.variogram, dim=len(shape))
        axes = [np.arange(n, dtype=np.float64) for n in shape]
        field = gs.SRF(model, mean=self.mean)(axes, seed=seed, mesh_type="structured")
        return LandState(state.land + dt * np.asarray(field).reshape(shape), state.time + dt)


class ExponentialDuration:
    """Exponentially distributed process durations with the given rate."""

    def __init__(self, rate: float = 1.0):
        validate_positive(rate, "rate")
        self.rate = float(rate)

    def __repr__(self) -> str:
        return f"ExponentialDuration({self.rate})"

    def sample(self, rng: np.random.Generator) -> float:
        return float(rng.exponential(1.0 / self.rate))


class Environment:
    """
    Geological environment.

    Args:
        processes: Landscape processes
        transitions: Row-stochastic matrix of transition probabilities
                     between processes
        duration: Duration distribution with a ``sample(rng)`` method

    Raises:
        ValueError: If the transition matrix is not square, does not match
                    the number of processes, or its rows are not
                    probability vectors
    """

    def __init__(
        self,
        processes: Sequence[GaussianLandscapeProcess],
        transitions: NDArray[np.floating] | Sequence[Sequence[float]],
        duration: ExponentialDuration,
    ):
        processes = list(processes)
        transitions = np.asarray(transitions, dtype=np.float64)
        n = len(processes)
        if n == 0:
            raise ValueError("An environment needs at least one process")
        if transitions.shape != (n, n):
            raise ValueError(f"Transition matrix must be {n}x{n}, got shape {transitions.shape}")
        if np.any(transitions < 0) or not np.allclose(transitions.sum(axis=1), 1.0):
            raise ValueError("Transition matrix rows must be non-negative and sum to 1")

        self.processes = processes
        self.transitions = transitions
        self.duration = duration

    def __repr__(self) -> str:
        return f"Environment({len(self.processes)} processes, duration={self.duration!r})"


def simulate_environment(
    env: Environment,
    init: LandState,
    nepochs: int,
    seed: int | None = None,
) -> list[LandState]:
    """
    Markov-Poisson simulation of an environment.

    The first process is drawn uniformly. Each epoch runs the current
    process for a random duration and then jumps according to the
    transition matrix.

    Returns:
        Record of nepochs + 1 land states, starting with init
    """
    if nepochs < 1:
        raise ValueError(f"nepochs must be at least 1, got {nepochs}")

    rng = np.random.default_rng(seed)
    nproc = len(env.processes)
    current = int(rng.integers(nproc))

    record = [init]
    state = init
    for epoch in range(nepochs):
        dt = env.duration.sample(rng)
        logger.debug("Epoch %d: process %d for %.3f", epoch, current, dt)
        state = env.processes[current].evolve(state, dt, seed=int(rng.integers(2**31 - 1)))
        record.append(state)
        current = int(rng.choice(nproc, p=env.transitions[current]))

    return record


class Strata:
    """
    Horizons stacked from a geological record.

    With ``erosional`` stacking each surface erodes the older ones
    (backward minimum). With ``depositional`` stacking each surface is
    draped over the older ones (forward maximum). Either way horizons are
    non-decreasing from bottom to top.
    """

    def __init__(self, record: Sequence[LandState], stacking: str = "erosional"):
        if stacking not in STACKINGS:
            raise ValueError(f"stacking must be one of {STACKINGS}, got '{stacking}'")
        if len(record) < 2:
            raise ValueError("A record needs at least two land states")

        horizons = np.stack([np.asarray(s.land, dtype=np.float64) for s in record])
        if stacking == "erosional":
            horizons = np.minimum.accumulate(horizons[::-1], axis=0)[::-1]
        else:
            horizons = np.maximum.accumulate(horizons, axis=0)

        self.horizons = horizons
        self.stacking = stacking

    @property
    def nlayers(self) -> int:
        return self.horizons.shape[0] - 1

    @property
    def zrange(self) -> tuple[float, float]:
        return float(self.horizons[0].min()), float(self.horizons[-1].max())

    def zlevels(self, nz: int) -> NDArray[np.float64]:
        """Elevations of nz voxel centres spanning the strata."""
        zmin, zmax = self.zrange
        dz = (zmax - zmin) / nz if zmax > zmin else 1.0
        return zmin + (np.arange(nz) + 0.5) * dz

    def thickness(self) -> NDArray[np.float64]:
        """Thickness of each layer, shape (nlayers, nx, ny)."""
        return np.diff(self.horizons, axis=0)


def voxelize(strata: Strata, nz: int) -> NDArray[np.float64]:
    """
    Layer index of every voxel of a (nx, ny, nz) model.

    Layer k lies between horizons k and k + 1. Voxels above the top
    horizon or below the base are NaN.
    """
    validate_positive(nz, "nz")
    z = strata.zlevels(nz)
    horizons = strata.horizons[..., np.newaxis]
    below = (horizons <= z).sum(axis=0).astype(np.float64)
    layers = below - 1.0
    layers[(below == 0) | (below == strata.horizons.shape[0])] = np.nan
    return layers


class StratSim(SimulationSolver):
    """
    Stratigraphic simulation solver for 3-D grids.

    Parameters per variable:
        environment: Environment (required)
        state: Initial LandState (default flat land)
        stacking: 'erosional' (default) or 'depositional'
        nepochs: Number of epochs (default 10)
    """

    def simulate(self, problem: SimulationProblem, var: str, seed: int) -> NDArray[np.float64]:
        params = self.parameters(var)
        if "environment" not in params:
            raise ValueError(f"An environment is required to simulate '{var}'")
        domain = problem.domain
        if domain.dim != 3:
            raise ValueError(f"StratSim needs a 3-D domain, got {domain.dim}-D")

        nx, ny, nz = domain.shape
        init = params.get("state") or LandState.flat((nx, ny))
        record = simulate_environment(params["environment"], init, params.get("nepochs", 10), seed=seed)
        strata = Strata(record, params.get("stacking", "erosional"))
        return voxelize(strata, nz)
