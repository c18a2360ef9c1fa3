"""
Problem descriptors, solver interfaces and solution containers.

A geostatistical problem is the combination of spatial data, a spatial
domain and target variables. Solvers are configured with per-variable
parameters and return solutions laid out on the domain:

    problem = EstimationProblem(data, CartesianGrid(100, 100), "Z")
    solution = solve(problem, Kriging(Z={"variogram": model}))
    mean, variance = solution["Z"]
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ProcessPoolExecutor
from itertools import repeat
from typing import TYPE_CHECKING, Any, Iterator, Mapping, Sequence

import numpy as np

from geostats_tutorials.data import GeoTable, GridData
from geostats_tutorials.utils import CartesianGrid

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)


class EstimationProblem:
    """
    Estimate variables on a domain from spatial data.

    Args:
        data: Conditioning data.
        domain: Grid where the variables are estimated.
        variables: Variable name or names, all present in the data.

    Raises:
        ValueError: If a variable is missing from the data or the
            dimensions of data and domain differ.
    """

    def __init__(
        self,
        data: GeoTable,
        domain: CartesianGrid,
        variables: str | Sequence[str],
    ) -> None:
        variables = [variables] if isinstance(variables, str) else list(variables)
        if not variables:
            raise ValueError("At least one target variable is required")
        missing = [v for v in variables if v not in data.variables]
        if missing:
            raise ValueError(f"Variables {missing} not found in data. Available: {data.variables}")
        if data.dim != domain.dim:
            raise ValueError(f"Data is {data.dim}-D but the domain is {domain.dim}-D")

        self.data = data
        self.domain = domain
        self.variables = variables

    def __repr__(self) -> str:
        return (
            f"EstimationProblem(variables={self.variables}, "
            f"npoints={len(self.data)}, domain={self.domain.dims})"
        )


def _as_variable_types(variables: str | Sequence[str] | Mapping[str, type]) -> dict[str, type]:
    if isinstance(variables, str):
        return {variables: float}
    if isinstance(variables, Mapping):
        return dict(variables)
    return {v: float for v in variables}


class SimulationProblem:
    """
    Generate realizations of variables on a domain.

    Args:
        domain: Grid where the variables are simulated.
        variables: Variable name, names, or mapping of name to type
            (``int`` for categorical variables, ``float`` otherwise).
        nreals: Number of realizations.
        data: Optional conditioning data.

    Raises:
        ValueError: If ``nreals < 1``, or conditioning data lack a
            variable or have the wrong dimension.
    """

    def __init__(
        self,
        domain: CartesianGrid,
        variables: str | Sequence[str] | Mapping[str, type],
        nreals: int,
        data: GeoTable | None = None,
    ) -> None:
        if nreals < 1:
            raise ValueError(f"nreals must be at least 1, got {nreals}")
        variables = _as_variable_types(variables)
        if not variables:
            raise ValueError("At least one target variable is required")

        if data is not None:
            missing = [v for v in variables if v not in data.variables]
            if missing:
                raise ValueError(f"Variables {missing} not found in data. Available: {data.variables}")
            if data.dim != domain.dim:
                raise ValueError(f"Data is {data.dim}-D but the domain is {domain.dim}-D")

        self.domain = domain
        self.variables = variables
        self.nreals = int(nreals)
        self.data = data

    @property
    def conditional(self) -> bool:
        return self.data is not None

    def __repr__(self) -> str:
        kind = "conditional" if self.conditional else "unconditional"
        return (
            f"SimulationProblem({kind}, variables={list(self.variables)}, "
            f"nreals={self.nreals}, domain={self.domain.dims})"
        )


class EstimationSolution:
    """Kriging means and variances on the problem domain."""

    def __init__(
        self,
        domain: CartesianGrid,
        mean: dict[str, NDArray[np.float64]],
        variance: dict[str, NDArray[np.float64]],
    ) -> None:
        self.domain = domain
        self.mean = mean
        self.variance = variance

    @property
    def variables(self) -> list[str]:
        return list(self.mean)

    def __getitem__(self, var: str) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        if var not in self.mean:
            raise KeyError(f"Variable '{var}' not in solution. Available: {self.variables}")
        return self.mean[var], self.variance[var]

    def to_griddata(self, which: str = "mean") -> GridData:
        """Estimates (``"mean"``) or variances (``"variance"``) as GridData."""
        if which == "mean":
            return GridData(self.domain, dict(self.mean))
        if which == "variance":
            return GridData(self.domain, dict(self.variance))
        raise ValueError(f"which must be 'mean' or 'variance', got '{which}'")

    def __repr__(self) -> str:
        return f"EstimationSolution(variables={self.variables}, domain={self.domain.dims})"


class SimulationSolution:
    """
    Realizations on the problem domain.

    ``solution[i]`` is the i-th realization as GridData and
    ``solution["var"]`` stacks all realizations of a variable into an
    array of shape ``(nreals, *domain.shape)``.
    """

    def __init__(self, domain: CartesianGrid, realizations: dict[str, NDArray]) -> None:
        self.domain = domain
        self.realizations = realizations

    @property
    def variables(self) -> list[str]:
        return list(self.realizations)

    def __len__(self) -> int:
        return len(next(iter(self.realizations.values())))

    def __iter__(self) -> Iterator[GridData]:
        for i in range(len(self)):
            yield self[i]

    def __getitem__(self, key: int | str) -> GridData | NDArray:
        if isinstance(key, str):
            if key not in self.realizations:
                raise KeyError(f"Variable '{key}' not in solution. Available: {self.variables}")
            return self.realizations[key]
        return GridData(self.domain, {var: reals[key] for var, reals in self.realizations.items()})

    def __repr__(self) -> str:
        return (
            f"SimulationSolution(variables={self.variables}, nreals={len(self)}, "
            f"domain={self.domain.dims})"
        )


class _ParametrizedSolver(ABC):
    """Solver holding a parameter mapping per target variable."""

    def __init__(self, **params: Mapping[str, Any]) -> None:
        self.params = {var: dict(p) for var, p in params.items()}

    def parameters(self, var: str) -> dict[str, Any]:
        """
        Parameters for one variable.

        Raises:
            ValueError: If the solver was not configured for the variable.
        """
        if var not in self.params:
            raise ValueError(
                f"{type(self).__name__} has no parameters for variable '{var}'. "
                f"Configured: {list(self.params)}"
            )
        return self.params[var]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({', '.join(self.params)})"


class EstimationSolver(_ParametrizedSolver):
    """Base class of estimation solvers."""

    @abstractmethod
    def estimate(
        self, problem: EstimationProblem, var: str
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Estimate one variable, returning mean and variance shaped like the domain."""

    def solve(self, problem: EstimationProblem) -> EstimationSolution:
        mean, variance = {}, {}
        for var in problem.variables:
            self.parameters(var)
            logger.info("Estimating %s with %s", var, type(self).__name__)
            mean[var], variance[var] = self.estimate(problem, var)
        return EstimationSolution(problem.domain, mean, variance)


def realization_seeds(seed: int | None, nreals: int) -> list[int]:
    """Independent seeds, one per realization, derived from a master seed."""
    return [int(s) for s in np.random.SeedSequence(seed).generate_state(nreals)]


def _realize(solver: "SimulationSolver", problem: SimulationProblem, seed: int) -> dict[str, NDArray]:
    return solver.realize(problem, seed)


class SimulationSolver(_ParametrizedSolver):
    """
    Base class of simulation solvers.

    Subclasses implement :meth:`simulate` for one variable and one
    realization. Realizations are seeded independently from the master
    seed, so a solution does not depend on the number of workers.
    """

    @abstractmethod
    def simulate(self, problem: SimulationProblem, var: str, seed: int) -> NDArray:
        """Simulate one realization of one variable, shaped like the domain."""

    def realize(self, problem: SimulationProblem, seed: int) -> dict[str, NDArray]:
        """One realization of every problem variable."""
        variables = list(problem.variables)
        children = np.random.SeedSequence(seed).generate_state(len(variables))
        return {
            var: np.asarray(self.simulate(problem, var, int(s))).astype(problem.variables[var])
            for var, s in zip(variables, children)
        }

    def solve(
        self,
        problem: SimulationProblem,
        seed: int | None = None,
        workers: int = 1,
    ) -> SimulationSolution:
        """
        Generate all realizations.

        Args:
            problem: Simulation problem.
            seed: Master random seed.
            workers: Number of worker processes.
        """
        for var in problem.variables:
            self.parameters(var)

        seeds = realization_seeds(seed, problem.nreals)
        logger.info(
            "Simulating %d realizations of %s with %s on %d worker(s)",
            problem.nreals, list(problem.variables), type(self).__name__, workers,
        )

        if workers > 1:
            with ProcessPoolExecutor(max_workers=workers) as pool:
                reals = list(pool.map(_realize, repeat(self), repeat(problem), seeds))
        else:
            reals = [self.realize(problem, s) for s in seeds]

        return SimulationSolution(
            problem.domain,
            {var: np.stack([r[var] for r in reals]) for var in problem.variables},
        )


def solve(
    problem: EstimationProblem | SimulationProblem,
    solver: EstimationSolver | SimulationSolver,
    **kwargs: Any,
) -> EstimationSolution | SimulationSolution:
    """
    Solve a problem with a solver.

    Keyword arguments (``seed``, ``workers``) go to simulation solvers.

    Raises:
        TypeError: If the solver cannot handle the kind of problem.
    """
    if isinstance(problem, EstimationProblem) and isinstance(solver, EstimationSolver):
        return solver.solve(problem, **kwargs)
    if isinstance(problem, SimulationProblem) and isinstance(solver, SimulationSolver):
        return solver.solve(problem, **kwargs)
    raise TypeError(f"{type(solver).__name__} cannot solve {type(problem).__name__}")
