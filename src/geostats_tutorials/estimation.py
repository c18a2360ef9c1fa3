"""
Kriging estimation on top of GSTools.

The Kriging solver picks the kriging flavour from the parameters given
for each variable:

- ``variogram`` alone: ordinary kriging (unknown constant mean)
- ``mean``: simple kriging (known mean)
- ``degree``: universal kriging with a polynomial drift of that degree
- ``drifts``: universal kriging with custom drift functions ``f(x, y, ...)``
"""

from __future__ import annotations

import logging
import warnings
from typing import TYPE_CHECKING, Callable, Sequence

import gstools as gs
import numpy as np

from geostats_tutorials.core import TutorialWarning
from geostats_tutorials.problems import EstimationProblem, EstimationSolver
from geostats_tutorials.utils import VariogramModel, as_covmodel

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)

# Conditioning sets above this size make the global kriging system slow
LARGE_SYSTEM = 2000

_KRIGING_OPTIONS = ("mean", "degree", "drifts")
_POLYNOMIAL_DRIFTS = {1: "linear", 2: "quadratic"}


def build_krige(
    variogram: VariogramModel | gs.CovModel,
    cond_pos: NDArray[np.float64],
    cond_val: NDArray[np.float64],
    mean: float | None = None,
    degree: int | None = None,
    drifts: Sequence[Callable] | None = None,
) -> gs.krige.Krige:
    """
    Build a GSTools kriging object.

    Args:
        variogram: Variogram or GSTools covariance model
        cond_pos: Conditioning coordinates, shape (dim, n)
        cond_val: Conditioning values
        mean: Known mean (simple kriging)
        degree: Polynomial drift degree (universal kriging)
        drifts: Drift functions (universal kriging)

    Raises:
        ValueError: If more than one of mean, degree and drifts is given,
                    or degree is not 0, 1 or 2
    """
    given = [name for name, value in zip(_KRIGING_OPTIONS, (mean, degree, drifts)) if value is not None]
    if len(given) > 1:
        raise ValueError(f"Kriging options {given} are mutually exclusive")

    cond_pos = np.atleast_2d(np.asarray(cond_pos, dtype=np.float64))
    cond_val = np.asarray(cond_val, dtype=np.float64)
    if cond_pos.shape[1] != len(cond_val):
        raise ValueError(
            f"Got {cond_pos.shape[1]} conditioning locations for {len(cond_val)} values"
        )

    if len(cond_val) > LARGE_SYSTEM:
        warnings.warn(
            f"Kriging with {len(cond_val)} conditioning points builds a dense "
            f"{len(cond_val)}x{len(cond_val)} system; consider sampling the data",
            TutorialWarning,
            stacklevel=3,
        )

    model = as_covmodel(variogram, dim=cond_pos.shape[0])

    if mean is not None:
        logger.debug("Simple kriging with mean %g", mean)
        return gs.krige.Simple(model, cond_pos, cond_val, mean=mean)

    if degree is not None:
        if degree not in (0, 1, 2):
            raise ValueError(f"degree must be 0, 1 or 2, got {degree}")
        if degree == 0:
            return gs.krige.Ordinary(model, cond_pos, cond_val)
        logger.debug("Universal kriging with %s drift", _POLYNOMIAL_DRIFTS[degree])
        return gs.krige.Universal(model, cond_pos, cond_val, drift_functions=_POLYNOMIAL_DRIFTS[degree])

    if drifts is not None:
        drifts = list(drifts)
        if not drifts or not all(callable(f) for f in drifts):
            raise ValueError("drifts must be a non-empty sequence of callables")
        logger.debug("Universal kriging with %d drift functions", len(drifts))
        return gs.krige.Universal(model, cond_pos, cond_val, drift_functions=drifts)

    return gs.krige.Ordinary(model, cond_pos, cond_val)


class Kriging(EstimationSolver):
    """
    Kriging solver.

    Example:
        >>> solver = Kriging(precipitation={"variogram": VariogramModel.gaussian(1.0, 35.0)})
        >>> solver = Kriging(Z={"variogram": model, "degree": 1})
    """

    def estimate(
        self, problem: EstimationProblem, var: str
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        params = self.parameters(var)
        unknown = set(params) - {"variogram", *_KRIGING_OPTIONS}
        if unknown:
            raise ValueError(f"Unknown kriging parameters for '{var}': {sorted(unknown)}")
        if "variogram" not in params:
            raise ValueError(f"A variogram is required to krige '{var}'")

        data = problem.data
        krig = build_krige(
            params["variogram"],
            data.pos,
            data[var],
            mean=params.get("mean"),
            degree=params.get("degree"),
            drifts=params.get("drifts"),
        )
        mean, variance = krig(problem.domain.axes(), mesh_type="structured", return_var=True)
        return np.asarray(mean).reshape(problem.domain.shape), np.asarray(variance).reshape(problem.domain.shape)


def predict_1d(
    x: NDArray[np.floating],
    z: NDArray[np.floating],
    xs: NDArray[np.floating],
    variogram: VariogramModel | gs.CovModel,
    mean: float | None = None,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """
    Kriging along a line, the Gaussian-process view of kriging.

    Args:
        x: Data locations
        z: Data values
        xs: Prediction locations
        variogram: Variogram model
        mean: Known mean (simple kriging, i.e. a zero-mean GP when 0)

    Returns:
        Tuple of (mean, variance) at the prediction locations
    """
    x = np.asarray(x, dtype=np.float64).ravel()
    xs = np.asarray(xs, dtype=np.float64).ravel()
    krig = build_krige(variogram, x[np.newaxis, :], z, mean=mean)
    mu, var = krig(xs, return_var=True)
    return np.asarray(mu), np.asarray(var)
