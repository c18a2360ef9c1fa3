"""
Variography: empirical variograms, model fitting and two-point statistics.

Empirical variograms are estimated with ``gstools.vario_estimate`` and
models are fitted with ``CovModel.fit_variogram``, weighting each lag by
its number of pairs. Results are returned as :class:`VariogramResult`,
which the plotting helpers understand.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Sequence

import gstools as gs
import numpy as np
from scipy.spatial import cKDTree

from geostats_tutorials.data import GeoTable, GridData
from geostats_tutorials.utils import (
    VariogramModel,
    VariogramType,
    evaluate_variogram,
    from_gstools,
    to_gstools,
)

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)

FIT_KINDS = ("spherical", "exponential", "gaussian")


@dataclass
class VariogramResult:
    """
    Container for experimental variogram results.

    Attributes:
        lag_distances: Bin centres
        gamma: Variogram values per bin
        num_pairs: Number of pairs per bin
        direction: Direction vector, None for omnidirectional variograms
        variogram_type: Estimator name ('matheron' or 'cressie')
    """

    lag_distances: NDArray[np.float64]
    gamma: NDArray[np.float64]
    num_pairs: NDArray[np.int64]
    direction: tuple[float, ...] | None = None
    variogram_type: str = "matheron"

    @property
    def azimuth(self) -> float | None:
        """Azimuth of the direction (degrees clockwise from north)."""
        if self.direction is None or len(self.direction) < 2:
            return None
        dx, dy = self.direction[0], self.direction[1]
        return float((90.0 - np.degrees(np.arctan2(dy, dx))) % 360.0)

    @property
    def valid(self) -> NDArray[np.bool_]:
        """Bins holding at least one pair."""
        return (self.num_pairs > 0) & np.isfinite(self.gamma)


@dataclass
class VarioplaneResult:
    """
    Directional variograms over a plane.

    Attributes:
        angles: Direction angles in the plane (radians)
        variograms: One VariogramResult per angle
        ranges: Fitted range per angle (NaN where fitting was not possible)
        normal: Plane normal
    """

    angles: NDArray[np.float64]
    variograms: list[VariogramResult]
    ranges: NDArray[np.float64]
    normal: tuple[float, ...] = (0.0, 0.0, 1.0)
    models: list[VariogramModel | None] = field(default_factory=list)

    @property
    def major_angle(self) -> float:
        """Angle with the largest fitted range (NaN when no fit succeeded)."""
        if np.all(np.isnan(self.ranges)):
            return float("nan")
        return float(self.angles[np.nanargmax(self.ranges)])

    @property
    def anisotropy_ratio(self) -> float:
        """Ratio of the smallest to the largest fitted range."""
        return float(np.nanmin(self.ranges) / np.nanmax(self.ranges))


def _positions(data: GeoTable | GridData, var: str) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    if isinstance(data, GridData):
        data = data.to_geotable()
    return data.pos, np.asarray(data[var], dtype=np.float64)


def _bin_edges(pos: NDArray[np.float64], nlags: int, maxlag: float | None) -> NDArray[np.float64]:
    if nlags < 1:
        raise ValueError(f"nlags must be at least 1, got {nlags}")
    if maxlag is None:
        diagonal = np.linalg.norm(pos.max(axis=1) - pos.min(axis=1))
        maxlag = diagonal / 2 if diagonal > 0 else 1.0
    if maxlag <= 0:
        raise ValueError(f"maxlag must be positive, got {maxlag}")
    return np.linspace(0.0, maxlag, nlags + 1)


def _sampling(pos: NDArray[np.float64], sampling_size: int | None) -> int | None:
    if sampling_size is None or sampling_size >= pos.shape[1]:
        return None
    return int(sampling_size)


def empirical_variogram(
    data: GeoTable | GridData,
    var: str,
    nlags: int = 20,
    maxlag: float | None = None,
    estimator: str = "matheron",
    sampling_size: int | None = None,
    seed: int | None = None,
) -> VariogramResult:
    """
    Omnidirectional empirical variogram.

    Args:
        data: Point or gridded data
        var: Variable name
        nlags: Number of lag bins
        maxlag: Maximum lag (default half the bounding-box diagonal)
        estimator: 'matheron' or 'cressie'
        sampling_size: Estimate from a random subset of this many points
        seed: Seed of the random subset

    Returns:
        VariogramResult
    """
    pos, values = _positions(data, var)
    bin_edges = _bin_edges(pos, nlags, maxlag)
    centers, gamma, counts = gs.vario_estimate(
        pos, values, bin_edges,
        estimator=estimator,
        sampling_size=_sampling(pos, sampling_size),
        sampling_seed=seed,
        return_counts=True,
    )
    return VariogramResult(
        np.asarray(centers), np.asarray(gamma), np.asarray(counts, dtype=np.int64),
        None, estimator,
    )


def directional_variogram(
    data: GeoTable | GridData,
    var: str,
    direction: Sequence[float],
    nlags: int = 20,
    maxlag: float | None = None,
    angles_tol: float = np.pi / 8,
    bandwidth: float | None = None,
    estimator: str = "matheron",
    sampling_size: int | None = None,
    seed: int | None = None,
) -> VariogramResult:
    """
    Empirical variogram along a direction vector.

    Pairs are counted when their lag vector lies within ``angles_tol``
    (radians) of the direction and, if given, within ``bandwidth`` of it.
    """
    pos, values = _positions(data, var)
    direction = tuple(float(d) for d in direction)
    if len(direction) != pos.shape[0]:
        raise ValueError(f"direction has {len(direction)} components for {pos.shape[0]}-D data")

    bin_edges = _bin_edges(pos, nlags, maxlag)
    centers, gamma, counts = gs.vario_estimate(
        pos, values, bin_edges,
        direction=[direction],
        angles_tol=angles_tol,
        bandwidth=bandwidth,
        estimator=estimator,
        sampling_size=_sampling(pos, sampling_size),
        sampling_seed=seed,
        return_counts=True,
    )
    # One direction comes back as (1, nbins) or (nbins,) depending on the GSTools release
    nbins = len(centers)
    return VariogramResult(
        np.asarray(centers),
        np.reshape(gamma, (-1, nbins))[0],
        np.reshape(np.asarray(counts, dtype=np.int64), (-1, nbins))[0],
        direction, estimator,
    )


def _combine(results: list[VariogramResult], direction=None) -> VariogramResult:
    """Pair-weighted combination of variograms sharing the same bins."""
    counts = np.sum([r.num_pairs for r in results], axis=0)
    weighted = np.sum([np.where(r.num_pairs > 0, r.gamma, 0.0) * r.num_pairs for r in results], axis=0)
    gamma = np.divide(weighted, counts, out=np.zeros_like(weighted, dtype=np.float64), where=counts > 0)
    return VariogramResult(
        results[0].lag_distances, gamma, counts.astype(np.int64),
        direction, results[0].variogram_type,
    )


def planar_variogram(
    data: GeoTable | GridData,
    var: str,
    normal: Sequence[float] = (0.0, 0.0, 1.0),
    nlags: int = 20,
    maxlag: float | None = None,
    tol: float = 1e-6,
    estimator: str = "matheron",
) -> VariogramResult:
    """
    Variogram of pairs lying on planes with a given normal.

    Points are grouped into planes by their projection on the normal
    (within ``tol``), variograms are estimated per plane and combined with
    pair-count weights.
    """
    pos, values = _positions(data, var)
    normal = np.asarray(normal, dtype=np.float64)
    if normal.shape != (pos.shape[0],) or not np.any(normal):
        raise ValueError(f"normal must be a non-zero {pos.shape[0]}-D vector")
    normal = normal / np.linalg.norm(normal)

    bin_edges = _bin_edges(pos, nlags, maxlag)
    keys = np.round((normal @ pos) / tol).astype(np.int64)
    _, groups = np.unique(keys, return_inverse=True)
    groups = groups.ravel()

    results = []
    for g in range(groups.max() + 1):
        members = groups == g
        if members.sum() < 2:
            continue
        centers, gamma, counts = gs.vario_estimate(
            pos[:, members], values[members], bin_edges,
            estimator=estimator, return_counts=True,
        )
        results.append(VariogramResult(
            np.asarray(centers), np.asarray(gamma), np.asarray(counts, dtype=np.int64),
            None, estimator,
        ))

    if not results:
        raise ValueError("No plane holds two or more points")

    logger.debug("Combined variograms of %d planes", len(results))
    return _combine(results)


def _plane_basis(normal: NDArray[np.float64]) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Orthonormal vectors spanning the plane normal to a 3-D vector."""
    normal = normal / np.linalg.norm(normal)
    helper = np.array([1.0, 0.0, 0.0]) if abs(normal[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
    u = np.cross(normal, helper)
    u /= np.linalg.norm(u)
    v = np.cross(normal, u)
    return u, v


def varioplane(
    data: GeoTable | GridData,
    var: str,
    normal: Sequence[float] = (0.0, 0.0, 1.0),
    nangles: int = 50,
    nlags: int = 20,
    maxlag: float | None = None,
    angles_tol: float = np.pi / 8,
    kind: str = "gaussian",
    sampling_size: int | None = None,
    seed: int | None = None,
) -> VarioplaneResult:
    """
    Directional variograms for angles in a plane, with fitted ranges.

    For 2-D data the plane is the data plane and ``normal`` is ignored.
    Angles sweep [0, pi) counter-clockwise from the first plane axis.
    Large data sets can be subsampled with ``sampling_size``.

    Returns:
        VarioplaneResult with one fitted range per angle
    """
    pos, values = _positions(data, var)
    angles = np.linspace(0.0, np.pi, nangles, endpoint=False)

    if pos.shape[0] == 2:
        directions = np.column_stack([np.cos(angles), np.sin(angles)])
        normal = (0.0, 0.0, 1.0)
    elif pos.shape[0] == 3:
        u, v = _plane_basis(np.asarray(normal, dtype=np.float64))
        directions = np.cos(angles)[:, np.newaxis] * u + np.sin(angles)[:, np.newaxis] * v
    else:
        raise ValueError("Variogram planes need 2-D or 3-D data")

    bin_edges = _bin_edges(pos, nlags, maxlag)
    centers, gamma, counts = gs.vario_estimate(
        pos, values, bin_edges,
        direction=directions,
        angles_tol=angles_tol,
        sampling_size=_sampling(pos, sampling_size),
        sampling_seed=seed,
        return_counts=True,
    )

    variograms, ranges, models = [], [], []
    for k, direction in enumerate(directions):
        result = VariogramResult(
            np.asarray(centers), np.asarray(gamma[k]), np.asarray(counts[k], dtype=np.int64),
            tuple(direction), "matheron",
        )
        variograms.append(result)
        if result.valid.sum() < 2:
            ranges.append(np.nan)
            models.append(None)
            continue
        model = fit_variogram(result, kind=kind)
        ranges.append(model.range)
        models.append(model)

    return VarioplaneResult(angles, variograms, np.asarray(ranges), tuple(float(n) for n in normal), models)


def variogram_fit_error(model: VariogramModel, result: VariogramResult) -> float:
    """Pair-weighted mean squared error between a model and an empirical variogram."""
    valid = result.valid
    if not valid.any():
        raise ValueError("Empirical variogram has no populated bins")
    weights = result.num_pairs[valid].astype(np.float64)
    residual = evaluate_variogram(model, result.lag_distances[valid]) - result.gamma[valid]
    return float(np.sum(weights * residual**2) / np.sum(weights))


def _fit_kind(result: VariogramResult, kind: str, nugget: bool) -> VariogramModel:
    valid = result.valid
    lags = result.lag_distances[valid]
    gamma = result.gamma[valid]

    sill0 = max(float(np.max(gamma)), 1e-12)
    guess = VariogramModel.single(
        kind,
        sill=sill0 * (0.9 if nugget else 1.0),
        ranges=float(lags.max()) / 2,
        nugget=sill0 * 0.1 if nugget else 0.0,
    )
    model = to_gstools(guess, dim=1)
    model.fit_variogram(
        lags, gamma,
        nugget=nugget,
        init_guess="current",
        weights=result.num_pairs[valid].astype(np.float64),
    )
    fitted = from_gstools(model)
    if not nugget:
        fitted.nugget = 0.0
    return fitted


def fit_variogram(
    result: VariogramResult,
    kind: str | VariogramType | None = None,
    nugget: bool = True,
) -> VariogramModel:
    """
    Fit a variogram model to an empirical variogram.

    Bins are weighted by their number of pairs.

    Args:
        result: Empirical variogram
        kind: 'spherical', 'exponential' or 'gaussian'; None tries all
              three and keeps the one with the smallest weighted error
        nugget: Fit a nugget effect

    Returns:
        Fitted VariogramModel

    Raises:
        ValueError: If fewer than two bins hold pairs
    """
    if result.valid.sum() < 2:
        raise ValueError("At least two populated lag bins are needed to fit a variogram")

    if kind is not None:
        if not isinstance(kind, str):
            kind = VariogramType(int(kind)).name.lower()
        if kind.lower() not in FIT_KINDS:
            raise ValueError(f"kind must be one of {FIT_KINDS}, got '{kind}'")
        return _fit_kind(result, kind.lower(), nugget)

    best, best_error = None, np.inf
    for candidate in FIT_KINDS:
        try:
            model = _fit_kind(result, candidate, nugget)
        except RuntimeError as err:
            # curve_fit gives up when it exceeds its evaluation budget
            logger.debug("Fitting %s variogram failed: %s", candidate, err)
            continue
        error = variogram_fit_error(model, result)
        logger.debug("Fitted %s variogram with error %g", candidate, error)
        if error < best_error:
            best, best_error = model, error

    if best is None:
        raise RuntimeError("No variogram model could be fitted")
    return best


# ============================================================================
# Two-point statistics
# ============================================================================

@dataclass
class HScatterResult:
    """Head and tail values of pairs separated by a lag."""

    head: NDArray[np.float64]
    tail: NDArray[np.float64]
    lag: float

    @property
    def correlation(self) -> float:
        if len(self.head) < 2:
            return float("nan")
        return float(np.corrcoef(self.head, self.tail)[0, 1])


def hscatter(
    data: GeoTable,
    head: str,
    tail: str | None = None,
    lag: float = 0.0,
    tol: float | None = None,
    max_pairs: int | None = 20000,
    seed: int | None = None,
) -> HScatterResult:
    """
    Pairs of values separated by ``lag`` (within ``tol``).

    At lag zero every point is paired with itself only, so the scatter
    lies on the identity line when head and tail are the same variable.

    Args:
        data: Point data
        head: Variable at the first point of each pair
        tail: Variable at the second point (default head)
        lag: Separation distance
        tol: Distance tolerance (default a tenth of the lag)
        max_pairs: Keep a random subset of at most this many pairs
        seed: Seed of the random subset
    """
    tail = head if tail is None else tail
    h, t = np.asarray(data[head], dtype=np.float64), np.asarray(data[tail], dtype=np.float64)

    if lag < 0:
        raise ValueError(f"lag must be non-negative, got {lag}")
    tol = lag / 10 if tol is None else tol
    if tol < 0:
        raise ValueError(f"tol must be non-negative, got {tol}")

    if lag == 0:
        i = j = np.arange(len(data))
    else:
        tree = cKDTree(data.coords)
        pairs = tree.sparse_distance_matrix(tree, lag + tol, output_type="ndarray")
        keep = (pairs["v"] >= lag - tol) & (pairs["i"] != pairs["j"])
        i, j = pairs["i"][keep], pairs["j"][keep]

    if max_pairs is not None and len(i) > max_pairs:
        chosen = np.random.default_rng(seed).choice(len(i), size=max_pairs, replace=False)
        i, j = i[chosen], j[chosen]

    return HScatterResult(h[i], t[j], float(lag))


def lagged_correlation(
    image: NDArray[np.floating],
    lags: Sequence[int],
    axis: int = 0,
) -> NDArray[np.float64]:
    """
    Correlation between an image and itself shifted along an axis.

    Args:
        image: Array of any dimension
        lags: Non-negative shifts in cells
        axis: Axis of the shift

    Returns:
        Correlation per lag (1 at lag 0)
    """
    image = np.asarray(image, dtype=np.float64)
    n = image.shape[axis]
    out = []
    for lag in lags:
        lag = int(lag)
        if not 0 <= lag < n:
            raise ValueError(f"lag must be in [0, {n}), got {lag}")
        a = np.take(image, np.arange(0, n - lag), axis=axis).ravel()
        b = np.take(image, np.arange(lag, n), axis=axis).ravel()
        if a.std() == 0 or b.std() == 0:
            out.append(np.nan)
        else:
            out.append(np.corrcoef(a, b)[0, 1])
    return np.asarray(out)
