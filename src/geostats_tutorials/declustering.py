"""
Block declustering.

Samples are partitioned into blocks of a given size and each sample is
weighted by the inverse of its block count. Weighted statistics then
correct for preferential, spatially clustered sampling.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

import numpy as np
import pandas as pd

from geostats_tutorials.data import GeoTable

if TYPE_CHECKING:
    from numpy.typing import NDArray


@dataclass
class DeclusteringCurve:
    """Declustered mean as a function of block size."""

    block_sizes: NDArray[np.float64]
    means: NDArray[np.float64]
    naive_mean: float

    def optimal_block_size(self, minimize: bool = True) -> float:
        """
        Block size with the lowest (or highest) declustered mean.

        Use ``minimize=True`` when high values were preferentially sampled.
        """
        idx = np.argmin(self.means) if minimize else np.argmax(self.means)
        return float(self.block_sizes[idx])


def _block_size(data: GeoTable, size: float | Sequence[float]) -> NDArray[np.float64]:
    sizes = np.broadcast_to(np.asarray(size, dtype=np.float64), (data.dim,))
    if np.any(sizes <= 0):
        raise ValueError(f"Block size must be positive, got {size}")
    return sizes


def default_block_size(data: GeoTable) -> float:
    """One tenth of the smallest side of the bounding box (1.0 for degenerate boxes)."""
    lo, hi = data.bounding_box()
    sides = hi - lo
    sides = sides[sides > 0]
    if sides.size == 0:
        return 1.0
    return float(sides.min() / 10)


def partition_blocks(
    data: GeoTable,
    size: float | Sequence[float],
) -> NDArray[np.int64]:
    """
    Assign each sample to a block.

    Blocks are aligned with the minimum corner of the bounding box.

    Args:
        data: Point data
        size: Block size, scalar or one per axis

    Returns:
        Block label per sample (0..nblocks-1, in order of first appearance)
    """
    sizes = _block_size(data, size)
    lo, _ = data.bounding_box()
    cells = np.floor((data.coords - lo) / sizes).astype(np.int64)
    frame = pd.DataFrame(cells)
    return frame.groupby(list(frame.columns), sort=False).ngroup().to_numpy()


def block_counts(data: GeoTable, size: float | Sequence[float]) -> NDArray[np.int64]:
    """Number of samples in each block."""
    return np.bincount(partition_blocks(data, size))


def block_weights(
    data: GeoTable,
    size: float | Sequence[float] | None = None,
) -> NDArray[np.float64]:
    """
    Declustering weights ``1 / (samples in the block)``.

    Args:
        data: Point data
        size: Block size (default :func:`default_block_size`)
    """
    size = default_block_size(data) if size is None else size
    labels = partition_blocks(data, size)
    return 1.0 / np.bincount(labels)[labels]


def _weights(data: GeoTable, size, weights) -> NDArray[np.float64]:
    if weights is not None:
        weights = np.asarray(weights, dtype=np.float64)
        if weights.shape != (len(data),):
            raise ValueError(f"Expected {len(data)} weights, got shape {weights.shape}")
        return weights
    return block_weights(data, size)


def declustered_mean(
    data: GeoTable,
    var: str,
    size: float | Sequence[float] | None = None,
    weights: NDArray[np.floating] | None = None,
) -> float:
    """Weighted mean with block declustering weights (or the given weights)."""
    w = _weights(data, size, weights)
    return float(np.average(data[var], weights=w))


def declustered_var(
    data: GeoTable,
    var: str,
    size: float | Sequence[float] | None = None,
    weights: NDArray[np.floating] | None = None,
) -> float:
    """Weighted (population) variance with declustering weights."""
    w = _weights(data, size, weights)
    values = np.asarray(data[var], dtype=np.float64)
    mu = np.average(values, weights=w)
    return float(np.average((values - mu) ** 2, weights=w))


def declustered_quantile(
    data: GeoTable,
    var: str,
    q: float | Sequence[float],
    size: float | Sequence[float] | None = None,
    weights: NDArray[np.floating] | None = None,
) -> float | NDArray[np.float64]:
    """
    Weighted quantile with declustering weights.

    Sorted values sit at positions ``(W_i - w_0) / (W - w_0)``, with
    ``W_i`` the cumulative weight, and quantiles interpolate linearly
    between them. Equal weights give the same result as ``np.quantile``.
    """
    w = _weights(data, size, weights)
    values = np.asarray(data[var], dtype=np.float64)
    q_arr = np.asarray(q, dtype=np.float64)
    if np.any((q_arr < 0) | (q_arr > 1)):
        raise ValueError(f"Quantiles must be in [0, 1], got {q}")

    order = np.argsort(values)
    values, w = values[order], w[order]
    span = w.sum() - w[0]
    if span > 0:
        result = np.interp(q_arr, (np.cumsum(w) - w[0]) / span, values)
    else:
        result = np.full_like(q_arr, values[0])
    return float(result) if result.ndim == 0 else result


def declustering_curve(
    data: GeoTable,
    var: str,
    block_sizes: Sequence[float] | NDArray[np.floating],
) -> DeclusteringCurve:
    """Declustered mean for each block size."""
    block_sizes = np.asarray(block_sizes, dtype=np.float64)
    means = np.array([declustered_mean(data, var, size=b) for b in block_sizes])
    return DeclusteringCurve(block_sizes, means, float(np.mean(data[var])))
