"""
Plotting utilities for the tutorials.

Variography:
- plot_experimental: Experimental variogram points with bin counts
- plot_model: Variogram model curve (VariogramModel or GSTools model)
- plot_variogram: Combined experimental + model overlay
- plot_varioplane: Polar plot of ranges over a plane
- plot_hscatter: h-scatter plot
- export_variogram_par: Export model to GSLIB par file format

Spatial data and solutions:
- plot_geotable, plot_grid, plot_contours, plot_blocks
- plot_solution, plot_realizations, plot_strata
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Sequence

import gstools as gs
import matplotlib.pyplot as plt
import numpy as np

from geostats_tutorials.data import GeoTable, GridData
from geostats_tutorials.declustering import partition_blocks
from geostats_tutorials.par import ParFile
from geostats_tutorials.utils import VariogramModel, evaluate_variogram

if TYPE_CHECKING:
    from matplotlib.axes import Axes
    from matplotlib.figure import Figure
    from numpy.typing import NDArray

    from geostats_tutorials.problems import EstimationSolution, SimulationSolution
    from geostats_tutorials.stratigraphy import Strata
    from geostats_tutorials.variogram import HScatterResult, VariogramResult, VarioplaneResult

DEFAULT_CMAP = "cividis"
_COLORS = ["#1f77b4", "#ff7f0e", "#2ca02c", "#d62728", "#9467bd"]
_MARKERS = ["o", "s", "^", "D", "v"]


def set_plot_defaults(
    figsize: tuple[float, float] = (7.0, 4.0),
    dpi: int = 100,
    cmap: str = DEFAULT_CMAP,
) -> None:
    """Set matplotlib defaults used by the tutorial figures."""
    plt.rcParams.update({
        "figure.figsize": figsize,
        "figure.dpi": dpi,
        "image.cmap": cmap,
        "axes.grid": False,
    })


def _new_axes(ax: Axes | None, **kwargs) -> Axes:
    if ax is None:
        _, ax = plt.subplots(**kwargs)
    return ax


def _direction_label(result: VariogramResult) -> str:
    if result.direction is None:
        return "omnidirectional"
    azimuth = result.azimuth
    if azimuth is None:
        return f"direction {result.direction}"
    return f"azimuth {azimuth:.0f}°"


# ============================================================================
# Variography
# ============================================================================

def plot_experimental(
    results: list[VariogramResult] | VariogramResult,
    ax: Axes | None = None,
    show_bins: bool = True,
    labels: list[str] | None = None,
    **kwargs,
) -> Axes:
    """
    Plot experimental variogram points.

    Args:
        results: One or more VariogramResult
        ax: Matplotlib axes. If None, creates new figure.
        show_bins: Draw bin counts as bars, scaled to the variogram axis
        labels: Labels for the legend (default from the direction)
        **kwargs: Additional arguments passed to ``ax.scatter``

    Returns:
        Matplotlib Axes object
    """
    ax = _new_axes(ax)
    if not isinstance(results, list):
        results = [results]

    gamma_max = max(float(np.max(r.gamma[r.valid], initial=0.0)) for r in results) or 1.0

    for i, result in enumerate(results):
        color = _COLORS[i % len(_COLORS)]
        label = labels[i] if labels is not None and i < len(labels) else _direction_label(result)
        valid = result.valid

        if show_bins and valid.any():
            width = np.diff(result.lag_distances).mean() * 0.8 if len(result.lag_distances) > 1 else 1.0
            heights = 0.3 * gamma_max * result.num_pairs / max(result.num_pairs.max(), 1)
            ax.bar(result.lag_distances, heights, width=width, color=color, alpha=0.15)

        ax.scatter(
            result.lag_distances[valid], result.gamma[valid],
            s=40, c=color, marker=_MARKERS[i % len(_MARKERS)], label=label,
            edgecolors="white", linewidths=0.5,
            **kwargs
        )

    ax.set_xlabel("lag")
    ax.set_ylabel("γ(h)")
    ax.set_xlim(left=0)
    ax.set_ylim(bottom=0)
    if len(results) > 1 or labels is not None:
        ax.legend()
    return ax


def _model_curve(
    model: VariogramModel | gs.CovModel, distances: NDArray[np.float64]
) -> tuple[NDArray[np.float64], float, float]:
    """Gamma values, nugget and total sill of either model flavour."""
    if isinstance(model, gs.CovModel):
        return model.variogram(distances), float(model.nugget), float(model.sill)
    return evaluate_variogram(model, distances), model.nugget, model.total_sill


def plot_model(
    model: VariogramModel | gs.CovModel,
    max_distance: float,
    n_points: int = 200,
    ax: Axes | None = None,
    color: str = "black",
    label: str | None = "model",
    show_nugget: bool = True,
    show_sill: bool = True,
    show_range: bool = False,
    **kwargs,
) -> Axes:
    """
    Plot a variogram model curve.

    Args:
        model: VariogramModel or GSTools covariance model
        max_distance: Maximum distance to plot to
        n_points: Number of points for smooth curve
        ax: Matplotlib axes. If None, creates new figure.
        color: Line color
        label: Label for legend
        show_nugget: Show horizontal line at the nugget
        show_sill: Show horizontal line at the total sill
        show_range: Show vertical line at the (major) range
        **kwargs: Additional arguments passed to ``ax.plot``

    Returns:
        Matplotlib Axes object
    """
    ax = _new_axes(ax)

    # Start just after zero so the nugget discontinuity shows
    distances = np.concatenate(([0.0], np.linspace(1e-9, max_distance, n_points)))
    gamma, nugget, total_sill = _model_curve(model, distances)
    gamma[0] = 0.0
    ax.plot(distances, gamma, color=color, linewidth=2.0, label=label, **kwargs)

    if show_nugget and nugget > 0:
        ax.axhline(nugget, color="orange", linestyle=":", linewidth=1, label=f"nugget = {nugget:.3g}")
    if show_sill:
        ax.axhline(total_sill, color="brown", linestyle="--", linewidth=1, label=f"sill = {total_sill:.3g}")
    if show_range:
        major = model.len_scale if isinstance(model, gs.CovModel) else model.range
        ax.axvline(major, color="grey", linestyle="--", linewidth=1, label=f"range = {major:.3g}")

    ax.set_xlabel("lag")
    ax.set_ylabel("γ(h)")
    ax.set_xlim(left=0)
    ax.set_ylim(bottom=0)
    return ax


def plot_variogram(
    experimental: list[VariogramResult] | VariogramResult | None = None,
    model: VariogramModel | gs.CovModel | None = None,
    max_distance: float | None = None,
    ax: Axes | None = None,
    title: str | None = None,
    show_bins: bool = True,
) -> Axes:
    """
    Experimental variogram(s) with a model overlay.

    If max_distance is None it is the largest experimental lag, or 1.5
    times the model range when there is no experimental variogram.
    """
    ax = _new_axes(ax)

    if max_distance is None:
        if experimental is not None:
            results = experimental if isinstance(experimental, list) else [experimental]
            max_distance = max(float(r.lag_distances.max()) for r in results)
        elif model is not None:
            major = model.len_scale if isinstance(model, gs.CovModel) else model.range
            max_distance = 1.5 * major if major > 0 else 1.0
        else:
            max_distance = 1.0

    if model is not None:
        plot_model(model, max_distance, ax=ax)
    if experimental is not None:
        plot_experimental(experimental, ax=ax, show_bins=show_bins)

    if title:
        ax.set_title(title)
    ax.legend()
    return ax


def export_variogram_par(model: VariogramModel, filepath: Path | str) -> Path:
    """
    Export a variogram model as a GSLIB par file snippet.

    Output format matches the GSLIB variogram block of a parameter file::

        nst nugget
        type sill ang1 ang2 ang3
        a_hmax a_hmin a_vert
    """
    par = ParFile().comment("Variogram model exported from geostats-tutorials")
    return par.variogram(model).save(filepath)


def plot_varioplane(result: VarioplaneResult, ax: Axes | None = None, color: str = "black") -> Axes:
    """Polar plot of fitted ranges, mirrored to cover the full circle."""
    if ax is None:
        _, ax = plt.subplots(subplot_kw={"projection": "polar"})

    angles = np.concatenate((result.angles, result.angles + np.pi, result.angles[:1]))
    ranges = np.concatenate((result.ranges, result.ranges, result.ranges[:1]))
    ax.plot(angles, ranges, color=color)
    ax.fill(angles, np.nan_to_num(ranges), color=color, alpha=0.1)
    ax.set_title("ranges")
    return ax


def plot_hscatter(result: HScatterResult, ax: Axes | None = None, **kwargs) -> Axes:
    """h-scatter plot with the identity line."""
    ax = _new_axes(ax)
    ax.scatter(result.head, result.tail, s=2, alpha=0.5, **kwargs)

    if len(result.head):
        lo = min(result.head.min(), result.tail.min())
        hi = max(result.head.max(), result.tail.max())
        ax.plot([lo, hi], [lo, hi], color="grey", linestyle="--", linewidth=1)

    ax.set_xlabel("head")
    ax.set_ylabel("tail")
    ax.set_title(f"lag = {result.lag:g}, ρ = {result.correlation:.2f}")
    return ax


# ============================================================================
# Spatial data
# ============================================================================

def plot_geotable(
    data: GeoTable,
    var: str,
    ax: Axes | None = None,
    cmap: str = DEFAULT_CMAP,
    s: float = 10,
    colorbar: bool = True,
) -> Axes:
    """Scatter plot of points colored by a variable (first two coordinates)."""
    ax = _new_axes(ax)
    coords = data.coords
    y = coords[:, 1] if data.dim > 1 else np.zeros(len(data))
    sc = ax.scatter(coords[:, 0], y, c=data[var], cmap=cmap, s=s)
    if colorbar:
        ax.figure.colorbar(sc, ax=ax, label=var)
    ax.set_xlabel(data.coord_names[0])
    if data.dim > 1:
        ax.set_ylabel(data.coord_names[1])
        ax.set_aspect("equal")
    return ax


def _as_image(
    data: GridData | NDArray, var: str | None, zslice: int
) -> tuple[NDArray, tuple[float, float, float, float]]:
    if isinstance(data, GridData):
        values = data[var] if var is not None else data[data.variables[0]]
        grid = data.grid
        lo, hi = grid.bounds()
        half = np.array(grid.spacing) / 2
        extent = (lo[0] - half[0], hi[0] + half[0], lo[1] - half[1], hi[1] + half[1]) if grid.dim > 1 else None
    else:
        values = np.asarray(data)
        extent = None
    if values.ndim == 3:
        values = values[:, :, zslice]
    if values.ndim == 1:
        values = values[:, np.newaxis]
    if extent is None:
        extent = (-0.5, values.shape[0] - 0.5, -0.5, values.shape[1] - 0.5)
    return values, extent


def plot_grid(
    data: GridData | NDArray,
    var: str | None = None,
    ax: Axes | None = None,
    cmap: str = DEFAULT_CMAP,
    clim: tuple[float, float] | None = None,
    title: str | None = None,
    zslice: int = 0,
    colorbar: bool = True,
) -> Axes:
    """
    Map of a gridded variable.

    Arrays are indexed ``(i, j)`` along ``(x, y)``; 3-D grids show the
    horizontal slice ``zslice``.
    """
    ax = _new_axes(ax)
    values, extent = _as_image(data, var, zslice)
    vmin, vmax = clim if clim is not None else (None, None)
    im = ax.imshow(values.T, origin="lower", extent=extent, cmap=cmap, vmin=vmin, vmax=vmax)
    if colorbar:
        ax.figure.colorbar(im, ax=ax)
    if title:
        ax.set_title(title)
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    return ax


def plot_contours(
    data: GridData | NDArray,
    var: str | None = None,
    levels: int | Sequence[float] = 10,
    ax: Axes | None = None,
    cmap: str = DEFAULT_CMAP,
    zslice: int = 0,
) -> Axes:
    """Filled contour map of a gridded variable."""
    ax = _new_axes(ax)
    values, (x0, x1, y0, y1) = _as_image(data, var, zslice)
    nx, ny = values.shape
    x = np.linspace(x0, x1, nx + 1)[:-1] + (x1 - x0) / nx / 2
    y = np.linspace(y0, y1, ny + 1)[:-1] + (y1 - y0) / ny / 2
    cs = ax.contourf(x, y, values.T, levels=levels, cmap=cmap)
    ax.contour(x, y, values.T, levels=cs.levels, colors="k", linewidths=0.3)
    ax.figure.colorbar(cs, ax=ax)
    ax.set_aspect("equal")
    return ax


def plot_blocks(
    data: GeoTable,
    size: float | Sequence[float],
    ax: Axes | None = None,
) -> Axes:
    """Points colored by declustering block, with the block edges."""
    ax = _new_axes(ax)
    labels = partition_blocks(data, size)
    coords = data.coords
    ax.scatter(coords[:, 0], coords[:, 1], c=labels % 20, cmap="tab20", s=12)

    lo, hi = data.bounding_box()
    sizes = np.broadcast_to(np.asarray(size, dtype=np.float64), (data.dim,))
    for edge in np.arange(lo[0], hi[0] + sizes[0], sizes[0]):
        ax.axvline(edge, color="grey", linewidth=0.5)
    for edge in np.arange(lo[1], hi[1] + sizes[1], sizes[1]):
        ax.axhline(edge, color="grey", linewidth=0.5)

    ax.set_xlabel(data.coord_names[0])
    ax.set_ylabel(data.coord_names[1])
    ax.set_aspect("equal")
    return ax


# ============================================================================
# Solutions
# ============================================================================

def plot_solution(solution: EstimationSolution, var: str, cmap: str = DEFAULT_CMAP) -> Figure:
    """Kriging mean and variance side by side."""
    mean, variance = solution[var]
    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(10, 4))
    plot_grid(GridData(solution.domain, {var: mean}), var, ax=ax1, cmap=cmap, title=f"{var} mean")
    plot_grid(GridData(solution.domain, {var: variance}), var, ax=ax2, cmap=cmap, title=f"{var} variance")
    fig.tight_layout()
    return fig


def plot_realizations(
    solution: SimulationSolution,
    var: str,
    n: int = 3,
    cmap: str = DEFAULT_CMAP,
    clim: tuple[float, float] | None = None,
) -> Figure:
    """The first n realizations of a variable in a row."""
    n = min(n, len(solution))
    fig, axes = plt.subplots(1, n, figsize=(4 * n, 4), squeeze=False)
    reals = solution[var]
    for i, ax in enumerate(axes[0]):
        plot_grid(reals[i], ax=ax, cmap=cmap, clim=clim, title=f"realization {i + 1}", colorbar=False)
    fig.tight_layout()
    return fig


def plot_strata(
    strata: Strata,
    section: int = 0,
    axis: int = 0,
    ax: Axes | None = None,
) -> Axes:
    """Horizons along a vertical cross-section."""
    ax = _new_axes(ax)
    horizons = np.take(strata.horizons, section, axis=axis + 1)
    x = np.arange(horizons.shape[1])
    colors = plt.get_cmap(DEFAULT_CMAP)(np.linspace(0, 1, max(strata.nlayers, 1)))
    for k in range(strata.nlayers):
        ax.fill_between(x, horizons[k], horizons[k + 1], color=colors[k], linewidth=0)
    for h in horizons:
        ax.plot(x, h, color="black", linewidth=0.5)
    ax.set_xlabel("y" if axis == 0 else "x")
    ax.set_ylabel("elevation")
    ax.set_title(f"{strata.stacking} strata")
    return ax
