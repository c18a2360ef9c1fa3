"""
Two-point statistics.

For a binary rock image the variogram of the grain indicator is
``gamma(h) = P(grain at x, pore at x + h)``. Scaled by the grain
proportion it becomes the probability of leaving the grain within a
distance h, so its range estimates the grain radius. Planar variograms
along the three axes and a varioplane probe the grain shape.
"""

from __future__ import annotations

import logging

import matplotlib.pyplot as plt
import numpy as np

from geostats_tutorials.data import sample
from geostats_tutorials.images import geostats_image
from geostats_tutorials.plotting import plot_grid, plot_variogram, plot_varioplane
from geostats_tutorials.tutorials.base import TutorialResult
from geostats_tutorials.variogram import fit_variogram, planar_variogram, varioplane

logger = logging.getLogger(__name__)

NAME = "two_point_statistics"
TITLE = "Two-point statistics"

NORMALS = {"x": (1.0, 0.0, 0.0), "y": (0.0, 1.0, 0.0), "z": (0.0, 0.0, 1.0)}


def run(
    seed: int = 2021,
    shape: tuple[int, int, int] | None = None,
    nsamples: int = 20000,
    maxlag: float = 30.0,
    nlags: int = 20,
    nangles: int = 12,
    sampling_size: int | None = 2000,
) -> TutorialResult:
    """
    Estimate the grain radius of the Ketton image.

    Args:
        seed: Seed of the sampling
        shape: Image shape (default full size)
        nsamples: Number of voxels sampled from the image
        maxlag: Maximum lag of the variograms
        nlags: Number of lag bins
        nangles: Number of angles in the varioplane
        sampling_size: Subsample the points of the varioplane
    """
    image = geostats_image("Ketton", shape=shape)
    nsamples = min(nsamples, image.grid.ncells)
    samples = sample(image.to_geotable(), nsamples, seed=seed)
    proportion = float(np.mean(samples["grain"]))

    variograms, models, radii, reach = {}, {}, {}, {}
    for axis, normal in NORMALS.items():
        empirical = planar_variogram(samples, "grain", normal, nlags=nlags, maxlag=maxlag)
        model = fit_variogram(empirical, "exponential")
        variograms[axis] = empirical
        models[axis] = model
        # gamma / p is the probability of reaching the pore within h
        scaled = model.scaled(1.0 / proportion)
        radii[axis] = scaled.range
        reach[axis] = scaled.total_sill
    logger.info("Grain radius along x, y, z: %s", ", ".join(f"{r:.2f}" for r in radii.values()))

    plane = varioplane(
        samples, "grain", normal=NORMALS["x"], nangles=nangles, nlags=nlags,
        maxlag=maxlag, kind="exponential", sampling_size=sampling_size, seed=seed,
    )

    fig_image, ax = plt.subplots()
    plot_grid(image, "grain", ax=ax, cmap="gray", title="Ketton slice", zslice=0)

    fig_vario, axes = plt.subplots(1, 3, figsize=(13, 4))
    for ax, axis in zip(axes, NORMALS):
        plot_variogram(variograms[axis], models[axis], max_distance=maxlag, ax=ax, title=f"planes ⟂ {axis}")
    fig_vario.tight_layout()

    fig_plane, ax = plt.subplots(subplot_kw={"projection": "polar"})
    plot_varioplane(plane, ax=ax)

    return TutorialResult(
        NAME, TITLE,
        values={
            "samples": samples,
            "proportion": proportion,
            "variograms": variograms,
            "models": models,
            "radius_x": radii["x"],
            "radius_y": radii["y"],
            "radius_z": radii["z"],
            "mean_radius": float(np.mean(list(radii.values()))),
            "pore_probability": float(np.mean(list(reach.values()))),
            "varioplane": plane,
        },
        figures={
            "image": fig_image,
            "variograms": fig_vario,
            "varioplane": fig_plane,
        },
    )
