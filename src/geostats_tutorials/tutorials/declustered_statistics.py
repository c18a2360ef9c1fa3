"""
Declustered statistics.

Gold grades are sampled preferentially where they are high, so naive
sample statistics overestimate the mean. Block declustering weights each
sample by the inverse of the number of samples in its block and brings
the estimates back towards the truth.
"""

from __future__ import annotations

import logging

import matplotlib.pyplot as plt
import numpy as np

from geostats_tutorials.data import GeoTable, GridData, sample
from geostats_tutorials.declustering import (
    block_weights,
    declustered_mean,
    declustered_quantile,
    declustered_var,
    declustering_curve,
)
from geostats_tutorials.images import geostats_image
from geostats_tutorials.plotting import plot_blocks, plot_geotable, plot_grid
from geostats_tutorials.tutorials.base import TutorialResult

logger = logging.getLogger(__name__)

NAME = "declustered_statistics"
TITLE = "Declustered statistics"

QUANTILES = (0.25, 0.5, 0.75)


def run(
    seed: int = 2020,
    nsamples: int = 50,
    shape: tuple[int, int] | None = None,
    block_size: float = 50.0,
    nsizes: int = 100,
    max_block_size: float = 120.0,
) -> TutorialResult:
    """
    Compare naive and declustered statistics of preferential samples.

    Args:
        seed: Seed of the preferential sampling
        nsamples: Number of samples
        shape: Image shape (default full size)
        block_size: Block size of the declustered statistics
        nsizes: Number of block sizes on the declustering curve
        max_block_size: Largest block size on the declustering curve
    """
    truth = geostats_image("WalkerLakeTruth", shape=shape)
    image = GridData(truth.grid, {"Au": truth["Z"]})
    samples = sample(image.to_geotable(), nsamples, weights="Au", seed=seed)

    true_mean = float(np.mean(image["Au"]))
    naive_mean = float(np.mean(samples["Au"]))
    mean = declustered_mean(samples, "Au", size=block_size)
    logger.info("Mean: true %.4f, naive %.4f, declustered %.4f", true_mean, naive_mean, mean)

    curve = declustering_curve(samples, "Au", np.linspace(1.0, max_block_size, nsizes))
    volume = samples.volume()

    weights = block_weights(samples, block_size)
    weighted = GeoTable(samples.frame.assign(weight=weights), samples.coord_names)

    fig_data, (ax1, ax2) = plt.subplots(1, 2, figsize=(10, 4))
    plot_grid(image, "Au", ax=ax1, title="Au")
    plot_geotable(samples, "Au", ax=ax2)
    ax2.set_title("preferential samples")
    fig_data.tight_layout()

    fig_blocks, ax = plt.subplots()
    plot_blocks(samples, block_size, ax=ax)
    ax.set_title(f"blocks of size {block_size:g}")

    fig_weights, ax = plt.subplots()
    plot_geotable(weighted, "weight", ax=ax)
    ax.set_title("declustering weights")

    fig_curve, ax = plt.subplots()
    ax.plot(curve.block_sizes, curve.means, color="black", label="declustered")
    ax.axhline(curve.naive_mean, color="grey", linestyle="--", label="naive")
    ax.axhline(true_mean, color="tab:green", linestyle=":", label="true")
    ax.set_xlabel("block size")
    ax.set_ylabel("mean Au")
    ax.legend()

    return TutorialResult(
        NAME, TITLE,
        values={
            "samples": samples,
            "true_mean": true_mean,
            "naive_mean": naive_mean,
            "declustered_mean": mean,
            "naive_var": float(np.var(samples["Au"])),
            "declustered_var": declustered_var(samples, "Au", size=block_size),
            "naive_quantiles": np.quantile(samples["Au"], QUANTILES),
            "declustered_quantiles": declustered_quantile(samples, "Au", QUANTILES, size=block_size),
            "curve": curve,
            "optimal_block_size": curve.optimal_block_size(),
            "volume": volume,
            "volume_difference": (naive_mean - mean) * volume,
        },
        figures={
            "data": fig_data,
            "blocks": fig_blocks,
            "weights": fig_weights,
            "curve": fig_curve,
        },
    )
