"""
The variography game.

Two-point statistics of an RGB landscape image come first: the
correlation between channels, h-scatter plots and the correlation of an
image with shifted copies of itself. The four elements of a variogram
(model type, range, sill and nugget) are then illustrated with a
conditional simulation, and finally a round of the game is played.
"""

from __future__ import annotations

import logging
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from geostats_tutorials.data import GridData, georef, sample
from geostats_tutorials.game import (
    VariographyGame,
    channel_correlation,
    load_channels,
    synthetic_channels,
)
from geostats_tutorials.plotting import plot_grid, plot_hscatter
from geostats_tutorials.problems import SimulationProblem, solve
from geostats_tutorials.simulation import GaussianSimulation
from geostats_tutorials.tutorials.base import TutorialResult
from geostats_tutorials.utils import CartesianGrid, VariogramModel
from geostats_tutorials.variogram import hscatter, lagged_correlation

logger = logging.getLogger(__name__)

NAME = "variography_game"
TITLE = "The variography game"


def run(
    seed: int = 2020,
    image: Path | str | None = None,
    image_shape: tuple[int, int] = (200, 200),
    nsamples: int = 5000,
    lags: tuple[float, ...] = (0.0, 5.0, 20.0),
    demo_shape: tuple[int, int] = (100, 25),
    game_shape: tuple[int, int] = (600, 300),
) -> TutorialResult:
    """
    Explore spatial correlation, then play a round of the game.

    Args:
        seed: Master seed
        image: RGB image file (default a synthetic landscape)
        image_shape: Shape of the synthetic landscape
        nsamples: Number of pixels sampled for the h-scatter plots
        lags: Lags of the h-scatter plots
        demo_shape: Grid of the conditional simulation
        game_shape: Grid of the game
    """
    rng = np.random.default_rng(seed)
    channels = load_channels(image) if image is not None else synthetic_channels(image_shape, seed=seed)
    rho = channel_correlation(channels["red"], channels["blue"])
    logger.info("Correlation between red and blue: %.2f", rho)

    pixels = georef({"X": channels["red"], "Y": channels["blue"]}).to_geotable()
    samples = sample(pixels, min(nsamples, len(pixels)), seed=seed)
    scatters = [hscatter(samples, "X", lag=lag, seed=seed) for lag in lags]
    cross = hscatter(samples, "X", "Y", seed=seed)

    shifts = np.arange(0, min(50, channels["red"].shape[0] - 1))
    correlogram = lagged_correlation(channels["red"], shifts, axis=0)

    # the four elements of a variogram on a small conditional simulation
    model = VariogramModel.spherical(0.7 - 0.1, 10.0, nugget=0.1)
    domain = CartesianGrid(demo_shape)
    locations = np.vstack([rng.integers(0, n, 100) for n in demo_shape]).astype(np.float64)
    conditioning = georef({"X": rng.standard_normal(100)}, locations)
    problem = SimulationProblem(domain, "X", 1, data=conditioning)
    demo = solve(problem, GaussianSimulation(X={"variogram": model}), seed=seed)

    game = VariographyGame(game_shape, seed=seed)
    field = game.new_round()
    guess = VariogramModel.gaussian(0.4, 50.0, nugget=0.1)

    fig_image, axes = plt.subplots(1, 2, figsize=(10, 4))
    plot_grid(GridData(CartesianGrid(channels["red"].shape), {"red": channels["red"]}), "red", ax=axes[0], cmap="Reds")
    plot_grid(GridData(CartesianGrid(channels["blue"].shape), {"blue": channels["blue"]}), "blue", ax=axes[1], cmap="Blues")
    fig_image.tight_layout()

    fig_scatter, axes = plt.subplots(1, len(scatters) + 1, figsize=(4 * (len(scatters) + 1), 4))
    for ax, result in zip(axes, scatters):
        plot_hscatter(result, ax=ax)
    plot_hscatter(cross, ax=axes[-1])
    axes[-1].set_xlabel("red")
    axes[-1].set_ylabel("blue")
    fig_scatter.tight_layout()

    fig_corr, ax = plt.subplots()
    ax.plot(shifts, correlogram, color="black")
    ax.set_xlabel("shift (pixels)")
    ax.set_ylabel("correlation")

    fig_demo, ax = plt.subplots(figsize=(8, 3))
    plot_grid(demo[0], "X", ax=ax, title="conditional simulation")

    fig_game, ax = plt.subplots(figsize=(8, 4))
    plot_grid(field, ax=ax, title=f"round {game.rounds}: guess the variogram", colorbar=False)

    return TutorialResult(
        NAME, TITLE,
        values={
            "channel_correlation": rho,
            "hscatter": scatters,
            "hscatter_correlations": [s.correlation for s in scatters],
            "cross_correlation": cross.correlation,
            "correlogram": correlogram,
            "demo_model": model,
            "demo": demo,
            "answer": game.answer,
            "guess_score": game.score(guess),
            "answer_score": game.score(game.answer),
        },
        figures={
            "image": fig_image,
            "hscatter": fig_scatter,
            "correlogram": fig_corr,
            "simulation": fig_demo,
            "game": fig_game,
        },
    )
