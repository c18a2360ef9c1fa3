"""
The variography game.

A random variogram (model type, range, sill and nugget) is drawn, a
Gaussian random field is simulated with it, and the player guesses the
variogram from the picture. Guesses are scored out of 100.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import gstools as gs
import matplotlib.image as mpimg
import numpy as np

from geostats_tutorials.utils import VariogramModel, to_gstools

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)

GAME_KINDS = ("gaussian", "spherical", "exponential")


def random_variogram(rng: np.random.Generator | int | None = None) -> VariogramModel:
    """
    Draw a random single-structure variogram.

    The model type is one of Gaussian, spherical or exponential, the range
    an integer in [1, 100], the total sill in {0.1, ..., 1.0} and the
    nugget in {0.0, 0.1, ..., sill}.
    """
    rng = np.random.default_rng(rng)
    kind = GAME_KINDS[rng.integers(len(GAME_KINDS))]
    range_ = float(rng.integers(1, 101))
    sill = float(rng.integers(1, 11)) / 10
    nugget = float(rng.integers(0, int(round(sill * 10)) + 1)) / 10
    return VariogramModel.single(kind, sill=sill - nugget, ranges=range_, nugget=nugget)


class VariographyGame:
    """
    Guess the variogram behind a random field.

    Example:
        >>> game = VariographyGame(seed=2020)
        >>> field = game.new_round()
        >>> game.score(VariogramModel.gaussian(0.5, 30.0, nugget=0.1))
    """

    def __init__(self, shape: tuple[int, int] = (600, 300), seed: int | None = None):
        self.shape = tuple(shape)
        self.rng = np.random.default_rng(seed)
        self._answer: VariogramModel | None = None
        self._field: NDArray[np.float64] | None = None
        self.rounds = 0

    @property
    def answer(self) -> VariogramModel:
        if self._answer is None:
            raise RuntimeError("No round in progress. Call new_round() first.")
        return self._answer

    @property
    def field(self) -> NDArray[np.float64]:
        if self._field is None:
            raise RuntimeError("No round in progress. Call new_round() first.")
        return self._field

    def new_round(self) -> NDArray[np.float64]:
        """Draw a new variogram and simulate a field with it."""
        self._answer = random_variogram(self.rng)
        model = to_gstools(self._answer, dim=len(self.shape))
        axes = [np.arange(n, dtype=np.float64) for n in self.shape]
        srf = gs.SRF(model, mean=0.0)
        self._field = np.asarray(
            srf(axes, seed=int(self.rng.integers(2**31 - 1)), mesh_type="structured")
        )
        self.rounds += 1
        logger.debug("Round %d: %s", self.rounds, self._answer)
        return self._field

    def score(self, guess: VariogramModel) -> float:
        """
        Score a guess out of 100.

        A quarter of the points goes to the model type, and a quarter each
        to the range, total sill and nugget, decreasing linearly with the
        relative error.
        """
        answer = self.answer
        points = 25.0 if guess.kind == answer.kind else 0.0

        def closeness(guessed: float, actual: float, scale: float) -> float:
            return 25.0 * (1.0 - min(1.0, abs(guessed - actual) / scale))

        points += closeness(guess.range, answer.range, answer.range)
        points += closeness(guess.total_sill, answer.total_sill, answer.total_sill)
        points += closeness(guess.nugget, answer.nugget, answer.total_sill)
        return points


def channel_correlation(x: NDArray[np.floating], y: NDArray[np.floating]) -> float:
    """Pearson correlation between two image channels (pixel by pixel)."""
    x = np.asarray(x, dtype=np.float64).ravel()
    y = np.asarray(y, dtype=np.float64).ravel()
    if x.shape != y.shape:
        raise ValueError(f"Channels differ in size: {x.size} and {y.size}")
    return float(np.corrcoef(x, y)[0, 1])


def load_channels(path: Path | str) -> dict[str, NDArray[np.float64]]:
    """
    Read the red, green and blue channels of an image file.

    Channels are returned with values in [0, 1] and indexed ``(x, y)``.
    """
    img = np.asarray(mpimg.imread(path), dtype=np.float64)
    if img.ndim != 3 or img.shape[2] < 3:
        raise ValueError(f"Expected an RGB(A) image, got shape {img.shape}")
    if img.max() > 1.0:
        img = img / 255.0
    # imread gives rows top-down, x along columns
    img = np.transpose(img[::-1], (1, 0, 2))
    return {name: img[..., i] for i, name in enumerate(("red", "green", "blue"))}


def synthetic_channels(
    shape: tuple[int, int] = (200, 200),
    seed: int | None = None,
) -> dict[str, NDArray[np.float64]]:
    """
    RGB channels of a synthetic landscape image.

    All channels share a smooth terrain field plus channel-specific
    texture, so they are spatially and mutually correlated.
    """
    rng = np.random.default_rng(seed)
    axes = [np.arange(n, dtype=np.float64) for n in shape]

    def field(len_scale: float) -> NDArray[np.float64]:
        srf = gs.SRF(gs.Gaussian(dim=2, var=1.0, len_scale=len_scale))
        return np.asarray(srf(axes, seed=int(rng.integers(2**31 - 1)), mesh_type="structured"))

    terrain = field(25.0)
    channels = {}
    for name, weight in (("red", 0.8), ("green", 0.5), ("blue", -0.6)):
        values = weight * terrain + (1 - abs(weight)) * field(5.0)
        lo, hi = values.min(), values.max()
        channels[name] = (values - lo) / (hi - lo)
    return channels
