"""
Reproducible training images and reference fields.

The tutorials rely on a handful of classic images from the literature
(Walker Lake, Strebelle channels, Ketton rock, ellipsoids). Here they are
rendered from GSTools random fields with the same character: continuous
positive fields for Walker Lake, thresholded anisotropic fields for the
categorical images. A given name, seed and shape always produce the same
image.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING, Callable

import gstools as gs
import numpy as np

from geostats_tutorials.data import GridData
from geostats_tutorials.utils import CartesianGrid, VariogramModel, to_gstools

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)


def _gaussian_field(
    model: VariogramModel,
    shape: tuple[int, ...],
    seed: int,
) -> NDArray[np.float64]:
    srf = gs.SRF(to_gstools(model, dim=len(shape)), mean=0.0)
    axes = [np.arange(n, dtype=np.float64) for n in shape]
    return srf.structured(axes, seed=seed)


def _lognormal(field: NDArray[np.float64], sigma: float) -> NDArray[np.float64]:
    z = np.exp(sigma * field)
    return z / z.max()


def _threshold(field: NDArray[np.float64], proportion: float) -> NDArray[np.int64]:
    """Indicator of the upper ``proportion`` of the field."""
    cut = np.quantile(field, 1.0 - proportion)
    return (field > cut).astype(np.int64)


def _walker_lake(shape, seed):
    model = VariogramModel.exponential(1.0, (60.0, 25.0), angles=(160.0, 0.0, 0.0))
    return {"Z": _lognormal(_gaussian_field(model, shape, seed), 0.6)}


def _walker_lake_truth(shape, seed):
    model = VariogramModel.spherical(1.0, (45.0, 20.0), angles=(150.0, 0.0, 0.0))
    return {"Z": _lognormal(_gaussian_field(model, shape, seed), 1.0)}


def _strebelle(shape, seed):
    model = VariogramModel.gaussian(1.0, (80.0, 10.0), angles=(80.0, 0.0, 0.0))
    return {"facies": _threshold(_gaussian_field(model, shape, seed), 0.28)}


def _ellipsoids(shape, seed):
    model = VariogramModel.gaussian(1.0, (20.0, 8.0), angles=(45.0, 0.0, 0.0))
    return {"Z": _threshold(_gaussian_field(model, shape, seed), 0.35)}


def _ketton(shape, seed):
    model = VariogramModel.gaussian(1.0, (10.0, 7.0, 5.0))
    return {"grain": _threshold(_gaussian_field(model, shape, seed), 0.6)}


# name -> (renderer, default shape, default seed)
_IMAGES: dict[str, tuple[Callable, tuple[int, ...], int]] = {
    "WalkerLake": (_walker_lake, (260, 300), 1987),
    "WalkerLakeTruth": (_walker_lake_truth, (260, 300), 1988),
    "Strebelle": (_strebelle, (250, 250), 2002),
    "Ellipsoids": (_ellipsoids, (200, 200), 2010),
    "Ketton": (_ketton, (50, 50, 50), 2013),
}


def available_images() -> list[str]:
    """Names accepted by :func:`geostats_image`."""
    return sorted(_IMAGES)


@lru_cache(maxsize=16)
def _render(name: str, seed: int, shape: tuple[int, ...]) -> dict[str, NDArray]:
    renderer = _IMAGES[name][0]
    logger.debug("Rendering image %s with shape %s and seed %d", name, shape, seed)
    return renderer(shape, seed)


def geostats_image(
    name: str,
    seed: int | None = None,
    shape: tuple[int, ...] | None = None,
) -> GridData:
    """
    Load a training image.

    Args:
        name: Image name (see :func:`available_images`)
        seed: Random seed (each image has a fixed default)
        shape: Grid shape (each image has a default size)

    Returns:
        GridData on a unit grid with origin at zero

    Raises:
        KeyError: If the image name is unknown
    """
    if name not in _IMAGES:
        raise KeyError(f"Unknown image '{name}'. Available: {available_images()}")

    _, default_shape, default_seed = _IMAGES[name]
    shape = tuple(int(n) for n in (shape or default_shape))
    if len(shape) != len(default_shape):
        raise ValueError(f"Image '{name}' is {len(default_shape)}-D, got shape {shape}")
    seed = default_seed if seed is None else int(seed)

    fields = _render(name, seed, shape)
    return GridData(CartesianGrid(shape), {k: v.copy() for k, v in fields.items()})
