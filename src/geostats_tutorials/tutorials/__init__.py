"""
Runnable tutorials.

Each tutorial module exposes ``run(seed=..., **sizes)`` returning a
:class:`TutorialResult` with named values and matplotlib figures.
``TUTORIALS`` maps tutorial names to their ``run`` functions.
"""

from geostats_tutorials.tutorials import (
    anisotropic_models,
    cookie_cutter,
    declustered_statistics,
    directional_variograms,
    estimation_problems,
    gaussian_processes,
    gslib_comparison,
    image_quilting,
    parallel_simulation,
    stratigraphy,
    two_point_statistics,
    variogram_modeling,
    variography_game,
)
from geostats_tutorials.tutorials.base import TutorialResult

_MODULES = (
    estimation_problems,
    variogram_modeling,
    anisotropic_models,
    declustered_statistics,
    directional_variograms,
    two_point_statistics,
    gaussian_processes,
    image_quilting,
    cookie_cutter,
    parallel_simulation,
    stratigraphy,
    gslib_comparison,
    variography_game,
)

TUTORIALS = {module.NAME: module.run for module in _MODULES}
TITLES = {module.NAME: module.TITLE for module in _MODULES}

__all__ = ["TUTORIALS", "TITLES", "TutorialResult"]
