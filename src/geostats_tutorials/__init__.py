"""
geostats-tutorials: hands-on geostatistics workflows in Python.

The package implements the building blocks used by a series of runnable
geostatistics tutorials, on top of GSTools, NumPy, pandas and matplotlib.

Key Features:
    - Spatial data containers (point tables and grids) and random sampling
    - Problem / solver / solution pattern for estimation and simulation
    - Kriging (simple, ordinary, universal) and Gaussian simulation
    - Image quilting and cookie-cutter simulation
    - Empirical variograms, model fitting and anisotropy
    - Block declustering and stratigraphic simulation
    - Optional comparison with the GSLIB kt3d executable

Example:
    >>> from geostats_tutorials import (
    ...     CartesianGrid, EstimationProblem, Kriging, VariogramModel, read_geotable, solve,
    ... )
    >>> from geostats_tutorials.core import data_path
    >>>
    >>> data = read_geotable(data_path("precipitation.csv"))
    >>> problem = EstimationProblem(data, CartesianGrid(100, 100), "precipitation")
    >>> solver = Kriging(precipitation={"variogram": VariogramModel.gaussian(1.0, 35.0)})
    >>> mean, variance = solve(problem, solver)["precipitation"]
    >>> mean.shape
    (100, 100)

Tutorials are run with ``python -m geostats_tutorials run <name>``.
"""

__version__ = "1.0.0"

# Configuration and I/O
from geostats_tutorials.core import (
    GeoEASFile,
    TutorialWarning,
    data_path,
    gslib_available,
    read_geoeas,
    run_gslib,
    write_geoeas,
)

# Grids and variogram models
from geostats_tutorials.utils import (
    CartesianGrid,
    VariogramModel,
    VariogramType,
    anisotropic_variogram,
    ellipsoid_distance,
    evaluate_variogram,
    to_gstools,
    from_gstools,
    deutsch_to_math,
    math_to_deutsch,
    rotation_matrix_deutsch,
    gslib_to_gstools_angles,
    gstools_to_gslib_angles,
)

# Spatial data
from geostats_tutorials.data import GeoTable, GridData, georef, read_geotable, sample
from geostats_tutorials.images import available_images, geostats_image

# Problems and solvers
from geostats_tutorials.problems import (
    EstimationProblem,
    EstimationSolution,
    SimulationProblem,
    SimulationSolution,
    solve,
)
from geostats_tutorials.estimation import Kriging, predict_1d
from geostats_tutorials.simulation import CookieCutter, GaussianSimulation, ImageQuilting
from geostats_tutorials.stratigraphy import (
    Environment,
    ExponentialDuration,
    GaussianLandscapeProcess,
    LandState,
    Strata,
    StratSim,
    simulate_environment,
    voxelize,
)

# Variography and declustering
from geostats_tutorials.variogram import (
    VariogramResult,
    VarioplaneResult,
    HScatterResult,
    empirical_variogram,
    directional_variogram,
    planar_variogram,
    varioplane,
    fit_variogram,
    hscatter,
)
from geostats_tutorials.declustering import (
    declustered_mean,
    declustered_var,
    declustered_quantile,
    declustering_curve,
)

# GSLIB
from geostats_tutorials.gslib import SearchParameters, kt3d, compare_estimates

__all__ = [
    # Version
    "__version__",
    # Configuration and I/O
    "GeoEASFile",
    "TutorialWarning",
    "data_path",
    "read_geoeas",
    "gslib_available",
    "run_gslib",
    "write_geoeas",
    # Grids and variogram models
    "CartesianGrid",
    "VariogramModel",
    "VariogramType",
    "anisotropic_variogram",
    "ellipsoid_distance",
    "evaluate_variogram",
    "to_gstools",
    "from_gstools",
    "deutsch_to_math",
    "math_to_deutsch",
    "rotation_matrix_deutsch",
    "gslib_to_gstools_angles",
    "gstools_to_gslib_angles",
    # Spatial data
    "GeoTable",
    "GridData",
    "georef",
    "read_geotable",
    "sample",
    "available_images",
    "geostats_image",
    # Problems and solvers
    "EstimationProblem",
    "EstimationSolution",
    "SimulationProblem",
    "SimulationSolution",
    "solve",
    "Kriging",
    "predict_1d",
    "GaussianSimulation",
    "ImageQuilting",
    "CookieCutter",
    "Environment",
    "ExponentialDuration",
    "GaussianLandscapeProcess",
    "LandState",
    "Strata",
    "StratSim",
    "simulate_environment",
    "voxelize",
    # Variography and declustering
    "VariogramResult",
    "VarioplaneResult",
    "HScatterResult",
    "empirical_variogram",
    "directional_variogram",
    "planar_variogram",
    "varioplane",
    "fit_variogram",
    "hscatter",
    "declustered_mean",
    "declustered_var",
    "declustered_quantile",
    "declustering_curve",
    # GSLIB
    "SearchParameters",
    "kt3d",
    "compare_estimates",
]
