"""
Utility classes and functions for geostats-tutorials.

- CartesianGrid: Regular grid definition (1-D to 3-D)
- VariogramModel: Nested variogram model (GSLIB conventions)
- Variogram evaluation, isotropic and anisotropic
- Conversion of variogram models to and from GSTools covariance models
- Rotation conventions and ellipsoid distances
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Callable, Sequence

import gstools as gs
import numpy as np
from scipy.spatial.transform import Rotation

from geostats_tutorials.par import validate_positive

if TYPE_CHECKING:
    from numpy.typing import NDArray


# ============================================================================
# Grids
# ============================================================================

@dataclass(init=False)
class CartesianGrid:
    """
    Regular Cartesian grid.

    Cells are indexed ``(i, j, k)`` along ``(x, y, z)``, so arrays living
    on the grid have shape ``dims``. The origin is the centre of the first
    cell, as in GSLIB (``xmn, ymn, zmn``).

    Examples:
        >>> CartesianGrid(100, 100)
        >>> CartesianGrid((100, 100, 1), origin=(0.5, 0.5, 2200.5))

    Attributes:
        dims: Number of cells along each axis
        origin: Coordinates of the first cell centre (default zeros)
        spacing: Cell sizes (default ones)
    """

    dims: tuple[int, ...]
    origin: tuple[float, ...]
    spacing: tuple[float, ...]

    def __init__(
        self,
        *dims: int | Sequence[int],
        origin: Sequence[float] | None = None,
        spacing: Sequence[float] | None = None,
    ):
        if len(dims) == 1 and not np.isscalar(dims[0]):
            dims = tuple(dims[0])
        if not 1 <= len(dims) <= 3:
            raise ValueError(f"Grids must have 1 to 3 dimensions, got {len(dims)}")

        self.dims = tuple(int(n) for n in dims)
        for n in self.dims:
            validate_positive(n, "number of cells")

        ndim = len(self.dims)
        self.origin = tuple(float(o) for o in (origin if origin is not None else [0.0] * ndim))
        self.spacing = tuple(float(s) for s in (spacing if spacing is not None else [1.0] * ndim))

        if len(self.origin) != ndim or len(self.spacing) != ndim:
            raise ValueError(
                f"origin and spacing must have {ndim} entries, "
                f"got {len(self.origin)} and {len(self.spacing)}"
            )
        for s in self.spacing:
            validate_positive(s, "spacing")

    @classmethod
    def from_gslib(
        cls,
        nx: int, xmn: float, xsiz: float,
        ny: int = 1, ymn: float = 0.0, ysiz: float = 1.0,
        nz: int = 1, zmn: float = 0.0, zsiz: float = 1.0,
    ) -> "CartesianGrid":
        """Create a 3-D grid from GSLIB ``n, mn, siz`` triples."""
        return cls((nx, ny, nz), origin=(xmn, ymn, zmn), spacing=(xsiz, ysiz, zsiz))

    def to_gslib(self) -> list[tuple[int, float, float]]:
        """GSLIB ``(n, mn, siz)`` triples for x, y and z (padded to 3-D)."""
        triples = list(zip(self.dims, self.origin, self.spacing))
        while len(triples) < 3:
            triples.append((1, 0.0, 1.0))
        return triples

    @property
    def dim(self) -> int:
        """Number of spatial dimensions."""
        return len(self.dims)

    @property
    def shape(self) -> tuple[int, ...]:
        """Array shape of fields living on the grid."""
        return self.dims

    @property
    def ncells(self) -> int:
        """Total number of cells."""
        return int(np.prod(self.dims))

    @property
    def volume(self) -> float:
        """Volume (area, length) covered by the cells."""
        return float(np.prod(np.array(self.dims) * np.array(self.spacing)))

    def axes(self) -> list[NDArray[np.float64]]:
        """Cell-centre coordinates along each axis."""
        return [
            o + np.arange(n) * s
            for n, o, s in zip(self.dims, self.origin, self.spacing)
        ]

    def points(self) -> NDArray[np.float64]:
        """
        Cell-centre coordinates of every cell.

        Returns:
            Array of shape (dim, ncells), ordered like ``field.ravel()``
        """
        mesh = np.meshgrid(*self.axes(), indexing="ij")
        return np.stack([m.ravel() for m in mesh])

    def bounds(self) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Minimum and maximum cell-centre coordinates."""
        lo = np.array(self.origin)
        hi = lo + (np.array(self.dims) - 1) * np.array(self.spacing)
        return lo, hi

    def contains_point(self, point: Sequence[float]) -> bool:
        """Check if a point falls within the grid extent."""
        point = np.asarray(point, dtype=np.float64)
        lo, hi = self.bounds()
        half = np.array(self.spacing) / 2
        return bool(np.all(point >= lo - half) and np.all(point <= hi + half))

    def point_to_index(self, point: Sequence[float]) -> tuple[int, ...] | None:
        """
        Convert point coordinates to grid indices.

        Returns:
            Tuple of cell indices, or None if outside grid
        """
        if not self.contains_point(point):
            return None

        point = np.asarray(point, dtype=np.float64)
        idx = np.rint((point - np.array(self.origin)) / np.array(self.spacing)).astype(int)
        idx = np.clip(idx, 0, np.array(self.dims) - 1)
        return tuple(int(i) for i in idx)


# ============================================================================
# Variogram models
# ============================================================================

class VariogramType(IntEnum):
    """GSLIB variogram model types."""

    SPHERICAL = 1
    EXPONENTIAL = 2
    GAUSSIAN = 3
    POWER = 4
    HOLE_EFFECT = 5


def _as_ranges(ranges: float | Sequence[float]) -> tuple[float, float, float]:
    if np.isscalar(ranges):
        return (float(ranges),) * 3
    ranges = tuple(float(r) for r in ranges)
    if len(ranges) == 1:
        ranges = ranges * 3
    elif len(ranges) == 2:
        ranges = (ranges[0], ranges[1], ranges[1])
    if len(ranges) != 3:
        raise ValueError(f"Expected 1 to 3 ranges, got {len(ranges)}")
    return ranges


def _as_type(kind: str | int | VariogramType) -> VariogramType:
    if isinstance(kind, str):
        try:
            return VariogramType[kind.upper()]
        except KeyError:
            names = [t.name.lower() for t in VariogramType]
            raise KeyError(f"Unknown variogram type '{kind}'. Available: {names}") from None
    return VariogramType(int(kind))


@dataclass
class VariogramModel:
    """
    Nested variogram model: a nugget plus one or more structures.

    A variogram model consists of a nugget effect plus one or more
    nested structures (spherical, exponential, Gaussian, etc.).
    Each structure's sill is its contribution, and its ranges are
    practical ranges along the major, minor and vertical axes.

    Angles follow GSLIB/Deutsch convention:
    - azimuth: Clockwise from north (0-360 degrees)
    - dip: Down from horizontal (-90 to 90 degrees)
    - rake: Rotation about the major axis (-90 to 90 degrees)
    """

    nugget: float = 0.0
    structures: list[dict] = field(default_factory=list)

    @classmethod
    def single(
        cls,
        kind: str | int | VariogramType,
        sill: float = 1.0,
        ranges: float | Sequence[float] = 1.0,
        nugget: float = 0.0,
        angles: tuple[float, float, float] = (0.0, 0.0, 0.0),
    ) -> "VariogramModel":
        """Create a single-structure model of the given type."""
        return cls(nugget=nugget).add_structure(_as_type(kind), sill, ranges, angles)

    @classmethod
    def spherical(
        cls,
        sill: float = 1.0,
        ranges: float | Sequence[float] = 1.0,
        nugget: float = 0.0,
        angles: tuple[float, float, float] = (0.0, 0.0, 0.0),
    ) -> "VariogramModel":
        """Create a simple spherical variogram model."""
        return cls.single(VariogramType.SPHERICAL, sill, ranges, nugget, angles)

    @classmethod
    def exponential(
        cls,
        sill: float = 1.0,
        ranges: float | Sequence[float] = 1.0,
        nugget: float = 0.0,
        angles: tuple[float, float, float] = (0.0, 0.0, 0.0),
    ) -> "VariogramModel":
        """Create a simple exponential variogram model."""
        return cls.single(VariogramType.EXPONENTIAL, sill, ranges, nugget, angles)

    @classmethod
    def gaussian(
        cls,
        sill: float = 1.0,
        ranges: float | Sequence[float] = 1.0,
        nugget: float = 0.0,
        angles: tuple[float, float, float] = (0.0, 0.0, 0.0),
    ) -> "VariogramModel":
        """Create a simple Gaussian variogram model."""
        return cls.single(VariogramType.GAUSSIAN, sill, ranges, nugget, angles)

    def add_structure(
        self,
        vtype: int | VariogramType,
        sill: float,
        ranges: float | Sequence[float],
        angles: tuple[float, float, float] = (0.0, 0.0, 0.0),
    ) -> "VariogramModel":
        """Add a nested structure to the model."""
        self.structures.append({
            "type": int(vtype),
            "sill": float(sill),
            "ranges": _as_ranges(ranges),
            "angles": tuple(float(a) for a in angles),
        })
        return self

    @property
    def total_sill(self) -> float:
        """Total sill (nugget + all structure contributions)."""
        return self.nugget + sum(s["sill"] for s in self.structures)

    @property
    def range(self) -> float:
        """Major range of the first structure (0 for a pure nugget)."""
        if not self.structures:
            return 0.0
        return float(self.structures[0]["ranges"][0])

    @property
    def kind(self) -> str:
        """Lower-case name of the first structure type."""
        if not self.structures:
            return "nugget"
        return VariogramType(int(self.structures[0]["type"])).name.lower()

    def scaled(self, factor: float) -> "VariogramModel":
        """Return a copy with nugget and sills multiplied by factor."""
        return VariogramModel(
            nugget=self.nugget * factor,
            structures=[{**s, "sill": s["sill"] * factor} for s in self.structures],
        )

    def __call__(self, h: float | NDArray[np.floating]) -> NDArray[np.float64]:
        return evaluate_variogram(self, np.asarray(h, dtype=np.float64))


def _structure_gamma(vtype: int, sill: float, h: NDArray[np.float64]) -> NDArray[np.float64]:
    """Evaluate one structure at distances normalized by its range."""
    if vtype == VariogramType.SPHERICAL:
        return np.where(h < 1.0, sill * (1.5 * h - 0.5 * h**3), sill)
    if vtype == VariogramType.EXPONENTIAL:
        return sill * (1.0 - np.exp(-3.0 * h))
    if vtype == VariogramType.GAUSSIAN:
        return sill * (1.0 - np.exp(-3.0 * h**2))
    if vtype == VariogramType.POWER:
        # Unbounded, sill acts as the coefficient
        return sill * h
    if vtype == VariogramType.HOLE_EFFECT:
        return sill * (1.0 - np.cos(np.pi * h))
    return np.zeros_like(h)


def evaluate_variogram(
    model: VariogramModel,
    distances: NDArray[np.floating],
) -> NDArray[np.float64]:
    """
    Evaluate variogram model at given distances.

    This computes the theoretical variogram (gamma) values for an isotropic
    evaluation along the major axis. For anisotropic models, use
    :func:`evaluate_variogram_vector`.

    Args:
        model: Variogram model
        distances: Array of lag distances to evaluate

    Returns:
        Array of gamma values at each distance
    """
    distances = np.asarray(distances, dtype=np.float64)
    gamma = np.full_like(distances, model.nugget)

    for structure in model.structures:
        a = structure["ranges"][0]
        if a <= 0:
            continue
        gamma = gamma + _structure_gamma(int(structure["type"]), structure["sill"], distances / a)

    return gamma


def evaluate_variogram_vector(
    model: VariogramModel,
    lags: NDArray[np.floating],
) -> NDArray[np.float64]:
    """
    Evaluate an (anisotropic) variogram model for lag vectors.

    Args:
        model: Variogram model
        lags: Array of shape (n, d) with d = 1, 2 or 3

    Returns:
        Array of n gamma values
    """
    lags = np.atleast_2d(np.asarray(lags, dtype=np.float64))
    lags3 = np.zeros((lags.shape[0], 3))
    lags3[:, :lags.shape[1]] = lags

    gamma = np.full(lags.shape[0], model.nugget)
    for structure in model.structures:
        a1, a2, a3 = structure["ranges"]
        if min(a1, a2, a3) <= 0:
            continue
        # Columns of R are the minor, major and vertical axes in world coordinates
        local = lags3 @ rotation_matrix_deutsch(*structure["angles"])
        h = np.sqrt((local[:, 1] / a1) ** 2 + (local[:, 0] / a2) ** 2 + (local[:, 2] / a3) ** 2)
        gamma = gamma + _structure_gamma(int(structure["type"]), structure["sill"], h)

    return gamma


def variogram_between(
    model: VariogramModel,
    a: Sequence[float],
    b: Sequence[float],
) -> float:
    """Variogram value between two locations."""
    lag = np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)
    return float(evaluate_variogram_vector(model, lag[np.newaxis, :])[0])


# ============================================================================
# GSTools conversion
# ============================================================================

# Rescale factors making GSTools' len_scale equal to the practical range
_GSTOOLS_MODELS = {
    VariogramType.SPHERICAL: (gs.Spherical, 1.0),
    VariogramType.EXPONENTIAL: (gs.Exponential, 3.0),
    VariogramType.GAUSSIAN: (gs.Gaussian, float(np.sqrt(3.0))),
}


def to_gstools(model: VariogramModel, dim: int = 2) -> gs.CovModel:
    """
    Convert a single-structure variogram model to a GSTools covariance model.

    Args:
        model: Variogram model with exactly one spherical, exponential or
               Gaussian structure
        dim: Spatial dimension of the covariance model

    Returns:
        GSTools CovModel with ``len_scale`` equal to the major range

    Raises:
        ValueError: For nested models or unsupported structure types
    """
    if len(model.structures) != 1:
        raise ValueError(
            f"Only single-structure models convert to GSTools, got {len(model.structures)}"
        )

    structure = model.structures[0]
    vtype = VariogramType(int(structure["type"]))
    if vtype not in _GSTOOLS_MODELS:
        raise ValueError(f"Variogram type {vtype.name} has no GSTools counterpart")

    cls, rescale = _GSTOOLS_MODELS[vtype]
    a1, a2, a3 = structure["ranges"]

    if dim == 1:
        anis, angles = 1.0, 0.0
    elif dim == 2:
        anis, angles = a2 / a1, np.radians(deutsch_to_math(*structure["angles"])[0])
    else:
        anis, angles = [a2 / a1, a3 / a1], gslib_to_gstools_angles(*structure["angles"])

    return cls(
        dim=dim,
        var=structure["sill"],
        len_scale=a1,
        nugget=model.nugget,
        anis=anis,
        angles=angles,
        rescale=rescale,
    )


def from_gstools(cov: gs.CovModel) -> VariogramModel:
    """
    Convert a GSTools spherical, exponential or Gaussian model to a VariogramModel.

    Raises:
        ValueError: For covariance models without a GSLIB counterpart
    """
    for vtype, (cls, rescale) in _GSTOOLS_MODELS.items():
        if type(cov) is cls:
            break
    else:
        raise ValueError(f"GSTools model {type(cov).__name__} has no GSLIB counterpart")

    a1 = float(cov.len_scale) * rescale / float(cov.rescale)
    anis = np.atleast_1d(cov.anis)
    angles = np.degrees(np.atleast_1d(cov.angles))

    if cov.dim == 1:
        ranges = (a1, a1, a1)
        deutsch = (0.0, 0.0, 0.0)
    elif cov.dim == 2:
        ranges = (a1, a1 * anis[0], a1 * anis[0])
        deutsch = math_to_deutsch(angles[0], 0.0, 0.0)
    else:
        ranges = (a1, a1 * anis[0], a1 * anis[1])
        deutsch = gstools_to_gslib_angles(np.atleast_1d(cov.angles))

    azimuth, dip, rake = deutsch
    return VariogramModel(nugget=float(cov.nugget)).add_structure(
        vtype, float(cov.var), ranges, (azimuth % 360.0, dip, rake)
    )


def as_covmodel(variogram: VariogramModel | gs.CovModel, dim: int) -> gs.CovModel:
    """Accept either model flavour and return a GSTools model of dimension dim."""
    if isinstance(variogram, gs.CovModel):
        if variogram.dim != dim:
            raise ValueError(f"Covariance model has dim={variogram.dim}, expected {dim}")
        return variogram
    return to_gstools(variogram, dim=dim)


def as_variogram(variogram: VariogramModel | gs.CovModel) -> VariogramModel:
    """Accept either model flavour and return a VariogramModel."""
    if isinstance(variogram, VariogramModel):
        return variogram
    return from_gstools(variogram)


# ============================================================================
# Rotation Convention Conversions
# ============================================================================

def deutsch_to_math(
    azimuth: float, dip: float, rake: float
) -> tuple[float, float, float]:
    """
    Convert Deutsch convention angles to mathematical convention.

    Deutsch (GSLIB):
    - azimuth: Clockwise from north (0-360)
    - dip: Down from horizontal (-90 to 90)
    - rake: Rotation about the major axis

    Mathematical:
    - alpha: Counter-clockwise from east
    - beta: Up from horizontal
    - gamma: Rotation about the major axis
    """
    alpha = 90.0 - azimuth
    beta = -dip
    gamma = rake
    return (alpha, beta, gamma)


def math_to_deutsch(
    alpha: float, beta: float, gamma: float
) -> tuple[float, float, float]:
    """
    Convert mathematical convention to Deutsch (GSLIB) convention.

    See deutsch_to_math for convention definitions.
    """
    azimuth = 90.0 - alpha
    dip = -beta
    rake = gamma
    return (azimuth, dip, rake)


def rotation_matrix_deutsch(
    azimuth: float, dip: float, rake: float
) -> NDArray[np.float64]:
    """
    Compute 3D rotation matrix from Deutsch convention angles.

    The columns of the matrix are the minor horizontal, major and vertical
    axes of the anisotropy ellipsoid in world (east, north, up) coordinates.
    World lag vectors are taken to the ellipsoid frame with ``h @ R``.

    Args:
        azimuth: Clockwise from north (degrees)
        dip: Down from horizontal (degrees)
        rake: Rotation about the major axis (degrees)

    Returns:
        3x3 rotation matrix
    """
    az = np.radians(azimuth)
    dp = np.radians(dip)
    rk = np.radians(rake)

    # Clockwise azimuth is a negative rotation about z
    rz = np.array([
        [np.cos(az), np.sin(az), 0.0],
        [-np.sin(az), np.cos(az), 0.0],
        [0.0, 0.0, 1.0],
    ])
    # Positive dip tilts the major axis downwards
    rx = np.array([
        [1.0, 0.0, 0.0],
        [0.0, np.cos(dp), np.sin(dp)],
        [0.0, -np.sin(dp), np.cos(dp)],
    ])
    ry = np.array([
        [np.cos(rk), 0.0, np.sin(rk)],
        [0.0, 1.0, 0.0],
        [-np.sin(rk), 0.0, np.cos(rk)],
    ])

    return rz @ rx @ ry


def gslib_to_gstools_angles(
    azimuth: float, dip: float, rake: float
) -> NDArray[np.float64]:
    """
    GSTools rotation angles (radians) of a GSLIB anisotropy ellipsoid.

    The angles are the ``zyx`` Euler angles of the rotation taking the
    coordinate axes to the GSTools main axes (major, minor, vertical) of
    the ellipsoid from :func:`rotation_matrix_deutsch`.
    """
    r = rotation_matrix_deutsch(azimuth, dip, rake)
    axes = np.column_stack([r[:, 1], -r[:, 0], r[:, 2]])
    return Rotation.from_matrix(axes).as_euler("zyx")


def gstools_to_gslib_angles(angles: Sequence[float]) -> tuple[float, float, float]:
    """
    GSLIB azimuth, dip and rake (degrees) of GSTools 3-D rotation angles.

    Inverse of :func:`gslib_to_gstools_angles`.
    """
    axes = Rotation.from_euler("zyx", np.asarray(angles, dtype=np.float64)[:3]).as_matrix()
    major, vertical = axes[:, 0], axes[:, 2]
    minor = -axes[:, 1]

    azimuth = np.degrees(np.arctan2(major[0], major[1])) % 360.0
    dip = np.degrees(np.arcsin(np.clip(-major[2], -1.0, 1.0)))
    rake = np.degrees(np.arctan2(-minor[2], vertical[2]))
    return float(azimuth), float(dip), float(rake)


# ============================================================================
# Anisotropy
# ============================================================================

def _to_deutsch_angles(
    angles: Sequence[float] | None,
    convention: str,
) -> tuple[float, float, float]:
    angles = [] if angles is None else [float(a) for a in np.atleast_1d(angles)]
    if convention == "gslib":
        padded = angles + [0.0] * (3 - len(angles))
        return (padded[0], padded[1], padded[2])
    if convention == "math":
        padded = list(np.degrees(angles)) + [0.0] * (3 - len(angles))
        return math_to_deutsch(padded[0], padded[1], padded[2])
    raise ValueError(f"convention must be 'math' or 'gslib', got '{convention}'")


def _as_semiaxes(semiaxes: Sequence[float]) -> tuple[float, float, float]:
    semiaxes = [float(s) for s in semiaxes]
    for s in semiaxes:
        validate_positive(s, "semiaxis")
    if len(semiaxes) == 1:
        semiaxes = semiaxes * 3
    elif len(semiaxes) == 2:
        semiaxes = semiaxes + [semiaxes[1]]
    return (semiaxes[0], semiaxes[1], semiaxes[2])


def ellipsoid_distance(
    semiaxes: Sequence[float],
    angles: Sequence[float] | None = None,
    convention: str = "math",
) -> Callable[[Sequence[float], Sequence[float]], float]:
    """
    Build an ellipsoid (anisotropic) distance.

    The first semiaxis is the principal (major) direction. With the
    ``math`` convention angles are radians counter-clockwise from the x
    axis (2-D) or Tait-Bryan angles (3-D); with ``gslib`` they are
    azimuth, dip and rake in degrees.

    Equal semiaxes give back the Euclidean distance.

    Returns:
        Function ``distance(a, b)`` of two points
    """
    s1, s2, s3 = _as_semiaxes(semiaxes)
    rotation = rotation_matrix_deutsch(*_to_deutsch_angles(angles, convention))

    def distance(a: Sequence[float], b: Sequence[float]) -> float:
        lag = np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)
        lag3 = np.zeros(3)
        lag3[:lag.size] = lag
        local = lag3 @ rotation
        return float(np.sqrt((local[1] / s1) ** 2 + (local[0] / s2) ** 2 + (local[2] / s3) ** 2))

    return distance


def anisotropic_variogram(
    kind: str | int | VariogramType,
    range: float,
    semiaxes: Sequence[float],
    angles: Sequence[float] | None = None,
    sill: float = 1.0,
    nugget: float = 0.0,
    convention: str = "math",
) -> VariogramModel:
    """
    Build a geometrically anisotropic single-structure variogram.

    Ranges along the ellipsoid axes are ``range * semiaxes``.

    Example:
        >>> # major range 10 along x, minor range 5 along y
        >>> anisotropic_variogram("gaussian", 5.0, [2.0, 1.0], [0.0])
    """
    s1, s2, s3 = _as_semiaxes(semiaxes)
    return VariogramModel.single(
        kind,
        sill=sill,
        ranges=(range * s1, range * s2, range * s3),
        nugget=nugget,
        angles=_to_deutsch_angles(angles, convention),
    )
