"""
Spatial data containers.

- GeoTable: point data held in a pandas DataFrame with coordinate columns
- GridData: variables living on a CartesianGrid
- Reading, georeferencing and weighted sampling helpers
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

import numpy as np
import pandas as pd

from geostats_tutorials.utils import CartesianGrid

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)


class GeoTable:
    """
    Point data with coordinate columns.

    Args:
        frame: Table holding coordinates and variables
        coord_names: Names of the coordinate columns, in x, y, z order

    Raises:
        KeyError: If a coordinate column is missing from the frame
    """

    def __init__(self, frame: pd.DataFrame, coord_names: Sequence[str] = ("x", "y")):
        missing = [c for c in coord_names if c not in frame.columns]
        if missing:
            raise KeyError(f"Coordinate columns {missing} not found. Available: {list(frame.columns)}")
        self.frame = frame.reset_index(drop=True)
        self.coord_names = tuple(coord_names)

    def __repr__(self) -> str:
        return f"GeoTable({len(self)} points, coords={self.coord_names}, variables={self.variables})"

    def __len__(self) -> int:
        return len(self.frame)

    def __getitem__(self, name: str) -> NDArray[np.float64]:
        if name not in self.frame.columns:
            raise KeyError(f"Variable '{name}' not found. Available: {list(self.frame.columns)}")
        return self.frame[name].to_numpy()

    @property
    def dim(self) -> int:
        return len(self.coord_names)

    @property
    def variables(self) -> list[str]:
        """Non-coordinate column names."""
        return [c for c in self.frame.columns if c not in self.coord_names]

    @property
    def coords(self) -> NDArray[np.float64]:
        """Coordinates as an (n, dim) array."""
        return self.frame[list(self.coord_names)].to_numpy(dtype=np.float64)

    @property
    def pos(self) -> NDArray[np.float64]:
        """Coordinates as a (dim, n) array, the layout GSTools expects."""
        return self.coords.T

    def bounding_box(self) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Minimum and maximum coordinates."""
        coords = self.coords
        return coords.min(axis=0), coords.max(axis=0)

    def volume(self) -> float:
        """Volume (area) of the bounding box."""
        lo, hi = self.bounding_box()
        return float(np.prod(hi - lo))

    def subset(self, indices: Sequence[int] | NDArray[np.integer]) -> "GeoTable":
        """Rows at the given positions."""
        return GeoTable(self.frame.iloc[np.asarray(indices)], self.coord_names)


@dataclass
class GridData:
    """
    Variables on a regular grid.

    Attributes:
        grid: Grid definition
        fields: Mapping of variable name to array shaped like ``grid.shape``
    """

    grid: CartesianGrid
    fields: dict[str, NDArray] = field(default_factory=dict)

    def __post_init__(self):
        for name, values in self.fields.items():
            values = np.asarray(values)
            if values.shape != self.grid.shape:
                raise ValueError(
                    f"Field '{name}' has shape {values.shape}, grid has shape {self.grid.shape}"
                )
            self.fields[name] = values

    def __getitem__(self, name: str) -> NDArray:
        if name not in self.fields:
            raise KeyError(f"Variable '{name}' not found. Available: {list(self.fields)}")
        return self.fields[name]

    @property
    def variables(self) -> list[str]:
        return list(self.fields)

    def to_geotable(self) -> GeoTable:
        """Flatten to one row per cell, with coordinates named x, y, z."""
        names = ("x", "y", "z")[:self.grid.dim]
        columns = dict(zip(names, self.grid.points()))
        for name, values in self.fields.items():
            columns[name] = values.ravel()
        return GeoTable(pd.DataFrame(columns), names)


def read_geotable(
    path: Path | str,
    coord_names: Sequence[str] = ("x", "y"),
    **read_csv_kwargs,
) -> GeoTable:
    """
    Read point data from a CSV file.

    Args:
        path: CSV file path
        coord_names: Coordinate column names
        **read_csv_kwargs: Passed to ``pandas.read_csv``

    Returns:
        GeoTable with the file's columns
    """
    frame = pd.read_csv(path, **read_csv_kwargs)
    logger.debug("Read %d rows from %s", len(frame), path)
    return GeoTable(frame, coord_names)


def georef(
    values: dict[str, NDArray],
    coords: NDArray[np.floating] | CartesianGrid | None = None,
) -> GeoTable | GridData:
    """
    Attach coordinates to a set of variables.

    Without coordinates the arrays are placed on an implicit unit grid
    shaped like the arrays. A grid places them on that grid; a (dim, n)
    coordinate array turns them into point data.

    Examples:
        >>> georef({"Z": np.random.rand(100, 100)})
        >>> georef({"Z": [1.0, 0.0, 1.0]}, np.array([[25.0, 50.0, 75.0], [25.0, 75.0, 50.0]]))
    """
    if coords is None:
        shape = np.asarray(next(iter(values.values()))).shape
        return GridData(CartesianGrid(shape), dict(values))

    if isinstance(coords, CartesianGrid):
        return GridData(coords, dict(values))

    coords = np.atleast_2d(np.asarray(coords, dtype=np.float64))
    names = ("x", "y", "z")[:coords.shape[0]]
    columns = dict(zip(names, coords))
    for name, vals in values.items():
        vals = np.asarray(vals).ravel()
        if len(vals) != coords.shape[1]:
            raise ValueError(
                f"Variable '{name}' has {len(vals)} values for {coords.shape[1]} points"
            )
        columns[name] = vals
    return GeoTable(pd.DataFrame(columns), names)


def sample(
    data: GeoTable,
    n: int,
    weights: NDArray[np.floating] | str | None = None,
    replace: bool = False,
    seed: int | np.random.Generator | None = None,
) -> GeoTable:
    """
    Draw a random subset of points.

    Args:
        data: Points to draw from
        n: Number of points to draw
        weights: Sampling weights, or the name of a variable whose values
                 are used as weights (preferential sampling)
        replace: Draw with replacement
        seed: Random seed or generator

    Raises:
        ValueError: If n exceeds the number of points without replacement,
                    or weights are invalid
    """
    if not replace and n > len(data):
        raise ValueError(f"Cannot draw {n} points from {len(data)} without replacement")

    if isinstance(weights, str):
        weights = data[weights]

    p = None
    if weights is not None:
        w = np.asarray(weights, dtype=np.float64)
        if w.shape != (len(data),):
            raise ValueError(f"Expected {len(data)} weights, got shape {w.shape}")
        if np.any(w < 0) or w.sum() <= 0:
            raise ValueError("Weights must be non-negative with a positive sum")
        p = w / w.sum()

    rng = np.random.default_rng(seed)
    indices = rng.choice(len(data), size=n, replace=replace, p=p)
    return data.subset(indices)
