"""
GSLIB kriging program driver and legacy grid files.

- kt3d: point kriging with the GSLIB Fortran executable
- load_legacy / save_legacy: gridded GSLIB files (x fastest, then y, then z)
- compare_estimates: mean squared difference between two solutions
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal

import numpy as np

from geostats_tutorials.core import gslib_available, gslib_workspace, read_geoeas, run_gslib, write_geoeas
from geostats_tutorials.data import GeoTable, GridData
from geostats_tutorials.par import ParFile, validate_non_negative, validate_positive
from geostats_tutorials.problems import EstimationSolution
from geostats_tutorials.utils import CartesianGrid, VariogramModel

if TYPE_CHECKING:
    from numpy.typing import NDArray

__all__ = [
    "SearchParameters",
    "build_kt3d_par",
    "kt3d",
    "load_legacy",
    "save_legacy",
    "compare_estimates",
    "gslib_available",
    "UNEST",
]

# Value GSLIB writes for unestimated cells
UNEST = -999.0


@dataclass
class SearchParameters:
    """Search neighborhood parameters for kriging."""

    radius1: float  # Maximum search radius
    radius2: float  # Medium search radius
    radius3: float  # Minimum search radius
    azimuth: float = 0.0  # Azimuth of radius1
    dip: float = 0.0  # Dip of radius1
    rake: float = 0.0  # Rake (rotation in plane of radius1/radius2)
    min_samples: int = 1
    max_samples: int = 32
    max_per_octant: int = 0  # 0 = no octant search

    def __post_init__(self):
        for name in ("radius1", "radius2", "radius3"):
            validate_positive(getattr(self, name), name)
        validate_non_negative(self.max_per_octant, "max_per_octant")
        if not 1 <= self.min_samples <= self.max_samples:
            raise ValueError(
                f"Need 1 <= min_samples <= max_samples, got {self.min_samples} and {self.max_samples}"
            )


def build_kt3d_par(
    grid: CartesianGrid,
    variogram: VariogramModel,
    search: SearchParameters,
    kriging_type: Literal["simple", "ordinary"] = "ordinary",
    sk_mean: float = 0.0,
    tmin: float = -1.0e21,
    tmax: float = 1.0e21,
    block_discretization: tuple[int, int, int] = (1, 1, 1),
    data_file: str = "kt3d_input.dat",
    output_file: str = "kt3d_output.out",
    debug_file: str = "kt3d_debug.dbg",
) -> ParFile:
    """
    Parameter file for kt3d grid kriging.

    The data file is expected to hold columns dhid, x, y, z, value.
    """
    if kriging_type not in ("simple", "ordinary"):
        raise ValueError(f"kriging_type must be 'simple' or 'ordinary', got '{kriging_type}'")
    if not variogram.structures:
        raise ValueError("kt3d needs at least one variogram structure")

    par = ParFile("kt3d")
    par.add(data_file, note="data file")
    par.add(1, 2, 3, 4, 5, 0, note="columns: dhid, x, y, z, var, sec var")
    par.add(tmin, tmax, note="trimming limits")
    par.add(0, note="kriging option: 0=grid")
    par.add("nofile.dat", note="jackknife file (not used)")
    par.add(0, 0, 0, 0, 0, note="jackknife columns (not used)")
    par.add(0, note="debugging level (0=none)")
    par.add(debug_file, note="debug file")
    par.add(output_file, note="output file")
    par.grid(grid)
    par.add(*block_discretization, note="block discretization")
    par.add(search.min_samples, search.max_samples, note="min, max data")
    par.add(search.max_per_octant, note="max per octant")
    par.ellipse(
        (search.radius1, search.radius2, search.radius3),
        (search.azimuth, search.dip, search.rake),
    )
    par.add(0 if kriging_type == "simple" else 1, sk_mean, note="ktype (0=SK, 1=OK), SK mean")
    par.add(*[0] * 9, note="drift terms (all 0)")
    par.add(0, note="trend: 0=no trend")
    par.add("nofile.dat", note="external drift file (not used)")
    par.add(0, note="external drift column (not used)")
    return par.variogram(variogram)


def _padded_coords(data: GeoTable) -> NDArray[np.float64]:
    coords = np.zeros((len(data), 3))
    coords[:, :data.dim] = data.coords
    return coords


def kt3d(
    data: GeoTable,
    var: str,
    grid: CartesianGrid,
    variogram: VariogramModel,
    search: SearchParameters,
    kriging_type: Literal["simple", "ordinary"] = "ordinary",
    sk_mean: float = 0.0,
    tmin: float = -1.0e21,
    tmax: float = 1.0e21,
    block_discretization: tuple[int, int, int] = (1, 1, 1),
) -> EstimationSolution:
    """
    Kriging estimation with the GSLIB kt3d program.

    Args:
        data: Sample data
        var: Variable to estimate
        grid: Output grid (1-D to 3-D)
        variogram: Variogram model (GSLIB conventions)
        search: Search neighborhood parameters
        kriging_type: 'simple' or 'ordinary' kriging
        sk_mean: Mean for simple kriging (ignored for ordinary kriging)
        tmin, tmax: Trimming limits
        block_discretization: Number of discretization points (nx, ny, nz)
                             for block kriging. (1,1,1) = point kriging.

    Returns:
        EstimationSolution with kt3d estimates and variances. Unestimated
        cells are NaN.

    Raises:
        FileNotFoundError: If the kt3d executable cannot be found
        subprocess.CalledProcessError: If kt3d fails
    """
    if grid.dim != data.dim:
        raise ValueError(f"Data is {data.dim}-D but the grid is {grid.dim}-D")

    values = np.asarray(data[var], dtype=np.float64)
    coords = _padded_coords(data)

    with gslib_workspace() as workspace:
        par_file = workspace / "kt3d.par"
        write_geoeas(
            workspace / "kt3d_input.dat",
            {
                "dhid": np.arange(1, len(data) + 1, dtype=np.float64),
                "x": coords[:, 0],
                "y": coords[:, 1],
                "z": coords[:, 2],
                var: values,
            },
            title="kt3d input data",
        )
        build_kt3d_par(
            grid, variogram, search,
            kriging_type=kriging_type,
            sk_mean=sk_mean,
            tmin=tmin,
            tmax=tmax,
            block_discretization=block_discretization,
        ).save(par_file)

        run_gslib("kt3d", par_file)

        output = read_geoeas(workspace / "kt3d_output.out").table.to_numpy()

    dims3 = tuple(n for n, _, _ in grid.to_gslib())
    columns = []
    for col in range(2):
        column = output[:, col] if output.shape[1] > col else np.zeros(len(output))
        column = np.where(column <= UNEST, np.nan, column)
        columns.append(column.reshape(dims3, order="F").reshape(grid.shape))

    return EstimationSolution(grid, {var: columns[0]}, {var: columns[1]})


def load_legacy(
    path: Path | str,
    dims: tuple[int, ...],
    grid: CartesianGrid | None = None,
) -> GridData:
    """
    Load a gridded GSLIB file.

    Values are ordered with x cycling fastest, then y, then z.

    Args:
        path: File path
        dims: Grid dimensions
        grid: Grid geometry (default taken from a GSLIB 3.0 header when
              present, unit grid otherwise)

    Returns:
        GridData with one field per column
    """
    contents = read_geoeas(path)
    dims = tuple(int(n) for n in dims)
    if len(contents.table) != int(np.prod(dims)):
        raise ValueError(
            f"File holds {len(contents.table)} values, dims {dims} need {int(np.prod(dims))}"
        )

    info = contents.grid
    if grid is None:
        if info is not None and (info["nx"], info["ny"], info["nz"])[:len(dims)] == dims:
            grid = CartesianGrid(
                dims,
                origin=(info["xmin"], info["ymin"], info["zmin"])[:len(dims)],
                spacing=(info["xsiz"], info["ysiz"], info["zsiz"])[:len(dims)],
            )
        else:
            grid = CartesianGrid(dims)

    fields = {
        str(name): column.to_numpy().reshape(dims, order="F")
        for name, column in contents.table.items()
    }
    return GridData(grid, fields)


def save_legacy(
    path: Path | str,
    data: GridData,
    title: str = "geostats-tutorials grid",
) -> Path:
    """Write GridData to a gridded GSLIB file with a GSLIB 3.0 header."""
    (nx, xmn, xsiz), (ny, ymn, ysiz), (nz, zmn, zsiz) = data.grid.to_gslib()
    grid = dict(
        nx=nx, ny=ny, nz=nz, xmin=xmn, ymin=ymn, zmin=zmn, xsiz=xsiz, ysiz=ysiz, zsiz=zsiz
    )
    return write_geoeas(
        path,
        {name: values.ravel(order="F") for name, values in data.fields.items()},
        title=title,
        grid=grid,
    )


def compare_estimates(a: NDArray[np.floating], b: NDArray[np.floating]) -> float:
    """
    Mean squared difference between two sets of estimates.

    Cells that are NaN in either array are ignored.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape:
        raise ValueError(f"Shapes differ: {a.shape} and {b.shape}")
    valid = np.isfinite(a) & np.isfinite(b)
    if not valid.any():
        raise ValueError("No cell is estimated in both arrays")
    return float(np.mean((a[valid] - b[valid]) ** 2))
