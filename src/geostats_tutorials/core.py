"""
Package configuration and the plumbing shared by the GSLIB comparison.

Tutorial data is looked up in the packaged ``data`` directory, or in
``GEOSTATS_TUTORIALS_DATA`` when set. GSLIB programs are looked up in
``GSLIB_BIN_DIR``, then on ``PATH``. Tables exchanged with GSLIB use the
GeoEAS text format and are read into pandas DataFrames.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Mapping

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

GRID_KEYS = ("nx", "ny", "nz", "xmin", "ymin", "zmin", "xsiz", "ysiz", "zsiz")


class TutorialWarning(UserWarning):
    """Recoverable problem met while running a tutorial workflow."""


# =============================================================================
# Locations
# =============================================================================

def get_data_dir() -> Path:
    """Get the directory containing tutorial data files."""
    if env_path := os.environ.get("GEOSTATS_TUTORIALS_DATA"):
        return Path(env_path)
    return Path(__file__).parent / "data"


def data_path(name: str) -> Path:
    """
    Resolve a tutorial data file.

    Args:
        name: File name relative to the data directory (e.g. 'precipitation.csv')

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    path = get_data_dir() / name
    if not path.exists():
        raise FileNotFoundError(
            f"Data file '{name}' not found in {path.parent}. "
            f"Set GEOSTATS_TUTORIALS_DATA to the directory holding tutorial data."
        )
    return path


def get_bin_dir() -> Path | None:
    """Directory holding the GSLIB programs, or None when none is configured."""
    if env_path := os.environ.get("GSLIB_BIN_DIR"):
        return Path(env_path)
    found = shutil.which("kt3d")
    return Path(found).parent if found else None


def find_executable(program: str) -> Path:
    """
    Locate a GSLIB program.

    Raises:
        FileNotFoundError: If the program is not installed
    """
    bin_dir = get_bin_dir()
    filename = f"{program}.exe" if os.name == "nt" else program
    if bin_dir is not None and (bin_dir / filename).exists():
        return bin_dir / filename
    raise FileNotFoundError(
        f"GSLIB program '{program}' not found (searched {bin_dir or 'PATH'}). "
        f"Set GSLIB_BIN_DIR to the directory holding the GSLIB programs."
    )


def gslib_available(program: str = "kt3d") -> bool:
    """Whether a GSLIB program can be located."""
    try:
        find_executable(program)
    except FileNotFoundError:
        return False
    return True


# =============================================================================
# Execution
# =============================================================================

def run_gslib(
    program: str,
    par_file: Path | str,
    timeout: float | None = None,
) -> subprocess.CompletedProcess:
    """
    Run a GSLIB program on a parameter file.

    The program reads the parameter file name from stdin and runs in the
    directory of the parameter file, so relative paths in it resolve there.

    Raises:
        FileNotFoundError: If the program or the parameter file is missing
        subprocess.CalledProcessError: If the program exits with an error
    """
    exe = find_executable(program)
    par_file = Path(par_file)
    if not par_file.exists():
        raise FileNotFoundError(f"Parameter file not found: {par_file}")

    logger.info("Running %s on %s", program, par_file.name)
    completed = subprocess.run(
        [str(exe)],
        input=f"{par_file.name}\n",
        capture_output=True,
        text=True,
        timeout=timeout,
        cwd=par_file.parent,
    )
    logger.debug("%s output:\n%s", program, completed.stdout)
    completed.check_returncode()
    return completed


@contextmanager
def gslib_workspace(keep: bool = False) -> Iterator[Path]:
    """
    Scratch directory for parameter files and GSLIB input/output.

    The directory is removed on exit unless ``keep`` is set.
    """
    path = Path(tempfile.mkdtemp(prefix="geostats_gslib_"))
    try:
        yield path
    finally:
        if keep:
            logger.info("Keeping GSLIB workspace %s", path)
        else:
            shutil.rmtree(path, ignore_errors=True)


# =============================================================================
# GeoEAS tables
# =============================================================================

@dataclass
class GeoEASFile:
    """
    Contents of a GeoEAS file.

    ``grid`` holds the GSLIB 3.0 grid definition (nx, ny, nz, xmin, ...,
    zsiz) when line 2 carries one after the variable count.
    """

    title: str
    table: pd.DataFrame
    grid: dict | None = None


def read_geoeas(path: Path | str) -> GeoEASFile:
    """Read a GeoEAS file (legacy or gridded header) into a DataFrame."""
    path = Path(path)
    with open(path) as f:
        title = f.readline().strip()
        tokens = f.readline().split()
        nvars = int(tokens[0])
        names = [f.readline().strip() for _ in range(nvars)]

    grid = None
    if len(tokens) >= 1 + len(GRID_KEYS):
        grid = {
            key: int(token) if key.startswith("n") else float(token)
            for key, token in zip(GRID_KEYS, tokens[1:])
        }

    try:
        table = pd.read_csv(
            path, sep=r"\s+", header=None, names=names, skiprows=2 + nvars, dtype=np.float64
        )
    except pd.errors.EmptyDataError:
        table = pd.DataFrame({name: pd.Series(dtype=np.float64) for name in names})
    return GeoEASFile(title, table, grid)


def write_geoeas(
    path: Path | str,
    table: pd.DataFrame | Mapping[str, object],
    title: str = "geostats-tutorials",
    grid: Mapping[str, float] | None = None,
) -> Path:
    """
    Write a table in GeoEAS format.

    Args:
        path: Output file
        table: DataFrame or mapping of column name to values
        title: Title line
        grid: Grid definition written after the variable count (GSLIB 3.0)

    Raises:
        ValueError: If the columns differ in length
    """
    path = Path(path)
    if not isinstance(table, pd.DataFrame):
        columns = {name: np.asarray(values, dtype=np.float64).ravel() for name, values in table.items()}
        if len({len(values) for values in columns.values()}) > 1:
            raise ValueError("All columns must have the same length")
        table = pd.DataFrame(columns)

    counts = str(table.shape[1])
    if grid is not None:
        counts += " " + " ".join(str(grid[key]) for key in GRID_KEYS) + " 1"

    with open(path, "w") as f:
        f.write(f"{title}\n{counts}\n")
        f.writelines(f"{name}\n" for name in table.columns)
        table.to_csv(f, sep=" ", header=False, index=False, float_format="%.10g", lineterminator="\n")
    return path
