"""
GSLIB parameter files and argument checks.

A parameter file is a banner, the ``START OF PARAMETERS:`` marker and one
line of space-separated values per setting. Text after the values is
ignored by GSLIB, so each line may carry a ``# note``.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Sequence

if TYPE_CHECKING:
    from geostats_tutorials.utils import CartesianGrid, VariogramModel


class ParFile:
    """
    Parameter file under construction.

    Methods append lines and return the file so calls can be chained::

        par = ParFile("kt3d").add("data.dat", note="data file").grid(grid)
        par.save(workspace / "kt3d.par")

    Args:
        program: GSLIB program name for the banner (no banner when None)
    """

    def __init__(self, program: str | None = None):
        self.lines: list[str] = []
        if program is not None:
            banner = f"Parameters for {program.upper()}"
            self.comment(banner).comment("*" * len(banner))
            self.lines.append("")
            self.lines.append("START OF PARAMETERS:")

    def __str__(self) -> str:
        return "\n".join(self.lines) + "\n"

    def __len__(self) -> int:
        return len(self.lines)

    def comment(self, text: str) -> "ParFile":
        self.lines.append(f"# {text}")
        return self

    def add(self, *values: Any, note: str | None = None) -> "ParFile":
        """Append one line of values, optionally followed by a note."""
        text = " ".join(str(value) for value in values)
        self.lines.append(f"{text}  # {note}" if note else text)
        return self

    def grid(self, grid: CartesianGrid) -> "ParFile":
        """Append the ``n mn siz`` lines of the x, y and z axes."""
        for axis, (n, mn, siz) in zip("xyz", grid.to_gslib()):
            self.add(n, mn, siz, note=f"n{axis}, {axis}mn, {axis}siz")
        return self

    def ellipse(self, radii: Sequence[float], angles: Sequence[float]) -> "ParFile":
        """Append search radii and azimuth, dip and rake."""
        self.add(*radii, note="search radii")
        return self.add(*angles, note="angles (azimuth, dip, rake)")

    def variogram(self, model: VariogramModel) -> "ParFile":
        """
        Append a nested variogram model.

        The first line is ``nst nugget``; every structure then takes
        ``type sill ang1 ang2 ang3`` and ``a_hmax a_hmin a_vert``.
        """
        self.add(len(model.structures), model.nugget, note="nst, nugget")
        for structure in model.structures:
            self.add(
                int(structure["type"]), structure["sill"], *structure.get("angles", (0.0, 0.0, 0.0)),
                note="it, cc, ang1, ang2, ang3",
            )
            self.add(*structure["ranges"], note="a_hmax, a_hmin, a_vert")
        return self

    def save(self, path: Path | str) -> Path:
        path = Path(path)
        path.write_text(str(self))
        return path


def validate_positive(value: float, name: str) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")


def validate_non_negative(value: float, name: str) -> None:
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
