"""Result container shared by all tutorials."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from matplotlib.figure import Figure


@dataclass
class TutorialResult:
    """
    Outcome of running a tutorial.

    Attributes:
        name: Registry name of the tutorial
        title: Human readable title
        values: Named results (scalars, arrays, models, solutions)
        figures: Named matplotlib figures
    """

    name: str
    title: str
    values: dict[str, Any] = field(default_factory=dict)
    figures: dict[str, Figure] = field(default_factory=dict)

    def scalars(self) -> dict[str, float]:
        """Values that are plain numbers."""
        return {
            k: float(v) for k, v in self.values.items()
            if isinstance(v, (int, float)) and not isinstance(v, bool)
        }

    def save_figures(self, directory: Path | str, dpi: int = 100) -> list[Path]:
        """Save every figure as ``<name>_<figure>.png``."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        paths = []
        for key, fig in self.figures.items():
            path = directory / f"{self.name}_{key}.png"
            fig.savefig(path, dpi=dpi)
            paths.append(path)
        return paths
