"""
Tests for GSLIB parameter files and argument checks.
"""

import pytest

from geostats_tutorials.par import ParFile, validate_non_negative, validate_positive
from geostats_tutorials.utils import CartesianGrid, VariogramModel, VariogramType


class TestParFile:
    """Tests for ParFile."""

    def test_values_and_notes(self):
        """Values are space separated, notes follow after a hash."""
        par = ParFile().add(10, 5.0, 2.5).add(10, 20, note="nx, ny")
        assert str(par).splitlines() == ["10 5.0 2.5", "10 20  # nx, ny"]

    def test_banner(self):
        """Program files open with a banner and the START OF PARAMETERS marker."""
        lines = str(ParFile("kt3d")).splitlines()
        assert lines == ["# Parameters for KT3D", "# " + "*" * 19, "", "START OF PARAMETERS:"]

    def test_no_banner(self):
        """Files without a program start empty."""
        assert len(ParFile()) == 0

    def test_grid(self):
        """2-D grids get a unit z axis."""
        grid = CartesianGrid((10, 20), origin=(0.5, 0.5), spacing=(1.0, 2.0))
        lines = str(ParFile().grid(grid)).splitlines()
        assert lines == [
            "10 0.5 1.0  # nx, xmn, xsiz",
            "20 0.5 2.0  # ny, ymn, ysiz",
            "1 0.0 1.0  # nz, zmn, zsiz",
        ]

    def test_ellipse(self):
        """Search ellipses take two lines."""
        lines = str(ParFile().ellipse((100.0, 50.0, 10.0), (45.0, 30.0, 0.0))).splitlines()
        assert lines[0].startswith("100.0 50.0 10.0")
        assert lines[1].startswith("45.0 30.0 0.0")

    def test_nested_variogram(self):
        """Nested models write nst and nugget, then two lines per structure."""
        model = VariogramModel(nugget=0.1)
        model.add_structure(VariogramType.SPHERICAL, 0.8, (50.0, 50.0, 10.0))
        model.add_structure(VariogramType.EXPONENTIAL, 0.2, (100.0, 100.0, 20.0))
        lines = str(ParFile().variogram(model)).splitlines()
        assert len(lines) == 5
        assert lines[0].startswith("2 0.1")
        assert lines[1].startswith("1 0.8 0.0 0.0 0.0")
        assert lines[3].startswith("2 0.2")
        assert lines[4].startswith("100.0 100.0 20.0")

    def test_save(self, tmp_path):
        """Files are written to disk and the path returned."""
        path = ParFile("kt3d").add(1, 2, 3).save(tmp_path / "test.par")
        assert path == tmp_path / "test.par"
        assert path.read_text().endswith("START OF PARAMETERS:\n1 2 3\n")


class TestValidation:
    """Tests for argument checks."""

    def test_validate_positive(self):
        """Zero and negatives are not positive."""
        validate_positive(0.001, "test")
        with pytest.raises(ValueError):
            validate_positive(0.0, "test")
        with pytest.raises(ValueError, match="test must be positive"):
            validate_positive(-1.0, "test")

    def test_validate_non_negative(self):
        """Zero is non-negative."""
        validate_non_negative(0.0, "test")
        with pytest.raises(ValueError, match="non-negative"):
            validate_non_negative(-0.5, "test")
