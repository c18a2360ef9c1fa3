"""
Sphinx configuration for the geostats-tutorials documentation.
"""

import os
import sys

sys.path.insert(0, os.path.abspath("../src"))

from geostats_tutorials import __version__  # noqa: E402

project = "geostats-tutorials"
author = "geostats-tutorials contributors"
copyright = f"2026, {author}"
version = release = __version__

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.autosummary",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
    "sphinx.ext.intersphinx",
]
exclude_patterns = ["_build"]

# Google style docstrings
autodoc_default_options = {"members": True, "member-order": "bysource", "show-inheritance": True}
autodoc_typehints = "description"
autosummary_generate = False
napoleon_numpy_docstring = False

intersphinx_mapping = {
    name: (url, None)
    for name, url in {
        "python": "https://docs.python.org/3",
        "numpy": "https://numpy.org/doc/stable/",
        "scipy": "https://docs.scipy.org/doc/scipy/",
        "pandas": "https://pandas.pydata.org/docs/",
        "matplotlib": "https://matplotlib.org/stable/",
        "gstools": "https://geostat-framework.readthedocs.io/projects/gstools/en/stable/",
    }.items()
}

html_theme = "sphinx_rtd_theme"
html_title = f"geostats-tutorials {release}"
html_theme_options = {"navigation_depth": 2, "collapse_navigation": False}
