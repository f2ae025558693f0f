import pathlib
import sys

# Make the tileindex package (backend/tileindex) importable for autodoc.
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[2]))

from tileindex import __version__  # noqa: E402

project = 'Tile Index'
copyright = '2025, Tile Index contributors'
author = 'Tile Index contributors'
release = __version__

templates_path = ['_templates']
exclude_patterns = [
    '.venv',
    'venv',
    '.pytest_cache',
    '.ruff_cache',
    '.mypy_cache',
]

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.autosummary',
    'sphinx.ext.viewcode',
    'sphinx_autodoc_typehints',
    'myst_parser',
]

autosummary_generate = True
autosummary_imported_members = False

# Modules mix Google and NumPy sections (cli.main uses NumPy).
napoleon_google_docstring = True
napoleon_numpy_docstring = True
napoleon_include_init_with_doc = True
napoleon_include_private_with_doc = False
napoleon_use_param = True
napoleon_use_ivar = False

html_theme = 'sphinx_rtd_theme'
html_theme_options = {
    'prev_next_buttons_location': 'bottom',
}

autodoc_default_options = {
    'members': True,
    'undoc-members': False,
    'show-inheritance': True,
    'special-members': False,
}

# GDAL bindings are an optional extra; docs build without them.
autodoc_mock_imports = [
    'osgeo',
    'osgeo.gdal',
    'osgeo.ogr',
    'osgeo.osr',
]

source_suffix = {
    '.rst': 'restructuredtext',
    '.md': 'markdown',
}
