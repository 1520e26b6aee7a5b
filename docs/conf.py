import os
import sys

# Point to the source code
sys.path.insert(0, os.path.abspath('../src'))

from wildtrax import __version__  # noqa: E402

# Project information
project = 'wildtrax'
copyright = '2026, wildtrax contributors'
author = 'wildtrax contributors'
release = __version__

# Extensions
extensions = [
    'sphinx.ext.autodoc',      # API reference from docstrings
    'sphinx.ext.viewcode',
    'sphinx.ext.napoleon',     # Google style Args/Returns/Raises
]

autodoc_member_order = 'bysource'
napoleon_google_docstring = True
napoleon_numpy_docstring = False

templates_path = ['_templates']
exclude_patterns = ['_build', 'Thumbs.db', '.DS_Store']

# Theme
html_theme = 'sphinx_rtd_theme'
html_static_path = []
