# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

# add project root to sys.path for autodoc
import datetime
import os
import re
import sys

sys.path.insert(0, os.path.abspath('../..'))

# -- Project information -----------------------------------------------------

project = 'Kakeibo'
copyright = f'{datetime.date.today().year}, Kakeibo developers'
author = 'Kakeibo developers'
with open(os.path.abspath('../../Kakeibo/__init__.py'), encoding='utf-8') as f:
    release = re.search(r"__version__ = '(.+?)'", f.read()).group(1)

# -- General configuration ---------------------------------------------------

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
    'sphinx.ext.autosectionlabel',
]

napoleon_google_docstring = True
napoleon_use_param = False
napoleon_use_ivar = False

pygments_style = 'vs'
pygments_dark_style = 'stata-dark'

exclude_patterns = []

autodoc_default_options = {
    'member-order': 'groupwise',
    'show-inheritance': True,
}
autodoc_preserve_defaults = True
# Qt is not needed to read the docstrings
autodoc_mock_imports = ['PySide6']

# -- Options for HTML output -------------------------------------------------

html_theme = 'furo'
html_theme_options = {
    'light_css_variables': {
        'color-brand-primary': 'rgba(60, 180, 125, 1)',
        'color-brand-content': 'rgba(60, 180, 125, 1)',
    },
    'dark_css_variables': {
        'color-brand-primary': 'rgba(90, 200, 155, 1)',
        'color-brand-content': 'rgba(90, 200, 155, 1)',
    },
    'navigation_with_keys': True,
}
highlight_language = 'python'
