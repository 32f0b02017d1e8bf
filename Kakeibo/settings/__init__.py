"""
Settings package: configuration API and localization helpers.

This package provides:

- :mod:`Kakeibo.settings.lib` – Core settings management and schema validation.
- :mod:`Kakeibo.settings.locale` – Localization utilities for formatting amounts and dates.
"""
