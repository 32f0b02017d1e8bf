"""
Data package: DataFrame APIs, Qt models and views for the expense list and summary.

Modules:

- :mod:`Kakeibo.data.data` – Loads the stored collection into list and summary DataFrames.
- :mod:`Kakeibo.data.model` – Table models for the expense list and the category summary.
- :mod:`Kakeibo.data.view` – Views with the delete control, empty-state messages and total.
"""
