"""
Logging subsystem: handlers, models, and views for application logging.

Modules:

- :mod:`Kakeibo.log.log` – Root logger setup, the in-memory tank handler and the Qt message bridge.
- :mod:`Kakeibo.log.model` – Table model and proxy for displaying and filtering in-memory logs.
- :mod:`Kakeibo.log.view` – Qt views and dock widgets for rendering log messages.
"""
