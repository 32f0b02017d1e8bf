"""Application-wide Qt signals for Kakeibo.

This module provides:
    - Signals: custom Qt signals for configuration changes, the expense collection,
      sync requests and UI actions (showLogs).
"""
import logging

from PySide6 import QtCore


class Signals(QtCore.QObject):
    """Centralized Qt signals for application config, data, and UI events."""
    initializationRequested = QtCore.Signal()

    configSectionChanged = QtCore.Signal(str)  # Section
    metadataChanged = QtCore.Signal(str, object)  # Key, value

    expensesChanged = QtCore.Signal()

    syncRequested = QtCore.Signal()
    restoreRequested = QtCore.Signal()

    showLogs = QtCore.Signal()
    showNotification = QtCore.Signal(str)

    error = QtCore.Signal(str)

    def __init__(self):
        super().__init__()
        self._connect_signals()

    def _connect_signals(self):
        @QtCore.Slot(str, object)
        def metadata_changed(key: str, value: object) -> None:
            if key != 'theme':
                return

            from . import ui
            try:
                ui.apply_theme(value)
            except (RuntimeError, FileNotFoundError, KeyError) as ex:
                logging.debug(f'Error applying theme: {ex}')

        self.metadataChanged.connect(metadata_changed)


signals = Signals()
