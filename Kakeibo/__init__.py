"""
Kakeibo: desktop household account book for recording daily expenses.

This package provides:

- :mod:`Kakeibo.core` – The expense record, local storage, ledger operations and spreadsheet sync.
- :mod:`Kakeibo.data` – The list and summary DataFrame APIs with their Qt models and views.
- :mod:`Kakeibo.ui` – The PySide6 main window, entry form, notifications and theming.
- :mod:`Kakeibo.settings` – Settings management with schema validation, and Babel locale formatting.
- :mod:`Kakeibo.log` – In-app logging with a log viewer.

Use :func:`Kakeibo.exec_` to launch the application.
"""
import sys

from PySide6 import QtCore

# Fail on Python < 3.11
if not (sys.version_info.major == 3 and sys.version_info.minor >= 11):
    raise RuntimeError('Kakeibo requires Python 3.11 or higher.')

__version__ = '0.1.0'
__description__ = 'Kakeibo: desktop household account book with spreadsheet sync.'


def exec_() -> None:
    """Launch the Kakeibo GUI application and enter its event loop.

    Sets up logging, creates the application and its state, shows the main window, and
    starts the Qt event loop.
    """
    from .log import log
    log.setup_logging()

    from .core import state
    from .ui import app
    from .ui import main
    from .ui import ui
    from .ui.actions import signals

    application = app.Application(sys.argv)

    app_state = state.create()
    application.set_state(app_state)
    ui.apply_theme(app_state.settings['theme'])
    main.show(app_state)

    # Ask components to load their data
    QtCore.QTimer.singleShot(100, signals.initializationRequested)

    sys.exit(application.exec())


if __name__ == '__main__':
    exec_()
