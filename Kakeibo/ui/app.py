"""The QApplication used by Kakeibo.

:class:`Application` sets the application metadata used for the window titles and the
data location, picks the Fusion style so the stylesheet renders the same on every platform,
and lets an in-flight sync finish before the process exits.
"""
import logging
import sys
from typing import Optional, Sequence

from PySide6 import QtCore, QtWidgets

from ..core.sync import SyncState

#: How long to wait for a pending sync request when quitting.
QUIT_SYNC_TIMEOUT_MS = 5000


class Application(QtWidgets.QApplication):
    """Kakeibo's QApplication.

    Attributes:
        state (AppState, optional): The running application state, set by :meth:`set_state`.
    """

    def __init__(self, argv: Optional[Sequence[str]] = None) -> None:
        super().__init__(list(sys.argv if argv is None else argv))

        from .. import __version__
        from ..settings import lib

        self.setApplicationName(lib.app_name)
        self.setApplicationDisplayName(lib.app_name)
        self.setOrganizationName(lib.app_name)
        self.setApplicationVersion(__version__)
        self.setStyle('Fusion')
        self.setQuitOnLastWindowClosed(True)

        self.state = None
        self.aboutToQuit.connect(self.on_about_to_quit)

    def set_state(self, app_state) -> None:
        self.state = app_state

    @QtCore.Slot()
    def on_about_to_quit(self) -> None:
        if self.state is not None and self.state.sync.state == SyncState.Sending:
            logging.info('Waiting for the pending sync request before quitting...')
            if not self.state.sync.wait(QUIT_SYNC_TIMEOUT_MS):
                logging.warning('Pending sync request did not finish in time.')
        logging.info(f'{self.applicationName()} {self.applicationVersion()} shutting down.')
