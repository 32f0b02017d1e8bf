"""Unittest base class for creating a clean test environment."""
import json
import logging
import os
import shutil
import tempfile
import unittest
from contextlib import contextmanager
from typing import Any, List, Optional, Sequence
from unittest.mock import MagicMock, patch

import requests
from PySide6 import QtWidgets, QtCore

from Kakeibo.core import state
from Kakeibo.core.expense import Expense
from Kakeibo.settings import lib
from Kakeibo.settings import locale

TEST_ENDPOINT = 'https://script.example.com/macros/s/test/exec'


@contextmanager
def mute_ui_signals():
    from Kakeibo.ui.actions import signals
    blocker = QtCore.QSignalBlocker(signals)  # blocks every signal in `signals`
    try:
        yield
    finally:
        del blocker


def make_expense(_id: int, date: str, category: str, amount: int, memo: str = '') -> Expense:
    """Build an expense from plain values."""
    return Expense(id=_id, date=locale.parse_date(date), category=category, amount=amount, memo=memo)


def fake_response(data: Any = None, status_code: int = 200, text: Optional[str] = None) -> requests.Response:
    """Build a real :class:`requests.Response` carrying ``data`` as its JSON body."""
    response = requests.Response()
    response.status_code = status_code
    response.reason = 'OK' if status_code < 400 else 'Error'
    response.url = TEST_ENDPOINT
    response.encoding = 'utf-8'
    body = text if text is not None else json.dumps(data)
    response._content = body.encode('utf-8')
    return response


def wait_for_signal(signal: QtCore.SignalInstance, timeout: int = 5000) -> Optional[List[Any]]:
    """Spin an event loop until ``signal`` fires.

    Returns:
        The arguments the signal was emitted with, or None on timeout.
    """
    received: List[List[Any]] = []
    loop = QtCore.QEventLoop()

    def _slot(*args: Any) -> None:
        received.append(list(args))
        loop.quit()

    timer = QtCore.QTimer()
    timer.setSingleShot(True)
    timer.timeout.connect(loop.quit)

    signal.connect(_slot)
    timer.start(timeout)
    try:
        loop.exec()
    finally:
        timer.stop()
        signal.disconnect(_slot)

    return received[0] if received else None


class BaseTestCase(unittest.TestCase):
    """Base test case that sets up and tears down a temporary config directory."""

    config_dir: str
    state: state.AppState

    def setUp(self) -> None:
        """Set up a clean config directory and a fresh application state."""
        # Ensure headless Qt
        if 'QT_QPA_PLATFORM' not in os.environ:
            os.environ['QT_QPA_PLATFORM'] = 'offscreen'
            logging.debug('QT_QPA_PLATFORM set to offscreen for headless testing.')

        # Ensure a QApplication is available
        if not QtWidgets.QApplication.instance():
            QtWidgets.QApplication([])  # type: ignore
            logging.debug('QtWidgets.QApplication initialized for tests.')

        self.config_dir = tempfile.mkdtemp(prefix='kakeibo_test_')
        patch.dict(os.environ, {lib.CONFIG_DIR_ENV_KEY: self.config_dir}).start()
        logging.debug(f'Using temporary config directory {self.config_dir}')

        self._widgets: List[QtCore.QObject] = []
        self.state = state.create()

    def tearDown(self) -> None:
        """Delete the widgets created by the test and remove the config directory."""
        self.state.sync.wait(5000)

        for widget in self._widgets:
            widget.deleteLater()
        QtCore.QCoreApplication.sendPostedEvents(None, QtCore.QEvent.DeferredDelete)
        self._widgets.clear()

        patch.stopall()
        shutil.rmtree(self.config_dir, ignore_errors=True)

    def track(self, widget: QtCore.QObject) -> Any:
        """Schedule a widget for deletion at tear down and return it."""
        self._widgets.append(widget)
        return widget

    def store(self, expenses: Sequence[Expense]) -> None:
        """Write ``expenses`` to the test storage."""
        self.state.storage.save(expenses)

    def set_endpoint(self, endpoint: str = TEST_ENDPOINT) -> None:
        """Configure the sync endpoint without notifying the UI."""
        with mute_ui_signals():
            self.state.settings.set_section('sync', {'endpoint': endpoint, 'timeout': 5})
        self.state.reload_config('sync')

    def patch_post(self, response: Any) -> MagicMock:
        """Patch the sync client's POST call.

        Args:
            response: A response to return, or an exception to raise.
        """
        kwargs = {'side_effect': response} if isinstance(response, Exception) else {'return_value': response}
        return patch('Kakeibo.core.sync.requests.post', **kwargs).start()

    def patch_get(self, response: Any) -> MagicMock:
        """Patch the sync client's GET call."""
        kwargs = {'side_effect': response} if isinstance(response, Exception) else {'return_value': response}
        return patch('Kakeibo.core.sync.requests.get', **kwargs).start()
