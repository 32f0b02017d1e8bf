# tests/test_log.py
"""
Integration tests for Kakeibo.log
(covers TankHandler, Qt bridge, setup helpers, the log table model and dock widget).

Run:
    python -m unittest tests.test_log
"""
import logging
import os
import time
from typing import List
from unittest.mock import patch

from PySide6.QtCore import QtMsgType

from Kakeibo.log.log import (
    LOG_LEVEL_ENV_KEY,
    TankHandler,
    get_log_level,
    qt_message_handler,
    set_logging_level,
    setup_logging,
)
from Kakeibo.log.model import (
    Columns,
    Level,
    LogFilterProxyModel,
    LogTableModel,
    Roles,
    get_handler,
    parse_log_message,
)
from Kakeibo.ui.actions import signals
from tests.base import BaseTestCase


class LogTestCase(BaseTestCase):
    """
    Each test starts with a fresh root logger configured by
    setup_logging(enable_stream_handler=False).
    """

    def setUp(self) -> None:
        super().setUp()

        # enable logging
        logging.disable(logging.NOTSET)

        setup_logging(enable_stream_handler=False,
                      enable_qt_handler=False,
                      log_level=logging.DEBUG)

        self.root_logger = logging.getLogger()
        self.tank: TankHandler = next(
            h for h in self.root_logger.handlers if isinstance(h, TankHandler)
        )


class LogModuleTests(LogTestCase):

    def test_tank_bulk_append_speed(self):
        """
        Appending thousands of records should be quick and all must be stored.
        """
        self.tank.clear_logs()
        N = 10_000
        t0 = time.perf_counter()
        for i in range(N):
            logging.debug('bulk-%05d', i)
        elapsed = time.perf_counter() - t0

        self.assertLessEqual(
            elapsed, 2.0,
            f'logging {N} messages took {elapsed:.2f}s, expected <= 2 s',
        )
        self.assertEqual(len(self.tank.tank), N)

    def test_tank_handles_very_long_message(self):
        """
        A very long error message is stored intact and still raises the showLogs signal.
        """
        long_msg = 'X' * 100_000
        triggered: list[bool] = []

        def _slot() -> None:
            triggered.append(True)

        signals.showLogs.connect(_slot)
        try:
            logging.error(long_msg)
        finally:
            signals.showLogs.disconnect(_slot)

        self.assertTrue(triggered, 'showLogs not emitted for long ERROR message')
        stored = self.tank.get_logs(logging.ERROR)[-1]
        self.assertIn(long_msg[-50:], stored[-60:], 'Long message truncated in TankHandler')

    def test_set_logging_level_accepts_valid_levels(self):
        set_logging_level(logging.ERROR)
        self.assertEqual(self.root_logger.level, logging.ERROR)
        for h in self.root_logger.handlers:
            self.assertEqual(h.level, logging.ERROR)

    def test_set_logging_level_rejects_non_int(self):
        with self.assertRaises(ValueError):
            set_logging_level('INFO')  # type: ignore[arg-type]

    def test_set_logging_level_rejects_unknown(self):
        with self.assertRaises(ValueError):
            set_logging_level(1234)

    def test_tank_handler_stores_and_filters(self):
        logging.debug('dbg message')
        logging.error('err message')
        self.assertEqual(len(self.tank.tank), 2)
        errs: List[str] = self.tank.get_logs(logging.ERROR)
        self.assertEqual(len(errs), 1)
        self.assertIn('err message', errs[0])
        self.tank.clear_logs()
        self.assertEqual(len(self.tank.tank), 0)

    def test_emit_triggers_showLogs_on_error(self):
        triggered: list[bool] = []

        def _slot() -> None:
            triggered.append(True)

        signals.showLogs.connect(_slot)
        try:
            logging.warning('should not emit')
            self.assertFalse(triggered)
            logging.error('should emit signal')
            self.assertTrue(triggered)
        finally:
            signals.showLogs.disconnect(_slot)

    def test_qt_message_handler_maps_to_logging(self):
        qt_message_handler(QtMsgType.QtInfoMsg, None, 'Qt info')
        qt_message_handler(QtMsgType.QtWarningMsg, None, 'Qt warn')
        msgs = self.tank.get_logs()
        self.assertTrue(any('Qt info' in m for m in msgs))
        self.assertTrue(any('Qt warn' in m for m in msgs))

    def test_qt_message_handler_fatal_exits(self):
        with self.assertRaises(SystemExit):
            qt_message_handler(QtMsgType.QtFatalMsg, None, 'fatal')

    def test_setup_logging_installs_tank_handler_only(self):
        self.assertEqual(
            [type(h) for h in self.root_logger.handlers],
            [TankHandler],
        )
        self.assertIs(get_handler(), self.tank)


class LogModelTests(LogTestCase):
    """Tests of the table model reading from the tank."""

    def setUp(self) -> None:
        super().setUp()
        self.tank.clear_logs()

    def test_model_parses_records(self):
        model = self.track(LogTableModel(fetch_interval_ms=60_000))
        logging.info('hello model')
        model.fetch_new_logs()

        self.assertEqual(model.rowCount(), 1)
        self.assertEqual(model.index(0, Columns.Level).data(), 'INFO')
        self.assertEqual(model.index(0, Columns.Message).data(), 'hello model')
        self.assertEqual(model.index(0, Columns.Module).data(), 'test_log')
        self.assertEqual(model.index(0, Columns.Date).data(Roles.LOG_LEVEL), Level.INFO)

    def test_model_follows_cleared_tank(self):
        model = self.track(LogTableModel(fetch_interval_ms=60_000))
        logging.info('one')
        logging.info('two')
        model.fetch_new_logs()
        self.assertEqual(model.rowCount(), 2)

        self.tank.clear_logs()
        logging.info('three')
        model.fetch_new_logs()
        self.assertEqual(model.rowCount(), 1)

    def test_paused_model_does_not_fetch(self):
        model = self.track(LogTableModel(fetch_interval_ms=60_000))
        model.pause()
        logging.info('ignored')
        model.fetch_new_logs()
        self.assertEqual(model.rowCount(), 0)
        model.resume()
        model.fetch_new_logs()
        self.assertEqual(model.rowCount(), 1)

    def test_filter_proxy(self):
        model = self.track(LogTableModel(fetch_interval_ms=60_000))
        proxy = self.track(LogFilterProxyModel())
        proxy.setSourceModel(model)

        logging.debug('debug')
        logging.warning('warning')
        model.fetch_new_logs()
        self.assertEqual(proxy.rowCount(), 2)

        proxy.set_filter_level(logging.WARNING)
        self.assertEqual(proxy.filter_level(), logging.WARNING)
        self.assertEqual(proxy.rowCount(), 1)

    def test_dock_widget_clear_logs(self):
        from Kakeibo.log.view import LogDockWidget
        dock = self.track(LogDockWidget())
        logging.info('to be cleared')
        dock.view.model().sourceModel().fetch_new_logs()
        self.assertGreater(dock.view.model().rowCount(), 0)

        dock.clear_logs()
        self.assertEqual(self.tank.tank, [])
        self.assertEqual(dock.view.model().rowCount(), 0)

    def test_dock_widget_level_controls(self):
        from Kakeibo.log.view import LogDockWidget
        dock = self.track(LogDockWidget())
        self.assertEqual(dock.app_level_combo.currentData(), logging.DEBUG)

        dock.filter_combo.setCurrentIndex(dock.filter_combo.findData(logging.WARNING))
        self.assertEqual(dock.view.model().filter_level(), logging.WARNING)

        dock.app_level_combo.setCurrentIndex(dock.app_level_combo.findData(logging.ERROR))
        self.assertEqual(self.root_logger.level, logging.ERROR)


class LogLevelEnvTests(BaseTestCase):

    def test_level_from_environment(self):
        with patch.dict(os.environ, {LOG_LEVEL_ENV_KEY: 'warning'}):
            self.assertEqual(get_log_level(), logging.WARNING)

    def test_unset_or_unknown_level_uses_default(self):
        with patch.dict(os.environ, {LOG_LEVEL_ENV_KEY: ''}):
            self.assertEqual(get_log_level(logging.INFO), logging.INFO)
        with patch.dict(os.environ, {LOG_LEVEL_ENV_KEY: 'LOUD'}):
            self.assertEqual(get_log_level(logging.INFO), logging.INFO)


class ParseLogMessageTests(BaseTestCase):

    def test_formatted_message(self):
        entry = parse_log_message('[2024-01-01 10:00:00] <storage> WARNING:  disk: almost full')
        self.assertEqual(entry.date, '2024-01-01 10:00:00')
        self.assertEqual(entry.module, 'storage')
        self.assertEqual(entry.level, Level.WARNING)
        self.assertEqual(entry.message, 'disk: almost full')

    def test_multiline_message_is_kept(self):
        entry = parse_log_message('[2024-01-01 10:00:00] <sync> ERROR:  failed\nTraceback ...')
        self.assertEqual(entry.level, Level.ERROR)
        self.assertEqual(entry.message, 'failed\nTraceback ...')

    def test_unformatted_message(self):
        entry = parse_log_message('plain text')
        self.assertEqual(entry.level, Level.NOTSET)
        self.assertEqual(entry.message, 'plain text')
        self.assertEqual(entry.column(Columns.Level), 'NOTSET')
