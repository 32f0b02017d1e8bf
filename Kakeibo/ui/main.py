"""Main window composition and UI entry points for Kakeibo.

This module defines:
    - show(): initialize and display the main window
    - prompt_storage_recovery(): offer to set an unreadable collection aside
    - MainWindow: the entry form, expense list, summary, sync and data actions, and log dock
"""
import logging
from typing import Optional

from PySide6 import QtWidgets, QtCore, QtGui

from . import ui
from .actions import signals
from .form import ExpenseForm
from .notification import Notification
from ..core import ledger
from ..core.sync import AsyncWorker, SyncResult, SyncState
from ..data.view import ExpenseListView, SummaryView
from ..log.view import LogDockWidget
from ..settings.lib import app_name
from ..status import status

widget = None


def show(state) -> 'MainWindow':
    """Create the main window on first use and show it."""
    global widget

    if widget is None:
        widget = MainWindow(state)

    widget.show()
    return widget


def prompt_storage_recovery(state, parent: Optional[QtWidgets.QWidget] = None) -> bool:
    """Tell the user the stored collection is unreadable and offer to set it aside.

    The unreadable data is kept under a separate key and an empty collection is started.

    Returns:
        bool: True if the collection was set aside.
    """
    res = QtWidgets.QMessageBox.question(
        parent,
        'Stored expenses unreadable',
        f'{status.get_message(status.Status.StorageCorrupt)}\n\n'
        'Move the unreadable data aside and start with an empty list? '
        'The data is kept so it can be recovered by hand.',
        QtWidgets.QMessageBox.Yes | QtWidgets.QMessageBox.No,
        QtWidgets.QMessageBox.No
    )
    if res != QtWidgets.QMessageBox.Yes:
        return False

    state.storage.quarantine()
    signals.expensesChanged.emit()
    return True


class MainWindow(QtWidgets.QMainWindow):
    """The Kakeibo main window."""

    def __init__(self, state, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setObjectName('KakeiboMainWindow')
        self.state = state

        self.toolbar: QtWidgets.QToolBar
        self.form: ExpenseForm
        self.list_view: ExpenseListView
        self.summary_view: SummaryView
        self.log_view: LogDockWidget
        self.notification: Notification

        self.sync_button: QtWidgets.QPushButton
        self.sync_action: QtGui.QAction
        self.restore_action: QtGui.QAction
        self.clear_action: QtGui.QAction

        self._restore_worker: Optional[AsyncWorker] = None

        self._create_ui()
        self._init_actions()
        self._connect_signals()

        self.update_title()
        self.update_sync_state(self.state.sync.state.value)
        self.load_window_settings()

        QtCore.QTimer.singleShot(0, self.check_storage)

    def _create_ui(self) -> None:
        central = QtWidgets.QWidget(self)
        layout = QtWidgets.QHBoxLayout(central)
        margin = ui.Size.Margin(1.0)
        layout.setContentsMargins(margin, margin, margin, margin)
        layout.setSpacing(margin)
        self.setCentralWidget(central)

        left = QtWidgets.QWidget(central)
        left_layout = QtWidgets.QVBoxLayout(left)
        left_layout.setContentsMargins(0, 0, 0, 0)
        left_layout.setSpacing(margin // 2)

        self.form = ExpenseForm(self.state, parent=left)
        left_layout.addWidget(self.form, 0)

        summary_box = QtWidgets.QGroupBox('Summary', left)
        QtWidgets.QVBoxLayout(summary_box)
        self.summary_view = SummaryView(self.state, parent=summary_box)
        summary_box.layout().addWidget(self.summary_view, 1)
        left_layout.addWidget(summary_box, 1)

        self.sync_button = QtWidgets.QPushButton('Sync to spreadsheet', left)
        left_layout.addWidget(self.sync_button, 0)

        layout.addWidget(left, 0)

        list_box = QtWidgets.QGroupBox('Expenses', central)
        QtWidgets.QVBoxLayout(list_box)
        self.list_view = ExpenseListView(self.state, parent=list_box)
        list_box.layout().addWidget(self.list_view, 1)
        layout.addWidget(list_box, 1)

        self.toolbar = QtWidgets.QToolBar(self)
        self.toolbar.setObjectName('KakeiboActionToolBar')
        self.toolbar.setMovable(False)
        self.addToolBar(QtCore.Qt.TopToolBarArea, self.toolbar)

        self.log_view = LogDockWidget(parent=self)
        self.addDockWidget(QtCore.Qt.BottomDockWidgetArea, self.log_view)
        self.log_view.hide()

        self.notification = Notification(parent=central)

        self.setStatusBar(QtWidgets.QStatusBar(self))

    def _init_actions(self) -> None:
        self.sync_action = QtGui.QAction('Sync', self)
        self.sync_action.setToolTip('Send all expenses to the spreadsheet')
        self.sync_action.setShortcut('Ctrl+S')
        self.sync_action.triggered.connect(signals.syncRequested)
        self.toolbar.addAction(self.sync_action)
        self.addAction(self.sync_action)

        self.restore_action = QtGui.QAction('Restore from spreadsheet', self)
        self.restore_action.setToolTip('Add the spreadsheet records missing from this computer')
        self.restore_action.triggered.connect(signals.restoreRequested)
        self.toolbar.addAction(self.restore_action)
        self.addAction(self.restore_action)

        self.clear_action = QtGui.QAction('Clear local data', self)
        self.clear_action.setToolTip('Delete every expense stored on this computer')
        self.clear_action.triggered.connect(self.clear_local_data)
        self.toolbar.addAction(self.clear_action)
        self.addAction(self.clear_action)

        self.toolbar.addSeparator()

        action = QtGui.QAction('Logs', self)
        action.setCheckable(True)
        action.setShortcut('Ctrl+L')
        action.toggled.connect(self.log_view.setVisible)
        self.log_view.toggled.connect(action.setChecked)
        self.toolbar.addAction(action)
        self.addAction(action)

    def _connect_signals(self) -> None:
        self.sync_button.clicked.connect(signals.syncRequested)

        signals.syncRequested.connect(self.start_sync)
        signals.restoreRequested.connect(self.start_restore)
        signals.showLogs.connect(self.show_logs)
        signals.showNotification.connect(self.notification.show_message)
        signals.error.connect(self.show_status_message)
        signals.metadataChanged.connect(self.on_metadata_changed)
        signals.configSectionChanged.connect(self.on_config_section_changed)

        self.state.sync.stateChanged.connect(self.update_sync_state)
        self.state.sync.syncFinished.connect(self.on_sync_finished)
        self.state.sync.syncFailed.connect(self.on_sync_failed)

    def sizeHint(self) -> QtCore.QSize:
        return QtCore.QSize(
            ui.Size.DefaultWidth(1.6),
            ui.Size.DefaultHeight(1.4)
        )

    @QtCore.Slot()
    def show_logs(self) -> None:
        self.log_view.show()
        self.log_view.raise_()

    @QtCore.Slot(str)
    def show_status_message(self, message: str) -> None:
        self.statusBar().showMessage(message, 5000)

    @QtCore.Slot()
    def update_title(self) -> None:
        self.setWindowTitle(self.state.settings['name'] or app_name)

    @QtCore.Slot(str, object)
    def on_metadata_changed(self, key: str, value: object) -> None:
        if key == 'name':
            self.update_title()

    @QtCore.Slot(str)
    def on_config_section_changed(self, section: str) -> None:
        self.state.reload_config(section)

    @QtCore.Slot()
    def check_storage(self) -> None:
        """Check the stored collection can be read and offer recovery if not."""
        try:
            self.state.storage.load()
        except status.StorageCorruptException:
            prompt_storage_recovery(self.state, parent=self)

    @QtCore.Slot(str)
    def update_sync_state(self, state: str) -> None:
        """Disable the sync controls while a push is outstanding."""
        sending = state == SyncState.Sending.value
        self.sync_button.setEnabled(not sending)
        self.sync_button.setText('Syncing...' if sending else 'Sync to spreadsheet')
        self.sync_action.setEnabled(not sending)
        self.restore_action.setEnabled(not sending and self._restore_worker is None)

    @QtCore.Slot()
    def start_sync(self) -> None:
        """Send the whole local collection to the spreadsheet."""
        try:
            expenses = self.state.storage.load()
        except status.StorageCorruptException:
            prompt_storage_recovery(self.state, parent=self)
            return

        try:
            self.state.sync.start(expenses)
        except status.NothingToSyncException as ex:
            QtWidgets.QMessageBox.information(self, 'Sync', str(ex))
        except (status.SyncEndpointNotConfiguredException, status.SyncInProgressException) as ex:
            QtWidgets.QMessageBox.warning(self, 'Sync', str(ex))

    @QtCore.Slot(object)
    def on_sync_finished(self, result: SyncResult) -> None:
        message = result.message
        if result.total_records is not None:
            message = f'{message} ({result.total_records} in the spreadsheet)'
        signals.showNotification.emit(message)

    @QtCore.Slot(str)
    def on_sync_failed(self, message: str) -> None:
        QtWidgets.QMessageBox.critical(self, 'Sync failed', message)

    @QtCore.Slot()
    def clear_local_data(self) -> bool:
        """Ask for confirmation, then delete the local collection.

        The spreadsheet is not touched.

        Returns:
            bool: True if the collection was deleted.
        """
        res = QtWidgets.QMessageBox.question(
            self,
            'Clear local data',
            'Delete all expenses stored on this computer? '
            'Records already sent to the spreadsheet are kept there.',
            QtWidgets.QMessageBox.Yes | QtWidgets.QMessageBox.No,
            QtWidgets.QMessageBox.No
        )
        if res != QtWidgets.QMessageBox.Yes:
            return False

        ledger.clear_expenses(self.state)
        signals.showNotification.emit('Local data cleared.')
        return True

    @QtCore.Slot()
    def start_restore(self) -> None:
        """Fetch the spreadsheet records and add those missing locally."""
        if self._restore_worker is not None or self.state.sync.state != SyncState.Idle:
            return
        if not self.state.sync.endpoint:
            QtWidgets.QMessageBox.warning(
                self, 'Restore', status.get_message(status.Status.SyncEndpointNotConfigured)
            )
            return

        worker = AsyncWorker(self.state.sync.fetch)
        worker.resultReady.connect(self.on_restore_fetched, QtCore.Qt.QueuedConnection)
        worker.errorOccurred.connect(self.on_restore_failed, QtCore.Qt.QueuedConnection)
        worker.finished.connect(worker.deleteLater)
        self._restore_worker = worker
        self.restore_action.setEnabled(False)
        worker.start()

    @QtCore.Slot(object)
    def on_restore_fetched(self, records) -> None:
        self._restore_worker = None
        self.update_sync_state(self.state.sync.state.value)
        try:
            added = ledger.merge_expenses(self.state, records)
        except status.StorageCorruptException:
            prompt_storage_recovery(self.state, parent=self)
            return
        signals.showNotification.emit(f'Restored {added} expense(s) from the spreadsheet.')

    @QtCore.Slot(object)
    def on_restore_failed(self, ex: Exception) -> None:
        self._restore_worker = None
        self.update_sync_state(self.state.sync.state.value)
        QtWidgets.QMessageBox.critical(self, 'Restore failed', str(ex))

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:
        """Persist window geometry and state on close."""
        settings = QtCore.QSettings(app_name, app_name)
        settings.setValue('MainWindow/geometry', self.saveGeometry())
        settings.setValue('MainWindow/windowState', self.saveState())
        self.state.sync.wait(self.state.sync.timeout * 1000)
        super().closeEvent(event)

    def load_window_settings(self) -> None:
        settings = QtCore.QSettings(app_name, app_name)

        geometry = settings.value('MainWindow/geometry')
        if isinstance(geometry, QtCore.QByteArray):
            self.restoreGeometry(geometry)
        else:
            self.resize(self.sizeHint())

        state = settings.value('MainWindow/windowState')
        if isinstance(state, QtCore.QByteArray):
            self.restoreState(state)
        logging.debug('Restored main window settings.')
