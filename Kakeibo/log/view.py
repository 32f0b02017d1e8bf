"""Log views and dock widget for displaying and interacting with log messages.

This module provides:
    - LogTableView: table view for formatted log entries
    - LogDockWidget: dockable container with level and filter controls
"""
import logging

from PySide6 import QtCore, QtWidgets

from . import log
from .model import Columns, Level, LogFilterProxyModel, LogTableModel, get_handler
from ..ui import ui

#: Levels offered by the level selectors.
LEVEL_ACTIONS = [(level.name.title(), int(level)) for level in Level if level != Level.NOTSET]


class LogTableView(QtWidgets.QTableView):
    """A QTableView displaying log messages from LogTableModel."""

    def __init__(self, parent=None):
        super().__init__(parent=parent)
        self.setEditTriggers(QtWidgets.QAbstractItemView.NoEditTriggers)
        self.setSelectionBehavior(QtWidgets.QAbstractItemView.SelectRows)
        self.setSelectionMode(QtWidgets.QAbstractItemView.SingleSelection)
        self.setWordWrap(True)

        self.setItemDelegate(ui.RoundedRowDelegate(parent=self))

        self._init_model()
        self._init_headers()
        self._connect_signals()

    def _init_model(self):
        proxy = LogFilterProxyModel(self)
        model = LogTableModel(parent=self)
        proxy.setSourceModel(model)
        self.setModel(proxy)

    def _init_headers(self):
        header = self.horizontalHeader()
        header.setDefaultAlignment(QtCore.Qt.AlignLeft | QtCore.Qt.AlignVCenter)
        header.setDefaultSectionSize(ui.Size.DefaultWidth(0.3))
        for column in Columns:
            mode = QtWidgets.QHeaderView.Stretch if column == Columns.Message else QtWidgets.QHeaderView.Interactive
            header.setSectionResizeMode(column, mode)

        header = self.verticalHeader()
        header.setDefaultSectionSize(ui.Size.RowHeight(1.0))
        header.setHidden(True)

    def _connect_signals(self):
        self.model().rowsInserted.connect(self.scrollToBottom)

    def sizeHint(self):
        return QtCore.QSize(
            ui.Size.DefaultWidth(1.0),
            ui.Size.DefaultHeight(0.5)
        )


class LogDockWidget(QtWidgets.QDockWidget):
    """Dockable widget for viewing app logs.

    The header row sets the application's logging level and the minimum level shown in
    the table. The table is only refreshed while the dock is visible.

    Signals:
        toggled (bool): Emitted when the dock is shown or hidden.
    """
    toggled = QtCore.Signal(bool)

    def __init__(self, parent=None) -> None:
        super().__init__('Logs', parent)
        self.setObjectName('KakeiboLogDockWidget')
        self.setFeatures(
            QtWidgets.QDockWidget.DockWidgetMovable |
            QtWidgets.QDockWidget.DockWidgetFloatable |
            QtWidgets.QDockWidget.DockWidgetClosable
        )
        self.setAllowedAreas(QtCore.Qt.BottomDockWidgetArea | QtCore.Qt.RightDockWidgetArea)

        self.view: LogTableView
        self.app_level_combo: QtWidgets.QComboBox
        self.filter_combo: QtWidgets.QComboBox
        self.clear_button: QtWidgets.QToolButton

        self._create_ui()
        self._connect_signals()

    def _level_combo(self, parent, current: int, tooltip: str) -> QtWidgets.QComboBox:
        combo = QtWidgets.QComboBox(parent=parent)
        combo.setToolTip(tooltip)
        for name, level in LEVEL_ACTIONS:
            combo.addItem(name, level)
        combo.setCurrentIndex(max(combo.findData(current), 0))
        return combo

    def _create_ui(self) -> None:
        widget = QtWidgets.QWidget(self)
        QtWidgets.QVBoxLayout(widget)
        widget.layout().setContentsMargins(0, 0, 0, 0)
        widget.layout().setSpacing(ui.Size.Indicator(1.0))

        row = QtWidgets.QWidget(widget)
        QtWidgets.QHBoxLayout(row)
        o = ui.Size.Indicator(1.0)
        row.layout().setContentsMargins(o, o, o, 0)

        self.view = LogTableView(widget)

        self.app_level_combo = self._level_combo(
            row, logging.getLogger().level, 'Application logging level')
        self.filter_combo = self._level_combo(
            row, self.view.model().filter_level(), 'Minimum level shown')

        self.clear_button = QtWidgets.QToolButton(parent=row)
        self.clear_button.setText('Clear')
        self.clear_button.setToolTip('Clear all log entries')

        row.layout().addWidget(QtWidgets.QLabel('Level', parent=row))
        row.layout().addWidget(self.app_level_combo)
        row.layout().addWidget(QtWidgets.QLabel('Show', parent=row))
        row.layout().addWidget(self.filter_combo)
        row.layout().addStretch(1)
        row.layout().addWidget(self.clear_button)

        widget.layout().addWidget(row)
        widget.layout().addWidget(self.view, 1)
        self.setWidget(widget)

    def _connect_signals(self) -> None:
        self.visibilityChanged.connect(self.toggled)
        self.visibilityChanged.connect(self.on_visibility_changed)

        self.app_level_combo.currentIndexChanged.connect(
            lambda _: log.set_logging_level(self.app_level_combo.currentData()))
        self.filter_combo.currentIndexChanged.connect(
            lambda _: self.view.model().set_filter_level(self.filter_combo.currentData()))
        self.clear_button.clicked.connect(self.clear_logs)

    @QtCore.Slot()
    def clear_logs(self) -> None:
        try:
            get_handler().clear_logs()
        except RuntimeError as e:
            logging.warning(f'Could not clear the log tank: {e}')
        self.view.model().sourceModel().clear_logs()

    @QtCore.Slot(bool)
    def on_visibility_changed(self, visible: bool) -> None:
        model = self.view.model().sourceModel()
        if not visible:
            model.pause()
            return
        model.resume()
        model.fetch_new_logs()
