"""Views of the expense list and the category summary.

Both views swap their table for a fixed message while the collection is empty. Each list row
carries a delete control that asks for confirmation before the record is removed.
"""
import logging
from typing import Optional

from PySide6 import QtCore, QtWidgets

from .model import ExpenseColumns, ExpenseListModel, SummaryColumns, SummaryModel, IdRole
from ..core import ledger
from ..ui import ui
from ..ui.actions import signals

EMPTY_LIST_MESSAGE: str = 'No expenses recorded yet.'
EMPTY_SUMMARY_MESSAGE: str = 'No data.'


def confirm_delete(parent: Optional[QtWidgets.QWidget] = None) -> bool:
    """Ask the user to confirm deleting an expense."""
    res = QtWidgets.QMessageBox.question(
        parent,
        'Delete expense',
        'Delete this expense?',
        QtWidgets.QMessageBox.Yes | QtWidgets.QMessageBox.No,
        QtWidgets.QMessageBox.No
    )
    return res == QtWidgets.QMessageBox.Yes


def _empty_label(text: str, parent: QtWidgets.QWidget) -> QtWidgets.QLabel:
    label = QtWidgets.QLabel(text, parent=parent)
    label.setAlignment(QtCore.Qt.AlignCenter)
    label.setProperty('empty', True)
    return label


class ExpenseTableView(QtWidgets.QTableView):
    """Table of expenses. Clicking a cell of the delete column emits :attr:`deleteRequested`.

    Signals:
        deleteRequested (object): Emitted with the id of the expense to delete.
    """
    deleteRequested = QtCore.Signal(object)

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setSelectionBehavior(QtWidgets.QAbstractItemView.SelectRows)
        self.setSelectionMode(QtWidgets.QAbstractItemView.SingleSelection)
        self.setEditTriggers(QtWidgets.QAbstractItemView.NoEditTriggers)
        self.setShowGrid(False)
        self.setWordWrap(False)
        self.setTextElideMode(QtCore.Qt.ElideRight)
        self.setMouseTracking(True)

        self.setItemDelegate(ui.RoundedRowDelegate(parent=self))

        self.verticalHeader().hide()
        self.verticalHeader().setSectionResizeMode(QtWidgets.QHeaderView.Fixed)
        self.verticalHeader().setDefaultSectionSize(ui.Size.RowHeight(1.0))

        self.clicked.connect(self.on_clicked)

    def setModel(self, model: QtCore.QAbstractItemModel) -> None:
        super().setModel(model)
        header = self.horizontalHeader()
        header.setSectionResizeMode(QtWidgets.QHeaderView.ResizeToContents)
        header.setSectionResizeMode(ExpenseColumns.Memo, QtWidgets.QHeaderView.Stretch)

    @QtCore.Slot(QtCore.QModelIndex)
    def on_clicked(self, index: QtCore.QModelIndex) -> None:
        if not index.isValid() or index.column() != ExpenseColumns.Delete:
            return
        expense_id = index.data(IdRole)
        if expense_id is not None:
            self.deleteRequested.emit(expense_id)


class ExpenseListView(QtWidgets.QWidget):
    """The expense list with its empty-state message."""

    def __init__(self, state, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setObjectName('KakeiboExpenseListView')
        self.state = state

        self.model = ExpenseListModel(state, parent=self)

        self.stack: QtWidgets.QStackedLayout
        self.view: ExpenseTableView
        self.empty_label: QtWidgets.QLabel

        self._create_ui()
        self._connect_signals()

        self.model.init_data()

    def _create_ui(self) -> None:
        self.stack = QtWidgets.QStackedLayout(self)
        self.stack.setContentsMargins(0, 0, 0, 0)

        self.view = ExpenseTableView(parent=self)
        self.view.setModel(self.model)
        self.stack.addWidget(self.view)

        self.empty_label = _empty_label(EMPTY_LIST_MESSAGE, self)
        self.stack.addWidget(self.empty_label)

    def _connect_signals(self) -> None:
        self.model.modelReset.connect(self.update_empty_state)
        self.view.deleteRequested.connect(self.delete_expense)

    @QtCore.Slot()
    def update_empty_state(self) -> None:
        if self.model.is_empty():
            self.stack.setCurrentWidget(self.empty_label)
        else:
            self.stack.setCurrentWidget(self.view)

    def is_showing_empty_message(self) -> bool:
        return self.stack.currentWidget() is self.empty_label

    @QtCore.Slot(object)
    def delete_expense(self, expense_id: int) -> None:
        """Delete an expense after the user confirmed it."""
        if not confirm_delete(parent=self):
            logging.debug(f'Deleting expense {expense_id} cancelled.')
            return
        if ledger.delete_expense(self.state, expense_id):
            signals.showNotification.emit('Expense deleted.')


class SummaryView(QtWidgets.QWidget):
    """Per-category totals followed by the grand total."""

    def __init__(self, state, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setObjectName('KakeiboSummaryView')
        self.state = state

        self.model = SummaryModel(state, parent=self)

        self.stack: QtWidgets.QStackedLayout
        self.view: QtWidgets.QTableView
        self.empty_label: QtWidgets.QLabel
        self.total_label: QtWidgets.QLabel

        self._create_ui()
        self._connect_signals()

        self.model.init_data()

    def _create_ui(self) -> None:
        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(ui.Size.Margin(0.5))

        container = QtWidgets.QWidget(self)
        self.stack = QtWidgets.QStackedLayout(container)
        self.stack.setContentsMargins(0, 0, 0, 0)

        self.view = QtWidgets.QTableView(parent=container)
        self.view.setSelectionMode(QtWidgets.QAbstractItemView.NoSelection)
        self.view.setEditTriggers(QtWidgets.QAbstractItemView.NoEditTriggers)
        self.view.setShowGrid(False)
        self.view.horizontalHeader().hide()
        self.view.verticalHeader().hide()
        self.view.verticalHeader().setDefaultSectionSize(ui.Size.RowHeight(1.0))
        self.view.setModel(self.model)
        header = self.view.horizontalHeader()
        header.setSectionResizeMode(QtWidgets.QHeaderView.ResizeToContents)
        header.setSectionResizeMode(SummaryColumns.Category, QtWidgets.QHeaderView.Stretch)
        self.stack.addWidget(self.view)

        self.empty_label = _empty_label(EMPTY_SUMMARY_MESSAGE, container)
        self.stack.addWidget(self.empty_label)

        layout.addWidget(container, 1)

        self.total_label = QtWidgets.QLabel(parent=self)
        self.total_label.setAlignment(QtCore.Qt.AlignRight | QtCore.Qt.AlignVCenter)
        self.total_label.setProperty('total', True)
        layout.addWidget(self.total_label, 0)

    def _connect_signals(self) -> None:
        self.model.modelReset.connect(self.update_empty_state)
        self.model.dataChanged.connect(self.update_total)

    @QtCore.Slot()
    def update_empty_state(self) -> None:
        if self.model.is_empty():
            self.stack.setCurrentWidget(self.empty_label)
        else:
            self.stack.setCurrentWidget(self.view)
        self.update_total()

    @QtCore.Slot()
    def update_total(self) -> None:
        self.total_label.setText(f'Total: {self.model.formatted_total()}')

    def is_showing_empty_message(self) -> bool:
        return self.stack.currentWidget() is self.empty_label
