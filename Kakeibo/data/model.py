"""
Table models for the expense list and the per-category summary.

Both models reload from storage whenever ``expensesChanged`` is emitted, and refresh their
formatting when the locale or currency changes. Amounts are formatted with Babel according
to the configured locale and currency.
"""
import enum
import logging
from typing import Any, Optional

import pandas as pd
from PySide6 import QtCore, QtGui

from . import data
from ..settings import lib
from ..settings import locale
from ..status import status
from ..ui.actions import signals

IdRole = QtCore.Qt.UserRole + 1
AmountRole = QtCore.Qt.UserRole + 2


class ExpenseColumns(enum.IntEnum):
    """Columns of the expense list."""
    Date = 0
    Category = 1
    Memo = 2
    Amount = 3
    Delete = 4


class SummaryColumns(enum.IntEnum):
    """Columns of the category summary."""
    Category = 0
    Total = 1
    Transactions = 2


class BaseExpenseModel(QtCore.QAbstractTableModel):
    """Shared loading logic of the expense and summary models.

    Subclasses implement :meth:`load` returning the DataFrame to show.
    """
    columns: type[enum.IntEnum]
    empty_columns: list[str]

    def __init__(self, state, parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent=parent)
        self.state = state
        self._df: pd.DataFrame = pd.DataFrame(columns=self.empty_columns)
        self.error: str = ''

        self._connect_signals()

    def _connect_signals(self) -> None:
        signals.initializationRequested.connect(self.init_data)
        signals.expensesChanged.connect(self.init_data)
        signals.metadataChanged.connect(self.on_metadata_changed)

    def load(self) -> pd.DataFrame:
        raise NotImplementedError

    def rowCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self._df)

    def columnCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self.columns)

    def headerData(self, section: int, orientation: QtCore.Qt.Orientation,
                   role: int = QtCore.Qt.DisplayRole) -> Any:
        if role == QtCore.Qt.DisplayRole and orientation == QtCore.Qt.Horizontal:
            if 0 <= section < len(self.columns):
                return self.columns(section).name
        return None

    def is_empty(self) -> bool:
        """True if there is nothing to show."""
        return self._df.empty

    @QtCore.Slot(str, object)
    def on_metadata_changed(self, key: str, value: object) -> None:
        if key not in ('locale', 'currency'):
            return
        if not self.rowCount():
            return
        self.dataChanged.emit(
            self.index(0, 0),
            self.index(self.rowCount() - 1, self.columnCount() - 1)
        )

    @QtCore.Slot()
    def init_data(self) -> None:
        """Reload the model from storage."""
        logging.debug(f'Initializing {self.__class__.__name__} data')
        self.beginResetModel()
        try:
            self._df = self.load()
            self.error = ''
        except status.StorageCorruptException as ex:
            self._df = pd.DataFrame(columns=self.empty_columns)
            self.error = str(ex)
        finally:
            self.endResetModel()


class ExpenseListModel(BaseExpenseModel):
    """Table model of the expenses, newest first."""
    columns = ExpenseColumns
    empty_columns = lib.EXPENSE_COLUMNS

    def load(self) -> pd.DataFrame:
        return data.get_expenses(self.state.storage)

    def expense_id(self, row: int) -> Optional[int]:
        """Return the id of the expense shown in ``row``."""
        if row < 0 or row >= self.rowCount():
            return None
        return int(self._df.iloc[row]['id'])

    def data(self, index: QtCore.QModelIndex, role: int = QtCore.Qt.DisplayRole) -> Any:
        if not index.isValid():
            return None
        row = index.row()
        col = index.column()
        if row < 0 or row >= self.rowCount():
            return None

        record = self._df.iloc[row]

        if role == IdRole:
            return int(record['id'])
        if role == AmountRole:
            return int(record['amount'])

        if role == QtCore.Qt.DisplayRole:
            if col == ExpenseColumns.Date:
                return locale.format_date(record['date'], self.state.locale)
            if col == ExpenseColumns.Category:
                return record['category']
            if col == ExpenseColumns.Memo:
                return record['memo']
            if col == ExpenseColumns.Amount:
                return locale.format_amount(int(record['amount']), self.state.locale, self.state.currency)
            if col == ExpenseColumns.Delete:
                return 'Delete'

        if role == QtCore.Qt.ToolTipRole:
            if col == ExpenseColumns.Memo and record['memo']:
                return record['memo']
            if col == ExpenseColumns.Delete:
                return 'Delete this expense'

        if role == QtCore.Qt.TextAlignmentRole:
            if col in (ExpenseColumns.Amount, ExpenseColumns.Delete):
                return QtCore.Qt.AlignRight | QtCore.Qt.AlignVCenter
            return QtCore.Qt.AlignLeft | QtCore.Qt.AlignVCenter

        if role == QtCore.Qt.FontRole and col == ExpenseColumns.Amount:
            font = QtGui.QFont()
            font.setBold(True)
            return font

        return None


class SummaryModel(BaseExpenseModel):
    """Table model of the per-category totals, largest first."""
    columns = SummaryColumns
    empty_columns = lib.SUMMARY_COLUMNS

    def __init__(self, state, parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(state, parent=parent)
        self.total: int = 0

    def load(self) -> pd.DataFrame:
        df = data.get_summary(self.state.storage)
        self.total = int(df['total'].sum()) if not df.empty else 0
        return df

    @QtCore.Slot()
    def init_data(self) -> None:
        self.total = 0
        super().init_data()

    def format_count(self, count: int) -> str:
        return f'{locale.format_number(int(count), self.state.locale)} item(s)'

    def formatted_total(self) -> str:
        """The grand total formatted as currency."""
        return locale.format_amount(self.total, self.state.locale, self.state.currency)

    def data(self, index: QtCore.QModelIndex, role: int = QtCore.Qt.DisplayRole) -> Any:
        if not index.isValid():
            return None
        row = index.row()
        col = index.column()
        if row < 0 or row >= self.rowCount():
            return None

        record = self._df.iloc[row]

        if role == AmountRole:
            return int(record['total'])

        if role == QtCore.Qt.DisplayRole:
            if col == SummaryColumns.Category:
                return record['category']
            if col == SummaryColumns.Total:
                return locale.format_amount(int(record['total']), self.state.locale, self.state.currency)
            if col == SummaryColumns.Transactions:
                return self.format_count(record['transactions'])

        if role == QtCore.Qt.ToolTipRole:
            average = locale.format_amount(int(record['average']), self.state.locale, self.state.currency)
            return f'{record["category"]}: {self.format_count(record["transactions"])}, average {average}'

        if role == QtCore.Qt.TextAlignmentRole:
            if col == SummaryColumns.Category:
                return QtCore.Qt.AlignLeft | QtCore.Qt.AlignVCenter
            return QtCore.Qt.AlignRight | QtCore.Qt.AlignVCenter

        return None
