"""The expense entry form.

The form collects a date, a category, an amount and an optional memo, and passes them to
:func:`Kakeibo.core.ledger.add_expense`. Invalid input is reported in a warning dialog and
leaves the form untouched; a successful submit resets the form and shows a notification.
"""
import logging
from typing import Optional

from PySide6 import QtCore, QtWidgets

from . import ui
from .actions import signals
from ..core import ledger
from ..status import status

DATE_FORMAT = 'yyyy-MM-dd'


class ExpenseForm(QtWidgets.QGroupBox):
    """Form widget for entering a new expense.

    Signals:
        expenseAdded (object): Emitted with the stored :class:`~Kakeibo.core.expense.Expense`.
    """
    expenseAdded = QtCore.Signal(object)

    def __init__(self, state, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__('New expense', parent=parent)
        self.setObjectName('KakeiboExpenseForm')
        self.state = state

        self.date_edit: QtWidgets.QDateEdit
        self.category_combo: QtWidgets.QComboBox
        self.amount_edit: QtWidgets.QLineEdit
        self.memo_edit: QtWidgets.QLineEdit
        self.submit_button: QtWidgets.QPushButton

        self._create_ui()
        self._connect_signals()

        self.init_categories()
        self.reset()

    def _create_ui(self) -> None:
        layout = QtWidgets.QFormLayout(self)
        o = ui.Size.Margin(0.5)
        layout.setContentsMargins(o, o, o, o)
        layout.setSpacing(o)

        self.date_edit = QtWidgets.QDateEdit(parent=self)
        self.date_edit.setCalendarPopup(True)
        self.date_edit.setDisplayFormat(DATE_FORMAT)
        layout.addRow('Date', self.date_edit)

        self.category_combo = QtWidgets.QComboBox(parent=self)
        self.category_combo.setPlaceholderText('Select a category')
        layout.addRow('Category', self.category_combo)

        self.amount_edit = QtWidgets.QLineEdit(parent=self)
        self.amount_edit.setPlaceholderText('0')
        self.amount_edit.setAlignment(QtCore.Qt.AlignRight | QtCore.Qt.AlignVCenter)
        layout.addRow('Amount', self.amount_edit)

        self.memo_edit = QtWidgets.QLineEdit(parent=self)
        self.memo_edit.setPlaceholderText('Optional')
        layout.addRow('Memo', self.memo_edit)

        self.submit_button = QtWidgets.QPushButton('Add', parent=self)
        self.submit_button.setDefault(True)
        layout.addRow(self.submit_button)

    def _connect_signals(self) -> None:
        self.submit_button.clicked.connect(self.submit)
        self.amount_edit.returnPressed.connect(self.submit)
        self.memo_edit.returnPressed.connect(self.submit)

        signals.configSectionChanged.connect(self.on_config_section_changed)

    @QtCore.Slot(str)
    def on_config_section_changed(self, section: str) -> None:
        if section == 'categories':
            self.init_categories()

    @QtCore.Slot()
    def init_categories(self) -> None:
        """Fill the category combo box from the settings."""
        current = self.category_combo.currentText()

        self.category_combo.blockSignals(True)
        self.category_combo.clear()
        self.category_combo.addItems(self.state.categories)
        self.category_combo.setCurrentIndex(self.category_combo.findText(current) if current else -1)
        self.category_combo.blockSignals(False)

    @QtCore.Slot()
    def reset(self) -> None:
        """Set the date to today and clear the other fields."""
        self.date_edit.setDate(QtCore.QDate.currentDate())
        self.category_combo.setCurrentIndex(-1)
        self.amount_edit.clear()
        self.memo_edit.clear()

    def _field_widget(self, field: str) -> Optional[QtWidgets.QWidget]:
        return {
            'date': self.date_edit,
            'category': self.category_combo,
            'amount': self.amount_edit,
        }.get(field)

    @QtCore.Slot()
    def submit(self) -> None:
        """Validate and store the entered expense."""
        try:
            expense = ledger.add_expense(
                self.state,
                self.date_edit.date().toString(DATE_FORMAT),
                self.category_combo.currentText(),
                self.amount_edit.text(),
                self.memo_edit.text(),
            )
        except status.ValidationException as ex:
            QtWidgets.QMessageBox.warning(self, 'Invalid input', str(ex))
            widget = self._field_widget(ex.field)
            if widget is not None:
                widget.setFocus()
            return
        except status.StorageCorruptException:
            from .main import prompt_storage_recovery
            prompt_storage_recovery(self.state, parent=self)
            return

        logging.debug(f'Form submitted expense {expense.id}')
        self.reset()
        self.category_combo.setFocus()

        signals.showNotification.emit('Expense added.')
        self.expenseAdded.emit(expense)
