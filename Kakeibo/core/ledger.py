"""Add, delete and merge expenses.

All mutations load, modify and save the collection inside one
:meth:`~Kakeibo.core.storage.StorageAPI.transaction`, then emit ``expensesChanged`` so the
list and summary models reload.
"""
import datetime
import logging
import re
from typing import Any, Iterable, Tuple, Union

from .expense import MAX_VALUE, Expense
from ..settings import locale
from ..status import status

THOUSANDS_SEPARATORS = (',', '，', '_', ' ')


def _validate_date(value: Union[str, datetime.date]) -> datetime.date:
    if isinstance(value, datetime.date):
        return value.date() if isinstance(value, datetime.datetime) else value
    if not isinstance(value, str) or not value.strip():
        raise status.DateInvalidException
    try:
        return locale.parse_date(value)
    except ValueError as ex:
        raise status.DateInvalidException(str(ex)) from ex


def _validate_amount(value: Any) -> int:
    if isinstance(value, bool):
        raise status.AmountInvalidException(f'Got "{value}".')
    if isinstance(value, float):
        if not value.is_integer():
            raise status.AmountInvalidException(f'Got {value}.')
        value = int(value)
    elif isinstance(value, str):
        text = value.strip()
        for sep in THOUSANDS_SEPARATORS:
            text = text.replace(sep, '')
        # longer strings are out of range anyway
        if not re.fullmatch(r'\d{1,16}', text):
            raise status.AmountInvalidException(f'Got "{value}".')
        value = int(text)
    elif not isinstance(value, int):
        raise status.AmountInvalidException(f'Got "{value}".')

    if not 0 <= value <= MAX_VALUE:
        raise status.AmountInvalidException(f'Got {value}, must be between 0 and {MAX_VALUE}.')
    return value


def validate(date: Union[str, datetime.date], category: str, amount: Any,
             memo: str = '') -> Tuple[datetime.date, str, int, str]:
    """Validate and normalize form input.

    Args:
        date: An ISO ``YYYY-MM-DD`` (or ``YYYY/MM/DD``) string, or a date.
        category: The category label.
        amount: An integer from 0 to :data:`~Kakeibo.core.expense.MAX_VALUE`, or a string of
            one. Surrounding whitespace and thousands separators are ignored.
        memo: Optional free text.

    Returns:
        tuple: The normalized ``(date, category, amount, memo)``.

    Raises:
        status.DateInvalidException: If the date is empty or not a calendar date.
        status.CategoryInvalidException: If the category is empty.
        status.AmountInvalidException: If the amount is not an integer in that range.
    """
    date = _validate_date(date)

    if not isinstance(category, str) or not category.strip():
        raise status.CategoryInvalidException
    category = category.strip()

    amount = _validate_amount(amount)

    memo = (memo or '').strip()
    return date, category, amount, memo


def add_expense(state, date: Union[str, datetime.date], category: str, amount: Any,
                memo: str = '') -> Expense:
    """Validate the input, then create and persist a new expense.

    Args:
        state (AppState): The application state.
        date: The spending date.
        category: The category label.
        amount: The amount.
        memo: Optional free text.

    Returns:
        Expense: The stored record.

    Raises:
        status.ValidationException: If the input is invalid. Nothing is stored.
        status.StorageCorruptException: If the stored collection cannot be read.
    """
    date, category, amount, memo = validate(date, category, amount, memo)

    with state.storage.transaction() as txn:
        expense = Expense(
            id=txn.next_id(),
            date=date,
            category=category,
            amount=amount,
            memo=memo,
        )
        txn.expenses.append(expense)

    logging.info(f'Added expense {expense.id}: {expense.date} {expense.category} {expense.amount}')

    from ..ui.actions import signals
    signals.expensesChanged.emit()
    return expense


def delete_expense(state, expense_id: int) -> bool:
    """Remove the expense with the given id.

    Args:
        state (AppState): The application state.
        expense_id: The id of the record to remove.

    Returns:
        bool: True if a record was removed, False if no record has that id.
    """
    with state.storage.transaction() as txn:
        kept = [e for e in txn.expenses if e.id != expense_id]
        removed = len(txn.expenses) - len(kept)
        txn.expenses[:] = kept

    if not removed:
        logging.debug(f'No expense with id {expense_id}, nothing deleted.')
        return False

    logging.info(f'Deleted expense {expense_id}')

    from ..ui.actions import signals
    signals.expensesChanged.emit()
    return True


def merge_expenses(state, records: Iterable[Expense]) -> int:
    """Add the records whose id is not yet present locally.

    Used to restore the local collection from the spreadsheet.

    Args:
        state (AppState): The application state.
        records: The records to merge.

    Returns:
        int: The number of records added.
    """
    added = 0
    with state.storage.transaction() as txn:
        ids = {e.id for e in txn.expenses}
        for record in records:
            if record.id in ids:
                continue
            txn.expenses.append(record)
            ids.add(record.id)
            added += 1

    logging.info(f'Merged {added} expense(s) into the local collection.')
    if added:
        from ..ui.actions import signals
        signals.expensesChanged.emit()
    return added


def clear_expenses(state) -> None:
    """Delete the whole local collection.

    The id high-water mark is kept, so ids handed out later never repeat earlier ones. An
    unreadable collection is deleted as well.

    Args:
        state (AppState): The application state.
    """
    state.storage.clear()
    logging.info(f'Cleared the local collection "{state.storage.key}".')

    from ..ui.actions import signals
    signals.expensesChanged.emit()
