"""Data API for the expense list and the per-category summary.

This module loads the stored collection into pandas DataFrames shaped for the list and
summary views. The stored collection itself is never reordered; every function works on
a copy.
"""
import logging
from typing import Sequence

import pandas as pd

from ..core.expense import Expense
from ..core.storage import StorageAPI
from ..settings import lib


def _to_dataframe(expenses: Sequence[Expense]) -> pd.DataFrame:
    """Build a DataFrame with :data:`lib.EXPENSE_COLUMNS` from records.

    ``date`` holds :class:`datetime.date` objects, not datetime64 values.
    """
    df = pd.DataFrame(
        [(e.id, e.date, e.category, e.amount, e.memo) for e in expenses],
        columns=lib.EXPENSE_COLUMNS,
    )
    df['amount'] = df['amount'].astype('int64')
    df['id'] = df['id'].astype('int64')
    return df


def _average(total: int, count: int) -> int:
    """``total / count`` rounded half up, in integer arithmetic."""
    total, count = int(total), int(count)
    return (2 * total + count) // (2 * count)


def get_expenses(storage: StorageAPI) -> pd.DataFrame:
    """Load the collection for the expense list.

    Args:
        storage: The storage to read.

    Returns:
        pd.DataFrame: Columns ``id, date, category, amount, memo`` sorted by ``date``
        descending. Records sharing a date keep their stored order.
    """
    # sorted() is stable with reverse=True, so records sharing a date keep their order
    expenses = sorted(storage.load(), key=lambda e: e.date, reverse=True)
    df = _to_dataframe(expenses)
    if df.empty:
        return df

    logging.debug(f'Loaded {len(df)} expense(s) for the list.')
    return df


def get_summary(storage: StorageAPI) -> pd.DataFrame:
    """Aggregate the collection per category.

    Args:
        storage: The storage to read.

    Returns:
        pd.DataFrame: Columns ``category, total, transactions, average``, one row per category
        present in the collection, sorted by ``total`` descending and then by ``category``.
        ``average`` is rounded half up to an integer.
    """
    df = _to_dataframe(storage.load())
    if df.empty:
        return pd.DataFrame(columns=lib.SUMMARY_COLUMNS)

    df = (
        df.groupby('category', sort=False)['amount']
        .agg(total='sum', transactions='count')
        .reset_index()
    )
    df['total'] = df['total'].astype('int64')
    df['transactions'] = df['transactions'].astype('int64')
    df['average'] = [
        _average(t, n) for t, n in zip(df['total'], df['transactions'])
    ]
    df = (
        df.sort_values(['total', 'category'], ascending=[False, True], kind='stable')
        .reset_index(drop=True)
    )
    return df[lib.SUMMARY_COLUMNS]


def get_total(storage: StorageAPI) -> int:
    """Return the sum of all amounts, or 0 for an empty collection."""
    return sum(e.amount for e in storage.load())
