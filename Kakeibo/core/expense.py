"""The expense record and its serialized form.

An expense is stored as a JSON object with the keys ``id``, ``date``, ``category``,
``amount`` and ``memo``, in that order. Dates are serialized as ``YYYY-MM-DD``.
"""
import datetime
import math
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping

from ..settings import locale

FIELDS = ('id', 'date', 'category', 'amount', 'memo')

#: Largest id or amount accepted. The spreadsheet stores numbers as doubles, and the value
#: also fits the int64 columns of the list and summary.
MAX_VALUE = 2 ** 53 - 1


def _whole_number(name: str, value: Any) -> int:
    """Return ``value`` as an int in ``0..MAX_VALUE``.

    Raises:
        ValueError: If value is not a whole number in range.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f'Expense {name} must be an integer, got "{value}".')
    if isinstance(value, float) and not (math.isfinite(value) and value.is_integer()):
        raise ValueError(f'Expense {name} must be an integer, got "{value}".')
    if not 0 <= value <= MAX_VALUE:
        raise ValueError(f'Expense {name} must be between 0 and {MAX_VALUE}, got {value}.')
    return int(value)


@dataclass(frozen=True)
class Expense:
    """One user-entered spending entry. Records are never edited after creation."""
    id: int
    date: datetime.date
    category: str
    amount: int
    memo: str = ''

    def to_dict(self) -> Dict[str, Any]:
        """Return the serializable representation of the record."""
        return {
            'id': self.id,
            'date': self.date.isoformat(),
            'category': self.category,
            'amount': self.amount,
            'memo': self.memo,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Expense':
        """Build a record from its serialized representation.

        Args:
            data: Mapping with at least ``id``, ``date``, ``category`` and ``amount``.
                ``memo`` may be missing or null.

        Returns:
            Expense: The record.

        Raises:
            ValueError: If a field is missing or has an unusable value.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f'Expense must be an object, got {type(data).__name__}.')

        missing = [k for k in FIELDS[:-1] if k not in data]
        if missing:
            raise ValueError(f'Expense is missing {missing}.')

        _id = _whole_number('id', data['id'])
        amount = _whole_number('amount', data['amount'])

        category = data['category']
        if not isinstance(category, str) or not category:
            raise ValueError(f'Expense category must be a non-empty string, got "{category}".')

        memo = data.get('memo') or ''
        if not isinstance(memo, str):
            memo = str(memo)

        return cls(
            id=_id,
            date=locale.parse_date(data['date']),
            category=category,
            amount=amount,
            memo=memo,
        )


def now_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def next_id(high_water: int) -> int:
    """Return a new id strictly greater than ``high_water``.

    Ids follow the wall clock in epoch milliseconds, so they stay comparable with ids
    created by earlier versions, but never repeat even within the same millisecond.

    Args:
        high_water: The largest id handed out so far.

    Returns:
        int: The new id.
    """
    return max(now_ms(), high_water + 1)
