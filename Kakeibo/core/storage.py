"""
Local key-value storage for the expense collection.

The whole collection is kept as a single JSON text value under one key of a small SQLite
key-value table. Readers load the whole value and writers replace it wholesale; there is no
partial update. Every mutation runs inside :meth:`StorageAPI.transaction`, which makes the
load-modify-save sequence atomic.
"""

import contextlib
import enum
import json
import logging
import pathlib
import sqlite3
import threading
from typing import Iterator, List, Optional, Sequence, Union

from .expense import Expense, next_id
from ..status import status

DEFAULT_KEY = 'expenses'
SQLITE_TIMEOUT = 5.0


class Table(enum.StrEnum):
    """Enum for database tables."""
    Storage = 'storage'


def encode(expenses: Sequence[Expense]) -> str:
    """Serialize a collection to the stored JSON text.

    Args:
        expenses: The records to serialize.

    Returns:
        str: Compact JSON array text.
    """
    return json.dumps([e.to_dict() for e in expenses], ensure_ascii=False, separators=(',', ':'))


def decode(raw: Optional[str]) -> List[Expense]:
    """Parse the stored JSON text into records.

    An absent or empty value is an empty collection.

    Args:
        raw: The stored text, or None if the key is absent.

    Returns:
        list[Expense]: The records, in stored order.

    Raises:
        status.StorageCorruptException: If the text is not a JSON array of well-formed records.
    """
    if raw is None or not raw.strip():
        return []

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as ex:
        raise status.StorageCorruptException(f'Invalid JSON: {ex}') from ex

    if not isinstance(data, list):
        raise status.StorageCorruptException(f'Expected a list of expenses, got {type(data).__name__}.')

    expenses: List[Expense] = []
    for idx, item in enumerate(data):
        try:
            expenses.append(Expense.from_dict(item))
        except ValueError as ex:
            raise status.StorageCorruptException(f'Record {idx}: {ex}') from ex

    ids = [e.id for e in expenses]
    if len(ids) != len(set(ids)):
        logging.warning(f'Stored collection contains {len(ids) - len(set(ids))} duplicate id(s).')

    return expenses


class StorageTransaction:
    """The mutable view of the collection handed out by :meth:`StorageAPI.transaction`.

    Attributes:
        expenses (list[Expense]): The loaded collection. Modify it in place.
    """

    def __init__(self, storage: 'StorageAPI', conn: sqlite3.Connection, expenses: List[Expense]) -> None:
        self._storage = storage
        self._conn = conn
        self.expenses = expenses

    def next_id(self) -> int:
        """Allocate a new unique id and persist the high-water mark.

        The high-water mark is the larger of the stored mark and the largest id in the
        collection, so data written before the mark existed is covered too.

        Returns:
            int: The new id.
        """
        stored = self._storage._get(self._conn, self._storage.last_id_key)
        try:
            high_water = int(stored) if stored else 0
        except ValueError:
            logging.warning(f'Ignoring invalid id high-water mark "{stored}".')
            high_water = 0
        high_water = max([high_water] + [e.id for e in self.expenses])

        _id = next_id(high_water)
        self._storage._set(self._conn, self._storage.last_id_key, str(_id))
        return _id


class StorageAPI:
    """Reads and writes the expense collection under one fixed key.

    Args:
        db_path: Path of the SQLite database file.
        key: The key the collection is stored under.
    """

    def __init__(self, db_path: Union[str, pathlib.Path], key: str = DEFAULT_KEY) -> None:
        if not key:
            raise ValueError('Storage key must not be empty.')

        self.db_path: pathlib.Path = pathlib.Path(db_path)
        self.key: str = key
        self._lock = threading.RLock()

        self._initialize_schema_if_needed()

    @property
    def last_id_key(self) -> str:
        """Key of the id high-water mark."""
        return f'{self.key}.last_id'

    @property
    def corrupt_key(self) -> str:
        """Key a corrupt collection is moved to by :meth:`quarantine`."""
        return f'{self.key}.corrupt'

    def connection(self) -> sqlite3.Connection:
        """Return a new autocommit connection to the storage database.

        Returns:
            sqlite3.Connection: Database connection object.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(str(self.db_path), timeout=SQLITE_TIMEOUT, isolation_level=None)

    def _initialize_schema_if_needed(self) -> None:
        """Create the key-value table if it does not exist."""
        conn = self.connection()
        try:
            conn.execute(
                f'CREATE TABLE IF NOT EXISTS {Table.Storage.value} '
                '(key TEXT PRIMARY KEY, value TEXT NOT NULL)'
            )
            logging.debug(f'Storage table ready in "{self.db_path}".')
        finally:
            conn.close()

    @staticmethod
    def _get(conn: sqlite3.Connection, key: str) -> Optional[str]:
        row = conn.execute(f'SELECT value FROM {Table.Storage.value} WHERE key=?', (key,)).fetchone()
        return row[0] if row else None

    @staticmethod
    def _set(conn: sqlite3.Connection, key: str, value: str) -> None:
        conn.execute(
            f'INSERT INTO {Table.Storage.value} (key, value) VALUES (?, ?) '
            'ON CONFLICT(key) DO UPDATE SET value=excluded.value',
            (key, value)
        )

    @staticmethod
    def _delete(conn: sqlite3.Connection, key: str) -> None:
        conn.execute(f'DELETE FROM {Table.Storage.value} WHERE key=?', (key,))

    def get_value(self, key: str) -> Optional[str]:
        """Return the raw value stored under ``key``, or None if absent."""
        with self._lock:
            conn = self.connection()
            try:
                return self._get(conn, key)
            finally:
                conn.close()

    def load_raw(self) -> Optional[str]:
        """Return the raw stored collection text, or None if the key is absent."""
        return self.get_value(self.key)

    def save_raw(self, raw: str) -> None:
        """Overwrite the raw stored collection text."""
        with self._lock:
            conn = self.connection()
            try:
                self._set(conn, self.key, raw)
            finally:
                conn.close()

    def load(self) -> List[Expense]:
        """Load the whole collection.

        Returns:
            list[Expense]: The stored records, or an empty list if nothing is stored.

        Raises:
            status.StorageCorruptException: If the stored value cannot be parsed.
        """
        return decode(self.load_raw())

    def save(self, expenses: Sequence[Expense]) -> None:
        """Serialize and overwrite the whole collection.

        Args:
            expenses: The full collection to store.
        """
        self.save_raw(encode(expenses))
        logging.debug(f'Saved {len(expenses)} expense(s) under "{self.key}".')

    @contextlib.contextmanager
    def transaction(self) -> Iterator[StorageTransaction]:
        """Run a load-modify-save sequence as one atomic unit.

        Holds the storage lock and an immediate SQLite transaction for the duration of the
        block. The collection is saved when the block exits cleanly and has changed; any
        exception rolls everything back, including allocated ids.

        Yields:
            StorageTransaction: Holds the loaded ``expenses`` list to modify.

        Raises:
            status.StorageCorruptException: If the stored value cannot be parsed.
        """
        with self._lock:
            conn = self.connection()
            try:
                conn.execute('BEGIN IMMEDIATE')
                raw = self._get(conn, self.key)
                txn = StorageTransaction(self, conn, decode(raw))

                yield txn

                new_raw = encode(txn.expenses)
                if new_raw != raw and not (raw is None and not txn.expenses):
                    self._set(conn, self.key, new_raw)
                conn.execute('COMMIT')
            except BaseException:
                conn.execute('ROLLBACK')
                raise
            finally:
                conn.close()

    def quarantine(self) -> None:
        """Move an unreadable collection aside and start over with an empty one.

        The raw text is kept under :attr:`corrupt_key` so it can be recovered by hand.
        """
        with self._lock:
            conn = self.connection()
            try:
                conn.execute('BEGIN IMMEDIATE')
                raw = self._get(conn, self.key)
                if raw is not None:
                    self._set(conn, self.corrupt_key, raw)
                    self._delete(conn, self.key)
                conn.execute('COMMIT')
            except BaseException:
                conn.execute('ROLLBACK')
                raise
            finally:
                conn.close()
        logging.warning(f'Moved the stored collection to "{self.corrupt_key}".')

    def clear(self) -> None:
        """Delete the stored collection."""
        with self._lock:
            conn = self.connection()
            try:
                self._delete(conn, self.key)
            finally:
                conn.close()
        logging.debug(f'Cleared "{self.key}".')
