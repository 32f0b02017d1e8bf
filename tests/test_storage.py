"""Tests for Kakeibo.core.storage and the expense record.

Run:
    python -m unittest tests.test_storage
"""
import datetime
import json
from unittest.mock import patch

from Kakeibo.core import storage
from Kakeibo.core.expense import Expense
from Kakeibo.status import status
from tests.base import BaseTestCase, make_expense


class ExpenseRecordTests(BaseTestCase):

    def test_to_dict_uses_iso_date(self):
        e = make_expense(1, '2024-01-05', 'Food', 300, 'lunch')
        self.assertEqual(
            e.to_dict(),
            {'id': 1, 'date': '2024-01-05', 'category': 'Food', 'amount': 300, 'memo': 'lunch'}
        )

    def test_from_dict_tolerates_missing_and_null_memo(self):
        e = Expense.from_dict({'id': 1, 'date': '2024-01-05', 'category': 'Food', 'amount': 300})
        self.assertEqual(e.memo, '')
        e = Expense.from_dict({'id': 1, 'date': '2024-01-05', 'category': 'Food', 'amount': 300, 'memo': None})
        self.assertEqual(e.memo, '')

    def test_from_dict_accepts_integral_floats(self):
        e = Expense.from_dict({'id': 1.0, 'date': '2024-01-05', 'category': 'Food', 'amount': 300.0})
        self.assertEqual(e.id, 1)
        self.assertEqual(e.amount, 300)
        self.assertIsInstance(e.amount, int)

    def test_from_dict_rejects_bad_records(self):
        bad = [
            [],
            {'date': '2024-01-05', 'category': 'Food', 'amount': 300},
            {'id': 'x', 'date': '2024-01-05', 'category': 'Food', 'amount': 300},
            {'id': 1, 'date': 'yesterday', 'category': 'Food', 'amount': 300},
            {'id': 1, 'date': '2024-01-05', 'category': '', 'amount': 300},
            {'id': 1, 'date': '2024-01-05', 'category': 'Food', 'amount': 12.5},
            {'id': 1, 'date': '2024-01-05', 'category': 'Food', 'amount': True},
            {'id': 1, 'date': '2024-01-05', 'category': 'Food', 'amount': -5},
            {'id': 1, 'date': '2024-01-05', 'category': 'Food', 'amount': 2 ** 53},
            {'id': 1, 'date': '2024-01-05', 'category': 'Food', 'amount': float('inf')},
            {'id': -1, 'date': '2024-01-05', 'category': 'Food', 'amount': 300},
        ]
        for item in bad:
            with self.subTest(item=item):
                with self.assertRaises(ValueError):
                    Expense.from_dict(item)


class StorageTests(BaseTestCase):

    def test_absent_key_loads_empty(self):
        self.assertIsNone(self.state.storage.load_raw())
        self.assertEqual(self.state.storage.load(), [])

    def test_blank_value_loads_empty(self):
        self.state.storage.save_raw('   ')
        self.assertEqual(self.state.storage.load(), [])

    def test_save_then_load_preserves_order(self):
        expenses = [
            make_expense(3, '2024-01-03', 'Food', 100),
            make_expense(1, '2024-01-01', 'Transport', 2_000, '電車'),
            make_expense(2, '2024-01-02', 'Food', 0),
        ]
        self.store(expenses)
        self.assertEqual(self.state.storage.load(), expenses)

    def test_stored_text_is_compact_utf8_json(self):
        self.store([make_expense(1, '2024-01-01', '食費', 500)])
        raw = self.state.storage.load_raw()
        self.assertIn('食費', raw)
        self.assertNotIn(' ', raw)
        self.assertEqual(json.loads(raw)[0]['category'], '食費')

    def test_corrupt_json_raises(self):
        self.state.storage.save_raw('[{"id": 1,')
        with self.assertRaises(status.StorageCorruptException):
            self.state.storage.load()

    def test_non_list_raises(self):
        self.state.storage.save_raw('{"id": 1}')
        with self.assertRaises(status.StorageCorruptException):
            self.state.storage.load()

    def test_malformed_record_raises(self):
        self.state.storage.save_raw('[{"id": 1, "date": "2024-01-01", "category": "Food"}]')
        with self.assertRaises(status.StorageCorruptException):
            self.state.storage.load()

    def test_out_of_range_amounts_raise(self):
        for amount in (-5, 99999999999999999999):
            with self.subTest(amount=amount):
                self.state.storage.save_raw(
                    f'[{{"id": 1, "date": "2024-01-01", "category": "Food", "amount": {amount}}}]'
                )
                with self.assertRaises(status.StorageCorruptException):
                    self.state.storage.load()

    def test_corrupt_value_is_not_overwritten_by_transaction(self):
        self.state.storage.save_raw('not json')
        with self.assertRaises(status.StorageCorruptException):
            with self.state.storage.transaction() as txn:
                txn.expenses.append(make_expense(1, '2024-01-01', 'Food', 1))
        self.assertEqual(self.state.storage.load_raw(), 'not json')

    def test_quarantine_moves_value_aside(self):
        self.state.storage.save_raw('not json')
        self.state.storage.quarantine()

        self.assertIsNone(self.state.storage.load_raw())
        self.assertEqual(self.state.storage.load(), [])
        self.assertEqual(self.state.storage.get_value(self.state.storage.corrupt_key), 'not json')

    def test_clear(self):
        self.store([make_expense(1, '2024-01-01', 'Food', 1)])
        self.state.storage.clear()
        self.assertIsNone(self.state.storage.load_raw())

    def test_empty_key_is_rejected(self):
        with self.assertRaises(ValueError):
            storage.StorageAPI(self.state.settings.db_path, key='')

    def test_keys_are_independent(self):
        other = storage.StorageAPI(self.state.settings.db_path, key='other')
        self.store([make_expense(1, '2024-01-01', 'Food', 1)])
        self.assertEqual(other.load(), [])


class TransactionTests(BaseTestCase):

    def test_transaction_saves_on_exit(self):
        with self.state.storage.transaction() as txn:
            txn.expenses.append(make_expense(1, '2024-01-01', 'Food', 100))
        self.assertEqual(len(self.state.storage.load()), 1)

    def test_transaction_rolls_back_on_error(self):
        self.store([make_expense(1, '2024-01-01', 'Food', 100)])
        before = self.state.storage.load_raw()

        with self.assertRaises(RuntimeError):
            with self.state.storage.transaction() as txn:
                txn.next_id()
                txn.expenses.clear()
                raise RuntimeError('boom')

        self.assertEqual(self.state.storage.load_raw(), before)
        self.assertIsNone(self.state.storage.get_value(self.state.storage.last_id_key))

    def test_unchanged_empty_collection_is_not_written(self):
        with self.state.storage.transaction() as txn:
            self.assertEqual(txn.expenses, [])
        self.assertIsNone(self.state.storage.load_raw())

    def test_ids_increase_within_the_same_millisecond(self):
        with patch('Kakeibo.core.expense.now_ms', return_value=1_700_000_000_000):
            ids = []
            for _ in range(5):
                with self.state.storage.transaction() as txn:
                    _id = txn.next_id()
                    txn.expenses.append(make_expense(_id, '2024-01-01', 'Food', 1))
                ids.append(_id)

        self.assertEqual(ids, sorted(ids))
        self.assertEqual(len(set(ids)), 5)
        self.assertEqual(ids[0], 1_700_000_000_000)

    def test_ids_are_not_reused_after_delete(self):
        with patch('Kakeibo.core.expense.now_ms', return_value=1_000):
            with self.state.storage.transaction() as txn:
                first = txn.next_id()
                txn.expenses.append(make_expense(first, '2024-01-01', 'Food', 1))
            with self.state.storage.transaction() as txn:
                txn.expenses.clear()
            with self.state.storage.transaction() as txn:
                second = txn.next_id()

        self.assertGreater(second, first)

    def test_ids_exceed_existing_records(self):
        self.store([make_expense(9_999_999_999_999, '2024-01-01', 'Food', 1)])
        with self.state.storage.transaction() as txn:
            _id = txn.next_id()
        self.assertEqual(_id, 10_000_000_000_000)

    def test_ids_follow_the_clock(self):
        with self.state.storage.transaction() as txn:
            _id = txn.next_id()
        now = int(datetime.datetime.now().timestamp() * 1000)
        self.assertLess(abs(now - _id), 60_000)
