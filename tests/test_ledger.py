"""Tests for Kakeibo.core.ledger.

Run:
    python -m unittest tests.test_ledger
"""
import datetime

from Kakeibo.core import ledger
from Kakeibo.status import status
from Kakeibo.ui.actions import signals
from tests.base import BaseTestCase, make_expense, mute_ui_signals


class ValidateTests(BaseTestCase):

    def test_valid_input_is_normalized(self):
        date, category, amount, memo = ledger.validate('2024-01-02', ' Food ', ' 1,500 ', ' lunch ')
        self.assertEqual(date, datetime.date(2024, 1, 2))
        self.assertEqual(category, 'Food')
        self.assertEqual(amount, 1500)
        self.assertEqual(memo, 'lunch')

    def test_memo_is_optional(self):
        *_, memo = ledger.validate('2024-01-02', 'Food', '100')
        self.assertEqual(memo, '')

    def test_thousands_separators_are_ignored(self):
        for value in ('1,500', '1，500', '1_500', '1 500', 1500, 1500.0):
            with self.subTest(value=value):
                self.assertEqual(ledger.validate('2024-01-02', 'Food', value)[2], 1500)

    def test_zero_is_accepted(self):
        self.assertEqual(ledger.validate('2024-01-02', 'Food', '0')[2], 0)

    def test_invalid_amounts(self):
        for value in ('', '   ', 'abc', '-5', '12.5', '1e3', -1, 2.5, True, None):
            with self.subTest(value=value):
                with self.assertRaises(status.AmountInvalidException):
                    ledger.validate('2024-01-02', 'Food', value)

    def test_amount_upper_bound(self):
        self.assertEqual(ledger.validate('2024-01-02', 'Food', 2 ** 53 - 1)[2], 2 ** 53 - 1)
        for value in (2 ** 53, '99999999999999999999', '9' * 5000, float(2 ** 60), float('inf')):
            with self.subTest(value=value):
                with self.assertRaises(status.AmountInvalidException):
                    ledger.validate('2024-01-02', 'Food', value)

    def test_invalid_dates(self):
        for value in ('', 'tomorrow', '2024-02-30', '2024-13-01', None):
            with self.subTest(value=value):
                with self.assertRaises(status.DateInvalidException):
                    ledger.validate(value, 'Food', '100')

    def test_date_objects_are_accepted(self):
        self.assertEqual(
            ledger.validate(datetime.datetime(2024, 1, 2, 15, 30), 'Food', '1')[0],
            datetime.date(2024, 1, 2)
        )

    def test_invalid_categories(self):
        for value in ('', '  ', None):
            with self.subTest(value=value):
                with self.assertRaises(status.CategoryInvalidException):
                    ledger.validate('2024-01-02', value, '100')

    def test_errors_name_their_field(self):
        self.assertEqual(status.DateInvalidException.field, 'date')
        self.assertEqual(status.CategoryInvalidException.field, 'category')
        self.assertEqual(status.AmountInvalidException.field, 'amount')


class AddExpenseTests(BaseTestCase):

    def test_add_expense_stores_record(self):
        with mute_ui_signals():
            expense = ledger.add_expense(self.state, '2024-01-02', 'Food', '1,500', 'lunch')

        stored = self.state.storage.load()
        self.assertEqual(stored, [expense])
        self.assertEqual(expense.amount, 1500)
        self.assertEqual(expense.memo, 'lunch')

    def test_oversized_amount_is_not_stored(self):
        with mute_ui_signals():
            with self.assertRaises(status.AmountInvalidException):
                ledger.add_expense(self.state, '2024-01-01', 'Food', '99999999999999999999')
        self.assertEqual(self.state.storage.load(), [])

    def test_add_expense_appends_in_order(self):
        with mute_ui_signals():
            a = ledger.add_expense(self.state, '2024-01-02', 'Food', '1')
            b = ledger.add_expense(self.state, '2024-01-01', 'Food', '2')

        self.assertEqual(self.state.storage.load(), [a, b])
        self.assertGreater(b.id, a.id)

    def test_add_expense_emits_expenses_changed(self):
        emitted = []

        def _slot():
            emitted.append(True)

        signals.expensesChanged.connect(_slot)
        try:
            ledger.add_expense(self.state, '2024-01-02', 'Food', '100')
        finally:
            signals.expensesChanged.disconnect(_slot)
        self.assertEqual(emitted, [True])

    def test_invalid_input_stores_nothing(self):
        with mute_ui_signals():
            with self.assertRaises(status.AmountInvalidException):
                ledger.add_expense(self.state, '2024-01-02', 'Food', 'abc')
        self.assertIsNone(self.state.storage.load_raw())

    def test_add_to_corrupt_storage_raises(self):
        self.state.storage.save_raw('not json')
        with mute_ui_signals():
            with self.assertRaises(status.StorageCorruptException):
                ledger.add_expense(self.state, '2024-01-02', 'Food', '100')
        self.assertEqual(self.state.storage.load_raw(), 'not json')


class DeleteExpenseTests(BaseTestCase):

    def setUp(self):
        super().setUp()
        self.store([
            make_expense(1, '2024-01-01', 'Food', 100),
            make_expense(2, '2024-01-02', 'Food', 200),
            make_expense(3, '2024-01-03', 'Transport', 300),
        ])

    def test_delete_removes_only_that_record(self):
        with mute_ui_signals():
            self.assertTrue(ledger.delete_expense(self.state, 2))
        self.assertEqual([e.id for e in self.state.storage.load()], [1, 3])

    def test_delete_missing_id_is_a_noop(self):
        before = self.state.storage.load_raw()
        emitted = []

        def _slot():
            emitted.append(True)

        signals.expensesChanged.connect(_slot)
        try:
            self.assertFalse(ledger.delete_expense(self.state, 42))
        finally:
            signals.expensesChanged.disconnect(_slot)

        self.assertEqual(self.state.storage.load_raw(), before)
        self.assertEqual(emitted, [])

    def test_delete_last_record_leaves_empty_collection(self):
        with mute_ui_signals():
            for _id in (1, 2, 3):
                ledger.delete_expense(self.state, _id)
        self.assertEqual(self.state.storage.load(), [])


class MergeExpensesTests(BaseTestCase):

    def test_merge_adds_only_unknown_ids(self):
        self.store([make_expense(1, '2024-01-01', 'Food', 100)])
        remote = [
            make_expense(1, '2024-01-01', 'Food', 999),
            make_expense(2, '2024-01-02', 'Food', 200),
            make_expense(2, '2024-01-02', 'Food', 200),
        ]
        with mute_ui_signals():
            added = ledger.merge_expenses(self.state, remote)

        self.assertEqual(added, 1)
        stored = self.state.storage.load()
        self.assertEqual([e.id for e in stored], [1, 2])
        self.assertEqual(stored[0].amount, 100)

    def test_merge_nothing_new(self):
        self.store([make_expense(1, '2024-01-01', 'Food', 100)])
        with mute_ui_signals():
            self.assertEqual(ledger.merge_expenses(self.state, []), 0)


class ClearExpensesTests(BaseTestCase):

    def test_clear_keeps_id_high_water_mark(self):
        with mute_ui_signals():
            first = ledger.add_expense(self.state, '2024-01-01', 'Food', '1')
            ledger.clear_expenses(self.state)
            second = ledger.add_expense(self.state, '2024-01-01', 'Food', '2')

        self.assertGreater(second.id, first.id)
        self.assertEqual(self.state.storage.load(), [second])

    def test_clear_removes_unreadable_collection(self):
        self.state.storage.save_raw('not json')
        emitted = []

        def _slot():
            emitted.append(True)

        signals.expensesChanged.connect(_slot)
        try:
            ledger.clear_expenses(self.state)
        finally:
            signals.expensesChanged.disconnect(_slot)

        self.assertIsNone(self.state.storage.load_raw())
        self.assertEqual(emitted, [True])
