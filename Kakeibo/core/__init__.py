"""
Core package for Kakeibo providing the expense ledger and its persistence.

This package includes:

- :mod:`Kakeibo.core.expense` – The expense record, its serialized form and id generation.
- :mod:`Kakeibo.core.storage` – Local SQLite key-value storage of the whole collection.
- :mod:`Kakeibo.core.ledger` – Validation, add, delete and merge operations.
- :mod:`Kakeibo.core.sync` – Pushing to and restoring from the spreadsheet collector.
- :mod:`Kakeibo.core.state` – The application state passed to operations and widgets.
"""
