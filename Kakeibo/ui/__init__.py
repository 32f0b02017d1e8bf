"""
UI package: application signals, main application setup, theming, and widgets.

This package provides:

- :mod:`Kakeibo.ui.actions` – Application-wide Qt signals.
- :mod:`Kakeibo.ui.app` – QApplication subclass setting application metadata and waiting for pending syncs on quit.
- :mod:`Kakeibo.ui.main` – Main window composition, sync and restore actions.
- :mod:`Kakeibo.ui.form` – The expense entry form.
- :mod:`Kakeibo.ui.notification` – Transient toast notifications.
- :mod:`Kakeibo.ui.ui` – Themes, sizes, colors and the style sheet.
"""
