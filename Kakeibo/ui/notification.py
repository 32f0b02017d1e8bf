"""Transient toast notification shown over the main window."""

from PySide6 import QtCore, QtWidgets

from . import ui

NOTIFICATION_TIMEOUT_MS: int = 2000


class Notification(QtWidgets.QLabel):
    """A label that appears at the bottom of its parent and hides itself after a timeout."""

    def __init__(self, parent: QtWidgets.QWidget, timeout: int = NOTIFICATION_TIMEOUT_MS) -> None:
        super().__init__(parent=parent)
        self.setObjectName('KakeiboNotification')
        self.setAlignment(QtCore.Qt.AlignCenter)
        self.setWordWrap(True)
        self.setAttribute(QtCore.Qt.WA_TransparentForMouseEvents, True)
        self.hide()

        self._timer = QtCore.QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(timeout)
        self._timer.timeout.connect(self.hide)

    @QtCore.Slot(str)
    def show_message(self, message: str) -> None:
        """Show a message and restart the hide timer."""
        self.setText(message)
        self._reposition()
        self.show()
        self.raise_()
        self._timer.start()

    def is_active(self) -> bool:
        """True while the message is visible and the hide timer is running."""
        return self._timer.isActive()

    def _reposition(self) -> None:
        parent = self.parentWidget()
        if parent is None:
            return
        width = min(parent.width() - ui.Size.Margin(2.0), ui.Size.DefaultWidth(0.75))
        self.setFixedWidth(max(width, ui.Size.DefaultWidth(0.25)))
        self.adjustSize()
        x = (parent.width() - self.width()) // 2
        y = parent.height() - self.height() - ui.Size.Margin(1.0)
        self.move(x, y)
