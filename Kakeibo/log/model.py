"""Table model and filter proxy for the in-memory log tank.

The model polls the :class:`~Kakeibo.log.log.TankHandler` and parses each formatted message
back into its date, module, level and message parts.
"""
import enum
import logging
import re
from typing import Any, NamedTuple, Optional

from PySide6 import QtCore, QtGui

from .log import TankHandler
from ..ui import ui


class Columns(enum.IntEnum):
    Date = 0
    Module = 1
    Level = 2
    Message = 3


class Level(enum.IntEnum):
    """The standard logging levels by name."""
    NOTSET = logging.NOTSET
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


class Roles:
    """Custom model roles."""
    LOG_LEVEL = QtCore.Qt.UserRole + 1


class LogEntry(NamedTuple):
    """One parsed row of the log table."""
    date: str
    module: str
    level: Level
    message: str

    def column(self, column: int) -> str:
        if column == Columns.Level:
            return self.level.name
        return self[column]


#: Matches messages formatted with :data:`Kakeibo.log.log.LOG_FORMAT`.
LOG_RECORD_RE = re.compile(
    r'^\[(?P<date>[^\]]+)\]\s+<(?P<module>[^>]+)>\s+(?P<level>[^:]+):\s+(?P<message>.*)$',
    flags=re.DOTALL
)


def parse_log_message(raw_message: str) -> LogEntry:
    """Split a formatted log message into a :class:`LogEntry`.

    Messages not matching :data:`LOG_RECORD_RE` are kept whole as the message at ``NOTSET``.
    """
    match = LOG_RECORD_RE.match(raw_message)
    if not match:
        return LogEntry('', '', Level.NOTSET, raw_message)

    level = Level.__members__.get(match.group('level').strip().upper(), Level.NOTSET)
    return LogEntry(match.group('date'), match.group('module'), level, match.group('message'))


def get_handler() -> TankHandler:
    """Return the root logger's TankHandler.

    Raises:
        RuntimeError: If there is not exactly one TankHandler installed.
    """
    handlers = [h for h in logging.getLogger().handlers if isinstance(h, TankHandler)]
    if len(handlers) != 1:
        raise RuntimeError(f'Expected one TankHandler on the root logger, found {len(handlers)}')
    return handlers[0]


class LogTableModel(QtCore.QAbstractTableModel):
    """Rows of :class:`LogEntry` fetched from the TankHandler on a timer.

    Args:
        parent (QObject, optional): Parent object.
        fetch_interval_ms (int, optional): Polling interval of the tank.
    """

    def __init__(self, parent: Optional[QtCore.QObject] = None, fetch_interval_ms: int = 1000):
        super().__init__(parent=parent)
        self._entries: list[LogEntry] = []
        self._is_paused = False

        self._timer = QtCore.QTimer(self)
        self._timer.setInterval(fetch_interval_ms)
        self._timer.timeout.connect(self.fetch_new_logs)
        self._timer.start()

    @QtCore.Slot()
    def pause(self) -> None:
        self._is_paused = True

    @QtCore.Slot()
    def resume(self) -> None:
        self._is_paused = False

    def rowCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        return 0 if parent.isValid() else len(self._entries)

    def columnCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        return 0 if parent.isValid() else len(Columns)

    def data(self, index: QtCore.QModelIndex, role: int = QtCore.Qt.DisplayRole) -> Any:
        if not index.isValid() or index.row() >= len(self._entries):
            return None
        entry = self._entries[index.row()]

        if role in (QtCore.Qt.DisplayRole, QtCore.Qt.ToolTipRole):
            return entry.column(index.column())
        if role == Roles.LOG_LEVEL:
            return int(entry.level)
        if role == QtCore.Qt.TextAlignmentRole:
            return QtCore.Qt.AlignLeft | QtCore.Qt.AlignVCenter
        if role == QtCore.Qt.FontRole and entry.level >= Level.ERROR:
            font = QtGui.QFont()
            font.setBold(True)
            return font
        if role == QtCore.Qt.ForegroundRole:
            if entry.level >= Level.ERROR:
                return ui.Color.Red()
            if entry.level == Level.DEBUG:
                return ui.Color.SecondaryText()
        return None

    def headerData(self, section: int, orientation, role: int = QtCore.Qt.DisplayRole) -> Any:
        if (orientation == QtCore.Qt.Horizontal and role == QtCore.Qt.DisplayRole
                and 0 <= section < len(Columns)):
            return Columns(section).name
        return super().headerData(section, orientation, role)

    @QtCore.Slot()
    def fetch_new_logs(self) -> None:
        """Append the messages added to the tank since the last fetch."""
        if self._is_paused:
            return
        try:
            messages = get_handler().get_logs()
        except RuntimeError:
            return

        # the tank was cleared since the last fetch
        if len(messages) < len(self._entries):
            self.clear_logs()

        first = len(self._entries)
        incoming = [parse_log_message(m) for m in messages[first:]]
        if not incoming:
            return

        self.beginInsertRows(QtCore.QModelIndex(), first, first + len(incoming) - 1)
        self._entries.extend(incoming)
        self.endInsertRows()

    @QtCore.Slot()
    def clear_logs(self) -> None:
        self.beginResetModel()
        self._entries.clear()
        self.endResetModel()


class LogFilterProxyModel(QtCore.QSortFilterProxyModel):
    """Hides rows below a minimum logging level."""

    def __init__(self, parent: Optional[QtCore.QObject] = None):
        super().__init__(parent)
        self._filter_level = logging.NOTSET

    def filter_level(self) -> int:
        return self._filter_level

    def set_filter_level(self, level: int) -> None:
        """Show only rows at or above ``level``, e.g. ``logging.WARNING``."""
        self._filter_level = level
        self.invalidateFilter()

    def filterAcceptsRow(self, source_row: int, source_parent: QtCore.QModelIndex) -> bool:
        source = self.sourceModel()
        level = source.data(source.index(source_row, Columns.Date, source_parent), Roles.LOG_LEVEL)
        return level is None or level >= self._filter_level
