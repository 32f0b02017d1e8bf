"""Root logger configuration, the in-memory log tank and the Qt message bridge.

The log level can be set with the ``KAKEIBO_LOG_LEVEL`` environment variable, e.g.
``KAKEIBO_LOG_LEVEL=INFO``.
"""
import logging
import os
import sys

from PySide6.QtCore import QtMsgType, qInstallMessageHandler

from ..ui.actions import signals

LOG_LEVEL = logging.DEBUG
LOG_LEVEL_ENV_KEY = 'KAKEIBO_LOG_LEVEL'
LOG_FORMAT = '[%(asctime)s] <%(module)s> %(levelname)s:  %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'

LOG_LEVELS = (
    logging.DEBUG,
    logging.INFO,
    logging.WARNING,
    logging.ERROR,
    logging.CRITICAL,
)

QT_LEVELS = {
    QtMsgType.QtDebugMsg: logging.DEBUG,
    QtMsgType.QtInfoMsg: logging.INFO,
    QtMsgType.QtWarningMsg: logging.WARNING,
    QtMsgType.QtCriticalMsg: logging.ERROR,
    QtMsgType.QtFatalMsg: logging.CRITICAL,
}


def get_log_level(default=LOG_LEVEL):
    """Return the level named by ``KAKEIBO_LOG_LEVEL``, or ``default`` if unset or unknown."""
    name = os.environ.get(LOG_LEVEL_ENV_KEY, '').strip().upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    if level not in LOG_LEVELS:
        logging.warning(f'Ignoring unknown {LOG_LEVEL_ENV_KEY} "{name}".')
        return default
    return level


def set_logging_level(level):
    """
    Apply a level to the root logger and every handler attached to it.

    Args:
        level (int): One of the standard logging levels, e.g. ``logging.INFO``.

    Raises:
        ValueError: If ``level`` is not an int or not a standard level.
    """
    if not isinstance(level, int):
        raise ValueError('Logging level must be an integer.')
    if level not in LOG_LEVELS:
        raise ValueError('Invalid logging level. Use one of the standard logging levels, e.g., logging.DEBUG.')

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers:
        handler.setLevel(level)


def qt_message_handler(mode, context, message):
    """Forward a Qt message to the ``Qt`` logger. Fatal messages exit the application."""
    level = QT_LEVELS.get(mode, logging.DEBUG)
    logging.getLogger('Qt').log(level, message.strip())

    if mode == QtMsgType.QtFatalMsg:
        sys.exit(1)


def setup_logging(enable_stream_handler=True, enable_qt_handler=True, log_level=None):
    """
    Replace the root logger's handlers with the Kakeibo ones.

    Args:
        enable_stream_handler (bool): Also log to stdout.
        enable_qt_handler (bool): Route Qt's own messages through Python logging.
        log_level (int, optional): Level of the root logger and its handlers. Read from
            ``KAKEIBO_LOG_LEVEL`` when not given, defaulting to DEBUG.
    """
    if log_level is None:
        log_level = get_log_level()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    handlers = [TankHandler()]
    if enable_stream_handler:
        handlers.insert(0, logging.StreamHandler(sys.stdout))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(log_level)
        root_logger.addHandler(handler)

    if enable_qt_handler:
        qInstallMessageHandler(qt_message_handler)


class TankHandler(logging.Handler):
    """
    Keeps every formatted record in memory for the log viewer.

    Records at ERROR and above also emit ``signals.showLogs`` so the viewer opens.

    Attributes:
        tank (list[tuple[int, str]]): ``(levelno, formatted message)`` pairs in arrival order.
    """

    def __init__(self):
        super().__init__()
        self.tank = []

    def emit(self, record):
        try:
            self.tank.append((record.levelno, self.format(record)))
        except Exception:
            self.handleError(record)
            return

        if record.levelno >= logging.ERROR:
            signals.showLogs.emit()

    def get_logs(self, level=logging.NOTSET):
        """
        Return the stored messages at or above ``level``.

        Args:
            level (int, optional): Minimum level. Defaults to ``logging.NOTSET``.

        Returns:
            list[str]: Formatted messages, oldest first.
        """
        return [msg for lvl, msg in self.tank if lvl >= level]

    def clear_logs(self):
        """Empty the tank."""
        self.tank.clear()
