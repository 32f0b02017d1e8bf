"""UI styling utilities for Kakeibo.

This module provides:
    - Theme: supported UI themes (light, dark)
    - Size: standardized size constants and scaling logic
    - Color: standardized color palette for widgets and themes
    - init_stylesheet / apply_theme: expand and apply the bundled style sheet
    - RoundedRowDelegate: item delegate drawing rounded selection backgrounds
"""
import enum
import logging
import math
import os
import pathlib
import re
from typing import Optional

from PySide6 import QtWidgets, QtGui, QtCore

STYLESHEET_PATH: pathlib.Path = pathlib.Path(__file__).parent.parent / 'config' / 'stylesheet.qss'
DISABLE_STYLESHEET_ENV_KEY: str = 'KAKEIBO_DISABLE_STYLESHEET'


class Theme(enum.StrEnum):
    Light = 'light'
    Dark = 'dark'


current_theme: Theme = Theme.Light


class Size(float, enum.Enum):
    """Base sizes in pixels. Call a member with a multiplier to get a scaled integer size."""
    SmallText = 11.0
    MediumText = 12.0
    LargeText = 16.0
    Indicator = 4.0
    Separator = 1.0
    Margin = 18.0
    RowHeight = 34.0
    DefaultWidth = 640.0
    DefaultHeight = 480.0

    def __call__(self, multiplier: float = 1.0) -> int:
        return round(math.ceil(self.value * scale_factor) * float(multiplier))


#: Extra scaling applied to every :class:`Size`, e.g. for high density screens.
scale_factor: float = 1.0


class Color(enum.Enum):
    """The palette as ``(light, dark)`` RGB(A) pairs.

    Calling a member returns the colour of the current theme, as a :class:`QtGui.QColor` or,
    with ``qss=True``, as an ``rgba(...)`` string for style sheets.
    """
    Transparent = ((0, 0, 0, 0), (0, 0, 0, 0))
    DarkBackground = ((245, 245, 245), (30, 30, 30))
    Background = ((225, 225, 225), (50, 50, 50))
    LightBackground = ((200, 200, 200), (75, 75, 75))
    DisabledText = ((120, 120, 120), (135, 135, 135))
    SecondaryText = ((70, 70, 70), (185, 185, 185))
    Text = ((30, 30, 30), (225, 225, 225))
    Blue = ((0, 50, 100), (88, 138, 180))
    Red = ((179, 94, 94), (229, 114, 114))
    Green = ((60, 180, 125), (90, 200, 155))

    def __call__(self, qss: bool = False):
        light, dark = self.value
        color = QtGui.QColor(*(dark if current_theme == Theme.Dark else light))
        if not qss:
            return color
        return 'rgba({})'.format(','.join(str(v) for v in color.getRgb()))


def set_theme(theme: str) -> Theme:
    """Set the theme used by :class:`Color`.

    Unknown themes fall back to the light theme.

    Returns:
        Theme: The theme now in use.
    """
    global current_theme
    try:
        current_theme = Theme(theme)
    except ValueError:
        logging.warning(f'Unknown theme "{theme}", using "{Theme.Light.value}".')
        current_theme = Theme.Light
    return current_theme


def init_stylesheet(path: pathlib.Path = STYLESHEET_PATH) -> str:
    """Load the style sheet template and expand its tokens.

    Tokens are written as ``<Name>`` for colours and ``<Name@multiplier>`` for sizes, for
    example ``<Background>`` or ``<Margin@0.5>``.

    Returns:
        str: The style sheet.

    Raises:
        FileNotFoundError: If the style sheet file is missing.
        KeyError: If the style sheet uses an unknown token.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f'Style sheet file not found: {path}')

    with open(path, 'r', encoding='utf-8') as f:
        qss = f.read()

    kwargs = {}
    for color in Color:
        kwargs[color.name] = color(qss=True)

    for match in re.finditer(r'<(.*?)>', qss):
        key = match.group(1)
        if key in kwargs:
            continue

        name, _, multiplier = key.partition('@')
        if name not in Size.__members__:
            raise KeyError(f'Key {key} not found in style sheet tokens!')
        kwargs[key] = Size[name](float(multiplier or 1.0))

    for key, value in kwargs.items():
        qss = qss.replace(f'<{key}>', str(value))

    return qss


def apply_theme(theme: Optional[str] = None) -> None:
    """Set the style sheet for the entire app.

    This function should be called after the QApplication is created.

    Args:
        theme: The theme to switch to. Keeps the current theme if not given.
    """
    if not QtWidgets.QApplication.instance():
        raise RuntimeError('apply_theme() must be called after a QApplication is initiated.')

    if theme is not None:
        set_theme(theme)

    if os.environ.get(DISABLE_STYLESHEET_ENV_KEY, '').lower() in ['1', 'true', 'yes']:
        logging.warning('Stylesheet disabled by environment variable.')
        return

    qss = init_stylesheet()
    QtWidgets.QApplication.instance().setStyleSheet(qss)
    logging.debug(f'Applied the "{current_theme.value}" theme.')


class RoundedRowDelegate(QtWidgets.QStyledItemDelegate):
    """Delegate that draws rounded-corner backgrounds for selected row cells."""

    def __init__(self, first_column: int = 0, last_column: int = -1,
                 parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)

        self._first_column = first_column
        self._last_column = last_column

    def paint(self, painter: QtGui.QPainter, option: QtWidgets.QStyleOptionViewItem,
              index: QtCore.QModelIndex) -> None:
        """Paint the item with rounded corners if selected."""
        selected = option.state & QtWidgets.QStyle.State_Selected

        painter.save()
        painter.setPen(QtCore.Qt.NoPen)
        color = Color.LightBackground() if selected else Color.Transparent()
        painter.setBrush(color)

        column = index.column()
        last_column = index.model().columnCount() + self._last_column

        o = Size.Indicator(1.5)
        rect = QtCore.QRect(option.rect)
        half = option.rect.width() // 2

        if column == self._first_column:
            painter.drawRoundedRect(rect.adjusted(0, 0, -half + o, 0), o, o)
            painter.fillRect(rect.adjusted(half, 0, 0, 0), color)
        elif column == last_column:
            painter.drawRoundedRect(rect.adjusted(half, 0, 0, 0), o, o)
            painter.fillRect(rect.adjusted(0, 0, -half + o, 0), color)
        else:
            painter.fillRect(option.rect, color)
        painter.restore()

        super().paint(painter, option, index)
