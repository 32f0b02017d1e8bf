"""
Module for formatting amounts and dates, and parsing dates, using Babel.

"""
import datetime
import logging
import re
from typing import List, Optional, Union

from babel import Locale, UnknownLocaleError, numbers
from babel.dates import format_date as babel_format_date
from babel.dates import parse_date as babel_parse_date

DEFAULT_LOCALE: str = 'ja_JP'
DEFAULT_CURRENCY: str = 'JPY'

CURRENCY_MAP: dict[str, str] = {
    'JP': 'JPY',
    'US': 'USD',
    'GB': 'GBP',
    'DE': 'EUR',
    'FR': 'EUR',
    'IT': 'EUR',
    'ES': 'EUR',
    'NL': 'EUR',
    'FI': 'EUR',
    'CA': 'CAD',
    'AU': 'AUD',
    'IN': 'INR',
    'BR': 'BRL',
    'CN': 'CNY',
    'KR': 'KRW',
    'TW': 'TWD',
    'HU': 'HUF',
}

LOCALE_MAP: List[str] = [
    'ja_JP',
    'en_US',
    'en_GB',
    'de_DE',
    'fr_FR',
    'es_ES',
    'it_IT',
    'nl_NL',
    'fi_FI',
    'en_CA',
    'en_AU',
    'en_IN',
    'pt_BR',
    'zh_CN',
    'ko_KR',
    'zh_TW',
    'hu_HU',
]

ISO_DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')
SLASH_DATE_RE = re.compile(r'^\d{4}/\d{1,2}/\d{1,2}$')


def get_currency_from_locale(locale: str) -> str:
    """
    Retrieve the default currency code based on the locale's territory.

    Args:
        locale (str): Locale string, e.g. 'ja_JP'.

    Returns:
        str: Currency code such as 'JPY'. Defaults to 'JPY' if the territory is unknown.
    """
    parts = locale.split('_')
    if len(parts) < 2:
        return DEFAULT_CURRENCY
    return CURRENCY_MAP.get(parts[1], DEFAULT_CURRENCY)


def format_number(value: Union[int, float], locale: str) -> str:
    """
    Format a number with the locale's digit grouping.

    Args:
        value: The numeric value to be formatted.
        locale (str): Locale string, e.g. 'en_US'.

    Returns:
        str: The formatted decimal string, e.g. '1,500'.
    """
    try:
        return numbers.format_decimal(value, locale=Locale.parse(locale))
    except (ValueError, UnknownLocaleError) as ex:
        logging.debug(f'Error formatting number with locale "{locale}": {ex}')
        return f'{value:,}'


def format_amount(value: Union[int, float], locale: str, currency: Optional[str] = None) -> str:
    """
    Format an amount as a currency string with thousands grouping.

    Args:
        value: The amount to be formatted.
        locale (str): Locale string, e.g. 'ja_JP'.
        currency (str, optional): ISO currency code. Derived from the locale when not given.

    Returns:
        str: The formatted currency string, e.g. '￥1,500'.
    """
    currency = currency or get_currency_from_locale(locale)
    try:
        return numbers.format_currency(value, currency=currency, locale=Locale.parse(locale))
    except (ValueError, UnknownLocaleError) as ex:
        logging.debug(f'Error formatting currency "{currency}" with locale "{locale}": {ex}')
        return f'{currency} {value:,}'


def format_date(value: datetime.date, locale: str) -> str:
    """
    Format a date as ``YYYY/MM/DD (weekday)``.

    The abbreviated weekday name is taken from the locale, e.g. '2024/01/01 (月)' for ja_JP
    and '2024/01/01 (Mon)' for en_US.

    Args:
        value (datetime.date): The date to format.
        locale (str): Locale string used for the weekday name.

    Returns:
        str: The formatted date string.
    """
    try:
        weekday = babel_format_date(value, 'EEE', locale=Locale.parse(locale))
    except (ValueError, UnknownLocaleError) as ex:
        logging.debug(f'Error formatting weekday with locale "{locale}": {ex}')
        weekday = value.strftime('%a')
    return f'{value.year:04d}/{value.month:02d}/{value.day:02d} ({weekday})'


def parse_date(value: Union[str, datetime.date], locale: Optional[str] = None) -> datetime.date:
    """
    Parse a calendar date.

    Accepts ``YYYY-MM-DD``, ``YYYY/MM/DD``, ISO 8601 timestamps and, when a locale is given,
    the locale's short date format. Timestamps carrying a timezone are converted to local time
    before the date is taken, as spreadsheets return dates as UTC midnight of the local day.

    Args:
        value: The date string (or date) to parse.
        locale (str, optional): Locale used as a last resort.

    Returns:
        datetime.date: The parsed date.

    Raises:
        ValueError: If the value cannot be parsed as a date.
    """
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if not isinstance(value, str):
        raise ValueError(f'Cannot parse {type(value).__name__} "{value}" as a date.')

    text = value.strip()
    if not text:
        raise ValueError('Date is empty.')

    if ISO_DATE_RE.match(text):
        return datetime.date.fromisoformat(text)

    if SLASH_DATE_RE.match(text):
        year, month, day = (int(f) for f in text.split('/'))
        return datetime.date(year, month, day)

    if 'T' in text:
        dt = datetime.datetime.fromisoformat(text.replace('Z', '+00:00'))
        if dt.tzinfo is not None:
            dt = dt.astimezone()
        return dt.date()

    if locale:
        try:
            return babel_parse_date(text, locale=Locale.parse(locale))
        except (ValueError, IndexError, UnknownLocaleError) as ex:
            raise ValueError(f'Cannot parse "{text}" as a date: {ex}') from ex

    raise ValueError(f'Cannot parse "{text}" as a date.')
