"""The user settings and the application's file locations.

``settings.json`` lives in the configuration directory and is created from the bundled
template on first use. It has four sections:

    - ``metadata``: book name, display locale and currency, UI theme
    - ``storage``: the key the expense list is stored under
    - ``sync``: the collector endpoint and request timeout
    - ``categories``: the labels offered by the entry form

Every write is validated against :data:`SETTINGS_SCHEMA` before it is saved, and a change
is announced with ``signals.metadataChanged`` or ``signals.configSectionChanged``.
"""

import json
import logging
import os
import pathlib
import re
import shutil
from typing import Dict, Any, Optional, List, NoReturn

from PySide6 import QtCore

from ..status import status

app_name: str = 'Kakeibo'

CONFIG_DIR_ENV_KEY: str = 'KAKEIBO_CONFIG_DIR'

EXPENSE_COLUMNS: List[str] = ['id', 'date', 'category', 'amount', 'memo']
SUMMARY_COLUMNS: List[str] = ['category', 'total', 'transactions', 'average']

THEMES: List[str] = ['light', 'dark']

METADATA_KEYS: List[str] = ['name', 'locale', 'currency', 'theme']

SETTINGS_SCHEMA: Dict[str, Any] = {
    'metadata': {
        'type': dict,
        'required': True,
        'item_schema': {
            'name': {'type': str, 'required': True},
            'locale': {'type': str, 'required': True},
            'currency': {'type': str, 'required': True},
            'theme': {'type': str, 'required': True, 'allowed_values': THEMES},
        }
    },
    'storage': {
        'type': dict,
        'required': True,
        'item_schema': {
            'key': {'type': str, 'required': True, 'format': 'nonempty'},
        }
    },
    'sync': {
        'type': dict,
        'required': True,
        'item_schema': {
            'endpoint': {'type': str, 'required': True, 'format': 'url'},
            'timeout': {'type': int, 'required': True, 'format': 'positive'},
        }
    },
    'categories': {
        'type': list,
        'required': True,
        'value_type': str,
    },
}

URL_RE = re.compile(r'https?://[^\s/$.?#][^\s]*')

#: Checks for the ``format`` key of an item schema, with the message shown when a value fails.
FORMAT_CHECKS = {
    'url': (lambda v: not v or bool(URL_RE.fullmatch(v)), 'must be an http(s) URL'),
    'nonempty': (lambda v: bool(v.strip()), 'must not be empty'),
    'positive': (lambda v: v > 0, 'must be greater than 0'),
}


def _fail(exc_type: type, msg: str) -> NoReturn:
    logging.error(msg)
    raise exc_type(msg)


def is_valid_url(value: str) -> bool:
    """True if ``value`` is empty or an http(s) URL. Empty means no endpoint is set."""
    check, _ = FORMAT_CHECKS['url']
    return check(value)


def _validate_item(section: str, key: str, value: Any, specs: Dict[str, Any]) -> None:
    """Check one value of a dict section against its item schema.

    Raises:
        TypeError: If the value has the wrong type.
        ValueError: If the value is not allowed or fails its format check.
    """
    name = f'"{section}.{key}"'
    expected = specs['type']
    # bool is a subclass of int, but a flag is never a valid int setting
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        _fail(TypeError, f'{name} must be {expected.__name__}, got {type(value).__name__}.')

    allowed = specs.get('allowed_values')
    if allowed and value not in allowed:
        _fail(ValueError, f'{name} must be one of {allowed}, got "{value}".')

    if 'format' in specs:
        check, requirement = FORMAT_CHECKS[specs['format']]
        if not check(value):
            _fail(ValueError, f'{name} {requirement}, got "{value}".')


def _validate_dict_section(section: str, data: Dict[str, Any], item_schema: Dict[str, Any]) -> None:
    logging.debug(f'Validating "{section}" section.')
    for key, specs in item_schema.items():
        if key in data:
            _validate_item(section, key, data[key], specs)
        elif specs['required']:
            _fail(ValueError, f'"{section}" is missing "{key}".')


def _validate_categories(categories: List[Any]) -> None:
    """Categories must be a non-empty list of unique, non-blank strings.

    Raises:
        TypeError: If a label is not a string.
        ValueError: If the list is empty or has blank or repeated labels.
    """
    logging.debug('Validating "categories" section.')
    if not categories:
        _fail(ValueError, '"categories" must contain at least one category.')

    for i, label in enumerate(categories):
        if not isinstance(label, str):
            _fail(TypeError, f'Category "{label}" must be a string, got {type(label).__name__}.')
        if not label.strip():
            _fail(ValueError, 'Category labels must not be empty.')
        if label in categories[:i]:
            _fail(ValueError, f'Category "{label}" is listed more than once.')


def _require_section(section_name: str, action: str) -> None:
    if section_name not in SETTINGS_SCHEMA:
        _fail(ValueError, f'Cannot {action} unknown settings section "{section_name}".')


class ConfigPaths:
    """Locations of the settings file, the local database and the bundled templates.

    The configuration directory is, in order of precedence, ``config_dir``, the
    ``KAKEIBO_CONFIG_DIR`` environment variable, or ``<AppDataLocation>/config``.
    Missing directories are created and a missing ``settings.json`` is copied from the
    template.

    Args:
        config_dir (str, optional): Directory overriding the default configuration location.

    Raises:
        FileNotFoundError: If the bundled settings template is missing.
    """

    def __init__(self, config_dir: Optional[str] = None) -> None:
        config_dir = config_dir or os.environ.get(CONFIG_DIR_ENV_KEY, '')
        if not config_dir:
            QtCore.QCoreApplication.setApplicationName(app_name)
            QtCore.QCoreApplication.setOrganizationName(app_name)
            app_data = QtCore.QStandardPaths.writableLocation(QtCore.QStandardPaths.AppDataLocation)
            config_dir = os.path.join(app_data, 'config')

        self.config_dir: pathlib.Path = pathlib.Path(config_dir)
        self.storage_dir: pathlib.Path = self.config_dir / 'storage'
        self.settings_path: pathlib.Path = self.config_dir / 'settings.json'
        self.db_path: pathlib.Path = self.storage_dir / 'local.db'

        self.template_dir: pathlib.Path = pathlib.Path(__file__).parent.parent / 'config'
        self.settings_template: pathlib.Path = self.template_dir / 'settings.json.template'

        logging.debug(f'Using config directory: {self.config_dir}')
        self._prepare()

    def _prepare(self) -> None:
        if not self.settings_template.is_file():
            _fail(FileNotFoundError, f'Missing settings template: {self.settings_template}')

        for path in (self.config_dir, self.storage_dir):
            if not path.exists():
                logging.debug(f'Creating directory: {path}')
                path.mkdir(parents=True, exist_ok=True)

        if not self.settings_path.exists():
            logging.debug(f'Creating {self.settings_path} from the template')
            shutil.copy(self.settings_template, self.settings_path)

class SettingsAPI(ConfigPaths):
    """Read and write the sections of settings.json.

    Metadata values are accessed by key, e.g. ``settings['locale']``. The other sections
    are read with :meth:`get_section` and written with :meth:`set_section`.

    Args:
        config_dir (str, optional): Directory overriding the default configuration location.

    Raises:
        status.SettingsNotFoundException: If settings.json is missing.
        status.SettingsInvalidException: If settings.json cannot be parsed or is invalid.
    """

    def __init__(self, config_dir: Optional[str] = None) -> None:
        super().__init__(config_dir=config_dir)

        self._signals_blocked: bool = False
        self.data: Dict[str, Any] = {k: specs['type']() for k, specs in SETTINGS_SCHEMA.items()}
        self.load_settings()

    def __getitem__(self, key: str) -> Any:
        """Return a metadata value, or None if the stored value has the wrong type.

        Raises:
            KeyError: If key is not one of :data:`METADATA_KEYS`.
        """
        if key not in METADATA_KEYS:
            raise KeyError(f'Invalid metadata key: {key}, must be one of {METADATA_KEYS}')

        expected = SETTINGS_SCHEMA['metadata']['item_schema'][key]['type']
        value = self.data['metadata'].get(key)
        if isinstance(value, expected):
            return value
        logging.error(f'Metadata "{key}" should be {expected.__name__}, got {type(value).__name__}.')
        return None

    def __setitem__(self, key: str, value: Any) -> None:
        """Validate, store and save a metadata value.

        Raises:
            KeyError: If key is not one of :data:`METADATA_KEYS`.
            TypeError: If the value has the wrong type.
            ValueError: If the value fails validation.
        """
        if key not in METADATA_KEYS:
            raise KeyError(f'Invalid metadata key: {key}, must be one of {METADATA_KEYS}')

        specs = SETTINGS_SCHEMA['metadata']['item_schema'][key]
        if not isinstance(value, specs['type']):
            logging.warning(f'Converting metadata "{key}" value {value!r} to {specs["type"].__name__}.')
            value = specs['type'](value)
        _validate_item('metadata', key, value, specs)

        self.data['metadata'][key] = value
        self.save_section('metadata')

        if not self._signals_blocked:
            from ..ui.actions import signals
            signals.metadataChanged.emit(key, value)

    def block_signals(self, v: bool) -> None:
        """Stop or resume the change signals."""
        self._signals_blocked = v

    def load_settings(self) -> Dict[str, Any]:
        """Read and validate settings.json.

        Returns:
            dict: The loaded settings.

        Raises:
            status.SettingsNotFoundException: If settings.json is missing.
            status.SettingsInvalidException: If it cannot be parsed or fails validation.
        """
        logging.debug(f'Loading settings from "{self.settings_path}"')
        if not self.settings_path.exists():
            raise status.SettingsNotFoundException

        try:
            data = json.loads(self.settings_path.read_text(encoding='utf-8'))
            self.validate_settings_data(data=data)
        except status.SettingsInvalidException:
            raise
        except (ValueError, TypeError) as ex:
            raise status.SettingsInvalidException(str(ex)) from ex

        self.data = data
        return self.data

    def validate_settings_data(self, data: Optional[Dict[str, Any]] = None) -> None:
        """Validate ``data``, or the current settings, against :data:`SETTINGS_SCHEMA`.

        Raises:
            status.SettingsInvalidException: If a section is missing or has the wrong type.
            TypeError: If a value has the wrong type.
            ValueError: If a value fails validation.
        """
        data = self.data if data is None else data
        if not isinstance(data, dict) or not data:
            raise status.SettingsInvalidException('Settings data is empty.')

        for section, specs in SETTINGS_SCHEMA.items():
            if section not in data:
                if specs.get('required'):
                    raise status.SettingsInvalidException(f'Missing required section: {section}')
                continue

            if not isinstance(data[section], specs['type']):
                raise status.SettingsInvalidException(
                    f'Section "{section}" must be {specs["type"].__name__}, '
                    f'got {type(data[section]).__name__}.'
                )

            if section == 'categories':
                _validate_categories(data[section])
            else:
                _validate_dict_section(section, data[section], specs['item_schema'])

    def get_section(self, section_name: str) -> Any:
        """Return a copy of a section.

        Raises:
            KeyError: If there is no such section.
        """
        return self.data[section_name].copy()

    def set_section(self, section_name: str, new_data: Any) -> None:
        """Validate and save a section. The previous value is kept if validation fails.

        Args:
            section_name (str): The section to replace.
            new_data: The new section value.

        Raises:
            ValueError: If the section is unknown or ``new_data`` is invalid.
            TypeError: If ``new_data`` or one of its values has the wrong type.
            status.SettingsInvalidException: If ``new_data`` has the wrong container type.
        """
        _require_section(section_name, 'set')

        previous = self.data[section_name]
        self.data[section_name] = new_data
        try:
            self.validate_settings_data()
        except (ValueError, TypeError, status.SettingsInvalidException) as e:
            logging.error(f'Keeping the previous "{section_name}" settings: {e}')
            self.data[section_name] = previous
            raise

        self.save_section(section_name)

        if not self._signals_blocked:
            from ..ui.actions import signals
            signals.configSectionChanged.emit(section_name)

    def save_section(self, section_name: str) -> None:
        """Write one section to settings.json, leaving the others as they are on disk.

        Raises:
            ValueError: If the section is unknown.
        """
        _require_section(section_name, 'save')

        on_disk = json.loads(self.settings_path.read_text(encoding='utf-8'))
        on_disk[section_name] = self.data[section_name]
        self.settings_path.write_text(json.dumps(on_disk, indent=4, ensure_ascii=False), encoding='utf-8')
        logging.debug(f'Saved section "{section_name}" to "{self.settings_path}"')
