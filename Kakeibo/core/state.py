"""The application state shared by the operations and widgets.

:func:`create` builds the settings, storage and sync objects once at startup. The resulting
:class:`AppState` is passed explicitly to everything that needs it.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from .storage import StorageAPI
from .sync import SyncAPI
from ..settings import lib
from ..settings import locale


@dataclass
class AppState:
    """Holds the settings, storage and sync objects of one running application."""
    settings: lib.SettingsAPI
    storage: StorageAPI
    sync: SyncAPI

    @property
    def locale(self) -> str:
        return self.settings['locale'] or locale.DEFAULT_LOCALE

    @property
    def currency(self) -> str:
        return self.settings['currency'] or locale.get_currency_from_locale(self.locale)

    @property
    def categories(self) -> List[str]:
        return self.settings.get_section('categories')

    def reload_config(self, section: str) -> None:
        """Apply a changed settings section to the storage and sync objects.

        Args:
            section: The name of the changed section.
        """
        if section == 'sync':
            config = self.settings.get_section('sync')
            self.sync.endpoint = config['endpoint']
            self.sync.timeout = config['timeout']
            logging.debug(f'Sync endpoint set to "{self.sync.endpoint}"')
        elif section == 'storage':
            key = self.settings.get_section('storage')['key']
            if key == self.storage.key:
                return
            self.storage = StorageAPI(self.settings.db_path, key=key)
            logging.debug(f'Storage key set to "{key}"')

            from ..ui.actions import signals
            signals.expensesChanged.emit()


def create(config_dir: Optional[str] = None) -> AppState:
    """Build the application state from the settings file.

    Args:
        config_dir: Optional directory overriding the default configuration location.

    Returns:
        AppState: The new state.
    """
    settings = lib.SettingsAPI(config_dir=config_dir)

    storage_config = settings.get_section('storage')
    storage = StorageAPI(settings.db_path, key=storage_config['key'])

    sync_config = settings.get_section('sync')
    sync = SyncAPI(endpoint=sync_config['endpoint'], timeout=sync_config['timeout'])

    logging.debug(f'Application state created from "{settings.config_dir}"')
    return AppState(settings=settings, storage=storage, sync=sync)
