"""Status definitions and exceptions for Kakeibo.

This module provides:
    - Status: enumeration of possible application states
    - STATUS_MESSAGE: user-facing messages for each status
    - get_message: retrieve the message for a status
    - BaseStatusException: base exception carrying a Status
    - Specific exceptions raised by the storage, ledger and sync layers
"""
import enum
import logging
from typing import Dict


class Status(enum.StrEnum):
    """Enumeration of application status codes."""
    UnknownStatus = enum.auto()
    Okay = enum.auto()

    # Settings status
    SettingsNotFound = enum.auto()
    SettingsInvalid = enum.auto()

    # Form validation status
    DateInvalid = enum.auto()
    CategoryInvalid = enum.auto()
    AmountInvalid = enum.auto()

    # Local storage status
    StorageCorrupt = enum.auto()

    # Sync status
    SyncEndpointNotConfigured = enum.auto()
    NothingToSync = enum.auto()
    SyncInProgress = enum.auto()
    SyncFailed = enum.auto()


STATUS_MESSAGE: Dict[Status, str] = {
    Status.UnknownStatus: 'Unknown status. Please check the settings.',
    Status.Okay: 'Everything is okay.',

    Status.SettingsNotFound: 'Could not find the settings file.',
    Status.SettingsInvalid: 'The settings file seems to be incomplete, or contains invalid values.',

    Status.DateInvalid: 'Please enter a valid date.',
    Status.CategoryInvalid: 'Please select a category.',
    Status.AmountInvalid: 'Please enter an amount of 0 or more.',

    Status.StorageCorrupt: 'The locally stored expenses could not be read.',

    Status.SyncEndpointNotConfigured: 'The spreadsheet endpoint URL is not set. '
                                      'Have you set the sync endpoint in the settings?',
    Status.NothingToSync: 'There is no data to sync.',
    Status.SyncInProgress: 'A sync is already in progress.',
    Status.SyncFailed: 'Sync failed.',
}


def get_message(status: Status) -> str:
    """
    Get the message for a given status.

    Args:
        status (Status): The status enum.

    Returns:
        str: The message associated with the status.
    """
    return STATUS_MESSAGE.get(status, 'Unknown status')


class BaseStatusException(Exception):
    """Base exception for status-based errors in Kakeibo.

    Attributes:
        status (Status): Status code associated with this error.
        status_message (str): User-facing message for the status.
        detail (str): The additional context passed in, if any.

    Args:
        message (str): Optional additional context for the error.
    """
    status = Status.UnknownStatus
    log_level = logging.ERROR

    def __init__(self, message: str = None):
        self.status_message = get_message(self.status)
        self.detail = message or ''
        exception_message = f'{self.status_message} {message}' if message else self.status_message
        super().__init__(exception_message)

        logging.log(self.log_level, exception_message)

        from ..ui.actions import signals
        signals.error.emit(exception_message)


class UnknownException(BaseStatusException):
    """Exception for an unknown error during status processing."""
    pass


class SettingsNotFoundException(BaseStatusException):
    """Exception raised when the settings file cannot be found."""
    status = Status.SettingsNotFound


class SettingsInvalidException(BaseStatusException):
    """Exception raised when the settings file is invalid or malformed."""
    status = Status.SettingsInvalid


class ValidationException(BaseStatusException):
    """Base class of the form validation errors.

    Validation errors are expected user input mistakes, so they are logged as warnings.
    """
    log_level = logging.WARNING
    field = ''


class DateInvalidException(ValidationException):
    """Raised when the date field is empty or not a calendar date."""
    status = Status.DateInvalid
    field = 'date'


class CategoryInvalidException(ValidationException):
    """Raised when no category was given."""
    status = Status.CategoryInvalid
    field = 'category'


class AmountInvalidException(ValidationException):
    """Raised when the amount is not a non-negative integer."""
    status = Status.AmountInvalid
    field = 'amount'


class StorageCorruptException(BaseStatusException):
    """Raised when the stored collection exists but cannot be parsed."""
    status = Status.StorageCorrupt


class SyncEndpointNotConfiguredException(BaseStatusException):
    """Raised when a sync is requested without a configured endpoint."""
    status = Status.SyncEndpointNotConfigured


class NothingToSyncException(BaseStatusException):
    """Raised when a sync is requested for an empty collection."""
    status = Status.NothingToSync
    log_level = logging.INFO


class SyncInProgressException(BaseStatusException):
    """Raised when a sync is requested while another one is outstanding."""
    status = Status.SyncInProgress
    log_level = logging.WARNING


class SyncFailedException(BaseStatusException):
    """Raised on transport errors, rejected submissions and malformed replies."""
    status = Status.SyncFailed
