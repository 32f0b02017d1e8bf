"""Sync client pushing the local collection to the spreadsheet collector.

The collector is a web app bound to a spreadsheet. It accepts the whole collection in one
request and appends only the records whose ``id`` it has not seen before, so repeated pushes
of the same collection are harmless. It can also return every record it holds, which is used
to restore a local collection.

Request and reply shapes::

    POST {"expenses": [{"id", "date", "category", "amount", "memo"}, ...]}
    ->   {"success": true, "message": "...", "totalRecords": 12}
    ->   {"success": false, "error": "..."}

    GET
    ->   {"success": true, "expenses": [...]}
"""
import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

import requests
from PySide6 import QtCore

from .expense import Expense
from ..status import status

DEFAULT_TIMEOUT: int = 30
PARSE_ERROR_MESSAGE: str = 'The spreadsheet returned a reply that could not be understood.'


class SyncState(enum.StrEnum):
    """States of the sync client."""
    Idle = 'idle'
    Sending = 'sending'
    Succeeded = 'succeeded'
    Failed = 'failed'


@dataclass(frozen=True)
class SyncResult:
    """The outcome of a successful push.

    Attributes:
        message: The message reported by the collector.
        total_records: The number of records the collector holds after the push, if reported.
    """
    message: str
    total_records: Optional[int] = None


class AsyncWorker(QtCore.QThread):
    """
    Worker thread running a single blocking call.

    Signals:
        resultReady (object): Emitted with the function's result on success.
        errorOccurred (object): Emitted with the exception on failure.
    """
    resultReady = QtCore.Signal(object)
    errorOccurred = QtCore.Signal(object)

    def __init__(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        super().__init__()
        self.func = func
        self.args = args
        self.kwargs = kwargs

    def run(self) -> None:
        try:
            result = self.func(*self.args, **self.kwargs)
        except Exception as ex:
            self.errorOccurred.emit(ex)
            return
        self.resultReady.emit(result)


def _parse_reply(response: requests.Response) -> Dict[str, Any]:
    """Check the HTTP status and decode the collector's JSON reply.

    Raises:
        status.SyncFailedException: On HTTP errors, non-JSON bodies, bodies without a boolean
            ``success`` field, and ``success: false`` replies.
    """
    try:
        response.raise_for_status()
    except requests.HTTPError as ex:
        raise status.SyncFailedException(str(ex)) from ex

    try:
        data = response.json()
    except ValueError as ex:
        raise status.SyncFailedException(PARSE_ERROR_MESSAGE) from ex

    if not isinstance(data, dict) or not isinstance(data.get('success'), bool):
        raise status.SyncFailedException(PARSE_ERROR_MESSAGE)

    if not data['success']:
        raise status.SyncFailedException(str(data.get('error') or 'The spreadsheet rejected the data.'))

    return data


class SyncAPI(QtCore.QObject):
    """Push the local collection to the spreadsheet collector.

    Only one push may be outstanding at a time. The state moves
    ``Idle -> Sending -> Succeeded | Failed -> Idle`` and every transition emits
    :attr:`stateChanged`.

    Args:
        endpoint: The collector URL. An empty string means sync is not configured.
        timeout: Request timeout in seconds.
    """
    stateChanged = QtCore.Signal(str)
    syncFinished = QtCore.Signal(object)  # SyncResult
    syncFailed = QtCore.Signal(str)

    def __init__(self, endpoint: str = '', timeout: int = DEFAULT_TIMEOUT,
                 parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        self.endpoint: str = endpoint
        self.timeout: int = timeout

        self._state: SyncState = SyncState.Idle
        self._worker: Optional[AsyncWorker] = None

    @property
    def state(self) -> SyncState:
        """The current state of the client."""
        return self._state

    def _set_state(self, state: SyncState) -> None:
        if state == self._state:
            return
        logging.debug(f'Sync state: {self._state} -> {state}')
        self._state = state
        self.stateChanged.emit(state.value)

    def _verify_endpoint(self) -> None:
        if not self.endpoint:
            raise status.SyncEndpointNotConfiguredException

    def push(self, expenses: Sequence[Expense]) -> SyncResult:
        """Send the whole collection to the collector and wait for its reply.

        Args:
            expenses: The records to send.

        Returns:
            SyncResult: The collector's report.

        Raises:
            status.SyncEndpointNotConfiguredException: If no endpoint is configured.
            status.SyncFailedException: On transport errors and failed or malformed replies.
        """
        self._verify_endpoint()

        payload = {'expenses': [e.to_dict() for e in expenses]}
        logging.info(f'Sending {len(expenses)} expense(s) to the spreadsheet.')
        try:
            response = requests.post(
                self.endpoint,
                json=payload,
                headers={'Content-Type': 'application/json'},
                timeout=self.timeout,
            )
        except requests.RequestException as ex:
            raise status.SyncFailedException(str(ex)) from ex

        data = _parse_reply(response)

        total = data.get('totalRecords')
        if isinstance(total, bool) or not isinstance(total, int):
            total = None

        message = data.get('message')
        if not isinstance(message, str) or not message:
            message = f'Synced {len(expenses)} expense(s).'

        logging.info(f'Sync succeeded: {message}')
        return SyncResult(message=message, total_records=total)

    def start(self, expenses: Sequence[Expense]) -> None:
        """Start a push on a worker thread and return immediately.

        The outcome is reported by :attr:`syncFinished` or :attr:`syncFailed`.

        Args:
            expenses: The records to send.

        Raises:
            status.SyncEndpointNotConfiguredException: If no endpoint is configured.
            status.NothingToSyncException: If ``expenses`` is empty.
            status.SyncInProgressException: If a push is already outstanding.
        """
        if self._state != SyncState.Idle:
            raise status.SyncInProgressException
        self._verify_endpoint()
        if not expenses:
            raise status.NothingToSyncException

        self._set_state(SyncState.Sending)

        worker = AsyncWorker(self.push, list(expenses))
        worker.resultReady.connect(self._on_result, QtCore.Qt.QueuedConnection)
        worker.errorOccurred.connect(self._on_error, QtCore.Qt.QueuedConnection)
        worker.finished.connect(worker.deleteLater)
        self._worker = worker
        worker.start()

    def wait(self, msecs: int = -1) -> bool:
        """Block until the outstanding worker thread has finished.

        Returns:
            bool: False if the wait timed out.
        """
        if self._worker is None:
            return True
        if msecs < 0:
            return self._worker.wait()
        return self._worker.wait(msecs)

    @QtCore.Slot(object)
    def _on_result(self, result: SyncResult) -> None:
        self._worker = None
        self._set_state(SyncState.Succeeded)
        self.syncFinished.emit(result)
        self._set_state(SyncState.Idle)

    @QtCore.Slot(object)
    def _on_error(self, ex: Exception) -> None:
        self._worker = None
        if not isinstance(ex, status.BaseStatusException):
            logging.error(f'Unexpected sync error: {ex}')
        self._set_state(SyncState.Failed)
        self.syncFailed.emit(str(ex))
        self._set_state(SyncState.Idle)

    def fetch(self) -> List[Expense]:
        """Download every record held by the collector.

        Returns:
            list[Expense]: The remote records.

        Raises:
            status.SyncEndpointNotConfiguredException: If no endpoint is configured.
            status.SyncFailedException: On transport errors and failed or malformed replies.
        """
        self._verify_endpoint()

        logging.info('Fetching expenses from the spreadsheet.')
        try:
            response = requests.get(self.endpoint, timeout=self.timeout)
        except requests.RequestException as ex:
            raise status.SyncFailedException(str(ex)) from ex

        data = _parse_reply(response)
        items = data.get('expenses')
        if not isinstance(items, list):
            raise status.SyncFailedException(PARSE_ERROR_MESSAGE)

        expenses: List[Expense] = []
        for idx, item in enumerate(items):
            try:
                expenses.append(Expense.from_dict(item))
            except ValueError as ex:
                raise status.SyncFailedException(f'{PARSE_ERROR_MESSAGE} Record {idx}: {ex}') from ex

        logging.info(f'Fetched {len(expenses)} expense(s) from the spreadsheet.')
        return expenses
