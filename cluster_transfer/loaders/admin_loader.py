"""Loader creating records through a cluster admin API."""

import logging

from .base import BaseLoader
from ..exceptions import MalformedResponseError, TransportError
from ..models.migration import Endpoint
from ..models.record import SourceRecord, TransferOutcome, TransferResult
from ..services.http_client import AdminClient

logger = logging.getLogger(__name__)

CREATED = 201
CONFLICT = 409


class AdminLoader(BaseLoader):
    """
    Loader for admin API collections.

    Each record is POSTed once, unchanged. A 409 means the destination
    already holds a record with that identity, which makes re-running a
    partially completed transfer safe.
    """

    def __init__(self, client: AdminClient):
        """
        Initialize the loader.

        Args:
            client: Client used for the create requests
        """
        self.client = client

    def load_record(self, endpoint: Endpoint, path: str, record: SourceRecord) -> TransferResult:
        """POST a record and map the response status to an outcome."""
        try:
            response = self.client.post(endpoint, path, record.data)
        except TransportError as e:
            result = self._fatal(path, record, str(e))
            self.log_result(result, record)
            return result

        if response.status_code == CONFLICT:
            result = TransferResult(
                record_id=record.id,
                path=path,
                outcome=TransferOutcome.ALREADY_EXISTS,
                status_code=CONFLICT,
            )
        elif response.status_code == CREATED:
            try:
                self.client.read(response, CREATED, "POST", path)
                result = TransferResult(
                    record_id=record.id,
                    path=path,
                    outcome=TransferOutcome.CREATED,
                    status_code=CREATED,
                )
            except MalformedResponseError as e:
                result = self._fatal(path, record, e.message, CREATED)
        else:
            result = self._fatal(
                path,
                record,
                f"invalid status received: {response.status_code}",
                response.status_code,
            )

        self.log_result(result, record)
        return result

    def _fatal(self, path: str, record: SourceRecord, error: str, status_code=None) -> TransferResult:
        return TransferResult(
            record_id=record.id,
            path=path,
            outcome=TransferOutcome.FATAL,
            status_code=status_code,
            error=error,
        )
