"""Base loader interface for destination clusters."""

from abc import ABC, abstractmethod
import logging

from ..models.migration import Endpoint
from ..models.record import SourceRecord, TransferOutcome, TransferResult

logger = logging.getLogger(__name__)


class BaseLoader(ABC):
    """
    Base class for data loaders.

    Loaders create one record at a time at the destination and classify
    the response. They never raise for a failed write: a FATAL result is
    returned and the caller decides to stop.
    """

    @abstractmethod
    def load_record(self, endpoint: Endpoint, path: str, record: SourceRecord) -> TransferResult:
        """
        Create a single record at the destination.

        Args:
            endpoint: Destination node
            path: Collection path to create the record in
            record: Record read from the source

        Returns:
            TransferResult with the outcome
        """
        pass

    def log_result(self, result: TransferResult, record: SourceRecord) -> None:
        """Report a transfer outcome."""
        if result.outcome == TransferOutcome.CREATED:
            logger.info(f"path {result.path}, transfer done for #{record.position}")
        elif result.outcome == TransferOutcome.ALREADY_EXISTS:
            logger.warning(f"path {result.path}, conflict for {result.record_id}")
        else:
            logger.error(f"path {result.path}, transfer failed for {result.record_id}: {result.error}")
