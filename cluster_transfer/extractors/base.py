"""Base extractor interface."""

from abc import ABC, abstractmethod
from typing import Iterator, Optional, Set
import logging

from ..api.models import CollectionPage
from ..exceptions import PaginationLoopError
from ..models.migration import Endpoint
from ..models.record import SourceRecord

logger = logging.getLogger(__name__)


class BaseExtractor(ABC):
    """
    Base class for collection extractors.

    Extractors walk a cursor-paginated collection and turn it into a lazy,
    forward-only stream of SourceRecord objects. Only one page is held in
    memory at a time.
    """

    @abstractmethod
    def fetch_page(self, endpoint: Endpoint, path: str) -> CollectionPage:
        """
        Fetch a single page.

        Args:
            endpoint: Node to read from
            path: Path plus query string of the page

        Returns:
            The decoded page
        """
        pass

    @abstractmethod
    def next_page_path(self, page: CollectionPage) -> Optional[str]:
        """
        Resolve the cursor of a page into the path of the following page.

        Returns:
            The next path, or None on the last page
        """
        pass

    def stream(self, endpoint: Endpoint, path: str) -> Iterator[SourceRecord]:
        """
        Stream every record reachable from ``path``.

        Args:
            endpoint: Node to read from
            path: First page of the collection

        Yields:
            SourceRecord objects in source order

        Raises:
            PaginationLoopError: If a ``next`` cursor points to a visited page
        """
        visited: Set[str] = set()
        pending: Optional[str] = path
        position = 0

        while pending is not None:
            if pending in visited:
                raise PaginationLoopError(path, pending)
            visited.add(pending)

            page = self.fetch_page(endpoint, pending)
            logger.debug(f"{path}: page {len(visited)} with {len(page.data)} records")

            for data in page.data:
                position += 1
                yield SourceRecord.from_data(path, data, position)

            pending = self.next_page_path(page)
