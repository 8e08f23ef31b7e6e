"""Extractor for paginated admin API collections."""

import logging
from typing import Optional
from urllib.parse import urlsplit

from pydantic import ValidationError

from .base import BaseExtractor
from ..api.models import CollectionPage
from ..exceptions import MalformedResponseError
from ..models.migration import Endpoint
from ..services.http_client import AdminClient

logger = logging.getLogger(__name__)


class CollectionExtractor(BaseExtractor):
    """
    Reads collections shaped as ``{"data": [...], "next": "<url>"}``.

    Every page is fetched with its own request. Any transport failure,
    status other than 200, or malformed body ends the stream with an
    exception; pages are never skipped or retried.
    """

    def __init__(self, client: AdminClient):
        """
        Initialize the extractor.

        Args:
            client: Client used for the page requests
        """
        self.client = client

    def fetch_page(self, endpoint: Endpoint, path: str) -> CollectionPage:
        """Fetch and validate one page."""
        body = self.client.get_json(endpoint, path)
        if not isinstance(body, dict):
            raise MalformedResponseError(
                "collection page is not a JSON object",
                context={"endpoint": str(endpoint), "path": path},
            )

        try:
            return CollectionPage.model_validate(body)
        except ValidationError as e:
            raise MalformedResponseError(
                "invalid collection page",
                context={"endpoint": str(endpoint), "path": path, "details": e.errors()[0]["msg"]},
            ) from e

    def next_page_path(self, page: CollectionPage) -> Optional[str]:
        """Keep the path and query of the ``next`` URL; the host is ignored."""
        if not page.next:
            return None

        parsed = urlsplit(page.next)
        if not parsed.path:
            raise MalformedResponseError("invalid next page reference", context={"next": page.next})

        if parsed.query:
            return f"{parsed.path}?{parsed.query}"
        return parsed.path
