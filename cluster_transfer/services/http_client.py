"""HTTP client for cluster admin interfaces."""

import logging
from typing import Any, Callable, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..exceptions import MalformedResponseError, TransportError, UnexpectedStatusError
from ..models.migration import DEFAULT_TIMEOUT_MS, Endpoint

logger = logging.getLogger(__name__)


class AdminClient:
    """
    Issues single requests against an admin interface.

    Every call opens a fresh session and closes it once the body has been
    read, so no connection is held across pages or records. Requests are
    never retried: a refused connection or a timeout surfaces as
    ``TransportError``.
    """

    def __init__(
        self,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        session_factory: Optional[Callable[[], requests.Session]] = None
    ):
        """
        Initialize the client.

        Args:
            timeout_ms: Connect and read timeout for each request
            session_factory: Builds the session used for one request
        """
        self.timeout_ms = timeout_ms
        self._session_factory = session_factory or self._create_session

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    def _create_session(self) -> requests.Session:
        """Create a requests session without retry logic."""
        session = requests.Session()

        retries = Retry(total=0, redirect=0, raise_on_status=False)
        adapter = HTTPAdapter(max_retries=retries, pool_maxsize=1)
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        return session

    def request(
        self,
        endpoint: Endpoint,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None
    ) -> requests.Response:
        """
        Issue one request and read its body.

        Args:
            endpoint: Node to talk to
            method: HTTP method
            path: Path plus optional query string
            payload: JSON body, if any

        Raises:
            TransportError: On connect, timeout or read failure
        """
        url = f"{endpoint.base_url}{path}"
        headers = {"Accept": "application/json"}
        if payload is not None:
            headers["Content-Type"] = "application/json"

        session = self._session_factory()
        try:
            response = session.request(
                method,
                url,
                json=payload,
                headers=headers,
                timeout=self.timeout_seconds,
                allow_redirects=False,
            )
            # Force the body to be read before the session is closed.
            response.content
        except requests.exceptions.RequestException as e:
            raise TransportError(
                f"failed to make request: {e}",
                context={"method": method, "endpoint": str(endpoint), "path": path},
            ) from e
        finally:
            session.close()

        logger.debug(f"{method} {url} -> {response.status_code}")
        return response

    def read(self, response: requests.Response, status: int, method: str, path: str) -> Any:
        """
        Decode a response body, checking its status first.

        Returns:
            The decoded JSON document, or None for an empty body

        Raises:
            UnexpectedStatusError: If the status is not ``status``
            MalformedResponseError: If the body is not valid JSON
        """
        if response.status_code != status:
            raise UnexpectedStatusError(response.status_code, status, method, path)

        if not response.content or not response.content.strip():
            return None

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(
                "response body is not valid JSON",
                context={"method": method, "path": path},
            ) from e

    def get_json(self, endpoint: Endpoint, path: str) -> Any:
        """GET ``path`` and decode the 200 response."""
        response = self.request(endpoint, "GET", path)
        return self.read(response, 200, "GET", path)

    def post(self, endpoint: Endpoint, path: str, payload: Dict[str, Any]) -> requests.Response:
        """POST ``payload`` to ``path``; the caller interprets the status."""
        return self.request(endpoint, "POST", path, payload)
