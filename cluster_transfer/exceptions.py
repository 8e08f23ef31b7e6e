"""Exception hierarchy for cluster transfers.

Every error raised while checking or migrating clusters derives from
``MigrationError``. All of them are fatal to the run: the orchestrator
catches them in one place, records them on the ``MigrationRun`` and stops.

A 409 conflict on write is not an error and has no exception here.
"""

from typing import Any, Dict, Iterable, Optional


class MigrationError(Exception):
    """
    Base exception for transfer errors.

    Attributes:
        message: Human-readable error message
        context: Extra details (path, record id, status code...)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        """
        Initialize the error.

        Args:
            message: Human-readable error message
            context: Optional dictionary with error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "context": self.context,
        }

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} ({details})"


class InvalidAddressError(MigrationError):
    """Raised when a ``host:port`` argument cannot be parsed."""

    def __init__(self, value: Optional[str], label: str = "address"):
        super().__init__(
            f"Invalid \"{label}\" address format",
            context={"value": value},
        )
        self.value = value


class ConfigurationError(MigrationError):
    """Raised when operator-supplied settings are invalid."""


class InvalidPlanError(ConfigurationError):
    """Raised when a migration plan definition is malformed."""


class IncompatibleClustersError(MigrationError):
    """Raised when the two clusters report different versions."""

    def __init__(self, source_version: Any, destination_version: Any):
        super().__init__(
            "different versions were found on the two clusters",
            context={
                "source_version": source_version,
                "destination_version": destination_version,
            },
        )
        self.source_version = source_version
        self.destination_version = destination_version


class IncompatiblePluginsError(MigrationError):
    """Raised when the two clusters expose different plugin sets."""

    def __init__(self, missing_on_destination: Iterable[str], missing_on_source: Iterable[str]):
        self.missing_on_destination = sorted(missing_on_destination)
        self.missing_on_source = sorted(missing_on_source)
        super().__init__(
            "different available plugins were found on the two clusters",
            context={
                "missing_on_destination": self.missing_on_destination,
                "missing_on_source": self.missing_on_source,
            },
        )


class TransportError(MigrationError):
    """Raised on connect, timeout or connection-level failures."""


class UnexpectedStatusError(MigrationError):
    """Raised when a response carries a status the operation does not expect."""

    def __init__(self, status_code: int, expected: int, method: str, path: str):
        super().__init__(
            f"invalid status received: {status_code}",
            context={"method": method, "path": path, "expected": expected},
        )
        self.status_code = status_code
        self.expected = expected


class MalformedResponseError(MigrationError):
    """Raised when a response body cannot be decoded or has the wrong shape."""


class PaginationLoopError(MigrationError):
    """Raised when a collection's ``next`` chain points back to a visited page."""

    def __init__(self, collection: str, page: str):
        super().__init__(
            "pagination cycle detected",
            context={"collection": collection, "page": page},
        )
        self.collection = collection
        self.page = page


class TransferFailedError(MigrationError):
    """Raised by the orchestrator when a record could not be created."""

    def __init__(self, result: Any):
        context = {"path": result.path, "record_id": result.record_id}
        if result.status_code is not None:
            context["status"] = result.status_code
        super().__init__(
            f"an error occurred during the transfer: {result.error}",
            context=context,
        )
        self.result = result
