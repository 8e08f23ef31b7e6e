"""Service layer for the transfer application."""

from .http_client import AdminClient
from .compatibility import CompatibilityChecker, CompatibilityReport

__all__ = [
    "AdminClient",
    "CompatibilityChecker",
    "CompatibilityReport",
]
