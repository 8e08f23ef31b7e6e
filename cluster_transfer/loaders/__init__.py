"""Data loaders for destination clusters."""

from .base import BaseLoader
from .admin_loader import AdminLoader

__all__ = [
    "BaseLoader",
    "AdminLoader",
]
