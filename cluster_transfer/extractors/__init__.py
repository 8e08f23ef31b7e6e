"""Data extractors for admin API collections."""

from .base import BaseExtractor
from .admin_extractor import CollectionExtractor

__all__ = [
    "BaseExtractor",
    "CollectionExtractor",
]
