"""Wire models for the cluster admin API."""

from .models import CollectionPage, NodeInfo, PluginsInfo

__all__ = [
    "CollectionPage",
    "NodeInfo",
    "PluginsInfo",
]
