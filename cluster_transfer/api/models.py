"""Pydantic models for admin API responses."""

from typing import Any, Dict, List, Optional, Set, Union
from pydantic import BaseModel, ConfigDict, field_validator


class PluginsInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    # Older nodes report a mapping of name -> enabled flag, newer ones may
    # report metadata objects or a flat list of names.
    available_on_server: Union[Dict[str, Any], List[str]]

    @property
    def names(self) -> Set[str]:
        """Names of the plugins available on the node."""
        if isinstance(self.available_on_server, dict):
            return set(self.available_on_server.keys())
        return set(self.available_on_server)


class NodeInfo(BaseModel):
    """Root metadata returned by ``GET /`` on an admin interface."""
    model_config = ConfigDict(extra="allow")

    version: str
    plugins: PluginsInfo


class CollectionPage(BaseModel):
    """One page of a paginated admin collection."""
    model_config = ConfigDict(extra="allow")

    data: List[Dict[str, Any]]
    next: Optional[str] = None

    @field_validator("data", mode="before")
    @classmethod
    def empty_object_is_empty_list(cls, value: Any) -> Any:
        # The server encodes an empty collection as ``{}``.
        if isinstance(value, dict) and not value:
            return []
        return value
