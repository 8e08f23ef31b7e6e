"""Record models for transfer data."""

from dataclasses import dataclass
from typing import Any, Dict, Optional
from enum import Enum


class TransferOutcome(str, Enum):
    """Outcome of replaying one record at the destination."""
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    FATAL = "fatal"


@dataclass
class SourceRecord:
    """A record read from a source collection."""
    id: Optional[str]
    collection: str
    data: Dict[str, Any]
    position: int = 0  # 1-based position within the collection stream

    @classmethod
    def from_data(cls, collection: str, data: Dict[str, Any], position: int = 0) -> "SourceRecord":
        """Wrap a raw record mapping, keeping it untouched."""
        record_id = data.get("id")
        return cls(
            id=str(record_id) if record_id is not None else None,
            collection=collection,
            data=data,
            position=position,
        )


@dataclass
class TransferResult:
    """Result of attempting to create a record at the destination."""
    record_id: Optional[str]
    path: str
    outcome: TransferOutcome
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def is_fatal(self) -> bool:
        return self.outcome == TransferOutcome.FATAL
