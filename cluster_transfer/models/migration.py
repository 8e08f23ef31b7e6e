"""Migration execution models."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from enum import Enum
from datetime import datetime
from urllib.parse import quote
import uuid

from ..exceptions import ConfigurationError, InvalidAddressError, InvalidPlanError


DEFAULT_TIMEOUT_MS = 10000

# Credential types owned by a consumer, migrated once consumers exist.
CONSUMER_RELATIONS = ["acls", "basic-auth", "hmac-auth", "jwt", "key-auth", "oauth2"]

# Parents come before the relations and tokens that reference them.
DEFAULT_PLAN: List[Dict[str, Any]] = [
    {"collection": "/apis/"},
    {"collection": "/consumers/"},
    {"collection": "/plugins/"},
    {"collection": "/consumers/", "relations": CONSUMER_RELATIONS},
    {"collection": "/oauth2_tokens/"},
]


class MigrationStatus(str, Enum):
    """Status of a migration run."""
    PENDING = "pending"
    CHECKING = "checking"
    MIGRATING = "migrating"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class Endpoint:
    """Admin interface of one cluster node."""
    address: str
    port: int

    @classmethod
    def parse(cls, value: Optional[str], label: str = "address") -> "Endpoint":
        """
        Parse a ``host:port`` string.

        Args:
            value: The string given by the operator
            label: Name used in the error message (e.g. "from", "to")

        Raises:
            InvalidAddressError: If the value is not ``host:port``
        """
        if not value:
            raise InvalidAddressError(value, label)

        parts = value.split(":")
        if len(parts) != 2:
            raise InvalidAddressError(value, label)

        host, port = parts[0].strip(), parts[1].strip()
        if not host or not port.isdigit():
            raise InvalidAddressError(value, label)

        port_number = int(port)
        if not 0 < port_number < 65536:
            raise InvalidAddressError(value, label)

        return cls(address=host, port=port_number)

    @property
    def base_url(self) -> str:
        return f"http://{self.address}:{self.port}"

    def __str__(self) -> str:
        return f"{self.address}:{self.port}"


def normalize_collection(path: str) -> str:
    """Return ``path`` with exactly one leading and one trailing slash."""
    stripped = path.strip().strip("/")
    if not stripped:
        raise InvalidPlanError("collection path must not be empty", context={"collection": path})
    return f"/{stripped}/"


@dataclass(frozen=True)
class RelationDescriptor:
    """A nested sub-collection owned by each record of a collection."""
    name: str

    def __post_init__(self):
        if not self.name or "/" in self.name:
            raise InvalidPlanError("invalid relation name", context={"relation": self.name})


@dataclass(frozen=True)
class PlanStep:
    """One collection to migrate, optionally through a relation."""
    collection: str
    relation: Optional[RelationDescriptor] = None

    @property
    def name(self) -> str:
        """Human readable path template, e.g. ``/consumers/{id}/acls/``."""
        if self.relation:
            return f"{self.collection}{{id}}/{self.relation.name}/"
        return self.collection

    def relation_path(self, parent_id: str) -> str:
        """Path of the relation sub-collection owned by ``parent_id``."""
        if not self.relation:
            raise InvalidPlanError("step has no relation", context={"collection": self.collection})
        return f"{self.collection}{quote(parent_id, safe='')}/{self.relation.name}/"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"collection": self.collection}
        if self.relation:
            data["relation"] = self.relation.name
        return data


@dataclass(frozen=True)
class MigrationPlan:
    """Ordered, immutable sequence of steps to migrate."""
    steps: Tuple[PlanStep, ...] = ()

    def __iter__(self):
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    @classmethod
    def default(cls) -> "MigrationPlan":
        """Plan covering APIs, consumers, plugins, credentials and tokens."""
        return cls.from_dict(DEFAULT_PLAN)

    @classmethod
    def from_dict(cls, data: Any) -> "MigrationPlan":
        """
        Build a plan from its JSON representation.

        Accepts either a list of entries or ``{"steps": [...]}``. Each entry
        is ``{"collection": str}`` optionally with ``"relation": str`` or
        ``"relations": [str, ...]``; the latter expands into one step per
        relation, in the given order.

        Raises:
            InvalidPlanError: If the definition is malformed
        """
        if isinstance(data, dict):
            data = data.get("steps")
        if not isinstance(data, list) or not data:
            raise InvalidPlanError("plan must be a non-empty list of steps")

        steps: List[PlanStep] = []
        for index, entry in enumerate(data):
            if not isinstance(entry, dict) or not isinstance(entry.get("collection"), str):
                raise InvalidPlanError("plan step requires a collection", context={"step": index})

            if "relation" in entry and "relations" in entry:
                raise InvalidPlanError(
                    "use either relation or relations, not both",
                    context={"step": index},
                )

            collection = normalize_collection(entry["collection"])
            relations = entry.get("relations")
            if relations is None and entry.get("relation") is not None:
                relations = [entry["relation"]]

            if relations is None:
                steps.append(PlanStep(collection=collection))
                continue

            if not isinstance(relations, list) or not relations:
                raise InvalidPlanError("relations must be a non-empty list", context={"step": index})
            for name in relations:
                if not isinstance(name, str):
                    raise InvalidPlanError("relation names must be strings", context={"step": index})
                steps.append(PlanStep(collection=collection, relation=RelationDescriptor(name)))

        return cls(steps=tuple(steps))

    def to_dict(self) -> List[Dict[str, Any]]:
        return [step.to_dict() for step in self.steps]


@dataclass
class StepReport:
    """Progress of a single plan step."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    status: MigrationStatus = MigrationStatus.PENDING
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    parents_read: int = 0
    records_read: int = 0
    records_created: int = 0
    records_skipped: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "parents_read": self.parents_read,
            "records_read": self.records_read,
            "records_created": self.records_created,
            "records_skipped": self.records_skipped,
        }

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None


@dataclass
class MigrationRun:
    """A complete migration run."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: MigrationStatus = MigrationStatus.PENDING

    # Compatibility gate
    version: Optional[str] = None
    plugins: List[str] = field(default_factory=list)

    # Timing
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    # Progress
    steps: List[StepReport] = field(default_factory=list)
    current_step: Optional[str] = None

    # Statistics
    total_records_read: int = 0
    total_records_created: int = 0
    total_records_skipped: int = 0

    # Set when the run is aborted
    error: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "status": self.status.value,
            "version": self.version,
            "plugins": self.plugins,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "steps": [s.to_dict() for s in self.steps],
            "current_step": self.current_step,
            "total_records_read": self.total_records_read,
            "total_records_created": self.total_records_created,
            "total_records_skipped": self.total_records_skipped,
            "error": self.error,
        }

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def succeeded(self) -> bool:
        return self.status == MigrationStatus.COMPLETED

    def add_step(self, name: str) -> StepReport:
        """Add a new step to the run."""
        step = StepReport(name=name)
        self.steps.append(step)
        return step

    def update_totals(self) -> None:
        """Update total statistics from steps."""
        self.total_records_read = sum(s.records_read for s in self.steps)
        self.total_records_created = sum(s.records_created for s in self.steps)
        self.total_records_skipped = sum(s.records_skipped for s in self.steps)


@dataclass
class MigrationConfig:
    """Configuration for a transfer between two clusters."""
    source: Endpoint
    destination: Endpoint
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    check_versions: bool = True
    plan: MigrationPlan = field(default_factory=MigrationPlan.default)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "source": str(self.source),
            "destination": str(self.destination),
            "timeout_ms": self.timeout_ms,
            "check_versions": self.check_versions,
            "plan": self.plan.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationConfig":
        """Create from dictionary representation."""
        plan_data = data.get("plan")
        plan = MigrationPlan.from_dict(plan_data) if plan_data is not None else MigrationPlan.default()

        timeout_ms = data.get("timeout_ms", DEFAULT_TIMEOUT_MS)
        if not isinstance(timeout_ms, int) or timeout_ms <= 0:
            raise ConfigurationError("timeout_ms must be a positive integer", context={"timeout_ms": timeout_ms})

        return cls(
            source=Endpoint.parse(data.get("source"), "from"),
            destination=Endpoint.parse(data.get("destination"), "to"),
            timeout_ms=timeout_ms,
            check_versions=data.get("check_versions", True),
            plan=plan,
        )
