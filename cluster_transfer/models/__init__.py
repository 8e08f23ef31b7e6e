"""Data models for the transfer application."""

from .migration import (
    CONSUMER_RELATIONS,
    DEFAULT_PLAN,
    Endpoint,
    MigrationConfig,
    MigrationPlan,
    MigrationRun,
    MigrationStatus,
    PlanStep,
    RelationDescriptor,
    StepReport,
)
from .record import (
    SourceRecord,
    TransferOutcome,
    TransferResult,
)

__all__ = [
    "CONSUMER_RELATIONS",
    "DEFAULT_PLAN",
    "Endpoint",
    "MigrationConfig",
    "MigrationPlan",
    "MigrationRun",
    "MigrationStatus",
    "PlanStep",
    "RelationDescriptor",
    "StepReport",
    "SourceRecord",
    "TransferOutcome",
    "TransferResult",
]
