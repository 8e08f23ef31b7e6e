"""Migration orchestrator - coordinates the complete transfer process."""

import logging
from datetime import datetime
from typing import Optional

from .exceptions import MalformedResponseError, MigrationError, TransferFailedError
from .models.migration import (
    MigrationConfig,
    MigrationRun,
    MigrationStatus,
    PlanStep,
    StepReport,
)
from .models.record import TransferOutcome, TransferResult
from .services.http_client import AdminClient
from .services.compatibility import CompatibilityChecker
from .extractors.base import BaseExtractor
from .extractors.admin_extractor import CollectionExtractor
from .loaders.base import BaseLoader
from .loaders.admin_loader import AdminLoader

logger = logging.getLogger(__name__)


class MigrationOrchestrator:
    """
    Orchestrates a transfer between two clusters.

    Handles:
    - The compatibility gate (versions and plugins)
    - Streaming each plan step's collection from the source
    - Replaying every record at the destination
    - Relation sub-collections, one parent at a time

    All requests are sequential. The first error stops the run; records
    already created at the destination stay there.
    """

    def __init__(
        self,
        config: MigrationConfig,
        client: Optional[AdminClient] = None,
        extractor: Optional[BaseExtractor] = None,
        loader: Optional[BaseLoader] = None,
        checker: Optional[CompatibilityChecker] = None
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Transfer configuration
            client: HTTP client shared by the default collaborators
            extractor: Reader for source collections
            loader: Writer for destination collections
            checker: Compatibility gate
        """
        self.config = config
        self.client = client or AdminClient(timeout_ms=config.timeout_ms)
        self.extractor = extractor or CollectionExtractor(self.client)
        self.loader = loader or AdminLoader(self.client)
        self.checker = checker or CompatibilityChecker(self.client)

        # Runtime state
        self.run: Optional[MigrationRun] = None

    def run_migration(self) -> MigrationRun:
        """
        Run the complete transfer.

        Returns:
            MigrationRun, COMPLETED or ABORTED with the first error recorded
        """
        self.run = MigrationRun()
        self.run.started_at = datetime.utcnow()
        self.run.status = MigrationStatus.CHECKING

        try:
            logger.info("=== PHASE 1: COMPATIBILITY ===")
            report = self.checker.check(
                self.config.source,
                self.config.destination,
                check_versions=self.config.check_versions,
            )
            self.run.version = report.version
            self.run.plugins = sorted(report.plugins)

            logger.info("=== PHASE 2: TRANSFER ===")
            self.run.status = MigrationStatus.MIGRATING
            for step in self.config.plan:
                self._run_step(step)

            self.run.status = MigrationStatus.COMPLETED
            logger.info("done")

        except MigrationError as e:
            self.run.status = MigrationStatus.ABORTED
            self.run.error = e.to_dict()
            current = self._current_step()
            if current:
                self.run.error["step"] = current.name
            logger.error(f"Migration aborted: {e}")

        finally:
            self.run.completed_at = datetime.utcnow()
            self.run.update_totals()

        return self.run

    def _current_step(self) -> Optional[StepReport]:
        for step in self.run.steps:
            if step.id == self.run.current_step:
                return step
        return None

    def _run_step(self, plan_step: PlanStep):
        """Migrate one plan step."""
        step = self.run.add_step(plan_step.name)
        step.status = MigrationStatus.MIGRATING
        step.started_at = datetime.utcnow()
        self.run.current_step = step.id

        logger.info(f"starting transfer for {plan_step.name}")

        try:
            if plan_step.relation:
                for parent in self.extractor.stream(self.config.source, plan_step.collection):
                    step.parents_read += 1
                    if parent.id is None:
                        raise MalformedResponseError(
                            "record without id cannot own relations",
                            context={"path": plan_step.collection, "position": parent.position},
                        )
                    self._transfer_collection(plan_step.relation_path(parent.id), step)
            else:
                self._transfer_collection(plan_step.collection, step)

            step.status = MigrationStatus.COMPLETED
            logger.info(
                f"finished {plan_step.name}: {step.records_created} created, "
                f"{step.records_skipped} already present"
            )

        except MigrationError:
            step.status = MigrationStatus.ABORTED
            raise

        finally:
            step.completed_at = datetime.utcnow()

    def _transfer_collection(self, path: str, step: StepReport):
        """Replay every record of a source collection at the same destination path."""
        for record in self.extractor.stream(self.config.source, path):
            step.records_read += 1
            result = self.loader.load_record(self.config.destination, path, record)
            self._handle_result(result, step)

    def _handle_result(self, result: TransferResult, step: StepReport):
        if result.outcome == TransferOutcome.CREATED:
            step.records_created += 1
        elif result.outcome == TransferOutcome.ALREADY_EXISTS:
            step.records_skipped += 1
        else:
            raise TransferFailedError(result)
