"""Compatibility gate run before any record is moved."""

import logging
from dataclasses import dataclass, field
from typing import Optional, Set, Tuple

from pydantic import ValidationError

from ..api.models import NodeInfo
from ..exceptions import (
    IncompatibleClustersError,
    IncompatiblePluginsError,
    MalformedResponseError,
)
from ..models.migration import Endpoint
from .http_client import AdminClient

logger = logging.getLogger(__name__)


@dataclass
class CompatibilityReport:
    """What the two clusters have in common."""
    plugins: Set[str] = field(default_factory=set)
    version: Optional[str] = None


class CompatibilityChecker:
    """
    Asserts that two clusters run comparable software.

    Each check probes ``GET /`` once per endpoint and keeps no state;
    ``check`` runs both comparisons on the same probe.
    """

    def __init__(self, client: AdminClient):
        self.client = client

    def node_info(self, endpoint: Endpoint) -> NodeInfo:
        """Fetch and validate the root metadata of a node."""
        body = self.client.get_json(endpoint, "/")
        try:
            return NodeInfo.model_validate(body)
        except ValidationError as e:
            raise MalformedResponseError(
                "invalid node information",
                context={"endpoint": str(endpoint), "path": "/", "details": e.errors()[0]["msg"]},
            ) from e

    def _probe(self, source: Endpoint, destination: Endpoint) -> Tuple[NodeInfo, NodeInfo]:
        return self.node_info(source), self.node_info(destination)

    @staticmethod
    def compare_versions(source_info: NodeInfo, destination_info: NodeInfo) -> str:
        if source_info.version != destination_info.version:
            raise IncompatibleClustersError(source_info.version, destination_info.version)
        return source_info.version

    @staticmethod
    def compare_plugins(source_info: NodeInfo, destination_info: NodeInfo) -> Set[str]:
        source_plugins = source_info.plugins.names
        destination_plugins = destination_info.plugins.names

        if source_plugins != destination_plugins:
            raise IncompatiblePluginsError(
                missing_on_destination=source_plugins - destination_plugins,
                missing_on_source=destination_plugins - source_plugins,
            )
        return source_plugins

    def check_versions(self, source: Endpoint, destination: Endpoint) -> str:
        """
        Compare the versions reported by both clusters.

        Returns:
            The shared version string

        Raises:
            IncompatibleClustersError: If the versions differ
        """
        return self.compare_versions(*self._probe(source, destination))

    def check_plugins(self, source: Endpoint, destination: Endpoint) -> Set[str]:
        """
        Compare the plugins available on both clusters, ignoring order.

        Returns:
            The shared set of plugin names

        Raises:
            IncompatiblePluginsError: If the sets differ
        """
        return self.compare_plugins(*self._probe(source, destination))

    def check(
        self,
        source: Endpoint,
        destination: Endpoint,
        check_versions: bool = True
    ) -> CompatibilityReport:
        """Run every enabled check on a single probe of each node, raising on the first mismatch."""
        report = CompatibilityReport()
        source_info, destination_info = self._probe(source, destination)

        if check_versions:
            report.version = self.compare_versions(source_info, destination_info)
            logger.info(f"initializing transfer across clusters with version: {report.version}")
        else:
            logger.warning("version check disabled, only plugins are compared")

        report.plugins = self.compare_plugins(source_info, destination_info)
        logger.info(f"detected {len(report.plugins)} available plugins")

        return report
