"""Command-line interface for transferring data between two clusters."""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .exceptions import ConfigurationError, InvalidPlanError, MigrationError
from .models.migration import (
    DEFAULT_TIMEOUT_MS,
    Endpoint,
    MigrationConfig,
    MigrationPlan,
)
from .orchestrator import MigrationOrchestrator

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ABORTED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cluster-transfer",
        description="Transfer data between two different clusters using the Admin API",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Run a transfer
    run_parser = subparsers.add_parser("run", help="Copy every record from one cluster to another")
    run_parser.add_argument(
        "-f", "--from", dest="source", required=True,
        help="host:admin_port of the node to copy data from",
    )
    run_parser.add_argument(
        "-t", "--to", dest="destination", required=True,
        help="host:admin_port of the node to copy data to",
    )
    run_parser.add_argument(
        "--timeout", type=int, default=DEFAULT_TIMEOUT_MS,
        help=f"Request timeout in milliseconds (default: {DEFAULT_TIMEOUT_MS})",
    )
    run_parser.add_argument(
        "--skip-version-check", action="store_true",
        help="Only compare available plugins, not versions",
    )
    run_parser.add_argument("--plan", help="Path to a JSON migration plan")
    run_parser.add_argument(
        "--json", action="store_true",
        help="Print the run report as JSON instead of the text summary",
    )
    run_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    # Show the plan
    plan_parser = subparsers.add_parser("plan", help="Print the ordered migration plan")
    plan_parser.add_argument("--plan", help="Path to a JSON migration plan")

    return parser


def load_plan(path: Optional[str]) -> MigrationPlan:
    """Load a plan file, or return the default plan."""
    if not path:
        return MigrationPlan.default()

    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise InvalidPlanError(f"cannot read plan file: {e}", context={"file": path}) from e

    return MigrationPlan.from_dict(data)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Set up logging
    log_level = logging.DEBUG if getattr(args, "verbose", False) else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if args.command == "run":
        return run_transfer(args)
    elif args.command == "plan":
        return show_plan(args)

    parser.print_help()
    return EXIT_USAGE


def run_transfer(args) -> int:
    """Run a transfer from command-line arguments."""
    try:
        if args.timeout <= 0:
            raise ConfigurationError("timeout must be a positive number of milliseconds")
        config = MigrationConfig(
            source=Endpoint.parse(args.source, "from"),
            destination=Endpoint.parse(args.destination, "to"),
            timeout_ms=args.timeout,
            check_versions=not args.skip_version_check,
            plan=load_plan(args.plan),
        )
    except MigrationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    logger.info(f"transferring from {config.source} to {config.destination} ({len(config.plan)} steps)")

    orchestrator = MigrationOrchestrator(config)
    result = orchestrator.run_migration()

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, default=str))
        return EXIT_OK if result.succeeded else EXIT_ABORTED

    print("\n" + "=" * 60)
    print("TRANSFER COMPLETE" if result.succeeded else "TRANSFER ABORTED")
    print("=" * 60)
    print(f"Status: {result.status.value}")
    print(f"Records Read: {result.total_records_read}")
    print(f"Created: {result.total_records_created}")
    print(f"Already Present: {result.total_records_skipped}")
    if result.duration_seconds:
        print(f"Duration: {result.duration_seconds:.2f} seconds")
    if result.error:
        print(f"Error: {result.error['message']}")
        if result.error.get("context"):
            print(json.dumps(result.error["context"], indent=2, default=str))

    return EXIT_OK if result.succeeded else EXIT_ABORTED


def show_plan(args) -> int:
    """Print the plan steps in execution order."""
    try:
        plan = load_plan(args.plan)
    except MigrationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    for index, step in enumerate(plan, 1):
        print(f"{index:2d}. {step.name}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
