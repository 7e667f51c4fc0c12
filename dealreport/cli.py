"""Command line interface for the deals report."""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from sqlalchemy import create_engine
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from .exceptions import ReportConfigurationError, ReportError
from .models.config import ReportConfig
from .models.report import ReportRun
from .orchestrator import ReportOrchestrator
from .resolvers.registry import ResolverRegistry

logger = logging.getLogger(__name__)

DATABASE_URL_ENV = "DEAL_REPORT_DATABASE_URL"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deal-report",
        description="Deals Report - Export CRM deals with computed columns to CSV"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Run report
    run_parser = subparsers.add_parser("run", help="Generate a report")
    run_parser.add_argument("--config", required=True, help="Path to report config file")
    run_parser.add_argument("--output", help="Output CSV path (overrides config)")
    run_parser.add_argument(
        "--database-url",
        help=f"SQLAlchemy database URL (overrides config and ${DATABASE_URL_ENV})",
    )
    run_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    # List resolvers
    resolvers_parser = subparsers.add_parser("resolvers", help="List resolvers and their columns")
    resolvers_parser.add_argument("--config", help="Only list the resolvers enabled in this config")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "run":
        return run_report(args)
    elif args.command == "resolvers":
        return list_resolvers(args)

    parser.print_help()
    return 2


def load_config(args) -> ReportConfig:
    """Load the config file and apply command line and environment overrides."""
    config = ReportConfig.from_json_file(args.config)

    overrides = {}
    if getattr(args, "output", None):
        overrides["output_path"] = args.output

    database_url = getattr(args, "database_url", None) or os.environ.get(DATABASE_URL_ENV)
    if database_url:
        overrides["database_url"] = database_url

    if overrides:
        config = config.model_copy(update=overrides)
    return config


def run_report(args) -> int:
    """Generate a report from a config file."""
    try:
        config = load_config(args)
    except ReportError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    log_level = logging.DEBUG if args.verbose else config.numeric_log_level
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        if not config.database_url:
            raise ReportConfigurationError(
                f"No database URL: set database_url in the config, ${DATABASE_URL_ENV} or --database-url"
            )
        try:
            engine = create_engine(config.database_url)
        except ArgumentError as e:
            raise ReportConfigurationError(f"Invalid database URL: {e}") from e

        try:
            with engine.connect() as connection:
                orchestrator = ReportOrchestrator(config, connection)
                try:
                    result = orchestrator.generate()
                finally:
                    if config.report_file:
                        save_run_report(orchestrator.run, config.report_file)
        finally:
            engine.dispose()

    except (ReportError, SQLAlchemyError) as e:
        logger.error(f"Report failed: {e}")
        print(f"Report failed: {e}", file=sys.stderr)
        return 1

    print_summary(result)
    return 0


def save_run_report(run: ReportRun, filepath: str) -> None:
    """Write the run statistics as JSON."""
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(run.to_dict(), f, indent=2)
    logger.info(f"Saved run report to {path}")


def print_summary(run: ReportRun) -> None:
    print("\n" + "=" * 60)
    print("REPORT COMPLETE")
    print("=" * 60)
    print(f"Status: {run.status.value}")
    print(f"Output: {run.output_path}")
    print(f"Columns: {len(run.header)}")
    print(f"Records Pulled: {run.records_pulled}")
    print(f"Rows Written: {run.rows_written}")
    print(f"Error Rows: {run.error_rows}")
    for identifier, count in sorted(run.resolver_failures.items()):
        print(f"  {identifier}: failed for {count} records")
    if run.duration_seconds:
        print(f"Duration: {run.duration_seconds:.2f} seconds")


def list_resolvers(args) -> int:
    """Print resolvers in column order."""
    enabled = None
    if args.config:
        try:
            enabled = ReportConfig.from_json_file(args.config).resolvers
        except ReportError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    registry = ResolverRegistry()
    try:
        # Column names are static, so no connection is needed here
        resolvers = registry.discover(None, enabled)
    except ReportError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for resolver in resolvers:
        print(resolver.identifier)
        for name in resolver.column_names():
            print(f"  - {name}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
