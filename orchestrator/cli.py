"""
Orchestrator - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line interface for the market data pipelines.

- Provides argparse-based CLI with one subcommand per job
- Loads configuration from CLI and environment
- Prints the run result as JSON, exit code 0 on success
- Entry point for cron / scheduler invocations

============================================================
USAGE
============================================================
python -m orchestrator.cli daily
python -m orchestrator.cli daily --scheduled
python -m orchestrator.cli live --dry-run
python -m orchestrator.cli alerts --scheduled
python -m orchestrator.cli schedule
python -m orchestrator.cli init-db

============================================================
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from orchestrator.jobs import DailyCloseJob, IntradayAlertJob
from orchestrator.live_pipeline import LiveQuotePipeline
from orchestrator.logging_setup import setup_logging
from orchestrator.models import PipelineConfig
from orchestrator.scheduler import JobScheduler
from storage.database import DatabasePersistenceError, create_database_engine, initialize_database
from storage.document_store import DocumentStore, InMemoryDocumentStore
from storage.sql_document_store import create_sql_document_store


COMMANDS = ("daily", "live", "alerts", "schedule", "init-db")


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="dse-market-data",
        description="DSE market data ingestion pipelines",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  daily     - Scrape the daily market summary and store the trading day
  live      - Store a snapshot of the intraday live price feed
  alerts    - Live snapshot plus price alert evaluation
  schedule  - Run both jobs on their schedule until stopped
  init-db   - Create the document store tables

Examples:
  %(prog)s daily                     # Manual run, no time window
  %(prog)s daily --scheduled         # Honour the 19:00 daily close window
  %(prog)s alerts --scheduled        # Honour market hours
  %(prog)s live --dry-run            # In-memory store, nothing persisted
        """
    )

    parser.add_argument(
        "command",
        choices=COMMANDS,
        help="Job to run",
    )

    # --------------------------------------------------------
    # Execution Options
    # --------------------------------------------------------
    execution_group = parser.add_argument_group("Execution Options")

    execution_group.add_argument(
        "--scheduled",
        action="store_true",
        help="Apply the job's market time window (default: manual run)",
    )

    execution_group.add_argument(
        "--dry-run",
        action="store_true",
        help="Use an in-memory document store; nothing is persisted",
    )

    execution_group.add_argument(
        "--timeout",
        type=float,
        metavar="SECONDS",
        help="HTTP fetch timeout (default: FETCH_TIMEOUT_SECONDS or 30)",
    )

    # --------------------------------------------------------
    # Storage Options
    # --------------------------------------------------------
    storage_group = parser.add_argument_group("Storage Options")

    storage_group.add_argument(
        "--database-url",
        type=str,
        metavar="URL",
        help="SQLAlchemy database URL (default: DATABASE_URL)",
    )

    # --------------------------------------------------------
    # Logging Options
    # --------------------------------------------------------
    logging_group = parser.add_argument_group("Logging Options")

    logging_group.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: LOG_LEVEL or INFO)",
    )

    logging_group.add_argument(
        "--log-format",
        type=str,
        choices=["json", "text"],
        help="Logging format (default: LOG_FORMAT or text)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version="%(prog)s 1.0.0",
    )

    return parser


# ============================================================
# CLI CONFIGURATION BUILDER
# ============================================================

def build_config(args: argparse.Namespace, base: Optional[PipelineConfig] = None) -> PipelineConfig:
    """
    Build pipeline configuration from environment and CLI overrides.
    """
    config = base or PipelineConfig.from_env()
    overrides = {}
    if args.timeout is not None:
        overrides["fetch_timeout_seconds"] = args.timeout
    if args.database_url:
        overrides["database_url"] = args.database_url
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.log_format:
        overrides["log_format"] = args.log_format
    return replace(config, **overrides) if overrides else config


def build_store(config: PipelineConfig, dry_run: bool = False) -> DocumentStore:
    if dry_run:
        return InMemoryDocumentStore(config.max_batch_operations)
    return create_sql_document_store(config.database_url, config.max_batch_operations)


# ============================================================
# MAIN ENTRY POINT
# ============================================================

async def async_main(args: argparse.Namespace, config: PipelineConfig) -> int:
    """
    Async main entry point.

    Returns:
        Exit code
    """
    store = build_store(config, dry_run=args.dry_run)
    manual = not args.scheduled

    if args.command == "schedule":
        await JobScheduler.default(store, config).run_forever()
        return 0

    if args.command == "daily":
        report = await DailyCloseJob(store, config=config).run(manual=manual)
        print(json.dumps(report.to_dict(), indent=2))
        return 0 if (not report.ran or report.result.success) else 1

    if args.command == "live":
        result = await LiveQuotePipeline(store, config=config).run()
        print(json.dumps(result.to_dict(), indent=2))
        return 0 if result.success else 1

    report = await IntradayAlertJob(store, config=config).run(manual=manual)
    print(json.dumps(report.to_dict(), indent=2))
    if not report.ran:
        return 0
    return 0 if report.result.success and report.error is None else 1


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)
    config = build_config(args)

    errors = config.validate()
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    setup_logging(level=config.log_level, log_format=config.log_format)

    if args.command == "init-db":
        try:
            initialize_database(create_database_engine(config.database_url))
        except DatabasePersistenceError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        return 0

    try:
        return asyncio.run(async_main(args, config))
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        return 130
    except Exception as e:
        logging.error(f"Fatal error: {e}", exc_info=True)
        return 1


# ============================================================
# MODULE EXECUTION
# ============================================================

if __name__ == "__main__":
    sys.exit(main())
