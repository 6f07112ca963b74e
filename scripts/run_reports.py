#!/usr/bin/env python
"""Inventory report runner CLI.

Compute the inventory reports from a staging CSV file or from the database and
write one file per report.

Usage:
    # All reports from a CSV file, as JSON
    uv run python scripts/run_reports.py --csv data/inventory.csv --output-dir reports

    # Selected reports from the database, as CSV
    uv run python scripts/run_reports.py --from-db --report stock_recommendations \
        --report low_inventory --format csv

    # Load a CSV file into the database, then report from it
    uv run python scripts/run_reports.py --csv data/inventory.csv --persist --confirm

    # List available reports
    uv run python scripts/run_reports.py --list
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

import pandas as pd
from sqlalchemy.exc import SQLAlchemyError

from stocklens.core.config import get_settings
from stocklens.core.database import create_schema, get_engine, get_session_maker
from stocklens.core.exceptions import DatabaseError, StockLensError
from stocklens.core.logging import configure_logging, get_logger
from stocklens.features.analytics.reports import REPORTS
from stocklens.features.analytics.schemas import ReportName
from stocklens.features.analytics.service import AnalyticsService, ReportResult
from stocklens.features.data_platform.snapshot import FactSnapshot, FactSnapshotLoader
from stocklens.features.ingest.service import (
    normalize_staging,
    persist_snapshot,
    read_staging_csv,
)

logger = get_logger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        description="StockLens inventory report runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    source_group = parser.add_mutually_exclusive_group()
    source_group.add_argument(
        "--csv",
        type=Path,
        help="Staging CSV file (header row skipped, columns positional)",
    )
    source_group.add_argument(
        "--from-db",
        action="store_true",
        help="Read the star schema from the configured database",
    )
    source_group.add_argument(
        "--list",
        action="store_true",
        help="List available reports and exit",
    )

    parser.add_argument(
        "--report",
        action="append",
        choices=[name.value for name in ReportName],
        help="Report to run (repeatable; default: all reports)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("reports"),
        help="Directory for report files (default: reports)",
    )
    parser.add_argument(
        "--format",
        choices=["json", "csv"],
        default="json",
        help="Output file format (default: json)",
    )
    parser.add_argument(
        "--round-digits",
        type=int,
        default=None,
        help="Decimal places for numeric output (default: ANALYTICS_ROUND_DIGITS)",
    )
    parser.add_argument(
        "--persist",
        action="store_true",
        help="With --csv: also write the normalized data into the database",
    )
    parser.add_argument(
        "--confirm",
        action="store_true",
        help="Required with --persist",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log at DEBUG level to the console",
    )
    return parser


def print_banner() -> None:
    """Print CLI banner."""
    print()
    print("=" * 60)
    print("  StockLens - Inventory Reports")
    print("=" * 60)
    print()


def print_catalog() -> None:
    """Print the available reports."""
    print("Available reports:")
    print("-" * 60)
    for definition in REPORTS.values():
        print(f"  {definition.name.value:<26} {definition.description}")
    print()


def print_summary(results: list[ReportResult], output_dir: Path) -> None:
    """Print one line per report run."""
    print(f"\nReports written to: {output_dir}")
    print("-" * 60)
    for result in results:
        if result.succeeded:
            print(
                f"  {result.name.value:<26} {len(result.rows):>8,} rows"
                f"  ({result.skipped_groups} skipped, {result.duration_ms:.0f} ms)"
            )
        else:
            print(f"  {result.name.value:<26} FAILED: {result.error_type}: {result.error_message}")
    print("-" * 60)
    print()


def write_report(result: ReportResult, output_dir: Path, fmt: str) -> Path:
    """Write one report's rows to ``<output_dir>/<report>.<fmt>``.

    Args:
        result: Completed report result.
        output_dir: Target directory (created if missing).
        fmt: "json" or "csv".

    Returns:
        Path of the written file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / f"{result.name.value}.{fmt}"
    records = result.records()

    if fmt == "csv":
        columns = REPORTS[result.name].columns
        pd.DataFrame(records, columns=columns).to_csv(path, index=False)
    else:
        with path.open("w", encoding="utf-8") as f:
            json.dump(records, f, indent=2)
    return path


async def persist_csv(csv_path: Path) -> FactSnapshot:
    """Normalize a staging CSV and write it into the database.

    Args:
        csv_path: Staging CSV file.

    Returns:
        The normalized snapshot.

    Raises:
        ValidationError: If the file cannot be read.
        DatabaseError: If the database cannot be reached or written.
    """
    result = normalize_staging(read_staging_csv(csv_path))
    print(f"Normalized {result.total_rows:,} rows ({result.rejected_count:,} rejected)")

    engine = get_engine()
    try:
        await create_schema(engine)
        session_maker = get_session_maker(engine)
        async with session_maker() as session:
            persisted = await persist_snapshot(session, result.snapshot)
            await session.commit()
    except (SQLAlchemyError, OSError) as e:
        raise DatabaseError(
            message="Failed to persist inventory data",
            details={"error": str(e)},
        ) from e
    finally:
        await engine.dispose()

    for table, count in persisted.inserted.items():
        print(f"  {table:<14} {count:>8,} new rows")
    return result.snapshot


async def load_from_db() -> FactSnapshot:
    """Read the star schema into a snapshot.

    Raises:
        DatabaseError: If the database cannot be reached or read.
    """
    engine = get_engine()
    try:
        session_maker = get_session_maker(engine)
        async with session_maker() as session:
            return await FactSnapshotLoader().load(session)
    except (SQLAlchemyError, OSError) as e:
        raise DatabaseError(
            message="Failed to load inventory data",
            details={"error": str(e)},
        ) from e
    finally:
        await engine.dispose()


async def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if args.verbose:
        configure_logging(log_level="DEBUG", log_format="console")
    else:
        configure_logging()
    print_banner()

    if args.list:
        print_catalog()
        return 0

    if args.csv is None and not args.from_db:
        parser.print_help()
        return 1

    if args.persist and (args.csv is None or not args.confirm):
        print("ERROR: --persist requires --csv and --confirm.")
        return 1

    if args.round_digits is not None and not 0 <= args.round_digits <= 6:
        print("ERROR: --round-digits must be between 0 and 6.")
        return 1

    settings = get_settings()
    print(f"Environment: {settings.app_env}")

    try:
        if args.csv is not None and args.persist:
            snapshot = await persist_csv(args.csv)
        elif args.csv is not None:
            result = normalize_staging(read_staging_csv(args.csv))
            print(f"Normalized {result.total_rows:,} rows ({result.rejected_count:,} rejected)")
            snapshot = result.snapshot
        else:
            snapshot = await load_from_db()
    except StockLensError as e:
        print(f"ERROR: {e.message}")
        logger.error("reports.snapshot_failed", error=e.message, code=e.code, details=e.details)
        return 1

    names = [ReportName(name) for name in args.report] if args.report else None
    service = AnalyticsService(round_digits=args.round_digits)
    results = service.run_reports(snapshot, names)

    for result in results:
        if result.succeeded:
            write_report(result, args.output_dir, args.format)

    print_summary(results, args.output_dir)
    return 0 if all(result.succeeded for result in results) else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
