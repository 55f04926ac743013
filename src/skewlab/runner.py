#!/usr/bin/env python3
"""
CLI Runner for the SkewLab dataset generator

Builds the compliance filings lab database, exports the dataset to files,
injects drift batches and prints distribution reports.
"""

import argparse
import sys
from datetime import date

from dotenv import load_dotenv
from loguru import logger

# Load environment variables from .env file FIRST
load_dotenv()

from .data.config.settings import GeneratorConfig, load_settings
from .data.generators import SkewedDatasetGenerator
from .data.loaders import SkewedDatasetLoader
from .data.models import FilingStatus
from .exceptions import SkewLabError


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="skewlab",
        description="Generate the skewed compliance filings dataset for performance labs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Build the lab database with default scale (20k entities, 350k filings)
  skewlab load --drop

  # Smaller laptop-sized build into SQLite
  skewlab --env laptop load --drop

  # Export CSV files instead of loading a database
  skewlab export --output data/perfdemo --entities 2000 --filings 35000

  # Simulate a distribution shift without refreshing statistics
  skewlab drift --count 50000 --status Overdue

  # Report row counts and status / client skew
  skewlab stats
"""
    )

    parser.add_argument("--config", "-c", help="Path to skewlab.yaml (default: config/skewlab.yaml)")
    parser.add_argument("--env", "-e", default="development", help="Environment overlay (default: development)")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    scale = argparse.ArgumentParser(add_help=False)
    scale.add_argument("--entities", type=int, help="Override entity_count")
    scale.add_argument("--jurisdictions", type=int, help="Override jurisdiction_count")
    scale.add_argument("--filings", type=int, help="Override filing_count")
    scale.add_argument("--invoices", type=int, help="Override invoice_count")
    scale.add_argument("--payments", type=int, help="Override payment_count")
    scale.add_argument("--start-date", type=date.fromisoformat, help="Window start (YYYY-MM-DD)")
    scale.add_argument("--end-date", type=date.fromisoformat, help="Window end (YYYY-MM-DD)")
    scale.add_argument("--seed", type=int, help="Random seed")

    load = subparsers.add_parser("load", parents=[scale], help="Create schema and load the dataset")
    load.add_argument("--drop", action="store_true", help="Drop existing lab tables first")
    load.add_argument("--no-indexes", action="store_true", help="Skip secondary index creation")
    load.add_argument("--no-stats", action="store_true", help="Skip the statistics refresh")

    export = subparsers.add_parser("export", parents=[scale], help="Write the dataset to CSV files")
    export.add_argument("--output", "-o", default="data/perfdemo", help="Output directory")

    drift = subparsers.add_parser("drift", parents=[scale], help="Insert a skew-changing filing batch")
    drift.add_argument("--count", type=int, default=50000, help="Rows to insert (default: 50000)")
    drift.add_argument(
        "--status",
        choices=[s.value for s in FilingStatus],
        default=FilingStatus.OVERDUE.value,
        help="Status for every drift row (default: Overdue)"
    )
    drift.add_argument("--entity-id", type=int, default=1, help="Entity every row points at")

    subparsers.add_parser("stats", help="Print row counts and skew distributions")

    return parser.parse_args(argv)


def build_config(args, settings) -> GeneratorConfig:
    """Apply command-line overrides to the configured generator settings."""
    config = GeneratorConfig.from_settings(settings)
    return config.with_overrides(
        entity_count=getattr(args, "entities", None),
        jurisdiction_count=getattr(args, "jurisdictions", None),
        filing_count=getattr(args, "filings", None),
        invoice_count=getattr(args, "invoices", None),
        payment_count=getattr(args, "payments", None),
        start_date=getattr(args, "start_date", None),
        end_date=getattr(args, "end_date", None),
        seed=getattr(args, "seed", None),
    )


def run_load(args, settings):
    config = build_config(args, settings)
    loader = SkewedDatasetLoader(settings=settings, environment=args.env)
    try:
        if args.drop:
            loader.drop_schema()
        loader.create_schema()
        counts = loader.load_dataset(SkewedDatasetGenerator(config))
        if not args.no_indexes:
            loader.build_indexes()
        if not args.no_stats:
            loader.update_statistics()
    finally:
        loader.close()

    print("\nLab database ready:")
    for table, count in counts.items():
        print(f"  {table:<20} {count:>10,}")


def run_export(args, settings):
    config = build_config(args, settings)
    generator = SkewedDatasetGenerator(config)
    dataset = generator.generate_full_dataset()
    output_path = generator.save_dataset(dataset, args.output)

    stats = dataset["statistics"]
    print(f"\nDataset written to {output_path}/")
    for table, count in stats["row_counts"].items():
        print(f"  {table:<20} {count:>10,}")
    print(f"  Mega-client share:   {stats['clients']['mega_share']:.2%}")


def run_drift(args, settings):
    config = build_config(args, settings)
    rows = SkewedDatasetGenerator(config).generate_drift_batch(
        count=args.count, status=FilingStatus(args.status), entity_id=args.entity_id
    )
    loader = SkewedDatasetLoader(settings=settings, environment=args.env)
    try:
        inserted = loader.insert_drift_batch(rows)
    finally:
        loader.close()
    print(f"\nInserted {inserted:,} '{args.status}' filings for entity {args.entity_id}.")
    print("Statistics were NOT refreshed; re-run the lab queries to see stale estimates.")


def run_stats(args, settings):
    loader = SkewedDatasetLoader(settings=settings, environment=args.env)
    try:
        counts = loader.get_statistics()
        statuses = loader.get_distribution("compliance_filings", "filing_status")
        clients = loader.get_distribution("entities", "client_name")
    finally:
        loader.close()

    print("\nRow counts:")
    for table, count in counts.items():
        print(f"  {table:<20} {count:>10,}")

    total_filings = counts.get("compliance_filings") or 0
    if total_filings:
        print("\nFiling status mix:")
        for status, count in statuses.items():
            print(f"  {status:<12} {count:>10,}  {count / total_filings:6.2%}")

    total_entities = counts.get("entities") or 0
    if total_entities:
        print("\nTop clients:")
        for client, count in list(clients.items())[:5]:
            print(f"  {client:<16} {count:>8,}  {count / total_entities:6.2%}")


COMMANDS = {
    "load": run_load,
    "export": run_export,
    "drift": run_drift,
    "stats": run_stats,
}


def main(argv=None):
    args = parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level=args.log_level)

    try:
        settings = load_settings(args.config, args.env)
        COMMANDS[args.command](args, settings)
    except SkewLabError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
