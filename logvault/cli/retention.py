# logvault/cli/retention.py
"""
CLI commands for log archival and retention.

Usage:
    python -m logvault.cli.retention init-db
    python -m logvault.cli.retention archive                      # yesterday (UTC)
    python -m logvault.cli.retention archive --date 2025-01-15
    python -m logvault.cli.retention retrieve --type financial --date 2025-01-15
    python -m logvault.cli.retention search --type access --start 2025-01-01 --end 2025-01-31
    python -m logvault.cli.retention summary
    python -m logvault.cli.retention expiry --window-days 30
"""

import argparse
import asyncio
import json
import sys
from datetime import UTC, date, datetime, timedelta

from dotenv import load_dotenv

from logvault.constants import LogType
from logvault.errors import ConfigurationError, LogVaultError, NotFoundError

load_dotenv()


def get_engine(create_tables: bool = False):
    """Build the engine from settings, exiting on configuration errors."""
    from logvault.config import load_settings
    from logvault.engine import RetentionEngine
    from logvault.logging_config import configure_logging

    try:
        settings = load_settings()
        configure_logging(json_format=settings.LOG_FORMAT == "json", level=settings.LOG_LEVEL)
        return RetentionEngine.from_settings(settings, create_tables=create_tables)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)


def parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def yesterday_utc() -> date:
    return datetime.now(UTC).date() - timedelta(days=1)


def cmd_init_db(args):
    """Create hot-store tables."""
    get_engine(create_tables=True)
    print("Hot store tables ready")


def cmd_archive(args):
    """Archive one day of every log type."""
    engine = get_engine()
    day = args.date or yesterday_utc()

    print(f"\nArchiving logs for {day.isoformat()}...\n")
    result = asyncio.run(engine.archive_day(day))

    for item in result.archived:
        line = f"  {item.type.value}: {item.count} records, {item.size_bytes} bytes [{item.status.value}]"
        if item.unarchived:
            line += f" ({item.unarchived} left in hot store)"
        print(line)

    if result.failures:
        print("\nErrors:")
        for failure in result.failures:
            print(f"  - {failure.type.value}: {failure.error}")

    if not result.success:
        sys.exit(1)


def cmd_retrieve(args):
    """Print one archived day as JSON lines."""
    engine = get_engine()
    log_type = LogType(args.type)

    try:
        archive = asyncio.run(engine.fetch_day(log_type, args.date))
    except NotFoundError:
        print(f"No archive for {log_type.value} on {args.date.isoformat()}", file=sys.stderr)
        sys.exit(3)
    except LogVaultError as e:
        print(f"Retrieval failed: {e}", file=sys.stderr)
        sys.exit(1)

    for record in archive.records:
        print(json.dumps(record, sort_keys=True))


def cmd_search(args):
    """Print archived records for a date range as JSON lines."""
    engine = get_engine()
    log_type = LogType(args.type)

    try:
        records = asyncio.run(engine.search_range(log_type, args.start, args.end))
    except (LogVaultError, ValueError) as e:
        print(f"Search failed: {e}", file=sys.stderr)
        sys.exit(1)

    for record in records:
        print(json.dumps(record, sort_keys=True))
    print(f"{len(records)} records", file=sys.stderr)


def cmd_summary(args):
    """Show cold-store retention summary."""
    engine = get_engine()
    summary = asyncio.run(engine.summary(args.window_days))

    window = args.window_days or engine.settings.EXPIRY_WARNING_DAYS
    print("\n=== Retention Summary ===\n")
    print(f"Total archives: {summary.total_files}")
    print(f"Total size: {summary.total_size_bytes / 1024 / 1024:.2f} MB")
    print(f"Oldest archive: {summary.oldest_date.isoformat() if summary.oldest_date else 'N/A'}")
    print(f"Newest archive: {summary.newest_date.isoformat() if summary.newest_date else 'N/A'}")
    print(f"Expiring in {window} days: {summary.expiring_in_window}")
    print()


def cmd_expiry(args):
    """Report archives approaching their retention horizon."""
    engine = get_engine()
    count = asyncio.run(engine.scan_approaching_expiry(args.window_days))
    print(f"{count} archives approaching retention expiry")


def main():
    parser = argparse.ArgumentParser(
        description="Log Archival & Retention CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Daily scheduler run (archives yesterday)
  python -m logvault.cli.retention archive

  # Re-run a specific day
  python -m logvault.cli.retention archive --date 2025-01-15

  # Audit export for January
  python -m logvault.cli.retention search --type financial --start 2025-01-01 --end 2025-01-31

  # Weekly expiry check
  python -m logvault.cli.retention expiry --window-days 30
        """,
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    log_types = [t.value for t in LogType]

    # init-db command
    init_parser = subparsers.add_parser("init-db", help="Create hot-store tables")
    init_parser.set_defaults(func=cmd_init_db)

    # archive command
    archive_parser = subparsers.add_parser("archive", help="Archive one day of logs")
    archive_parser.add_argument("--date", type=parse_date, default=None, help="Day to archive (default: yesterday UTC)")
    archive_parser.set_defaults(func=cmd_archive)

    # retrieve command
    retrieve_parser = subparsers.add_parser("retrieve", help="Print one archived day")
    retrieve_parser.add_argument("--type", required=True, choices=log_types, help="Log type")
    retrieve_parser.add_argument("--date", required=True, type=parse_date, help="Archive day")
    retrieve_parser.set_defaults(func=cmd_retrieve)

    # search command
    search_parser = subparsers.add_parser("search", help="Print archived records for a date range")
    search_parser.add_argument("--type", required=True, choices=log_types, help="Log type")
    search_parser.add_argument("--start", required=True, type=parse_date, help="First day (inclusive)")
    search_parser.add_argument("--end", required=True, type=parse_date, help="Last day (inclusive)")
    search_parser.set_defaults(func=cmd_search)

    # summary command
    summary_parser = subparsers.add_parser("summary", help="Show retention summary")
    summary_parser.add_argument("--window-days", type=int, default=None, help="Expiry window (default: EXPIRY_WARNING_DAYS)")
    summary_parser.set_defaults(func=cmd_summary)

    # expiry command
    expiry_parser = subparsers.add_parser("expiry", help="Report archives approaching expiry")
    expiry_parser.add_argument("--window-days", type=int, default=None, help="Expiry window (default: EXPIRY_WARNING_DAYS)")
    expiry_parser.set_defaults(func=cmd_expiry)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
