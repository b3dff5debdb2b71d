#!/usr/bin/env python3
"""DSGVO Portal Incident Scraper CLI.

Usage:
    uv run scrape.py                         # Fetch all incidents not stored yet
    uv run scrape.py --delay 1000            # Wait 1s between detail requests
    uv run scrape.py -u postgres://...       # Use another database
    uv run scrape.py --dry-run               # List new incident ids, fetch nothing
    uv run scrape.py --init-schema           # Create the tables and exit
    uv run scrape.py --verbose               # Debug logging
"""

import argparse
import asyncio
import os
import sys

from dsgvo_scraper import console as con
from dsgvo_scraper.errors import ScraperError
from dsgvo_scraper.scraper import DEFAULT_DELAY_MS, MIN_DELAY_MS, run_scraper
from dsgvo_scraper.store import DEFAULT_DATABASE_URL, IncidentStore, connect


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dsgvo-scraper",
        description="Mirror the dsgvo-portal.de incident database into PostgreSQL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        "--init-schema",
        action="store_true",
        help="Create the incidents and incident_history tables, then exit",
    )
    mode_group.add_argument(
        "--dry-run",
        action="store_true",
        help="Fetch and archive the incident list, print new ids, fetch no details",
    )

    parser.add_argument(
        "--delay",
        "-d",
        type=int,
        default=DEFAULT_DELAY_MS,
        metavar="MS",
        help=(
            f"Delay between detail requests in milliseconds, so as not to overwhelm "
            f"the server (default: {DEFAULT_DELAY_MS}, minimum: {MIN_DELAY_MS})"
        ),
    )
    parser.add_argument(
        "--database-url",
        "-u",
        default=os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL),
        metavar="URL",
        help=f"PostgreSQL URL, tables must exist (default: $DATABASE_URL or {DEFAULT_DATABASE_URL})",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show debug logging for every request",
    )
    return parser


def init_schema(database_url: str) -> int:
    store = IncidentStore(connect(database_url))
    try:
        store.apply_schema()
    finally:
        store.close()
    con.print_success("Tables incidents and incident_history are in place")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    con.setup_logging(args.verbose)

    try:
        if args.init_schema:
            return init_schema(args.database_url)

        asyncio.run(
            run_scraper(
                database_url=args.database_url,
                delay_ms=args.delay,
                dry_run=args.dry_run,
            )
        )
        return 0

    except KeyboardInterrupt:
        con.print_warning("\nInterrupted by user. Stored incidents are kept; re-run to continue.")
        return 130
    except ScraperError as e:
        con.print_error(str(e), e.__cause__)
        return 1


if __name__ == "__main__":
    sys.exit(main())
