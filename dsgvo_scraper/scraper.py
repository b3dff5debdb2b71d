"""Incremental scraper for the dsgvo-portal.de incident database.

One run lists every incident on the portal, archives the raw list payload,
works out which incidents are not stored yet and fetches their details one at
a time with a fixed pause between requests. Already stored incidents are never
fetched again, so re-running after a failure picks up where the last run
stopped.
"""

import asyncio
import logging
from typing import Awaitable, Callable

from . import console as con
from .client import LIST_URL, PortalClient, create_http_client
from .console import ScrapeStats
from .errors import NotFoundError, ParseError, SchemaMissingError
from .models import IncidentRecord, IncidentSummary
from .store import DEFAULT_DATABASE_URL, IncidentStore, connect

module_logger = logging.getLogger(__name__)

# The portal disables its API when hammered; never go below this
MIN_DELAY_MS = 500
DEFAULT_DELAY_MS = 500

Sleep = Callable[[float], Awaitable[None]]


def effective_delay_ms(delay_ms: int) -> int:
    """Clamp a requested delay to the enforced minimum."""
    return max(delay_ms, MIN_DELAY_MS)


def missing_incidents(
    summaries: list[IncidentSummary], stored_ids: set[int]
) -> list[IncidentSummary]:
    """Summaries for incidents not yet stored, in ascending id order.

    If the list repeats an id, the first entry wins.
    """
    by_id: dict[int, IncidentSummary] = {}
    for summary in summaries:
        by_id.setdefault(summary.incident_id, summary)
    return [by_id[i] for i in sorted(by_id.keys() - stored_ids)]


async def list_and_archive(
    client: PortalClient, store: IncidentStore, logger: logging.Logger
) -> list[IncidentSummary]:
    """Fetch the incident list and archive the raw payload before anything else."""
    try:
        summaries, payload = await client.fetch_incident_list()
    except ParseError as e:
        if e.payload is not None:
            logger.warning("Incident list has an unexpected shape, archiving raw payload anyway")
            store.archive_raw_list(e.payload)
        raise
    store.archive_raw_list(payload)
    return summaries


async def reconcile(
    client: PortalClient,
    store: IncidentStore,
    delay_ms: int = DEFAULT_DELAY_MS,
    logger: logging.Logger = module_logger,
    sleep: Sleep = asyncio.sleep,
    dry_run: bool = False,
    on_start: Callable[[int], None] | None = None,
    on_progress: Callable[[int], None] | None = None,
) -> ScrapeStats:
    """Bring the database up to date with the portal.

    Args:
        client: Portal client used for list and detail queries
        store: Database wrapper
        delay_ms: Pause between detail requests, raised to MIN_DELAY_MS if lower
        logger: Receives all run events
        sleep: Coroutine used for the pause (seconds)
        dry_run: Stop after computing which incidents are missing
        on_start: Called with the number of incidents about to be fetched
        on_progress: Called after each incident is handled

    Returns:
        ScrapeStats for the run

    Raises:
        SchemaMissingError: Required tables are missing
        TransportError, ParseError: Portal request failed; the run is aborted
        StorageError: Database failure, including ConflictError
    """
    stats = ScrapeStats()
    delay = effective_delay_ms(delay_ms)
    if delay != delay_ms:
        logger.warning("Delay of %dms is below the minimum, using %dms", delay_ms, delay)

    logger.debug("Verifying tables in database")
    if not store.tables_exist():
        raise SchemaMissingError("Missing required database tables")

    summaries = await list_and_archive(client, store, logger)
    stats.total = len(summaries)

    stored_ids = store.get_persisted_ids()
    pending = missing_incidents(summaries, stored_ids)
    stats.skipped = stats.total - len(pending)
    stats.missing_ids = [s.incident_id for s in pending]
    logger.info("Found %d new incidents", len(pending))

    if dry_run or not pending:
        return stats

    if on_start:
        on_start(len(pending))

    for index, summary in enumerate(pending):
        incident_id = summary.incident_id
        if index > 0:
            await sleep(delay / 1000)

        logger.debug("Processing incident %d", incident_id)
        try:
            detail = await client.fetch_incident_detail(incident_id)
        except NotFoundError:
            logger.warning("Incident %d not found on portal, skipping", incident_id)
            stats.not_found += 1
        else:
            store.insert_incident(IncidentRecord.assemble(summary, detail))
            stats.stored += 1

        stats.processed += 1
        if on_progress:
            on_progress(1)

    return stats


async def run_scraper(
    database_url: str = DEFAULT_DATABASE_URL,
    delay_ms: int = DEFAULT_DELAY_MS,
    dry_run: bool = False,
) -> ScrapeStats:
    """Run one scrape against the live portal and database.

    Args:
        database_url: PostgreSQL connection URL
        delay_ms: Pause between detail requests in milliseconds
        dry_run: Only report which incidents would be fetched

    Returns:
        ScrapeStats with final statistics
    """
    con.print_header()
    con.print_config(
        list_url=LIST_URL,
        database_url=database_url,
        delay_ms=effective_delay_ms(delay_ms),
        dry_run=dry_run,
    )

    store = IncidentStore(connect(database_url))
    try:
        async with create_http_client() as http:
            client = PortalClient(http)
            progress = con.create_progress()
            with progress:
                task = progress.add_task("[cyan]Fetching incidents...", total=None)

                def start(total: int) -> None:
                    progress.update(task, total=total)

                def advance(n: int) -> None:
                    progress.update(task, advance=n)

                stats = await reconcile(
                    client,
                    store,
                    delay_ms=delay_ms,
                    dry_run=dry_run,
                    on_start=start,
                    on_progress=advance,
                )
    finally:
        store.close()

    if dry_run:
        con.print_missing_ids(stats.missing_ids)
    con.print_summary(stats)
    return stats
