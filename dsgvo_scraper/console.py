"""Rich console output and logging setup for the DSGVO portal scraper."""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table

console = Console()


@dataclass
class ScrapeStats:
    """Statistics for one scraper run."""

    total: int = 0
    processed: int = 0
    stored: int = 0
    not_found: int = 0
    skipped: int = 0
    missing_ids: list[int] = field(default_factory=list)
    start_time: datetime = field(default_factory=datetime.now)

    @property
    def elapsed_seconds(self) -> float:
        return (datetime.now() - self.start_time).total_seconds()

    @property
    def rate(self) -> float:
        if self.elapsed_seconds > 0:
            return self.processed / self.elapsed_seconds
        return 0.0


def setup_logging(verbose: bool = False) -> None:
    """Route log records through rich. Call once at startup."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    if verbose:
        logging.getLogger("dsgvo_scraper").setLevel(logging.DEBUG)
    else:
        logging.getLogger("httpx").setLevel(logging.WARNING)


def create_progress() -> Progress:
    """Create a Rich progress bar for detail fetching."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        TimeRemainingColumn(),
        console=console,
        expand=True,
    )


def print_header() -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]DSGVO Portal Incident Scraper[/bold cyan]\n"
            "[dim]Mirroring the Sicherheitsvorfall-Datenbank into PostgreSQL[/dim]",
            border_style="cyan",
        )
    )
    console.print()


def print_config(list_url: str, database_url: str, delay_ms: int, dry_run: bool = False) -> None:
    """Print the configuration panel."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="dim")
    table.add_column("Value")

    table.add_row("Incident List", f"[link={list_url}]{list_url}[/link]")
    table.add_row("Database", database_url)
    table.add_row("Request Delay", f"{delay_ms} ms")
    if dry_run:
        table.add_row("Dry Run", "[yellow]No details will be fetched[/yellow]")

    console.print(Panel(table, title="[bold]Configuration[/bold]", border_style="blue"))
    console.print()


def print_missing_ids(ids: list[int]) -> None:
    """Print the incident ids a run would fetch."""
    if not ids:
        console.print("[green]No new incidents.[/green]")
        return
    console.print(f"[bold]{len(ids)} incidents not stored yet:[/bold]")
    console.print(", ".join(str(i) for i in ids), soft_wrap=True)


def print_summary(stats: ScrapeStats) -> None:
    """Print the final summary table."""
    console.print()

    table = Table(title="[bold]Scraping Summary[/bold]", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right")

    table.add_row("Listed on portal", str(stats.total))
    table.add_row("Already stored", str(stats.skipped))
    table.add_row("New", str(len(stats.missing_ids)))
    table.add_row("Stored", f"[green]{stats.stored}[/green]")
    table.add_row(
        "Not found",
        f"[yellow]{stats.not_found}[/yellow]" if stats.not_found else "0",
    )

    console.print(table)
    console.print()
    console.print(
        f"[dim]Time elapsed: {stats.elapsed_seconds:.1f}s | Rate: {stats.rate:.2f} incidents/sec[/dim]"
    )
    console.print()


def print_error(message: str, exception: Exception | None = None) -> None:
    """Print an error message."""
    console.print(f"[red]Error:[/red] {message}")
    if exception:
        console.print(f"[dim]{type(exception).__name__}: {exception}[/dim]")


def print_warning(message: str) -> None:
    console.print(f"[yellow]Warning:[/yellow] {message}")


def print_success(message: str) -> None:
    console.print(f"[green]Success:[/green] {message}")
