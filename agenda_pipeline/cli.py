"""CLI for the agenda pipeline."""

import asyncio

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from agenda_pipeline.discovery.crawler import crawl_agenda
from agenda_pipeline.errors import ConfigNotFoundError, FetchError
from agenda_pipeline.extractors.pipeline import scrape_event_page
from agenda_pipeline.ingestion import load_agenda_configs, stream_agenda_scrape
from agenda_pipeline.ingestion.progress import ScrapeSummary
from agenda_pipeline.models import Owner
from agenda_pipeline.stores import LocalStore, open_store

# Load environment variables (override=True to beat shell env vars)
load_dotenv(override=True)

app = typer.Typer(
    name="agenda-pipeline",
    help="Agenda discovery and event extraction pipeline",
    add_completion=False,
)
console = Console()

EVENT_STYLES = {
    "start": "bold",
    "config_start": "cyan",
    "urls_discovered": "blue",
    "url_skipped": "dim",
    "request_created": "green",
    "request_enriched": "bold green",
    "error": "red",
    "complete": "bold",
}


def _owner(organizer: str | None, location: str | None) -> Owner:
    if not organizer and not location:
        console.print("[red]Error: --organizer or --location is required[/red]")
        raise typer.Exit(1)
    return Owner(organizer_id=organizer, location_id=location)


def _open(store: str | None):
    try:
        return open_store(store)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        console.print("[dim]Make sure to set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY in .env[/dim]")
        raise typer.Exit(1)


def print_summary(summary: ScrapeSummary) -> None:
    table = Table(title="Agenda scrape")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right")
    table.add_row("Configs", str(summary.configs))
    table.add_row("Discovered URLs", str(summary.discovered_urls))
    table.add_row("Skipped (already requested)", str(summary.skipped_urls))
    table.add_row("Created requests", f"[green]{summary.created_requests}[/green]")
    table.add_row("Enriched requests", f"[green]{summary.enriched_requests}[/green]")
    table.add_row("Errors", f"[red]{summary.errors}[/red]" if summary.errors else "0")
    console.print(table)

    for detail in summary.error_details[:20]:
        console.print(f"  [red]{detail}[/red]")


@app.command()
def scrape_agenda(
    organizer: str = typer.Option(None, "--organizer", "-o", help="Organizer id"),
    location: str = typer.Option(None, "--location", "-l", help="Venue (location) id"),
    max_events: int = typer.Option(None, "--max-events", "-m", help="Max URLs per config (default: SCRAPE_EVENTS_MAX_PER_CONFIG)"),
    stream: bool = typer.Option(False, "--stream", "-s", help="Print progress events as they happen"),
    store: str = typer.Option(None, "--store", help="'supabase' or a JSON store path (default: local store)"),
):
    """Discover event pages from an owner's agendas and create enriched requests."""
    owner = _owner(organizer, location)
    backend = _open(store)

    async def run() -> ScrapeSummary:
        configs = await load_agenda_configs(owner, backend)
        summary = ScrapeSummary()
        async for event in stream_agenda_scrape(configs, backend, backend, max_events=max_events):
            summary.apply(event)
            if stream:
                style = EVENT_STYLES.get(event.type, "white")
                fields = event.model_dump(exclude={"type"}, exclude_none=True)
                console.print(f"[{style}]{event.type}[/{style}] {fields}")
        return summary

    try:
        summary = asyncio.run(run())
    except ConfigNotFoundError as e:
        console.print(f"[yellow]{e}[/yellow]")
        raise typer.Exit(1)

    print_summary(summary)
    if not summary.success:
        raise typer.Exit(1)


@app.command()
def discover(
    organizer: str = typer.Option(None, "--organizer", "-o", help="Organizer id"),
    location: str = typer.Option(None, "--location", "-l", help="Venue (location) id"),
    store: str = typer.Option(None, "--store", help="'supabase' or a JSON store path (default: local store)"),
):
    """Dry run: list event URLs found on an owner's agendas without creating requests."""
    owner = _owner(organizer, location)
    backend = _open(store)

    async def run():
        configs = await load_agenda_configs(owner, backend)
        found = []
        for config in configs:
            console.print(f"[cyan]Crawling {config.agenda_url}[/cyan]")
            try:
                result = await crawl_agenda(config)
            except FetchError as e:
                console.print(f"[red]{e}[/red]")
                continue
            found.append((config, result))
        return found

    try:
        found = asyncio.run(run())
    except ConfigNotFoundError as e:
        console.print(f"[yellow]{e}[/yellow]")
        raise typer.Exit(1)

    for config, result in found:
        table = Table(title=f"{config.agenda_url} ({len(result.urls)} URLs, {len(result.pages)} pages)")
        table.add_column("#", style="dim", justify="right")
        table.add_column("Event URL", style="cyan")
        for i, url in enumerate(result.urls, 1):
            table.add_row(str(i), url)
        console.print(table)


@app.command()
def scrape_url(
    url: str = typer.Argument(..., help="Event page URL"),
    organizer: str = typer.Option(None, "--organizer", "-o", help="Apply this organizer's CSS rules and AI fields"),
    location: str = typer.Option(None, "--location", "-l", help="Apply this venue's CSS rules and AI fields"),
    store: str = typer.Option(None, "--store", help="'supabase' or a JSON store path (default: local store)"),
):
    """Extract a single event page and print the result."""
    owner = Owner(organizer_id=organizer, location_id=location) if (organizer or location) else None
    backend = _open(store) if owner else None

    console.print(f"[cyan]Extracting from: {url}[/cyan]")
    result = asyncio.run(scrape_event_page(url, owner=owner, config_store=backend))

    if not result.ok:
        console.print(f"[red]Extraction failed ({result.status}): {result.error}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Extracted event (AI: {'yes' if result.ai_processed else 'no'})")
    table.add_column("Field", style="cyan")
    table.add_column("Value", max_width=80)
    for name, value in result.data.filled().items():
        table.add_row(name, ", ".join(value) if isinstance(value, list) else str(value))
    console.print(table)


@app.command()
def request_stats(
    store: str = typer.Option(None, "--store", help="JSON store path (default: AGENDA_STORE_PATH)"),
):
    """Show local store statistics."""
    backend = _open(store)
    if not isinstance(backend, LocalStore):
        console.print("[yellow]Statistics are only available for the local store[/yellow]")
        raise typer.Exit(1)

    stats = backend.stats()

    console.print(f"\n[bold]Request Store Statistics[/bold]")
    console.print(f"  Total: {stats['total']}")
    console.print(f"  Enriched: [green]{stats['enriched']}[/green]")
    console.print(f"  Not enriched: [yellow]{stats['unenriched']}[/yellow]")
    console.print(f"  Agenda configs: {stats['agenda_configs']}")
    console.print(f"  CSS rules: {stats['field_rules']}")

    if stats["by_status"]:
        console.print(f"\n[bold]By Status:[/bold]")
        for status, count in stats["by_status"].items():
            console.print(f"  {status}: {count}")

    if stats["by_owner"]:
        console.print(f"\n[bold]By Owner:[/bold]")
        for owner, count in sorted(stats["by_owner"].items(), key=lambda x: -x[1]):
            console.print(f"  {owner}: {count}")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("agenda_pipeline.api.app:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
