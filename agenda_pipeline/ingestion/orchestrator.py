"""Agenda ingestion orchestrator.

For each enabled agenda config of an owner:
1. Discover event URLs from the agenda (bounded per config)
2. Skip URLs that already have an ingestion request
3. Create a pending request for each new URL
4. Extract the page and merge the result into the stored request

Configs and URLs are processed one at a time, so progress events arrive in
a deterministic order and load on organizer sites and the LLM stays bounded.
"""

import asyncio
from typing import AsyncIterator, Optional

from rich.console import Console

from agenda_pipeline.discovery.crawler import discover_event_urls
from agenda_pipeline.enrichers.llm import CompletionFn
from agenda_pipeline.errors import ConfigNotFoundError
from agenda_pipeline.extractors.fetch import Fetch, fetch_html
from agenda_pipeline.extractors.merge import merge_event_data
from agenda_pipeline.extractors.pipeline import scrape_event_page
from agenda_pipeline.ingestion.progress import (
    CompleteEvent,
    ConfigStartEvent,
    ErrorEvent,
    ProgressEvent,
    RequestCreatedEvent,
    RequestEnrichedEvent,
    ScrapeSummary,
    StartEvent,
    UrlsDiscoveredEvent,
    UrlSkippedEvent,
)
from agenda_pipeline.models import AgendaScrapingConfig, EventData, IngestionRequest, Owner
from agenda_pipeline.settings import get_max_events_per_config
from agenda_pipeline.stores.base import ConfigStore, RequestStore

console = Console()


async def load_agenda_configs(owner: Owner, config_store: ConfigStore) -> list[AgendaScrapingConfig]:
    """Enabled agenda configs for an owner.

    Raises:
        ConfigNotFoundError: if the owner has none.
    """
    configs = await asyncio.to_thread(config_store.get_agenda_configs, owner)
    if not configs:
        raise ConfigNotFoundError(f"No enabled agenda configuration found for {owner.label}")
    return configs


async def find_existing_request(url: str, request_store: RequestStore) -> Optional[IngestionRequest]:
    """Existing request for a URL: by source_url first, then legacy event_data URLs."""
    existing = await asyncio.to_thread(request_store.find_by_source_url, url)
    if existing is None:
        existing = await asyncio.to_thread(request_store.find_by_event_url, url)
    return existing


class AgendaIngestion:
    """One ingestion run over a list of agenda configs."""

    def __init__(
        self,
        config_store: ConfigStore,
        request_store: RequestStore,
        max_events: Optional[int] = None,
        fetch: Fetch = fetch_html,
        complete: Optional[CompletionFn] = None,
    ):
        self.config_store = config_store
        self.request_store = request_store
        self.max_events = max_events if max_events is not None else get_max_events_per_config()
        self.fetch = fetch
        self.complete = complete

        self.discovered = 0
        self.created = 0
        self.enriched = 0
        self.errors = 0

    async def run(self, configs: list[AgendaScrapingConfig]) -> AsyncIterator[ProgressEvent]:
        yield StartEvent(configs=len(configs))

        for config in configs:
            async for event in self._process_config(config):
                yield event

        console.print(
            f"[green]Agenda scrape finished:[/green] configs={len(configs)} "
            f"discovered={self.discovered} created={self.created} "
            f"enriched={self.enriched} errors={self.errors}"
        )
        yield CompleteEvent(
            discovered=self.discovered,
            created=self.created,
            enriched=self.enriched,
            errors=self.errors,
        )

    async def _process_config(self, config: AgendaScrapingConfig) -> AsyncIterator[ProgressEvent]:
        owner = config.owner
        yield ConfigStartEvent(label=owner.label, url=config.agenda_url)

        try:
            urls = await discover_event_urls(config, fetch=self.fetch)
        except Exception as e:
            self.errors += 1
            console.print(f"[red]Discovery failed for {owner.label}: {e}[/red]")
            yield ErrorEvent(error=f"{owner.label}: {e}")
            return

        limited = urls[:self.max_events] if self.max_events > 0 else urls
        self.discovered += len(limited)
        yield UrlsDiscoveredEvent(count=len(limited), total=self.discovered)

        for url in limited:
            try:
                async for event in self._process_url(config, url):
                    yield event
            except Exception as e:
                self.errors += 1
                console.print(f"[red]Error ingesting {url}: {e}[/red]")
                yield ErrorEvent(error=f"{url}: {e}", url=url)

    async def _process_url(self, config: AgendaScrapingConfig, url: str) -> AsyncIterator[ProgressEvent]:
        owner = config.owner

        if await find_existing_request(url, self.request_store):
            console.print(f"[dim]Already requested: {url}[/dim]")
            yield UrlSkippedEvent(url=url)
            return

        location_name = None
        if config.location_id:
            location_name = await asyncio.to_thread(self.config_store.get_location_name, config.location_id)

        initial = EventData(
            scraping_url=url,
            organizer_id=config.organizer_id,
            location_id=config.location_id,
        )
        request = await asyncio.to_thread(
            self.request_store.create_request, url, initial, config.location_id, location_name
        )
        self.created += 1
        yield RequestCreatedEvent(url=url, count=self.created, title=initial.title or "New request")

        result = await scrape_event_page(
            url,
            owner=owner,
            config_store=self.config_store,
            fetch=self.fetch,
            complete=self.complete,
        )
        if not result.ok:
            # The request stays pending and unenriched
            self.errors += 1
            yield ErrorEvent(error=f"{url}: {result.error}", url=url)
            return

        # Re-read so edits made since creation are not clobbered
        current = await asyncio.to_thread(self.request_store.get_event_data, request.id)
        merged = merge_event_data(current, result.data, owner, url)
        await asyncio.to_thread(self.request_store.update_event_data, request.id, merged)

        self.enriched += 1
        yield RequestEnrichedEvent(url=url, title=merged.title or "Enriched event")


async def stream_agenda_scrape(
    configs: list[AgendaScrapingConfig],
    config_store: ConfigStore,
    request_store: RequestStore,
    max_events: Optional[int] = None,
    fetch: Fetch = fetch_html,
    complete: Optional[CompletionFn] = None,
) -> AsyncIterator[ProgressEvent]:
    """Run ingestion over already-loaded configs, yielding progress events."""
    ingestion = AgendaIngestion(config_store, request_store, max_events=max_events, fetch=fetch, complete=complete)
    async for event in ingestion.run(configs):
        yield event


async def scrape_agenda(
    owner: Owner,
    config_store: ConfigStore,
    request_store: RequestStore,
    max_events: Optional[int] = None,
    fetch: Fetch = fetch_html,
    complete: Optional[CompletionFn] = None,
) -> ScrapeSummary:
    """Run a full agenda scrape for an owner and return the summary.

    Raises:
        ConfigNotFoundError: before any work if the owner has no enabled config.
    """
    configs = await load_agenda_configs(owner, config_store)
    summary = ScrapeSummary()
    async for event in stream_agenda_scrape(
        configs, config_store, request_store, max_events=max_events, fetch=fetch, complete=complete
    ):
        summary.apply(event)
    return summary
