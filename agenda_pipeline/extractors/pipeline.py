"""Single event page extraction.

Combines both extraction strategies:
1. Operator CSS selector rules (authoritative for the fields they fill)
2. LLM structured extraction for the remaining enabled fields

and merges them with page metadata as the last fallback.
"""

import asyncio
from typing import Optional
from urllib.parse import urlparse

from rich.console import Console

from agenda_pipeline.enrichers.llm import CompletionFn, extract_with_ai, get_completion_fn
from agenda_pipeline.enrichers.schema import DEFAULT_AI_FIELDS
from agenda_pipeline.errors import FetchError, LLMError
from agenda_pipeline.extractors.fetch import Fetch, fetch_html
from agenda_pipeline.extractors.merge import merge_fields
from agenda_pipeline.extractors.page import load_page
from agenda_pipeline.extractors.selectors import apply_field_rules
from agenda_pipeline.models import FieldExtractionRule, Owner, ScrapedEventData
from agenda_pipeline.stores.base import ConfigStore

console = Console()


class ScrapeResult:
    """Outcome of extracting one event page."""

    def __init__(
        self,
        ok: bool,
        url: str,
        data: Optional[ScrapedEventData] = None,
        error: Optional[str] = None,
        status: Optional[int] = None,
        ai_processed: bool = False,
    ):
        self.ok = ok
        self.url = url
        self.data = data
        self.error = error
        self.status = status
        self.ai_processed = ai_processed

    @property
    def metadata(self) -> dict:
        return {"scraped": self.ok, "ai_processed": self.ai_processed, "url": self.url}


def is_valid_url(url: str) -> bool:
    parsed = urlparse(url or "")
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


async def load_field_rules(owner: Optional[Owner], store: Optional[ConfigStore]) -> list[FieldExtractionRule]:
    if owner is None or store is None:
        return []
    try:
        return await asyncio.to_thread(store.get_field_rules, owner)
    except Exception as e:
        console.print(f"[yellow]Could not load CSS rules for {owner.label}: {e}[/yellow]")
        return []


async def load_ai_fields(
    owner: Optional[Owner],
    store: Optional[ConfigStore],
) -> tuple[list[str], dict[str, str]]:
    """Enabled AI fields and operator hints; the full default set when unset."""
    if owner is None or store is None:
        return list(DEFAULT_AI_FIELDS), {}
    try:
        toggles = await asyncio.to_thread(store.get_ai_fields, owner)
    except Exception as e:
        console.print(f"[yellow]Could not load AI fields for {owner.label}: {e}[/yellow]")
        return list(DEFAULT_AI_FIELDS), {}

    if not toggles:
        return list(DEFAULT_AI_FIELDS), {}

    enabled = [t.field_name for t in toggles if t.enabled]
    hints = {t.field_name: t.ai_hint for t in toggles if t.ai_hint}
    return enabled, hints


async def scrape_event_page(
    url: str,
    owner: Optional[Owner] = None,
    config_store: Optional[ConfigStore] = None,
    fetch: Fetch = fetch_html,
    complete: Optional[CompletionFn] = None,
) -> ScrapeResult:
    """Fetch an event page and extract a merged event record.

    Args:
        url: Event detail page URL
        owner: Organizer or venue whose CSS rules and AI fields apply
        config_store: Where rules and AI toggles are read from
        fetch: Page fetcher
        complete: LLM completion callable; resolved from the environment when None

    Returns:
        ScrapeResult; `ok` is False on invalid URL, fetch or provider failure.
    """
    if not is_valid_url(url):
        return ScrapeResult(False, url, error="Invalid URL", status=400)

    try:
        html = await fetch(url)
    except FetchError as e:
        return ScrapeResult(False, url, error=str(e), status=e.status or 502)

    soup, page = load_page(html, url)

    rules = await load_field_rules(owner, config_store)
    css_data = apply_field_rules(soup, rules)

    enabled_fields, hints = await load_ai_fields(owner, config_store)
    complete = complete or get_completion_fn()

    try:
        ai_data = await extract_with_ai(page, css_data, enabled_fields, hints, complete)
    except LLMError as e:
        console.print(f"[red]AI extraction failed for {url}: {e}[/red]")
        return ScrapeResult(False, url, error=str(e), status=502)

    if ai_data is None:
        console.print("[dim]No LLM credential configured, using selectors and page metadata only[/dim]")

    data = merge_fields(css_data, ai_data, page, url)
    console.print(
        f"[green]Extracted:[/green] {(data.title or url)[:60]} "
        f"[dim](css fields: {len(css_data.filled())}, ai: {ai_data is not None})[/dim]"
    )
    return ScrapeResult(True, url, data=data, ai_processed=ai_data is not None)
