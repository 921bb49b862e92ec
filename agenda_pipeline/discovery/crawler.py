"""Agenda crawler.

Walks an organizer's paginated agenda listing:
- Start at the configured agenda URL
- Collect every event link on the page
- Follow one "next page" link if a pagination selector is configured
- Stop on a missing/visited next link or at the page ceiling
"""

from dataclasses import dataclass, field
from typing import Optional

from bs4 import BeautifulSoup
from rich.console import Console

from agenda_pipeline.extractors.dom import get_attribute, parse_html, resolve_url, select_all, select_first
from agenda_pipeline.extractors.fetch import Fetch, fetch_html
from agenda_pipeline.models import AgendaScrapingConfig

console = Console()

MAX_PAGES_CEILING = 200
DEFAULT_MAX_PAGES = 10


def clamp_max_pages(max_pages: Optional[int]) -> int:
    """Page budget in [1, 200]; only an unset value falls back to the default."""
    if max_pages is None:
        max_pages = DEFAULT_MAX_PAGES
    return max(1, min(MAX_PAGES_CEILING, int(max_pages)))


def _attribute_or_href(name: Optional[str]) -> str:
    return (name or "href").strip() or "href"


@dataclass
class CrawlResult:
    """URLs found on an agenda, in discovery order."""

    urls: list[str] = field(default_factory=list)
    pages: list[str] = field(default_factory=list)  # visited page URLs

    def add(self, url: str) -> None:
        if url not in self.urls:
            self.urls.append(url)


def find_event_links(soup: BeautifulSoup, page_url: str, selector: str, attribute: Optional[str]) -> list[str]:
    """Absolute event URLs linked from one agenda page."""
    attr = _attribute_or_href(attribute)
    links = []
    for el in select_all(soup, selector):
        raw = (get_attribute(el, attr) or "").strip()
        if not raw:
            continue
        resolved = resolve_url(raw, page_url)
        if resolved:
            links.append(resolved)
    return links


def find_next_page(soup: BeautifulSoup, page_url: str, selector: str, attribute: Optional[str]) -> Optional[str]:
    el = select_first(soup, selector)
    if el is None:
        return None
    raw = (get_attribute(el, _attribute_or_href(attribute)) or "").strip()
    if not raw:
        return None
    return resolve_url(raw, page_url)


async def crawl_agenda(config: AgendaScrapingConfig, fetch: Fetch = fetch_html) -> CrawlResult:
    """Walk the agenda and collect event URLs.

    Raises:
        FetchError: if any agenda page cannot be fetched.
    """
    result = CrawlResult()
    visited: set[str] = set()
    max_pages = clamp_max_pages(config.max_pages)
    current_url: Optional[str] = config.agenda_url

    while current_url and len(result.pages) < max_pages:
        if current_url in visited:
            break
        visited.add(current_url)
        result.pages.append(current_url)

        soup = parse_html(await fetch(current_url))
        for url in find_event_links(soup, current_url, config.event_link_selector, config.event_link_attribute):
            result.add(url)

        console.print(
            f"[dim]Page {len(result.pages)}/{max_pages}: {current_url[:60]} "
            f"({len(result.urls)} event URLs so far)[/dim]"
        )

        if not config.next_page_selector:
            break

        next_url = find_next_page(soup, current_url, config.next_page_selector, config.next_page_attribute)
        if not next_url or next_url in visited:
            break
        current_url = next_url

    return result


async def discover_event_urls(config: AgendaScrapingConfig, fetch: Fetch = fetch_html) -> list[str]:
    """Event detail URLs discovered from a config's agenda."""
    result = await crawl_agenda(config, fetch=fetch)
    return result.urls
