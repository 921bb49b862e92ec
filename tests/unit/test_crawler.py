"""Tests for agenda discovery."""

import asyncio

import pytest

from agenda_pipeline.discovery.crawler import clamp_max_pages, crawl_agenda, discover_event_urls
from agenda_pipeline.errors import FetchError
from agenda_pipeline.models import AgendaScrapingConfig

from tests.conftest import (
    AGENDA_PAGE_1,
    AGENDA_URL,
    DANCE_URL,
    JAZZ_URL,
    PAGE_2_URL,
    THEATRE_URL,
    FakeFetch,
)


def make_config(**overrides) -> AgendaScrapingConfig:
    values = {
        "organizer_id": "org-1",
        "agenda_url": AGENDA_URL,
        "event_link_selector": "a.event-link",
    }
    values.update(overrides)
    return AgendaScrapingConfig(**values)


def numbered_pages(count: int) -> dict[str, str]:
    """An agenda with `count` pages, each linking to the next."""
    pages = {}
    for n in range(1, count + 1):
        url = AGENDA_URL if n == 1 else f"{AGENDA_URL}?page={n}"
        pages[url] = (
            f'<html><body><a class="event-link" href="/events/e{n}">E{n}</a>'
            f'<a class="next" href="/agenda?page={n + 1}">Next</a></body></html>'
        )
    return pages


class TestClampMaxPages:
    @pytest.mark.parametrize("raw,expected", [
        (None, 10),
        (0, 1),
        (-5, 1),
        (3, 3),
        (500, 200),
    ])
    def test_bounds(self, raw, expected):
        assert clamp_max_pages(raw) == expected


class TestCrawlAgenda:
    """Tests for pagination, dedupe and stop conditions."""

    def test_single_page_without_pagination_selector(self):
        """Without a next-page selector exactly one page is fetched."""
        fetch = FakeFetch({AGENDA_URL: AGENDA_PAGE_1})
        result = asyncio.run(crawl_agenda(make_config(), fetch=fetch))

        assert fetch.calls == [AGENDA_URL]
        assert result.urls == [JAZZ_URL, THEATRE_URL]

    def test_links_are_absolute_deduped_and_http_only(self):
        """Relative links resolve, duplicates collapse, mailto links are dropped."""
        fetch = FakeFetch({AGENDA_URL: AGENDA_PAGE_1})
        urls = asyncio.run(discover_event_urls(make_config(), fetch=fetch))

        assert urls == [JAZZ_URL, THEATRE_URL]
        assert all(u.startswith("https://") for u in urls)

    def test_follows_pagination_and_stops_on_cycle(self, fake_fetch):
        """Page 2 links back to page 1; the crawl stops instead of looping."""
        config = make_config(next_page_selector="a.next")
        result = asyncio.run(crawl_agenda(config, fetch=fake_fetch))

        assert fake_fetch.calls == [AGENDA_URL, PAGE_2_URL]
        assert result.pages == [AGENDA_URL, PAGE_2_URL]
        assert result.urls == [JAZZ_URL, THEATRE_URL, DANCE_URL]

    def test_page_ceiling(self):
        """No more than max_pages pages are fetched."""
        fetch = FakeFetch(numbered_pages(8))
        config = make_config(next_page_selector="a.next", max_pages=3)
        result = asyncio.run(crawl_agenda(config, fetch=fetch))

        assert len(fetch.calls) == 3
        assert len(result.urls) == 3

    def test_zero_max_pages_fetches_one_page(self):
        """A zero budget is raised to the floor of one page, not the default."""
        fetch = FakeFetch(numbered_pages(19))
        config = make_config(next_page_selector="a.next", max_pages=0)
        result = asyncio.run(crawl_agenda(config, fetch=fetch))

        assert fetch.calls == [AGENDA_URL]
        assert result.urls == ["https://venue.example/events/e1"]

    def test_missing_next_link_stops(self):
        pages = {AGENDA_URL: '<html><body><a class="event-link" href="/events/solo">Solo</a></body></html>'}
        fetch = FakeFetch(pages)
        result = asyncio.run(crawl_agenda(make_config(next_page_selector="a.next"), fetch=fetch))

        assert fetch.calls == [AGENDA_URL]
        assert result.urls == ["https://venue.example/events/solo"]

    def test_custom_link_attribute(self):
        pages = {AGENDA_URL: '<html><body><div class="card" data-url="/events/x">X</div></body></html>'}
        config = make_config(event_link_selector="div.card", event_link_attribute="data-url")
        urls = asyncio.run(discover_event_urls(config, fetch=FakeFetch(pages)))

        assert urls == ["https://venue.example/events/x"]

    def test_agenda_fetch_failure_raises(self):
        with pytest.raises(FetchError):
            asyncio.run(crawl_agenda(make_config(), fetch=FakeFetch({})))
