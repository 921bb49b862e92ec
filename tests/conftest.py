"""Shared test fixtures and configuration."""

import json

import pytest

from agenda_pipeline.errors import FetchError
from agenda_pipeline.models import AgendaScrapingConfig, FieldExtractionRule, Owner
from agenda_pipeline.stores import LocalStore

AGENDA_URL = "https://venue.example/agenda"
PAGE_2_URL = "https://venue.example/agenda?page=2"
JAZZ_URL = "https://venue.example/events/jazz-night"
THEATRE_URL = "https://venue.example/events/hamlet"
DANCE_URL = "https://venue.example/events/ballet"

AGENDA_PAGE_1 = """
<html><body>
  <main>
    <ul class="agenda">
      <li><a class="event-link" href="/events/jazz-night">Jazz Night</a></li>
      <li><a class="event-link" href="https://venue.example/events/hamlet">Hamlet</a></li>
      <li><a class="event-link" href="/events/jazz-night">Jazz Night (again)</a></li>
      <li><a class="event-link" href="mailto:box-office@venue.example">Contact</a></li>
    </ul>
    <a class="next" href="/agenda?page=2">Next</a>
  </main>
</body></html>
"""

# Its "next" link points back at page 1
AGENDA_PAGE_2 = """
<html><body>
  <main>
    <ul class="agenda">
      <li><a class="event-link" href="/events/ballet">Ballet</a></li>
    </ul>
    <a class="next" href="/agenda">Back to start</a>
  </main>
</body></html>
"""

EVENT_PAGE = """
<html>
<head>
  <title>Jazz Night | Venue</title>
  <meta property="og:title" content="Jazz Night">
  <meta property="og:description" content="An evening of modal jazz with the house quartet.">
  <meta property="og:image" content="/img/jazz.jpg">
</head>
<body>
  <header><nav>Agenda - Tickets - Contact</nav></header>
  <main>
    <h1>Jazz Night</h1>
    <p class="date">Le 12 mars 2026 à 20h30</p>
    <p class="price">Tarif : 12,50 €</p>
    <div class="event-venue">Salle Pleyel</div>
    <span data-id="123">Complet</span>
    <p>The house quartet plays two sets of modal jazz, with an open jam session after the show.</p>
  </main>
  <footer>Venue footer</footer>
</body>
</html>
"""

# A minimal page without any metadata
BARE_EVENT_PAGE = """
<html><head><title>Hamlet</title></head>
<body><main><h1>Hamlet</h1><p>A new staging of the classic tragedy.</p></main></body></html>
"""


class FakeFetch:
    """In-memory replacement for fetch_html; unknown URLs are 404s."""

    def __init__(self, pages: dict[str, str]):
        self.pages = pages
        self.calls: list[str] = []

    async def __call__(self, url: str) -> str:
        self.calls.append(url)
        if url not in self.pages:
            raise FetchError(url, status=404)
        return self.pages[url]


class FakeCompletion:
    """Records prompts and answers with a canned model reply."""

    def __init__(self, reply):
        self.reply = reply if isinstance(reply, str) else json.dumps(reply)
        self.prompts: list[str] = []

    async def __call__(self, system: str, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.reply


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Never reach a real LLM or pick up local limits during tests."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("SCRAPE_EVENTS_MAX_PER_CONFIG", raising=False)
    monkeypatch.delenv("AGENDA_STORE_BACKEND", raising=False)


@pytest.fixture
def site_pages() -> dict[str, str]:
    return {
        AGENDA_URL: AGENDA_PAGE_1,
        PAGE_2_URL: AGENDA_PAGE_2,
        JAZZ_URL: EVENT_PAGE,
        THEATRE_URL: BARE_EVENT_PAGE,
        DANCE_URL: BARE_EVENT_PAGE,
    }


@pytest.fixture
def fake_fetch(site_pages) -> FakeFetch:
    return FakeFetch(site_pages)


@pytest.fixture
def organizer() -> Owner:
    return Owner(organizer_id="org-1")


@pytest.fixture
def agenda_config() -> AgendaScrapingConfig:
    return AgendaScrapingConfig(
        id="cfg-1",
        organizer_id="org-1",
        agenda_url=AGENDA_URL,
        event_link_selector="a.event-link",
        next_page_selector="a.next",
        max_pages=10,
    )


@pytest.fixture
def css_rules() -> list[FieldExtractionRule]:
    """Rules as operators actually enter them, including devtools-style selectors."""
    return [
        FieldExtractionRule(
            id="rule-price",
            organizer_id="org-1",
            event_field="price",
            css_selector=".price",
            text_prefix="Tarif :",
            transform_function="price",
        ),
        FieldExtractionRule(
            id="rule-venue",
            organizer_id="org-1",
            event_field="location",
            css_selector="class=event-venue",
        ),
        FieldExtractionRule(
            id="rule-full",
            organizer_id="org-1",
            event_field="is_full",
            css_selector="data-id=123",
        ),
    ]


@pytest.fixture
def local_store(agenda_config) -> LocalStore:
    """In-memory store seeded with one organizer agenda and no CSS rules."""
    store = LocalStore()
    store.add_agenda_config(agenda_config)
    return store
