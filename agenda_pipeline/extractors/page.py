"""Page context: social metadata, main text and short structured fragments.

This is the raw material for the AI prompt and the last-resort fallback for
title, description and image.
"""

import re
from typing import Optional

from bs4 import BeautifulSoup
from pydantic import BaseModel, Field

from agenda_pipeline.extractors.dom import get_attribute, parse_html, text_of

MAX_MAIN_TEXT = 15000
MAX_FRAGMENTS = 50
MIN_MAIN_TEXT = 200

# Page chrome that never carries event details
NOISE_SELECTOR = (
    "script, style, nav, header, footer, aside, "
    ".cookie-banner, .cookie-consent, .gdpr-banner"
)

MAIN_CONTENT_SELECTORS = [
    "main",
    "article",
    "[role='main']",
    ".content",
    ".main-content",
    "#content",
    ".event-details",
    ".event-info",
    ".description",
]

FRAGMENT_SELECTOR = "p, li, h1, h2, h3, h4, .description, .event-details, .price, .date, .location"


class PageContext(BaseModel):
    """What we know about a page before any rule or model runs."""

    url: str
    metadata: dict[str, str] = Field(default_factory=dict)  # og:* and twitter:* without prefix
    title: str = ""
    description: str = ""
    image_url: str = ""  # as found, possibly relative
    main_text: str = ""
    fragments: list[str] = Field(default_factory=list)


def extract_social_metadata(soup: BeautifulSoup) -> dict[str, str]:
    """Collect Open Graph then Twitter Card tags (Twitter wins on clashes)."""
    metadata: dict[str, str] = {}

    for meta in soup.select('meta[property^="og:"]'):
        prop = (get_attribute(meta, "property") or "").replace("og:", "", 1)
        content = get_attribute(meta, "content")
        if prop and content:
            metadata[prop] = content

    for meta in soup.select('meta[name^="twitter:"]'):
        name = (get_attribute(meta, "name") or "").replace("twitter:", "", 1)
        content = get_attribute(meta, "content")
        if name and content:
            metadata[name] = content

    return metadata


def strip_noise(soup: BeautifulSoup) -> None:
    for el in soup.select(NOISE_SELECTOR):
        el.decompose()


def extract_main_text(soup: BeautifulSoup) -> str:
    """Longest main-content region, falling back to the whole body."""
    main_text = ""
    for selector in MAIN_CONTENT_SELECTORS:
        content = text_of(soup, selector)
        if len(content) > len(main_text):
            main_text = content

    if len(main_text) < MIN_MAIN_TEXT:
        body = soup.body or soup
        main_text = body.get_text()

    return re.sub(r"\s+", " ", main_text).strip()[:MAX_MAIN_TEXT]


def extract_fragments(soup: BeautifulSoup, limit: int = MAX_FRAGMENTS) -> list[str]:
    fragments = []
    for el in soup.select(FRAGMENT_SELECTOR):
        text = el.get_text().strip()
        if 10 < len(text) < 500:
            fragments.append(text)
            if len(fragments) >= limit:
                break
    return fragments


def _first_nonempty(*values: Optional[str]) -> str:
    for value in values:
        if value:
            return value
    return ""


def load_page(html: str, url: str) -> tuple[BeautifulSoup, PageContext]:
    """Parse a page and build its context.

    The returned soup has navigation, scripts and banners removed; selector
    rules run against that cleaned tree.
    """
    soup = parse_html(html)
    metadata = extract_social_metadata(soup)

    strip_noise(soup)

    title = _first_nonempty(metadata.get("title"), text_of(soup, "title"), text_of(soup, "h1"))
    desc_meta = soup.select_one('meta[name="description"]')
    description = _first_nonempty(
        metadata.get("description"),
        get_attribute(desc_meta, "content") if desc_meta else None,
        text_of(soup, "p"),
    )
    og_image = soup.select_one('meta[property="og:image"]')
    first_img = soup.select_one("img")
    image_url = _first_nonempty(
        metadata.get("image"),
        get_attribute(og_image, "content") if og_image else None,
        get_attribute(first_img, "src") if first_img else None,
    )

    context = PageContext(
        url=url,
        metadata=metadata,
        title=title.strip(),
        description=description.strip(),
        image_url=image_url.strip(),
        main_text=extract_main_text(soup),
        fragments=extract_fragments(soup),
    )
    return soup, context
