"""Thin query layer over BeautifulSoup used by every extractor."""

from typing import Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

TEXT_CONTENT = "textContent"
INNER_HTML = "innerHTML"


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def select_all(soup: BeautifulSoup | Tag, selector: str) -> list[Tag]:
    """Evaluate a CSS selector. Invalid selectors raise soupsieve errors."""
    return soup.select(selector)


def select_first(soup: BeautifulSoup | Tag, selector: str) -> Optional[Tag]:
    return soup.select_one(selector)


def get_attribute(el: Tag, name: str) -> Optional[str]:
    """Read an attribute as a string (multi-valued ones like class are joined)."""
    value = el.get(name)
    if value is None:
        return None
    if isinstance(value, list):
        return " ".join(value)
    return str(value)


def read_value(el: Tag, attribute: Optional[str]) -> Optional[str]:
    """Read text, inner HTML, or a named attribute from an element."""
    if not attribute or attribute == TEXT_CONTENT:
        return el.get_text().strip()
    if attribute == INNER_HTML:
        return el.decode_contents() or None
    return get_attribute(el, attribute)


def text_of(soup: BeautifulSoup | Tag, selector: str) -> str:
    """Text of the first match, or empty string."""
    el = soup.select_one(selector)
    return el.get_text() if el else ""


def resolve_url(href: str, base: str) -> Optional[str]:
    """Resolve `href` against `base`; None unless the result is http(s)."""
    try:
        resolved = urljoin(base, href.strip())
    except ValueError:
        return None
    if urlparse(resolved).scheme not in ("http", "https"):
        return None
    return resolved


def page_origin(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"
