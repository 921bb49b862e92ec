"""Operator-defined CSS selector rules.

Operators often paste selectors copied from devtools attribute panes, e.g.
`class="event-price big"` or `data-id=123`. `normalize_selector` turns those
into valid CSS before evaluation:

    data-id=123            -> [data-id="123"]
    class=foo bar          -> .foo.bar
    class="w-[200px] big"  -> [class*="w-[200px]"][class*="big"]
    id="event:main"        -> #event\\:main
    .price / #x / [a] / :x -> unchanged
"""

import re
from typing import Iterable, Optional

from bs4 import BeautifulSoup
from rich.console import Console

from agenda_pipeline.extractors.dom import read_value, select_first
from agenda_pipeline.models import EVENT_FIELDS, FieldExtractionRule, ScrapedEventData

console = Console()

VALID_CSS_START = re.compile(r"^[.#\[:]")
DYNAMIC_CLASS_CHARS = re.compile(r"[\[\]()]")
PRICE_PATTERN = re.compile(r"\d+(?:[.,]\d+)*")


def _escape_quotes(value: str) -> str:
    return value.replace('"', '\\"')


def _unquote(value: str) -> Optional[str]:
    """Strip one pair of matching quotes. None for an unterminated quote."""
    if value[:1] in ('"', "'"):
        end = value.find(value[0], 1)
        if end <= 0:
            return None
        return value[1:end]
    return value


def normalize_selector(raw: str) -> str:
    """Rewrite a bare `name=value` expression into a valid CSS selector."""
    selector = (raw or "").strip()
    if VALID_CSS_START.match(selector) or "=" not in selector:
        return selector

    equal_index = selector.index("=")
    if equal_index == 0:
        return f"[{_escape_quotes(selector)}]"

    name = selector[:equal_index].strip()
    # Class values may carry brackets; anywhere else they mean real CSS like a[href=x]
    if "[" in selector and name not in ("class", "className"):
        return selector

    value = _unquote(selector[equal_index + 1:].strip())
    if value is None:
        return f"[{_escape_quotes(selector)}]"

    if name in ("class", "className"):
        classes = value.split()
        if DYNAMIC_CLASS_CHARS.search(value):
            # Utility-class frameworks generate names CSS can't address directly
            return "".join(f'[class*="{c}"]' for c in classes)
        if classes:
            return "".join("." + re.sub(r"([.#:])", r"\\\1", c) for c in classes)
        return "." + re.sub(r"\s+", "-", value)

    if name == "id":
        return "#" + re.sub(r"([\[\](){}.#:,_])", r"\\\1", value)

    return f'[{name}="{_escape_quotes(value)}"]'


def strip_text_prefix(value: str, prefix: str) -> Optional[str]:
    """Keep what follows `prefix` (exact case first, then any case)."""
    index = value.find(prefix)
    if index == -1:
        index = value.lower().find(prefix.lower())
        if index == -1:
            return None
    return value[index + len(prefix):].strip()


def extract_price(value: str) -> str:
    """First numeric run, with a decimal comma turned into a dot."""
    match = PRICE_PATTERN.search(value)
    if not match:
        return value
    return match.group(0).replace(",", ".", 1)


def apply_rule(soup: BeautifulSoup, rule: FieldExtractionRule) -> Optional[str]:
    """Evaluate one rule against the page. Raises on invalid selectors."""
    el = select_first(soup, normalize_selector(rule.css_selector))
    if el is None:
        return None

    value = read_value(el, rule.attribute)
    if not value:
        return None

    prefix = (rule.text_prefix or "").strip()
    if prefix:
        value = strip_text_prefix(value, prefix)
        if not value:
            return None

    if rule.transform_function == "price":
        value = extract_price(value)

    return value or None


def apply_field_rules(soup: BeautifulSoup, rules: Iterable[FieldExtractionRule]) -> ScrapedEventData:
    """Run every rule in order; a failing rule never affects the others."""
    values: dict[str, str] = {}

    for rule in rules:
        if rule.event_field not in EVENT_FIELDS:
            console.print(f"[dim]Ignoring rule for unknown field '{rule.event_field}'[/dim]")
            continue
        try:
            value = apply_rule(soup, rule)
        except Exception as e:
            console.print(f"[dim]Selector '{rule.css_selector}' failed: {e}[/dim]")
            continue
        if value:
            values[rule.event_field] = value

    return ScrapedEventData.model_validate(values)
