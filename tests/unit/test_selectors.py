"""Tests for operator CSS selector rules."""

import pytest

from agenda_pipeline.extractors.dom import parse_html
from agenda_pipeline.extractors.page import load_page
from agenda_pipeline.extractors.selectors import (
    apply_field_rules,
    extract_price,
    normalize_selector,
    strip_text_prefix,
)
from agenda_pipeline.models import FieldExtractionRule

from tests.conftest import EVENT_PAGE, JAZZ_URL


def rule(field: str, selector: str, **kwargs) -> FieldExtractionRule:
    return FieldExtractionRule(organizer_id="org-1", event_field=field, css_selector=selector, **kwargs)


class TestNormalizeSelector:
    """Tests for devtools-style selector rewriting."""

    @pytest.mark.parametrize("raw,expected", [
        ("data-id=123", '[data-id="123"]'),
        ('data-id="123"', '[data-id="123"]'),
        ("class=foo bar", ".foo.bar"),
        ('class="event-price big"', ".event-price.big"),
        ("className=card", ".card"),
        ('class="w-(2) big"', '[class*="w-(2)"][class*="big"]'),
        ('class="w-[200px] price"', '[class*="w-[200px]"][class*="price"]'),
        ('id="event:main"', "#event\\:main"),
    ])
    def test_attribute_expressions_are_rewritten(self, raw: str, expected: str):
        """Bare name=value expressions become valid CSS."""
        assert normalize_selector(raw) == expected

    @pytest.mark.parametrize("selector", [
        ".price",
        "#title",
        "[data-role=price]",
        'a[href="/tickets"]',
        ":is(h1, h2)",
        "div.event > span",
        "h1",
    ])
    def test_valid_css_unchanged(self, selector: str):
        """Selectors that already look like CSS pass through."""
        assert normalize_selector(selector) == selector

    def test_surrounding_whitespace_trimmed(self):
        assert normalize_selector("  .price  ") == ".price"

    def test_unterminated_quote_becomes_attribute_selector(self):
        """A dangling quote is wrapped rather than guessed at."""
        assert normalize_selector('data-id="123') == '[data-id=\\"123]'

    def test_empty_attribute_name(self):
        assert normalize_selector("=foo") == "[=foo]"


class TestTextHelpers:
    """Tests for prefix stripping and price extraction."""

    def test_prefix_exact_case(self):
        assert strip_text_prefix("Tarif : 12 €", "Tarif :") == "12 €"

    def test_prefix_case_insensitive_fallback(self):
        """Prefix match falls back to case-insensitive search."""
        assert strip_text_prefix("TARIF : 12 €", "Tarif :") == "12 €"

    def test_missing_prefix(self):
        assert strip_text_prefix("Gratuit", "Tarif :") is None

    @pytest.mark.parametrize("raw,expected", [
        ("12,50 €", "12.50"),
        ("À partir de 8 euros", "8"),
        ("15.00", "15.00"),
        ("Entrée libre. Participation 5,50 €", "5.50"),
    ])
    def test_extract_price(self, raw: str, expected: str):
        assert extract_price(raw) == expected

    def test_price_without_digits_kept(self):
        assert extract_price("Gratuit") == "Gratuit"


class TestApplyFieldRules:
    """Tests for rule evaluation against a page."""

    @pytest.fixture
    def soup(self):
        soup, _ = load_page(EVENT_PAGE, JAZZ_URL)
        return soup

    def test_price_with_prefix_and_transform(self, soup):
        data = apply_field_rules(soup, [rule("price", ".price", text_prefix="Tarif :", transform_function="price")])
        assert data.price == "12.50"

    def test_devtools_selectors(self, soup):
        """class=... and data-id=... rules resolve after normalization."""
        data = apply_field_rules(soup, [
            rule("location", "class=event-venue"),
            rule("is_full", "data-id=123"),
        ])
        assert data.location == "Salle Pleyel"
        assert data.is_full is True

    def test_utility_class_selector(self):
        """Bracketed utility classes are matched by substring."""
        soup = parse_html('<div><p class="w-[200px] price">12 EUR</p></div>')
        data = apply_field_rules(soup, [rule("price", 'class="w-[200px] price"')])
        assert data.price == "12 EUR"

    def test_attribute_read(self):
        soup = parse_html('<div><img class="poster" src="/poster.jpg"></div>')
        data = apply_field_rules(soup, [rule("image_url", "img.poster", attribute="src")])
        assert data.image_url == "/poster.jpg"

    def test_invalid_selector_does_not_affect_other_rules(self, soup):
        """A broken rule is skipped; later rules still run."""
        data = apply_field_rules(soup, [
            rule("title", "h1[["),
            rule("location", ".event-venue"),
        ])
        assert data.title is None
        assert data.location == "Salle Pleyel"

    def test_unknown_field_ignored(self, soup):
        data = apply_field_rules(soup, [rule("ticket_color", "h1")])
        assert data.filled() == {}

    def test_no_match_leaves_field_unset(self, soup):
        data = apply_field_rules(soup, [rule("capacity", ".capacity")])
        assert data.capacity is None

    def test_missing_prefix_leaves_field_unset(self, soup):
        data = apply_field_rules(soup, [rule("price", ".price", text_prefix="Prix libre")])
        assert data.price is None

    def test_rules_run_on_cleaned_tree(self, soup):
        """Navigation chrome is stripped before rules run."""
        data = apply_field_rules(soup, [rule("organizer", "nav")])
        assert data.organizer is None
