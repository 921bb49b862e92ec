"""Event page extraction.

This package provides the page-level extraction stack:
1. Fetching HTML from organizer sites
2. Building page context (social metadata, main text, fragments)
3. Applying operator CSS selector rules
4. Merging selector, AI and metadata values into one event record

The end-to-end entry point, `scrape_event_page`, lives in
`agenda_pipeline.extractors.pipeline` since it also depends on the AI layer.
"""

from agenda_pipeline.extractors.fetch import fetch_html, Fetch
from agenda_pipeline.extractors.page import load_page, PageContext
from agenda_pipeline.extractors.selectors import normalize_selector, apply_field_rules
from agenda_pipeline.extractors.merge import merge_fields, merge_event_data, absolute_image_url

__all__ = [
    "fetch_html",
    "Fetch",
    "load_page",
    "PageContext",
    "normalize_selector",
    "apply_field_rules",
    "merge_fields",
    "merge_event_data",
    "absolute_image_url",
]
