"""Field merge between the CSS layer, the AI layer and raw page metadata.

Precedence per field: CSS rule > AI > page fallback > unset. Only title,
description and image_url have a page fallback. Tags only ever come from the
AI layer; no CSS rule produces a list.
"""

from typing import Optional
from urllib.parse import urljoin

from agenda_pipeline.extractors.dom import page_origin
from agenda_pipeline.extractors.page import PageContext
from agenda_pipeline.models import EventData, Owner, ScrapedEventData
from agenda_pipeline.models.event import TEXT_FIELDS

PAGE_FALLBACK_FIELDS = ("title", "description", "image_url")


def absolute_image_url(image_url: Optional[str], page_url: str) -> Optional[str]:
    """Anchor relative image paths at the page origin."""
    if not image_url:
        return None
    image_url = image_url.strip()
    if image_url.startswith(("http://", "https://", "data:")):
        return image_url
    return urljoin(page_origin(page_url), image_url)


def filter_ai_fields(
    css: ScrapedEventData,
    ai: ScrapedEventData,
    enabled_fields: list[str],
) -> ScrapedEventData:
    """Keep only AI values the CSS layer doesn't already own."""
    css_values = css.filled()
    kept = {}
    for field in enabled_fields:
        ai_value = getattr(ai, field, None)
        if field not in css_values and ai_value is not None:
            kept[field] = ai_value
    if "tags" in enabled_fields and ai.tags:
        kept["tags"] = ai.tags
    return ScrapedEventData.model_validate(kept)


def merge_fields(
    css: ScrapedEventData,
    ai: Optional[ScrapedEventData],
    page: PageContext,
    url: str,
) -> ScrapedEventData:
    """Combine both extraction layers into one event record."""
    ai = ai or ScrapedEventData()
    fallback = {
        "title": page.title.strip() or None,
        "description": page.description.strip() or None,
        "image_url": page.image_url or None,
    }

    merged: dict = {}
    for field in TEXT_FIELDS:
        candidates = [getattr(css, field), getattr(ai, field)]
        if field in PAGE_FALLBACK_FIELDS:
            candidates.append(fallback[field])
        if field == "image_url":
            candidates = [absolute_image_url(c, url) for c in candidates]
        merged[field] = next((c for c in candidates if c), None)

    merged["external_url"] = url
    merged["tags"] = ai.tags or None
    # tri-state: an explicit False from CSS must win
    merged["is_full"] = css.is_full if css.is_full is not None else ai.is_full

    return ScrapedEventData.model_validate(merged)


def merge_event_data(
    current: EventData,
    scraped: ScrapedEventData,
    owner: Owner,
    scraping_url: str,
) -> EventData:
    """Overlay extracted fields on a stored event_data, keeping owner linkage."""
    data = current.model_dump(exclude_none=True)
    data.update(scraped.model_dump(exclude_none=True))
    if owner.organizer_id:
        data["organizer_id"] = owner.organizer_id
    if owner.location_id:
        data["location_id"] = owner.location_id
    if not data.get("scraping_url"):
        data["scraping_url"] = scraping_url
    return EventData.model_validate(data)
