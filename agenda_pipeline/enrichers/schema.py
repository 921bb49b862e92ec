"""Extraction schema and prompt building for the AI layer."""

import json
from typing import Optional

from agenda_pipeline.extractors.page import PageContext
from agenda_pipeline.models import ScrapedEventData

# Enabled when an owner has no AI field toggles at all
DEFAULT_AI_FIELDS = [
    "title",
    "description",
    "date",
    "end_date",
    "price",
    "presale_price",
    "subscriber_price",
    "location",
    "address",
    "image_url",
    "organizer",
    "category",
    "tags",
    "capacity",
    "door_opening_time",
    "is_full",
]

# Controlled vocabulary used by the platform's category filter
CATEGORY_OPTIONS = [
    "musique", "théâtre", "danse", "sport", "conférence", "exposition",
    "festival", "concert", "spectacle", "atelier", "autre",
]

# What each field means, listed in the "fields to extract" section
FIELD_LABELS = {
    "title": "The event title (catchy but accurate)",
    "description": "A rich, detailed description (at least 3-5 sentences: context, atmosphere, highlights)",
    "date": "Start date and time",
    "end_date": "End date and time",
    "price": "Price information (full, reduced, free, pay-what-you-want, ...)",
    "presale_price": "Presale price if mentioned (reduced price before a cutoff date)",
    "subscriber_price": "Subscriber / member price if mentioned",
    "location": "The exact venue",
    "address": "The venue's full postal address",
    "image_url": "URL of the event's main image",
    "organizer": "The organizer or organizers",
    "category": f"Main category, one of: {', '.join(CATEGORY_OPTIONS)}",
    "tags": "Relevant, varied tags (at least 3-5)",
    "capacity": "Capacity if mentioned",
    "door_opening_time": "Door opening time if available",
    "is_full": "Whether the event is sold out - true or false only",
}

# Shape of each field in the JSON skeleton
FIELD_DEFINITIONS = {
    "title": '"title": "Accurate, catchy event title"',
    "description": (
        '"description": "Complete description: context, programme, artists or speakers, '
        'expected atmosphere. At least 3-5 well-formed sentences."'
    ),
    "date": '"date": "Start date and time in ISO 8601 with timezone (e.g. 2024-12-25T20:00:00+01:00)"',
    "end_date": '"end_date": "End date and time in ISO 8601 (optional but important when available)"',
    "price": '"price": "Numeric price only (0 when free, decimal number otherwise)"',
    "presale_price": '"presale_price": "Numeric presale price only (decimal number, null if not mentioned)"',
    "subscriber_price": '"subscriber_price": "Numeric subscriber price only (decimal number, null if not mentioned)"',
    "location": '"location": "Official venue name"',
    "address": '"address": "Full postal address (number, street, postcode, city, country if relevant)"',
    "image_url": '"image_url": "Absolute URL of the main event image"',
    "organizer": '"organizer": "Name of the organizer, association, collective or headline artist"',
    "category": f'"category": "Main category ({", ".join(CATEGORY_OPTIONS)})"',
    "tags": '"tags": ["tag1", "tag2", "tag3", "tag4", "tag5"]',
    "capacity": '"capacity": "Maximum capacity as a number only"',
    "door_opening_time": '"door_opening_time": "Door opening time as HH:mm (e.g. 19:30)"',
    "is_full": '"is_full": "Boolean: true if sold out, false otherwise, null if not mentioned"',
}

SYSTEM_PROMPT = (
    "You are an expert at extracting structured information from web pages. "
    "You analyse the content thoroughly and always return valid, precise and complete JSON."
)


def describe_fields(enabled_fields: list[str], hints: dict[str, str]) -> str:
    """Numbered list of fields to extract, with operator hints appended."""
    lines = []
    for index, field in enumerate(enabled_fields, start=1):
        label = FIELD_LABELS.get(field, field)
        hint = hints.get(field)
        if hint:
            label = f"{label}. Specific guidance: {hint}"
        lines.append(f"{index}. {label}")
    return "\n".join(lines)


def json_skeleton(enabled_fields: list[str]) -> str:
    body = ",\n  ".join(
        FIELD_DEFINITIONS.get(field, f'"{field}": "Extracted value"')
        for field in enabled_fields
    )
    return "{\n  " + body + "\n}"


def build_page_context(page: PageContext, css_data: Optional[ScrapedEventData] = None) -> str:
    """Bounded textual context handed to the model."""
    parts = [
        f"URL: {page.url}",
        f"Page title: {page.title}",
        f"Description: {page.description}",
        f"Open Graph and Twitter Card metadata: {json.dumps(page.metadata, indent=2, ensure_ascii=False)}",
        "Structured content (paragraphs, lists, headings):",
        "\n".join(page.fragments[:50]),
        f"Full main text: {page.main_text}",
    ]
    known = css_data.filled() if css_data else {}
    if known:
        parts.append(
            "Data already extracted with custom CSS selectors:\n"
            + json.dumps(known, indent=2, ensure_ascii=False)
        )
    return "\n".join(parts)


def build_extraction_prompt(
    page: PageContext,
    enabled_fields: list[str],
    hints: dict[str, str],
    css_data: Optional[ScrapedEventData] = None,
) -> str:
    """Build the user prompt for one event page."""
    known = css_data.filled() if css_data else {}
    priority_note = ""
    if known:
        priority_note = (
            "\nIMPORTANT: the following values were already extracted with custom CSS selectors "
            f"and take PRIORITY:\n{json.dumps(known, indent=2, ensure_ascii=False)}\n"
            "Do NOT extract these fields again unless needed to complete missing information.\n"
        )

    return f"""Analyse this web page and extract the information about the event it describes, as precisely as possible.

PAGE CONTEXT:
{build_page_context(page, css_data)}

REQUIRED ANALYSIS:
Go through the content methodically and extract only these fields:
{describe_fields(enabled_fields, hints)}
{priority_note}
EXPECTED JSON OUTPUT:
{json_skeleton(enabled_fields)}

Return ONLY the valid JSON, with no text before or after, no comments, no markdown."""
