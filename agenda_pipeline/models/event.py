"""Event data models shared by the extraction layers and the request store."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

# Scalar text fields of an extracted event
TEXT_FIELDS = [
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
    "external_url",
    "organizer",
    "category",
    "capacity",
    "door_opening_time",
]

EVENT_FIELDS = TEXT_FIELDS + ["tags", "is_full"]

FALSE_MARKERS = {"false", "0", "no", "non", "available", "disponible"}
UNKNOWN_MARKERS = {"null", "none", "unknown", "n/a"}


def coerce_text(value: Any) -> Optional[str]:
    """Turn loose extractor output into a string, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        parts = [str(v).strip() for v in value if v is not None and str(v).strip()]
        return ", ".join(parts) or None
    return None


def coerce_flag(value: Any) -> Optional[bool]:
    """Tri-state parse: True, False, or None when unknown.

    A non-empty string that is not a recognised "false" marker counts as
    True, since a CSS rule for this field targets a sold-out badge.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if not text or text in UNKNOWN_MARKERS:
            return None
        if text in FALSE_MARKERS:
            return False
        return True
    return None


class ScrapedEventData(BaseModel):
    """Union of the fields the CSS and AI layers may populate."""

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None
    end_date: Optional[str] = None
    price: Optional[str] = None
    presale_price: Optional[str] = None
    subscriber_price: Optional[str] = None
    location: Optional[str] = None
    address: Optional[str] = None
    image_url: Optional[str] = None
    external_url: Optional[str] = None
    organizer: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[list[str]] = None
    capacity: Optional[str] = None
    door_opening_time: Optional[str] = None
    is_full: Optional[bool] = None

    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def _text(cls, value: Any) -> Optional[str]:
        return coerce_text(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, value: Any) -> Optional[list[str]]:
        if value is None:
            return None
        if isinstance(value, str):
            value = value.split(",")
        if not isinstance(value, (list, tuple)):
            return None
        return [str(tag) for tag in value if tag is not None and str(tag).strip()]

    @field_validator("is_full", mode="before")
    @classmethod
    def _is_full(cls, value: Any) -> Optional[bool]:
        return coerce_flag(value)

    def filled(self) -> dict[str, Any]:
        """Fields holding a usable value (non-empty strings and lists)."""
        return {
            k: v for k, v in self.model_dump().items()
            if v is not None and v != "" and v != []
        }


class EventData(ScrapedEventData):
    """The `event_data` blob of an ingestion request.

    Keys written by other workflows (moderation, manual edits) are kept
    as extras so a read-merge-write cycle never drops them.
    """

    model_config = ConfigDict(extra="allow")

    organizer_id: Optional[str] = None
    location_id: Optional[str] = None
    scraping_url: Optional[str] = None
