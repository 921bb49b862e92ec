"""Operator-managed scraping configuration models."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator


class Owner(BaseModel):
    """The organizer or venue a scrape runs for."""

    organizer_id: Optional[str] = None
    location_id: Optional[str] = None

    @model_validator(mode="after")
    def _single_owner(self) -> "Owner":
        if not self.organizer_id and not self.location_id:
            raise ValueError("organizer_id or location_id is required")
        # organizer_id wins when a caller sends both
        if self.organizer_id and self.location_id:
            self.location_id = None
        return self

    @property
    def id(self) -> str:
        return self.organizer_id or self.location_id  # type: ignore[return-value]

    @property
    def label(self) -> str:
        if self.organizer_id:
            return f"organizer:{self.organizer_id}"
        return f"location:{self.location_id}"


class OwnedRecord(BaseModel):
    """Base for rows owned by exactly one organizer or venue."""

    organizer_id: Optional[str] = None
    location_id: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def _exactly_one_owner(self):
        if bool(self.organizer_id) == bool(self.location_id):
            raise ValueError("exactly one of organizer_id or location_id must be set")
        return self

    @property
    def owner(self) -> Owner:
        return Owner(organizer_id=self.organizer_id, location_id=self.location_id)

    def belongs_to(self, owner: Owner) -> bool:
        if owner.organizer_id:
            return self.organizer_id == owner.organizer_id
        return self.location_id == owner.location_id


class AgendaScrapingConfig(OwnedRecord):
    """Where an owner's agenda lives and how to walk it."""

    id: Optional[str] = None
    enabled: bool = True
    agenda_url: str
    event_link_selector: str
    event_link_attribute: Optional[str] = "href"
    next_page_selector: Optional[str] = None
    next_page_attribute: Optional[str] = "href"
    max_pages: Optional[int] = 10  # clamped to 1-200 at crawl time


class FieldExtractionRule(OwnedRecord):
    """CSS selector rule mapping part of an event page to one event field."""

    id: Optional[str] = None
    event_field: str
    css_selector: str
    attribute: Optional[str] = "textContent"  # textContent, innerHTML or any attribute name
    text_prefix: Optional[str] = None
    transform_function: Optional[str] = None  # only "price" for now


class AIFieldToggle(OwnedRecord):
    """Whether the LLM should extract a field, with an optional operator hint."""

    field_name: str
    enabled: bool = True
    ai_hint: Optional[str] = None
