"""Ingestion request model (`user_requests` rows of type event_from_url)."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from agenda_pipeline.models.event import EventData

EVENT_FROM_URL = "event_from_url"


class IngestionRequest(BaseModel):
    """A pending event suggestion created from a discovered URL."""

    id: str
    request_type: str = EVENT_FROM_URL
    status: str = "pending"
    source_url: Optional[str] = None
    location_id: Optional[str] = None
    location_name: Optional[str] = None
    requested_by: Optional[str] = None
    event_data: EventData = Field(default_factory=EventData)
    created_at: Optional[float] = None

    model_config = ConfigDict(extra="ignore")

    def matches_url(self, url: str) -> bool:
        """True if this request was created from `url` (including legacy rows)."""
        if self.source_url == url:
            return True
        return url in (self.event_data.scraping_url, self.event_data.external_url)
