"""Data models for the agenda pipeline."""

from agenda_pipeline.models.config import (
    Owner,
    AgendaScrapingConfig,
    FieldExtractionRule,
    AIFieldToggle,
)
from agenda_pipeline.models.event import ScrapedEventData, EventData, EVENT_FIELDS
from agenda_pipeline.models.request import IngestionRequest, EVENT_FROM_URL

__all__ = [
    "Owner",
    "AgendaScrapingConfig",
    "FieldExtractionRule",
    "AIFieldToggle",
    "ScrapedEventData",
    "EventData",
    "EVENT_FIELDS",
    "IngestionRequest",
    "EVENT_FROM_URL",
]
