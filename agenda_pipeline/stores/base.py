"""Store interfaces the pipeline depends on.

Implementations are synchronous; the async pipeline calls them through
`asyncio.to_thread`.
"""

from typing import Optional, Protocol

from agenda_pipeline.models import (
    AgendaScrapingConfig,
    AIFieldToggle,
    EventData,
    FieldExtractionRule,
    IngestionRequest,
    Owner,
)


class ConfigStore(Protocol):
    """Read-only access to operator-managed scraping configuration."""

    def get_agenda_configs(self, owner: Owner) -> list[AgendaScrapingConfig]:
        """Enabled agenda configs for an owner."""
        ...

    def get_field_rules(self, owner: Owner) -> list[FieldExtractionRule]:
        """CSS rules for an owner, in stored order."""
        ...

    def get_ai_fields(self, owner: Owner) -> list[AIFieldToggle]:
        """Enabled AI field toggles for an owner."""
        ...

    def get_location_name(self, location_id: str) -> Optional[str]:
        ...


class RequestStore(Protocol):
    """Read/write access to event_from_url ingestion requests."""

    def find_by_source_url(self, url: str) -> Optional[IngestionRequest]:
        ...

    def find_by_event_url(self, url: str) -> Optional[IngestionRequest]:
        """Legacy rows: match event_data.scraping_url or event_data.external_url."""
        ...

    def create_request(
        self,
        source_url: str,
        event_data: EventData,
        location_id: Optional[str] = None,
        location_name: Optional[str] = None,
    ) -> IngestionRequest:
        ...

    def get_event_data(self, request_id: str) -> EventData:
        ...

    def update_event_data(self, request_id: str, event_data: EventData) -> None:
        ...
