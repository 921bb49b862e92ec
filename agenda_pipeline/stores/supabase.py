"""Supabase-backed config and request store.

A client is created per store instance; callers build a fresh store per run
instead of sharing a module-level client.
"""

from typing import Any, Optional

from rich.console import Console
from supabase import Client, create_client

from agenda_pipeline.models import (
    EVENT_FROM_URL,
    AgendaScrapingConfig,
    AIFieldToggle,
    EventData,
    FieldExtractionRule,
    IngestionRequest,
    Owner,
)
from agenda_pipeline.settings import get_supabase_credentials

console = Console()

AGENDA_CONFIGS_TABLE = "organizer_agenda_scraping_configs"
FIELD_RULES_TABLE = "organizer_scraping_configs"
AI_FIELDS_TABLE = "organizer_ai_fields"
REQUESTS_TABLE = "user_requests"
LOCATIONS_TABLE = "locations"

AGENDA_CONFIG_COLUMNS = (
    "id, organizer_id, location_id, enabled, agenda_url, event_link_selector, "
    "event_link_attribute, next_page_selector, next_page_attribute, max_pages"
)
REQUEST_COLUMNS = "id, request_type, status, source_url, location_id, location_name, requested_by, event_data"


def get_supabase_client() -> Client:
    """Service-role client built from environment credentials."""
    url, key = get_supabase_credentials()
    return create_client(url, key)


def _first(rows: Optional[list[dict[str, Any]]]) -> Optional[dict[str, Any]]:
    return rows[0] if rows else None


class SupabaseStore:
    """ConfigStore + RequestStore over the platform's Postgres tables."""

    def __init__(self, client: Optional[Client] = None):
        self.client = client or get_supabase_client()

    def _owned(self, table: str, columns: str, owner: Owner):
        query = self.client.table(table).select(columns)
        if owner.organizer_id:
            return query.eq("organizer_id", owner.organizer_id)
        return query.eq("location_id", owner.location_id)

    # ConfigStore

    def get_agenda_configs(self, owner: Owner) -> list[AgendaScrapingConfig]:
        result = self._owned(AGENDA_CONFIGS_TABLE, AGENDA_CONFIG_COLUMNS, owner).eq("enabled", True).execute()
        return [AgendaScrapingConfig.model_validate(row) for row in result.data or []]

    def get_field_rules(self, owner: Owner) -> list[FieldExtractionRule]:
        result = self._owned(FIELD_RULES_TABLE, "*", owner).execute()
        rules = []
        for row in result.data or []:
            try:
                rules.append(FieldExtractionRule.model_validate(row))
            except ValueError as e:
                console.print(f"[yellow]Skipping malformed CSS rule {row.get('id')}: {e}[/yellow]")
        return rules

    def get_ai_fields(self, owner: Owner) -> list[AIFieldToggle]:
        query = self._owned(AI_FIELDS_TABLE, "organizer_id, location_id, field_name, enabled, ai_hint", owner)
        other_owner = "location_id" if owner.organizer_id else "organizer_id"
        result = query.eq("enabled", True).is_(other_owner, "null").execute()
        return [AIFieldToggle.model_validate(row) for row in result.data or []]

    def get_location_name(self, location_id: str) -> Optional[str]:
        result = self.client.table(LOCATIONS_TABLE).select("name").eq("id", location_id).limit(1).execute()
        row = _first(result.data)
        return row.get("name") if row else None

    # RequestStore

    def _requests(self):
        return self.client.table(REQUESTS_TABLE).select(REQUEST_COLUMNS).eq("request_type", EVENT_FROM_URL)

    def find_by_source_url(self, url: str) -> Optional[IngestionRequest]:
        result = self._requests().eq("source_url", url).limit(1).execute()
        row = _first(result.data)
        return IngestionRequest.model_validate(row) if row else None

    def find_by_event_url(self, url: str) -> Optional[IngestionRequest]:
        # JSON path filters hit the expression indexes on event_data
        for column in ("event_data->>scraping_url", "event_data->>external_url"):
            result = self._requests().eq(column, url).limit(1).execute()
            row = _first(result.data)
            if row:
                return IngestionRequest.model_validate(row)
        return None

    def create_request(
        self,
        source_url: str,
        event_data: EventData,
        location_id: Optional[str] = None,
        location_name: Optional[str] = None,
    ) -> IngestionRequest:
        result = self.client.table(REQUESTS_TABLE).insert({
            "request_type": EVENT_FROM_URL,
            "status": "pending",
            "source_url": source_url,
            "location_id": location_id,
            "location_name": location_name,
            "requested_by": None,
            "event_data": event_data.model_dump(exclude_none=True),
        }).execute()
        row = _first(result.data)
        if not row:
            raise RuntimeError(f"Insert returned no row for {source_url}")
        return IngestionRequest.model_validate(row)

    def get_event_data(self, request_id: str) -> EventData:
        result = self.client.table(REQUESTS_TABLE).select("event_data").eq("id", request_id).limit(1).execute()
        row = _first(result.data)
        if row is None:
            raise KeyError(f"Unknown request {request_id}")
        return EventData.model_validate(row.get("event_data") or {})

    def update_event_data(self, request_id: str, event_data: EventData) -> None:
        self.client.table(REQUESTS_TABLE).update(
            {"event_data": event_data.model_dump(exclude_none=True)}
        ).eq("id", request_id).execute()
