"""JSON-file store for scraping configs and ingestion requests.

Useful for local runs and tests. Passing `path=None` keeps everything in
memory.
"""

import json
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console

from agenda_pipeline.models import (
    AgendaScrapingConfig,
    AIFieldToggle,
    EventData,
    FieldExtractionRule,
    IngestionRequest,
    Owner,
)

console = Console()


class LocalStore:
    """Config store and request store backed by a single JSON document."""

    def __init__(self, path: Optional[Path] = None):
        self.path = path
        self.agenda_configs: list[AgendaScrapingConfig] = []
        self.field_rules: list[FieldExtractionRule] = []
        self.ai_fields: list[AIFieldToggle] = []
        self.locations: dict[str, str] = {}
        self._requests: dict[str, IngestionRequest] = {}
        # event_data.scraping_url / external_url -> request id
        self._event_url_index: dict[str, str] = {}
        self._load()

    def _load(self) -> None:
        """Load store from disk."""
        if self.path is None or not self.path.exists():
            return
        try:
            with open(self.path) as f:
                data = json.load(f)
            self.agenda_configs = [AgendaScrapingConfig.model_validate(c) for c in data.get("agenda_configs", [])]
            self.field_rules = [FieldExtractionRule.model_validate(r) for r in data.get("field_rules", [])]
            self.ai_fields = [AIFieldToggle.model_validate(t) for t in data.get("ai_fields", [])]
            self.locations = dict(data.get("locations", {}))
            for raw in data.get("requests", []):
                self._index(IngestionRequest.model_validate(raw))
            console.print(
                f"[dim]Loaded {len(self.agenda_configs)} agenda configs and "
                f"{len(self._requests)} requests from {self.path}[/dim]"
            )
        except (json.JSONDecodeError, ValueError) as e:
            console.print(f"[yellow]Failed to load store {self.path}: {e}[/yellow]")

    def _save(self) -> None:
        """Save store to disk."""
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump({
                "updated_at": datetime.now().timestamp(),
                "agenda_configs": [c.model_dump() for c in self.agenda_configs],
                "field_rules": [r.model_dump() for r in self.field_rules],
                "ai_fields": [t.model_dump() for t in self.ai_fields],
                "locations": self.locations,
                "requests": [r.model_dump() for r in self._requests.values()],
            }, f, indent=2, ensure_ascii=False)

    def _index(self, request: IngestionRequest) -> None:
        self._requests[request.id] = request
        for url in (request.event_data.scraping_url, request.event_data.external_url):
            if url:
                self._event_url_index.setdefault(url, request.id)

    # Operator-side writes

    def add_agenda_config(self, config: AgendaScrapingConfig) -> AgendaScrapingConfig:
        if not config.id:
            config.id = str(uuid.uuid4())
        self.agenda_configs.append(config)
        self._save()
        return config

    def add_field_rule(self, rule: FieldExtractionRule) -> FieldExtractionRule:
        if not rule.id:
            rule.id = str(uuid.uuid4())
        self.field_rules.append(rule)
        self._save()
        return rule

    def add_ai_field(self, toggle: AIFieldToggle) -> AIFieldToggle:
        self.ai_fields.append(toggle)
        self._save()
        return toggle

    def add_location(self, location_id: str, name: str) -> None:
        self.locations[location_id] = name
        self._save()

    # ConfigStore

    def get_agenda_configs(self, owner: Owner) -> list[AgendaScrapingConfig]:
        return [c for c in self.agenda_configs if c.enabled and c.belongs_to(owner)]

    def get_field_rules(self, owner: Owner) -> list[FieldExtractionRule]:
        return [r for r in self.field_rules if r.belongs_to(owner)]

    def get_ai_fields(self, owner: Owner) -> list[AIFieldToggle]:
        return [t for t in self.ai_fields if t.enabled and t.belongs_to(owner)]

    def get_location_name(self, location_id: str) -> Optional[str]:
        return self.locations.get(location_id)

    # RequestStore

    def find_by_source_url(self, url: str) -> Optional[IngestionRequest]:
        for request in self._requests.values():
            if request.source_url == url:
                return request
        return None

    def find_by_event_url(self, url: str) -> Optional[IngestionRequest]:
        request_id = self._event_url_index.get(url)
        return self._requests.get(request_id) if request_id else None

    def create_request(
        self,
        source_url: str,
        event_data: EventData,
        location_id: Optional[str] = None,
        location_name: Optional[str] = None,
    ) -> IngestionRequest:
        request = IngestionRequest(
            id=str(uuid.uuid4()),
            source_url=source_url,
            location_id=location_id,
            location_name=location_name,
            event_data=event_data,
            created_at=datetime.now().timestamp(),
        )
        self._index(request)
        self._save()
        return request

    def get_event_data(self, request_id: str) -> EventData:
        request = self._requests.get(request_id)
        if request is None:
            raise KeyError(f"Unknown request {request_id}")
        return request.event_data.model_copy(deep=True)

    def update_event_data(self, request_id: str, event_data: EventData) -> None:
        request = self._requests.get(request_id)
        if request is None:
            raise KeyError(f"Unknown request {request_id}")
        request.event_data = event_data
        self._index(request)
        self._save()

    # Reporting

    def get_requests(self) -> list[IngestionRequest]:
        return list(self._requests.values())

    def stats(self) -> dict:
        """Request counts by status and owner."""
        requests = self.get_requests()
        by_status: dict[str, int] = {}
        by_owner: dict[str, int] = {}
        enriched = 0
        for request in requests:
            by_status[request.status] = by_status.get(request.status, 0) + 1
            data = request.event_data
            owner = f"organizer:{data.organizer_id}" if data.organizer_id else f"location:{data.location_id}"
            by_owner[owner] = by_owner.get(owner, 0) + 1
            if data.title or data.external_url:
                enriched += 1

        return {
            "total": len(requests),
            "enriched": enriched,
            "unenriched": len(requests) - enriched,
            "by_status": by_status,
            "by_owner": by_owner,
            "agenda_configs": len(self.agenda_configs),
            "field_rules": len(self.field_rules),
        }
