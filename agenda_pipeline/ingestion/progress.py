"""Progress events emitted while an agenda scrape runs.

Streaming clients receive each event as a server-sent event frame; the
non-streaming endpoint folds the same sequence into a `ScrapeSummary`.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProgressEvent(BaseModel):
    """Base event: serialized as `{"type": ..., **fields}`."""

    model_config = ConfigDict(extra="forbid")

    type: str

    def to_sse(self) -> str:
        return f"data: {self.model_dump_json(exclude_none=True)}\n\n"


class StartEvent(ProgressEvent):
    type: Literal["start"] = "start"
    configs: int


class ConfigStartEvent(ProgressEvent):
    type: Literal["config_start"] = "config_start"
    label: str
    url: str


class UrlsDiscoveredEvent(ProgressEvent):
    type: Literal["urls_discovered"] = "urls_discovered"
    count: int
    total: int


class UrlSkippedEvent(ProgressEvent):
    type: Literal["url_skipped"] = "url_skipped"
    url: str


class RequestCreatedEvent(ProgressEvent):
    type: Literal["request_created"] = "request_created"
    url: str
    count: int
    title: str


class RequestEnrichedEvent(ProgressEvent):
    type: Literal["request_enriched"] = "request_enriched"
    url: str
    title: str


class ErrorEvent(ProgressEvent):
    """Scoped to one config or one URL; the run keeps going."""

    type: Literal["error"] = "error"
    error: str
    url: Optional[str] = None


class CompleteEvent(ProgressEvent):
    type: Literal["complete"] = "complete"
    discovered: int
    created: int
    enriched: int
    errors: int


class ScrapeSummary(BaseModel):
    """Aggregate result of a run, built from its progress events."""

    configs: int = 0
    discovered_urls: int = 0
    created_requests: int = 0
    enriched_requests: int = 0
    errors: int = 0
    skipped_urls: int = 0
    error_details: list[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.errors == 0

    def apply(self, event: ProgressEvent) -> None:
        if isinstance(event, StartEvent):
            self.configs = event.configs
        elif isinstance(event, UrlSkippedEvent):
            self.skipped_urls += 1
        elif isinstance(event, ErrorEvent):
            self.error_details.append(event.error)
        elif isinstance(event, CompleteEvent):
            self.discovered_urls = event.discovered
            self.created_requests = event.created
            self.enriched_requests = event.enriched
            self.errors = event.errors

    def to_response(self) -> dict:
        """JSON body of the non-streaming endpoint."""
        body = {
            "success": self.success,
            "message": "Agenda scraping finished",
            "configs": self.configs,
            "discoveredUrls": self.discovered_urls,
            "createdRequests": self.created_requests,
            "enrichedRequests": self.enriched_requests,
            "errors": self.errors,
        }
        if self.errors:
            body["errorDetails"] = self.error_details
        return body
