"""Agenda ingestion: discovery, dedupe, request creation and enrichment."""

from agenda_pipeline.ingestion.orchestrator import (
    AgendaIngestion,
    load_agenda_configs,
    scrape_agenda,
    stream_agenda_scrape,
)
from agenda_pipeline.ingestion.progress import ProgressEvent, ScrapeSummary

__all__ = [
    "AgendaIngestion",
    "load_agenda_configs",
    "scrape_agenda",
    "stream_agenda_scrape",
    "ProgressEvent",
    "ScrapeSummary",
]
