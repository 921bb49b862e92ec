"""Agenda crawling: turn a paginated listing into event page URLs."""

from agenda_pipeline.discovery.crawler import discover_event_urls, clamp_max_pages

__all__ = ["discover_event_urls", "clamp_max_pages"]
