"""FastAPI application exposing agenda scraping."""

from agenda_pipeline.api.app import app

__all__ = ["app"]
