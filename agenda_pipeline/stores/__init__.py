"""Persistence collaborators: scraping configs and ingestion requests."""

from pathlib import Path
from typing import Optional

from agenda_pipeline.stores.base import ConfigStore, RequestStore
from agenda_pipeline.stores.local import LocalStore
from agenda_pipeline.stores.supabase import SupabaseStore
from agenda_pipeline.settings import get_store_path


def open_store(backend: Optional[str] = None):
    """Open a store: "supabase", a JSON file path, or the default local file."""
    if backend == "supabase":
        return SupabaseStore()
    return LocalStore(Path(backend) if backend else get_store_path())


__all__ = ["ConfigStore", "RequestStore", "LocalStore", "SupabaseStore", "open_store"]
