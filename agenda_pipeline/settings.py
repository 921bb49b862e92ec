"""Environment-backed settings.

Values are read on every call so a long-running server picks up changes and
no client or credential is cached at import time.
"""

import os
from pathlib import Path
from typing import Optional

DEFAULT_MAX_EVENTS_PER_CONFIG = 50
DEFAULT_FETCH_TIMEOUT = 15.0
DEFAULT_OPENAI_MODEL = "gpt-4o"
DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"

DEFAULT_STORE_PATH = Path(__file__).parent.parent / ".cache" / "agenda_store.json"


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_max_events_per_config() -> int:
    """Max discovered URLs processed per agenda config (<= 0 means no limit)."""
    return _int_env("SCRAPE_EVENTS_MAX_PER_CONFIG", DEFAULT_MAX_EVENTS_PER_CONFIG)


def get_fetch_timeout() -> float:
    raw = os.environ.get("SCRAPE_FETCH_TIMEOUT")
    try:
        return float(raw) if raw else DEFAULT_FETCH_TIMEOUT
    except ValueError:
        return DEFAULT_FETCH_TIMEOUT


def get_openai_api_key() -> Optional[str]:
    """OpenAI key, or None when the AI layer should be skipped."""
    key = os.environ.get("OPENAI_API_KEY", "").strip()
    return key or None


def get_openai_model() -> str:
    return os.environ.get("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL


def get_openai_base_url() -> str:
    return (os.environ.get("OPENAI_BASE_URL") or DEFAULT_OPENAI_BASE_URL).rstrip("/")


def get_supabase_credentials() -> tuple[str, str]:
    """Supabase URL and service-role key from environment."""
    url = os.environ.get("SUPABASE_URL")
    key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY environment variables must be set")
    return url, key


def get_store_path() -> Path:
    raw = os.environ.get("AGENDA_STORE_PATH")
    return Path(raw) if raw else DEFAULT_STORE_PATH


def get_store_backend() -> Optional[str]:
    """Store backend for the API: `supabase`, a JSON file path, or None."""
    return os.environ.get("AGENDA_STORE_BACKEND") or None
