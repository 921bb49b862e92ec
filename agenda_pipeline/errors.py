"""Exceptions raised across the pipeline."""

from typing import Optional


class PipelineError(Exception):
    """Base class for pipeline errors."""


class FetchError(PipelineError):
    """A page could not be fetched (network failure or non-2xx response)."""

    def __init__(self, url: str, status: Optional[int] = None, reason: Optional[str] = None):
        self.url = url
        self.status = status
        self.reason = reason or (str(status) if status else "unknown")
        if status:
            message = f"HTTP {status} for {url}"
        else:
            message = f"Failed to fetch {url}: {self.reason}"
        super().__init__(message)


class ExtractionError(PipelineError):
    """Extraction of a single event page failed."""


class LLMError(ExtractionError):
    """The language model provider returned an error or an unusable envelope."""


class ConfigNotFoundError(PipelineError):
    """No enabled agenda configuration exists for the requested owner."""


class AuthorizationError(PipelineError):
    """The caller is not allowed to trigger a scrape for this owner."""

    def __init__(self, message: str, status: int = 403):
        self.status = status
        super().__init__(message)
