"""HTTP surface for agenda scraping.

Endpoints:
- POST /api/organizer/scrape-agenda         run a scrape, return the summary
- POST /api/organizer/scrape-agenda-stream  same run, streamed as SSE
- POST /api/events/scrape                   single-page extraction preview (admin)
- GET  /health
"""

import asyncio
import time
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel
from rich.console import Console

from agenda_pipeline import __version__
from agenda_pipeline.api.auth import (
    Authorizer,
    SupabaseAuthorizer,
    authenticate,
    authorize_owner,
    require_admin,
)
from agenda_pipeline.enrichers.llm import CompletionFn, get_completion_fn
from agenda_pipeline.errors import AuthorizationError, ConfigNotFoundError
from agenda_pipeline.extractors.fetch import Fetch, fetch_html
from agenda_pipeline.extractors.pipeline import scrape_event_page
from agenda_pipeline.ingestion import load_agenda_configs, scrape_agenda, stream_agenda_scrape
from agenda_pipeline.ingestion.progress import ErrorEvent
from agenda_pipeline.models import Owner
from agenda_pipeline.settings import get_store_backend
from agenda_pipeline.stores import open_store

console = Console()

app = FastAPI(
    title="Agenda Pipeline",
    description="Agenda discovery and event extraction for organizers and venues",
    version=__version__,
)

_start_time = time.time()

# Strong references to in-flight streamed runs
_background_tasks: set = set()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}


class AgendaScrapeBody(BaseModel):
    organizer_id: Optional[str] = None
    location_id: Optional[str] = None


class AgendaStreamBody(AgendaScrapeBody):
    max_events: Optional[int] = None


class EventScrapeBody(BaseModel):
    url: str
    organizer_id: Optional[str] = None
    location_id: Optional[str] = None


# Dependencies, overridable in tests


def get_store():
    """Config and request store; both protocols live on one object."""
    return open_store(get_store_backend())


def get_authorizer() -> Authorizer:
    return SupabaseAuthorizer()


def get_fetch() -> Fetch:
    return fetch_html


def get_completion() -> Optional[CompletionFn]:
    return get_completion_fn()


@app.exception_handler(AuthorizationError)
async def authorization_error_handler(request, exc: AuthorizationError):
    return JSONResponse({"error": str(exc)}, status_code=exc.status)


@app.exception_handler(ConfigNotFoundError)
async def config_not_found_handler(request, exc: ConfigNotFoundError):
    return JSONResponse({"error": str(exc)}, status_code=404)


def _owner_from(body: AgendaScrapeBody) -> Owner:
    if not body.organizer_id and not body.location_id:
        raise HTTPException(status_code=400, detail="organizer_id or location_id is required")
    return Owner(organizer_id=body.organizer_id, location_id=body.location_id)


@app.get("/health")
async def health_check():
    """Simple health check endpoint."""
    return {
        "status": "healthy",
        "service": "agenda-pipeline",
        "version": __version__,
        "uptime_seconds": int(time.time() - _start_time),
    }


@app.post("/api/organizer/scrape-agenda")
async def scrape_agenda_endpoint(
    body: AgendaScrapeBody,
    authorization: Optional[str] = Header(None),
    store=Depends(get_store),
    authorizer: Authorizer = Depends(get_authorizer),
    fetch: Fetch = Depends(get_fetch),
    complete: Optional[CompletionFn] = Depends(get_completion),
):
    """Scrape every enabled agenda of an owner and return the run summary."""
    user = await authenticate(authorizer, authorization)
    owner = _owner_from(body)
    await authorize_owner(authorizer, user, owner)

    console.print(f"[cyan]Agenda scrape requested for {owner.label}[/cyan]")
    summary = await scrape_agenda(owner, store, store, fetch=fetch, complete=complete)
    return summary.to_response()


@app.post("/api/organizer/scrape-agenda-stream")
async def scrape_agenda_stream_endpoint(
    body: AgendaStreamBody,
    authorization: Optional[str] = Header(None),
    store=Depends(get_store),
    authorizer: Authorizer = Depends(get_authorizer),
    fetch: Fetch = Depends(get_fetch),
    complete: Optional[CompletionFn] = Depends(get_completion),
):
    """Same run as scrape-agenda, streamed as server-sent events."""
    user = await authenticate(authorizer, authorization)
    owner = _owner_from(body)
    await authorize_owner(authorizer, user, owner)

    # Loaded before streaming so a missing config is a plain 404
    configs = await load_agenda_configs(owner, store)
    console.print(f"[cyan]Streaming agenda scrape for {owner.label} ({len(configs)} configs)[/cyan]")

    queue: asyncio.Queue = asyncio.Queue()

    async def produce():
        try:
            async for event in stream_agenda_scrape(
                configs, store, store, max_events=body.max_events, fetch=fetch, complete=complete
            ):
                await queue.put(event)
        except Exception as e:
            console.print(f"[red]Agenda stream aborted: {e}[/red]")
            await queue.put(ErrorEvent(error=str(e)))
        finally:
            await queue.put(None)

    # The run outlives a client that disconnects mid-stream
    task = asyncio.create_task(produce())
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)

    async def event_stream():
        while True:
            event = await queue.get()
            if event is None:
                break
            yield event.to_sse()

    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=SSE_HEADERS)


@app.post("/api/events/scrape")
async def scrape_event_endpoint(
    body: EventScrapeBody,
    authorization: Optional[str] = Header(None),
    store=Depends(get_store),
    authorizer: Authorizer = Depends(get_authorizer),
    fetch: Fetch = Depends(get_fetch),
    complete: Optional[CompletionFn] = Depends(get_completion),
):
    """Preview the extraction of one event page without persisting it."""
    user = await authenticate(authorizer, authorization)
    require_admin(user)

    owner = None
    if body.organizer_id or body.location_id:
        owner = Owner(organizer_id=body.organizer_id, location_id=body.location_id)

    result = await scrape_event_page(body.url, owner=owner, config_store=store, fetch=fetch, complete=complete)
    if not result.ok:
        return JSONResponse(
            {"success": False, "error": result.error, "metadata": result.metadata},
            status_code=result.status or 500,
        )

    return {
        "success": True,
        "data": result.data.model_dump(exclude_none=True),
        "metadata": result.metadata,
    }
