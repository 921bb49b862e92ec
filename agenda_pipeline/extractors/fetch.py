"""HTTP fetcher for organizer-controlled agenda and event pages.

Each call opens its own client: nothing is pooled across requests, so the
pipeline stays stateless between runs.
"""

import asyncio
from typing import Awaitable, Callable, Optional

import httpx
from rich.console import Console

from agenda_pipeline.errors import FetchError
from agenda_pipeline.settings import get_fetch_timeout

console = Console()

# Organizer sites are mostly French municipal and venue pages
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)

HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "fr-FR,fr;q=0.9,en-US;q=0.8,en;q=0.7",
}

# Signature shared by the real fetcher and test doubles
Fetch = Callable[[str], Awaitable[str]]


async def fetch_html(
    url: str,
    timeout: Optional[float] = None,
    retries: int = 1,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """GET a page and return its markup.

    Raises:
        FetchError: on network failure or a non-2xx status.
    """
    timeout = timeout if timeout is not None else get_fetch_timeout()

    last_error: Optional[str] = None
    last_status: Optional[int] = None
    for attempt in range(retries):
        try:
            async with httpx.AsyncClient(
                timeout=timeout,
                follow_redirects=True,
                transport=transport,
            ) as client:
                response = await client.get(url, headers=HEADERS)
                last_status = response.status_code
                response.raise_for_status()
                return response.text

        except httpx.TimeoutException:
            last_error = "timeout"
        except httpx.HTTPStatusError as e:
            last_status = e.response.status_code
            last_error = str(e.response.status_code)
            if last_status in (403, 404, 410):
                break  # retrying won't help
        except httpx.ConnectError:
            last_error = "connection"
        except httpx.InvalidURL:
            last_error = "invalid_url"
            break
        except httpx.HTTPError as e:
            last_error = type(e).__name__.lower()

        if attempt < retries - 1:
            await asyncio.sleep(0.5 * (2 ** attempt))

    console.print(f"[dim]Fetch failed for {url}: {last_error}[/dim]")
    if last_error and last_error.isdigit():
        raise FetchError(url, status=last_status)
    raise FetchError(url, status=None, reason=last_error)
