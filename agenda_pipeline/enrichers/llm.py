"""AI extraction layer: one JSON-mode chat completion per event page.

The model output is untrusted. Anything that doesn't parse degrades to
page-metadata title/description; only provider failures raise.
"""

import json
import re
from typing import Awaitable, Callable, Optional

import httpx
from pydantic import ValidationError
from rich.console import Console

from agenda_pipeline.enrichers.schema import SYSTEM_PROMPT, build_extraction_prompt
from agenda_pipeline.errors import LLMError
from agenda_pipeline.extractors.merge import filter_ai_fields
from agenda_pipeline.extractors.page import PageContext
from agenda_pipeline.models import ScrapedEventData
from agenda_pipeline.settings import get_openai_api_key, get_openai_base_url, get_openai_model

console = Console()

TEMPERATURE = 0.2
MAX_TOKENS = 3000

# (system prompt, user prompt) -> raw message content
CompletionFn = Callable[[str, str], Awaitable[str]]

FENCE_PATTERN = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


async def request_completion(
    system: str,
    prompt: str,
    api_key: str,
    model: Optional[str] = None,
    base_url: Optional[str] = None,
    timeout: float = 120.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Call an OpenAI-compatible chat completions endpoint in JSON mode."""
    payload = {
        "model": model or get_openai_model(),
        "messages": [
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ],
        "temperature": TEMPERATURE,
        "max_tokens": MAX_TOKENS,
        "response_format": {"type": "json_object"},
    }
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {api_key}",
    }
    url = f"{base_url or get_openai_base_url()}/chat/completions"

    try:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=10.0),
            transport=transport,
        ) as client:
            response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPStatusError as e:
        raise LLMError(f"LLM provider returned HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise LLMError(f"LLM provider unreachable: {type(e).__name__}") from e
    except ValueError as e:
        raise LLMError("LLM provider returned a non-JSON envelope") from e

    choices = data.get("choices") or [{}]
    content = (choices[0].get("message") or {}).get("content")
    return content or "{}"


def get_completion_fn() -> Optional[CompletionFn]:
    """Completion callable bound to the current credentials, or None without a key."""
    api_key = get_openai_api_key()
    if not api_key:
        return None

    async def complete(system: str, prompt: str) -> str:
        return await request_completion(system, prompt, api_key=api_key)

    return complete


def extract_json_object(text: str) -> Optional[str]:
    """First balanced top-level {...} block, ignoring braces inside strings."""
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    return None


def parse_json_response(content: Optional[str]) -> Optional[dict]:
    """Parse a model reply that may be fenced or wrapped in prose."""
    if not content:
        return None
    cleaned = FENCE_PATTERN.sub("", content).strip()
    block = extract_json_object(cleaned)
    if block is None:
        return None
    try:
        parsed = json.loads(block)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def clean_ai_output(data: ScrapedEventData) -> ScrapedEventData:
    """Normalise whitespace and tags in model output."""
    if data.title:
        data.title = re.sub(r"\s+", " ", data.title.strip())
    if data.description:
        data.description = re.sub(r"\n{3,}", "\n\n", data.description.strip())
    if data.tags:
        seen: dict[str, None] = {}
        for tag in data.tags:
            tag = tag.strip().lower()
            if tag:
                seen.setdefault(tag, None)
        data.tags = list(seen)
    return data


def metadata_fallback(page: PageContext) -> ScrapedEventData:
    return ScrapedEventData(
        title=page.title.strip() or None,
        description=page.description.strip() or None,
    )


async def extract_with_ai(
    page: PageContext,
    css_data: ScrapedEventData,
    enabled_fields: list[str],
    hints: dict[str, str],
    complete: Optional[CompletionFn],
) -> Optional[ScrapedEventData]:
    """Ask the model for the enabled fields the CSS layer didn't fill.

    Returns None when no completion function is configured.

    Raises:
        LLMError: if the provider call itself fails.
    """
    if complete is None:
        return None

    prompt = build_extraction_prompt(page, enabled_fields, hints, css_data)
    content = await complete(SYSTEM_PROMPT, prompt)

    parsed = parse_json_response(content)
    extracted: Optional[ScrapedEventData] = None
    if parsed is not None:
        try:
            extracted = ScrapedEventData.model_validate(parsed)
        except ValidationError as e:
            console.print(f"[yellow]Unusable AI output for {page.url}: {e.error_count()} errors[/yellow]")
    else:
        console.print(f"[yellow]Could not parse AI output for {page.url}, using page metadata[/yellow]")

    if extracted is None:
        extracted = metadata_fallback(page)

    return filter_ai_fields(css_data, clean_ai_output(extracted), enabled_fields)
