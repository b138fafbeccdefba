"""Web fetch tool using httpx."""

from __future__ import annotations

import html
import json
import logging
import re

import httpx
from pydantic import Field

from taskpilot.errors import ToolError
from taskpilot.tools.base import Tool, ToolParam, ToolSpec

logger = logging.getLogger(__name__)

MAX_LENGTH = 10_000
FETCH_TIMEOUT = 30.0

_SKIPPED_BLOCKS = re.compile(
    r"<(head|script|style|nav|footer|header)\b[^>]*>.*?</\1\s*>",
    re.IGNORECASE | re.DOTALL,
)
_TAGS = re.compile(r"<[^>]+>")
_BLANK_LINES = re.compile(r"\n\s*\n+")


class WebFetchParams(ToolParam):
    url: str = Field(description="The URL to fetch")
    max_length: int = Field(default=0, ge=0, description=f"Maximum length of the output (default {MAX_LENGTH})")
    start_index: int = Field(default=0, ge=0, description="Character offset to start the output from")
    raw: bool = Field(default=False, description="Return the body without any conversion")


def html_to_text(body: str) -> str:
    text = _SKIPPED_BLOCKS.sub("", body)
    text = _TAGS.sub("", text)
    text = html.unescape(text)
    return _BLANK_LINES.sub("\n\n", text).strip()


def format_response(params: WebFetchParams, content_type: str, body: str) -> str:
    mime = content_type.split(";", 1)[0].strip().lower()
    if params.raw or mime == "text/plain":
        text = body
    elif mime == "application/json":
        try:
            text = "```json\n" + json.dumps(json.loads(body), indent=2) + "\n```"
        except ValueError:
            text = body
    else:
        text = html_to_text(body)

    max_length = params.max_length or MAX_LENGTH
    if 0 < params.start_index < len(text):
        text = text[params.start_index:]
    return text[:max_length]


async def web_fetch(params: WebFetchParams, client: httpx.AsyncClient | None = None) -> str:
    logger.info("Perform web fetch '%s'", params.url)
    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=FETCH_TIMEOUT, follow_redirects=True)
    try:
        response = await http.get(params.url)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise ToolError(f"Fetch failed: {e}", tool_name="web_fetch") from e
    finally:
        if owns_client:
            await http.aclose()
    content_type = response.headers.get("content-type", "text/html")
    return format_response(params, content_type, response.text)


def create_web_tools(client: httpx.AsyncClient | None = None) -> list[Tool]:
    async def _fetch(params: WebFetchParams) -> str:
        return await web_fetch(params, client)

    return [
        Tool(
            spec=ToolSpec.from_params(
                "web_fetch",
                "Fetch a URL. HTML is converted to plain text, JSON is pretty printed. "
                "Long bodies are truncated; use start_index to page through them.",
                WebFetchParams,
                requires_approval=True,
            ),
            params=WebFetchParams,
            execute=_fetch,
            tags=["web"],
        ),
    ]
