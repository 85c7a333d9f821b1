"""
Ask endpoints.

``GET /ask`` starts a session and streams its events as Server-Sent Events.
``GET /ask/output/{slug}.html`` serves a saved answer.
"""

from __future__ import annotations

import asyncio
import html
import re

from collections.abc import AsyncIterator

from fastapi import APIRouter
from fastapi.responses import HTMLResponse, StreamingResponse

from irclogs.api.dependencies import AppSettings, AskManager, Channels
from irclogs.api.middleware.exception_handlers import (
    AdmissionRejectedError,
    ArtifactNotFoundError,
    ChannelNotFoundError,
    MissingParameterError,
)
from irclogs.core.exceptions import ChannelError
from irclogs.models.event_models import AskEvent

router = APIRouter()

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")

ARTIFACT_PAGE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
</head>
<body>
<pre>{body}</pre>
</body>
</html>
"""


async def _event_stream(queue: asyncio.Queue[AskEvent | None]) -> AsyncIterator[str]:
    while True:
        event = await queue.get()
        if event is None:
            break
        yield event.to_sse()


@router.get(
    "/ask",
    summary="Ask about the logs",
    description="Run an ask session and stream its progress as Server-Sent Events.",
    responses={
        200: {"description": "Event stream", "content": {"text/event-stream": {}}},
        400: {"description": "Empty query"},
        404: {"description": "Unknown channel"},
        429: {"description": "All ask sessions busy"},
        503: {"description": "Ask not configured"},
    },
    tags=["Ask"],
)
async def ask(manager: AskManager, channels: Channels, q: str = "", channel: str = "") -> StreamingResponse:
    """Start an ask session scoped to a channel."""
    query = q.strip()
    if not query:
        raise MissingParameterError("q")
    if not channel:
        raise MissingParameterError("channel")
    try:
        channels.resolve(channel)
    except ChannelError as e:
        raise ChannelNotFoundError(channel, cause=e) from e

    queue = await manager.start(query, channel)
    if queue is None:
        raise AdmissionRejectedError(manager.gate.capacity)

    return StreamingResponse(
        _event_stream(queue),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )


@router.get(
    "/ask/output/{slug}.html",
    response_class=HTMLResponse,
    summary="Saved answer",
    tags=["Ask"],
)
def ask_output(slug: str, manager: AskManager, settings: AppSettings) -> HTMLResponse:
    """Render a saved answer as a preformatted page."""
    if not SLUG_PATTERN.match(slug):
        raise ArtifactNotFoundError(slug)
    path = manager.service.ai.output_dir / f"{slug}.md"
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError as e:
        raise ArtifactNotFoundError(slug) from e

    page = ARTIFACT_PAGE.format(
        title=html.escape(f"{slug} - {settings.site_title}"),
        body=html.escape(content),
    )
    return HTMLResponse(page)
