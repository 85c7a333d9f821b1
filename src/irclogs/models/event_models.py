"""
Ask session stream events.
Every event is a tagged payload sent to the client as one Server-Sent Event.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from irclogs.core.constants import (
    EVENT_DISPLAY,
    EVENT_DONE,
    EVENT_ERROR,
    EVENT_TOOL_CALL,
    EVENT_TOOL_RESULT,
)


class AskEvent(BaseModel):
    """Base for session events."""

    type: str

    @property
    def is_terminal(self) -> bool:
        """Done and Error end the stream."""
        return self.type in (EVENT_DONE, EVENT_ERROR)

    def to_json(self) -> str:
        """Convert to JSON for the event stream."""
        json_str: str = self.model_dump_json(exclude={"type"})
        return json_str

    def to_sse(self) -> str:
        """Format as an SSE message: ``event: <type>`` then one ``data:`` line."""
        return f"event: {self.type}\ndata: {self.to_json()}\n\n"


class ToolCallEvent(AskEvent):
    """A non-silent tool is about to run."""

    type: Literal["tool_call"] = EVENT_TOOL_CALL
    name: str
    input_summary: str


class ToolResultEvent(AskEvent):
    """A non-silent tool finished; carries its full result text."""

    type: Literal["tool_result"] = EVENT_TOOL_RESULT
    name: str
    output_preview: str


class DisplayEvent(AskEvent):
    """Progress message the model wants shown to the user."""

    type: Literal["display"] = EVENT_DISPLAY
    text: str


class DoneEvent(AskEvent):
    """The artifact was saved; the session is over."""

    type: Literal["done"] = EVENT_DONE
    url: str
    output: str


class ErrorEvent(AskEvent):
    """The session failed or was aborted."""

    type: Literal["error"] = EVENT_ERROR
    message: str
