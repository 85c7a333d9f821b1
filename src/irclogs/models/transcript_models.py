"""
Conversation transcript models for the Messages API.

The transcript is append-only and never stores prompt-cache markers. The
single breakpoint on the last content block is added when the transcript is
serialized for a request.
"""

from __future__ import annotations

import json

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from irclogs.core.constants import CACHE_CONTROL_EPHEMERAL


class _Block(BaseModel):
    # Unknown fields (citations, signatures...) round-trip verbatim
    model_config = ConfigDict(extra="allow")


class TextBlock(_Block):
    type: Literal["text"] = "text"
    text: str


class ToolUseBlock(_Block):
    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: Any = Field(default_factory=dict)


class ToolResultBlock(_Block):
    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: str


class UnknownBlock(_Block):
    """Any block type this service does not interpret (thinking, server tools...)."""

    type: str

    @field_validator("type")
    @classmethod
    def reject_known_types(cls, v: str) -> str:
        """A known type landing here failed its own model, so it is malformed."""
        if v in ("text", "tool_use", "tool_result"):
            raise ValueError(f"malformed {v} block")
        return v


ContentBlock = Annotated[
    TextBlock | ToolUseBlock | ToolResultBlock | UnknownBlock,
    Field(union_mode="left_to_right"),
]


class Message(BaseModel):
    """One transcript message."""

    role: Literal["user", "assistant"]
    content: str | list[ContentBlock]

    def to_wire(self) -> dict[str, Any]:
        if isinstance(self.content, str):
            return {"role": self.role, "content": self.content}
        return {"role": self.role, "content": [block.model_dump(mode="json") for block in self.content]}


class Transcript:
    """Ordered, append-only message history of one ask session."""

    def __init__(self, query: str):
        self.messages: list[Message] = [Message(role="user", content=query)]

    def append_assistant(self, blocks: list[Any]) -> None:
        """Append the assistant's content blocks exactly as received."""
        self.messages.append(Message(role="assistant", content=list(blocks)))

    def append_tool_results(self, results: list[ToolResultBlock]) -> None:
        self.messages.append(Message(role="user", content=list(results)))

    def __len__(self) -> int:
        return len(self.messages)

    def to_wire(self, cache_breakpoint: bool = True) -> list[dict[str, Any]]:
        """Serialize for a request.

        With ``cache_breakpoint`` the last content block of the final message
        carries the only ``cache_control`` marker; a plain-string message is
        promoted to a single text block to carry it.
        """
        wire = [message.to_wire() for message in self.messages]
        if not cache_breakpoint or not wire:
            return wire

        last = wire[-1]
        if isinstance(last["content"], str):
            last["content"] = [{"type": "text", "text": last["content"]}]
        if last["content"]:
            last["content"][-1]["cache_control"] = dict(CACHE_CONTROL_EPHEMERAL)
        return wire

    def serialized_size(self) -> int:
        """Length in characters of the compact JSON transcript, without cache markers."""
        payload = self.to_wire(cache_breakpoint=False)
        return len(json.dumps(payload, ensure_ascii=False, separators=(",", ":")))
