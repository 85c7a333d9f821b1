"""
Messages API response models.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from irclogs.models.transcript_models import ContentBlock, TextBlock, ToolUseBlock


class Usage(BaseModel):
    """Token usage reported for one request."""

    model_config = ConfigDict(extra="ignore")

    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int | None = 0
    cache_read_input_tokens: int | None = 0


class MessagesResponse(BaseModel):
    """Non-streaming Messages API response (only the fields the loop reads)."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    stop_reason: str | None = None
    content: list[ContentBlock] = Field(default_factory=list)
    usage: Usage | None = None

    def text(self) -> str:
        """Concatenated text of all text blocks."""
        return "".join(block.text for block in self.content if isinstance(block, TextBlock))

    def tool_uses(self) -> list[ToolUseBlock]:
        return [block for block in self.content if isinstance(block, ToolUseBlock)]
