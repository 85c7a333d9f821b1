"""
Typed inputs for the six ask tools.

The model sends schema-less JSON; each call is parsed into one of these
variants at dispatch time so tool code works with typed fields. Each variant
also declares whether it is silent (no audit events) and whether it ends
the session.
"""

from __future__ import annotations

import json

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from irclogs.core.constants import (
    DATE_LENGTH,
    DEFAULT_SEARCH_MAX_RESULTS,
    DISPLAY_SUMMARY_PREVIEW,
    OUTPUT_SUMMARY_PREVIEW,
)
from irclogs.core.exceptions import ToolInputError


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


class ToolInput(BaseModel):
    """Base for tool inputs."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    name: ClassVar[str]
    silent: ClassVar[bool] = False
    terminal: ClassVar[bool] = False
    #: Fixed result text for fields that are missing or unusable
    required_messages: ClassVar[dict[str, str]] = {}

    def summary(self) -> str:
        """One-line description for tool-call events."""
        return ""


class SearchInput(ToolInput):
    name: ClassVar[str] = "search"
    required_messages: ClassVar[dict[str, str]] = {
        "pattern": "error: pattern is required",
        "channel": "error: channel is required",
    }

    pattern: str = Field(..., min_length=1)
    channel: str
    date: str | None = None
    from_date: str | None = None
    to_date: str | None = None
    order: str | None = None
    context_after: int | None = Field(default=None, alias="A", ge=0)
    context_before: int | None = Field(default=None, alias="B", ge=0)
    context: int | None = Field(default=None, alias="C", ge=0)
    count_only: bool = Field(default=False, alias="n")
    max_results: int = Field(default=DEFAULT_SEARCH_MAX_RESULTS, alias="c", ge=1)

    @field_validator("date", "from_date", "to_date")
    @classmethod
    def ignore_malformed_date(cls, v: str | None) -> str | None:
        """Dates that are not exactly YYYY-MM-DD long are ignored, not rejected."""
        if v is None or len(v) != DATE_LENGTH:
            return None
        return v

    @property
    def oldest_first(self) -> bool:
        return self.order == "oldest"

    @property
    def effective_after(self) -> int:
        return max(self.context or 0, self.context_after or 0)

    @property
    def effective_before(self) -> int:
        return max(self.context or 0, self.context_before or 0)

    def summary(self) -> str:
        parts = [f"pattern={_quote(self.pattern)}", f"channel={self.channel}"]
        if self.date:
            parts.append(f"date={self.date}")
        if self.from_date:
            parts.append(f"from={self.from_date}")
        if self.to_date:
            parts.append(f"to={self.to_date}")
        if self.order:
            parts.append(f"order={self.order}")
        if self.count_only:
            parts.append("count-only")
        if self.context is not None:
            parts.append(f"C={self.context}")
        return ", ".join(parts)


class CopyInput(ToolInput):
    name: ClassVar[str] = "copy"
    required_messages: ClassVar[dict[str, str]] = {
        "channel": "error: channel is required",
        "date": "error: date (YYYY-MM-DD) is required",
        "lines": "error: lines spec is required",
    }

    channel: str
    date: str = Field(..., min_length=DATE_LENGTH, max_length=DATE_LENGTH)
    lines: str

    def summary(self) -> str:
        return f"{self.channel} {self.date} lines={self.lines}"


class OutputInput(ToolInput):
    name: ClassVar[str] = "output"

    text: str = ""
    clear: bool = False

    def summary(self) -> str:
        return _quote(self.text[:OUTPUT_SUMMARY_PREVIEW])


class DoneInput(ToolInput):
    name: ClassVar[str] = "done"
    terminal: ClassVar[bool] = True
    required_messages: ClassVar[dict[str, str]] = {"title": "error: title is required"}

    title: str = Field(..., min_length=1)

    def summary(self) -> str:
        return f"title={_quote(self.title)}"


class DisplayInput(ToolInput):
    name: ClassVar[str] = "display"
    silent: ClassVar[bool] = True

    text: str = ""

    def summary(self) -> str:
        return self.text[:DISPLAY_SUMMARY_PREVIEW]


class AbortInput(ToolInput):
    name: ClassVar[str] = "abort"
    silent: ClassVar[bool] = True
    terminal: ClassVar[bool] = True


TOOL_INPUT_TYPES: dict[str, type[ToolInput]] = {
    cls.name: cls for cls in (SearchInput, CopyInput, OutputInput, DoneInput, DisplayInput, AbortInput)
}


def _format_validation_error(cls: type[ToolInput], exc: ValidationError) -> str:
    error = exc.errors()[0]
    loc = error.get("loc") or ()
    if not loc:
        return f"error: invalid input: {error['msg']}"
    # loc names aliased fields by their wire name ("C")
    label = str(loc[0])
    if label in cls.required_messages:
        return cls.required_messages[label]
    return f"error: {label}: {error['msg']}"


def parse_tool_input(tool_name: str, raw: Any) -> ToolInput:
    """Parse raw tool-call arguments into the tool's typed input.

    Raises:
        KeyError: Unknown tool name.
        ToolInputError: Arguments do not fit the tool's input shape.
    """
    cls = TOOL_INPUT_TYPES[tool_name]
    # Non-object arguments behave like an empty object
    data = raw if isinstance(raw, dict) else {}
    try:
        return cls.model_validate(data)
    except ValidationError as e:
        raise ToolInputError(_format_validation_error(cls, e)) from e


def summarize_raw_input(raw: Any) -> str:
    """Fallback summary for unknown tools and unparseable input: compact JSON."""
    return json.dumps(raw, ensure_ascii=False, separators=(",", ":"), default=str)


__all__ = [
    "TOOL_INPUT_TYPES",
    "AbortInput",
    "CopyInput",
    "DisplayInput",
    "DoneInput",
    "OutputInput",
    "SearchInput",
    "ToolInput",
    "parse_tool_input",
    "summarize_raw_input",
]
