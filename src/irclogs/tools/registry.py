"""
Tool registry for the ask assistant.
Defines the tool schemas sent to the model with every request.
"""

from __future__ import annotations

import copy

from typing import Any

from irclogs.core.constants import CACHE_CONTROL_EPHEMERAL

TOOLS: list[dict[str, Any]] = [
    {
        "name": "search",
        "description": "Grep-like search through IRC logs. Returns matching lines with line numbers.",
        "input_schema": {
            "type": "object",
            "properties": {
                "pattern": {"type": "string", "description": "Case-insensitive regex pattern to search for"},
                "channel": {"type": "string", "description": 'Channel path (e.g. "OFTC/#bcachefs-dev")'},
                "date": {"type": "string", "description": "Specific date YYYY-MM-DD to search"},
                "from_date": {"type": "string", "description": "Start of date range YYYY-MM-DD (inclusive)"},
                "to_date": {"type": "string", "description": "End of date range YYYY-MM-DD (inclusive)"},
                "order": {
                    "type": "string",
                    "enum": ["newest", "oldest"],
                    "description": "Search order: newest-first (default) or oldest-first",
                },
                "A": {"type": "integer", "description": "Lines of context after each match"},
                "B": {"type": "integer", "description": "Lines of context before each match"},
                "C": {"type": "integer", "description": "Lines of context before and after each match"},
                "n": {
                    "type": "boolean",
                    "description": "Count-only mode: return match count per date instead of lines",
                },
                "c": {"type": "integer", "description": "Max number of matching lines to return (default 50)"},
            },
            "required": ["pattern", "channel"],
        },
    },
    {
        "name": "copy",
        "description": "Copy specific line ranges from a log file into the output buffer.",
        "input_schema": {
            "type": "object",
            "properties": {
                "channel": {"type": "string", "description": "Channel path"},
                "date": {"type": "string", "description": "Date YYYY-MM-DD"},
                "lines": {"type": "string", "description": 'Line spec: e.g. "1,5,10,20-30,300-320"'},
            },
            "required": ["channel", "date", "lines"],
        },
    },
    {
        "name": "output",
        "description": "Append text to the output buffer (titles, separators, summaries).",
        "input_schema": {
            "type": "object",
            "properties": {
                "text": {"type": "string", "description": "Text to append"},
                "clear": {"type": "boolean", "description": "Clear the buffer before appending"},
            },
            "required": ["text"],
        },
    },
    {
        "name": "done",
        "description": "Save the output buffer to a file and finish the session.",
        "input_schema": {
            "type": "object",
            "properties": {
                "title": {
                    "type": "string",
                    "description": "Title for the output file (used to generate filename slug)",
                },
            },
            "required": ["title"],
        },
    },
    {
        "name": "display",
        "description": "Show a progress message to the user in real-time.",
        "input_schema": {
            "type": "object",
            "properties": {
                "text": {"type": "string", "description": "Message to display"},
            },
            "required": ["text"],
        },
    },
    {
        "name": "abort",
        "description": "Cancel the session (use when the query is unrelated to IRC log search).",
        "input_schema": {
            "type": "object",
            "properties": {},
        },
    },
]


def build_tool_definitions() -> list[dict[str, Any]]:
    """Tool definitions for a request, with the fixed cache marker on the last tool."""
    tools = copy.deepcopy(TOOLS)
    tools[-1]["cache_control"] = dict(CACHE_CONTROL_EPHEMERAL)
    return tools
