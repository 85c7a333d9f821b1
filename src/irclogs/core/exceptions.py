"""
Exception taxonomy for the ask assistant.

Tool errors never leave the conversation: the dispatcher turns them into
tool-result text so the model can correct itself. Model API errors end the
session with a single error event.
"""

from __future__ import annotations


class ToolError(Exception):
    """Recoverable failure inside a tool; its message becomes the tool result."""


class ToolInputError(ToolError):
    """Missing or malformed tool input, bad channel path, bad regex or bad line spec."""


class LogNotFoundError(ToolError):
    """No log file exists for the requested channel and date."""


class ChannelError(ToolInputError):
    """Channel path does not resolve to an accessible channel."""


class ModelAPIError(Exception):
    """Fatal failure talking to the model API."""


class TransportError(ModelAPIError):
    """Network failure or non-success HTTP status from the model API."""


class ProtocolError(ModelAPIError):
    """Malformed response body or unrecognized stop reason."""


class ContextLimitError(ModelAPIError):
    """Transcript grew past the size guard."""

    def __init__(self, message: str = "context limit reached"):
        super().__init__(message)


__all__ = [
    "ChannelError",
    "ContextLimitError",
    "LogNotFoundError",
    "ModelAPIError",
    "ProtocolError",
    "ToolError",
    "ToolInputError",
    "TransportError",
]
