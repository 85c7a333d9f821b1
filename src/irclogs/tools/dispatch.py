"""
Tool dispatch for one ask session.

Every tool returns text that goes back to the model as a tool result.
Tool-level failures (bad input, unknown channel, missing log) become that
text and the session continues. ``done`` and ``abort`` end the session; their
terminal event is handed back to the caller, which emits it after the turn's
last tool result so it is always the final event.
"""

from __future__ import annotations

import re
import time

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from irclogs.core.channels import ChannelTree
from irclogs.core.exceptions import ToolError, ToolInputError
from irclogs.models.event_models import AskEvent, DisplayEvent, DoneEvent, ErrorEvent
from irclogs.models.tool_models import (
    TOOL_INPUT_TYPES,
    AbortInput,
    CopyInput,
    DisplayInput,
    DoneInput,
    OutputInput,
    SearchInput,
    ToolInput,
    parse_tool_input,
    summarize_raw_input,
)
from irclogs.tools.line_spec import parse_line_spec
from irclogs.tools.output_buffer import TRUNCATION_NOTE, OutputBuffer, artifact_filename, write_artifact
from irclogs.tools.search import SearchParams, run_search
from irclogs.utils.logger import logger
from irclogs.utils.metrics import ask_tool_call_duration_seconds, ask_tool_calls_total

ABORT_MESSAGE = "no relevant results found"
ALREADY_FINISHED = "ignored: session already finished"


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A tool-use request, parsed and ready to run."""

    name: str
    summary: str
    silent: bool
    parsed: ToolInput | None = None
    #: Result text when the input could not be parsed or the tool is unknown
    rejection: str | None = None


@dataclass(slots=True)
class ToolOutcome:
    """Result of running one tool."""

    text: str
    terminal_event: AskEvent | None = None
    stops_session: bool = False


class ToolDispatcher:
    """Runs the ask tools against the channel tree and one session's output buffer.

    Args:
        channels: Shared, read-only channel tree
        buffer: The session's output buffer
        output_dir: Directory receiving saved artifacts
        artifact_url: Maps an artifact slug to its browsable URL
        emit: Pushes an event to the session stream immediately (used by display)
        session_id: Correlation id for logs
    """

    def __init__(
        self,
        channels: ChannelTree,
        buffer: OutputBuffer,
        output_dir: Path,
        artifact_url: Callable[[str], str],
        emit: Callable[[AskEvent], None],
        session_id: str = "",
    ):
        self.channels = channels
        self.buffer = buffer
        self.output_dir = output_dir
        self.artifact_url = artifact_url
        self.emit = emit
        self.session_id = session_id
        self.finished = False

    def prepare(self, name: str, raw_input: Any) -> ToolCall:
        """Parse a tool-use request into a typed call."""
        try:
            parsed = parse_tool_input(name, raw_input)
        except KeyError:
            return ToolCall(
                name=name,
                summary=summarize_raw_input(raw_input),
                silent=False,
                rejection=f"unknown tool: {name}",
            )
        except ToolInputError as e:
            return ToolCall(
                name=name,
                summary=summarize_raw_input(raw_input),
                silent=TOOL_INPUT_TYPES[name].silent,
                rejection=str(e),
            )
        return ToolCall(name=name, summary=parsed.summary(), silent=parsed.silent, parsed=parsed)

    def execute(self, call: ToolCall) -> ToolOutcome:
        """Run a prepared call. Never raises for tool-level failures."""
        start = time.perf_counter()
        status = "success"
        if call.rejection is not None:
            # A rejected done or abort still ends the session, with no terminal event
            tool_type = TOOL_INPUT_TYPES.get(call.name)
            outcome = ToolOutcome(text=call.rejection, stops_session=tool_type is not None and tool_type.terminal)
            status = "error"
        elif call.parsed is not None and call.parsed.terminal and self.finished:
            outcome = ToolOutcome(text=ALREADY_FINISHED)
        else:
            try:
                outcome = self._run(call)
            except ToolError as e:
                outcome = ToolOutcome(text=str(e))
                status = "error"

        if outcome.stops_session:
            self.finished = True

        duration = time.perf_counter() - start
        ask_tool_calls_total.labels(tool_name=call.name, status=status).inc()
        ask_tool_call_duration_seconds.labels(tool_name=call.name).observe(duration)
        logger.log_tool_call(self.session_id, call.name, call.summary, outcome.text, duration_ms=duration * 1000)
        return outcome

    def dispatch(self, name: str, raw_input: Any) -> ToolOutcome:
        """Prepare and execute in one step (no audit events)."""
        return self.execute(self.prepare(name, raw_input))

    def finish_with_done(self, title: str) -> ToolOutcome:
        """Save the buffer as if the model had called ``done`` with ``title``."""
        return self.execute(ToolCall(name="done", summary="", silent=True, parsed=DoneInput(title=title)))

    def _run(self, call: ToolCall) -> ToolOutcome:
        tool = call.parsed
        if isinstance(tool, SearchInput):
            return ToolOutcome(text=self._search(tool))
        if isinstance(tool, CopyInput):
            return ToolOutcome(text=self._copy(tool))
        if isinstance(tool, OutputInput):
            return ToolOutcome(text=self._output(tool))
        if isinstance(tool, DoneInput):
            return self._done(tool)
        if isinstance(tool, DisplayInput):
            self.emit(DisplayEvent(text=tool.text))
            return ToolOutcome(text="ok")
        if isinstance(tool, AbortInput):
            return ToolOutcome(
                text="aborted",
                terminal_event=ErrorEvent(message=ABORT_MESSAGE),
                stops_session=True,
            )
        raise ToolInputError(f"unknown tool: {call.name}")

    def _search(self, tool: SearchInput) -> str:
        channel = self.channels.resolve(tool.channel)
        try:
            pattern = re.compile(tool.pattern, re.IGNORECASE)
        except re.error as e:
            raise ToolInputError(f"invalid regex: {e}") from e

        params = SearchParams(
            pattern=pattern,
            channel=channel,
            date=tool.date,
            from_date=tool.from_date,
            to_date=tool.to_date,
            order="oldest" if tool.oldest_first else "newest",
            context_before=tool.effective_before,
            context_after=tool.effective_after,
            count_only=tool.count_only,
            max_results=tool.max_results,
        )
        return run_search(params)

    def _copy(self, tool: CopyInput) -> str:
        channel = self.channels.resolve(tool.channel)
        numbers = parse_line_spec(tool.lines)

        try:
            lines = channel.read_lines(tool.date)
        except OSError as e:
            logger.warning(f"Copy failed reading {tool.channel} {tool.date}: {e}", session_id=self.session_id)
            raise ToolError(f"error reading log for {tool.date}") from e

        copied = [lines[n - 1] for n in numbers if n <= len(lines)]
        text = f"--- {tool.channel} {tool.date} ---\n" + "".join(f"{line}\n" for line in copied)
        if self.buffer.append(text):
            return f"copied {len(copied)} lines ({TRUNCATION_NOTE})"
        return f"copied {len(copied)} lines"

    def _output(self, tool: OutputInput) -> str:
        if tool.clear:
            self.buffer.clear()
        if self.buffer.append(tool.text + "\n"):
            return f"appended ({TRUNCATION_NOTE})"
        return "ok"

    def _done(self, tool: DoneInput) -> ToolOutcome:
        slug, filename = artifact_filename(tool.title)
        try:
            path = write_artifact(self.output_dir, filename, self.buffer)
        except OSError as e:
            # The session still ends; no artifact means no done event
            logger.error(
                f"Failed to write artifact {self.output_dir / filename}: {e}",
                session_id=self.session_id,
            )
            return ToolOutcome(text=f"error writing file: {e}", stops_session=True)

        url = self.artifact_url(slug)
        logger.info(f"Saved artifact {path} ({len(self.buffer)} bytes)", session_id=self.session_id)
        return ToolOutcome(
            text=f"saved: {url}",
            terminal_event=DoneEvent(url=url, output=self.buffer.text()),
            stops_session=True,
        )
