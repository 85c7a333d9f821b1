"""
Ask session protocol loop.

Drives the model turn by turn: send the transcript, then either finish
(``end_turn``), run the requested tools in order and loop (``tool_use``), or
fail on anything else. A session emits at most one terminal event (Done or
Error) and it is always the last event.
"""

from __future__ import annotations

import asyncio
import uuid

from collections.abc import Callable
from dataclasses import dataclass, field

from irclogs.core.channels import ChannelTree
from irclogs.core.constants import MAX_TRANSCRIPT_CHARS, AiSettings
from irclogs.core.exceptions import ContextLimitError, ModelAPIError, ProtocolError
from irclogs.core.prompts import build_system_prompt
from irclogs.integrations.messages_api import MessagesClient
from irclogs.models.api_models import MessagesResponse
from irclogs.models.event_models import AskEvent, ErrorEvent, ToolCallEvent, ToolResultEvent
from irclogs.models.transcript_models import ToolResultBlock, Transcript
from irclogs.tools.dispatch import ToolDispatcher
from irclogs.tools.output_buffer import OutputBuffer
from irclogs.tools.registry import build_tool_definitions
from irclogs.utils.logger import logger
from irclogs.utils.metrics import model_tokens_total

NO_RESULTS_MESSAGE = "no results found"
BUDGET_EXHAUSTED_MESSAGE = "tool call budget exhausted"

# Session outcomes, used as metric labels
OUTCOME_DONE = "done"
OUTCOME_ERROR = "error"
OUTCOME_STOPPED = "stopped"
OUTCOME_BUDGET_EXHAUSTED = "budget_exhausted"


@dataclass
class AskSession:
    """State of one ask run. Owned by a single task for its whole life."""

    query: str
    channel: str
    sink: Callable[[AskEvent], None]
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    transcript: Transcript = field(init=False)
    buffer: OutputBuffer = field(default_factory=OutputBuffer)
    turns: int = 0
    terminal_event: AskEvent | None = None

    def __post_init__(self) -> None:
        self.transcript = Transcript(self.query)

    @property
    def finished(self) -> bool:
        return self.terminal_event is not None

    def emit(self, event: AskEvent) -> None:
        """Push an event to the stream; nothing is emitted after a terminal event."""
        if self.terminal_event is not None:
            logger.warning(f"Dropped {event.type} event after session end", session_id=self.id)
            return
        if event.is_terminal:
            self.terminal_event = event
        self.sink(event)


class AskService:
    """Runs ask sessions against the model and the shared channel tree."""

    def __init__(
        self,
        client: MessagesClient,
        channels: ChannelTree,
        ai: AiSettings,
        base_path: str = "",
    ):
        self.client = client
        self.channels = channels
        self.ai = ai
        self.base_path = base_path
        self.tools = build_tool_definitions()

    def artifact_url(self, slug: str) -> str:
        """Browsable URL of a saved artifact."""
        if self.ai.base_url:
            return f"{self.ai.base_url}/output/{slug}.html"
        return f"{self.base_path}/ask/output/{slug}.html"

    def new_session(self, query: str, channel: str, sink: Callable[[AskEvent], None]) -> AskSession:
        return AskSession(query=query, channel=channel, sink=sink)

    async def run(self, session: AskSession) -> str:
        """Run the session to completion and return its outcome label."""
        system_prompt = build_system_prompt(self.channels, self.ai.system_prompt)
        dispatcher = ToolDispatcher(
            channels=self.channels,
            buffer=session.buffer,
            output_dir=self.ai.output_dir,
            artifact_url=self.artifact_url,
            emit=session.emit,
            session_id=session.id,
        )
        logger.info(
            f"Ask session started: {session.query[:80]!r} in {session.channel}",
            session_id=session.id,
        )

        for turn in range(1, self.ai.max_tool_calls + 1):
            session.turns = turn
            try:
                response = await self._request(session, system_prompt)
            except ModelAPIError as e:
                logger.error(f"Ask session failed on turn {turn}: {e}", session_id=session.id)
                session.emit(ErrorEvent(message=str(e)))
                return OUTCOME_ERROR

            self._record_usage(session, turn, response)

            if response.stop_reason == "end_turn":
                return await self._finish_end_turn(session, dispatcher, response)

            if response.stop_reason != "tool_use":
                message = f"unexpected stop_reason: {response.stop_reason or ''}"
                logger.error(f"Ask session failed on turn {turn}: {message}", session_id=session.id)
                session.emit(ErrorEvent(message=message))
                return OUTCOME_ERROR

            if not response.tool_uses():
                error = ProtocolError("invalid API response: tool_use stop without tool calls")
                logger.error(str(error), session_id=session.id)
                session.emit(ErrorEvent(message=str(error)))
                return OUTCOME_ERROR

            outcome = await self._run_tools(session, dispatcher, response)
            if outcome is not None:
                return outcome

        logger.warning(
            f"Ask session used all {self.ai.max_tool_calls} turns without finishing",
            session_id=session.id,
        )
        if self.ai.budget_exhausted_error:
            session.emit(ErrorEvent(message=BUDGET_EXHAUSTED_MESSAGE))
        return OUTCOME_BUDGET_EXHAUSTED

    async def _request(self, session: AskSession, system_prompt: str) -> MessagesResponse:
        if session.transcript.serialized_size() > MAX_TRANSCRIPT_CHARS:
            raise ContextLimitError()
        return await self.client.create_message(system_prompt, session.transcript.to_wire(), self.tools)

    def _record_usage(self, session: AskSession, turn: int, response: MessagesResponse) -> None:
        usage = response.usage
        if usage is None:
            return
        cache_creation = usage.cache_creation_input_tokens or 0
        cache_read = usage.cache_read_input_tokens or 0
        logger.log_session_turn(
            session.id,
            turn,
            response.stop_reason or "",
            input_tokens=usage.input_tokens,
            cache_creation_tokens=cache_creation,
            cache_read_tokens=cache_read,
            output_tokens=usage.output_tokens,
        )
        for token_type, count in (
            ("input", usage.input_tokens),
            ("output", usage.output_tokens),
            ("cache_creation", cache_creation),
            ("cache_read", cache_read),
        ):
            if count:
                model_tokens_total.labels(model=self.ai.model, type=token_type).inc(count)

    async def _finish_end_turn(
        self, session: AskSession, dispatcher: ToolDispatcher, response: MessagesResponse
    ) -> str:
        text = response.text()
        if text.strip():
            session.buffer.append(text + "\n")

        if session.buffer.is_blank():
            session.emit(ErrorEvent(message=NO_RESULTS_MESSAGE))
            return OUTCOME_ERROR

        loop = asyncio.get_running_loop()
        outcome = await loop.run_in_executor(None, dispatcher.finish_with_done, session.query)
        if outcome.terminal_event is not None:
            session.emit(outcome.terminal_event)
            return OUTCOME_DONE
        return OUTCOME_STOPPED

    async def _run_tools(
        self, session: AskSession, dispatcher: ToolDispatcher, response: MessagesResponse
    ) -> str | None:
        """Run one turn's tool calls in order; returns an outcome if the session ended."""
        session.transcript.append_assistant(response.content)
        loop = asyncio.get_running_loop()

        results: list[ToolResultBlock] = []
        terminal: AskEvent | None = None
        stop = False
        for block in response.tool_uses():
            call = dispatcher.prepare(block.name, block.input)
            if not call.silent:
                session.emit(ToolCallEvent(name=call.name, input_summary=call.summary))

            # Tools read log files; keep them off the event loop
            outcome = await loop.run_in_executor(None, dispatcher.execute, call)

            if not call.silent:
                session.emit(ToolResultEvent(name=call.name, output_preview=outcome.text))
            results.append(ToolResultBlock(tool_use_id=block.id, content=outcome.text))

            if outcome.stops_session:
                stop = True
                if terminal is None:
                    terminal = outcome.terminal_event

        session.transcript.append_tool_results(results)

        if not stop:
            return None
        if terminal is None:
            return OUTCOME_STOPPED
        session.emit(terminal)
        return OUTCOME_DONE if terminal.type == "done" else OUTCOME_ERROR
