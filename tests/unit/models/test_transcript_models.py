"""Tests for transcript and Messages API response models."""

from __future__ import annotations

import json

from irclogs.models.api_models import MessagesResponse
from irclogs.models.transcript_models import TextBlock, ToolResultBlock, ToolUseBlock, Transcript, UnknownBlock


def _response(*blocks: dict[str, object]) -> MessagesResponse:
    return MessagesResponse.model_validate(
        {"id": "msg_1", "stop_reason": "tool_use", "content": list(blocks), "usage": {"input_tokens": 1}}
    )


class TestMessagesResponse:
    """Tests for response parsing."""

    def test_block_types(self) -> None:
        response = _response(
            {"type": "text", "text": "Looking"},
            {"type": "tool_use", "id": "t1", "name": "search", "input": {"pattern": "x"}},
            {"type": "thinking", "thinking": "hmm", "signature": "sig"},
        )
        assert isinstance(response.content[0], TextBlock)
        assert isinstance(response.content[1], ToolUseBlock)
        assert isinstance(response.content[2], UnknownBlock)
        assert response.text() == "Looking"
        assert [b.id for b in response.tool_uses()] == ["t1"]

    def test_missing_cache_usage_fields(self) -> None:
        response = MessagesResponse.model_validate(
            {"stop_reason": "end_turn", "content": [], "usage": {"input_tokens": 5, "output_tokens": 2}}
        )
        assert response.usage is not None
        assert response.usage.cache_read_input_tokens == 0


class TestTranscript:
    """Tests for Transcript."""

    def test_starts_with_plain_query(self) -> None:
        transcript = Transcript("what broke?")
        assert len(transcript) == 1
        assert transcript.to_wire(cache_breakpoint=False) == [{"role": "user", "content": "what broke?"}]

    def test_breakpoint_on_string_message_promotes_to_block(self) -> None:
        wire = Transcript("q").to_wire()
        assert wire == [
            {"role": "user", "content": [{"type": "text", "text": "q", "cache_control": {"type": "ephemeral"}}]}
        ]

    def test_single_breakpoint_on_last_block(self) -> None:
        transcript = Transcript("q")
        response = _response(
            {"type": "text", "text": "a"},
            {"type": "tool_use", "id": "t1", "name": "display", "input": {"text": "hi"}},
        )
        transcript.append_assistant(response.content)
        transcript.append_tool_results(
            [ToolResultBlock(tool_use_id="t1", content="ok"), ToolResultBlock(tool_use_id="t2", content="ok")]
        )

        wire = transcript.to_wire()
        assert json.dumps(wire).count("cache_control") == 1
        assert wire[-1]["content"][-1]["cache_control"] == {"type": "ephemeral"}
        assert wire[0] == {"role": "user", "content": "q"}

    def test_markers_never_stored(self) -> None:
        transcript = Transcript("q")
        transcript.to_wire()
        transcript.to_wire()
        assert "cache_control" not in json.dumps(transcript.to_wire(cache_breakpoint=False))

    def test_unknown_blocks_round_trip(self) -> None:
        transcript = Transcript("q")
        response = _response(
            {"type": "thinking", "thinking": "hmm", "signature": "sig"},
            {"type": "text", "text": "a", "citations": None},
        )
        transcript.append_assistant(response.content)
        content = transcript.to_wire(cache_breakpoint=False)[1]["content"]
        assert content[0] == {"type": "thinking", "thinking": "hmm", "signature": "sig"}
        assert content[1] == {"type": "text", "text": "a", "citations": None}

    def test_serialized_size_is_compact_json_length(self) -> None:
        transcript = Transcript("héllo")
        expected = len(json.dumps([{"role": "user", "content": "héllo"}], ensure_ascii=False, separators=(",", ":")))
        assert transcript.serialized_size() == expected
