"""Tests for admission control and the session manager."""

from __future__ import annotations

import asyncio

from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from irclogs.api.services.admission import AdmissionGate, AskSessionManager
from irclogs.api.services.ask_service import AskService
from irclogs.core.channels import ChannelTree
from irclogs.core.constants import AiSettings
from irclogs.models.event_models import AskEvent, ErrorEvent


async def drain(queue: asyncio.Queue[AskEvent | None]) -> list[AskEvent]:
    events = []
    while (event := await asyncio.wait_for(queue.get(), timeout=5)) is not None:
        events.append(event)
    return events


class TestAdmissionGate:
    """Tests for AdmissionGate."""

    @pytest.mark.asyncio
    async def test_never_waits(self) -> None:
        gate = AdmissionGate(2)
        assert await gate.try_acquire()
        assert await gate.try_acquire()
        assert not await gate.try_acquire()
        assert gate.in_use == 2

        gate.release()
        assert await gate.try_acquire()

    def test_capacity_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            AdmissionGate(0)


class TestAskSessionManager:
    """Tests for AskSessionManager."""

    @pytest.mark.asyncio
    async def test_streams_events_then_end_marker(
        self, scripted_client: Any, channel_tree: ChannelTree, ai_settings: AiSettings
    ) -> None:
        client = scripted_client(
            [
                {
                    "stop_reason": "tool_use",
                    "content": [
                        {"type": "tool_use", "id": "a", "name": "display", "input": {"text": "hi"}},
                        {"type": "tool_use", "id": "b", "name": "abort", "input": {}},
                    ],
                }
            ]
        )
        gate = AdmissionGate(1)
        manager = AskSessionManager(AskService(client, channel_tree, ai_settings), gate)

        queue = await manager.start("q", "OFTC/#example")
        assert queue is not None
        events = await drain(queue)

        assert [e.type for e in events] == ["display", "error"]
        await asyncio.sleep(0)
        assert gate.in_use == 0

    @pytest.mark.asyncio
    async def test_rejects_when_full(self, channel_tree: ChannelTree, ai_settings: AiSettings) -> None:
        release = asyncio.Event()

        async def slow_run(session: Any) -> str:
            await release.wait()
            return "done"

        service = AskService(AsyncMock(), channel_tree, ai_settings)
        manager = AskSessionManager(service, AdmissionGate(1))

        with patch.object(service, "run", side_effect=slow_run):
            first = await manager.start("q1", "OFTC/#example")
            assert first is not None
            assert await manager.start("q2", "OFTC/#example") is None

            release.set()
            assert await drain(first) == []

        # Permit is back once the first session ends
        with patch.object(service, "run", AsyncMock(return_value="done")):
            third = await manager.start("q3", "OFTC/#example")
            assert third is not None
            await drain(third)

    @pytest.mark.asyncio
    async def test_crash_becomes_internal_error(self, channel_tree: ChannelTree, ai_settings: AiSettings) -> None:
        service = AskService(AsyncMock(), channel_tree, ai_settings)
        gate = AdmissionGate(1)
        manager = AskSessionManager(service, gate)

        with patch.object(service, "run", AsyncMock(side_effect=KeyError("boom"))):
            queue = await manager.start("q", "OFTC/#example")
            assert queue is not None
            events = await drain(queue)

        assert events == [ErrorEvent(message="internal error: KeyError")]
        assert gate.in_use == 0

    @pytest.mark.asyncio
    async def test_shutdown_cancels_stuck_sessions(self, channel_tree: ChannelTree, ai_settings: AiSettings) -> None:
        async def stuck(session: Any) -> str:
            await asyncio.Event().wait()
            return "done"

        service = AskService(AsyncMock(), channel_tree, ai_settings)
        gate = AdmissionGate(1)
        manager = AskSessionManager(service, gate)

        with patch.object(service, "run", side_effect=stuck):
            await manager.start("q", "OFTC/#example")
            await asyncio.sleep(0)
            await manager.shutdown(timeout=0.05)

        assert manager.active_sessions == 0
        assert gate.in_use == 0
