"""
Admission control for ask sessions.

A fixed number of permits bounds concurrent sessions. Admission never waits:
a request either gets a permit immediately or is rejected. Each admitted
session runs as its own task and feeds an event queue; the permit is
released when the session ends, whatever the reason.
"""

from __future__ import annotations

import asyncio

from typing import Any

from irclogs.api.services.ask_service import OUTCOME_ERROR, AskService, AskSession
from irclogs.models.event_models import AskEvent, ErrorEvent
from irclogs.utils.logger import logger
from irclogs.utils.metrics import ask_admission_rejections_total, ask_sessions_active, ask_sessions_total


class AdmissionGate:
    """Counting semaphore with a non-blocking acquire."""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._semaphore = asyncio.Semaphore(capacity)
        self._in_use = 0

    @property
    def in_use(self) -> int:
        return self._in_use

    async def try_acquire(self) -> bool:
        """Take a permit if one is free right now; never waits."""
        if self._semaphore.locked():
            return False
        # A free permit is taken without suspending
        await self._semaphore.acquire()
        self._in_use += 1
        return True

    def release(self) -> None:
        self._in_use -= 1
        self._semaphore.release()


class AskSessionManager:
    """Admits ask sessions and runs each one in a background task.

    ``start`` returns the queue the session writes its events to. ``None`` on
    the queue marks the end of the stream.
    """

    def __init__(self, service: AskService, gate: AdmissionGate):
        self.service = service
        self.gate = gate
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def active_sessions(self) -> int:
        return len(self._tasks)

    async def start(self, query: str, channel: str) -> asyncio.Queue[AskEvent | None] | None:
        """Admit and launch a session, or return None when no permit is free."""
        if not await self.gate.try_acquire():
            ask_admission_rejections_total.inc()
            logger.warning(f"Ask rejected: all {self.gate.capacity} permits in use")
            return None

        queue: asyncio.Queue[AskEvent | None] = asyncio.Queue()
        loop = asyncio.get_running_loop()

        def sink(event: AskEvent) -> None:
            # Tools emit from executor threads; FIFO scheduling keeps event order
            loop.call_soon_threadsafe(queue.put_nowait, event)

        try:
            session = self.service.new_session(query, channel, sink=sink)
            task = asyncio.create_task(self._run(session, queue))
        except BaseException:
            self.gate.release()
            raise

        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return queue

    async def _run(self, session: AskSession, queue: asyncio.Queue[AskEvent | None]) -> None:
        ask_sessions_active.inc()
        outcome = OUTCOME_ERROR
        try:
            outcome = await self.service.run(session)
        except Exception as e:
            logger.error(
                f"Ask session crashed: {type(e).__name__}: {e}",
                exc_info=True,
                session_id=session.id,
            )
            if not session.finished:
                session.emit(ErrorEvent(message=f"internal error: {type(e).__name__}"))
        finally:
            self.gate.release()
            ask_sessions_active.dec()
            ask_sessions_total.labels(outcome=outcome).inc()
            logger.info(
                f"Ask session finished: {outcome} after {session.turns} turns",
                session_id=session.id,
            )
            # Queued after any pending events
            asyncio.get_running_loop().call_soon(queue.put_nowait, None)

    async def shutdown(self, timeout: float = 5.0) -> None:
        """Wait for running sessions, cancelling any still running after ``timeout``."""
        if not self._tasks:
            return
        tasks = list(self._tasks)
        logger.info(f"Waiting for {len(tasks)} ask sessions to finish")
        _, pending = await asyncio.wait(tasks, timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(f"Cancelled {len(pending)} ask sessions at shutdown")
