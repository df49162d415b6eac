"""Session tracking for open SSE streams.

Each session owns one outgoing memory object stream. Exactly one SSE response
reads from it, so every write to a client (responses, notifications, keepalive
comments) is serialized through that stream.
"""

from __future__ import annotations

import contextlib
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any
from uuid import uuid4

import anyio
from anyio.abc import TaskGroup
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from pydantic import BaseModel
from sse_starlette import ServerSentEvent

from mcp_boilerplate.exceptions import NotInitialized, SessionNotFound, TransportWriteError
from mcp_boilerplate.utilities.logging import get_logger

logger = get_logger(__name__)

MAX_BUFFERED_EVENTS = 100


class Session:
    """One open streaming connection."""

    def __init__(
        self,
        session_id: str,
        send_stream: MemoryObjectSendStream[ServerSentEvent],
        receive_stream: MemoryObjectReceiveStream[ServerSentEvent],
    ):
        self.id = session_id
        self.live = True
        self.keepalive_scope = anyio.CancelScope()
        self._send_stream = send_stream
        self._receive_stream = receive_stream
        self._reader_attached = False

    async def send_event(self, event: ServerSentEvent) -> None:
        """Queue an event for the reader without waiting.

        A reader that has fallen ``MAX_BUFFERED_EVENTS`` events behind counts as
        gone: the write fails with ``TransportWriteError`` instead of blocking.
        """
        if not self.live:
            raise TransportWriteError(self.id)
        try:
            self._send_stream.send_nowait(event)
        except anyio.WouldBlock as e:
            logger.warning("Session %s is not reading, its buffer is full", self.id)
            raise TransportWriteError(self.id) from e
        except (anyio.ClosedResourceError, anyio.BrokenResourceError) as e:
            raise TransportWriteError(self.id) from e

    async def send_message(self, message: BaseModel) -> None:
        """Write a JSON-RPC message as an SSE ``message`` event."""
        data = message.model_dump_json(by_alias=True, exclude_none=True)
        await self.send_event(ServerSentEvent(data=data, event="message"))

    async def events(self) -> AsyncIterator[ServerSentEvent]:
        """Yield outgoing events until the session is closed. Single reader only."""
        if self._reader_attached:
            raise RuntimeError(f"Session {self.id} already has a reader")
        self._reader_attached = True
        if not self.live:
            return
        async with self._receive_stream:
            async for event in self._receive_stream:
                yield event

    def close(self) -> None:
        self.live = False
        self.keepalive_scope.cancel()
        self._send_stream.close()
        if not self._reader_attached:
            self._receive_stream.close()


class SessionManager:
    """Registry of open sessions, each with its own keepalive task.

    ``run()`` must be entered before sessions can be created; it owns the task
    group that keepalive tasks and dispatched requests run in. Leaving it
    destroys every session.

    Args:
        keepalive_interval: seconds between keepalive writes on each stream
        use_ping_events: also write a ``ping`` event with every keepalive comment
    """

    def __init__(self, *, keepalive_interval: float = 30.0, use_ping_events: bool = True):
        self.keepalive_interval = keepalive_interval
        self.use_ping_events = use_ping_events
        self._sessions: dict[str, Session] = {}
        self._task_group: TaskGroup | None = None

    @property
    def is_running(self) -> bool:
        return self._task_group is not None

    @property
    def has_active_sessions(self) -> bool:
        return bool(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    @contextlib.asynccontextmanager
    async def run(self) -> AsyncIterator[SessionManager]:
        if self._task_group is not None:
            raise RuntimeError("SessionManager is already running")

        async with anyio.create_task_group() as tg:
            self._task_group = tg
            logger.info("Session manager started")
            try:
                yield self
            finally:
                logger.info("Session manager shutting down, closing %d sessions", len(self._sessions))
                for session_id in list(self._sessions):
                    self.destroy(session_id)
                tg.cancel_scope.cancel()
                self._task_group = None

    def create(self) -> Session:
        if self._task_group is None:
            raise NotInitialized("Session manager is not running")

        session_id = uuid4().hex
        while session_id in self._sessions:
            session_id = uuid4().hex
        send_stream, receive_stream = anyio.create_memory_object_stream[ServerSentEvent](MAX_BUFFERED_EVENTS)
        session = Session(session_id, send_stream, receive_stream)
        self._sessions[session_id] = session
        self._task_group.start_soon(self._keepalive, session, name=f"keepalive-{session_id}")
        logger.info("Created session %s (%d active)", session_id, len(self._sessions))
        return session

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def lookup(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def destroy(self, session_id: str) -> None:
        """Close and forget a session. Unknown ids are ignored."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return
        session.close()
        logger.info("Closed session %s (%d active)", session_id, len(self._sessions))

    async def broadcast(self, message: BaseModel) -> int:
        """Send a message to every open session; returns how many received it."""
        delivered = 0
        for session in list(self._sessions.values()):
            try:
                await session.send_message(message)
            except TransportWriteError:
                logger.info("Dropping session %s after failed broadcast", session.id)
                self.destroy(session.id)
            else:
                delivered += 1
        return delivered

    def spawn(self, fn: Callable[..., Awaitable[Any]], *args: Any, name: str | None = None) -> None:
        """Run ``fn(*args)`` in the background; exceptions are logged, not raised."""
        if self._task_group is None:
            raise NotInitialized("Session manager is not running")

        async def guarded() -> None:
            try:
                await fn(*args)
            except Exception:
                logger.exception("Uncaught exception in background task %s", name or fn)

        self._task_group.start_soon(guarded, name=name)

    async def _keepalive(self, session: Session) -> None:
        with session.keepalive_scope:
            while session.live:
                await anyio.sleep(self.keepalive_interval)
                try:
                    await session.send_event(ServerSentEvent(comment="keepalive"))
                    if self.use_ping_events:
                        await session.send_event(ServerSentEvent(data=str(int(time.time() * 1000)), event="ping"))
                except TransportWriteError:
                    logger.info("Keepalive failed for session %s, closing it", session.id)
                    self.destroy(session.id)
                    return
