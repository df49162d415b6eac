"""Periodic log and heartbeat notifications.

Both run only while at least one session is open, and both stop when the
emitter's ``run()`` context exits.
"""

from __future__ import annotations

import contextlib
import random
import time
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from dataclasses import dataclass

import anyio

from mcp_boilerplate.server.session import SessionManager
from mcp_boilerplate.types import (
    LOGGING_LEVELS,
    JSONRPCNotification,
    LoggingLevel,
    LoggingMessageNotificationParams,
    dump,
    logging_rank,
)
from mcp_boilerplate.utilities.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class LogMessage:
    level: LoggingLevel
    data: str


LOG_MESSAGES: tuple[LogMessage, ...] = (
    LogMessage("debug", "Debug-level message"),
    LogMessage("info", "Info-level message"),
    LogMessage("notice", "Notice-level message"),
    LogMessage("warning", "Warning-level message"),
    LogMessage("error", "Error-level message"),
    LogMessage("critical", "Critical-level message"),
    LogMessage("alert", "Alert level-message"),
    LogMessage("emergency", "Emergency-level message"),
)


def log_notification(level: LoggingLevel, data: object, logger_name: str | None = None) -> JSONRPCNotification:
    params = LoggingMessageNotificationParams(level=level, logger=logger_name, data=data)
    return JSONRPCNotification(method="notifications/message", params=dump(params))


class HeartbeatEmitter:
    """Broadcasts sample log messages and heartbeats to every open session.

    Args:
        sessions: where to broadcast, and whose session count gates emission
        log_interval: seconds between log messages
        heartbeat_interval: seconds between heartbeats
        level: minimum level of log messages that are sent
        choose: picks the next log message from the catalog
    """

    def __init__(
        self,
        sessions: SessionManager,
        *,
        log_interval: float = 10.0,
        heartbeat_interval: float = 30.0,
        level: LoggingLevel = "debug",
        choose: Callable[[Sequence[LogMessage]], LogMessage] = random.choice,
    ):
        self.sessions = sessions
        self.log_interval = log_interval
        self.heartbeat_interval = heartbeat_interval
        self._choose = choose
        self.set_level(level)

    @property
    def level(self) -> LoggingLevel:
        return self._level

    def set_level(self, level: LoggingLevel) -> None:
        if level not in LOGGING_LEVELS:
            raise ValueError(f"Unknown logging level: {level}")
        self._level = level

    def is_message_ignored(self, level: LoggingLevel) -> bool:
        return logging_rank(level) < logging_rank(self._level)

    async def emit_log_message(self) -> LogMessage | None:
        """Broadcast one catalog message; returns it, or None if nothing was sent."""
        if not self.sessions.has_active_sessions:
            return None
        message = self._choose(LOG_MESSAGES)
        if self.is_message_ignored(message.level):
            return None
        await self.sessions.broadcast(log_notification(message.level, message.data))
        return message

    async def emit_heartbeat(self) -> bool:
        if not self.sessions.has_active_sessions:
            return False
        notification = JSONRPCNotification(
            method="notifications/heartbeat",
            params={"timestamp": int(time.time() * 1000)},
        )
        await self.sessions.broadcast(notification)
        return True

    @contextlib.asynccontextmanager
    async def run(self) -> AsyncIterator[HeartbeatEmitter]:
        async with anyio.create_task_group() as tg:
            tg.start_soon(self._repeat, self.log_interval, self.emit_log_message, name="log-emitter")
            tg.start_soon(self._repeat, self.heartbeat_interval, self.emit_heartbeat, name="heartbeat")
            try:
                yield self
            finally:
                tg.cancel_scope.cancel()

    async def _repeat(self, interval: float, emit: Callable[[], Awaitable[object]]) -> None:
        while True:
            await anyio.sleep(interval)
            try:
                await emit()
            except Exception:
                logger.exception("Error sending notification")
