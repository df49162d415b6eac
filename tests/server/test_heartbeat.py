import json
from collections.abc import Sequence

import anyio
import pytest

from mcp_boilerplate.server.heartbeat import LOG_MESSAGES, HeartbeatEmitter, LogMessage
from mcp_boilerplate.server.session import MAX_BUFFERED_EVENTS, SessionManager
from mcp_boilerplate.types import LOGGING_LEVELS, JSONRPCNotification


def pick(level: str):
    def choose(messages: Sequence[LogMessage]) -> LogMessage:
        return next(message for message in messages if message.level == level)

    return choose


def test_catalog_covers_every_level_in_order():
    assert tuple(message.level for message in LOG_MESSAGES) == LOGGING_LEVELS


@pytest.mark.parametrize(
    ("minimum", "level", "ignored"),
    [
        ("debug", "debug", False),
        ("info", "debug", True),
        ("warning", "notice", True),
        ("warning", "warning", False),
        ("warning", "emergency", False),
        ("emergency", "alert", True),
    ],
)
def test_is_message_ignored(minimum: str, level: str, ignored: bool):
    emitter = HeartbeatEmitter(SessionManager(), level=minimum)  # type: ignore[arg-type]

    assert emitter.is_message_ignored(level) is ignored  # type: ignore[arg-type]


def test_set_level_rejects_unknown_levels():
    emitter = HeartbeatEmitter(SessionManager())

    with pytest.raises(ValueError):
        emitter.set_level("verbose")  # type: ignore[arg-type]
    emitter.set_level("error")
    assert emitter.level == "error"


@pytest.mark.anyio
async def test_nothing_is_emitted_without_sessions():
    async with SessionManager().run() as manager:
        emitter = HeartbeatEmitter(manager, choose=pick("emergency"))

        assert await emitter.emit_log_message() is None
        assert await emitter.emit_heartbeat() is False


@pytest.mark.anyio
async def test_log_message_is_broadcast_as_notification():
    async with SessionManager().run() as manager:
        session = manager.create()
        reader = session.events()
        emitter = HeartbeatEmitter(manager, choose=pick("warning"))

        sent = await emitter.emit_log_message()

        assert sent == LogMessage("warning", "Warning-level message")
        with anyio.fail_after(1):
            event = await reader.__anext__()
        payload = json.loads(event.data)
        assert payload["method"] == "notifications/message"
        assert payload["params"] == {"level": "warning", "data": "Warning-level message"}
        await reader.aclose()


@pytest.mark.anyio
async def test_suppressed_message_is_not_sent():
    async with SessionManager().run() as manager:
        manager.create()
        emitter = HeartbeatEmitter(manager, level="error", choose=pick("info"))

        assert await emitter.emit_log_message() is None


@pytest.mark.anyio
async def test_heartbeat_notification():
    async with SessionManager().run() as manager:
        session = manager.create()
        reader = session.events()
        emitter = HeartbeatEmitter(manager)

        assert await emitter.emit_heartbeat() is True
        with anyio.fail_after(1):
            event = await reader.__anext__()
        payload = json.loads(event.data)
        assert payload["method"] == "notifications/heartbeat"
        assert isinstance(payload["params"]["timestamp"], int)
        await reader.aclose()


@pytest.mark.anyio
async def test_run_emits_periodically_and_stops_on_exit():
    async with SessionManager().run() as manager:
        session = manager.create()
        reader = session.events()
        emitter = HeartbeatEmitter(manager, log_interval=0.01, heartbeat_interval=0.01, choose=pick("info"))

        methods: set[str] = set()
        async with emitter.run():
            with anyio.fail_after(1):
                while methods != {"notifications/message", "notifications/heartbeat"}:
                    methods.add(json.loads((await reader.__anext__()).data)["method"])

        # both timers are gone: nothing new is queued after the emitter stops
        buffered = session._send_stream.statistics().current_buffer_used
        await anyio.sleep(0.05)
        assert session._send_stream.statistics().current_buffer_used == buffered
        await reader.aclose()


@pytest.mark.anyio
async def test_heartbeat_reaches_healthy_sessions_past_a_stalled_one():
    async with SessionManager().run() as manager:
        stalled = manager.create()
        for _ in range(MAX_BUFFERED_EVENTS):
            await stalled.send_message(JSONRPCNotification(method="backlog"))
        healthy = manager.create()
        reader = healthy.events()
        emitter = HeartbeatEmitter(manager)

        with anyio.fail_after(1):
            assert await emitter.emit_heartbeat() is True
            event = await reader.__anext__()

        assert json.loads(event.data)["method"] == "notifications/heartbeat"
        assert manager.get(stalled.id) is None
        await reader.aclose()
