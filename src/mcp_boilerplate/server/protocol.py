"""JSON-RPC method routing for one session."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import anyio
from pydantic import ValidationError

from mcp_boilerplate.config import Settings
from mcp_boilerplate.exceptions import ToolError, TransportWriteError
from mcp_boilerplate.server.dispatcher import DispatchEvent, ToolDispatcher
from mcp_boilerplate.server.heartbeat import HeartbeatEmitter, log_notification
from mcp_boilerplate.server.session import Session
from mcp_boilerplate.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    LATEST_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    CallToolRequestParams,
    ErrorData,
    Implementation,
    InitializeResult,
    JSONRPCErrorResponse,
    JSONRPCMessage,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResultResponse,
    ListToolsResult,
    LoggingLevel,
    ServerCapabilities,
    SetLevelRequestParams,
    dump,
)
from mcp_boilerplate.utilities.logging import get_logger

logger = get_logger(__name__)

RequestHandler = Callable[[dict[str, Any], Session], Awaitable[dict[str, Any]]]

_EVENT_LEVELS: dict[str, LoggingLevel] = {
    "started": "info",
    "attempt_failed": "warning",
    "succeeded": "info",
    "failed": "error",
}


def describe_event(event: DispatchEvent) -> str:
    match event.kind:
        case "started":
            return f"Executing tool {event.tool}"
        case "attempt_failed":
            return f"Attempt {event.attempt}/{event.max_attempts} of tool {event.tool} failed: {event.error}"
        case "succeeded":
            return f"Tool {event.tool} completed"
        case "failed":
            return f"Tool {event.tool} failed after {event.attempt} attempts: {event.error}"


class ProtocolHandler:
    """Answers the MCP requests this server supports and writes replies to the session."""

    def __init__(self, settings: Settings, dispatcher: ToolDispatcher, emitter: HeartbeatEmitter):
        self.settings = settings
        self.dispatcher = dispatcher
        self.emitter = emitter
        self._handlers: dict[str, RequestHandler] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
            "logging/setLevel": self._set_level,
        }

    async def handle(self, session: Session, message: JSONRPCMessage) -> None:
        if isinstance(message, JSONRPCRequest):
            response = await self.handle_request(session, message)
            try:
                await session.send_message(response)
            except TransportWriteError:
                logger.info("Discarding response to request %s: session %s is closed", message.id, session.id)
        elif isinstance(message, JSONRPCNotification):
            logger.debug("Received notification %s on session %s", message.method, session.id)
        else:
            logger.debug("Ignoring client response on session %s", session.id)

    async def handle_request(
        self, session: Session, request: JSONRPCRequest
    ) -> JSONRPCResultResponse | JSONRPCErrorResponse:
        logger.info("Processing request %s (%s) on session %s", request.id, request.method, session.id)
        handler = self._handlers.get(request.method)
        if handler is None:
            return JSONRPCErrorResponse(id=request.id, error=ErrorData(code=METHOD_NOT_FOUND, message="Method not found"))

        try:
            result = await handler(request.params or {}, session)
        except ToolError as e:
            error = e.to_error_data()
        except ValidationError as e:
            error = ErrorData(code=INVALID_PARAMS, message=str(e))
        except anyio.get_cancelled_exc_class():
            raise
        except Exception as e:
            logger.exception("Error handling request %s", request.method)
            error = ErrorData(code=INTERNAL_ERROR, message=str(e))
        else:
            return JSONRPCResultResponse(id=request.id, result=result)
        return JSONRPCErrorResponse(id=request.id, error=error)

    async def _initialize(self, params: dict[str, Any], session: Session) -> dict[str, Any]:
        return dump(
            InitializeResult(
                protocol_version=params.get("protocolVersion") or LATEST_PROTOCOL_VERSION,
                capabilities=ServerCapabilities(tools={}, logging={}),
                server_info=Implementation(name=self.settings.server.name, version=self.settings.server.version),
            )
        )

    async def _ping(self, params: dict[str, Any], session: Session) -> dict[str, Any]:
        return {}

    async def _list_tools(self, params: dict[str, Any], session: Session) -> dict[str, Any]:
        return dump(ListToolsResult(tools=self.dispatcher.list_tools()))

    async def _call_tool(self, params: dict[str, Any], session: Session) -> dict[str, Any]:
        call = CallToolRequestParams.model_validate(params)
        on_event = None
        if self.settings.tools.send_notifications:

            async def on_event(event: DispatchEvent) -> None:
                await self._notify(session, event)

        result = await self.dispatcher.invoke(call.name, call.arguments, on_event=on_event)
        return dump(result)

    async def _set_level(self, params: dict[str, Any], session: Session) -> dict[str, Any]:
        self.emitter.set_level(SetLevelRequestParams.model_validate(params).level)
        logger.info("Log notification level set to %s", self.emitter.level)
        return {}

    async def _notify(self, session: Session, event: DispatchEvent) -> None:
        level = _EVENT_LEVELS[event.kind]
        if self.emitter.is_message_ignored(level):
            return
        try:
            await session.send_message(log_notification(level, describe_event(event), logger_name="tools"))
        except TransportWriteError:
            logger.debug("Session %s closed, dropping %s notification", session.id, event.kind)
