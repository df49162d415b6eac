"""HTTP surface of the server: the SSE stream, the message endpoint and a health check."""

from __future__ import annotations

import contextlib
import json
import secrets
from collections.abc import AsyncIterator

from pydantic import ValidationError
from sse_starlette import EventSourceResponse, ServerSentEvent
from starlette.applications import Starlette
from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from mcp_boilerplate.config import Settings
from mcp_boilerplate.exceptions import AuthError, NotInitialized, SessionNotFound
from mcp_boilerplate.server.dispatcher import ToolDispatcher, logging_subscriber
from mcp_boilerplate.server.heartbeat import HeartbeatEmitter
from mcp_boilerplate.server.http_body import BodyTooLargeError, read_request_body
from mcp_boilerplate.server.protocol import ProtocolHandler
from mcp_boilerplate.server.session import SessionManager
from mcp_boilerplate.tools import ToolRegistry, default_registry
from mcp_boilerplate.types import JSONRPCMessageAdapter, JSONRPCRequest, JSONRPCResultResponse, dump
from mcp_boilerplate.utilities.logging import get_logger, redact_query

logger = get_logger(__name__)

SSE_PATH = "/sse"
MESSAGE_PATH = "/messages"

# Keepalive comments are written by SessionManager; this only bounds sse-starlette's own pings.
_TRANSPORT_PING_SECONDS = 24 * 60 * 60


def authenticate(provided: str | None, expected: str) -> None:
    if not provided:
        raise AuthError("API key is required")
    if not secrets.compare_digest(provided.encode(), expected.encode()):
        raise AuthError("Invalid API key")


class BoilerplateServer:
    """Wires the tool registry, dispatcher, sessions and emitter into one server.

    Args:
        settings: configuration; read from the environment when omitted
        registry: tools to expose; the built-in calculator when omitted
    """

    def __init__(self, settings: Settings | None = None, registry: ToolRegistry | None = None):
        self.settings = settings or Settings()
        sse, tools, log = self.settings.sse, self.settings.tools, self.settings.logging

        self.sessions = SessionManager(
            keepalive_interval=sse.keepalive_interval_ms / 1000,
            use_ping_events=sse.use_ping_events,
        )
        self.dispatcher = ToolDispatcher(
            registry or default_registry(),
            max_retries=tools.max_retries,
            retry_delay=tools.retry_delay_ms / 1000,
        )
        self.dispatcher.subscribe(
            logging_subscriber(log_params=log.log_tool_params, log_results=log.log_tool_results)
        )
        self.emitter = HeartbeatEmitter(
            self.sessions,
            log_interval=log.log_message_interval_ms / 1000,
            heartbeat_interval=sse.keepalive_interval_ms / 1000,
            level=log.default_level,
        )
        self.protocol = ProtocolHandler(self.settings, self.dispatcher, self.emitter)

    @contextlib.asynccontextmanager
    async def run(self) -> AsyncIterator[BoilerplateServer]:
        """Start the session manager and the periodic emitters; stop both on exit."""
        async with self.sessions.run(), self.emitter.run():
            logger.info("MCP server initialized with %d tools", len(self.dispatcher.registry))
            try:
                yield self
            finally:
                logger.info("Cleaning up MCP server resources...")

    async def handle_health(self, request: Request) -> Response:
        return JSONResponse({"status": "ok", "version": self.settings.server.version})

    async def handle_sse(self, request: Request) -> Response:
        logger.info("Received GET request to %s %s", SSE_PATH, redact_query(request.query_params))
        try:
            authenticate(request.query_params.get("API_KEY"), self.settings.server.api_key)
        except AuthError as e:
            logger.error("Authentication failed: %s", e)
            return JSONResponse({"error": f"Unauthorized: {e}"}, status_code=401)

        try:
            session = self.sessions.create()
        except NotInitialized:
            logger.error("MCP server not initialized")
            return JSONResponse({"error": "Server initialization in progress, please try again"}, status_code=500)

        await session.send_event(ServerSentEvent(data=f"{MESSAGE_PATH}?sessionId={session.id}", event="endpoint"))
        if self.settings.sse.send_connected_event:
            await session.send_event(ServerSentEvent(data=json.dumps({"sessionId": session.id}), event="connected"))

        async def event_stream() -> AsyncIterator[ServerSentEvent]:
            try:
                async with contextlib.aclosing(session.events()) as events:
                    async for event in events:
                        yield event
            finally:
                logger.info("Client disconnected for session %s", session.id)
                self.sessions.destroy(session.id)

        async def close_session() -> None:
            self.sessions.destroy(session.id)

        return EventSourceResponse(
            event_stream(),
            ping=_TRANSPORT_PING_SECONDS,
            background=BackgroundTask(close_session),
        )

    async def handle_post_message(self, request: Request) -> Response:
        try:
            body = await read_request_body(request, max_body_bytes=self.settings.server.max_body_bytes)
        except BodyTooLargeError as e:
            return Response(str(e), status_code=413)

        try:
            message = JSONRPCMessageAdapter.validate_json(body)
        except ValidationError as e:
            logger.error("Failed to parse message: %s", e)
            return Response("Could not parse message", status_code=400)

        if isinstance(message, JSONRPCRequest) and message.method == "ping":
            return JSONResponse(dump(JSONRPCResultResponse(id=message.id, result={})))

        session_id = request.query_params.get("sessionId")
        if not session_id:
            logger.error("No session ID provided in request URL")
            return Response("Missing sessionId parameter", status_code=400)

        try:
            session = self.sessions.lookup(session_id)
        except SessionNotFound:
            logger.error("No active session found for session ID: %s", session_id)
            return Response("Session not found or expired", status_code=404)

        self.sessions.spawn(self.protocol.handle, session, message, name=f"request-{session_id}")
        return Response("Accepted", status_code=202)

    def sse_app(self) -> Starlette:
        """Return a Starlette app serving this server; its lifespan runs ``run()``."""

        @contextlib.asynccontextmanager
        async def lifespan(app: Starlette) -> AsyncIterator[None]:
            async with self.run():
                yield

        return Starlette(
            routes=[
                Route("/health", endpoint=self.handle_health, methods=["GET"]),
                Route(SSE_PATH, endpoint=self.handle_sse, methods=["GET"]),
                Route(MESSAGE_PATH, endpoint=self.handle_post_message, methods=["POST"]),
            ],
            lifespan=lifespan,
        )
