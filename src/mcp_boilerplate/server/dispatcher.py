"""Tool dispatch with bounded retry and lifecycle events.

The dispatcher resolves a tool by name, validates its arguments and awaits the
handler, retrying failed attempts. Everything observable about a call is
reported as a ``DispatchEvent``; formatting those events for a transport is
left to whoever subscribes.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Literal

import anyio

from mcp_boilerplate.exceptions import ToolExecutionFailed, ToolNotFound
from mcp_boilerplate.tools import Tool, ToolRegistry
from mcp_boilerplate.types import CallToolResult
from mcp_boilerplate.types import Tool as MCPTool
from mcp_boilerplate.utilities.logging import get_logger

logger = get_logger(__name__)

DispatchEventKind = Literal["started", "attempt_failed", "succeeded", "failed"]


@dataclass(frozen=True)
class DispatchEvent:
    kind: DispatchEventKind
    tool: str
    arguments: dict[str, Any] | None
    attempt: int = 0
    max_attempts: int = 0
    error: BaseException | None = None
    result: CallToolResult | None = None


EventCallback = Callable[[DispatchEvent], Awaitable[None]]


class ToolDispatcher:
    """Resolves tool names and invokes their handlers.

    Args:
        registry: the tools that can be called
        max_retries: total number of attempts per call, at least 1
        retry_delay: seconds to wait between attempts
        sleep: awaitable used for the wait between attempts
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
    ):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.registry = registry
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep
        self._subscribers: list[EventCallback] = []

    def subscribe(self, callback: EventCallback) -> None:
        """Register a callback receiving the events of every call."""
        self._subscribers.append(callback)

    def list_tools(self) -> list[MCPTool]:
        tools = self.registry.list_tools()
        logger.debug("Listing %d tools: %s", len(tools), [tool.name for tool in tools])
        return [tool.to_mcp_tool() for tool in tools]

    def resolve(self, name: Any) -> Tool:
        if not isinstance(name, str):
            raise ToolNotFound(name)
        tool = self.registry.get(name)
        if tool is None:
            raise ToolNotFound(name)
        return tool

    async def invoke(
        self,
        name: Any,
        arguments: dict[str, Any] | None,
        *,
        on_event: EventCallback | None = None,
    ) -> CallToolResult:
        """Call a tool by name, retrying failed attempts.

        Raises:
            ToolNotFound: ``name`` is not a string or no tool has that name
            InvalidToolArguments: ``arguments`` do not match the tool's schema
            ToolExecutionFailed: the handler raised on every attempt
        """
        tool = self.resolve(name)
        params = tool.parse_arguments(arguments)

        async def emit(kind: DispatchEventKind, **fields: Any) -> None:
            event = DispatchEvent(kind, tool.name, arguments, max_attempts=self.max_retries, **fields)
            callbacks = [*self._subscribers, on_event] if on_event else self._subscribers
            for callback in callbacks:
                try:
                    await callback(event)
                except Exception:
                    logger.exception("Dispatch event callback failed for %s", event.kind)

        await emit("started")
        attempt = 1
        while True:
            try:
                result = await tool.handler(params)
            except Exception as e:
                logger.warning("Attempt %d/%d of tool %s failed: %s", attempt, self.max_retries, tool.name, e)
                await emit("attempt_failed", attempt=attempt, error=e)
                if attempt >= self.max_retries:
                    await emit("failed", attempt=attempt, error=e)
                    raise ToolExecutionFailed(tool.name, attempt, e) from e
                await self._sleep(self.retry_delay)
                attempt += 1
                continue

            await emit("succeeded", attempt=attempt, result=result)
            return result


def logging_subscriber(*, log_params: bool, log_results: bool) -> EventCallback:
    """Build a subscriber writing tool parameters and results to the server log."""

    async def log_event(event: DispatchEvent) -> None:
        if event.kind == "started" and log_params:
            logger.info("Calling tool %s with parameters %s", event.tool, event.arguments)
        elif event.kind == "succeeded" and log_results and event.result is not None:
            logger.info("Tool %s result: %s", event.tool, event.result.model_dump_json(by_alias=True))
        elif event.kind == "failed":
            logger.error("Tool %s failed after %d attempts: %s", event.tool, event.attempt, event.error)

    return log_event
