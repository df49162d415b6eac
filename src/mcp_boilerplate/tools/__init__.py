"""Tool registry.

Add new tools to ``default_registry``: write an async handler taking a single
pydantic model argument and register it with ``Tool.from_function``.
"""

from collections.abc import Iterable

from mcp_boilerplate.tools.base import Tool, create_error_result, create_success_result
from mcp_boilerplate.tools.calculator import calculator
from mcp_boilerplate.types import ToolAnnotations


class ToolRegistry:
    """An ordered, read-only collection of tools addressed by name."""

    def __init__(self, tools: Iterable[Tool] = ()):
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            self._tools[tool.name] = tool

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def list_tools(self) -> list[Tool]:
        return list(self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


def default_registry() -> ToolRegistry:
    return ToolRegistry(
        [
            Tool.from_function(
                calculator,
                annotations=ToolAnnotations(title="Calculator", read_only_hint=True, open_world_hint=False),
            ),
        ]
    )


__all__ = ["Tool", "ToolRegistry", "create_error_result", "create_success_result", "default_registry"]
