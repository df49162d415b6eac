from __future__ import annotations as _annotations

import inspect
import json
from collections.abc import Awaitable, Callable
from typing import Any, get_type_hints

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from mcp_boilerplate.exceptions import InvalidToolArguments
from mcp_boilerplate.types import CallToolResult, TextContent, ToolAnnotations
from mcp_boilerplate.types import Tool as MCPTool

ToolHandler = Callable[[Any], Awaitable[CallToolResult]]


class Tool(BaseModel):
    """Internal tool registration info.

    ``params_model`` describes the single argument the handler receives; it is
    both the advertised input schema and the validator applied before each call.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(description="Name of the tool")
    description: str = Field(description="Description of what the tool does")
    params_model: type[BaseModel] = Field(exclude=True)
    handler: ToolHandler = Field(exclude=True)
    annotations: ToolAnnotations | None = Field(None, description="Optional annotations for the tool")

    @property
    def input_schema(self) -> dict[str, Any]:
        return self.params_model.model_json_schema(by_alias=True)

    @classmethod
    def from_function(
        cls,
        fn: ToolHandler,
        name: str | None = None,
        description: str | None = None,
        annotations: ToolAnnotations | None = None,
    ) -> Tool:
        """Create a Tool from an async handler taking one pydantic model argument."""
        func_name = name or fn.__name__
        if func_name == "<lambda>":
            raise ValueError("You must provide a name for lambda functions")
        if not inspect.iscoroutinefunction(fn):
            raise ValueError(f"Tool handler for {func_name} must be an async function")

        parameters = list(inspect.signature(fn).parameters)
        if len(parameters) != 1:
            raise ValueError(f"Tool handler for {func_name} must take exactly one argument")
        params_model = get_type_hints(fn).get(parameters[0])
        if not (inspect.isclass(params_model) and issubclass(params_model, BaseModel)):
            raise ValueError(f"Argument of tool handler {func_name} must be annotated with a pydantic model")

        return cls(
            name=func_name,
            description=description or inspect.getdoc(fn) or "",
            params_model=params_model,
            handler=fn,
            annotations=annotations,
        )

    def parse_arguments(self, arguments: dict[str, Any] | None) -> BaseModel:
        try:
            return self.params_model.model_validate(arguments or {})
        except ValidationError as e:
            raise InvalidToolArguments(self.name, str(e)) from e

    def to_mcp_tool(self) -> MCPTool:
        return MCPTool(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema,
            annotations=self.annotations,
        )


def create_success_result(data: Any) -> CallToolResult:
    return CallToolResult(content=[TextContent(text=json.dumps(data))], is_error=False, status=200)


def create_error_result(message: str) -> CallToolResult:
    return CallToolResult(content=[TextContent(text=message)], is_error=True, status=500)
