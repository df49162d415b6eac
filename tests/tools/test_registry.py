import pytest
from pydantic import BaseModel

from mcp_boilerplate.exceptions import InvalidToolArguments
from mcp_boilerplate.tools import Tool, ToolRegistry, create_success_result
from mcp_boilerplate.types import CallToolResult


class EchoParams(BaseModel):
    text: str


async def echo(params: EchoParams) -> CallToolResult:
    """Echo the given text"""
    return create_success_result(params.text)


def test_from_function_derives_name_description_and_schema():
    tool = Tool.from_function(echo)

    assert tool.name == "echo"
    assert tool.description == "Echo the given text"
    assert tool.params_model is EchoParams
    assert tool.input_schema["properties"]["text"]["type"] == "string"
    assert "handler" not in tool.model_dump()


def test_from_function_rejects_sync_handlers():
    def sync_echo(params: EchoParams) -> CallToolResult:
        return create_success_result(params.text)

    with pytest.raises(ValueError, match="must be an async function"):
        Tool.from_function(sync_echo)  # type: ignore[arg-type]


def test_from_function_requires_a_model_argument():
    async def untyped(params):  # type: ignore[no-untyped-def]
        return create_success_result(params)

    with pytest.raises(ValueError, match="pydantic model"):
        Tool.from_function(untyped)


def test_parse_arguments_raises_invalid_tool_arguments():
    tool = Tool.from_function(echo)

    assert tool.parse_arguments({"text": "hi"}) == EchoParams(text="hi")
    with pytest.raises(InvalidToolArguments, match="echo"):
        tool.parse_arguments({"text": 1.5})
    with pytest.raises(InvalidToolArguments):
        tool.parse_arguments(None)


def test_registry_preserves_order_and_rejects_duplicates():
    first = Tool.from_function(echo, name="first")
    second = Tool.from_function(echo, name="second")
    registry = ToolRegistry([first, second])

    assert [tool.name for tool in registry.list_tools()] == ["first", "second"]
    assert "first" in registry
    assert registry.get("missing") is None
    assert len(registry) == 2

    with pytest.raises(ValueError, match="Duplicate tool name"):
        ToolRegistry([first, first])
