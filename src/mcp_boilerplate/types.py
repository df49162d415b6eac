"""Wire types for the JSON-RPC 2.0 messages and the MCP subset this server speaks."""

from typing import Annotated, Any, Final, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

JSONRPC_VERSION: Final[str] = "2.0"
LATEST_PROTOCOL_VERSION: Final[str] = "2024-11-05"

PARSE_ERROR: Final[int] = -32700
INVALID_REQUEST: Final[int] = -32600
METHOD_NOT_FOUND: Final[int] = -32601
INVALID_PARAMS: Final[int] = -32602
INTERNAL_ERROR: Final[int] = -32603

RequestId = Annotated[int, Field(strict=True)] | str

LoggingLevel = Literal["debug", "info", "notice", "warning", "error", "critical", "alert", "emergency"]

LOGGING_LEVELS: Final[tuple[LoggingLevel, ...]] = (
    "debug",
    "info",
    "notice",
    "warning",
    "error",
    "critical",
    "alert",
    "emergency",
)


class MCPModel(BaseModel):
    """Base class for MCP domain types. Allows extra fields for forward compatibility."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


# ---------------------------------------------------------------------------
# JSON-RPC envelopes
# ---------------------------------------------------------------------------


class JSONRPCBase(BaseModel):
    """Base class for all JSON-RPC messages."""

    model_config = ConfigDict(extra="allow")

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION


class JSONRPCRequest(JSONRPCBase):
    """A request that expects a response."""

    id: RequestId
    method: str
    params: dict[str, Any] | None = None


class JSONRPCNotification(JSONRPCBase):
    """A notification which does not expect a response."""

    method: str
    params: dict[str, Any] | None = None


class ErrorData(BaseModel):
    """Error information in a JSON-RPC error response."""

    model_config = ConfigDict(extra="allow")

    code: int
    message: str
    data: Any | None = None


class JSONRPCResultResponse(JSONRPCBase):
    """A successful (non-error) response to a request."""

    id: RequestId
    result: dict[str, Any]


class JSONRPCErrorResponse(JSONRPCBase):
    """A response to a request that indicates an error occurred."""

    id: RequestId | None = None
    error: ErrorData


JSONRPCResponse = JSONRPCResultResponse | JSONRPCErrorResponse
JSONRPCMessage = JSONRPCRequest | JSONRPCNotification | JSONRPCResponse

JSONRPCMessageAdapter: TypeAdapter[JSONRPCMessage] = TypeAdapter(JSONRPCMessage)


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


class ToolAnnotations(MCPModel):
    """Additional properties describing a Tool to clients."""

    title: str | None = None
    read_only_hint: Annotated[bool | None, Field(alias="readOnlyHint")] = None
    destructive_hint: Annotated[bool | None, Field(alias="destructiveHint")] = None
    idempotent_hint: Annotated[bool | None, Field(alias="idempotentHint")] = None
    open_world_hint: Annotated[bool | None, Field(alias="openWorldHint")] = None


class Tool(MCPModel):
    """Definition of a tool the server provides, as clients see it."""

    name: str
    description: str | None = None
    input_schema: Annotated[dict[str, Any], Field(alias="inputSchema")]
    annotations: ToolAnnotations | None = None


class ListToolsResult(MCPModel):
    """Server's response to a tools/list request."""

    tools: list[Tool]


class CallToolRequestParams(MCPModel):
    """Parameters for tools/call request."""

    name: Any = None
    arguments: dict[str, Any] | None = None


class TextContent(MCPModel):
    """Text provided to or from an LLM."""

    type: Literal["text"] = "text"
    text: str


class CallToolResult(MCPModel):
    """Server's response to a tools/call request.

    ``status`` mirrors an HTTP status: 200 for success, 500 for a tool-level error.
    """

    content: list[TextContent]
    is_error: Annotated[bool, Field(alias="isError")] = False
    status: int = 200


# ---------------------------------------------------------------------------
# Initialize / logging
# ---------------------------------------------------------------------------


class Implementation(MCPModel):
    """Name and version of an MCP implementation."""

    name: str
    version: str


class ServerCapabilities(MCPModel):
    """Capabilities the server advertises during initialization."""

    tools: dict[str, Any] | None = None
    logging: dict[str, Any] | None = None


class InitializeResult(MCPModel):
    """Server's response to an initialize request."""

    protocol_version: Annotated[str, Field(alias="protocolVersion")]
    capabilities: ServerCapabilities
    server_info: Annotated[Implementation, Field(alias="serverInfo")]


class SetLevelRequestParams(MCPModel):
    """Parameters for a logging/setLevel request."""

    level: LoggingLevel


class LoggingMessageNotificationParams(MCPModel):
    """Parameters for a notifications/message notification."""

    level: LoggingLevel
    logger: str | None = None
    data: Any


def logging_rank(level: LoggingLevel) -> int:
    """Position of ``level`` in the fixed severity order, debug being 0."""
    return LOGGING_LEVELS.index(level)


def dump(model: BaseModel) -> dict[str, Any]:
    """Serialize a model the way it travels on the wire."""
    return model.model_dump(by_alias=True, mode="json", exclude_none=True)
