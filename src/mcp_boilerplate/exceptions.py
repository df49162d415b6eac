"""Exceptions raised by the boilerplate server."""

from typing import Any

from mcp_boilerplate.types import INTERNAL_ERROR, INVALID_PARAMS, ErrorData


class McpBoilerplateError(Exception):
    """Base error for the server."""


class AuthError(McpBoilerplateError):
    """The shared-secret credential is missing or does not match."""


class NotInitialized(McpBoilerplateError):
    """The tool subsystem has not finished starting; clients should retry."""


class SessionNotFound(McpBoilerplateError):
    """No open session has the requested identifier."""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found or expired: {session_id}")
        self.session_id = session_id


class TransportWriteError(McpBoilerplateError):
    """Writing to a session's stream failed because the stream is gone."""

    def __init__(self, session_id: str):
        super().__init__(f"Stream for session {session_id} is closed")
        self.session_id = session_id


class ToolError(McpBoilerplateError):
    """Error in tool operations.

    Every tool error knows how to present itself as JSON-RPC ``ErrorData`` so the
    protocol layer can answer the caller without inspecting the concrete type.
    """

    code: int = INTERNAL_ERROR

    def to_error_data(self) -> ErrorData:
        return ErrorData(code=self.code, message=str(self))


class ToolNotFound(ToolError):
    code = INVALID_PARAMS

    def __init__(self, name: Any):
        if isinstance(name, str):
            message = f"Tool '{name}' not found"
        else:
            message = "Tool name must be a string"
        super().__init__(message)
        self.name = name


class InvalidToolArguments(ToolError):
    code = INVALID_PARAMS

    def __init__(self, name: str, detail: str):
        super().__init__(f"Invalid arguments for tool '{name}': {detail}")
        self.name = name


class ToolExecutionFailed(ToolError):
    """A handler raised on every attempt.

    The message is the last underlying error's message; the error itself is
    chained as ``__cause__``.
    """

    def __init__(self, name: str, attempts: int, last_error: BaseException):
        super().__init__(str(last_error))
        self.name = name
        self.attempts = attempts
        self.last_error = last_error
