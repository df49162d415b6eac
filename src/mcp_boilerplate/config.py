"""Server configuration.

All settings can be configured via environment variables with the prefix ``MCP_``
and ``__`` as the nested delimiter, e.g. ``MCP_SERVER__PORT=8080`` or
``MCP_TOOLS__MAX_RETRIES=5``. A ``.env`` file in the working directory is read too.
"""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from mcp_boilerplate.types import LoggingLevel


class ServerSettings(BaseModel):
    name: str = "mcp-boilerplate"
    version: str = "1.0.0"
    host: str = "localhost"
    port: int = 4005
    api_key: str = "dev_key"
    max_body_bytes: int = Field(default=1_000_000, gt=0)


class SseSettings(BaseModel):
    # How often to send keepalive messages (in milliseconds)
    keepalive_interval_ms: int = Field(default=30_000, gt=0)
    # Whether to send ping events in addition to comments
    use_ping_events: bool = True
    # Initial connection message
    send_connected_event: bool = True


class ToolSettings(BaseModel):
    max_retries: int = Field(default=3, ge=1)
    retry_delay_ms: int = Field(default=1_000, ge=0)
    # Whether to send notifications about tool execution status
    send_notifications: bool = True


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    # Minimum level of the MCP log notifications sent to clients
    default_level: LoggingLevel = "debug"
    log_tool_params: bool = True
    log_tool_results: bool = True
    log_message_interval_ms: int = Field(default=10_000, gt=0)


class Settings(BaseSettings):
    """Boilerplate server settings."""

    model_config = SettingsConfigDict(
        env_prefix="MCP_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    server: ServerSettings = Field(default_factory=ServerSettings)
    sse: SseSettings = Field(default_factory=SseSettings)
    tools: ToolSettings = Field(default_factory=ToolSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
