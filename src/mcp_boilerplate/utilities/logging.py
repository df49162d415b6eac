"""Logging utilities for the boilerplate server."""

import logging
from collections.abc import Mapping
from typing import Any, Literal

from rich.console import Console
from rich.logging import RichHandler


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module of the server.

    Args:
        name: the name of the logger, usually ``__name__``

    Returns:
        a logger instance
    """
    return logging.getLogger(name)


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO",
) -> None:
    """Configure logging for the server.

    Args:
        level: the log level to use
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )


def redact_query(params: Mapping[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """Return a copy of query parameters with secrets replaced by "***"."""
    sensitive_keys = sensitive_keys or {"api_key"}
    return {key: "***" if key.lower() in sensitive_keys else value for key, value in params.items()}
