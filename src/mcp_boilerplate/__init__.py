from .config import Settings
from .server import BoilerplateServer
from .tools import Tool, ToolRegistry, create_error_result, create_success_result

__all__ = [
    "BoilerplateServer",
    "Settings",
    "Tool",
    "ToolRegistry",
    "create_error_result",
    "create_success_result",
]
