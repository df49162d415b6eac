from .app import BoilerplateServer
from .dispatcher import DispatchEvent, ToolDispatcher
from .heartbeat import HeartbeatEmitter
from .session import Session, SessionManager

__all__ = ["BoilerplateServer", "DispatchEvent", "HeartbeatEmitter", "Session", "SessionManager", "ToolDispatcher"]
