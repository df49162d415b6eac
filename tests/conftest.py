import anyio
import pytest
import sse_starlette
from packaging import version

from mcp_boilerplate.config import ServerSettings, Settings, SseSettings, ToolSettings

SSE_STARLETTE_VERSION = version.parse(sse_starlette.__version__)
NEEDS_RESET = SSE_STARLETTE_VERSION < version.parse("3.0.0")

TEST_API_KEY = "test-key"


@pytest.fixture
def api_key() -> str:
    return TEST_API_KEY


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def reset_sse_app_status():
    """Reset sse-starlette's global AppStatus singleton before each test.

    Before 3.0.0, AppStatus.should_exit_event is a module-level event bound to
    the first event loop that touches it; each test runs on a fresh loop.
    """
    if not NEEDS_RESET:
        yield
        return

    from sse_starlette.sse import AppStatus

    AppStatus.should_exit_event = anyio.Event()  # type: ignore[attr-defined]
    yield
    AppStatus.should_exit_event = anyio.Event()  # type: ignore[attr-defined]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        server=ServerSettings(api_key=TEST_API_KEY),
        sse=SseSettings(keepalive_interval_ms=60_000),
        tools=ToolSettings(retry_delay_ms=0),
    )
