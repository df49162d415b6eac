import pytest
from pydantic import ValidationError

from mcp_boilerplate.config import Settings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for key in ("MCP_SERVER__PORT", "MCP_SERVER__API_KEY", "MCP_TOOLS__MAX_RETRIES", "MCP_SSE__USE_PING_EVENTS"):
        monkeypatch.delenv(key, raising=False)


def test_defaults():
    settings = Settings()

    assert settings.server.name == "mcp-boilerplate"
    assert settings.server.version == "1.0.0"
    assert settings.server.port == 4005
    assert settings.server.api_key == "dev_key"
    assert settings.sse.keepalive_interval_ms == 30_000
    assert settings.sse.use_ping_events is True
    assert settings.sse.send_connected_event is True
    assert settings.tools.max_retries == 3
    assert settings.tools.retry_delay_ms == 1_000
    assert settings.tools.send_notifications is True
    assert settings.logging.default_level == "debug"
    assert settings.logging.log_message_interval_ms == 10_000


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("MCP_SERVER__PORT", "8080")
    monkeypatch.setenv("MCP_SERVER__API_KEY", "s3cret")
    monkeypatch.setenv("MCP_TOOLS__MAX_RETRIES", "5")
    monkeypatch.setenv("MCP_SSE__USE_PING_EVENTS", "false")

    settings = Settings()

    assert settings.server.port == 8080
    assert settings.server.api_key == "s3cret"
    assert settings.server.host == "localhost"
    assert settings.tools.max_retries == 5
    assert settings.tools.retry_delay_ms == 1_000
    assert settings.sse.use_ping_events is False


def test_dotenv_file(tmp_path):
    (tmp_path / ".env").write_text("MCP_SERVER__PORT=9000\n")

    assert Settings().server.port == 9000


def test_instances_do_not_share_nested_settings():
    first, second = Settings(), Settings()
    first.tools.max_retries = 7

    assert second.tools.max_retries == 3


def test_invalid_values_are_rejected(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("MCP_TOOLS__MAX_RETRIES", "0")

    with pytest.raises(ValidationError):
        Settings()
