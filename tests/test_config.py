import pytest

from xfyun_ost_mcp.config import load_settings

REQUIRED = {
    "XFYUN_APP_ID": "app-123",
    "XFYUN_API_KEY": "key-456",
    "XFYUN_API_SECRET": "secret-789",
}
OPTIONAL = [
    "XFYUN_TIMEOUT_MS",
    "XFYUN_POLL_INTERVAL_MS",
    "XFYUN_MAX_POLL_COUNT",
    "XFYUN_MIN_REQUEST_INTERVAL_MS",
    "MCP_PATH",
    "HEALTH_PATH",
    "LOG_LEVEL",
    "PORT",
]


@pytest.fixture(autouse=True)
def _no_dotenv(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("xfyun_ost_mcp.config.load_dotenv", lambda *_, **__: None)
    for name in OPTIONAL:
        monkeypatch.delenv(name, raising=False)


def _set_required(monkeypatch: pytest.MonkeyPatch) -> None:
    for name, value in REQUIRED.items():
        monkeypatch.setenv(name, value)


def test_load_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_required(monkeypatch)

    settings = load_settings()

    assert settings.timeout_ms == 30000
    assert settings.poll_interval_ms == 5000
    assert settings.max_poll_count == 60
    assert settings.min_request_interval_ms == 0
    assert settings.mcp_path == "/mcp"
    assert settings.health_path == "/healthz"
    assert settings.log_level == "INFO"
    assert settings.port == 3000


def test_load_settings_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_required(monkeypatch)
    monkeypatch.setenv("XFYUN_TIMEOUT_MS", "10000")
    monkeypatch.setenv("XFYUN_POLL_INTERVAL_MS", "100")
    monkeypatch.setenv("XFYUN_MAX_POLL_COUNT", "3")
    monkeypatch.setenv("MCP_PATH", "tools")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.timeout_ms == 10000
    assert settings.poll_interval_ms == 100
    assert settings.max_poll_count == 3
    assert settings.mcp_path == "/tools"
    assert settings.log_level == "DEBUG"


def test_credentials_are_frozen(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_required(monkeypatch)

    credentials = load_settings().credentials

    assert credentials.app_id == "app-123"
    assert "secret-789" not in repr(credentials)
    with pytest.raises(Exception):
        credentials.api_secret = "other"  # type: ignore[misc]


@pytest.mark.parametrize("missing", sorted(REQUIRED))
def test_missing_credential_fails(monkeypatch: pytest.MonkeyPatch, missing: str) -> None:
    _set_required(monkeypatch)
    monkeypatch.delenv(missing)

    with pytest.raises(RuntimeError, match=missing):
        load_settings()


def test_negative_poll_count_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_required(monkeypatch)
    monkeypatch.setenv("XFYUN_MAX_POLL_COUNT", "-1")

    with pytest.raises(RuntimeError, match="XFYUN_MAX_POLL_COUNT"):
        load_settings()
