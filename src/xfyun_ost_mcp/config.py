from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from xfyun_ost_mcp.types import Credentials


@dataclass(slots=True)
class Settings:
    host: str
    port: int
    mcp_path: str
    health_path: str
    log_level: str
    app_id: str
    api_key: str
    api_secret: str
    timeout_ms: int = 30000
    poll_interval_ms: int = 5000
    max_poll_count: int = 60
    min_request_interval_ms: int = 0

    @property
    def credentials(self) -> Credentials:
        return Credentials(app_id=self.app_id, api_key=self.api_key, api_secret=self.api_secret)


def _as_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _required(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise RuntimeError(f"{name} is required")
    return value


def _normalized_path(path: str) -> str:
    if not path.startswith("/"):
        path = f"/{path}"
    return path


def load_settings() -> Settings:
    load_dotenv()

    settings = Settings(
        host=os.getenv("HOST", "0.0.0.0"),
        port=_as_int("PORT", 3000),
        mcp_path=_normalized_path(os.getenv("MCP_PATH", "/mcp")),
        health_path=_normalized_path(os.getenv("HEALTH_PATH", "/healthz")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        app_id=_required("XFYUN_APP_ID"),
        api_key=_required("XFYUN_API_KEY"),
        api_secret=_required("XFYUN_API_SECRET"),
        timeout_ms=_as_int("XFYUN_TIMEOUT_MS", 30000),
        poll_interval_ms=_as_int("XFYUN_POLL_INTERVAL_MS", 5000),
        max_poll_count=_as_int("XFYUN_MAX_POLL_COUNT", 60),
        min_request_interval_ms=_as_int("XFYUN_MIN_REQUEST_INTERVAL_MS", 0),
    )
    if settings.max_poll_count < 0:
        raise RuntimeError("XFYUN_MAX_POLL_COUNT must not be negative")
    if settings.poll_interval_ms < 0:
        raise RuntimeError("XFYUN_POLL_INTERVAL_MS must not be negative")
    if settings.timeout_ms <= 0:
        raise RuntimeError("XFYUN_TIMEOUT_MS must be positive")
    return settings
