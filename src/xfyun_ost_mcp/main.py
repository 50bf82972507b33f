from __future__ import annotations

import logging

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from xfyun_ost_mcp.config import Settings, load_settings
from xfyun_ost_mcp.mcp_tools import ToolRegistry
from xfyun_ost_mcp.services.rate_limit import RateLimiter
from xfyun_ost_mcp.services.speech import SpeechService
from xfyun_ost_mcp.services.transcriber import XfyunTranscriber

logger = logging.getLogger(__name__)


class AppRuntime:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

        rate_limiter = None
        if settings.min_request_interval_ms > 0:
            rate_limiter = RateLimiter(settings.min_request_interval_ms / 1000.0)

        self.transcriber = XfyunTranscriber(
            settings.credentials,
            timeout_ms=settings.timeout_ms,
            poll_interval_ms=settings.poll_interval_ms,
            max_poll_count=settings.max_poll_count,
            rate_limiter=rate_limiter,
        )
        self.speech = SpeechService(self.transcriber)


def create_app(runtime: AppRuntime) -> FastMCP:
    mcp = FastMCP(name="xfyun-ost-mcp")

    tools = ToolRegistry(runtime.transcriber, runtime.speech)
    tools.register(mcp)

    @mcp.custom_route(runtime.settings.health_path, methods=["GET"])
    async def health(_: Request) -> JSONResponse:
        return JSONResponse(
            {
                "ok": True,
                "app_id": runtime.settings.app_id,
                "poll_interval_ms": runtime.settings.poll_interval_ms,
                "max_poll_count": runtime.settings.max_poll_count,
                "mcp_path": runtime.settings.mcp_path,
            }
        )

    return mcp


def cli() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    runtime = AppRuntime(settings)

    app = create_app(runtime)
    logger.info("Starting MCP server on %s:%s%s", settings.host, settings.port, settings.mcp_path)
    app.run(
        transport="http",
        host=settings.host,
        port=settings.port,
        path=settings.mcp_path,
    )


if __name__ == "__main__":
    cli()
