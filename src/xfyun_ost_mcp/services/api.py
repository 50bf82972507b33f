from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from xfyun_ost_mcp.errors import TransportError
from xfyun_ost_mcp.services.rate_limit import RateLimiter
from xfyun_ost_mcp.services.signer import RequestSigner
from xfyun_ost_mcp.types import Credentials

logger = logging.getLogger(__name__)

UPLOAD_HOST = "upload-ost-api.xfyun.cn"
TASK_HOST = "ost-api.xfyun.cn"

SMALL_FILE_UPLOAD_PATH = "/file/upload"
MULTIPART_INIT_PATH = "/file/mpupload/init"
MULTIPART_UPLOAD_PATH = "/file/mpupload/upload"
MULTIPART_COMPLETE_PATH = "/file/mpupload/complete"
TASK_CREATE_PATH = "/v2/ost/pro_create"
TASK_QUERY_PATH = "/v2/ost/query"


@dataclass(slots=True)
class ApiEnvelope:
    code: int
    message: str
    sid: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.code == 0


class XfyunApi:
    """Signs, sends and decodes every call made to the OST endpoints."""

    def __init__(
        self,
        client: httpx.Client,
        credentials: Credentials,
        signer: RequestSigner | None = None,
        rate_limiter: RateLimiter | None = None,
        scheme: str = "https",
    ) -> None:
        self.client = client
        self.credentials = credentials
        self.signer = signer or RequestSigner()
        self.rate_limiter = rate_limiter
        self.scheme = scheme

    @property
    def app_id(self) -> str:
        return self.credentials.app_id

    def post_json(self, host: str, path: str, payload: dict[str, Any]) -> ApiEnvelope:
        return self._send(host, path, json=payload)

    def post_multipart(
        self,
        host: str,
        path: str,
        fields: dict[str, str],
        file_name: str,
        data: bytes,
    ) -> ApiEnvelope:
        return self._send(host, path, data=fields, files={"data": (file_name, data)})

    def _send(self, host: str, path: str, **kwargs: Any) -> ApiEnvelope:
        if self.rate_limiter is not None:
            self.rate_limiter.acquire()
        headers = self.signer.sign("POST", path, host, self.credentials)

        url = f"{self.scheme}://{host}{path}"
        try:
            response = self.client.post(url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Request to %s failed: %s", path, exc)
            raise TransportError(f"Request to {path} failed: {exc}", exc) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise TransportError(
                f"Invalid response from {path} ({response.status_code}): {response.text[:400]}",
                exc,
            ) from exc
        if not isinstance(payload, dict) or "code" not in payload:
            raise TransportError(
                f"Unexpected response from {path} ({response.status_code}): {response.text[:400]}"
            )

        envelope = self._parse_envelope(payload)
        if not envelope.ok:
            logger.warning("%s returned code %s: %s", path, envelope.code, envelope.message)
        return envelope

    @staticmethod
    def _parse_envelope(payload: dict[str, Any]) -> ApiEnvelope:
        try:
            code = int(payload.get("code"))
        except (TypeError, ValueError):
            code = -1
        data = payload.get("data")
        return ApiEnvelope(
            code=code,
            message=str(payload.get("message") or ""),
            sid=str(payload["sid"]) if payload.get("sid") is not None else None,
            data=data if isinstance(data, dict) else {},
        )
