from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import time
from email.utils import formatdate
from typing import Callable

from xfyun_ost_mcp.errors import SigningError
from xfyun_ost_mcp.types import Credentials

logger = logging.getLogger(__name__)

ALGORITHM = "hmac-sha256"
SIGNED_HEADERS = "host date request-line digest"


def rfc1123_date(timestamp: float) -> str:
    return formatdate(timeval=timestamp, usegmt=True)


def empty_body_digest() -> str:
    """Digest header value; the signed body is always empty."""
    try:
        hashed = hashlib.new("sha256", b"").digest()
    except ValueError as exc:
        raise SigningError("SHA-256 is not available", exc) from exc
    return "SHA-256=" + base64.b64encode(hashed).decode("ascii")


def signing_string(method: str, path: str, host: str, date: str, digest: str) -> str:
    request_line = f"{method.upper()} {path} HTTP/1.1"
    return f"host: {host}\ndate: {date}\n{request_line}\ndigest: {digest}"


class RequestSigner:
    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self.clock = clock

    def sign(
        self,
        method: str,
        path: str,
        host: str,
        credentials: Credentials,
        now: float | None = None,
    ) -> dict[str, str]:
        date = rfc1123_date(self.clock() if now is None else now)
        digest = empty_body_digest()
        origin = signing_string(method, path, host, date, digest)
        logger.debug("Signing string for %s %s: %r", method, path, origin)

        try:
            mac = hmac.new(
                credentials.api_secret.encode("utf-8"),
                origin.encode("utf-8"),
                digestmod="sha256",
            )
        except ValueError as exc:
            raise SigningError("HMAC-SHA256 is not available", exc) from exc
        signature = base64.b64encode(mac.digest()).decode("ascii")

        authorization = (
            f'api_key="{credentials.api_key}", algorithm="{ALGORITHM}", '
            f'headers="{SIGNED_HEADERS}", signature="{signature}"'
        )
        return {
            "host": host,
            "date": date,
            "digest": digest,
            "authorization": authorization,
        }
