from __future__ import annotations

import pytest

from xfyun_fakes import FakeXfyun
from xfyun_ost_mcp.types import Credentials


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(app_id="app-123", api_key="key-456", api_secret="secret-789")


@pytest.fixture
def xfyun() -> FakeXfyun:
    return FakeXfyun()
