import httpx
import pytest

from xfyun_fakes import FakeXfyun, failure, ok
from xfyun_ost_mcp.errors import TransportError, UploadFailed
from xfyun_ost_mcp.services.api import XfyunApi
from xfyun_ost_mcp.services.classifier import MIB, classify
from xfyun_ost_mcp.services.uploader import UploadCoordinator, chunk_count, split_chunks
from xfyun_ost_mcp.types import AudioHandle, Credentials, UploadStrategy


def _coordinator(xfyun: FakeXfyun, credentials: Credentials, chunk_size: int = 10 * MIB) -> UploadCoordinator:
    client = httpx.Client(transport=xfyun.transport)
    return UploadCoordinator(XfyunApi(client, credentials), chunk_size=chunk_size)


def test_split_chunks_is_contiguous() -> None:
    handle = AudioHandle.from_bytes("a.wav", b"abcdefghij")
    chunks = list(split_chunks(handle, chunk_size=4))

    assert [chunk.index for chunk in chunks] == [0, 1, 2]
    assert [chunk.data for chunk in chunks] == [b"abcd", b"efgh", b"ij"]
    assert chunk_count(10, 4) == 3
    assert chunk_count(8, 4) == 2


def test_small_file_uses_single_upload(xfyun: FakeXfyun, credentials: Credentials) -> None:
    handle = AudioHandle.from_bytes("a.wav", b"RIFF" + b"\x00" * 100)
    classification = classify(handle)

    url = _coordinator(xfyun, credentials).upload(handle, classification)

    assert url == "https://files.example.com/small.wav"
    assert xfyun.paths == ["/file/upload"]
    request = xfyun.requests[0]
    assert request.headers["host"] == "upload-ost-api.xfyun.cn"
    assert request.headers["digest"].startswith("SHA-256=")
    assert 'api_key="key-456"' in request.headers["authorization"]
    assert request.headers["content-type"].startswith("multipart/form-data")
    body = request.content
    assert b'name="app_id"\r\n\r\napp-123' in body
    assert b'name="request_id"' in body
    assert b'name="data"; filename="a.wav"' in body


def test_small_upload_non_zero_code_fails(xfyun: FakeXfyun, credentials: Credentials) -> None:
    xfyun.queue("/file/upload", failure(10105, "illegal access"))
    handle = AudioHandle.from_bytes("a.mp3", b"ID3")

    with pytest.raises(UploadFailed, match="illegal access"):
        _coordinator(xfyun, credentials).upload(handle, classify(handle))


def test_small_upload_missing_url_fails(xfyun: FakeXfyun, credentials: Credentials) -> None:
    xfyun.queue("/file/upload", ok({}))
    handle = AudioHandle.from_bytes("a.mp3", b"ID3")

    with pytest.raises(UploadFailed, match="missing url"):
        _coordinator(xfyun, credentials).upload(handle, classify(handle))


def test_large_file_issues_init_chunks_complete(xfyun: FakeXfyun, credentials: Credentials) -> None:
    size = 45 * MIB
    handle = AudioHandle.from_bytes("long.wav", b"\x01" * size)
    classification = classify(handle)
    assert classification.strategy is UploadStrategy.LARGE

    url = _coordinator(xfyun, credentials).upload(handle, classification)

    assert url == "https://files.example.com/large.wav"
    assert xfyun.paths == (
        ["/file/mpupload/init"] + ["/file/mpupload/upload"] * 5 + ["/file/mpupload/complete"]
    )

    init_body = xfyun.json_bodies("/file/mpupload/init")[0]
    assert init_body["app_id"] == "app-123"
    assert init_body["cloud_id"] == "0"

    complete_body = xfyun.json_bodies("/file/mpupload/complete")[0]
    assert complete_body["upload_id"] == "upload-1"
    assert complete_body["request_id"] == init_body["request_id"]

    for index, body in enumerate(xfyun.bodies("/file/mpupload/upload")):
        assert f'name="slice_id"\r\n\r\n{index}\r\n'.encode() in body
        assert b'name="upload_id"\r\n\r\nupload-1\r\n' in body
        assert f'name="request_id"\r\n\r\n{init_body["request_id"]}\r\n'.encode() in body

    sizes = [len(body) for body in xfyun.bodies("/file/mpupload/upload")]
    assert sizes[0] == sizes[1] == sizes[2] == sizes[3]
    assert sizes[3] - sizes[4] == 5 * MIB


def test_chunk_failure_aborts_upload(xfyun: FakeXfyun, credentials: Credentials) -> None:
    xfyun.queue("/file/mpupload/upload", ok(), failure(26601, "slice rejected"))
    handle = AudioHandle.from_bytes("long.wav", b"\x01" * 40)

    with pytest.raises(UploadFailed, match="Chunk 1"):
        _coordinator(xfyun, credentials, chunk_size=10).upload(handle, classify(handle, small_file_threshold=30))

    assert xfyun.paths == ["/file/mpupload/init", "/file/mpupload/upload", "/file/mpupload/upload"]


def test_init_failure_stops_before_chunks(xfyun: FakeXfyun, credentials: Credentials) -> None:
    xfyun.queue("/file/mpupload/init", failure(10303, "invalid app_id"))
    handle = AudioHandle.from_bytes("long.wav", b"\x01" * 40)

    with pytest.raises(UploadFailed, match="init"):
        _coordinator(xfyun, credentials, chunk_size=10).upload(handle, classify(handle, small_file_threshold=30))

    assert xfyun.paths == ["/file/mpupload/init"]


def test_complete_failure_raises(xfyun: FakeXfyun, credentials: Credentials) -> None:
    xfyun.queue("/file/mpupload/complete", failure(26602, "merge failed"))
    handle = AudioHandle.from_bytes("long.wav", b"\x01" * 25)

    with pytest.raises(UploadFailed, match="merge failed"):
        _coordinator(xfyun, credentials, chunk_size=10).upload(handle, classify(handle, small_file_threshold=20))

    assert xfyun.paths.count("/file/mpupload/upload") == 3


def test_network_error_becomes_transport_error(xfyun: FakeXfyun, credentials: Credentials) -> None:
    xfyun.queue("/file/upload", httpx.ConnectError("connection refused"))
    handle = AudioHandle.from_bytes("a.wav", b"RIFF")

    with pytest.raises(TransportError):
        _coordinator(xfyun, credentials).upload(handle, classify(handle))


def test_non_json_body_becomes_transport_error(xfyun: FakeXfyun, credentials: Credentials) -> None:
    xfyun.queue("/file/upload", httpx.Response(502, text="<html>Bad gateway</html>"))
    handle = AudioHandle.from_bytes("a.wav", b"RIFF")

    with pytest.raises(TransportError, match="502"):
        _coordinator(xfyun, credentials).upload(handle, classify(handle))


def _unreadable(name: str, size: int) -> AudioHandle:
    def opener():
        raise PermissionError(13, "Permission denied", name)

    return AudioHandle(name=name, size=size, opener=opener)


def test_unreadable_small_file_becomes_transport_error(xfyun: FakeXfyun, credentials: Credentials) -> None:
    handle = _unreadable("locked.wav", 4)

    with pytest.raises(TransportError, match="Reading locked.wav failed"):
        _coordinator(xfyun, credentials).upload(handle, classify(handle))
    assert xfyun.requests == []


def test_unreadable_large_file_becomes_transport_error(xfyun: FakeXfyun, credentials: Credentials) -> None:
    handle = _unreadable("locked.mp3", 40)

    with pytest.raises(TransportError, match="Permission denied") as excinfo:
        _coordinator(xfyun, credentials, chunk_size=10).upload(handle, classify(handle, small_file_threshold=30))
    assert isinstance(excinfo.value.__cause__, PermissionError)
    assert xfyun.paths == ["/file/mpupload/init"]
