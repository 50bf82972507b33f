from __future__ import annotations

import logging
import math
import uuid
from typing import Iterator

from xfyun_ost_mcp.errors import TransportError, UploadFailed
from xfyun_ost_mcp.services.api import (
    MULTIPART_COMPLETE_PATH,
    MULTIPART_INIT_PATH,
    MULTIPART_UPLOAD_PATH,
    SMALL_FILE_UPLOAD_PATH,
    UPLOAD_HOST,
    ApiEnvelope,
    XfyunApi,
)
from xfyun_ost_mcp.services.classifier import MIB
from xfyun_ost_mcp.types import AudioClassification, AudioHandle, FileChunk, UploadSession, UploadStrategy

logger = logging.getLogger(__name__)

CHUNK_SIZE = 10 * MIB
PUBLIC_CLOUD_ID = "0"


def new_request_id() -> str:
    return uuid.uuid4().hex


def chunk_count(size: int, chunk_size: int = CHUNK_SIZE) -> int:
    return math.ceil(size / chunk_size)


def split_chunks(handle: AudioHandle, chunk_size: int = CHUNK_SIZE) -> Iterator[FileChunk]:
    """Yields contiguous slices of the audio, reading one slice at a time."""
    with handle.opener() as stream:
        index = 0
        while True:
            data = stream.read(chunk_size)
            if not data:
                return
            yield FileChunk(index=index, data=data)
            index += 1


class UploadCoordinator:
    def __init__(self, api: XfyunApi, chunk_size: int = CHUNK_SIZE) -> None:
        self.api = api
        self.chunk_size = chunk_size

    def upload(self, handle: AudioHandle, classification: AudioClassification) -> str:
        if classification.strategy is UploadStrategy.SMALL:
            audio_url = self._upload_small(handle)
        else:
            audio_url = self._upload_large(handle)
        logger.info("Uploaded %s (%s bytes) to %s", handle.name, handle.size, audio_url)
        return audio_url

    def _upload_small(self, handle: AudioHandle) -> str:
        try:
            data = handle.read_all()
        except OSError as exc:
            raise TransportError(f"Reading {handle.name} failed: {exc}", exc) from exc

        envelope = self.api.post_multipart(
            UPLOAD_HOST,
            SMALL_FILE_UPLOAD_PATH,
            fields={"request_id": new_request_id(), "app_id": self.api.app_id},
            file_name=handle.name,
            data=data,
        )
        self._check(envelope, "File upload")
        return self._require(envelope, "url", "File upload")

    def _upload_large(self, handle: AudioHandle) -> str:
        session = self._init_session(handle)
        logger.info(
            "Multipart upload %s started for %s with %s chunks",
            session.upload_id,
            handle.name,
            session.total_chunks,
        )

        try:
            for chunk in split_chunks(handle, self.chunk_size):
                self._upload_chunk(session, chunk, handle.name)
                logger.debug("Uploaded chunk %s/%s", chunk.index + 1, session.total_chunks)
        except OSError as exc:
            raise TransportError(f"Reading {handle.name} failed: {exc}", exc) from exc

        return self._complete_session(session)

    def _init_session(self, handle: AudioHandle) -> UploadSession:
        request_id = new_request_id()
        envelope = self.api.post_json(
            UPLOAD_HOST,
            MULTIPART_INIT_PATH,
            {"request_id": request_id, "app_id": self.api.app_id, "cloud_id": PUBLIC_CLOUD_ID},
        )
        self._check(envelope, "Multipart upload init")
        upload_id = self._require(envelope, "upload_id", "Multipart upload init")
        return UploadSession(
            request_id=request_id,
            upload_id=upload_id,
            total_chunks=chunk_count(handle.size, self.chunk_size),
        )

    def _upload_chunk(self, session: UploadSession, chunk: FileChunk, file_name: str) -> None:
        envelope = self.api.post_multipart(
            UPLOAD_HOST,
            MULTIPART_UPLOAD_PATH,
            fields={
                "request_id": session.request_id,
                "app_id": self.api.app_id,
                "upload_id": session.upload_id,
                "slice_id": str(chunk.index),
            },
            file_name=file_name,
            data=chunk.data,
        )
        self._check(envelope, f"Chunk {chunk.index} upload")

    def _complete_session(self, session: UploadSession) -> str:
        envelope = self.api.post_json(
            UPLOAD_HOST,
            MULTIPART_COMPLETE_PATH,
            {
                "request_id": session.request_id,
                "app_id": self.api.app_id,
                "upload_id": session.upload_id,
            },
        )
        self._check(envelope, "Multipart upload complete")
        return self._require(envelope, "url", "Multipart upload complete")

    @staticmethod
    def _check(envelope: ApiEnvelope, step: str) -> None:
        if not envelope.ok:
            raise UploadFailed(f"{step} failed ({envelope.code}): {envelope.message}")

    @staticmethod
    def _require(envelope: ApiEnvelope, key: str, step: str) -> str:
        value = envelope.data.get(key)
        if not value:
            raise UploadFailed(f"{step} response missing {key}")
        return str(value)
