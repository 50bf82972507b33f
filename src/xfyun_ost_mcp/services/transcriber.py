from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from threading import Event

import httpx

from xfyun_ost_mcp.errors import ErrorKind, TranscriptionError, TransportError
from xfyun_ost_mcp.services.api import XfyunApi
from xfyun_ost_mcp.services.classifier import classify
from xfyun_ost_mcp.services.extractor import extract
from xfyun_ost_mcp.services.jobs import JobOptions, JobPoller, JobSubmitter
from xfyun_ost_mcp.services.rate_limit import RateLimiter
from xfyun_ost_mcp.services.signer import RequestSigner
from xfyun_ost_mcp.services.uploader import CHUNK_SIZE, UploadCoordinator
from xfyun_ost_mcp.types import AudioHandle, Credentials

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TranscriptionOutcome:
    text: str | None = None
    error: TranscriptionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> ErrorKind | None:
        return self.error.kind if self.error is not None else None


class XfyunTranscriber:
    def __init__(
        self,
        credentials: Credentials,
        timeout_ms: int = 30000,
        poll_interval_ms: int = 5000,
        max_poll_count: int = 60,
        *,
        job_options: JobOptions | None = None,
        signer: RequestSigner | None = None,
        rate_limiter: RateLimiter | None = None,
        transport: httpx.BaseTransport | None = None,
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        self.credentials = credentials
        self.timeout_ms = timeout_ms
        self.poll_interval_ms = poll_interval_ms
        self.max_poll_count = max_poll_count
        self.job_options = job_options or JobOptions()
        self.signer = signer or RequestSigner()
        self.rate_limiter = rate_limiter
        self.transport = transport
        self.chunk_size = chunk_size

    def transcribe(self, audio: AudioHandle | Path | str, cancel_event: Event | None = None) -> str:
        if isinstance(audio, AudioHandle):
            handle = audio
        else:
            try:
                handle = AudioHandle.from_path(audio)
            except OSError as exc:
                raise TransportError(f"Reading {Path(audio).name} failed: {exc}", exc) from exc
        logger.info("Transcribing %s (%s bytes)", handle.name, handle.size)

        classification = classify(handle)
        with httpx.Client(timeout=self.timeout_ms / 1000.0, transport=self.transport) as client:
            api = XfyunApi(client, self.credentials, self.signer, self.rate_limiter)
            audio_url = UploadCoordinator(api, self.chunk_size).upload(handle, classification)
            task_id = JobSubmitter(api, self.job_options).submit(audio_url, classification)
            poller = JobPoller(
                api,
                poll_interval_ms=self.poll_interval_ms,
                max_poll_count=self.max_poll_count,
                cancel_event=cancel_event,
            )
            result = poller.poll(task_id)

        text = extract(result.result)
        logger.info("Transcription of %s finished, %s characters", handle.name, len(text))
        return text

    def transcribe_outcome(
        self,
        audio: AudioHandle | Path | str,
        cancel_event: Event | None = None,
    ) -> TranscriptionOutcome:
        try:
            return TranscriptionOutcome(text=self.transcribe(audio, cancel_event))
        except TranscriptionError as exc:
            logger.warning("Transcription failed (%s): %s", exc.kind.value, exc)
            return TranscriptionOutcome(error=exc)
