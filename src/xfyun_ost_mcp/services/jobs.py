from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Event
from typing import Any

from xfyun_ost_mcp.errors import Cancelled, JobCreationFailed, PollTimeout, QueryFailed
from xfyun_ost_mcp.services.api import TASK_CREATE_PATH, TASK_HOST, TASK_QUERY_PATH, XfyunApi
from xfyun_ost_mcp.services.extractor import parse_recognition_result
from xfyun_ost_mcp.services.uploader import new_request_id
from xfyun_ost_mcp.types import AudioClassification, QueryResult, TaskStatus, TranscriptionJob

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class JobOptions:
    language: str = "zh_cn"
    domain: str = "pro_ost_ed"
    accent: str = "mandarin"
    postproc_on: int = 1
    callback_url: str | None = None
    vspp_on: int | None = None
    speaker_num: int | None = None
    duration: int | None = None

    def business(self, request_id: str) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "request_id": request_id,
            "language": self.language,
            "domain": self.domain,
            "accent": self.accent,
            "postproc_on": self.postproc_on,
        }
        optional = {
            "callback_url": self.callback_url,
            "vspp_on": self.vspp_on,
            "speaker_num": self.speaker_num,
            "duration": self.duration,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload


class JobSubmitter:
    def __init__(self, api: XfyunApi, options: JobOptions | None = None) -> None:
        self.api = api
        self.options = options or JobOptions()

    def submit(self, audio_url: str, classification: AudioClassification) -> str:
        payload = {
            "common": {"app_id": self.api.app_id},
            "business": self.options.business(new_request_id()),
            "data": {
                "audio_url": audio_url,
                "audio_src": "http",
                "format": classification.format,
                "encoding": classification.encoding,
            },
        }
        envelope = self.api.post_json(TASK_HOST, TASK_CREATE_PATH, payload)
        if not envelope.ok:
            raise JobCreationFailed(f"Task creation failed ({envelope.code}): {envelope.message}")

        task_id = envelope.data.get("task_id")
        if not task_id:
            raise JobCreationFailed("Task creation response missing task_id")
        logger.info("Created transcription task %s", task_id)
        return str(task_id)


class JobPoller:
    """Queries a task until it reaches a terminal status or the budget runs out.

    At most ``max_poll_count + 1`` queries are issued. Setting ``cancel_event``
    interrupts the wait between queries and raises :class:`Cancelled`; the
    remote task keeps running.
    """

    def __init__(
        self,
        api: XfyunApi,
        poll_interval_ms: int = 5000,
        max_poll_count: int = 60,
        cancel_event: Event | None = None,
    ) -> None:
        self.api = api
        self.poll_interval_ms = poll_interval_ms
        self.max_poll_count = max_poll_count
        self.cancel_event = cancel_event or Event()

    def poll(self, task_id: str) -> QueryResult:
        count = 0
        while True:
            if self.cancel_event.is_set():
                raise Cancelled(task_id)

            result = self.query(task_id)
            logger.debug(
                "Task %s status %s (poll %s/%s)",
                task_id,
                result.status.value,
                count + 1,
                self.max_poll_count + 1,
            )
            if result.status.is_terminal:
                logger.info("Task %s finished with status %s", task_id, result.status.name)
                return result

            if count >= self.max_poll_count:
                raise PollTimeout(task_id, count + 1)

            if self.cancel_event.wait(self.poll_interval_ms / 1000.0):
                logger.info("Stopped polling task %s on request", task_id)
                raise Cancelled(task_id)
            count += 1

    def query(self, task_id: str) -> QueryResult:
        payload = {
            "common": {"app_id": self.api.app_id},
            "business": {"task_id": task_id},
        }
        envelope = self.api.post_json(TASK_HOST, TASK_QUERY_PATH, payload)
        if not envelope.ok:
            raise QueryFailed(task_id, f"({envelope.code}) {envelope.message}")

        raw_status = str(envelope.data.get("task_status") or "")
        try:
            status = TaskStatus(raw_status)
        except ValueError as exc:
            raise QueryFailed(task_id, f"unknown task status {raw_status!r}") from exc

        return QueryResult(
            job=TranscriptionJob(task_id=str(envelope.data.get("task_id") or task_id), status=status),
            result=parse_recognition_result(envelope.data.get("result")),
        )
