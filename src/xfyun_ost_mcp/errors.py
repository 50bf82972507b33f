"""Typed failures raised by the transcription client."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    UNSUPPORTED_AUDIO_FORMAT = "unsupported_audio_format"
    SIGNING = "signing_failed"
    UPLOAD = "upload_failed"
    JOB_CREATION = "job_creation_failed"
    QUERY = "query_failed"
    POLL_TIMEOUT = "poll_timeout"
    TRANSPORT = "transport_failed"
    CANCELLED = "cancelled"

    @property
    def is_caller_error(self) -> bool:
        """The input has to change before another attempt makes sense."""
        return self is ErrorKind.UNSUPPORTED_AUDIO_FORMAT

    @property
    def is_retryable(self) -> bool:
        """Retrying the whole transcription may succeed."""
        return self in (
            ErrorKind.UPLOAD,
            ErrorKind.JOB_CREATION,
            ErrorKind.QUERY,
            ErrorKind.POLL_TIMEOUT,
            ErrorKind.TRANSPORT,
        )


class TranscriptionError(RuntimeError):
    kind: ErrorKind

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class UnsupportedAudioFormat(TranscriptionError):
    kind = ErrorKind.UNSUPPORTED_AUDIO_FORMAT

    def __init__(self, file_name: str) -> None:
        self.file_name = file_name
        super().__init__(f"Unsupported audio format: {file_name}")


class SigningError(TranscriptionError):
    kind = ErrorKind.SIGNING


class UploadFailed(TranscriptionError):
    kind = ErrorKind.UPLOAD


class JobCreationFailed(TranscriptionError):
    kind = ErrorKind.JOB_CREATION


class QueryFailed(TranscriptionError):
    kind = ErrorKind.QUERY

    def __init__(self, task_id: str, message: str) -> None:
        self.task_id = task_id
        super().__init__(f"Task query failed for {task_id}: {message}")


class PollTimeout(TranscriptionError):
    kind = ErrorKind.POLL_TIMEOUT

    def __init__(self, task_id: str, attempts: int) -> None:
        self.task_id = task_id
        self.attempts = attempts
        super().__init__(f"Transcription task {task_id} did not finish after {attempts} queries")


class TransportError(TranscriptionError):
    kind = ErrorKind.TRANSPORT


class Cancelled(TranscriptionError):
    kind = ErrorKind.CANCELLED

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Stopped waiting for transcription task {task_id}")
