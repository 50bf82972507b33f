from __future__ import annotations

import io
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Callable


class UploadStrategy(str, Enum):
    SMALL = "small"
    LARGE = "large"


class TaskStatus(str, Enum):
    """Task states as encoded by the provider."""

    PENDING = "1"
    PROCESSING = "2"
    COMPLETED = "3"
    CALLBACK_COMPLETED = "4"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.CALLBACK_COMPLETED)


class WordAttribute(str, Enum):
    NORMAL = "n"
    SMOOTHING = "s"
    PUNCTUATION = "p"
    SEGMENT = "g"
    UNKNOWN = ""

    @classmethod
    def parse(cls, value: object) -> WordAttribute:
        try:
            return cls(str(value or ""))
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True, slots=True)
class Credentials:
    app_id: str
    api_key: str
    api_secret: str

    def __repr__(self) -> str:
        return f"Credentials(app_id={self.app_id!r}, api_key=***, api_secret=***)"


@dataclass(slots=True)
class AudioHandle:
    name: str
    size: int
    opener: Callable[[], BinaryIO]

    @classmethod
    def from_path(cls, path: Path | str) -> AudioHandle:
        audio_path = Path(path)
        return cls(
            name=audio_path.name,
            size=audio_path.stat().st_size,
            opener=lambda: audio_path.open("rb"),
        )

    @classmethod
    def from_bytes(cls, name: str, data: bytes) -> AudioHandle:
        return cls(name=name, size=len(data), opener=lambda: io.BytesIO(data))

    def read_all(self) -> bytes:
        with self.opener() as stream:
            return stream.read()


@dataclass(frozen=True, slots=True)
class AudioClassification:
    strategy: UploadStrategy
    encoding: str
    format: str


@dataclass(frozen=True, slots=True)
class FileChunk:
    index: int
    data: bytes


@dataclass(frozen=True, slots=True)
class UploadSession:
    request_id: str
    upload_id: str
    total_chunks: int


@dataclass(frozen=True, slots=True)
class TranscriptionJob:
    task_id: str
    status: TaskStatus


@dataclass(slots=True)
class WordCandidate:
    text: str
    confidence: float | None = None
    attribute: WordAttribute = WordAttribute.NORMAL


@dataclass(slots=True)
class WordSlot:
    candidates: list[WordCandidate] = field(default_factory=list)
    begin_frame: int | None = None
    end_frame: int | None = None


@dataclass(slots=True)
class Run:
    slots: list[WordSlot] = field(default_factory=list)


@dataclass(slots=True)
class Sentence:
    runs: list[Run] = field(default_factory=list)
    begin_ms: int | None = None
    end_ms: int | None = None
    speaker_role: str | None = None


@dataclass(slots=True)
class LatticeEntry:
    sentence: Sentence | None = None
    begin_ms: int | None = None
    end_ms: int | None = None
    speaker: str | None = None


@dataclass(slots=True)
class RecognitionResult:
    lattice: list[LatticeEntry] = field(default_factory=list)
    lattice2: list[LatticeEntry] = field(default_factory=list)
    file_length: int | None = None


@dataclass(slots=True)
class QueryResult:
    job: TranscriptionJob
    result: RecognitionResult = field(default_factory=RecognitionResult)

    @property
    def task_id(self) -> str:
        return self.job.task_id

    @property
    def status(self) -> TaskStatus:
        return self.job.status
