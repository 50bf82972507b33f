from __future__ import annotations

from pathlib import PurePath

from xfyun_ost_mcp.errors import UnsupportedAudioFormat
from xfyun_ost_mcp.types import AudioClassification, AudioHandle, UploadStrategy

MIB = 1024 * 1024
SMALL_FILE_THRESHOLD = 30 * MIB

# Sent for every file regardless of its real sample rate or bit depth.
AUDIO_FORMAT = "audio/L16;rate=16000"

ENCODINGS = {
    ".wav": "raw",
    ".pcm": "raw",
    ".mp3": "lame",
}


def encoding_for(file_name: str) -> str:
    suffix = PurePath(file_name).suffix.lower()
    encoding = ENCODINGS.get(suffix)
    if encoding is None:
        raise UnsupportedAudioFormat(file_name)
    return encoding


def classify(handle: AudioHandle, small_file_threshold: int = SMALL_FILE_THRESHOLD) -> AudioClassification:
    strategy = UploadStrategy.SMALL if handle.size <= small_file_threshold else UploadStrategy.LARGE
    return AudioClassification(
        strategy=strategy,
        encoding=encoding_for(handle.name),
        format=AUDIO_FORMAT,
    )
