from __future__ import annotations

import base64
import binascii
from pathlib import Path
from typing import Any

from fastmcp import FastMCP
from mcp.types import ToolAnnotations

from xfyun_ost_mcp.errors import PollTimeout, TranscriptionError
from xfyun_ost_mcp.services.classifier import classify
from xfyun_ost_mcp.services.speech import NoSpeechRecognized, SpeechService
from xfyun_ost_mcp.services.transcriber import XfyunTranscriber
from xfyun_ost_mcp.types import AudioHandle


class ToolRegistry:
    def __init__(self, transcriber: XfyunTranscriber, speech: SpeechService | None = None) -> None:
        self.transcriber = transcriber
        self.speech = speech or SpeechService(transcriber)

    def register(self, mcp: FastMCP) -> None:
        _ro = ToolAnnotations(readOnlyHint=True)

        @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, idempotentHint=False))
        def transcribe_audio(path: str) -> dict[str, Any]:
            """Transcribe a local .wav, .pcm or .mp3 file.

            Args:
                path: Path to the audio file on the server

            Returns:
                The recognised text, or an error kind with a message.
            """
            audio_path = Path(path).expanduser()
            if not audio_path.is_file():
                return {"error": "file_not_found", "path": path}

            outcome = self.transcriber.transcribe_outcome(audio_path)
            if outcome.error is not None:
                return self._error_payload(outcome.error)

            text = outcome.text or ""
            return {
                "status": "completed",
                "path": str(audio_path),
                "text": text,
                "characters": len(text),
            }

        @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, idempotentHint=False))
        def transcribe_audio_data(audio_base64: str, file_name: str) -> dict[str, Any]:
            """Transcribe audio sent inline as base64.

            Args:
                audio_base64: Base64-encoded audio bytes
                file_name: Original file name; its extension selects the encoding

            Returns:
                The recognised text, or an error kind with a message.
            """
            try:
                data = base64.b64decode(audio_base64, validate=True)
            except (binascii.Error, ValueError):
                return {"error": "invalid_base64", "file_name": file_name}

            try:
                text = self.speech.transcribe_upload(data, file_name)
            except TranscriptionError as exc:
                return self._error_payload(exc)
            except ValueError as exc:
                return {"error": "empty_audio", "message": str(exc)}
            except NoSpeechRecognized as exc:
                return {"error": "no_speech", "message": str(exc)}

            return {
                "status": "completed",
                "file_name": file_name,
                "text": text,
                "characters": len(text),
            }

        @mcp.tool(annotations=_ro)
        def classify_audio(path: str) -> dict[str, Any]:
            audio_path = Path(path).expanduser()
            if not audio_path.is_file():
                return {"error": "file_not_found", "path": path}

            handle = AudioHandle.from_path(audio_path)
            try:
                classification = classify(handle)
            except TranscriptionError as exc:
                return self._error_payload(exc)
            return {
                "path": str(audio_path),
                "size": handle.size,
                "strategy": classification.strategy.value,
                "encoding": classification.encoding,
                "format": classification.format,
            }

    @staticmethod
    def _error_payload(exc: TranscriptionError) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "error": exc.kind.value,
            "message": str(exc),
            "retryable": exc.kind.is_retryable,
        }
        task_id = getattr(exc, "task_id", None)
        if task_id is not None:
            payload["task_id"] = task_id
        if isinstance(exc, PollTimeout):
            payload["attempts"] = exc.attempts
        return payload
