from __future__ import annotations

import logging
import tempfile
from pathlib import Path, PurePath
from threading import Event

from xfyun_ost_mcp.services.transcriber import XfyunTranscriber

logger = logging.getLogger(__name__)


class NoSpeechRecognized(RuntimeError):
    """The audio was transcribed but contained no recognisable speech."""


class SpeechService:
    """Turns uploaded audio bytes into text, managing the temporary copy."""

    def __init__(self, transcriber: XfyunTranscriber) -> None:
        self.transcriber = transcriber

    def transcribe_upload(
        self,
        data: bytes,
        file_name: str | None,
        cancel_event: Event | None = None,
    ) -> str:
        if not data:
            raise ValueError("Audio file must not be empty")

        suffix = PurePath(file_name).suffix if file_name else ""
        logger.info("Received audio %s (%s bytes)", file_name, len(data))

        temp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(prefix="audio_", suffix=suffix or ".tmp", delete=False) as temp_file:
                temp_file.write(data)
                temp_path = Path(temp_file.name)

            transcript = self.transcriber.transcribe(temp_path, cancel_event)
            if not transcript.strip():
                raise NoSpeechRecognized("Speech recognition returned no text")
            return transcript
        finally:
            self._cleanup(temp_path)

    @staticmethod
    def _cleanup(temp_path: Path | None) -> None:
        if temp_path is None or not temp_path.exists():
            return
        try:
            temp_path.unlink()
            logger.info("Deleted temporary audio %s", temp_path)
        except OSError:
            logger.warning("Could not delete temporary audio %s", temp_path, exc_info=True)
