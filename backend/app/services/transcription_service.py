"""
Speech-to-text for uploaded interaction audio (OpenAI Whisper).
"""
from __future__ import annotations

from openai import OpenAI

from app.core.config import settings
from app.core.logger import logger
from app.services.s3_service import audio_content_type
from app.utils.exceptions import AIServiceError


def get_openai_client() -> OpenAI:
    if not settings.OPENAI_API_KEY:
        raise RuntimeError("OPENAI_API_KEY not configured")
    return OpenAI(api_key=settings.OPENAI_API_KEY)


class TranscriptionService:
    def __init__(self) -> None:
        self._client = None

    @property
    def client(self) -> OpenAI:
        # Built on first use so the API runs without an OpenAI key
        if self._client is None:
            self._client = get_openai_client()
        return self._client

    def transcribe_audio(self, data: bytes, filename: str) -> str:
        try:
            transcription = self.client.audio.transcriptions.create(
                file=(filename, data, audio_content_type(filename)),
                model=settings.TRANSCRIPTION_MODEL,
                language=settings.TRANSCRIPTION_LANGUAGE,
            )
        except Exception as e:
            logger.exception("Error transcribing audio %s", filename)
            raise AIServiceError("Failed to transcribe audio") from e

        logger.info("Transcribed %s (%s bytes)", filename, len(data))
        return transcription.text


transcription_service = TranscriptionService()
