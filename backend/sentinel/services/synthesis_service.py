"""
Text-to-speech synthesis for podcast artifacts.

Posts the assembled text to the TTS server, stores the returned audio under
the configured storage path and hands back its public URL.
"""

import os
import uuid
from typing import Optional

import aiofiles
import httpx

from sentinel.config import Settings, get_settings
from sentinel.schemas.podcast import TreatmentType
from sentinel.utils.errors import SynthesisError
from sentinel.utils.logger import get_logger

logger = get_logger(__name__)

# Words per minute the TTS voice is tuned for, per treatment
SPEAKING_RATE = {
    TreatmentType.GENERAL_OVERVIEW: 160,
    TreatmentType.DEEP: 140,
}


class SynthesisService:
    """HTTP client for the text-to-speech server."""

    def __init__(self, settings: Optional[Settings] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        """
        Args:
            settings: Application settings (defaults to the cached settings)
            transport: Optional httpx transport, used by tests to stub the server
        """
        self.settings = settings or get_settings()
        self.transport = transport

    async def synthesize(self, text: str, treatment: TreatmentType) -> str:
        """
        Synthesize speech for the given text.

        Returns:
            Public URL of the stored audio file

        Raises:
            SynthesisError: If the server fails or returns no audio
        """
        if not text or not text.strip():
            raise SynthesisError("Cannot synthesize empty text")

        url = f"{self.settings.tts_api_url.rstrip('/')}/tts"
        payload = {
            "text": text,
            "speaker": self.settings.tts_speaker,
            "language": self.settings.tts_language,
            "treatment": treatment.value,
            "words_per_minute": SPEAKING_RATE[treatment],
        }

        logger.info("Requesting speech synthesis", text_length=len(text), treatment=treatment.value)

        try:
            async with httpx.AsyncClient(transport=self.transport,
                                         timeout=self.settings.collaborator_timeout_seconds) as client:
                response = await client.post(url, json=payload)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("TTS server returned an error", status_code=e.response.status_code)
            raise SynthesisError(f"TTS server returned status {e.response.status_code}")
        except httpx.RequestError as e:
            logger.error("TTS request failed", error=str(e))
            raise SynthesisError(f"TTS request failed: {str(e)}")

        audio = response.content
        if not audio:
            raise SynthesisError("TTS server returned no audio")

        filename = f"podcast-{uuid.uuid4().hex}.wav"
        await self._store_audio(filename, audio)

        audio_url = f"{self.settings.audio_base_url.rstrip('/')}/{filename}"
        logger.info("Speech synthesis complete", audio_url=audio_url, audio_bytes=len(audio))
        return audio_url

    async def _store_audio(self, filename: str, audio: bytes) -> None:
        os.makedirs(self.settings.audio_storage_path, exist_ok=True)
        path = os.path.join(self.settings.audio_storage_path, filename)
        try:
            async with aiofiles.open(path, "wb") as f:
                await f.write(audio)
        except OSError as e:
            logger.error("Failed to store synthesized audio", path=path, error=str(e))
            raise SynthesisError(f"Failed to store synthesized audio: {str(e)}")
