"""
Audio generation for podcasts.

Sends narration scripts to ElevenLabs text-to-speech and returns MP3 bytes.
"""

import logging
from typing import Optional

import httpx

from newscast.core.errors import ConfigurationError, EmptyInputError, EmptyOutputError, SynthesisError
from newscast.core.extraction_service import truncate_at_sentence
from newscast.config import DEFAULT_VOICE_ID

logger = logging.getLogger(__name__)

ELEVENLABS_API_URL = "https://api.elevenlabs.io/v1"
TTS_MODEL = "eleven_turbo_v2"
MAX_TTS_CHARACTERS = 800
TTS_SENTENCE_FLOOR = 600

VOICE_SETTINGS = {
    "stability": 0.7,
    "similarity_boost": 0.8,
    "style": 0.0,
    "use_speaker_boost": False,
}


class SpeechSynthesizer:
    """ElevenLabs text-to-speech with a fixed voice."""

    def __init__(
        self,
        api_key: Optional[str],
        voice_id: str = DEFAULT_VOICE_ID,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0
    ):
        self.api_key = api_key
        self.voice_id = voice_id
        self.client = client
        self.timeout = timeout

    async def synthesize(self, script: str) -> bytes:
        """
        Generate MP3 audio for a script.

        Args:
            script: Narration text; anything past 800 characters is cut

        Returns:
            MP3 audio bytes

        Raises:
            EmptyInputError: blank script
            ConfigurationError: no API key
            SynthesisError: upstream returned a non-success status
            EmptyOutputError: upstream returned no audio
        """
        if not script or not script.strip():
            raise EmptyInputError("Cannot generate audio from empty text")

        if not self.api_key:
            raise ConfigurationError("ElevenLabs API key not configured", setting="ELEVENLABS_API_KEY")

        text = truncate_at_sentence(script, MAX_TTS_CHARACTERS, TTS_SENTENCE_FLOOR)

        logger.info(f"Calling ElevenLabs API ({len(text)} characters)...")
        if self.client is not None:
            response = await self._post(self.client, text)
        else:
            async with httpx.AsyncClient() as client:
                response = await self._post(client, text)

        if not response.is_success:
            raise SynthesisError(
                f"ElevenLabs API error: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text
            )

        audio_data = response.content
        if not audio_data:
            raise EmptyOutputError("ElevenLabs returned empty audio")

        logger.info(f"Audio generated: {len(audio_data)} bytes")
        return audio_data

    async def _post(self, client: httpx.AsyncClient, text: str) -> httpx.Response:
        return await client.post(
            f"{ELEVENLABS_API_URL}/text-to-speech/{self.voice_id}",
            headers={
                "Accept": "audio/mpeg",
                "Content-Type": "application/json",
                "xi-api-key": self.api_key
            },
            json={
                "text": text,
                "model_id": TTS_MODEL,
                "voice_settings": VOICE_SETTINGS
            },
            timeout=self.timeout
        )
