"""
Gemini text-to-speech integration for reading cooking steps aloud.

The model answers with raw 16-bit PCM (24 kHz, mono) in the first content
part of the first candidate.
"""

import base64
import logging
from typing import Optional, Protocol

from google import genai
from google.genai import types

from app.config import settings
from app.services.prompts import build_speech_prompt

logger = logging.getLogger(__name__)

NO_AUDIO_MESSAGE = "No audio data received"
SYNTHESIS_FAILED_MESSAGE = "Failed to generate audio for the step"


def _extract_audio_payload(response) -> Optional[str]:
    """Return the base64 audio payload from a generate_content response, if any."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None

    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    if not parts:
        return None

    inline_data = getattr(parts[0], "inline_data", None)
    data = getattr(inline_data, "data", None)
    if not data:
        return None

    # The SDK hands back decoded bytes; the REST payload is base64 text
    if isinstance(data, (bytes, bytearray)):
        return base64.b64encode(data).decode("ascii")
    return data


class SpeechSynthesizer(Protocol):
    async def synthesize_speech(self, text: str) -> str:
        """Return base64-encoded raw PCM for the text."""
        ...


class GeminiSpeechService:
    """Speech synthesis client backed by a Gemini TTS model."""

    def __init__(self, client: Optional[genai.Client] = None):
        if client is None:
            client = genai.Client(api_key=settings.gemini_api_key)
        self.client = client
        self.model = settings.speech_model
        self.voice = settings.speech_voice

    async def synthesize_speech(self, text: str) -> str:
        """
        Narrate a single instruction.

        Args:
            text: Instruction text to read aloud

        Returns:
            Base64-encoded raw PCM audio

        Raises:
            SynthesisError: No audio in the response, or the request failed
        """
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=build_speech_prompt(text),
                config=types.GenerateContentConfig(
                    response_modalities=["AUDIO"],
                    speech_config=types.SpeechConfig(
                        voice_config=types.VoiceConfig(
                            prebuilt_voice_config=types.PrebuiltVoiceConfig(
                                voice_name=self.voice,
                            )
                        )
                    ),
                ),
            )
        except Exception as e:
            logger.error("Error generating speech: %s", e, exc_info=True)
            raise SynthesisError(SYNTHESIS_FAILED_MESSAGE) from e

        payload = _extract_audio_payload(response)
        if not payload:
            logger.error("Speech response for model %s carried no audio", self.model)
            raise SynthesisError(NO_AUDIO_MESSAGE)

        return payload


class SynthesisError(Exception):
    """Speech request failed or returned no audio."""

    pass
