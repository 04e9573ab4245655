"""
Gemini transcription using the Google GenAI SDK directly.
"""

from typing import List

from google import genai
from google.genai import types as google_genai_types

from trunkbot.config.settings import Settings
from trunkbot.services.exceptions import TranscriptionError
from trunkbot.utils.logger import get_module_logger

from .base import TranscriptionResult

logger = get_module_logger(__name__)

AUDIO_MIME_TYPE = "audio/mp3"


class GeminiTranscriber:
    """Transcribes call audio by prompting a Gemini model with the audio blob."""

    name = "gemini"

    def __init__(self, settings: Settings, prompt: str):
        self.model = settings.gemini_model
        self.prompt = prompt
        self.client = genai.Client(api_key=settings.gemini_api_key)
        logger.info(f"Initialized GeminiTranscriber for model {self.model}")

    def _build_parts(self, audio: bytes) -> List[google_genai_types.Part]:
        return [
            google_genai_types.Part.from_bytes(data=audio, mime_type=AUDIO_MIME_TYPE),
            google_genai_types.Part(text="Please transcribe the audio. "),
            google_genai_types.Part(text="Ignore silences."),
            google_genai_types.Part(text=f"Here are some correction terms: {self.prompt}"),
        ]

    async def transcribe(self, audio: bytes) -> TranscriptionResult:
        """
        Transcribe call audio.

        Raises:
            TranscriptionError: If the request fails
        """
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=[google_genai_types.Content(role="user", parts=self._build_parts(audio))],
            )
        except Exception as e:
            raise TranscriptionError(f"Gemini transcription failed: {e}",
                                     context={"provider": self.name, "model": self.model}) from e

        lines = []
        for candidate in response.candidates or []:
            if candidate.content is None:
                continue
            for part in candidate.content.parts or []:
                if part.text and part.text.strip():
                    lines.append(part.text.strip())

        return TranscriptionResult(text="\n".join(lines))

    async def close(self) -> None:
        return None
