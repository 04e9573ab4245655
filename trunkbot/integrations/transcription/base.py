"""
Speech-to-text backend interface.

Backends are black boxes to the call pipeline: audio in, transcript and
optional per-speaker segments out, ``TranscriptionError`` on failure.
"""

from dataclasses import dataclass, field
from typing import List, Protocol, runtime_checkable

from trunkbot.config.settings import Settings
from trunkbot.models.dispatch import DispatchConfig
from trunkbot.utils.logger import get_module_logger

logger = get_module_logger(__name__)


@dataclass
class TranscriptionResult:
    """Transcript of one call."""
    text: str
    segments: List[str] = field(default_factory=list)


@runtime_checkable
class Transcriber(Protocol):
    """Anything that turns call audio into text."""

    name: str

    async def transcribe(self, audio: bytes) -> TranscriptionResult:
        ...

    async def close(self) -> None:
        ...


class NullTranscriber:
    """Used when transcription is turned off; every call gets an empty transcript."""

    name = "none"

    async def transcribe(self, audio: bytes) -> TranscriptionResult:
        return TranscriptionResult(text="")

    async def close(self) -> None:
        return None


def create_transcriber(settings: Settings, dispatch_config: DispatchConfig) -> Transcriber:
    """
    Build the transcriber selected by ``settings.transcription_provider``.

    Args:
        settings: Application settings
        dispatch_config: Supplies the correction hints sent with each request

    Returns:
        Transcriber instance; NullTranscriber when the provider is ``none``
    """
    provider = settings.transcription_provider
    prompt = dispatch_config.transcription_prompt

    if provider == "whisper":
        from .whisper_client import WhisperTranscriber  # noqa: PLC0415

        return WhisperTranscriber(settings, prompt)
    if provider == "gemini":
        from .gemini_client import GeminiTranscriber  # noqa: PLC0415

        return GeminiTranscriber(settings, prompt)

    logger.info("Transcription disabled - calls will be posted without transcripts")
    return NullTranscriber()
