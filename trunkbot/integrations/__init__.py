"""
Integrations package.

Keep imports lightweight: transcription backends pull in their SDKs only
when the module defining them is imported.
"""

from typing import Any

__all__ = ["AudioEnhancer", "Transcriber", "TranscriptionResult", "create_transcriber"]


def __getattr__(name: str) -> Any:
    if name in ("Transcriber", "TranscriptionResult", "create_transcriber"):
        from . import transcription  # noqa: PLC0415

        return getattr(transcription, name)
    if name == "AudioEnhancer":
        from .audio import AudioEnhancer  # noqa: PLC0415

        return AudioEnhancer
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
