from .base import Transcriber, TranscriptionResult, create_transcriber

__all__ = ["Transcriber", "TranscriptionResult", "create_transcriber"]
