"""
Cloudflare Workers AI Whisper transcription.
"""

import base64
from typing import Any, Dict, List, Optional

import httpx

from trunkbot.config.settings import Settings
from trunkbot.services.exceptions import TranscriptionError
from trunkbot.utils.logger import get_module_logger

from .base import TranscriptionResult

logger = get_module_logger(__name__)


class WhisperTranscriber:
    """
    Transcribes call audio with Whisper on Cloudflare Workers AI.

    The street gazetteer and domain vocabulary go in ``initial_prompt`` so
    Whisper favours local spellings ("Hillegass", "Codornices").
    """

    name = "whisper"

    def __init__(self, settings: Settings, prompt: str, http_client: Optional[httpx.AsyncClient] = None):
        if not settings.cloudflare_account_id or not settings.cloudflare_api_token:
            logger.warning("Cloudflare credentials missing - Whisper requests will be rejected")

        self.url = settings.cloudflare_whisper_url
        self.prompt = prompt
        self.http_client = http_client or httpx.AsyncClient(
            timeout=settings.transcription_timeout,
            headers={"Authorization": f"Bearer {settings.cloudflare_api_token}"},
        )
        logger.info(f"Initialized WhisperTranscriber for model {settings.whisper_model}")

    async def transcribe(self, audio: bytes) -> TranscriptionResult:
        """
        Transcribe call audio.

        Args:
            audio: Call audio bytes

        Returns:
            TranscriptionResult with Whisper's text and segments

        Raises:
            TranscriptionError: On transport errors, non-2xx responses or unsuccessful results
        """
        payload = {
            "audio": base64.b64encode(audio).decode("ascii"),
            "initial_prompt": self.prompt,
        }

        try:
            response = await self.http_client.post(self.url, json=payload)
        except httpx.HTTPError as e:
            raise TranscriptionError(f"Error calling Cloudflare Whisper: {e}", context={"provider": self.name}) from e

        if not response.is_success:
            raise TranscriptionError(
                f"Cloudflare Whisper responded with status {response.status_code}: {response.text}",
                context={"provider": self.name, "status_code": response.status_code},
            )

        try:
            body: Dict[str, Any] = response.json()
        except ValueError as e:
            raise TranscriptionError(f"Cloudflare Whisper returned invalid JSON: {e}",
                                     context={"provider": self.name}) from e
        if not isinstance(body, dict):
            raise TranscriptionError(
                f"Cloudflare Whisper returned {type(body).__name__} instead of an object",
                context={"provider": self.name},
            )

        if not body.get("success", False):
            raise TranscriptionError(
                f"Cloudflare Whisper reported failure: {body.get('errors')}",
                context={"provider": self.name},
            )

        result = body.get("result") or {}
        if not isinstance(result, dict):
            raise TranscriptionError(
                f"Cloudflare Whisper result is {type(result).__name__}, expected an object",
                context={"provider": self.name},
            )
        text = (result.get("text") or "").strip()
        logger.debug(f"Whisper transcript ({result.get('word_count', 0)} words): {text}")
        return TranscriptionResult(text=text, segments=_segment_texts(result.get("segments")))

    async def close(self) -> None:
        await self.http_client.aclose()


def _segment_texts(segments: Any) -> List[str]:
    if not isinstance(segments, list):
        return []
    texts = []
    for segment in segments:
        if isinstance(segment, dict):
            text = str(segment.get("text") or "").strip()
            if text:
                texts.append(text)
    return texts
