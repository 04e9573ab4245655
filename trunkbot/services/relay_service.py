"""
Relay of original submissions to a secondary rdio-scanner instance.
"""

from typing import Optional

import httpx

from trunkbot.config.settings import Settings
from trunkbot.services.exceptions import RelayUploadError
from trunkbot.utils.logger import get_module_logger

logger = get_module_logger(__name__)


class RelayService:
    """Forwards call audio and raw metadata to rdio-scanner's trunk-recorder upload API."""

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.url = settings.relay_url
        self.enabled = bool(self.url)
        self.http_client: Optional[httpx.AsyncClient] = None

        if self.enabled:
            self.http_client = http_client or httpx.AsyncClient(timeout=settings.relay_timeout)
            logger.info(f"Relay enabled to {self.url}")
        else:
            logger.info("Relay disabled - no relay URL configured")

    async def upload(self, filename: str, audio: bytes, raw_metadata: str) -> bool:
        """
        Forward one call.

        Args:
            filename: Audio filename
            audio: Call audio bytes
            raw_metadata: Metadata JSON exactly as submitted

        Returns:
            bool: True if accepted, False when the relay is disabled

        Raises:
            RelayUploadError: On transport failure or a non-2xx response
        """
        if not self.enabled:
            logger.debug(f"Relay disabled - skipping {filename}")
            return False

        data = {
            "key": self.settings.relay_api_key,
            "meta": raw_metadata,
            "system": self.settings.relay_system_id,
        }
        files = {"audio": (filename, audio, "application/octet-stream")}

        try:
            response = await self.http_client.post(self.url, data=data, files=files)
        except httpx.HTTPError as e:
            raise RelayUploadError(
                f"Error uploading {filename} to relay: {e}",
                context={"url": self.url},
            ) from e

        if not response.is_success:
            raise RelayUploadError(
                f"Relay responded with status {response.status_code}: {response.text}",
                status_code=response.status_code,
                context={"url": self.url, "filename": filename},
            )

        logger.info(f"Relayed {filename} to {self.url}")
        return True

    async def close(self) -> None:
        if self.http_client is not None:
            await self.http_client.aclose()
