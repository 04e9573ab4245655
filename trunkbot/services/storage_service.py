"""
Object storage archive for call audio.

Uploads to any S3-compatible bucket (Cloudflare R2 in production). boto3 is
blocking, so uploads run in a worker thread.
"""

import asyncio
from typing import Dict

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from trunkbot.config.settings import Settings
from trunkbot.models.call import CallMetadata
from trunkbot.services.exceptions import StorageUploadError
from trunkbot.utils.logger import get_module_logger

logger = get_module_logger(__name__)

CONTENT_TYPE = "application/octet-stream"


def object_metadata(meta: CallMetadata) -> Dict[str, str]:
    """Metadata tags stored alongside the audio object."""
    return {
        "short-name": meta.short_name,
        "call-length": meta.call_length_display,
        "talk-group": str(meta.talkgroup),
        "priority": str(meta.priority),
    }


class StorageService:
    """Archives raw call audio keyed by ``{short_name}/{talkgroup}/{filename}``."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.bucket = settings.storage_bucket
        self.enabled = bool(self.bucket)
        self.client = None

        if self.enabled:
            self.client = boto3.client(
                "s3",
                endpoint_url=settings.storage_endpoint_url or None,
                aws_access_key_id=settings.storage_access_key or None,
                aws_secret_access_key=settings.storage_secret_key or None,
                region_name=settings.storage_region,
            )
            logger.info(f"Audio archive enabled for bucket {self.bucket}")
        else:
            logger.info("Audio archive disabled - no storage bucket configured")

    async def store_call(self, key: str, audio: bytes, meta: CallMetadata) -> bool:
        """
        Upload call audio under ``key``.

        Args:
            key: Object key
            audio: Call audio bytes
            meta: Call metadata used for object tags

        Returns:
            bool: True if stored, False when storage is disabled

        Raises:
            StorageUploadError: If the upload fails
        """
        if not self.enabled:
            logger.debug(f"Audio archive disabled - skipping {key}")
            return False

        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=audio,
                Metadata=object_metadata(meta),
                ContentType=CONTENT_TYPE,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageUploadError(
                f"Failed to store {key}: {e}",
                context={"bucket": self.bucket, "key": key},
            ) from e

        logger.info(f"Stored {key} ({len(audio)} bytes) in {self.bucket}")
        return True
