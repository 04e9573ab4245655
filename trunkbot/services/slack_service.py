"""
Slack Notification Service

Posts processed calls to Slack channels: the call audio is uploaded as a
file with the formatted transcript as its comment.
"""

from typing import Optional

from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from trunkbot.config.settings import Settings
from trunkbot.models.dispatch import DispatchConfig
from trunkbot.services.exceptions import NotificationError
from trunkbot.utils.logger import get_module_logger

logger = get_module_logger(__name__)


class SlackService:
    """
    Service for posting call audio and transcripts to Slack.

    Channel aliases are translated to Slack channel IDs through the
    dispatch configuration's ``channels`` catalog.
    """

    def __init__(self, settings: Settings, dispatch_config: DispatchConfig):
        """
        Initialize Slack service with settings.

        Args:
            settings: Application settings containing Slack configuration
            dispatch_config: Dispatch tables holding the channel catalog
        """
        self.settings = settings
        self.dispatch_config = dispatch_config
        self.client: Optional[AsyncWebClient] = None

        token = (settings.slack_bot_token or "").strip()
        self.enabled = bool(token)

        if self.enabled:
            self.client = AsyncWebClient(token)
            logger.info("Slack notifications enabled")
        else:
            logger.info("Slack notifications disabled - no bot token configured")

    async def post_call(self, channel: str, audio: bytes, filename: str, comment: str) -> bool:
        """
        Upload call audio with its comment to one channel.

        Args:
            channel: Channel alias or Slack channel ID
            audio: Call audio bytes
            filename: Name shown for the uploaded file
            comment: Formatted call comment

        Returns:
            bool: True if posted, False when Slack is disabled

        Raises:
            NotificationError: If Slack rejects the upload
        """
        if not self.enabled:
            logger.debug(f"Slack notifications disabled - skipping post to {channel}")
            return False

        channel_id = self.dispatch_config.slack_channel_id(channel)
        try:
            await self.client.files_upload_v2(
                channel=channel_id,
                file=audio,
                filename=filename,
                initial_comment=comment,
            )
        except SlackApiError as e:
            error = e.response.get("error", str(e)) if e.response is not None else str(e)
            raise NotificationError(
                f"Slack rejected upload of {filename}: {error}",
                channel=channel,
                context={"channel_id": channel_id, "filename": filename},
            ) from e

        logger.info(f"Posted {filename} to Slack channel {channel} ({channel_id})")
        return True
