"""
Application settings and configuration management.
"""

import os
import sys
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

TRANSCRIPTION_PROVIDERS = ("whisper", "gemini", "none")


def is_testing() -> bool:
    """Check if we're running in a test environment."""
    return (
        "pytest" in os.environ.get("_", "") or
        "PYTEST_CURRENT_TEST" in os.environ or
        os.environ.get("TESTING", "").lower() == "true" or
        "test" in sys.argv[0].lower() if len(sys.argv) > 0 else False
    )


class Settings(BaseSettings):
    """Application settings."""

    # Server Configuration
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080)
    log_level: str = Field(default="INFO")

    # Ingestion Configuration
    ingest_api_key: Optional[str] = Field(
        default=None,
        description="Shared secret recorders must present; ingestion is open when unset"
    )
    max_upload_size_mb: int = Field(
        default=20,
        description="Maximum accepted upload body size in megabytes"
    )
    max_concurrent_calls: int = Field(
        default=10,
        description="Maximum number of call pipelines running at once"
    )
    call_processing_timeout: float = Field(
        default=300.0,
        description="Upper bound in seconds for one call pipeline"
    )

    # Duplicate Filter Configuration
    dedup_cache_size: int = Field(
        default=1000,
        description="Number of call fingerprints remembered for duplicate detection"
    )
    dedup_bucket_seconds: int = Field(
        default=5,
        description="Start times are rounded down to this bucket when fingerprinting"
    )

    # Dispatch Configuration
    dispatch_config_path: str = Field(
        default="config/dispatch.yaml",
        description="Path to the routing table, notification rules and gazetteer"
    )
    timezone: str = Field(
        default="America/Los_Angeles",
        description="Time zone used when rendering call times in chat"
    )
    audio_link_base_url: str = Field(
        default="https://trunk-transcribe.fly.dev/audio",
        description="Public player page; calls link to '<base>?link=<key>'"
    )
    audio_player_base_url: str = Field(
        default="https://pub-85c4b9a9667540e99c0109c068c47e0f.r2.dev",
        description="Public bucket URL the player page streams audio from"
    )

    # Transcription Configuration
    transcription_provider: str = Field(
        default="whisper",
        description="Speech-to-text backend: whisper, gemini or none"
    )
    cloudflare_account_id: str = Field(default="")
    cloudflare_api_token: str = Field(default="")
    whisper_model: str = Field(default="@cf/openai/whisper-large-v3-turbo")
    gemini_api_key: str = Field(default="")
    gemini_model: str = Field(default="gemini-1.5-pro")
    transcription_timeout: float = Field(
        default=60.0,
        description="Seconds to wait for the transcription backend"
    )

    # Audio Enhancement Configuration
    audio_enhancer_command: Optional[str] = Field(
        default=None,
        description="Denoiser executable (e.g. ./deep-filter); enhancement is skipped when unset"
    )
    audio_enhancement_timeout: float = Field(
        default=5.0,
        description="Seconds before enhancement is abandoned and the original audio is used"
    )

    # Slack Configuration
    slack_bot_token: Optional[str] = Field(default=None)
    slack_upload_timeout: float = Field(default=30.0)

    # Object Storage Configuration (S3 compatible, e.g. Cloudflare R2)
    storage_bucket: Optional[str] = Field(default=None)
    storage_endpoint_url: Optional[str] = Field(default=None)
    storage_access_key: str = Field(default="")
    storage_secret_key: str = Field(default="")
    storage_region: str = Field(default="auto")
    storage_timeout: float = Field(default=30.0)

    # Secondary Ingestion Relay Configuration (rdio-scanner)
    relay_url: Optional[str] = Field(default=None)
    relay_api_key: str = Field(default="")
    relay_system_id: str = Field(default="1000")
    relay_timeout: float = Field(default=30.0)

    @field_validator(
        'ingest_api_key', 'cloudflare_api_token', 'gemini_api_key', 'slack_bot_token',
        'storage_access_key', 'storage_secret_key', 'relay_api_key',
        mode='after'
    )
    @classmethod
    def strip_secrets(cls, v: Optional[str]) -> Optional[str]:
        """Strip whitespace pasted along with credentials."""
        return v.strip() if v else v

    @field_validator('timezone', mode='after')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject zone names the tz database does not know."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {v}") from e
        return v

    @field_validator('transcription_provider', mode='after')
    @classmethod
    def validate_transcription_provider(cls, v: str) -> str:
        """Only known transcription backends are accepted."""
        provider = v.strip().lower()
        if provider not in TRANSCRIPTION_PROVIDERS:
            raise ValueError(
                f"Unsupported transcription provider: {v}. Available: {list(TRANSCRIPTION_PROVIDERS)}"
            )
        return provider

    @property
    def max_upload_size_bytes(self) -> int:
        """Upload size cap in bytes."""
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def cloudflare_whisper_url(self) -> str:
        """Workers AI endpoint for the configured Whisper model."""
        return (
            f"https://api.cloudflare.com/client/v4/accounts/{self.cloudflare_account_id}"
            f"/ai/run/{self.whisper_model}"
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    if is_testing():
        # Ignore any local .env during test runs
        return Settings(_env_file=None)
    return Settings()
