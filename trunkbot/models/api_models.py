"""
API Models for Request/Response Serialization
"""

from typing import Dict, List

from pydantic import BaseModel, Field


class CallResponse(BaseModel):
    """Acknowledgement returned to the recorder that submitted a call."""
    status: str = Field(description="'queued' when accepted for processing, 'duplicate' when already seen")
    message: str = Field(description="Human-readable outcome")
    talkgroup: int = Field(description="Talkgroup of the submitted call")
    dedup_key: str = Field(description="Fingerprint used for duplicate detection")


class HealthCheckResponse(BaseModel):
    """Response for the health check endpoint."""
    status: str = Field(description="'healthy' or 'degraded'")
    service: str = Field(description="Service name")
    version: str = Field(description="Application version")
    timestamp: str = Field(description="ISO 8601 UTC timestamp of the check")
    dedup_cache_size: int = Field(description="Fingerprints currently held by the duplicate filter")
    integrations: Dict[str, bool] = Field(description="Which external collaborators are enabled")
    channels: List[str] = Field(default_factory=list, description="Channel aliases with a known Slack ID")
