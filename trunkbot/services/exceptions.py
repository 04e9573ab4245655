"""
Custom exceptions for call processing.

Every failure past the HTTP boundary is logged rather than surfaced to the
submitting recorder, so these carry enough context to make a log line useful
on its own.
"""

from typing import Any, Dict, Optional


class DispatchError(Exception):
    """
    Base exception for all call processing errors.
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        """
        Initialize dispatch error.

        Args:
            message: Human-readable error description
            context: Additional context data for debugging
        """
        super().__init__(message)
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": str(self),
            "context": self.context,
        }


class TranscriptionError(DispatchError):
    """
    Speech-to-text backend failed or returned an unusable response.

    The pipeline recovers by continuing with an empty transcript.
    """
    pass


class StorageUploadError(DispatchError):
    """Archiving the call audio to object storage failed."""
    pass


class NotificationError(DispatchError):
    """Posting the call to a chat channel failed."""

    def __init__(self, message: str, channel: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)
        self.channel = channel

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["channel"] = self.channel
        return result


class RelayUploadError(DispatchError):
    """The secondary ingestion service rejected or did not receive the call."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["status_code"] = self.status_code
        return result
