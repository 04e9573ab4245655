"""
Timestamp utilities for trunkbot.

Provides common timestamp functions used across the application.
"""

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo


def format_local_timestamp(epoch_seconds: Optional[int], tz_name: str) -> str:
    """
    Render a call time for chat, e.g. ``Mon, Jan 02 2006 3:04PM PST``.

    Falls back to the current time when the call carries no start time.
    """
    tz = ZoneInfo(tz_name)
    if epoch_seconds:
        moment = datetime.fromtimestamp(epoch_seconds, tz)
    else:
        moment = datetime.now(tz)

    hour = moment.hour % 12 or 12
    return f"{moment:%a, %b %d %Y} {hour}:{moment:%M%p %Z}"
