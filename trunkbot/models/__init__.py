# Models package - Minimal exports to avoid circular imports
# Configuration schemas should be imported directly from dispatch_config.py

# Call records
from .call import CallMetadata, Frequency, Source
from .rdio_call import RdioCallUpload

# Compiled dispatch tables
from .dispatch import DispatchConfig, GroupRoute, NotificationRule

# Per-call chat annotations
from .slack_meta import Address, SlackMeta

__all__ = [
    "Address",
    "CallMetadata",
    "DispatchConfig",
    "Frequency",
    "GroupRoute",
    "NotificationRule",
    "RdioCallUpload",
    "SlackMeta",
    "Source",
]
