"""
Destination channel resolution.

Routing is a pure function of the call's talkgroup ID, group name and tag
over the read-only tables in ``DispatchConfig``.
"""

from typing import Tuple

from trunkbot.models.call import CallMetadata
from trunkbot.models.dispatch import DispatchConfig
from trunkbot.utils.logger import get_module_logger

logger = get_module_logger(__name__)


class ChannelResolver:
    """Maps a call to the chat channels it should be posted to."""

    def __init__(self, dispatch_config: DispatchConfig):
        self.dispatch_config = dispatch_config

    def resolve(self, meta: CallMetadata) -> Tuple[str, ...]:
        """
        Resolve destination channel aliases for a call.

        A direct talkgroup entry always wins. Otherwise the ordered group
        routes are tried against the lowercased group name and tag, the first
        match winning. Calls nothing resolves go to the configured default
        channels, which are usually empty.

        Args:
            meta: Call metadata

        Returns:
            Channel aliases, possibly empty
        """
        config = self.dispatch_config

        channels = config.talkgroup_channels.get(meta.talkgroup)
        if channels is not None:
            return channels

        group = meta.talkgroup_group.lower()
        tag = meta.talkgroup_tag.lower()
        for route in config.group_routes:
            if route.matches(group, tag):
                return route.channels

        logger.warning(
            f"Could not resolve channel for talkgroup {meta.talkgroup} "
            f"(group: '{meta.talkgroup_group}', tag: '{meta.talkgroup_tag}')"
        )
        return config.default_channels
