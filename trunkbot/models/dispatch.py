"""
Compiled, read-only dispatch tables.

Built once at startup from the configuration file and shared by every call
pipeline without locking. Nothing here is mutated after construction.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Pattern, Tuple


@dataclass(frozen=True)
class NotificationRule:
    """A compiled mention rule belonging to one recipient."""
    recipient: str
    channels: FrozenSet[str] = frozenset()
    talkgroups: FrozenSet[int] = frozenset()
    phrases: Tuple[Tuple[str, ...], ...] = ()
    regex: Optional[Pattern[str]] = None
    not_regex: Optional[Pattern[str]] = None

    def in_scope(self, channel: str, talkgroup: int) -> bool:
        """True when the call's channel or talkgroup is covered by this rule."""
        return channel in self.channels or talkgroup in self.talkgroups


@dataclass(frozen=True)
class GroupRoute:
    """Fallback route; ``group`` and ``tags`` are stored lowercased."""
    group: str
    channels: Tuple[str, ...]
    tags: FrozenSet[str] = frozenset()

    def matches(self, group: str, tag: str) -> bool:
        if group != self.group:
            return False
        return not self.tags or tag in self.tags


@dataclass(frozen=True)
class DispatchConfig:
    """Routing table, rule set and gazetteer for one deployment."""
    talkgroup_channels: Mapping[int, Tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    group_routes: Tuple[GroupRoute, ...] = ()
    default_channels: Tuple[str, ...] = ()
    rules: Tuple[NotificationRule, ...] = ()
    gazetteer: Tuple[str, ...] = ()
    channel_ids: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    street_modifiers: Tuple[str, ...] = ()
    transcription_terms: Tuple[str, ...] = ()

    def slack_channel_id(self, channel: str) -> str:
        """Slack channel ID for an alias; unknown aliases pass through unchanged."""
        return self.channel_ids.get(channel, channel)

    @property
    def transcription_prompt(self) -> str:
        """Correction hints for the transcriber: streets, street suffixes, then domain terms."""
        return ", ".join(self.gazetteer + self.street_modifiers + self.transcription_terms)
