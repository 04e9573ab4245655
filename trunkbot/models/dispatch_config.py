"""
Pydantic models for the dispatch configuration file.

Every top-level section is optional. A section left out of the YAML file
falls back to the built-in default from ``trunkbot.config.builtin_config``.
"""

import re
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# A rule regex of the form "@name" refers to an entry of the shared ``patterns`` section
PATTERN_REFERENCE_PREFIX = "@"


def _validate_regex(v: Optional[str]) -> Optional[str]:
    if v is None or v.startswith(PATTERN_REFERENCE_PREFIX):
        return v
    try:
        re.compile(v)
    except re.error as e:
        raise ValueError(f"Invalid regex pattern: {e}") from e
    return v


class NotificationRuleConfig(BaseModel):
    """One mention rule for a recipient.

    The rule applies to calls routed to one of ``channels`` (directly or
    through ``channel_groups``) or carrying one of ``talkgroups``.
    """

    model_config = ConfigDict(extra="forbid")

    include: List[str] = Field(
        default_factory=list,
        description="Phrases matched as whole, contiguous, case-insensitive word sequences"
    )
    regex: Optional[str] = Field(
        None,
        description="Free-form pattern; fires the rule when it matches (or '@name' for a shared pattern)"
    )
    not_regex: Optional[str] = Field(
        None,
        description="Suppression pattern; the rule never fires when it matches"
    )
    channels: List[str] = Field(default_factory=list, description="Channel aliases in scope")
    channel_groups: List[str] = Field(default_factory=list, description="Channel groups in scope")
    talkgroups: List[int] = Field(default_factory=list, description="Talkgroup IDs in scope")

    @field_validator("regex", "not_regex")
    @classmethod
    def validate_regex_pattern(cls, v: Optional[str]) -> Optional[str]:
        """Reject patterns that do not compile."""
        return _validate_regex(v)

    @field_validator("include")
    @classmethod
    def validate_include(cls, v: List[str]) -> List[str]:
        """Reject phrases that contain no word characters."""
        for phrase in v:
            if not re.search(r"[a-zA-Z0-9_-]", phrase):
                raise ValueError(f"Include phrase has no words: {phrase!r}")
        return v


class GroupRouteConfig(BaseModel):
    """Fallback route keyed by talkgroup group name and, optionally, tag."""

    model_config = ConfigDict(extra="forbid")

    group: str = Field(..., min_length=1, description="Talkgroup group name (case-insensitive)")
    tags: List[str] = Field(
        default_factory=list,
        description="Talkgroup tags this route is limited to (case-insensitive); empty matches any tag"
    )
    channels: List[str] = Field(..., min_length=1, description="Destination channel aliases")


class DispatchConfigModel(BaseModel):
    """Root of the dispatch configuration file."""

    model_config = ConfigDict(extra="forbid")

    channels: Optional[Dict[str, str]] = Field(
        None, description="Channel alias -> Slack channel ID"
    )
    channel_groups: Optional[Dict[str, List[str]]] = Field(
        None, description="Named sets of related channel aliases"
    )
    talkgroups: Optional[Dict[int, List[str]]] = Field(
        None, description="Talkgroup ID -> destination channel aliases"
    )
    group_routes: Optional[List[GroupRouteConfig]] = Field(
        None, description="Ordered fallback routes by group name and tag"
    )
    default_channels: Optional[List[str]] = Field(
        None, description="Destinations for calls no route resolves"
    )
    patterns: Optional[Dict[str, str]] = Field(
        None, description="Shared regular expressions referenced by rules as '@name'"
    )
    recipients: Optional[Dict[str, List[NotificationRuleConfig]]] = Field(
        None, description="Recipient (Slack user ID) -> mention rules"
    )
    gazetteer: Optional[List[str]] = Field(
        None, description="Known street names, in priority order"
    )
    street_modifiers: Optional[List[str]] = Field(
        None, description="Street suffix words used as transcription hints"
    )
    transcription_terms: Optional[List[str]] = Field(
        None, description="Domain vocabulary passed to the transcriber as hints"
    )

    @field_validator("patterns")
    @classmethod
    def validate_patterns(cls, v: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
        """Shared patterns must compile and cannot themselves be references."""
        if v is None:
            return v
        for name, pattern in v.items():
            if pattern.startswith(PATTERN_REFERENCE_PREFIX):
                raise ValueError(f"Shared pattern '{name}' cannot reference another pattern")
            _validate_regex(pattern)
        return v
