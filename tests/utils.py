"""
Test utilities for reducing redundancy and improving test maintainability.

FACTORY SYSTEM OVERVIEW
======================

1. CallFactory - Call metadata and recorder upload payloads
2. RuleFactory - Compiled notification rules and dispatch tables
3. MockFactory - Settings and collaborator mocks

USAGE PATTERNS
=============

    from tests.utils import CallFactory, RuleFactory

    meta = CallFactory.create_call_metadata(talkgroup=3605)
    rule = RuleFactory.create_rule("U1", channels=["ucpd"], include=["auto ped"])
    config = RuleFactory.create_dispatch_config(rules=[rule])

Override only the fields a test cares about.
"""

import json
import re
from types import MappingProxyType
from typing import Any, Dict, List, Optional, Sequence
from unittest.mock import AsyncMock, Mock

from trunkbot.config.builtin_config import BUILTIN_GAZETTEER
from trunkbot.integrations.transcription import TranscriptionResult
from trunkbot.models.call import CallMetadata
from trunkbot.models.dispatch import DispatchConfig, GroupRoute, NotificationRule
from trunkbot.utils.text import tokenize


class CallFactory:
    """
    Factory for trunk-recorder call metadata.

    Examples:
        meta = CallFactory.create_call_metadata()
        meta = CallFactory.create_call_metadata(talkgroup=3605, src_ids=[1, 2])
    """

    @staticmethod
    def create_call_json(**overrides) -> Dict[str, Any]:
        """Raw metadata document as trunk-recorder uploads it."""
        src_ids = overrides.pop("src_ids", [3113003, 3113042])
        tags = overrides.pop("src_tags", ["Dispatch", ""])
        start_time = overrides.get("start_time", 1702513859)
        data = {
            "freq": 772693750,
            "start_time": start_time,
            "stop_time": start_time + 8,
            "emergency": 0,
            "priority": 4,
            "mode": 0,
            "duplex": 0,
            "encrypted": 0,
            "call_length": 6,
            "talkgroup": 3105,
            "talkgroup_tag": "Berkeley PD1",
            "talkgroup_description": "Police Dispatch",
            "talkgroup_group_tag": "Law Dispatch",
            "talkgroup_group": "Berkeley",
            "audio_type": "digital",
            "short_name": "Berkeley",
            "freqList": [
                {"freq": 772693750, "time": start_time, "pos": 0.0, "len": 1.08, "error_count": 0, "spike_count": 0}
            ],
            "srcList": [
                {"src": src, "time": start_time, "pos": float(i * 2), "emergency": 0,
                 "signal_system": "", "tag": tags[i] if i < len(tags) else ""}
                for i, src in enumerate(src_ids)
            ],
        }
        data.update(overrides)
        return data

    @staticmethod
    def create_call_metadata(**overrides) -> CallMetadata:
        """Validated call metadata with sensible defaults."""
        return CallMetadata.model_validate(CallFactory.create_call_json(**overrides))


class RuleFactory:
    """
    Factory for compiled rules and dispatch tables.

    Mirrors what the configuration loader produces, without going through YAML.
    """

    @staticmethod
    def create_rule(
        recipient: str = "U123",
        channels: Sequence[str] = (),
        talkgroups: Sequence[int] = (),
        include: Sequence[str] = (),
        regex: Optional[str] = None,
        not_regex: Optional[str] = None,
    ) -> NotificationRule:
        return NotificationRule(
            recipient=recipient,
            channels=frozenset(channels),
            talkgroups=frozenset(talkgroups),
            phrases=tuple(tuple(tokenize(phrase)) for phrase in include),
            regex=re.compile(regex) if regex else None,
            not_regex=re.compile(not_regex) if not_regex else None,
        )

    @staticmethod
    def create_dispatch_config(
        talkgroups: Optional[Dict[int, Sequence[str]]] = None,
        group_routes: Optional[List[GroupRoute]] = None,
        rules: Sequence[NotificationRule] = (),
        gazetteer: Sequence[str] = tuple(BUILTIN_GAZETTEER),
        channels: Optional[Dict[str, str]] = None,
        default_channels: Sequence[str] = (),
    ) -> DispatchConfig:
        if talkgroups is None:
            talkgroups = {3105: ["berkeley"], 3605: ["ucpd"]}
        return DispatchConfig(
            talkgroup_channels=MappingProxyType({tg: tuple(chs) for tg, chs in talkgroups.items()}),
            group_routes=tuple(group_routes or ()),
            default_channels=tuple(default_channels),
            rules=tuple(rules),
            gazetteer=tuple(gazetteer),
            channel_ids=MappingProxyType(dict(channels or {"berkeley": "CBERK", "ucpd": "CUCPD"})),
        )


class MockFactory:
    """Factory for creating common mock objects."""

    @staticmethod
    def create_mock_settings(**overrides):
        """Create mock settings with sensible defaults."""
        mock_settings = Mock()
        default_settings = {
            "host": "localhost",
            "port": 8080,
            "log_level": "INFO",
            "ingest_api_key": None,
            "max_upload_size_mb": 20,
            "max_concurrent_calls": 5,
            "call_processing_timeout": 30.0,
            "dedup_cache_size": 100,
            "dedup_bucket_seconds": 5,
            "dispatch_config_path": None,
            "timezone": "America/Los_Angeles",
            "audio_link_base_url": "https://trunk.example/audio",
            "audio_player_base_url": "https://audio.example",
            "transcription_provider": "none",
            "cloudflare_account_id": "acct",
            "cloudflare_api_token": "cf-token",
            "cloudflare_whisper_url": "https://api.cloudflare.example/whisper",
            "whisper_model": "@cf/openai/whisper-large-v3-turbo",
            "gemini_api_key": "test-gemini-key",
            "gemini_model": "gemini-1.5-pro",
            "transcription_timeout": 5.0,
            "audio_enhancer_command": None,
            "audio_enhancement_timeout": 1.0,
            "slack_bot_token": None,
            "slack_upload_timeout": 5.0,
            "storage_bucket": None,
            "storage_endpoint_url": None,
            "storage_access_key": "",
            "storage_secret_key": "",
            "storage_region": "auto",
            "storage_timeout": 5.0,
            "relay_url": None,
            "relay_api_key": "relay-secret",
            "relay_system_id": "1000",
            "relay_timeout": 5.0,
        }

        for key, value in default_settings.items():
            setattr(mock_settings, key, value)

        for key, value in overrides.items():
            setattr(mock_settings, key, value)

        mock_settings.max_upload_size_bytes = mock_settings.max_upload_size_mb * 1024 * 1024
        return mock_settings

    @staticmethod
    def create_mock_transcriber(text: str = "", segments: Optional[List[str]] = None, error: Optional[Exception] = None):
        """Transcriber double returning ``text`` or raising ``error``."""
        transcriber = Mock()
        transcriber.name = "mock"
        if error is not None:
            transcriber.transcribe = AsyncMock(side_effect=error)
        else:
            transcriber.transcribe = AsyncMock(return_value=TranscriptionResult(text=text, segments=segments or []))
        transcriber.close = AsyncMock()
        return transcriber

    @staticmethod
    def create_mock_enhancer():
        """Enhancer double that returns the audio unchanged."""
        enhancer = Mock()
        enhancer.enhance = AsyncMock(side_effect=lambda audio, filename="call.wav": audio)
        return enhancer

    @staticmethod
    def create_mock_sinks(enabled: bool = True):
        """Slack, storage and relay doubles that succeed."""
        slack = Mock(enabled=enabled)
        slack.post_call = AsyncMock(return_value=enabled)
        storage = Mock(enabled=enabled)
        storage.store_call = AsyncMock(return_value=enabled)
        relay = Mock(enabled=enabled)
        relay.upload = AsyncMock(return_value=enabled)
        relay.close = AsyncMock()
        return slack, storage, relay


def call_json_bytes(**overrides) -> bytes:
    return json.dumps(CallFactory.create_call_json(**overrides)).encode()
