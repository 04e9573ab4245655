"""
rdio-scanner call upload envelope.

rdio-scanner's ``/api/call-upload`` endpoint receives every field as a loosely
typed multipart part. This module turns that shape into an explicit schema
with named optional fields, then converts it into the canonical
``CallMetadata``. Decode rules, applied per field:

- Text fields: an empty string or a lone ``-`` means the field is absent.
- Numeric fields: parsed from decimal text; unparseable or non-positive
  values are dropped.
- ``dateTime``: epoch seconds when all digits, otherwise RFC 3339.
- JSON list fields (``sources``, ``frequencies``, ``patches``): a body that
  is not a JSON array is treated as absent; list entries that are not
  objects (or numbers, for patches) are skipped, and negative numeric
  sub-fields are dropped.
"""

from __future__ import annotations

import json
import mimetypes
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field

from trunkbot.models.call import CallMetadata, Frequency, Source

# rdio-scanner rejects payloads at or below the size of a bare WAV header
MIN_AUDIO_BYTES = 44

ABSENT_MARKERS = ("", "-")


class RdioSource(BaseModel):
    """Unit entry from the ``sources`` part."""

    src: Optional[int] = None
    pos: Optional[float] = None
    tag: Optional[str] = None


class RdioFrequency(BaseModel):
    """Hop entry from the ``frequencies`` part."""

    freq: Optional[int] = None
    pos: Optional[float] = None
    len: Optional[float] = None
    error_count: Optional[int] = None
    spike_count: Optional[int] = None


class RdioCallUpload(BaseModel):
    """Decoded rdio-scanner call upload."""

    key: Optional[str] = None
    audio: bytes = b""
    audio_name: Optional[str] = None
    audio_type: Optional[str] = None
    date_time: Optional[datetime] = None
    frequencies: List[RdioFrequency] = Field(default_factory=list)
    frequency: Optional[int] = None
    patches: List[int] = Field(default_factory=list)
    source: Optional[int] = None
    sources: List[RdioSource] = Field(default_factory=list)
    system: Optional[int] = None
    system_label: Optional[str] = None
    talkgroup: Optional[int] = None
    talkgroup_group: Optional[str] = None
    talkgroup_label: Optional[str] = None
    talkgroup_name: Optional[str] = None
    talkgroup_tag: Optional[str] = None

    @classmethod
    def from_form(
        cls,
        fields: Mapping[str, str],
        audio: bytes = b"",
        audio_filename: Optional[str] = None,
    ) -> RdioCallUpload:
        """
        Decode multipart text parts plus the uploaded audio file.

        Args:
            fields: Text form parts keyed by part name
            audio: Raw bytes of the ``audio`` file part
            audio_filename: Client filename of the ``audio`` part

        Returns:
            RdioCallUpload with every decode rule applied
        """
        audio_name = _text(fields.get("audioName")) or _text(audio_filename)

        return cls(
            key=_text(fields.get("key")),
            audio=audio,
            audio_name=audio_name,
            audio_type=mimetypes.guess_type(audio_name)[0] if audio_name else None,
            date_time=_parse_date_time(fields.get("dateTime")),
            frequencies=_decode_frequencies(fields.get("frequencies")),
            frequency=_positive_int(fields.get("frequency")),
            patches=_decode_patches(fields.get("patches") or fields.get("patched_talkgroups")),
            source=_int(fields.get("source")),
            sources=_decode_sources(fields.get("sources")),
            system=_positive_int(fields.get("system") or fields.get("systemId")),
            system_label=_text(fields.get("systemLabel")),
            talkgroup=_positive_int(fields.get("talkgroup") or fields.get("talkgroupId")),
            talkgroup_group=_text(fields.get("talkgroupGroup")),
            talkgroup_label=_text(fields.get("talkgroupLabel")),
            talkgroup_name=_text(fields.get("talkgroupName")),
            talkgroup_tag=_text(fields.get("talkgroupTag")),
        )

    def validation_errors(self) -> List[str]:
        """Return every reason this upload cannot be processed (empty when valid)."""
        errors = []
        if len(self.audio) <= MIN_AUDIO_BYTES:
            errors.append("no audio")
        if self.date_time is None or int(self.date_time.timestamp()) == 0:
            errors.append("no datetime")
        if not self.system or self.system < 1:
            errors.append("no system")
        if not self.talkgroup or self.talkgroup < 1:
            errors.append("no talkgroup")
        return errors

    def to_metadata(self) -> CallMetadata:
        """Convert into the canonical call record used by the pipeline."""
        start_time = int(self.date_time.timestamp()) if self.date_time else 0

        src_list = [
            Source(
                src=source.src or 0,
                time=start_time,
                pos=source.pos or 0.0,
                tag=source.tag or "",
            )
            for source in self.sources
        ]
        freq_list = [
            Frequency(
                freq=freq.freq or 0,
                time=start_time,
                pos=freq.pos or 0.0,
                len=freq.len or 0.0,
                error_count=freq.error_count or 0,
                spike_count=freq.spike_count or 0,
            )
            for freq in self.frequencies
        ]

        return CallMetadata(
            freq=self.frequency or 0,
            start_time=start_time,
            talkgroup=self.talkgroup or 0,
            talkgroup_tag=self.talkgroup_tag or "",
            talkgroup_description=self.talkgroup_label or "",
            talkgroup_group_tag=self.talkgroup_tag or "",
            talkgroup_group=self.talkgroup_group or "",
            audio_type=self.audio_type or "",
            short_name=self.talkgroup_name or "",
            src_list=src_list,
            freq_list=freq_list,
        )

    @property
    def filename(self) -> str:
        """Safe base filename for the audio."""
        if self.audio_name:
            return PurePosixPath(self.audio_name).name
        return f"{self.talkgroup or 0}-{int(self.date_time.timestamp()) if self.date_time else 0}.m4a"


def _text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if value in ABSENT_MARKERS:
        return None
    return value


def _int(value: Optional[str]) -> Optional[int]:
    value = _text(value)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _positive_int(value: Optional[str]) -> Optional[int]:
    number = _int(value)
    if number is None or number <= 0:
        return None
    return number


def _parse_date_time(value: Optional[str]) -> Optional[datetime]:
    value = _text(value)
    if value is None:
        return None
    if value.isdigit():
        try:
            return datetime.fromtimestamp(int(value), timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    try:
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        return None


def _json_list(value: Optional[str]) -> List[Any]:
    value = _text(value)
    if value is None:
        return []
    try:
        decoded = json.loads(value)
    except json.JSONDecodeError:
        return []
    return decoded if isinstance(decoded, list) else []


def _non_negative(entry: Dict[str, Any], name: str) -> Optional[float]:
    value = entry.get(name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value if value >= 0 else None


def _decode_sources(value: Optional[str]) -> List[RdioSource]:
    sources = []
    for entry in _json_list(value):
        if not isinstance(entry, dict):
            continue
        src = _non_negative(entry, "src")
        tag = entry.get("tag")
        sources.append(RdioSource(
            src=int(src) if src else None,
            pos=_non_negative(entry, "pos"),
            # Tags only count for identified units
            tag=tag if src and isinstance(tag, str) and tag else None,
        ))
    return sources


def _decode_frequencies(value: Optional[str]) -> List[RdioFrequency]:
    frequencies = []
    for entry in _json_list(value):
        if not isinstance(entry, dict):
            continue
        freq = _non_negative(entry, "freq")
        error_count = _non_negative(entry, "errorCount")
        spike_count = _non_negative(entry, "spikeCount")
        frequencies.append(RdioFrequency(
            freq=int(freq) if freq else None,
            pos=_non_negative(entry, "pos"),
            len=_non_negative(entry, "len"),
            error_count=int(error_count) if error_count is not None else None,
            spike_count=int(spike_count) if spike_count is not None else None,
        ))
    return frequencies


def _decode_patches(value: Optional[str]) -> List[int]:
    return [
        int(patch)
        for patch in _json_list(value)
        if isinstance(patch, (int, float)) and not isinstance(patch, bool) and patch > 0
    ]
