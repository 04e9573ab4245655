"""
Call metadata models for trunkbot.

Mirrors the JSON document trunk-recorder writes next to every recorded call:

    {
      "freq": 772693750,
      "start_time": 1702513859,
      "stop_time": 1702513867,
      "call_length": 6,
      "talkgroup": 3105,
      "talkgroup_tag": "Berkeley PD1",
      "talkgroup_description": "Police Dispatch",
      "talkgroup_group_tag": "Law Dispatch",
      "talkgroup_group": "Berkeley",
      "short_name": "Berkeley",
      "freqList": [{"freq": 772693750, "time": 1702513859, "pos": 0, "len": 1.08, ...}],
      "srcList": [{"src": 3113003, "time": 1702513859, "pos": 0, "tag": "Dispatch", ...}]
    }
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class Frequency(BaseModel):
    """One frequency hop within a call."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    freq: int = 0
    time: int = 0
    pos: float = 0.0
    len: float = 0.0
    error_count: int = 0
    spike_count: int = 0


class Source(BaseModel):
    """A radio unit that keyed up during the call."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    src: int = Field(0, description="Radio unit ID")
    time: int = 0
    pos: float = Field(0.0, description="Offset into the call audio in seconds")
    emergency: int = 0
    signal_system: str = ""
    tag: str = Field("", description="Unit alias, e.g. 'Dispatch'")

    @property
    def label(self) -> str:
        """Speaker label used when prefixing transcript segments."""
        return self.tag or str(self.src)


class CallMetadata(BaseModel):
    """
    Immutable per-call record.

    Created by parsing the recorder's metadata submission. ``audio_text``,
    ``segments`` and ``url`` are filled in after transcription by building a
    new copy; nothing mutates an instance in place.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    freq: int = 0
    start_time: int = Field(0, description="Call start, epoch seconds")
    stop_time: int = Field(0, description="Call stop, epoch seconds")
    emergency: int = 0
    priority: int = 0
    mode: int = 0
    duplex: int = 0
    encrypted: int = 0
    call_length: float = Field(0, description="Call length in seconds")
    talkgroup: int = Field(0, description="Talkgroup numeric ID")
    talkgroup_tag: str = ""
    talkgroup_description: str = ""
    talkgroup_group_tag: str = ""
    talkgroup_group: str = ""
    audio_type: str = ""
    short_name: str = ""
    audio_text: str = Field("", description="Transcript, populated after transcription")
    url: str = Field("", description="Audio link, populated after transcription")
    src_list: List[Source] = Field(default_factory=list, alias="srcList")
    freq_list: List[Frequency] = Field(default_factory=list, alias="freqList")
    segments: List[str] = Field(default_factory=list)

    def dedup_key(self, bucket_seconds: int = 5) -> str:
        """
        Fingerprint identifying one physical radio transmission.

        Talkgroup, start time rounded down to ``bucket_seconds`` and the ordered
        list of source unit IDs. Resubmissions of the same call collide here
        even when their audio differs slightly.
        """
        start = self.start_time - (self.start_time % bucket_seconds)
        srcs = "".join(f".{source.src}" for source in self.src_list)
        return f"tg.{self.talkgroup}.start.{start}.srcs{srcs}"

    def storage_key(self, filename: str) -> str:
        """Object key for the archived audio: ``{short_name}/{talkgroup}/{filename}``."""
        return f"{self.short_name}/{self.talkgroup}/{filename}"

    def with_transcript(self, text: str, segments: List[str], url: str) -> CallMetadata:
        """Return a copy carrying the transcription results."""
        return self.model_copy(update={
            "audio_text": text,
            "segments": list(segments),
            "url": url,
        })

    @property
    def call_length_display(self) -> str:
        """Call length without a trailing '.0' for whole seconds."""
        return f"{self.call_length:g}"
