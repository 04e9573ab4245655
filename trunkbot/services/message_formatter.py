"""
Chat message formatting for processed calls.

Builds the per-channel annotations (mentions and address) and renders the
comment posted alongside the call audio:

    *Berkeley PD1* | _Police Dispatch_
    Dispatch: Vehicle versus bicyclist at Bancroft and Channing.
    3113042: Copy, en route.
    <@U123>
    <https://example/audio?link=...|Audio>
    Location: Bancroft and Channing
    12 seconds | Thu, Dec 14 2023 4:30PM PST
"""

from typing import List

from trunkbot.models.call import CallMetadata
from trunkbot.models.dispatch import DispatchConfig
from trunkbot.models.slack_meta import SlackMeta
from trunkbot.services.address_extractor import extract_address
from trunkbot.services.notification_rules import extract_mentions
from trunkbot.utils.text import SENTENCE_SPLIT
from trunkbot.utils.timestamp import format_local_timestamp

NO_TRANSCRIPT_TEXT = "Could not transcribe audio"


def build_slack_meta(meta: CallMetadata, channel: str, dispatch_config: DispatchConfig) -> SlackMeta:
    """
    Compute mentions and address for a call posted to one channel.

    Args:
        meta: Call metadata carrying the transcript
        channel: Destination channel alias
        dispatch_config: Compiled rules and gazetteer

    Returns:
        SlackMeta for this call and channel
    """
    return SlackMeta(
        mentions=extract_mentions(meta.audio_text, channel, meta.talkgroup, dispatch_config.rules),
        address=extract_address(meta.audio_text, dispatch_config.gazetteer),
    )


def transcript_lines(meta: CallMetadata) -> List[str]:
    """
    Split the transcript into lines attributed to the units that spoke.

    The i-th segment is labelled with the i-th source unit; segments past
    the end of the source list are kept as they are.
    """
    if meta.audio_text and meta.segments:
        segments = list(meta.segments)
    else:
        segments = (meta.audio_text or NO_TRANSCRIPT_TEXT).split(SENTENCE_SPLIT)

    lines = []
    for i, segment in enumerate(segments):
        segment = segment.strip()
        if not segment:
            continue
        if i < len(meta.src_list):
            segment = f"{meta.src_list[i].label}: {segment.rstrip('.')}."
        lines.append(segment)
    return lines


def format_call_comment(meta: CallMetadata, slack_meta: SlackMeta, tz_name: str) -> str:
    """
    Render the chat comment for a call.

    Args:
        meta: Call metadata carrying transcript, segments and audio URL
        slack_meta: Mentions and address for the destination channel
        tz_name: IANA time zone used for the call time

    Returns:
        Newline separated comment text
    """
    blocks = [f"*{meta.talkgroup_tag}* | _{meta.talkgroup_description}_"]
    blocks.extend(transcript_lines(meta))

    if slack_meta.mentions:
        blocks.append(" ".join(slack_meta.mentions))
    if meta.url:
        blocks.append(f"<{meta.url}|Audio>")

    address = str(slack_meta.address)
    if address:
        blocks.append(f"Location: {address}")

    blocks.append(
        f"{meta.call_length_display} seconds | {format_local_timestamp(meta.start_time, tz_name)}"
    )
    return "\n".join(blocks)
