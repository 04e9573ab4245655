"""
Per-call processing pipeline.

    received -> deduped -> transcribing -> classifying -> fanning out -> done

Deduplication happens at the HTTP boundary (see ``register_call``) so that
duplicates are answered synchronously. Everything after that runs detached
from the request in ``process_call``.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, List, Optional, Tuple
from urllib.parse import quote

from trunkbot.config.settings import Settings
from trunkbot.integrations.audio import AudioEnhancer
from trunkbot.integrations.transcription import Transcriber, TranscriptionResult, create_transcriber
from trunkbot.models.call import CallMetadata
from trunkbot.models.dispatch import DispatchConfig
from trunkbot.services.channel_resolver import ChannelResolver
from trunkbot.services.dedup_cache import DedupGate
from trunkbot.services.exceptions import DispatchError, TranscriptionError
from trunkbot.services.message_formatter import build_slack_meta, format_call_comment
from trunkbot.services.relay_service import RelayService
from trunkbot.services.slack_service import SlackService
from trunkbot.services.storage_service import StorageService
from trunkbot.utils.logger import get_module_logger

logger = get_module_logger(__name__)


@dataclass(frozen=True)
class CallSubmission:
    """A validated upload waiting to be processed."""
    meta: CallMetadata
    audio: bytes
    filename: str
    raw_metadata: str
    dedup_key: str = ""


@dataclass(frozen=True)
class FanOutResult:
    """Outcome of one fan-out job."""
    job: str
    success: bool
    error: Optional[str] = None
    skipped: bool = False


@dataclass
class CallProcessingResult:
    """Summary of one pipeline run."""
    dedup_key: str
    storage_key: str
    transcript: str
    channels: Tuple[str, ...]
    results: List[FanOutResult] = field(default_factory=list)

    @property
    def failed_jobs(self) -> List[str]:
        return [result.job for result in self.results if not result.success]


class CallService:
    """
    Runs calls through transcription, classification and fan-out.

    The dedup gate is the only state shared between concurrent calls; the
    dispatch tables are read-only.
    """

    def __init__(
        self,
        settings: Settings,
        dispatch_config: DispatchConfig,
        transcriber: Optional[Transcriber] = None,
        enhancer: Optional[AudioEnhancer] = None,
        slack_service: Optional[SlackService] = None,
        storage_service: Optional[StorageService] = None,
        relay_service: Optional[RelayService] = None,
    ):
        """
        Initialize the call service.

        Collaborators not passed in are built from settings.

        Args:
            settings: Application settings
            dispatch_config: Compiled routing table, rules and gazetteer
            transcriber: Speech-to-text backend
            enhancer: Optional audio denoiser
            slack_service: Chat notifier
            storage_service: Audio archive
            relay_service: Secondary ingestion relay
        """
        self.settings = settings
        self.dispatch_config = dispatch_config

        self.dedup_gate = DedupGate(settings.dedup_cache_size)
        self.channel_resolver = ChannelResolver(dispatch_config)

        self.transcriber = transcriber or create_transcriber(settings, dispatch_config)
        self.enhancer = enhancer or AudioEnhancer(
            settings.audio_enhancer_command, settings.audio_enhancement_timeout
        )
        self.slack_service = slack_service or SlackService(settings, dispatch_config)
        self.storage_service = storage_service or StorageService(settings)
        self.relay_service = relay_service or RelayService(settings)

        logger.info(
            f"CallService initialized (transcriber: {self.transcriber.name}, "
            f"slack: {self.slack_service.enabled}, storage: {self.storage_service.enabled}, "
            f"relay: {self.relay_service.enabled})"
        )

    def register_call(self, meta: CallMetadata) -> Tuple[str, bool]:
        """
        Fingerprint a call and mark it as seen.

        Args:
            meta: Call metadata

        Returns:
            Tuple of (dedup key, True if the call was already seen)
        """
        key = meta.dedup_key(self.settings.dedup_bucket_seconds)
        is_duplicate = self.dedup_gate.check_and_mark(key)
        if is_duplicate:
            logger.info(f"Ignoring duplicate call on talkgroup {meta.talkgroup}: {key}")
        return key, is_duplicate

    def audio_url(self, storage_key: str) -> str:
        return f"{self.settings.audio_link_base_url}?link={quote(storage_key, safe='/')}"

    async def process_call(self, submission: CallSubmission) -> CallProcessingResult:
        """
        Transcribe, classify and fan out one call.

        Transcription failures leave the transcript empty; fan-out job
        failures are collected in the result and never raised.

        Args:
            submission: Validated, non-duplicate call

        Returns:
            CallProcessingResult describing what happened
        """
        meta = submission.meta
        storage_key = meta.storage_key(submission.filename)

        # Transcribing
        transcription_audio = await self.enhancer.enhance(submission.audio, submission.filename)
        transcription = await self._transcribe(transcription_audio, storage_key)
        meta = meta.with_transcript(transcription.text, transcription.segments, self.audio_url(storage_key))

        # Classifying
        channels = self.channel_resolver.resolve(meta)
        if not channels:
            logger.info(f"{storage_key} has no destination channel - archiving only")

        # Fanning out
        jobs: List[Tuple[str, Awaitable[Any], float]] = [
            (
                "storage",
                self.storage_service.store_call(storage_key, submission.audio, meta),
                self.settings.storage_timeout,
            ),
        ]
        for channel in channels:
            slack_meta = build_slack_meta(meta, channel, self.dispatch_config)
            comment = format_call_comment(meta, slack_meta, self.settings.timezone)
            jobs.append((
                f"slack:{channel}",
                self.slack_service.post_call(channel, submission.audio, submission.filename, comment),
                self.settings.slack_upload_timeout,
            ))
        jobs.append((
            "relay",
            self.relay_service.upload(submission.filename, submission.audio, submission.raw_metadata),
            self.settings.relay_timeout,
        ))

        results = await self._fan_out(jobs)

        result = CallProcessingResult(
            dedup_key=submission.dedup_key,
            storage_key=storage_key,
            transcript=meta.audio_text,
            channels=channels,
            results=results,
        )
        logger.info(
            f"Processed {storage_key}: channels={list(channels)}, "
            f"{len(results) - len(result.failed_jobs)}/{len(results)} jobs succeeded"
        )
        return result

    async def _transcribe(self, audio: bytes, storage_key: str) -> TranscriptionResult:
        try:
            result = await asyncio.wait_for(
                self.transcriber.transcribe(audio),
                timeout=self.settings.transcription_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(
                f"Transcription timed out after {self.settings.transcription_timeout}s for {storage_key}"
            )
            return TranscriptionResult(text="")
        except TranscriptionError as e:
            logger.error(f"Transcription failed for {storage_key}: {e}")
            return TranscriptionResult(text="")
        except Exception as e:
            logger.error(f"Unexpected transcription error for {storage_key}: {e}", exc_info=True)
            return TranscriptionResult(text="")

        logger.info(f"{storage_key}: {result.text}")
        return result

    async def _fan_out(self, jobs: List[Tuple[str, Awaitable[Any], float]]) -> List[FanOutResult]:
        """
        Run fan-out jobs concurrently, each under its own deadline.

        One job failing or timing out never cancels the others.
        """
        outcomes = await asyncio.gather(
            *(asyncio.wait_for(job, timeout=timeout) for _, job, timeout in jobs),
            return_exceptions=True,
        )

        results = []
        for (job_name, _, timeout), outcome in zip(jobs, outcomes, strict=True):
            if isinstance(outcome, asyncio.TimeoutError):
                logger.error(f"Job '{job_name}' exceeded {timeout}s deadline and was abandoned")
                results.append(FanOutResult(job=job_name, success=False, error=f"Timed out after {timeout}s"))
            elif isinstance(outcome, DispatchError):
                logger.error(f"Job '{job_name}' failed: {outcome}", extra={"error": outcome.to_dict()})
                results.append(FanOutResult(job=job_name, success=False, error=str(outcome)))
            elif isinstance(outcome, BaseException):
                logger.error(f"Job '{job_name}' raised unexpected error: {outcome}", exc_info=outcome)
                results.append(FanOutResult(job=job_name, success=False, error=str(outcome)))
            else:
                results.append(FanOutResult(job=job_name, success=True, skipped=outcome is False))

        return results

    async def close(self) -> None:
        """
        Clean up resources.
        """
        for name, client in (("transcriber", self.transcriber), ("relay", self.relay_service)):
            try:
                await client.close()
            except Exception as e:
                logger.error(f"Error closing {name}: {str(e)}")
        logger.info("CallService resources cleaned up")
