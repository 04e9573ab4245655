"""
End-to-end tests: dispatch YAML through the call pipeline and the HTTP app.

External collaborators (transcriber, Slack, storage, relay) are mocked;
everything between them is real.
"""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from trunkbot.config.dispatch_config import DispatchConfigLoader
from trunkbot.services.call_service import CallService, CallSubmission
from tests.utils import CallFactory, MockFactory, call_json_bytes

EXAMPLE_CONFIG = Path(__file__).resolve().parents[2] / "config" / "dispatch.example.yaml"


@pytest.fixture
def example_config():
    return DispatchConfigLoader(str(EXAMPLE_CONFIG)).load_and_validate()


def build_service(settings, dispatch_config, transcript: str):
    slack, storage, relay = MockFactory.create_mock_sinks()
    service = CallService(
        settings,
        dispatch_config,
        transcriber=MockFactory.create_mock_transcriber(transcript),
        enhancer=MockFactory.create_mock_enhancer(),
        slack_service=slack,
        storage_service=storage,
        relay_service=relay,
    )
    return service, slack, storage, relay


def campus_call(**overrides):
    defaults = dict(
        talkgroup=3605,
        talkgroup_tag="UCPD Dispatch",
        talkgroup_description="UC Police",
        talkgroup_group="UC Berkeley",
        short_name="Berkeley",
        src_ids=[3113003],
        src_tags=["Dispatch"],
        call_length=12,
    )
    defaults.update(overrides)
    return CallFactory.create_call_metadata(**defaults)


@pytest.mark.integration
class TestCallPipeline:

    @pytest.mark.asyncio
    async def test_campus_collision_mentions_and_locates(self, mock_settings, example_config, sample_audio) -> None:
        service, slack, storage, relay = build_service(
            mock_settings, example_config, "Vehicle versus bicyclist at Bancroft and Channing"
        )
        meta = campus_call()
        dedup_key, is_duplicate = service.register_call(meta)
        submission = CallSubmission(
            meta=meta,
            audio=sample_audio,
            filename="3605-1702513859.m4a",
            raw_metadata='{"talkgroup": 3605}',
            dedup_key=dedup_key,
        )

        result = await service.process_call(submission)

        assert is_duplicate is False
        assert result.channels == ("ucpd",)
        assert result.failed_jobs == []
        assert [r.job for r in result.results] == ["storage", "slack:ucpd", "relay"]

        channel, audio, filename, comment = slack.post_call.call_args.args
        assert channel == "ucpd"
        assert audio == sample_audio
        assert comment.splitlines() == [
            "*UCPD Dispatch* | _UC Police_",
            "Dispatch: Vehicle versus bicyclist at Bancroft and Channing.",
            "<@U0000000001>",
            "<https://trunk.example/audio?link=Berkeley/3605/3605-1702513859.m4a|Audio>",
            "Location: Bancroft and Channing",
            "12 seconds | Wed, Dec 13 2023 4:30PM PST",
        ]

        storage.store_call.assert_awaited_once()
        assert storage.store_call.call_args.args[0] == "Berkeley/3605/3605-1702513859.m4a"
        relay.upload.assert_awaited_once_with("3605-1702513859.m4a", sample_audio, '{"talkgroup": 3605}')

    @pytest.mark.asyncio
    async def test_suppressed_rule_does_not_mention(self, mock_settings, example_config, sample_audio) -> None:
        service, slack, _, _ = build_service(
            mock_settings, example_config, "Report of a man with a gun, no weapon seen. 2605 Dwight"
        )
        meta = campus_call()
        submission = CallSubmission(meta=meta, audio=sample_audio, filename="a.m4a", raw_metadata="{}")

        await service.process_call(submission)

        comment = slack.post_call.call_args.args[3]
        assert "<@U0000000002>" not in comment
        assert "Location: 2605 Dwight" in comment

    @pytest.mark.asyncio
    async def test_group_route_fan_out(self, mock_settings, example_config, sample_audio) -> None:
        service, slack, _, _ = build_service(mock_settings, example_config, "Engine 2 respond")
        meta = CallFactory.create_call_metadata(
            talkgroup=9999, talkgroup_group="Oakland", talkgroup_tag="Fire Dispatch"
        )
        submission = CallSubmission(meta=meta, audio=sample_audio, filename="b.m4a", raw_metadata="{}")

        result = await service.process_call(submission)

        assert result.channels == ("oakland", "oakland-fire-secondary")
        assert sorted(call.args[0] for call in slack.post_call.call_args_list) == [
            "oakland", "oakland-fire-secondary"
        ]

    @pytest.mark.asyncio
    async def test_unroutable_call_is_archived_only(self, mock_settings, example_config, sample_audio) -> None:
        service, slack, storage, relay = build_service(mock_settings, example_config, "")
        meta = CallFactory.create_call_metadata(talkgroup=1, talkgroup_group="Nowhere", talkgroup_tag="")
        submission = CallSubmission(meta=meta, audio=sample_audio, filename="c.m4a", raw_metadata="{}")

        result = await service.process_call(submission)

        assert result.channels == ()
        slack.post_call.assert_not_called()
        storage.store_call.assert_awaited_once()
        relay.upload.assert_awaited_once()


@pytest.mark.integration
class TestApplication:

    @pytest.fixture
    def app_env(self, monkeypatch):
        monkeypatch.setenv("DISPATCH_CONFIG_PATH", str(EXAMPLE_CONFIG))
        monkeypatch.setenv("TRANSCRIPTION_PROVIDER", "none")
        monkeypatch.delenv("SLACK_BOT_TOKEN", raising=False)
        monkeypatch.delenv("STORAGE_BUCKET", raising=False)
        monkeypatch.delenv("RELAY_URL", raising=False)
        monkeypatch.delenv("INGEST_API_KEY", raising=False)

    def test_health_and_upload(self, app_env, monkeypatch) -> None:
        from trunkbot import main

        process = AsyncMock()
        with TestClient(main.app) as client:
            monkeypatch.setattr(main.app.state, "process_call_callback", process)

            health = client.get("/health")
            upload = client.post(
                "/transcribe",
                data={"call_json": call_json_bytes().decode()},
                files={"call_audio": ("3105-1702513859.m4a", b"RIFF" + b"\x00" * 64, "audio/mp4")},
            )
            after = client.get("/health")

        assert health.status_code == 200
        body = health.json()
        assert body["status"] == "healthy"
        assert body["integrations"] == {"transcription": False, "slack": False, "storage": False, "relay": False}
        assert "ucpd" in body["channels"]

        assert upload.json()["status"] == "queued"
        process.assert_called_once()
        assert after.json()["dedup_cache_size"] == 1

    def test_health_before_startup(self) -> None:
        from trunkbot import main

        client = TestClient(main.app)

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "degraded"
