"""Tests for provider fallback ordering and orchestration."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from reelboard.db import repo
from reelboard.generation.fallback import (
    GenerationOrchestrator,
    build_candidates,
    generate_for_clip,
    generate_for_tile,
)
from reelboard.models.domain import ApiSettingEntity, GenerationJobEntity

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

OPENAI_URL = "https://api.openai.com/v1/images/generations"
STABILITY_URL = "https://api.stability.ai/v1/generation"
LUMA_URL = "https://api.lumalabs.ai/dream-machine/v1/generations"


def _setting(
    setting_id, provider, api_key="key-1234567890", status="active", priority=0, failed_at=None
) -> ApiSettingEntity:
    return ApiSettingEntity(
        id=setting_id,
        provider=provider,
        instance_name=provider,
        api_key=api_key,
        status=status,
        priority=priority,
        last_failure_at=failed_at,
    )


def _names(candidates):
    return [(c.provider, c.setting_id) for c in candidates]


class TestBuildCandidates:
    """Test candidate ordering."""

    def test_filters_by_category_and_appends_free_fallback(self):
        settings = [_setting("a", "openai"), _setting("b", "runway"), _setting("c", "elevenlabs")]

        assert _names(build_candidates(settings, "image", NOW)) == [
            ("openai", "a"),
            ("pollinations", None),
        ]
        assert _names(build_candidates(settings, "video", NOW)) == [
            ("runway", "b"),
            ("placeholder", None),
        ]
        assert _names(build_candidates(settings, "audio", NOW)) == [
            ("elevenlabs", "c"),
            ("placeholder", None),
        ]

    def test_orders_by_priority_then_creation(self):
        settings = [
            _setting("a", "openai", priority=2),
            _setting("b", "stability", priority=1),
            _setting("c", "gemini", priority=1),
        ]

        assert [c.setting_id for c in build_candidates(settings, "image", NOW)] == [
            "b",
            "c",
            "a",
            None,
        ]

    def test_active_before_recovered_instances(self):
        """A cooled-down blocked instance goes after active ones regardless of priority."""
        settings = [
            _setting("a", "openai", status="temporarily_blocked", priority=0,
                     failed_at=NOW - timedelta(minutes=5)),
            _setting("b", "stability", priority=9),
        ]

        assert [c.setting_id for c in build_candidates(settings, "image", NOW)][:2] == ["b", "a"]

    def test_excludes_instances_in_cooldown_and_keyless(self):
        settings = [
            _setting("a", "openai", status="depleted", failed_at=NOW - timedelta(hours=1)),
            _setting("b", "stability", api_key=""),
            _setting("c", "gemini"),
        ]

        assert _names(build_candidates(settings, "image", NOW)) == [
            ("gemini", "c"),
            ("pollinations", None),
        ]

    def test_requested_instance_spliced_first_even_when_depleted(self):
        settings = [
            _setting("a", "openai"),
            _setting("b", "stability", status="depleted", failed_at=NOW),
        ]

        candidates = build_candidates(settings, "image", NOW, requested="b")

        assert _names(candidates) == [
            ("stability", "b"),
            ("openai", "a"),
            ("pollinations", None),
        ]

    def test_requested_provider_name_brings_all_its_instances(self):
        settings = [
            _setting("a", "openai"),
            _setting("b", "replicate", priority=1),
            _setting("c", "replicate", priority=0),
        ]

        candidates = build_candidates(settings, "image", NOW, requested="replicate")

        assert _names(candidates) == [
            ("replicate", "c"),
            ("replicate", "b"),
            ("openai", "a"),
            ("pollinations", None),
        ]

    def test_requested_unconfigured_provider_becomes_keyless_candidate(self):
        candidates = build_candidates([], "image", NOW, requested="ideogram")

        assert _names(candidates) == [("ideogram", None), ("pollinations", None)]

    def test_free_fallback_not_duplicated(self):
        settings = [_setting("a", "pollinations", api_key="")]

        assert _names(build_candidates(settings, "image", NOW)) == [("pollinations", "a")]
        assert _names(build_candidates([], "image", NOW, requested="pollinations")) == [
            ("pollinations", None)
        ]


def _orchestrator(session, registry, now=NOW):
    return GenerationOrchestrator(session, registry, clock=lambda: now)


def _image_tile(session):
    timeline = repo.create_timeline(session, {})
    tile = repo.create_tile(
        session, {"type": "image", "timeline_id": timeline.id, "position": 0, "prompt": "a cat"}
    )
    repo.commit(session)
    return tile


class TestOrchestrator:
    """Test the sequential fallback loop."""

    def test_first_success_stops_the_loop(self, session, registry, vendor):
        vendor.on("POST", OPENAI_URL, httpx.Response(200, json={"data": [{"url": "https://img/1"}]}))
        first = repo.create_api_setting(session, "openai", "sk-test", priority=0)
        repo.create_api_setting(session, "stability", "sk-stab", priority=1)
        repo.commit(session)

        result = _orchestrator(session, registry).generate("image", "a cat")

        assert result.success is True
        assert result.media_url == "https://img/1"
        assert result.provider == "openai"
        assert result.setting_id == first.id
        assert result.attempts == ["openai"]
        assert not any(str(r.url).startswith(STABILITY_URL) for r in vendor.requests)

    def test_rate_limited_instance_blocked_and_next_tried(self, session, registry, vendor):
        vendor.on("POST", OPENAI_URL, httpx.Response(429, json={"error": "Too many requests"}))
        vendor.on(
            "POST",
            STABILITY_URL,
            httpx.Response(200, json={"artifacts": [{"base64": "aGVsbG8="}]}),
        )
        blocked = repo.create_api_setting(session, "openai", "sk-test", priority=0)
        repo.create_api_setting(session, "stability", "sk-stab", priority=1)
        repo.commit(session)

        result = _orchestrator(session, registry).generate("image", "a cat")

        assert result.success is True
        assert result.provider == "stability"
        assert result.media_url == "data:image/png;base64,aGVsbG8="
        assert result.attempts == ["openai", "stability"]

        stored = repo.get_api_setting(session, blocked.id)
        assert stored.status == "temporarily_blocked"
        assert stored.last_failure_at == NOW
        assert "429" in stored.last_error

    def test_quota_error_depletes_instance(self, session, registry, vendor):
        vendor.on(
            "POST",
            OPENAI_URL,
            httpx.Response(400, json={"error": {"message": "You exceeded your current quota"}}),
        )
        setting = repo.create_api_setting(session, "openai", "sk-test")
        repo.commit(session)

        result = _orchestrator(session, registry).generate("image", "a cat")

        assert result.provider == "pollinations"
        assert repo.get_api_setting(session, setting.id).status == "depleted"

    def test_unclassified_error_keeps_status(self, session, registry, vendor):
        vendor.on("POST", OPENAI_URL, httpx.Response(500, text="internal error"))
        setting = repo.create_api_setting(session, "openai", "sk-test")
        repo.commit(session)

        _orchestrator(session, registry).generate("image", "a cat")

        stored = repo.get_api_setting(session, setting.id)
        assert stored.status == "active"
        assert stored.last_error == "OpenAI API error: 500: internal error"

    def test_success_resets_recovered_instance(self, session, registry, vendor):
        vendor.on("POST", OPENAI_URL, httpx.Response(200, json={"data": [{"url": "https://img/2"}]}))
        setting = repo.create_api_setting(session, "openai", "sk-test")
        repo.record_provider_failure(
            session,
            setting.id,
            status="temporarily_blocked",
            error="429",
            failed_at=NOW - timedelta(minutes=2),
        )
        repo.commit(session)

        result = _orchestrator(session, registry).generate("image", "a cat")

        assert result.provider == "openai"
        stored = repo.get_api_setting(session, setting.id)
        assert stored.status == "active"
        assert stored.last_error is None

    def test_blocked_instance_skipped_during_cooldown(self, session, registry, vendor):
        setting = repo.create_api_setting(session, "openai", "sk-test")
        repo.record_provider_failure(
            session,
            setting.id,
            status="temporarily_blocked",
            error="429",
            failed_at=NOW - timedelta(seconds=10),
        )
        repo.commit(session)

        result = _orchestrator(session, registry).generate("image", "a cat")

        assert result.provider == "pollinations"
        assert vendor.requests == []

    def test_failing_video_vendor_falls_back_to_placeholder(self, session, registry, vendor):
        vendor.on("POST", LUMA_URL, httpx.Response(500, text="luma down"))
        repo.create_api_setting(session, "luma", "luma-key")
        repo.commit(session)

        result = _orchestrator(session, registry).generate("video", "waves", requested="luma")

        assert result.success is True
        assert result.provider == "placeholder"
        assert result.attempts == ["luma", "placeholder"]

    def test_unavailable_integration_falls_through(self, session, registry):
        repo.create_api_setting(session, "hunyuan", "hy-key")
        repo.commit(session)

        result = _orchestrator(session, registry).generate("image", "a cat")

        assert result.provider == "pollinations"
        assert result.attempts == ["hunyuan", "pollinations"]

    def test_requested_provider_without_key_fails_then_falls_back(self, session, registry):
        result = _orchestrator(session, registry).generate("image", "a cat", requested="openai")

        assert result.success is True
        assert result.provider == "pollinations"
        assert result.attempts == ["openai", "pollinations"]


class TestExhaustion:
    """Test the all-candidates-failed path."""

    def test_failed_result_when_every_candidate_fails(self, session, registry, monkeypatch):
        from reelboard.providers import catalog

        monkeypatch.setitem(catalog.FALLBACK_PROVIDER, "image", "ideogram")
        setting = repo.create_api_setting(session, "openai", "sk-test")
        repo.commit(session)

        result = _orchestrator(session, registry).generate("image", "a cat")

        assert result.success is False
        assert result.error == "No API key configured for ideogram"
        assert result.attempts == ["openai", "ideogram"]
        assert repo.get_api_setting(session, setting.id).last_error == "OpenAI API error: 404: no route"


class TestTileBookkeeping:
    """Test tile updates around generation."""

    def test_sync_result_written_to_tile(self, session, registry):
        tile = _image_tile(session)

        result = generate_for_tile(_orchestrator(session, registry), "image", "a cat", tile.id)

        stored = repo.get_tile(session, tile.id)
        assert result.success is True
        assert stored.media_url == result.media_url
        assert stored.provider == "pollinations"
        assert stored.is_generating is False
        assert repo.get_generation_job(session, tile.id) is None

    def test_async_result_stores_job(self, session, registry, vendor):
        vendor.on("POST", LUMA_URL, httpx.Response(201, json={"id": "gen-42", "state": "queued"}))
        setting = repo.create_api_setting(session, "luma", "luma-key")
        tile = _image_tile(session)

        result = generate_for_tile(_orchestrator(session, registry), "video", "waves", tile.id)

        assert result.success is True
        assert result.job_id == "gen-42"
        assert result.status == "processing"
        job = repo.get_generation_job(session, tile.id)
        assert (job.provider, job.job_id, job.setting_id, job.type) == (
            "luma",
            "gen-42",
            setting.id,
            "video",
        )
        assert repo.get_tile(session, tile.id).is_generating is True

    def test_unexpected_error_clears_generating_flag(self, session, registry, monkeypatch):
        tile = _image_tile(session)
        orchestrator = _orchestrator(session, registry)

        def explode(*args, **kwargs):
            raise RuntimeError("database went away")

        monkeypatch.setattr(orchestrator, "generate", explode)

        with pytest.raises(RuntimeError):
            generate_for_tile(orchestrator, "image", "a cat", tile.id)

        assert repo.get_tile(session, tile.id).is_generating is False

    def test_earlier_job_dropped_when_regenerated(self, session, registry):
        tile = _image_tile(session)
        repo.save_generation_job(
            session,
            GenerationJobEntity(tile_id=tile.id, provider="luma", job_id="job-1", type="video"),
        )
        repo.commit(session)

        result = generate_for_tile(
            _orchestrator(session, registry), "video", "waves", tile.id, requested="placeholder"
        )

        assert result.provider == "placeholder"
        assert repo.get_generation_job(session, tile.id) is None
        assert repo.get_tile(session, tile.id).media_url == result.media_url

    def test_missing_tile_still_generates(self, session, registry):
        result = generate_for_tile(_orchestrator(session, registry), "image", "a cat", "missing")

        assert result.success is True
        assert repo.get_generation_job(session, "missing") is None

    def test_audio_written_to_clip(self, session, registry, vendor):
        vendor.on(
            "POST",
            "https://api.elevenlabs.io/v1/sound-generation",
            httpx.Response(200, content=b"mp3", headers={"content-type": "audio/mpeg"}),
        )
        repo.create_api_setting(session, "elevenlabs", "xi-key")
        track = repo.create_audio_track(session, {"name": "FX", "type": "sfx"})
        clip = repo.create_audio_clip(
            session, {"track_id": track.id, "name": "Boom", "start_time": 0, "duration": 1}
        )
        repo.commit(session)

        result = generate_for_clip(_orchestrator(session, registry), "explosion", clip.id, "sfx")

        stored = repo.get_audio_clip(session, clip.id)
        assert result.provider == "elevenlabs"
        assert stored.audio_url == "data:audio/mpeg;base64,bXAz"
        assert stored.prompt == "explosion"
