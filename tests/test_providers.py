"""Tests for vendor adapters against stubbed HTTP responses."""

import json

import httpx
import pytest

from reelboard.models.types import GenerationInput
from reelboard.providers.base import ProviderError
from reelboard.providers.placeholder import PlaceholderProvider
from reelboard.providers.registry import UnavailableProvider, has_adapter


def _input(kind="image", **kwargs) -> GenerationInput:
    values = {"kind": kind, "prompt": "a lighthouse", "api_key": "key-1234567890"}
    values.update(kwargs)
    return GenerationInput(**values)


class TestProviderError:
    """Test error text carried to the classifier."""

    def test_str_includes_trimmed_body(self):
        error = ProviderError("Luma API error: 429", status_code=429, body="x" * 500)

        assert str(error) == "Luma API error: 429: " + "x" * 300
        assert error.status_code == 429

    def test_str_without_body(self):
        assert str(ProviderError("boom")) == "boom"


class TestRegistry:
    """Test adapter lookup."""

    def test_aliases_share_adapter_but_keep_name(self, registry):
        dalle = registry.get("dalle3")

        assert dalle.name == "dalle3"
        assert dalle.label == "OpenAI"
        assert registry.get("dalle3") is dalle

    def test_catalogue_entry_without_adapter(self, registry):
        provider = registry.get("pika")

        assert isinstance(provider, UnavailableProvider)
        assert has_adapter("pika") is False
        result = provider.generate(_input("video"))
        assert result.success is False
        assert result.error == "pika video integration is not yet available"

    def test_unknown_name_returns_none(self, registry):
        assert registry.get("nope") is None


class TestCommonBehaviour:
    """Test the base class wrapping."""

    def test_missing_key_fails_without_request(self, registry, vendor):
        result = registry.get("openai").generate(_input(api_key=""))

        assert result.success is False
        assert result.error == "No API key configured for openai"
        assert vendor.requests == []

    def test_unexpected_response_shape_is_a_failure(self, registry, vendor):
        vendor.on("POST", "https://api.runwayml.com", httpx.Response(200, json={"oops": 1}))

        result = registry.get("runway").generate(
            _input("video", reference_image_url="https://img/ref.png")
        )

        assert result.success is False
        assert result.error == "Generation failed: unexpected response from runway"

    def test_non_object_body_is_a_failure(self, registry, vendor):
        vendor.on(
            "POST",
            "https://api.stability.ai/v1/generation",
            httpx.Response(200, json=["unexpected"]),
        )

        result = registry.get("stability").generate(_input())

        assert result.success is False
        assert result.error == "Generation failed: unexpected response from stability"

    def test_non_object_job_status_is_a_failure(self, registry, vendor):
        vendor.on(
            "GET",
            "https://api.lumalabs.ai/dream-machine/v1/generations/g1",
            httpx.Response(200, json=[]),
        )

        status = registry.get("luma").check_job_status("g1", "key-1234567890")

        assert status.status == "failed"
        assert status.error.startswith("Status check failed:")

    def test_unimplemented_hook_reported_without_calling_it(self, registry):
        pika = registry.get("pika")
        luma = registry.get("luma")

        assert pika.implements("_generate_video") is False
        assert luma.implements("_generate_video") is True
        assert luma.implements("_generate_image") is False
        assert pika.check_job_status("j1", "key-1234567890").error == "Unknown provider"

    def test_transport_error_is_a_failure(self, registry, vendor):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        vendor.on("POST", "https://api.openai.com", refuse)

        result = registry.get("openai").generate(_input())

        assert result.success is False
        assert result.error.startswith("Generation failed:")


class TestImageVendors:
    """Test image adapters."""

    def test_openai_sends_bearer_and_reads_url(self, registry, vendor):
        vendor.on(
            "POST",
            "https://api.openai.com/v1/images/generations",
            httpx.Response(200, json={"data": [{"url": "https://img/dalle.png"}]}),
        )

        result = registry.get("openai").generate(_input())

        assert result.media_url == "https://img/dalle.png"
        request = vendor.requests[0]
        assert request.headers["authorization"] == "Bearer key-1234567890"
        assert json.loads(request.content)["model"] == "dall-e-3"

    def test_gemini_inline_image_becomes_data_url(self, registry, vendor):
        vendor.on(
            "POST",
            "https://generativelanguage.googleapis.com/v1beta/models/",
            httpx.Response(
                200,
                json={
                    "candidates": [
                        {"content": {"parts": [{"inlineData": {"mimeType": "image/png", "data": "QUJD"}}]}}
                    ]
                },
            ),
        )

        result = registry.get("gemini").generate(_input())

        assert result.media_url == "data:image/png;base64,QUJD"

    def test_replicate_waits_inline_when_fast(self, registry, vendor):
        vendor.on(
            "POST",
            "https://api.replicate.com/v1/models/black-forest-labs/flux-schnell",
            httpx.Response(201, json={"id": "p1", "status": "succeeded", "output": ["https://img/f.webp"]}),
        )

        result = registry.get("flux").generate(_input())

        assert result.media_url == "https://img/f.webp"
        assert result.job_id is None
        assert vendor.requests[0].headers["prefer"] == "wait"

    def test_replicate_returns_job_when_still_running(self, registry, vendor):
        vendor.on(
            "POST",
            "https://api.replicate.com/v1/models/",
            httpx.Response(201, json={"id": "p2", "status": "processing"}),
        )

        result = registry.get("replicate").generate(_input("video"))

        assert result.job_id == "p2"
        assert result.status == "processing"

    def test_pollinations_needs_no_key_or_request(self, registry, vendor):
        result = registry.get("pollinations").generate(_input(api_key="", prompt="red fox"))

        assert result.success is True
        assert result.media_url.startswith("https://image.pollinations.ai/prompt/red%20fox?")
        assert vendor.requests == []

    def test_huggingface_loading_model(self, registry, vendor):
        vendor.on("POST", "https://api-inference.huggingface.co", httpx.Response(503))

        result = registry.get("huggingface").generate(_input())

        assert result.error == "Model is loading, please try again in a moment"

    def test_huggingface_bytes_become_data_url(self, registry, vendor):
        vendor.on(
            "POST",
            "https://api-inference.huggingface.co",
            httpx.Response(200, content=b"PNG", headers={"content-type": "image/png"}),
        )

        result = registry.get("huggingface").generate(_input())

        assert result.media_url == "data:image/png;base64,UE5H"


class TestVideoVendors:
    """Test video adapters and job polling."""

    def test_runway_requires_reference_image(self, registry, vendor):
        result = registry.get("runway").generate(_input("video"))

        assert result.success is False
        assert "reference image" in result.error
        assert vendor.requests == []

    @pytest.mark.parametrize(
        "payload,expected",
        [
            ({"status": "SUCCEEDED", "output": ["https://vid/r.mp4"]}, "completed"),
            ({"status": "FAILED", "failure": "bad prompt"}, "failed"),
            ({"status": "THROTTLED"}, "pending"),
            ({"status": "RUNNING", "progress": 0.4}, "processing"),
        ],
    )
    def test_runway_status_mapping(self, registry, vendor, payload, expected):
        vendor.on("GET", "https://api.runwayml.com/v1/tasks/t1", httpx.Response(200, json=payload))

        status = registry.get("runway").check_job_status("t1", "key-1234567890")

        assert status.status == expected

    def test_luma_completed_job(self, registry, vendor):
        vendor.on(
            "GET",
            "https://api.lumalabs.ai/dream-machine/v1/generations/g1",
            httpx.Response(200, json={"state": "completed", "assets": {"video": "https://vid/l.mp4"}}),
        )

        status = registry.get("luma").check_job_status("g1", "key-1234567890")

        assert status.status == "completed"
        assert status.media_url == "https://vid/l.mp4"

    def test_kling_returns_task_id(self, registry, vendor):
        vendor.on(
            "POST",
            "https://api.klingai.com/v1/videos/text2video",
            httpx.Response(200, json={"data": {"task_id": "k1"}}),
        )

        result = registry.get("kling").generate(_input("video"))

        assert result.job_id == "k1"

    def test_veo_operation_name_becomes_job(self, registry, vendor):
        vendor.on(
            "POST",
            "https://generativelanguage.googleapis.com/v1beta/models/veo",
            httpx.Response(200, json={"name": "operations/op-1"}),
        )

        result = registry.get("veo").generate(_input("video"))

        assert result.job_id == "operations/op-1"

    def test_veo_done_operation_resolves_uri(self, registry, vendor):
        vendor.on(
            "GET",
            "https://generativelanguage.googleapis.com/v1beta/operations/op-1",
            httpx.Response(
                200,
                json={
                    "done": True,
                    "response": {
                        "candidates": [{"content": {"parts": [{"video": {"uri": "https://vid/v.mp4"}}]}}]
                    },
                },
            ),
        )

        status = registry.get("veo").check_job_status("operations/op-1", "key-1234567890")

        assert status.status == "completed"
        assert status.media_url == "https://vid/v.mp4"

    def test_status_check_error_is_failed_state(self, registry, vendor):
        vendor.on("GET", "https://api.replicate.com/v1/predictions/p9", httpx.Response(500, text="down"))

        status = registry.get("replicate").check_job_status("p9", "key-1234567890")

        assert status.status == "failed"
        assert status.error.startswith("Status check failed:")


class TestAudioVendor:
    """Test ElevenLabs routing by clip type."""

    def test_voice_uses_text_to_speech(self, registry, vendor):
        vendor.on(
            "POST",
            "https://api.elevenlabs.io/v1/text-to-speech/",
            httpx.Response(200, content=b"mp3", headers={"content-type": "audio/mpeg"}),
        )

        result = registry.get("elevenlabs").generate(_input("audio", audio_type="voice"))

        assert result.success is True
        assert vendor.requests[0].headers["xi-api-key"] == "key-1234567890"

    def test_music_uses_sound_generation(self, registry, vendor):
        vendor.on(
            "POST",
            "https://api.elevenlabs.io/v1/sound-generation",
            httpx.Response(200, content=b"mp3", headers={"content-type": "audio/mpeg"}),
        )

        result = registry.get("elevenlabs").generate(_input("audio", audio_type="music"))

        assert result.media_url == "data:audio/mpeg;base64,bXAz"


class TestPlaceholder:
    """Test the last-resort provider."""

    def test_same_target_same_image(self, vendor):
        provider = PlaceholderProvider(vendor.client())

        first = provider.generate(_input(api_key="", target_id="tile-1"))
        second = provider.generate(_input("video", api_key="", target_id="tile-1"))
        other = provider.generate(_input(api_key="", target_id="tile-2"))

        assert first.media_url == second.media_url
        assert first.media_url != other.media_url
        assert first.media_url.startswith("https://picsum.photos/seed/")

    def test_audio_has_no_url(self, vendor):
        result = PlaceholderProvider(vendor.client()).generate(_input("audio", api_key=""))

        assert result.success is True
        assert result.media_url is None


class TestKeyValidation:
    """Test vendor key checks."""

    def test_account_probe(self, registry, vendor):
        vendor.on("GET", "https://api.openai.com/v1/models", httpx.Response(200, json={}))

        assert registry.get("openai").validate_key("sk-test").valid is True

    def test_rejected_probe(self, registry, vendor):
        result = registry.get("openai").validate_key("sk-test")

        assert result.valid is False
        assert result.error == "Invalid API key"

    def test_length_check_without_endpoint(self, registry):
        assert registry.get("luma").validate_key("short").valid is False
        assert registry.get("luma").validate_key("long-enough-key").valid is True
