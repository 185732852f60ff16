"""Audio generation vendors."""

from __future__ import annotations

from reelboard.models.types import GenerationInput, GenerationResult, KeyValidationResult
from reelboard.providers.base import ProviderBase, ProviderError, to_data_url

ELEVENLABS_BASE = "https://api.elevenlabs.io/v1"
ELEVENLABS_DEFAULT_VOICE = "21m00Tcm4TlvDq8ikWAM"
ELEVENLABS_TTS_MODEL = "eleven_multilingual_v2"


class ElevenLabsProvider(ProviderBase):
    """ElevenLabs speech and sound generation.

    Voice clips go through text-to-speech; music and sfx clips through the
    sound-generation endpoint. Both answer with raw audio bytes.
    """

    name = "elevenlabs"
    label = "ElevenLabs"

    def _generate_audio(self, input: GenerationInput) -> GenerationResult:
        headers = {"xi-api-key": input.api_key, "Accept": "audio/mpeg"}
        if input.audio_type in (None, "voice"):
            url = f"{ELEVENLABS_BASE}/text-to-speech/{ELEVENLABS_DEFAULT_VOICE}"
            payload = {"text": input.prompt, "model_id": ELEVENLABS_TTS_MODEL}
        else:
            url = f"{ELEVENLABS_BASE}/sound-generation"
            payload = {"text": input.prompt}

        response = self.client.post(url, json=payload, headers=headers)
        if not response.is_success:
            raise ProviderError(
                f"ElevenLabs API error: {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        mime_type = response.headers.get("content-type", "audio/mpeg").split(";")[0]
        return self._ok(to_data_url(response.content, mime_type))

    def _validate(self, api_key: str) -> KeyValidationResult:
        if self._probe(f"{ELEVENLABS_BASE}/user", headers={"xi-api-key": api_key}):
            return KeyValidationResult(valid=True)
        return KeyValidationResult(valid=False, error="Invalid API key")
