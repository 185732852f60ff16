"""Image generation vendors.

Stability, OpenAI (DALL-E 3), Gemini, Replicate (FLUX schnell, also used
for video), Ideogram, Hugging Face and the keyless Pollinations service.
"""

from __future__ import annotations

from urllib.parse import quote

from reelboard.models.types import GenerationInput, GenerationResult, JobStatus, KeyValidationResult
from reelboard.providers.base import ProviderBase, ProviderError, to_data_url

STABILITY_URL = (
    "https://api.stability.ai/v1/generation/stable-diffusion-xl-1024-v1-0/text-to-image"
)
OPENAI_IMAGES_URL = "https://api.openai.com/v1/images/generations"
GEMINI_BASE = "https://generativelanguage.googleapis.com"
GEMINI_IMAGE_MODEL = "gemini-2.0-flash-exp"
REPLICATE_BASE = "https://api.replicate.com/v1"
REPLICATE_IMAGE_MODEL = "black-forest-labs/flux-schnell"
REPLICATE_VIDEO_MODEL = "stability-ai/stable-video-diffusion"
IDEOGRAM_BASE = "https://api.ideogram.ai"
POLLINATIONS_BASE = "https://image.pollinations.ai/prompt"
HUGGINGFACE_MODEL = "black-forest-labs/FLUX.1-schnell"
HUGGINGFACE_BASE = "https://api-inference.huggingface.co/models"


class StabilityProvider(ProviderBase):
    """Stability AI SDXL text-to-image."""

    name = "stability"
    label = "Stability"

    def _generate_image(self, input: GenerationInput) -> GenerationResult:
        data = self._post_json(
            STABILITY_URL,
            {
                "text_prompts": [{"text": input.prompt, "weight": 1}],
                "cfg_scale": 7,
                "height": 1024,
                "width": 1024,
                "samples": 1,
                "steps": 30,
            },
            headers={"Accept": "application/json", "Authorization": f"Bearer {input.api_key}"},
        )
        artifacts = data.get("artifacts") or []
        if artifacts and artifacts[0].get("base64"):
            return self._ok(f"data:image/png;base64,{artifacts[0]['base64']}")
        return self._failed("No image returned")

    def _validate(self, api_key: str) -> KeyValidationResult:
        if self._probe(
            "https://api.stability.ai/v1/user/account",
            headers={"Authorization": f"Bearer {api_key}"},
        ):
            return KeyValidationResult(valid=True)
        return KeyValidationResult(valid=False, error="Invalid API key")


class OpenAIProvider(ProviderBase):
    """OpenAI DALL-E 3. Serves both ``openai`` and ``dalle3``."""

    name = "openai"
    label = "OpenAI"

    def _generate_image(self, input: GenerationInput) -> GenerationResult:
        data = self._post_json(
            OPENAI_IMAGES_URL,
            {
                "model": "dall-e-3",
                "prompt": input.prompt,
                "n": 1,
                "size": "1024x1024",
                "quality": "standard",
            },
            headers={"Authorization": f"Bearer {input.api_key}"},
        )
        images = data.get("data") or []
        if images and images[0].get("url"):
            return self._ok(images[0]["url"])
        return self._failed("No image returned")

    def _validate(self, api_key: str) -> KeyValidationResult:
        if self._probe(
            "https://api.openai.com/v1/models",
            headers={"Authorization": f"Bearer {api_key}"},
        ):
            return KeyValidationResult(valid=True)
        return KeyValidationResult(valid=False, error="Invalid API key")


class GeminiProvider(ProviderBase):
    """Google Gemini inline image output."""

    name = "gemini"
    label = "Gemini"

    def _generate_image(self, input: GenerationInput) -> GenerationResult:
        data = self._post_json(
            f"{GEMINI_BASE}/v1beta/models/{GEMINI_IMAGE_MODEL}:generateContent?key={input.api_key}",
            {
                "contents": [{"parts": [{"text": f"Generate an image: {input.prompt}"}]}],
                "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
            },
        )
        candidates = data.get("candidates") or []
        parts = candidates[0].get("content", {}).get("parts", []) if candidates else []
        for part in parts:
            inline = part.get("inlineData")
            if inline:
                return self._ok(f"data:{inline['mimeType']};base64,{inline['data']}")
        return self._failed("No image returned from Gemini")

    def _validate(self, api_key: str) -> KeyValidationResult:
        if self._probe(f"{GEMINI_BASE}/v1/models?key={api_key}"):
            return KeyValidationResult(valid=True)
        return KeyValidationResult(valid=False, error="Invalid API key")


class ReplicateProvider(ProviderBase):
    """Replicate predictions. Serves ``replicate`` and ``flux``.

    With ``Prefer: wait`` a fast prediction returns its output inline;
    otherwise the prediction ID is handed back for polling.
    """

    name = "replicate"
    label = "Replicate"

    def _headers(self, api_key: str, prefer: str) -> dict[str, str]:
        return {"Authorization": f"Token {api_key}", "Prefer": prefer}

    def _generate_image(self, input: GenerationInput) -> GenerationResult:
        prediction = self._post_json(
            f"{REPLICATE_BASE}/models/{REPLICATE_IMAGE_MODEL}/predictions",
            {
                "input": {
                    "prompt": input.prompt,
                    "num_outputs": 1,
                    "aspect_ratio": "16:9",
                    "output_format": "webp",
                    "output_quality": 80,
                }
            },
            headers=self._headers(input.api_key, "wait"),
        )
        output = prediction.get("output")
        if prediction.get("status") == "succeeded" and output:
            return self._ok(output[0] if isinstance(output, list) else output)
        if prediction.get("id"):
            return self._job(prediction["id"])
        return self._failed("No prediction ID returned")

    def _generate_video(self, input: GenerationInput) -> GenerationResult:
        model_input: dict[str, str] = {"prompt": input.prompt}
        if input.reference_image_url:
            model_input["image"] = input.reference_image_url

        prediction = self._post_json(
            f"{REPLICATE_BASE}/models/{REPLICATE_VIDEO_MODEL}/predictions",
            {"input": model_input},
            headers=self._headers(input.api_key, "wait=60"),
        )
        output = prediction.get("output")
        if prediction.get("status") == "succeeded" and output:
            return self._ok(output[0] if isinstance(output, list) else output)
        if prediction.get("id"):
            return self._job(prediction["id"])
        return self._failed("No prediction ID returned")

    def _check_status(self, job_id: str, api_key: str) -> JobStatus:
        data = self._get_json(
            f"{REPLICATE_BASE}/predictions/{job_id}",
            headers={"Authorization": f"Token {api_key}"},
        )
        status = data.get("status")
        if status == "succeeded":
            output = data.get("output")
            media_url = output[0] if isinstance(output, list) and output else output
            return JobStatus(status="completed", media_url=media_url)
        if status in ("failed", "canceled"):
            return JobStatus(status="failed", error=data.get("error") or "Generation failed")
        if status == "starting":
            return JobStatus(status="pending")
        return JobStatus(status="processing")

    def _validate(self, api_key: str) -> KeyValidationResult:
        if self._probe(f"{REPLICATE_BASE}/account", headers={"Authorization": f"Token {api_key}"}):
            return KeyValidationResult(valid=True)
        return KeyValidationResult(valid=False, error="Invalid API key")


class IdeogramProvider(ProviderBase):
    """Ideogram V2."""

    name = "ideogram"
    label = "Ideogram"

    def _generate_image(self, input: GenerationInput) -> GenerationResult:
        data = self._post_json(
            f"{IDEOGRAM_BASE}/generate",
            {
                "image_request": {
                    "prompt": input.prompt,
                    "aspect_ratio": "ASPECT_16_9",
                    "model": "V_2",
                    "magic_prompt_option": "AUTO",
                }
            },
            headers={"Api-Key": input.api_key},
        )
        images = data.get("data") or []
        if images and images[0].get("url"):
            return self._ok(images[0]["url"])
        return self._failed("No image returned")

    def _validate(self, api_key: str) -> KeyValidationResult:
        response = self.client.post(
            f"{IDEOGRAM_BASE}/describe",
            json={"image_url": "https://via.placeholder.com/1"},
            headers={"Api-Key": api_key},
        )
        if response.status_code in (401, 403):
            return KeyValidationResult(valid=False, error="Invalid API key")
        return KeyValidationResult(valid=True)


class PollinationsProvider(ProviderBase):
    """Pollinations URL-based images. No key and no request at generation time."""

    name = "pollinations"
    label = "Pollinations"
    requires_key = False

    def _generate_image(self, input: GenerationInput) -> GenerationResult:
        encoded = quote(input.prompt, safe="")
        return self._ok(f"{POLLINATIONS_BASE}/{encoded}?width=1024&height=1024&nologo=true")

    def _validate(self, api_key: str) -> KeyValidationResult:
        return KeyValidationResult(valid=True)


class HuggingFaceProvider(ProviderBase):
    """Hugging Face inference API with FLUX.1-schnell. Returns raw image bytes."""

    name = "huggingface"
    label = "Hugging Face"

    def _generate_image(self, input: GenerationInput) -> GenerationResult:
        response = self.client.post(
            f"{HUGGINGFACE_BASE}/{HUGGINGFACE_MODEL}",
            json={"inputs": input.prompt, "parameters": {"width": 1024, "height": 1024}},
            headers={
                "Authorization": f"Bearer {input.api_key}",
                "X-Wait-For-Model": "true",
            },
        )
        if response.status_code == 503:
            return self._failed("Model is loading, please try again in a moment")
        if response.status_code == 401:
            return self._failed("Invalid Hugging Face token")
        if not response.is_success:
            raise ProviderError(
                f"Hugging Face API error: {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        mime_type = response.headers.get("content-type", "image/png").split(";")[0]
        return self._ok(to_data_url(response.content, mime_type))

    def _validate(self, api_key: str) -> KeyValidationResult:
        if self._probe(
            "https://huggingface.co/api/whoami-v2",
            headers={"Authorization": f"Bearer {api_key}"},
        ):
            return KeyValidationResult(valid=True)
        return KeyValidationResult(valid=False, error="Invalid Hugging Face token")
