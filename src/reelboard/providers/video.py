"""Video generation vendors.

Runway, Luma, Google Veo and Kling. All four are asynchronous: generation
returns a job ID and ``_check_status`` maps the vendor's job states onto
pending/processing/completed/failed. Veo may also answer inline.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import httpx

from reelboard.models.types import GenerationInput, GenerationResult, JobStatus, KeyValidationResult
from reelboard.providers.base import ProviderBase, ProviderError, to_data_url

logger = logging.getLogger(__name__)

RUNWAY_BASE = "https://api.runwayml.com/v1"
RUNWAY_VERSION = "2024-11-06"
LUMA_BASE = "https://api.lumalabs.ai/dream-machine/v1"
VEO_BASE = "https://generativelanguage.googleapis.com/v1beta"
VEO_MODEL = "veo-2.0-generate-001"
KLING_BASE = "https://api.klingai.com/v1/videos/text2video"

_DATA_URL = re.compile(r"^data:([^;]+);base64,(.+)$", re.DOTALL)


class RunwayProvider(ProviderBase):
    """Runway Gen-3 Alpha Turbo image-to-video."""

    name = "runway"
    label = "Runway"

    def _headers(self, api_key: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {api_key}", "X-Runway-Version": RUNWAY_VERSION}

    def _generate_video(self, input: GenerationInput) -> GenerationResult:
        if not input.reference_image_url:
            return self._failed(
                "Runway requires a reference image for image-to-video generation"
            )
        data = self._post_json(
            f"{RUNWAY_BASE}/image_to_video",
            {
                "model": "gen3a_turbo",
                "promptImage": input.reference_image_url,
                "promptText": input.prompt,
                "duration": 5,
                "ratio": "16:9",
            },
            headers=self._headers(input.api_key),
        )
        return self._job(data["id"])

    def _check_status(self, job_id: str, api_key: str) -> JobStatus:
        data = self._get_json(f"{RUNWAY_BASE}/tasks/{job_id}", headers=self._headers(api_key))
        status = data.get("status")
        if status == "SUCCEEDED":
            output = data.get("output") or []
            return JobStatus(status="completed", media_url=output[0] if output else None)
        if status in ("FAILED", "CANCELLED"):
            return JobStatus(status="failed", error=data.get("failure") or "Generation failed")
        if status in ("PENDING", "THROTTLED"):
            return JobStatus(status="pending", progress=data.get("progress"))
        return JobStatus(status="processing", progress=data.get("progress"))

    def _validate(self, api_key: str) -> KeyValidationResult:
        response = self.client.get(f"{RUNWAY_BASE}/tasks?limit=1", headers=self._headers(api_key))
        if response.is_success:
            return KeyValidationResult(valid=True)
        if response.status_code == 401:
            return KeyValidationResult(valid=False, error="Invalid API key")
        return KeyValidationResult(valid=len(api_key) > 20)


class LumaProvider(ProviderBase):
    """Luma Dream Machine."""

    name = "luma"
    label = "Luma"

    def _generate_video(self, input: GenerationInput) -> GenerationResult:
        payload: dict[str, Any] = {"prompt": input.prompt, "aspect_ratio": "16:9"}
        if input.reference_image_url:
            payload["keyframes"] = {
                "frame0": {"type": "image", "url": input.reference_image_url}
            }
        data = self._post_json(
            f"{LUMA_BASE}/generations",
            payload,
            headers={"Authorization": f"Bearer {input.api_key}"},
        )
        return self._job(data["id"])

    def _check_status(self, job_id: str, api_key: str) -> JobStatus:
        data = self._get_json(
            f"{LUMA_BASE}/generations/{job_id}",
            headers={"Authorization": f"Bearer {api_key}"},
        )
        state = data.get("state")
        if state == "completed":
            return JobStatus(status="completed", media_url=(data.get("assets") or {}).get("video"))
        if state == "failed":
            return JobStatus(
                status="failed", error=data.get("failure_reason") or "Generation failed"
            )
        if state in ("queued", "pending"):
            return JobStatus(status="pending")
        return JobStatus(status="processing")


def _find_video_uri(parts: list[dict[str, Any]]) -> str | None:
    for part in parts:
        video = part.get("video") or {}
        if video.get("uri"):
            return video["uri"]
        file_data = part.get("fileData") or {}
        if file_data.get("fileUri"):
            return file_data["fileUri"]
    return None


class VeoProvider(ProviderBase):
    """Google Veo via the Gemini API.

    Answers either inline (video URI or base64 data) or with a long-running
    operation name that is polled through the operations API.
    """

    name = "veo"
    label = "Veo"

    def _reference_part(self, reference_url: str) -> dict[str, Any] | None:
        match = _DATA_URL.match(reference_url)
        if match:
            return {"inlineData": {"mimeType": match.group(1), "data": match.group(2)}}
        try:
            response = self.client.get(reference_url)
        except httpx.HTTPError as e:
            logger.warning(f"[Veo] Could not fetch reference image: {e}")
            return None
        if not response.is_success:
            logger.warning(f"[Veo] Reference image returned {response.status_code}")
            return None
        mime_type = response.headers.get("content-type", "image/jpeg").split(";")[0]
        data_url = to_data_url(response.content, mime_type)
        return {"inlineData": {"mimeType": mime_type, "data": data_url.split(",", 1)[1]}}

    def _generate_video(self, input: GenerationInput) -> GenerationResult:
        parts: list[dict[str, Any]] = [{"text": input.prompt}]
        if input.reference_image_url:
            reference = self._reference_part(input.reference_image_url)
            if reference:
                parts.insert(0, reference)

        response = self.client.post(
            f"{VEO_BASE}/models/{VEO_MODEL}:generateContent?key={input.api_key}",
            json={
                "contents": [{"role": "user", "parts": parts}],
                "generationConfig": {
                    "responseModalities": ["VIDEO"],
                    "videoDurationSeconds": 5,
                },
            },
        )
        if not response.is_success:
            text = response.text
            if "not found" in text or "does not exist" in text:
                return self._failed(
                    "Veo model not available. Please ensure you have access to Google's Veo API."
                )
            raise ProviderError(
                f"Veo API error: {response.status_code}",
                status_code=response.status_code,
                body=text,
            )

        data = response.json()
        candidates = data.get("candidates") or []
        parts_out = candidates[0].get("content", {}).get("parts", []) if candidates else []

        uri = _find_video_uri(parts_out)
        if uri:
            return self._ok(uri)

        for part in parts_out:
            inline = part.get("inlineData") or {}
            if str(inline.get("mimeType", "")).startswith("video/"):
                return self._ok(f"data:{inline['mimeType']};base64,{inline['data']}")

        if data.get("name"):
            return self._job(data["name"])

        return self._failed(
            "No video returned from Veo. The model may not support direct video generation yet."
        )

    def _check_status(self, job_id: str, api_key: str) -> JobStatus:
        response = self.client.get(f"{VEO_BASE}/{job_id}?key={api_key}")
        if not response.is_success:
            return JobStatus(status="failed", error="Failed to check Veo status")
        data = response.json()

        if not data.get("done"):
            return JobStatus(status="processing", progress=(data.get("metadata") or {}).get("progress"))

        if data.get("error"):
            return JobStatus(
                status="failed",
                error=data["error"].get("message") or "Veo generation failed",
            )

        candidates = (data.get("response") or {}).get("candidates") or []
        parts = candidates[0].get("content", {}).get("parts", []) if candidates else []
        uri = _find_video_uri(parts)
        if uri:
            return JobStatus(status="completed", media_url=uri)
        return JobStatus(status="failed", error="No video in Veo response")


class KlingProvider(ProviderBase):
    """Kling AI text-to-video."""

    name = "kling"
    label = "Kling"

    def _generate_video(self, input: GenerationInput) -> GenerationResult:
        data = self._post_json(
            KLING_BASE,
            {
                "prompt": input.prompt,
                "negative_prompt": "",
                "cfg_scale": 0.5,
                "mode": "std",
                "aspect_ratio": "16:9",
                "duration": "5",
            },
            headers={"Authorization": f"Bearer {input.api_key}"},
        )
        task_id = (data.get("data") or {}).get("task_id")
        if task_id:
            return self._job(task_id)
        return self._failed("No task ID returned from Kling")

    def _check_status(self, job_id: str, api_key: str) -> JobStatus:
        response = self.client.get(
            f"{KLING_BASE}/{job_id}", headers={"Authorization": f"Bearer {api_key}"}
        )
        if not response.is_success:
            return JobStatus(status="failed", error="Failed to check Kling status")
        data = response.json().get("data") or {}
        task_status = data.get("task_status")
        if task_status == "succeed":
            videos = (data.get("task_result") or {}).get("videos") or []
            return JobStatus(status="completed", media_url=videos[0].get("url") if videos else None)
        if task_status == "failed":
            return JobStatus(
                status="failed", error=data.get("task_status_msg") or "Kling generation failed"
            )
        if task_status == "submitted":
            return JobStatus(status="pending")
        return JobStatus(status="processing")
