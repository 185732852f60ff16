"""Base provider interface.

Provider adapters speak one vendor's HTTP API. They never touch the
database or decide fallback order; the generation layer does that.
"""

from __future__ import annotations

import base64
import logging
from abc import ABC
from typing import Any

import httpx

from reelboard.models.types import (
    GenerationInput,
    GenerationResult,
    JobStatus,
    KeyValidationResult,
)
from reelboard.providers.catalog import GenerationKind, categories_of

logger = logging.getLogger(__name__)

# Vendor bodies are trimmed to this many characters in error text
ERROR_BODY_LIMIT = 300

# Minimum key length accepted by vendors without a validation endpoint
MIN_KEY_LENGTH = 10

# Raised while reading a 2xx body whose shape differs from the documented one
RESPONSE_SHAPE_ERRORS = (ValueError, LookupError, TypeError, AttributeError)


class ProviderError(Exception):
    """A vendor call failed.

    The string form carries the HTTP status and a trimmed response body so
    that quota and rate-limit wording reaches the status classifier.
    """

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        self.message = message
        self.status_code = status_code
        self.body = body[:ERROR_BODY_LIMIT]
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.body:
            return f"{self.message}: {self.body}"
        return self.message


class ProviderBase(ABC):
    """Abstract base class for generation providers.

    Subclasses override ``_generate_image``, ``_generate_video``,
    ``_generate_audio``, ``_check_status`` and ``_validate`` for what the
    vendor supports. A hook left at the base implementation means the
    vendor has no integration for it (see ``implements``). The public
    methods wrap the hooks so that vendor and transport errors come back as
    failed results instead of exceptions.
    """

    name: str = ""
    label: str = ""
    requires_key: bool = True

    def __init__(self, client: httpx.Client, name: str | None = None):
        """Initialize provider.

        Args:
            client: Shared HTTP client.
            name: Catalogue name, for adapters serving several aliases.
        """
        self.client = client
        if name:
            self.name = name
        if not self.label:
            self.label = self.name.capitalize()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def supports(self, kind: GenerationKind) -> bool:
        """Whether this adapter can generate the given kind."""
        return kind in categories_of(self.name)

    def implements(self, hook: str) -> bool:
        """Whether this adapter overrides the named vendor hook."""
        return getattr(type(self), hook) is not getattr(ProviderBase, hook)

    def generate(self, input: GenerationInput) -> GenerationResult:
        """Run one generation call.

        Args:
            input: Prompt, key and optional reference image.

        Returns:
            GenerationResult with a media URL, a job ID, or an error.
        """
        if self.requires_key and not input.api_key:
            return self._failed(f"No API key configured for {self.name}")

        hook = f"_generate_{input.kind}"
        if not self.implements(hook):
            return self._failed(f"{self.name} {input.kind} integration is not yet available")

        logger.info(f"[Provider] Generating {input.kind} with {self.name}")
        try:
            return getattr(self, hook)(input)
        except ProviderError as e:
            logger.error(f"[{self.label}] Error: {e}")
            return self._failed(str(e))
        except httpx.HTTPError as e:
            logger.error(f"[{self.label}] Transport error: {e}")
            return self._failed(f"Generation failed: {e}")
        except RESPONSE_SHAPE_ERRORS as e:
            logger.error(f"[{self.label}] Unexpected response: {e!r}")
            return self._failed(f"Generation failed: unexpected response from {self.name}")

    def check_job_status(self, job_id: str, api_key: str) -> JobStatus:
        """Resolve an asynchronous job against the vendor status API."""
        if self.requires_key and not api_key:
            return JobStatus(status="failed", error="No API key")
        if not self.implements("_check_status"):
            return JobStatus(status="failed", error="Unknown provider")
        try:
            return self._check_status(job_id, api_key)
        except (ProviderError, httpx.HTTPError) + RESPONSE_SHAPE_ERRORS as e:
            logger.error(f"[{self.label}] Job status error: {e}")
            return JobStatus(status="failed", error=f"Status check failed: {e}")

    def validate_key(self, api_key: str) -> KeyValidationResult:
        """Check a key against the vendor."""
        try:
            return self._validate(api_key)
        except httpx.HTTPError as e:
            logger.error(f"[Provider] Validation error for {self.name}: {e}")
            return KeyValidationResult(valid=False, error="Connection failed")
        except RESPONSE_SHAPE_ERRORS as e:
            logger.error(f"[Provider] Unexpected validation response from {self.name}: {e!r}")
            return KeyValidationResult(valid=False, error="Unexpected response")

    # ------------------------------------------------------------------
    # Vendor hooks
    # ------------------------------------------------------------------

    def _generate_image(self, input: GenerationInput) -> GenerationResult:
        raise NotImplementedError

    def _generate_video(self, input: GenerationInput) -> GenerationResult:
        raise NotImplementedError

    def _generate_audio(self, input: GenerationInput) -> GenerationResult:
        raise NotImplementedError

    def _check_status(self, job_id: str, api_key: str) -> JobStatus:
        raise NotImplementedError

    def _validate(self, api_key: str) -> KeyValidationResult:
        if len(api_key) >= MIN_KEY_LENGTH:
            return KeyValidationResult(valid=True)
        return KeyValidationResult(valid=False, error="API key too short")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _ok(self, media_url: str) -> GenerationResult:
        return GenerationResult(
            success=True, media_url=media_url, status="completed", provider=self.name
        )

    def _job(self, job_id: str) -> GenerationResult:
        return GenerationResult(success=True, job_id=job_id, status="processing", provider=self.name)

    def _failed(self, error: str) -> GenerationResult:
        return GenerationResult(success=False, error=error, provider=self.name)

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        raise ProviderError(
            f"{self.label} API error: {response.status_code}",
            status_code=response.status_code,
            body=response.text,
        )

    def _post_json(
        self, url: str, payload: dict[str, Any], headers: dict[str, str] | None = None
    ) -> Any:
        response = self.client.post(url, json=payload, headers=headers or {})
        self._raise_for_status(response)
        return response.json()

    def _get_json(self, url: str, headers: dict[str, str] | None = None) -> Any:
        response = self.client.get(url, headers=headers or {})
        self._raise_for_status(response)
        return response.json()

    def _probe(self, url: str, headers: dict[str, str] | None = None) -> bool:
        """GET an account endpoint and report whether it answered 2xx."""
        response = self.client.get(url, headers=headers or {})
        return response.is_success


def to_data_url(content: bytes, mime_type: str) -> str:
    """Encode raw bytes as a base64 data URL."""
    return f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"
