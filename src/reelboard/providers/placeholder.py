"""Placeholder provider.

Last-resort fallback that needs no key and never fails. Images and videos
get a deterministic stock still seeded from the target ID; audio gets no
URL at all. Nothing is called over the network.
"""

from __future__ import annotations

import hashlib

from reelboard.models.types import GenerationInput, GenerationResult, KeyValidationResult
from reelboard.providers.base import ProviderBase
from reelboard.providers.catalog import PLACEHOLDER_PROVIDER, GenerationKind

PLACEHOLDER_IMAGE_BASE = "https://picsum.photos/seed"
PLACEHOLDER_SIZE = "800/450"


class PlaceholderProvider(ProviderBase):
    """Provider that returns a stand-in result for every kind.

    The same target always maps to the same image, so regenerating a tile
    through the placeholder is idempotent.
    """

    name = PLACEHOLDER_PROVIDER
    label = "Placeholder"
    requires_key = False

    def supports(self, kind: GenerationKind) -> bool:
        return True

    def _compute_seed(self, input: GenerationInput) -> str:
        """Compute deterministic seed from the target ID (or the prompt)."""
        hash_input = input.target_id or f"{input.kind}:{input.prompt}"
        return hashlib.sha256(hash_input.encode()).hexdigest()[:16]

    def _placeholder_url(self, input: GenerationInput) -> str:
        return f"{PLACEHOLDER_IMAGE_BASE}/{self._compute_seed(input)}/{PLACEHOLDER_SIZE}"

    def _generate_image(self, input: GenerationInput) -> GenerationResult:
        result = self._ok(self._placeholder_url(input))
        result.message = "Image generated with placeholder"
        return result

    def _generate_video(self, input: GenerationInput) -> GenerationResult:
        result = self._ok(self._placeholder_url(input))
        result.message = "Video generated with placeholder (showing image)"
        return result

    def _generate_audio(self, input: GenerationInput) -> GenerationResult:
        return GenerationResult(
            success=True,
            status="completed",
            provider=self.name,
            message="Audio generated with placeholder (no audio URL)",
        )

    def _validate(self, api_key: str) -> KeyValidationResult:
        return KeyValidationResult(valid=True)
