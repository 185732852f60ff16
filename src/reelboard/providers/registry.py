"""Provider registry.

Maps catalogue names to adapter instances sharing one HTTP client.
Catalogue providers without an adapter resolve to a stub whose every
generation call fails with "not yet available", so the fallback loop moves
on to the next candidate.
"""

from __future__ import annotations

import httpx

from reelboard.providers.audio import ElevenLabsProvider
from reelboard.providers.base import ProviderBase
from reelboard.providers.catalog import KNOWN_PROVIDERS, PLACEHOLDER_PROVIDER
from reelboard.providers.image import (
    GeminiProvider,
    HuggingFaceProvider,
    IdeogramProvider,
    OpenAIProvider,
    PollinationsProvider,
    ReplicateProvider,
    StabilityProvider,
)
from reelboard.providers.placeholder import PlaceholderProvider
from reelboard.providers.video import KlingProvider, LumaProvider, RunwayProvider, VeoProvider

ADAPTERS: dict[str, type[ProviderBase]] = {
    "stability": StabilityProvider,
    "openai": OpenAIProvider,
    "dalle3": OpenAIProvider,
    "gemini": GeminiProvider,
    "replicate": ReplicateProvider,
    "flux": ReplicateProvider,
    "ideogram": IdeogramProvider,
    "pollinations": PollinationsProvider,
    "huggingface": HuggingFaceProvider,
    "runway": RunwayProvider,
    "luma": LumaProvider,
    "veo": VeoProvider,
    "kling": KlingProvider,
    "elevenlabs": ElevenLabsProvider,
    PLACEHOLDER_PROVIDER: PlaceholderProvider,
}


class UnavailableProvider(ProviderBase):
    """Catalogue entry with no integration yet."""


class ProviderRegistry:
    """Lookup of provider adapters by catalogue name."""

    def __init__(self, client: httpx.Client):
        self.client = client
        self._cache: dict[str, ProviderBase] = {}

    def get(self, name: str) -> ProviderBase | None:
        """Return the adapter for a provider, or None if unknown."""
        if name in self._cache:
            return self._cache[name]
        if name in ADAPTERS:
            provider = ADAPTERS[name](self.client, name=name)
        elif name in KNOWN_PROVIDERS:
            provider = UnavailableProvider(self.client, name=name)
        else:
            return None
        self._cache[name] = provider
        return provider


def has_adapter(name: str) -> bool:
    """Whether a provider has a real integration."""
    return name in ADAPTERS
