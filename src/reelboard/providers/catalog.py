"""Provider catalogue.

Which vendors exist, what they generate, and which need no API key.
"""

from __future__ import annotations

from typing import Literal

GenerationKind = Literal["image", "video", "audio"]

IMAGE_PROVIDERS = (
    "huggingface",
    "replicate",
    "pollinations",
    "openai",
    "gemini",
    "stability",
    "flux",
    "ideogram",
    "hunyuan",
    "firefly",
    "bria",
    "runware",
    "dalle3",
)
VIDEO_PROVIDERS = (
    "runway",
    "veo",
    "kling",
    "pika",
    "luma",
    "tavus",
    "mootion",
    "akool",
    "mirage",
    "pictory",
    "replicate",
)
AUDIO_PROVIDERS = ("elevenlabs",)

# Providers callable without a key
FREE_PROVIDERS = ("pollinations", "placeholder")

# Last-resort candidate appended to every candidate list
FALLBACK_PROVIDER: dict[str, str] = {
    "image": "pollinations",
    "video": "placeholder",
    "audio": "placeholder",
}

PLACEHOLDER_PROVIDER = "placeholder"

KNOWN_PROVIDERS = tuple(dict.fromkeys(IMAGE_PROVIDERS + VIDEO_PROVIDERS + AUDIO_PROVIDERS))


def providers_for(kind: GenerationKind) -> tuple[str, ...]:
    """Return provider names that can generate the given kind."""
    if kind == "image":
        return IMAGE_PROVIDERS
    if kind == "video":
        return VIDEO_PROVIDERS
    return AUDIO_PROVIDERS


def categories_of(provider: str) -> list[GenerationKind]:
    """Return every kind a provider can generate."""
    kinds: list[GenerationKind] = []
    if provider in IMAGE_PROVIDERS:
        kinds.append("image")
    if provider in VIDEO_PROVIDERS:
        kinds.append("video")
    if provider in AUDIO_PROVIDERS:
        kinds.append("audio")
    return kinds


def is_free(provider: str) -> bool:
    """Whether the provider works without an API key."""
    return provider in FREE_PROVIDERS
