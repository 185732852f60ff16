"""Domain models for Reelboard.

Pure Python dataclasses representing domain entities.
These models are independent of SQLAlchemy and used throughout
the application for clean separation from the database layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

# ============================================================================
# Timeline Domain
# ============================================================================

TileType = Literal["image", "video"]


@dataclass
class TimelineEntity:
    """Domain model for a timeline row."""

    id: str
    name: str = "Main Timeline"
    parent_id: str | None = None
    order: int = 0
    is_collapsed: bool = False
    height: float | None = None


@dataclass
class TileEntity:
    """Domain model for an image or video slot on a timeline."""

    id: str
    type: TileType
    timeline_id: str
    position: int
    prompt: str = ""
    provider: str | None = None
    model: str | None = None
    media_url: str | None = None
    selected_frame: int = 0
    is_generating: bool = False
    duration: float | None = None


@dataclass
class TileLinkEntity:
    """Domain model for a tile linked across timelines."""

    id: str
    tile_id: str
    timeline_id: str
    order: int


@dataclass
class LinkedSegmentEntity:
    """Domain model for a tile position included in the render sequence."""

    id: str
    timeline_id: str
    position: int
    order: int


# ============================================================================
# Audio Domain
# ============================================================================

AudioType = Literal["voice", "music", "sfx"]


@dataclass
class AudioTrackEntity:
    """Domain model for an audio track."""

    id: str
    name: str
    type: AudioType
    audio_url: str | None = None
    start_time: float = 0.0
    duration: float = 0.0
    volume: float = 1.0
    is_muted: bool = False
    is_solo: bool = False
    fade_in: float = 0.0
    fade_out: float = 0.0


@dataclass
class AudioClipEntity:
    """Domain model for a clip placed on an audio track."""

    id: str
    track_id: str
    name: str
    start_time: float
    duration: float
    audio_url: str | None = None
    trim_start: float = 0.0
    trim_end: float = 0.0
    prompt: str | None = None
    provider: str | None = None


# ============================================================================
# Provider Settings Domain
# ============================================================================

ProviderStatus = Literal["active", "temporarily_blocked", "depleted"]


@dataclass
class ApiSettingEntity:
    """Domain model for one configured provider credential.

    Several instances of the same provider may exist (e.g. two Replicate
    accounts); each tracks its own failure state.
    """

    id: str
    provider: str
    instance_name: str
    api_key: str = ""
    is_connected: bool = False
    status: ProviderStatus = "active"
    priority: int = 0
    last_error: str | None = None
    last_failure_at: datetime | None = None
    created_at: datetime | None = None


# ============================================================================
# Generation Job Domain
# ============================================================================


@dataclass
class GenerationJobEntity:
    """Domain model for an asynchronous vendor job attached to a tile."""

    tile_id: str
    provider: str
    job_id: str
    type: TileType
    setting_id: str | None = None
    created_at: datetime | None = None
