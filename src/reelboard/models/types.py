"""Pydantic models for the Reelboard API.

Request bodies (``*Create`` / ``*Update``) and response payloads
(``*Detail``). Update models carry only optional fields; routes apply
``model_dump(exclude_unset=True)`` so PATCH merges what was sent.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from reelboard.providers.catalog import KNOWN_PROVIDERS

TileType = Literal["image", "video"]
AudioType = Literal["voice", "music", "sfx"]
ProviderStatus = Literal["active", "temporarily_blocked", "depleted"]
JobState = Literal["pending", "processing", "completed", "failed"]


# ============================================================================
# Timelines
# ============================================================================


class TimelineCreate(BaseModel):
    """Timeline creation body."""

    name: str = "Main Timeline"
    parent_id: str | None = None
    order: int = 0
    is_collapsed: bool = False
    height: float | None = None


class TimelineUpdate(BaseModel):
    """Timeline patch body."""

    name: str | None = None
    parent_id: str | None = None
    order: int | None = None
    is_collapsed: bool | None = None
    height: float | None = None


class TimelineDetail(TimelineCreate):
    """Timeline as returned by the API."""

    id: str


# ============================================================================
# Tiles
# ============================================================================


class TileCreate(BaseModel):
    """Tile creation body."""

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


class TileUpdate(BaseModel):
    """Tile patch body."""

    type: TileType | None = None
    timeline_id: str | None = None
    position: int | None = None
    prompt: str | None = None
    provider: str | None = None
    model: str | None = None
    media_url: str | None = None
    selected_frame: int | None = None
    is_generating: bool | None = None
    duration: float | None = None


class TileDetail(TileCreate):
    """Tile as returned by the API."""

    id: str


# ============================================================================
# Links and Segments
# ============================================================================


class TileLinkCreate(BaseModel):
    """Tile link creation body."""

    tile_id: str
    timeline_id: str
    order: int


class TileLinkDetail(TileLinkCreate):
    """Tile link as returned by the API."""

    id: str


class LinkedSegmentCreate(BaseModel):
    """Linked segment creation body. ``order`` is assigned by the server."""

    timeline_id: str
    position: int
    order: int = 0


class LinkedSegmentDetail(BaseModel):
    """Linked segment as returned by the API."""

    id: str
    timeline_id: str
    position: int
    order: int


# ============================================================================
# Audio
# ============================================================================


class AudioTrackCreate(BaseModel):
    """Audio track creation body."""

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


class AudioTrackUpdate(BaseModel):
    """Audio track patch body."""

    name: str | None = None
    type: AudioType | None = None
    audio_url: str | None = None
    start_time: float | None = None
    duration: float | None = None
    volume: float | None = None
    is_muted: bool | None = None
    is_solo: bool | None = None
    fade_in: float | None = None
    fade_out: float | None = None


class AudioTrackDetail(AudioTrackCreate):
    """Audio track as returned by the API."""

    id: str


class AudioClipCreate(BaseModel):
    """Audio clip creation body."""

    track_id: str
    name: str
    start_time: float
    duration: float
    audio_url: str | None = None
    trim_start: float = 0.0
    trim_end: float = 0.0
    prompt: str | None = None
    provider: str | None = None


class AudioClipUpdate(BaseModel):
    """Audio clip patch body."""

    track_id: str | None = None
    name: str | None = None
    start_time: float | None = None
    duration: float | None = None
    audio_url: str | None = None
    trim_start: float | None = None
    trim_end: float | None = None
    prompt: str | None = None
    provider: str | None = None


class AudioClipDetail(AudioClipCreate):
    """Audio clip as returned by the API."""

    id: str


# ============================================================================
# API Settings
# ============================================================================


class ApiSettingCreate(BaseModel):
    """Provider credential creation body."""

    provider: str
    instance_name: str | None = None
    api_key: str = ""
    priority: int = 0

    @field_validator("provider")
    @classmethod
    def _known_provider(cls, value: str) -> str:
        if value not in KNOWN_PROVIDERS:
            raise ValueError(f"Unknown provider: {value}")
        return value


class ApiSettingUpdate(BaseModel):
    """Provider credential patch body."""

    instance_name: str | None = None
    api_key: str | None = None
    priority: int | None = None


class ApiSettingDetail(BaseModel):
    """Provider credential as returned by the API (key masked)."""

    id: str
    provider: str
    instance_name: str
    api_key: str
    is_connected: bool
    status: ProviderStatus
    priority: int
    last_error: str | None
    last_failure_at: datetime | None
    retry_after: datetime | None


class KeyValidationResult(BaseModel):
    """Result of checking a key against the vendor."""

    valid: bool
    error: str | None = None


class ProviderInfo(BaseModel):
    """Catalogue entry for one provider."""

    name: str
    categories: list[Literal["image", "video", "audio"]]
    is_free: bool
    has_adapter: bool


# ============================================================================
# Generation
# ============================================================================


class GenerateRequest(BaseModel):
    """Image/video generation request for a tile."""

    prompt: str
    tile_id: str
    provider: str | None = None
    reference_image_url: str | None = None


class AudioGenerateRequest(BaseModel):
    """Audio generation request for a clip."""

    prompt: str
    clip_id: str
    type: AudioType
    provider: str | None = None


class GenerationInput(BaseModel):
    """Input handed to a provider adapter."""

    kind: Literal["image", "video", "audio"]
    prompt: str
    api_key: str = ""
    target_id: str = ""
    reference_image_url: str | None = None
    audio_type: AudioType | None = None


class GenerationResult(BaseModel):
    """Outcome of one generation call or of the whole fallback loop."""

    success: bool
    media_url: str | None = None
    job_id: str | None = None
    status: Literal["completed", "processing"] | None = None
    error: str | None = None
    provider: str | None = None
    setting_id: str | None = None
    message: str | None = None
    attempts: list[str] = Field(default_factory=list)


class JobStatus(BaseModel):
    """Vendor job state mapped to Reelboard states."""

    status: JobState
    media_url: str | None = None
    error: str | None = None
    progress: float | None = None


class JobStatusDetail(JobStatus):
    """Job status as returned by the polling endpoint."""

    tile_id: str
    provider: str
    type: TileType


# ============================================================================
# Export
# ============================================================================


class ExportRequest(BaseModel):
    """Export selection."""

    timeline_ids: list[str]
    include_audio: bool = True
    start_tile_id: str | None = None
    end_tile_id: str | None = None


class SequenceEntry(BaseModel):
    """One linked segment resolved to its tiles."""

    order: int
    timeline_id: str
    position: int
    image_tile_id: str | None
    image_url: str | None
    video_tile_id: str | None
    video_url: str | None
    duration: float | None


class ExportResult(BaseModel):
    """Export response. No file is rendered; ``export_url`` stays null."""

    success: bool
    export_url: str | None = None
    message: str
    sequence: list[SequenceEntry]
    audio_tracks: list[AudioTrackDetail]
