"""Repository pattern for database operations.

Encapsulates all SQLAlchemy queries, keeping domain logic pure.
Returns domain models (not SQLAlchemy entities) to external callers.
Mutators flush but never commit; callers commit via ``commit()``.
"""

from __future__ import annotations

import dataclasses
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy.orm import Session

from reelboard.db.schema import (
    ApiSetting,
    AudioClip,
    AudioTrack,
    GenerationJob,
    LinkedSegment,
    Tile,
    TileLink,
    Timeline,
)
from reelboard.models.domain import (
    ApiSettingEntity,
    AudioClipEntity,
    AudioTrackEntity,
    GenerationJobEntity,
    LinkedSegmentEntity,
    TileEntity,
    TileLinkEntity,
    TimelineEntity,
)
from reelboard.providers.catalog import is_free

if TYPE_CHECKING:
    from sqlalchemy.orm import Session as DbSession
else:
    DbSession = Session

# Re-export for external use
__all__ = ["DbSession"]

E = TypeVar("E")


# ============================================================================
# Converters: SQLAlchemy -> Domain
# ============================================================================


def _as_utc(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo on read; stored values are always UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_entity(row: Any, entity_cls: type[E]) -> E:
    """Convert a SQLAlchemy row to the matching domain dataclass."""
    values = {}
    for f in dataclasses.fields(entity_cls):
        value = getattr(row, f.name)
        if isinstance(value, datetime):
            value = _as_utc(value)
        values[f.name] = value
    return entity_cls(**values)


def _apply(row: Any, updates: dict[str, Any]) -> None:
    """Merge supplied fields into a row. Unknown keys are ignored."""
    for key, value in updates.items():
        if key in ("id", "created_at"):
            continue
        if hasattr(row, key):
            setattr(row, key, value)


def _new_id() -> str:
    return str(uuid.uuid4())


# ============================================================================
# Timeline Repository
# ============================================================================


def list_timelines(session: DbSession) -> list[TimelineEntity]:
    """Get all timelines in creation order."""
    rows = session.query(Timeline).order_by(Timeline.created_at).all()
    return [_to_entity(r, TimelineEntity) for r in rows]


def get_timeline(session: DbSession, timeline_id: str) -> TimelineEntity | None:
    """Get timeline by ID."""
    row = session.get(Timeline, timeline_id)
    return _to_entity(row, TimelineEntity) if row else None


def create_timeline(session: DbSession, values: dict[str, Any]) -> TimelineEntity:
    """Create a timeline with a fresh ID."""
    row = Timeline(id=_new_id())
    _apply(row, values)
    session.add(row)
    session.flush()
    return _to_entity(row, TimelineEntity)


def update_timeline(
    session: DbSession, timeline_id: str, updates: dict[str, Any]
) -> TimelineEntity | None:
    """Merge updates into a timeline. Returns None if missing."""
    row = session.get(Timeline, timeline_id)
    if row is None:
        return None
    _apply(row, updates)
    session.flush()
    return _to_entity(row, TimelineEntity)


def delete_timeline(session: DbSession, timeline_id: str) -> bool:
    """Delete a timeline with its tiles, tile links and linked segments."""
    row = session.get(Timeline, timeline_id)
    if row is None:
        return False

    tile_ids = [t.id for t in session.query(Tile.id).filter(Tile.timeline_id == timeline_id)]
    if tile_ids:
        session.query(GenerationJob).filter(GenerationJob.tile_id.in_(tile_ids)).delete()
    session.query(Tile).filter(Tile.timeline_id == timeline_id).delete()
    session.query(TileLink).filter(TileLink.timeline_id == timeline_id).delete()
    session.query(LinkedSegment).filter(LinkedSegment.timeline_id == timeline_id).delete()
    session.delete(row)
    session.flush()
    _reindex_linked_segments(session)
    return True


# ============================================================================
# Tile Repository
# ============================================================================


def list_tiles(session: DbSession, timeline_id: str | None = None) -> list[TileEntity]:
    """Get all tiles, optionally restricted to one timeline."""
    query = session.query(Tile)
    if timeline_id is not None:
        query = query.filter(Tile.timeline_id == timeline_id)
    rows = query.order_by(Tile.created_at).all()
    return [_to_entity(r, TileEntity) for r in rows]


def get_tile(session: DbSession, tile_id: str) -> TileEntity | None:
    """Get tile by ID."""
    row = session.get(Tile, tile_id)
    return _to_entity(row, TileEntity) if row else None


def get_tile_at(
    session: DbSession, timeline_id: str, position: int, tile_type: str
) -> TileEntity | None:
    """Get the tile of a given type at a timeline position."""
    row = (
        session.query(Tile)
        .filter(
            Tile.timeline_id == timeline_id,
            Tile.position == position,
            Tile.type == tile_type,
        )
        .order_by(Tile.created_at)
        .first()
    )
    return _to_entity(row, TileEntity) if row else None


def create_tile(session: DbSession, values: dict[str, Any]) -> TileEntity:
    """Create a tile with a fresh ID."""
    row = Tile(id=_new_id())
    _apply(row, values)
    session.add(row)
    session.flush()
    return _to_entity(row, TileEntity)


def update_tile(session: DbSession, tile_id: str, updates: dict[str, Any]) -> TileEntity | None:
    """Merge updates into a tile. Returns None if missing."""
    row = session.get(Tile, tile_id)
    if row is None:
        return None
    _apply(row, updates)
    session.flush()
    return _to_entity(row, TileEntity)


def delete_tile(session: DbSession, tile_id: str) -> bool:
    """Delete a tile, its links, and any linked segment at its position."""
    row = session.get(Tile, tile_id)

    session.query(TileLink).filter(TileLink.tile_id == tile_id).delete()
    session.query(GenerationJob).filter(GenerationJob.tile_id == tile_id).delete()

    if row is None:
        session.flush()
        return False

    session.query(LinkedSegment).filter(
        LinkedSegment.timeline_id == row.timeline_id,
        LinkedSegment.position == row.position,
    ).delete()
    session.delete(row)
    session.flush()
    _reindex_linked_segments(session)
    return True


# ============================================================================
# Tile Link Repository
# ============================================================================


def list_tile_links(session: DbSession) -> list[TileLinkEntity]:
    """Get all tile links sorted by order."""
    rows = session.query(TileLink).order_by(TileLink.order, TileLink.created_at).all()
    return [_to_entity(r, TileLinkEntity) for r in rows]


def get_tile_link(session: DbSession, link_id: str) -> TileLinkEntity | None:
    """Get tile link by ID."""
    row = session.get(TileLink, link_id)
    return _to_entity(row, TileLinkEntity) if row else None


def create_tile_link(session: DbSession, values: dict[str, Any]) -> TileLinkEntity:
    """Create a tile link with a fresh ID."""
    row = TileLink(id=_new_id())
    _apply(row, values)
    session.add(row)
    session.flush()
    return _to_entity(row, TileLinkEntity)


def delete_tile_link(session: DbSession, link_id: str) -> bool:
    """Delete a tile link."""
    row = session.get(TileLink, link_id)
    if row is None:
        return False
    session.delete(row)
    session.flush()
    return True


def clear_tile_links(session: DbSession) -> None:
    """Delete every tile link."""
    session.query(TileLink).delete()
    session.flush()


# ============================================================================
# Linked Segment Repository
# ============================================================================


def _reindex_linked_segments(session: DbSession) -> None:
    """Renumber segment orders to 0..n-1, preserving relative order."""
    rows = session.query(LinkedSegment).order_by(LinkedSegment.order, LinkedSegment.created_at)
    for index, row in enumerate(rows.all()):
        if row.order != index:
            row.order = index
    session.flush()


def list_linked_segments(session: DbSession) -> list[LinkedSegmentEntity]:
    """Get all linked segments sorted by order."""
    rows = (
        session.query(LinkedSegment)
        .order_by(LinkedSegment.order, LinkedSegment.created_at)
        .all()
    )
    return [_to_entity(r, LinkedSegmentEntity) for r in rows]


def get_linked_segment(session: DbSession, segment_id: str) -> LinkedSegmentEntity | None:
    """Get linked segment by ID."""
    row = session.get(LinkedSegment, segment_id)
    return _to_entity(row, LinkedSegmentEntity) if row else None


def create_linked_segment(
    session: DbSession, timeline_id: str, position: int
) -> LinkedSegmentEntity:
    """Append a linked segment at the end of the render sequence."""
    last = session.query(LinkedSegment).order_by(LinkedSegment.order.desc()).first()
    next_order = last.order + 1 if last else 0

    row = LinkedSegment(
        id=_new_id(),
        timeline_id=timeline_id,
        position=position,
        order=next_order,
    )
    session.add(row)
    session.flush()
    return _to_entity(row, LinkedSegmentEntity)


def delete_linked_segment(session: DbSession, segment_id: str) -> bool:
    """Delete a linked segment and reindex."""
    row = session.get(LinkedSegment, segment_id)
    if row is None:
        return False
    session.delete(row)
    session.flush()
    _reindex_linked_segments(session)
    return True


def delete_linked_segment_at(session: DbSession, timeline_id: str, position: int) -> bool:
    """Delete the linked segment at a timeline position and reindex."""
    row = (
        session.query(LinkedSegment)
        .filter(
            LinkedSegment.timeline_id == timeline_id,
            LinkedSegment.position == position,
        )
        .first()
    )
    if row is None:
        return False
    session.delete(row)
    session.flush()
    _reindex_linked_segments(session)
    return True


def clear_linked_segments(session: DbSession) -> None:
    """Delete every linked segment."""
    session.query(LinkedSegment).delete()
    session.flush()


# ============================================================================
# Audio Repository
# ============================================================================


def list_audio_tracks(session: DbSession) -> list[AudioTrackEntity]:
    """Get all audio tracks in creation order."""
    rows = session.query(AudioTrack).order_by(AudioTrack.created_at).all()
    return [_to_entity(r, AudioTrackEntity) for r in rows]


def get_audio_track(session: DbSession, track_id: str) -> AudioTrackEntity | None:
    """Get audio track by ID."""
    row = session.get(AudioTrack, track_id)
    return _to_entity(row, AudioTrackEntity) if row else None


def create_audio_track(session: DbSession, values: dict[str, Any]) -> AudioTrackEntity:
    """Create an audio track with a fresh ID."""
    row = AudioTrack(id=_new_id())
    _apply(row, values)
    session.add(row)
    session.flush()
    return _to_entity(row, AudioTrackEntity)


def update_audio_track(
    session: DbSession, track_id: str, updates: dict[str, Any]
) -> AudioTrackEntity | None:
    """Merge updates into an audio track. Returns None if missing."""
    row = session.get(AudioTrack, track_id)
    if row is None:
        return None
    _apply(row, updates)
    session.flush()
    return _to_entity(row, AudioTrackEntity)


def delete_audio_track(session: DbSession, track_id: str) -> bool:
    """Delete an audio track. Its clips are left in place."""
    row = session.get(AudioTrack, track_id)
    if row is None:
        return False
    session.delete(row)
    session.flush()
    return True


def list_audio_clips(session: DbSession, track_id: str | None = None) -> list[AudioClipEntity]:
    """Get all audio clips, optionally restricted to one track."""
    query = session.query(AudioClip)
    if track_id is not None:
        query = query.filter(AudioClip.track_id == track_id)
    rows = query.order_by(AudioClip.created_at).all()
    return [_to_entity(r, AudioClipEntity) for r in rows]


def get_audio_clip(session: DbSession, clip_id: str) -> AudioClipEntity | None:
    """Get audio clip by ID."""
    row = session.get(AudioClip, clip_id)
    return _to_entity(row, AudioClipEntity) if row else None


def create_audio_clip(session: DbSession, values: dict[str, Any]) -> AudioClipEntity:
    """Create an audio clip with a fresh ID."""
    row = AudioClip(id=_new_id())
    _apply(row, values)
    session.add(row)
    session.flush()
    return _to_entity(row, AudioClipEntity)


def update_audio_clip(
    session: DbSession, clip_id: str, updates: dict[str, Any]
) -> AudioClipEntity | None:
    """Merge updates into an audio clip. Returns None if missing."""
    row = session.get(AudioClip, clip_id)
    if row is None:
        return None
    _apply(row, updates)
    session.flush()
    return _to_entity(row, AudioClipEntity)


def delete_audio_clip(session: DbSession, clip_id: str) -> bool:
    """Delete an audio clip."""
    row = session.get(AudioClip, clip_id)
    if row is None:
        return False
    session.delete(row)
    session.flush()
    return True


# ============================================================================
# API Setting Repository
# ============================================================================


def _clear_failure(row: ApiSetting) -> None:
    row.status = "active"
    row.last_error = None
    row.last_failure_at = None


def list_api_settings(session: DbSession) -> list[ApiSettingEntity]:
    """Get all provider credentials in creation order."""
    rows = session.query(ApiSetting).order_by(ApiSetting.created_at).all()
    return [_to_entity(r, ApiSettingEntity) for r in rows]


def get_api_setting(session: DbSession, setting_id: str) -> ApiSettingEntity | None:
    """Get provider credential by ID."""
    row = session.get(ApiSetting, setting_id)
    return _to_entity(row, ApiSettingEntity) if row else None


def create_api_setting(
    session: DbSession,
    provider: str,
    api_key: str = "",
    instance_name: str | None = None,
    priority: int = 0,
) -> ApiSettingEntity:
    """Add a credential instance for a provider.

    Without an explicit name, the first instance is named after the
    provider and later ones get a numeric suffix.
    """
    if not instance_name:
        existing = session.query(ApiSetting).filter(ApiSetting.provider == provider).count()
        instance_name = provider if existing == 0 else f"{provider} {existing + 1}"

    row = ApiSetting(
        id=_new_id(),
        provider=provider,
        instance_name=instance_name,
        api_key=api_key,
        is_connected=bool(api_key) or is_free(provider),
        status="active",
        priority=priority,
    )
    session.add(row)
    session.flush()
    return _to_entity(row, ApiSettingEntity)


def update_api_setting(
    session: DbSession, setting_id: str, updates: dict[str, Any]
) -> ApiSettingEntity | None:
    """Update name, key or priority. A new key resets failure state."""
    row = session.get(ApiSetting, setting_id)
    if row is None:
        return None
    if updates.get("instance_name"):
        row.instance_name = updates["instance_name"]
    if updates.get("priority") is not None:
        row.priority = updates["priority"]
    if "api_key" in updates and updates["api_key"] is not None:
        row.api_key = updates["api_key"]
        row.is_connected = bool(row.api_key) or is_free(row.provider)
        _clear_failure(row)
    session.flush()
    return _to_entity(row, ApiSettingEntity)


def set_api_setting_connected(session: DbSession, setting_id: str, connected: bool) -> None:
    """Record the outcome of a key validation."""
    row = session.get(ApiSetting, setting_id)
    if row:
        row.is_connected = connected
        session.flush()


def record_provider_success(session: DbSession, setting_id: str) -> None:
    """Reset an instance to active and clear failure metadata."""
    row = session.get(ApiSetting, setting_id)
    if row:
        _clear_failure(row)
        session.flush()


def record_provider_failure(
    session: DbSession,
    setting_id: str,
    status: str | None,
    error: str,
    failed_at: datetime,
) -> None:
    """Record a failed call. ``status=None`` keeps the current status."""
    row = session.get(ApiSetting, setting_id)
    if row:
        if status is not None:
            row.status = status
        row.last_error = error
        row.last_failure_at = failed_at
        session.flush()


def delete_api_setting(session: DbSession, setting_id: str) -> bool:
    """Delete a provider credential."""
    row = session.get(ApiSetting, setting_id)
    if row is None:
        return False
    session.delete(row)
    session.flush()
    return True


# ============================================================================
# Generation Job Repository
# ============================================================================


def get_generation_job(session: DbSession, tile_id: str) -> GenerationJobEntity | None:
    """Get the pending job for a tile."""
    row = session.get(GenerationJob, tile_id)
    return _to_entity(row, GenerationJobEntity) if row else None


def save_generation_job(session: DbSession, entity: GenerationJobEntity) -> GenerationJobEntity:
    """Store a pending job, replacing any previous job for the tile."""
    row = session.get(GenerationJob, entity.tile_id)
    if row is None:
        row = GenerationJob(tile_id=entity.tile_id)
        session.add(row)
    row.provider = entity.provider
    row.setting_id = entity.setting_id
    row.job_id = entity.job_id
    row.type = entity.type
    row.created_at = datetime.now(timezone.utc)
    session.flush()
    return _to_entity(row, GenerationJobEntity)


def delete_generation_job(session: DbSession, tile_id: str) -> None:
    """Drop the pending job for a tile."""
    session.query(GenerationJob).filter(GenerationJob.tile_id == tile_id).delete()
    session.flush()


# ============================================================================
# Batch Operations
# ============================================================================


def commit(session: DbSession) -> None:
    """Commit current transaction."""
    session.commit()
