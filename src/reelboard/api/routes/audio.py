"""Audio tracks and clips API endpoints.

GET|POST         /api/audio-tracks
GET|PATCH|DELETE /api/audio-tracks/{id}
GET|POST         /api/audio-clips?track_id=
GET|PATCH|DELETE /api/audio-clips/{id}
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from reelboard.api.app import get_db_session
from reelboard.db import repo
from reelboard.db.repo import DbSession
from reelboard.models.types import (
    AudioClipCreate,
    AudioClipDetail,
    AudioClipUpdate,
    AudioTrackCreate,
    AudioTrackDetail,
    AudioTrackUpdate,
)

router = APIRouter()


# ============================================================================
# Audio Tracks
# ============================================================================


@router.get("/audio-tracks", response_model=list[AudioTrackDetail])
def list_audio_tracks(session: DbSession = Depends(get_db_session)) -> list[AudioTrackDetail]:
    """List audio tracks."""
    return [
        AudioTrackDetail.model_validate(t, from_attributes=True)
        for t in repo.list_audio_tracks(session)
    ]


@router.get("/audio-tracks/{track_id}", response_model=AudioTrackDetail)
def get_audio_track(
    track_id: str,
    session: DbSession = Depends(get_db_session),
) -> AudioTrackDetail:
    """Get an audio track.

    Raises:
        HTTPException: 404 if track not found.
    """
    track = repo.get_audio_track(session, track_id)
    if track is None:
        raise HTTPException(status_code=404, detail="Audio track not found")
    return AudioTrackDetail.model_validate(track, from_attributes=True)


@router.post("/audio-tracks", response_model=AudioTrackDetail, status_code=201)
def create_audio_track(
    body: AudioTrackCreate,
    session: DbSession = Depends(get_db_session),
) -> AudioTrackDetail:
    """Create an audio track."""
    track = repo.create_audio_track(session, body.model_dump())
    repo.commit(session)
    return AudioTrackDetail.model_validate(track, from_attributes=True)


@router.patch("/audio-tracks/{track_id}", response_model=AudioTrackDetail)
def update_audio_track(
    track_id: str,
    body: AudioTrackUpdate,
    session: DbSession = Depends(get_db_session),
) -> AudioTrackDetail:
    """Merge the supplied fields into an audio track.

    Raises:
        HTTPException: 404 if track not found.
    """
    track = repo.update_audio_track(session, track_id, body.model_dump(exclude_unset=True))
    if track is None:
        raise HTTPException(status_code=404, detail="Audio track not found")
    repo.commit(session)
    return AudioTrackDetail.model_validate(track, from_attributes=True)


@router.delete("/audio-tracks/{track_id}", status_code=204)
def delete_audio_track(
    track_id: str,
    session: DbSession = Depends(get_db_session),
) -> None:
    """Delete an audio track. Clips on it are kept.

    Raises:
        HTTPException: 404 if track not found.
    """
    if not repo.delete_audio_track(session, track_id):
        raise HTTPException(status_code=404, detail="Audio track not found")
    repo.commit(session)


# ============================================================================
# Audio Clips
# ============================================================================


@router.get("/audio-clips", response_model=list[AudioClipDetail])
def list_audio_clips(
    track_id: str | None = None,
    session: DbSession = Depends(get_db_session),
) -> list[AudioClipDetail]:
    """List audio clips, optionally for one track."""
    return [
        AudioClipDetail.model_validate(c, from_attributes=True)
        for c in repo.list_audio_clips(session, track_id)
    ]


@router.get("/audio-clips/{clip_id}", response_model=AudioClipDetail)
def get_audio_clip(
    clip_id: str,
    session: DbSession = Depends(get_db_session),
) -> AudioClipDetail:
    """Get an audio clip.

    Raises:
        HTTPException: 404 if clip not found.
    """
    clip = repo.get_audio_clip(session, clip_id)
    if clip is None:
        raise HTTPException(status_code=404, detail="Audio clip not found")
    return AudioClipDetail.model_validate(clip, from_attributes=True)


@router.post("/audio-clips", response_model=AudioClipDetail, status_code=201)
def create_audio_clip(
    body: AudioClipCreate,
    session: DbSession = Depends(get_db_session),
) -> AudioClipDetail:
    """Create an audio clip."""
    clip = repo.create_audio_clip(session, body.model_dump())
    repo.commit(session)
    return AudioClipDetail.model_validate(clip, from_attributes=True)


@router.patch("/audio-clips/{clip_id}", response_model=AudioClipDetail)
def update_audio_clip(
    clip_id: str,
    body: AudioClipUpdate,
    session: DbSession = Depends(get_db_session),
) -> AudioClipDetail:
    """Merge the supplied fields into an audio clip.

    Raises:
        HTTPException: 404 if clip not found.
    """
    clip = repo.update_audio_clip(session, clip_id, body.model_dump(exclude_unset=True))
    if clip is None:
        raise HTTPException(status_code=404, detail="Audio clip not found")
    repo.commit(session)
    return AudioClipDetail.model_validate(clip, from_attributes=True)


@router.delete("/audio-clips/{clip_id}", status_code=204)
def delete_audio_clip(
    clip_id: str,
    session: DbSession = Depends(get_db_session),
) -> None:
    """Delete an audio clip.

    Raises:
        HTTPException: 404 if clip not found.
    """
    if not repo.delete_audio_clip(session, clip_id):
        raise HTTPException(status_code=404, detail="Audio clip not found")
    repo.commit(session)
