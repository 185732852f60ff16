"""Render sequence assembly.

Linked segments name (timeline, position) pairs in render order. Each is
resolved to the image and video tiles at that position; trimming by start
and end tile is done on the resolved sequence.
"""

from __future__ import annotations

from reelboard.db import repo
from reelboard.db.repo import DbSession
from reelboard.models.domain import LinkedSegmentEntity
from reelboard.models.types import AudioTrackDetail, ExportRequest, ExportResult, SequenceEntry


def build_sequence(session: DbSession, timeline_ids: list[str]) -> list[SequenceEntry]:
    """Resolve linked segments of the selected timelines to tiles.

    Args:
        session: Database session.
        timeline_ids: Timelines to include. Empty selects none.

    Returns:
        Sequence entries in segment order.
    """
    selected = set(timeline_ids)
    segments = [s for s in repo.list_linked_segments(session) if s.timeline_id in selected]
    return [_resolve_segment(session, s) for s in segments]


def _resolve_segment(session: DbSession, segment: LinkedSegmentEntity) -> SequenceEntry:
    image = repo.get_tile_at(session, segment.timeline_id, segment.position, "image")
    video = repo.get_tile_at(session, segment.timeline_id, segment.position, "video")

    duration = None
    if video and video.duration is not None:
        duration = video.duration
    elif image and image.duration is not None:
        duration = image.duration

    return SequenceEntry(
        order=segment.order,
        timeline_id=segment.timeline_id,
        position=segment.position,
        image_tile_id=image.id if image else None,
        image_url=image.media_url if image else None,
        video_tile_id=video.id if video else None,
        video_url=video.media_url if video else None,
        duration=duration,
    )


def _index_of(sequence: list[SequenceEntry], tile_id: str) -> int | None:
    for index, entry in enumerate(sequence):
        if tile_id in (entry.image_tile_id, entry.video_tile_id):
            return index
    return None


def trim_sequence(
    sequence: list[SequenceEntry],
    start_tile_id: str | None = None,
    end_tile_id: str | None = None,
) -> list[SequenceEntry]:
    """Cut the sequence to the inclusive range between two tiles.

    Pure function. A bound whose tile is not in the sequence is ignored.
    """
    start = _index_of(sequence, start_tile_id) if start_tile_id else None
    end = _index_of(sequence, end_tile_id) if end_tile_id else None

    lo = start if start is not None else 0
    hi = end if end is not None else len(sequence) - 1
    if lo > hi:
        lo, hi = hi, lo
    return sequence[lo : hi + 1]


def build_export(session: DbSession, request: ExportRequest) -> ExportResult:
    """Assemble the export payload.

    No file is rendered; the result lists what a renderer would consume.
    """
    sequence = trim_sequence(
        build_sequence(session, request.timeline_ids),
        request.start_tile_id,
        request.end_tile_id,
    )

    audio_tracks: list[AudioTrackDetail] = []
    if request.include_audio:
        audio_tracks = [
            AudioTrackDetail.model_validate(t, from_attributes=True)
            for t in repo.list_audio_tracks(session)
        ]

    return ExportResult(
        success=True,
        export_url=None,
        message=(
            f"Export prepared with {len(sequence)} segments "
            f"from {len(request.timeline_ids)} timelines. Video rendering is not available."
        ),
        sequence=sequence,
        audio_tracks=audio_tracks,
    )
