"""Tile link and linked segment API endpoints.

GET    /api/tile-links                  - List tile links
POST   /api/tile-links                  - Create tile link
DELETE /api/tile-links                  - Delete all tile links
DELETE /api/tile-links/{id}             - Delete tile link
GET    /api/linked-segments             - List segments in render order
POST   /api/linked-segments             - Append segment
DELETE /api/linked-segments             - Delete all segments
DELETE /api/linked-segments/by-position - Delete segment at a tile position
GET    /api/linked-segments/{id}        - Get segment
DELETE /api/linked-segments/{id}        - Delete segment
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from reelboard.api.app import get_db_session
from reelboard.db import repo
from reelboard.db.repo import DbSession
from reelboard.models.types import (
    LinkedSegmentCreate,
    LinkedSegmentDetail,
    TileLinkCreate,
    TileLinkDetail,
)

router = APIRouter()


# ============================================================================
# Tile Links
# ============================================================================


@router.get("/tile-links", response_model=list[TileLinkDetail])
def list_tile_links(session: DbSession = Depends(get_db_session)) -> list[TileLinkDetail]:
    """List tile links sorted by order."""
    return [
        TileLinkDetail.model_validate(link, from_attributes=True)
        for link in repo.list_tile_links(session)
    ]


@router.post("/tile-links", response_model=TileLinkDetail, status_code=201)
def create_tile_link(
    body: TileLinkCreate,
    session: DbSession = Depends(get_db_session),
) -> TileLinkDetail:
    """Create a tile link."""
    link = repo.create_tile_link(session, body.model_dump())
    repo.commit(session)
    return TileLinkDetail.model_validate(link, from_attributes=True)


@router.delete("/tile-links", status_code=204)
def clear_tile_links(session: DbSession = Depends(get_db_session)) -> None:
    """Delete every tile link."""
    repo.clear_tile_links(session)
    repo.commit(session)


@router.delete("/tile-links/{link_id}", status_code=204)
def delete_tile_link(
    link_id: str,
    session: DbSession = Depends(get_db_session),
) -> None:
    """Delete a tile link.

    Raises:
        HTTPException: 404 if link not found.
    """
    if not repo.delete_tile_link(session, link_id):
        raise HTTPException(status_code=404, detail="Tile link not found")
    repo.commit(session)


# ============================================================================
# Linked Segments
# ============================================================================


@router.get("/linked-segments", response_model=list[LinkedSegmentDetail])
def list_linked_segments(
    session: DbSession = Depends(get_db_session),
) -> list[LinkedSegmentDetail]:
    """List linked segments in render order."""
    return [
        LinkedSegmentDetail.model_validate(s, from_attributes=True)
        for s in repo.list_linked_segments(session)
    ]


@router.post("/linked-segments", response_model=LinkedSegmentDetail, status_code=201)
def create_linked_segment(
    body: LinkedSegmentCreate,
    session: DbSession = Depends(get_db_session),
) -> LinkedSegmentDetail:
    """Append a segment to the render sequence.

    The submitted ``order`` is ignored; the segment always goes last.
    """
    segment = repo.create_linked_segment(session, body.timeline_id, body.position)
    repo.commit(session)
    return LinkedSegmentDetail.model_validate(segment, from_attributes=True)


@router.delete("/linked-segments", status_code=204)
def clear_linked_segments(session: DbSession = Depends(get_db_session)) -> None:
    """Delete every linked segment."""
    repo.clear_linked_segments(session)
    repo.commit(session)


@router.delete("/linked-segments/by-position", status_code=204)
def delete_linked_segment_at(
    timeline_id: str,
    position: int,
    session: DbSession = Depends(get_db_session),
) -> None:
    """Delete the segment at a timeline position.

    Raises:
        HTTPException: 404 if no segment sits there.
    """
    if not repo.delete_linked_segment_at(session, timeline_id, position):
        raise HTTPException(status_code=404, detail="Linked segment not found")
    repo.commit(session)


@router.get("/linked-segments/{segment_id}", response_model=LinkedSegmentDetail)
def get_linked_segment(
    segment_id: str,
    session: DbSession = Depends(get_db_session),
) -> LinkedSegmentDetail:
    """Get a linked segment.

    Raises:
        HTTPException: 404 if segment not found.
    """
    segment = repo.get_linked_segment(session, segment_id)
    if segment is None:
        raise HTTPException(status_code=404, detail="Linked segment not found")
    return LinkedSegmentDetail.model_validate(segment, from_attributes=True)


@router.delete("/linked-segments/{segment_id}", status_code=204)
def delete_linked_segment(
    segment_id: str,
    session: DbSession = Depends(get_db_session),
) -> None:
    """Delete a linked segment and renumber the rest.

    Raises:
        HTTPException: 404 if segment not found.
    """
    if not repo.delete_linked_segment(session, segment_id):
        raise HTTPException(status_code=404, detail="Linked segment not found")
    repo.commit(session)
