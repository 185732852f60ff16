"""Timelines API endpoints.

GET    /api/timelines       - List timelines
POST   /api/timelines       - Create timeline
GET    /api/timelines/{id}  - Get timeline
PATCH  /api/timelines/{id}  - Update timeline
DELETE /api/timelines/{id}  - Delete timeline with its tiles and segments
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from reelboard.api.app import get_db_session
from reelboard.db import repo
from reelboard.db.repo import DbSession
from reelboard.models.domain import TimelineEntity
from reelboard.models.types import TimelineCreate, TimelineDetail, TimelineUpdate

router = APIRouter()


def _to_detail(timeline: TimelineEntity) -> TimelineDetail:
    return TimelineDetail.model_validate(timeline, from_attributes=True)


@router.get("/timelines", response_model=list[TimelineDetail])
def list_timelines(session: DbSession = Depends(get_db_session)) -> list[TimelineDetail]:
    """List all timelines."""
    return [_to_detail(t) for t in repo.list_timelines(session)]


@router.get("/timelines/{timeline_id}", response_model=TimelineDetail)
def get_timeline(
    timeline_id: str,
    session: DbSession = Depends(get_db_session),
) -> TimelineDetail:
    """Get a timeline.

    Raises:
        HTTPException: 404 if timeline not found.
    """
    timeline = repo.get_timeline(session, timeline_id)
    if timeline is None:
        raise HTTPException(status_code=404, detail="Timeline not found")
    return _to_detail(timeline)


@router.post("/timelines", response_model=TimelineDetail, status_code=201)
def create_timeline(
    body: TimelineCreate,
    session: DbSession = Depends(get_db_session),
) -> TimelineDetail:
    """Create a timeline."""
    timeline = repo.create_timeline(session, body.model_dump())
    repo.commit(session)
    return _to_detail(timeline)


@router.patch("/timelines/{timeline_id}", response_model=TimelineDetail)
def update_timeline(
    timeline_id: str,
    body: TimelineUpdate,
    session: DbSession = Depends(get_db_session),
) -> TimelineDetail:
    """Merge the supplied fields into a timeline.

    Raises:
        HTTPException: 404 if timeline not found.
    """
    timeline = repo.update_timeline(session, timeline_id, body.model_dump(exclude_unset=True))
    if timeline is None:
        raise HTTPException(status_code=404, detail="Timeline not found")
    repo.commit(session)
    return _to_detail(timeline)


@router.delete("/timelines/{timeline_id}", status_code=204)
def delete_timeline(
    timeline_id: str,
    session: DbSession = Depends(get_db_session),
) -> None:
    """Delete a timeline, cascading to its tiles, tile links and segments.

    Raises:
        HTTPException: 404 if timeline not found.
    """
    if not repo.delete_timeline(session, timeline_id):
        raise HTTPException(status_code=404, detail="Timeline not found")
    repo.commit(session)
