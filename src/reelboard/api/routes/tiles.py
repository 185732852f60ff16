"""Tiles API endpoints.

GET    /api/tiles?timeline_id=  - List tiles, optionally for one timeline
POST   /api/tiles               - Create tile
GET    /api/tiles/{id}          - Get tile
PATCH  /api/tiles/{id}          - Update tile
DELETE /api/tiles/{id}          - Delete tile with its links and segment
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from reelboard.api.app import get_db_session
from reelboard.db import repo
from reelboard.db.repo import DbSession
from reelboard.models.domain import TileEntity
from reelboard.models.types import TileCreate, TileDetail, TileUpdate

router = APIRouter()


def _to_detail(tile: TileEntity) -> TileDetail:
    return TileDetail.model_validate(tile, from_attributes=True)


@router.get("/tiles", response_model=list[TileDetail])
def list_tiles(
    timeline_id: str | None = None,
    session: DbSession = Depends(get_db_session),
) -> list[TileDetail]:
    """List tiles, optionally restricted to one timeline."""
    return [_to_detail(t) for t in repo.list_tiles(session, timeline_id)]


@router.get("/tiles/{tile_id}", response_model=TileDetail)
def get_tile(
    tile_id: str,
    session: DbSession = Depends(get_db_session),
) -> TileDetail:
    """Get a tile.

    Raises:
        HTTPException: 404 if tile not found.
    """
    tile = repo.get_tile(session, tile_id)
    if tile is None:
        raise HTTPException(status_code=404, detail="Tile not found")
    return _to_detail(tile)


@router.post("/tiles", response_model=TileDetail, status_code=201)
def create_tile(
    body: TileCreate,
    session: DbSession = Depends(get_db_session),
) -> TileDetail:
    """Create a tile."""
    tile = repo.create_tile(session, body.model_dump())
    repo.commit(session)
    return _to_detail(tile)


@router.patch("/tiles/{tile_id}", response_model=TileDetail)
def update_tile(
    tile_id: str,
    body: TileUpdate,
    session: DbSession = Depends(get_db_session),
) -> TileDetail:
    """Merge the supplied fields into a tile.

    Raises:
        HTTPException: 404 if tile not found.
    """
    tile = repo.update_tile(session, tile_id, body.model_dump(exclude_unset=True))
    if tile is None:
        raise HTTPException(status_code=404, detail="Tile not found")
    repo.commit(session)
    return _to_detail(tile)


@router.delete("/tiles/{tile_id}", status_code=204)
def delete_tile(
    tile_id: str,
    session: DbSession = Depends(get_db_session),
) -> None:
    """Delete a tile.

    Raises:
        HTTPException: 404 if tile not found.
    """
    deleted = repo.delete_tile(session, tile_id)
    repo.commit(session)
    if not deleted:
        raise HTTPException(status_code=404, detail="Tile not found")
