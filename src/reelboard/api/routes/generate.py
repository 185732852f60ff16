"""Generation API endpoints.

POST /api/generate/image             - Generate an image for a tile
POST /api/generate/video             - Generate a video for a tile
POST /api/generate/audio             - Generate audio for a clip
GET  /api/generate/status/{tile_id}  - Poll a tile's pending vendor job

Every request runs through the provider fallback chain. Exhausting it is
not an HTTP error: the body carries ``success: false`` and the last error.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from reelboard.api.app import get_db_session, get_registry
from reelboard.db.repo import DbSession
from reelboard.generation.fallback import (
    GenerationOrchestrator,
    generate_for_clip,
    generate_for_tile,
)
from reelboard.generation.jobs import resolve_job
from reelboard.models.types import (
    AudioGenerateRequest,
    GenerateRequest,
    GenerationResult,
    JobStatusDetail,
)
from reelboard.providers.registry import ProviderRegistry

router = APIRouter()


def get_orchestrator(
    session: DbSession = Depends(get_db_session),
    registry: ProviderRegistry = Depends(get_registry),
) -> GenerationOrchestrator:
    """Dependency to get an orchestrator bound to the request's session."""
    return GenerationOrchestrator(session, registry)


@router.post("/generate/image", response_model=GenerationResult)
def generate_image(
    body: GenerateRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> GenerationResult:
    """Generate an image for a tile."""
    return generate_for_tile(
        orchestrator,
        "image",
        body.prompt,
        body.tile_id,
        requested=body.provider,
        reference_image_url=body.reference_image_url,
    )


@router.post("/generate/video", response_model=GenerationResult)
def generate_video(
    body: GenerateRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> GenerationResult:
    """Generate a video for a tile, optionally from a reference image."""
    return generate_for_tile(
        orchestrator,
        "video",
        body.prompt,
        body.tile_id,
        requested=body.provider,
        reference_image_url=body.reference_image_url,
    )


@router.post("/generate/audio", response_model=GenerationResult)
def generate_audio(
    body: AudioGenerateRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> GenerationResult:
    """Generate voice, music or sound effects for a clip."""
    return generate_for_clip(
        orchestrator,
        body.prompt,
        body.clip_id,
        body.type,
        requested=body.provider,
    )


@router.get("/generate/status/{tile_id}", response_model=JobStatusDetail)
def get_generation_status(
    tile_id: str,
    session: DbSession = Depends(get_db_session),
    registry: ProviderRegistry = Depends(get_registry),
) -> JobStatusDetail:
    """Poll the vendor for a tile's pending job.

    Raises:
        HTTPException: 404 if the tile has no pending job.
    """
    status = resolve_job(session, registry, tile_id)
    if status is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return status
