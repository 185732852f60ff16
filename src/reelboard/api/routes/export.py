"""Export API endpoint.

POST /api/export - Assemble the render sequence for selected timelines
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from reelboard.aggregation.sequence import build_export
from reelboard.api.app import get_db_session
from reelboard.db.repo import DbSession
from reelboard.models.types import ExportRequest, ExportResult

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/export", response_model=ExportResult)
def export_timelines(
    body: ExportRequest,
    session: DbSession = Depends(get_db_session),
) -> ExportResult:
    """Export the selected timelines.

    No video file is rendered. The response lists the ordered segments
    with their resolved tiles, plus audio tracks when requested.

    Args:
        body: Timeline selection and options.
        session: Database session (injected).

    Returns:
        ExportResult with ``export_url`` null.
    """
    result = build_export(session, body)
    logger.info(f"[Export] {len(result.sequence)} segments, {len(result.audio_tracks)} audio tracks")
    return result
