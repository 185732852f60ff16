"""Asynchronous job resolution.

Vendors that answer with a job ID are polled through here. Terminal states
write back to the tile and drop the stored job.
"""

from __future__ import annotations

import logging

from reelboard.db import repo
from reelboard.db.repo import DbSession
from reelboard.models.types import JobStatus, JobStatusDetail
from reelboard.providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)


def resolve_job(
    session: DbSession, registry: ProviderRegistry, tile_id: str
) -> JobStatusDetail | None:
    """Poll the vendor for a tile's pending job.

    Args:
        session: Database session.
        registry: Provider adapters.
        tile_id: Tile whose job to check.

    Returns:
        JobStatusDetail, or None if the tile has no pending job.
    """
    job = repo.get_generation_job(session, tile_id)
    if job is None:
        return None

    provider = registry.get(job.provider)
    setting = repo.get_api_setting(session, job.setting_id) if job.setting_id else None

    if provider is None:
        status = JobStatus(status="failed", error="Unknown provider")
    elif job.setting_id and setting is None:
        status = JobStatus(status="failed", error="Provider setting was removed")
    else:
        status = provider.check_job_status(job.job_id, setting.api_key if setting else "")

    if status.status == "completed":
        logger.info(f"[Job] {job.provider} job {job.job_id} completed for tile {tile_id}")
        repo.update_tile(
            session, tile_id, {"media_url": status.media_url, "is_generating": False}
        )
        repo.delete_generation_job(session, tile_id)
        repo.commit(session)
    elif status.status == "failed":
        logger.warning(f"[Job] {job.provider} job {job.job_id} failed: {status.error}")
        repo.update_tile(session, tile_id, {"is_generating": False})
        repo.delete_generation_job(session, tile_id)
        repo.commit(session)

    return JobStatusDetail(
        **status.model_dump(),
        tile_id=tile_id,
        provider=job.provider,
        type=job.type,
    )
