"""Provider fallback orchestration.

Architecture:
- build_candidates: pure ordering of configured instances for one request
- GenerationOrchestrator: tries candidates in order, records status
  transitions, stops at the first success
- generate_for_tile: tile bookkeeping around the orchestrator
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from reelboard.db import repo
from reelboard.db.repo import DbSession
from reelboard.generation.status import classify_failure, is_retriable
from reelboard.models.domain import ApiSettingEntity, GenerationJobEntity
from reelboard.models.types import AudioType, GenerationInput, GenerationResult
from reelboard.providers.catalog import (
    FALLBACK_PROVIDER,
    GenerationKind,
    is_free,
    providers_for,
)
from reelboard.providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Candidate:
    """One provider instance to try.

    ``setting`` is None for keyless candidates that have no stored
    credential (the free fallback, or a requested provider never configured).
    """

    provider: str
    setting: ApiSettingEntity | None = None

    @property
    def setting_id(self) -> str | None:
        return self.setting.id if self.setting else None

    @property
    def api_key(self) -> str:
        return self.setting.api_key if self.setting else ""

    @property
    def identity(self) -> tuple[str, str | None]:
        return (self.provider, self.setting_id)


def _sort_key(setting: ApiSettingEntity) -> tuple[bool, int]:
    # Active first, then ascending priority; ties keep creation order
    return (setting.status != "active", setting.priority)


def build_candidates(
    settings: list[ApiSettingEntity],
    kind: GenerationKind,
    now: datetime,
    requested: str | None = None,
) -> list[Candidate]:
    """Order provider instances for a generation request.

    Args:
        settings: All stored credentials, in creation order.
        kind: What is being generated.
        now: Current time for cooldown checks.
        requested: Optional setting ID or provider name to try first.

    Returns:
        Candidates in the order they should be tried.
    """
    category = providers_for(kind)

    eligible = [
        s
        for s in settings
        if s.provider in category
        and (s.api_key or is_free(s.provider))
        and is_retriable(s, now)
    ]
    candidates = [Candidate(s.provider, s) for s in sorted(eligible, key=_sort_key)]

    # Explicit request goes first regardless of status or cooldown
    if requested:
        by_id = [s for s in settings if s.id == requested]
        if by_id:
            front = [Candidate(by_id[0].provider, by_id[0])]
        else:
            named = sorted((s for s in settings if s.provider == requested), key=_sort_key)
            front = [Candidate(s.provider, s) for s in named] or [Candidate(requested)]
        candidates = front + candidates

    fallback = FALLBACK_PROVIDER[kind]
    if not any(c.provider == fallback for c in candidates):
        candidates.append(Candidate(fallback))

    seen: set[tuple[str, str | None]] = set()
    ordered: list[Candidate] = []
    for candidate in candidates:
        if candidate.identity in seen:
            continue
        seen.add(candidate.identity)
        ordered.append(candidate)
    return ordered


class GenerationOrchestrator:
    """Runs a generation request through the candidate list.

    Candidates are tried sequentially. A success resets the instance to
    active; a failure records the error and, when the error text says so,
    moves the instance to temporarily_blocked or depleted.
    """

    def __init__(
        self,
        session: DbSession,
        registry: ProviderRegistry,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize orchestrator.

        Args:
            session: Database session for settings and status records.
            registry: Provider adapters.
            clock: Source of the current time.
        """
        self.session = session
        self.registry = registry
        self.clock = clock

    def generate(
        self,
        kind: GenerationKind,
        prompt: str,
        target_id: str = "",
        requested: str | None = None,
        reference_image_url: str | None = None,
        audio_type: AudioType | None = None,
    ) -> GenerationResult:
        """Try candidates until one succeeds.

        Returns:
            The first successful result, or a failed result carrying the
            last error once every candidate has been tried.
        """
        candidates = build_candidates(
            repo.list_api_settings(self.session), kind, self.clock(), requested
        )
        logger.info(
            f"[Generate {kind}] {len(candidates)} candidates: "
            f"{', '.join(c.provider for c in candidates)}"
        )

        attempts: list[str] = []
        last_error: str | None = None

        for candidate in candidates:
            provider = self.registry.get(candidate.provider)
            if provider is None or not provider.supports(kind):
                last_error = f"{candidate.provider} cannot generate {kind}"
                logger.info(f"[Generate {kind}] Skipping {candidate.provider}: {last_error}")
                continue

            attempts.append(candidate.provider)
            result = provider.generate(
                GenerationInput(
                    kind=kind,
                    prompt=prompt,
                    api_key=candidate.api_key,
                    target_id=target_id,
                    reference_image_url=reference_image_url,
                    audio_type=audio_type,
                )
            )

            if result.success:
                self._record_success(candidate)
                result.provider = candidate.provider
                result.setting_id = candidate.setting_id
                result.attempts = attempts
                logger.info(f"[Generate {kind}] Succeeded with {candidate.provider}")
                return result

            last_error = result.error
            self._record_failure(candidate, result.error or "Unknown error")

        return GenerationResult(
            success=False,
            error=last_error or f"No {kind} providers available",
            attempts=attempts,
        )

    def _record_success(self, candidate: Candidate) -> None:
        if candidate.setting is None:
            return
        repo.record_provider_success(self.session, candidate.setting.id)
        repo.commit(self.session)

    def _record_failure(self, candidate: Candidate, error: str) -> None:
        classification = classify_failure(error)
        logger.warning(
            f"[Generate] {candidate.provider} failed: {error}"
            + (f" -> {classification.status}" if classification.status else "")
        )
        if candidate.setting is None:
            return
        repo.record_provider_failure(
            self.session,
            candidate.setting.id,
            status=classification.status,
            error=error,
            failed_at=self.clock(),
        )
        repo.commit(self.session)


def generate_for_tile(
    orchestrator: GenerationOrchestrator,
    kind: GenerationKind,
    prompt: str,
    tile_id: str,
    requested: str | None = None,
    reference_image_url: str | None = None,
) -> GenerationResult:
    """Generate media for a tile and record the outcome on it.

    A synchronous result writes the media URL to the tile. An asynchronous
    one stores a pending job for the status endpoint to poll. Any job left
    from an earlier request is dropped first.
    """
    session = orchestrator.session
    tile = repo.get_tile(session, tile_id)
    if tile is None:
        logger.warning(f"[Generate {kind}] Tile {tile_id} not found; result not stored")
    else:
        repo.delete_generation_job(session, tile_id)
        repo.update_tile(session, tile_id, {"is_generating": True})
        repo.commit(session)

    try:
        result = orchestrator.generate(
            kind,
            prompt,
            target_id=tile_id,
            requested=requested,
            reference_image_url=reference_image_url,
        )
    except Exception:
        if tile is not None:
            session.rollback()
            repo.update_tile(session, tile_id, {"is_generating": False})
            repo.commit(session)
        raise

    if tile is None:
        return result

    if result.success and result.job_id:
        repo.save_generation_job(
            session,
            GenerationJobEntity(
                tile_id=tile_id,
                provider=result.provider or "",
                job_id=result.job_id,
                type="video" if kind == "video" else "image",
                setting_id=result.setting_id,
            ),
        )
        repo.update_tile(session, tile_id, {"is_generating": True, "provider": result.provider})
        result.message = f"{kind.capitalize()} is being generated with {result.provider}"
    elif result.success:
        repo.update_tile(
            session,
            tile_id,
            {"is_generating": False, "media_url": result.media_url, "provider": result.provider},
        )
        if result.message is None:
            result.message = f"{kind.capitalize()} generated with {result.provider}"
    else:
        repo.update_tile(session, tile_id, {"is_generating": False})

    repo.commit(session)
    return result


def generate_for_clip(
    orchestrator: GenerationOrchestrator,
    prompt: str,
    clip_id: str,
    audio_type: AudioType,
    requested: str | None = None,
) -> GenerationResult:
    """Generate audio for a clip and store the URL and prompt on it."""
    session = orchestrator.session
    result = orchestrator.generate(
        "audio",
        prompt,
        target_id=clip_id,
        requested=requested,
        audio_type=audio_type,
    )

    if not result.success:
        return result

    clip = repo.update_audio_clip(
        session,
        clip_id,
        {"audio_url": result.media_url, "prompt": prompt, "provider": result.provider},
    )
    if clip is None:
        logger.warning(f"[Generate audio] Clip {clip_id} not found; result not stored")
    repo.commit(session)

    if result.message is None:
        result.message = f"Audio generated with {result.provider}"
    return result
