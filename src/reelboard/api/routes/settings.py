"""Provider settings API endpoints.

GET    /api/settings                - List credentials (keys masked)
POST   /api/settings                - Add a credential instance
PATCH  /api/settings/{id}           - Rename, re-key or reprioritize
DELETE /api/settings/{id}           - Remove a credential instance
POST   /api/settings/{id}/validate  - Check the key against the vendor
GET    /api/providers               - Provider catalogue
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from reelboard.api.app import get_db_session, get_registry
from reelboard.db import repo
from reelboard.db.repo import DbSession
from reelboard.generation.status import retry_after
from reelboard.models.domain import ApiSettingEntity
from reelboard.models.types import (
    ApiSettingCreate,
    ApiSettingDetail,
    ApiSettingUpdate,
    KeyValidationResult,
    ProviderInfo,
)
from reelboard.providers.catalog import KNOWN_PROVIDERS, categories_of, is_free
from reelboard.providers.registry import ProviderRegistry, has_adapter

logger = logging.getLogger(__name__)

router = APIRouter()

MASKED_KEY = "••••••••"


def _to_detail(setting: ApiSettingEntity) -> ApiSettingDetail:
    """Build the API view of a credential. The key is never returned."""
    return ApiSettingDetail(
        id=setting.id,
        provider=setting.provider,
        instance_name=setting.instance_name,
        api_key=MASKED_KEY if setting.api_key else "",
        is_connected=setting.is_connected,
        status=setting.status,
        priority=setting.priority,
        last_error=setting.last_error,
        last_failure_at=setting.last_failure_at,
        retry_after=retry_after(setting),
    )


@router.get("/settings", response_model=list[ApiSettingDetail])
def list_settings(session: DbSession = Depends(get_db_session)) -> list[ApiSettingDetail]:
    """List provider credentials with masked keys."""
    return [_to_detail(s) for s in repo.list_api_settings(session)]


@router.post("/settings", response_model=ApiSettingDetail, status_code=201)
def create_setting(
    body: ApiSettingCreate,
    session: DbSession = Depends(get_db_session),
) -> ApiSettingDetail:
    """Add a credential instance for a provider."""
    setting = repo.create_api_setting(
        session,
        provider=body.provider,
        api_key=body.api_key,
        instance_name=body.instance_name,
        priority=body.priority,
    )
    repo.commit(session)
    logger.info(f"[Settings] Added {setting.instance_name} ({setting.provider})")
    return _to_detail(setting)


@router.patch("/settings/{setting_id}", response_model=ApiSettingDetail)
def update_setting(
    setting_id: str,
    body: ApiSettingUpdate,
    session: DbSession = Depends(get_db_session),
) -> ApiSettingDetail:
    """Update a credential. Supplying a key resets its failure state.

    Raises:
        HTTPException: 404 if setting not found.
    """
    setting = repo.update_api_setting(session, setting_id, body.model_dump(exclude_unset=True))
    if setting is None:
        raise HTTPException(status_code=404, detail="Setting not found")
    repo.commit(session)
    return _to_detail(setting)


@router.delete("/settings/{setting_id}", status_code=204)
def delete_setting(
    setting_id: str,
    session: DbSession = Depends(get_db_session),
) -> None:
    """Remove a credential instance.

    Raises:
        HTTPException: 404 if setting not found.
    """
    if not repo.delete_api_setting(session, setting_id):
        raise HTTPException(status_code=404, detail="Setting not found")
    repo.commit(session)


@router.post("/settings/{setting_id}/validate", response_model=KeyValidationResult)
def validate_setting(
    setting_id: str,
    session: DbSession = Depends(get_db_session),
    registry: ProviderRegistry = Depends(get_registry),
) -> KeyValidationResult:
    """Check a stored key against the vendor and record the outcome.

    Raises:
        HTTPException: 404 if setting not found.
    """
    setting = repo.get_api_setting(session, setting_id)
    if setting is None:
        raise HTTPException(status_code=404, detail="Setting not found")

    provider = registry.get(setting.provider)
    if provider is None:
        result = KeyValidationResult(valid=False, error="Unknown provider")
    elif provider.requires_key and not setting.api_key:
        result = KeyValidationResult(valid=False, error="No API key configured")
    else:
        result = provider.validate_key(setting.api_key)

    repo.set_api_setting_connected(session, setting_id, result.valid)
    repo.commit(session)
    logger.info(f"[Settings] Validated {setting.instance_name}: valid={result.valid}")
    return result


@router.get("/providers", response_model=list[ProviderInfo])
def list_providers() -> list[ProviderInfo]:
    """List every known provider with what it can generate."""
    return [
        ProviderInfo(
            name=name,
            categories=categories_of(name),
            is_free=is_free(name),
            has_adapter=has_adapter(name),
        )
        for name in KNOWN_PROVIDERS
    ]
