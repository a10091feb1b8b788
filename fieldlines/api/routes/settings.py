"""System settings and maintenance status route handlers."""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fieldlines.api.routes import domain_error
from fieldlines.api.auth_dependencies import require_admin
from fieldlines.database.db import get_db_session
from fieldlines.models.schemas import SettingUpdate
from fieldlines.services import settings_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/maintenance/status", response_model=Dict[str, Any])
async def maintenance_status(session: AsyncSession = Depends(get_db_session)):
    """Public: lets the client show the maintenance banner."""
    try:
        return await settings_service.get_maintenance_status(session)
    except Exception as e:
        raise domain_error(e, "checking maintenance status")


@router.get("/api/admin/settings", response_model=List[Dict[str, Any]])
async def list_settings(admin: dict = Depends(require_admin), session: AsyncSession = Depends(get_db_session)):
    try:
        return await settings_service.list_settings(session)
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "listing settings")


@router.get("/api/admin/settings/{key}", response_model=Dict[str, Any])
async def get_setting(key: str, admin: dict = Depends(require_admin), session: AsyncSession = Depends(get_db_session)):
    try:
        return await settings_service.get_setting_detail(session, key)
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "getting setting")


@router.put("/api/admin/settings/{key}", response_model=Dict[str, Any])
async def update_setting(
    key: str,
    payload: SettingUpdate,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await settings_service.set_setting(session, key, payload.value, updated_by=admin["id"])
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "updating setting")
