"""Field configuration route handlers (owner scoped)."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fieldlines.api.routes import domain_error
from fieldlines.api.auth_dependencies import get_current_user
from fieldlines.database.db import get_db_session
from fieldlines.models.schemas import ConfigurationCreate, ConfigurationUpdate
from fieldlines.services import configuration_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/configurations", response_model=List[Dict[str, Any]])
async def list_configurations(
    sportsground_id: Optional[int] = None,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await configuration_service.list_configurations(
            session, current_user["id"], sportsground_id=sportsground_id
        )
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "listing configurations")


@router.post("/api/configurations", response_model=Dict[str, Any], status_code=201)
async def create_configuration(
    payload: ConfigurationCreate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await configuration_service.create_configuration(
            session, current_user["id"], **payload.model_dump()
        )
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "creating configuration")


@router.get("/api/configurations/{configuration_id}", response_model=Dict[str, Any])
async def get_configuration(
    configuration_id: int,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await configuration_service.get_configuration(session, configuration_id, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "getting configuration")


@router.put("/api/configurations/{configuration_id}", response_model=Dict[str, Any])
async def update_configuration(
    configuration_id: int,
    payload: ConfigurationUpdate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await configuration_service.update_configuration(
            session, configuration_id, payload.model_dump(exclude_unset=True), current_user["id"]
        )
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "updating configuration")


@router.delete("/api/configurations/{configuration_id}", response_model=Dict[str, Any])
async def delete_configuration(
    configuration_id: int,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        await configuration_service.delete_configuration(session, configuration_id, current_user["id"])
        return {"message": "Configuration deleted"}
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "deleting configuration")


@router.post("/api/configurations/{configuration_id}/duplicate", response_model=Dict[str, Any], status_code=201)
async def duplicate_configuration(
    configuration_id: int,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await configuration_service.duplicate_configuration(session, configuration_id, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "duplicating configuration")


@router.get("/api/configurations/{configuration_id}/layout", response_model=Dict[str, Any])
async def get_configuration_layout(
    configuration_id: int,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Outline and markings of a saved configuration in lat/lng."""
    try:
        return await configuration_service.get_configuration_layout(
            session, configuration_id, current_user["id"]
        )
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "rendering configuration layout")
