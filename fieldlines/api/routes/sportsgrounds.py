"""Sportsground route handlers (owner scoped)."""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fieldlines.api.routes import domain_error
from fieldlines.api.auth_dependencies import get_current_user
from fieldlines.database.db import get_db_session
from fieldlines.models.schemas import SportsgroundCreate, SportsgroundUpdate
from fieldlines.services import sportsground_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/sportsgrounds", response_model=List[Dict[str, Any]])
async def list_sportsgrounds(
    current_user: dict = Depends(get_current_user), session: AsyncSession = Depends(get_db_session)
):
    try:
        return await sportsground_service.list_sportsgrounds(session, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "listing sportsgrounds")


@router.post("/api/sportsgrounds", response_model=Dict[str, Any], status_code=201)
async def create_sportsground(
    payload: SportsgroundCreate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await sportsground_service.create_sportsground(
            session, current_user["id"], **payload.model_dump()
        )
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "creating sportsground")


@router.get("/api/sportsgrounds/{sportsground_id}", response_model=Dict[str, Any])
async def get_sportsground(
    sportsground_id: int,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await sportsground_service.get_sportsground(session, sportsground_id, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "getting sportsground")


@router.put("/api/sportsgrounds/{sportsground_id}", response_model=Dict[str, Any])
async def update_sportsground(
    sportsground_id: int,
    payload: SportsgroundUpdate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await sportsground_service.update_sportsground(
            session, sportsground_id, payload.model_dump(exclude_unset=True), current_user["id"]
        )
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "updating sportsground")


@router.delete("/api/sportsgrounds/{sportsground_id}", response_model=Dict[str, Any])
async def delete_sportsground(
    sportsground_id: int,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        await sportsground_service.delete_sportsground(session, sportsground_id, current_user["id"])
        return {"message": "Sportsground deleted"}
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "deleting sportsground")
