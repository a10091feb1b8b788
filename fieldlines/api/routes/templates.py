"""Field template route handlers (read-only for users)."""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fieldlines.api.routes import domain_error
from fieldlines.api.auth_dependencies import get_current_user
from fieldlines.database.db import get_db_session
from fieldlines.services import template_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/templates", response_model=List[Dict[str, Any]])
async def list_templates(
    current_user: dict = Depends(get_current_user), session: AsyncSession = Depends(get_db_session)
):
    try:
        return await template_service.list_active_templates(session)
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "listing templates")


@router.get("/api/templates/{template_id}", response_model=Dict[str, Any])
async def get_template(
    template_id: int,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await template_service.get_template(session, template_id)
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "getting template")
