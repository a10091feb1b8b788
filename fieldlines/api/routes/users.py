"""Current-user profile route handlers."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fieldlines.api.routes import domain_error
from fieldlines.api.auth_dependencies import get_current_user
from fieldlines.database.db import get_db_session
from fieldlines.models.schemas import ChangePasswordRequest, MessageResponse, UpdateProfileRequest, UserResponse
from fieldlines.services import auth_service, user_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/users/me", response_model=UserResponse)
async def get_me(current_user: dict = Depends(get_current_user)):
    return current_user


@router.put("/api/users/me", response_model=UserResponse)
async def update_me(
    payload: UpdateProfileRequest,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await user_service.update_profile(
            session,
            current_user["id"],
            full_name=payload.full_name,
            phone=payload.phone,
            organization=payload.organization,
        )
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "updating profile")


@router.post("/api/users/me/change-password", response_model=MessageResponse)
async def change_password(
    payload: ChangePasswordRequest,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        await auth_service.change_password(
            session, current_user["id"], payload.current_password, payload.new_password
        )
        return {"message": "Password changed successfully"}
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "changing password")
