"""Authentication route handlers."""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fieldlines.api.routes import domain_error, limiter
from fieldlines.api.auth_dependencies import get_current_user
from fieldlines.database.db import get_db_session
from fieldlines.models.schemas import (
    AuthResponse,
    EmailRequest,
    InvitedRegisterRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    TokenRequest,
)
from fieldlines.services import auth_service, email_service, invitation_service, user_service
from fieldlines.services.errors import AccountLockedError, InvalidCredentialsError

logger = logging.getLogger(__name__)
router = APIRouter()

RESET_REQUESTED_MESSAGE = "If an account exists for this email, a password reset link has been sent."
VERIFICATION_RESENT_MESSAGE = "If an unverified account exists for this email, a verification link has been sent."


@router.post("/api/auth/register", response_model=Dict[str, Any], status_code=201)
@limiter.limit("5/minute")
async def register(request: Request, payload: RegisterRequest, session: AsyncSession = Depends(get_db_session)):
    """Create an account and email a verification link."""
    try:
        result = await auth_service.register_user(
            session,
            payload.email,
            payload.password,
            payload.full_name,
            phone=payload.phone,
            organization=payload.organization,
        )
        user = result["user"]
        await email_service.send_verification_email(
            user["email"], user["full_name"], result["verification_token"], session
        )
        return {
            "message": "Registration successful. Please check your email to verify your account.",
            "user": user,
        }
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "registering user")


@router.post("/api/auth/login", response_model=AuthResponse)
@limiter.limit("10/minute")
async def login(request: Request, payload: LoginRequest, session: AsyncSession = Depends(get_db_session)):
    """Login with email and password."""
    try:
        return await auth_service.authenticate_user(session, payload.email, payload.password)
    except AccountLockedError as e:
        raise HTTPException(status_code=423, detail=str(e))
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "logging in")


@router.post("/api/auth/verify-email", response_model=Dict[str, Any])
async def verify_email(payload: TokenRequest, session: AsyncSession = Depends(get_db_session)):
    try:
        user = await auth_service.verify_email(session, payload.token)
        return {"message": "Email verified successfully", "user": user}
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "verifying email")


@router.post("/api/auth/resend-verification", response_model=MessageResponse)
@limiter.limit("5/minute")
async def resend_verification(
    request: Request, payload: EmailRequest, session: AsyncSession = Depends(get_db_session)
):
    """Answers the same whether or not the account exists."""
    try:
        email = auth_service.normalize_email(payload.email)
        user = await user_service.get_user_by_email(session, email)
        if user and not user.email_verified:
            issued = await auth_service.issue_verification_token(session, user.id)
            await email_service.send_verification_email(issued["email"], user.full_name, issued["token"], session)
        return {"message": VERIFICATION_RESENT_MESSAGE}
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "resending verification")


@router.post("/api/auth/forgot-password", response_model=MessageResponse)
@limiter.limit("5/minute")
async def forgot_password(request: Request, payload: EmailRequest, session: AsyncSession = Depends(get_db_session)):
    """Always 200 so the response does not reveal which emails are registered."""
    try:
        issued = await auth_service.issue_reset_token(session, payload.email)
        if issued:
            await email_service.send_password_reset_email(
                issued["email"], issued["full_name"], issued["token"], session
            )
        return {"message": RESET_REQUESTED_MESSAGE}
    except Exception as e:
        logger.error(f"Error during forgot-password: {e}", exc_info=True)
        return {"message": RESET_REQUESTED_MESSAGE}


@router.post("/api/auth/reset-password", response_model=MessageResponse)
@limiter.limit("10/minute")
async def reset_password(
    request: Request, payload: ResetPasswordRequest, session: AsyncSession = Depends(get_db_session)
):
    try:
        await auth_service.reset_password(session, payload.token, payload.new_password)
        return {"message": "Password reset successfully"}
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "resetting password")


@router.post("/api/auth/logout", response_model=MessageResponse)
async def logout(current_user: dict = Depends(get_current_user)):
    """Tokens are stateless; the client discards its copy."""
    logger.info(f"User {current_user['id']} logged out")
    return {"message": "Logged out successfully"}


# ---------------------------------------------------------------------------
# Invitation registration
# ---------------------------------------------------------------------------


@router.get("/api/auth/admin/validate-invitation", response_model=Dict[str, Any])
async def validate_admin_invitation(token: str = "", session: AsyncSession = Depends(get_db_session)):
    try:
        return await invitation_service.validate_invitation(session, invitation_service.ADMIN, token)
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "validating invitation")


@router.post("/api/auth/admin/register", response_model=AuthResponse, status_code=201)
@limiter.limit("5/minute")
async def register_admin(
    request: Request, payload: InvitedRegisterRequest, session: AsyncSession = Depends(get_db_session)
):
    try:
        return await invitation_service.accept_invitation(
            session,
            invitation_service.ADMIN,
            payload.token,
            payload.password,
            payload.full_name,
            phone=payload.phone,
            organization=payload.organization,
        )
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "registering admin")


@router.get("/api/auth/validate-invitation", response_model=Dict[str, Any])
async def validate_user_invitation(token: str = "", session: AsyncSession = Depends(get_db_session)):
    try:
        return await invitation_service.validate_invitation(session, invitation_service.USER, token)
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "validating invitation")


@router.post("/api/auth/register-invited", response_model=AuthResponse, status_code=201)
@limiter.limit("5/minute")
async def register_invited(
    request: Request, payload: InvitedRegisterRequest, session: AsyncSession = Depends(get_db_session)
):
    try:
        return await invitation_service.accept_invitation(
            session,
            invitation_service.USER,
            payload.token,
            payload.password,
            payload.full_name,
            phone=payload.phone,
            organization=payload.organization,
        )
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "registering invited user")
