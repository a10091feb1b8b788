"""Admin route handlers (admin or super admin)."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fieldlines.api.routes import domain_error
from fieldlines.api.auth_dependencies import require_admin, require_super_admin
from fieldlines.database.db import get_db_session
from fieldlines.models.schemas import (
    AdminBookingCreate,
    AdminBookingUpdate,
    AdminConfigurationCreate,
    AdminConfigurationUpdate,
    AdminSportsgroundCreate,
    AdminSportsgroundUpdate,
    BookingStatusUpdate,
    InvitationCreate,
    RoleUpdate,
    SuspendRequest,
    TemplateCreate,
    TemplateUpdate,
)
from fieldlines.services import (
    admin_service,
    booking_service,
    configuration_service,
    email_service,
    invitation_service,
    sportsground_service,
    template_service,
    user_service,
)
from fieldlines.utils.constants import DEFAULT_PAGE_SIZE

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/admin/stats", response_model=Dict[str, Any])
async def get_stats(admin: dict = Depends(require_admin), session: AsyncSession = Depends(get_db_session)):
    try:
        return await admin_service.get_stats(session)
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "getting stats")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@router.get("/api/admin/users", response_model=Dict[str, Any])
async def list_users(
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    search: Optional[str] = None,
    role: Optional[str] = None,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await admin_service.list_users(session, page=page, limit=limit, search=search, role=role)
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "listing users")


@router.get("/api/admin/users/simple", response_model=List[Dict[str, Any]])
async def list_users_simple(admin: dict = Depends(require_admin), session: AsyncSession = Depends(get_db_session)):
    try:
        return await admin_service.list_users_simple(session)
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "listing users")


@router.get("/api/admin/users/{user_id}", response_model=Dict[str, Any])
async def get_user(user_id: int, admin: dict = Depends(require_admin), session: AsyncSession = Depends(get_db_session)):
    try:
        return await admin_service.get_user_detail(session, user_id)
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "getting user")


@router.put("/api/admin/users/{user_id}/role", response_model=Dict[str, Any])
async def update_user_role(
    user_id: int,
    payload: RoleUpdate,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await admin_service.update_user_role(session, admin, user_id, payload.role)
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "updating user role")


@router.put("/api/admin/users/{user_id}/suspend", response_model=Dict[str, Any])
async def suspend_user(
    user_id: int,
    payload: SuspendRequest,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await admin_service.set_user_suspended(session, admin, user_id, payload.suspended)
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "suspending user")


@router.post("/api/admin/users/{user_id}/reset-password", response_model=Dict[str, Any])
async def reset_user_password(
    user_id: int, admin: dict = Depends(require_admin), session: AsyncSession = Depends(get_db_session)
):
    """Email the user a password reset link."""
    try:
        issued = await admin_service.reset_user_password(session, admin, user_id)
        sent = await email_service.send_password_reset_email(
            issued["email"], issued["full_name"], issued["token"], session
        )
        return {"message": "Password reset email sent", "email_sent": sent}
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "resetting user password")


@router.post("/api/admin/users/{user_id}/resend-verification", response_model=Dict[str, Any])
async def resend_user_verification(
    user_id: int, admin: dict = Depends(require_admin), session: AsyncSession = Depends(get_db_session)
):
    try:
        issued = await admin_service.resend_verification(session, user_id)
        sent = await email_service.send_verification_email(
            issued["email"], issued["full_name"], issued["token"], session
        )
        return {"message": "Verification email sent", "email_sent": sent}
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "resending verification")


@router.delete("/api/admin/users/{user_id}", response_model=Dict[str, Any])
async def delete_user(
    user_id: int, admin: dict = Depends(require_admin), session: AsyncSession = Depends(get_db_session)
):
    try:
        await admin_service.delete_user(session, admin, user_id)
        return {"message": "User deleted"}
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "deleting user")


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------


@router.get("/api/admin/bookings", response_model=Dict[str, Any])
async def list_bookings(
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await booking_service.admin_list_bookings(
            session, status=status, search=search, page=page, limit=limit
        )
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "listing bookings")


@router.get("/api/admin/bookings/calendar", response_model=List[Dict[str, Any]])
async def booking_calendar(
    start_date: str,
    end_date: str,
    status: Optional[str] = None,
    sportsground_id: Optional[int] = None,
    configuration_id: Optional[int] = None,
    user_id: Optional[int] = None,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Bookings in a date range; ``status`` is a comma-separated list."""
    try:
        statuses = [s.strip() for s in status.split(",") if s.strip()] if status else None
        return await booking_service.admin_calendar(
            session,
            start_date,
            end_date,
            statuses=statuses,
            sportsground_id=sportsground_id,
            configuration_id=configuration_id,
            user_id=user_id,
        )
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "loading booking calendar")


@router.post("/api/admin/bookings", response_model=Dict[str, Any], status_code=201)
async def create_booking(
    payload: AdminBookingCreate,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        await user_service.get_user_model(session, payload.user_id)
        return await booking_service.create_booking(session, admin=True, **payload.model_dump())
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "creating booking")


@router.get("/api/admin/bookings/{booking_id}", response_model=Dict[str, Any])
async def get_booking(
    booking_id: int, admin: dict = Depends(require_admin), session: AsyncSession = Depends(get_db_session)
):
    try:
        return await booking_service.get_booking(session, booking_id)
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "getting booking")


@router.put("/api/admin/bookings/{booking_id}/status", response_model=Dict[str, Any])
async def update_booking_status(
    booking_id: int,
    payload: BookingStatusUpdate,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Move a booking along the status table and email the customer."""
    try:
        result = await booking_service.admin_update_status(session, booking_id, payload.status)
        booking = result["booking"]
        if result["changed"] and booking["user"]:
            await email_service.send_booking_status_email(booking["user"], booking, result["old_status"], session)
        return booking
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "updating booking status")


@router.put("/api/admin/bookings/{booking_id}", response_model=Dict[str, Any])
async def update_booking(
    booking_id: int,
    payload: AdminBookingUpdate,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await booking_service.update_booking(session, booking_id, payload.model_dump(exclude_unset=True))
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "updating booking")


# ---------------------------------------------------------------------------
# Sportsgrounds
# ---------------------------------------------------------------------------


@router.get("/api/admin/sportsgrounds", response_model=List[Dict[str, Any]])
async def list_sportsgrounds(
    user_id: Optional[int] = None,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await sportsground_service.list_sportsgrounds(session, user_id)
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "listing sportsgrounds")


@router.get("/api/admin/sportsgrounds/{sportsground_id}", response_model=Dict[str, Any])
async def get_sportsground(
    sportsground_id: int, admin: dict = Depends(require_admin), session: AsyncSession = Depends(get_db_session)
):
    try:
        return await sportsground_service.get_sportsground(session, sportsground_id)
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "getting sportsground")


@router.post("/api/admin/sportsgrounds", response_model=Dict[str, Any], status_code=201)
async def create_sportsground(
    payload: AdminSportsgroundCreate,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        await user_service.get_user_model(session, payload.user_id)
        return await sportsground_service.create_sportsground(session, **payload.model_dump())
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "creating sportsground")


@router.put("/api/admin/sportsgrounds/{sportsground_id}", response_model=Dict[str, Any])
async def update_sportsground(
    sportsground_id: int,
    payload: AdminSportsgroundUpdate,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Changing user_id transfers the sportsground and all of its configurations."""
    try:
        return await sportsground_service.update_sportsground(
            session, sportsground_id, payload.model_dump(exclude_unset=True)
        )
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "updating sportsground")


@router.delete("/api/admin/sportsgrounds/{sportsground_id}", response_model=Dict[str, Any])
async def delete_sportsground(
    sportsground_id: int, admin: dict = Depends(require_admin), session: AsyncSession = Depends(get_db_session)
):
    try:
        await sportsground_service.delete_sportsground(session, sportsground_id)
        return {"message": "Sportsground deleted"}
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "deleting sportsground")


# ---------------------------------------------------------------------------
# Configurations
# ---------------------------------------------------------------------------


@router.get("/api/admin/configurations", response_model=List[Dict[str, Any]])
async def list_configurations(
    user_id: Optional[int] = None,
    sportsground_id: Optional[int] = None,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await configuration_service.list_configurations(
            session, user_id=user_id, sportsground_id=sportsground_id
        )
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "listing configurations")


@router.get("/api/admin/configurations/{configuration_id}", response_model=Dict[str, Any])
async def get_configuration(
    configuration_id: int, admin: dict = Depends(require_admin), session: AsyncSession = Depends(get_db_session)
):
    try:
        return await configuration_service.get_configuration(session, configuration_id)
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "getting configuration")


@router.post("/api/admin/configurations", response_model=Dict[str, Any], status_code=201)
async def create_configuration(
    payload: AdminConfigurationCreate,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """The owner (user_id) must own the target sportsground."""
    try:
        return await configuration_service.create_configuration(session, **payload.model_dump())
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "creating configuration")


@router.put("/api/admin/configurations/{configuration_id}", response_model=Dict[str, Any])
async def update_configuration(
    configuration_id: int,
    payload: AdminConfigurationUpdate,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await configuration_service.update_configuration(
            session, configuration_id, payload.model_dump(exclude_unset=True)
        )
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "updating configuration")


@router.delete("/api/admin/configurations/{configuration_id}", response_model=Dict[str, Any])
async def delete_configuration(
    configuration_id: int, admin: dict = Depends(require_admin), session: AsyncSession = Depends(get_db_session)
):
    try:
        await configuration_service.delete_configuration(session, configuration_id)
        return {"message": "Configuration deleted"}
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "deleting configuration")


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


@router.get("/api/admin/templates", response_model=List[Dict[str, Any]])
async def list_templates(admin: dict = Depends(require_admin), session: AsyncSession = Depends(get_db_session)):
    try:
        return await template_service.list_all_templates(session)
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "listing templates")


@router.post("/api/admin/templates", response_model=Dict[str, Any], status_code=201)
async def create_template(
    payload: TemplateCreate, admin: dict = Depends(require_admin), session: AsyncSession = Depends(get_db_session)
):
    try:
        return await template_service.create_template(session, **payload.model_dump())
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "creating template")


@router.put("/api/admin/templates/{template_id}", response_model=Dict[str, Any])
async def update_template(
    template_id: int,
    payload: TemplateUpdate,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await template_service.update_template(session, template_id, **payload.model_dump(exclude_unset=True))
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "updating template")


@router.delete("/api/admin/templates/{template_id}", response_model=Dict[str, Any])
async def deactivate_template(
    template_id: int, admin: dict = Depends(require_admin), session: AsyncSession = Depends(get_db_session)
):
    """Soft delete; existing configurations keep the template."""
    try:
        return await template_service.deactivate_template(session, template_id)
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "deactivating template")


# ---------------------------------------------------------------------------
# Invitations: admin accounts (super admin) and customer accounts (admin)
# ---------------------------------------------------------------------------


async def _send_invitation(kind: str, email: str, token: str, session: AsyncSession) -> bool:
    if kind == invitation_service.ADMIN:
        return await email_service.send_admin_invitation_email(email, token, session)
    return await email_service.send_user_invitation_email(email, token, session)


async def _list_invitations(kind: str, session: AsyncSession):
    try:
        return await invitation_service.list_invitations(session, kind)
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "listing invitations")


async def _create_invitation(kind: str, email: str, inviter: dict, session: AsyncSession):
    try:
        created = await invitation_service.create_invitation(session, kind, email, inviter["id"])
        invitation = created["invitation"]
        invitation["email_sent"] = await _send_invitation(kind, invitation["email"], created["token"], session)
        return invitation
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "creating invitation")


async def _resend_invitation(kind: str, invitation_id: int, session: AsyncSession):
    try:
        resent = await invitation_service.resend_invitation(session, kind, invitation_id)
        invitation = resent["invitation"]
        invitation["email_sent"] = await _send_invitation(kind, invitation["email"], resent["token"], session)
        return invitation
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "resending invitation")


async def _revoke_invitation(kind: str, invitation_id: int, session: AsyncSession):
    try:
        await invitation_service.revoke_invitation(session, kind, invitation_id)
        return {"message": "Invitation revoked"}
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "revoking invitation")


@router.get("/api/admin/invitations", response_model=List[Dict[str, Any]])
async def list_admin_invitations(
    admin: dict = Depends(require_super_admin), session: AsyncSession = Depends(get_db_session)
):
    return await _list_invitations(invitation_service.ADMIN, session)


@router.post("/api/admin/invitations", response_model=Dict[str, Any], status_code=201)
async def create_admin_invitation(
    payload: InvitationCreate,
    admin: dict = Depends(require_super_admin),
    session: AsyncSession = Depends(get_db_session),
):
    return await _create_invitation(invitation_service.ADMIN, payload.email, admin, session)


@router.post("/api/admin/invitations/{invitation_id}/resend", response_model=Dict[str, Any])
async def resend_admin_invitation(
    invitation_id: int, admin: dict = Depends(require_super_admin), session: AsyncSession = Depends(get_db_session)
):
    return await _resend_invitation(invitation_service.ADMIN, invitation_id, session)


@router.delete("/api/admin/invitations/{invitation_id}", response_model=Dict[str, Any])
async def revoke_admin_invitation(
    invitation_id: int, admin: dict = Depends(require_super_admin), session: AsyncSession = Depends(get_db_session)
):
    return await _revoke_invitation(invitation_service.ADMIN, invitation_id, session)


@router.get("/api/admin/user-invitations", response_model=List[Dict[str, Any]])
async def list_user_invitations(admin: dict = Depends(require_admin), session: AsyncSession = Depends(get_db_session)):
    return await _list_invitations(invitation_service.USER, session)


@router.post("/api/admin/user-invitations", response_model=Dict[str, Any], status_code=201)
async def create_user_invitation(
    payload: InvitationCreate,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    return await _create_invitation(invitation_service.USER, payload.email, admin, session)


@router.post("/api/admin/user-invitations/{invitation_id}/resend", response_model=Dict[str, Any])
async def resend_user_invitation(
    invitation_id: int, admin: dict = Depends(require_admin), session: AsyncSession = Depends(get_db_session)
):
    return await _resend_invitation(invitation_service.USER, invitation_id, session)


@router.delete("/api/admin/user-invitations/{invitation_id}", response_model=Dict[str, Any])
async def revoke_user_invitation(
    invitation_id: int, admin: dict = Depends(require_admin), session: AsyncSession = Depends(get_db_session)
):
    return await _revoke_invitation(invitation_service.USER, invitation_id, session)
