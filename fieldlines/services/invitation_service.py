"""
Invitation service for admin accounts (sent by super admins) and customer
accounts (sent by admins).

Both kinds share one flow: create -> email link with token -> validate ->
register with the invited email, which is marked verified on acceptance.
"""

import logging
from datetime import timedelta
from typing import Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fieldlines.database.models import AdminInvitation, UserInvitation, UserRole
from fieldlines.services import auth_service, user_service
from fieldlines.services.errors import ConflictError, NotFoundError
from fieldlines.utils.constants import INVITATION_EXPIRE_DAYS
from fieldlines.utils.datetime_utils import ensure_aware, utcnow

logger = logging.getLogger(__name__)

ADMIN = "admin"
USER = "user"

INVITATION_MODELS = {ADMIN: AdminInvitation, USER: UserInvitation}
INVITED_ROLES = {ADMIN: UserRole.ADMIN.value, USER: UserRole.USER.value}


# --- Custom exceptions ---


class InvitationNotFoundError(NotFoundError):
    """Raised when an invitation token or id does not match any record."""


class InvitationExpiredError(ValueError):
    """Raised when an invitation is past its expiry."""


class InvitationAlreadyAcceptedError(ValueError):
    """Raised when an invitation has already been used."""


def _model(kind: str):
    if kind not in INVITATION_MODELS:
        raise ValueError(f"Unknown invitation kind: {kind}")
    return INVITATION_MODELS[kind]


def invitation_status(invitation) -> str:
    if invitation.accepted_at:
        return "accepted"
    if ensure_aware(invitation.expires_at) <= utcnow():
        return "expired"
    return "pending"


def invitation_to_dict(invitation) -> Dict:
    return {
        "id": invitation.id,
        "email": invitation.email,
        "invited_by": invitation.invited_by,
        "inviter_name": invitation.inviter.full_name if invitation.inviter else None,
        "expires_at": ensure_aware(invitation.expires_at).isoformat(),
        "accepted_at": invitation.accepted_at.isoformat() if invitation.accepted_at else None,
        "created_at": invitation.created_at.isoformat() if invitation.created_at else None,
        "status": invitation_status(invitation),
    }


async def _load(session: AsyncSession, kind: str, **criteria):
    model = _model(kind)
    stmt = select(model).options(selectinload(model.inviter))
    for column, value in criteria.items():
        stmt = stmt.where(getattr(model, column) == value)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_invitations(session: AsyncSession, kind: str) -> List[Dict]:
    model = _model(kind)
    result = await session.execute(
        select(model).options(selectinload(model.inviter)).order_by(model.created_at.desc(), model.id.desc())
    )
    return [invitation_to_dict(i) for i in result.scalars().all()]


async def create_invitation(session: AsyncSession, kind: str, email: str, invited_by: int) -> Dict:
    """
    Invite an email address. An expired, unaccepted invitation for the same
    address is renewed in place.

    Returns:
        Dict with the invitation and its token (for the email link)

    Raises:
        ValueError: Invalid email
        ConflictError: Account exists or a pending invitation was already sent
    """
    model = _model(kind)
    normalized_email = auth_service.normalize_email(email)
    if await user_service.get_user_by_email(session, normalized_email):
        raise ConflictError("A user with this email already exists")

    invitation = await _load(session, kind, email=normalized_email)
    if invitation and invitation_status(invitation) == "pending":
        raise ConflictError("An invitation has already been sent to this email")

    token = auth_service.generate_account_token()
    expires_at = utcnow() + timedelta(days=INVITATION_EXPIRE_DAYS)
    if invitation:
        invitation.token = token
        invitation.expires_at = expires_at
        invitation.accepted_at = None
        invitation.invited_by = invited_by
    else:
        invitation = model(email=normalized_email, token=token, invited_by=invited_by, expires_at=expires_at)
        session.add(invitation)
    await session.flush()
    logger.info(f"User {invited_by} invited {normalized_email} ({kind})")
    invitation = await _load(session, kind, id=invitation.id)
    await session.refresh(invitation, ["created_at"])
    return {"invitation": invitation_to_dict(invitation), "token": token}


async def resend_invitation(session: AsyncSession, kind: str, invitation_id: int) -> Dict:
    """Issue a fresh token and expiry for an unaccepted invitation."""
    invitation = await _load(session, kind, id=invitation_id)
    if not invitation:
        raise InvitationNotFoundError("Invitation not found")
    if invitation.accepted_at:
        raise InvitationAlreadyAcceptedError("Invitation has already been accepted")
    invitation.token = auth_service.generate_account_token()
    invitation.expires_at = utcnow() + timedelta(days=INVITATION_EXPIRE_DAYS)
    await session.flush()
    return {"invitation": invitation_to_dict(invitation), "token": invitation.token}


async def revoke_invitation(session: AsyncSession, kind: str, invitation_id: int) -> None:
    model = _model(kind)
    invitation = await session.get(model, invitation_id)
    if not invitation:
        raise InvitationNotFoundError("Invitation not found")
    if invitation.accepted_at:
        raise InvitationAlreadyAcceptedError("Cannot revoke an accepted invitation")
    await session.execute(delete(model).where(model.id == invitation_id))
    logger.info(f"Revoked {kind} invitation {invitation_id}")


async def validate_invitation(session: AsyncSession, kind: str, token: Optional[str]) -> Dict:
    """
    Check that a token belongs to a usable invitation.

    Raises:
        InvitationNotFoundError: Unknown token
        InvitationAlreadyAcceptedError: Already used
        InvitationExpiredError: Past expiry
    """
    if not token:
        raise InvitationNotFoundError("Invalid invitation")
    invitation = await _load(session, kind, token=token)
    if not invitation:
        raise InvitationNotFoundError("Invalid invitation")
    status = invitation_status(invitation)
    if status == "accepted":
        raise InvitationAlreadyAcceptedError("Invitation has already been used")
    if status == "expired":
        raise InvitationExpiredError("Invitation has expired")
    return {
        "email": invitation.email,
        "expires_at": ensure_aware(invitation.expires_at).isoformat(),
        "inviter_name": invitation.inviter.full_name if invitation.inviter else None,
    }


async def accept_invitation(
    session: AsyncSession,
    kind: str,
    token: str,
    password: str,
    full_name: str,
    phone: Optional[str] = None,
    organization: Optional[str] = None,
) -> Dict:
    """
    Register the invited account and log it in.

    Returns:
        Dict with access token and user
    """
    details = await validate_invitation(session, kind, token)
    registered = await auth_service.register_user(
        session,
        details["email"],
        password,
        full_name,
        phone=phone,
        organization=organization,
        role=INVITED_ROLES[kind],
        email_verified=True,
    )
    invitation = await _load(session, kind, token=token)
    invitation.accepted_at = utcnow()
    await session.flush()

    user = registered["user"]
    logger.info(f"Invitation accepted: user {user['id']} registered as {user['role']}")
    token = auth_service.create_access_token({"user_id": user["id"], "email": user["email"]})
    return {"token": token, "user": user}
