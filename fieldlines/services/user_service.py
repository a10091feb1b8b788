"""
User service layer for account lookups and profile updates.
"""

from typing import Optional, Dict
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from fieldlines.database.models import User, UserRole
from fieldlines.services.errors import NotFoundError
import logging

logger = logging.getLogger(__name__)

ADMIN_ROLES = (UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value)


def user_to_dict(user: User) -> Dict:
    """Public view of a user (never includes password hash or tokens)."""
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "phone": user.phone,
        "organization": user.organization,
        "role": user.role,
        "email_verified": user.email_verified,
        "suspended": user.suspended,
        "suspended_at": user.suspended_at.isoformat() if user.suspended_at else None,
        "last_login_at": user.last_login_at.isoformat() if user.last_login_at else None,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def user_summary(user: Optional[User]) -> Optional[Dict]:
    """Short form embedded in other records."""
    if user is None:
        return None
    return {"id": user.id, "full_name": user.full_name, "email": user.email, "phone": user.phone}


def is_admin(user: Dict) -> bool:
    return user.get("role") in ADMIN_ROLES


async def get_user_model(session: AsyncSession, user_id: int) -> User:
    """
    Load a user row.

    Raises:
        NotFoundError: If no such user exists
    """
    user = await session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


async def get_user_by_id(session: AsyncSession, user_id: int) -> Optional[Dict]:
    """
    Get user by ID.

    Args:
        session: Database session
        user_id: User ID

    Returns:
        User dictionary or None if not found
    """
    user = await session.get(User, user_id)
    return user_to_dict(user) if user else None


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    """Get user row by (already normalized) email."""
    result = await session.execute(select(User).where(User.email == email).limit(1))
    return result.scalar_one_or_none()


async def update_profile(
    session: AsyncSession,
    user_id: int,
    full_name: Optional[str] = None,
    phone: Optional[str] = None,
    organization: Optional[str] = None,
) -> Dict:
    """
    Update the editable profile fields of a user.

    Only fields that are not None are changed.

    Raises:
        NotFoundError: User not found
        ValueError: Empty full name
    """
    user = await get_user_model(session, user_id)
    if full_name is not None:
        if not full_name.strip():
            raise ValueError("Full name cannot be empty")
        user.full_name = full_name.strip()
    if phone is not None:
        user.phone = phone
    if organization is not None:
        user.organization = organization
    await session.flush()
    await session.refresh(user)
    return user_to_dict(user)
