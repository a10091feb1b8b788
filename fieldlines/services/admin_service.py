"""
Admin service: dashboard statistics and user account management.

Every action on another account goes through the permission table in
``permissions``; sportsground, configuration and booking administration
reuse the owner-scoped services with no owner scope.
"""

import logging
from datetime import timedelta
from typing import Dict, List, Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fieldlines.database.models import (
    Booking,
    BookingGroup,
    BookingStatus,
    FieldConfiguration,
    FieldTemplate,
    Sportsground,
    User,
)
from fieldlines.services import (
    auth_service,
    booking_service,
    permissions,
    sportsground_service,
    user_service,
)
from fieldlines.utils.constants import DEFAULT_PAGE_SIZE
from fieldlines.utils.datetime_utils import utcnow
from fieldlines.utils.pagination import normalize_page, page_response

logger = logging.getLogger(__name__)

UPCOMING_DAYS = 7
RECENT_BOOKINGS = 5


# ----------------------------------------------------------------------------
# Dashboard
# ----------------------------------------------------------------------------


async def _count(session: AsyncSession, column, *filters) -> int:
    result = await session.execute(select(func.count(column)).where(*filters))
    return result.scalar_one()


async def get_stats(session: AsyncSession) -> Dict:
    """Counts for the admin dashboard plus the next week's bookings."""
    today = utcnow().date()
    upcoming_until = today + timedelta(days=UPCOMING_DAYS)

    role_rows = await session.execute(select(User.role, func.count(User.id)).group_by(User.role))
    recent = await session.execute(
        booking_service.booking_query()
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .limit(RECENT_BOOKINGS)
    )

    return {
        "users": {
            "total": await _count(session, User.id),
            "by_role": {role: count for role, count in role_rows.all()},
            "suspended": await _count(session, User.id, User.suspended == True),  # noqa: E712
        },
        "sportsgrounds": await _count(session, Sportsground.id),
        "configurations": await _count(session, FieldConfiguration.id),
        "active_templates": await _count(
            session, FieldTemplate.id, FieldTemplate.is_active == True  # noqa: E712
        ),
        "bookings": await booking_service.count_by_status(session),
        "upcoming_bookings": await _count(
            session,
            Booking.id,
            Booking.preferred_date >= today,
            Booking.preferred_date <= upcoming_until,
            Booking.status.in_([BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value]),
        ),
        "recent_bookings": [booking_service.booking_to_dict(b) for b in recent.scalars().all()],
    }


# ----------------------------------------------------------------------------
# Users
# ----------------------------------------------------------------------------


async def list_users(
    session: AsyncSession,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    search: Optional[str] = None,
    role: Optional[str] = None,
) -> Dict:
    """Paginated users with booking counts, optionally filtered."""
    page, limit, offset = normalize_page(page, limit)
    filters = []
    if search:
        pattern = f"%{search.strip()}%"
        filters.append(
            or_(User.full_name.ilike(pattern), User.email.ilike(pattern), User.organization.ilike(pattern))
        )
    if role:
        filters.append(User.role == role)

    total = await _count(session, User.id, *filters)
    booking_counts = (
        select(Booking.user_id, func.count(Booking.id).label("n")).group_by(Booking.user_id).subquery()
    )
    result = await session.execute(
        select(User, func.coalesce(booking_counts.c.n, 0))
        .outerjoin(booking_counts, booking_counts.c.user_id == User.id)
        .where(*filters)
        .order_by(User.created_at.desc(), User.id.desc())
        .offset(offset)
        .limit(limit)
    )
    users = []
    for user, booking_count in result.all():
        data = user_service.user_to_dict(user)
        data["booking_count"] = booking_count
        users.append(data)
    return page_response("users", users, total, page, limit)


async def list_users_simple(session: AsyncSession) -> List[Dict]:
    """Id/name/email of every account, for owner pickers."""
    result = await session.execute(select(User).order_by(User.full_name, User.id))
    return [user_service.user_summary(u) for u in result.scalars().all()]


async def get_user_detail(session: AsyncSession, user_id: int) -> Dict:
    user = await user_service.get_user_model(session, user_id)
    data = user_service.user_to_dict(user)
    data["sportsgrounds"] = await sportsground_service.list_sportsgrounds(session, user_id)
    data["configuration_count"] = await _count(
        session, FieldConfiguration.id, FieldConfiguration.user_id == user_id
    )
    data["bookings"] = await booking_service.list_bookings(session, user_id)
    return data


async def _target(session: AsyncSession, user_id: int) -> User:
    return await user_service.get_user_model(session, user_id)


async def update_user_role(session: AsyncSession, actor: Dict, user_id: int, role: str) -> Dict:
    """
    Raises:
        NotFoundError: Unknown user
        SelfActionError: Changing own role
        PermissionError: Not allowed by the permission table
        ValueError: Unknown role
    """
    target = await _target(session, user_id)
    permissions.check_role_change(actor, {"id": target.id, "role": target.role}, role)
    old_role = target.role
    target.role = role
    await session.flush()
    logger.info(f"User {actor['id']} changed role of user {user_id} from {old_role} to {role}")
    return user_service.user_to_dict(target)


async def set_user_suspended(session: AsyncSession, actor: Dict, user_id: int, suspended: bool) -> Dict:
    target = await _target(session, user_id)
    permissions.check_user_action(actor, {"id": target.id, "role": target.role}, permissions.SUSPEND)
    target.suspended = suspended
    target.suspended_at = utcnow() if suspended else None
    await session.flush()
    logger.info(f"User {actor['id']} {'suspended' if suspended else 'unsuspended'} user {user_id}")
    return user_service.user_to_dict(target)


async def reset_user_password(session: AsyncSession, actor: Dict, user_id: int) -> Dict:
    """Issue a reset token for another account. Returns email, token and full_name."""
    target = await _target(session, user_id)
    permissions.check_user_action(
        actor, {"id": target.id, "role": target.role}, permissions.RESET_PASSWORD
    )
    return await auth_service.issue_reset_token_for_user(session, target.id)


async def resend_verification(session: AsyncSession, user_id: int) -> Dict:
    target = await _target(session, user_id)
    issued = await auth_service.issue_verification_token(session, target.id)
    issued["full_name"] = target.full_name
    return issued


async def delete_user(session: AsyncSession, actor: Dict, user_id: int) -> None:
    """Delete an account with everything it owns."""
    target = await _target(session, user_id)
    permissions.check_user_action(actor, {"id": target.id, "role": target.role}, permissions.DELETE)

    sportsground_ids = select(Sportsground.id).where(Sportsground.user_id == user_id)
    configuration_ids = select(FieldConfiguration.id).where(
        or_(FieldConfiguration.user_id == user_id, FieldConfiguration.sportsground_id.in_(sportsground_ids))
    )
    await session.execute(
        delete(Booking)
        .where(or_(Booking.user_id == user_id, Booking.configuration_id.in_(configuration_ids)))
        .execution_options(synchronize_session=False)
    )
    await session.execute(
        delete(BookingGroup)
        .where(or_(BookingGroup.user_id == user_id, BookingGroup.sportsground_id.in_(sportsground_ids)))
        .execution_options(synchronize_session=False)
    )
    await session.execute(
        delete(FieldConfiguration)
        .where(FieldConfiguration.id.in_(configuration_ids))
        .execution_options(synchronize_session=False)
    )
    await session.execute(
        delete(Sportsground).where(Sportsground.user_id == user_id).execution_options(synchronize_session=False)
    )
    await session.execute(delete(User).where(User.id == user_id))
    logger.info(f"User {actor['id']} deleted user {user_id}")

