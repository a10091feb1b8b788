"""
Booking service: line-marking requests against field configurations.

Status follows a small transition table:

    pending   -> confirmed, cancelled
    confirmed -> completed, cancelled

completed and cancelled are final. Users may edit or cancel only while a
booking is pending, and cancellation needs CANCELLATION_NOTICE_HOURS notice.
"""

import random
import logging
from datetime import date, datetime, timedelta
from typing import Dict, FrozenSet, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fieldlines.database.models import (
    Booking,
    BookingGroup,
    BookingStatus,
    ContactPreference,
    FieldConfiguration,
    PreferredTime,
    Sportsground,
    User,
)
from fieldlines.services import configuration_service, user_service
from fieldlines.services.errors import InvalidTransitionError, NotFoundError
from fieldlines.utils.constants import (
    BOOKING_GROUP_REFERENCE_PREFIX,
    BOOKING_NOTES_MAX_LENGTH,
    BOOKING_REFERENCE_PREFIX,
    CANCELLATION_NOTICE_HOURS,
    DEFAULT_PAGE_SIZE,
    MAX_BATCH_BOOKINGS,
    REFERENCE_NUMBER_MAX_ATTEMPTS,
)
from fieldlines.utils.datetime_utils import parse_date, start_of_day_utc, utcnow
from fieldlines.utils.pagination import normalize_page, page_response

logger = logging.getLogger(__name__)

PENDING = BookingStatus.PENDING.value
CONFIRMED = BookingStatus.CONFIRMED.value
COMPLETED = BookingStatus.COMPLETED.value
CANCELLED = BookingStatus.CANCELLED.value

TRANSITIONS: Dict[str, FrozenSet[str]] = {
    PENDING: frozenset({CONFIRMED, CANCELLED}),
    CONFIRMED: frozenset({COMPLETED, CANCELLED}),
    COMPLETED: frozenset(),
    CANCELLED: frozenset(),
}

PREFERRED_TIMES = {t.value for t in PreferredTime}
SINGLE_CONTACT_PREFERENCES = {ContactPreference.PHONE.value, ContactPreference.EMAIL.value}
BATCH_CONTACT_PREFERENCES = {c.value for c in ContactPreference}

BOOKING_FIELDS = ("preferred_date", "preferred_time", "alternative_date", "notes", "contact_preference")


class ReferenceGenerationError(RuntimeError):
    """Raised when no unused reference number was found."""


# ----------------------------------------------------------------------------
# Status transitions
# ----------------------------------------------------------------------------


def check_transition(current: str, new: str) -> bool:
    """
    Validate a status change.

    Returns:
        False when the status is unchanged (no-op), True otherwise

    Raises:
        ValueError: Unknown status
        InvalidTransitionError: Transition not in the table
    """
    if new not in TRANSITIONS:
        raise ValueError(f"Invalid status: {new}")
    if current == new:
        return False
    if new not in TRANSITIONS.get(current, frozenset()):
        raise InvalidTransitionError(f"Cannot change booking status from {current} to {new}")
    return True


def can_user_cancel(booking: Booking, now: Optional[datetime] = None) -> bool:
    """Pending and at least CANCELLATION_NOTICE_HOURS before the preferred date."""
    if booking.status != PENDING:
        return False
    now = now or utcnow()
    return start_of_day_utc(booking.preferred_date) - now >= timedelta(hours=CANCELLATION_NOTICE_HOURS)


# ----------------------------------------------------------------------------
# Serialization and lookups
# ----------------------------------------------------------------------------


def booking_to_dict(booking: Booking) -> Dict:
    return {
        "id": booking.id,
        "reference_number": booking.reference_number,
        "user_id": booking.user_id,
        "configuration_id": booking.configuration_id,
        "booking_group_id": booking.booking_group_id,
        "preferred_date": booking.preferred_date.isoformat(),
        "preferred_time": booking.preferred_time,
        "alternative_date": booking.alternative_date.isoformat() if booking.alternative_date else None,
        "notes": booking.notes,
        "contact_preference": booking.contact_preference,
        "status": booking.status,
        "uses_group_defaults": booking.uses_group_defaults,
        "can_cancel": can_user_cancel(booking),
        "created_at": booking.created_at.isoformat() if booking.created_at else None,
        "configuration": configuration_service.configuration_to_dict(booking.configuration)
        if booking.configuration
        else None,
        "user": user_service.user_summary(booking.user),
    }


def group_to_dict(group: BookingGroup, bookings: List[Booking]) -> Dict:
    sportsground = group.sportsground
    return {
        "id": group.id,
        "reference_number": group.reference_number,
        "user_id": group.user_id,
        "sportsground_id": group.sportsground_id,
        "sportsground": {"id": sportsground.id, "name": sportsground.name, "address": sportsground.address}
        if sportsground
        else None,
        "default_preferred_date": group.default_preferred_date.isoformat(),
        "default_preferred_time": group.default_preferred_time,
        "alternative_date": group.alternative_date.isoformat() if group.alternative_date else None,
        "notes": group.notes,
        "contact_preference": group.contact_preference,
        "status": group.status,
        "created_at": group.created_at.isoformat() if group.created_at else None,
        "bookings": [booking_to_dict(b) for b in bookings],
    }


def booking_query():
    return select(Booking).options(
        selectinload(Booking.user),
        selectinload(Booking.configuration).selectinload(FieldConfiguration.template),
        selectinload(Booking.configuration).selectinload(FieldConfiguration.sportsground),
    )


async def load_booking(
    session: AsyncSession, booking_id: int, user_id: Optional[int] = None
) -> Booking:
    result = await session.execute(booking_query().where(Booking.id == booking_id))
    booking = result.scalar_one_or_none()
    if not booking or (user_id is not None and booking.user_id != user_id):
        raise NotFoundError("Booking not found")
    return booking


async def _group_bookings(session: AsyncSession, group_id: int) -> List[Booking]:
    result = await session.execute(
        booking_query().where(Booking.booking_group_id == group_id).order_by(Booking.id)
    )
    return list(result.scalars().all())


async def load_group(session: AsyncSession, group_id: int, user_id: Optional[int] = None) -> BookingGroup:
    result = await session.execute(
        select(BookingGroup)
        .options(selectinload(BookingGroup.sportsground))
        .where(BookingGroup.id == group_id)
    )
    group = result.scalar_one_or_none()
    if not group or (user_id is not None and group.user_id != user_id):
        raise NotFoundError("Booking group not found")
    return group


# ----------------------------------------------------------------------------
# Reference numbers
# ----------------------------------------------------------------------------


def generate_reference_number(prefix: str, year: Optional[int] = None) -> str:
    """Reference like BK-2026-0427."""
    year = year or utcnow().year
    return f"{prefix}-{year}-{random.randint(0, 9999):04d}"


async def _unique_reference(session: AsyncSession, model, prefix: str) -> str:
    for _ in range(REFERENCE_NUMBER_MAX_ATTEMPTS):
        candidate = generate_reference_number(prefix)
        existing = await session.execute(
            select(model.id).where(model.reference_number == candidate).limit(1)
        )
        if existing.scalar_one_or_none() is None:
            return candidate
    raise ReferenceGenerationError("Could not generate a unique reference number")


# ----------------------------------------------------------------------------
# Validation
# ----------------------------------------------------------------------------


def _validated_fields(values: Dict, allow_past: bool = False, allow_both: bool = False) -> Dict:
    """Parse and validate booking fields present in ``values``."""
    cleaned = {}
    today = utcnow().date()

    if "preferred_date" in values:
        preferred = parse_date(values["preferred_date"])
        if not allow_past and preferred < today:
            raise ValueError("Preferred date cannot be in the past")
        cleaned["preferred_date"] = preferred

    if "alternative_date" in values:
        alternative = values["alternative_date"]
        if alternative:
            alternative = parse_date(alternative)
            if not allow_past and alternative < today:
                raise ValueError("Alternative date cannot be in the past")
        cleaned["alternative_date"] = alternative or None

    if "preferred_time" in values:
        if values["preferred_time"] not in PREFERRED_TIMES:
            raise ValueError(f"Invalid preferred time: {values['preferred_time']}")
        cleaned["preferred_time"] = values["preferred_time"]

    if "contact_preference" in values:
        allowed = BATCH_CONTACT_PREFERENCES if allow_both else SINGLE_CONTACT_PREFERENCES
        if values["contact_preference"] not in allowed:
            raise ValueError(f"Invalid contact preference: {values['contact_preference']}")
        cleaned["contact_preference"] = values["contact_preference"]

    if "notes" in values:
        notes = values["notes"]
        if notes and len(notes) > BOOKING_NOTES_MAX_LENGTH:
            raise ValueError(f"Notes cannot exceed {BOOKING_NOTES_MAX_LENGTH} characters")
        cleaned["notes"] = notes or None

    return cleaned


def _check_alternative(preferred: date, alternative: Optional[date]) -> None:
    if alternative is not None and alternative == preferred:
        raise ValueError("Alternative date must differ from the preferred date")


# ----------------------------------------------------------------------------
# User bookings
# ----------------------------------------------------------------------------


async def create_booking(
    session: AsyncSession,
    user_id: int,
    configuration_id: int,
    preferred_date,
    preferred_time: str,
    contact_preference: str,
    alternative_date=None,
    notes: Optional[str] = None,
    status: str = PENDING,
    admin: bool = False,
) -> Dict:
    """
    Book line marking for one configuration.

    Args:
        admin: Admin-created booking; past dates are allowed and any initial
            status may be set, but the configuration must still belong to user_id

    Raises:
        NotFoundError: Configuration missing or not owned by user_id
        ValueError: Validation failure
    """
    if admin:
        configuration = await configuration_service.load_configuration(session, configuration_id)
        if configuration.user_id != user_id:
            raise ValueError("Configuration does not belong to the selected user")
    else:
        configuration = await configuration_service.load_configuration(session, configuration_id, user_id)

    if status not in TRANSITIONS:
        raise ValueError(f"Invalid status: {status}")

    fields = _validated_fields(
        {
            "preferred_date": preferred_date,
            "preferred_time": preferred_time,
            "contact_preference": contact_preference,
            "alternative_date": alternative_date,
            "notes": notes,
        },
        allow_past=admin,
    )
    _check_alternative(fields["preferred_date"], fields["alternative_date"])

    booking = Booking(
        user_id=user_id,
        configuration_id=configuration.id,
        reference_number=await _unique_reference(session, Booking, BOOKING_REFERENCE_PREFIX),
        status=status,
        uses_group_defaults=False,
        **fields,
    )
    session.add(booking)
    await session.flush()
    logger.info(f"Created booking {booking.reference_number} for configuration {configuration.id}")
    return booking_to_dict(await load_booking(session, booking.id))


async def list_bookings(
    session: AsyncSession, user_id: int, status: Optional[str] = None
) -> List[Dict]:
    stmt = booking_query().where(Booking.user_id == user_id)
    if status:
        if status not in TRANSITIONS:
            raise ValueError(f"Invalid status: {status}")
        stmt = stmt.where(Booking.status == status)
    result = await session.execute(stmt.order_by(Booking.preferred_date.desc(), Booking.id.desc()))
    return [booking_to_dict(b) for b in result.scalars().all()]


async def get_booking(session: AsyncSession, booking_id: int, user_id: Optional[int] = None) -> Dict:
    return booking_to_dict(await load_booking(session, booking_id, user_id))


async def update_booking(
    session: AsyncSession, booking_id: int, updates: Dict, user_id: Optional[int] = None
) -> Dict:
    """
    Change booking details.

    Users (user_id given) may only edit pending bookings. Admin updates
    (user_id None) may also carry a ``status`` which goes through the
    transition table.

    Raises:
        NotFoundError: Booking missing or not owned by user_id
        ValueError: Not editable, or validation failure
        InvalidTransitionError: Status change not allowed
    """
    booking = await load_booking(session, booking_id, user_id)
    if user_id is not None and booking.status != PENDING:
        raise ValueError("Only pending bookings can be updated")

    # required fields cannot be cleared; alternative_date and notes can
    present = {
        key: updates[key]
        for key in BOOKING_FIELDS
        if key in updates and (updates[key] is not None or key in ("alternative_date", "notes"))
    }
    fields = _validated_fields(present, allow_past=user_id is None)
    _check_alternative(
        fields.get("preferred_date", booking.preferred_date),
        fields.get("alternative_date", booking.alternative_date),
    )

    if user_id is None and updates.get("status"):
        if check_transition(booking.status, updates["status"]):
            booking.status = updates["status"]

    for key, value in fields.items():
        setattr(booking, key, value)
    if fields and booking.booking_group_id is not None:
        booking.uses_group_defaults = False
    await session.flush()
    if booking.booking_group_id is not None:
        await _sync_group_status(session, booking.booking_group_id)
    return booking_to_dict(await load_booking(session, booking.id))


async def cancel_booking(
    session: AsyncSession, booking_id: int, user_id: int, now: Optional[datetime] = None
) -> Dict:
    """
    Cancel a pending booking on behalf of its owner.

    Raises:
        ValueError: Not pending, or less than CANCELLATION_NOTICE_HOURS notice
    """
    booking = await load_booking(session, booking_id, user_id)
    if booking.status != PENDING:
        raise ValueError("Only pending bookings can be cancelled")
    if not can_user_cancel(booking, now):
        raise ValueError(
            f"Bookings can only be cancelled at least {CANCELLATION_NOTICE_HOURS} hours before the preferred date"
        )
    booking.status = CANCELLED
    await session.flush()
    if booking.booking_group_id is not None:
        await _sync_group_status(session, booking.booking_group_id)
    logger.info(f"Booking {booking.reference_number} cancelled by user {user_id}")
    return booking_to_dict(booking)


# ----------------------------------------------------------------------------
# Batch bookings
# ----------------------------------------------------------------------------


async def create_batch_booking(
    session: AsyncSession,
    user_id: int,
    sportsground_id: int,
    configuration_ids: List[int],
    preferred_date,
    preferred_time: str,
    contact_preference: str,
    alternative_date=None,
    notes: Optional[str] = None,
    overrides: Optional[Dict[int, Dict]] = None,
) -> Dict:
    """
    Book several fields of one sportsground under a shared group reference.

    Args:
        configuration_ids: 1..MAX_BATCH_BOOKINGS distinct configuration ids
        overrides: Per-configuration booking fields that replace the group defaults

    Raises:
        NotFoundError: Sportsground or a configuration missing / not owned
        ValueError: Validation failure
    """
    ids = list(dict.fromkeys(configuration_ids or []))
    if not ids:
        raise ValueError("Select at least one field to book")
    if len(ids) > MAX_BATCH_BOOKINGS:
        raise ValueError(f"A batch booking can include at most {MAX_BATCH_BOOKINGS} fields")

    sportsground = await session.get(Sportsground, sportsground_id)
    if not sportsground or sportsground.user_id != user_id:
        raise NotFoundError("Sportsground not found")

    result = await session.execute(
        select(FieldConfiguration).where(
            FieldConfiguration.id.in_(ids), FieldConfiguration.user_id == user_id
        )
    )
    configurations = {c.id: c for c in result.scalars().all()}
    missing = [cid for cid in ids if cid not in configurations]
    if missing:
        raise NotFoundError(f"Configuration not found: {missing[0]}")
    if any(c.sportsground_id != sportsground_id for c in configurations.values()):
        raise ValueError("All fields must belong to the selected sportsground")

    defaults = _validated_fields(
        {
            "preferred_date": preferred_date,
            "preferred_time": preferred_time,
            "contact_preference": contact_preference,
            "alternative_date": alternative_date,
            "notes": notes,
        },
        allow_both=True,
    )
    _check_alternative(defaults["preferred_date"], defaults["alternative_date"])

    group = BookingGroup(
        user_id=user_id,
        sportsground_id=sportsground_id,
        reference_number=await _unique_reference(session, BookingGroup, BOOKING_GROUP_REFERENCE_PREFIX),
        default_preferred_date=defaults["preferred_date"],
        default_preferred_time=defaults["preferred_time"],
        alternative_date=defaults["alternative_date"],
        notes=defaults["notes"],
        contact_preference=defaults["contact_preference"],
        status=PENDING,
    )
    session.add(group)
    await session.flush()

    overrides = overrides or {}
    for configuration_id in ids:
        override = _validated_fields(
            {key: value for key, value in (overrides.get(configuration_id) or {}).items() if key in BOOKING_FIELDS},
            allow_both=True,
        )
        fields = {**defaults, **override}
        _check_alternative(fields["preferred_date"], fields["alternative_date"])
        session.add(
            Booking(
                user_id=user_id,
                configuration_id=configuration_id,
                booking_group_id=group.id,
                reference_number=await _unique_reference(session, Booking, BOOKING_REFERENCE_PREFIX),
                status=PENDING,
                uses_group_defaults=not override,
                **fields,
            )
        )
        # flush per booking so the next reference check sees this one
        await session.flush()

    logger.info(f"Created booking group {group.reference_number} with {len(ids)} bookings")
    return await get_booking_group(session, group.id)


async def get_booking_group(session: AsyncSession, group_id: int, user_id: Optional[int] = None) -> Dict:
    group = await load_group(session, group_id, user_id)
    await session.refresh(group, ["created_at"])
    return group_to_dict(group, await _group_bookings(session, group.id))


async def cancel_booking_group(
    session: AsyncSession, group_id: int, user_id: int, now: Optional[datetime] = None
) -> Dict:
    """
    Cancel every booking of a group. Already cancelled bookings are skipped;
    any booking that is no longer pending or is too close blocks the whole cancel.
    """
    group = await load_group(session, group_id, user_id)
    bookings = await _group_bookings(session, group.id)
    open_bookings = [b for b in bookings if b.status != CANCELLED]
    for booking in open_bookings:
        if booking.status != PENDING:
            raise ValueError(f"Booking {booking.reference_number} is {booking.status} and cannot be cancelled")
        if not can_user_cancel(booking, now):
            raise ValueError(
                f"Bookings can only be cancelled at least {CANCELLATION_NOTICE_HOURS} hours before the preferred date"
            )
    for booking in open_bookings:
        booking.status = CANCELLED
    group.status = CANCELLED
    await session.flush()
    logger.info(f"Booking group {group.reference_number} cancelled by user {user_id}")
    return await get_booking_group(session, group.id)


async def _sync_group_status(session: AsyncSession, group_id: int) -> None:
    """Group status follows its bookings once they all agree."""
    group = await session.get(BookingGroup, group_id)
    if group is None:
        return
    result = await session.execute(select(Booking.status).where(Booking.booking_group_id == group_id))
    statuses = set(result.scalars().all())
    if len(statuses) == 1:
        group.status = statuses.pop()
        await session.flush()


# ----------------------------------------------------------------------------
# Admin
# ----------------------------------------------------------------------------


async def admin_list_bookings(
    session: AsyncSession,
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> Dict:
    """Paginated bookings across all users, filtered by status and free-text search."""
    page, limit, offset = normalize_page(page, limit)
    filters = []
    if status:
        if status not in TRANSITIONS:
            raise ValueError(f"Invalid status: {status}")
        filters.append(Booking.status == status)
    if search:
        pattern = f"%{search.strip()}%"
        filters.append(
            or_(
                Booking.reference_number.ilike(pattern),
                User.full_name.ilike(pattern),
                User.email.ilike(pattern),
                FieldConfiguration.name.ilike(pattern),
                Sportsground.name.ilike(pattern),
            )
        )

    def joined(stmt):
        return (
            stmt.join(User, User.id == Booking.user_id)
            .join(FieldConfiguration, FieldConfiguration.id == Booking.configuration_id)
            .join(Sportsground, Sportsground.id == FieldConfiguration.sportsground_id)
            .where(*filters)
        )

    count_stmt = joined(select(func.count(Booking.id)).select_from(Booking))
    total = (await session.execute(count_stmt)).scalar_one()
    result = await session.execute(
        joined(booking_query())
        .order_by(Booking.preferred_date.desc(), Booking.id.desc())
        .offset(offset)
        .limit(limit)
    )
    bookings = [booking_to_dict(b) for b in result.scalars().all()]
    return page_response("bookings", bookings, total, page, limit)


async def admin_calendar(
    session: AsyncSession,
    start_date,
    end_date,
    statuses: Optional[List[str]] = None,
    sportsground_id: Optional[int] = None,
    configuration_id: Optional[int] = None,
    user_id: Optional[int] = None,
) -> List[Dict]:
    """Bookings whose preferred date falls in [start_date, end_date]."""
    start = parse_date(start_date)
    end = parse_date(end_date)
    if end < start:
        raise ValueError("End date must be on or after start date")

    stmt = booking_query().where(Booking.preferred_date >= start, Booking.preferred_date <= end)
    if statuses:
        unknown = [s for s in statuses if s not in TRANSITIONS]
        if unknown:
            raise ValueError(f"Invalid status: {unknown[0]}")
        stmt = stmt.where(Booking.status.in_(statuses))
    if sportsground_id is not None:
        stmt = stmt.join(FieldConfiguration, FieldConfiguration.id == Booking.configuration_id).where(
            FieldConfiguration.sportsground_id == sportsground_id
        )
    if configuration_id is not None:
        stmt = stmt.where(Booking.configuration_id == configuration_id)
    if user_id is not None:
        stmt = stmt.where(Booking.user_id == user_id)

    result = await session.execute(stmt.order_by(Booking.preferred_date, Booking.id))
    return [booking_to_dict(b) for b in result.scalars().all()]


async def admin_update_status(session: AsyncSession, booking_id: int, new_status: str) -> Dict:
    """
    Move a booking through the transition table.

    Returns:
        Dict with the booking, the previous status and whether anything changed
    """
    booking = await load_booking(session, booking_id)
    old_status = booking.status
    changed = check_transition(old_status, new_status)
    if changed:
        booking.status = new_status
        await session.flush()
        if booking.booking_group_id is not None:
            await _sync_group_status(session, booking.booking_group_id)
        logger.info(f"Booking {booking.reference_number} moved from {old_status} to {new_status}")
    return {"booking": booking_to_dict(booking), "old_status": old_status, "changed": changed}


async def count_by_status(session: AsyncSession) -> Dict[str, int]:
    result = await session.execute(select(Booking.status, func.count(Booking.id)).group_by(Booking.status))
    counts = {status: 0 for status in TRANSITIONS}
    counts.update({status: count for status, count in result.all()})
    return counts
