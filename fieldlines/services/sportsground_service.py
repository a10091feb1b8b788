"""
Sportsground service: venues owned by a user, each holding field configurations.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fieldlines.database.models import Booking, BookingGroup, FieldConfiguration, Sportsground
from fieldlines.services import configuration_service, geocoding_service, user_service
from fieldlines.services.errors import NotFoundError
from fieldlines.utils.constants import DEFAULT_MAP_ZOOM

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "address", "latitude", "longitude", "default_zoom", "notes")


def sportsground_to_dict(sportsground: Sportsground, configuration_count: Optional[int] = None) -> Dict:
    data = {
        "id": sportsground.id,
        "user_id": sportsground.user_id,
        "name": sportsground.name,
        "address": sportsground.address,
        "latitude": sportsground.latitude,
        "longitude": sportsground.longitude,
        "default_zoom": sportsground.default_zoom,
        "notes": sportsground.notes,
        "created_at": sportsground.created_at.isoformat() if sportsground.created_at else None,
    }
    if configuration_count is not None:
        data["configuration_count"] = configuration_count
    return data


def _validate_zoom(default_zoom: int) -> None:
    if not 1 <= default_zoom <= 22:
        raise ValueError("Default zoom must be between 1 and 22")


async def load_sportsground(
    session: AsyncSession, sportsground_id: int, user_id: Optional[int] = None
) -> Sportsground:
    """
    Raises:
        NotFoundError: Missing, or not owned by user_id when given
    """
    sportsground = await session.get(Sportsground, sportsground_id)
    if not sportsground or (user_id is not None and sportsground.user_id != user_id):
        raise NotFoundError("Sportsground not found")
    return sportsground


async def list_sportsgrounds(session: AsyncSession, user_id: Optional[int] = None) -> List[Dict]:
    """Sportsgrounds with configuration counts; user_id None lists all (admin)."""
    counts = (
        select(FieldConfiguration.sportsground_id, func.count(FieldConfiguration.id).label("n"))
        .group_by(FieldConfiguration.sportsground_id)
        .subquery()
    )
    stmt = select(Sportsground, func.coalesce(counts.c.n, 0)).outerjoin(
        counts, counts.c.sportsground_id == Sportsground.id
    )
    if user_id is not None:
        stmt = stmt.where(Sportsground.user_id == user_id)
    result = await session.execute(stmt.order_by(Sportsground.name, Sportsground.id))
    return [sportsground_to_dict(sg, count) for sg, count in result.all()]


async def get_sportsground(
    session: AsyncSession, sportsground_id: int, user_id: Optional[int] = None
) -> Dict:
    """Sportsground detail including its configurations."""
    sportsground = await load_sportsground(session, sportsground_id, user_id)
    configurations = await configuration_service.list_configurations(
        session, sportsground_id=sportsground.id
    )
    data = sportsground_to_dict(sportsground, len(configurations))
    data["configurations"] = configurations
    return data


async def create_sportsground(
    session: AsyncSession,
    user_id: int,
    name: str,
    address: str,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    default_zoom: Optional[int] = None,
    notes: Optional[str] = None,
) -> Dict:
    """
    Create a sportsground. Missing coordinates are geocoded from the address.

    Raises:
        ValueError: Missing name/address, bad coordinates, or geocoding failed
    """
    if not (name or "").strip():
        raise ValueError("Sportsground name is required")
    if not (address or "").strip():
        raise ValueError("Address is required")

    if latitude is None or longitude is None:
        latitude, longitude = await geocoding_service.geocode_address(address)
        if latitude is None or longitude is None:
            raise ValueError(
                "Could not find coordinates for this address. Please enter latitude and longitude."
            )

    configuration_service.validate_coordinates(latitude, longitude)
    zoom = DEFAULT_MAP_ZOOM if default_zoom is None else default_zoom
    _validate_zoom(zoom)

    sportsground = Sportsground(
        user_id=user_id,
        name=name.strip(),
        address=address.strip(),
        latitude=latitude,
        longitude=longitude,
        default_zoom=zoom,
        notes=notes,
    )
    session.add(sportsground)
    await session.flush()
    await session.refresh(sportsground)
    logger.info(f"Created sportsground {sportsground.id} for user {user_id}")
    return sportsground_to_dict(sportsground, 0)


async def update_sportsground(
    session: AsyncSession,
    sportsground_id: int,
    updates: Dict,
    user_id: Optional[int] = None,
) -> Dict:
    """
    Apply a partial update.

    Admin updates (user_id None) may pass ``user_id`` in updates to transfer
    ownership; all of the sportsground's configurations move with it.
    """
    sportsground = await load_sportsground(session, sportsground_id, user_id)
    allowed = EDITABLE_FIELDS if user_id is not None else EDITABLE_FIELDS + ("user_id",)
    changes = {key: value for key, value in updates.items() if key in allowed and value is not None}

    for key in ("name", "address"):
        if key in changes:
            if not changes[key].strip():
                raise ValueError(f"{key.capitalize()} cannot be empty")
            changes[key] = changes[key].strip()
    configuration_service.validate_coordinates(
        changes.get("latitude", sportsground.latitude),
        changes.get("longitude", sportsground.longitude),
    )
    if "default_zoom" in changes:
        _validate_zoom(changes["default_zoom"])

    new_owner_id = changes.get("user_id")
    if new_owner_id is not None and new_owner_id != sportsground.user_id:
        await user_service.get_user_model(session, new_owner_id)
        await session.execute(
            update(FieldConfiguration)
            .where(FieldConfiguration.sportsground_id == sportsground.id)
            .values(user_id=new_owner_id)
        )
        logger.info(
            f"Transferred sportsground {sportsground.id} from user {sportsground.user_id} to {new_owner_id}"
        )

    for key, value in changes.items():
        setattr(sportsground, key, value)
    await session.flush()
    await session.refresh(sportsground)
    return await get_sportsground(session, sportsground.id)


async def delete_sportsground(
    session: AsyncSession, sportsground_id: int, user_id: Optional[int] = None
) -> None:
    """Delete a sportsground with its configurations, bookings and booking groups."""
    sportsground = await load_sportsground(session, sportsground_id, user_id)
    configuration_ids = select(FieldConfiguration.id).where(
        FieldConfiguration.sportsground_id == sportsground.id
    )
    await session.execute(delete(Booking).where(Booking.configuration_id.in_(configuration_ids)))
    await session.execute(delete(BookingGroup).where(BookingGroup.sportsground_id == sportsground.id))
    await session.execute(
        delete(FieldConfiguration).where(FieldConfiguration.sportsground_id == sportsground.id)
    )
    await session.execute(delete(Sportsground).where(Sportsground.id == sportsground.id))
    logger.info(f"Deleted sportsground {sportsground_id}")
