"""
Field configuration service: saved field placements on a sportsground.

Dimensions are checked against the template's bounds on every create and
update; the editor clamps interactively, this layer rejects.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fieldlines.database.models import Booking, FieldConfiguration, Sportsground
from fieldlines.editor.geometry import MAX_ABS_LATITUDE, LatLng, normalize_rotation
from fieldlines.editor.markings import LINE_COLORS
from fieldlines.editor.session import EditorSession, EditorTemplate, LayoutState
from fieldlines.services import template_service, user_service
from fieldlines.services.errors import NotFoundError

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "name",
    "template_id",
    "latitude",
    "longitude",
    "rotation_degrees",
    "length_meters",
    "width_meters",
    "line_color",
)


def configuration_to_dict(configuration: FieldConfiguration) -> Dict:
    """Serialize a configuration loaded with its template and sportsground."""
    sportsground = configuration.sportsground
    return {
        "id": configuration.id,
        "user_id": configuration.user_id,
        "sportsground_id": configuration.sportsground_id,
        "template_id": configuration.template_id,
        "name": configuration.name,
        "latitude": configuration.latitude,
        "longitude": configuration.longitude,
        "rotation_degrees": configuration.rotation_degrees,
        "length_meters": configuration.length_meters,
        "width_meters": configuration.width_meters,
        "line_color": configuration.line_color,
        "created_at": configuration.created_at.isoformat() if configuration.created_at else None,
        "template": template_service.template_summary(configuration.template),
        "sportsground": {
            "id": sportsground.id,
            "name": sportsground.name,
            "address": sportsground.address,
        }
        if sportsground
        else None,
    }


def _with_relations(stmt):
    return stmt.options(
        selectinload(FieldConfiguration.template),
        selectinload(FieldConfiguration.sportsground),
    )


def validate_line_color(line_color: str) -> None:
    if line_color not in LINE_COLORS:
        raise ValueError(f"Invalid line color: {line_color}")


def validate_coordinates(latitude: float, longitude: float) -> None:
    # the editor cannot convert meters to longitude degrees at the poles
    if not -MAX_ABS_LATITUDE < latitude < MAX_ABS_LATITUDE:
        raise ValueError(f"Latitude must be between -{MAX_ABS_LATITUDE} and {MAX_ABS_LATITUDE}")
    if not -180 <= longitude <= 180:
        raise ValueError("Longitude must be between -180 and 180")


def _editor_session(template, name: str, state: LayoutState) -> EditorSession:
    """Editor state for a placement; its save payload is what gets stored."""
    editor_template = EditorTemplate.from_template(template_service.template_to_dict(template))
    return EditorSession(editor_template, name, state)


async def load_configuration(
    session: AsyncSession, configuration_id: int, user_id: Optional[int] = None
) -> FieldConfiguration:
    """
    Load a configuration with its relations.

    Args:
        user_id: If given, the configuration must belong to this user

    Raises:
        NotFoundError: Missing or owned by someone else
    """
    result = await session.execute(
        _with_relations(select(FieldConfiguration).where(FieldConfiguration.id == configuration_id))
    )
    configuration = result.scalar_one_or_none()
    if not configuration or (user_id is not None and configuration.user_id != user_id):
        raise NotFoundError("Configuration not found")
    return configuration


async def _load_sportsground(
    session: AsyncSession, sportsground_id: int, owner_id: Optional[int]
) -> Sportsground:
    sportsground = await session.get(Sportsground, sportsground_id)
    if not sportsground or (owner_id is not None and sportsground.user_id != owner_id):
        raise NotFoundError("Sportsground not found")
    return sportsground


async def list_configurations(
    session: AsyncSession,
    user_id: Optional[int] = None,
    sportsground_id: Optional[int] = None,
) -> List[Dict]:
    """List configurations, newest first. user_id None lists everyone's (admin)."""
    stmt = _with_relations(select(FieldConfiguration))
    if user_id is not None:
        stmt = stmt.where(FieldConfiguration.user_id == user_id)
    if sportsground_id is not None:
        stmt = stmt.where(FieldConfiguration.sportsground_id == sportsground_id)
    result = await session.execute(
        stmt.order_by(FieldConfiguration.created_at.desc(), FieldConfiguration.id.desc())
    )
    return [configuration_to_dict(c) for c in result.scalars().all()]


async def get_configuration(
    session: AsyncSession, configuration_id: int, user_id: Optional[int] = None
) -> Dict:
    return configuration_to_dict(await load_configuration(session, configuration_id, user_id))


async def create_configuration(
    session: AsyncSession,
    user_id: int,
    sportsground_id: int,
    template_id: int,
    name: str,
    latitude: float,
    longitude: float,
    rotation_degrees: float = 0.0,
    length_meters: Optional[float] = None,
    width_meters: Optional[float] = None,
    line_color: str = "white",
    require_sportsground_owner: bool = True,
) -> Dict:
    """
    Save a new field placement.

    Length and width default to the template defaults.

    Raises:
        NotFoundError: Sportsground (not owned by user_id) or template missing
        ValueError: Inactive template, out-of-bounds dimensions, bad input
    """
    await _load_sportsground(
        session, sportsground_id, user_id if require_sportsground_owner else None
    )
    template = await template_service.get_active_template_model(session, template_id)

    length = template.default_length if length_meters is None else length_meters
    width = template.default_width if width_meters is None else width_meters
    template_service.validate_dimensions(template, length, width)
    validate_coordinates(latitude, longitude)
    validate_line_color(line_color)
    editor = _editor_session(
        template,
        name or "",
        LayoutState(
            center=LatLng(latitude, longitude),
            length=length,
            width=width,
            rotation=normalize_rotation(rotation_degrees or 0.0),
            line_color=line_color,
        ),
    )

    configuration = FieldConfiguration(
        user_id=user_id,
        sportsground_id=sportsground_id,
        template_id=template.id,
        **editor.to_configuration_payload(),
    )
    session.add(configuration)
    await session.flush()
    logger.info(f"Created configuration {configuration.id} on sportsground {sportsground_id}")
    return await get_configuration(session, configuration.id)


async def update_configuration(
    session: AsyncSession,
    configuration_id: int,
    updates: Dict,
    user_id: Optional[int] = None,
) -> Dict:
    """
    Apply a partial update.

    Args:
        updates: Any of EDITABLE_FIELDS; admins may also pass sportsground_id and user_id
        user_id: Owner scope; None for admin updates

    Ownership transfer (``updates["user_id"]``) requires the new owner to own the
    configuration's sportsground.

    Raises:
        NotFoundError: Configuration, template, sportsground or new owner missing
        ValueError: Validation failure or invalid ownership transfer
    """
    configuration = await load_configuration(session, configuration_id, user_id)
    allowed = EDITABLE_FIELDS if user_id is not None else EDITABLE_FIELDS + ("sportsground_id", "user_id")
    changes = {key: value for key, value in updates.items() if key in allowed and value is not None}

    template = configuration.template
    if "template_id" in changes and changes["template_id"] != configuration.template_id:
        template = await template_service.get_active_template_model(session, changes["template_id"])

    template_service.validate_dimensions(
        template,
        changes.get("length_meters", configuration.length_meters),
        changes.get("width_meters", configuration.width_meters),
    )
    validate_coordinates(
        changes.get("latitude", configuration.latitude),
        changes.get("longitude", configuration.longitude),
    )
    if "line_color" in changes:
        validate_line_color(changes["line_color"])
    editor = _editor_session(
        template,
        changes.get("name", configuration.name),
        LayoutState(
            center=LatLng(
                changes.get("latitude", configuration.latitude),
                changes.get("longitude", configuration.longitude),
            ),
            length=changes.get("length_meters", configuration.length_meters),
            width=changes.get("width_meters", configuration.width_meters),
            rotation=normalize_rotation(changes.get("rotation_degrees", configuration.rotation_degrees)),
            line_color=changes.get("line_color", configuration.line_color),
        ),
    )
    payload = editor.to_configuration_payload()
    changes.update({key: payload[key] for key in payload if key in changes})

    new_owner_id = changes.get("user_id", configuration.user_id)
    new_sportsground_id = changes.get("sportsground_id", configuration.sportsground_id)
    if new_owner_id != configuration.user_id or new_sportsground_id != configuration.sportsground_id:
        await user_service.get_user_model(session, new_owner_id)
        sportsground = await _load_sportsground(session, new_sportsground_id, None)
        if sportsground.user_id != new_owner_id:
            raise ValueError("The new owner must own the sportsground this configuration belongs to")

    for key, value in changes.items():
        setattr(configuration, key, value)
    await session.flush()
    session.expire(configuration, ["template", "sportsground"])
    return await get_configuration(session, configuration_id)


async def delete_configuration(
    session: AsyncSession, configuration_id: int, user_id: Optional[int] = None
) -> None:
    """Delete a configuration and its bookings."""
    configuration = await load_configuration(session, configuration_id, user_id)
    await session.execute(delete(Booking).where(Booking.configuration_id == configuration.id))
    await session.execute(delete(FieldConfiguration).where(FieldConfiguration.id == configuration.id))
    logger.info(f"Deleted configuration {configuration_id}")


async def duplicate_configuration(
    session: AsyncSession, configuration_id: int, user_id: Optional[int] = None
) -> Dict:
    """Copy a configuration as "{name} (Copy)" on the same sportsground."""
    source = await load_configuration(session, configuration_id, user_id)
    copy = FieldConfiguration(
        user_id=source.user_id,
        sportsground_id=source.sportsground_id,
        template_id=source.template_id,
        name=f"{source.name} (Copy)",
        latitude=source.latitude,
        longitude=source.longitude,
        rotation_degrees=source.rotation_degrees,
        length_meters=source.length_meters,
        width_meters=source.width_meters,
        line_color=source.line_color,
    )
    session.add(copy)
    await session.flush()
    return await get_configuration(session, copy.id)


async def get_configuration_layout(
    session: AsyncSession, configuration_id: int, user_id: Optional[int] = None
) -> Dict:
    """Outline, interior markings and drag handles of a saved configuration in lat/lng."""
    configuration = await load_configuration(session, configuration_id, user_id)
    editor = EditorSession.from_configuration(
        configuration_to_dict(configuration), template_service.template_to_dict(configuration.template)
    )
    data = editor.layout().as_dict()
    data["handles"] = [handle.as_dict() for handle in editor.handles()]
    data["configuration_id"] = configuration.id
    return data
