"""
Field-layout editor route handlers.

Stateless geometry for the map client: it posts the current field state and a
drag position, and draws whatever comes back.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fieldlines.api.routes import domain_error
from fieldlines.api.auth_dependencies import get_current_user
from fieldlines.database.db import get_db_session
from fieldlines.database.models import FieldTemplate
from fieldlines.editor.geometry import LatLng
from fieldlines.editor.handles import (
    DimensionBounds,
    handle_positions,
    resize_from_edge,
    rotate_from_corner,
)
from fieldlines.editor.markings import LINE_COLORS, render_layout
from fieldlines.models.schemas import LayoutRequest, ResizeRequest, RotateRequest
from fieldlines.services import template_service

logger = logging.getLogger(__name__)
router = APIRouter()


def _layout_response(
    center: LatLng, length: float, width: float, rotation: float, line_color: str, sport: str
) -> Dict[str, Any]:
    if line_color not in LINE_COLORS:
        raise ValueError(f"Invalid line color: {line_color}")
    layout = render_layout(center, length, width, rotation, line_color, sport)
    return {
        "layout": layout.as_dict(),
        "handles": [h.as_dict() for h in handle_positions(center, length, width, rotation)],
    }


async def _template(session: AsyncSession, payload: LayoutRequest) -> Optional[FieldTemplate]:
    if payload.template_id is None:
        return None
    return await template_service.get_template_model(session, payload.template_id)


def _sport(template: Optional[FieldTemplate], payload: LayoutRequest) -> str:
    """A referenced template decides which markings are drawn."""
    return template.sport if template is not None else payload.sport


def _bounds(template: Optional[FieldTemplate], payload: ResizeRequest) -> Optional[DimensionBounds]:
    if template is not None:
        return template_service.bounds_for(template)
    if payload.bounds is not None:
        return DimensionBounds(**payload.bounds.model_dump())
    return None


@router.post("/api/editor/layout", response_model=Dict[str, Any])
async def layout(
    payload: LayoutRequest,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Outline, interior markings and handle positions for a field state."""
    try:
        template = await _template(session, payload)
        return _layout_response(
            LatLng(payload.center.lat, payload.center.lng),
            payload.length_meters,
            payload.width_meters,
            payload.rotation_degrees,
            payload.line_color,
            _sport(template, payload),
        )
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "rendering layout")


@router.post("/api/editor/resize", response_model=Dict[str, Any])
async def resize(
    payload: ResizeRequest,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Resize from an edge handle. The opposite edge stays put; the new size is
    clamped to the template bounds and ``clamped`` reports whether that happened.
    """
    try:
        template = await _template(session, payload)
        result = resize_from_edge(
            LatLng(payload.center.lat, payload.center.lng),
            payload.length_meters,
            payload.width_meters,
            payload.rotation_degrees,
            payload.edge,
            LatLng(payload.drag_point.lat, payload.drag_point.lng),
            _bounds(template, payload),
        )
        response = result.as_dict()
        response.update(
            _layout_response(
                result.center,
                result.length,
                result.width,
                payload.rotation_degrees,
                payload.line_color,
                _sport(template, payload),
            )
        )
        return response
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "resizing field")


@router.post("/api/editor/rotate", response_model=Dict[str, Any])
async def rotate(
    payload: RotateRequest,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Rotate from a corner handle; returns the new rotation in [0, 360)."""
    try:
        template = await _template(session, payload)
        center = LatLng(payload.center.lat, payload.center.lng)
        rotation = rotate_from_corner(
            center,
            payload.length_meters,
            payload.width_meters,
            payload.rotation_degrees,
            payload.corner,
            LatLng(payload.drag_point.lat, payload.drag_point.lng),
        )
        response = {"rotation_degrees": rotation}
        response.update(
            _layout_response(
                center,
                payload.length_meters,
                payload.width_meters,
                rotation,
                payload.line_color,
                _sport(template, payload),
            )
        )
        return response
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "rotating field")
