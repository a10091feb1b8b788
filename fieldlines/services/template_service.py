"""
Field template service: listing, lookup and admin management of templates.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fieldlines.database.models import FieldConfiguration, FieldTemplate
from fieldlines.editor.handles import DimensionBounds
from fieldlines.services.errors import NotFoundError

logger = logging.getLogger(__name__)

TEMPLATE_FIELDS = (
    "sport",
    "name",
    "description",
    "min_length",
    "max_length",
    "min_width",
    "max_width",
    "default_length",
    "default_width",
    "interior_elements",
    "is_active",
)


def template_to_dict(template: FieldTemplate) -> Dict:
    return {
        "id": template.id,
        "sport": template.sport,
        "name": template.name,
        "description": template.description,
        "min_length": template.min_length,
        "max_length": template.max_length,
        "min_width": template.min_width,
        "max_width": template.max_width,
        "default_length": template.default_length,
        "default_width": template.default_width,
        "interior_elements": template.interior_elements or {},
        "is_active": template.is_active,
    }


def template_summary(template: Optional[FieldTemplate]) -> Optional[Dict]:
    if template is None:
        return None
    return {"id": template.id, "name": template.name, "sport": template.sport}


def bounds_for(template: FieldTemplate) -> DimensionBounds:
    return DimensionBounds(
        min_length=template.min_length,
        max_length=template.max_length,
        min_width=template.min_width,
        max_width=template.max_width,
    )


def validate_dimensions(
    template: FieldTemplate, length: Optional[float], width: Optional[float]
) -> None:
    """
    Check configuration dimensions against the template's bounds.

    Raises:
        ValueError: With a message naming the allowed range
    """
    if length is not None and not (template.min_length <= length <= template.max_length):
        raise ValueError(
            f"Length must be between {template.min_length:g}m and {template.max_length:g}m"
        )
    if width is not None and not (template.min_width <= width <= template.max_width):
        raise ValueError(
            f"Width must be between {template.min_width:g}m and {template.max_width:g}m"
        )


def _validate_template_values(values: Dict) -> None:
    for key in ("min_length", "max_length", "min_width", "max_width", "default_length", "default_width"):
        if values.get(key) is not None and values[key] <= 0:
            raise ValueError(f"{key} must be positive")
    if values["min_length"] > values["max_length"]:
        raise ValueError("min_length cannot exceed max_length")
    if values["min_width"] > values["max_width"]:
        raise ValueError("min_width cannot exceed max_width")
    if not values["min_length"] <= values["default_length"] <= values["max_length"]:
        raise ValueError("default_length must be within the length range")
    if not values["min_width"] <= values["default_width"] <= values["max_width"]:
        raise ValueError("default_width must be within the width range")


async def get_template_model(session: AsyncSession, template_id: int) -> FieldTemplate:
    template = await session.get(FieldTemplate, template_id)
    if not template:
        raise NotFoundError("Template not found")
    return template


async def get_active_template_model(session: AsyncSession, template_id: int) -> FieldTemplate:
    """
    Load a template that can be used for new or updated configurations.

    Raises:
        NotFoundError: Unknown template
        ValueError: Template is inactive
    """
    template = await get_template_model(session, template_id)
    if not template.is_active:
        raise ValueError("Template is not active")
    return template


async def list_active_templates(session: AsyncSession) -> List[Dict]:
    result = await session.execute(
        select(FieldTemplate)
        .where(FieldTemplate.is_active == True)  # noqa: E712
        .order_by(FieldTemplate.sport, FieldTemplate.name)
    )
    return [template_to_dict(t) for t in result.scalars().all()]


async def get_template(session: AsyncSession, template_id: int, active_only: bool = True) -> Dict:
    template = await get_template_model(session, template_id)
    if active_only and not template.is_active:
        raise NotFoundError("Template not found")
    return template_to_dict(template)


async def list_all_templates(session: AsyncSession) -> List[Dict]:
    """All templates including inactive ones, with configuration counts."""
    counts = (
        select(FieldConfiguration.template_id, func.count(FieldConfiguration.id).label("n"))
        .group_by(FieldConfiguration.template_id)
        .subquery()
    )
    result = await session.execute(
        select(FieldTemplate, func.coalesce(counts.c.n, 0))
        .outerjoin(counts, counts.c.template_id == FieldTemplate.id)
        .order_by(FieldTemplate.sport, FieldTemplate.name)
    )
    templates = []
    for template, configuration_count in result.all():
        data = template_to_dict(template)
        data["configuration_count"] = configuration_count
        templates.append(data)
    return templates


async def create_template(session: AsyncSession, **values) -> Dict:
    data = {key: values.get(key) for key in TEMPLATE_FIELDS}
    if not (data["sport"] or "").strip() or not (data["name"] or "").strip():
        raise ValueError("Sport and name are required")
    _validate_template_values(data)
    if data["interior_elements"] is None:
        data["interior_elements"] = {}
    if data["is_active"] is None:
        data["is_active"] = True
    template = FieldTemplate(**data)
    session.add(template)
    await session.flush()
    logger.info(f"Created field template {template.id} ({template.sport}/{template.name})")
    return template_to_dict(template)


async def update_template(session: AsyncSession, template_id: int, **values) -> Dict:
    template = await get_template_model(session, template_id)
    updates = {key: value for key, value in values.items() if key in TEMPLATE_FIELDS and value is not None}
    merged = template_to_dict(template)
    merged.update(updates)
    _validate_template_values(merged)
    for key, value in updates.items():
        setattr(template, key, value)
    await session.flush()
    return template_to_dict(template)


async def deactivate_template(session: AsyncSession, template_id: int) -> Dict:
    """Soft delete: existing configurations keep their template."""
    template = await get_template_model(session, template_id)
    template.is_active = False
    await session.flush()
    return template_to_dict(template)
