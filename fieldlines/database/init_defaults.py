#!/usr/bin/env python3
"""
Initialize default database values.
This script is run on startup to populate the default field template and
system settings. Existing rows are left untouched.
"""

import asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from fieldlines.database.db import AsyncSessionLocal
from fieldlines.database.models import FieldTemplate, SystemSetting
from fieldlines.utils.constants import (
    DEFAULT_MAINTENANCE_MESSAGE,
    MAINTENANCE_MESSAGE_KEY,
    MAINTENANCE_MODE_KEY,
)

DEFAULT_TEMPLATES = [
    {
        "sport": "soccer",
        "name": "11v11 Full Field",
        "description": "Full-size soccer field with FIFA markings",
        "min_length": 90.0,
        "max_length": 120.0,
        "min_width": 45.0,
        "max_width": 90.0,
        "default_length": 100.0,
        "default_width": 64.0,
        "interior_elements": {
            "center_circle_radius": 9.15,
            "penalty_area": {"depth": 16.5, "width": 40.3},
            "goal_area": {"depth": 5.5, "width": 18.3},
            "penalty_mark_distance": 11.0,
            "penalty_arc_radius": 9.15,
            "corner_arc_radius": 1.0,
        },
        "is_active": True,
    },
]

DEFAULT_SETTINGS = {
    MAINTENANCE_MODE_KEY: "false",
    MAINTENANCE_MESSAGE_KEY: DEFAULT_MAINTENANCE_MESSAGE,
}


async def seed_defaults(session: AsyncSession) -> None:
    """Insert missing default templates and settings (no commit)."""
    for template in DEFAULT_TEMPLATES:
        result = await session.execute(
            select(FieldTemplate.id).where(
                FieldTemplate.sport == template["sport"], FieldTemplate.name == template["name"]
            )
        )
        if result.scalar_one_or_none() is None:
            session.add(FieldTemplate(**template))
            print(f"✓ Added field template: {template['name']}")

    for key, value in DEFAULT_SETTINGS.items():
        result = await session.execute(select(SystemSetting.id).where(SystemSetting.key == key))
        if result.scalar_one_or_none() is None:
            session.add(SystemSetting(key=key, value=value))
            print(f"✓ Set default setting: {key}")

    await session.flush()


async def init_defaults():
    """Initialize default database values."""
    print("Initializing default database values...")

    async with AsyncSessionLocal() as session:
        await seed_defaults(session)
        await session.commit()

    print("✓ Default values initialized")


if __name__ == "__main__":
    asyncio.run(init_defaults())
