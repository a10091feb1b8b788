"""001_initial_schema

Revision ID: 001
Revises:
Create Date: 2026-03-02 09:30:00.000000

Initial schema - creates all tables from the current models:
- Accounts: users, admin_invitations, user_invitations
- Venues and layouts: sportsgrounds, field_templates, field_configurations
- Bookings: booking_groups, bookings
- Runtime configuration: system_settings
"""
from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables from scratch."""
    from fieldlines.database.db import Base
    from fieldlines.database import models  # noqa: F401

    bind = op.get_bind()
    Base.metadata.create_all(bind=bind, checkfirst=True)


def downgrade() -> None:
    """Drop all tables."""
    from fieldlines.database.db import Base
    from fieldlines.database import models  # noqa: F401

    bind = op.get_bind()
    Base.metadata.drop_all(bind=bind, checkfirst=True)
