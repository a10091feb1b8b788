"""
SQLAlchemy ORM models for the FieldLines booking platform.
"""

import enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    Float,
    Date,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
    JSON,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fieldlines.database.db import Base


class UserRole(str, enum.Enum):
    """User role enum."""

    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class BookingStatus(str, enum.Enum):
    """Booking status enum."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PreferredTime(str, enum.Enum):
    """Time-of-day preference for a line-marking visit."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    FLEXIBLE = "flexible"


class ContactPreference(str, enum.Enum):
    """How the provider should get in touch about a booking."""

    PHONE = "phone"
    EMAIL = "email"
    BOTH = "both"


class LineColor(str, enum.Enum):
    """Paint colors available for field lines."""

    WHITE = "white"
    YELLOW = "yellow"
    BLUE = "blue"
    ORANGE = "orange"
    RED = "red"
    GREEN = "green"


class User(Base):
    """User accounts with email/password authentication."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, nullable=False, unique=True)
    password_hash = Column(String, nullable=False)
    full_name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    organization = Column(String, nullable=True)
    role = Column(String(20), default=UserRole.USER.value, nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)
    verification_token = Column(String, nullable=True, unique=True)
    reset_token = Column(String, nullable=True, unique=True)
    reset_token_expires = Column(DateTime(timezone=True), nullable=True)
    failed_login_attempts = Column(Integer, default=0, nullable=False)
    locked_until = Column(String, nullable=True)  # ISO timestamp
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    suspended = Column(Boolean, default=False, nullable=False)
    suspended_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    sportsgrounds = relationship(
        "Sportsground", back_populates="user", cascade="all, delete-orphan"
    )
    configurations = relationship(
        "FieldConfiguration", back_populates="user", cascade="all, delete-orphan"
    )
    bookings = relationship("Booking", back_populates="user", cascade="all, delete-orphan")
    booking_groups = relationship(
        "BookingGroup", back_populates="user", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_users_email", "email"),
        Index("idx_users_role", "role"),
    )


class Sportsground(Base):
    """A physical venue that holds one or more fields."""

    __tablename__ = "sportsgrounds"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    address = Column(String, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    default_zoom = Column(Integer, default=18, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="sportsgrounds")
    configurations = relationship(
        "FieldConfiguration", back_populates="sportsground", cascade="all, delete-orphan"
    )
    booking_groups = relationship(
        "BookingGroup", back_populates="sportsground", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_sportsgrounds_user", "user_id"),
        CheckConstraint("latitude >= -90 AND latitude <= 90", name="ck_sportsgrounds_latitude"),
        CheckConstraint(
            "longitude >= -180 AND longitude <= 180", name="ck_sportsgrounds_longitude"
        ),
        CheckConstraint("default_zoom >= 1 AND default_zoom <= 22", name="ck_sportsgrounds_zoom"),
    )


class FieldTemplate(Base):
    """Layout rules for one sport: dimension ranges, defaults, interior markings."""

    __tablename__ = "field_templates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sport = Column(String, nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    min_length = Column(Float, nullable=False)
    max_length = Column(Float, nullable=False)
    min_width = Column(Float, nullable=False)
    max_width = Column(Float, nullable=False)
    default_length = Column(Float, nullable=False)
    default_width = Column(Float, nullable=False)
    interior_elements = Column(JSON, nullable=False, default=dict)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    configurations = relationship("FieldConfiguration", back_populates="template")

    __table_args__ = (
        Index("idx_field_templates_sport_active", "sport", "is_active"),
        CheckConstraint("min_length <= max_length", name="ck_field_templates_length_range"),
        CheckConstraint("min_width <= max_width", name="ck_field_templates_width_range"),
    )


class FieldConfiguration(Base):
    """A saved field placement on a sportsground."""

    __tablename__ = "field_configurations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    sportsground_id = Column(
        Integer, ForeignKey("sportsgrounds.id", ondelete="CASCADE"), nullable=False
    )
    template_id = Column(Integer, ForeignKey("field_templates.id"), nullable=False)
    name = Column(String, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    rotation_degrees = Column(Float, default=0.0, nullable=False)
    length_meters = Column(Float, nullable=False)
    width_meters = Column(Float, nullable=False)
    line_color = Column(String(20), default=LineColor.WHITE.value, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="configurations")
    sportsground = relationship("Sportsground", back_populates="configurations")
    template = relationship("FieldTemplate", back_populates="configurations")
    bookings = relationship(
        "Booking", back_populates="configuration", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_field_configurations_user", "user_id"),
        Index("idx_field_configurations_sportsground", "sportsground_id"),
        CheckConstraint(
            "rotation_degrees >= 0 AND rotation_degrees < 360",
            name="ck_field_configurations_rotation",
        ),
    )


class BookingGroup(Base):
    """A batch of bookings for several fields on one sportsground."""

    __tablename__ = "booking_groups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    sportsground_id = Column(
        Integer, ForeignKey("sportsgrounds.id", ondelete="CASCADE"), nullable=False
    )
    reference_number = Column(String(20), nullable=False, unique=True)
    default_preferred_date = Column(Date, nullable=False)
    default_preferred_time = Column(String(20), nullable=False)
    alternative_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    contact_preference = Column(String(20), nullable=False)
    status = Column(String(20), default=BookingStatus.PENDING.value, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="booking_groups")
    sportsground = relationship("Sportsground", back_populates="booking_groups")
    bookings = relationship("Booking", back_populates="booking_group")

    __table_args__ = (Index("idx_booking_groups_user", "user_id"),)


class Booking(Base):
    """A line-marking service request against one field configuration."""

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    configuration_id = Column(
        Integer, ForeignKey("field_configurations.id", ondelete="CASCADE"), nullable=False
    )
    booking_group_id = Column(
        Integer, ForeignKey("booking_groups.id", ondelete="SET NULL"), nullable=True
    )
    reference_number = Column(String(20), nullable=False, unique=True)
    preferred_date = Column(Date, nullable=False)
    preferred_time = Column(String(20), nullable=False)
    alternative_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    contact_preference = Column(String(20), nullable=False)
    status = Column(String(20), default=BookingStatus.PENDING.value, nullable=False)
    uses_group_defaults = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="bookings")
    configuration = relationship("FieldConfiguration", back_populates="bookings")
    booking_group = relationship("BookingGroup", back_populates="bookings")

    __table_args__ = (
        Index("idx_bookings_user_status", "user_id", "status"),
        Index("idx_bookings_preferred_date", "preferred_date"),
        Index("idx_bookings_group", "booking_group_id"),
    )


class AdminInvitation(Base):
    """Invitation for a new administrator account (sent by a super admin)."""

    __tablename__ = "admin_invitations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, nullable=False, unique=True)
    token = Column(String, nullable=False, unique=True)
    invited_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    inviter = relationship("User", foreign_keys=[invited_by])


class UserInvitation(Base):
    """Invitation for a new customer account (sent by an admin)."""

    __tablename__ = "user_invitations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, nullable=False, unique=True)
    token = Column(String, nullable=False, unique=True)
    invited_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    inviter = relationship("User", foreign_keys=[invited_by])


class SystemSetting(Base):
    """Runtime configuration editable by admins (maintenance mode, etc.)."""

    __tablename__ = "system_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String, nullable=False, unique=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    updated_by = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )  # Admin who last updated the setting
