"""
Pydantic models for API request/response validation.
"""

from datetime import date
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, model_validator


# ----------------------------------------------------------------------------
# Auth and users
# ----------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request to create a customer account."""

    email: str
    password: str
    full_name: str
    phone: Optional[str] = None
    organization: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenRequest(BaseModel):
    """Email verification by token."""

    token: str


class EmailRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str


class InvitedRegisterRequest(BaseModel):
    """Registration through an admin or user invitation link."""

    token: str
    password: str
    full_name: str
    phone: Optional[str] = None
    organization: Optional[str] = None


class UserResponse(BaseModel):
    id: int
    email: str
    full_name: str
    phone: Optional[str] = None
    organization: Optional[str] = None
    role: str
    email_verified: bool
    suspended: bool = False
    suspended_at: Optional[str] = None
    last_login_at: Optional[str] = None
    created_at: Optional[str] = None


class AuthResponse(BaseModel):
    """Response after successful login."""

    token: str
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


class UpdateProfileRequest(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    organization: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


# ----------------------------------------------------------------------------
# Sportsgrounds, templates, configurations
# ----------------------------------------------------------------------------


class SportsgroundCreate(BaseModel):
    """Coordinates are geocoded from the address when omitted."""

    name: str
    address: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    default_zoom: Optional[int] = None
    notes: Optional[str] = None


class SportsgroundUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    default_zoom: Optional[int] = None
    notes: Optional[str] = None


class AdminSportsgroundCreate(SportsgroundCreate):
    user_id: int


class AdminSportsgroundUpdate(SportsgroundUpdate):
    """user_id transfers ownership together with every configuration."""

    user_id: Optional[int] = None


class TemplateCreate(BaseModel):
    sport: str
    name: str
    description: Optional[str] = None
    min_length: float
    max_length: float
    min_width: float
    max_width: float
    default_length: float
    default_width: float
    interior_elements: Dict = Field(default_factory=dict)
    is_active: bool = True


class TemplateUpdate(BaseModel):
    sport: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    min_length: Optional[float] = None
    max_length: Optional[float] = None
    min_width: Optional[float] = None
    max_width: Optional[float] = None
    default_length: Optional[float] = None
    default_width: Optional[float] = None
    interior_elements: Optional[Dict] = None
    is_active: Optional[bool] = None


class ConfigurationCreate(BaseModel):
    """Length and width default to the template's defaults."""

    sportsground_id: int
    template_id: int
    name: str
    latitude: float
    longitude: float
    rotation_degrees: float = 0.0
    length_meters: Optional[float] = None
    width_meters: Optional[float] = None
    line_color: str = "white"


class ConfigurationUpdate(BaseModel):
    name: Optional[str] = None
    template_id: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    rotation_degrees: Optional[float] = None
    length_meters: Optional[float] = None
    width_meters: Optional[float] = None
    line_color: Optional[str] = None


class AdminConfigurationCreate(ConfigurationCreate):
    user_id: int


class AdminConfigurationUpdate(ConfigurationUpdate):
    """user_id and sportsground_id changes require the new owner to own the sportsground."""

    user_id: Optional[int] = None
    sportsground_id: Optional[int] = None


# ----------------------------------------------------------------------------
# Editor geometry
# ----------------------------------------------------------------------------


class LatLngModel(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float


class Bounds(BaseModel):
    min_length: float
    max_length: float
    min_width: float
    max_width: float


class LayoutRequest(BaseModel):
    """Current field state as the map client sees it."""

    center: LatLngModel
    length_meters: float = Field(gt=0)
    width_meters: float = Field(gt=0)
    rotation_degrees: float = 0.0
    line_color: str = "white"
    sport: str = "soccer"
    template_id: Optional[int] = None


class ResizeRequest(LayoutRequest):
    """Either template_id or bounds limits the new size; with neither, no clamp."""

    edge: str
    drag_point: LatLngModel
    bounds: Optional[Bounds] = None


class RotateRequest(LayoutRequest):
    corner: str
    drag_point: LatLngModel


# ----------------------------------------------------------------------------
# Bookings
# ----------------------------------------------------------------------------


class BookingCreate(BaseModel):
    configuration_id: int
    preferred_date: date
    preferred_time: str
    contact_preference: str
    alternative_date: Optional[date] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class BookingUpdate(BaseModel):
    preferred_date: Optional[date] = None
    preferred_time: Optional[str] = None
    contact_preference: Optional[str] = None
    alternative_date: Optional[date] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class BookingOverride(BaseModel):
    """Per-field booking details that replace the batch defaults."""

    configuration_id: int
    preferred_date: Optional[date] = None
    preferred_time: Optional[str] = None
    alternative_date: Optional[date] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class BatchBookingCreate(BaseModel):
    sportsground_id: int
    configuration_ids: List[int] = Field(min_length=1, max_length=20)
    preferred_date: date
    preferred_time: str
    contact_preference: str
    alternative_date: Optional[date] = None
    notes: Optional[str] = Field(default=None, max_length=500)
    overrides: List[BookingOverride] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_overrides(self):
        """Overrides must refer to configurations in the batch."""
        unknown = [o.configuration_id for o in self.overrides if o.configuration_id not in self.configuration_ids]
        if unknown:
            raise ValueError(f"Override for configuration {unknown[0]} which is not in the batch")
        return self


class AdminBookingCreate(BookingCreate):
    user_id: int
    status: str = "pending"


class AdminBookingUpdate(BookingUpdate):
    status: Optional[str] = None


class BookingStatusUpdate(BaseModel):
    status: str


# ----------------------------------------------------------------------------
# Admin
# ----------------------------------------------------------------------------


class RoleUpdate(BaseModel):
    role: str


class SuspendRequest(BaseModel):
    suspended: bool = True


class InvitationCreate(BaseModel):
    email: str


class SettingUpdate(BaseModel):
    value: str
