"""Booking route handlers (owner scoped)."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fieldlines.api.routes import domain_error
from fieldlines.api.auth_dependencies import get_current_user
from fieldlines.database.db import get_db_session
from fieldlines.models.schemas import BatchBookingCreate, BookingCreate, BookingUpdate
from fieldlines.services import booking_service, email_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/bookings", response_model=List[Dict[str, Any]])
async def list_bookings(
    status: Optional[str] = None,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await booking_service.list_bookings(session, current_user["id"], status=status)
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "listing bookings")


@router.post("/api/bookings", response_model=Dict[str, Any], status_code=201)
async def create_booking(
    payload: BookingCreate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a booking and notify both the customer and the provider."""
    try:
        booking = await booking_service.create_booking(session, current_user["id"], **payload.model_dump())
        await email_service.send_booking_confirmation_email(current_user, booking, session)
        await email_service.send_provider_notification_email(current_user, booking, session)
        return booking
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "creating booking")


@router.post("/api/bookings/batch", response_model=Dict[str, Any], status_code=201)
async def create_batch_booking(
    payload: BatchBookingCreate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Book several fields of one sportsground at once."""
    try:
        overrides = {
            o.configuration_id: o.model_dump(exclude={"configuration_id"}, exclude_none=True)
            for o in payload.overrides
        }
        group = await booking_service.create_batch_booking(
            session,
            current_user["id"],
            payload.sportsground_id,
            payload.configuration_ids,
            payload.preferred_date,
            payload.preferred_time,
            payload.contact_preference,
            alternative_date=payload.alternative_date,
            notes=payload.notes,
            overrides=overrides,
        )
        await email_service.send_batch_confirmation_email(current_user, group, session)
        for booking in group["bookings"]:
            await email_service.send_provider_notification_email(current_user, booking, session)
        return group
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "creating batch booking")


@router.get("/api/bookings/groups/{group_id}", response_model=Dict[str, Any])
async def get_booking_group(
    group_id: int,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await booking_service.get_booking_group(session, group_id, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "getting booking group")


@router.delete("/api/bookings/groups/{group_id}", response_model=Dict[str, Any])
async def cancel_booking_group(
    group_id: int,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await booking_service.cancel_booking_group(session, group_id, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "cancelling booking group")


@router.get("/api/bookings/{booking_id}", response_model=Dict[str, Any])
async def get_booking(
    booking_id: int,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await booking_service.get_booking(session, booking_id, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "getting booking")


@router.put("/api/bookings/{booking_id}", response_model=Dict[str, Any])
async def update_booking(
    booking_id: int,
    payload: BookingUpdate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await booking_service.update_booking(
            session, booking_id, payload.model_dump(exclude_unset=True), current_user["id"]
        )
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "updating booking")


@router.post("/api/bookings/{booking_id}/cancel", response_model=Dict[str, Any])
async def cancel_booking(
    booking_id: int,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await booking_service.cancel_booking(session, booking_id, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        raise domain_error(e, "cancelling booking")
