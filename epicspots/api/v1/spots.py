"""Spots API routes — owners list spots, anyone authenticated can look them up."""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from epicspots.api.deps import (
    get_current_active_user,
    get_db,
    get_reservation_service,
    require_capability,
)
from epicspots.models.spot import Spot
from epicspots.models.user import User
from epicspots.reservations.policies import Capability
from epicspots.schemas.spot import (
    AvailabilityResponse,
    SpotCreate,
    SpotListResponse,
    SpotResponse,
)
from epicspots.services.reservation_service import ReservationService

router = APIRouter(prefix="/api/v1/spots", tags=["spots"])


@router.post(
    "",
    response_model=SpotResponse,
    status_code=status.HTTP_201_CREATED,
    summary="List a new spot",
)
async def create_spot(
    body: SpotCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_capability(Capability.MANAGE_SPOTS)),
) -> SpotResponse:
    """Create a spot owned by the authenticated owner."""
    spot = Spot(owner_id=current_user.id, **body.model_dump())
    db.add(spot)
    await db.flush()
    await db.refresh(spot)
    return SpotResponse.model_validate(spot)


@router.get(
    "",
    response_model=SpotListResponse,
    summary="List spots owned by the current user",
)
async def list_spots(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_capability(Capability.MANAGE_SPOTS)),
) -> SpotListResponse:
    owned = Spot.owner_id == current_user.id

    total_result = await db.execute(select(func.count()).select_from(Spot).where(owned))
    total = total_result.scalar_one()

    result = await db.execute(select(Spot).where(owned).order_by(Spot.created_at.desc()).offset(skip).limit(limit))
    items = list(result.scalars().all())

    return SpotListResponse(items=[SpotResponse.model_validate(s) for s in items], total=total)


@router.get(
    "/{spot_id}",
    response_model=SpotResponse,
    summary="Get a spot",
)
async def get_spot(
    spot_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> SpotResponse:
    spot = await db.get(Spot, spot_id)
    if spot is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Spot not found",
        )
    return SpotResponse.model_validate(spot)


@router.get(
    "/{spot_id}/availability",
    response_model=AvailabilityResponse,
    summary="Check whether a date range is free on a spot",
)
async def get_availability(
    spot_id: uuid.UUID,
    date_from: date = Query(..., description="Check-in date (inclusive)"),
    date_to: date = Query(..., description="Check-out date (exclusive)"),
    service: ReservationService = Depends(get_reservation_service),
    _user: User = Depends(get_current_active_user),
) -> AvailabilityResponse:
    """Advisory only: a later booking attempt can still lose a race and get 409."""
    available = await service.is_available(spot_id, date_from, date_to)
    return AvailabilityResponse(spot_id=spot_id, date_from=date_from, date_to=date_to, available=available)
