"""User-facing routes — profile with activity counts and the owner dashboard."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from epicspots.api.deps import get_current_active_user, get_reservation_service
from epicspots.models.user import User
from epicspots.schemas.dashboard import (
    DashboardReservation,
    DashboardResponse,
    DashboardSpot,
    DashboardStatistics,
)
from epicspots.schemas.reservation import ReservationResponse, UserSummaryResponse
from epicspots.schemas.spot import SpotSummaryResponse
from epicspots.schemas.user import UserProfileResponse
from epicspots.services.reservation_service import ReservationService, SpotReservations

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("/profile", response_model=UserProfileResponse)
async def get_profile(
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user),
) -> UserProfileResponse:
    """The caller's profile with how many spots they list and reservations they hold."""
    activity = await service.user_activity(current_user.id)
    return UserProfileResponse(
        id=current_user.id,
        email=current_user.email,
        name=current_user.name,
        is_active=current_user.is_active,
        role=current_user.role,
        created_at=current_user.created_at,
        spot_count=activity.spot_count,
        reservation_count=activity.reservation_count,
    )


def _dashboard_reservations(entry: SpotReservations) -> list[DashboardReservation]:
    items = []
    for reservation in entry.reservations:
        guest = entry.guests.get(reservation.guest_id)
        items.append(
            DashboardReservation(
                **ReservationResponse.model_validate(reservation).model_dump(),
                guest=UserSummaryResponse.model_validate(guest) if guest is not None else None,
            )
        )
    return items


@router.get("/owner/dashboard", response_model=DashboardResponse)
async def get_owner_dashboard(
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user),
) -> DashboardResponse:
    """Owned spots with their reservations and guests, plus aggregate figures.

    Upcoming reservations are those checking in after today. Revenue is an
    estimate: each reservation's nights times the spot's current price.
    """
    stats = await service.owner_statistics(current_user.id)

    return DashboardResponse(
        spots=[
            DashboardSpot(
                spot=SpotSummaryResponse.model_validate(entry.spot),
                reservation_count=len(entry.reservations),
                reservations=_dashboard_reservations(entry),
            )
            for entry in stats.spots
        ],
        statistics=DashboardStatistics(
            total_spots=stats.total_spots,
            total_reservations=stats.total_reservations,
            upcoming_reservations=stats.upcoming_reservations,
            total_revenue=stats.total_revenue,
        ),
    )
