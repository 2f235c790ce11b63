"""Pydantic v2 schemas for the owner dashboard."""

from decimal import Decimal

from pydantic import BaseModel

from epicspots.schemas.reservation import ReservationResponse, UserSummaryResponse
from epicspots.schemas.spot import SpotSummaryResponse


class DashboardStatistics(BaseModel):
    total_spots: int
    total_reservations: int
    upcoming_reservations: int
    total_revenue: Decimal  # price per night times nights, summed


class DashboardReservation(ReservationResponse):
    """A reservation on one of the owner's spots, with who is staying."""

    guest: UserSummaryResponse | None = None


class DashboardSpot(BaseModel):
    spot: SpotSummaryResponse
    reservation_count: int
    reservations: list[DashboardReservation]


class DashboardResponse(BaseModel):
    spots: list[DashboardSpot]
    statistics: DashboardStatistics
