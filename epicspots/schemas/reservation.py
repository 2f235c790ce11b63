"""Pydantic v2 request/response schemas for reservation endpoints."""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict

from epicspots.models.user import UserRole
from epicspots.schemas.spot import SpotSummaryResponse

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ReservationCreate(BaseModel):
    """Schema for booking a spot.

    Range validity is checked by the reservation service, not here, so an
    inverted range is reported as ``invalid_range`` (400) rather than a
    validation error.
    """

    spot_id: uuid.UUID
    date_from: date
    date_to: date


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class UserSummaryResponse(BaseModel):
    """Name and contact details of a guest or a spot owner."""

    id: uuid.UUID
    name: str
    email: str
    role: UserRole

    model_config = ConfigDict(from_attributes=True)


class ReservationResponse(BaseModel):
    """Standard reservation response."""

    id: uuid.UUID
    spot_id: uuid.UUID
    guest_id: uuid.UUID
    date_from: date
    date_to: date
    nights: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReservationDetailResponse(ReservationResponse):
    """Reservation with spot, guest and spot-owner summaries attached."""

    spot: SpotSummaryResponse | None = None
    guest: UserSummaryResponse | None = None
    owner: UserSummaryResponse | None = None


class ReservationListResponse(BaseModel):
    items: list[ReservationDetailResponse]
    total: int
