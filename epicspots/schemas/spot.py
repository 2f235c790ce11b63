"""Pydantic v2 request/response schemas for spot endpoints."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class SpotCreate(BaseModel):
    """Schema for listing a new spot."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    location: str | None = Field(None, max_length=255)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)


class SpotResponse(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    description: str | None = None
    location: str | None = None
    price: Decimal
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SpotListResponse(BaseModel):
    """Paginated list of spots."""

    items: list[SpotResponse]
    total: int


class SpotSummaryResponse(BaseModel):
    """Spot fields attached to reservation responses."""

    id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    location: str | None = None
    price: Decimal

    model_config = ConfigDict(from_attributes=True)


class AvailabilityResponse(BaseModel):
    spot_id: uuid.UUID
    date_from: date
    date_to: date
    available: bool
