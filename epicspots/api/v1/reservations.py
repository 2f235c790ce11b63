"""Reservations API router.

Access rules: anyone authenticated may book; only the guest may cancel; the
guest or the spot's owner may read a reservation. All business rules live in
``ReservationService``; domain errors are rendered by the app-level handler.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status

from epicspots.api.deps import get_current_active_user, get_reservation_service
from epicspots.models.user import User
from epicspots.schemas.auth import MessageResponse
from epicspots.schemas.reservation import (
    ReservationCreate,
    ReservationDetailResponse,
    ReservationListResponse,
    ReservationResponse,
    UserSummaryResponse,
)
from epicspots.schemas.spot import SpotSummaryResponse
from epicspots.services.directory import UserSummary
from epicspots.services.reservation_service import (
    ReservationDetail,
    ReservationRequest,
    ReservationService,
)

router = APIRouter(prefix="/api/v1/reservations", tags=["reservations"])


def _user_summary(user: UserSummary | None) -> UserSummaryResponse | None:
    return UserSummaryResponse.model_validate(user) if user is not None else None


def _detail_response(detail: ReservationDetail) -> ReservationDetailResponse:
    base = ReservationResponse.model_validate(detail.reservation)
    return ReservationDetailResponse(
        **base.model_dump(),
        spot=SpotSummaryResponse.model_validate(detail.spot) if detail.spot is not None else None,
        guest=_user_summary(detail.guest),
        owner=_user_summary(detail.owner),
    )


@router.post(
    "",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reserve a spot for a date range",
)
async def create_reservation(
    body: ReservationCreate,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user),
) -> ReservationResponse:
    """Book ``[date_from, date_to)`` on a spot for the current user.

    Fails with 400 (invalid range, past date), 404 (unknown spot) or
    409 (dates already taken).
    """
    reservation = await service.create(
        ReservationRequest(
            spot_id=body.spot_id,
            date_from=body.date_from,
            date_to=body.date_to,
            acting_user_id=current_user.id,
        )
    )
    return ReservationResponse.model_validate(reservation)


@router.get(
    "",
    response_model=ReservationListResponse,
    summary="List a guest's reservations",
)
async def list_reservations(
    guest: uuid.UUID | None = Query(None, description="Guest whose reservations to list; defaults to the caller"),
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user),
) -> ReservationListResponse:
    """Return the caller's reservations, most recent check-in first. Self only."""
    details = await service.list_for_guest(guest or current_user.id, requester_id=current_user.id)
    return ReservationListResponse(items=[_detail_response(d) for d in details], total=len(details))


@router.get(
    "/{reservation_id}",
    response_model=ReservationDetailResponse,
    summary="Get reservation detail with spot, guest and owner summaries",
)
async def get_reservation(
    reservation_id: uuid.UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user),
) -> ReservationDetailResponse:
    detail = await service.get(reservation_id, requester_id=current_user.id)
    return _detail_response(detail)


@router.delete(
    "/{reservation_id}",
    response_model=MessageResponse,
    summary="Cancel a reservation",
)
async def cancel_reservation(
    reservation_id: uuid.UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user),
) -> MessageResponse:
    """Cancel one of the caller's reservations while the cancellation window is open."""
    await service.cancel(reservation_id, requester_id=current_user.id)
    return MessageResponse(message="Reservation cancelled successfully")
