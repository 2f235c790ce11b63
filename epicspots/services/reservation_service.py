"""Reservation lifecycle manager — create, cancel and read reservations.

The service validates request shape with the pure policy rules, consults the
spot catalog and user directory, and hands every check-then-write sequence
to the store as one atomic unit. It holds no state of its own between calls.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from epicspots.models.reservation import Reservation
from epicspots.reservations.availability import AvailabilityChecker
from epicspots.reservations.errors import (
    Forbidden,
    GuestNotFound,
    InvalidRange,
    PastDate,
    ReservationNotFound,
    SpotNotFound,
    TooLateToCancel,
)
from epicspots.reservations.policies import (
    DEFAULT_CANCELLATION_LEAD,
    Capability,
    has_capability,
    is_cancellable,
    is_future_or_today,
    is_valid_range,
    nights,
)
from epicspots.reservations.store import ReservationStore
from epicspots.services.directory import SpotCatalog, SpotSummary, UserDirectory, UserSummary

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ReservationRequest:
    """A booking request, decoupled from any transport."""

    spot_id: uuid.UUID
    date_from: date
    date_to: date
    acting_user_id: uuid.UUID


@dataclass(frozen=True)
class ReservationDetail:
    reservation: Reservation
    spot: SpotSummary | None
    guest: UserSummary | None
    owner: UserSummary | None = None


@dataclass(frozen=True)
class SpotReservations:
    spot: SpotSummary
    reservations: list[Reservation]
    guests: dict[uuid.UUID, UserSummary] = field(default_factory=dict)


@dataclass(frozen=True)
class OwnerStatistics:
    total_spots: int
    total_reservations: int
    upcoming_reservations: int
    total_revenue: Decimal
    spots: list[SpotReservations] = field(default_factory=list)


@dataclass(frozen=True)
class UserActivity:
    spot_count: int
    reservation_count: int


class ReservationService:
    """Orchestrates the reservation lifecycle on top of a ``ReservationStore``."""

    def __init__(
        self,
        store: ReservationStore,
        spots: SpotCatalog,
        users: UserDirectory,
        clock: Clock = utc_now,
        cancellation_lead: timedelta = DEFAULT_CANCELLATION_LEAD,
    ) -> None:
        self._store = store
        self._availability = AvailabilityChecker(store)
        self._spots = spots
        self._users = users
        self._clock = clock
        self._cancellation_lead = cancellation_lead

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def create(self, request: ReservationRequest) -> Reservation:
        """Book ``[date_from, date_to)`` on a spot for the acting user.

        Raises:
            InvalidRange: ``date_from >= date_to``.
            PastDate: ``date_from`` is before today.
            SpotNotFound: no such spot.
            GuestNotFound: the acting user is unknown or inactive.
            ReservationConflict: the range overlaps an existing reservation.
            TransientStoreFailure: the store could not complete the unit; retryable.
        """
        if not is_valid_range(request.date_from, request.date_to):
            raise InvalidRange(request.date_from, request.date_to)
        if not is_future_or_today(request.date_from, self._clock()):
            raise PastDate(request.date_from)

        spot = await self._spots.find(request.spot_id)
        if spot is None:
            raise SpotNotFound(request.spot_id)
        if not await self._users.exists(request.acting_user_id):
            raise GuestNotFound(request.acting_user_id)

        reservation = Reservation(
            id=uuid.uuid4(),
            spot_id=request.spot_id,
            guest_id=request.acting_user_id,
            date_from=request.date_from,
            date_to=request.date_to,
        )
        created = await self._store.insert_if_available(reservation)

        logger.info(
            "Created reservation %s on spot %s for guest %s (%s..%s)",
            created.id,
            created.spot_id,
            created.guest_id,
            created.date_from,
            created.date_to,
        )
        return created

    async def cancel(self, reservation_id: uuid.UUID, requester_id: uuid.UUID) -> Reservation:
        """Hard-delete a reservation on behalf of its guest.

        Raises:
            ReservationNotFound: no such reservation.
            Forbidden: the requester is not the reservation's guest.
            TooLateToCancel: check-in is within the cancellation lead time.
        """
        now = self._clock()
        lead_hours = int(self._cancellation_lead.total_seconds() // 3600)

        def guard(reservation: Reservation) -> None:
            if reservation.guest_id != requester_id:
                raise Forbidden("You can only cancel your own reservations")
            if not is_cancellable(reservation.date_from, now, self._cancellation_lead):
                raise TooLateToCancel(lead_hours)

        cancelled = await self._store.delete_if(reservation_id, guard)
        logger.info("Cancelled reservation %s on spot %s", cancelled.id, cancelled.spot_id)
        return cancelled

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get(self, reservation_id: uuid.UUID, requester_id: uuid.UUID) -> ReservationDetail:
        """Return a reservation to its guest or to the owner of its spot."""
        reservation = await self._store.find_by_id(reservation_id)
        if reservation is None:
            raise ReservationNotFound()

        spot = await self._spots.find(reservation.spot_id)
        is_guest = reservation.guest_id == requester_id
        is_spot_owner = spot is not None and spot.owner_id == requester_id
        if not (is_guest or is_spot_owner):
            raise Forbidden("Access denied")

        people = await self._users.find_many(
            [reservation.guest_id] + ([spot.owner_id] if spot is not None else [])
        )
        return ReservationDetail(
            reservation=reservation,
            spot=spot,
            guest=people.get(reservation.guest_id),
            owner=people.get(spot.owner_id) if spot is not None else None,
        )

    async def list_for_guest(self, guest_id: uuid.UUID, requester_id: uuid.UUID) -> list[ReservationDetail]:
        """A guest's own reservations, most recent check-in first."""
        if guest_id != requester_id:
            raise Forbidden("You can only list your own reservations")

        reservations = await self._store.list_by_guest(guest_id)
        spots: dict[uuid.UUID, SpotSummary | None] = {}
        for reservation in reservations:
            if reservation.spot_id not in spots:
                spots[reservation.spot_id] = await self._spots.find(reservation.spot_id)
        people = await self._users.find_many(
            [guest_id] + [spot.owner_id for spot in spots.values() if spot is not None]
        )

        details: list[ReservationDetail] = []
        for reservation in reservations:
            spot = spots[reservation.spot_id]
            details.append(
                ReservationDetail(
                    reservation=reservation,
                    spot=spot,
                    guest=people.get(guest_id),
                    owner=people.get(spot.owner_id) if spot is not None else None,
                )
            )
        return details

    async def is_available(self, spot_id: uuid.UUID, date_from: date, date_to: date) -> bool:
        """Advisory availability for a spot; does not reserve anything."""
        if not is_valid_range(date_from, date_to):
            raise InvalidRange(date_from, date_to)
        if await self._spots.find(spot_id) is None:
            raise SpotNotFound(spot_id)
        return await self._availability.is_available(spot_id, date_from, date_to)

    async def owner_statistics(self, owner_id: uuid.UUID) -> OwnerStatistics:
        """Aggregate reservation figures across every spot the owner lists."""
        owner = await self._users.find(owner_id)
        if owner is None or not has_capability(owner.role, Capability.MANAGE_SPOTS):
            raise Forbidden("Owner role required")

        owned = await self._spots.list_by_owner(owner_id)
        spot_ids = [spot.id for spot in owned]
        counts = await self._store.count_by_spots(spot_ids)
        upcoming = await self._store.list_upcoming(spot_ids, self._clock().date())

        by_spot: dict[uuid.UUID, list[Reservation]] = {spot_id: [] for spot_id in spot_ids}
        for reservation in await self._store.list_by_spots(spot_ids):
            by_spot[reservation.spot_id].append(reservation)

        guests = await self._users.find_many(r.guest_id for rs in by_spot.values() for r in rs)

        revenue = Decimal("0.00")
        for spot in owned:
            for reservation in by_spot[spot.id]:
                revenue += spot.price * nights(reservation.date_from, reservation.date_to)

        return OwnerStatistics(
            total_spots=len(owned),
            total_reservations=sum(counts.values()),
            upcoming_reservations=len(upcoming),
            total_revenue=revenue,
            spots=[
                SpotReservations(
                    spot=spot,
                    reservations=by_spot[spot.id],
                    guests={r.guest_id: guests[r.guest_id] for r in by_spot[spot.id] if r.guest_id in guests},
                )
                for spot in owned
            ],
        )

    async def user_activity(self, user_id: uuid.UUID) -> UserActivity:
        """How many spots a user lists and how many reservations they hold."""
        owned = await self._spots.list_by_owner(user_id)
        return UserActivity(
            spot_count=len(owned),
            reservation_count=await self._store.count_by_guest(user_id),
        )
