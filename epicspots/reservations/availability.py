"""Availability checks for half-open date ranges.

Two ranges ``[a_from, a_to)`` and ``[b_from, b_to)`` overlap iff
``a_from < b_to AND b_from < a_to``. Strict inequality means a checkout on
the same day as the next check-in is not an overlap.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import ColumnElement, and_

from epicspots.models.reservation import Reservation

if TYPE_CHECKING:
    from epicspots.reservations.store import ReservationStore


def ranges_overlap(a_from: date, a_to: date, b_from: date, b_to: date) -> bool:
    return a_from < b_to and b_from < a_to


def overlap_filter(spot_id: uuid.UUID, date_from: date, date_to: date) -> ColumnElement[bool]:
    """SQL criteria matching reservations on ``spot_id`` that overlap the range."""
    return and_(
        Reservation.spot_id == spot_id,
        Reservation.date_from < date_to,  # existing check-in before new check-out
        Reservation.date_to > date_from,  # existing check-out after new check-in
    )


class AvailabilityChecker:
    """Answers "is this range free?" against the reservation store.

    The answer is advisory: it may be stale by the time the caller acts on it.
    Bookings go through ``ReservationStore.insert_if_available``, which
    repeats the check inside the atomic unit.
    """

    def __init__(self, store: ReservationStore) -> None:
        self._store = store

    async def is_available(self, spot_id: uuid.UUID, date_from: date, date_to: date) -> bool:
        return await self._store.find_overlapping(spot_id, date_from, date_to) is None
