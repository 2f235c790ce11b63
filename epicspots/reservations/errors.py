"""Typed reservation failures.

Every failure carries a stable machine-readable ``kind`` and the HTTP status
it maps to. Only ``TransientStoreFailure`` is safe to retry.
"""

from __future__ import annotations

import uuid
from datetime import date


class ReservationError(Exception):
    """Base class for all reservation engine failures."""

    kind: str = "reservation_error"
    status_code: int = 400
    retryable: bool = False

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        return {"detail": self.message, "kind": self.kind}


class InvalidRange(ReservationError):
    kind = "invalid_range"
    status_code = 400

    def __init__(self, date_from: date, date_to: date) -> None:
        self.date_from = date_from
        self.date_to = date_to
        super().__init__("Check-out date must be after check-in date")


class PastDate(ReservationError):
    kind = "past_date"
    status_code = 400

    def __init__(self, date_from: date) -> None:
        self.date_from = date_from
        super().__init__("Reservation date cannot be in the past")


class SpotNotFound(ReservationError):
    kind = "spot_not_found"
    status_code = 404

    def __init__(self, spot_id: uuid.UUID) -> None:
        self.spot_id = spot_id
        super().__init__("Spot not found")


class ReservationConflict(ReservationError):
    """Raised when the requested range overlaps an existing reservation."""

    kind = "conflict"
    status_code = 409

    def __init__(self, spot_id: uuid.UUID, conflicting_reservation_id: uuid.UUID) -> None:
        self.spot_id = spot_id
        self.conflicting_reservation_id = conflicting_reservation_id
        super().__init__("Spot is already booked for the selected dates")


class ReservationNotFound(ReservationError):
    kind = "not_found"
    status_code = 404

    def __init__(self, message: str = "Reservation not found") -> None:
        super().__init__(message)


class GuestNotFound(ReservationError):
    """The acting user is unknown or deactivated."""

    kind = "guest_not_found"
    status_code = 404

    def __init__(self, guest_id: uuid.UUID) -> None:
        self.guest_id = guest_id
        super().__init__("Guest not found")


class Forbidden(ReservationError):
    kind = "forbidden"
    status_code = 403


class TooLateToCancel(ReservationError):
    kind = "too_late_to_cancel"
    status_code = 400

    def __init__(self, lead_hours: int) -> None:
        self.lead_hours = lead_hours
        super().__init__(f"Reservations can only be cancelled at least {lead_hours} hours before check-in")


class TransientStoreFailure(ReservationError):
    """Lock timeout, serialization failure or lost connection. Retry is safe."""

    kind = "transient_store_failure"
    status_code = 503
    retryable = True

    def __init__(self, message: str = "The reservation store is temporarily unavailable, please retry") -> None:
        super().__init__(message)
