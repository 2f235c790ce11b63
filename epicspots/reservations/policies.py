"""Pure reservation policy rules. No I/O, no clock reads."""

import enum
from datetime import date, datetime, time, timedelta, timezone, tzinfo

from epicspots.models.user import UserRole

DEFAULT_CANCELLATION_LEAD = timedelta(hours=24)


class Capability(str, enum.Enum):
    BOOK_SPOTS = "book_spots"
    MANAGE_SPOTS = "manage_spots"


ROLE_CAPABILITIES: dict[UserRole, frozenset[Capability]] = {
    UserRole.USER: frozenset({Capability.BOOK_SPOTS}),
    UserRole.OWNER: frozenset({Capability.BOOK_SPOTS, Capability.MANAGE_SPOTS}),
}


def has_capability(role: UserRole, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES.get(role, frozenset())


def start_of_day(day: date, tz: tzinfo | None = timezone.utc) -> datetime:
    """Midnight at the beginning of ``day``."""
    return datetime.combine(day, time.min, tzinfo=tz)


def is_valid_range(date_from: date, date_to: date) -> bool:
    """A range is valid when it covers at least one night."""
    return date_from < date_to


def is_future_or_today(day: date, now: datetime) -> bool:
    """Date-only comparison; the time of day in ``now`` is ignored."""
    return day >= now.date()


def is_cancellable(date_from: date, now: datetime, lead_time: timedelta = DEFAULT_CANCELLATION_LEAD) -> bool:
    """True while strictly more than ``lead_time`` remains before check-in day starts.

    ``now`` must be timezone-aware; check-in is taken as midnight in the same
    timezone.
    """
    return start_of_day(date_from, now.tzinfo) > now + lead_time


def nights(date_from: date, date_to: date) -> int:
    return max((date_to - date_from).days, 0)
