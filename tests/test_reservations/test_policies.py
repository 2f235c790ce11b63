"""Unit tests for the pure reservation policy rules."""

from datetime import date, datetime, timedelta, timezone

import pytest

from epicspots.models.user import UserRole
from epicspots.reservations.policies import (
    Capability,
    has_capability,
    is_cancellable,
    is_future_or_today,
    is_valid_range,
    nights,
    start_of_day,
)


class TestIsValidRange:
    def test_one_night_is_valid(self):
        assert is_valid_range(date(2030, 6, 15), date(2030, 6, 16))

    def test_same_day_is_invalid(self):
        assert not is_valid_range(date(2030, 6, 15), date(2030, 6, 15))

    def test_inverted_is_invalid(self):
        assert not is_valid_range(date(2030, 6, 18), date(2030, 6, 15))


class TestIsFutureOrToday:
    def test_today_late_evening_still_counts(self):
        now = datetime(2030, 6, 15, 23, 59, tzinfo=timezone.utc)
        assert is_future_or_today(date(2030, 6, 15), now)

    def test_yesterday_is_past(self):
        now = datetime(2030, 6, 15, 0, 1, tzinfo=timezone.utc)
        assert not is_future_or_today(date(2030, 6, 14), now)

    def test_future(self):
        now = datetime(2030, 6, 15, 12, 0, tzinfo=timezone.utc)
        assert is_future_or_today(date(2031, 1, 1), now)


class TestIsCancellable:
    def test_48_hours_ahead(self):
        now = datetime(2030, 6, 13, 0, 0, tzinfo=timezone.utc)
        assert is_cancellable(date(2030, 6, 15), now)

    def test_less_than_a_day_ahead(self):
        now = datetime(2030, 6, 14, 12, 0, tzinfo=timezone.utc)
        assert not is_cancellable(date(2030, 6, 15), now)

    def test_exactly_24_hours_is_too_late(self):
        now = datetime(2030, 6, 14, 0, 0, tzinfo=timezone.utc)
        assert not is_cancellable(date(2030, 6, 15), now)

    def test_one_minute_more_than_24_hours(self):
        now = datetime(2030, 6, 13, 23, 59, tzinfo=timezone.utc)
        assert is_cancellable(date(2030, 6, 15), now)

    def test_check_in_already_passed(self):
        now = datetime(2030, 6, 20, 9, 0, tzinfo=timezone.utc)
        assert not is_cancellable(date(2030, 6, 15), now)

    def test_custom_lead_time(self):
        now = datetime(2030, 6, 12, 0, 0, tzinfo=timezone.utc)
        assert not is_cancellable(date(2030, 6, 15), now, lead_time=timedelta(hours=72))
        assert is_cancellable(date(2030, 6, 15), now, lead_time=timedelta(hours=48))

    def test_start_of_day_uses_callers_timezone(self):
        plus_two = timezone(timedelta(hours=2))
        assert start_of_day(date(2030, 6, 15), plus_two).utcoffset() == timedelta(hours=2)


class TestNights:
    def test_counts_nights(self):
        assert nights(date(2030, 6, 15), date(2030, 6, 18)) == 3

    def test_never_negative(self):
        assert nights(date(2030, 6, 18), date(2030, 6, 15)) == 0


class TestCapabilities:
    @pytest.mark.parametrize("role", [UserRole.USER, UserRole.OWNER])
    def test_everyone_can_book(self, role):
        assert has_capability(role, Capability.BOOK_SPOTS)

    def test_only_owners_manage_spots(self):
        assert has_capability(UserRole.OWNER, Capability.MANAGE_SPOTS)
        assert not has_capability(UserRole.USER, Capability.MANAGE_SPOTS)
