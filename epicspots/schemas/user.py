"""Pydantic v2 schemas for user profile endpoints."""

from epicspots.schemas.auth import UserResponse


class UserProfileResponse(UserResponse):
    """Profile plus the number of spots listed and reservations held."""

    spot_count: int
    reservation_count: int
