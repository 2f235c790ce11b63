"""Collaborator lookups the reservation engine depends on.

The engine only needs to know that a spot exists, who owns it and what it
costs per night, and that a user exists and which role they hold.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from epicspots.models.spot import Spot
from epicspots.models.user import User, UserRole
from epicspots.reservations.store import transaction


@dataclass(frozen=True)
class SpotSummary:
    id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    location: str | None
    price: Decimal


@dataclass(frozen=True)
class UserSummary:
    id: uuid.UUID
    name: str
    email: str
    role: UserRole


class SpotCatalog(Protocol):
    async def find(self, spot_id: uuid.UUID) -> SpotSummary | None: ...

    async def list_by_owner(self, owner_id: uuid.UUID) -> list[SpotSummary]: ...


class UserDirectory(Protocol):
    async def exists(self, user_id: uuid.UUID) -> bool: ...

    async def find(self, user_id: uuid.UUID) -> UserSummary | None: ...

    async def find_many(self, user_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, UserSummary]: ...


def _spot_summary(spot: Spot) -> SpotSummary:
    return SpotSummary(
        id=spot.id,
        owner_id=spot.owner_id,
        title=spot.title,
        location=spot.location,
        price=spot.price,
    )


def _user_summary(user: User) -> UserSummary:
    return UserSummary(id=user.id, name=user.name, email=user.email, role=user.role)


class SqlSpotCatalog:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find(self, spot_id: uuid.UUID) -> SpotSummary | None:
        async with transaction(self._session_factory) as session:
            spot = await session.get(Spot, spot_id)
            return _spot_summary(spot) if spot is not None else None

    async def list_by_owner(self, owner_id: uuid.UUID) -> list[SpotSummary]:
        """Spots owned by ``owner_id``, newest first."""
        async with transaction(self._session_factory) as session:
            result = await session.execute(
                select(Spot).where(Spot.owner_id == owner_id).order_by(Spot.created_at.desc())
            )
            return [_spot_summary(spot) for spot in result.scalars().all()]


class SqlUserDirectory:
    """Active users only; deactivated accounts are treated as absent."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def exists(self, user_id: uuid.UUID) -> bool:
        return await self.find(user_id) is not None

    async def find(self, user_id: uuid.UUID) -> UserSummary | None:
        async with transaction(self._session_factory) as session:
            user = await session.scalar(select(User).where(User.id == user_id, User.is_active.is_(True)))
            return _user_summary(user) if user is not None else None

    async def find_many(self, user_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, UserSummary]:
        ids = set(user_ids)
        if not ids:
            return {}
        async with transaction(self._session_factory) as session:
            result = await session.execute(select(User).where(User.id.in_(ids), User.is_active.is_(True)))
            return {user.id: _user_summary(user) for user in result.scalars().all()}
