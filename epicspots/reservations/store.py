"""Reservation store adapter.

The store owns transactions. Every check-then-write sequence (availability
check + insert, guard + delete) runs as one atomic unit while holding the
spot's lock, so two overlapping creates on the same spot can never both
commit.

Locking happens in two layers:

1. ``SpotLocks``: an ``asyncio.Lock`` per spot, shared by every store of one
   application process.
2. ``SELECT ... FOR UPDATE`` on the spot row inside the transaction, which
   serializes writers across processes on PostgreSQL. SQLite ignores it; the
   in-process lock is enough there.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
import weakref
from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import asynccontextmanager
from datetime import date
from typing import Protocol

from sqlalchemy import delete, func, select
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from epicspots.models.reservation import Reservation
from epicspots.models.spot import Spot
from epicspots.reservations.availability import overlap_filter
from epicspots.reservations.errors import (
    ReservationConflict,
    ReservationNotFound,
    SpotNotFound,
    TransientStoreFailure,
)

logger = logging.getLogger(__name__)

# serialization_failure, deadlock_detected, lock_not_available, query_canceled
_TRANSIENT_SQLSTATES = frozenset({"40001", "40P01", "55P03", "57014"})

ReservationGuard = Callable[[Reservation], None]


class ReservationStore(Protocol):
    """What the lifecycle manager needs from persistence."""

    async def find_overlapping(self, spot_id: uuid.UUID, date_from: date, date_to: date) -> Reservation | None: ...

    async def insert(self, reservation: Reservation) -> Reservation: ...

    async def delete_by_id(self, reservation_id: uuid.UUID) -> None: ...

    async def find_by_id(self, reservation_id: uuid.UUID) -> Reservation | None: ...

    async def list_by_guest(self, guest_id: uuid.UUID) -> list[Reservation]: ...

    async def list_by_spot(self, spot_id: uuid.UUID) -> list[Reservation]: ...

    async def insert_if_available(self, reservation: Reservation) -> Reservation: ...

    async def delete_if(self, reservation_id: uuid.UUID, guard: ReservationGuard) -> Reservation: ...

    async def list_by_spots(self, spot_ids: Sequence[uuid.UUID]) -> list[Reservation]: ...

    async def count_by_spots(self, spot_ids: Sequence[uuid.UUID]) -> dict[uuid.UUID, int]: ...

    async def count_by_guest(self, guest_id: uuid.UUID) -> int: ...

    async def list_upcoming(self, spot_ids: Sequence[uuid.UUID], after: date) -> list[Reservation]: ...


class SpotLocks:
    """Registry of per-spot ``asyncio.Lock`` objects.

    Entries are weakly held and disappear once no task holds or waits on them.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[uuid.UUID, asyncio.Lock] = weakref.WeakValueDictionary()

    def for_spot(self, spot_id: uuid.UUID) -> asyncio.Lock:
        lock = self._locks.get(spot_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[spot_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)


def _is_transient(exc: DBAPIError) -> bool:
    if exc.connection_invalidated or isinstance(exc, OperationalError):
        return True
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    return sqlstate in _TRANSIENT_SQLSTATES


@asynccontextmanager
async def transaction(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Open a session and transaction; map driver failures to ``TransientStoreFailure``.

    Every read or write against the reservation tables and their collaborators
    goes through here, so a lost connection surfaces as a retryable failure
    rather than a raw driver error.
    """
    try:
        async with session_factory() as session, session.begin():
            yield session
    except PoolTimeoutError as exc:
        logger.warning("Connection pool exhausted: %s", exc)
        raise TransientStoreFailure() from exc
    except DBAPIError as exc:
        if not _is_transient(exc):
            raise
        logger.warning("Transient store failure: %s", exc.orig)
        raise TransientStoreFailure() from exc


class SqlReservationStore:
    """``ReservationStore`` backed by SQLAlchemy async sessions."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        locks: SpotLocks,
        lock_timeout: float = 10.0,
    ) -> None:
        self._session_factory = session_factory
        self._locks = locks
        self._lock_timeout = lock_timeout

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _serialized(self, spot_id: uuid.UUID) -> AsyncIterator[None]:
        """Hold the in-process lock for ``spot_id``, bounded by the lock timeout."""
        lock = self._locks.for_spot(spot_id)
        try:
            async with asyncio.timeout(self._lock_timeout):
                await lock.acquire()
        except TimeoutError as exc:
            logger.warning("Timed out after %.1fs waiting for lock on spot %s", self._lock_timeout, spot_id)
            raise TransientStoreFailure() from exc
        try:
            yield
        finally:
            lock.release()

    @staticmethod
    async def _lock_spot_row(session: AsyncSession, spot_id: uuid.UUID) -> None:
        locked = await session.scalar(select(Spot.id).where(Spot.id == spot_id).with_for_update())
        if locked is None:
            raise SpotNotFound(spot_id)

    @staticmethod
    async def _first_overlapping(
        session: AsyncSession, spot_id: uuid.UUID, date_from: date, date_to: date
    ) -> Reservation | None:
        result = await session.execute(
            select(Reservation)
            .where(overlap_filter(spot_id, date_from, date_to))
            .order_by(Reservation.date_from)
            .limit(1)
        )
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find_overlapping(self, spot_id: uuid.UUID, date_from: date, date_to: date) -> Reservation | None:
        async with transaction(self._session_factory) as session:
            return await self._first_overlapping(session, spot_id, date_from, date_to)

    async def find_by_id(self, reservation_id: uuid.UUID) -> Reservation | None:
        async with transaction(self._session_factory) as session:
            return await session.get(Reservation, reservation_id)

    async def list_by_guest(self, guest_id: uuid.UUID) -> list[Reservation]:
        async with transaction(self._session_factory) as session:
            result = await session.execute(
                select(Reservation)
                .where(Reservation.guest_id == guest_id)
                .order_by(Reservation.date_from.desc(), Reservation.created_at.desc())
            )
            return list(result.scalars().all())

    async def list_by_spot(self, spot_id: uuid.UUID) -> list[Reservation]:
        return await self.list_by_spots([spot_id])

    async def list_by_spots(self, spot_ids: Sequence[uuid.UUID]) -> list[Reservation]:
        if not spot_ids:
            return []
        async with transaction(self._session_factory) as session:
            result = await session.execute(
                select(Reservation).where(Reservation.spot_id.in_(spot_ids)).order_by(Reservation.date_from.desc())
            )
            return list(result.scalars().all())

    async def count_by_spots(self, spot_ids: Sequence[uuid.UUID]) -> dict[uuid.UUID, int]:
        counts: dict[uuid.UUID, int] = {spot_id: 0 for spot_id in spot_ids}
        if not spot_ids:
            return counts
        async with transaction(self._session_factory) as session:
            result = await session.execute(
                select(Reservation.spot_id, func.count())
                .where(Reservation.spot_id.in_(spot_ids))
                .group_by(Reservation.spot_id)
            )
            for spot_id, count in result.all():
                counts[spot_id] = count
        return counts

    async def count_by_guest(self, guest_id: uuid.UUID) -> int:
        async with transaction(self._session_factory) as session:
            count = await session.scalar(
                select(func.count()).select_from(Reservation).where(Reservation.guest_id == guest_id)
            )
            return count or 0

    async def list_upcoming(self, spot_ids: Sequence[uuid.UUID], after: date) -> list[Reservation]:
        """Reservations whose check-in falls strictly after ``after``, soonest first."""
        if not spot_ids:
            return []
        async with transaction(self._session_factory) as session:
            result = await session.execute(
                select(Reservation)
                .where(Reservation.spot_id.in_(spot_ids), Reservation.date_from > after)
                .order_by(Reservation.date_from)
            )
            return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert(self, reservation: Reservation) -> Reservation:
        """Insert without an availability check. Use ``insert_if_available`` for bookings."""
        async with transaction(self._session_factory) as session:
            session.add(reservation)
            await session.flush()
            await session.refresh(reservation)
        return reservation

    async def delete_by_id(self, reservation_id: uuid.UUID) -> None:
        async with transaction(self._session_factory) as session:
            await session.execute(delete(Reservation).where(Reservation.id == reservation_id))

    async def insert_if_available(self, reservation: Reservation) -> Reservation:
        """Check availability and insert as one atomic unit.

        Raises:
            ReservationConflict: an existing reservation overlaps the range.
            SpotNotFound: the spot vanished before the lock was taken.
            TransientStoreFailure: lock timeout or retryable database error.
        """
        spot_id = reservation.spot_id
        async with self._serialized(spot_id):
            async with transaction(self._session_factory) as session:
                await self._lock_spot_row(session, spot_id)
                existing = await self._first_overlapping(session, spot_id, reservation.date_from, reservation.date_to)
                if existing is not None:
                    raise ReservationConflict(spot_id, existing.id)
                session.add(reservation)
                await session.flush()
                await session.refresh(reservation)
        return reservation

    async def delete_if(self, reservation_id: uuid.UUID, guard: ReservationGuard) -> Reservation:
        """Re-read the reservation under its spot's lock, run ``guard``, then delete.

        ``guard`` raises to veto the deletion; nothing is deleted in that case.
        Returns the deleted (now detached) reservation.
        """
        current = await self.find_by_id(reservation_id)
        if current is None:
            raise ReservationNotFound()

        async with self._serialized(current.spot_id):
            async with transaction(self._session_factory) as session:
                result = await session.execute(
                    select(Reservation).where(Reservation.id == reservation_id).with_for_update()
                )
                reservation = result.scalar_one_or_none()
                if reservation is None:
                    raise ReservationNotFound()
                guard(reservation)
                await session.delete(reservation)
        return reservation
