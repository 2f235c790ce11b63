"""Shared API dependencies — single import point for all routers.

Re-exports database session and authentication dependencies and builds the
reservation service so that router modules can import everything from one
place::

    from epicspots.api.deps import get_db, get_current_active_user, get_reservation_service
"""

from datetime import timedelta

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from epicspots.auth.dependencies import (
    get_current_active_user,
    get_current_user,
    require_capability,
)
from epicspots.config import settings
from epicspots.database import get_db, get_session_factory
from epicspots.reservations.store import SpotLocks, SqlReservationStore
from epicspots.services.directory import SqlSpotCatalog, SqlUserDirectory
from epicspots.services.reservation_service import Clock, ReservationService, utc_now

__all__ = [
    "get_clock",
    "get_db",
    "get_current_user",
    "get_current_active_user",
    "get_reservation_service",
    "get_spot_locks",
    "require_capability",
]


def get_spot_locks(request: Request) -> SpotLocks:
    """The per-spot lock registry owned by the running application."""
    return request.app.state.spot_locks


def get_clock() -> Clock:
    return utc_now


def get_reservation_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    locks: SpotLocks = Depends(get_spot_locks),
    clock: Clock = Depends(get_clock),
) -> ReservationService:
    store = SqlReservationStore(
        session_factory,
        locks,
        lock_timeout=settings.store_lock_timeout_seconds,
    )
    return ReservationService(
        store=store,
        spots=SqlSpotCatalog(session_factory),
        users=SqlUserDirectory(session_factory),
        clock=clock,
        cancellation_lead=timedelta(hours=settings.cancellation_lead_hours),
    )
