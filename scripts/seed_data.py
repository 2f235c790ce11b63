"""Seed the database with a demo owner, a demo guest, spots and reservations.

Expects a migrated database. Reservations go through the reservation store so
the non-overlap rule holds for seeded data too.

Run from the repository root:
    alembic upgrade head
    python -m scripts.seed_data
"""

import asyncio
import logging
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import delete, select

from epicspots.auth.passwords import hash_password
from epicspots.config import settings
from epicspots.database import async_session_factory, engine
from epicspots.models.reservation import Reservation
from epicspots.models.spot import Spot
from epicspots.models.user import User, UserRole
from epicspots.reservations.errors import ReservationConflict
from epicspots.reservations.store import SpotLocks, SqlReservationStore

logger = logging.getLogger("scripts.seed_data")

DEMO_OWNER = {"email": "owner@epicspots.dev", "password": "owner1234", "name": "Demo Owner"}
DEMO_GUEST = {"email": "guest@epicspots.dev", "password": "guest1234", "name": "Demo Guest"}

SPOTS = [
    {
        "title": "Lakeside Cabin",
        "description": "Wood cabin with a private jetty and a sauna.",
        "location": "Lake Tahoe, CA",
        "price": Decimal("180.00"),
    },
    {
        "title": "Downtown Loft",
        "description": "Open-plan loft two blocks from the station.",
        "location": "Portland, OR",
        "price": Decimal("95.50"),
    },
    {
        "title": "Desert Dome",
        "description": "Geodesic dome with a stargazing window.",
        "location": "Joshua Tree, CA",
        "price": Decimal("140.00"),
    },
]

# (spot index, days from today, nights)
RESERVATIONS = [
    (0, 7, 3),
    (0, 10, 2),  # back-to-back with the previous stay
    (0, 30, 5),
    (1, 3, 4),
    (1, 14, 7),
    (2, 21, 2),
]


async def _reset(emails: list[str]) -> None:
    async with async_session_factory() as session:
        result = await session.execute(select(User.id).where(User.email.in_(emails)))
        user_ids = list(result.scalars().all())
        if user_ids:
            await session.execute(delete(Reservation).where(Reservation.guest_id.in_(user_ids)))
            await session.execute(delete(Spot).where(Spot.owner_id.in_(user_ids)))
            await session.execute(delete(User).where(User.id.in_(user_ids)))
            await session.commit()
            logger.info("Removed %d existing demo users", len(user_ids))


async def seed() -> None:
    await _reset([DEMO_OWNER["email"], DEMO_GUEST["email"]])

    async with async_session_factory() as session:
        owner = User(
            email=DEMO_OWNER["email"],
            hashed_password=hash_password(DEMO_OWNER["password"]),
            name=DEMO_OWNER["name"],
            role=UserRole.OWNER,
        )
        guest = User(
            email=DEMO_GUEST["email"],
            hashed_password=hash_password(DEMO_GUEST["password"]),
            name=DEMO_GUEST["name"],
            role=UserRole.USER,
        )
        session.add_all([owner, guest])
        await session.flush()

        spots = [Spot(owner_id=owner.id, **data) for data in SPOTS]
        session.add_all(spots)
        await session.commit()

    logger.info("Created owner %s, guest %s and %d spots", owner.email, guest.email, len(spots))

    store = SqlReservationStore(async_session_factory, SpotLocks(), settings.store_lock_timeout_seconds)
    today = date.today()
    created = 0
    for spot_index, offset, stay in RESERVATIONS:
        date_from = today + timedelta(days=offset)
        try:
            await store.insert_if_available(
                Reservation(
                    spot_id=spots[spot_index].id,
                    guest_id=guest.id,
                    date_from=date_from,
                    date_to=date_from + timedelta(days=stay),
                )
            )
            created += 1
        except ReservationConflict:
            logger.warning("Skipped overlapping seed reservation on %s from %s", spots[spot_index].title, date_from)

    logger.info("Created %d reservations", created)
    await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(seed())
