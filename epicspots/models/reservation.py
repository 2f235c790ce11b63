"""Reservation model — a guest's claim on a spot for a half-open date range."""

import uuid
from datetime import date, datetime

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, func
from sqlalchemy.orm import Mapped, mapped_column

from epicspots.database import Base, UUIDPrimaryKeyMixin


class Reservation(UUIDPrimaryKeyMixin, Base):
    """Covers the nights ``[date_from, date_to)``.

    Rows are inserted once and hard-deleted on cancellation; they are never
    updated.
    """

    __tablename__ = "reservations"

    spot_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("spots.id", ondelete="CASCADE"),
        nullable=False,
    )
    guest_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    date_from: Mapped[date] = mapped_column(Date, nullable=False)
    date_to: Mapped[date] = mapped_column(Date, nullable=False)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    __table_args__ = (
        CheckConstraint("date_from < date_to", name="ck_reservations_range"),
        Index("ix_reservations_spot_dates", "spot_id", "date_from", "date_to"),
    )

    @property
    def nights(self) -> int:
        return (self.date_to - self.date_from).days

    def __repr__(self) -> str:
        return (
            f"<Reservation(id={self.id}, spot_id={self.spot_id}, guest_id={self.guest_id}, "
            f"{self.date_from}..{self.date_to})>"
        )
