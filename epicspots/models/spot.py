"""Spot model — a bookable listing owned by one user."""

import uuid
from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from epicspots.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Spot(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A listing guests can reserve by the night."""

    __tablename__ = "spots"

    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    location: Mapped[str | None] = mapped_column(String(255), default=None)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)  # per night

    __table_args__ = (CheckConstraint("price > 0", name="ck_spots_price_positive"),)

    def __repr__(self) -> str:
        return f"<Spot(id={self.id}, title={self.title!r}, owner_id={self.owner_id})>"
