"""SQLAlchemy models.

Sample domain served by the controller helper: hotels, and the deals that
belong to a hotel. Both carry the audit columns the CRUD pipeline owns.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Numeric, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from entity_crud.db.session import Base


class AuditMixin:
    """Columns written only by the pipeline, never by callers."""

    created_by: Mapped[int]
    updated_by: Mapped[int]
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class Hotel(AuditMixin, Base):
    __tablename__ = "hotels"
    __table_args__ = (UniqueConstraint("name", "city", "country", name="uq_hotel_location"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    city: Mapped[str] = mapped_column(String(100))
    country: Mapped[str] = mapped_column(String(100))

    # Deleting a hotel deletes its deals
    deals: Mapped[list["Deal"]] = relationship(back_populates="hotel", cascade="all, delete-orphan")


class Deal(AuditMixin, Base):
    __tablename__ = "deals"
    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="rating_range"),
        CheckConstraint(
            "price_per_night > 0 AND price_per_night <= 99999",
            name="price_per_night_range",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    hotel_id: Mapped[int] = mapped_column(ForeignKey("hotels.id", ondelete="CASCADE"), index=True)
    room_type: Mapped[str] = mapped_column(String(50))
    rating: Mapped[int]
    price_per_night: Mapped[Decimal] = mapped_column(Numeric(7, 2))
    is_available: Mapped[bool] = mapped_column(default=True)
    archived: Mapped[bool] = mapped_column(default=False)

    hotel: Mapped["Hotel"] = relationship(back_populates="deals")
