from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Numeric, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class PeriodType(str, Enum):
    UNLIMITED = "unlimited"
    ROLLING = "rolling"
    RANGE = "range"


class EventType(Base):
    __tablename__ = "event_types"
    __table_args__ = (
        UniqueConstraint("user_id", "slug", name="uq_event_types_user_slug"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    slug: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    description: Mapped[str] = mapped_column(String(2000), nullable=False, default="")
    position: Mapped[int] = mapped_column(nullable=False, default=0)

    duration_minutes: Mapped[int] = mapped_column(nullable=False, default=30)
    slot_interval_minutes: Mapped[int | None] = mapped_column(nullable=True)
    buffer_before_minutes: Mapped[int] = mapped_column(nullable=False, default=0)
    buffer_after_minutes: Mapped[int] = mapped_column(nullable=False, default=0)
    minimum_booking_notice_minutes: Mapped[int] = mapped_column(nullable=False, default=120)

    period_type: Mapped[str] = mapped_column(String(20), nullable=False, default=PeriodType.UNLIMITED.value)
    period_days: Mapped[int | None] = mapped_column(nullable=True)
    period_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    period_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    requires_confirmation: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)

    locations: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    recurring_event: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    owner = relationship("User", back_populates="event_types")
    category = relationship("Category", back_populates="event_types")
    bookings = relationship("Booking", back_populates="event_type")

    def soft_hide(self) -> None:
        self.is_hidden = True
        self.is_active = False
